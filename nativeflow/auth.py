import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt

from . import config

logger = logging.getLogger(__name__)

# Tokens come from the hosted auth provider; anonymous callers send none
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="auth/token", auto_error=False)


@dataclass(frozen=True)
class AuthContext:
    """Identity of whoever is calling. `user_id is None` means anonymous."""

    user_id: Optional[str] = None
    email: Optional[str] = None

    @classmethod
    def anonymous(cls) -> "AuthContext":
        return cls()

    @property
    def is_authenticated(self) -> bool:
        return self.user_id is not None


def decode_token(token: str) -> AuthContext:
    if not config.SECRET_KEY:
        logger.error("SECRET_KEY is not set; rejecting bearer token")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")
    try:
        payload = jwt.decode(
            token, config.SECRET_KEY, algorithms=[config.ALGORITHM], options={"verify_aud": False}
        )
    except JWTError as e:
        logger.info("Rejected bearer token: %s", e)
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")

    user_id = payload.get("sub")
    if user_id is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")
    return AuthContext(user_id=str(user_id), email=payload.get("email"))


def get_auth_context(token: Optional[str] = Depends(oauth2_scheme)) -> AuthContext:
    if not token:
        return AuthContext.anonymous()
    return decode_token(token)


def require_auth(auth: AuthContext = Depends(get_auth_context)) -> AuthContext:
    if not auth.is_authenticated:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return auth
