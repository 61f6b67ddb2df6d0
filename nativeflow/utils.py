from datetime import date, datetime, timedelta, timezone
from typing import Optional

from jose import jwt

from . import config


def create_jwt(data: dict, expires_minutes: int = 60) -> str:
    if not config.SECRET_KEY:
        raise RuntimeError("SECRET_KEY is not set")
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + timedelta(minutes=expires_minutes)
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, config.SECRET_KEY, algorithm=config.ALGORITHM)


def tomorrow(today: Optional[date] = None) -> date:
    return (today or date.today()) + timedelta(days=1)
