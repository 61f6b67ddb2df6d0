from fastapi import APIRouter, Depends, HTTPException, Response

from .. import schemas
from ..auth import AuthContext, require_auth
from ..exceptions import StoreError, http_status
from ..store import EntityStore, get_store

router = APIRouter(prefix="/profiles", tags=["Profiles"])

@router.get("/me", response_model=schemas.ProfileOut)
def my_profile(
    auth: AuthContext = Depends(require_auth),
    store: EntityStore = Depends(get_store),
):
    try:
        profile = store.select_single_by_equality("profiles", "user_id", auth.user_id)
    except StoreError as e:
        code, detail = http_status(e)
        raise HTTPException(status_code=code, detail=detail)
    if profile is None:
        raise HTTPException(status_code=404, detail="Profile not found")
    return profile

@router.put("/me", response_model=schemas.ProfileOut)
def save_profile(
    data: schemas.ProfileIn,
    response: Response,
    auth: AuthContext = Depends(require_auth),
    store: EntityStore = Depends(get_store),
):
    record = {**data.model_dump(), "user_id": auth.user_id, "email": auth.email}
    try:
        if auth.email is None:
            # token without an email claim: keep the address already on file
            existing = store.select_single_by_equality("profiles", "user_id", auth.user_id)
            if existing is None:
                raise HTTPException(status_code=422, detail="An email address is required to create a profile")
            record["email"] = existing.email
        profile, created = store.upsert("profiles", "user_id", record)
    except StoreError as e:
        code, detail = http_status(e)
        raise HTTPException(status_code=code, detail=detail)
    response.status_code = 201 if created else 200
    return profile
