from typing import List

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException

from .. import schemas
from ..exceptions import StoreError, http_status
from ..notifications import send_alert_quietly
from ..store import EntityStore, get_store

router = APIRouter(tags=["Public"])

@router.get("/testimonials", response_model=List[schemas.TestimonialOut])
def approved_testimonials(store: EntityStore = Depends(get_store)):
    try:
        return store.select_by_equality(
            "testimonials", "is_approved", True, order_by="created_at", ascending=False
        )
    except StoreError as e:
        code, detail = http_status(e)
        raise HTTPException(status_code=code, detail=detail)

@router.post("/contact", response_model=schemas.ContactOut, status_code=201)
def send_contact_message(
    msg: schemas.ContactIn,
    background_tasks: BackgroundTasks,
    store: EntityStore = Depends(get_store),
):
    try:
        row = store.insert("contact_messages", msg)
    except StoreError as e:
        code, detail = http_status(e)
        raise HTTPException(status_code=code, detail=detail)
    background_tasks.add_task(send_alert_quietly, "contact", row.model_dump())
    return row
