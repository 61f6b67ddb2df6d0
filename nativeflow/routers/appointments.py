from typing import List

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException

from .. import schemas
from ..auth import AuthContext, require_auth
from ..exceptions import StoreError, http_status
from ..notifications import send_alert_quietly
from ..store import EntityStore, get_store

router = APIRouter(prefix="/appointments", tags=["Appointments"])

@router.post("", response_model=schemas.AppointmentOut, status_code=201)
def create_appointment(
    appt: schemas.AppointmentIn,
    background_tasks: BackgroundTasks,
    store: EntityStore = Depends(get_store),
):
    # guests book with user_id = None
    record = {**appt.model_dump(), "user_id": store.auth.user_id}
    try:
        row = store.insert("appointments", record)
    except StoreError as e:
        code, detail = http_status(e)
        raise HTTPException(status_code=code, detail=detail)
    background_tasks.add_task(send_alert_quietly, "appointment", row.model_dump())
    return row

@router.get("/me", response_model=List[schemas.AppointmentOut])
def my_appointments(
    auth: AuthContext = Depends(require_auth),
    store: EntityStore = Depends(get_store),
):
    try:
        return store.select_by_equality(
            "appointments", "user_id", auth.user_id, order_by="created_at", ascending=False
        )
    except StoreError as e:
        code, detail = http_status(e)
        raise HTTPException(status_code=code, detail=detail)

@router.patch("/{appointment_id}/status", response_model=schemas.AppointmentOut)
def update_status(
    appointment_id: str,
    change: schemas.StatusChange,
    auth: AuthContext = Depends(require_auth),
    store: EntityStore = Depends(get_store),
):
    try:
        rows = store.update("appointments", "id", appointment_id, {"status": change.status.value})
    except StoreError as e:
        code, detail = http_status(e)
        raise HTTPException(status_code=code, detail=detail)
    return rows[0]
