"""Row-level access rules for the entity store.

Reads are filtered: rows a caller may not see are left out of results, the
same way the hosted database's row policies behave. A caller with no read
grant on a table at all gets AccessDenied. Writes outside the rules below
always raise AccessDenied.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from . import models
from .exceptions import AccessDenied
from .schemas import AppointmentStatus, Role

logger = logging.getLogger(__name__)

OWNED_TABLES = {"appointments": models.Appointment, "profiles": models.Profile}
STAFF_TABLES = {"projects", "photos", "reports"}


@dataclass(frozen=True)
class Caller:
    user_id: Optional[str] = None
    role: str = Role.CLIENT.value

    @property
    def is_authenticated(self) -> bool:
        return self.user_id is not None

    @property
    def is_admin(self) -> bool:
        return self.is_authenticated and self.role == Role.ADMIN.value

    @property
    def is_technician(self) -> bool:
        return self.is_authenticated and self.role == Role.TECHNICIAN.value


def _deny(caller: Caller, action: str, table: str):
    logger.warning("Denied %s on %s for user=%s role=%s", action, table, caller.user_id, caller.role)
    raise AccessDenied(f"{action} on {table} is not permitted")


def read_filter(table: str, caller: Caller):
    """SQL predicate limiting visible rows, or None when the caller sees everything."""
    if caller.is_admin:
        return None

    if table in OWNED_TABLES:
        if not caller.is_authenticated:
            _deny(caller, "select", table)
        return OWNED_TABLES[table].user_id == caller.user_id

    if table == "testimonials":
        return models.Testimonial.is_approved.is_(True)

    if table in STAFF_TABLES and caller.is_technician:
        return None

    _deny(caller, "select", table)


def write_filter(table: str, caller: Caller):
    if table in OWNED_TABLES:
        return read_filter(table, caller)
    if not caller.is_admin:
        _deny(caller, "update", table)
    return None


def check_insert(table: str, caller: Caller, values: dict) -> None:
    if caller.is_admin or table == "contact_messages":
        return

    if table == "appointments":
        owner = values.get("user_id")
        if owner is not None and owner != caller.user_id:
            _deny(caller, "insert", table)
        # new bookings always start pending; transitions belong to operators
        if values.get("status") not in (None, AppointmentStatus.PENDING.value):
            _deny(caller, "insert", table)
        return

    if table == "profiles":
        if not caller.is_authenticated or values.get("user_id") != caller.user_id:
            _deny(caller, "insert", table)
        if values.get("role") is not None:
            _deny(caller, "insert", table)
        return

    _deny(caller, "insert", table)


def check_update(table: str, caller: Caller, patch: dict) -> None:
    if caller.is_admin:
        return
    if table == "appointments" and ({"status", "user_id"} & patch.keys()):
        _deny(caller, "update", table)
    if table == "profiles" and "role" in patch:
        _deny(caller, "update", table)
