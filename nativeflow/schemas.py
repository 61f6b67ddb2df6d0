from datetime import date, datetime
from enum import Enum
from typing import Any, Literal, NamedTuple, Optional, Type

from pydantic import BaseModel, EmailStr, Field, field_validator, model_validator


class AppointmentStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    # Fallback for legacy rows; status is unconstrained text in the table
    OTHER = "other"

    @classmethod
    def parse(cls, value: Optional[str]) -> "AppointmentStatus":
        try:
            return cls(value)
        except ValueError:
            return cls.OTHER

    @classmethod
    def writable(cls) -> list:
        return [s.value for s in cls if s is not cls.OTHER]


class Role(str, Enum):
    CLIENT = "client"
    TECHNICIAN = "technician"
    ADMIN = "admin"


def check_status(value: Optional[str]) -> Optional[str]:
    if value is not None and value not in AppointmentStatus.writable():
        raise ValueError(f"status must be one of {AppointmentStatus.writable()}")
    return value


class Record(BaseModel):
    """Base for incoming records: blank strings are treated as absent."""

    @model_validator(mode="before")
    @classmethod
    def _blank_to_none(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return {
                key: None if isinstance(value, str) and not value.strip() else value
                for key, value in data.items()
            }
        return data

    class Config:
        extra = "forbid"
        use_enum_values = True


class Row(BaseModel):
    class Config:
        from_attributes = True


# ────────────────────────────── APPOINTMENTS ──────────────────────────────

class AppointmentIn(Record):
    name: str
    email: EmailStr
    phone: str
    address: str
    service_type: str
    preferred_date: date
    preferred_time: str
    description: Optional[str] = None


class AppointmentInsert(AppointmentIn):
    id: Optional[str] = None
    status: Optional[str] = None
    user_id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("status")
    @classmethod
    def _known_status(cls, value):
        return check_status(value)


class AppointmentUpdate(Record):
    name: Optional[str] = None
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    service_type: Optional[str] = None
    preferred_date: Optional[date] = None
    preferred_time: Optional[str] = None
    description: Optional[str] = None
    status: Optional[str] = None
    user_id: Optional[str] = None

    @field_validator("status")
    @classmethod
    def _known_status(cls, value):
        return check_status(value)


class StatusChange(BaseModel):
    status: AppointmentStatus

    @field_validator("status")
    @classmethod
    def _not_fallback(cls, value):
        if value is AppointmentStatus.OTHER:
            raise ValueError("status must be a known appointment status")
        return value


class AppointmentOut(Row):
    id: str
    name: str
    email: str
    phone: str
    address: str
    service_type: str
    preferred_date: date
    preferred_time: str
    description: Optional[str]
    status: Optional[str]
    user_id: Optional[str]
    created_at: datetime
    updated_at: datetime


# ────────────────────────────── PROFILES ──────────────────────────────

class ProfileIn(Record):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    full_name: Optional[str] = None
    company_name: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None


class ProfileInsert(ProfileIn):
    id: Optional[str] = None
    user_id: str
    email: str
    role: Optional[Role] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ProfileUpdate(ProfileIn):
    email: Optional[str] = None
    role: Optional[Role] = None


class ProfileOut(Row):
    id: str
    user_id: str
    email: str
    first_name: Optional[str]
    last_name: Optional[str]
    full_name: Optional[str]
    company_name: Optional[str]
    phone: Optional[str]
    address: Optional[str]
    role: str
    created_at: datetime
    updated_at: datetime


# ────────────────────────────── CONTACT ──────────────────────────────

class ContactIn(Record):
    name: str
    email: EmailStr
    phone: Optional[str] = None
    subject: Optional[str] = None
    message: str


class ContactInsert(ContactIn):
    id: Optional[str] = None
    is_read: Optional[bool] = None
    created_at: Optional[datetime] = None


class ContactUpdate(Record):
    is_read: Optional[bool] = None


class ContactOut(Row):
    id: str
    name: str
    email: str
    phone: Optional[str]
    subject: Optional[str]
    message: str
    is_read: Optional[bool]
    created_at: datetime


# ────────────────────────────── TESTIMONIALS ──────────────────────────────

class TestimonialInsert(Record):
    id: Optional[str] = None
    name: str
    location: Optional[str] = None
    rating: Optional[int] = Field(default=None, ge=0, le=5)
    testimonial: str
    service_type: Optional[str] = None
    is_approved: Optional[bool] = None
    created_at: Optional[datetime] = None


class TestimonialUpdate(Record):
    name: Optional[str] = None
    location: Optional[str] = None
    rating: Optional[int] = Field(default=None, ge=0, le=5)
    testimonial: Optional[str] = None
    service_type: Optional[str] = None
    is_approved: Optional[bool] = None


class TestimonialOut(Row):
    id: str
    name: str
    location: Optional[str]
    rating: Optional[int]
    testimonial: str
    service_type: Optional[str]
    is_approved: Optional[bool]
    created_at: datetime


# ────────────────────────────── PROJECTS / PHOTOS / REPORTS ──────────────────────────────

class ProjectInsert(Record):
    id: Optional[str] = None
    title: str
    description: Optional[str] = None
    address: Optional[str] = None
    status: Optional[str] = None
    client_id: Optional[str] = None
    technician_id: Optional[str] = None


class ProjectUpdate(Record):
    title: Optional[str] = None
    description: Optional[str] = None
    address: Optional[str] = None
    status: Optional[str] = None
    client_id: Optional[str] = None
    technician_id: Optional[str] = None


class ProjectOut(Row):
    id: str
    title: str
    description: Optional[str]
    address: Optional[str]
    status: Optional[str]
    client_id: Optional[str]
    technician_id: Optional[str]
    created_at: datetime
    updated_at: datetime


class PhotoInsert(Record):
    id: Optional[str] = None
    project_id: str
    filename: str
    type: str
    url: str
    ai_analysis: Optional[Any] = None


class PhotoUpdate(Record):
    filename: Optional[str] = None
    type: Optional[str] = None
    url: Optional[str] = None
    ai_analysis: Optional[Any] = None


class PhotoOut(Row):
    id: str
    project_id: str
    filename: str
    type: str
    url: str
    ai_analysis: Optional[Any]
    created_at: datetime


class ReportInsert(Record):
    id: Optional[str] = None
    project_id: str
    title: str
    content: Any
    pdf_url: Optional[str] = None
    email_sent: Optional[bool] = None
    generated_by: Optional[str] = None


class ReportUpdate(Record):
    title: Optional[str] = None
    content: Optional[Any] = None
    pdf_url: Optional[str] = None
    email_sent: Optional[bool] = None


class ReportOut(Row):
    id: str
    project_id: str
    title: str
    content: Any
    pdf_url: Optional[str]
    email_sent: Optional[bool]
    generated_by: Optional[str]
    created_at: datetime


class TableSchema(NamedTuple):
    insert: Type[Record]
    update: Type[Record]
    row: Type[Row]


TABLE_SCHEMAS = {
    "appointments": TableSchema(AppointmentInsert, AppointmentUpdate, AppointmentOut),
    "contact_messages": TableSchema(ContactInsert, ContactUpdate, ContactOut),
    "profiles": TableSchema(ProfileInsert, ProfileUpdate, ProfileOut),
    "projects": TableSchema(ProjectInsert, ProjectUpdate, ProjectOut),
    "photos": TableSchema(PhotoInsert, PhotoUpdate, PhotoOut),
    "reports": TableSchema(ReportInsert, ReportUpdate, ReportOut),
    "testimonials": TableSchema(TestimonialInsert, TestimonialUpdate, TestimonialOut),
}


# ────────────────────────────── ALERTS ──────────────────────────────

class AlertRequest(BaseModel):
    type: Literal["appointment", "contact"]
    data: dict


class AppointmentAlert(BaseModel):
    name: str
    email: str
    phone: str
    address: str
    service_type: str
    preferred_date: str
    preferred_time: str
    description: Optional[str] = None

    @field_validator("preferred_date", mode="before")
    @classmethod
    def _date_text(cls, value):
        return value.isoformat() if isinstance(value, date) else value


class ContactAlert(BaseModel):
    name: str
    email: str
    phone: Optional[str] = None
    subject: Optional[str] = None
    message: str
