"""Page controllers for the customer portal.

Each controller drives one page: it shapes or fetches records through an
EntityStore, and reports the outcome as a ViewState plus a Notice for the
toast area. Store errors never escape a controller; the page shows a
generic message and keeps what the user typed.
"""

import logging
from dataclasses import asdict, dataclass, fields
from datetime import date, datetime
from enum import Enum
from typing import Any, Callable, List, NamedTuple, Optional

from .auth import AuthContext
from .config import TIME_SLOTS
from .exceptions import StoreError
from .notifications import send_alert_quietly
from .schemas import AppointmentStatus
from .store import EntityStore
from .utils import tomorrow

logger = logging.getLogger(__name__)

SIGN_IN_PATH = "/auth"
APPOINTMENTS_PATH = "/my-appointments"

Notifier = Callable[[str, dict], Any]


class ViewState(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    SUBMITTING = "submitting"
    SUCCESS = "success"
    ERROR = "error"


@dataclass
class Notice:
    title: str
    description: str
    variant: str = "default"


class StatusDisplay(NamedTuple):
    label: str
    variant: str
    color: str


STATUS_DISPLAY = {
    AppointmentStatus.PENDING: StatusDisplay("Pending", "secondary", "text-yellow-600"),
    AppointmentStatus.CONFIRMED: StatusDisplay("Confirmed", "default", "text-blue-600"),
    AppointmentStatus.COMPLETED: StatusDisplay("Completed", "secondary", "text-green-600"),
    AppointmentStatus.CANCELLED: StatusDisplay("Cancelled", "destructive", "text-red-600"),
}


def status_display(status: Optional[str]) -> StatusDisplay:
    kind = AppointmentStatus.parse(status)
    if kind is AppointmentStatus.OTHER:
        return StatusDisplay(status or "Unknown", "secondary", "text-gray-600")
    return STATUS_DISPLAY[kind]


def render_stars(rating: Optional[int], out_of: int = 5) -> List[bool]:
    filled = max(0, min(rating or 0, out_of))
    return [i < filled for i in range(out_of)]


def format_date(value: date) -> str:
    return f"{value:%B} {value.day}, {value.year}"


def _blank(value) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


class PageController:
    def __init__(self, store: EntityStore, auth: Optional[AuthContext] = None):
        self.store = store
        self.auth = auth or AuthContext.anonymous()
        self.state = ViewState.IDLE
        self.notice: Optional[Notice] = None
        self.redirect_to: Optional[str] = None

    @property
    def busy(self) -> bool:
        return self.state in (ViewState.LOADING, ViewState.SUBMITTING)

    def _require_auth(self) -> bool:
        if not self.auth.is_authenticated:
            self.redirect_to = SIGN_IN_PATH
            return False
        return True

    def _fail(self, title: str, description: str = "Please try again later"):
        self.state = ViewState.ERROR
        self.notice = Notice(title, description, variant="destructive")

    def _succeed(self, notice: Optional[Notice] = None):
        self.state = ViewState.SUCCESS
        self.notice = notice


class FormController(PageController):
    form_class: type

    def __init__(self, store: EntityStore, auth: Optional[AuthContext] = None, notify: Notifier = send_alert_quietly):
        super().__init__(store, auth)
        self.notify = notify
        self.form = self.form_class()

    def update_form(self, **values):
        names = {f.name for f in fields(self.form)}
        unknown = set(values) - names
        if unknown:
            raise TypeError(f"Unknown form fields: {sorted(unknown)}")
        for key, value in values.items():
            setattr(self.form, key, value)

    def _missing(self, required) -> List[str]:
        return [name for name in required if _blank(getattr(self.form, name))]

    def _alert(self, kind: str, row) -> None:
        # out-of-band; the write has already been committed
        try:
            self.notify(kind, row.model_dump())
        except Exception:
            logger.exception("Owner alert for %s %s failed", kind, row.id)


# ────────────────────────────── BOOK APPOINTMENT ──────────────────────────────

@dataclass
class AppointmentForm:
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    service_type: Optional[str] = None
    preferred_date: Optional[date] = None
    preferred_time: Optional[str] = None
    description: Optional[str] = None


class BookAppointmentController(FormController):
    form_class = AppointmentForm
    required = ("name", "email", "phone", "address", "service_type", "preferred_date", "preferred_time")

    def __init__(self, store, auth=None, notify: Notifier = send_alert_quietly, today: Callable[[], date] = date.today):
        super().__init__(store, auth, notify)
        self.today = today

    @property
    def earliest_date(self) -> date:
        return tomorrow(self.today())

    def _problem(self) -> Optional[str]:
        missing = self._missing(self.required)
        if missing:
            return "Please fill in: " + ", ".join(missing)

        preferred = self.form.preferred_date
        if isinstance(preferred, datetime):
            preferred = preferred.date()
        elif isinstance(preferred, str):
            try:
                preferred = date.fromisoformat(preferred)
            except ValueError:
                return "Please choose a valid date"
        # the store only takes plain dates
        self.form.preferred_date = preferred
        if preferred < self.earliest_date:
            return "Appointments can be booked from tomorrow onwards"

        if self.form.preferred_time not in TIME_SLOTS:
            return "Please choose one of the available time slots"
        return None

    def submit(self):
        if self.busy:
            return None

        problem = self._problem()
        if problem:
            self._fail("Please check your details", problem)
            return None

        self.state = ViewState.SUBMITTING
        record = {**asdict(self.form), "user_id": self.auth.user_id}
        try:
            row = self.store.insert("appointments", record)
        except StoreError as e:
            logger.warning("Booking failed: %s", e)
            self._fail("Error booking appointment", "Please try again later or call us directly")
            return None

        self.form = AppointmentForm()
        self._succeed(Notice(
            "Appointment booked successfully!",
            "We'll contact you within 24 hours to confirm your appointment.",
        ))
        if self.auth.is_authenticated:
            self.redirect_to = APPOINTMENTS_PATH
        self._alert("appointment", row)
        return row


# ────────────────────────────── MY APPOINTMENTS ──────────────────────────────

class AppointmentCard(NamedTuple):
    appointment: Any
    status: StatusDisplay
    date_label: str


class MyAppointmentsController(PageController):
    def __init__(self, store, auth=None):
        super().__init__(store, auth)
        self.appointments: List[AppointmentCard] = []

    @property
    def is_empty(self) -> bool:
        return self.state is ViewState.SUCCESS and not self.appointments

    def load(self):
        if not self._require_auth():
            return
        self.state = ViewState.LOADING
        try:
            rows = self.store.select_by_equality(
                "appointments", "user_id", self.auth.user_id, order_by="created_at", ascending=False
            )
        except StoreError as e:
            logger.warning("Loading appointments failed: %s", e)
            self._fail("Error loading appointments")
            return

        self.appointments = [
            AppointmentCard(row, status_display(row.status), format_date(row.preferred_date))
            for row in rows
        ]
        self._succeed()


# ────────────────────────────── PROFILE ──────────────────────────────

@dataclass
class ProfileForm:
    full_name: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None

    @classmethod
    def from_row(cls, row) -> "ProfileForm":
        return cls(**{f.name: getattr(row, f.name) for f in fields(cls)})


class ProfileController(FormController):
    form_class = ProfileForm

    def __init__(self, store, auth=None):
        super().__init__(store, auth)
        self.profile = None
        self.last_action: Optional[str] = None

    @property
    def has_profile(self) -> bool:
        return self.profile is not None

    def load(self):
        if not self._require_auth():
            return
        self.state = ViewState.LOADING
        try:
            row = self.store.select_single_by_equality("profiles", "user_id", self.auth.user_id)
        except StoreError as e:
            logger.warning("Loading profile failed: %s", e)
            self._fail("Error loading profile")
            return

        # no row yet is not an error; the form just starts empty
        self.profile = row
        self.form = ProfileForm.from_row(row) if row else ProfileForm()
        self._succeed()

    def submit(self):
        if not self._require_auth() or self.busy:
            return None

        self.state = ViewState.SUBMITTING
        email = self.auth.email or (self.profile.email if self.profile else None)
        record = {**asdict(self.form), "user_id": self.auth.user_id, "email": email}
        try:
            row, created = self.store.upsert("profiles", "user_id", record)
        except StoreError as e:
            logger.warning("Saving profile failed: %s", e)
            self._fail("Error updating profile")
            return None

        self.profile = row
        self.last_action = "created" if created else "updated"
        self.form = ProfileForm.from_row(row)
        self._succeed(Notice("Profile updated successfully!", "Your information has been saved."))
        return row


# ────────────────────────────── TESTIMONIALS ──────────────────────────────

class TestimonialCard(NamedTuple):
    testimonial: Any
    stars: List[bool]


class TestimonialsController(PageController):
    def __init__(self, store, auth=None):
        super().__init__(store, auth)
        self.testimonials: List[TestimonialCard] = []

    @property
    def is_empty(self) -> bool:
        return self.state is ViewState.SUCCESS and not self.testimonials

    @property
    def average_rating(self) -> Optional[float]:
        ratings = [max(0, min(c.testimonial.rating, 5)) for c in self.testimonials if c.testimonial.rating is not None]
        if not ratings:
            return None
        return round(sum(ratings) / len(ratings), 1)

    def load(self):
        self.state = ViewState.LOADING
        try:
            rows = self.store.select_by_equality(
                "testimonials", "is_approved", True, order_by="created_at", ascending=False
            )
        except StoreError as e:
            logger.warning("Loading testimonials failed: %s", e)
            self._fail("Error loading testimonials")
            return

        self.testimonials = [TestimonialCard(row, render_stars(row.rating)) for row in rows]
        self._succeed()


# ────────────────────────────── CONTACT ──────────────────────────────

@dataclass
class ContactForm:
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    subject: Optional[str] = None
    message: Optional[str] = None


class ContactController(FormController):
    form_class = ContactForm
    required = ("name", "email", "message")

    def submit(self):
        if self.busy:
            return None

        missing = self._missing(self.required)
        if missing:
            self._fail("Please check your details", "Please fill in: " + ", ".join(missing))
            return None

        self.state = ViewState.SUBMITTING
        try:
            row = self.store.insert("contact_messages", asdict(self.form))
        except StoreError as e:
            logger.warning("Contact message failed: %s", e)
            self._fail("Error sending message")
            return None

        self.form = ContactForm()
        self._succeed(Notice("Message sent!", "We'll get back to you as soon as possible."))
        self._alert("contact", row)
        return row
