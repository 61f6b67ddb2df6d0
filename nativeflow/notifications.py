"""Owner alerts for new bookings and contact messages, sent through Resend."""

import logging
from html import escape
from typing import Optional, Tuple

import resend
from pydantic import ValidationError

from .config import ALERT_FROM, ALERT_TO, RESEND_API_KEY
from .schemas import AlertRequest, AppointmentAlert, ContactAlert

logger = logging.getLogger(__name__)

resend.api_key = RESEND_API_KEY


class AlertError(Exception):
    pass


def _line(label: str, value) -> str:
    return f"<p><strong>{label}:</strong> {escape(str(value))}</p>"


def build_alert(kind: str, data: dict) -> Tuple[str, str]:
    """Return (subject, html) for an alert. Absent optional fields are left out."""
    try:
        if kind == "appointment":
            appt = AppointmentAlert.model_validate(data)
            subject = f"New Appointment Request - {appt.service_type}"
            lines = [
                "<h2>New Appointment Request</h2>",
                _line("Name", appt.name),
                _line("Email", appt.email),
                _line("Phone", appt.phone),
                _line("Address", appt.address),
                _line("Service", appt.service_type),
                _line("Preferred Date", appt.preferred_date),
                _line("Preferred Time", appt.preferred_time),
            ]
            if appt.description:
                lines.append(_line("Description", appt.description))
        elif kind == "contact":
            msg = ContactAlert.model_validate(data)
            subject = "New Contact Message"
            if msg.subject:
                subject += f" - {msg.subject}"
            lines = [
                "<h2>New Contact Message</h2>",
                _line("Name", msg.name),
                _line("Email", msg.email),
            ]
            if msg.phone:
                lines.append(_line("Phone", msg.phone))
            if msg.subject:
                lines.append(_line("Subject", msg.subject))
            lines += ["<p><strong>Message:</strong></p>", f"<p>{escape(msg.message)}</p>"]
        else:
            raise AlertError(f"Unknown alert type: {kind!r}")
    except ValidationError as e:
        raise AlertError(f"Malformed {kind} alert payload: {e}") from e

    return subject, "\n".join(lines)


def dispatch_alert(kind: str, data: dict) -> dict:
    """Email the business owner. Raises AlertError on bad input or provider failure."""
    subject, html = build_alert(kind, data)
    try:
        response = resend.Emails.send({
            "from": ALERT_FROM,
            "to": ALERT_TO,
            "subject": subject,
            "html": html,
        })
    except Exception as e:
        raise AlertError(f"Failed to send alert: {e}") from e
    logger.info("Alert sent via Resend: %s", response)
    return response


def dispatch_request(payload) -> dict:
    """Validate a raw `{type, data}` request body and dispatch it."""
    try:
        request = AlertRequest.model_validate(payload)
    except ValidationError as e:
        raise AlertError(f"Malformed alert request: {e}") from e
    return dispatch_alert(request.type, request.data)


def send_alert_quietly(kind: str, data: dict) -> Optional[dict]:
    """Best-effort alert: failures are logged and never reach the caller."""
    try:
        return dispatch_alert(kind, data)
    except AlertError:
        logger.exception("Error sending %s alert", kind)
        return None
