import os

from dotenv import load_dotenv

load_dotenv()

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./nativeflow.db")

# JWTs are issued by the hosted auth provider; we only verify them.
# No default: without a key every bearer token is rejected.
SECRET_KEY = os.getenv("SECRET_KEY")
ALGORITHM = os.getenv("ALGORITHM", "HS256")

# Resend (owner alerts)
RESEND_API_KEY = os.getenv("RESEND_API_KEY")
ALERT_FROM = os.getenv("ALERT_FROM", "Native Flow <alerts@resend.dev>")
ALERT_TO = [
    addr.strip()
    for addr in os.getenv("ALERT_TO", "traviskanhai@gmail.com").split(",")
    if addr.strip()
]

CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv(
        "CORS_ORIGINS",
        "http://localhost:5173,http://localhost:8080,http://localhost:3000",
    ).split(",")
    if origin.strip()
]

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# ────────────────────────────── CATALOG ──────────────────────────────
# Suggestions only; service_type is stored as free text.

SERVICE_TYPES = [
    "Emergency Repair",
    "Water Heater Repair",
    "Water Heater Installation",
    "Drain Cleaning",
    "Pipe Repair",
    "Pipe Installation",
    "Heating System Repair",
    "Heating System Installation",
    "Bathroom Renovation",
    "Kitchen Plumbing",
    "Leak Detection",
    "General Plumbing",
    "Other",
]

TIME_SLOTS = [
    "8:00 AM", "9:00 AM", "10:00 AM", "11:00 AM",
    "12:00 PM", "1:00 PM", "2:00 PM", "3:00 PM",
    "4:00 PM", "5:00 PM",
]
