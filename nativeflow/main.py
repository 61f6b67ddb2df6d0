# nativeflow/main.py

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from . import config
from .config import CORS_ORIGINS, LOG_LEVEL
from .database import engine, init_db
from .routers import appointments, profiles, public

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# ────────────────────────────── DATABASE ──────────────────────────────

@asynccontextmanager
async def lifespan(app: FastAPI):
    if not config.SECRET_KEY:
        logger.error("SECRET_KEY is not set; refusing to start")
        raise RuntimeError("SECRET_KEY must be set to verify bearer tokens")
    init_db()
    yield
    engine.dispose()

app = FastAPI(
    title="Native Flow Portal",
    description="Bookings, appointment history and profiles for Native Flow plumbing & heating",
    version="1.0.0",
    lifespan=lifespan
)

# ────────────────────────────── CORS ──────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ────────────────────────────── ROUTERS ──────────────────────────────
app.include_router(appointments.router)
app.include_router(profiles.router)
app.include_router(public.router)
