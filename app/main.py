"""Onboarding verification FastAPI application."""
# Load .env before any app code that might read config
from dotenv import load_dotenv
from pathlib import Path
load_dotenv(Path(__file__).resolve().parent.parent / ".env")

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from app.config import get_settings
from app.database import Base, engine
from app.errors import OnboardingError, TokenError
# Import models so Base.metadata has all tables before create_all (schema source of truth)
from app import models  # noqa: F401
from app.routers import admin, auth, documents, registration
from app.services.notifications import mailgun_configured

settings = get_settings()
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("app")

app = FastAPI(title=settings.app_name, debug=settings.debug)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth.router)
app.include_router(registration.router)
app.include_router(documents.router)
app.include_router(admin.router)


@app.exception_handler(OnboardingError)
def onboarding_error_handler(request: Request, exc: OnboardingError):
    if isinstance(exc, TokenError):
        logger.info("%s %s -> token rejected (%s)", request.method, request.url.path, exc.reason)
    elif exc.status_code >= 500:
        logger.error("%s %s -> %s: %s", request.method, request.url.path, type(exc).__name__, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})


@app.exception_handler(SQLAlchemyError)
def database_error_handler(request: Request, exc: SQLAlchemyError):
    logger.exception("%s %s -> database error", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


@app.on_event("startup")
def startup():
    if mailgun_configured(settings):
        logger.info("Mailgun configured domain=%s from=%s", settings.mailgun_domain, settings.mailgun_from_email)
    else:
        logger.warning("Mailgun not configured - verification emails will be skipped; set MAILGUN_API_KEY and MAILGUN_DOMAIN in .env")
    try:
        Base.metadata.create_all(bind=engine)
    except SQLAlchemyError as e:
        logger.warning("Database startup failed (tables skipped). Check DATABASE_URL and network. Error: %s", e)


@app.get("/")
def root():
    return {"app": settings.app_name, "status": "ok"}


@app.get("/health")
def health():
    return {"status": "healthy"}
