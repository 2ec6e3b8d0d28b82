"""Settings for the visa application service, read from the environment."""

import os
from pathlib import Path


def _int_env(name: str, default: int) -> int:
    return int(os.getenv(name, str(default)))


def _origins_env(name: str = "ORIGINS"):
    raw = os.getenv(name, "*").strip()
    if raw == "*":
        return "*"
    return [origin.strip() for origin in raw.split(",") if origin.strip()]


class Config:
    """Base configuration for the Flask application."""

    SECRET_KEY = os.getenv("SECRET_KEY", "change-me")
    JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", SECRET_KEY)
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    # Database
    DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///visaflow.db")
    SQLALCHEMY_DATABASE_URI = DATABASE_URL
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    DB_TIMEOUT_SECONDS = _int_env("DB_TIMEOUT_SECONDS", 15)

    # Applicant documents
    UPLOAD_DIR = os.getenv("UPLOAD_DIR", str(Path("workspace") / "uploads"))
    MAX_UPLOAD_SIZE = _int_env("MAX_UPLOAD_SIZE", 10 * 1024 * 1024)
    ALLOWED_UPLOAD_TYPES = os.getenv("ALLOWED_UPLOAD_TYPES", "pdf,jpeg,jpg,png")

    # HTTP hardening
    CORS_ORIGINS = _origins_env()
    RATE_LIMIT = os.getenv("RATE_LIMIT", "60 per minute")
    RATELIMIT_HEADERS_ENABLED = True
    RATELIMIT_STORAGE_URI = os.getenv("RATELIMIT_STORAGE_URI", "memory://")
    RATELIMIT_KEY_PREFIX = os.getenv("RATELIMIT_KEY_PREFIX", "")

    # Workflow
    APPLICATION_NUMBER_PREFIX = os.getenv("APPLICATION_NUMBER_PREFIX", "VF")
    APPLICATION_NUMBER_MAX_ATTEMPTS = _int_env("APPLICATION_NUMBER_MAX_ATTEMPTS", 5)
    PAYMENT_CURRENCY = os.getenv("PAYMENT_CURRENCY", "DZD")

    # Card payments through Stripe Checkout (optional)
    STRIPE_SECRET_KEY = os.getenv("STRIPE_SECRET_KEY")
    STRIPE_WEBHOOK_SECRET = os.getenv("STRIPE_WEBHOOK_SECRET")
    STRIPE_MINOR_UNITS = _int_env("STRIPE_MINOR_UNITS", 100)
    BILLING_SUCCESS_URL = os.getenv("BILLING_SUCCESS_URL")
    BILLING_CANCEL_URL = os.getenv("BILLING_CANCEL_URL")
