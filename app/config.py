import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./skillbarter.db")

# JWT - CRITICAL: No default secrets in production
JWT_SECRET = os.getenv("JWT_SECRET")
JWT_REFRESH_SECRET = os.getenv("JWT_REFRESH_SECRET")
if not JWT_SECRET or not JWT_REFRESH_SECRET:
    import warnings

    warnings.warn(
        "JWT_SECRET / JWT_REFRESH_SECRET not set! Using insecure defaults - DO NOT USE IN PRODUCTION",
        RuntimeWarning,
        stacklevel=2,
    )
    JWT_SECRET = JWT_SECRET or "INSECURE-DEV-ACCESS-SECRET"  # noqa: S105 - Dev fallback only
    JWT_REFRESH_SECRET = (
        JWT_REFRESH_SECRET or "INSECURE-DEV-REFRESH-SECRET"  # noqa: S105 - Dev fallback only
    )
JWT_ALGORITHM = "HS256"
JWT_EXPIRE = os.getenv("JWT_EXPIRE", "15m")
JWT_REFRESH_EXPIRE = os.getenv("JWT_REFRESH_EXPIRE", "7d")

# OTP lifetime for email verification and password reset codes
OTP_EXPIRE_MINUTES = int(os.getenv("OTP_EXPIRE_MINUTES", "10"))

# Frontend base URL for links in emails and notifications
FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:3000")
ALLOWED_ORIGINS = os.getenv(
    "ALLOWED_ORIGINS", "http://localhost:3000,http://localhost:3001"
).split(",")

# SMTP Configuration (primary transport)
SMTP_HOST = os.getenv("SMTP_HOST")
EMAIL_PORT = int(os.getenv("EMAIL_PORT", "587"))
EMAIL_USER = os.getenv("EMAIL_USER")
EMAIL_PASSWORD = os.getenv("EMAIL_PASSWORD")
EMAIL_FROM_ADDRESS = os.getenv("EMAIL_FROM_ADDRESS", "Skill Barter <noreply@skillbarter.app>")

# Resend Email Configuration (fallback)
RESEND_API_KEY = os.getenv("RESEND_API_KEY")

# Firebase Configuration (push notifications + Firestore)
FIREBASE_PROJECT_ID = os.getenv("FIREBASE_PROJECT_ID")
FIREBASE_CREDENTIALS = os.getenv("FIREBASE_CREDENTIALS")  # Path to service account JSON

# Google Meet Configuration
# JSON string: either a service account key or an OAuth client (installed/web)
GOOGLE_MEET_CREDENTIALS = os.getenv("GOOGLE_MEET_CREDENTIALS")
GOOGLE_MEET_REFRESH_TOKEN = os.getenv("GOOGLE_MEET_REFRESH_TOKEN")

# Rate limiting (global, per IP)
RATE_LIMIT_REQUESTS = int(os.getenv("RATE_LIMIT_REQUESTS", "200"))
RATE_LIMIT_WINDOW_SECONDS = int(os.getenv("RATE_LIMIT_WINDOW_SECONDS", "300"))
