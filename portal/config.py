"""
Application Configuration
Loads settings from environment variables
"""

from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    """Application settings loaded from .env file"""

    # Application
    APP_ENV: str = "development"
    APP_NAME: str = "Federation Portal"
    APP_URL: str = "http://localhost:8000"
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"

    # Database
    DATABASE_URL: str = "sqlite:///./portal.db"

    # Sessions (JWT)
    JWT_SECRET_KEY: str = "temp-jwt-secret-change-later"
    JWT_ALGORITHM: str = "HS256"
    JWT_EXPIRATION_HOURS: int = 24
    SESSION_COOKIE_NAME: str = "token"

    # Extra public paths, comma separated (e.g. "/settings/public,/status")
    AUTH_PUBLIC_PATHS: str = ""

    # One-time codes
    OTP_EXPIRY_MINUTES: int = 10

    # Email
    SMTP_HOST: str = "smtp.gmail.com"
    SMTP_PORT: int = 587
    SMTP_USER: Optional[str] = None
    SMTP_PASSWORD: Optional[str] = None
    EMAIL_FROM: str = "noreply@federation-portal.org"

    # Payments (Razorpay)
    RAZORPAY_API_URL: str = "https://api.razorpay.com/v1"
    RAZORPAY_KEY_ID: Optional[str] = None
    RAZORPAY_KEY_SECRET: str = "temp-razorpay-secret-change-later"
    RAZORPAY_WEBHOOK_SECRET: Optional[str] = None
    PAYMENT_CURRENCY: str = "INR"
    MEMBERSHIP_FEE: int = 500  # rupees

    class Config:
        env_file = ".env"
        case_sensitive = True

    @property
    def is_production(self) -> bool:
        return self.APP_ENV.lower() == "production"

    @property
    def public_paths(self) -> list[str]:
        return [p.strip() for p in self.AUTH_PUBLIC_PATHS.split(",") if p.strip()]


def get_settings() -> Settings:
    return Settings()
