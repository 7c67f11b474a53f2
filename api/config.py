"""
Environment-aware configuration.
Values come from the process environment, with a .env file read first when
present. The database URL is handled by DBStorage (DATABASE_URL).
"""
import os
from dotenv import load_dotenv
from datetime import timedelta

load_dotenv()  # Read .env if present


def _seconds(name: str, default: str) -> timedelta:
    return timedelta(seconds=int(os.getenv(name, default)))


class BaseConfig:
    # Symmetric key for HS256 session tokens, at least 32 characters
    SECRET_KEY = os.getenv("SECRET_KEY", "")
    DEBUG = False
    TESTING = False
    # CORS: in dev we usually allow '*', in prod supply a comma-separated list in env
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "*")
    APP_ENV = os.getenv("APP_ENV", "dev")
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    # Base URL used in links sent by email
    APP_URL = os.getenv("APP_URL", "http://localhost:8000")

    ACCESS_TOKEN_DURATION = _seconds("ACCESS_TOKEN_DURATION_SECONDS", "900")
    REFRESH_TOKEN_DURATION = _seconds("REFRESH_TOKEN_DURATION_SECONDS", "86400")

    REDIS_URL = os.getenv("REDIS_URL", "redis://localhost:6379/0")
    TASK_POLL_INTERVAL_SECONDS = float(os.getenv("TASK_POLL_INTERVAL_SECONDS", "1"))
    OUTBOX_DISPATCH_INTERVAL_SECONDS = float(os.getenv("OUTBOX_DISPATCH_INTERVAL_SECONDS", "5"))

    # Number of reverse proxies in front of the app whose X-Forwarded-For/-Proto to trust; 0 trusts none
    PROXY_FIX_X_FOR = int(os.getenv("PROXY_FIX_X_FOR", "0"))

    # "local" sends through MailHog, anything else through Gmail
    ENVIRONMENT = os.getenv("ENVIRONMENT", "local")
    EMAIL_SENDER_NAME = os.getenv("EMAIL_SENDER_NAME", "Budget API")
    GMAIL_SENDER_ADDRESS = os.getenv("GMAIL_SENDER_ADDRESS", "")
    GMAIL_SENDER_PASSWORD = os.getenv("GMAIL_SENDER_PASSWORD", "")
    MAILHOG_HOST = os.getenv("MAILHOG_HOST", "localhost:1025")
    MAILHOG_SENDER_ADDRESS = os.getenv("MAILHOG_SENDER_ADDRESS", "noreply@budget.local")


class DevelopmentConfig(BaseConfig):
    DEBUG = True
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-change-me-dev-secret-change-me")


class TestingConfig(BaseConfig):
    TESTING = True
    SECRET_KEY = os.getenv("SECRET_KEY", "test-secret-key-that-is-long-enough-0123")
    ACCESS_TOKEN_DURATION = timedelta(minutes=15)
    REFRESH_TOKEN_DURATION = timedelta(hours=24)


class ProductionConfig(BaseConfig):
    DEBUG = False


def get_config(name: str | None):
    """
    Select config class.
    - If name is provided, choose by name.
    - Else choose based on APP_ENV (dev/test/prod).
    """
    env = (name or os.getenv("APP_ENV", "dev")).lower()
    if env in ["prod", "production"]:
        return ProductionConfig
    if env in ["test", "testing"]:
        return TestingConfig
    return DevelopmentConfig
