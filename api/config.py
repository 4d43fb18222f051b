"""
Environment-aware configuration.
Security keys, token lifetimes, cookie policy and the Google client id.
Database URL is read by DBStorage (DATABASE_URL) so models can be used without an app.
"""
import os
from dotenv import load_dotenv
from datetime import timedelta

load_dotenv()  # Read .env if present


def _flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes")


class BaseConfig:
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")  # Set a strong key in production
    DEBUG = False
    TESTING = False
    # CORS: the SPA sends the refresh cookie, so origins must be explicit for credentials
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "http://localhost:5173").split(",")
    APP_ENV = os.getenv("APP_ENV", "dev")
    # Error messages, types and stack traces in responses; off only in production
    EXPOSE_ERROR_DETAILS = True

    # Access tokens (stateless JWT)
    JWT_SECRET = os.getenv("JWT_SECRET", "dev-secret-change-me")
    JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
    ACCESS_TOKEN_EXPIRES = timedelta(seconds=int(os.getenv("ACCESS_TOKEN_EXPIRES_SECONDS", "180")))

    # Refresh tokens (opaque, stored in refresh_tokens)
    REFRESH_TOKEN_TTL_DAYS = int(os.getenv("REFRESH_TOKEN_TTL_DAYS", "7"))
    REFRESH_COOKIE_NAME = os.getenv("REFRESH_COOKIE_NAME", "refreshToken")
    COOKIE_SECURE = _flag("COOKIE_SECURE", "false")

    GOOGLE_CLIENT_ID = os.getenv("GOOGLE_CLIENT_ID", "")

    # Auth policy switches
    REVOKE_SESSIONS_ON_LOGIN = _flag("REVOKE_SESSIONS_ON_LOGIN", "true")
    LOGIN_REVEALS_SOCIAL_ACCOUNT = _flag("LOGIN_REVEALS_SOCIAL_ACCOUNT", "false")


class DevelopmentConfig(BaseConfig):
    DEBUG = True


class TestingConfig(BaseConfig):
    TESTING = True
    JWT_SECRET = "testing-secret"
    GOOGLE_CLIENT_ID = "test-client-id.apps.googleusercontent.com"


class ProductionConfig(BaseConfig):
    DEBUG = False
    EXPOSE_ERROR_DETAILS = False
    COOKIE_SECURE = _flag("COOKIE_SECURE", "true")


def get_config(name: str | None):
    """
    Select config class.
    - If name is provided, choose by name.
    - Else choose based on APP_ENV (dev/test/prod).
    """
    if name:
        name = name.lower()
    env = (name or os.getenv("APP_ENV", "dev")).lower()
    if env in ["prod", "production"]:
        return ProductionConfig
    if env in ["test", "testing"]:
        return TestingConfig
    return DevelopmentConfig
