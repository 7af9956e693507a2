"""
Environment-aware configuration.
The JWT secret is read once here and injected into the token issuer/verifiers
by create_app(); nothing else reads it.
"""
import os
from dotenv import load_dotenv
from datetime import timedelta

load_dotenv()  # Read .env if present

DEV_JWT_SECRET = "dev-secret-change-me-to-something-long"


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes")


class BaseConfig:
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")  # Set a strong key in production
    DEBUG = False
    TESTING = False
    # CORS: in dev we usually allow '*', in prod supply a comma-separated list in env
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "*")
    APP_ENV = os.getenv("APP_ENV", "dev")
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    # jwt configuration: one static key for both token schemas
    JWT_SECRET = os.getenv("JWT_SECRET", DEV_JWT_SECRET)
    JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
    ACCESS_TOKEN_EXPIRES = timedelta(seconds=int(os.getenv("ACCESS_TOKEN_EXPIRES_SECONDS", "3600")))
    REFRESH_TOKEN_EXPIRES = timedelta(seconds=int(os.getenv("REFRESH_TOKEN_EXPIRES_SECONDS", str(365 * 24 * 3600))))
    # issue a new refresh token (and invalidate the presented one) on re-authentication
    ROTATE_REFRESH_TOKENS = _env_bool("ROTATE_REFRESH_TOKENS", "true")

    # argon2 cost factor, fixed for the life of the process
    HASH_TIME_COST = int(os.getenv("HASH_TIME_COST", "2"))
    HASH_MEMORY_COST = int(os.getenv("HASH_MEMORY_COST", "19456"))
    HASH_PARALLELISM = int(os.getenv("HASH_PARALLELISM", "1"))


class DevelopmentConfig(BaseConfig):
    DEBUG = True


class TestingConfig(BaseConfig):
    TESTING = True
    JWT_SECRET = "testing-secret-key-that-is-long-enough-for-hs256"
    LOG_LEVEL = "WARNING"
    # cheapest argon2 parameters; tests hash a lot
    HASH_TIME_COST = 1
    HASH_MEMORY_COST = 8
    HASH_PARALLELISM = 1


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
