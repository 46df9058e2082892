import os
from dotenv import load_dotenv

load_dotenv()


def _flag(name: str, default: str) -> bool:
    return bool(int(os.environ.get(name, default)))


class Config:
    """
    Settings read straight from environment variables (or a local .env file).
    """
    # Redis
    APPLICATION_REDIS_URL: str = os.environ.get("APPLICATION_REDIS_URL", "redis://localhost:6379/0")
    STORE_KEY_PREFIX: str = os.environ.get("STORE_KEY_PREFIX", "attendance:")
    UPDATE_MAX_RETRIES: int = int(os.environ.get("UPDATE_MAX_RETRIES", 5))

    # Rate limiting
    RATE_LIMITER_STORAGE_URI: str = os.environ.get("RATE_LIMITER_STORAGE_URI", "memory://")
    RATE_LIMIT_ENABLED: bool = _flag("RATE_LIMIT_ENABLED", "1")

    # JWT
    SECRET_KEY: str = os.environ.get("SECRET_KEY", "change-me")
    ALGORITHM: str = os.environ.get("ALGORITHM", "HS256")

    # Accounts
    ADMIN_USERNAME: str = os.environ.get("ADMIN_USERNAME", "admin")
    ADMIN_PASSWORD: str = os.environ.get("ADMIN_PASSWORD", "admin")
    TRAINER_USERNAME: str = os.environ.get("TRAINER_USERNAME", "trainer")
    TRAINER_PASSWORD: str = os.environ.get("TRAINER_PASSWORD", "trainer")
    STUDENT_PASSWORD: str = os.environ.get("STUDENT_PASSWORD", "password")

    ADMIN_SESSION_TTL_SECONDS: int = int(os.environ.get("ADMIN_SESSION_TTL_SECONDS", 3600))
    TRAINER_SESSION_TTL_SECONDS: int = int(os.environ.get("TRAINER_SESSION_TTL_SECONDS", 3600))
    STUDENT_SESSION_TTL_SECONDS: int = int(os.environ.get("STUDENT_SESSION_TTL_SECONDS", 900))

    # Startup
    SEED_DEMO_DATA: bool = _flag("SEED_DEMO_DATA", "1")
    LOG_DIR: str = os.environ.get("LOG_DIR", "logs")


# Single importable settings instance
settings = Config()
