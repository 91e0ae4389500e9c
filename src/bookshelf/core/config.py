"""
Configuration

Infrastructure settings (environment, paths, Redis) plus the search
service settings layered on top of them.
"""

import os
from enum import Enum
from pathlib import Path


class Environment(str, Enum):
    """Application environment"""

    PRODUCTION = "production"
    DEVELOPMENT = "development"
    TEST = "test"


def _get_environment() -> Environment:
    """Get and validate ENVIRONMENT variable."""
    env_value = os.getenv("ENVIRONMENT")
    if env_value is None:
        raise RuntimeError(
            "ENVIRONMENT is required. Set to 'production', 'development', or 'test'."
        )
    try:
        return Environment(env_value.lower())
    except ValueError:
        raise RuntimeError(
            f"Invalid ENVIRONMENT value: '{env_value}'. "
            "Must be 'production', 'development', or 'test'."
        )


class InfrastructureSettings:
    """Infrastructure-level configuration (paths, redis)"""

    # Project Paths
    BASE_DIR: Path = Path(__file__).resolve().parent.parent.parent.parent
    DATA_DIR: Path = BASE_DIR / "data"

    # Review catalog exported from the CMS
    REVIEWS_PATH: str = os.getenv("REVIEWS_PATH", str(DATA_DIR / "reviews.json"))

    # Redis (analytics backend)
    REDIS_URL: str = os.getenv("REDIS_URL", "redis://localhost:6379/0")

    # Environment
    ENVIRONMENT: Environment = _get_environment()


class Settings(InfrastructureSettings):
    """Search service configuration"""

    # Analytics: "memory" or "redis"
    ANALYTICS_BACKEND: str = os.getenv("ANALYTICS_BACKEND", "memory").lower()
    ANALYTICS_MAX_EVENTS: int = int(os.getenv("ANALYTICS_MAX_EVENTS", "100"))

    # Search Settings
    MAX_QUERY_LEN: int = int(os.getenv("MAX_QUERY_LEN", "200"))
    MAX_PAGE: int = int(os.getenv("MAX_PAGE", "100"))
    MAX_PER_PAGE: int = int(os.getenv("MAX_PER_PAGE", "50"))
    RESULTS_LIMIT: int = int(os.getenv("RESULTS_LIMIT", "10"))
    SEARCH_CACHE_TTL: float = float(os.getenv("SEARCH_CACHE_TTL", "300"))
    SEARCH_CACHE_MAXSIZE: int = int(os.getenv("SEARCH_CACHE_MAXSIZE", "1024"))

    # Result previews
    SNIPPET_LENGTH: int = int(os.getenv("SNIPPET_LENGTH", "150"))
    MAX_SNIPPETS: int = int(os.getenv("MAX_SNIPPETS", "2"))

    # Security
    RATE_LIMIT_ENABLED: bool = os.getenv("RATE_LIMIT_ENABLED", "True").lower() == "true"
    ALLOWED_HOSTS: list[str] = os.getenv(
        "ALLOWED_HOSTS", "localhost,127.0.0.1,testclient,testserver"
    ).split(",")
    CORS_ORIGINS: list[str] = (
        os.getenv("CORS_ORIGINS", "").split(",") if os.getenv("CORS_ORIGINS") else []
    )

    # Server
    HOST: str = os.getenv("HOST", "0.0.0.0")
    PORT: int = int(os.getenv("PORT", "8000"))
    DEBUG: bool = os.getenv("DEBUG", "False").lower() == "true"


settings = Settings()


def _validate(settings: Settings) -> None:
    """Validate settings that have a closed set of values."""
    if settings.ANALYTICS_BACKEND not in ("memory", "redis"):
        raise RuntimeError(
            f"Invalid ANALYTICS_BACKEND value: '{settings.ANALYTICS_BACKEND}'. "
            "Must be 'memory' or 'redis'."
        )


_validate(settings)
