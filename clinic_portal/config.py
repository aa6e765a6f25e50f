"""Configuration objects for the clinic portal."""
from __future__ import annotations

import os
from typing import Any, Dict, List, Type


def _env_flag(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


class Config:
    """Base configuration shared by all environments."""

    SECRET_KEY: str = os.getenv("SECRET_KEY", "dev-secret-key")
    JWT_SECRET_KEY: str = os.getenv("JWT_SECRET_KEY", "dev-jwt-secret-key")
    JWT_TOKEN_LOCATION: List[str] = ["headers", "cookies"]
    ROLE_GUARD_ENABLED: bool = _env_flag("ROLE_GUARD_ENABLED", True)
    LOGIN_ROUTE: str = os.getenv("LOGIN_ROUTE", "login")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()
    CORS_ORIGINS: str = os.getenv("CORS_ORIGINS", "*")

    @classmethod
    def as_dict(cls) -> Dict[str, Any]:
        """Expose configuration values for debugging and introspection."""

        return {key: getattr(cls, key) for key in dir(cls) if key.isupper()}


class DevelopmentConfig(Config):
    """Configuration suitable for local development."""

    DEBUG = True


class ProductionConfig(Config):
    """Configuration tailored for production deployments."""

    DEBUG = False


class TestingConfig(Config):
    """Configuration used by the test suite."""

    TESTING = True
    ROLE_GUARD_ENABLED = False
    JWT_SECRET_KEY = "testing-jwt-secret-key-with-enough-length"


CONFIG_MAP: Dict[str, Type[Config]] = {
    "development": DevelopmentConfig,
    "production": ProductionConfig,
    "testing": TestingConfig,
}


def get_config(name: str | None) -> Type[Config]:
    """Retrieve the configuration class matching the supplied name."""

    if not name:
        return DevelopmentConfig
    return CONFIG_MAP.get(name.lower(), DevelopmentConfig)
