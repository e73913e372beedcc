"""
Application configuration module.

This module defines configuration classes for different environments
(development, testing, production). Configuration values are loaded
from environment variables with sensible defaults.

The tag colour table lives here rather than in the query code so that
colour naming is data, not branching: each ``#RRGGBB`` value maps to the
human-readable name shown next to a tag chip.
"""

from __future__ import annotations

import os

DEFAULT_TAG_COLOR_NAMES: dict[str, str] = {
    "#F44336": "Red",
    "#E91E63": "Pink",
    "#9C27B0": "Purple",
    "#3F51B5": "Indigo",
    "#2196F3": "Blue",
    "#009688": "Teal",
    "#4CAF50": "Green",
    "#FFC107": "Amber",
    "#FF9800": "Orange",
    "#9E9E9E": "Grey",
}


class Config:
    """Base configuration with default settings."""

    SECRET_KEY: str = os.environ.get("SECRET_KEY", "dev-secret-key-change-in-production")

    # Single action-dispatch endpoint of the task backend
    BACKEND_URL: str = os.environ.get("BACKEND_URL", "http://localhost:8080/tasks.php")
    BACKEND_TIMEOUT: int = int(os.environ.get("BACKEND_TIMEOUT", "10"))
    BACKEND_USER_ID: str | None = os.environ.get("BACKEND_USER_ID") or None

    DEFAULT_TAG_COLOR: str = os.environ.get("DEFAULT_TAG_COLOR", "#9E9E9E")
    TAG_COLOR_NAMES: dict[str, str] = DEFAULT_TAG_COLOR_NAMES


class DevelopmentConfig(Config):
    """Development environment configuration."""

    DEBUG: bool = True
    TESTING: bool = False


class TestingConfig(Config):
    """Testing environment configuration."""

    DEBUG: bool = True
    TESTING: bool = True

    BACKEND_URL: str = os.environ.get("TEST_BACKEND_URL", "http://task-backend/api.php")
    BACKEND_TIMEOUT: int = int(os.environ.get("TEST_BACKEND_TIMEOUT", "1"))


class ProductionConfig(Config):
    """Production environment configuration."""

    DEBUG: bool = False
    TESTING: bool = False


# Configuration mapping for easy access
config = {
    "development": DevelopmentConfig,
    "testing": TestingConfig,
    "production": ProductionConfig,
    "default": DevelopmentConfig,
}


def get_config(env: str | None = None) -> type[Config]:
    """
    Get the configuration class for the specified environment.

    Args:
        env: Environment name (development, testing, production).
             If None, uses FLASK_ENV environment variable.

    Returns:
        Configuration class for the specified environment.
    """
    if env is None:
        env = os.environ.get("FLASK_ENV", "development")
    return config.get(env, config["default"])
