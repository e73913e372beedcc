"""
Flask application factory module.

This module creates and configures the Task Compass application using the
factory pattern. The application is a thin JSON surface over the task
store: it owns one ``TaskListViewModel`` (and through it one ``TaskStore``
and ``BackendClient``) per app instance, stored in ``app.extensions``
alongside the lock that serializes request access to the store.
"""

from __future__ import annotations

import logging
import threading

from flask import Flask

from config import get_config

from .backend import BackendClient
from .store import TaskStore
from .view_state import TaskListViewModel

EXTENSION_KEY = "compass"
LOCK_KEY = "compass_lock"

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


def create_app(config_name: str | None = None, backend: BackendClient | None = None) -> Flask:
    """
    Create and configure the Flask application.

    Args:
        config_name: Configuration environment name.
                     If None, uses FLASK_ENV environment variable.
        backend: Optional pre-built backend client (tests inject fakes).
                 Built from ``BACKEND_*`` settings when omitted.

    Returns:
        Configured Flask application instance.
    """
    app = Flask(__name__)

    config_class = get_config(config_name)
    app.config.from_object(config_class)

    logger.info(f"Creating app with config: {config_class.__name__}")

    store = TaskStore(backend or BackendClient.from_config(app.config))
    app.extensions[EXTENSION_KEY] = TaskListViewModel(
        store,
        default_color=app.config["DEFAULT_TAG_COLOR"],
        color_names=app.config["TAG_COLOR_NAMES"],
    )

    # One request at a time may touch the store.
    app.extensions[LOCK_KEY] = threading.Lock()

    from .routes.api import api_bp

    app.register_blueprint(api_bp, url_prefix="/api")

    return app
