"""
WSGI entry point for the Task Compass application.

The app keeps one task store per process. Request handlers take the app's
store lock, so a threaded server is safe but handles store work one request
at a time. Worker processes do not share a store; each keeps its own copy
of the backend's data.
"""

import os

from compass_app import create_app

app = create_app(os.getenv("FLASK_ENV", "production"))
