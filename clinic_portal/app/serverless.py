"""WSGI entrypoint for serverless and gunicorn-style deployments."""
from __future__ import annotations
import os

from clinic_portal.app import create_app

app = create_app(os.getenv("FLASK_ENV"))
