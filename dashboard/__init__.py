from __future__ import annotations

import logging
from datetime import timedelta
from pathlib import Path

from flask import Flask, request, send_from_directory

from config import settings
from dashboard.routes import register_blueprints
from posterkit import member_store
from posterkit.mailer import Mailer
from posterkit.poster import PosterConfig


def create_app(overrides: dict | None = None) -> Flask:
    """Build the admin panel app (e.g. `gunicorn 'dashboard:create_app()'`)."""
    app = Flask(__name__)
    app.config.update(
        SECRET_KEY=settings.ADMIN_TOKEN_SECRET,
        SESSION_COOKIE_HTTPONLY=True,
        SESSION_COOKIE_SECURE=settings.SESSION_COOKIE_SECURE,
        SESSION_COOKIE_SAMESITE="None" if settings.SESSION_COOKIE_SECURE else "Lax",
        PERMANENT_SESSION_LIFETIME=timedelta(hours=24),
        MAX_CONTENT_LENGTH=25 * 1024 * 1024,
        MAX_UPLOAD_BYTES=settings.MAX_UPLOAD_MB * 1024 * 1024,
        UPLOADS_DIR=Path(settings.UPLOADS_DIR),
        OUTPUT_DIR=Path(settings.OUTPUT_DIR),
        ADMIN_USERNAME=settings.ADMIN_USERNAME,
        ADMIN_PASSWORD=settings.ADMIN_PASSWORD,
        DASHBOARD_API_TOKEN=settings.DASHBOARD_API_TOKEN,
        CORS_ORIGINS=settings.CORS_ORIGINS,
        POSTER_WORKERS=settings.POSTER_WORKERS,
        DATABASE_URL=None,
        MAILER=None,
        POSTER_CONFIG=None,
    )
    if overrides:
        app.config.update(overrides)

    if app.config["POSTER_CONFIG"] is None:
        app.config["POSTER_CONFIG"] = PosterConfig.from_settings(upload_root=app.config["UPLOADS_DIR"])
    if app.config["MAILER"] is None:
        app.config["MAILER"] = Mailer()

    logging.basicConfig(level=logging.INFO, format=settings.LOG_FORMAT, datefmt=settings.LOG_DATE_FORMAT)

    for key in ("UPLOADS_DIR", "OUTPUT_DIR"):
        Path(app.config[key]).mkdir(parents=True, exist_ok=True)
    if app.config["DATABASE_URL"]:
        member_store.configure(app.config["DATABASE_URL"])
    member_store.ensure_schema()

    register_blueprints(app)

    @app.after_request
    def add_cors_headers(response):
        origin = (request.headers.get("Origin") or "").rstrip("/")
        if origin and origin in app.config["CORS_ORIGINS"]:
            response.headers.setdefault("Access-Control-Allow-Origin", origin)
            response.headers.setdefault("Access-Control-Allow-Credentials", "true")
            response.headers.setdefault("Vary", "Origin")
        response.headers.setdefault("Access-Control-Allow-Headers", "Content-Type, Authorization, X-API-Token")
        response.headers.setdefault("Access-Control-Allow-Methods", "GET,POST,PUT,DELETE,OPTIONS")
        return response

    @app.route("/uploads/<path:filename>")
    def serve_upload(filename: str):
        return send_from_directory(str(app.config["UPLOADS_DIR"]), filename)

    return app
