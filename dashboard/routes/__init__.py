from __future__ import annotations

from flask import Flask

from dashboard.routes.admin import bp as admin_bp
from dashboard.routes.members import bp as members_bp
from dashboard.routes.posters import bp as posters_bp


def register_blueprints(app: Flask) -> None:
    app.register_blueprint(admin_bp)
    app.register_blueprint(members_bp)
    app.register_blueprint(posters_bp)
