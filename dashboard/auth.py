from __future__ import annotations

import hmac
import secrets

from flask import current_app, jsonify, request, session

ADMIN_SESSION_KEY = "admin_token"


def check_credentials(username: str, password: str) -> bool:
    valid_username = current_app.config.get("ADMIN_USERNAME") or ""
    valid_password = current_app.config.get("ADMIN_PASSWORD") or ""
    if not valid_username or not valid_password:
        return False
    return hmac.compare_digest(str(username or ""), valid_username) and hmac.compare_digest(
        str(password or ""), valid_password
    )


def start_admin_session() -> None:
    session.clear()
    session.permanent = True
    session[ADMIN_SESSION_KEY] = secrets.token_hex(32)


def end_admin_session() -> None:
    session.pop(ADMIN_SESSION_KEY, None)


def is_admin() -> bool:
    if session.get(ADMIN_SESSION_KEY):
        return True

    api_token = current_app.config.get("DASHBOARD_API_TOKEN") or ""
    if not api_token:
        return False
    provided = (
        request.headers.get("X-API-Token")
        or request.headers.get("Authorization", "").removeprefix("Bearer ").strip()
    )
    return bool(provided) and hmac.compare_digest(provided, api_token)


def require_admin():
    """
    Guard admin endpoints.

    Accepts the signed session cookie set by /api/admin-login, or the
    DASHBOARD_API_TOKEN header for scripted access.
    """
    if not is_admin():
        return jsonify({"error": "Admin access required"}), 401
    return None
