from __future__ import annotations

from flask import Blueprint, current_app, jsonify, request

from dashboard.auth import check_credentials, end_admin_session, is_admin, start_admin_session

bp = Blueprint("admin_routes", __name__)


@bp.post("/api/admin-login")
def admin_login():
    data = request.get_json(silent=True) or {}
    if not current_app.config.get("ADMIN_USERNAME") or not current_app.config.get("ADMIN_PASSWORD"):
        return jsonify({"error": "Admin credentials not configured"}), 500

    if not check_credentials(data.get("username"), data.get("password")):
        return jsonify({"error": "Invalid credentials"}), 401

    start_admin_session()
    return jsonify({"success": True})


@bp.get("/api/admin-auth")
def admin_auth():
    if is_admin():
        return jsonify({"authenticated": True})
    return jsonify({"authenticated": False}), 401


@bp.post("/api/admin/logout")
def admin_logout():
    end_admin_session()
    return jsonify({"success": True})


@bp.get("/api/ping")
def ping():
    return jsonify({"status": "ok", "message": "Backend is live!"})
