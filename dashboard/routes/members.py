from __future__ import annotations

import io
import logging

from flask import Blueprint, current_app, jsonify, request, send_file

from dashboard.auth import require_admin
from dashboard.services.export import members_workbook
from dashboard.services.uploads import UploadError, delete_upload, save_member_photo
from posterkit import member_store
from posterkit.member_store import DuplicateMemberError, MemberNotFoundError
from posterkit.members import InvalidMemberError, registration_designations

logger = logging.getLogger(__name__)

bp = Blueprint("members_routes", __name__)


def _photo_in_use(photo_url: str, exclude_id: str) -> bool:
    return any(
        m.get("photo_url") == photo_url and m.get("id") != exclude_id
        for m in member_store.list_members(limit=5000)
    )


def _release_photo(photo_url: str | None, member_id: str) -> bool:
    """Delete a member's photo file unless another profile shares it."""
    if not photo_url or _photo_in_use(photo_url, member_id):
        return False
    return delete_upload(photo_url, current_app.config["UPLOADS_DIR"])


@bp.post("/api/register")
def register_member():
    form = request.form
    name = (form.get("name") or "").strip()
    phone = (form.get("phone") or "").strip()
    email = (form.get("email") or "").strip()
    designation = (form.get("designation") or "").strip()
    if not name or not phone or not email or not designation:
        return jsonify({"error": "All fields are required"}), 400

    try:
        photo_url = save_member_photo(
            request.files.get("photo"),
            current_app.config["UPLOADS_DIR"],
            name,
            current_app.config["MAX_UPLOAD_BYTES"],
        )
    except UploadError as e:
        return jsonify({"error": str(e)}), 400

    created = []
    try:
        for desig in registration_designations(designation):
            created.append(
                member_store.create_member(
                    name=name, email=email, phone=phone, designation=desig, photo_url=photo_url
                )
            )
    except (DuplicateMemberError, InvalidMemberError) as e:
        if not created:
            delete_upload(photo_url, current_app.config["UPLOADS_DIR"])
        return jsonify({"error": str(e), "users": created}), 400

    if len(created) > 1:
        return jsonify({"success": True, "message": "Two profiles registered successfully", "users": created})
    return jsonify({"success": True, "message": "Member registered successfully", "user": created[0]})


@bp.get("/api/users")
def list_users():
    auth_error = require_admin()
    if auth_error:
        return auth_error
    limit = request.args.get("limit", default=500, type=int)
    return jsonify(member_store.list_members(limit=limit))


@bp.get("/api/export-members")
def export_members():
    auth_error = require_admin()
    if auth_error:
        return auth_error

    data = members_workbook(member_store.list_members(limit=5000))
    return send_file(
        io.BytesIO(data),
        mimetype="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        as_attachment=True,
        download_name="members.xlsx",
    )

@bp.put("/api/users/<member_id>")
def update_user(member_id: str):
    auth_error = require_admin()
    if auth_error:
        return auth_error

    data = request.get_json(silent=True) or {}
    required = ("name", "email", "phone", "designation")
    if any(not str(data.get(k) or "").strip() for k in required):
        return jsonify({"error": "All fields are required"}), 400

    try:
        updated = member_store.update_member(member_id, {k: data[k] for k in required})
    except MemberNotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except DuplicateMemberError as e:
        return jsonify({"error": str(e)}), 409
    except InvalidMemberError as e:
        return jsonify({"error": str(e)}), 400
    return jsonify({"success": True, "message": "User updated successfully", "user": updated})


@bp.delete("/api/users/<member_id>")
def delete_user(member_id: str):
    auth_error = require_admin()
    if auth_error:
        return auth_error

    existing = member_store.get_member(member_id)
    if not existing:
        return jsonify({"error": f"Member {member_id} not found"}), 404
    member_store.delete_member(member_id)
    _release_photo(existing.get("photo_url"), member_id)
    return jsonify({"success": True})


@bp.put("/api/users/<member_id>/photo")
def update_user_photo(member_id: str):
    auth_error = require_admin()
    if auth_error:
        return auth_error

    existing = member_store.get_member(member_id)
    if not existing:
        return jsonify({"error": "User not found"}), 404

    try:
        photo_url = save_member_photo(
            request.files.get("photo"),
            current_app.config["UPLOADS_DIR"],
            existing["name"],
            current_app.config["MAX_UPLOAD_BYTES"],
        )
    except UploadError as e:
        return jsonify({"error": str(e)}), 400

    _release_photo(existing.get("photo_url"), member_id)
    updated = member_store.set_member_photo(member_id, photo_url)
    return jsonify({"success": True, "photoUrl": updated["photo_url"], "message": "Photo updated successfully"})


@bp.delete("/api/users/<member_id>/photo")
def delete_user_photo(member_id: str):
    auth_error = require_admin()
    if auth_error:
        return auth_error

    existing = member_store.get_member(member_id)
    if not existing:
        return jsonify({"error": "User not found"}), 404
    if not existing.get("photo_url"):
        return jsonify({"error": "User has no photo"}), 404

    _release_photo(existing["photo_url"], member_id)
    member_store.set_member_photo(member_id, None)
    return jsonify({"success": True, "message": "Photo deleted successfully"})
