from __future__ import annotations

import io
import logging

from flask import Blueprint, current_app, jsonify, request, send_file

from dashboard.auth import require_admin
from dashboard.services.uploads import UploadError, save_template
from posterkit import member_store
from posterkit.batch import run_batch, select_recipients, unique_output_path
from posterkit.errors import MissingAssetError, PosterError
from posterkit.members import InvalidMemberError, Member
from posterkit.poster import PosterAssembler, PosterRequest

logger = logging.getLogger(__name__)

bp = Blueprint("posters_routes", __name__)

MAX_TEMPLATE_BYTES = 20 * 1024 * 1024


@bp.post("/api/send-posters")
def send_posters():
    auth_error = require_admin()
    if auth_error:
        return auth_error

    designation = (request.form.get("designation") or "").strip()
    if not designation:
        return jsonify({"error": "Designation is required"}), 400
    try:
        template_path = save_template(
            request.files.get("template"), current_app.config["UPLOADS_DIR"], MAX_TEMPLATE_BYTES
        )
    except UploadError as e:
        return jsonify({"error": str(e)}), 400

    try:
        recipients = select_recipients(designation)
        if not recipients:
            return jsonify({"error": f"No recipients found for designation: {designation}"}), 404

        report = run_batch(
            template_path,
            recipients,
            mailer=current_app.config["MAILER"],
            config=current_app.config["POSTER_CONFIG"],
            output_dir=current_app.config["OUTPUT_DIR"],
            workers=current_app.config["POSTER_WORKERS"],
        )
    finally:
        template_path.unlink(missing_ok=True)

    message = f"Posters sent: {report.sent} of {report.total}"
    if report.failed:
        message += f" ({report.failed} failed)"
    return jsonify({"success": True, "message": message, **report.to_dict()})


@bp.post("/api/posters/preview")
def preview_poster():
    """Compose one poster for a member and return the image without emailing it."""
    auth_error = require_admin()
    if auth_error:
        return auth_error

    member_id = (request.form.get("member_id") or "").strip()
    row = member_store.get_member(member_id) if member_id else None
    if not row:
        return jsonify({"error": "Member not found"}), 404
    try:
        member = Member.from_record(row)
    except InvalidMemberError as e:
        return jsonify({"error": str(e)}), 400

    try:
        template_path = save_template(
            request.files.get("template"), current_app.config["UPLOADS_DIR"], MAX_TEMPLATE_BYTES
        )
    except UploadError as e:
        return jsonify({"error": str(e)}), 400

    output_path = unique_output_path(current_app.config["OUTPUT_DIR"], member)
    try:
        assembler = PosterAssembler(current_app.config["POSTER_CONFIG"])
        assembler.assemble(PosterRequest(template_path=template_path, person=member, output_path=output_path))
        data = output_path.read_bytes()
    except MissingAssetError as e:
        return jsonify({"error": str(e), "kind": e.kind, "asset": e.asset}), 422
    except PosterError as e:
        return jsonify({"error": str(e), "kind": e.kind}), 422
    finally:
        template_path.unlink(missing_ok=True)
        output_path.unlink(missing_ok=True)

    return send_file(io.BytesIO(data), mimetype="image/jpeg", download_name="poster.jpeg")
