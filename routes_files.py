# routes_files.py - spreadsheet upload, listing, download, columns, delete
import os, uuid
from datetime import datetime
from flask import Blueprint, request, jsonify, current_app, g, send_file
from werkzeug.utils import secure_filename

from extensions import db
from models_files import UploadedFile, FILE_STATUSES
from routes_auth import auth_required
from services_charts import get_owned_file, process_upload, delete_file
from spreadsheet_reader import allowed_file, read_table
from chart_synth import classify_columns

bp_files = Blueprint("files", __name__)


def _ensure_dir(p): os.makedirs(p, exist_ok=True)


def _parse_tags(raw) -> list:
    if isinstance(raw, list):
        return [str(t).strip() for t in raw if str(t).strip()]
    return [t.strip() for t in (raw or "").split(",") if t.strip()]


def _flag(v) -> bool:
    return str(v or "").strip().lower() in {"1", "true", "yes", "on"}


@bp_files.post("/api/files/upload")
@auth_required
def upload():
    """
    multipart/form-data:
      excel: .xlsx | .xls | .csv
      description, tags (comma separated), isPublic (optional)
    """
    fs = request.files.get("excel")
    if not fs or not fs.filename:
        return jsonify(ok=False, error="no_file", message="No file uploaded"), 400
    if not allowed_file(fs.filename, fs.mimetype):
        return jsonify(ok=False, error="bad_file_type", message="Only Excel or CSV files are allowed"), 400

    original = fs.filename
    ext = "." + original.rsplit(".", 1)[-1].lower()
    stem = secure_filename(os.path.splitext(original)[0]) or "excel"
    stored = f"excel-{datetime.utcnow().strftime('%Y%m%d%H%M%S')}-{uuid.uuid4().hex[:10]}-{stem}{ext}"
    base_dir = current_app.config["UPLOAD_FOLDER"]
    _ensure_dir(base_dir)
    fpath = os.path.join(base_dir, stored)
    fs.save(fpath)

    f = UploadedFile(
        filename=stored, original_name=original, mimetype=fs.mimetype,
        size=os.path.getsize(fpath), path=fpath, uploaded_by=g.user.id, status="uploading",
        tags=_parse_tags(request.form.get("tags")),
        description=(request.form.get("description") or "").strip() or None,
        is_public=_flag(request.form.get("isPublic")),
    )
    db.session.add(f); db.session.commit()
    current_app.logger.info("[upload] %s stored as %s (%d bytes)", original, stored, f.size)

    cfg = current_app.config
    charts, skipped = process_upload(
        f, cfg["UPLOAD_CHART_TYPES"], limit=cfg["AUTO_CHART_LIMIT"], preview_rows=cfg["PREVIEW_ROWS"],
    )
    return jsonify(ok=True, message="File uploaded successfully", file=f.to_dict(),
                   charts=[c.to_dict() for c in charts], skipped=skipped), 201


@bp_files.get("/api/files/list")
@auth_required
def list_files():
    q = UploadedFile.query.filter_by(uploaded_by=g.user.id)
    status = (request.args.get("status") or "").strip().lower()
    if status in FILE_STATUSES:
        q = q.filter(UploadedFile.status == status)
    rows = q.order_by(UploadedFile.created_at.desc()).all()
    return jsonify(ok=True, files=[f.to_dict() for f in rows], count=len(rows))


@bp_files.get("/api/files/<file_id>")
@auth_required
def get_file(file_id):
    f = get_owned_file(g.user.id, file_id)
    f.touch()
    db.session.commit()
    return jsonify(ok=True, file=f.to_dict())


@bp_files.get("/api/files/<file_id>/download")
@auth_required
def download(file_id):
    f = get_owned_file(g.user.id, file_id)
    if not os.path.exists(f.path):
        current_app.logger.warning("[files] missing bytes for %s at %s", f.id, f.path)
        return jsonify(ok=False, error="file_missing", message="File download failed"), 500
    f.increment_download_count()
    db.session.commit()
    return send_file(f.path, mimetype=f.mimetype, as_attachment=True, download_name=f.original_name)


@bp_files.get("/api/files/<file_id>/columns")
@auth_required
def columns(file_id):
    f = get_owned_file(g.user.id, file_id)
    table = read_table(f.path, f.mimetype)
    types = [c.to_dict() for c in classify_columns(table.headers, table.rows)]
    return jsonify(ok=True, columns=table.headers, types=types)


@bp_files.delete("/api/files/<file_id>")
@auth_required
def remove(file_id):
    removed = delete_file(g.user.id, file_id)
    return jsonify(ok=True, message="File deleted successfully", chartsDeleted=removed)
