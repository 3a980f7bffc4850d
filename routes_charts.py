# routes_charts.py - chart listing, auto-generation, manual creation, sharing, download
import json
from flask import Blueprint, request, jsonify, current_app, g, Response

from extensions import db
from models_auth import User
from models_charts import Chart, ChartShare, SHARE_PERMISSIONS
from chart_config import CHART_TYPES
from routes_auth import auth_required
from services_charts import autogenerate_for_user, create_manual_chart, get_owned_chart, to_id
from errors import AccessDenied

bp_charts = Blueprint("charts", __name__)

MAX_TITLE = 100
MAX_DESCRIPTION = 500


def _bad_field(data, *keys):
    """First key whose value is present but not a string, else None."""
    return next((k for k in keys if data.get(k) is not None and not isinstance(data.get(k), str)), None)


def _bad_field_response(key):
    return jsonify(ok=False, error="bad_field", message=f"Field '{key}' must be a string"), 400


def _readable_chart(chart_id) -> Chart:
    cid = to_id(chart_id)
    c = db.session.get(Chart, cid) if cid is not None else None
    if not c or not c.permission_for(g.user.id):
        raise AccessDenied("Chart not found or access denied")
    return c


@bp_charts.get("/api/charts")
@auth_required
def list_charts():
    if request.args.get("shared") in {"1", "true", "yes"}:
        q = Chart.query.join(ChartShare).filter(ChartShare.user_id == g.user.id)
    else:
        q = Chart.query.filter_by(created_by=g.user.id)
    ctype = (request.args.get("type") or "").strip().lower()
    if ctype in CHART_TYPES:
        q = q.filter(Chart.chart_type == ctype)
    rows = [c.to_dict() for c in q.order_by(Chart.created_at.desc()).all()]
    return jsonify(ok=True, charts=rows, count=len(rows))


@bp_charts.post("/api/charts/autogen")
@auth_required
def autogen():
    created, skipped = autogenerate_for_user(g.user.id, limit=current_app.config["AUTO_CHART_LIMIT"])
    return jsonify(
        ok=True,
        message="Auto-generated charts",
        created=len(created),
        details=[{"id": c.id, "title": c.title} for c in created],
        skipped=skipped,
    ), 201


@bp_charts.post("/api/charts")
@auth_required
def create_chart():
    data = request.get_json(silent=True) or {}
    bad = _bad_field(data, "title", "description", "chartType", "xColumn", "yColumn")
    if bad:
        return _bad_field_response(bad)
    title       = (data.get("title") or "").strip()
    description = (data.get("description") or "").strip() or None
    chart_type  = (data.get("chartType") or "").strip().lower()
    source_file = data.get("sourceFile")
    x_column    = data.get("xColumn")
    y_column    = data.get("yColumn")

    if not (title and chart_type and source_file and x_column and y_column):
        return jsonify(ok=False, error="missing_fields", message="Missing required fields"), 400
    if len(title) > MAX_TITLE:
        return jsonify(ok=False, error="title_too_long", message=f"Title cannot exceed {MAX_TITLE} characters"), 400
    if description and len(description) > MAX_DESCRIPTION:
        return jsonify(ok=False, error="description_too_long",
                       message=f"Description cannot exceed {MAX_DESCRIPTION} characters"), 400

    tags = data.get("tags") if isinstance(data.get("tags"), list) else None
    chart = create_manual_chart(
        g.user.id, title, chart_type, source_file, x_column, y_column,
        description=description, tags=tags, limit=current_app.config["MANUAL_CHART_LIMIT"],
    )
    current_app.logger.info("[charts] manual %s chart %s created by %s", chart_type, chart.id, g.user.id)
    return jsonify(ok=True, message="Chart created", chart=chart.to_dict()), 201


@bp_charts.get("/api/charts/<chart_id>")
@auth_required
def get_chart(chart_id):
    c = _readable_chart(chart_id)
    c.increment_view_count()
    db.session.commit()
    return jsonify(ok=True, chart=c.to_dict(), permission=c.permission_for(g.user.id))


@bp_charts.patch("/api/charts/<chart_id>")
@auth_required
def update_chart(chart_id):
    c = _readable_chart(chart_id)
    perm = c.permission_for(g.user.id)
    if perm not in {"owner", "edit"}:
        return jsonify(ok=False, error="forbidden", message="Edit permission required"), 403

    data = request.get_json(silent=True) or {}
    bad = _bad_field(data, "title", "description")
    if bad:
        return _bad_field_response(bad)
    if "title" in data:
        title = (data.get("title") or "").strip()
        if not title or len(title) > MAX_TITLE:
            return jsonify(ok=False, error="bad_title", message=f"Title is required (max {MAX_TITLE} characters)"), 400
        c.title = title
    if "description" in data:
        desc = (data.get("description") or "").strip() or None
        if desc and len(desc) > MAX_DESCRIPTION:
            return jsonify(ok=False, error="description_too_long",
                           message=f"Description cannot exceed {MAX_DESCRIPTION} characters"), 400
        c.description = desc
    if isinstance(data.get("tags"), list):
        c.tags = [str(t).strip() for t in data["tags"] if str(t).strip()]
    if "isPublic" in data:
        if perm != "owner":
            return jsonify(ok=False, error="forbidden", message="Only the owner can change visibility"), 403
        c.is_public = bool(data.get("isPublic"))
    db.session.commit()
    return jsonify(ok=True, chart=c.to_dict())


@bp_charts.delete("/api/charts/<chart_id>")
@auth_required
def delete_chart(chart_id):
    c = get_owned_chart(g.user.id, chart_id)
    db.session.delete(c)
    db.session.commit()
    return jsonify(ok=True, message="Chart deleted successfully")


@bp_charts.get("/api/charts/<chart_id>/download")
@auth_required
def download_chart(chart_id):
    c = get_owned_chart(g.user.id, chart_id)
    body = {
        "title": c.title,
        "description": c.description,
        "chartType": c.chart_type,
        "chartConfig": c.chart_config,
        "createdAt": c.created_at.isoformat() if c.created_at else None,
    }
    fname = "".join(ch for ch in c.title if ch not in '\\/:*?"<>|').strip() or "chart"
    return Response(
        response=json.dumps(body, ensure_ascii=False),
        status=200,
        headers={"Content-Type": "application/json",
                 "Content-Disposition": f'attachment; filename="{fname}.json"'},
    )


@bp_charts.post("/api/charts/<chart_id>/share")
@auth_required
def share_chart(chart_id):
    c = get_owned_chart(g.user.id, chart_id)
    data = request.get_json(silent=True) or {}
    permission = (data.get("permission") or "view").strip().lower()
    if permission not in SHARE_PERMISSIONS:
        return jsonify(ok=False, error="bad_permission", message="Permission must be view or edit"), 400

    target = None
    email = (data.get("email") or "").strip().lower()
    if email:
        target = User.query.filter_by(email=email).first()
    elif data.get("userId") is not None:
        uid = to_id(data.get("userId"))
        target = db.session.get(User, uid) if uid is not None else None
    if not target:
        return jsonify(ok=False, error="user_not_found", message="User not found"), 404
    if target.id == g.user.id:
        return jsonify(ok=False, error="self_share", message="Cannot share a chart with yourself"), 400

    c.share_with(target.id, permission)
    db.session.commit()
    return jsonify(ok=True, chart=c.to_dict())


@bp_charts.delete("/api/charts/<chart_id>/share/<user_id>")
@auth_required
def unshare_chart(chart_id, user_id):
    c = get_owned_chart(g.user.id, chart_id)
    uid = to_id(user_id)
    if uid is None or not c.unshare_with(uid):
        return jsonify(ok=False, error="not_shared", message="Chart is not shared with this user"), 404
    db.session.commit()
    return jsonify(ok=True, chart=c.to_dict())
