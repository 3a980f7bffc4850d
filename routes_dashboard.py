# routes_dashboard.py
from flask import Blueprint, jsonify, g
from sqlalchemy import func

from extensions import db
from models_files import UploadedFile
from models_charts import Chart
from routes_auth import auth_required

bp_dashboard = Blueprint("dashboard", __name__)

RECENT = 5


@bp_dashboard.get("/api/dashboard")
@auth_required
def dashboard():
    uid = g.user.id
    files = UploadedFile.query.filter_by(uploaded_by=uid)
    charts = Chart.query.filter_by(created_by=uid)

    by_type = dict(
        db.session.query(Chart.chart_type, func.count(Chart.id))
        .filter(Chart.created_by == uid)
        .group_by(Chart.chart_type).all()
    )
    return jsonify(
        ok=True,
        fileCount=files.count(),
        chartCount=charts.count(),
        recentFiles=[f.to_dict() for f in files.order_by(UploadedFile.created_at.desc()).limit(RECENT).all()],
        recentCharts=[c.to_dict() for c in charts.order_by(Chart.created_at.desc()).limit(RECENT).all()],
        chartTypes=by_type,
    )
