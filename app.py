# app.py - Excel Analytics backend-API (auth + files + charts + dashboard)
import os, logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from flask import Flask, jsonify
from flask_cors import CORS
from werkzeug.exceptions import RequestEntityTooLarge

from extensions import db
from errors import AnalyticsError

BASE_DIR = Path(__file__).resolve().parent
DEFAULT_DB = f"sqlite:///{(BASE_DIR / 'analytics.db').as_posix()}"

SQLALCHEMY_DATABASE_URI = DEFAULT_DB
_raw_db = os.environ.get("DATABASE_URL")
if _raw_db:
    if _raw_db.startswith("postgres://"):
        _raw_db = _raw_db.replace("postgres://", "postgresql+psycopg2://", 1)
    elif _raw_db.startswith("postgresql://"):
        _raw_db = _raw_db.replace("postgresql://", "postgresql+psycopg2://", 1)
    if "sslmode=" not in _raw_db and "+psycopg2://" in _raw_db:
        _raw_db += ("&" if "?" in _raw_db else "?") + "sslmode=require"
    SQLALCHEMY_DATABASE_URI = _raw_db

ENGINE_OPTIONS = {"pool_pre_ping": True, "pool_recycle": 300}


def _csv_env(name, default):
    return [s.strip() for s in os.getenv(name, default).split(",") if s.strip()]


def create_app(test_config=None):
    app = Flask(__name__)
    Path(app.instance_path).mkdir(parents=True, exist_ok=True)

    app.config.update(
        SQLALCHEMY_DATABASE_URI=SQLALCHEMY_DATABASE_URI,
        SQLALCHEMY_TRACK_MODIFICATIONS=False,
        SQLALCHEMY_ENGINE_OPTIONS=ENGINE_OPTIONS,
        MAX_CONTENT_LENGTH=int(os.getenv("MAX_FILE_SIZE", str(10 * 1024 * 1024))),
        UPLOAD_FOLDER=os.getenv("UPLOAD_FOLDER", str(Path(app.instance_path, "uploads"))),
        JWT_SECRET=os.getenv("JWT_SECRET", "ea-dev-secret"),
        JWT_TTL_MIN=int(os.getenv("JWT_TTL_MIN", "720")),
        AUTO_CHART_LIMIT=int(os.getenv("AUTO_CHART_LIMIT", "20")),
        MANUAL_CHART_LIMIT=int(os.getenv("MANUAL_CHART_LIMIT", "50")),
        UPLOAD_CHART_TYPES=_csv_env("UPLOAD_CHART_TYPES", "bar,line,pie"),
        PREVIEW_ROWS=int(os.getenv("PREVIEW_ROWS", "5")),
        CORS_ORIGINS=_csv_env("CORS_ORIGINS", "*"),
        LOG_DIR=os.getenv("LOG_DIR", str(BASE_DIR / "logs")),
    )
    if test_config:
        app.config.update(test_config)
    Path(app.config["UPLOAD_FOLDER"]).mkdir(parents=True, exist_ok=True)

    db.init_app(app)
    CORS(app, resources={r"/api/*": {"origins": app.config["CORS_ORIGINS"]}}, supports_credentials=True)
    _init_logging(app)

    # ---------- Blueprints ----------
    from routes_auth import bp_auth
    from routes_files import bp_files
    from routes_charts import bp_charts
    from routes_dashboard import bp_dashboard

    app.register_blueprint(bp_auth)
    app.register_blueprint(bp_files)
    app.register_blueprint(bp_charts)
    app.register_blueprint(bp_dashboard)

    # ---------- Errors ----------
    @app.errorhandler(AnalyticsError)
    def _analytics_error(e):
        app.logger.info("%s: %s", e.code, e.message)
        return jsonify(e.to_dict()), e.status

    @app.errorhandler(RequestEntityTooLarge)
    def _too_large(e):
        limit = app.config["MAX_CONTENT_LENGTH"]
        return jsonify(ok=False, error="file_too_large", message=f"File exceeds {limit} bytes"), 413

    # ---------- Health ----------
    @app.get("/health")
    @app.get("/healthz")
    def health():
        return jsonify(ok=True, service="excel-analytics-backend")

    with app.app_context():
        import models_auth, models_files, models_charts  # noqa: F401  register tables
        db.create_all()

    return app


def _init_logging(app):
    app.logger.setLevel(logging.INFO)
    for h in list(app.logger.handlers):
        app.logger.removeHandler(h); h.close()
    fmt = logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s")
    sh = logging.StreamHandler(); sh.setFormatter(fmt); app.logger.addHandler(sh)
    try:
        logs_dir = Path(app.config["LOG_DIR"]); logs_dir.mkdir(parents=True, exist_ok=True)
        fh = RotatingFileHandler(logs_dir / "backend.log", maxBytes=5_000_000, backupCount=3, encoding="utf-8")
        fh.setFormatter(fmt); app.logger.addHandler(fh)
    except OSError as e:
        app.logger.warning("file logging disabled: %s", e)
    app.logger.info("Logging ready")


if __name__ == "__main__":
    app = create_app()
    app.run(host="0.0.0.0", port=int(os.getenv("PORT", "10000")), debug=True)
