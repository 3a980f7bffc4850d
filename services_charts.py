# services_charts.py - upload processing, automatic/manual chart creation and cascade delete
import os
from typing import Iterable, List, Optional, Tuple

from flask import current_app
from sqlalchemy.exc import IntegrityError

from extensions import db
from models_files import UploadedFile
from models_charts import Chart
from chart_synth import synthesize, DEFAULT_AUTO_LIMIT, DEFAULT_MANUAL_LIMIT
from spreadsheet_reader import SheetTable, is_spreadsheet, read_table, read_workbook
from errors import AccessDenied, AnalyticsError, DuplicateChart, ParseFailure


# ---------- Ownership ----------
def to_id(v) -> Optional[int]:
    try:
        return int(v)
    except (TypeError, ValueError):
        return None


def get_owned_file(user_id: int, file_id) -> UploadedFile:
    fid = to_id(file_id)
    f = db.session.get(UploadedFile, fid) if fid is not None else None
    if not f or f.uploaded_by != user_id:
        raise AccessDenied("File not found or access denied")
    return f


def get_owned_chart(user_id: int, chart_id) -> Chart:
    cid = to_id(chart_id)
    c = db.session.get(Chart, cid) if cid is not None else None
    if not c or c.created_by != user_id:
        raise AccessDenied("Chart not found or access denied")
    return c


# ---------- Helpers ----------
def _tags(*names) -> List[str]:
    return [n for n in names if n]


def _skip(f: UploadedFile, reason: str, chart_type: Optional[str] = None) -> dict:
    out = {"fileId": f.id, "file": f.original_name, "reason": reason}
    if chart_type:
        out["chartType"] = chart_type
    return out


def _save(chart: Chart) -> Chart:
    db.session.add(chart)
    try:
        db.session.commit()
    except IntegrityError as e:
        db.session.rollback()
        raise DuplicateChart() from e
    return chart


def _auto_chart(f: UploadedFile, user_id: int, draft) -> Chart:
    return Chart(
        title=f"{f.original_name} - {draft.y_header} by {draft.x_header}"[:100],
        description=f"Auto-generated {draft.chart_type} chart from {f.original_name}"[:500],
        chart_type=draft.chart_type,
        chart_config=draft.config_dict(),
        source_file_id=f.id,
        created_by=user_id,
        is_auto=True,
        is_public=False,
        tags=_tags(draft.x_header, draft.y_header),
    )


def _auto_exists(file_id: int, user_id: int, chart_type: str) -> bool:
    q = Chart.query.filter_by(source_file_id=file_id, created_by=user_id,
                              chart_type=chart_type, is_auto=True)
    return q.first() is not None


# ---------- Upload ----------
def process_upload(f: UploadedFile, chart_types: Iterable[str], limit: int = DEFAULT_AUTO_LIMIT,
                   preview_rows: int = 5) -> Tuple[List[Chart], List[dict]]:
    """
    Parses a freshly stored upload, fills processed_data and moves status
    processing → completed|error, then auto-generates one chart per type.
    A parse failure leaves the file stored with status=error.
    """
    f.status = "processing"
    db.session.commit()

    try:
        sheets = read_workbook(f.path, f.mimetype)
    except ParseFailure as e:
        f.status = "error"
        f.processing_error = e.message
        db.session.commit()
        current_app.logger.warning("[upload] parse failed for %s: %s", f.original_name, e.message)
        return [], [_skip(f, e.message)]

    first = sheets[0]
    f.processed_data = {
        "headers": first.headers,
        "rowCount": first.row_count,
        "sheets": [s.summary() for s in sheets],
        "dataPreview": first.preview(preview_rows),
        "metadata": {"hasHeaders": True},
    }
    f.status = "completed"
    f.processing_error = None
    db.session.commit()

    return generate_for_upload(f, f.uploaded_by, first, chart_types, limit)


def generate_for_upload(f: UploadedFile, user_id: int, table: SheetTable, chart_types: Iterable[str],
                        limit: int = DEFAULT_AUTO_LIMIT) -> Tuple[List[Chart], List[dict]]:
    created, skipped = [], []
    for chart_type in chart_types:
        if _auto_exists(f.id, user_id, chart_type):
            continue
        try:
            draft = synthesize(table.headers, table.rows, chart_type, limit=limit)
            created.append(_save(_auto_chart(f, user_id, draft)))
            current_app.logger.info("[charts] %s chart created for %s", chart_type, f.original_name)
        except AnalyticsError as e:
            current_app.logger.info("[charts] skip %s (%s): %s", f.original_name, chart_type, e.message)
            skipped.append(_skip(f, e.message, chart_type))
    return created, skipped


# ---------- Batch auto-generation ----------
def autogenerate_for_user(user_id: int, limit: int = DEFAULT_AUTO_LIMIT,
                          chart_type: str = "bar") -> Tuple[List[Chart], List[dict]]:
    """
    Best effort: one automatic chart for every file of the user that has no
    chart yet. A failing file is logged and skipped; the batch goes on.
    """
    created, skipped = [], []
    files = (UploadedFile.query.filter_by(uploaded_by=user_id)
             .order_by(UploadedFile.created_at.desc()).all())

    for f in files:
        if Chart.query.filter_by(source_file_id=f.id, created_by=user_id).first():
            continue
        if not is_spreadsheet(f.mimetype):
            continue
        try:
            table = read_table(f.path, f.mimetype)
            draft = synthesize(table.headers, table.rows, chart_type, limit=limit)
            created.append(_save(_auto_chart(f, user_id, draft)))
            current_app.logger.info("[autogen] created chart for file: %s", f.original_name)
        except AnalyticsError as e:
            current_app.logger.info("[autogen] skipping file %s: %s", f.original_name, e.message)
            skipped.append(_skip(f, e.message))
        except Exception as e:
            db.session.rollback()
            current_app.logger.exception("[autogen] unexpected error on file %s", f.original_name)
            skipped.append(_skip(f, str(e)))
    return created, skipped


# ---------- Manual creation ----------
def create_manual_chart(user_id: int, title: str, chart_type: str, file_id, x_column: str, y_column: str,
                        description: Optional[str] = None, tags: Optional[List[str]] = None,
                        limit: int = DEFAULT_MANUAL_LIMIT) -> Chart:
    f = get_owned_file(user_id, file_id)
    table = read_table(f.path, f.mimetype)
    draft = synthesize(table.headers, table.rows, chart_type, x_column=x_column, y_column=y_column, limit=limit)
    chart = Chart(
        title=title,
        description=description,
        chart_type=chart_type,
        chart_config=draft.config_dict(),
        source_file_id=f.id,
        created_by=user_id,
        is_auto=False,
        is_public=False,
        tags=tags if tags is not None else _tags(x_column, y_column),
    )
    return _save(chart)


# ---------- Delete ----------
def delete_file(user_id: int, file_id) -> int:
    """Removes the bytes, every chart built from the file and the record. Returns charts removed."""
    f = get_owned_file(user_id, file_id)
    name, path = f.original_name, f.path
    charts = Chart.query.filter_by(source_file_id=f.id).all()
    for c in charts:
        db.session.delete(c)
    db.session.delete(f)
    db.session.commit()

    # bytes go only once the records are gone
    if path and os.path.exists(path):
        try:
            os.remove(path)
        except OSError as e:
            current_app.logger.warning("[files] could not remove %s: %s", path, e)
    current_app.logger.info("[files] deleted %s and %d chart(s)", name, len(charts))
    return len(charts)
