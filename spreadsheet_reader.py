# spreadsheet_reader.py - opens an uploaded workbook/CSV and returns header row + data rows
import os
from dataclasses import dataclass, field
from datetime import date, datetime, time
from typing import Any, List, Optional

import numpy as np
import pandas as pd

from errors import ParseFailure

EXCEL_EXTENSIONS = {"xlsx", "xls"}
CSV_EXTENSIONS = {"csv"}
ALLOWED_EXTENSIONS = EXCEL_EXTENSIONS | CSV_EXTENSIONS

EXCEL_MIMETYPES = {
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "application/vnd.ms-excel",
}
# browsers on Windows report .csv as vnd.ms-excel
CSV_MIMETYPES = {"text/csv", "application/csv", "text/plain", "application/vnd.ms-excel"}


def _ext(filename: str) -> str:
    return filename.rsplit(".", 1)[1].lower() if filename and "." in filename else ""


def allowed_file(filename: str, mimetype: Optional[str]) -> bool:
    ext = _ext(filename)
    mt = (mimetype or "").split(";")[0].strip().lower()
    if ext in EXCEL_EXTENSIONS:
        return mt in EXCEL_MIMETYPES
    if ext in CSV_EXTENSIONS:
        return mt in CSV_MIMETYPES
    return False


def is_spreadsheet(mimetype: Optional[str]) -> bool:
    mt = (mimetype or "").lower()
    return "excel" in mt or "spreadsheetml" in mt or mt in CSV_MIMETYPES


def _kind(path: str, mimetype: Optional[str] = None) -> str:
    ext = _ext(os.path.basename(path))
    if ext in EXCEL_EXTENSIONS:
        return "excel"
    if ext in CSV_EXTENSIONS:
        return "csv"
    mt = (mimetype or "").lower()
    if "spreadsheetml" in mt or "excel" in mt:
        return "excel"
    if mt in CSV_MIMETYPES:
        return "csv"
    raise ParseFailure(f"Unsupported file format: {os.path.basename(path)}")


def _cell(v: Any) -> Any:
    """Blank cells → None, numpy/pandas scalars → plain Python values."""
    if v is None:
        return None
    if not isinstance(v, str) and pd.isna(v):
        return None
    if isinstance(v, pd.Timestamp):
        return v.to_pydatetime()
    if isinstance(v, np.generic):
        return v.item()
    return v


def _header(v: Any) -> str:
    if v is None:
        return ""
    if isinstance(v, float) and v.is_integer():
        return str(int(v))
    return str(v).strip()


def json_safe(v: Any) -> Any:
    if isinstance(v, (datetime, date, time)):
        return v.isoformat()
    return v


@dataclass
class SheetTable:
    name: str
    headers: List[str] = field(default_factory=list)
    rows: List[list] = field(default_factory=list)

    @property
    def row_count(self) -> int:
        return len(self.rows)

    def summary(self) -> dict:
        return {"name": self.name, "headers": list(self.headers), "rowCount": self.row_count}

    def preview(self, n: int = 5) -> List[list]:
        return [[json_safe(c) for c in row] for row in self.rows[:n]]


def _frame_to_table(name: str, df: pd.DataFrame) -> SheetTable:
    raw = [[_cell(v) for v in rec] for rec in df.itertuples(index=False, name=None)]
    raw = [r for r in raw if any(c is not None for c in r)]
    if not raw:
        return SheetTable(name=name)
    headers = [_header(h) for h in raw[0]]
    return SheetTable(name=name, headers=headers, rows=raw[1:])


def _read_csv(path: str) -> pd.DataFrame:
    # sep=None sniffs , ; or tab
    return pd.read_csv(path, header=None, dtype=object, sep=None, engine="python")


def read_workbook(path: str, mimetype: Optional[str] = None) -> List[SheetTable]:
    """
    Reads every sheet of the file (a CSV counts as a single sheet).
    Raises ParseFailure if the document cannot be opened.
    """
    kind = _kind(path, mimetype)
    try:
        if kind == "csv":
            frames = {os.path.splitext(os.path.basename(path))[0]: _read_csv(path)}
        else:
            frames = pd.read_excel(path, sheet_name=None, header=None, dtype=object)
    except pd.errors.EmptyDataError:
        frames = {os.path.splitext(os.path.basename(path))[0]: pd.DataFrame()}
    except Exception as e:
        raise ParseFailure(f"Could not read {os.path.basename(path)}: {e}") from e
    tables = [_frame_to_table(str(name), df) for name, df in frames.items()]
    if not tables:
        raise ParseFailure(f"Workbook {os.path.basename(path)} has no sheets")
    return tables


def read_table(path: str, mimetype: Optional[str] = None) -> SheetTable:
    """First sheet only: row 0 is the header row, the rest are data rows."""
    kind = _kind(path, mimetype)
    try:
        if kind == "csv":
            name = os.path.splitext(os.path.basename(path))[0]
            df = _read_csv(path)
        else:
            with pd.ExcelFile(path) as book:
                name = book.sheet_names[0]
                df = book.parse(sheet_name=0, header=None, dtype=object)
    except pd.errors.EmptyDataError:
        return SheetTable(name=os.path.splitext(os.path.basename(path))[0])
    except Exception as e:
        raise ParseFailure(f"Could not read {os.path.basename(path)}: {e}") from e
    return _frame_to_table(str(name), df)
