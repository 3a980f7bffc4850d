# chart_synth.py - column classification + chart synthesis for the first sheet of a file
"""
Pipeline for one sheet:

    headers, rows  →  classify_columns()  →  synthesize()  →  ChartDraft

Automatic mode picks the first categorical column as X and the first numeric
column as Y. Manual mode takes both column names from the caller. Limits are
passed in by the caller (see AUTO_CHART_LIMIT / MANUAL_CHART_LIMIT in app config).
"""
import math
import numbers
import re
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, List, Optional, Sequence, Tuple

from chart_config import CHART_TYPES, SLICE_TYPES, build_config, dump_config
from errors import (
    ColumnNotFound, NoUsableColumns, NoValidDataPoints, NotEnoughData, UnsupportedChartType,
)

NUMERIC = "numeric"
CATEGORICAL = "categorical"
EMPTY = "empty"

DEFAULT_AUTO_LIMIT = 20
DEFAULT_MANUAL_LIMIT = 50

# optional sign, digits with optional fraction, optional exponent
DECIMAL_RE = re.compile(r"[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?")


def is_blank(v: Any) -> bool:
    return v is None or (isinstance(v, str) and not v.strip())


def parse_number(v: Any) -> Optional[float]:
    """Plain decimal parsing, no locale. Returns None when v is not a number."""
    if isinstance(v, bool):
        return float(v)
    if isinstance(v, numbers.Real):
        n = float(v)
        return None if math.isnan(n) else n
    if isinstance(v, str):
        s = v.strip()
        if not DECIMAL_RE.fullmatch(s):
            return None
        n = float(s)
        return n if math.isfinite(n) else None
    return None


def _at(row: Sequence[Any], idx: int) -> Any:
    return row[idx] if idx < len(row) else None


@dataclass
class ColumnInfo:
    index: int
    header: str
    kind: str
    numeric_count: int = 0
    string_count: int = 0
    total: int = 0

    def to_dict(self):
        return {
            "index": self.index, "header": self.header, "type": self.kind,
            "numericCount": self.numeric_count, "stringCount": self.string_count,
            "totalValues": self.total,
        }


def classify_columns(headers: Sequence[str], rows: Sequence[Sequence[Any]]) -> List[ColumnInfo]:
    out = []
    for index, header in enumerate(headers):
        values = [v for v in (_at(r, index) for r in rows) if not is_blank(v)]
        if not values:
            out.append(ColumnInfo(index=index, header=header, kind=EMPTY))
            continue
        numeric_count = sum(1 for v in values if parse_number(v) is not None)
        string_count = len(values) - numeric_count
        # strict majority; ties stay categorical
        kind = NUMERIC if numeric_count > string_count else CATEGORICAL
        out.append(ColumnInfo(index=index, header=header, kind=kind,
                              numeric_count=numeric_count, string_count=string_count,
                              total=len(values)))
    return out


def pick_auto_columns(columns: Sequence[ColumnInfo]) -> Tuple[int, int]:
    x = next((c for c in columns if c.kind == CATEGORICAL), None)
    y = next((c for c in columns if c.kind == NUMERIC), None)
    if x is None or y is None:
        raise NoUsableColumns()
    return x.index, y.index


def resolve_columns(headers: Sequence[str], x_column: Optional[str], y_column: Optional[str]) -> Tuple[int, int]:
    idx = []
    for name in (x_column, y_column):
        if name is None or name not in headers:
            raise ColumnNotFound(f"Column '{name}' not found in file")
        idx.append(list(headers).index(name))
    return idx[0], idx[1]


def clean_points(rows, x_idx: int, y_idx: int, limit: Optional[int]) -> List[Tuple[Any, float]]:
    points = []
    for row in rows:
        if limit is not None and len(points) >= limit:
            break
        x = _at(row, x_idx)
        if is_blank(x):
            continue
        y = parse_number(_at(row, y_idx))
        if y is None:
            y = 0.0
        if not math.isfinite(y):
            continue
        points.append((x, y))
    return points


def display_label(x: Any) -> str:
    if isinstance(x, float) and x.is_integer():
        return str(int(x))
    if isinstance(x, datetime):
        return x.date().isoformat() if x.time() == datetime.min.time() else x.isoformat()
    if isinstance(x, date):
        return x.isoformat()
    return str(x)


def aggregate(points) -> Tuple[List[str], List[float]]:
    """Sums y per label; labels keep order of first appearance."""
    totals = {}
    for x, y in points:
        key = display_label(x)
        totals[key] = totals.get(key, 0.0) + y
    return list(totals.keys()), list(totals.values())


@dataclass
class ChartDraft:
    chart_type: str
    x_header: str
    y_header: str
    config: Any

    @property
    def labels(self) -> List[str]:
        return self.config.labels

    @property
    def data(self) -> List[float]:
        return self.config.datasets[0].data

    def config_dict(self) -> dict:
        return dump_config(self.config)


def synthesize(headers, rows, chart_type: str, x_column: Optional[str] = None,
               y_column: Optional[str] = None, limit: Optional[int] = DEFAULT_AUTO_LIMIT) -> ChartDraft:
    if chart_type not in CHART_TYPES:
        raise UnsupportedChartType(f"Unsupported chart type: {chart_type}")
    if not rows:
        raise NotEnoughData()

    if x_column is None and y_column is None:
        x_idx, y_idx = pick_auto_columns(classify_columns(headers, rows))
    else:
        x_idx, y_idx = resolve_columns(headers, x_column, y_column)

    points = clean_points(rows, x_idx, y_idx, limit)
    if not points:
        raise NoValidDataPoints()

    if chart_type in SLICE_TYPES:
        labels, data = aggregate(points)
    else:
        labels = [display_label(x) for x, _ in points]
        data = [y for _, y in points]

    y_header = headers[y_idx]
    config = build_config(chart_type, labels, y_header or "Values", data)
    return ChartDraft(chart_type=chart_type, x_header=headers[x_idx], y_header=y_header, config=config)
