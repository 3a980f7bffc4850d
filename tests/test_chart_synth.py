from datetime import date, datetime

import pytest
from pydantic import ValidationError

from chart_config import SLICE_PALETTE, SliceChartConfig, SeriesChartConfig, parse_chart_config
from chart_synth import (
    CATEGORICAL, EMPTY, NUMERIC, classify_columns, parse_number, synthesize,
)
from errors import (
    ColumnNotFound, NoUsableColumns, NoValidDataPoints, NotEnoughData, UnsupportedChartType,
)

HEADERS = ["City", "Sales"]
ROWS = [["NY", 100], ["LA", 200], ["NY", 50]]


@pytest.mark.parametrize("raw, expected", [
    ("3.5", 3.5),
    (" 7 ", 7.0),
    (42, 42.0),
    (True, 1.0),
    ("1e3", 1000.0),
    ("1_000", None),
    ("abc", None),
    ("", None),
    (None, None),
    (float("nan"), None),
    (datetime(2024, 1, 1), None),
])
def test_parse_number(raw, expected):
    assert parse_number(raw) == expected


@pytest.mark.parametrize("raw", ["inf", "-Infinity", "NaN", "1e309", "0x1A", "1,5", "12abc", "."])
def test_parse_number_rejects_non_decimal_strings(raw):
    assert parse_number(raw) is None


@pytest.mark.parametrize("raw, expected", [("-2", -2.0), ("+.5", 0.5), ("3.", 3.0), ("2E-2", 0.02)])
def test_parse_number_accepts_decimal_literals(raw, expected):
    assert parse_number(raw) == expected


def test_classify_majority_vote():
    rows = [["x", 1], ["y", "2"], [3, "z"]]
    a, b = classify_columns(["a", "b"], rows)
    assert a.kind == CATEGORICAL
    assert (a.numeric_count, a.string_count, a.total) == (1, 2, 3)
    assert b.kind == NUMERIC


def test_classify_tie_is_categorical():
    (col,) = classify_columns(["v"], [["1"], ["x"]])
    assert col.kind == CATEGORICAL


def test_classify_infinity_words_are_text():
    (col,) = classify_columns(["v"], [["inf"], ["Infinity"], ["x"]])
    assert col.kind == CATEGORICAL
    assert (col.numeric_count, col.string_count) == (0, 3)


def test_classify_date_column_is_categorical():
    rows = [[datetime(2024, 1, 1), 1], [date(2024, 2, 1), 2], [datetime(2024, 3, 1, 12, 30), 3]]
    when, value = classify_columns(["When", "Value"], rows)
    assert when.kind == CATEGORICAL
    assert value.kind == NUMERIC
    draft = synthesize(["When", "Value"], rows, "bar")
    assert draft.x_header == "When"
    assert draft.labels == ["2024-01-01", "2024-02-01", "2024-03-01T12:30:00"]


def test_classify_blank_column_is_empty():
    cols = classify_columns(["a", "b"], [["x", None], ["y", "  "], ["z"]])
    assert cols[1].kind == EMPTY
    assert cols[1].to_dict() == {
        "index": 1, "header": "b", "type": "empty",
        "numericCount": 0, "stringCount": 0, "totalValues": 0,
    }


def test_classify_ignores_blanks_in_vote():
    (col,) = classify_columns(["v"], [[None], [""], ["5"], ["6"], ["x"]])
    assert col.kind == NUMERIC
    assert col.total == 3


def test_bar_chart_keeps_row_order():
    draft = synthesize(HEADERS, ROWS, "bar")
    assert draft.x_header == "City" and draft.y_header == "Sales"
    assert draft.labels == ["NY", "LA", "NY"]
    assert draft.data == [100, 200, 50]
    style = draft.config.datasets[0].style
    assert style.background_color == "rgba(53, 162, 235, 0.5)"
    assert style.border_color == "rgba(53, 162, 235, 1)"


def test_line_chart_sets_fill_false():
    cfg = synthesize(HEADERS, ROWS, "line").config_dict()
    assert cfg["datasets"][0]["style"]["fill"] is False
    assert cfg["datasets"][0]["style"]["backgroundColor"] == "rgba(255, 99, 132, 0.5)"


def test_bar_config_omits_fill():
    cfg = synthesize(HEADERS, ROWS, "bar").config_dict()
    assert set(cfg) == {"chartType", "labels", "datasets"}
    assert cfg["chartType"] == "bar"
    assert "fill" not in cfg["datasets"][0]["style"]
    assert cfg["datasets"][0]["label"] == "Sales"


def test_pie_sums_per_label_in_first_seen_order():
    draft = synthesize(["k", "v"], [["A", 1], ["B", 2], ["A", 3]], "pie")
    assert draft.labels == ["A", "B"]
    assert draft.data == [4, 2]
    assert len(draft.config.datasets[0].style.background_color) == 2


def test_slice_colours_cycle_past_palette():
    rows = [[f"L{i}", i] for i in range(len(SLICE_PALETTE) + 2)]
    draft = synthesize(["k", "v"], rows, "doughnut")
    colours = draft.config.datasets[0].style.background_color
    assert len(colours) == len(rows)
    assert colours[len(SLICE_PALETTE)] == colours[0]


def test_unparseable_y_becomes_zero():
    rows = [["A", "abc"], ["B", 2], ["C", 3]]
    draft = synthesize(["k", "v"], rows, "bar")
    assert draft.data == [0, 2, 3]


def test_non_finite_y_is_dropped():
    rows = [["A", float("inf")], ["B", 2], ["C", 3]]
    draft = synthesize(["k", "v"], rows, "bar")
    assert draft.labels == ["B", "C"]


def test_blank_x_rows_are_skipped():
    rows = [["A", 1], [None, 2], ["  ", 3], ["B", 4]]
    draft = synthesize(["k", "v"], rows, "bar")
    assert draft.labels == ["A", "B"]
    assert draft.data == [1, 4]


def test_auto_cap_keeps_first_rows():
    rows = [[f"r{i}", i] for i in range(100)]
    draft = synthesize(["k", "v"], rows, "bar")
    assert draft.labels == [f"r{i}" for i in range(20)]
    assert draft.data == list(range(20))


def test_manual_cap_keeps_first_rows():
    rows = [[f"r{i}", i] for i in range(100)]
    draft = synthesize(["k", "v"], rows, "bar", x_column="k", y_column="v", limit=50)
    assert draft.labels == [f"r{i}" for i in range(50)]


def test_manual_columns_can_be_numeric_x():
    rows = [[2020, 5], [2021.0, 7]]
    draft = synthesize(["Year", "Sales"], rows, "line", x_column="Year", y_column="Sales")
    assert draft.labels == ["2020", "2021"]


def test_blank_y_header_uses_values_label():
    draft = synthesize(["City", ""], ROWS, "bar")
    assert draft.config.datasets[0].label == "Values"


def test_no_rows():
    with pytest.raises(NotEnoughData):
        synthesize(HEADERS, [], "bar")


def test_no_numeric_column():
    with pytest.raises(NoUsableColumns):
        synthesize(["a", "b"], [["x", "y"], ["z", "w"]], "bar")


def test_no_categorical_column():
    with pytest.raises(NoUsableColumns):
        synthesize(["a", "b"], [[1, 2], [3, 4]], "bar")


def test_missing_manual_column():
    with pytest.raises(ColumnNotFound):
        synthesize(HEADERS, ROWS, "bar", x_column="City", y_column="Nope")


def test_no_valid_points():
    with pytest.raises(NoValidDataPoints):
        synthesize(["k", "v"], [[None, 1], ["", 2]], "bar", x_column="k", y_column="v")


def test_unsupported_type():
    with pytest.raises(UnsupportedChartType):
        synthesize(HEADERS, ROWS, "sankey")


def test_stored_config_parses_back_into_its_variant():
    pie = parse_chart_config(synthesize(HEADERS, ROWS, "pie").config_dict())
    bar = parse_chart_config(synthesize(HEADERS, ROWS, "bar").config_dict())
    assert isinstance(pie, SliceChartConfig)
    assert isinstance(bar, SeriesChartConfig)
    assert pie.labels == ["NY", "LA"]
    assert pie.datasets[0].data == [150, 200]


def test_stored_config_rejects_unknown_keys():
    cfg = synthesize(HEADERS, ROWS, "bar").config_dict()
    cfg["options"] = {}
    with pytest.raises(ValidationError):
        parse_chart_config(cfg)
