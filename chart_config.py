# chart_config.py - chart configuration stored with each Chart, one schema per chart family
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

SLICE_TYPES = ("pie", "doughnut")
SERIES_TYPES = (
    "bar", "line", "scatter", "area", "column", "histogram", "bubble",
    "radar", "polar", "funnel", "waterfall", "heatmap", "treemap",
)
CHART_TYPES = SERIES_TYPES[:2] + SLICE_TYPES + SERIES_TYPES[2:]

BAR_COLOR = "rgba(53, 162, 235, {a})"
SERIES_COLOR = "rgba(255, 99, 132, {a})"
SLICE_PALETTE = [
    "rgba(255, 99, 132, {a})",
    "rgba(54, 162, 235, {a})",
    "rgba(255, 206, 86, {a})",
    "rgba(75, 192, 192, {a})",
    "rgba(153, 102, 255, {a})",
    "rgba(255, 159, 64, {a})",
    "rgba(255, 99, 255, {a})",
    "rgba(99, 255, 132, {a})",
]


class _Strict(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)


class SeriesStyle(_Strict):
    background_color: str = Field(alias="backgroundColor")
    border_color: str = Field(alias="borderColor")
    border_width: int = Field(1, alias="borderWidth")
    fill: Optional[bool] = None


class SliceStyle(_Strict):
    background_color: List[str] = Field(alias="backgroundColor")
    border_color: List[str] = Field(alias="borderColor")
    border_width: int = Field(1, alias="borderWidth")


class SeriesDataset(_Strict):
    label: str
    data: List[float]
    style: SeriesStyle


class SliceDataset(_Strict):
    label: str
    data: List[float]
    style: SliceStyle


class SeriesChartConfig(_Strict):
    chart_type: Literal[SERIES_TYPES] = Field(alias="chartType")
    labels: List[str]
    datasets: List[SeriesDataset]


class SliceChartConfig(_Strict):
    chart_type: Literal[SLICE_TYPES] = Field(alias="chartType")
    labels: List[str]
    datasets: List[SliceDataset]


ChartConfig = Annotated[
    Union[SeriesChartConfig, SliceChartConfig],
    Field(discriminator="chart_type"),
]
_adapter = TypeAdapter(ChartConfig)


def series_style(chart_type: str) -> SeriesStyle:
    color = BAR_COLOR if chart_type == "bar" else SERIES_COLOR
    return SeriesStyle(
        background_color=color.format(a="0.5"),
        border_color=color.format(a="1"),
        border_width=1,
        fill=False if chart_type == "line" else None,
    )


def slice_style(n: int) -> SliceStyle:
    colors = [SLICE_PALETTE[i % len(SLICE_PALETTE)] for i in range(n)]
    return SliceStyle(
        background_color=[c.format(a="0.5") for c in colors],
        border_color=[c.format(a="1") for c in colors],
        border_width=1,
    )


def build_config(chart_type: str, labels: List[str], label: str, data: List[float]):
    if chart_type in SLICE_TYPES:
        return SliceChartConfig(
            chart_type=chart_type, labels=labels,
            datasets=[SliceDataset(label=label, data=data, style=slice_style(len(labels)))],
        )
    return SeriesChartConfig(
        chart_type=chart_type, labels=labels,
        datasets=[SeriesDataset(label=label, data=data, style=series_style(chart_type))],
    )


def parse_chart_config(payload: dict):
    """Validates a stored blob back into its variant."""
    return _adapter.validate_python(payload)


def dump_config(config) -> dict:
    return config.model_dump(by_alias=True, exclude_none=True)
