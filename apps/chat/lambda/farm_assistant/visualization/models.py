"""Visualization payloads rendered next to the assistant's answer."""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from farm_assistant.constants import VisualizationType


class Visualization(BaseModel):
    """Tagged payload; ``data`` keeps whatever shape the tag implies."""

    type: VisualizationType
    title: str = "Untitled"
    description: str | None = None
    data: dict[str, Any] = Field(default_factory=dict)


class TableData(BaseModel):
    headers: list[str]
    rows: list[list[Any]]


class ChartData(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    chart_type: Literal["line", "bar", "area"] = Field(default="line", alias="chartType")
    dataset: list[dict[str, Any]]
    x_axis: str = Field(alias="xAxis")
    y_axis: str = Field(alias="yAxis")
    series: list[str] = Field(default_factory=list)
    colors: list[str] = Field(default_factory=list)


class MetricData(BaseModel):
    value: float | int | str
    label: str
    unit: str | None = None
    context: str | None = None
    color: str | None = None


class ComparisonData(BaseModel):
    items: list[dict[str, Any]]
    metric: str | None = None


def build_visualization(
    kind: VisualizationType,
    title: str,
    data: TableData | ChartData | MetricData | ComparisonData,
    description: str | None = None,
) -> Visualization:
    return Visualization(
        type=kind,
        title=title,
        description=description,
        data=data.model_dump(by_alias=True, exclude_none=True),
    )
