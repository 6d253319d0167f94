"""Standard visualizations synthesized from raw tool results."""

import logging
import re
from collections.abc import Callable, Sequence
from typing import Any

from farm_assistant.schemas import ToolResult

from .models import ChartData, MetricData, TableData, Visualization, build_visualization

logger = logging.getLogger(__name__)

_DOMAIN_PATTERNS = {
    "weather": re.compile(
        r"\b(weather|forecast|temperature|rain|precipitation|wind|humidity|spray\w*|frost|°c)",
        re.IGNORECASE,
    ),
    "field": re.compile(r"\b(fields?|acres?|acreage|hectares?|farm area)\b", re.IGNORECASE),
    "equipment": re.compile(
        r"\b(equipment|machines?|machinery|tractors?|combines?|implements?|fleet)\b",
        re.IGNORECASE,
    ),
}
_DAY_LABELS = ("Today", "Tomorrow")


def _day_label(index: int) -> str:
    return _DAY_LABELS[index] if index < len(_DAY_LABELS) else f"Day {index + 1}"


def _number(value: Any) -> float:
    if isinstance(value, dict):
        value = value.get("max", value.get("value"))
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def _records(data: Any, key: str) -> list[dict[str, Any]]:
    if isinstance(data, dict):
        data = data.get(key)
    if not isinstance(data, list):
        return []
    return [item for item in data if isinstance(item, dict)]


def _current_conditions_metric(current: dict[str, Any]) -> Visualization:
    return build_visualization(
        "metric",
        "Current Conditions",
        MetricData(
            value=round(_number(current.get("temperature"))),
            label="Current Temperature",
            unit="°C",
            context=current.get("weatherCondition") or current.get("condition") or "Clear",
            color="blue",
        ),
    )


def _from_forecast(data: Any) -> list[Visualization]:
    if not isinstance(data, dict):
        return []
    forecast = data.get("forecast")
    daily = _records(forecast if isinstance(forecast, dict) else data, "daily")
    if not daily:
        return []

    dataset = [
        {
            "day": _day_label(index),
            "temperature": round(_number(day.get("temperature"))),
            "humidity": round(_number(day.get("humidity"))),
        }
        for index, day in enumerate(daily[:5])
    ]
    location = data.get("location")
    if isinstance(location, dict) and "latitude" in location and "longitude" in location:
        where = f"latitude {location['latitude']}, longitude {location['longitude']}"
    else:
        where = "your location"
    visualizations = [
        build_visualization(
            "chart",
            f"{len(dataset)}-Day Temperature Forecast",
            ChartData(
                chart_type="line",
                dataset=dataset,
                x_axis="day",
                y_axis="temperature",
                series=["temperature", "humidity"],
                colors=["#3b82f6", "#22c55e"],
            ),
            description=f"Weather forecast for {where}",
        )
    ]
    if isinstance(data.get("current"), dict):
        visualizations.append(_current_conditions_metric(data["current"]))
    return visualizations


def _from_current_weather(data: Any) -> list[Visualization]:
    if not isinstance(data, dict):
        return []
    current = data.get("current") if isinstance(data.get("current"), dict) else data
    if "temperature" not in current:
        return []
    return [_current_conditions_metric(current)]


def _from_fields(data: Any) -> list[Visualization]:
    fields = _records(data, "fields")
    if not fields:
        return []
    rows = [
        [
            field.get("name") or "Unnamed Field",
            f"{field['area']} acres" if field.get("area") else "N/A",
            field.get("status") or "Active",
        ]
        for field in fields
    ]
    visualizations = [
        build_visualization(
            "table",
            "Your Fields",
            TableData(headers=["Field Name", "Area", "Status"], rows=rows),
            description=f"Overview of {len(fields)} fields in your farm",
        )
    ]
    total_area = sum(_number(field.get("area")) for field in fields)
    if total_area > 0:
        visualizations.append(
            build_visualization(
                "metric",
                "Farm Summary",
                MetricData(
                    value=round(total_area, 1),
                    label="Total Farm Area",
                    unit="acres",
                    context=f"Across {len(fields)} fields",
                    color="green",
                ),
            )
        )
    return visualizations


def _from_equipment(data: Any) -> list[Visualization]:
    equipment = _records(data, "equipment")
    if not equipment:
        return []
    rows = [
        [
            item.get("name") or item.get("model") or "Unknown",
            item.get("model") or "N/A",
            item.get("status") or "Active",
        ]
        for item in equipment
    ]
    return [
        build_visualization(
            "table",
            "Your Equipment",
            TableData(headers=["Equipment", "Model", "Status"], rows=rows),
            description=f"Overview of {len(equipment)} pieces of equipment",
        )
    ]


SYNTHESIZERS: dict[str, tuple[str, Callable[[Any], list[Visualization]]]] = {
    "getWeatherForecast": ("weather", _from_forecast),
    "getCurrentWeather": ("weather", _from_current_weather),
    "getFields": ("field", _from_fields),
    "getEquipment": ("equipment", _from_equipment),
}


def is_relevant(domain: str, context_text: str) -> bool:
    return bool(_DOMAIN_PATTERNS[domain].search(context_text))


def synthesize_visualizations(
    tool_results: Sequence[ToolResult], context_text: str
) -> list[Visualization]:
    """Build standard visualizations for successful results of known shape.

    A result only contributes when ``context_text`` (query plus answer) talks
    about the result's domain.
    """
    visualizations: list[Visualization] = []
    for result in tool_results:
        entry = SYNTHESIZERS.get(result.name)
        if entry is None or not result.success or result.data is None:
            continue
        domain, synthesize = entry
        if not is_relevant(domain, context_text):
            logger.info(
                "Skipping synthesized visualization for unrelated answer",
                extra={"tool_name": result.name, "domain": domain},
            )
            continue
        visualizations.extend(synthesize(result.data))
    return visualizations
