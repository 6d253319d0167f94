"""Strategies that recover visualization payloads from model text.

Each strategy is independent: ``try_extract`` returns the payloads it found
plus the exact text regions it consumed, or ``None``.
"""

import json
import logging
import re
from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Any, Protocol

from pydantic import ValidationError

from farm_assistant.constants import CHART_ALIASES, VISUALIZATION_TYPES

from .json_repair import parse_json_lenient
from .models import Visualization

logger = logging.getLogger(__name__)

FENCED_JSON_PATTERN = re.compile(r"```(?:json|JSON)?[ \t]*\r?\n(\s*\{.*?\})\s*```", re.DOTALL)
FENCE_PATTERN = re.compile(r"```.*?```", re.DOTALL)
VISUALIZATIONS_KEY_PATTERN = re.compile(r"""["']?visualizations["']?\s*:""")


@dataclass
class Extraction:
    visualizations: list[Visualization] = field(default_factory=list)
    consumed: list[str] = field(default_factory=list)
    content: str | None = None


class ExtractionStrategy(Protocol):
    def try_extract(self, text: str) -> Extraction | None: ...


def normalize_visualization(raw: Any) -> Visualization | None:
    """Build a payload from a model-emitted object; ``None`` if it is not one."""
    if not isinstance(raw, dict):
        return None
    kind = raw.get("type")
    description = raw.get("description") if isinstance(raw.get("description"), str) else None
    title = raw.get("title") if isinstance(raw.get("title"), str) and raw.get("title") else "Untitled"

    if kind in CHART_ALIASES:
        lines = raw.get("lines") if isinstance(raw.get("lines"), list) else []
        colors = [line["color"] for line in lines if isinstance(line, dict) and "color" in line]
        if not colors and raw.get("color"):
            colors = [raw["color"]]
        data: dict[str, Any] = {
            "chartType": kind,
            "dataset": raw.get("data") if isinstance(raw.get("data"), list) else [],
            "xAxis": raw.get("xAxis", "x"),
            "yAxis": raw.get("yAxis", "y"),
            "colors": colors or ["#3b82f6"],
        }
        kind = "chart"
    elif kind in VISUALIZATION_TYPES:
        if isinstance(raw.get("data"), dict):
            data = raw["data"]
        else:
            data = {k: v for k, v in raw.items() if k not in ("type", "title", "description")}
    else:
        return None

    try:
        return Visualization(type=kind, title=title, description=description, data=data)
    except ValidationError:
        logger.warning("Discarding malformed visualization payload", extra={"viz_type": kind})
        return None


def _normalize_all(items: list[Any]) -> list[Visualization]:
    return [viz for viz in (normalize_visualization(item) for item in items) if viz is not None]


def _load_strict(body: str) -> Any | None:
    try:
        return json.loads(body)
    except ValueError:
        return None


class EnvelopeStrategy:
    """A single fenced ``{"content": ..., "visualizations": [...]}`` block."""

    def try_extract(self, text: str) -> Extraction | None:
        for match in FENCED_JSON_PATTERN.finditer(text):
            data = _load_strict(match.group(1))
            if (
                isinstance(data, dict)
                and "content" in data
                and isinstance(data.get("visualizations"), list)
            ):
                content = data["content"] if isinstance(data["content"], str) else None
                return Extraction(
                    visualizations=_normalize_all(data["visualizations"]),
                    consumed=[match.group(0)],
                    content=content,
                )
        return None


class FencedBlockStrategy:
    """Every fenced JSON block whose ``type`` is a known visualization tag."""

    def try_extract(self, text: str) -> Extraction | None:
        extraction = Extraction()
        for match in FENCED_JSON_PATTERN.finditer(text):
            data = _load_strict(match.group(1))
            if not isinstance(data, dict):
                continue
            if isinstance(data.get("visualizations"), list):
                found = _normalize_all(data["visualizations"])
            else:
                viz = normalize_visualization(data)
                found = [viz] if viz is not None else []
            if found:
                extraction.visualizations.extend(found)
                extraction.consumed.append(match.group(0))
        return extraction if extraction.consumed else None


def _match_brace(text: str, start: int) -> int | None:
    depth = 0
    quote: str | None = None
    index = start
    while index < len(text):
        char = text[index]
        if quote is not None:
            if char == "\\":
                index += 1
            elif char == quote:
                quote = None
        elif char in ('"', "'"):
            quote = char
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return index
        index += 1
    return None


def iter_object_regions(text: str) -> Iterator[tuple[int, int]]:
    """Yield ``(start, end)`` of top-level balanced ``{...}`` regions."""
    position = 0
    while True:
        start = text.find("{", position)
        if start == -1:
            return
        end = _match_brace(text, start)
        if end is None:
            position = start + 1
            continue
        yield start, end + 1
        position = end + 1


class BareObjectStrategy:
    """Unfenced objects carrying a ``visualizations`` key, repaired if needed."""

    def try_extract(self, text: str) -> Extraction | None:
        fenced_spans = [m.span() for m in FENCE_PATTERN.finditer(text)]
        extraction = Extraction()
        for start, end in iter_object_regions(text):
            if any(f_start <= start < f_end for f_start, f_end in fenced_spans):
                continue
            region = text[start:end]
            if not VISUALIZATIONS_KEY_PATTERN.search(region):
                continue
            data = parse_json_lenient(region)
            if not isinstance(data, dict) or not isinstance(data.get("visualizations"), list):
                logger.warning(
                    "Skipping unrecoverable JSON region", extra={"region_length": len(region)}
                )
                continue
            extraction.visualizations.extend(_normalize_all(data["visualizations"]))
            extraction.consumed.append(region)
            if extraction.content is None and isinstance(data.get("content"), str):
                extraction.content = data["content"]
        return extraction if extraction.consumed else None
