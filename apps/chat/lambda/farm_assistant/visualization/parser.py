"""Split a model answer into user-facing prose and visualization payloads."""

import logging
import re
from collections.abc import Sequence
from dataclasses import dataclass, field

from farm_assistant.schemas import ToolResult

from .models import Visualization
from .strategies import BareObjectStrategy, EnvelopeStrategy, ExtractionStrategy, FencedBlockStrategy
from .synthesis import synthesize_visualizations

logger = logging.getLogger(__name__)

_BLANK_LINE_RUN = re.compile(r"\n[ \t]*\n(?:[ \t]*\n)+")

# Precedence: fenced blocks before bare objects.
REGION_STRATEGIES: tuple[ExtractionStrategy, ...] = (FencedBlockStrategy(), BareObjectStrategy())


@dataclass
class ExtractionResult:
    cleaned_text: str
    visualizations: list[Visualization] = field(default_factory=list)


def _remove_regions(text: str, regions: Sequence[str]) -> str:
    for region in regions:
        text = text.replace(region, "", 1)
    return text


def collapse_blank_lines(text: str) -> str:
    return _BLANK_LINE_RUN.sub("\n\n", text).strip()


def extract_visualizations(
    raw_text: str,
    tool_results: Sequence[ToolResult] | None = None,
    query: str | None = None,
) -> ExtractionResult:
    text = raw_text or ""
    visualizations: list[Visualization] = []
    replacement_content: str | None = None

    envelope = EnvelopeStrategy().try_extract(text)
    if envelope is not None:
        visualizations.extend(envelope.visualizations)
        text = _remove_regions(text, envelope.consumed)
        replacement_content = envelope.content or None

    for strategy in REGION_STRATEGIES:
        extraction = strategy.try_extract(text)
        if extraction is None:
            continue
        visualizations.extend(extraction.visualizations)
        text = _remove_regions(text, extraction.consumed)
        if replacement_content is None and not text.strip() and extraction.content:
            replacement_content = extraction.content

    cleaned_text = collapse_blank_lines(replacement_content if replacement_content else text)

    if not visualizations and tool_results:
        context_text = f"{query or ''}\n{cleaned_text}"
        visualizations.extend(synthesize_visualizations(tool_results, context_text))

    logger.info(
        "Extracted visualizations",
        extra={
            "visualization_count": len(visualizations),
            "content_length": len(cleaned_text),
        },
    )
    return ExtractionResult(cleaned_text=cleaned_text, visualizations=visualizations)
