import json
import unittest

from farm_assistant.schemas import ToolResult
from farm_assistant.visualization.json_repair import (
    normalize_single_quotes,
    parse_json_lenient,
    quote_unquoted_keys,
    remove_trailing_commas,
    repair_json,
)
from farm_assistant.visualization.parser import extract_visualizations
from farm_assistant.visualization.strategies import (
    BareObjectStrategy,
    EnvelopeStrategy,
    FencedBlockStrategy,
    iter_object_regions,
    normalize_visualization,
)
from farm_assistant.visualization.synthesis import synthesize_visualizations

TABLE = {"type": "table", "title": "Fields", "data": {"headers": ["Name"], "rows": [["North"]]}}
METRIC = {"type": "metric", "title": "Area", "data": {"value": 42, "label": "Total", "unit": "ha"}}

FORECAST_RESULT = ToolResult(
    name="getWeatherForecast",
    call_id="call_1",
    success=True,
    message="ok",
    data={
        "location": {"latitude": 48.4, "longitude": 9.99},
        "current": {"temperature": 18.4, "weatherCondition": "Cloudy"},
        "forecast": {
            "daily": [
                {"temperature": {"max": 20 + i}, "humidity": 60 + i} for i in range(7)
            ]
        },
    },
)


def _fenced(payload: object) -> str:
    return f"```json\n{json.dumps(payload)}\n```"


class JsonRepairTests(unittest.TestCase):
    def test_remove_trailing_commas(self) -> None:
        self.assertEqual(remove_trailing_commas('{"a": [1, 2,], }'), '{"a": [1, 2] }')

    def test_quote_unquoted_keys(self) -> None:
        self.assertEqual(quote_unquoted_keys("{a: 1, b_c: 2}"), '{"a": 1, "b_c": 2}')

    def test_normalize_single_quotes_keeps_apostrophes_in_double_quotes(self) -> None:
        self.assertEqual(
            normalize_single_quotes("{'title': \"Farmer's field\"}"),
            '{"title": "Farmer\'s field"}',
        )

    def test_normalize_single_quotes_escapes_embedded_double_quotes(self) -> None:
        self.assertEqual(json.loads(normalize_single_quotes("{'a': 'say \"hi\"'}")), {"a": 'say "hi"'})

    def test_repair_json_combines_heuristics(self) -> None:
        repaired = repair_json("{visualizations: [{'type': 'metric',},],}")

        self.assertEqual(json.loads(repaired), {"visualizations": [{"type": "metric"}]})

    def test_parse_json_lenient(self) -> None:
        self.assertEqual(parse_json_lenient('{"a": 1}'), {"a": 1})
        self.assertEqual(parse_json_lenient("{a: 1,}"), {"a": 1})
        self.assertIsNone(parse_json_lenient("{a: [1, 2}"))


class StrategyTests(unittest.TestCase):
    def test_normalize_visualization_maps_chart_aliases(self) -> None:
        viz = normalize_visualization(
            {"type": "bar", "title": "Yield", "data": [{"x": 1, "y": 2}], "xAxis": "x", "yAxis": "y"}
        )

        self.assertEqual(viz.type, "chart")
        self.assertEqual(viz.data["chartType"], "bar")
        self.assertEqual(viz.data["dataset"], [{"x": 1, "y": 2}])

    def test_normalize_visualization_rejects_unknown_type(self) -> None:
        self.assertIsNone(normalize_visualization({"type": "map", "data": {}}))
        self.assertIsNone(normalize_visualization(["table"]))

    def test_envelope_strategy_returns_content(self) -> None:
        text = "Intro\n" + _fenced({"content": "Two fields.", "visualizations": [TABLE]})

        extraction = EnvelopeStrategy().try_extract(text)

        self.assertEqual(extraction.content, "Two fields.")
        self.assertEqual([v.type for v in extraction.visualizations], ["table"])

    def test_fenced_strategy_ignores_unrelated_blocks(self) -> None:
        text = f"{_fenced({'config': True})}\n{_fenced(METRIC)}"

        extraction = FencedBlockStrategy().try_extract(text)

        self.assertEqual(len(extraction.consumed), 1)
        self.assertIn('"metric"', extraction.consumed[0])

    def test_iter_object_regions_finds_top_level_objects(self) -> None:
        text = 'a {"x": {"y": 1}} b {"z": "}"} c {unclosed'

        regions = [text[start:end] for start, end in iter_object_regions(text)]

        self.assertEqual(regions, ['{"x": {"y": 1}}', '{"z": "}"}'])

    def test_bare_strategy_repairs_and_skips_unrecoverable_regions(self) -> None:
        good = "{visualizations: [{'type': 'metric', 'title': 'Area', 'data': {'value': 1, 'label': 'x'}},]}"
        broken = '{"visualizations": [{"type": "table"}, oops]}'
        text = f"Before {broken} middle {good} after"

        with self.assertLogs("farm_assistant.visualization.strategies", level="WARNING"):
            extraction = BareObjectStrategy().try_extract(text)

        self.assertEqual([v.type for v in extraction.visualizations], ["metric"])
        self.assertEqual(extraction.consumed, [good])

    def test_bare_strategy_ignores_fenced_regions(self) -> None:
        text = _fenced({"visualizations": [METRIC]})

        self.assertIsNone(BareObjectStrategy().try_extract(text))


class ExtractVisualizationsTests(unittest.TestCase):
    def test_envelope_round_trip(self) -> None:
        raw = _fenced({"content": "Your farm has 2 fields.", "visualizations": [TABLE, METRIC]})

        result = extract_visualizations(raw)

        self.assertEqual(result.cleaned_text, "Your farm has 2 fields.")
        self.assertEqual([v.type for v in result.visualizations], ["table", "metric"])
        self.assertEqual(result.visualizations[0].data, TABLE["data"])

    def test_prose_with_fenced_blocks_keeps_prose(self) -> None:
        raw = f"Here is the summary.\n\n\n\n{_fenced(METRIC)}\n\nThanks."

        result = extract_visualizations(raw)

        self.assertEqual(result.cleaned_text, "Here is the summary.\n\nThanks.")
        self.assertEqual(len(result.visualizations), 1)

    def test_bare_object_content_replaces_empty_remainder(self) -> None:
        raw = '{"content": "Area is 42 ha.", "visualizations": [' + json.dumps(METRIC) + "]}"

        result = extract_visualizations(raw)

        self.assertEqual(result.cleaned_text, "Area is 42 ha.")
        self.assertEqual(len(result.visualizations), 1)

    def test_truncated_region_is_left_in_text(self) -> None:
        good = '{"visualizations": [' + json.dumps(METRIC) + "]}"
        raw = f"Summary {good} and {{\"visualizations\": [ {{\"type\""

        result = extract_visualizations(raw)

        self.assertEqual(len(result.visualizations), 1)
        self.assertNotIn(good, result.cleaned_text)

    def test_model_visualizations_suppress_synthesis(self) -> None:
        raw = "The weather forecast looks dry.\n" + _fenced(METRIC)

        result = extract_visualizations(raw, [FORECAST_RESULT], "What's the weather forecast?")

        self.assertEqual([v.title for v in result.visualizations], ["Area"])

    def test_synthesis_runs_when_nothing_was_extracted(self) -> None:
        result = extract_visualizations(
            "The forecast looks dry for spraying.", [FORECAST_RESULT], "Weather this week?"
        )

        self.assertEqual([v.type for v in result.visualizations], ["chart", "metric"])
        chart = result.visualizations[0]
        self.assertEqual(len(chart.data["dataset"]), 5)
        self.assertEqual(chart.data["dataset"][0]["day"], "Today")
        self.assertEqual(chart.data["dataset"][2]["day"], "Day 3")
        self.assertEqual(result.visualizations[1].data["value"], 18)

    def test_plain_text_is_returned_unchanged(self) -> None:
        result = extract_visualizations("Plant after the frost.")

        self.assertEqual(result.cleaned_text, "Plant after the frost.")
        self.assertEqual(result.visualizations, [])


class SynthesisTests(unittest.TestCase):
    def test_failed_results_are_ignored(self) -> None:
        failed = ToolResult(
            name="getCurrentWeather", success=False, message="location required", data=None
        )

        self.assertEqual(synthesize_visualizations([failed], "weather today"), [])

    def test_unrelated_answer_suppresses_synthesis(self) -> None:
        self.assertEqual(synthesize_visualizations([FORECAST_RESULT], "Wheat prices rose."), [])

    def test_fields_table_and_total_area(self) -> None:
        fields = ToolResult(
            name="getFields",
            success=True,
            data={"fields": [{"name": "North", "area": 12.5}, {"name": "South", "area": 7.5}]},
        )

        visualizations = synthesize_visualizations([fields], "Show my fields")

        self.assertEqual([v.type for v in visualizations], ["table", "metric"])
        self.assertEqual(visualizations[0].data["rows"][0], ["North", "12.5 acres", "Active"])
        self.assertEqual(visualizations[1].data["value"], 20.0)

    def test_equipment_table(self) -> None:
        equipment = ToolResult(
            name="getEquipment",
            success=True,
            data={"equipment": [{"name": "Tractor 1", "model": "8R 410"}]},
        )

        visualizations = synthesize_visualizations([equipment], "List my machinery")

        self.assertEqual(visualizations[0].data["rows"], [["Tractor 1", "8R 410", "Active"]])


if __name__ == "__main__":
    unittest.main()
