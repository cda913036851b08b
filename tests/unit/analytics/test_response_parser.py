"""Unit tests for JSON extraction from model replies."""

from typing import List

import pytest

from src.analytics_bc.ai.domain.schemas import DemandPrediction, ScheduleOptimization
from src.analytics_bc.ai.infrastructure.services.response_parser import (
    clean_and_parse,
    extract_json_block,
    strip_comments,
    strip_trailing_commas,
)

CLEAN_REPLY = """[
  {"routeId": "R001", "routeName": "Loop", "predictedDemand": 40, "confidence": 80,
   "timeSlot": "07:30-08:30", "date": "2026-03-10", "reasoning": "busy", "recommendedAction": "add bus"}
]"""

NOISY_REPLY = """Here are the predictions you asked for:
```json
[
  // morning peak
  {"routeId": "R001", "routeName": "Loop", "predictedDemand": 40, "confidence": 80,
   "timeSlot": "07:30-08:30", "date": "2026-03-10", /* from last week */ "reasoning": "busy",
   "recommendedAction": "add bus",},
]
```
Let me know if you need more."""


class TestExtractJsonBlock:
    """Tests for locating the first top-level JSON block."""

    def test_finds_array_in_prose(self):
        """Surrounding prose is ignored; nested arrays stay inside the block."""
        assert extract_json_block('Result: [1, 2, [3]] done') == "[1, 2, [3]]"

    def test_ignores_brackets_inside_strings(self):
        """A ] inside a string literal does not close the block."""
        assert extract_json_block('x ["a]", "b"] y') == '["a]", "b"]'

    def test_ignores_brackets_inside_comments(self):
        """A ] inside a comment does not close the block."""
        text = '[\n// see ] below\n1]'
        assert extract_json_block(text) == text

    def test_object_opener(self):
        """Objects can be extracted with the { opener."""
        assert extract_json_block('reply: {"a": [1]} end', opener="{") == '{"a": [1]}'

    def test_unclosed_falls_back_to_last_closer(self):
        """An unbalanced block ends at the last closer."""
        assert extract_json_block('[1, [2 ] trailing') == '[1, [2 ]'

    @pytest.mark.parametrize("text", ["", "no json here", "only ] closer"])
    def test_nothing_found(self, text):
        """No opener, no block."""
        assert extract_json_block(text) is None


class TestCleaning:
    """Tests for comment and trailing-comma removal."""

    def test_strip_line_and_block_comments(self):
        """Both comment styles are removed."""
        assert strip_comments('[1, // one\n 2 /* two */]') == '[1, \n 2 ]'

    def test_comment_markers_inside_strings_survive(self):
        """Comment markers inside strings are kept."""
        text = '{"url": "http://example.com/*x*/"}'
        assert strip_comments(text) == text

    def test_trailing_commas(self):
        """Commas before ] and } are removed."""
        assert strip_trailing_commas('[1, 2, ]') == '[1, 2 ]'
        assert strip_trailing_commas('{"a": 1,\n}') == '{"a": 1\n}'

    def test_commas_inside_strings_survive(self):
        """Commas inside strings are kept."""
        text = '["a, ]", "b"]'
        assert strip_trailing_commas(text) == text


class TestCleanAndParse:
    """Tests for extraction, cleaning and schema validation together."""

    def test_clean_reply(self):
        """A clean reply validates into DemandPrediction."""
        result = clean_and_parse(CLEAN_REPLY, List[DemandPrediction])
        assert result.ok
        assert result.value[0].predicted_demand == 40
        assert result.value[0].time_slot == "07:30-08:30"

    def test_comments_and_trailing_commas_parse_like_clean_reply(self):
        """A noisy reply parses to the same value as its clean equivalent."""
        noisy = clean_and_parse(NOISY_REPLY, List[DemandPrediction])
        clean = clean_and_parse(CLEAN_REPLY, List[DemandPrediction])
        assert noisy.ok
        assert noisy.value == clean.value

    def test_no_json(self):
        """A reply without JSON fails with a reason."""
        result = clean_and_parse("Sorry, I cannot help with that.", List[DemandPrediction])
        assert not result.ok
        assert "no JSON" in result.error

    def test_invalid_json(self):
        """Unquoted keys are invalid JSON."""
        result = clean_and_parse("[{routeId: R001}]", List[DemandPrediction])
        assert not result.ok
        assert "invalid JSON" in result.error

    def test_schema_violation_fails_whole_reply(self):
        """One out-of-range item makes the whole reply unusable."""
        reply = CLEAN_REPLY.replace('"confidence": 80', '"confidence": 180')
        result = clean_and_parse(reply, List[DemandPrediction])
        assert not result.ok
        assert "schema" in result.error

    def test_bad_time_slot(self):
        """A time slot outside HH:MM-HH:MM fails validation."""
        reply = CLEAN_REPLY.replace("07:30-08:30", "morning")
        assert not clean_and_parse(reply, List[DemandPrediction]).ok

    def test_schedule_optimization_must_keep_departures(self):
        """A shorter optimized schedule is rejected."""
        reply = """[{"routeId": "R1", "currentSchedule": ["07:00", "08:00"],
                     "optimizedSchedule": ["07:30"], "efficiencyGain": 10}]"""
        assert not clean_and_parse(reply, List[ScheduleOptimization]).ok

    def test_schedule_optimization_valid(self):
        """A valid optimization keeps its implementation steps."""
        reply = """[{"routeId": "R1", "currentSchedule": ["07:00"],
                     "optimizedSchedule": ["07:00", "07:30"], "efficiencyGain": 10,
                     "implementationSteps": ["Add 07:30"]}]"""
        result = clean_and_parse(reply, List[ScheduleOptimization])
        assert result.ok
        assert result.value[0].implementation_steps == ["Add 07:30"]

    def test_none_reply(self):
        """A missing reply fails instead of raising."""
        assert not clean_and_parse(None, List[DemandPrediction]).ok

    def test_deeply_nested_reply_fails(self):
        """Nesting beyond the decoder's recursion limit is a parse failure."""
        result = clean_and_parse("[" * 100000 + "]" * 100000, List[DemandPrediction])
        assert not result.ok
        assert "invalid JSON" in result.error

    def test_oversized_integer_fails(self):
        """An integer literal past the int conversion limit is a parse failure."""
        reply = '[{"routeId": "R001", "predictedDemand": ' + "9" * 5000 + "}]"
        assert not clean_and_parse(reply, List[DemandPrediction]).ok
