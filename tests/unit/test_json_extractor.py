"""Unit tests for lenient JSON extraction from model responses."""

import time
from unittest.mock import patch

import pytest

from pantry_chef.utils.json_extractor import AIResponseError, ExtractionError, ParseError, extract_json


class TestExtractJson:
    """Test that embedded JSON is found in prose and markdown."""

    def test_plain_json_object(self):
        assert extract_json('{"title": "Soup"}') == {"title": "Soup"}

    def test_object_inside_prose_and_markdown_fence(self):
        """Test that surrounding prose and fences are ignored."""
        text = 'Here is your recipe!\n```json\n{"title": "Soup", "ingredients": ["water"]}\n```\nEnjoy.'

        assert extract_json(text) == {"title": "Soup", "ingredients": ["water"]}

    def test_top_level_array(self):
        """Test that arrays are returned as lists."""
        assert extract_json('Detected: [{"name": "Eggs"}]') == [{"name": "Eggs"}]

    def test_braces_inside_strings_do_not_end_the_object(self):
        """Test that brackets in string literals are not counted."""
        text = 'Result: {"tip": "use {fresh} herbs [optional]", "ok": true} trailing } text'

        assert extract_json(text) == {"tip": "use {fresh} herbs [optional]", "ok": True}

    def test_escaped_quotes_inside_strings(self):
        assert extract_json(r'{"title": "The \"Best\" Soup"}') == {"title": 'The "Best" Soup'}

    def test_invalid_span_is_skipped_for_a_later_valid_one(self):
        """Test that the first span that parses wins."""
        text = "Template: {title: Soup}\nActual: {\"title\": \"Stew\"}"

        assert extract_json(text) == {"title": "Stew"}

    def test_nested_objects(self):
        text = '{"matches": [{"itemName": "Rice", "matchConfidence": 0.9}], "needToBuy": []}'

        assert extract_json(text)["matches"][0]["itemName"] == "Rice"


class TestExtractJsonFailures:
    """Test the two distinct failure kinds and their logging."""

    def test_no_brackets_raises_extraction_error(self, mock_logger):
        """Test that text without any JSON span raises ExtractionError."""
        with pytest.raises(ExtractionError, match="No valid JSON found"):
            extract_json("I cannot help with that.", logger=mock_logger)

        mock_logger.error.assert_called_once()
        assert mock_logger.error.call_args[0][0] == "No valid JSON found in AI response"

    def test_empty_and_none_text_raise_extraction_error(self, mock_logger):
        with pytest.raises(ExtractionError):
            extract_json("", logger=mock_logger)
        with pytest.raises(ExtractionError):
            extract_json(None, logger=mock_logger)

    def test_malformed_json_raises_parse_error(self, mock_logger):
        """Test that brackets with invalid JSON inside raise ParseError."""
        with pytest.raises(ParseError, match="Failed to parse AI response"):
            extract_json("{'title': 'single quotes'}", logger=mock_logger)

        assert mock_logger.error.call_args[0][0] == "Error parsing AI JSON response"

    def test_unbalanced_brackets_raise_extraction_error(self, mock_logger):
        with pytest.raises(ExtractionError):
            extract_json('{"title": "Soup"', logger=mock_logger)

    def test_trailing_comma_raises_parse_error(self, mock_logger):
        """Test that nested spans of an invalid object are not returned."""
        with pytest.raises(ParseError):
            extract_json('{"title": "Soup", "ingredients": ["water"],}', logger=mock_logger)

    def test_later_sibling_span_still_wins(self, mock_logger):
        text = '{"title": "Soup",} and then {"title": "Stew"}'

        assert extract_json(text, logger=mock_logger) == {"title": "Stew"}

    def test_recursion_error_raises_parse_error(self, mock_logger):
        """Test that a decoder recursion failure is reported as ParseError."""
        with patch("pantry_chef.utils.json_extractor.json.loads", side_effect=RecursionError("too deep")):
            with pytest.raises(ParseError):
                extract_json("[[[]]]", logger=mock_logger)

    def test_deep_nesting_never_escapes_as_recursion_error(self, mock_logger):
        try:
            result = extract_json("[" * 5000 + "]" * 5000, logger=mock_logger)
        except ParseError:
            return
        assert isinstance(result, list)

    def test_valid_object_inside_unclosed_bracket_is_found(self, mock_logger):
        text = 'Here you go { oops {"title": "Stew"}'

        assert extract_json(text, logger=mock_logger) == {"title": "Stew"}

    def test_mismatched_closer_falls_back_to_inner_span(self, mock_logger):
        assert extract_json('[{"title": "Stew"}}', logger=mock_logger) == {"title": "Stew"}

    @pytest.mark.parametrize("text", ["{" * 20000, "[" * 20000, '{"a": [' * 5000])
    def test_unbalanced_input_is_scanned_in_linear_time(self, mock_logger, text):
        """Test that long runs of unclosed brackets do not rescan the text."""
        started = time.perf_counter()

        with pytest.raises(ExtractionError):
            extract_json(text, logger=mock_logger)

        assert time.perf_counter() - started < 1.0

    def test_errors_are_value_errors(self, mock_logger):
        """Test that callers can catch both kinds as ValueError."""
        assert issubclass(ExtractionError, AIResponseError)
        assert issubclass(ParseError, AIResponseError)
        with pytest.raises(ValueError):
            extract_json("nothing here", logger=mock_logger)

    def test_failure_log_carries_snippet_and_context(self, mock_logger):
        """Test that the log context has a 200-char snippet plus caller tags."""
        text = "x" * 500

        with pytest.raises(ExtractionError):
            extract_json(text, context={"context": "recipe-generation", "attempt": 2}, logger=mock_logger)

        log_context = mock_logger.error.call_args[1]["extra"]["context"]
        assert log_context["text"] == "x" * 200
        assert log_context["context"] == "recipe-generation"
        assert log_context["attempt"] == 2
