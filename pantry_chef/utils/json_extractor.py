"""Lenient JSON extraction from free-form model responses.

Gemini often wraps JSON in markdown fences or surrounds it with prose. The
extractor scans the text once for top-level balanced ``{...}`` or ``[...]``
spans (ignoring brackets inside string literals) and returns the first that
parses as JSON. Spans nested inside a span that fails to parse are never
tried.
"""

import json
import logging
from typing import Any, Iterator, Optional, Union

from pantry_chef.utils.logger import logger as default_logger


SNIPPET_CHARS = 200

_CLOSERS = {"{": "}", "[": "]"}


class AIResponseError(ValueError):
    """Base class for unusable model output."""


class ExtractionError(AIResponseError):
    """No bracket-delimited span was found in the model output."""


class ParseError(AIResponseError):
    """Bracket-delimited spans were found but none is valid JSON."""


def _outermost(spans: list[tuple[int, int]]) -> list[tuple[int, int]]:
    """Drop spans nested inside another span, ordered by start."""
    result: list[tuple[int, int]] = []
    for start, end in sorted(spans):
        if not result or start > result[-1][1]:
            result.append((start, end))
    return result


def _candidate_spans(text: str) -> Iterator[str]:
    """Yield top-level balanced bracket spans in one pass over ``text``.

    Spans nested inside a balanced span are never yielded. When an opening
    bracket is never closed, or is closed by the wrong bracket, the outermost
    balanced spans found inside it are yielded instead.
    """
    stack: list[tuple[str, int]] = []
    inner: list[tuple[int, int]] = []
    in_string = False
    escaped = False

    for index, char in enumerate(text):
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue

        if char == '"' and stack:
            in_string = True
        elif char in _CLOSERS:
            stack.append((_CLOSERS[char], index))
        elif char in ("}", "]") and stack:
            closer, start = stack.pop()
            if char != closer:
                for inner_start, inner_end in _outermost(inner):
                    yield text[inner_start : inner_end + 1]
                stack.clear()
                inner.clear()
            elif stack:
                inner.append((start, index))
            else:
                inner.clear()
                yield text[start : index + 1]

    for inner_start, inner_end in _outermost(inner):
        yield text[inner_start : inner_end + 1]


def extract_json(
    text: str,
    context: Optional[dict[str, Any]] = None,
    logger: Optional[logging.Logger] = None,
) -> Union[dict, list]:
    """Parse the first well-formed JSON object or array embedded in ``text``.

    Args:
        text: Raw model output (may contain markdown fences or prose).
        context: Diagnostic tags included in the failure log (e.g. {"context": "reconcile"}).
        logger: Logger for failure diagnostics. Defaults to the package logger.

    Returns:
        Parsed dict or list.

    Raises:
        ExtractionError: No balanced ``{...}`` / ``[...]`` span exists.
        ParseError: Spans exist but none of them is valid JSON.
    """
    log = logger or default_logger
    text = text or ""
    found_span = False
    last_error: Optional[Exception] = None

    for span in _candidate_spans(text):
        found_span = True
        try:
            return json.loads(span)
        except (json.JSONDecodeError, RecursionError) as e:
            last_error = e

    log_context = {"text": text[:SNIPPET_CHARS], **(context or {})}
    if not found_span:
        log.error("No valid JSON found in AI response", extra={"context": log_context})
        raise ExtractionError("No valid JSON found in response")

    log_context["error"] = str(last_error)
    log.error("Error parsing AI JSON response", extra={"context": log_context})
    raise ParseError("Failed to parse AI response") from last_error
