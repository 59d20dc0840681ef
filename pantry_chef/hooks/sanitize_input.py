"""Sanitization of user-supplied free text before it is embedded in prompts.

Feedback text, free-form requests and item names all end up inside model
instructions. Removing bracket characters prevents users from opening fake
JSON/markup blocks, collapsing blank lines prevents them from visually
starting a new instruction section, and truncation bounds their influence.
"""

import re

from pantry_chef.utils.logger import logger


DEFAULT_MAX_LENGTH = 100

_BRACKETS = re.compile(r"[<>{}\[\]]")
_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")
_EXCESS_NEWLINES = re.compile(r"\n{3,}")


def sanitize_user_input(text: str, max_length: int = DEFAULT_MAX_LENGTH) -> str:
    """Make user text safe to interpolate into a prompt.

    Steps: normalize line endings, strip control characters (newlines and
    tabs are kept), strip ``<>{}[]``, collapse 3+ consecutive newlines to 2,
    trim surrounding whitespace, truncate to ``max_length`` characters.

    Args:
        text: Raw user input. None is treated as empty.
        max_length: Maximum length of the result.

    Returns:
        Sanitized text (possibly empty).
    """
    if not text:
        return ""

    cleaned = text.replace("\r\n", "\n").replace("\r", "\n")
    cleaned = _CONTROL_CHARS.sub("", cleaned)
    cleaned = _BRACKETS.sub("", cleaned)
    cleaned = _EXCESS_NEWLINES.sub("\n\n", cleaned)
    cleaned = cleaned.strip()

    if len(cleaned) > max_length:
        logger.debug(f"User input truncated from {len(cleaned)} to {max_length} characters")
        cleaned = cleaned[:max_length].rstrip()

    return cleaned
