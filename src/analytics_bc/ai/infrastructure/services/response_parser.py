"""Best-effort JSON extraction from free-text model replies.

Models often wrap the requested JSON in prose or code fences, sprinkle
// and /* */ comments through it and leave trailing commas. The helpers
here find the first top-level JSON array (or object), clean it up and
validate it against a pydantic schema. Failures are returned as a
ParseResult error, never raised.
"""
import json
import logging
from typing import Any, Optional, Type

from pydantic import TypeAdapter, ValidationError

from src.analytics_bc.ai.domain.value_objects import ParseResult

logger = logging.getLogger(__name__)

_CLOSERS = {"[": "]", "{": "}"}


def _skip_comment(text: str, i: int) -> int:
    """If a comment starts at i, return the index just past it, else i."""
    if text.startswith("//", i):
        end = text.find("\n", i)
        return len(text) if end == -1 else end
    if text.startswith("/*", i):
        end = text.find("*/", i + 2)
        return len(text) if end == -1 else end + 2
    return i


def extract_json_block(text: str, opener: str = "[") -> Optional[str]:
    """Return the first top-level JSON array/object found in text.

    Brackets are matched while skipping string literals and comments. When
    the block is never closed, falls back to the widest span between the
    first opener and the last closer.
    """
    if not text:
        return None

    closer = _CLOSERS[opener]
    start = text.find(opener)
    if start == -1:
        return None

    depth = 0
    in_string = False
    i = start
    while i < len(text):
        ch = text[i]
        if in_string:
            if ch == "\\":
                i += 2
                continue
            if ch == '"':
                in_string = False
            i += 1
            continue

        skipped = _skip_comment(text, i)
        if skipped != i:
            i = skipped
            continue

        if ch == '"':
            in_string = True
        elif ch in "[{":
            depth += 1
        elif ch in "]}":
            depth -= 1
            if depth == 0:
                return text[start:i + 1] if ch == closer else None
        i += 1

    end = text.rfind(closer)
    return text[start:end + 1] if end > start else None


def strip_comments(text: str) -> str:
    """Remove // line comments and /* */ block comments outside strings."""
    out = []
    in_string = False
    i = 0
    while i < len(text):
        ch = text[i]
        if in_string:
            out.append(ch)
            if ch == "\\" and i + 1 < len(text):
                out.append(text[i + 1])
                i += 2
                continue
            if ch == '"':
                in_string = False
            i += 1
            continue

        skipped = _skip_comment(text, i)
        if skipped != i:
            i = skipped
            continue

        if ch == '"':
            in_string = True
        out.append(ch)
        i += 1
    return "".join(out)


def strip_trailing_commas(text: str) -> str:
    """Drop commas that directly precede a closing ] or } outside strings."""
    out = []
    in_string = False
    i = 0
    while i < len(text):
        ch = text[i]
        if in_string:
            out.append(ch)
            if ch == "\\" and i + 1 < len(text):
                out.append(text[i + 1])
                i += 2
                continue
            if ch == '"':
                in_string = False
            i += 1
            continue

        if ch == '"':
            in_string = True
        elif ch == ",":
            j = i + 1
            while j < len(text) and text[j].isspace():
                j += 1
            if j < len(text) and text[j] in "]}":
                i += 1
                continue
        out.append(ch)
        i += 1
    return "".join(out)


def clean_json_text(block: str) -> str:
    """Comments first, then trailing commas (a comment can hide the closer)."""
    return strip_trailing_commas(strip_comments(block))


def clean_and_parse(text: str, schema: Type[Any], opener: str = "[") -> ParseResult:
    """Extract, clean and validate JSON from a model reply.

    Args:
        text: Raw model reply
        schema: Type understood by pydantic, e.g. List[DemandPrediction]
        opener: "[" to look for an array, "{" for an object

    Returns:
        ParseResult with the validated value, or the reason it failed
    """
    block = extract_json_block(text or "", opener)
    if block is None:
        return ParseResult.failure("no JSON block found in reply")

    try:
        data = json.loads(clean_json_text(block))
    except (ValueError, RecursionError) as e:
        # JSONDecodeError is a ValueError; oversized integer literals raise a plain one
        return ParseResult.failure(f"invalid JSON after cleaning: {e}")

    try:
        value = TypeAdapter(schema).validate_python(data)
    except ValidationError as e:
        logger.debug(f"[ResponseParser] Schema validation failed: {e}")
        return ParseResult.failure(f"reply does not match schema: {e.error_count()} error(s)")

    return ParseResult.success(value)
