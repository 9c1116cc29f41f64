"""Turn raw model output into extraction records.

Model output is noisy: a SKIP answer, prose around the JSON or a truncated
object all mean "no record" and are dropped quietly.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any, List, Optional

from docmemories.errors import NoActionableContent
from docmemories.models import RawExtractionResult

LOGGER = logging.getLogger(__name__)

SKIP_SENTINEL = "skip"
FENCE_RE = re.compile(r"```(?:json)?\s*([\s\S]*?)```")


def strip_code_fence(text: str) -> str:
    """Return the body of the first fenced block, or ``text`` unchanged."""
    match = FENCE_RE.search(text)
    if match:
        return match.group(1).strip()
    return text


def find_json_object(text: str) -> str:
    """Return the first balanced top-level ``{...}`` span in ``text``.

    Braces inside JSON strings are ignored, so advice text containing code
    does not end the object early.
    """
    start = text.find("{")
    if start < 0:
        raise NoActionableContent("no JSON object in response")

    depth = 0
    in_string = False
    escaped = False
    for index in range(start, len(text)):
        char = text[index]
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue
        if char == '"':
            in_string = True
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return text[start : index + 1]
    raise NoActionableContent("unbalanced JSON object in response")


def _required(payload: dict, key: str) -> str:
    value = payload.get(key)
    if not isinstance(value, str) or not value.strip():
        raise NoActionableContent(f"missing required field {key!r}")
    return value.strip()


def _load_object(text: str) -> dict:
    try:
        payload: Any = json.loads(text)
    except json.JSONDecodeError as exc:
        raise NoActionableContent(f"invalid JSON: {exc}") from exc
    if not isinstance(payload, dict):
        raise NoActionableContent("JSON value is not an object")
    return payload


def parse_section_response(
    raw: str, source: str, section: Optional[str] = None
) -> Optional[RawExtractionResult]:
    """Parse a single-object response; ``None`` when nothing actionable came back."""
    text = raw.strip()
    if text.lower() == SKIP_SENTINEL:
        return None

    try:
        payload = _load_object(find_json_object(strip_code_fence(text)))
        trigger = _required(payload, "trigger")
        rule = _required(payload, "rule")
    except NoActionableContent as exc:
        LOGGER.debug("No record for %s (%s): %s", source, section, exc)
        return None

    example = payload.get("example")
    return RawExtractionResult(
        trigger_text=trigger,
        advice_text=rule,
        source_doc=source,
        example=example or None,
        source_section=section,
    )


def parse_jsonl_response(raw: str, source: str) -> List[RawExtractionResult]:
    """Parse a JSONL response with one ``{"text", "context"}`` object per line."""
    results: List[RawExtractionResult] = []
    for line in raw.split("\n"):
        trimmed = line.strip()
        if not trimmed or trimmed.startswith("```") or trimmed.startswith("#"):
            continue
        if not trimmed.startswith("{"):
            continue
        try:
            payload = _load_object(trimmed)
            text = _required(payload, "text")
            context = _required(payload, "context")
        except NoActionableContent as exc:
            LOGGER.debug("Skipping line from %s: %s", source, exc)
            continue
        results.append(RawExtractionResult(trigger_text=text, advice_text=context, source_doc=source))
    return results
