"""Parsing of provider JSON output, with a single repair pass for truncated responses."""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

TRUNCATION_SUMMARY = "Partial analysis due to truncation"

_FENCE_OPEN_RE = re.compile(r"^```[a-zA-Z]*\s*")
_FENCE_CLOSE_RE = re.compile(r"\s*```$")
_TRAILING_COMMA_RE = re.compile(r",?\s*$")


@dataclass
class ParseResult:
    """Outcome of parsing one provider response; ``error`` is set instead of raising."""

    payload: Optional[Dict[str, Any]] = None
    repaired: bool = False
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.payload is not None and self.error is None


def strip_code_fences(text: str) -> str:
    raw = str(text or "").strip()
    if raw.startswith("```"):
        raw = _FENCE_OPEN_RE.sub("", raw, count=1)
        raw = _FENCE_CLOSE_RE.sub("", raw)
    return raw.strip()


def _as_object(parsed: Any, array_key: str) -> Optional[Dict[str, Any]]:
    if isinstance(parsed, dict):
        return parsed
    # some providers answer with the bare array
    if isinstance(parsed, list):
        return {array_key: parsed}
    return None


def repair_truncated_json(text: str, array_key: str = "prompts", terminal_key: str = "summary") -> ParseResult:
    """
    Best-effort repair of a response cut off mid-array.

    Keeps everything up to the last ``}`` and, when the terminal field never made
    it into the output, closes the open array and object. Items after the last
    complete object are lost. Responses that already end with ``}`` are not touched.
    """
    raw = str(text or "").rstrip()
    if raw.endswith("}"):
        return ParseResult(error="response is not truncated")
    if f'"{array_key}"' not in raw:
        return ParseResult(error=f'truncated response has no "{array_key}" array')

    last_brace = raw.rfind("}")
    if last_brace <= 0:
        return ParseResult(error="truncated response has no complete object")

    candidate = raw[: last_brace + 1]
    if f'"{terminal_key}"' not in candidate:
        candidate = _TRAILING_COMMA_RE.sub("", candidate) + f'], "{terminal_key}": "{TRUNCATION_SUMMARY}"}}'

    try:
        parsed = json.loads(candidate)
    except json.JSONDecodeError as exc:
        return ParseResult(error=f"repair failed: {exc.msg} at char {exc.pos}")

    payload = _as_object(parsed, array_key)
    if payload is None:
        return ParseResult(error="repaired response is not a JSON object")
    return ParseResult(payload=payload, repaired=True)


def parse_json_response(text: str, array_key: str, terminal_key: str = "summary") -> ParseResult:
    raw = strip_code_fences(text)
    if not raw:
        return ParseResult(error="empty response")

    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError as exc:
        if raw.endswith("}"):
            return ParseResult(error=f"invalid JSON: {exc.msg} at char {exc.pos}")
        logger.warning("Response may be truncated (%d chars), attempting repair", len(raw))
        return repair_truncated_json(raw, array_key=array_key, terminal_key=terminal_key)

    payload = _as_object(parsed, array_key)
    if payload is None:
        return ParseResult(error=f"expected a JSON object, got {type(parsed).__name__}")
    return ParseResult(payload=payload)


def parse_extraction_response(text: str) -> ParseResult:
    return parse_json_response(text, array_key="prompts", terminal_key="summary")


def parse_audit_response(text: str) -> ParseResult:
    return parse_json_response(text, array_key="issues", terminal_key="summary")
