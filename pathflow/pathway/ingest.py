"""Recover a pathway from free-text model output.

Stages, each tried only if the previous one failed:
1. trim, drop one leading/trailing code fence
2. json parse
3. straighten smart quotes, collapse whitespace, parse again
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from typing import Any

from ..errors import InvalidShape, MalformedPayload
from .types import Pathway

logger = logging.getLogger(__name__)

_FENCE_OPEN = re.compile(r"^```[ \t]*(json|javascript|js)?[ \t]*\n", re.IGNORECASE)
_FENCE_CLOSE = re.compile(r"\n?```$")
_SMART_DOUBLE = re.compile("[“”„‟″]")
_SMART_SINGLE = re.compile("[‘’‚‛′]")
_WS = re.compile(r"\s+")

PREVIEW_CHARS = 100


def strip_fence(text: str) -> str:
    t = (text or "").strip()
    t = _FENCE_OPEN.sub("", t, count=1)
    t = _FENCE_CLOSE.sub("", t, count=1)
    return t.strip()


def aggressive_clean(text: str) -> str:
    t = _SMART_DOUBLE.sub('"', text)
    t = _SMART_SINGLE.sub("'", t)
    return _WS.sub(" ", t).strip()


@dataclass
class ParsedPayload:
    data: dict[str, Any]
    raw: str
    cleaned: str
    aggressive: str | None = None


def parse_model_output(raw: str) -> ParsedPayload:
    cleaned = strip_fence(raw)
    aggressive: str | None = None
    try:
        parsed = json.loads(cleaned)
    except json.JSONDecodeError as first:
        logger.warning("initial parse failed (%s): %s...", first, cleaned[:PREVIEW_CHARS])
        aggressive = aggressive_clean(cleaned)
        try:
            parsed = json.loads(aggressive)
        except json.JSONDecodeError as second:
            logger.warning("aggressive parse failed (%s): %s...", second, aggressive[:PREVIEW_CHARS])
            raise MalformedPayload(str(second), raw=raw, cleaned=cleaned, aggressive=aggressive) from second

    validate_shape(parsed, raw=raw)
    return ParsedPayload(data=parsed, raw=raw, cleaned=cleaned, aggressive=aggressive)


def validate_shape(parsed: Any, *, raw: str | None = None) -> None:
    if not isinstance(parsed, dict):
        raise InvalidShape("Invalid JSON structure: expected an object with nodes and edges", parsed, raw=raw)
    nodes = parsed.get("nodes")
    if not isinstance(nodes, list) or not nodes:
        raise InvalidShape("Invalid JSON structure: missing or empty nodes array", parsed, raw=raw)
    if not isinstance(parsed.get("edges"), list):
        raise InvalidShape("Invalid JSON structure: missing or invalid edges array", parsed, raw=raw)


def clean(raw: str) -> Pathway:
    return Pathway.from_wire(parse_model_output(raw).data)
