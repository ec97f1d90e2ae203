"""Decodes model replies into a ``ModificationSet``.

Parsing never raises. Text that is not a JSON object yields a degraded result
whose ``response`` is the raw reply; malformed modifications are dropped one
by one and reported as warnings so the rest of the reply survives.
"""

from __future__ import annotations

from dataclasses import dataclass
import json
import logging
import re
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from app.schemas.modification import (
    MODIFICATION_KINDS,
    REQUIRED_MODIFICATION_KEYS,
    ModificationSet,
    modification_adapter,
)

logger = logging.getLogger(__name__)

_FENCE_PATTERN = re.compile(r"^```[a-zA-Z]*\s*\n?(.*?)\n?```$", re.DOTALL)


@dataclass(frozen=True)
class ParseDegraded:
    reason: str


@dataclass(frozen=True)
class ParseResult:
    modification_set: ModificationSet
    degraded: ParseDegraded | None = None

    @property
    def is_degraded(self) -> bool:
        return self.degraded is not None


def strip_markdown_fence(text: str) -> str:
    stripped = text.strip()
    match = _FENCE_PATTERN.match(stripped)
    if match:
        return match.group(1).strip()
    return stripped


def _degraded(raw_text: str, reason: str) -> ParseResult:
    logger.warning("Model reply could not be decoded (%s); returning it as free text", reason)
    return ParseResult(
        modification_set=ModificationSet(response=raw_text, modifications=[], conflicts=[], warnings=[]),
        degraded=ParseDegraded(reason=reason),
    )


def _string_list(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [item if isinstance(item, str) else json.dumps(item, default=str) for item in value if item is not None]


def _describe_validation_error(exc: PydanticValidationError) -> str:
    first = exc.errors()[0]
    location = ".".join(str(part) for part in first.get("loc", ()))
    return f"{location}: {first.get('msg')}" if location else str(first.get("msg"))


def _label(index: int, item: Any) -> str:
    if isinstance(item, dict) and item.get("id") not in (None, ""):
        return f"Modification {item['id']!r}"
    return f"Modification #{index + 1}"


def parse_model_response(raw_text: str) -> ParseResult:
    try:
        decoded = json.loads(strip_markdown_fence(raw_text or ""))
    except (json.JSONDecodeError, ValueError):
        return _degraded(raw_text, "invalid_json")
    if not isinstance(decoded, dict):
        return _degraded(raw_text, "not_an_object")

    warnings = _string_list(decoded.get("warnings"))
    conflicts = _string_list(decoded.get("conflicts"))
    response = decoded.get("response")
    if not isinstance(response, str):
        response = "" if response is None else str(response)

    raw_modifications = decoded.get("modifications")
    if raw_modifications is None:
        raw_modifications = []
    elif not isinstance(raw_modifications, list):
        warnings.append("Ignored 'modifications' because it is not a list.")
        raw_modifications = []

    modifications = []
    seen_ids: set[str] = set()
    for index, item in enumerate(raw_modifications):
        label = _label(index, item)
        if not isinstance(item, dict):
            warnings.append(f"{label} was dropped: it is not an object.")
            continue
        missing = [key for key in REQUIRED_MODIFICATION_KEYS if key not in item]
        if missing:
            warnings.append(f"{label} was dropped: missing required key(s) {', '.join(missing)}.")
            continue
        if item["type"] not in MODIFICATION_KINDS:
            warnings.append(f"{label} was dropped: unknown type {item['type']!r}.")
            continue
        try:
            modification = modification_adapter.validate_python(item)
        except PydanticValidationError as exc:
            warnings.append(f"{label} was dropped: {_describe_validation_error(exc)}.")
            continue
        if modification.id in seen_ids:
            warnings.append(f"{label} was dropped: duplicate id.")
            continue
        seen_ids.add(modification.id)
        modifications.append(modification)

    dropped = len(raw_modifications) - len(modifications)
    if dropped:
        logger.warning("Dropped %d of %d proposed modification(s)", dropped, len(raw_modifications))

    return ParseResult(
        modification_set=ModificationSet(
            response=response,
            modifications=modifications,
            conflicts=conflicts,
            warnings=warnings,
        )
    )
