"""Lenient JSON parsing for language-model output.

Models frequently wrap JSON in markdown fences, prepend prose, or leave a
trailing comma before a closing bracket.  :func:`parse_json_loose` applies a
single repair step for those cases; :func:`parse_model` then validates the
repaired object against a pydantic model and reports the outcome as a
:data:`~legal_intake.models.result.ParseResult` instead of raising.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from legal_intake.models.result import ParseFailure, Parsed, ParseResult

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)

_FENCED = re.compile(r"```(?:json)?\s*\n?(.*?)\n?```", re.DOTALL | re.IGNORECASE)
_OBJECT = re.compile(r"\{.*\}", re.DOTALL)
_TRAILING_COMMA = re.compile(r",(\s*[}\]])")


def repair_json_text(text: str) -> str:
    """Return the most plausible JSON object substring of ``text``.

    Steps: prefer the body of a fenced block, otherwise the outermost
    ``{...}`` span, then strip leftover fences and trailing commas.
    """
    fenced = _FENCED.search(text)
    if fenced:
        body = fenced.group(1)
    else:
        match = _OBJECT.search(text)
        body = match.group(0) if match else text
    body = body.replace("```json", "").replace("```", "")
    return _TRAILING_COMMA.sub(r"\1", body).strip()


def parse_json_loose(text: str) -> Any:
    """Parse ``text`` as JSON, retrying once after :func:`repair_json_text`.

    Raises:
        ValueError: if the text is not JSON even after repair.
    """
    try:
        return json.loads(text)
    except (TypeError, json.JSONDecodeError):
        pass
    try:
        return json.loads(repair_json_text(text))
    except json.JSONDecodeError as exc:
        raise ValueError(f"Unparseable model output: {exc.msg}") from exc


def parse_model(raw: str | dict, model_cls: type[M]) -> ParseResult:
    """Parse ``raw`` into ``model_cls``; never raises.

    ``raw`` may already be a decoded dict (e.g. a provider that returns JSON
    mode output).  On any decoding or schema problem a ``ParseFailure`` is
    returned with a short reason.
    """
    if isinstance(raw, dict):
        data: Any = raw
    else:
        try:
            data = parse_json_loose(raw)
        except ValueError as exc:
            return ParseFailure(reason=str(exc))

    if not isinstance(data, dict):
        return ParseFailure(reason=f"Expected a JSON object, got {type(data).__name__}")

    try:
        return Parsed(value=model_cls.model_validate(data))
    except PydanticValidationError as exc:
        logger.debug("Model output failed %s validation: %s", model_cls.__name__, exc)
        return ParseFailure(
            reason=f"{model_cls.__name__} validation failed ({exc.error_count()} errors)"
        )


def parse_object(raw: str | dict) -> ParseResult:
    """Parse ``raw`` into a plain dict without schema validation."""
    if isinstance(raw, dict):
        return Parsed(value=raw)
    try:
        data = parse_json_loose(raw)
    except ValueError as exc:
        return ParseFailure(reason=str(exc))
    if not isinstance(data, dict):
        return ParseFailure(reason=f"Expected a JSON object, got {type(data).__name__}")
    return Parsed(value=data)
