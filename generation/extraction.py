"""
Structured output extraction

Models asked for JSON still wrap it in prose or markdown fences. ``extract_json``
recovers the payload with three strategies, in order:

1. a ```json fenced block (an unparsable block is final, no fall-through)
2. the whole text
3. the greedy span from the first "{" to the last "}"
"""
from __future__ import annotations

import json
import logging
import re
from typing import Any, Dict, List

from applykit.errors import AppError, ErrorCode

logger = logging.getLogger(__name__)

JSON_FENCE_PATTERN = re.compile(r"```json\s*([\s\S]*?)\s*```", re.IGNORECASE)

INVALID_BLOCK_MESSAGE = "Found a JSON block, but it contained invalid JSON."
NOT_FOUND_MESSAGE = "Could not find a valid JSON object in the model's response."


class ExtractionError(AppError):
    """
    Raised when no strategy recovers JSON from model output.

    ``details["strategies"]`` lists each strategy tried and why it failed.
    """

    default_code = ErrorCode.AI_INVALID_RESPONSE
    default_message = NOT_FOUND_MESSAGE

    def __init__(self, message: str, attempts: List[Dict[str, str]]):
        self.attempts = attempts
        super().__init__(message, details={"strategies": attempts})


def _describe(exc: json.JSONDecodeError) -> str:
    return f"{exc.msg} at line {exc.lineno} column {exc.colno}"


def extract_json(text: str) -> Any:
    """
    Return the JSON value embedded in ``text``.

    Raises:
        ExtractionError: If the fenced block is invalid or no JSON is found.
    """
    text = text or ""
    attempts: List[Dict[str, str]] = []

    fenced = JSON_FENCE_PATTERN.search(text)
    if fenced:
        try:
            return json.loads(fenced.group(1))
        except json.JSONDecodeError as exc:
            attempts.append({"strategy": "fenced_block", "reason": _describe(exc)})
            logger.warning("Invalid JSON inside fenced block: %s", _describe(exc))
            raise ExtractionError(INVALID_BLOCK_MESSAGE, attempts) from exc
    attempts.append({"strategy": "fenced_block", "reason": "no ```json block found"})

    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        attempts.append({"strategy": "whole_text", "reason": _describe(exc)})

    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end <= start:
        attempts.append({"strategy": "brace_span", "reason": "no {...} span found"})
    else:
        try:
            return json.loads(text[start : end + 1])
        except json.JSONDecodeError as exc:
            attempts.append({"strategy": "brace_span", "reason": _describe(exc)})

    logger.warning("No JSON recovered from model output. Preview: %s", text[:200])
    raise ExtractionError(NOT_FOUND_MESSAGE, attempts)
