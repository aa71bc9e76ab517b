from __future__ import annotations

import json
import logging
from typing import Any

from fastapi import Request

from clientdesk.core.errors import ApiError

_LOG = logging.getLogger("clientdesk.sanitizer")

# Ampersand goes first so entities produced below are not escaped twice.
_HTML_ESCAPES = (
    ("&", "&amp;"),
    ("<", "&lt;"),
    (">", "&gt;"),
    ('"', "&quot;"),
    ("'", "&#x27;"),
    ("/", "&#x2F;"),
)


def sanitize_string(value: Any) -> Any:
    if not isinstance(value, str):
        return value
    for raw, entity in _HTML_ESCAPES:
        value = value.replace(raw, entity)
    return value.strip()


def sanitize_value(value: Any) -> Any:
    if value is None:
        return None
    if isinstance(value, str):
        return sanitize_string(value)
    if isinstance(value, dict):
        return {key: sanitize_value(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [sanitize_value(item) for item in value]
    return value


def _processing_error() -> ApiError:
    return ApiError(500, "Input processing error", "Failed to process request input")


def sanitize_mapping(values) -> dict[str, Any]:
    try:
        return sanitize_value(dict(values))
    except Exception as exc:
        _LOG.error("Input sanitization error: %s", exc, exc_info=exc)
        raise _processing_error() from exc


async def read_sanitized_body(request: Request) -> Any:
    raw = await request.body()
    if not raw.strip():
        return {}
    try:
        payload = json.loads(raw)
    except (ValueError, UnicodeDecodeError, RecursionError) as exc:
        raise ApiError(400, "Invalid JSON body", "Request body must be valid JSON") from exc
    try:
        return sanitize_value(payload)
    except Exception as exc:
        _LOG.error("Input sanitization error: %s", exc, exc_info=exc)
        raise _processing_error() from exc
