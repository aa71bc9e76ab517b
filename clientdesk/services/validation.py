from __future__ import annotations

from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from clientdesk.core.errors import validation_error

ModelT = TypeVar("ModelT", bound=BaseModel)


def validate_payload(schema: type[ModelT], payload: Any) -> ModelT:
    """Validate an already sanitized payload, collecting every field error."""
    try:
        return schema.model_validate(payload)
    except ValidationError as exc:
        raise validation_error(exc.errors()) from exc
