"""Boundary helper for turning raw payloads into pydantic DTOs."""

from __future__ import annotations

from typing import Any, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from modules.core.exceptions import DomainValidationError

DTO = TypeVar("DTO", bound=BaseModel)


def parse_payload(dto_class: type[DTO], data: Any) -> DTO:
    """Validate *data* into *dto_class*.

    Pydantic failures are re-raised as ``DomainValidationError`` so callers
    only ever see the project's typed errors.  Every field problem is kept
    in ``details``.
    """
    try:
        return dto_class.model_validate(data)
    except PydanticValidationError as exc:
        errors = exc.errors(include_url=False, include_context=False, include_input=False)
        message = "; ".join(
            f"{'.'.join(str(part) for part in err['loc']) or 'payload'}: {err['msg']}"
            for err in errors
        )
        raise DomainValidationError(message, details=errors) from exc
