"""DRF exception handler producing a single error envelope.

Every error response has the shape::

    {"type": "<CODE>", "errors": [{"code": "<CODE>", "detail": "..."}]}
"""

from __future__ import annotations

from typing import Any

import structlog
from rest_framework.response import Response
from rest_framework.views import exception_handler

from modules.core.exceptions import DomainError

logger = structlog.get_logger(__name__)


def domain_exception_handler(exc: Exception, context: dict[str, Any]) -> Response | None:
    if isinstance(exc, DomainError):
        log = logger.bind(error_code=exc.code, view=_view_name(context))
        if exc.status_code >= 500:
            log.error("api.domain_error", detail=exc.message)
        else:
            log.info("api.domain_error", detail=exc.message)
        return Response(
            {"type": exc.code, "errors": [exc.to_dict()]},
            status=exc.status_code,
        )

    response = exception_handler(exc, context)
    if response is None:
        return None

    code = getattr(exc, "default_code", "error")
    response.data = {
        "type": str(code).upper(),
        "errors": _flatten(response.data, str(code)),
    }
    return response


def _flatten(data: Any, code: str, field: str | None = None) -> list[dict[str, Any]]:
    if isinstance(data, dict):
        errors: list[dict[str, Any]] = []
        for key, value in data.items():
            nested_field = None if key in ("detail", "non_field_errors") else key
            errors.extend(_flatten(value, code, nested_field or field))
        return errors
    if isinstance(data, list):
        errors = []
        for value in data:
            errors.extend(_flatten(value, code, field))
        return errors
    error: dict[str, Any] = {
        "code": getattr(data, "code", code),
        "detail": str(data),
    }
    if field:
        error["field"] = field
    return [error]


def _view_name(context: dict[str, Any]) -> str:
    view = context.get("view")
    return type(view).__name__ if view is not None else ""
