"""DRF exception handler producing the storefront error envelope.

Every error leaves the API as::

    {"success": false, "message": "...", "errors": [{"code", "detail", "attr"}]}
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import structlog
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = structlog.get_logger(__name__)


def envelope_exception_handler(exc: Exception, context: Dict[str, Any]) -> Optional[Response]:
    """Wrap DRF's default error response in the storefront envelope.

    Returns ``None`` for exceptions DRF does not handle so Django's
    500 machinery still runs for unexpected errors.
    """
    response = exception_handler(exc, context)
    if response is None:
        return None

    errors = flatten_errors(response.data)
    message = errors[0]["detail"] if errors else "Request failed."
    logger.info(
        "api.error_response",
        status_code=response.status_code,
        error_type=exc.__class__.__name__,
    )
    response.data = {
        "success": False,
        "message": message,
        "errors": errors,
    }
    return response


def error_response(message: str, status_code: int, code: str = "error") -> Response:
    """Build an envelope response for errors raised outside DRF (domain errors)."""
    return Response(
        {
            "success": False,
            "message": message,
            "errors": [{"code": code, "detail": message, "attr": None}],
        },
        status=status_code,
    )


def flatten_errors(data: Any, attr: Optional[str] = None) -> List[Dict[str, Any]]:
    if isinstance(data, dict):
        if list(data) == ["detail"]:
            return flatten_errors(data["detail"], attr)
        flat: List[Dict[str, Any]] = []
        for key, value in data.items():
            nested = key if attr is None else f"{attr}.{key}"
            flat.extend(flatten_errors(value, nested))
        return flat
    if isinstance(data, list):
        flat = []
        for index, value in enumerate(data):
            if isinstance(value, (dict, list)):
                nested = str(index) if attr is None else f"{attr}.{index}"
                flat.extend(flatten_errors(value, nested))
            else:
                flat.extend(flatten_errors(value, attr))
        return flat
    return [
        {
            "code": getattr(data, "code", "error"),
            "detail": str(data),
            "attr": attr,
        }
    ]
