"""Domain error taxonomy and the DRF exception handler.

Every module raises subclasses of these (``OrderNotFound(NotFound)``,
``InvalidOrderStatus(InvalidState)``...).  Services let them propagate so
the enclosing ``transaction.atomic`` block rolls back; the API layer renders
them through ``api_exception_handler`` in the standard error format::

    {
        "type": "client_error",
        "errors": [{"code": "not_found", "detail": "...", "attr": null}]
    }
"""

from __future__ import annotations

from typing import Any, Optional

import structlog
from django.core.exceptions import PermissionDenied as DjangoPermissionDenied
from django.http import Http404
from rest_framework import exceptions, status
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = structlog.get_logger(__name__)


class DomainError(Exception):
    """Base class for business rule violations."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_code = "domain_error"
    default_detail = "A business rule was violated."

    def __init__(self, detail: Optional[str] = None, *, code: Optional[str] = None):
        self.detail = detail or self.default_detail
        self.code = code or self.default_code
        super().__init__(self.detail)


class NotFound(DomainError):
    status_code = status.HTTP_404_NOT_FOUND
    default_code = "not_found"
    default_detail = "Resource not found."


class BadRequest(DomainError):
    default_code = "bad_request"
    default_detail = "The request violates a precondition."


class InvalidArgument(BadRequest):
    default_code = "invalid_argument"
    default_detail = "Invalid argument."


class InvalidState(BadRequest):
    """An operation is not legal from the entity's current state."""

    default_code = "invalid_state"
    default_detail = "Operation not allowed in the current state."


class SecurityViolation(DomainError):
    default_code = "security_violation"
    default_detail = "Signature verification failed."


class Conflict(DomainError):
    status_code = status.HTTP_409_CONFLICT
    default_code = "conflict"
    default_detail = "The request conflicts with existing data."


class ImmutableRecord(Conflict):
    """An append-only row was asked to change or disappear."""

    default_code = "immutable_record"


class InsufficientStock(DomainError):
    """Requested quantity exceeds what the ledger holds.

    ``available`` is the quantity that could be found (aggregated across
    depots for reservations, per record for adjustments).
    """

    status_code = status.HTTP_409_CONFLICT
    default_code = "insufficient_stock"
    default_detail = "Insufficient stock."

    def __init__(
        self,
        detail: Optional[str] = None,
        *,
        available: int = 0,
        requested: Optional[int] = None,
    ) -> None:
        self.available = available
        self.requested = requested
        super().__init__(detail)


# ---------------------------------------------------------------------------
# DRF integration
# ---------------------------------------------------------------------------


def api_exception_handler(exc: Exception, context: dict[str, Any]) -> Response:
    """Render domain and DRF errors as ``{"type", "errors"}`` payloads."""
    if isinstance(exc, DomainError):
        api_exc = exceptions.APIException(detail=exc.detail, code=exc.code)
        api_exc.status_code = exc.status_code
        exc = api_exc
    elif isinstance(exc, Http404):
        exc = exceptions.NotFound(*exc.args)
    elif isinstance(exc, DjangoPermissionDenied):
        exc = exceptions.PermissionDenied(*exc.args)

    response = exception_handler(exc, context)
    if response is None:
        view = context.get("view")
        logger.exception(
            "api.unhandled_exception",
            view=view.__class__.__name__ if view else None,
        )
        return Response(
            {
                "type": "server_error",
                "errors": [
                    {
                        "code": "error",
                        "detail": "A server error occurred.",
                        "attr": None,
                    }
                ],
            },
            status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    if isinstance(exc, exceptions.ValidationError):
        error_type = "validation_error"
        errors = _flatten_errors(exc.detail)
    else:
        error_type = (
            "server_error" if response.status_code >= 500 else "client_error"
        )
        errors = [
            {
                "code": getattr(exc.detail, "code", None) or exc.default_code,
                "detail": str(exc.detail),
                "attr": None,
            }
        ]

    response.data = {"type": error_type, "errors": errors}
    return response


def _flatten_errors(detail: Any, attr: Optional[str] = None) -> list[dict[str, Any]]:
    if isinstance(detail, dict):
        flattened = []
        for key, value in detail.items():
            if key == "non_field_errors":
                child = attr
            else:
                child = f"{attr}.{key}" if attr else str(key)
            flattened.extend(_flatten_errors(value, child))
        return flattened
    if isinstance(detail, list):
        flattened = []
        for index, value in enumerate(detail):
            if isinstance(value, (dict, list)):
                child = f"{attr}.{index}" if attr else str(index)
                flattened.extend(_flatten_errors(value, child))
            else:
                flattened.extend(_flatten_errors(value, attr))
        return flattened
    return [
        {
            "code": getattr(detail, "code", None) or "invalid",
            "detail": str(detail),
            "attr": attr,
        }
    ]
