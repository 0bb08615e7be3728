"""Map domain errors to HTTP responses.

Registered as DRF's EXCEPTION_HANDLER. Only the user-safe message and the
violation list leave the process; anything that is not a DomainError falls
through to DRF's default handling.
"""

import structlog
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler

from events.domain.errors import (
    ConflictError,
    DomainError,
    DuplicateScanError,
    ForbiddenError,
    InvalidIdError,
    NotFoundError,
    StateViolationError,
    ValidationFailedError,
)
from events.handlers.serializers import PersonSerializer

logger = structlog.get_logger(__name__)

STATUS_BY_ERROR: tuple[tuple[type[DomainError], int], ...] = (
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (ConflictError, status.HTTP_409_CONFLICT),
    (ValidationFailedError, status.HTTP_400_BAD_REQUEST),
    (InvalidIdError, status.HTTP_400_BAD_REQUEST),
    (ForbiddenError, status.HTTP_403_FORBIDDEN),
    (StateViolationError, status.HTTP_409_CONFLICT),
)


def status_for(exc: DomainError) -> int:
    for error_type, http_status in STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return http_status
    return status.HTTP_400_BAD_REQUEST


def domain_exception_handler(exc, context):
    if not isinstance(exc, DomainError):
        return exception_handler(exc, context)

    body = {"code": exc.code.value, "message": exc.message, "errors": list(exc.violations)}
    if isinstance(exc, DuplicateScanError):
        body["participant"] = PersonSerializer(exc.participant).data
        body["ticket_id"] = exc.ticket_id

    http_status = status_for(exc)
    view = context.get("view")
    logger.info(
        "domain_error",
        code=exc.code.value,
        status=http_status,
        view=type(view).__name__ if view else None,
    )
    return Response(body, status=http_status)
