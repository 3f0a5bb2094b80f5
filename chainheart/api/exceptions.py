"""Map ledger errors onto HTTP responses."""

from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler

from chainheart.errors import (
    DuplicateKeyError,
    ExternalDependencyError,
    InvalidTransitionError,
    LedgerError,
    NotFoundError,
    ValidationError,
)
from chainheart.log import get_logger

logger = get_logger(__name__)

STATUS_BY_ERROR = (
    (ValidationError, status.HTTP_400_BAD_REQUEST),
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (DuplicateKeyError, status.HTTP_409_CONFLICT),
    (InvalidTransitionError, status.HTTP_409_CONFLICT),
    (ExternalDependencyError, status.HTTP_502_BAD_GATEWAY),
)


def status_for(exc: LedgerError) -> int:
    for error_class, code in STATUS_BY_ERROR:
        if isinstance(exc, error_class):
            return code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def ledger_exception_handler(exc, context):
    """DRF exception handler rendering ledger errors as ``{"error", "detail"}``."""
    if isinstance(exc, LedgerError):
        code = status_for(exc)
        if code >= 500:
            logger.error(f"{exc.kind} in {context.get('view').__class__.__name__}: {exc}")
        return Response({"error": exc.kind, "detail": str(exc)}, status=code)

    return exception_handler(exc, context)
