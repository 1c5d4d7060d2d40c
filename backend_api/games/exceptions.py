from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler

from .engine.errors import AuthorizationError, ConflictError, GameError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)

_STATUS_BY_ERROR = {
    ValidationError: status.HTTP_400_BAD_REQUEST,
    NotFoundError: status.HTTP_404_NOT_FOUND,
    AuthorizationError: status.HTTP_403_FORBIDDEN,
    ConflictError: status.HTTP_409_CONFLICT,
}


def _status_for(exc: GameError) -> int:
    for error_cls, code in _STATUS_BY_ERROR.items():
        if isinstance(exc, error_cls):
            return code
    return status.HTTP_400_BAD_REQUEST


# PUBLIC_INTERFACE
def domain_exception_handler(exc: Exception, context: Dict[str, Any]) -> Optional[Response]:
    """DRF exception handler translating engine errors into JSON responses.

    Engine errors become {"error": message, "field": field-or-null} with
    400/404/403/409. Anything else is handed to DRF's default handler, which
    returns None for non-API exceptions so they surface as server errors.
    """
    if isinstance(exc, GameError):
        code = _status_for(exc)
        request = context.get("request")
        logger.info("%s on %s: %s", type(exc).__name__, getattr(request, "path", "?"), exc.message)
        return Response({"error": exc.message, "field": exc.field}, status=code)
    return exception_handler(exc, context)
