import structlog
from rest_framework.exceptions import ValidationError
from rest_framework.views import exception_handler

from ..errors import SrsError

logger = structlog.get_logger()


def srs_exception_handler(exc, context):
    """Render every API error as ``{"error": {"code", "message"}}``."""
    response = exception_handler(exc, context)
    if response is None:
        return None

    if isinstance(exc, SrsError):
        code, message, details = exc.code, exc.message, None
    elif isinstance(exc, ValidationError):
        code, message, details = "VALIDATION_ERROR", "Invalid request data.", exc.detail
    else:
        code = str(getattr(exc, "default_code", "error")).upper()
        message, details = str(getattr(exc, "detail", exc)), None

    body = {"code": code, "message": message}
    if details is not None:
        body["details"] = details
    response.data = {"error": body}

    logger.info("api_error", code=code, status=response.status_code)
    return response
