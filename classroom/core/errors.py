"""
Domain errors raised by the classroom services.

Routers never build HTTP errors for these themselves: ``register_error_handlers``
maps every ``ClassroomError`` subclass to its status code in one place.
"""

import logging
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class ClassroomError(Exception):
    """Base class for every error the core reports to callers."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Request could not be completed"

    def __init__(self, message: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        self.message = message or self.default_message
        self.details = details or {}
        super().__init__(self.message)


class NotFound(ClassroomError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Item no longer exists"


class ValidationFailed(ClassroomError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid request"


class ContentRequired(ValidationFailed):
    default_message = "Submitted assignments must include a written response or file attachments."


class Conflict(ClassroomError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "Already done"


class AlreadyEnrolled(Conflict):
    default_message = "Already enrolled"


class AlreadyPrimaryTeacher(Conflict):
    default_message = "You are already the teacher of this class"


class AlreadyCoTeacher(Conflict):
    default_message = "You are already a co-teacher of this class"


class PermissionDenied(ClassroomError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Not allowed"


class DeletionFailed(ClassroomError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Could not delete class, try again"


async def _classroom_error_handler(request: Request, exc: ClassroomError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    body: Dict[str, Any] = {"detail": exc.message}
    if exc.details:
        body["details"] = exc.details
    return JSONResponse(status_code=exc.status_code, content=body)


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ClassroomError, _classroom_error_handler)
