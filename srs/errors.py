from rest_framework import status
from rest_framework.exceptions import APIException


class SrsError(APIException):
    """Base for every error the engine surfaces; ``code`` is stable."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_code = "SRS_ERROR"
    default_detail = "Flashcard scheduling failed."

    @property
    def code(self):
        return self.default_code

    @property
    def message(self):
        return str(self.detail)


class NotFound(SrsError):
    status_code = status.HTTP_404_NOT_FOUND
    default_code = "NOT_FOUND"
    default_detail = "Flashcard not found."


class Forbidden(SrsError):
    status_code = status.HTTP_403_FORBIDDEN
    default_code = "FORBIDDEN"
    default_detail = "You do not have permission to review this flashcard."


class InvalidState(SrsError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_code = "INVALID_STATE"
    default_detail = "The review cannot be applied in the card's current state."


class Conflict(SrsError):
    status_code = status.HTTP_409_CONFLICT
    default_code = "CONFLICT"
    default_detail = "The flashcard was modified concurrently; retry the review."


class StorageFailure(SrsError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_code = "STORAGE_FAILURE"
    default_detail = "The review could not be saved. Please try again."


class ImmutableRecordError(Exception):
    """Raised when code tries to rewrite or delete a review record."""
