# medminder/errors.py
from fastapi import status


class MedminderError(Exception):
    """Base for errors that map to a client-visible status code."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(MedminderError):
    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundError(MedminderError):
    status_code = status.HTTP_404_NOT_FOUND


class ForbiddenError(MedminderError):
    status_code = status.HTTP_403_FORBIDDEN
