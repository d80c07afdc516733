# backend/app/core/errors.py

from fastapi import status


class AppError(Exception):
    """Base class for errors reported back to the caller."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class NotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND


class AuthenticationError(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED


class ForbiddenError(AppError):
    status_code = status.HTTP_403_FORBIDDEN


class FormValidationError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST


class InvalidStateError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST


class ConflictError(AppError):
    status_code = status.HTTP_409_CONFLICT


class StoreError(AppError):
    """The document store failed; never shown to the caller verbatim."""


class DuplicateKeyError(StoreError):
    """A unique index rejected the write."""
