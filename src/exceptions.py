"""Domain exception hierarchy for structured error responses."""

from __future__ import annotations


class AppException(Exception):
    """Base exception for all domain errors.

    Subclasses set ``code`` and ``status_code`` at the class level; callers
    provide ``message`` and an optional ``details`` list.
    """

    code: str = "APP_ERROR"
    status_code: int = 500

    def __init__(self, message: str, details: list[dict] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or []


class NotFoundException(AppException):
    code = "NOT_FOUND"
    status_code = 404


class BadRequestException(AppException):
    code = "BAD_REQUEST"
    status_code = 400


class InvalidTransitionException(BadRequestException):
    """A requested status change is not an edge of the transition graph."""

    code = "INVALID_TRANSITION"

    def __init__(
        self,
        message: str,
        current_status: str | None = None,
        target_status: str | None = None,
        actor: str | None = None,
        allowed: list[str] | None = None,
    ) -> None:
        super().__init__(
            message,
            details=[
                {
                    "current_status": current_status,
                    "target_status": target_status,
                    "actor": actor,
                    "allowed": allowed or [],
                }
            ],
        )
        self.current_status = current_status
        self.target_status = target_status
        self.actor = actor
        self.allowed = allowed or []


class ConflictException(AppException):
    code = "CONFLICT"
    status_code = 409


class ForbiddenException(AppException):
    code = "FORBIDDEN"
    status_code = 403


class UnauthorizedException(AppException):
    code = "UNAUTHORIZED"
    status_code = 401


class ValidationException(AppException):
    code = "VALIDATION_ERROR"
    status_code = 422

