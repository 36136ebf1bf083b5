"""Typed, caller-recoverable business errors.

Services raise these; the API error handler turns them into JSON responses.
Anything else (connectivity, unexpected constraint failures) is left to
propagate untouched.
"""

from __future__ import annotations

from typing import Any


class AppError(Exception):
    """Base class for expected business-rule failures."""

    status_code: int = 500
    code: str = "INTERNAL_ERROR"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict[str, Any]:
        return {"detail": self.message, "code": self.code}


class ValidationError(AppError):
    """Business-rule violation: bad amount, insufficient balance, caps, ..."""

    status_code = 400
    code = "VALIDATION_ERROR"

    def __init__(self, message: str = "Validation failed", field_errors: list[dict[str, Any]] | None = None) -> None:
        super().__init__(message)
        self.field_errors = field_errors or []

    @classmethod
    def for_field(cls, message: str, field: str, detail: str) -> ValidationError:
        return cls(message, [{"field": field, "message": detail}])

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["field_errors"] = self.field_errors
        return data


class NotFoundError(AppError):
    """A user, gift, submission or other referenced row does not exist."""

    status_code = 404
    code = "NOT_FOUND"

    def __init__(self, resource: str = "Resource", identifier: object | None = None) -> None:
        if identifier:
            message = f"{resource} with identifier '{identifier}' was not found"
        else:
            message = f"{resource} not found"
        super().__init__(message)
        self.resource = resource


class ForbiddenError(AppError):
    """The caller may not perform this action (e.g. gifting yourself)."""

    status_code = 403
    code = "FORBIDDEN"

    def __init__(self, message: str = "Forbidden") -> None:
        super().__init__(message)
