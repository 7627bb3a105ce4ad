from __future__ import annotations

import uuid

from fastapi import HTTPException


class AppError(HTTPException):
    """Typed failure rendered by the app-level HTTPException handler.

    The dict detail carries `error_code`/`error_message`, so callers see the
    same payload shape as any other request failure.
    """

    status: int = 400
    error_code: str = "http_error"

    def __init__(self, message: str, *, headers: dict[str, str] | None = None) -> None:
        self.message = message
        super().__init__(
            status_code=self.status,
            detail={"error_code": self.error_code, "error_message": message},
            headers=headers,
        )

    def __str__(self) -> str:
        return self.message


class NotFoundError(AppError):
    status = 404
    error_code = "not_found"


class ValidationFailed(AppError):
    status = 400
    error_code = "validation_error"


class InsufficientCredits(AppError):
    status = 402
    error_code = "insufficient_credits"


class Forbidden(AppError):
    status = 403
    error_code = "forbidden"


class ServiceUnavailable(AppError):
    status = 503
    error_code = "service_unavailable"


def parse_uuid(value: str, *, what: str) -> uuid.UUID:
    try:
        return uuid.UUID(str(value))
    except ValueError as e:
        raise ValidationFailed(f"invalid {what}") from e
