from __future__ import annotations


class AppError(Exception):
    """Base application error."""

    def __init__(self, detail: str = "") -> None:
        self.detail = detail
        super().__init__(detail)


class NetworkFailure(AppError):
    """Transport-level failure. Transient: the next poll tick retries."""


class AuthRequired(AppError):
    def __init__(self, detail: str = "Please login to continue") -> None:
        super().__init__(detail)


class ValidationError(AppError):
    pass


class ServerRejection(AppError):
    """Non-2xx response, or a body that does not match the expected schema."""

    def __init__(self, detail: str = "", status_code: int | None = None) -> None:
        super().__init__(detail)
        self.status_code = status_code
