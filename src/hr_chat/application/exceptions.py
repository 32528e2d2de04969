from __future__ import annotations


class AppError(Exception):
    """Base application error."""

    code = "error"

    def __init__(self, detail: str = "") -> None:
        self.detail = detail
        super().__init__(detail)


class NotFoundError(AppError):
    code = "not_found"


class ForbiddenError(AppError):
    code = "forbidden"


class ValidationError(AppError):
    code = "validation_error"


class AuthError(AppError):
    """Bad or expired token. The connection is refused."""

    code = "auth_error"


class PersistenceError(AppError):
    code = "persistence_error"


class PersistenceTimeout(PersistenceError):
    code = "persistence_timeout"


class TransportError(AppError):
    """A single push to a single connection failed. Never surfaced to senders."""

    code = "transport_error"


class ConnectionClosed(TransportError):
    code = "connection_closed"
