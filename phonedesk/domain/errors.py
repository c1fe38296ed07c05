"""Domain error taxonomy.

Every failure of a lifecycle operation is one of four kinds. The kind decides
the HTTP status the API layer answers with.
"""

from enum import Enum


class ErrorKind(str, Enum):
    NOT_FOUND = "not_found"
    INVALID_STATE = "invalid_state"
    VALIDATION = "validation"
    STORE = "store"


HTTP_STATUS_BY_KIND: dict[ErrorKind, int] = {
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.INVALID_STATE: 400,
    ErrorKind.VALIDATION: 400,
    ErrorKind.STORE: 500,
}


class DomainError(Exception):
    kind: ErrorKind = ErrorKind.STORE

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    @property
    def http_status(self) -> int:
        return HTTP_STATUS_BY_KIND[self.kind]


class NotFoundError(DomainError):
    """Referenced assignment, device or distributor does not exist."""

    kind = ErrorKind.NOT_FOUND


class InvalidStateError(DomainError):
    """Current status or sub-status does not allow the requested transition."""

    kind = ErrorKind.INVALID_STATE


class ValidationError(DomainError):
    """Malformed input detected before touching the store."""

    kind = ErrorKind.VALIDATION


class StoreError(DomainError):
    kind = ErrorKind.STORE
