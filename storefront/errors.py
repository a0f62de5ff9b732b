from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    INVALID_INPUT = "invalid_input"
    EMPTY_CART = "empty_cart"
    STORAGE_FAILURE = "storage_failure"
    NOT_READY = "not_ready"


# HTTP status each error kind maps to at the web boundary.
STATUS_CODES = {
    ErrorKind.INVALID_INPUT: 400,
    ErrorKind.EMPTY_CART: 400,
    ErrorKind.STORAGE_FAILURE: 500,
    ErrorKind.NOT_READY: 503,
}


class StoreError(Exception):
    """Base class for errors that carry a user-facing message."""

    kind: ErrorKind = ErrorKind.STORAGE_FAILURE
    default_message = "Internal error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    @property
    def status_code(self) -> int:
        return STATUS_CODES[self.kind]


class InvalidInput(StoreError):
    kind = ErrorKind.INVALID_INPUT
    default_message = "Invalid cart data"


class EmptyCart(StoreError):
    kind = ErrorKind.EMPTY_CART
    default_message = "Cart is empty"


class StorageFailure(StoreError):
    """A backing-store read or write failed. The message is safe to show to users."""

    kind = ErrorKind.STORAGE_FAILURE
    default_message = "Storage error"


class NotReady(StoreError):
    kind = ErrorKind.NOT_READY
    default_message = "not ready"
