"""Custom exceptions for the kv_cookie_store package."""

from __future__ import annotations


class CookieStoreError(Exception):
    """Base exception for all cookie-store errors."""


class CookieValidationError(CookieStoreError):
    """Raised when a cookie cannot be written because it lacks a domain or path."""

    def __init__(
        self, cookie_key: str, message: str = "Domain and path must be specified."
    ) -> None:
        self.cookie_key = cookie_key
        super().__init__(f"Cookie '{cookie_key}' rejected: {message}")


class StoreError(CookieStoreError):
    """Raised when a store operation cannot be carried out."""

    def __init__(self, operation: str, detail: str = "") -> None:
        self.operation = operation
        msg = f"Store error during '{operation}'"
        if detail:
            msg += f": {detail}"
        super().__init__(msg)


class StoreUnavailableError(StoreError):
    """Raised when no key-value client was supplied to the adapter."""

    def __init__(self, operation: str) -> None:
        super().__init__(operation, "key-value client is not initialized")


class StoreConnectionError(CookieStoreError):
    """Raised when the initial connection to the key-value store fails.

    This is fatal: the adapter refuses to serve any further operation and
    the owner decides whether the process should keep running.
    """


class CookieStoreConfigError(CookieStoreError):
    """Raised when the store configuration is invalid."""

    def __init__(self, message: str) -> None:
        super().__init__(f"Cookie store misconfigured: {message}")


class CookieDecodeError(CookieStoreError):
    """Raised when a stored cookie record cannot be parsed back into a cookie."""

    def __init__(self, lookup_key: str, cookie_key: str) -> None:
        self.lookup_key = lookup_key
        self.cookie_key = cookie_key
        super().__init__(f"Stored cookie '{cookie_key}' under '{lookup_key}' is not a valid cookie")
