"""Exception hierarchy shared by the storefront services."""
from __future__ import annotations


class ServiceError(RuntimeError):
    """Raised when a storefront operation cannot be completed."""


class NotFoundError(ServiceError):
    """Raised when a requested store, product, or content item does not exist."""


class IntegrationError(RuntimeError):
    """Raised when a call to a third-party service fails."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


__all__ = ["IntegrationError", "NotFoundError", "ServiceError"]
