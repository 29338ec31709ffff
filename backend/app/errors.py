"""Exceptions shared by the stores and routers."""
from __future__ import annotations

from starlette.responses import Response


class StorageError(Exception):
    """Raised when the backing database cannot serve a read or write."""


class GuardRejected(Exception):
    """Raised by a guard pipeline; carries the response that ends the request."""

    def __init__(self, response: Response) -> None:
        super().__init__(response.status_code)
        self.response = response


__all__ = ["StorageError", "GuardRejected"]
