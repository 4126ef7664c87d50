from __future__ import annotations

from typing import Optional


class DataFetchFailure(Exception):
    """Point fetch failed (transport error, non-2xx status or undecodable body)."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class AuthorizationFailure(DataFetchFailure):
    """Point fetch was refused with a 403-class response."""
