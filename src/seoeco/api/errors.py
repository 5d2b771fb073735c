"""Errors raised by the backend API client."""

from __future__ import annotations

from typing import Optional


class ApiError(Exception):
    """A backend request failed or returned ``success: false``."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code

    @property
    def is_unauthorized(self) -> bool:
        return self.status_code == 401
