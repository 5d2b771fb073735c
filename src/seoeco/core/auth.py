"""Persisted credentials and the sign-in flow.

The token and user record are kept in a small JSON file. Both must be
present for a user to count as signed in.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import TYPE_CHECKING, Optional

import httpx

from ..api.errors import ApiError
from ..logging_config import get_logger
from ..models.api import AuthResponse, User

if TYPE_CHECKING:
    from ..api.client import ApiClient

logger = get_logger(__name__)


class TokenStore:
    """JSON file holding ``{"token": ..., "user": {...}}``."""

    def __init__(self, path: Path):
        self.path = Path(path)
        self.token: Optional[str] = None
        self.user: Optional[User] = None
        self.load()

    def load(self) -> None:
        self.token = None
        self.user = None
        if not self.path.exists():
            return
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
            token = data.get("token")
            user = data.get("user")
            if token and user:
                self.token = token
                self.user = User.model_validate(user)
        except Exception as e:
            logger.warning("Discarding unreadable credentials file %s: %s", self.path, e)
            self.clear()

    def save(self, token: str, user: User) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(
            json.dumps({"token": token, "user": user.model_dump()}, indent=2),
            encoding="utf-8",
        )
        self.token = token
        self.user = user

    def clear(self) -> None:
        self.token = None
        self.user = None
        if self.path.exists():
            self.path.unlink()

    @property
    def is_authenticated(self) -> bool:
        return bool(self.token) and self.user is not None


class AuthManager:
    """Sign in, sign up, verify and sign out against the backend."""

    def __init__(self, client: "ApiClient", store: TokenStore):
        self.client = client
        self.store = store

    @property
    def token(self) -> Optional[str]:
        return self.store.token

    @property
    def user(self) -> Optional[User]:
        return self.store.user

    @property
    def is_authenticated(self) -> bool:
        return self.store.is_authenticated

    async def login(self, email: str, password: str) -> User:
        response = await self.client.sign_in(email, password)
        return self._persist(response)

    async def signup(self, email: str, password: str) -> User:
        response = await self.client.sign_up(email, password)
        return self._persist(response)

    async def verify(self) -> bool:
        """Check the stored token is still valid. Clears it when it is not."""
        if not self.store.is_authenticated:
            return False
        try:
            user = await self.client.me(self.store.token)
        except (ApiError, httpx.HTTPError) as e:
            logger.warning("Token verification failed: %s", e)
            self.store.clear()
            return False
        self.store.save(self.store.token, user)
        return True

    def logout(self) -> None:
        self.store.clear()

    def _persist(self, response: AuthResponse) -> User:
        self.store.save(response.token, response.user)
        return response.user
