"""HTTP client for the AI SEO Ecosystem backend.

Every call opens a short-lived ``httpx.AsyncClient``. Authenticated calls
send the stored bearer token; a 401 clears the stored credentials before the
error is raised.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Optional

import httpx

from ..models.api import AuthResponse, BlogRequest, ResultsResponse, User
from ..utils.sanitize import sanitize_error
from .errors import ApiError

if TYPE_CHECKING:
    from ..core.auth import TokenStore


def _json_or_empty(response: httpx.Response) -> dict:
    try:
        data = response.json()
    except ValueError:
        return {}
    return data if isinstance(data, dict) else {"data": data}


class ApiClient:
    def __init__(
        self,
        base_url: str,
        token_store: Optional["TokenStore"] = None,
        timeout: float = 30,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.token_store = token_store
        self.timeout = timeout
        self.transport = transport

    @property
    def root_url(self) -> str:
        """Server root; the API lives under ``/api``."""
        if self.base_url.endswith("/api"):
            return self.base_url[: -len("/api")]
        return self.base_url

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout, transport=self.transport)

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json: Optional[dict] = None,
        params: Optional[dict] = None,
        token: Optional[str] = None,
        authenticated: bool = True,
        fallback_error: str = "Request failed",
    ) -> dict:
        headers = {"Content-Type": "application/json"}
        bearer = token
        if bearer is None and authenticated and self.token_store is not None:
            bearer = self.token_store.token
        if bearer:
            headers["Authorization"] = f"Bearer {bearer}"

        url = path if path.startswith("http") else f"{self.base_url}{path}"
        try:
            async with self._client() as client:
                response = await client.request(method, url, json=json, params=params, headers=headers)
        except httpx.HTTPError as e:
            raise ApiError(f"Failed to connect to server: {sanitize_error(str(e))}") from e

        if response.status_code == 401 and bearer and self.token_store is not None:
            self.token_store.clear()

        data = _json_or_empty(response)
        if response.is_error:
            raise ApiError(data.get("error") or fallback_error, response.status_code)
        return data

    # ------------------------------------------------------------------
    # Auth
    # ------------------------------------------------------------------

    async def sign_in(self, email: str, password: str) -> AuthResponse:
        data = await self._request(
            "POST",
            "/auth/signin",
            json={"email": email, "password": password},
            authenticated=False,
            fallback_error="Login failed",
        )
        return self._auth_response(data, "Login failed")

    async def sign_up(self, email: str, password: str) -> AuthResponse:
        data = await self._request(
            "POST",
            "/auth/signup",
            json={"email": email, "password": password},
            authenticated=False,
            fallback_error="Signup failed",
        )
        return self._auth_response(data, "Signup failed")

    async def me(self, token: str) -> User:
        data = await self._request("GET", "/auth/me", token=token, fallback_error="Invalid or expired token")
        if not data.get("user"):
            raise ApiError("Invalid or expired token")
        return User.model_validate(data["user"])

    @staticmethod
    def _auth_response(data: dict, fallback: str) -> AuthResponse:
        if not data.get("token") or not data.get("user"):
            raise ApiError(data.get("error") or fallback)
        return AuthResponse.model_validate(data)

    # ------------------------------------------------------------------
    # Tools
    # ------------------------------------------------------------------

    async def keyword_research(self, keywords: list[str]) -> dict[str, Any]:
        cleaned = [k.strip() for k in keywords if k and k.strip()]
        if not cleaned:
            raise ValueError("Please enter at least one keyword")
        data = await self._request(
            "POST",
            "/keyword-research",
            json={"keywords": cleaned},
            fallback_error="Analysis failed",
        )
        if not data.get("success"):
            raise ApiError(data.get("error") or "Analysis failed")
        return data.get("data") or {}

    async def generate_blog(self, request: BlogRequest) -> dict[str, Any]:
        if not request.topic.strip():
            raise ValueError("Please enter a topic")
        data = await self._request(
            "POST",
            "/generate-blog",
            json=request.to_payload(),
            fallback_error="Generation failed",
        )
        if not data.get("success"):
            raise ApiError(data.get("error") or "Generation failed")
        return data.get("data") or {}

    # ------------------------------------------------------------------
    # Results history
    # ------------------------------------------------------------------

    async def list_results(self, url: Optional[str] = None, version: Optional[int] = None) -> ResultsResponse:
        params: dict[str, Any] = {}
        if url:
            params["url"] = url
        if version is not None:
            params["version"] = version
        data = await self._request(
            "GET", "/results", params=params or None, fallback_error="Failed to fetch results"
        )
        return ResultsResponse.model_validate(data)

    async def fetch_artifact(self, url: str) -> httpx.Response:
        """GET an externally hosted report artifact. Status is left to the caller."""
        try:
            async with self._client() as client:
                return await client.get(url, follow_redirects=True)
        except httpx.HTTPError as e:
            raise ApiError(f"Failed to fetch report: {sanitize_error(str(e))}") from e

    # ------------------------------------------------------------------
    # Server status
    # ------------------------------------------------------------------

    async def agents_status(self) -> Any:
        data = await self._request("GET", "/agents", authenticated=False)
        return data.get("agents", [])

    async def health(self) -> dict:
        return await self._request("GET", f"{self.root_url}/health", authenticated=False)
