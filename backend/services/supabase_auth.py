"""
Supabase Auth (GoTrue) REST client.

Token issuance, refresh and password recovery stay with Supabase; this
module only relays those calls. One pooled httpx.AsyncClient is owned by
the AppContext and closed on shutdown.
"""
import logging
from typing import Any, Optional

import httpx

logger = logging.getLogger(__name__)


class SupabaseAuthError(Exception):
    """Non-2xx answer from Supabase Auth (message is safe to show to users)."""

    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or f"Supabase Auth error ({response.status_code})"
    for key in ("msg", "message", "error_description", "error"):
        if isinstance(body, dict) and body.get(key):
            return str(body[key])
    return f"Supabase Auth error ({response.status_code})"


class SupabaseAuthClient:
    """Thin async wrapper over the GoTrue endpoints GigConnect uses."""

    def __init__(
        self,
        base_url: str,
        anon_key: str,
        service_role_key: str = "",
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.anon_key = anon_key
        self.service_role_key = service_role_key
        self._client = httpx.AsyncClient(
            base_url=f"{self.base_url}/auth/v1",
            timeout=timeout,
            transport=transport,
        )

    @property
    def configured(self) -> bool:
        return bool(self.base_url and self.anon_key)

    def _headers(self, access_token: Optional[str] = None) -> dict:
        headers = {"apikey": self.anon_key}
        if access_token:
            headers["Authorization"] = f"Bearer {access_token}"
        return headers

    async def _request(self, method: str, path: str, **kwargs) -> Any:
        if not self.configured:
            raise SupabaseAuthError("Authentication service is not configured", status_code=503)
        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            logger.error(f"Supabase Auth request failed: {method} {path}: {e}")
            raise SupabaseAuthError("Authentication service unavailable", status_code=502) from e

        if response.status_code >= 400:
            raise SupabaseAuthError(_error_message(response), status_code=response.status_code)
        if not response.content:
            return {}
        return response.json()

    # ── User-facing flows ───────────────────────────────────────────

    async def sign_up(self, email: str, password: str, data: Optional[dict] = None) -> dict:
        """Create an auth user. Returns the GoTrue user object."""
        body = await self._request(
            "POST",
            "/signup",
            headers=self._headers(),
            json={"email": email, "password": password, "data": data or {}},
        )
        # Depending on email-confirmation settings GoTrue answers with the
        # user itself or with {user, session}.
        return body.get("user") or body

    async def sign_in_with_password(self, email: str, password: str) -> dict:
        return await self._request(
            "POST",
            "/token",
            params={"grant_type": "password"},
            headers=self._headers(),
            json={"email": email, "password": password},
        )

    async def refresh_session(self, refresh_token: str) -> dict:
        return await self._request(
            "POST",
            "/token",
            params={"grant_type": "refresh_token"},
            headers=self._headers(),
            json={"refresh_token": refresh_token},
        )

    async def get_user(self, access_token: str) -> dict:
        return await self._request("GET", "/user", headers=self._headers(access_token))

    async def sign_out(self, access_token: str) -> None:
        await self._request("POST", "/logout", headers=self._headers(access_token))

    async def reset_password_for_email(self, email: str, redirect_to: str) -> None:
        await self._request(
            "POST",
            "/recover",
            params={"redirect_to": redirect_to},
            headers=self._headers(),
            json={"email": email},
        )

    async def update_password(self, access_token: str, password: str) -> dict:
        return await self._request(
            "PUT",
            "/user",
            headers=self._headers(access_token),
            json={"password": password},
        )

    # ── Admin ───────────────────────────────────────────────────────

    async def admin_delete_user(self, user_id: str) -> None:
        """Remove an auth user (service-role key required)."""
        if not self.service_role_key:
            raise SupabaseAuthError("Service role key is not configured", status_code=503)
        await self._request(
            "DELETE",
            f"/admin/users/{user_id}",
            headers={
                "apikey": self.service_role_key,
                "Authorization": f"Bearer {self.service_role_key}",
            },
        )

    async def aclose(self) -> None:
        await self._client.aclose()
