"""
Client for the external OAuth login server.

The web layer hands us the authorization code from the callback; we exchange
it for an access token and fetch the user's profile. Only the fields needed to
upsert an identity are returned.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx

from .errors import UpstreamUnavailable
from .settings import settings


@dataclass(frozen=True)
class OAuthUserInfo:
	open_id: str
	name: Optional[str] = None
	email: Optional[str] = None
	login_method: Optional[str] = None


class OAuthError(ValueError):
	"""The provider rejected the code or returned an unusable profile."""


class OAuthClient:
	def __init__(
		self,
		*,
		base_url: Optional[str] = None,
		app_id: Optional[str] = None,
		redirect_uri: Optional[str] = None,
		transport: Optional[httpx.AsyncBaseTransport] = None,
	) -> None:
		self.base_url = (base_url or settings.oauth_server_url or "").rstrip("/")
		self.app_id = app_id or settings.oauth_app_id or ""
		self.redirect_uri = redirect_uri or settings.oauth_redirect_uri
		self._client = httpx.AsyncClient(timeout=15, transport=transport)

	@property
	def token_endpoint(self) -> str:
		return f"{self.base_url}/oauth/token"

	@property
	def userinfo_endpoint(self) -> str:
		return f"{self.base_url}/oauth/userinfo"

	async def exchange_code(self, code: str, *, state: Optional[str] = None) -> str:
		"""Exchange an authorization code for an access token."""
		data = {
			"grant_type": "authorization_code",
			"code": code,
			"client_id": self.app_id,
			"redirect_uri": self.redirect_uri,
		}
		if state:
			data["state"] = state
		body = await self._request("POST", self.token_endpoint, data=data)
		token = body.get("access_token") or body.get("accessToken")
		if not token:
			raise OAuthError("token_exchange_failed")
		return str(token)

	async def get_user_info(self, access_token: str) -> OAuthUserInfo:
		body = await self._request("GET", self.userinfo_endpoint, headers={"Authorization": f"Bearer {access_token}"})
		open_id = body.get("openId") or body.get("sub")
		if not open_id:
			raise OAuthError("userinfo_missing_open_id")
		return OAuthUserInfo(
			open_id=str(open_id),
			name=body.get("name"),
			email=body.get("email"),
			login_method=body.get("loginMethod") or body.get("platform"),
		)

	async def _request(self, method: str, url: str, **kwargs: Any) -> Dict[str, Any]:
		if not self.base_url:
			raise UpstreamUnavailable("OAUTH_SERVER_URL is not configured")
		try:
			r = await self._client.request(method, url, **kwargs)
		except httpx.RequestError as err:
			raise UpstreamUnavailable("OAuth server unreachable") from err
		if r.status_code >= 500:
			raise UpstreamUnavailable(f"OAuth server error {r.status_code}")
		if r.status_code != 200:
			raise OAuthError(f"oauth_request_failed:{r.status_code}")
		try:
			body = r.json()
		except ValueError as err:
			raise OAuthError("oauth_invalid_json") from err
		if not isinstance(body, dict):
			raise OAuthError("oauth_invalid_json")
		return body

	async def aclose(self) -> None:
		await self._client.aclose()
