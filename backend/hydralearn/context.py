from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from fastapi import Request, Response
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from .gemini_client import TextGenerator
from .models import User
from .settings import settings
from .store import Store


def _resolve_expiry(expires_delta: Optional[timedelta]) -> datetime:
	delta = expires_delta
	if delta is None:
		minutes = settings.access_token_expire_minutes
		delta = timedelta(minutes=minutes) if minutes > 0 else timedelta(days=30)
	now = datetime.now(timezone.utc)
	try:
		return now + delta
	except OverflowError:
		# Cap at far future but within datetime bounds
		return datetime.max.replace(tzinfo=timezone.utc)


def create_session_token(open_id: str, *, name: Optional[str] = None, expires_delta: Optional[timedelta] = None) -> str:
	to_encode: Dict[str, Any] = {"sub": open_id, "exp": _resolve_expiry(expires_delta)}
	if name:
		to_encode["name"] = name
	return jwt.encode(to_encode, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_session_token(token: Optional[str]) -> Optional[str]:
	"""Return the ``openId`` carried by a session token, or None if it is unusable."""
	if not token:
		return None
	try:
		payload = jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
	except JWTError:
		return None
	open_id = payload.get("sub")
	return open_id if isinstance(open_id, str) and open_id else None


bearer_scheme = HTTPBearer(auto_error=False)


def session_token_from(request: Request, credentials: Optional[HTTPAuthorizationCredentials] = None) -> Optional[str]:
	"""The session cookie wins over a bearer token when both are sent."""
	token = request.cookies.get(settings.session_cookie_name)
	if token:
		return token
	if credentials is not None and credentials.credentials:
		return credentials.credentials
	return None


def session_cookie_options(request: Optional[Request]) -> Dict[str, Any]:
	secure = settings.cookie_secure
	if request is not None and request.url.scheme == "https":
		secure = True
	return {
		"httponly": True,
		"path": "/",
		"samesite": "none" if secure else "lax",
		"secure": secure,
	}


@dataclass
class RequestContext:
	store: Store
	llm: TextGenerator
	user: Optional[User] = None
	request: Optional[Request] = None
	response: Optional[Response] = None
	meta: Dict[str, Any] = field(default_factory=dict)

	@property
	def authenticated(self) -> bool:
		return self.user is not None

	def clear_session_cookie(self) -> None:
		if self.response is None:
			return
		self.response.delete_cookie(settings.session_cookie_name, **session_cookie_options(self.request))


def resolve_context(
	request: Request,
	response: Response,
	*,
	store: Store,
	llm: TextGenerator,
	credentials: Optional[HTTPAuthorizationCredentials] = None,
) -> RequestContext:
	"""Build the per-call context; anonymous when session evidence is missing or bad.

	The identity is read from the store on every call so role changes apply to
	the very next request.
	"""
	user: Optional[User] = None
	open_id = decode_session_token(session_token_from(request, credentials))
	if open_id is not None:
		user = store.get_user_by_open_id(open_id)
	meta = {
		"client": request.client.host if request.client else None,
		"user_agent": request.headers.get("user-agent"),
	}
	return RequestContext(store=store, llm=llm, user=user, request=request, response=response, meta=meta)
