from __future__ import annotations
import json
import logging
from typing import Any, Optional

from fastapi import Depends, FastAPI, Request, Response
from fastapi.responses import JSONResponse, RedirectResponse
from fastapi.security import HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from .api import registry as default_registry
from .context import RequestContext, bearer_scheme, create_session_token, resolve_context, session_cookie_options
from .db import Database, get_db
from .errors import ErrorKind, RpcError, UpstreamUnavailable
from .gemini_client import GeminiClient, TextGenerator
from .oauth import OAuthClient, OAuthError
from .rpc import Registry, dispatch
from .settings import settings
from .store import Store


logger = logging.getLogger(__name__)


def configure_logging() -> None:
	logging.basicConfig(
		level=settings.log_level.upper(),
		format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
	)
	# httpx logs every request line at INFO
	logging.getLogger("httpx").setLevel(logging.WARNING)


def get_store(db: Session = Depends(get_db)) -> Store:
	return Store(db, owner_open_id=settings.owner_open_id)


def get_context(
	request: Request,
	response: Response,
	store: Store = Depends(get_store),
	credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> RequestContext:
	return resolve_context(request, response, store=store, llm=request.app.state.llm, credentials=credentials)


def create_app(
	*,
	database: Optional[Database] = None,
	llm: Optional[TextGenerator] = None,
	oauth: Optional[OAuthClient] = None,
	registry: Optional[Registry] = None,
) -> FastAPI:
	"""Build the API. Collaborators not passed in are created from settings at startup."""
	configure_logging()
	app = FastAPI(title="HydraLearn API")
	app.state.database = database or Database()
	app.state.llm = llm
	app.state.oauth = oauth
	app.state.registry = registry or default_registry

	@app.on_event("startup")
	async def startup_event():
		app.state.database.open()
		app.state.database.create_schema()
		if app.state.llm is None:
			app.state.llm = GeminiClient()
		if app.state.oauth is None:
			app.state.oauth = OAuthClient()
		logger.info("HydraLearn API started with %d procedures", len(app.state.registry))

	@app.on_event("shutdown")
	async def shutdown_event():
		for client in (app.state.llm, app.state.oauth):
			aclose = getattr(client, "aclose", None)
			if aclose is not None:
				await aclose()
		app.state.database.close()

	@app.exception_handler(RpcError)
	async def rpc_error_handler(request: Request, err: RpcError):
		return JSONResponse(status_code=err.status_code, content={"error": err.to_dict()})

	@app.exception_handler(UpstreamUnavailable)
	async def upstream_error_handler(request: Request, err: UpstreamUnavailable):
		# Reached when the store fails while resolving the caller's identity
		return await rpc_error_handler(request, RpcError(ErrorKind.UPSTREAM_UNAVAILABLE, str(err) or "upstream unavailable"))

	@app.get("/info")
	def info():
		return {"status": "ok", "gemini_configured": bool(settings.gemini_api_key)}

	@app.get("/api/trpc")
	def list_procedures():
		return {
			"procedures": [
				{"name": p.name, "tier": p.tier.value, "kind": p.kind}
				for p in app.state.registry
			]
		}

	@app.get("/api/trpc/{name}")
	async def call_query(name: str, request: Request, input: Optional[str] = None, ctx: RequestContext = Depends(get_context)):
		procedure = app.state.registry.get(name)
		if procedure is not None and procedure.kind != "query":
			raise RpcError(ErrorKind.BAD_INPUT, f"{name} is a mutation; use POST")
		raw = _parse_json(input) if input else None
		data = await dispatch(app.state.registry, name, raw, ctx)
		return {"result": {"data": data}}

	@app.post("/api/trpc/{name}")
	async def call_procedure(name: str, request: Request, ctx: RequestContext = Depends(get_context)):
		body = await request.body()
		raw = _parse_json(body) if body else None
		data = await dispatch(app.state.registry, name, raw, ctx)
		return {"result": {"data": data}}

	@app.get("/api/oauth/callback")
	async def oauth_callback(
		request: Request,
		code: Optional[str] = None,
		state: Optional[str] = None,
		store: Store = Depends(get_store),
	):
		if not code:
			raise RpcError(ErrorKind.BAD_INPUT, "code is required")
		client: OAuthClient = app.state.oauth
		try:
			access_token = await client.exchange_code(code, state=state)
			profile = await client.get_user_info(access_token)
			user = store.upsert_user(
				profile.open_id,
				name=profile.name,
				email=profile.email,
				login_method=profile.login_method,
			)
		except OAuthError as err:
			logger.info("OAuth callback rejected: %s", err)
			raise RpcError(ErrorKind.BAD_INPUT, "OAuth callback failed") from err
		except UpstreamUnavailable as err:
			logger.warning("OAuth callback upstream failure: %s", err)
			raise RpcError(ErrorKind.UPSTREAM_UNAVAILABLE, str(err)) from err
		token = create_session_token(user.open_id, name=user.name)
		redirect = RedirectResponse(url="/", status_code=302)
		redirect.set_cookie(
			settings.session_cookie_name,
			token,
			max_age=settings.access_token_expire_minutes * 60,
			**session_cookie_options(request),
		)
		return redirect

	return app


def _parse_json(raw: Any) -> Any:
	try:
		return json.loads(raw)
	except ValueError:
		raise RpcError(ErrorKind.BAD_INPUT, "input is not valid JSON") from None


app = create_app()
