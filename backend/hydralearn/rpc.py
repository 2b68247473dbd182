"""
Procedure registry, access guards and dispatch.

Every client call names a procedure (``namespace.procedure``). The dispatcher
resolves it, runs the access guard for the procedure's tier, validates the raw
input against the procedure's pydantic model and only then invokes the
handler. Anything that goes wrong comes back as an :class:`RpcError`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Iterator, List, Optional, Type

from fastapi.encoders import jsonable_encoder
from pydantic import BaseModel, ValidationError

from .context import RequestContext
from .errors import ErrorKind, RpcError, UpstreamUnavailable
from .models import User


logger = logging.getLogger(__name__)

Handler = Callable[[RequestContext, Any], Awaitable[Any]]


class AccessTier(str, Enum):
	PUBLIC = "public"
	AUTHENTICATED = "authenticated"
	TEACHER_OR_ADMIN = "teacher-or-admin"
	ADMIN_ONLY = "admin-only"


_TIER_ROLES: Dict[AccessTier, frozenset] = {
	AccessTier.TEACHER_OR_ADMIN: frozenset({"teacher", "admin"}),
	AccessTier.ADMIN_ONLY: frozenset({"admin"}),
}


def check_access(tier: AccessTier, user: Optional[User]) -> None:
	"""Raise unless ``user`` may call a procedure of ``tier``.

	A missing identity is UNAUTHORIZED on every non-public tier; FORBIDDEN is
	reserved for a signed-in caller whose role is insufficient.
	"""
	if tier is AccessTier.PUBLIC:
		return
	if user is None:
		raise RpcError(ErrorKind.UNAUTHORIZED, "Please login")
	allowed = _TIER_ROLES.get(tier)
	if allowed is not None and user.role not in allowed:
		raise RpcError(ErrorKind.FORBIDDEN, "You do not have required permission")


@dataclass(frozen=True)
class Procedure:
	name: str
	tier: AccessTier
	handler: Handler
	input_model: Optional[Type[BaseModel]] = None
	kind: str = "query"

	def parse_input(self, raw_input: Any) -> Optional[BaseModel]:
		if self.input_model is None:
			return None
		try:
			return self.input_model.model_validate({} if raw_input is None else raw_input)
		except ValidationError as err:
			raise RpcError(ErrorKind.BAD_INPUT, _summarize(err)) from None


def _summarize(err: ValidationError) -> str:
	parts = []
	for item in err.errors():
		location = ".".join(str(p) for p in item.get("loc", ())) or "input"
		parts.append(f"{location}: {item.get('msg', 'invalid')}")
	return "; ".join(parts) or "invalid input"


class ProcedureRouter:
	"""Collects the procedures of one namespace, e.g. ``lesson``."""

	def __init__(self, namespace: str) -> None:
		self.namespace = namespace
		self.procedures: List[Procedure] = []

	def _register(
		self,
		name: str,
		tier: AccessTier,
		input_model: Optional[Type[BaseModel]],
		kind: str,
	) -> Callable[[Handler], Handler]:
		def decorator(fn: Handler) -> Handler:
			self.procedures.append(
				Procedure(
					name=f"{self.namespace}.{name}",
					tier=tier,
					handler=fn,
					input_model=input_model,
					kind=kind,
				)
			)
			return fn
		return decorator

	def query(self, name: str, *, tier: AccessTier, input: Optional[Type[BaseModel]] = None) -> Callable[[Handler], Handler]:
		return self._register(name, tier, input, "query")

	def mutation(self, name: str, *, tier: AccessTier, input: Optional[Type[BaseModel]] = None) -> Callable[[Handler], Handler]:
		return self._register(name, tier, input, "mutation")


class Registry:
	def __init__(self) -> None:
		self._procedures: Dict[str, Procedure] = {}

	def include_router(self, router: ProcedureRouter) -> None:
		for procedure in router.procedures:
			self.add(procedure)

	def add(self, procedure: Procedure) -> None:
		if procedure.name in self._procedures:
			raise ValueError(f"procedure already registered: {procedure.name}")
		self._procedures[procedure.name] = procedure

	def get(self, name: str) -> Optional[Procedure]:
		return self._procedures.get(name)

	def names(self) -> List[str]:
		return sorted(self._procedures)

	def __iter__(self) -> Iterator[Procedure]:
		return iter(self._procedures[name] for name in self.names())

	def __len__(self) -> int:
		return len(self._procedures)

	def __contains__(self, name: object) -> bool:
		return name in self._procedures


async def dispatch(registry: Registry, name: str, raw_input: Any, ctx: RequestContext) -> Any:
	"""Run procedure ``name`` for ``ctx`` and return its JSON-ready result."""
	procedure = registry.get(name)
	if procedure is None:
		raise RpcError(ErrorKind.NOT_FOUND, f"No procedure found on path \"{name}\"")
	try:
		check_access(procedure.tier, ctx.user)
	except RpcError as err:
		logger.info("Denied %s (%s) for user=%s", name, err.kind.value, ctx.user.id if ctx.user else None)
		raise
	data = procedure.parse_input(raw_input)
	try:
		result = await procedure.handler(ctx, data)
	except RpcError:
		raise
	except UpstreamUnavailable as err:
		logger.warning("Upstream unavailable during %s: %s", name, err)
		raise RpcError(ErrorKind.UPSTREAM_UNAVAILABLE, str(err) or "upstream unavailable") from err
	except Exception as err:
		logger.exception("Unhandled error in %s", name)
		raise RpcError(ErrorKind.INTERNAL, "Internal server error") from err
	return jsonable_encoder(result)
