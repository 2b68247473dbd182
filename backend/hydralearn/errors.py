from __future__ import annotations
from enum import Enum
from typing import Any, Dict


class ErrorKind(str, Enum):
	UNAUTHORIZED = "UNAUTHORIZED"
	FORBIDDEN = "FORBIDDEN"
	BAD_INPUT = "BAD_INPUT"
	NOT_FOUND = "NOT_FOUND"
	UPSTREAM_UNAVAILABLE = "UPSTREAM_UNAVAILABLE"
	INTERNAL = "INTERNAL"


HTTP_STATUS: Dict[ErrorKind, int] = {
	ErrorKind.UNAUTHORIZED: 401,
	ErrorKind.FORBIDDEN: 403,
	ErrorKind.BAD_INPUT: 400,
	ErrorKind.NOT_FOUND: 404,
	ErrorKind.UPSTREAM_UNAVAILABLE: 503,
	ErrorKind.INTERNAL: 500,
}


class RpcError(Exception):
	"""The single error shape returned to RPC callers."""

	def __init__(self, kind: ErrorKind, message: str = "") -> None:
		super().__init__(message or kind.value)
		self.kind = kind
		self.message = message or kind.value

	@property
	def status_code(self) -> int:
		return HTTP_STATUS[self.kind]

	def to_dict(self) -> Dict[str, Any]:
		return {"kind": self.kind.value, "message": self.message}

	def __repr__(self) -> str:
		return f"RpcError({self.kind.value}, {self.message!r})"


class UpstreamUnavailable(Exception):
	"""The store or the text-generation backend could not serve the call."""


def not_found(what: str) -> RpcError:
	return RpcError(ErrorKind.NOT_FOUND, f"{what} not found")
