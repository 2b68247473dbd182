"""
Shared fixtures: an in-memory SQLite database per test, a Store bound to it,
a scripted text generator and helpers to build request contexts for any role.
"""
from __future__ import annotations

import asyncio
from typing import Any, Dict, List, Optional

import pytest

from hydralearn.api import registry as app_registry
from hydralearn.context import RequestContext
from hydralearn.db import Database
from hydralearn.errors import UpstreamUnavailable
from hydralearn.rpc import dispatch
from hydralearn.store import Store


OWNER_OPEN_ID = "owner-open-id"


class FakeLLM:
	"""Records every transcript and answers with a canned reply."""

	def __init__(self, reply: str = "Generated text", fail: bool = False) -> None:
		self.reply = reply
		self.fail = fail
		self.calls: List[List[Dict[str, str]]] = []
		self.configured = True

	async def generate(self, messages: List[Dict[str, str]]) -> str:
		self.calls.append(messages)
		if self.fail:
			raise UpstreamUnavailable("text generation backend unavailable")
		return self.reply


@pytest.fixture
def database():
	db = Database("sqlite://").open()
	db.create_schema()
	yield db
	db.close()


@pytest.fixture
def store(database):
	session = database.session()
	yield Store(session, owner_open_id=OWNER_OPEN_ID)
	session.close()


@pytest.fixture
def llm():
	return FakeLLM()


@pytest.fixture
def make_user(store):
	counter = {"n": 0}

	def _make(role: str = "user", open_id: Optional[str] = None, name: Optional[str] = None):
		counter["n"] += 1
		oid = open_id or f"{role}-{counter['n']}"
		return store.upsert_user(oid, name=name or f"Test {role.title()}", role=role)

	return _make


@pytest.fixture
def ctx_for(store, llm):
	def _ctx(user=None) -> RequestContext:
		return RequestContext(store=store, llm=llm, user=user)

	return _ctx


@pytest.fixture
def call(ctx_for):
	"""Dispatch a procedure synchronously as ``user`` (None for anonymous)."""

	def _call(name: str, raw_input: Any = None, user=None):
		return asyncio.run(dispatch(app_registry, name, raw_input, ctx_for(user)))

	return _call
