from __future__ import annotations
from typing import Iterator, Optional
from fastapi import Request
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker, declarative_base
from sqlalchemy.pool import StaticPool
from .settings import settings


DEFAULT_DATABASE_URL = "sqlite:///./hydralearn.db"

Base = declarative_base()


class Database:
	"""Owns the engine and session factory for one application instance.

	Constructed explicitly by the application lifespan (or a test) and handed
	to whoever needs sessions; nothing reaches it through module globals.
	"""

	def __init__(self, url: Optional[str] = None) -> None:
		self.url = url or settings.database_url or DEFAULT_DATABASE_URL
		self._engine: Optional[Engine] = None
		self._sessionmaker: Optional[sessionmaker] = None

	@property
	def engine(self) -> Engine:
		if self._engine is None:
			raise RuntimeError("Database is not open")
		return self._engine

	def open(self) -> "Database":
		if self._engine is not None:
			return self
		kwargs = {"future": True}
		if self.url.startswith("sqlite"):
			kwargs["connect_args"] = {"check_same_thread": False}
			# In-memory databases live inside a single connection
			if ":memory:" in self.url or self.url in ("sqlite://", "sqlite:///"):
				kwargs["poolclass"] = StaticPool
		self._engine = create_engine(self.url, **kwargs)
		self._sessionmaker = sessionmaker(autocommit=False, autoflush=False, bind=self._engine, future=True)
		return self

	def create_schema(self) -> None:
		# Import for side effect: registers every table on Base.metadata
		from . import models  # noqa: F401
		Base.metadata.create_all(bind=self.engine)

	def session(self) -> Session:
		if self._sessionmaker is None:
			raise RuntimeError("Database is not open")
		return self._sessionmaker()

	def close(self) -> None:
		if self._engine is not None:
			self._engine.dispose()
		self._engine = None
		self._sessionmaker = None


def get_db(request: Request) -> Iterator[Session]:
	database: Database = request.app.state.database
	db = database.session()
	try:
		yield db
	finally:
		db.close()
