from __future__ import annotations
import functools
import logging
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, TypeVar

from sqlalchemy import func, select
from sqlalchemy.exc import DBAPIError, IntegrityError
from sqlalchemy.orm import Session

from .errors import UpstreamUnavailable
from .models import (
	GameSession,
	InventoryItem,
	LeaderboardEntry,
	Lesson,
	Notification,
	Report,
	User,
	UserProgress,
)


logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


def _unavailable_on_connection_error(fn: F) -> F:
	@functools.wraps(fn)
	def wrapper(self: "Store", *args: Any, **kwargs: Any) -> Any:
		try:
			return fn(self, *args, **kwargs)
		except DBAPIError as err:
			self.db.rollback()
			if isinstance(err, IntegrityError):
				raise
			logger.warning("Store call %s failed: %s", fn.__name__, err)
			raise UpstreamUnavailable("database unavailable") from err
	return wrapper  # type: ignore[return-value]


class Store:
	"""Data access for one request, bound to a single ORM session."""

	def __init__(self, db: Session, *, owner_open_id: Optional[str] = None) -> None:
		self.db = db
		self.owner_open_id = owner_open_id

	def _save(self, row: Any) -> Any:
		self.db.add(row)
		self.db.commit()
		self.db.refresh(row)
		return row

	# ---- users ----

	@_unavailable_on_connection_error
	def get_user_by_open_id(self, open_id: str) -> Optional[User]:
		return self.db.execute(select(User).where(User.open_id == open_id)).scalar_one_or_none()

	@_unavailable_on_connection_error
	def get_user_by_id(self, user_id: int) -> Optional[User]:
		return self.db.get(User, user_id)

	@_unavailable_on_connection_error
	def upsert_user(
		self,
		open_id: str,
		*,
		name: Optional[str] = None,
		email: Optional[str] = None,
		login_method: Optional[str] = None,
		role: Optional[str] = None,
		last_signed_in: Optional[datetime] = None,
	) -> User:
		"""Insert the identity for ``open_id`` or refresh the existing one.

		A concurrent insert for the same ``open_id`` loses on the unique
		constraint and is retried as an update, so exactly one row survives.
		"""
		if not open_id:
			raise ValueError("open_id is required for upsert")
		if role is None and self.owner_open_id and open_id == self.owner_open_id:
			role = "admin"
		fields: Dict[str, Any] = {"name": name, "email": email, "login_method": login_method, "role": role}
		updates = {k: v for k, v in fields.items() if v is not None}
		updates["last_signed_in"] = last_signed_in or datetime.utcnow()

		existing = self.get_user_by_open_id(open_id)
		if existing is None:
			try:
				return self._save(User(open_id=open_id, **updates))
			except IntegrityError:
				self.db.rollback()
				logger.info("Concurrent first login for %s; updating existing identity", open_id)
				existing = self.get_user_by_open_id(open_id)
				if existing is None:
					raise
		for key, value in updates.items():
			setattr(existing, key, value)
		return self._save(existing)

	@_unavailable_on_connection_error
	def update_user_profile(
		self,
		user_id: int,
		*,
		name: Optional[str] = None,
		hydra_head_avatar: Optional[str] = None,
	) -> Optional[User]:
		user = self.db.get(User, user_id)
		if user is None:
			return None
		if name is not None:
			user.name = name
		if hydra_head_avatar is not None:
			user.hydra_head_avatar = hydra_head_avatar
		return self._save(user)

	# ---- lessons ----

	@_unavailable_on_connection_error
	def create_lesson(self, **data: Any) -> Lesson:
		return self._save(Lesson(**data))

	@_unavailable_on_connection_error
	def get_lesson_by_id(self, lesson_id: int) -> Optional[Lesson]:
		return self.db.get(Lesson, lesson_id)

	@_unavailable_on_connection_error
	def get_published_lessons(self) -> List[Lesson]:
		stmt = select(Lesson).where(Lesson.is_published.is_(True)).order_by(Lesson.created_at.desc(), Lesson.id.desc())
		return list(self.db.execute(stmt).scalars())

	@_unavailable_on_connection_error
	def get_lessons_by_creator(self, creator_id: int) -> List[Lesson]:
		stmt = select(Lesson).where(Lesson.created_by_id == creator_id).order_by(Lesson.id.desc())
		return list(self.db.execute(stmt).scalars())

	# ---- progress ----

	@_unavailable_on_connection_error
	def get_user_progress(self, user_id: int) -> List[UserProgress]:
		stmt = select(UserProgress).where(UserProgress.user_id == user_id).order_by(UserProgress.lesson_id)
		return list(self.db.execute(stmt).scalars())

	@_unavailable_on_connection_error
	def get_lesson_progress(self, user_id: int, lesson_id: int) -> Optional[UserProgress]:
		stmt = select(UserProgress).where(UserProgress.user_id == user_id, UserProgress.lesson_id == lesson_id)
		return self.db.execute(stmt).scalar_one_or_none()

	@_unavailable_on_connection_error
	def update_user_progress(self, user_id: int, lesson_id: int, data: Dict[str, Any]) -> UserProgress:
		"""Upsert the progress row for (user, lesson) and refresh the leaderboard."""
		now = datetime.utcnow()
		completed = data.pop("completed", None)

		def apply(row: UserProgress) -> UserProgress:
			for key, value in data.items():
				setattr(row, key, value)
			row.last_activity_at = now
			if completed and row.completed_at is None:
				row.completed_at = now
			return self._save(row)

		row = self.get_lesson_progress(user_id, lesson_id)
		try:
			row = apply(row or UserProgress(user_id=user_id, lesson_id=lesson_id))
		except IntegrityError:
			# Another request created the row first; apply our changes to it
			self.db.rollback()
			row = apply(self.get_lesson_progress(user_id, lesson_id))
		self.refresh_leaderboard(user_id)
		return row

	# ---- leaderboard ----

	@_unavailable_on_connection_error
	def get_leaderboard(self, limit: int = 100) -> List[LeaderboardEntry]:
		stmt = select(LeaderboardEntry).order_by(LeaderboardEntry.total_xp.desc(), LeaderboardEntry.id).limit(limit)
		return list(self.db.execute(stmt).scalars())

	@_unavailable_on_connection_error
	def get_user_leaderboard_rank(self, user_id: int) -> Optional[LeaderboardEntry]:
		stmt = select(LeaderboardEntry).where(LeaderboardEntry.user_id == user_id)
		return self.db.execute(stmt).scalar_one_or_none()

	@_unavailable_on_connection_error
	def update_leaderboard(self, user_id: int, data: Dict[str, Any]) -> LeaderboardEntry:
		def apply(entry: LeaderboardEntry) -> LeaderboardEntry:
			for key, value in data.items():
				setattr(entry, key, value)
			return self._save(entry)

		entry = self.get_user_leaderboard_rank(user_id)
		try:
			entry = apply(entry or LeaderboardEntry(user_id=user_id))
		except IntegrityError:
			# Lost the race for the user's first leaderboard row
			self.db.rollback()
			entry = apply(self.get_user_leaderboard_rank(user_id))
		self._rerank()
		return entry

	def refresh_leaderboard(self, user_id: int) -> LeaderboardEntry:
		"""Recompute a user's leaderboard totals from their progress rows."""
		total_xp, completed, best_streak = self.db.execute(
			select(
				func.coalesce(func.sum(UserProgress.xp_earned), 0),
				func.count(UserProgress.completed_at),
				func.coalesce(func.max(UserProgress.streak), 0),
			).where(UserProgress.user_id == user_id)
		).one()
		user = self.db.get(User, user_id)
		if user is not None:
			user.xp_points = int(total_xp)
			self.db.commit()
		return self.update_leaderboard(
			user_id,
			{"total_xp": int(total_xp), "lessons_completed": int(completed), "current_streak": int(best_streak)},
		)

	def _rerank(self) -> None:
		entries = self.db.execute(
			select(LeaderboardEntry).order_by(LeaderboardEntry.total_xp.desc(), LeaderboardEntry.id)
		).scalars()
		for position, entry in enumerate(entries, start=1):
			entry.rank = position
		self.db.commit()

	# ---- reports ----

	@_unavailable_on_connection_error
	def create_report(self, **data: Any) -> Report:
		return self._save(Report(**data))

	@_unavailable_on_connection_error
	def get_reports(self, status: Optional[str] = None) -> List[Report]:
		stmt = select(Report).order_by(Report.created_at.desc(), Report.id.desc())
		if status:
			stmt = stmt.where(Report.status == status)
		return list(self.db.execute(stmt).scalars())

	@_unavailable_on_connection_error
	def update_report_status(
		self,
		report_id: int,
		status: str,
		reviewed_by: Optional[int] = None,
		notes: Optional[str] = None,
	) -> Optional[Report]:
		report = self.db.get(Report, report_id)
		if report is None:
			return None
		report.status = status
		if reviewed_by:
			report.reviewed_by = reviewed_by
		if notes:
			report.notes = notes
		return self._save(report)

	# ---- game sessions ----

	@_unavailable_on_connection_error
	def create_game_session(self, **data: Any) -> GameSession:
		return self._save(GameSession(**data))

	@_unavailable_on_connection_error
	def get_game_session(self, session_id: int) -> Optional[GameSession]:
		return self.db.get(GameSession, session_id)

	@_unavailable_on_connection_error
	def update_game_session(self, session_id: int, data: Dict[str, Any]) -> Optional[GameSession]:
		session = self.db.get(GameSession, session_id)
		if session is None:
			return None
		for key, value in data.items():
			setattr(session, key, value)
		return self._save(session)

	# ---- inventory ----

	@_unavailable_on_connection_error
	def get_user_inventory(self, user_id: int) -> List[InventoryItem]:
		stmt = select(InventoryItem).where(InventoryItem.user_id == user_id).order_by(InventoryItem.id)
		return list(self.db.execute(stmt).scalars())

	@_unavailable_on_connection_error
	def add_inventory_item(self, user_id: int, **data: Any) -> InventoryItem:
		return self._save(InventoryItem(user_id=user_id, **data))

	# ---- notifications ----

	@_unavailable_on_connection_error
	def create_notification(self, user_id: int, **data: Any) -> Notification:
		return self._save(Notification(user_id=user_id, **data))

	@_unavailable_on_connection_error
	def get_user_notifications(self, user_id: int) -> List[Notification]:
		stmt = (
			select(Notification)
			.where(Notification.user_id == user_id)
			.order_by(Notification.created_at.desc(), Notification.id.desc())
		)
		return list(self.db.execute(stmt).scalars())

	@_unavailable_on_connection_error
	def get_notification(self, notification_id: int) -> Optional[Notification]:
		return self.db.get(Notification, notification_id)

	@_unavailable_on_connection_error
	def mark_notification_as_read(self, notification_id: int) -> Optional[Notification]:
		notification = self.db.get(Notification, notification_id)
		if notification is None:
			return None
		notification.is_read = True
		return self._save(notification)
