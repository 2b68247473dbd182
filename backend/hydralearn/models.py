from __future__ import annotations
from datetime import datetime
from sqlalchemy import Boolean, Column, DateTime, Enum, Float, Integer, JSON, String, Text, UniqueConstraint
from .db import Base


ROLES = ("user", "teacher", "admin")
DIFFICULTIES = ("beginner", "intermediate", "advanced")
REPORT_STATUSES = ("submitted", "reviewed", "resolved")
GAME_STATUSES = ("active", "completed", "cancelled")


class User(Base):
	__tablename__ = "users"
	id = Column(Integer, primary_key=True, autoincrement=True)
	# OAuth identifier returned from the login callback
	open_id = Column(String(64), nullable=False, unique=True, index=True)
	name = Column(Text, nullable=True)
	email = Column(String(320), nullable=True)
	login_method = Column(String(64), nullable=True)
	role = Column(Enum(*ROLES, name="user_role"), default="user", nullable=False)
	hydra_head_avatar = Column(String(255), nullable=True)
	xp_points = Column(Integer, default=0, nullable=False)
	wellness_streak = Column(Integer, default=0, nullable=False)
	profile_completed = Column(Boolean, default=False, nullable=False)
	created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
	updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
	last_signed_in = Column(DateTime, default=datetime.utcnow, nullable=False)


class Lesson(Base):
	__tablename__ = "lessons"
	id = Column(Integer, primary_key=True, autoincrement=True)
	created_by_id = Column(Integer, nullable=False, index=True)
	title = Column(String(255), nullable=False)
	description = Column(Text, nullable=True)
	subject = Column(String(100), nullable=True)
	age_group = Column(String(50), nullable=True)
	tone = Column(String(50), nullable=True)
	content = Column(JSON, nullable=True)
	media_links = Column(JSON, nullable=True)
	difficulty = Column(Enum(*DIFFICULTIES, name="lesson_difficulty"), default="beginner")
	is_published = Column(Boolean, default=False, nullable=False)
	created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
	updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)


class UserProgress(Base):
	__tablename__ = "user_progress"
	__table_args__ = (UniqueConstraint("user_id", "lesson_id", name="uq_progress_user_lesson"),)
	id = Column(Integer, primary_key=True, autoincrement=True)
	user_id = Column(Integer, nullable=False, index=True)
	lesson_id = Column(Integer, nullable=False)
	xp_earned = Column(Integer, default=0, nullable=False)
	completion_percentage = Column(Float, default=0.0, nullable=False)
	streak = Column(Integer, default=0, nullable=False)
	last_activity_at = Column(DateTime, default=datetime.utcnow, nullable=False)
	completed_at = Column(DateTime, nullable=True)
	created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
	updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)


class LeaderboardEntry(Base):
	__tablename__ = "leaderboard"
	id = Column(Integer, primary_key=True, autoincrement=True)
	user_id = Column(Integer, nullable=False, unique=True)
	rank = Column(Integer, nullable=True)
	total_xp = Column(Integer, default=0, nullable=False, index=True)
	lessons_completed = Column(Integer, default=0, nullable=False)
	current_streak = Column(Integer, default=0, nullable=False)
	last_updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)


class Report(Base):
	__tablename__ = "reports"
	id = Column(Integer, primary_key=True, autoincrement=True)
	# Null for anonymous reports
	user_id = Column(Integer, nullable=True)
	is_anonymous = Column(Boolean, default=False, nullable=False)
	report_type = Column(String(100), nullable=True)
	encrypted_content = Column(Text, nullable=True)
	status = Column(Enum(*REPORT_STATUSES, name="report_status"), default="submitted", nullable=False)
	reviewed_by = Column(Integer, nullable=True)
	notes = Column(Text, nullable=True)
	created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
	updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)


class GameSession(Base):
	__tablename__ = "game_sessions"
	id = Column(Integer, primary_key=True, autoincrement=True)
	game_type = Column(String(100), nullable=False)
	participants = Column(JSON, nullable=True)
	status = Column(Enum(*GAME_STATUSES, name="game_status"), default="active", nullable=False)
	winner = Column(Integer, nullable=True)
	scores = Column(JSON, nullable=True)
	created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
	completed_at = Column(DateTime, nullable=True)


class InventoryItem(Base):
	__tablename__ = "user_inventory"
	id = Column(Integer, primary_key=True, autoincrement=True)
	user_id = Column(Integer, nullable=False, index=True)
	item_id = Column(String(100), nullable=False)
	item_name = Column(String(255), nullable=False)
	item_type = Column(String(100), nullable=True)
	quantity = Column(Integer, default=1, nullable=False)
	acquired_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class Notification(Base):
	__tablename__ = "notifications"
	id = Column(Integer, primary_key=True, autoincrement=True)
	user_id = Column(Integer, nullable=False, index=True)
	title = Column(String(255), nullable=False)
	content = Column(Text, nullable=True)
	type = Column(String(50), nullable=True)
	is_read = Column(Boolean, default=False, nullable=False)
	created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
