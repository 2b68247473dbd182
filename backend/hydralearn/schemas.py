from __future__ import annotations
from datetime import datetime
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


Role = Literal["user", "teacher", "admin"]
Difficulty = Literal["beginner", "intermediate", "advanced"]
ReportStatus = Literal["submitted", "reviewed", "resolved"]
GameStatus = Literal["active", "completed", "cancelled"]


class CamelModel(BaseModel):
	"""Wire models speak camelCase; Python code uses snake_case."""

	model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class LessonSection(CamelModel):
	heading: str
	body: str


class LessonContent(CamelModel):
	lesson_content: Optional[str] = None
	objectives: Optional[List[str]] = None
	sections: Optional[List[LessonSection]] = None

	def to_column(self) -> Dict:
		return self.model_dump(by_alias=True, exclude_none=True)


class UserOut(CamelModel):
	id: int
	open_id: str
	name: Optional[str] = None
	email: Optional[str] = None
	login_method: Optional[str] = None
	role: Role
	hydra_head_avatar: Optional[str] = None
	xp_points: int
	wellness_streak: int
	profile_completed: bool
	created_at: datetime
	updated_at: datetime
	last_signed_in: datetime


class LessonOut(CamelModel):
	id: int
	created_by_id: int
	title: str
	description: Optional[str] = None
	subject: Optional[str] = None
	age_group: Optional[str] = None
	tone: Optional[str] = None
	content: Optional[LessonContent] = None
	media_links: Optional[List[str]] = None
	difficulty: Optional[Difficulty] = None
	is_published: bool
	created_at: datetime
	updated_at: datetime


class ProgressOut(CamelModel):
	id: int
	user_id: int
	lesson_id: int
	xp_earned: int
	completion_percentage: float
	streak: int
	last_activity_at: datetime
	completed_at: Optional[datetime] = None
	created_at: datetime
	updated_at: datetime


class LeaderboardEntryOut(CamelModel):
	id: int
	user_id: int
	rank: Optional[int] = None
	total_xp: int
	lessons_completed: int
	current_streak: int
	last_updated_at: datetime


class ReportOut(CamelModel):
	id: int
	user_id: Optional[int] = None
	is_anonymous: bool
	report_type: Optional[str] = None
	encrypted_content: Optional[str] = None
	status: ReportStatus
	reviewed_by: Optional[int] = None
	notes: Optional[str] = None
	created_at: datetime
	updated_at: datetime


class GameSessionOut(CamelModel):
	id: int
	game_type: str
	participants: Optional[List[int]] = None
	status: GameStatus
	winner: Optional[int] = None
	scores: Optional[Dict[str, float]] = None
	created_at: datetime
	completed_at: Optional[datetime] = None


class InventoryItemOut(CamelModel):
	id: int
	user_id: int
	item_id: str
	item_name: str
	item_type: Optional[str] = None
	quantity: int
	acquired_at: datetime


class NotificationOut(CamelModel):
	id: int
	user_id: int
	title: str
	content: Optional[str] = None
	type: Optional[str] = None
	is_read: bool
	created_at: datetime
