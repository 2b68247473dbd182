from __future__ import annotations
from typing import List, Literal, Optional

from pydantic import Field, field_validator

from ..context import RequestContext
from ..errors import not_found
from ..gemini_client import generate_text
from ..rpc import AccessTier, ProcedureRouter
from ..schemas import CamelModel, Difficulty, LessonContent, LessonOut


router = ProcedureRouter("lesson")

Tone = Literal["formal", "friendly", "humorous", "storytelling", "interactive"]

LESSON_SYSTEM_PROMPT = "You are an expert educational content creator. Generate structured lesson plans."


class LessonIdInput(CamelModel):
	id: int


class _ToneInput(CamelModel):
	tone: Tone

	@field_validator("tone", mode="before")
	@classmethod
	def _normalize_tone(cls, value):
		return value.strip().lower() if isinstance(value, str) else value


class LessonCreateInput(_ToneInput):
	title: str = Field(min_length=1, max_length=255)
	description: Optional[str] = None
	subject: str = Field(min_length=1, max_length=100)
	age_group: str = Field(min_length=1, max_length=50)
	content: Optional[LessonContent] = None
	media_links: Optional[List[str]] = None
	difficulty: Optional[Difficulty] = None
	is_published: bool = False


class GenerateLessonInput(_ToneInput):
	subject: str = Field(min_length=1, max_length=100)
	age_group: str = Field(min_length=1, max_length=50)
	topic: str = Field(min_length=1, max_length=200)


def build_lesson_prompt(data: GenerateLessonInput) -> str:
	return (
		f"Create an engaging educational lesson for {data.age_group} year olds about \"{data.topic}\" in {data.subject}.\n"
		f"Use a {data.tone} tone. Include learning objectives, key concepts, activities, and assessment methods."
	)


def _visible_to(lesson, user) -> bool:
	if lesson.is_published:
		return True
	if user is None:
		return False
	return lesson.created_by_id == user.id or user.role == "admin"


@router.query("list", tier=AccessTier.PUBLIC)
async def list_lessons(ctx: RequestContext, _: None):
	return [LessonOut.model_validate(row) for row in ctx.store.get_published_lessons()]


@router.query("get", tier=AccessTier.PUBLIC, input=LessonIdInput)
async def get_lesson(ctx: RequestContext, data: LessonIdInput):
	lesson = ctx.store.get_lesson_by_id(data.id)
	if lesson is None or not _visible_to(lesson, ctx.user):
		raise not_found("Lesson")
	return LessonOut.model_validate(lesson)


@router.query("listMine", tier=AccessTier.TEACHER_OR_ADMIN)
async def list_my_lessons(ctx: RequestContext, _: None):
	return [LessonOut.model_validate(row) for row in ctx.store.get_lessons_by_creator(ctx.user.id)]


@router.mutation("create", tier=AccessTier.TEACHER_OR_ADMIN, input=LessonCreateInput)
async def create_lesson(ctx: RequestContext, data: LessonCreateInput):
	fields = data.model_dump(exclude={"content"}, exclude_none=True)
	if data.content is not None:
		fields["content"] = data.content.to_column()
	# Authorship always comes from the session, never from the payload
	lesson = ctx.store.create_lesson(created_by_id=ctx.user.id, **fields)
	return LessonOut.model_validate(lesson)


@router.mutation("generateWithAI", tier=AccessTier.TEACHER_OR_ADMIN, input=GenerateLessonInput)
async def generate_with_ai(ctx: RequestContext, data: GenerateLessonInput):
	text = await generate_text(ctx.llm, build_lesson_prompt(data), LESSON_SYSTEM_PROMPT)
	lesson = ctx.store.create_lesson(
		created_by_id=ctx.user.id,
		title=f"{data.topic} - {data.subject}",
		subject=data.subject,
		age_group=data.age_group,
		tone=data.tone,
		content=LessonContent(lesson_content=text).to_column(),
		difficulty="intermediate",
		is_published=False,
	)
	return LessonOut.model_validate(lesson)
