from __future__ import annotations

import pytest

from hydralearn.errors import ErrorKind, RpcError
from hydralearn.models import Lesson


LESSON = {
	"title": "Math 101",
	"subject": "Mathematics",
	"ageGroup": "10-12",
	"tone": "friendly",
}


def _lesson_count(store) -> int:
	return store.db.query(Lesson).count()


def test_teacher_creates_lesson(call, make_user):
	teacher = make_user("teacher")
	lesson = call("lesson.create", {**LESSON, "difficulty": "advanced", "mediaLinks": ["https://example.org/v"]}, teacher)
	assert lesson["createdById"] == teacher.id
	assert lesson["title"] == "Math 101"
	assert lesson["ageGroup"] == "10-12"
	assert lesson["difficulty"] == "advanced"
	assert lesson["mediaLinks"] == ["https://example.org/v"]
	assert lesson["isPublished"] is False


def test_create_ignores_spoofed_author(call, make_user, store):
	teacher = make_user("teacher")
	other = make_user("admin")
	lesson = call("lesson.create", {**LESSON, "createdById": other.id, "created_by_id": other.id}, teacher)
	assert lesson["createdById"] == teacher.id
	assert store.get_lesson_by_id(lesson["id"]).created_by_id == teacher.id


def test_empty_fields_rejected_before_any_write(call, make_user, store):
	teacher = make_user("teacher")
	with pytest.raises(RpcError) as exc:
		call("lesson.create", {"title": "", "subject": "", "ageGroup": "", "tone": ""}, teacher)
	assert exc.value.kind is ErrorKind.BAD_INPUT
	assert _lesson_count(store) == 0


def test_unknown_tone_and_difficulty_are_rejected(call, make_user):
	teacher = make_user("teacher")
	for bad in ({"tone": "sarcastic"}, {"difficulty": "expert"}):
		with pytest.raises(RpcError) as exc:
			call("lesson.create", {**LESSON, **bad}, teacher)
		assert exc.value.kind is ErrorKind.BAD_INPUT


def test_tone_is_normalized(call, make_user):
	lesson = call("lesson.create", {**LESSON, "tone": " Storytelling "}, make_user("teacher"))
	assert lesson["tone"] == "storytelling"


def test_structured_content_round_trips(call, make_user):
	content = {
		"lessonContent": "Fractions are parts of a whole.",
		"objectives": ["Name a fraction"],
		"sections": [{"heading": "Warm-up", "body": "Cut a pizza."}],
	}
	lesson = call("lesson.create", {**LESSON, "content": content, "isPublished": True}, make_user("teacher"))
	fetched = call("lesson.get", {"id": lesson["id"]})
	assert fetched["content"] == content


def test_list_only_returns_published(call, make_user):
	teacher = make_user("teacher")
	call("lesson.create", {**LESSON, "title": "Draft"}, teacher)
	call("lesson.create", {**LESSON, "title": "Live", "isPublished": True}, teacher)
	titles = [row["title"] for row in call("lesson.list")]
	assert titles == ["Live"]
	assert {row["title"] for row in call("lesson.listMine", None, teacher)} == {"Draft", "Live"}


def test_drafts_hidden_from_other_callers(call, make_user):
	author = make_user("teacher")
	draft = call("lesson.create", LESSON, author)
	assert call("lesson.get", {"id": draft["id"]}, author)["id"] == draft["id"]
	assert call("lesson.get", {"id": draft["id"]}, make_user("admin"))["id"] == draft["id"]
	for caller in (None, make_user("user"), make_user("teacher")):
		with pytest.raises(RpcError) as exc:
			call("lesson.get", {"id": draft["id"]}, caller)
		assert exc.value.kind is ErrorKind.NOT_FOUND


def test_missing_lesson_is_not_found(call):
	with pytest.raises(RpcError) as exc:
		call("lesson.get", {"id": 999})
	assert exc.value.kind is ErrorKind.NOT_FOUND


def test_generate_with_ai_persists_unpublished_draft(call, make_user, llm):
	llm.reply = "Objectives: ..."
	teacher = make_user("teacher")
	lesson = call(
		"lesson.generateWithAI",
		{
			"subject": "Science",
			"ageGroup": "8-10",
			"tone": "humorous",
			"topic": "Volcanoes",
			"difficulty": "advanced",
			"isPublished": True,
			"createdById": 12345,
		},
		teacher,
	)
	assert lesson["title"] == "Volcanoes - Science"
	assert lesson["difficulty"] == "intermediate"
	assert lesson["isPublished"] is False
	assert lesson["createdById"] == teacher.id
	assert lesson["content"]["lessonContent"] == "Objectives: ..."

	(messages,) = llm.calls
	assert messages[0]["role"] == "system"
	assert messages[1] == {
		"role": "user",
		"content": (
			'Create an engaging educational lesson for 8-10 year olds about "Volcanoes" in Science.\n'
			"Use a humorous tone. Include learning objectives, key concepts, activities, and assessment methods."
		),
	}


def test_generate_with_ai_backend_down(call, make_user, llm, store):
	llm.fail = True
	with pytest.raises(RpcError) as exc:
		call("lesson.generateWithAI", {"subject": "Art", "ageGroup": "5-7", "tone": "friendly", "topic": "Clay"}, make_user("teacher"))
	assert exc.value.kind is ErrorKind.UPSTREAM_UNAVAILABLE
	assert _lesson_count(store) == 0
