from __future__ import annotations

import pytest

from hydralearn.api import registry
from hydralearn.errors import ErrorKind, RpcError
from hydralearn.rpc import AccessTier, check_access


def _procedures(tier):
	return [p.name for p in registry if p.tier is tier]


@pytest.mark.parametrize(
	"tier, role, expected",
	[
		(AccessTier.PUBLIC, None, None),
		(AccessTier.PUBLIC, "user", None),
		(AccessTier.AUTHENTICATED, None, ErrorKind.UNAUTHORIZED),
		(AccessTier.AUTHENTICATED, "user", None),
		(AccessTier.TEACHER_OR_ADMIN, None, ErrorKind.UNAUTHORIZED),
		(AccessTier.TEACHER_OR_ADMIN, "user", ErrorKind.FORBIDDEN),
		(AccessTier.TEACHER_OR_ADMIN, "teacher", None),
		(AccessTier.TEACHER_OR_ADMIN, "admin", None),
		(AccessTier.ADMIN_ONLY, None, ErrorKind.UNAUTHORIZED),
		(AccessTier.ADMIN_ONLY, "user", ErrorKind.FORBIDDEN),
		(AccessTier.ADMIN_ONLY, "teacher", ErrorKind.FORBIDDEN),
		(AccessTier.ADMIN_ONLY, "admin", None),
	],
)
def test_check_access_matrix(make_user, tier, role, expected):
	user = make_user(role) if role else None
	if expected is None:
		check_access(tier, user)
		return
	with pytest.raises(RpcError) as exc:
		check_access(tier, user)
	assert exc.value.kind is expected


def _kind_of(call, name, user):
	try:
		call(name, {}, user)
	except RpcError as err:
		return err.kind
	return None


def test_admin_only_procedures_forbid_non_admins(call, make_user):
	names = _procedures(AccessTier.ADMIN_ONLY)
	assert {"report.list", "report.updateStatus", "notification.send"} <= set(names)
	for role in ("user", "teacher"):
		user = make_user(role)
		for name in names:
			assert _kind_of(call, name, user) is ErrorKind.FORBIDDEN, name


def test_admin_only_procedures_never_forbid_admin(call, make_user):
	admin = make_user("admin")
	for name in _procedures(AccessTier.ADMIN_ONLY):
		assert _kind_of(call, name, admin) is not ErrorKind.FORBIDDEN, name


def test_teacher_tier_forbids_plain_users(call, make_user):
	names = _procedures(AccessTier.TEACHER_OR_ADMIN)
	assert {"lesson.create", "lesson.generateWithAI", "ai.generateActivity"} <= set(names)
	user = make_user("user")
	for name in names:
		assert _kind_of(call, name, user) is ErrorKind.FORBIDDEN, name


def test_teacher_tier_passes_teachers_and_admins(call, make_user):
	for role in ("teacher", "admin"):
		user = make_user(role)
		for name in _procedures(AccessTier.TEACHER_OR_ADMIN):
			assert _kind_of(call, name, user) is not ErrorKind.FORBIDDEN, (role, name)


def test_anonymous_caller_is_unauthorized_on_every_gated_procedure(call):
	gated = [p.name for p in registry if p.tier is not AccessTier.PUBLIC]
	assert gated
	for name in gated:
		assert _kind_of(call, name, None) is ErrorKind.UNAUTHORIZED, name


def test_public_procedures_do_not_require_identity(call):
	for name in _procedures(AccessTier.PUBLIC):
		assert _kind_of(call, name, None) not in (ErrorKind.UNAUTHORIZED, ErrorKind.FORBIDDEN), name


def test_report_list_scenario(call, make_user):
	with pytest.raises(RpcError) as exc:
		call("report.list", {}, make_user("user"))
	assert exc.value.kind is ErrorKind.FORBIDDEN

	assert call("report.list", {}, make_user("admin")) == []


def test_guard_runs_before_input_validation(call, make_user, store):
	# Invalid payload from a plain user is rejected as FORBIDDEN, not BAD_INPUT
	with pytest.raises(RpcError) as exc:
		call("lesson.create", {"title": ""}, make_user("user"))
	assert exc.value.kind is ErrorKind.FORBIDDEN
	assert store.get_lessons_by_creator(1) == []


def test_denied_ai_call_never_reaches_backend(call, make_user, llm):
	with pytest.raises(RpcError):
		call("ai.generateActivity", {"subject": "Art", "topic": "Color", "ageGroup": "8-10", "activityType": "quiz"}, make_user("user"))
	assert llm.calls == []
