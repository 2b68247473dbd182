from __future__ import annotations

import pytest

from hydralearn.errors import ErrorKind, RpcError


def test_named_report_keeps_author(call, make_user):
	student = make_user("user")
	report = call("report.create", {"reportType": "bullying", "encryptedContent": "c1ph3r"}, student)
	assert report["userId"] == student.id
	assert report["isAnonymous"] is False
	assert report["status"] == "submitted"


def test_anonymous_report_drops_author(call, make_user, store):
	student = make_user("user")
	report = call("report.create", {"reportType": "wellbeing", "encryptedContent": "c1ph3r", "isAnonymous": True}, student)
	assert report["userId"] is None
	assert report["isAnonymous"] is True
	row = store.get_reports()[0]
	assert row.user_id is None


def test_create_requires_content(call, make_user):
	with pytest.raises(RpcError) as exc:
		call("report.create", {"reportType": "wellbeing"}, make_user("user"))
	assert exc.value.kind is ErrorKind.BAD_INPUT


def test_admin_filters_and_reviews_reports(call, make_user):
	student = make_user("user")
	admin = make_user("admin")
	first = call("report.create", {"reportType": "a", "encryptedContent": "x"}, student)
	call("report.create", {"reportType": "b", "encryptedContent": "y"}, student)

	updated = call("report.updateStatus", {"reportId": first["id"], "status": "reviewed", "notes": "Called parents"}, admin)
	assert updated["status"] == "reviewed"
	assert updated["reviewedBy"] == admin.id
	assert updated["notes"] == "Called parents"

	assert [r["id"] for r in call("report.list", {"status": "reviewed"}, admin)] == [first["id"]]
	assert len(call("report.list", {}, admin)) == 2
	assert len(call("report.list", None, admin)) == 2


def test_illegal_status_is_bad_input(call, make_user):
	admin = make_user("admin")
	with pytest.raises(RpcError) as exc:
		call("report.updateStatus", {"reportId": 1, "status": "closed"}, admin)
	assert exc.value.kind is ErrorKind.BAD_INPUT
	with pytest.raises(RpcError) as exc:
		call("report.list", {"status": "closed"}, admin)
	assert exc.value.kind is ErrorKind.BAD_INPUT


def test_update_missing_report(call, make_user):
	with pytest.raises(RpcError) as exc:
		call("report.updateStatus", {"reportId": 404, "status": "resolved"}, make_user("admin"))
	assert exc.value.kind is ErrorKind.NOT_FOUND
