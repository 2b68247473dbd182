from __future__ import annotations
from typing import Optional

from pydantic import Field

from ..context import RequestContext
from ..errors import not_found
from ..rpc import AccessTier, ProcedureRouter
from ..schemas import CamelModel, ReportOut, ReportStatus


router = ProcedureRouter("report")


class CreateReportInput(CamelModel):
	report_type: str = Field(min_length=1, max_length=100)
	encrypted_content: str = Field(min_length=1)
	is_anonymous: bool = False


class ListReportsInput(CamelModel):
	status: Optional[ReportStatus] = None


class UpdateStatusInput(CamelModel):
	report_id: int
	status: ReportStatus
	notes: Optional[str] = None


@router.mutation("create", tier=AccessTier.AUTHENTICATED, input=CreateReportInput)
async def create_report(ctx: RequestContext, data: CreateReportInput):
	# Anonymous reports keep no author reference at all
	author_id = None if data.is_anonymous else ctx.user.id
	report = ctx.store.create_report(
		user_id=author_id,
		is_anonymous=data.is_anonymous,
		report_type=data.report_type,
		encrypted_content=data.encrypted_content,
	)
	return ReportOut.model_validate(report)


@router.query("list", tier=AccessTier.ADMIN_ONLY, input=ListReportsInput)
async def list_reports(ctx: RequestContext, data: ListReportsInput):
	return [ReportOut.model_validate(row) for row in ctx.store.get_reports(status=data.status)]


@router.mutation("updateStatus", tier=AccessTier.ADMIN_ONLY, input=UpdateStatusInput)
async def update_status(ctx: RequestContext, data: UpdateStatusInput):
	report = ctx.store.update_report_status(data.report_id, data.status, reviewed_by=ctx.user.id, notes=data.notes)
	if report is None:
		raise not_found("Report")
	return ReportOut.model_validate(report)
