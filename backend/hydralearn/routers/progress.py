from __future__ import annotations
from typing import Optional

from pydantic import Field

from ..context import RequestContext
from ..rpc import AccessTier, ProcedureRouter
from ..schemas import CamelModel, ProgressOut


router = ProcedureRouter("progress")


class UpdateProgressInput(CamelModel):
	lesson_id: int
	xp_earned: Optional[int] = Field(default=None, ge=0)
	completion_percentage: Optional[float] = Field(default=None, ge=0, le=100)
	streak: Optional[int] = Field(default=None, ge=0)
	completed: Optional[bool] = None


@router.query("getUserProgress", tier=AccessTier.AUTHENTICATED)
async def get_user_progress(ctx: RequestContext, _: None):
	return [ProgressOut.model_validate(row) for row in ctx.store.get_user_progress(ctx.user.id)]


@router.mutation("updateProgress", tier=AccessTier.AUTHENTICATED, input=UpdateProgressInput)
async def update_progress(ctx: RequestContext, data: UpdateProgressInput):
	changes = data.model_dump(exclude={"lesson_id"}, exclude_none=True)
	row = ctx.store.update_user_progress(ctx.user.id, data.lesson_id, changes)
	return ProgressOut.model_validate(row)
