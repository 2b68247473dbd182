from __future__ import annotations
from pydantic import Field

from ..context import RequestContext
from ..rpc import AccessTier, ProcedureRouter
from ..schemas import CamelModel, LeaderboardEntryOut


router = ProcedureRouter("leaderboard")


class TopInput(CamelModel):
	limit: int = Field(default=100, ge=1, le=500)


class UserRankInput(CamelModel):
	user_id: int


@router.query("getTop", tier=AccessTier.PUBLIC, input=TopInput)
async def get_top(ctx: RequestContext, data: TopInput):
	return [LeaderboardEntryOut.model_validate(row) for row in ctx.store.get_leaderboard(data.limit)]


@router.query("getUserRank", tier=AccessTier.PUBLIC, input=UserRankInput)
async def get_user_rank(ctx: RequestContext, data: UserRankInput):
	# Users who have not earned anything yet have no row
	entry = ctx.store.get_user_leaderboard_rank(data.user_id)
	return LeaderboardEntryOut.model_validate(entry) if entry is not None else None
