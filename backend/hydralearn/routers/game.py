from __future__ import annotations
from datetime import datetime
from typing import Dict, List, Optional

from pydantic import Field

from ..context import RequestContext
from ..errors import ErrorKind, RpcError, not_found
from ..rpc import AccessTier, ProcedureRouter
from ..schemas import CamelModel, GameSessionOut


router = ProcedureRouter("game")


class StartSessionInput(CamelModel):
	game_type: str = Field(min_length=1, max_length=100)
	participants: List[int]


class EndSessionInput(CamelModel):
	session_id: int
	winner: Optional[int] = None
	scores: Optional[Dict[str, float]] = None


@router.mutation("startSession", tier=AccessTier.AUTHENTICATED, input=StartSessionInput)
async def start_session(ctx: RequestContext, data: StartSessionInput):
	session = ctx.store.create_game_session(game_type=data.game_type, participants=data.participants, status="active")
	return GameSessionOut.model_validate(session)


@router.mutation("endSession", tier=AccessTier.AUTHENTICATED, input=EndSessionInput)
async def end_session(ctx: RequestContext, data: EndSessionInput):
	session = ctx.store.get_game_session(data.session_id)
	if session is None:
		raise not_found("Game session")
	if session.status != "active":
		raise RpcError(ErrorKind.BAD_INPUT, f"Game session is already {session.status}")
	session = ctx.store.update_game_session(
		data.session_id,
		{
			"status": "completed",
			"winner": data.winner,
			"scores": data.scores,
			"completed_at": datetime.utcnow(),
		},
	)
	return GameSessionOut.model_validate(session)
