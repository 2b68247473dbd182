from __future__ import annotations
from ..context import RequestContext
from ..rpc import AccessTier, ProcedureRouter
from ..schemas import UserOut


router = ProcedureRouter("auth")


@router.query("me", tier=AccessTier.PUBLIC)
async def me(ctx: RequestContext, _: None):
	# Anonymous callers get null rather than an error
	if ctx.user is None:
		return None
	return UserOut.model_validate(ctx.user)


@router.mutation("logout", tier=AccessTier.PUBLIC)
async def logout(ctx: RequestContext, _: None):
	ctx.clear_session_cookie()
	return {"success": True}
