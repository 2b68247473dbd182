from __future__ import annotations
from ..context import RequestContext
from ..rpc import AccessTier, ProcedureRouter


router = ProcedureRouter("system")


@router.query("health", tier=AccessTier.PUBLIC)
async def health(ctx: RequestContext, _: None):
	return {"ok": True, "llmConfigured": bool(getattr(ctx.llm, "configured", True))}
