from __future__ import annotations
from typing import Optional

from pydantic import Field

from ..context import RequestContext
from ..errors import not_found
from ..rpc import AccessTier, ProcedureRouter
from ..schemas import CamelModel, UserOut


router = ProcedureRouter("user")


class UpdateProfileInput(CamelModel):
	# Only these two fields are client-editable; role/id are ignored if sent
	name: Optional[str] = Field(default=None, max_length=255)
	hydra_head_avatar: Optional[str] = Field(default=None, max_length=255)


@router.query("profile", tier=AccessTier.AUTHENTICATED)
async def profile(ctx: RequestContext, _: None):
	user = ctx.store.get_user_by_id(ctx.user.id)
	if user is None:
		raise not_found("User")
	return UserOut.model_validate(user)


@router.mutation("updateProfile", tier=AccessTier.AUTHENTICATED, input=UpdateProfileInput)
async def update_profile(ctx: RequestContext, data: UpdateProfileInput):
	user = ctx.store.update_user_profile(ctx.user.id, name=data.name, hydra_head_avatar=data.hydra_head_avatar)
	if user is None:
		raise not_found("User")
	return {"success": True, "user": UserOut.model_validate(user)}
