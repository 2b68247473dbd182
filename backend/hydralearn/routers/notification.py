from __future__ import annotations
from typing import Optional

from pydantic import Field

from ..context import RequestContext
from ..errors import not_found
from ..rpc import AccessTier, ProcedureRouter
from ..schemas import CamelModel, NotificationOut


router = ProcedureRouter("notification")


class MarkAsReadInput(CamelModel):
	notification_id: int


class SendInput(CamelModel):
	user_id: int
	title: str = Field(min_length=1, max_length=255)
	content: Optional[str] = None
	type: Optional[str] = Field(default=None, max_length=50)


@router.query("list", tier=AccessTier.AUTHENTICATED)
async def list_notifications(ctx: RequestContext, _: None):
	return [NotificationOut.model_validate(row) for row in ctx.store.get_user_notifications(ctx.user.id)]


@router.mutation("markAsRead", tier=AccessTier.AUTHENTICATED, input=MarkAsReadInput)
async def mark_as_read(ctx: RequestContext, data: MarkAsReadInput):
	notification = ctx.store.get_notification(data.notification_id)
	# Someone else's notice is reported as missing
	if notification is None or notification.user_id != ctx.user.id:
		raise not_found("Notification")
	return NotificationOut.model_validate(ctx.store.mark_notification_as_read(notification.id))


@router.mutation("send", tier=AccessTier.ADMIN_ONLY, input=SendInput)
async def send(ctx: RequestContext, data: SendInput):
	if ctx.store.get_user_by_id(data.user_id) is None:
		raise not_found("User")
	notification = ctx.store.create_notification(
		data.user_id,
		title=data.title,
		content=data.content,
		type=data.type,
	)
	return NotificationOut.model_validate(notification)
