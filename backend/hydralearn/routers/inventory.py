from __future__ import annotations
from pydantic import Field

from ..context import RequestContext
from ..rpc import AccessTier, ProcedureRouter
from ..schemas import CamelModel, InventoryItemOut


router = ProcedureRouter("inventory")


class AddItemInput(CamelModel):
	item_id: str = Field(min_length=1, max_length=100)
	item_name: str = Field(min_length=1, max_length=255)
	item_type: str = Field(min_length=1, max_length=100)
	quantity: int = Field(default=1, ge=1)


@router.query("getItems", tier=AccessTier.AUTHENTICATED)
async def get_items(ctx: RequestContext, _: None):
	return [InventoryItemOut.model_validate(row) for row in ctx.store.get_user_inventory(ctx.user.id)]


@router.mutation("addItem", tier=AccessTier.AUTHENTICATED, input=AddItemInput)
async def add_item(ctx: RequestContext, data: AddItemInput):
	item = ctx.store.add_inventory_item(ctx.user.id, **data.model_dump())
	return InventoryItemOut.model_validate(item)
