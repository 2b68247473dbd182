from __future__ import annotations
from .rpc import Registry
from .routers import ai, auth, game, inventory, leaderboard, lesson, notification, progress, report, system, user


ROUTERS = (
	system.router,
	auth.router,
	user.router,
	lesson.router,
	progress.router,
	leaderboard.router,
	report.router,
	game.router,
	inventory.router,
	notification.router,
	ai.router,
)


def build_registry() -> Registry:
	registry = Registry()
	for router in ROUTERS:
		registry.include_router(router)
	return registry


registry = build_registry()
