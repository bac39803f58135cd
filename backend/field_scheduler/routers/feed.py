"""Read-only exports: public snapshot for calendar feeds, and the admin change log."""
from typing import Any

from fastapi import APIRouter, Depends

from field_scheduler.routers.deps import get_context, get_state
from field_scheduler.services.context import Context, public_feed_data
from field_scheduler.services.state import AppState

router = APIRouter()


@router.get("/feed")
async def feed(state: AppState = Depends(get_state)) -> dict[str, list[dict[str, Any]]]:
    """Every active reservation, blackout, site event and holiday.

    Public: no identity is required, so calendar subscriptions can poll it.
    """
    snapshot = public_feed_data(state)
    return {kind: [record.to_json() for record in records] for kind, records in snapshot.items()}


@router.get("/logs")
async def logs(ctx: Context = Depends(get_context)) -> list[dict[str, Any]]:
    """This year's change log (admin only)."""
    return [entry.to_json() for entry in await ctx.get_logs()]
