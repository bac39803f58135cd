"""Reservation API routes. Rules are enforced by Context."""
from datetime import date

from fastapi import APIRouter, Depends, Query, status

from field_scheduler.models.reservation import Reservation
from field_scheduler.routers.deps import get_context
from field_scheduler.schemas.reservation import ReservationCreate, ReservationRemove
from field_scheduler.services.context import Context

router = APIRouter()


@router.post(
    "/", response_model=Reservation, response_model_exclude_none=True, status_code=status.HTTP_201_CREATED
)
async def add_reservation(payload: ReservationCreate, ctx: Context = Depends(get_context)):
    """Reserve a slot for a team (team members only, inside the booking window)."""
    return await ctx.add_reservation(payload)


@router.get("/", response_model=list[Reservation], response_model_exclude_none=True)
async def list_reservations(day: date = Query(..., alias="date"), ctx: Context = Depends(get_context)):
    """Active reservations for one day."""
    return ctx.list_reservations(day)


@router.post("/{reservation_id}/remove", response_model=Reservation, response_model_exclude_none=True)
async def remove_reservation(
    reservation_id: str,
    payload: ReservationRemove,
    ctx: Context = Depends(get_context),
):
    """Abandon a reservation (soft delete, team members only)."""
    return await ctx.remove_reservation(reservation_id, payload.reason)
