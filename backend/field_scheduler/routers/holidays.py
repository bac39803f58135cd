"""Holiday API routes."""
from fastapi import APIRouter, Depends, status

from field_scheduler.models.holiday import Holiday
from field_scheduler.routers.deps import get_context
from field_scheduler.schemas.holiday import HolidayCreate
from field_scheduler.services.context import Context

router = APIRouter()


@router.post("/", response_model=Holiday, response_model_exclude_none=True, status_code=status.HTTP_201_CREATED)
async def add_holiday(payload: HolidayCreate, ctx: Context = Depends(get_context)):
    """Add a holiday (admin only)."""
    return await ctx.add_holiday(payload)


@router.get("/", response_model=list[Holiday], response_model_exclude_none=True)
async def list_holidays(ctx: Context = Depends(get_context)):
    return ctx.get_holidays()


@router.post("/{holiday_id}/remove", response_model=Holiday, response_model_exclude_none=True)
async def remove_holiday(holiday_id: str, ctx: Context = Depends(get_context)):
    """Soft-delete a holiday (admin only)."""
    return await ctx.remove_holiday(holiday_id)
