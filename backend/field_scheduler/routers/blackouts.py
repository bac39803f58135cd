"""Blackout and site event API routes (admin-only changes)."""
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from field_scheduler.models.blackout import Blackout
from field_scheduler.models.site_event import SiteEvent
from field_scheduler.routers.deps import get_context
from field_scheduler.schemas.blackout import BlackoutCreate, BlackoutRemove, SiteEventCreate, SiteEventRemove
from field_scheduler.services.context import Context

router = APIRouter()
events_router = APIRouter()


@router.post("/", response_model=Blackout, response_model_exclude_none=True, status_code=status.HTTP_201_CREATED)
async def add_blackout(payload: BlackoutCreate, ctx: Context = Depends(get_context)):
    return await ctx.add_blackout(payload)


@router.get("/", response_model=list[Blackout], response_model_exclude_none=True)
async def list_blackouts(day: Optional[date] = Query(None, alias="date"), ctx: Context = Depends(get_context)):
    return ctx.list_blackouts(day)


@router.post("/remove", response_model=Blackout, response_model_exclude_none=True)
async def remove_blackout(payload: BlackoutRemove, ctx: Context = Depends(get_context)):
    return await ctx.remove_blackout(payload.date, payload.slot)


@events_router.post(
    "/", response_model=SiteEvent, response_model_exclude_none=True, status_code=status.HTTP_201_CREATED
)
async def add_site_event(payload: SiteEventCreate, ctx: Context = Depends(get_context)):
    return await ctx.add_site_event(payload)


@events_router.get("/", response_model=list[SiteEvent], response_model_exclude_none=True)
async def list_site_events(ctx: Context = Depends(get_context)):
    return ctx.list_site_events()


@events_router.post("/remove", response_model=SiteEvent, response_model_exclude_none=True)
async def remove_site_event(payload: SiteEventRemove, ctx: Context = Depends(get_context)):
    return await ctx.remove_site_event(payload.date)
