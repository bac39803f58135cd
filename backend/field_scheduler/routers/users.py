"""User, team membership and house team routes."""
from fastapi import APIRouter, Depends, status

from field_scheduler.models.user import UserEntry
from field_scheduler.routers.deps import get_context
from field_scheduler.schemas.user import HouseTeamCreate, TeamJoin, UserUpdate
from field_scheduler.services.context import Context

router = APIRouter()


@router.get("/me", response_model=UserEntry, response_model_exclude_none=True)
async def get_me(ctx: Context = Depends(get_context)):
    """The caller's own user record (created on first contact)."""
    return ctx.user


@router.post("/me/teams", response_model=UserEntry, response_model_exclude_none=True)
async def join_team(payload: TeamJoin, ctx: Context = Depends(get_context)):
    """Self-service registration onto an unclaimed house team."""
    return await ctx.add_team(payload.team)


@router.get("/", response_model=list[UserEntry], response_model_exclude_none=True)
async def list_users(ctx: Context = Depends(get_context)):
    """List all users (admin only)."""
    return ctx.get_users()


@router.patch("/{user_id}", response_model=UserEntry, response_model_exclude_none=True)
async def update_user(user_id: str, payload: UserUpdate, ctx: Context = Depends(get_context)):
    """Change a user's teams, disabled flag or display name (admin only)."""
    return await ctx.update_user(user_id, payload)


@router.post("/house-teams", response_model=list[int], status_code=status.HTTP_201_CREATED)
async def add_house_team(payload: HouseTeamCreate, ctx: Context = Depends(get_context)):
    return await ctx.add_house_team(payload.team)
