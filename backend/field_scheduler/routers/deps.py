"""Request-scoped dependencies shared by all routers."""
from typing import Optional

from fastapi import Depends, Request
from starlette.datastructures import Headers

from field_scheduler.schemas.user import AuthIdentity
from field_scheduler.services.context import Context
from field_scheduler.services.state import AppState

# Set by the auth proxy in front of the app after it has verified the session.
SUBJECT_HEADER = "x-auth-subject"
EMAIL_HEADER = "x-auth-email"
NAME_HEADER = "x-auth-name"
DISPLAY_NAME_HEADER = "x-auth-display-name"
IMAGE_HEADER = "x-auth-image"


def identity_from_headers(headers: Headers) -> Optional[AuthIdentity]:
    subject = headers.get(SUBJECT_HEADER)
    if not subject:
        return None
    return AuthIdentity(
        subject=subject,
        email=headers.get(EMAIL_HEADER),
        name=headers.get(NAME_HEADER),
        display_name=headers.get(DISPLAY_NAME_HEADER),
        image=headers.get(IMAGE_HEADER),
    )


def get_state(request: Request) -> AppState:
    return request.app.state.scheduler


async def get_context(request: Request, state: AppState = Depends(get_state)) -> Context:
    """Build the caller's Context, registering first-time users."""
    return await Context.create(
        state,
        identity_from_headers(request.headers),
        request.headers.get("user-agent", ""),
        request.client.host if request.client else "",
    )
