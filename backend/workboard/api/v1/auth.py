"""Session helper endpoints.

Sign-in itself belongs to the identity provider, which sets the session
cookie; this module only reports and clears the current session.
"""

from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends, Response
from sqlmodel import Session

from workboard.api.v1.envelope import CamelModel, Envelope
from workboard.config import settings
from workboard.db.database import get_session
from workboard.errors import NotFound
from workboard.middleware.auth import current_user_id
from workboard.models.user import User

router = APIRouter(prefix="/api/v1/auth", tags=["auth"])


class CurrentUserResponse(CamelModel):
    id: str
    name: str
    email: str
    created_at: datetime


@router.get("/current", response_model=Envelope[CurrentUserResponse])
async def current_user(
    user_id: str = Depends(current_user_id),
    session: Session = Depends(get_session),
) -> Envelope[CurrentUserResponse]:
    """Profile of the signed-in user."""
    user = session.get(User, user_id)
    if user is None:
        raise NotFound("User not found")
    return Envelope(data=CurrentUserResponse(
        id=user.id, name=user.name, email=user.email, created_at=user.created_at,
    ))


@router.post("/logout")
async def logout(response: Response) -> dict:
    response.delete_cookie(settings.session_cookie_name, path="/")
    return {"message": "Logged out"}
