"""User model (public profile only; credentials live with the auth provider)."""

from __future__ import annotations

from datetime import datetime, timezone
from uuid import uuid4

from sqlmodel import Field as SQLField
from sqlmodel import SQLModel


class User(SQLModel, table=True):
    __tablename__ = "user"

    id: str = SQLField(default_factory=lambda: str(uuid4()), primary_key=True)
    name: str
    email: str = SQLField(index=True, unique=True)
    created_at: datetime = SQLField(default_factory=lambda: datetime.now(timezone.utc))
