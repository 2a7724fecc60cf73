"""Workspace, Member and Project models."""

from __future__ import annotations

import secrets
from datetime import datetime, timezone
from typing import Literal
from uuid import uuid4

from sqlalchemy import UniqueConstraint
from sqlmodel import Field as SQLField
from sqlmodel import SQLModel

MemberRole = Literal["ADMIN", "MEMBER"]


class Workspace(SQLModel, table=True):
    """Top-level tenant owning projects, members and tasks."""

    __tablename__ = "workspace"

    id: str = SQLField(default_factory=lambda: str(uuid4()), primary_key=True)
    name: str
    user_id: str  # owner
    invite_code: str = SQLField(default_factory=lambda: secrets.token_urlsafe(6))
    created_at: datetime = SQLField(default_factory=lambda: datetime.now(timezone.utc))


class Member(SQLModel, table=True):
    """Grants a user access to a workspace."""

    __tablename__ = "member"
    __table_args__ = (UniqueConstraint("user_id", "workspace_id"),)

    id: str = SQLField(default_factory=lambda: str(uuid4()), primary_key=True)
    user_id: str = SQLField(foreign_key="user.id", index=True)
    workspace_id: str = SQLField(foreign_key="workspace.id", index=True)
    role: str = SQLField(default="MEMBER", sa_column_kwargs={"server_default": "MEMBER"})  # "ADMIN" | "MEMBER"
    created_at: datetime = SQLField(default_factory=lambda: datetime.now(timezone.utc))


class Project(SQLModel, table=True):
    """A project inside a workspace."""

    __tablename__ = "project"

    id: str = SQLField(default_factory=lambda: str(uuid4()), primary_key=True)
    name: str
    workspace_id: str = SQLField(foreign_key="workspace.id", index=True)
    created_at: datetime = SQLField(default_factory=lambda: datetime.now(timezone.utc))
