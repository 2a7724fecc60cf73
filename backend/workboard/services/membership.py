"""Workspace membership guard.

Every task operation goes through ``require_membership``; holding a
``MembershipGrant`` is proof the caller may act on that workspace.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlmodel import Session, select

from workboard.errors import Unauthorized
from workboard.models.workspace import Member, MemberRole

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MembershipGrant:
    """Capability for (user_id, workspace_id)."""

    user_id: str
    workspace_id: str
    role: MemberRole = "MEMBER"

    @property
    def is_admin(self) -> bool:
        return self.role == "ADMIN"


def find_membership(session: Session, user_id: str, workspace_id: str) -> Member | None:
    stmt = select(Member).where(Member.user_id == user_id, Member.workspace_id == workspace_id)
    return session.exec(stmt).first()


def require_membership(session: Session, user_id: str, workspace_id: str) -> MembershipGrant:
    """Return a grant for the caller or raise ``Unauthorized``."""
    member = find_membership(session, user_id, workspace_id)
    if member is None:
        logger.info("User %s denied access to workspace %s", user_id, workspace_id)
        raise Unauthorized()
    return MembershipGrant(user_id=user_id, workspace_id=workspace_id, role=member.role)
