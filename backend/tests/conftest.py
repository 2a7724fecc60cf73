"""Shared test fixtures for Workboard backend tests."""

import os
import sys
from types import SimpleNamespace

import pytest

# Ensure backend is on the path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))
os.environ.setdefault("DATABASE_URL", "sqlite:///test.db")
os.environ.setdefault("SESSION_SECRET", "test-session-secret")

from sqlmodel import Session

from workboard.db.database import create_db_and_tables, engine
from workboard.models import Member, Project, User, Workspace


def seed_board(session: Session, *, projects: int = 1, members: int = 0) -> SimpleNamespace:
    """Create an owner, a workspace (owner is ADMIN), projects and extra members.

    Every call uses fresh ids, so tests sharing test.db never collide.
    """
    owner = User(name="Owner", email=f"owner-{os.urandom(6).hex()}@example.com")
    session.add(owner)
    session.commit()
    session.refresh(owner)

    workspace = Workspace(name="Board", user_id=owner.id)
    session.add(workspace)
    session.commit()
    session.refresh(workspace)

    session.add(Member(user_id=owner.id, workspace_id=workspace.id, role="ADMIN"))
    project_ids = []
    for index in range(projects):
        project = Project(name=f"Project {index}", workspace_id=workspace.id)
        session.add(project)
        session.commit()
        session.refresh(project)
        project_ids.append(project.id)

    member_ids = []
    for index in range(members):
        user = User(name=f"Member {index}", email=f"member-{os.urandom(6).hex()}@example.com")
        session.add(user)
        session.commit()
        session.refresh(user)
        session.add(Member(user_id=user.id, workspace_id=workspace.id))
        member_ids.append(user.id)
    session.commit()

    return SimpleNamespace(
        user_id=owner.id,
        workspace_id=workspace.id,
        project_id=project_ids[0] if project_ids else None,
        project_ids=project_ids,
        member_ids=member_ids,
    )


def seed_outsider(session: Session) -> str:
    """A user with no memberships."""
    user = User(name="Outsider", email=f"outsider-{os.urandom(6).hex()}@example.com")
    session.add(user)
    session.commit()
    session.refresh(user)
    return user.id


@pytest.fixture
def session():
    """Database session on test.db with all tables created."""
    create_db_and_tables()
    with Session(engine) as s:
        yield s


@pytest.fixture
def board(session):
    """Workspace with one project and one extra member."""
    return seed_board(session, members=1)


@pytest.fixture
def make_board(session):
    """Factory for additional workspaces: ``make_board(projects=2)``."""
    return lambda **kwargs: seed_board(session, **kwargs)


@pytest.fixture
def outsider_id(session):
    return seed_outsider(session)
