#!/usr/bin/env python3
"""Seed a demo workspace (owner, teammate, project, a few tasks per column).

Prints a session token for the owner so the API can be tried with
``curl -b "workboard_session=<token>" ...``.

Usage:
    cd backend
    python -m scripts.seed_demo_data [--email owner@example.com]
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

BACKEND_DIR = Path(__file__).parent.parent
sys.path.insert(0, str(BACKEND_DIR))

# Ensure CWD is backend/ so sqlite:///data/workboard.db resolves correctly
os.chdir(BACKEND_DIR)

from sqlmodel import Session, select  # noqa: E402

from workboard.config import settings  # noqa: E402
from workboard.db.database import create_db_and_tables, engine  # noqa: E402
from workboard.models import Member, Project, TaskStatus, User, Workspace  # noqa: E402
from workboard.security.session_token import issue_session_token  # noqa: E402
from workboard.services.task_ordering import TaskOrderingService  # noqa: E402

logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s %(message)s")
logger = logging.getLogger(__name__)

DEMO_TASKS: list[tuple[str, TaskStatus]] = [
    ("Write onboarding guide", TaskStatus.BACKLOG),
    ("Audit permissions", TaskStatus.BACKLOG),
    ("Design kanban column limits", TaskStatus.TODO),
    ("Implement bulk reorder", TaskStatus.IN_PROGRESS),
    ("Review invitation flow", TaskStatus.IN_REVIEW),
    ("Set up CI", TaskStatus.DONE),
]


def _get_or_create_user(session: Session, email: str, name: str) -> User:
    user = session.exec(select(User).where(User.email == email)).first()
    if user is None:
        user = User(email=email, name=name)
        session.add(user)
        session.commit()
        session.refresh(user)
    return user


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--email", default="owner@example.com")
    parser.add_argument("--workspace", default="Demo Workspace")
    args = parser.parse_args()

    create_db_and_tables()

    with Session(engine) as session:
        owner = _get_or_create_user(session, args.email, "Demo Owner")
        teammate = _get_or_create_user(session, "teammate@example.com", "Demo Teammate")

        workspace = Workspace(name=args.workspace, user_id=owner.id)
        session.add(workspace)
        session.commit()
        session.refresh(workspace)

        session.add(Member(user_id=owner.id, workspace_id=workspace.id, role="ADMIN"))
        session.add(Member(user_id=teammate.id, workspace_id=workspace.id))
        project = Project(name="Launch", workspace_id=workspace.id)
        session.add(project)
        session.commit()
        session.refresh(project)

        service = TaskOrderingService(session)
        due = datetime.now(timezone.utc) + timedelta(days=7)
        for index, (name, status) in enumerate(DEMO_TASKS):
            service.create_task(
                owner.id,
                workspace_id=workspace.id,
                project_id=project.id,
                name=name,
                status=status,
                assigned_id=teammate.id if index % 2 else owner.id,
                due_date=due,
            )

        workspace_id = workspace.id
        logger.info("Seeded workspace %s (project %s) with %d tasks", workspace_id, project.id, len(DEMO_TASKS))
        token = issue_session_token(
            secret=settings.session_secret,
            user_id=owner.id,
            ttl_seconds=settings.session_ttl_days * 24 * 3600,
        )

    print(f"workspaceId={workspace_id}")
    print(f"{settings.session_cookie_name}={token}")


if __name__ == "__main__":
    main()
