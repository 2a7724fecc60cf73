"""Tests for the workspace membership guard."""

import os
import sys

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', '..'))
os.environ.setdefault("DATABASE_URL", "sqlite:///test.db")

import dataclasses

import pytest

from workboard.errors import Unauthorized
from workboard.services.membership import MembershipGrant, find_membership, require_membership


def test_owner_gets_admin_grant(session, board):
    grant = require_membership(session, board.user_id, board.workspace_id)
    assert grant == MembershipGrant(user_id=board.user_id, workspace_id=board.workspace_id, role="ADMIN")
    assert grant.is_admin


def test_member_gets_member_grant(session, board):
    grant = require_membership(session, board.member_ids[0], board.workspace_id)
    assert grant.role == "MEMBER"
    assert not grant.is_admin


def test_outsider_is_unauthorized(session, board, outsider_id):
    with pytest.raises(Unauthorized) as exc_info:
        require_membership(session, outsider_id, board.workspace_id)
    assert exc_info.value.status_code == 401
    assert exc_info.value.message == "You are not a member of this workspace"


def test_membership_is_per_workspace(session, board, make_board):
    other = make_board()
    assert find_membership(session, board.user_id, other.workspace_id) is None
    with pytest.raises(Unauthorized):
        require_membership(session, board.user_id, other.workspace_id)


def test_grant_is_immutable(session, board):
    grant = require_membership(session, board.user_id, board.workspace_id)
    with pytest.raises(dataclasses.FrozenInstanceError):
        grant.workspace_id = "elsewhere"
