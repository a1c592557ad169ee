"""Shared fixtures: GitLab payloads and a recording dispatcher."""

import pytest

from tests.helpers import RecordingDispatcher


@pytest.fixture
def dispatcher():
    return RecordingDispatcher()


@pytest.fixture
def project():
    return {"name": "bot", "path_with_namespace": "team/bot"}


@pytest.fixture
def user():
    return {"name": "Alice", "username": "alice"}


@pytest.fixture
def push_payload(project):
    return {
        "object_kind": "push",
        "before": "95790bf891e76fee5e1747ab589903a6a1f80f22",
        "after": "da1560886d4f094c3e6c9ef40349f7d38b5d27d7",
        "ref": "refs/heads/master",
        "user_name": "Alice",
        "project": project,
        "commits": [
            {"id": "b6568db1", "message": "Update README\n\n\nAdd usage section"},
            {"id": "da156088", "message": "Fix typo"},
        ],
    }


@pytest.fixture
def tag_push_payload(project):
    return {
        "object_kind": "tag_push",
        "after": "82b3d5ae55f7080f1e6022629cdb57bfae7cccc7",
        "ref": "refs/tags/v1.0.0",
        "user_name": "Alice",
        "project": project,
        "commits": [],
    }


@pytest.fixture
def issue_payload(project, user):
    return {
        "object_kind": "issue",
        "user": user,
        "project": project,
        "object_attributes": {
            "iid": 23,
            "title": "Crash on startup",
            "action": "open",
            "url": "https://gitlab.example.com/team/bot/-/issues/23",
            "description": "Steps:\n\n  \n1. run it",
        },
    }


@pytest.fixture
def note_payload(project, user):
    return {
        "object_kind": "note",
        "user": user,
        "project": project,
        "object_attributes": {
            "noteable_type": "Commit",
            "note": "Looks good\n\nship it",
            "url": "https://gitlab.example.com/team/bot/-/commit/cfe32cf6#note_1243",
        },
        "commit": {"id": "cfe32cf6"},
    }


@pytest.fixture
def merge_request_payload(project, user):
    return {
        "object_kind": "merge_request",
        "user": user,
        "project": project,
        "object_attributes": {
            "iid": 7,
            "title": "Add relay\n\n\nfor webhooks",
            "action": "open",
            "url": "https://gitlab.example.com/team/bot/-/merge_requests/7",
            "source_branch": "feature/relay",
            "target_branch": "main",
            "source": {"path_with_namespace": "alice/bot"},
            "target": {"path_with_namespace": "team/bot"},
        },
    }
