"""Tests for the GitLab event formatters."""

import pytest

from gitlab_utils import msg_format
from gitlab_utils.msg_format import (
    collapse_blank_lines,
    format_event,
    format_issue,
    format_merge_request,
    format_note,
    format_push,
    format_tag_push,
)


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("a\n\nb", "a\nb"),
        ("a\n \t\n\n  \nb", "a\nb"),
        ("a\nb", "a\nb"),
        ("", ""),
        (None, ""),
    ],
)
def test_collapse_blank_lines(text, expected):
    assert collapse_blank_lines(text) == expected


def test_push_lists_each_commit(push_payload):
    assert format_push(push_payload) == "\n".join([
        "[GitLab] Push (team/bot)",
        "Ref: refs/heads/master",
        "User: Alice",
        "Update README\nAdd usage section",
        "Fix typo",
    ])


def test_push_has_three_header_lines_plus_one_per_commit(push_payload):
    push_payload["commits"] = [{"message": f"commit {i}"} for i in range(4)]

    lines = format_push(push_payload).split("\n")

    assert len(lines) == 3 + 4
    assert lines[3:] == ["commit 0", "commit 1", "commit 2", "commit 3"]


@pytest.mark.parametrize("after", ["0" * 40, "0", "00000000"])
def test_push_with_zero_after_is_suppressed(push_payload, after):
    push_payload["after"] = after
    assert format_push(push_payload) is None


def test_push_with_partially_zero_after_is_sent(push_payload):
    push_payload["after"] = "0" * 39 + "1"
    assert format_push(push_payload) is not None


def test_push_without_commits(push_payload):
    push_payload["commits"] = []
    assert format_push(push_payload).count("\n") == 2


def test_tag_push_strips_refs_tags_prefix(tag_push_payload):
    assert format_tag_push(tag_push_payload) == "[GitLab] team/bot published tag v1.0.0"


def test_tag_push_strips_exactly_ten_characters(tag_push_payload):
    tag_push_payload["ref"] = "0123456789release"
    assert format_tag_push(tag_push_payload).endswith("published tag release")


def test_issue_open(issue_payload):
    assert format_issue(issue_payload) == "\n".join([
        "[GitLab] Issue Opened (team/bot#23)",
        "Title: Crash on startup",
        "User: Alice",
        "URL: https://gitlab.example.com/team/bot/-/issues/23",
        "Steps:\n1. run it",
    ])


@pytest.mark.parametrize("action", ["close", "update", "reopen"])
def test_issue_other_actions_are_suppressed(issue_payload, action):
    issue_payload["object_attributes"]["action"] = action
    assert format_issue(issue_payload) is None


def test_issue_with_null_description(issue_payload):
    issue_payload["object_attributes"]["description"] = None
    assert format_issue(issue_payload).endswith("URL: https://gitlab.example.com/team/bot/-/issues/23\n")


def test_note_on_commit(note_payload):
    assert format_note(note_payload) == "\n".join([
        "[GitLab] Commit Comment (team/bot)",
        "User: Alice",
        "URL: https://gitlab.example.com/team/bot/-/commit/cfe32cf6#note_1243",
        "Looks good\nship it",
    ])


def test_note_on_merge_request(note_payload):
    note_payload["object_attributes"]["noteable_type"] = "MergeRequest"
    note_payload["merge_request"] = {"iid": 7}

    header = format_note(note_payload).split("\n")[0]

    assert header == "[GitLab] Merge Request Comment (team/bot#7)"


def test_note_on_issue(note_payload):
    note_payload["object_attributes"]["noteable_type"] = "Issue"
    note_payload["issue"] = {"iid": 23}

    header = format_note(note_payload).split("\n")[0]

    assert header == "[GitLab] Issue Comment (team/bot#23)"


@pytest.mark.parametrize("noteable_type", ["Snippet", "Epic", None])
def test_note_on_other_types_is_suppressed(note_payload, noteable_type):
    note_payload["object_attributes"]["noteable_type"] = noteable_type
    assert format_note(note_payload) is None


def test_merge_request_open(merge_request_payload):
    assert format_merge_request(merge_request_payload) == "\n".join([
        "[GitLab] Pull Request Opened (team/bot#7)",
        "team/bot/main <- alice/bot/feature/relay",
        "User: Alice",
        "URL: https://gitlab.example.com/team/bot/-/merge_requests/7",
        "Add relay\nfor webhooks",
    ])


@pytest.mark.parametrize("action", ["merge", "close", "update", "approved"])
def test_merge_request_other_actions_are_suppressed(merge_request_payload, action):
    merge_request_payload["object_attributes"]["action"] = action
    assert format_merge_request(merge_request_payload) is None


def test_format_event_dispatches_by_kind(tag_push_payload):
    assert format_event("tag_push", tag_push_payload) == format_tag_push(tag_push_payload)


def test_format_event_unknown_kind(push_payload):
    assert format_event("pipeline", push_payload) is None


def test_formatter_table_covers_supported_kinds():
    assert set(msg_format.FORMATTERS) == {"push", "tag_push", "issue", "note", "merge_request"}
