"""Tests for the issue comment composer."""

from pathlib import Path
import sys

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:  # pragma: no cover
    sys.path.insert(0, str(ROOT))

from slack_issue_relay.composer import (  # noqa: E402
    ATTACHMENTS_HEADER,
    FAILURES_HEADER,
    build_message_link,
    compose_comment,
    format_attachment,
)
from slack_issue_relay.models import UploadedAsset, UploadError  # noqa: E402


def test_quotes_each_line_without_optional_sections():
    body = compose_comment(text="hello\nworld", user="alice", channel="general")

    assert "> hello" in body
    assert "> world" in body
    assert "**Author**: @alice" in body
    assert "**Channel**: #general" in body
    assert ATTACHMENTS_HEADER not in body
    assert FAILURES_HEADER not in body


def test_empty_text_renders_placeholder():
    body = compose_comment(text="", user="alice", channel="general")

    assert "> _(no content)_" in body


def test_image_is_rendered_inline():
    asset = UploadedAsset(filename="img.png", url="https://x/img.png", mimetype="image/png")

    body = compose_comment(text="see", user="alice", channel="general", succeeded=[asset])

    assert ATTACHMENTS_HEADER in body
    assert "![img.png](https://x/img.png)" in body


def test_documents_get_icons_by_type():
    pdf = UploadedAsset(filename="spec.pdf", url="https://x/spec.pdf", mimetype="application/pdf")
    sheet = UploadedAsset(
        filename="q3.xlsx",
        url="https://x/q3.xlsx",
        mimetype="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    )
    csv_by_extension = UploadedAsset(filename="data.csv", url="https://x/data.csv", mimetype="text/plain")
    other = UploadedAsset(filename="notes.txt", url="https://x/notes.txt", mimetype="text/plain")

    assert format_attachment(pdf) == "📄 [spec.pdf](https://x/spec.pdf)"
    assert format_attachment(sheet) == "📊 [q3.xlsx](https://x/q3.xlsx)"
    assert format_attachment(csv_by_extension) == "📊 [data.csv](https://x/data.csv)"
    assert format_attachment(other) == "📎 [notes.txt](https://x/notes.txt)"


def test_failures_section_lists_reasons():
    failed = [UploadError(filename="archive.zip", reason="Unsupported file type: application/zip")]

    body = compose_comment(text="hi", user="alice", channel="general", failed=failed)

    assert FAILURES_HEADER in body
    assert "- `archive.zip`: Unsupported file type: application/zip" in body
    assert ATTACHMENTS_HEADER not in body


@pytest.mark.parametrize(
    "filename, rendered",
    [
        ("odd`name.png", "- `` odd`name.png ``: too big"),
        ("two``ticks.pdf", "- ``` two``ticks.pdf ```: too big"),
        ("line\nbreak.png", "- `line break.png`: too big"),
    ],
)
def test_failure_filenames_cannot_break_code_span(filename, rendered):
    failed = [UploadError(filename=filename, reason="too big")]

    body = compose_comment(text="hi", user="alice", channel="general", failed=failed)

    assert body.endswith(rendered)


def test_compose_is_deterministic():
    kwargs = dict(
        text="line one\nline two",
        user="bob",
        channel="ops",
        succeeded=[UploadedAsset(filename="a.png", url="https://x/a.png", mimetype="image/png")],
        failed=[UploadError(filename="b.zip", reason="nope")],
        deep_link="https://acme.slack.com/archives/C1/p1700000000000100",
    )

    first = compose_comment(**kwargs)

    assert all(compose_comment(**kwargs) == first for _ in range(5))
    assert first.index(ATTACHMENTS_HEADER) < first.index(FAILURES_HEADER)
    assert first.endswith("[View the original message in Slack](https://acme.slack.com/archives/C1/p1700000000000100)")


def test_message_link_prefers_team_domain():
    link = build_message_link(
        channel_id="C123", message_ts="1700000000.000100", team_domain="acme", team_id="T1"
    )

    assert link == "https://acme.slack.com/archives/C123/p1700000000000100"


def test_message_link_falls_back_to_team_id():
    link = build_message_link(channel_id="C123", message_ts="1700000000.000100", team_id="T1")

    assert link == "https://app.slack.com/client/T1/C123/p1700000000000100"


def test_message_link_requires_identifiers():
    assert build_message_link(channel_id="C123", message_ts=None, team_domain="acme") is None
    assert build_message_link(channel_id=None, message_ts="1.2", team_domain="acme") is None
    assert build_message_link(channel_id="C123", message_ts="1.2") is None
