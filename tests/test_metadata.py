"""Tests for modal metadata construction and size limiting."""

import json
from pathlib import Path
import sys

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:  # pragma: no cover
    sys.path.insert(0, str(ROOT))

from slack_issue_relay.metadata import (  # noqa: E402
    PRIVATE_METADATA_LIMIT,
    build_modal_metadata,
    encode_metadata,
    fit_metadata,
    parse_metadata,
)
from slack_issue_relay.models import FileRef, ModalMetadata  # noqa: E402


def _slack_file(index: int) -> dict:
    return {
        "id": f"F{index:08d}",
        "name": f"screenshot-{index}.png",
        "mimetype": "image/png",
        "size": 2048,
        "url_private": f"https://files.slack.com/files-pri/T1-F{index}/screenshot-{index}.png",
        "url_private_download": f"https://files.slack.com/files-pri/T1-F{index}/download/screenshot-{index}.png",
        "permalink": "https://acme.slack.com/files/U1/F1/screenshot.png",
        "thumb_360": "https://files.slack.com/thumb.png",
    }


def _action_body(files=None, text="hello\nworld"):
    return {
        "type": "message_action",
        "trigger_id": "trigger-1",
        "message": {"text": text, "ts": "1700000000.000100", "files": files or []},
        "user": {"id": "U1", "username": "alice"},
        "channel": {"id": "C1", "name": "general"},
        "team": {"id": "T1", "domain": "acme"},
    }


def test_build_projects_payload():
    metadata = build_modal_metadata(_action_body(files=[_slack_file(1)]))

    assert metadata.text == "hello\nworld"
    assert metadata.user == "alice"
    assert metadata.channel == "general"
    assert metadata.channel_id == "C1"
    assert metadata.message_ts == "1700000000.000100"
    assert metadata.team_domain == "acme"
    file_ref = metadata.files[0]
    assert file_ref.url_private_download.endswith("/download/screenshot-1.png")
    assert file_ref.url_private is None


def test_build_falls_back_to_ids():
    body = _action_body()
    body["user"] = {"id": "U9"}
    body["channel"] = {"id": "C9"}

    metadata = build_modal_metadata(body)

    assert metadata.user == "U9"
    assert metadata.channel == "C9"


def test_encoded_metadata_uses_wire_names_and_round_trips():
    metadata = build_modal_metadata(_action_body(files=[_slack_file(1)]))

    raw = fit_metadata(metadata)
    decoded = json.loads(raw)

    assert decoded["channelId"] == "C1"
    assert decoded["messageTs"] == "1700000000.000100"
    assert decoded["teamDomain"] == "acme"
    assert "url_private" not in decoded["files"][0]
    assert parse_metadata(raw) == metadata


def test_small_metadata_is_untouched():
    metadata = build_modal_metadata(_action_body(files=[_slack_file(1)]))

    assert fit_metadata(metadata) == encode_metadata(metadata)


def test_first_degradation_drops_download_details():
    files = [_slack_file(index) for index in range(20)]
    metadata = build_modal_metadata(_action_body(files=files))
    assert len(encode_metadata(metadata)) > PRIVATE_METADATA_LIMIT

    raw = fit_metadata(metadata)
    decoded = json.loads(raw)

    assert len(raw) <= PRIVATE_METADATA_LIMIT
    assert len(decoded["files"]) == 20
    assert all(set(item) == {"id", "name", "size"} for item in decoded["files"])
    # input is not mutated
    assert metadata.files[0].url_private_download is not None


def test_files_are_dropped_when_identity_is_still_too_big():
    files = [_slack_file(index) for index in range(200)]
    metadata = build_modal_metadata(_action_body(files=files))

    raw = fit_metadata(metadata)
    decoded = json.loads(raw)

    assert len(raw) <= PRIVATE_METADATA_LIMIT
    assert 0 < len(decoded["files"]) < 200
    assert all(set(item) == {"id", "name"} for item in decoded["files"])
    assert decoded["files"][0]["id"] == "F00000000"


@pytest.mark.parametrize("text", ["x" * 5000, "line\n" * 2000, "日本語" * 2000])
def test_oversized_text_keeps_required_fields(text):
    metadata = build_modal_metadata(_action_body(files=[_slack_file(1)], text=text))

    raw = fit_metadata(metadata)
    parsed = parse_metadata(raw)

    assert len(raw) <= PRIVATE_METADATA_LIMIT
    assert parsed.user == "alice"
    assert parsed.channel == "general"
    assert parsed.text
    assert text.startswith(parsed.text.rstrip("…"))
    assert parsed.files == []


@pytest.mark.parametrize("raw", [None, "", "not-json", '{"text": "hi"}'])
def test_parse_rejects_invalid_metadata(raw):
    with pytest.raises(ValueError):
        parse_metadata(raw)


def test_file_ref_degradations_build_new_objects():
    original = FileRef(id="F1", name="a.png", mimetype="image/png", url_private_download="https://x", size=3)

    assert original.without_download_details() == FileRef(id="F1", name="a.png", size=3)
    assert original.identity_only() == FileRef(id="F1", name="a.png")
    assert original.mimetype == "image/png"


def test_metadata_accepts_field_names_and_aliases():
    by_alias = ModalMetadata.model_validate({"user": "u", "channel": "c", "channelId": "C1"})
    by_name = ModalMetadata(user="u", channel="c", channel_id="C1")

    assert by_alias == by_name
