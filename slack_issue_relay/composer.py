"""Markdown builders for the issue comment relayed from Slack."""

from __future__ import annotations

import re
from typing import Iterable, List

from .models import UploadedAsset, UploadError
from .transfer.policy import PDF_MIMETYPE, is_spreadsheet

HEADER = "## Shared from Slack 🧵"
ATTACHMENTS_HEADER = "### Attachments"
FAILURES_HEADER = "### ⚠️ Files that could not be uploaded"

PDF_ICON = "📄"
SPREADSHEET_ICON = "📊"
GENERIC_ICON = "📎"

_NO_CONTENT = "> _(no content)_"


def _escape_label(text: str) -> str:
    return text.replace("[", "\\[").replace("]", "\\]")


def _code_span(text: str) -> str:
    text = " ".join(text.splitlines())
    if "`" not in text:
        return f"`{text}`"
    longest = max(len(run) for run in re.findall(r"`+", text))
    fence = "`" * (longest + 1)
    return f"{fence} {text} {fence}"


def _quote(text: str) -> str:
    if not text or not text.strip():
        return _NO_CONTENT
    return "\n".join(f"> {line}" for line in text.split("\n"))


def _ts_anchor(message_ts: str) -> str:
    return "p" + message_ts.replace(".", "")


def build_message_link(
    *,
    channel_id: str | None,
    message_ts: str | None,
    team_domain: str | None = None,
    team_id: str | None = None,
) -> str | None:
    """Return a link back to the Slack message, or None without enough identifiers.

    The workspace-domain form is preferred over the team-id form.
    """

    if not channel_id or not message_ts:
        return None
    if team_domain:
        return f"https://{team_domain}.slack.com/archives/{channel_id}/{_ts_anchor(message_ts)}"
    if team_id:
        return f"https://app.slack.com/client/{team_id}/{channel_id}/{_ts_anchor(message_ts)}"
    return None


def format_attachment(asset: UploadedAsset) -> str:
    label = _escape_label(asset.filename)
    if asset.is_image:
        return f"![{label}]({asset.url})"
    if asset.mimetype == PDF_MIMETYPE:
        icon = PDF_ICON
    elif is_spreadsheet(asset.filename, asset.mimetype):
        icon = SPREADSHEET_ICON
    else:
        icon = GENERIC_ICON
    return f"{icon} [{label}]({asset.url})"


def _attachments_section(succeeded: Iterable[UploadedAsset]) -> List[str]:
    lines = [format_attachment(asset) for asset in succeeded]
    if not lines:
        return []
    return [ATTACHMENTS_HEADER, *lines]


def _failures_section(failed: Iterable[UploadError]) -> List[str]:
    lines = [f"- {_code_span(error.filename)}: {error.reason}" for error in failed]
    if not lines:
        return []
    return [FAILURES_HEADER, *lines]


def compose_comment(
    *,
    text: str,
    user: str,
    channel: str,
    succeeded: Iterable[UploadedAsset] = (),
    failed: Iterable[UploadError] = (),
    deep_link: str | None = None,
) -> str:
    """Build the markdown body posted to the issue.

    Pure: the same arguments always produce the same string.
    """

    sections: List[List[str]] = [
        [HEADER],
        [f"**Author**: @{user}  ", f"**Channel**: #{channel}"],
        [_quote(text)],
        _attachments_section(succeeded),
        _failures_section(failed),
    ]
    if deep_link:
        sections.append([f"[View the original message in Slack]({deep_link})"])

    return "\n\n".join("\n".join(section) for section in sections if section)
