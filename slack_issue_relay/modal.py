"""Builder for the issue-select modal opened from the message shortcut."""

from __future__ import annotations

from typing import Any, Dict

ISSUE_MODAL_CALLBACK_ID = "select_issue_modal"
ISSUE_BLOCK_ID = "issue"
ISSUE_ACTION_ID = "issue_select"

MAX_TITLE_LENGTH = 24
MAX_LABEL_LENGTH = 75


def _truncate(text: str, limit: int) -> str:
    if len(text) <= limit:
        return text
    return text[: limit - 1] + "..."


def _plain_text(text: str, limit: int | None = None) -> Dict[str, Any]:
    return {
        "type": "plain_text",
        "text": _truncate(text, limit) if limit else text,
        "emoji": True,
    }


def build_issue_modal_view(private_metadata: str, *, repository: str | None = None) -> Dict[str, Any]:
    """Build the modal with a single required, search-backed issue picker."""

    label = f"Issue in {repository}" if repository else "GitHub issue"

    return {
        "type": "modal",
        "callback_id": ISSUE_MODAL_CALLBACK_ID,
        "private_metadata": private_metadata,
        "title": _plain_text("Send to Issue", MAX_TITLE_LENGTH),
        "submit": _plain_text("Send"),
        "close": _plain_text("Cancel"),
        "blocks": [
            {
                "type": "input",
                "block_id": ISSUE_BLOCK_ID,
                "optional": False,
                "label": _plain_text(label, MAX_LABEL_LENGTH),
                "element": {
                    "type": "external_select",
                    "action_id": ISSUE_ACTION_ID,
                    "placeholder": {"type": "plain_text", "text": "Search by number or title"},
                    "min_query_length": 1,
                },
            }
        ],
    }


def extract_selected_issue(view: Dict[str, Any]) -> str:
    """Return the issue number chosen in a submitted modal.

    Raises ValueError when nothing usable was selected.
    """

    values = (view.get("state") or {}).get("values") or {}
    control = (values.get(ISSUE_BLOCK_ID) or {}).get(ISSUE_ACTION_ID) or {}
    selected = control.get("selected_option") or {}
    value = selected.get("value")
    if not isinstance(value, str) or not value.strip():
        raise ValueError("Select an issue to post to.")

    value = value.strip().lstrip("#")
    if not (value.isascii() and value.isdigit()) or int(value) <= 0:
        raise ValueError("The selected issue is not a valid issue number.")
    return value
