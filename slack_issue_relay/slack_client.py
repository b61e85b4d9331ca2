"""Thin wrapper utilities around the Slack WebClient."""

from __future__ import annotations

from typing import Any, Mapping

from slack_sdk import WebClient


class SlackClient:
    """Encapsulate Slack WebClient interactions for easier testing."""

    def __init__(self, *, token: str | None = None, client: WebClient | None = None) -> None:
        if client is None and token is None:
            raise ValueError("Either an instantiated client or a bot token must be provided.")

        self._client = client or WebClient(token=token)

    @property
    def client(self) -> WebClient:
        """Expose the underlying WebClient for advanced use cases."""

        return self._client

    def open_view(self, *, trigger_id: str, view: Mapping[str, Any]) -> Mapping[str, Any]:
        """Open a modal using a single-use trigger reference."""

        return self._client.views_open(trigger_id=trigger_id, view=dict(view))

    def file_info(self, file_id: str) -> Mapping[str, Any]:
        """Return the ``file`` object from ``files.info``."""

        response = self._client.files_info(file=file_id)
        file_data = response.get("file")
        if not isinstance(file_data, Mapping):
            raise ValueError(f"files.info returned no file object for {file_id}")
        return file_data
