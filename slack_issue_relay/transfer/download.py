"""Authenticated downloads of Slack-hosted files."""

from __future__ import annotations

import httpx

from slack_issue_relay.errors import TransientNetworkError, UpstreamAPIError
from slack_issue_relay.models import DownloadedFile

from .policy import DEFAULT_MAX_BYTES, size_error

SLACK_USER_AGENT = "Slackbot 1.0 (+https://api.slack.com/robots)"
MAX_REDIRECTS = 1
_HTML_PREFIXES = (b"<!doctype html", b"<html")
_HTML_ERROR = (
    "Slack returned an HTML page instead of the file; "
    "check that the bot token has the files:read scope"
)


def _looks_like_html(head: bytes) -> bool:
    return head[:512].lstrip().lower().startswith(_HTML_PREFIXES)


class SlackFileDownloader:
    """Fetch ``url_private_download`` links with the bot token.

    One redirect hop is followed. The body is streamed and the read stops as
    soon as it grows past *max_bytes*.
    """

    def __init__(
        self,
        *,
        token: str,
        timeout: float = 30.0,
        max_bytes: int = DEFAULT_MAX_BYTES,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._token = token
        self._timeout = timeout
        self._max_bytes = max_bytes
        self._transport = transport

    def _client(self) -> httpx.Client:
        return httpx.Client(
            timeout=self._timeout,
            follow_redirects=True,
            max_redirects=MAX_REDIRECTS,
            transport=self._transport,
            headers={
                "Authorization": f"Bearer {self._token}",
                "User-Agent": SLACK_USER_AGENT,
            },
        )

    def download(self, url: str, *, filename: str, mimetype: str) -> DownloadedFile:
        try:
            with self._client() as http, http.stream("GET", url) as response:
                if not response.is_success:
                    raise UpstreamAPIError(
                        f"Slack download failed: HTTP {response.status_code}",
                        status_code=response.status_code,
                    )

                content_type = response.headers.get("content-type", "")
                if "text/html" in content_type:
                    raise UpstreamAPIError(_HTML_ERROR)

                declared_length = response.headers.get("content-length", "")
                if declared_length.isdigit() and int(declared_length) > self._max_bytes:
                    raise size_error(int(declared_length), self._max_bytes)

                buffer = bytearray()
                for chunk in response.iter_bytes():
                    if not buffer and chunk and _looks_like_html(chunk):
                        raise UpstreamAPIError(_HTML_ERROR)
                    buffer.extend(chunk)
                    if len(buffer) > self._max_bytes:
                        raise size_error(len(buffer), self._max_bytes)
        except httpx.TimeoutException as exc:
            raise TransientNetworkError(f"Timed out downloading {filename} from Slack") from exc
        except httpx.TooManyRedirects as exc:
            raise UpstreamAPIError(f"Slack download of {filename} redirected more than once") from exc
        except httpx.TransportError as exc:
            raise TransientNetworkError(f"Could not download {filename} from Slack: {exc}") from exc

        return DownloadedFile(filename=filename, mimetype=mimetype, content=bytes(buffer))
