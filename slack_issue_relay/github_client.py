"""Minimal GitHub REST client for comments, file commits and issue search."""

from __future__ import annotations

import base64
from typing import Any, Dict, List
from urllib.parse import quote

import httpx

from .errors import TransientNetworkError, UpstreamAPIError

DEFAULT_API_URL = "https://api.github.com"
USER_AGENT = "slack-issue-relay"

_STATUS_HINTS = {
    401: "Check that GITHUB_TOKEN is valid and not expired.",
    403: "Check the token scope: it needs write access to contents and issues.",
    404: "The repository or issue was not found, or the token cannot access it.",
    409: "The target branch changed concurrently; try again.",
    422: "GitHub rejected the payload; the file may already exist.",
}


def _error_message(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return response.text[:200]
    if isinstance(payload, dict) and payload.get("message"):
        return str(payload["message"])
    return response.text[:200]


class GitHubClient:
    """Wrap an ``httpx.Client`` preconfigured for the GitHub REST API."""

    def __init__(
        self,
        *,
        token: str | None = None,
        base_url: str = DEFAULT_API_URL,
        timeout: float = 30.0,
        client: httpx.Client | None = None,
    ) -> None:
        if client is None and token is None:
            raise ValueError("Either an instantiated client or a GitHub token must be provided.")

        self._client = client or httpx.Client(
            base_url=base_url,
            timeout=timeout,
            headers={
                "Authorization": f"Bearer {token}",
                "Accept": "application/vnd.github+json",
                "X-GitHub-Api-Version": "2022-11-28",
                "User-Agent": USER_AGENT,
            },
        )

    def close(self) -> None:
        self._client.close()

    def _request(self, method: str, url: str, *, operation: str, **kwargs: Any) -> httpx.Response:
        try:
            response = self._client.request(method, url, **kwargs)
        except httpx.TimeoutException as exc:
            raise TransientNetworkError(f"GitHub {operation} timed out") from exc
        except httpx.TransportError as exc:
            raise TransientNetworkError(f"GitHub {operation} failed: {exc}") from exc

        if not response.is_success:
            message = f"GitHub {operation} failed: HTTP {response.status_code} {_error_message(response)}"
            hint = _STATUS_HINTS.get(response.status_code)
            if hint:
                message = f"{message}. {hint}"
            raise UpstreamAPIError(message, status_code=response.status_code)
        return response

    def create_or_update_file(
        self,
        *,
        owner: str,
        repo: str,
        path: str,
        content: bytes,
        message: str,
        branch: str | None = None,
    ) -> str:
        """Commit *content* at *path* and return the commit SHA."""

        payload: Dict[str, Any] = {
            "message": message,
            "content": base64.b64encode(content).decode("ascii"),
        }
        if branch:
            payload["branch"] = branch

        response = self._request(
            "PUT",
            f"/repos/{owner}/{repo}/contents/{quote(path, safe='/')}",
            operation="file upload",
            json=payload,
        )
        return response.json().get("commit", {}).get("sha", "")

    def create_issue_comment(self, *, owner: str, repo: str, issue_number: str | int, body: str) -> int:
        """Post *body* as a comment on the issue and return the comment id."""

        response = self._request(
            "POST",
            f"/repos/{owner}/{repo}/issues/{issue_number}/comments",
            operation="issue comment",
            json={"body": body},
        )
        return response.json().get("id")

    def search_issues(self, query: str, *, per_page: int = 20) -> List[Dict[str, Any]]:
        """Run an issue search and return the matching items."""

        response = self._request(
            "GET",
            "/search/issues",
            operation="issue search",
            params={"q": query, "per_page": per_page},
        )
        items = response.json().get("items")
        return list(items) if isinstance(items, list) else []
