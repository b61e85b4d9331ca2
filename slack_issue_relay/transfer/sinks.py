"""Destinations that persist attachment bytes and hand back a linkable URL."""

from __future__ import annotations

import re
import secrets
import time
from typing import Callable, Protocol
from urllib.parse import quote

import structlog

from slack_issue_relay.config import AppSettings

_UNSAFE_PATH_CHARS = re.compile(r"[^\w.\-]+")


class AttachmentSink(Protocol):
    """Persist *content* for *issue_number* and return a URL usable in markdown."""

    def store(self, content: bytes, *, filename: str, mimetype: str, issue_number: str) -> str:
        ...


def safe_filename(filename: str) -> str:
    cleaned = _UNSAFE_PATH_CHARS.sub("_", filename).strip("._")
    return cleaned or "file"


class RepoContentsSink:
    """Commit attachments into a repository through the contents API."""

    kind = "repo_contents"

    def __init__(
        self,
        *,
        github,
        owner: str,
        repo: str,
        branch: str = "main",
        base_dir: str = "slack_files",
        clock: Callable[[], float] = time.time,
        token_factory: Callable[[], str] = lambda: secrets.token_hex(4),
    ) -> None:
        self._github = github
        self._owner = owner
        self._repo = repo
        self._branch = branch
        self._base_dir = base_dir.strip("/")
        self._clock = clock
        self._token_factory = token_factory

    def build_path(self, filename: str, issue_number: str) -> str:
        name = f"{int(self._clock() * 1000)}_{self._token_factory()}_{safe_filename(filename)}"
        parts = [self._base_dir, str(issue_number), name]
        return "/".join(part for part in parts if part)

    def public_url(self, path: str) -> str:
        return f"https://github.com/{self._owner}/{self._repo}/raw/{self._branch}/{quote(path, safe='/')}"

    def store(self, content: bytes, *, filename: str, mimetype: str, issue_number: str) -> str:
        path = self.build_path(filename, issue_number)
        sha = self._github.create_or_update_file(
            owner=self._owner,
            repo=self._repo,
            path=path,
            content=content,
            message=f"Add file {filename} for issue #{issue_number}",
            branch=self._branch,
        )
        structlog.get_logger().info(
            "attachment_committed",
            repo=f"{self._owner}/{self._repo}",
            path=path,
            commit_sha=sha,
            size=len(content),
            mimetype=mimetype,
        )
        return self.public_url(path)


def build_attachment_sink(settings: AppSettings, github) -> AttachmentSink:
    """Return the sink selected by ``ATTACHMENT_SINK``."""

    if settings.attachment_sink == RepoContentsSink.kind:
        return RepoContentsSink(
            github=github,
            owner=settings.github_owner,
            repo=settings.assets_repo,
            branch=settings.github_assets_branch,
            base_dir=settings.github_assets_dir,
        )
    raise ValueError(f"Unknown attachment sink: {settings.attachment_sink}")
