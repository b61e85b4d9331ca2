"""Pydantic-based configuration helpers for the Slack issue relay."""

from __future__ import annotations

import os
from functools import lru_cache
from typing import Iterable, List, Literal

from pydantic import BaseModel, Field, ValidationError, field_validator

from .errors import ConfigurationError

MIB = 1024 * 1024
MAX_TRANSFER_CONCURRENCY = 6


class AppSettings(BaseModel):
    """Settings required to talk to Slack and GitHub."""

    bot_token: str = Field(..., alias="SLACK_BOT_TOKEN")
    signing_secret: str = Field(..., alias="SLACK_SIGNING_SECRET")
    github_token: str = Field(..., alias="GITHUB_TOKEN")
    github_owner: str = Field(..., alias="GITHUB_OWNER")
    github_repo: str = Field(..., alias="GITHUB_REPO")
    github_assets_repo: str | None = Field(None, alias="GITHUB_ASSETS_REPO")
    github_assets_branch: str = Field("main", alias="GITHUB_ASSETS_BRANCH")
    github_assets_dir: str = Field("slack_files", alias="GITHUB_ASSETS_DIR")
    github_api_url: str = Field("https://api.github.com", alias="GITHUB_API_URL")
    attachment_sink: Literal["repo_contents"] = Field("repo_contents", alias="ATTACHMENT_SINK")
    submission_mode: Literal["inline", "background"] = Field("inline", alias="SUBMISSION_MODE")
    max_attachment_bytes: int = Field(10 * MIB, alias="MAX_ATTACHMENT_BYTES")
    transfer_concurrency: int = Field(4, alias="TRANSFER_CONCURRENCY")
    download_timeout_seconds: float = Field(30.0, alias="DOWNLOAD_TIMEOUT_SECONDS")
    upload_timeout_seconds: float = Field(30.0, alias="UPLOAD_TIMEOUT_SECONDS")

    @field_validator("bot_token")
    @classmethod
    def _require_bot_token(cls, value: str) -> str:
        if not value.startswith("xoxb-"):
            raise ValueError("SLACK_BOT_TOKEN must be a bot token starting with 'xoxb-'")
        return value

    @field_validator("github_assets_repo", mode="before")
    @classmethod
    def _blank_as_none(cls, value: str | None) -> str | None:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("github_assets_dir")
    @classmethod
    def _strip_slashes(cls, value: str) -> str:
        return value.strip("/")

    @field_validator("transfer_concurrency")
    @classmethod
    def _bounded_concurrency(cls, value: int) -> int:
        if not 1 <= value <= MAX_TRANSFER_CONCURRENCY:
            raise ValueError(f"Transfer concurrency must be between 1 and {MAX_TRANSFER_CONCURRENCY}")
        return value

    @field_validator("max_attachment_bytes", "download_timeout_seconds", "upload_timeout_seconds")
    @classmethod
    def _ensure_positive(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("Limits and timeouts must be greater than zero")
        return value

    @property
    def assets_repo(self) -> str:
        """Repository that receives uploaded attachments."""

        return self.github_assets_repo or self.github_repo


def _format_missing(fields: Iterable[str]) -> str:
    """Return a human-friendly comma-separated list of env vars."""

    unique: List[str] = []
    for field in fields:
        if field not in unique:
            unique.append(field)
    return ", ".join(unique)


def settings_from_mapping(environ) -> AppSettings:
    """Validate *environ* into settings, raising ConfigurationError on failure."""

    try:
        return AppSettings.model_validate(dict(environ))
    except ValidationError as exc:
        missing = [str(error["loc"][0]) for error in exc.errors() if error["type"] == "missing"]
        invalid = [str(error["loc"][0]) for error in exc.errors() if error["type"] != "missing"]
        problems = []
        if missing:
            problems.append(f"Missing required environment variables: {_format_missing(missing)}")
        if invalid:
            problems.append(f"Invalid environment variables: {_format_missing(invalid)}")
        raise ConfigurationError("; ".join(problems)) from exc


@lru_cache()
def get_settings() -> AppSettings:
    """Fetch and cache settings from environment variables."""

    return settings_from_mapping(os.environ)
