"""Data carried through an interaction: file references, modal state, transfer results."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Union

from pydantic import BaseModel, ConfigDict, Field


class FileRef(BaseModel):
    """Minimal descriptor of a Slack-hosted file.

    Message payloads may carry only the id; the download URL and MIME type are
    filled in later from ``files.info``. Field names follow Slack's file object
    so both Slack payloads and stored metadata validate into this model.
    """

    model_config = ConfigDict(frozen=True)

    id: str | None = None
    name: str | None = None
    mimetype: str | None = None
    url_private_download: str | None = None
    url_private: str | None = None
    size: int | None = None

    @property
    def display_name(self) -> str:
        return self.name or self.id or "file"

    @property
    def download_url(self) -> str | None:
        return self.url_private_download or self.url_private

    def without_download_details(self) -> "FileRef":
        return FileRef(id=self.id, name=self.name, size=self.size)

    def identity_only(self) -> "FileRef":
        return FileRef(id=self.id, name=self.name)


class ModalMetadata(BaseModel):
    """State round-tripped through the modal's ``private_metadata`` field."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    text: str = ""
    user: str
    channel: str
    channel_id: str | None = Field(None, alias="channelId")
    message_ts: str | None = Field(None, alias="messageTs")
    team_id: str | None = Field(None, alias="teamId")
    team_domain: str | None = Field(None, alias="teamDomain")
    files: List[FileRef] = Field(default_factory=list)


@dataclass(frozen=True)
class UploadedAsset:
    """A file that now lives at *url* and can be linked from markdown."""

    filename: str
    url: str
    mimetype: str

    @property
    def is_image(self) -> bool:
        return self.mimetype.startswith("image/")


@dataclass(frozen=True)
class UploadError:
    """A file that could not be transferred, with a reason fit for the comment."""

    filename: str
    reason: str


TransferResult = Union[UploadedAsset, UploadError]


@dataclass(frozen=True)
class DownloadedFile:
    filename: str
    mimetype: str
    content: bytes

    @property
    def size(self) -> int:
        return len(self.content)
