"""Build, size-limit and parse the modal's private metadata."""

from __future__ import annotations

import json
from typing import Any, Callable, Mapping

import structlog
from pydantic import ValidationError

from .models import FileRef, ModalMetadata

PRIVATE_METADATA_LIMIT = 3000
TRUNCATION_MARKER = "…"


def _project_file(file_ref: FileRef) -> FileRef:
    return FileRef(
        id=file_ref.id,
        name=file_ref.name,
        mimetype=file_ref.mimetype,
        url_private_download=file_ref.download_url,
        size=file_ref.size,
    )


def build_modal_metadata(body: Mapping[str, Any]) -> ModalMetadata:
    """Project a ``message_action`` payload onto the metadata kept in the modal."""

    message = body.get("message") or {}
    user = body.get("user") or {}
    channel = body.get("channel") or {}
    team = body.get("team") or {}

    files = [
        _project_file(FileRef.model_validate(item))
        for item in message.get("files") or []
        if isinstance(item, dict)
    ]

    return ModalMetadata(
        text=message.get("text") or "",
        user=user.get("username") or user.get("name") or user.get("id") or "unknown",
        channel=channel.get("name") or channel.get("id") or "unknown",
        channel_id=channel.get("id"),
        message_ts=message.get("ts"),
        team_id=team.get("id"),
        team_domain=team.get("domain"),
        files=files,
    )


def encode_metadata(metadata: ModalMetadata) -> str:
    payload = metadata.model_dump(by_alias=True, exclude_none=True)
    return json.dumps(payload, ensure_ascii=False, separators=(",", ":"))


def _with_files(metadata: ModalMetadata, files: list[FileRef]) -> ModalMetadata:
    return metadata.model_copy(update={"files": files})


def fit_metadata(metadata: ModalMetadata, *, limit: int = PRIVATE_METADATA_LIMIT) -> str:
    """Serialise *metadata*, degrading file references until it fits in *limit*.

    File entries first lose their download URL and MIME type, then everything
    but id and name, then are dropped from the end one by one. As a last
    resort the message text is truncated. Each step builds new objects; the
    input is left untouched.
    """

    log = structlog.get_logger().bind(file_count=len(metadata.files), limit=limit)
    encoded = encode_metadata(metadata)
    if len(encoded) <= limit:
        return encoded

    candidate = metadata
    degradations: tuple[tuple[str, Callable[[FileRef], FileRef]], ...] = (
        ("without_download_details", FileRef.without_download_details),
        ("identity_only", FileRef.identity_only),
    )
    for level, degrade in degradations:
        candidate = _with_files(candidate, [degrade(item) for item in candidate.files])
        encoded = encode_metadata(candidate)
        if len(encoded) <= limit:
            log.info("modal_metadata_degraded", level=level, size=len(encoded))
            return encoded

    files = list(candidate.files)
    while files and len(encoded) > limit:
        files = files[:-1]
        candidate = _with_files(candidate, files)
        encoded = encode_metadata(candidate)

    if len(encoded) <= limit:
        log.warning(
            "modal_metadata_files_dropped",
            kept=len(files),
            dropped=len(metadata.files) - len(files),
            size=len(encoded),
        )
        return encoded

    text = candidate.text
    while len(encoded) > limit and text:
        overflow = len(encoded) - limit
        text = text[: max(len(text) - overflow - len(TRUNCATION_MARKER), 0)]
        candidate = candidate.model_copy(update={"text": text + TRUNCATION_MARKER if text else ""})
        encoded = encode_metadata(candidate)

    log.warning("modal_metadata_text_truncated", size=len(encoded), dropped_files=len(metadata.files))
    return encoded


def parse_metadata(raw: str | None) -> ModalMetadata:
    """Parse metadata echoed back by a ``view_submission``."""

    if not raw:
        raise ValueError("Modal metadata is missing.")
    try:
        return ModalMetadata.model_validate_json(raw)
    except ValidationError as exc:
        raise ValueError("Modal metadata is invalid.") from exc
