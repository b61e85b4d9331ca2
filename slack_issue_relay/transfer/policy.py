"""Allow-list and size rules applied to every attachment."""

from __future__ import annotations

import os

from slack_issue_relay.errors import ContentPolicyError

MIB = 1024 * 1024
DEFAULT_MAX_BYTES = 10 * MIB

PDF_MIMETYPE = "application/pdf"
SPREADSHEET_MIMETYPES = frozenset(
    {
        "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        "application/vnd.ms-excel",
        "application/msexcel",
        "application/x-msexcel",
        "text/csv",
    }
)
SPREADSHEET_EXTENSIONS = frozenset({".xlsx", ".xls", ".csv"})

_EXTENSION_MIMETYPES = {
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".gif": "image/gif",
    ".webp": "image/webp",
    ".pdf": PDF_MIMETYPE,
    ".xlsx": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    ".xls": "application/vnd.ms-excel",
    ".csv": "text/csv",
}
_GENERIC_MIMETYPES = frozenset({"", "application/octet-stream", "binary/octet-stream", "text/plain"})


def extension_of(filename: str) -> str:
    return os.path.splitext(filename or "")[1].lower()


def effective_mimetype(filename: str, mimetype: str | None) -> str:
    """Return *mimetype*, or one inferred from the extension when it is generic."""

    declared = (mimetype or "").split(";", 1)[0].strip().lower()
    if declared in _GENERIC_MIMETYPES:
        inferred = _EXTENSION_MIMETYPES.get(extension_of(filename))
        if inferred:
            return inferred
    return declared or "application/octet-stream"


def is_spreadsheet(filename: str, mimetype: str) -> bool:
    return mimetype in SPREADSHEET_MIMETYPES or extension_of(filename) in SPREADSHEET_EXTENSIONS


def is_supported(filename: str, mimetype: str) -> bool:
    if mimetype.startswith("image/"):
        return True
    if mimetype == PDF_MIMETYPE:
        return True
    # extensions only count once effective_mimetype has resolved a generic type
    return mimetype in SPREADSHEET_MIMETYPES


def check_file_type(filename: str, mimetype: str) -> None:
    if not is_supported(filename, mimetype):
        raise ContentPolicyError(f"Unsupported file type: {mimetype}")


def _size_limit_label(max_bytes: int) -> str:
    if max_bytes % MIB == 0:
        return f"{max_bytes // MIB}MB"
    return f"{max_bytes / MIB:.2f}MB"


def size_error(size: int, max_bytes: int) -> ContentPolicyError:
    return ContentPolicyError(
        f"File size exceeds {_size_limit_label(max_bytes)} limit: {size / MIB:.2f}MB"
    )


def check_file_size(size: int | None, max_bytes: int = DEFAULT_MAX_BYTES) -> None:
    """Reject sizes over *max_bytes*; unknown sizes pass."""

    if size is not None and size > max_bytes:
        raise size_error(size, max_bytes)
