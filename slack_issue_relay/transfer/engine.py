"""Move Slack attachments into the issue tracker, one isolated transfer per file."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from contextvars import copy_context
from typing import List, Sequence, Tuple

import structlog
from slack_sdk.errors import SlackApiError

from slack_issue_relay.errors import RelayError
from slack_issue_relay.models import FileRef, TransferResult, UploadedAsset, UploadError

from .download import SlackFileDownloader
from .policy import DEFAULT_MAX_BYTES, check_file_size, check_file_type, effective_mimetype
from .sinks import AttachmentSink

DEFAULT_CONCURRENCY = 4


class MetadataLookupError(RelayError):
    """Raised when ``files.info`` cannot fill in a file reference."""


class AttachmentTransferEngine:
    """Download Slack files and store them through an :class:`AttachmentSink`.

    :meth:`transfer` never raises. Every failure, expected or not, comes back
    as an :class:`UploadError` so one file cannot cancel its siblings.
    """

    def __init__(
        self,
        *,
        slack,
        downloader: SlackFileDownloader,
        sink: AttachmentSink,
        max_bytes: int = DEFAULT_MAX_BYTES,
        concurrency: int = DEFAULT_CONCURRENCY,
    ) -> None:
        self._slack = slack
        self._downloader = downloader
        self._sink = sink
        self._max_bytes = max_bytes
        self._concurrency = max(1, concurrency)

    def resolve(self, file_ref: FileRef) -> FileRef:
        """Fill a missing download URL or MIME type from ``files.info``."""

        if file_ref.download_url and file_ref.mimetype:
            return file_ref
        if not file_ref.id:
            raise MetadataLookupError("metadata lookup failed: file has no id")

        try:
            info = self._slack.file_info(file_ref.id)
        except (SlackApiError, ValueError) as exc:
            raise MetadataLookupError(f"metadata lookup failed: {exc}") from exc

        return FileRef(
            id=file_ref.id,
            name=file_ref.name or info.get("name"),
            mimetype=file_ref.mimetype or info.get("mimetype"),
            url_private_download=file_ref.download_url
            or info.get("url_private_download")
            or info.get("url_private"),
            size=file_ref.size if file_ref.size is not None else info.get("size"),
        )

    def transfer(self, file_ref: FileRef, issue_number: str) -> TransferResult:
        filename = file_ref.display_name
        log = structlog.get_logger().bind(file_id=file_ref.id, issue_number=issue_number)

        try:
            resolved = self.resolve(file_ref)
            filename = resolved.display_name
            mimetype = effective_mimetype(filename, resolved.mimetype)

            check_file_type(filename, mimetype)
            check_file_size(resolved.size, self._max_bytes)

            if not resolved.download_url:
                raise MetadataLookupError("metadata lookup failed: no download URL")

            downloaded = self._downloader.download(
                resolved.download_url, filename=filename, mimetype=mimetype
            )
            check_file_size(downloaded.size, self._max_bytes)

            url = self._sink.store(
                downloaded.content,
                filename=filename,
                mimetype=mimetype,
                issue_number=issue_number,
            )
        except RelayError as exc:
            log.warning(
                "attachment_transfer_failed",
                error=str(exc),
                error_type=type(exc).__name__,
            )
            return UploadError(filename=filename, reason=str(exc))
        except Exception as exc:
            log.exception("attachment_transfer_crashed", error_type=type(exc).__name__)
            return UploadError(filename=filename, reason=str(exc) or type(exc).__name__)

        log.info("attachment_transferred", size=downloaded.size, mimetype=mimetype)
        return UploadedAsset(filename=filename, url=url, mimetype=mimetype)

    def transfer_all(
        self, files: Sequence[FileRef], issue_number: str
    ) -> Tuple[List[UploadedAsset], List[UploadError]]:
        """Transfer *files* with bounded parallelism, keeping input order.

        Returns once every file has either uploaded or failed.
        """

        if not files:
            return [], []

        workers = min(self._concurrency, len(files))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="relay-transfer") as pool:
            futures = [
                pool.submit(copy_context().run, self.transfer, file_ref, issue_number)
                for file_ref in files
            ]
            results = [future.result() for future in futures]

        succeeded = [result for result in results if isinstance(result, UploadedAsset)]
        failed = [result for result in results if isinstance(result, UploadError)]
        return succeeded, failed
