"""Attachment transfer from Slack into the issue tracker."""

from .download import SlackFileDownloader
from .engine import AttachmentTransferEngine, MetadataLookupError
from .policy import DEFAULT_MAX_BYTES, check_file_size, check_file_type, effective_mimetype
from .sinks import AttachmentSink, RepoContentsSink, build_attachment_sink

__all__ = [
    "AttachmentSink",
    "AttachmentTransferEngine",
    "DEFAULT_MAX_BYTES",
    "MetadataLookupError",
    "RepoContentsSink",
    "SlackFileDownloader",
    "build_attachment_sink",
    "check_file_size",
    "check_file_type",
    "effective_mimetype",
]
