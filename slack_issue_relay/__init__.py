"""Slack issue relay package initialisation."""

from .background import run_async  # noqa: F401
from .config import AppSettings, get_settings  # noqa: F401
from .errors import (  # noqa: F401
    AuthError,
    ConfigurationError,
    ContentPolicyError,
    RelayError,
    TransientNetworkError,
    UpstreamAPIError,
)
from .logging_config import configure_logging  # noqa: F401
from .models import FileRef, ModalMetadata, UploadedAsset, UploadError  # noqa: F401

__all__ = [
    "AppSettings",
    "get_settings",
    "run_async",
    "configure_logging",
    "AuthError",
    "ConfigurationError",
    "ContentPolicyError",
    "RelayError",
    "TransientNetworkError",
    "UpstreamAPIError",
    "FileRef",
    "ModalMetadata",
    "UploadedAsset",
    "UploadError",
]
