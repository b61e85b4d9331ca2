"""Utilities for validating Slack request signatures."""

from __future__ import annotations

import hmac
import time
from hashlib import sha256
from typing import Mapping

SLACK_SIGNATURE_HEADER = "X-Slack-Signature"
SLACK_TIMESTAMP_HEADER = "X-Slack-Request-Timestamp"
VERSION = "v0"
DEFAULT_TOLERANCE = 60 * 5  # five minutes


def _as_bytes(value: bytes | str) -> bytes:
    if isinstance(value, bytes):
        return value
    return value.encode("utf-8")


def compute_signature(signing_secret: str, timestamp: str, body: bytes | str) -> str:
    """Return Slack-compatible signature for the provided payload.

    The body is signed exactly as received, so callers must pass the raw
    request bytes rather than a re-serialised form.
    """

    basestring = f"{VERSION}:{timestamp}:".encode("utf-8") + _as_bytes(body)
    secret = signing_secret.encode("utf-8")
    digest = hmac.new(secret, basestring, sha256).hexdigest()
    return f"{VERSION}={digest}"


def is_valid_slack_request(
    *,
    signing_secret: str,
    timestamp: str | None,
    body: bytes | str,
    signature: str | None,
    tolerance: int = DEFAULT_TOLERANCE,
) -> bool:
    """Validate Slack signature and timestamp to guard against replay attacks."""

    if not timestamp or not signature:
        return False

    try:
        request_ts = int(timestamp)
    except (TypeError, ValueError):
        return False

    current_ts = int(time.time())
    if abs(current_ts - request_ts) > tolerance:
        return False

    expected = compute_signature(signing_secret, timestamp, body)
    return hmac.compare_digest(expected.encode("utf-8"), _as_bytes(signature))


def _header(headers: Mapping[str, str], name: str) -> str | None:
    value = headers.get(name)
    if value is not None:
        return value
    lowered = name.lower()
    for key, candidate in headers.items():
        if key.lower() == lowered:
            return candidate
    return None


def verify_slack_request(
    headers: Mapping[str, str],
    raw_body: bytes | str,
    *,
    signing_secret: str,
    tolerance: int = DEFAULT_TOLERANCE,
) -> bool:
    """Return True when *headers* carry a fresh, matching Slack signature.

    Never raises: missing headers, malformed timestamps and mismatches all
    yield False.
    """

    return is_valid_slack_request(
        signing_secret=signing_secret,
        timestamp=_header(headers, SLACK_TIMESTAMP_HEADER),
        body=raw_body,
        signature=_header(headers, SLACK_SIGNATURE_HEADER),
        tolerance=tolerance,
    )
