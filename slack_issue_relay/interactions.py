"""Handlers for the message shortcut, the modal submission and the issue picker."""

from __future__ import annotations

import re
from typing import Any, Callable, Dict, Mapping
from uuid import uuid4

import structlog
from slack_sdk.errors import SlackApiError
from structlog.contextvars import bind_contextvars, unbind_contextvars

from .background import run_async
from .composer import build_message_link, compose_comment
from .config import AppSettings
from .errors import TransientNetworkError, UpstreamAPIError
from .issues import search_issue_options
from .metadata import build_modal_metadata, fit_metadata, parse_metadata
from .modal import (
    ISSUE_ACTION_ID,
    ISSUE_BLOCK_ID,
    ISSUE_MODAL_CALLBACK_ID,
    build_issue_modal_view,
    extract_selected_issue,
)
from .models import ModalMetadata
from .slack_client import SlackClient
from .transfer import AttachmentSink, AttachmentTransferEngine, SlackFileDownloader

MAX_INLINE_ERROR_LENGTH = 150
ANY_CALLBACK = re.compile(".*")


def _errors(message: str) -> Dict[str, Any]:
    if len(message) > MAX_INLINE_ERROR_LENGTH:
        message = message[: MAX_INLINE_ERROR_LENGTH - 3] + "..."
    return {"response_action": "errors", "errors": {ISSUE_BLOCK_ID: message}}


def _slack_error_code(exc: SlackApiError) -> str:
    return exc.response.get("error") if getattr(exc, "response", None) else str(exc)


class InteractionOrchestrator:
    """Drive a Slack message into a GitHub issue comment.

    Holds no per-interaction state: everything needed between the shortcut
    and the submission travels in the modal's private metadata.
    """

    def __init__(
        self,
        *,
        settings: AppSettings,
        github,
        sink: AttachmentSink,
        downloader: SlackFileDownloader | None = None,
        run_in_background: Callable[..., Any] | None = None,
    ) -> None:
        self._settings = settings
        self._github = github
        self._sink = sink
        self._downloader = downloader or SlackFileDownloader(
            token=settings.bot_token,
            timeout=settings.download_timeout_seconds,
            max_bytes=settings.max_attachment_bytes,
        )
        self._run_in_background = run_in_background or run_async

    @property
    def repository(self) -> str:
        return f"{self._settings.github_owner}/{self._settings.github_repo}"

    def _engine(self, client) -> AttachmentTransferEngine:
        return AttachmentTransferEngine(
            slack=SlackClient(client=client),
            downloader=self._downloader,
            sink=self._sink,
            max_bytes=self._settings.max_attachment_bytes,
            concurrency=self._settings.transfer_concurrency,
        )

    def handle_message_action(self, *, ack, body: Mapping[str, Any], client, logger) -> None:
        """Open the issue picker for the message the shortcut was invoked on."""

        trace_id = str(uuid4())
        bind_contextvars(trace_id=trace_id)
        log = structlog.get_logger().bind(trace_id=trace_id)
        try:
            metadata = build_modal_metadata(body)
            log = log.bind(
                user=metadata.user,
                channel_id=metadata.channel_id,
                file_count=len(metadata.files),
            )
            log.info("message_action_received")

            view = build_issue_modal_view(fit_metadata(metadata), repository=self.repository)
            trigger_id = body.get("trigger_id")
            if not trigger_id:
                log.error("modal_open_failed", error="missing_trigger_id")
            else:
                try:
                    SlackClient(client=client).open_view(trigger_id=trigger_id, view=view)
                    log.info("modal_opened")
                except SlackApiError as exc:
                    error_code = _slack_error_code(exc)
                    log.error("modal_open_failed", error=error_code)
                    logger.error(
                        "Failed to open issue selection modal",
                        extra={"error": error_code},
                    )
            ack()
        finally:
            unbind_contextvars("trace_id")

    def relay_submission(self, *, client, metadata: ModalMetadata, issue_number: str) -> int:
        """Transfer attachments, compose the comment and post it. Returns the comment id."""

        log = structlog.get_logger().bind(issue_number=issue_number)
        succeeded, failed = self._engine(client).transfer_all(metadata.files, issue_number)
        log.info("attachments_processed", uploaded=len(succeeded), failed=len(failed))

        body = compose_comment(
            text=metadata.text,
            user=metadata.user,
            channel=metadata.channel,
            succeeded=succeeded,
            failed=failed,
            deep_link=build_message_link(
                channel_id=metadata.channel_id,
                message_ts=metadata.message_ts,
                team_domain=metadata.team_domain,
                team_id=metadata.team_id,
            ),
        )
        comment_id = self._github.create_issue_comment(
            owner=self._settings.github_owner,
            repo=self._settings.github_repo,
            issue_number=issue_number,
            body=body,
        )
        log.info("issue_comment_posted", comment_id=comment_id)
        return comment_id

    def _relay_in_background(self, *, client, metadata: ModalMetadata, issue_number: str, logger) -> None:
        try:
            self.relay_submission(client=client, metadata=metadata, issue_number=issue_number)
        except (UpstreamAPIError, TransientNetworkError) as exc:
            structlog.get_logger().error(
                "issue_comment_failed", issue_number=issue_number, error=str(exc)
            )
            logger.error(
                "Failed to post issue comment",
                extra={"issue_number": issue_number, "error": str(exc)},
            )

    def handle_view_submission(self, *, ack, body: Mapping[str, Any], client, logger) -> None:
        """Relay the message to the chosen issue and answer the modal."""

        trace_id = str(uuid4())
        bind_contextvars(trace_id=trace_id)
        log = structlog.get_logger().bind(trace_id=trace_id)
        try:
            view = body.get("view") or {}
            try:
                issue_number = extract_selected_issue(view)
                metadata = parse_metadata(view.get("private_metadata"))
            except ValueError as exc:
                log.warning("view_submission_rejected", error=str(exc))
                ack(_errors(str(exc)))
                return

            log = log.bind(issue_number=issue_number, file_count=len(metadata.files))
            log.info("view_submission_received", mode=self._settings.submission_mode)

            if self._settings.submission_mode == "background":
                ack({"response_action": "clear"})
                self._run_in_background(
                    self._relay_in_background,
                    client=client,
                    metadata=metadata,
                    issue_number=issue_number,
                    logger=logger,
                    trace_id=trace_id,
                )
                return

            try:
                self.relay_submission(client=client, metadata=metadata, issue_number=issue_number)
            except (UpstreamAPIError, TransientNetworkError) as exc:
                log.error("issue_comment_failed", error=str(exc))
                logger.error(
                    "Failed to post issue comment",
                    extra={"issue_number": issue_number, "error": str(exc)},
                )
                ack(_errors(f"Could not post to issue #{issue_number}: {exc}"))
                return

            ack({"response_action": "clear"})
        finally:
            unbind_contextvars("trace_id")

    def handle_issue_options(self, *, ack, payload: Mapping[str, Any]) -> None:
        """Answer the external select with matching issues."""

        options = search_issue_options(
            self._github,
            owner=self._settings.github_owner,
            repo=self._settings.github_repo,
            query=payload.get("value") or "",
        )
        ack(options=options)


def register_interaction_handlers(bolt_app, orchestrator: InteractionOrchestrator) -> None:
    """Wire the orchestrator into a Bolt app."""

    @bolt_app.message_shortcut(ANY_CALLBACK)
    def handle_message_action(ack, body, client, logger):
        orchestrator.handle_message_action(ack=ack, body=body, client=client, logger=logger)

    @bolt_app.view(ISSUE_MODAL_CALLBACK_ID)
    def handle_submission(ack, body, client, logger):
        orchestrator.handle_view_submission(ack=ack, body=body, client=client, logger=logger)

    @bolt_app.options(ISSUE_ACTION_ID)
    def handle_issue_options(ack, payload):
        orchestrator.handle_issue_options(ack=ack, payload=payload)
