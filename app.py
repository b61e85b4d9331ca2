"""Application entry point for the Slack issue relay."""

from __future__ import annotations

from pathlib import Path
from uuid import uuid4

from flask import Flask, Response, jsonify, request

from slack_bolt import App as SlackApp
from slack_bolt.adapter.flask import SlackRequestHandler

import structlog

from slack_issue_relay.config import AppSettings, get_settings
from slack_issue_relay.errors import AuthError
from slack_issue_relay.github_client import GitHubClient
from slack_issue_relay.interactions import InteractionOrchestrator, register_interaction_handlers
from slack_issue_relay.logging_config import configure_logging
from slack_issue_relay.security import verify_slack_request
from slack_issue_relay.transfer import build_attachment_sink

_LOGGING_CONFIGURED = False


def _create_bolt_app(settings: AppSettings) -> SlackApp:
    """Initialise the Slack Bolt application using validated settings.

    Listeners run before the HTTP response is sent so that ``ack`` payloads
    (modal errors, picker options) reach Slack.
    """

    return SlackApp(
        token=settings.bot_token,
        signing_secret=settings.signing_secret,
        token_verification_enabled=False,
        process_before_response=True,
    )


def _register_error_handlers(flask_app: Flask) -> None:
    """Register the 401 handler and a JSON handler that attaches a trace identifier."""

    @flask_app.errorhandler(AuthError)
    def handle_auth_error(error: AuthError):  # type: ignore[override]
        return Response(str(error), status=401, mimetype="text/plain")

    @flask_app.errorhandler(Exception)
    def handle_unexpected_error(error: Exception):  # type: ignore[override]
        trace_id = str(uuid4())
        flask_app.logger.exception(
            "Unhandled application error", extra={"trace_id": trace_id}, exc_info=error
        )
        response = jsonify({"error": "internal_server_error", "trace_id": trace_id})
        response.status_code = 500
        return response


def _build_orchestrator(settings: AppSettings) -> InteractionOrchestrator:
    github = GitHubClient(
        token=settings.github_token,
        base_url=settings.github_api_url,
        timeout=settings.upload_timeout_seconds,
    )
    return InteractionOrchestrator(
        settings=settings,
        github=github,
        sink=build_attachment_sink(settings, github),
    )


def _load_version() -> str:
    version_file = Path(__file__).resolve().parent / "VERSION"
    if version_file.exists():
        return version_file.read_text(encoding="utf-8").strip()
    return "unknown"


def create_app(settings: AppSettings | None = None) -> Flask:
    """Create and configure the Flask application."""

    global _LOGGING_CONFIGURED
    if not _LOGGING_CONFIGURED:
        configure_logging()
        _LOGGING_CONFIGURED = True

    settings = settings or get_settings()
    bolt_app = _create_bolt_app(settings)
    register_interaction_handlers(bolt_app, _build_orchestrator(settings))
    handler = SlackRequestHandler(bolt_app)

    flask_app = Flask(__name__)
    flask_app.config["APP_VERSION"] = _load_version()
    flask_app.logger.setLevel("INFO")
    _register_error_handlers(flask_app)

    def _require_signature() -> None:
        raw_body = request.get_data(cache=True)
        if not verify_slack_request(request.headers, raw_body, signing_secret=settings.signing_secret):
            structlog.get_logger().warning("slack_signature_rejected", path=request.path)
            raise AuthError("invalid signature")

    @flask_app.route("/slack/interactivity", methods=["POST"])
    def slack_interactivity():
        _require_signature()
        return handler.handle(request)

    @flask_app.route("/slack/options", methods=["POST"])
    def slack_options():
        _require_signature()
        return handler.handle(request)

    @flask_app.route("/healthz", methods=["GET"])
    def healthz():
        health: dict[str, object] = {"ok": True}
        health["version"] = flask_app.config.get("APP_VERSION", "unknown")
        health["submission_mode"] = settings.submission_mode
        health["attachment_sink"] = settings.attachment_sink
        return jsonify(health), 200

    return flask_app


if __name__ == "__main__":  # pragma: no cover - manual execution helper
    application = create_app()
    application.run(host="0.0.0.0", port=3000, debug=True)
