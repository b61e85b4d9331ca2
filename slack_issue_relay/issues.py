"""Issue search backing the modal's external select."""

from __future__ import annotations

import re
from typing import Any, Dict, List

import structlog

from .errors import TransientNetworkError, UpstreamAPIError

MAX_OPTIONS = 20
MAX_OPTION_TEXT_LENGTH = 75

_NUMBER_QUERY = re.compile(r"#?(\d+)")
_QUALIFIER_TOKEN = re.compile(r"[-(\"']*[A-Za-z][\w-]*:.*")


def _title_terms(query: str) -> str:
    # qualifier:value terms are dropped so results stay inside the configured repository
    terms = [term for term in query.split() if not _QUALIFIER_TOKEN.fullmatch(term)]
    return " ".join(terms)


def build_issue_search_query(owner: str, repo: str, query: str) -> str:
    scope = f"repo:{owner}/{repo} is:issue"
    query = (query or "").strip()
    match = _NUMBER_QUERY.fullmatch(query)
    if match:
        return f"{scope} number:{match.group(1)}"
    terms = _title_terms(query)
    if not terms:
        return scope
    return f"{scope} in:title {terms}"


def to_option(item: Dict[str, Any]) -> Dict[str, Any]:
    text = f"#{item.get('number')} {item.get('title') or ''}".strip()
    return {
        "text": {"type": "plain_text", "text": text[:MAX_OPTION_TEXT_LENGTH]},
        "value": str(item.get("number")),
    }


def search_issue_options(github, *, owner: str, repo: str, query: str) -> List[Dict[str, Any]]:
    """Return up to 20 Slack options for issues matching *query*.

    Search failures yield an empty list so the picker shows no matches.
    """

    search = build_issue_search_query(owner, repo, query)
    try:
        items = github.search_issues(search, per_page=MAX_OPTIONS)
    except (UpstreamAPIError, TransientNetworkError) as exc:
        structlog.get_logger().warning("issue_search_failed", error=str(exc))
        return []

    return [to_option(item) for item in items[:MAX_OPTIONS] if item.get("number") is not None]
