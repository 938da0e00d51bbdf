"""
GitHub Actions event handling.

Resolves which pull request a workflow run is about from the event name and
the JSON payload GitHub writes to GITHUB_EVENT_PATH.
"""

import json
from pathlib import Path
from typing import Any

from reviewgate.errors import InputUnavailableError, UnsupportedEventError

PULL_REQUEST_EVENTS = ("pull_request", "pull_request_target")
REVIEW_EVENTS = ("pull_request_review",)


def load_event_payload(path: Path | str) -> dict[str, Any]:
    """Read the workflow event payload."""
    path = Path(path)
    try:
        with path.open(encoding="utf-8") as f:
            return json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise InputUnavailableError(
            message=f"Unable to read event payload {path}: {e}",
            context={"event_path": str(path)},
        ) from e


def get_pr_number(event_name: str, payload: dict[str, Any]) -> int:
    """
    Return the pull request number for a supported event.

    Raises:
        UnsupportedEventError: If the event does not concern a pull request
    """
    if event_name in PULL_REQUEST_EVENTS:
        number = payload.get("number")
    elif event_name in REVIEW_EVENTS:
        number = (payload.get("pull_request") or {}).get("number")
    else:
        raise UnsupportedEventError(event_name=event_name)

    if not isinstance(number, int):
        raise UnsupportedEventError(
            event_name=event_name,
            message=f"Event '{event_name}' payload has no pull request number",
        )
    return number


def get_base_ref(payload: dict[str, Any]) -> str | None:
    """Return the pull request's base branch, if the payload carries one."""
    pull_request = payload.get("pull_request") or {}
    return (pull_request.get("base") or {}).get("ref")
