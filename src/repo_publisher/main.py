"""AWS Lambda entrypoints.

``commit_handler`` is subscribed to the repository trigger and runs the
ingest stage; ``publisher_handler`` is subscribed to the notification topic
and runs one drain step per invocation.
"""

from functools import lru_cache
from typing import Any

from loguru import logger

from repo_publisher.core.config import Settings, get_settings
from repo_publisher.core.dependencies import Collaborators, build_collaborators
from repo_publisher.core.logging import setup_logging
from repo_publisher.services.drain_service import handle_notification
from repo_publisher.services.ingest_service import commit_events_from_payload, ingest_events


@lru_cache(maxsize=1)
def _runtime() -> tuple[Settings, Collaborators]:
    """Settings, logging and AWS clients, created once per container."""
    settings = get_settings()
    setup_logging(settings.log_level, log_dir=settings.log_dir)
    return settings, build_collaborators(settings)


def commit_handler(event: dict[str, Any], context: Any = None) -> dict[str, Any]:
    """Handle a CodeCommit trigger event."""
    settings, deps = _runtime()
    events = commit_events_from_payload(event)
    results = ingest_events(events, deps, settings)
    logger.info("Commit event handled: {} commit(s)", len(results))
    return {
        "commits": [
            {
                "repository": r.repository,
                "branch": r.branch,
                "commit_id": r.commit_id,
                "actions": r.action_count,
                "staged": r.staged,
            }
            for r in results
        ]
    }


def publisher_handler(event: dict[str, Any], context: Any = None) -> dict[str, Any]:
    """Handle a drain trigger notification."""
    settings, deps = _runtime()
    try:
        result = handle_notification(event, deps, settings)
    except Exception as exc:
        logger.error("Publisher action failed: {}", exc)
        raise
    return {
        "outcome": result.outcome.value,
        "commit_id": result.action.commit_id if result.action else None,
        "completed": result.completed,
    }
