"""Drain service — applies one queued publish action per invocation.

Each call dequeues at most one action, checks it against the current publish
target, applies it to the target store, counts it against the target's
remaining actions (finalizing the commit when none remain), acknowledges
the message and triggers the next invocation.  All progress lives in the
queue and the status store, so invocations can run on any host.
"""

from typing import Any

from loguru import logger

from repo_publisher.core.config import Settings
from repo_publisher.core.dependencies import Collaborators
from repo_publisher.core.logging import bind_target
from repo_publisher.lib.publisher.site_config import content_root, strip_content_root
from repo_publisher.lib.publisher.storage import destination_for, guess_content_type
from repo_publisher.lib.publisher.types import DrainOutcome, DrainResult
from repo_publisher.schemas.events import SnsEvent
from repo_publisher.schemas.publish_action import ActionKind, PublishAction


def is_drain_trigger(payload: dict[str, Any], message: str) -> bool:
    """Whether a Lambda event carries the drain trigger notification."""
    try:
        return SnsEvent.model_validate(payload).has_message(message)
    except ValueError:
        return False


def apply_action(action: PublishAction, root: str, deps: Collaborators, settings: Settings) -> bool:
    """Execute an action against the target store.

    Args:
        action: The action to apply.
        root: Normalised content root of the target commit.
        deps: External collaborators.
        settings: Application settings (destination templates).

    Returns:
        False when the path lies outside the content root and nothing was done.
    """
    log = bind_target(action.repository_name, action.branch_name, action.commit_id)
    relative = strip_content_root(action.path, root)
    if relative is None:
        log.info("{} is outside content root {!r}, skipping", action.path, root)
        return False

    bucket, key = destination_for(
        settings.target_bucket,
        settings.target_prefix,
        action.repository_name,
        action.branch_name,
        relative,
    )

    if action.action == ActionKind.DELETE:
        deps.target_store.delete(bucket, key)
        return True

    assert action.blob_id is not None
    log.info("Loading {} from {} repository", action.path, action.repository_name)
    content = deps.diff_source.get_blob(action.repository_name, action.blob_id)
    deps.target_store.put(bucket, key, content, guess_content_type(relative))
    return True


def drain_once(deps: Collaborators, settings: Settings) -> DrainResult:
    """Process at most one queued publish action.

    Returns:
        DrainResult describing what happened.

    Raises:
        botocore.exceptions.ClientError: On AWS service failures; the message
            stays on the queue and is redelivered after its visibility timeout.
    """
    queued = deps.action_queue.dequeue_one()
    if queued is None:
        return DrainResult(outcome=DrainOutcome.QUEUE_EMPTY)

    action = queued.action
    log = bind_target(action.repository_name, action.branch_name, action.commit_id)
    log.info(
        "Processing publisher action {} ({} {} #{})",
        queued.message_id,
        action.action,
        action.path,
        action.action_id,
    )

    target = deps.status_store.get(action.repository_name, action.branch_name)
    if target is None or target.new_commit_id != action.commit_id:
        log.info(
            "Action is not for the commit currently in progress ({}), skipping it",
            target.new_commit_id if target else None,
        )
        if settings.stale_action_policy == "redeliver":
            return DrainResult(outcome=DrainOutcome.STALE_DEFERRED, action=action)
        deps.action_queue.ack(queued)
        deps.notifier.trigger()
        return DrainResult(outcome=DrainOutcome.STALE, action=action)

    root = content_root(target.new_config, settings.default_content_root)
    applied = apply_action(action, root, deps, settings)
    outcome = DrainOutcome.APPLIED if applied else DrainOutcome.SKIPPED

    completed = False
    remaining = deps.status_store.record_completion(
        action.repository_name, action.branch_name, action.commit_id, action.action_id
    )
    if remaining is None:
        log.info("Currently in progress commit changed or action already counted")
        outcome = DrainOutcome.RACE_LOST
    elif remaining <= 0:
        completed = deps.status_store.finalize(
            action.repository_name,
            action.branch_name,
            action.commit_id,
            target.new_ignore_patterns,
            target.new_config,
        )
        if completed:
            log.info("All actions done, commit is now published")
        else:
            log.info("Currently in progress commit changed before it could be finalized")
    else:
        log.debug("{} actions remaining", remaining)

    deps.action_queue.ack(queued)
    deps.notifier.trigger()
    log.info("Publisher action successfully performed")
    return DrainResult(outcome=outcome, action=action, completed=completed)


def handle_notification(payload: dict[str, Any], deps: Collaborators, settings: Settings) -> DrainResult:
    """Drain worker entrypoint: ignore non-trigger events, otherwise drain once."""
    if not is_drain_trigger(payload, settings.drain_trigger_message):
        logger.info("Unrecognized message, skipping")
        return DrainResult(outcome=DrainOutcome.IGNORED)
    return drain_once(deps, settings)
