"""Ingest service — turns a commit into a staged batch of publish actions.

For every commit event: diff the commit against the last fully published
commit, apply ignore-file and site-config changes found in the diff, filter
the diff through the ignore patterns, then either advance the published
commit directly (nothing to publish) or stage the commit as the new publish
target, enqueue one action per changed path and trigger the drain worker.
"""

import hashlib
from collections.abc import Iterable
from typing import Any

from pydantic import ValidationError

from repo_publisher.core.config import Settings
from repo_publisher.core.dependencies import Collaborators
from repo_publisher.core.logging import bind_target
from repo_publisher.lib.publisher.errors import EventError
from repo_publisher.lib.publisher.ignore import IgnoreMatcher, parse_ignore_file
from repo_publisher.lib.publisher.repository import DiffSource
from repo_publisher.lib.publisher.site_config import parse_site_config
from repo_publisher.lib.publisher.types import DiffEntry, IngestResult
from repo_publisher.schemas.events import CodeCommitEvent, CommitEvent
from repo_publisher.schemas.publish_action import ActionKind, PublishAction


def commit_events_from_payload(payload: dict[str, Any]) -> list[CommitEvent]:
    """Extract commit events from a CodeCommit trigger payload.

    Tag references and deleted branches are skipped.

    Args:
        payload: Raw Lambda event.

    Returns:
        Commit events in arrival order.

    Raises:
        EventError: If the payload is not a CodeCommit trigger event.
    """
    try:
        parsed = CodeCommitEvent.model_validate(payload)
        events: list[CommitEvent] = []
        for record in parsed.records:
            repository = record.repository
            for ref in record.codecommit.references:
                log = bind_target(repository, ref.branch or ref.ref, ref.commit)
                if ref.deleted:
                    log.info("Skipping deleted reference {}", ref.ref)
                    continue
                if ref.branch is None:
                    log.info("Skipping non-branch reference {}", ref.ref)
                    continue
                events.append(CommitEvent(repository=repository, branch=ref.branch, commit_id=ref.commit))
    except (ValidationError, ValueError) as exc:
        msg = f"Unrecognised commit event: {exc}"
        raise EventError(msg) from exc
    return events


def _touches(entry: DiffEntry, path: str) -> bool:
    return path in entry.paths


def apply_control_changes(
    diff: Iterable[DiffEntry],
    repository: str,
    diff_source: DiffSource,
    settings: Settings,
    ignore_patterns: list[str],
    config: dict[str, Any],
) -> tuple[list[str], dict[str, Any]]:
    """Update ignore patterns and site config from control-file changes in ``diff``.

    Returns:
        The ``(ignore_patterns, config)`` in effect after the diff.

    Raises:
        ControlFileError: If a changed control file cannot be parsed.
    """
    for entry in diff:
        for control_path in (settings.ignore_file_path, settings.site_config_path):
            if not _touches(entry, control_path):
                continue

            present = not entry.is_deletion and entry.after is not None and entry.after.path == control_path
            if control_path == settings.ignore_file_path:
                if present:
                    assert entry.after is not None
                    content = diff_source.get_blob(repository, entry.after.blob_id)
                    ignore_patterns = parse_ignore_file(content, control_path)
                else:
                    ignore_patterns = []
            elif present:
                assert entry.after is not None
                content = diff_source.get_blob(repository, entry.after.blob_id)
                config = parse_site_config(content, control_path)
            else:
                config = {}
    return ignore_patterns, config


def _actions_for(entry: DiffEntry) -> list[tuple[ActionKind, str, str | None]]:
    if entry.is_deletion:
        assert entry.before is not None
        return [(ActionKind.DELETE, entry.before.path, None)]
    assert entry.after is not None
    actions: list[tuple[ActionKind, str, str | None]] = [(ActionKind.PUT, entry.after.path, entry.after.blob_id)]
    if entry.before is not None and entry.before.path != entry.after.path:
        actions.append((ActionKind.DELETE, entry.before.path, None))
    return actions


def action_id_for(path: str) -> str:
    """Identifier of the action for ``path``, stable across re-plans of any commit."""
    return hashlib.sha256(path.encode()).hexdigest()[:20]


def plan_actions(
    entries: Iterable[DiffEntry],
    reconciliation: Iterable[DiffEntry] = (),
    *,
    repository: str,
    branch: str,
    commit_id: str,
) -> list[PublishAction]:
    """Build the ordered, de-duplicated action batch for a commit.

    Every path gets exactly one action; a PUT beats a DELETE for the same
    path.  ``reconciliation`` entries only contribute paths the primary diff
    does not cover.  Actions are ordered by path and identified by it.
    """
    planned: dict[str, tuple[ActionKind, str | None]] = {}
    for entry in entries:
        for kind, path, blob_id in _actions_for(entry):
            if path in planned and planned[path][0] == ActionKind.PUT:
                continue
            planned[path] = (kind, blob_id)

    primary_paths = set(planned)
    for entry in reconciliation:
        for kind, path, blob_id in _actions_for(entry):
            if path in primary_paths:
                continue
            if path in planned and planned[path][0] == ActionKind.PUT:
                continue
            planned[path] = (kind, blob_id)

    return [
        PublishAction(
            repository_name=repository,
            branch_name=branch,
            commit_id=commit_id,
            action=kind,
            path=path,
            blob_id=blob_id,
            action_id=action_id_for(path),
        )
        for path, (kind, blob_id) in sorted(planned.items())
    ]


def ingest_commit(event: CommitEvent, deps: Collaborators, settings: Settings) -> IngestResult:
    """Stage one commit for publishing.

    Args:
        event: The commit to publish.
        deps: External collaborators.
        settings: Application settings (control file paths).

    Returns:
        IngestResult describing what was staged.

    Raises:
        ControlFileError: If a changed control file cannot be parsed.
        botocore.exceptions.ClientError: On AWS service failures.
    """
    repository, branch, commit_id = event.repository, event.branch, event.commit_id
    log = bind_target(repository, branch, commit_id)

    target = deps.status_store.get(repository, branch)
    published_commit_id = target.published_commit_id if target else None
    ignore_patterns = list(target.published_ignore_patterns) if target else []
    config = dict(target.published_config) if target else {}

    if published_commit_id:
        log.info("Found currently published commit {}", published_commit_id)
    else:
        log.info("No currently published commit, performing full repository publish")

    diff = deps.diff_source.diff(repository, published_commit_id, commit_id)
    ignore_patterns, config = apply_control_changes(
        diff, repository, deps.diff_source, settings, ignore_patterns, config
    )

    matcher = IgnoreMatcher(ignore_patterns)
    entries = matcher.filter(diff)
    log.info("Found {} differences, {} after ignore filtering", len(diff), len(entries))

    # every unfinished batch may already have written some of its paths
    in_flight = target.new_commit_id if target is not None else None
    superseded = set(target.superseded_commit_ids) if target is not None else set()
    if in_flight:
        superseded.add(in_flight)
    superseded.discard(commit_id)
    if in_flight and in_flight != commit_id:
        log.info("Superseding in-flight commit {}", in_flight)

    reconciliation: list[DiffEntry] = []
    for other in sorted(superseded):
        log.info("Reconciling paths of unfinished commit {}", other)
        reconciliation.extend(matcher.filter(deps.diff_source.diff(repository, other, commit_id)))

    actions = plan_actions(entries, reconciliation, repository=repository, branch=branch, commit_id=commit_id)

    if not actions:
        deps.status_store.advance_published(
            repository,
            branch,
            commit_id,
            ignore_patterns,
            config,
            cancel_in_flight=in_flight is not None,
        )
        log.info("Nothing to publish, marked commit as published")
        return IngestResult(repository=repository, branch=branch, commit_id=commit_id, action_count=0, staged=False)

    deps.status_store.stage(
        repository,
        branch,
        commit_id,
        ignore_patterns,
        config,
        [action.action_id for action in actions],
        superseded=sorted(superseded),
    )

    log.info("Queueing {} publisher actions", len(actions))
    for action in actions:
        deps.action_queue.enqueue(action)

    log.info("Triggering publisher")
    deps.notifier.trigger()

    return IngestResult(
        repository=repository,
        branch=branch,
        commit_id=commit_id,
        action_count=len(actions),
        staged=True,
    )


def ingest_events(events: Iterable[CommitEvent], deps: Collaborators, settings: Settings) -> list[IngestResult]:
    """Ingest commit events strictly one at a time, in arrival order.

    The first failure aborts the remaining events and propagates.
    """
    results: list[IngestResult] = []
    for event in events:
        try:
            results.append(ingest_commit(event, deps, settings))
        except Exception as exc:
            bind_target(event.repository, event.branch, event.commit_id).error("Commit ingest failed: {}", exc)
            raise
    return results
