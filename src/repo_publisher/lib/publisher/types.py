"""Publisher data types.

Dataclasses for the publish target status record, repository diff entries,
and the per-commit / per-action results reported by the pipeline stages.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from repo_publisher.schemas.publish_action import PublishAction


class ChangeType(StrEnum):
    """Kind of path-level change between two commits."""

    ADDED = "A"
    MODIFIED = "M"
    DELETED = "D"


class DrainOutcome(StrEnum):
    """Terminal outcome of one drain worker invocation."""

    IGNORED = "ignored"
    QUEUE_EMPTY = "queue_empty"
    STALE = "stale"
    STALE_DEFERRED = "stale_deferred"
    APPLIED = "applied"
    SKIPPED = "skipped"
    RACE_LOST = "race_lost"


def target_key(repository: str, branch: str) -> str:
    """Status store key for a repository/branch pair."""
    return f"{repository}/{branch}"


@dataclass(frozen=True)
class BlobRef:
    """One side of a diff entry: a path and the blob it pointed to."""

    path: str
    blob_id: str


@dataclass(frozen=True)
class DiffEntry:
    """A single path-level change between two commits.

    Attributes:
        change_type: Added, modified or deleted.
        before: Path/blob before the change (None when added).
        after: Path/blob after the change (None when deleted).
    """

    change_type: ChangeType
    before: BlobRef | None = None
    after: BlobRef | None = None

    def __post_init__(self) -> None:
        if self.change_type == ChangeType.DELETED and self.before is None:
            msg = "deleted diff entry requires a before blob"
            raise ValueError(msg)
        if self.change_type != ChangeType.DELETED and self.after is None:
            msg = f"{self.change_type.name.lower()} diff entry requires an after blob"
            raise ValueError(msg)

    @property
    def is_deletion(self) -> bool:
        return self.change_type == ChangeType.DELETED

    @property
    def path(self) -> str:
        """The path this entry publishes to (after-path, or before-path for deletions)."""
        if self.is_deletion:
            assert self.before is not None
            return self.before.path
        assert self.after is not None
        return self.after.path

    @property
    def paths(self) -> tuple[str, ...]:
        """Every path the entry touches (both sides of a rename)."""
        return tuple(ref.path for ref in (self.before, self.after) if ref is not None)


@dataclass
class PublishTarget:
    """Publish status of one repository/branch.

    ``remaining_actions > 0`` means a batch for ``new_commit_id`` is draining
    and the ``new_*`` fields are authoritative; otherwise only the
    ``published_*`` fields are.  ``superseded_commit_ids`` lists the commits
    staged and then replaced since the last publish; their batches may have
    written to the target and are reconciled by the next ingest.
    """

    repository: str
    branch: str
    published_commit_id: str | None = None
    published_ignore_patterns: list[str] = field(default_factory=list)
    published_config: dict[str, Any] = field(default_factory=dict)
    new_commit_id: str | None = None
    new_ignore_patterns: list[str] = field(default_factory=list)
    new_config: dict[str, Any] = field(default_factory=dict)
    remaining_actions: int = 0
    pending_action_ids: set[str] = field(default_factory=set)
    superseded_commit_ids: set[str] = field(default_factory=set)

    @property
    def key(self) -> str:
        return target_key(self.repository, self.branch)

    @property
    def is_publishing(self) -> bool:
        return self.remaining_actions > 0 and self.new_commit_id is not None


@dataclass
class IngestResult:
    """Outcome of ingesting one commit event."""

    repository: str
    branch: str
    commit_id: str
    action_count: int
    staged: bool


@dataclass
class DrainResult:
    """Outcome of one drain worker invocation.

    Attributes:
        outcome: What happened to the dequeued message (if any).
        action: The action that was dequeued, if any.
        completed: Whether this invocation finalized the target commit.
    """

    outcome: DrainOutcome
    action: PublishAction | None = None
    completed: bool = False
