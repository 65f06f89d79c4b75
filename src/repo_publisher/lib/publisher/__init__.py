"""Publisher library — public API for repository publishing.

Provides the publish target data model, ignore-pattern and site-config
parsing, and the boto3 adapters for the diff source (CodeCommit), status
store (DynamoDB), action queue (SQS), notification channel (SNS) and
target store (S3).
"""

from repo_publisher.lib.publisher.errors import ControlFileError, EventError, PublisherError
from repo_publisher.lib.publisher.ignore import IgnoreMatcher, parse_ignore_file
from repo_publisher.lib.publisher.notify import Notifier, SnsNotifier
from repo_publisher.lib.publisher.queue import ActionQueue, SqsActionQueue
from repo_publisher.lib.publisher.repository import CodeCommitDiffSource, DiffSource
from repo_publisher.lib.publisher.site_config import content_root, parse_site_config, strip_content_root
from repo_publisher.lib.publisher.status import DynamoStatusStore, StatusStore
from repo_publisher.lib.publisher.storage import (
    S3TargetStore,
    TargetStore,
    destination_for,
    guess_content_type,
    validate_bucket,
)
from repo_publisher.lib.publisher.types import (
    BlobRef,
    ChangeType,
    DiffEntry,
    DrainOutcome,
    DrainResult,
    IngestResult,
    PublishTarget,
    target_key,
)

__all__ = [
    "ActionQueue",
    "BlobRef",
    "ChangeType",
    "CodeCommitDiffSource",
    "ControlFileError",
    "DiffEntry",
    "DiffSource",
    "DrainOutcome",
    "DrainResult",
    "DynamoStatusStore",
    "EventError",
    "IgnoreMatcher",
    "IngestResult",
    "Notifier",
    "PublishTarget",
    "PublisherError",
    "S3TargetStore",
    "SnsNotifier",
    "SqsActionQueue",
    "StatusStore",
    "TargetStore",
    "content_root",
    "destination_for",
    "guess_content_type",
    "parse_ignore_file",
    "parse_site_config",
    "strip_content_root",
    "target_key",
    "validate_bucket",
]
