"""Shared test fixtures: moto-backed AWS resources, settings, and an in-memory repository."""

import hashlib
from collections.abc import Callable, Generator
from dataclasses import dataclass, field
from typing import Any

import boto3
import pytest
from moto import mock_aws

from repo_publisher.core.config import Settings
from repo_publisher.core.dependencies import Collaborators
from repo_publisher.lib.publisher.queue import SqsActionQueue
from repo_publisher.lib.publisher.status import DynamoStatusStore
from repo_publisher.lib.publisher.storage import S3TargetStore
from repo_publisher.lib.publisher.types import BlobRef, ChangeType, DiffEntry
from repo_publisher.schemas.publish_action import PublishAction

REGION = "us-east-1"
TABLE_NAME = "publisher-status"
QUEUE_NAME = "publisher-actions"
TOPIC_NAME = "publisher-notifications"
BUCKET = "site-bucket"


@dataclass
class AwsResources:
    """Clients and identifiers of the mocked AWS resources."""

    dynamodb: Any
    sqs: Any
    sns: Any
    s3: Any
    queue_url: str
    topic_arn: str


@pytest.fixture
def aws() -> Generator[AwsResources]:
    """Create moto-mocked status table, action queue, topic and bucket."""
    with mock_aws():
        dynamodb = boto3.client("dynamodb", region_name=REGION)
        dynamodb.create_table(
            TableName=TABLE_NAME,
            KeySchema=[{"AttributeName": "TargetKey", "KeyType": "HASH"}],
            AttributeDefinitions=[{"AttributeName": "TargetKey", "AttributeType": "S"}],
            BillingMode="PAY_PER_REQUEST",
        )
        sqs = boto3.client("sqs", region_name=REGION)
        queue_url = sqs.create_queue(QueueName=QUEUE_NAME)["QueueUrl"]
        sns = boto3.client("sns", region_name=REGION)
        topic_arn = sns.create_topic(Name=TOPIC_NAME)["TopicArn"]
        s3 = boto3.client("s3", region_name=REGION)
        s3.create_bucket(Bucket=BUCKET)
        yield AwsResources(
            dynamodb=dynamodb,
            sqs=sqs,
            sns=sns,
            s3=s3,
            queue_url=queue_url,
            topic_arn=topic_arn,
        )


def make_settings(**overrides: Any) -> Settings:
    """Build settings without reading the environment or a .env file."""
    values: dict[str, Any] = {
        "status_table_name": TABLE_NAME,
        "actions_queue_url": f"https://sqs.{REGION}.amazonaws.com/123456789012/{QUEUE_NAME}",
        "notifications_topic_arn": f"arn:aws:sns:{REGION}:123456789012:{TOPIC_NAME}",
        "target_bucket": BUCKET,
        "target_prefix": "{repository}/{branch}",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)  # type: ignore[call-arg]


@pytest.fixture
def settings(aws: AwsResources) -> Settings:
    """Settings pointing at the mocked resources."""
    return make_settings(actions_queue_url=aws.queue_url, notifications_topic_arn=aws.topic_arn)


def _blob_id(content: bytes) -> str:
    return hashlib.sha1(content).hexdigest()  # noqa: S324


@dataclass
class InMemoryRepository:
    """A diff source backed by whole-tree snapshots per commit."""

    name: str = "site"
    commits: dict[str, dict[str, str]] = field(default_factory=dict)
    blobs: dict[str, bytes] = field(default_factory=dict)
    blob_reads: list[str] = field(default_factory=list)
    diff_calls: list[tuple[str | None, str]] = field(default_factory=list)

    def commit(self, commit_id: str, files: dict[str, bytes | str | None], parent: str | None = None) -> str:
        """Record a commit whose tree is ``parent``'s tree with ``files`` applied (None deletes)."""
        tree = dict(self.commits[parent]) if parent else {}
        for path, content in files.items():
            if content is None:
                tree.pop(path, None)
                continue
            data = content.encode() if isinstance(content, str) else content
            blob_id = _blob_id(data)
            self.blobs[blob_id] = data
            tree[path] = blob_id
        self.commits[commit_id] = tree
        return commit_id

    def tree(self, commit_id: str) -> dict[str, bytes]:
        return {path: self.blobs[blob_id] for path, blob_id in self.commits[commit_id].items()}

    def diff(self, repository: str, from_commit: str | None, to_commit: str) -> list[DiffEntry]:
        self.diff_calls.append((from_commit, to_commit))
        before = self.commits[from_commit] if from_commit else {}
        after = self.commits[to_commit]
        entries: list[DiffEntry] = []
        for path in sorted(set(before) | set(after)):
            if path not in after:
                entries.append(DiffEntry(ChangeType.DELETED, before=BlobRef(path, before[path])))
            elif path not in before:
                entries.append(DiffEntry(ChangeType.ADDED, after=BlobRef(path, after[path])))
            elif before[path] != after[path]:
                entries.append(
                    DiffEntry(
                        ChangeType.MODIFIED,
                        before=BlobRef(path, before[path]),
                        after=BlobRef(path, after[path]),
                    )
                )
        return entries

    def get_blob(self, repository: str, blob_id: str) -> bytes:
        self.blob_reads.append(blob_id)
        return self.blobs[blob_id]


@dataclass
class RecordingNotifier:
    """Notifier that counts drain triggers instead of sending them."""

    triggers: int = 0

    def trigger(self) -> None:
        self.triggers += 1


@pytest.fixture
def repository() -> InMemoryRepository:
    return InMemoryRepository()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def deps(
    aws: AwsResources,
    repository: InMemoryRepository,
    notifier: RecordingNotifier,
) -> Collaborators:
    """Collaborators backed by moto plus the in-memory repository."""
    return Collaborators(
        diff_source=repository,
        status_store=DynamoStatusStore(aws.dynamodb, TABLE_NAME),
        action_queue=SqsActionQueue(aws.sqs, aws.queue_url),
        notifier=notifier,
        target_store=S3TargetStore(aws.s3),
    )


@pytest.fixture
def read_queue(aws: AwsResources) -> Callable[[], list[PublishAction]]:
    """Return a function that empties the mocked queue and parses every action in it."""

    def _read() -> list[PublishAction]:
        actions: list[PublishAction] = []
        while True:
            response = aws.sqs.receive_message(QueueUrl=aws.queue_url, MaxNumberOfMessages=10)
            messages = response.get("Messages", [])
            if not messages:
                return actions
            for message in messages:
                actions.append(PublishAction.model_validate_json(message["Body"]))
                aws.sqs.delete_message(QueueUrl=aws.queue_url, ReceiptHandle=message["ReceiptHandle"])

    return _read


@pytest.fixture
def settings_factory(aws: AwsResources) -> Callable[..., Settings]:
    """Return a function building settings for the mocked resources with overrides."""

    def _make(**overrides: Any) -> Settings:
        values: dict[str, Any] = {"actions_queue_url": aws.queue_url, "notifications_topic_arn": aws.topic_arn}
        values.update(overrides)
        return make_settings(**values)

    return _make
