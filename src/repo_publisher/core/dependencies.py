"""Collaborator wiring for the pipeline stages.

Bundles the external collaborators the ingest and drain stages depend on and
builds the boto3-backed implementations from application settings.
"""

from dataclasses import dataclass

from repo_publisher.core.config import Settings
from repo_publisher.lib.publisher.aws import create_client
from repo_publisher.lib.publisher.notify import Notifier, SnsNotifier
from repo_publisher.lib.publisher.queue import ActionQueue, SqsActionQueue
from repo_publisher.lib.publisher.repository import CodeCommitDiffSource, DiffSource
from repo_publisher.lib.publisher.status import DynamoStatusStore, StatusStore
from repo_publisher.lib.publisher.storage import S3TargetStore, TargetStore


@dataclass
class Collaborators:
    """External services used by the ingest and drain stages."""

    diff_source: DiffSource
    status_store: StatusStore
    action_queue: ActionQueue
    notifier: Notifier
    target_store: TargetStore


def build_collaborators(settings: Settings) -> Collaborators:
    """Create AWS-backed collaborators from settings.

    Args:
        settings: Application settings.

    Returns:
        Collaborators wired to CodeCommit, DynamoDB, SQS, SNS and S3.
    """

    def client(service_name: str):  # noqa: ANN202
        return create_client(
            service_name,
            settings.aws_region,
            endpoint_url=settings.aws_endpoint_url,
            max_attempts=settings.aws_max_attempts,
        )

    return Collaborators(
        diff_source=CodeCommitDiffSource(client("codecommit")),
        status_store=DynamoStatusStore(client("dynamodb"), settings.status_table_name),
        action_queue=SqsActionQueue(
            client("sqs"),
            settings.actions_queue_url,
            wait_seconds=settings.queue_wait_seconds,
        ),
        notifier=SnsNotifier(client("sns"), settings.notifications_topic_arn, settings.drain_trigger_message),
        target_store=S3TargetStore(client("s3")),
    )
