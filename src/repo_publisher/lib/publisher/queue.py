"""SQS action queue for publish actions."""

from typing import Any, Protocol

from loguru import logger

from repo_publisher.schemas.publish_action import PublishAction, QueuedAction


class ActionQueue(Protocol):
    """Durable, at-least-once queue of publish actions."""

    def enqueue(self, action: PublishAction) -> None:
        """Append one action to the queue."""
        ...

    def dequeue_one(self) -> QueuedAction | None:
        """Receive at most one action, or None when the queue is empty."""
        ...

    def ack(self, queued: QueuedAction) -> None:
        """Delete a received action so it is not redelivered."""
        ...


class SqsActionQueue:
    """boto3-backed :class:`ActionQueue`.

    Args:
        client: boto3 SQS client.
        queue_url: Queue URL.
        wait_seconds: Long-poll wait for ``receive_message``.
    """

    def __init__(self, client: Any, queue_url: str, wait_seconds: int = 0) -> None:
        self._client = client
        self._queue_url = queue_url
        self._wait_seconds = wait_seconds

    def enqueue(self, action: PublishAction) -> None:
        self._client.send_message(
            QueueUrl=self._queue_url,
            MessageBody=action.model_dump_json(),
        )

    def dequeue_one(self) -> QueuedAction | None:
        response = self._client.receive_message(
            QueueUrl=self._queue_url,
            MaxNumberOfMessages=1,
            WaitTimeSeconds=self._wait_seconds,
        )
        messages = response.get("Messages") or []
        if not messages:
            return None

        message = messages[0]
        action = PublishAction.model_validate_json(message["Body"])
        logger.debug("Received action message {}", message["MessageId"])
        return QueuedAction(
            message_id=message["MessageId"],
            receipt_handle=message["ReceiptHandle"],
            action=action,
        )

    def ack(self, queued: QueuedAction) -> None:
        self._client.delete_message(
            QueueUrl=self._queue_url,
            ReceiptHandle=queued.receipt_handle,
        )
