"""SNS notification channel that triggers the drain worker."""

from typing import Any, Protocol

from loguru import logger


class Notifier(Protocol):
    """Fire-and-forget trigger for the drain worker."""

    def trigger(self) -> None:
        """Schedule one drain worker invocation."""
        ...


class SnsNotifier:
    """boto3-backed :class:`Notifier`.

    Args:
        client: boto3 SNS client.
        topic_arn: Topic the drain worker is subscribed to.
        message: Payload recognised by the drain worker.
    """

    def __init__(self, client: Any, topic_arn: str, message: str = "run") -> None:
        self._client = client
        self._topic_arn = topic_arn
        self._message = message

    def trigger(self) -> None:
        logger.debug("Triggering drain worker via {}", self._topic_arn)
        self._client.publish(TopicArn=self._topic_arn, Message=self._message)
