"""boto3 client creation shared by every AWS-backed collaborator.

Retry and backoff for AWS calls live here, in the botocore client config,
rather than in the pipeline stages.
"""

from typing import Any

import boto3
from botocore.config import Config


def create_client(
    service_name: str,
    region_name: str,
    *,
    endpoint_url: str | None = None,
    max_attempts: int = 5,
) -> Any:
    """Create a boto3 client with standard-mode retries.

    Args:
        service_name: boto3 service name (``s3``, ``dynamodb``, ...).
        region_name: AWS region.
        endpoint_url: Optional endpoint override (local emulators).
        max_attempts: Total attempts per call, including the first.

    Returns:
        Configured boto3 client.
    """
    config = Config(
        retries={"max_attempts": max_attempts, "mode": "standard"},
        request_checksum_calculation="when_required",
        response_checksum_validation="when_required",
    )

    return boto3.client(
        service_name,
        region_name=region_name,
        endpoint_url=endpoint_url,
        config=config,
    )
