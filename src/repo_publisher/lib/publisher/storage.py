"""S3 target store for published repository content.

Maps repository paths to destination bucket/key pairs and performs the
uploads and deletions requested by publish actions.
"""

import mimetypes
from typing import Any, Protocol

from botocore.exceptions import ClientError
from loguru import logger

DEFAULT_CONTENT_TYPE = "application/octet-stream"

_MISSING_OBJECT_CODES = frozenset({"NoSuchKey", "404", "NotFound"})


class TargetStore(Protocol):
    """Destination object store for published content."""

    def put(self, bucket: str, key: str, body: bytes, content_type: str) -> None:
        """Upload ``body`` to ``bucket``/``key``."""
        ...

    def delete(self, bucket: str, key: str) -> None:
        """Delete ``bucket``/``key``; deleting an absent key is not an error."""
        ...


def render_template(template: str, repository: str, branch: str) -> str:
    """Substitute ``{repository}`` and ``{branch}`` placeholders."""
    return template.replace("{repository}", repository).replace("{branch}", branch)


def destination_for(
    bucket_template: str,
    prefix_template: str,
    repository: str,
    branch: str,
    relative_path: str,
) -> tuple[str, str]:
    """Resolve the destination bucket and key for a content path.

    Args:
        bucket_template: Bucket name template.
        prefix_template: Key prefix template (may be empty).
        repository: Source repository name.
        branch: Source branch name.
        relative_path: Path with the content root already stripped.

    Returns:
        ``(bucket, key)`` tuple.
    """
    bucket = render_template(bucket_template, repository, branch)
    prefix = render_template(prefix_template, repository, branch).strip("/")
    relative_path = relative_path.lstrip("/")
    key = f"{prefix}/{relative_path}" if prefix else relative_path
    return bucket, key


def guess_content_type(path: str) -> str:
    """Infer a MIME type from the file extension."""
    content_type, _ = mimetypes.guess_type(path, strict=False)
    return content_type or DEFAULT_CONTENT_TYPE


class S3TargetStore:
    """boto3-backed :class:`TargetStore`.

    Args:
        client: boto3 S3 client.
    """

    def __init__(self, client: Any) -> None:
        self._client = client

    def put(self, bucket: str, key: str, body: bytes, content_type: str) -> None:
        logger.info("Uploading {} bytes to s3://{}/{} ({})", len(body), bucket, key, content_type)
        self._client.put_object(
            Bucket=bucket,
            Key=key,
            Body=body,
            ContentType=content_type,
        )

    def delete(self, bucket: str, key: str) -> None:
        logger.info("Deleting s3://{}/{}", bucket, key)
        try:
            self._client.delete_object(Bucket=bucket, Key=key)
        except ClientError as exc:
            if exc.response["Error"]["Code"] in _MISSING_OBJECT_CODES:
                logger.info("Object s3://{}/{} already absent", bucket, key)
                return
            raise


def validate_bucket(client: Any, bucket: str) -> None:
    """Verify bucket access before publishing.

    Args:
        client: boto3 S3 client.
        bucket: Bucket name to validate.

    Raises:
        ClientError: If the bucket doesn't exist or credentials are invalid.
    """
    try:
        client.head_bucket(Bucket=bucket)
        logger.debug("Bucket s3://{} is accessible", bucket)
    except ClientError as exc:
        error_code = exc.response["Error"]["Code"]
        if error_code == "404":
            msg = f"Bucket '{bucket}' not found. Verify TARGET_BUCKET is correct."
            raise ClientError(exc.response, "HeadBucket") from ValueError(msg)
        if error_code in ("403", "401"):
            msg = f"Access denied to bucket '{bucket}'. Verify AWS credentials."
            raise ClientError(exc.response, "HeadBucket") from PermissionError(msg)
        raise
