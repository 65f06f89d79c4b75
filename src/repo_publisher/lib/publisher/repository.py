"""CodeCommit repository diff source."""

from typing import Any, Protocol

from loguru import logger

from repo_publisher.lib.publisher.types import BlobRef, ChangeType, DiffEntry


class DiffSource(Protocol):
    """Read access to repository history: commit diffs and blob content."""

    def diff(self, repository: str, from_commit: str | None, to_commit: str) -> list[DiffEntry]:
        """Changes between two commits; ``from_commit=None`` diffs against the empty tree."""
        ...

    def get_blob(self, repository: str, blob_id: str) -> bytes:
        """Raw content of a blob."""
        ...


def _blob_ref(raw: dict[str, Any] | None) -> BlobRef | None:
    if not raw or not raw.get("path"):
        return None
    return BlobRef(path=raw["path"], blob_id=raw["blobId"])


def difference_to_entry(raw: dict[str, Any]) -> DiffEntry:
    """Convert one ``GetDifferences`` item into a :class:`DiffEntry`."""
    return DiffEntry(
        change_type=ChangeType(raw["changeType"]),
        before=_blob_ref(raw.get("beforeBlob")),
        after=_blob_ref(raw.get("afterBlob")),
    )


class CodeCommitDiffSource:
    """boto3-backed :class:`DiffSource`.

    Args:
        client: boto3 CodeCommit client.
    """

    def __init__(self, client: Any) -> None:
        self._client = client

    def diff(self, repository: str, from_commit: str | None, to_commit: str) -> list[DiffEntry]:
        params: dict[str, Any] = {
            "repositoryName": repository,
            "afterCommitSpecifier": to_commit,
        }
        if from_commit:
            params["beforeCommitSpecifier"] = from_commit

        entries: list[DiffEntry] = []
        while True:
            response = self._client.get_differences(**params)
            entries.extend(difference_to_entry(d) for d in response.get("differences", []))
            next_token = response.get("NextToken")
            if not next_token:
                break
            params["NextToken"] = next_token

        logger.debug(
            "Diff {}..{} in {}: {} entries",
            from_commit or "<empty>",
            to_commit,
            repository,
            len(entries),
        )
        return entries

    def get_blob(self, repository: str, blob_id: str) -> bytes:
        response = self._client.get_blob(repositoryName=repository, blobId=blob_id)
        return response["content"]
