"""DynamoDB status store for publish target records.

One item per repository/branch, keyed by ``TargetKey``.  Every mutation is a
single-item ``update_item``; the drain-side mutations are conditioned on the
in-flight commit so that a restage between read and write is detected.
"""

import json
from collections.abc import Collection
from typing import Any, Protocol

from botocore.exceptions import ClientError
from loguru import logger

from repo_publisher.lib.publisher.types import PublishTarget, target_key

_CONDITION_FAILED = "ConditionalCheckFailedException"


class StatusStore(Protocol):
    """Strongly-consistent, conditionally-updatable publish target store."""

    def get(self, repository: str, branch: str) -> PublishTarget | None:
        """Read the record, or None when the repository/branch was never seen."""
        ...

    def stage(
        self,
        repository: str,
        branch: str,
        commit_id: str,
        ignore_patterns: list[str],
        config: dict[str, Any],
        action_ids: Collection[str],
        *,
        superseded: Collection[str] = (),
    ) -> None:
        """Make ``commit_id`` the in-flight target, overwriting any previous one.

        ``action_ids`` become the pending set counted down by
        :meth:`record_completion`; ``superseded`` commits are added to the set
        of unfinished commits whose batches may have written to the target.
        """
        ...

    def advance_published(
        self,
        repository: str,
        branch: str,
        commit_id: str,
        ignore_patterns: list[str],
        config: dict[str, Any],
        *,
        cancel_in_flight: bool = False,
    ) -> None:
        """Record ``commit_id`` as published without staging a batch."""
        ...

    def record_completion(self, repository: str, branch: str, commit_id: str, action_id: str) -> int | None:
        """Count one action of ``commit_id`` as done.

        Returns:
            The remaining action count, or None when ``commit_id`` is no longer
            in flight or ``action_id`` is not pending (already counted, or not
            part of the current plan).
        """
        ...

    def finalize(
        self,
        repository: str,
        branch: str,
        commit_id: str,
        ignore_patterns: list[str],
        config: dict[str, Any],
    ) -> bool:
        """Promote the in-flight target to published; False if it changed meanwhile."""
        ...


def _encode_config(config: dict[str, Any]) -> str:
    return json.dumps(config, sort_keys=True, default=str)


def _decode_config(raw: dict[str, Any] | None) -> dict[str, Any]:
    if not raw or "S" not in raw:
        return {}
    return json.loads(raw["S"])


def _decode_patterns(raw: dict[str, Any] | None) -> list[str]:
    if not raw:
        return []
    return [item["S"] for item in raw.get("L", [])]


def _encode_patterns(patterns: list[str]) -> dict[str, Any]:
    return {"L": [{"S": p} for p in patterns]}


def _decode_str(raw: dict[str, Any] | None) -> str | None:
    if not raw:
        return None
    return raw.get("S")


def _decode_set(raw: dict[str, Any] | None) -> set[str]:
    if not raw:
        return set()
    return set(raw.get("SS", []))


def item_to_target(item: dict[str, Any], repository: str, branch: str) -> PublishTarget:
    """Convert a low-level DynamoDB item into a :class:`PublishTarget`."""
    remaining = item.get("RemainingActions")
    return PublishTarget(
        repository=repository,
        branch=branch,
        published_commit_id=_decode_str(item.get("PublishedCommitId")),
        published_ignore_patterns=_decode_patterns(item.get("PublishedIgnorePatterns")),
        published_config=_decode_config(item.get("PublishedConfig")),
        new_commit_id=_decode_str(item.get("NewCommitId")),
        new_ignore_patterns=_decode_patterns(item.get("NewIgnorePatterns")),
        new_config=_decode_config(item.get("NewConfig")),
        remaining_actions=int(remaining["N"]) if remaining else 0,
        pending_action_ids=_decode_set(item.get("PendingActionIds")),
        superseded_commit_ids=_decode_set(item.get("SupersededCommitIds")),
    )


class DynamoStatusStore:
    """boto3-backed :class:`StatusStore`.

    Args:
        client: boto3 DynamoDB client.
        table_name: Status table name (hash key ``TargetKey``, type S).
    """

    def __init__(self, client: Any, table_name: str) -> None:
        self._client = client
        self._table = table_name

    def _key(self, repository: str, branch: str) -> dict[str, Any]:
        return {"TargetKey": {"S": target_key(repository, branch)}}

    def get(self, repository: str, branch: str) -> PublishTarget | None:
        response = self._client.get_item(
            TableName=self._table,
            Key=self._key(repository, branch),
            ConsistentRead=True,
        )
        item = response.get("Item")
        if not item:
            return None
        return item_to_target(item, repository, branch)

    def stage(
        self,
        repository: str,
        branch: str,
        commit_id: str,
        ignore_patterns: list[str],
        config: dict[str, Any],
        action_ids: Collection[str],
        *,
        superseded: Collection[str] = (),
    ) -> None:
        expression = (
            "SET RepositoryName = :repo, BranchName = :branch, NewCommitId = :commit, "
            "NewIgnorePatterns = :patterns, NewConfig = :config, RemainingActions = :count"
        )
        values: dict[str, Any] = {
            ":repo": {"S": repository},
            ":branch": {"S": branch},
            ":commit": {"S": commit_id},
            ":patterns": _encode_patterns(ignore_patterns),
            ":config": {"S": _encode_config(config)},
            ":count": {"N": str(len(action_ids))},
        }
        # string sets cannot be empty
        if action_ids:
            expression += ", PendingActionIds = :pending"
            values[":pending"] = {"SS": sorted(set(action_ids))}
        else:
            expression += " REMOVE PendingActionIds"
        if superseded:
            expression += " ADD SupersededCommitIds :superseded"
            values[":superseded"] = {"SS": sorted(set(superseded))}

        self._client.update_item(
            TableName=self._table,
            Key=self._key(repository, branch),
            UpdateExpression=expression,
            ExpressionAttributeValues=values,
        )
        logger.debug("Staged {}/{} at {} with {} actions", repository, branch, commit_id, len(action_ids))

    def advance_published(
        self,
        repository: str,
        branch: str,
        commit_id: str,
        ignore_patterns: list[str],
        config: dict[str, Any],
        *,
        cancel_in_flight: bool = False,
    ) -> None:
        expression = (
            "SET RepositoryName = :repo, BranchName = :branch, PublishedCommitId = :commit, "
            "PublishedIgnorePatterns = :patterns, PublishedConfig = :config"
        )
        values: dict[str, Any] = {
            ":repo": {"S": repository},
            ":branch": {"S": branch},
            ":commit": {"S": commit_id},
            ":patterns": _encode_patterns(ignore_patterns),
            ":config": {"S": _encode_config(config)},
        }
        removed = ["SupersededCommitIds"]
        if cancel_in_flight:
            expression += ", RemainingActions = :zero"
            values[":zero"] = {"N": "0"}
            removed = ["NewCommitId", "NewIgnorePatterns", "NewConfig", "PendingActionIds", *removed]
        expression += " REMOVE " + ", ".join(removed)

        self._client.update_item(
            TableName=self._table,
            Key=self._key(repository, branch),
            UpdateExpression=expression,
            ExpressionAttributeValues=values,
        )

    def record_completion(self, repository: str, branch: str, commit_id: str, action_id: str) -> int | None:
        try:
            response = self._client.update_item(
                TableName=self._table,
                Key=self._key(repository, branch),
                UpdateExpression="SET RemainingActions = RemainingActions - :one DELETE PendingActionIds :ids",
                ConditionExpression="NewCommitId = :commit AND contains(PendingActionIds, :id)",
                ExpressionAttributeValues={
                    ":one": {"N": "1"},
                    ":ids": {"SS": [action_id]},
                    ":id": {"S": action_id},
                    ":commit": {"S": commit_id},
                },
                ReturnValues="UPDATED_NEW",
            )
        except ClientError as exc:
            if exc.response["Error"]["Code"] == _CONDITION_FAILED:
                return None
            raise
        return int(response["Attributes"]["RemainingActions"]["N"])

    def finalize(
        self,
        repository: str,
        branch: str,
        commit_id: str,
        ignore_patterns: list[str],
        config: dict[str, Any],
    ) -> bool:
        try:
            self._client.update_item(
                TableName=self._table,
                Key=self._key(repository, branch),
                UpdateExpression=(
                    "SET PublishedCommitId = :commit, PublishedIgnorePatterns = :patterns, "
                    "PublishedConfig = :config, RemainingActions = :zero "
                    "REMOVE NewCommitId, NewIgnorePatterns, NewConfig, PendingActionIds, SupersededCommitIds"
                ),
                ConditionExpression="NewCommitId = :commit",
                ExpressionAttributeValues={
                    ":commit": {"S": commit_id},
                    ":patterns": _encode_patterns(ignore_patterns),
                    ":config": {"S": _encode_config(config)},
                    ":zero": {"N": "0"},
                },
            )
        except ClientError as exc:
            if exc.response["Error"]["Code"] == _CONDITION_FAILED:
                return False
            raise
        return True
