"""Unit tests for the CodeCommit diff source."""

import boto3
import pytest
from botocore.stub import Stubber

from repo_publisher.lib.publisher.repository import CodeCommitDiffSource, difference_to_entry
from repo_publisher.lib.publisher.types import BlobRef, ChangeType


@pytest.fixture
def codecommit():
    client = boto3.client(
        "codecommit",
        region_name="us-east-1",
        aws_access_key_id="testing",
        aws_secret_access_key="testing",
    )
    with Stubber(client) as stubber:
        yield client, stubber


def _blob(path: str, blob_id: str) -> dict:
    return {"blobId": blob_id, "path": path, "mode": "100644"}


class TestDifferenceToEntry:
    """Tests for difference_to_entry."""

    def test_added(self) -> None:
        entry = difference_to_entry({"afterBlob": _blob("content/a.txt", "b1"), "changeType": "A"})
        assert entry.change_type == ChangeType.ADDED
        assert entry.after == BlobRef("content/a.txt", "b1")
        assert entry.before is None

    def test_deleted(self) -> None:
        entry = difference_to_entry({"beforeBlob": _blob("content/c.txt", "b3"), "changeType": "D"})
        assert entry.is_deletion
        assert entry.path == "content/c.txt"

    def test_modified_rename(self) -> None:
        entry = difference_to_entry(
            {
                "beforeBlob": _blob("content/old.txt", "b1"),
                "afterBlob": _blob("content/new.txt", "b1"),
                "changeType": "M",
            }
        )
        assert entry.paths == ("content/old.txt", "content/new.txt")


class TestCodeCommitDiffSource:
    """Tests for CodeCommitDiffSource."""

    def test_full_diff_omits_before_commit(self, codecommit) -> None:
        client, stubber = codecommit
        stubber.add_response(
            "get_differences",
            {"differences": [{"afterBlob": _blob("content/a.txt", "b1"), "changeType": "A"}]},
            {"repositoryName": "site", "afterCommitSpecifier": "c1"},
        )

        entries = CodeCommitDiffSource(client).diff("site", None, "c1")

        assert [e.path for e in entries] == ["content/a.txt"]
        stubber.assert_no_pending_responses()

    def test_follows_pagination(self, codecommit) -> None:
        client, stubber = codecommit
        stubber.add_response(
            "get_differences",
            {"differences": [{"afterBlob": _blob("a", "b1"), "changeType": "A"}], "NextToken": "page-2"},
            {"repositoryName": "site", "beforeCommitSpecifier": "c0", "afterCommitSpecifier": "c1"},
        )
        stubber.add_response(
            "get_differences",
            {"differences": [{"beforeBlob": _blob("b", "b2"), "changeType": "D"}]},
            {
                "repositoryName": "site",
                "beforeCommitSpecifier": "c0",
                "afterCommitSpecifier": "c1",
                "NextToken": "page-2",
            },
        )

        entries = CodeCommitDiffSource(client).diff("site", "c0", "c1")

        assert [(e.change_type, e.path) for e in entries] == [(ChangeType.ADDED, "a"), (ChangeType.DELETED, "b")]
        stubber.assert_no_pending_responses()

    def test_get_blob(self, codecommit) -> None:
        client, stubber = codecommit
        stubber.add_response("get_blob", {"content": b"hello"}, {"repositoryName": "site", "blobId": "b1"})

        assert CodeCommitDiffSource(client).get_blob("site", "b1") == b"hello"

    def test_service_errors_propagate(self, codecommit) -> None:
        from botocore.exceptions import ClientError

        client, stubber = codecommit
        stubber.add_client_error("get_differences", service_error_code="CommitDoesNotExistException")

        with pytest.raises(ClientError):
            CodeCommitDiffSource(client).diff("site", "c0", "missing")
