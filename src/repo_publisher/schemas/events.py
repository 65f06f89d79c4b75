"""Pydantic v2 schemas for inbound AWS Lambda event envelopes.

Covers CodeCommit repository trigger events (commit handler) and SNS
notification events (drain worker).
"""

from dataclasses import dataclass

from pydantic import BaseModel, ConfigDict, Field

_BRANCH_REF_PREFIX = "refs/heads/"


@dataclass(frozen=True)
class CommitEvent:
    """One commit to publish, extracted from a CodeCommit trigger record."""

    repository: str
    branch: str
    commit_id: str


class CodeCommitReference(BaseModel):
    """A single updated reference inside a CodeCommit trigger record."""

    model_config = ConfigDict(extra="ignore")

    commit: str
    ref: str
    created: bool = False
    deleted: bool = False

    @property
    def branch(self) -> str | None:
        """Branch name, or None when the reference is not a branch."""
        if not self.ref.startswith(_BRANCH_REF_PREFIX):
            return None
        return self.ref[len(_BRANCH_REF_PREFIX) :]


class CodeCommitDetail(BaseModel):
    model_config = ConfigDict(extra="ignore")

    references: list[CodeCommitReference] = Field(default_factory=list)


class CodeCommitRecord(BaseModel):
    """One record of a CodeCommit trigger event."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    event_source_arn: str = Field(alias="eventSourceARN")
    codecommit: CodeCommitDetail

    @property
    def repository(self) -> str:
        """Repository name: the sixth field of the ARN."""
        parts = self.event_source_arn.split(":")
        if len(parts) < 6 or not parts[5]:
            msg = f"Cannot derive repository name from ARN {self.event_source_arn!r}"
            raise ValueError(msg)
        return parts[5]


class CodeCommitEvent(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    records: list[CodeCommitRecord] = Field(alias="Records")


class SnsMessage(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    message: str = Field(alias="Message")


class SnsRecord(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    sns: SnsMessage | None = Field(default=None, alias="Sns")


class SnsEvent(BaseModel):
    """SNS notification event delivered to the drain worker."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    records: list[SnsRecord] = Field(default_factory=list, alias="Records")

    def has_message(self, message: str) -> bool:
        """Whether any record carries exactly ``message``."""
        return any(rec.sns is not None and rec.sns.message == message for rec in self.records)
