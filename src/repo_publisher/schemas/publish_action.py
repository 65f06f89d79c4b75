"""Pydantic v2 schema for publish action queue messages."""

from enum import StrEnum
from typing import Self

from pydantic import BaseModel, ConfigDict, Field, model_validator


class ActionKind(StrEnum):
    """Operation a publish action performs against the target store."""

    PUT = "PUT"
    DELETE = "DELETE"


class PublishAction(BaseModel):
    """A single per-file publish action, serialized as the queue message body."""

    model_config = ConfigDict(frozen=True)

    repository_name: str = Field(min_length=1, description="Source repository name")
    branch_name: str = Field(min_length=1, description="Source branch name")
    commit_id: str = Field(min_length=1, description="Commit the action belongs to")
    action: ActionKind = Field(description="PUT or DELETE")
    path: str = Field(min_length=1, description="Repository path of the file")
    blob_id: str | None = Field(default=None, description="Blob to upload (PUT only)")
    action_id: str = Field(min_length=1, description="Stable identifier derived from the path")

    @model_validator(mode="after")
    def check_blob_id(self) -> Self:
        if self.action == ActionKind.PUT and not self.blob_id:
            msg = "PUT action requires blob_id"
            raise ValueError(msg)
        if self.action == ActionKind.DELETE and self.blob_id is not None:
            msg = "DELETE action must not carry blob_id"
            raise ValueError(msg)
        return self


class QueuedAction(BaseModel):
    """A publish action dequeued together with its acknowledgement handle."""

    message_id: str
    receipt_handle: str
    action: PublishAction
