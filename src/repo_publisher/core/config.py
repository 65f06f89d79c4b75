"""Application configuration via Pydantic Settings.

All configuration is loaded from environment variables following 12-factor principles.
"""

from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # AWS
    aws_region: str = Field(
        default="us-east-1",
        description="AWS region used by every service client",
    )
    aws_endpoint_url: str | None = Field(
        default=None,
        description="Override endpoint for all AWS clients (e.g. a local emulator)",
    )
    aws_max_attempts: int = Field(
        default=5,
        description="Total attempts per AWS call under botocore standard retry mode",
        gt=0,
    )

    # Status store / queue / notifications
    status_table_name: str = Field(
        description="DynamoDB table holding one publish target record per repository/branch",
    )
    actions_queue_url: str = Field(
        description="SQS queue URL for publish action messages",
    )
    notifications_topic_arn: str = Field(
        description="SNS topic ARN used to trigger the drain worker",
    )
    drain_trigger_message: str = Field(
        default="run",
        description="Notification payload recognised as a drain trigger",
    )
    queue_wait_seconds: int = Field(
        default=0,
        description="SQS long-poll wait when dequeuing an action",
        ge=0,
        le=20,
    )
    stale_action_policy: Literal["retrigger", "redeliver"] = Field(
        default="retrigger",
        description=(
            "What the drain worker does with a stale action: 'retrigger' deletes it and "
            "schedules the next step, 'redeliver' leaves it for the queue visibility timeout"
        ),
    )

    # Target object store
    target_bucket: str = Field(
        min_length=1,
        description="Destination bucket template; {repository} and {branch} are substituted",
    )
    target_prefix: str = Field(
        default="",
        description="Destination key prefix template; {repository} and {branch} are substituted",
    )

    # Repository control files
    ignore_file_path: str = Field(
        default=".publishignore",
        description="Repository path of the ignore-patterns file",
    )
    site_config_path: str = Field(
        default="site.yaml",
        description="Repository path of the site configuration file",
    )
    default_content_root: str = Field(
        default="content/",
        description="Publishable tree prefix when the site config does not set content_root",
    )

    @field_validator("ignore_file_path", "site_config_path")
    @classmethod
    def validate_control_path(cls, v: str) -> str:
        v = v.strip().lstrip("/")
        if not v:
            msg = "control file path must not be empty"
            raise ValueError(msg)
        return v

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level",
    )
    log_dir: str | None = Field(
        default=None,
        description="Directory for log files (enables file logging with 24h rotation when set)",
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        return v.strip().upper()


def get_settings() -> Settings:
    """Create and return application settings."""
    return Settings()  # type: ignore[call-arg]
