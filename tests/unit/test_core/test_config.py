"""Unit tests for core configuration module."""

import pytest
from pydantic import ValidationError

from repo_publisher.core.config import Settings

_REQUIRED = {
    "STATUS_TABLE_NAME": "publisher-status",
    "ACTIONS_QUEUE_URL": "https://sqs.us-east-1.amazonaws.com/123456789012/publisher-actions",
    "NOTIFICATIONS_TOPIC_ARN": "arn:aws:sns:us-east-1:123456789012:publisher-notifications",
    "TARGET_BUCKET": "site-{repository}",
}


@pytest.fixture
def required_env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    for name, value in _REQUIRED.items():
        monkeypatch.setenv(name, value)
    return monkeypatch


class TestSettings:
    """Tests for Settings configuration."""

    def test_settings_from_env(self, required_env: pytest.MonkeyPatch) -> None:
        """Settings load from environment variables."""
        settings = Settings(_env_file=None)  # type: ignore[call-arg]
        assert settings.status_table_name == "publisher-status"
        assert settings.target_bucket == "site-{repository}"

    def test_settings_defaults(self, required_env: pytest.MonkeyPatch) -> None:
        """Default values are applied correctly."""
        settings = Settings(_env_file=None)  # type: ignore[call-arg]
        assert settings.aws_region == "us-east-1"
        assert settings.aws_endpoint_url is None
        assert settings.aws_max_attempts == 5
        assert settings.target_prefix == ""
        assert settings.ignore_file_path == ".publishignore"
        assert settings.site_config_path == "site.yaml"
        assert settings.default_content_root == "content/"
        assert settings.stale_action_policy == "retrigger"
        assert settings.drain_trigger_message == "run"
        assert settings.queue_wait_seconds == 0
        assert settings.log_level == "INFO"

    def test_missing_required(self, monkeypatch: pytest.MonkeyPatch) -> None:
        for name in _REQUIRED:
            monkeypatch.delenv(name, raising=False)
        with pytest.raises(ValidationError):
            Settings(_env_file=None)  # type: ignore[call-arg]

    def test_stale_action_policy_values(self, required_env: pytest.MonkeyPatch) -> None:
        required_env.setenv("STALE_ACTION_POLICY", "redeliver")
        assert Settings(_env_file=None).stale_action_policy == "redeliver"  # type: ignore[call-arg]

        required_env.setenv("STALE_ACTION_POLICY", "ignore")
        with pytest.raises(ValidationError):
            Settings(_env_file=None)  # type: ignore[call-arg]

    def test_queue_wait_bounds(self, required_env: pytest.MonkeyPatch) -> None:
        required_env.setenv("QUEUE_WAIT_SECONDS", "21")
        with pytest.raises(ValidationError):
            Settings(_env_file=None)  # type: ignore[call-arg]

    def test_empty_bucket_rejected(self, required_env: pytest.MonkeyPatch) -> None:
        required_env.setenv("TARGET_BUCKET", "")
        with pytest.raises(ValidationError):
            Settings(_env_file=None)  # type: ignore[call-arg]

    def test_control_paths_are_relative(self, required_env: pytest.MonkeyPatch) -> None:
        required_env.setenv("IGNORE_FILE_PATH", "/config/.publishignore")
        assert Settings(_env_file=None).ignore_file_path == "config/.publishignore"  # type: ignore[call-arg]

        required_env.setenv("IGNORE_FILE_PATH", " / ")
        with pytest.raises(ValidationError, match="must not be empty"):
            Settings(_env_file=None)  # type: ignore[call-arg]

    def test_log_level_upper_cased(self, required_env: pytest.MonkeyPatch) -> None:
        required_env.setenv("LOG_LEVEL", "debug")
        assert Settings(_env_file=None).log_level == "DEBUG"  # type: ignore[call-arg]
