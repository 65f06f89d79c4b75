"""Loguru logging configuration.

Writes human-readable lines to stderr, or one JSON document per record when
running inside AWS Lambda (CloudWatch indexes the serialized fields).  Records
carry the repository/branch/commit they concern via :func:`bind_target`.
Optionally writes to a rotating log file when a ``log_dir`` is provided.
"""

import os
import sys
from pathlib import Path
from typing import Any

from loguru import logger

_LOG_FORMAT = (
    "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level:<8} | {name}:{function}:{line} | "
    "{extra[target]}{message}"
)


def _running_in_lambda() -> bool:
    return "AWS_LAMBDA_FUNCTION_NAME" in os.environ


def _format_target(record: Any) -> None:
    extra = record["extra"]
    parts = [extra[k] for k in ("repository", "branch", "commit_id") if extra.get(k)]
    extra["target"] = f"[{'@'.join(parts)}] " if parts else ""


def setup_logging(log_level: str = "INFO", log_dir: str | None = None, json_logs: bool | None = None) -> None:
    """Configure Loguru sinks.

    Args:
        log_level: Minimum log level to emit.
        log_dir: Optional directory for log files.  When set, a rotating
            file sink is added (rotated every 24 hours, retained 7 days).
        json_logs: Force JSON (True) or text (False) output on stderr.
            Defaults to JSON inside Lambda and text elsewhere.
    """
    if json_logs is None:
        json_logs = _running_in_lambda()

    logger.remove()
    logger.configure(extra={"target": ""}, patcher=_format_target)

    if json_logs:
        logger.add(sys.stderr, level=log_level.upper(), serialize=True)
    else:
        logger.add(sys.stderr, level=log_level.upper(), format=_LOG_FORMAT)

    if log_dir:
        log_path = Path(log_dir)
        log_path.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_path / "repo-publisher.log",
            level=log_level.upper(),
            format=_LOG_FORMAT,
            rotation="24h",
            retention="7 days",
        )


def bind_target(repository: str, branch: str, commit_id: str | None = None) -> Any:
    """Return a logger bound to one publish target."""
    return logger.bind(repository=repository, branch=branch, commit_id=commit_id)
