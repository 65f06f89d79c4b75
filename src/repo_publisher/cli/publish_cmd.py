"""Publish CLI commands: run pipeline stages by hand and inspect status."""

from typing import Any

import typer
from loguru import logger


def _load() -> tuple[Any, Any]:
    """Load settings and build AWS-backed collaborators."""
    from repo_publisher.core.config import get_settings
    from repo_publisher.core.dependencies import build_collaborators

    settings = get_settings()
    return settings, build_collaborators(settings)


def ingest_command(
    repository: str = typer.Argument(..., help="Repository name"),
    commit_id: str = typer.Argument(..., help="Commit to publish"),
    branch: str = typer.Option("main", "--branch", "-b", help="Branch the commit belongs to"),
) -> None:
    """Stage a commit for publishing (same as a repository trigger event)."""
    from repo_publisher.lib.publisher.errors import PublisherError
    from repo_publisher.schemas.events import CommitEvent
    from repo_publisher.services.ingest_service import ingest_commit

    settings, deps = _load()
    event = CommitEvent(repository=repository, branch=branch, commit_id=commit_id)

    try:
        result = ingest_commit(event, deps, settings)
    except PublisherError as exc:
        typer.echo(f"Error: {exc}")
        raise typer.Exit(code=1) from exc
    except Exception as exc:
        logger.error("Ingest failed: {}", exc)
        typer.echo(f"Error: Ingest failed — {exc}")
        raise typer.Exit(code=1) from exc

    if result.staged:
        typer.echo(f"Staged {commit_id} for {repository}/{branch}: {result.action_count} actions queued")
    else:
        typer.echo(f"Nothing to publish; {commit_id} marked as published for {repository}/{branch}")


def drain_command(
    steps: int = typer.Option(1, "--steps", "-n", min=1, help="Maximum number of drain steps to run"),
) -> None:
    """Run the drain worker, one queued action per step."""
    from repo_publisher.lib.publisher.types import DrainOutcome
    from repo_publisher.services.drain_service import drain_once

    settings, deps = _load()

    for step in range(1, steps + 1):
        try:
            result = drain_once(deps, settings)
        except Exception as exc:
            logger.error("Drain step failed: {}", exc)
            typer.echo(f"Error: Drain step {step} failed — {exc}")
            raise typer.Exit(code=1) from exc

        if result.outcome == DrainOutcome.QUEUE_EMPTY:
            typer.echo(f"Step {step}: queue empty")
            return

        action = result.action
        detail = f"{action.action} {action.repository_name}/{action.branch_name}:{action.path}" if action else ""
        suffix = " (commit published)" if result.completed else ""
        typer.echo(f"Step {step}: {result.outcome.value} {detail}{suffix}")


def status_command(
    repository: str = typer.Argument(..., help="Repository name"),
    branch: str = typer.Option("main", "--branch", "-b", help="Branch name"),
) -> None:
    """Show the publish target record for a repository branch."""
    _, deps = _load()

    try:
        target = deps.status_store.get(repository, branch)
    except Exception as exc:
        typer.echo(f"Error: Failed to read publish status: {exc}")
        raise typer.Exit(code=1) from exc

    if target is None:
        typer.echo(f"{repository}/{branch} has never been published.")
        return

    state = "PUBLISHING" if target.is_publishing else "IDLE"
    typer.echo(f"{target.key}: {state}")
    typer.echo(f"  Published commit:  {target.published_commit_id or '-'}")
    typer.echo(f"  Ignore patterns:   {len(target.published_ignore_patterns)}")
    if target.is_publishing:
        typer.echo(f"  In-flight commit:  {target.new_commit_id}")
        typer.echo(f"  Remaining actions: {target.remaining_actions}")


def check_command(
    repository: str = typer.Argument(..., help="Repository name"),
    branch: str = typer.Option("main", "--branch", "-b", help="Branch name"),
) -> None:
    """Verify the destination bucket for a repository branch is reachable."""
    from repo_publisher.core.config import get_settings
    from repo_publisher.lib.publisher.aws import create_client
    from repo_publisher.lib.publisher.storage import render_template, validate_bucket

    settings = get_settings()
    bucket = render_template(settings.target_bucket, repository, branch)
    client = create_client(
        "s3",
        settings.aws_region,
        endpoint_url=settings.aws_endpoint_url,
        max_attempts=settings.aws_max_attempts,
    )

    try:
        validate_bucket(client, bucket)
    except Exception as exc:
        typer.echo(f"Error: Failed to access bucket {bucket}: {exc}")
        raise typer.Exit(code=1) from exc

    typer.echo(f"Bucket {bucket} is accessible")
