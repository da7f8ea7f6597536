"""Command-line interface for the apflow task service."""

import asyncio
import json
import logging
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

import click
from pydantic import BaseModel

from apflow_client.api.models import Task, TaskPriority, TaskStatus, TaskTree, new_task_id
from apflow_client.client import ApflowClient
from apflow_client.config import ClientConfig
from apflow_client.display import render_tree_lines, status_color
from apflow_client.errors import ApflowClientError
from apflow_client.factory import create_client, get_config
from apflow_client.tree import check_parent_links, walk_tree

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)-8s [%(name)s:%(lineno)d] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def _parse_headers(values: tuple[str, ...]) -> dict[str, str]:
    headers: dict[str, str] = {}
    for value in values:
        key, sep, header_value = value.partition("=")
        if not sep or not key.strip():
            raise click.BadParameter(f"expected KEY=VALUE, got {value!r}", param_hint="--header")
        headers[key.strip()] = header_value.strip()
    return headers


def _run(ctx: click.Context, action: Callable[[ApflowClient], Awaitable[T]]) -> T:
    """Run one client action on a fresh client and event loop."""
    config: ClientConfig = ctx.obj

    async def runner() -> T:
        async with create_client(config) as client:
            return await action(client)

    try:
        return asyncio.run(runner())
    except ApflowClientError as e:
        logger.debug(f"Command failed: {e!r}")
        raise click.ClickException(str(e)) from e


def _to_jsonable(data: Any) -> Any:
    if isinstance(data, BaseModel):
        return data.model_dump(mode="json", exclude_none=True)
    if isinstance(data, list):
        return [_to_jsonable(item) for item in data]
    return data


def _echo_json(data: Any) -> None:
    click.echo(json.dumps(_to_jsonable(data), indent=2))


def _echo_tree(tree: TaskTree) -> None:
    for node, line in zip(walk_tree(tree), render_tree_lines(tree)):
        click.echo(click.style(line, fg=status_color(node.task.status)))
    for problem in check_parent_links(tree):
        click.echo(f"Warning: {problem}", err=True)


@click.group()
@click.option("--url", default=None, help="API base URL (default: APFLOW_API_URL).")
@click.option("--token", default=None, help="Bearer token (default: APFLOW_AUTH_TOKEN).")
@click.option(
    "--header", "headers", multiple=True, help="Extra request header KEY=VALUE (repeatable)."
)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
@click.pass_context
def main(
    ctx: click.Context,
    url: str | None,
    token: str | None,
    headers: tuple[str, ...],
    verbose: bool,
) -> None:
    """Manage tasks on an apflow server."""
    config = get_config()
    _configure_logging("DEBUG" if verbose else config.log_level.upper())
    if not verbose:
        logging.getLogger("httpx").setLevel(logging.WARNING)

    updates: dict[str, Any] = {}
    if url:
        updates["api_url"] = url
    if token:
        updates["auth_token"] = token
    if headers:
        updates["extra_headers"] = {**config.extra_headers, **_parse_headers(headers)}
    ctx.obj = config.model_copy(update=updates)


@main.command()
@click.pass_context
def health(ctx: click.Context) -> None:
    """Check server health."""
    _echo_json(_run(ctx, lambda client: client.system.health()))


@main.command("agent-card")
@click.pass_context
def agent_card(ctx: click.Context) -> None:
    """Show the server's agent card."""
    _echo_json(_run(ctx, lambda client: client.system.agent_card()))


@main.command("get")
@click.argument("task_id")
@click.option("--detail", is_flag=True, help="Use tasks.detail instead of tasks.get.")
@click.pass_context
def get_task(ctx: click.Context, task_id: str, detail: bool) -> None:
    """Show a task."""
    if detail:
        task = _run(ctx, lambda client: client.tasks.detail(task_id))
    else:
        task = _run(ctx, lambda client: client.tasks.get(task_id))
    _echo_json(task)


@main.command()
@click.argument("task_id")
@click.option("--root", "as_root", is_flag=True, help="Treat TASK_ID as the tree root id.")
@click.option("--json", "as_json", is_flag=True, help="Print the tree as JSON.")
@click.pass_context
def tree(ctx: click.Context, task_id: str, as_root: bool, as_json: bool) -> None:
    """Show the task tree containing a task."""
    if as_root:
        result = _run(ctx, lambda client: client.tasks.tree(root_id=task_id))
    else:
        result = _run(ctx, lambda client: client.tasks.tree(task_id=task_id))

    if as_json:
        _echo_json(result)
    else:
        _echo_tree(result)


@main.command()
@click.option("--name", required=True, help="Task name.")
@click.option("--executor", required=True, help="Executor id, e.g. system_info_executor.")
@click.option(
    "--priority",
    type=click.IntRange(int(TaskPriority.URGENT), int(TaskPriority.LOW)),
    default=int(TaskPriority.NORMAL),
    show_default=True,
    help="0 urgent, 1 high, 2 normal, 3 low.",
)
@click.option("--inputs", default="{}", show_default=True, help="Task inputs as JSON.")
@click.option("--user-id", default=None, help="Owner user id.")
@click.option("--id", "task_id", default=None, help="Task id (default: generated).")
@click.pass_context
def create(
    ctx: click.Context,
    name: str,
    executor: str,
    priority: int,
    inputs: str,
    user_id: str | None,
    task_id: str | None,
) -> None:
    """Create a task and start executing it."""
    try:
        parsed_inputs = json.loads(inputs)
    except json.JSONDecodeError as e:
        raise click.BadParameter("Invalid JSON format", param_hint="--inputs") from e

    task = Task(
        id=task_id or new_task_id(),
        name=name,
        user_id=user_id or None,
        priority=priority,
        schemas={"method": executor},
        inputs=parsed_inputs,
    )
    _echo_json(_run(ctx, lambda client: client.tasks.create(task)))


@main.command()
@click.argument("task_id")
@click.option("--status", type=click.Choice([s.value for s in TaskStatus]), default=None)
@click.option("--progress", type=click.FloatRange(0.0, 1.0), default=None)
@click.option("--error", "error_message", default=None, help="Error message.")
@click.pass_context
def update(
    ctx: click.Context,
    task_id: str,
    status: str | None,
    progress: float | None,
    error_message: str | None,
) -> None:
    """Update task fields."""
    fields: dict[str, Any] = {}
    if status is not None:
        fields["status"] = status
    if progress is not None:
        fields["progress"] = progress
    if error_message is not None:
        fields["error"] = error_message
    if not fields:
        raise click.UsageError("Nothing to update; give --status, --progress or --error.")

    _echo_json(_run(ctx, lambda client: client.tasks.update(task_id, **fields)))


@main.command()
@click.argument("task_id")
@click.pass_context
def delete(ctx: click.Context, task_id: str) -> None:
    """Mark a task as deleted."""
    _echo_json(_run(ctx, lambda client: client.tasks.delete(task_id)))


@main.command("copy")
@click.argument("task_id")
@click.pass_context
def copy_task(ctx: click.Context, task_id: str) -> None:
    """Copy a task tree for re-execution."""
    _echo_tree(_run(ctx, lambda client: client.tasks.copy(task_id)))


@main.command()
@click.argument("task_ids", nargs=-1, required=True)
@click.option("--force", is_flag=True, help="Cancel immediately instead of gracefully.")
@click.pass_context
def cancel(ctx: click.Context, task_ids: tuple[str, ...], force: bool) -> None:
    """Cancel running tasks."""
    _echo_json(_run(ctx, lambda client: client.tasks.cancel(list(task_ids), force=force)))


@main.command()
@click.option("--user-id", default=None, help="Only this user's tasks.")
@click.option("--limit", type=click.IntRange(min=1), default=100, show_default=True)
@click.pass_context
def running(ctx: click.Context, user_id: str | None, limit: int) -> None:
    """List running tasks."""
    _echo_json(_run(ctx, lambda client: client.tasks.running(user_id=user_id, limit=limit)))


@main.command("running-status")
@click.argument("task_ids", nargs=-1, required=True)
@click.pass_context
def running_status(ctx: click.Context, task_ids: tuple[str, ...]) -> None:
    """Show status of running tasks."""
    _echo_json(_run(ctx, lambda client: client.tasks.running_status(list(task_ids))))


@main.command("running-count")
@click.option("--user-id", default=None, help="Only this user's tasks.")
@click.pass_context
def running_count(ctx: click.Context, user_id: str | None) -> None:
    """Count running tasks."""
    _echo_json(_run(ctx, lambda client: client.tasks.running_count(user_id=user_id)))


if __name__ == "__main__":
    main()
