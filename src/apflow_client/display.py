"""Plain-text rendering of tasks for terminal output."""

from apflow_client.api.models import Task, TaskStatus
from apflow_client.tree import walk_tree

STATUS_COLORS = {
    TaskStatus.COMPLETED.value: "green",
    TaskStatus.FAILED.value: "red",
    TaskStatus.IN_PROGRESS.value: "blue",
    TaskStatus.CANCELLED.value: "bright_black",
}
DEFAULT_STATUS_COLOR = "yellow"
INDENT = "  "


def status_color(status: str | None) -> str:
    """Map a task status to a terminal color name."""
    return STATUS_COLORS.get(status or "", DEFAULT_STATUS_COLOR)


def short_id(task_id: str) -> str:
    """Abbreviate long ids to first and last four characters."""
    if len(task_id) <= 8:
        return task_id
    return f"{task_id[:4]}...{task_id[-4:]}"


def format_progress(progress: float | None) -> str:
    """Format a 0..1 progress fraction as a whole percentage."""
    if progress is None:
        return ""
    return f"{round(progress * 100)}%"


def render_task_line(task: Task, depth: int = 0) -> str:
    """Render one task as a single indented line."""
    marker = "> " if depth > 0 else ""
    parts = [
        f"{INDENT * depth}{marker}{task.name}",
        f"[{short_id(task.id)}]",
        task.status or TaskStatus.PENDING.value,
    ]
    progress = format_progress(task.progress)
    if progress:
        parts.append(progress)
    return " ".join(parts)


def render_tree_lines(tree: Task) -> list[str]:
    """Render a task tree, one line per task in traversal order."""
    return [render_task_line(node.task, node.depth) for node in walk_tree(tree)]
