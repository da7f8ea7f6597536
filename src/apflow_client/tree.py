"""Task tree traversal."""

from collections.abc import Iterator
from typing import NamedTuple

from apflow_client.api.models import Task


class TreeNode(NamedTuple):
    """A task together with its distance from the traversal root."""

    task: Task
    depth: int


def walk_tree(root: Task) -> Iterator[TreeNode]:
    """Walk a task tree depth-first, parents before their children.

    Children are visited in the order the server returned them. Status and
    progress are whatever each node carries; nothing is aggregated.

    Args:
        root: Root of the (sub)tree

    Yields:
        TreeNode for every task, root at depth 0
    """
    stack = [TreeNode(root, 0)]
    while stack:
        node = stack.pop()
        yield node
        children = node.task.children or []
        # Reversed so the first child is popped first
        for child in reversed(children):
            stack.append(TreeNode(child, node.depth + 1))


def flatten_tree(root: Task) -> list[Task]:
    """Return all tasks of the tree in traversal order."""
    return [node.task for node in walk_tree(root)]


def find_task(root: Task, task_id: str) -> Task | None:
    """Find a task by id anywhere in the tree."""
    for node in walk_tree(root):
        if node.task.id == task_id:
            return node.task
    return None


def count_tasks(root: Task) -> int:
    """Count tasks in the tree, root included."""
    return sum(1 for _ in walk_tree(root))


def check_parent_links(root: Task) -> list[str]:
    """Check that every child's parent_id names the task that contains it.

    The root itself is not checked, since a subtree may start below the
    real root of its tree.

    Returns:
        Human-readable problems, empty when the tree is consistent
    """
    problems: list[str] = []
    for node in walk_tree(root):
        for child in node.task.children or []:
            if child.parent_id != node.task.id:
                problems.append(
                    f"Task {child.id} is a child of {node.task.id} "
                    f"but has parent_id {child.parent_id!r}"
                )
    return problems
