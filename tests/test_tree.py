"""Tests for task tree traversal."""

from apflow_client.api.models import Task, TaskTree
from apflow_client.tree import (
    TreeNode,
    check_parent_links,
    count_tasks,
    find_task,
    flatten_tree,
    walk_tree,
)


def test_walk_tree_order_and_depth(sample_tree: TaskTree) -> None:
    """Test depth-first, parent-before-children order with depths."""
    nodes = list(walk_tree(sample_tree))

    assert [node.task.id for node in nodes] == ["R", "A", "C", "B"]
    assert [node.depth for node in nodes] == [0, 1, 2, 1]
    assert all(isinstance(node, TreeNode) for node in nodes)


def test_walk_single_task() -> None:
    """Test a task without children yields only itself."""
    task = Task(id="solo", name="Solo")

    assert list(walk_tree(task)) == [TreeNode(task, 0)]


def test_walk_subtree_depths_relative_to_start(sample_tree: TaskTree) -> None:
    """Test depth is measured from the node the walk starts at."""
    subtree = sample_tree.children[0]

    assert [(n.task.id, n.depth) for n in walk_tree(subtree)] == [("A", 0), ("C", 1)]


def test_status_not_aggregated(sample_tree: TaskTree) -> None:
    """Test each node keeps its own status and progress."""
    by_id = {node.task.id: node.task for node in walk_tree(sample_tree)}

    assert by_id["R"].status == "in_progress"
    assert by_id["R"].progress == 0.25
    assert by_id["A"].status == "failed"
    assert by_id["A"].progress is None
    assert by_id["C"].status == "completed"
    assert by_id["B"].status == "pending"


def test_deep_tree_does_not_recurse() -> None:
    """Test very deep trees are walked without hitting the recursion limit."""
    depth = 3000
    # model_construct skips validation, which would itself recurse
    root = Task.model_construct(id="t0", name="n0", children=None)
    current = root
    for i in range(1, depth + 1):
        child = Task.model_construct(id=f"t{i}", name=f"n{i}", parent_id=f"t{i - 1}", children=None)
        current.children = [child]
        current = child

    nodes = list(walk_tree(root))

    assert len(nodes) == depth + 1
    assert nodes[-1].depth == depth


def test_flatten_find_count(sample_tree: TaskTree) -> None:
    """Test convenience helpers built on the walk."""
    assert [t.id for t in flatten_tree(sample_tree)] == ["R", "A", "C", "B"]
    assert count_tasks(sample_tree) == 4

    found = find_task(sample_tree, "C")
    assert found is not None
    assert found.parent_id == "A"
    assert find_task(sample_tree, "missing") is None


def test_parent_links_consistent(sample_tree: TaskTree) -> None:
    """Test a well-formed tree reports no problems."""
    assert check_parent_links(sample_tree) == []


def test_parent_links_mismatch_reported(sample_tree: TaskTree) -> None:
    """Test a child whose parent_id disagrees with its position is reported."""
    sample_tree.children[1].parent_id = "A"

    problems = check_parent_links(sample_tree)

    assert len(problems) == 1
    assert "Task B is a child of R" in problems[0]


def test_root_parent_id_not_checked(sample_tree: TaskTree) -> None:
    """Test a subtree root may point at a parent outside the subtree."""
    subtree = sample_tree.children[0]

    assert subtree.parent_id == "R"
    assert check_parent_links(subtree) == []
