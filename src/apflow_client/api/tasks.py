"""Task operations on the /tasks endpoint."""

import logging
from collections.abc import Iterable, Mapping, Sequence
from typing import Any, TypeVar

from pydantic import BaseModel, TypeAdapter, ValidationError

from apflow_client.api.models import (
    CreateTaskResponse,
    DeleteTaskResponse,
    RunningTask,
    RunningTaskCount,
    Task,
    TaskStatusEntry,
    TaskTree,
    TaskUpdate,
)
from apflow_client.errors import ClientValidationError, MalformedResponseError
from apflow_client.rpc.transport import JsonRpcTransport

logger = logging.getLogger(__name__)

TASKS_ENDPOINT = "/tasks"
DEFAULT_RUNNING_LIMIT = 100

ModelT = TypeVar("ModelT", bound=BaseModel)
TaskInput = Task | Mapping[str, Any]

_running_tasks = TypeAdapter(list[RunningTask])
_status_entries = TypeAdapter(list[TaskStatusEntry])


class TasksApi:
    """Typed wrappers for the tasks.* remote procedures."""

    def __init__(self, transport: JsonRpcTransport) -> None:
        """Initialize with the transport used for every call."""
        self._transport = transport

    async def create(self, tasks: TaskInput | Sequence[TaskInput]) -> CreateTaskResponse:
        """Create one or more tasks and start executing them.

        A single task is sent as a one-element array.

        Args:
            tasks: Task, task mapping, or a sequence of those

        Returns:
            Batch summary including the root task id
        """
        if isinstance(tasks, (Task, Mapping)):
            tasks = [tasks]
        if not tasks:
            raise ClientValidationError("At least one task is required")

        payload = [_coerce_task(task).to_payload() for task in tasks]
        result = await self._call("tasks.create", payload)
        return _parse(CreateTaskResponse, result, "tasks.create")

    async def get(self, task_id: str) -> Task:
        """Get the current snapshot of a task."""
        result = await self._call("tasks.get", {"task_id": _require_id(task_id)})
        return _parse(Task, result, "tasks.get")

    async def detail(self, task_id: str) -> Task:
        """Get task detail (server-side alias of get)."""
        result = await self._call("tasks.detail", {"task_id": _require_id(task_id)})
        return _parse(Task, result, "tasks.detail")

    async def tree(self, task_id: str | None = None, root_id: str | None = None) -> TaskTree:
        """Get the full subtree starting from a task.

        Args:
            task_id: Any task in the tree
            root_id: Root task of the tree

        Raises:
            ClientValidationError: If neither id is given
        """
        params: dict[str, str] = {}
        if task_id:
            params["task_id"] = task_id
        if root_id:
            params["root_id"] = root_id
        if not params:
            raise ClientValidationError("Either task_id or root_id is required")

        result = await self._call("tasks.tree", params)
        return _parse(TaskTree, result, "tasks.tree")

    async def update(self, task_id: str, update: TaskUpdate | None = None, **fields: Any) -> Task:
        """Update selected task fields. Fields not given are left unchanged.

        Args:
            task_id: Task to update
            update: Prepared update model
            fields: Update fields as keywords, merged over update
        """
        params: dict[str, Any] = {"task_id": _require_id(task_id)}
        if update is not None:
            params.update(update.to_params())
        if fields:
            try:
                params.update(TaskUpdate(**fields).to_params())
            except ValidationError as e:
                raise ClientValidationError(f"Invalid task update: {e}") from e

        result = await self._call("tasks.update", params)
        return _parse(Task, result, "tasks.update")

    async def delete(self, task_id: str) -> DeleteTaskResponse:
        """Mark a task as deleted. The record is not physically removed."""
        result = await self._call("tasks.delete", {"task_id": _require_id(task_id)})
        return _parse(DeleteTaskResponse, result, "tasks.delete")

    async def copy(self, task_id: str) -> TaskTree:
        """Copy a task tree for re-execution.

        Copied tasks carry original_task_id. The source is marked has_copy.
        """
        result = await self._call("tasks.copy", {"task_id": _require_id(task_id)})
        return _parse(TaskTree, result, "tasks.copy")

    async def cancel(self, task_ids: Iterable[str], force: bool = False) -> list[TaskStatusEntry]:
        """Cancel running tasks.

        Each id gets its own outcome entry. Ids that are already terminal are
        reported per entry, the call as a whole does not fail.

        Args:
            task_ids: Tasks to cancel
            force: Cancel immediately instead of gracefully
        """
        params = {"task_ids": _require_ids(task_ids), "force": force}
        result = await self._call("tasks.cancel", params)
        return _parse_list(_status_entries, result, "tasks.cancel")

    async def running(
        self, user_id: str | None = None, limit: int = DEFAULT_RUNNING_LIMIT
    ) -> list[RunningTask]:
        """List running tasks, for all users when user_id is None."""
        if limit < 1:
            raise ClientValidationError(f"limit must be positive, got {limit}")

        params: dict[str, Any] = {"limit": limit}
        if user_id:
            params["user_id"] = user_id
        result = await self._call("tasks.running.list", params)
        return _parse_list(_running_tasks, result, "tasks.running.list")

    async def running_status(self, task_ids: Iterable[str]) -> list[TaskStatusEntry]:
        """Get status of one or more running tasks."""
        result = await self._call("tasks.running.status", {"task_ids": _require_ids(task_ids)})
        return _parse_list(_status_entries, result, "tasks.running.status")

    async def running_count(self, user_id: str | None = None) -> RunningTaskCount:
        """Count running tasks, for all users when user_id is None."""
        params: dict[str, Any] = {}
        if user_id:
            params["user_id"] = user_id
        result = await self._call("tasks.running.count", params)
        return _parse(RunningTaskCount, result, "tasks.running.count")

    async def _call(self, method: str, params: Any) -> Any:
        return await self._transport.call(TASKS_ENDPOINT, method, params)


def _require_id(task_id: str) -> str:
    if not isinstance(task_id, str) or not task_id.strip():
        raise ClientValidationError("task_id is required")
    return task_id


def _require_ids(task_ids: Iterable[str]) -> list[str]:
    if isinstance(task_ids, str):
        task_ids = [task_ids]
    ids = [_require_id(task_id) for task_id in task_ids]
    if not ids:
        raise ClientValidationError("At least one task_id is required")
    return ids


def _coerce_task(task: TaskInput) -> Task:
    if not isinstance(task, Task):
        try:
            task = Task.model_validate(dict(task))
        except ValidationError as e:
            raise ClientValidationError(f"Invalid task: {e}") from e
    _require_id(task.id)
    return task


def _parse(model: type[ModelT], result: Any, method: str) -> ModelT:
    try:
        return model.model_validate(result)
    except ValidationError as e:
        logger.error(f"[TasksApi] Unexpected result shape for {method}: {e}")
        raise MalformedResponseError(f"Unexpected result for {method}") from e


def _parse_list(adapter: TypeAdapter[Any], result: Any, method: str) -> Any:
    try:
        return adapter.validate_python(result)
    except ValidationError as e:
        logger.error(f"[TasksApi] Unexpected result shape for {method}: {e}")
        raise MalformedResponseError(f"Unexpected result for {method}") from e
