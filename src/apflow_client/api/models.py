"""API models for the apflow task service."""

import time
from enum import Enum, IntEnum

from pydantic import BaseModel, ConfigDict, Field, JsonValue, field_validator


class TaskStatus(str, Enum):
    """Lifecycle status of a task."""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


TERMINAL_STATUSES = frozenset({TaskStatus.COMPLETED, TaskStatus.FAILED, TaskStatus.CANCELLED})


class TaskPriority(IntEnum):
    """Task priority. Lower is more urgent."""

    URGENT = 0
    HIGH = 1
    NORMAL = 2
    LOW = 3


def new_task_id() -> str:
    """Build a client-side task id from the current time in milliseconds."""
    return f"task-{time.time_ns() // 1_000_000}"


class TaskDependency(BaseModel):
    """Reference to another task this task depends on."""

    id: str
    required: bool = True


class Task(BaseModel):
    """Task as returned by the server.

    Unknown fields sent by the server are kept.
    """

    model_config = ConfigDict(extra="allow")

    id: str = Field(min_length=1)
    name: str
    user_id: str | None = None
    parent_id: str | None = None  # None = root
    priority: int | None = None
    dependencies: list[TaskDependency] | None = None
    inputs: JsonValue = None
    schemas: JsonValue = None  # Execution descriptor, e.g. {"method": "executor_id"}
    params: JsonValue = None
    status: str = TaskStatus.PENDING.value
    progress: float | None = Field(default=None, ge=0.0, le=1.0)
    result: JsonValue = None  # Only on success
    error: str | None = None  # Only on failure
    created_at: str | None = None
    updated_at: str | None = None
    started_at: str | None = None
    completed_at: str | None = None
    children: list["Task"] | None = None  # Only when fetched as a tree
    original_task_id: str | None = None
    has_copy: bool | None = None

    @field_validator("status", mode="before")
    @classmethod
    def _default_status(cls, value: object) -> object:
        if value is None or value == "":
            return TaskStatus.PENDING.value
        if isinstance(value, TaskStatus):
            return value.value
        return value

    @property
    def is_root(self) -> bool:
        return self.parent_id is None

    @property
    def is_terminal(self) -> bool:
        return self.status in {s.value for s in TERMINAL_STATUSES}

    def to_payload(self) -> dict[str, JsonValue]:
        """Serialize for submission, leaving out unset and empty fields."""
        data = self.model_dump(mode="json", exclude_unset=True)
        return {key: value for key, value in data.items() if value is not None}


class TaskTree(Task):
    """Task with its fully materialized subtree."""

    children: list["TaskTree"] = Field(default_factory=list)  # type: ignore[assignment]

    @field_validator("children", mode="before")
    @classmethod
    def _children_present(cls, value: object) -> object:
        return [] if value is None else value


class TaskUpdate(BaseModel):
    """Partial task update. Only explicitly set fields are sent."""

    model_config = ConfigDict(extra="forbid")

    status: TaskStatus | None = None
    inputs: JsonValue = None
    result: JsonValue = None
    error: str | None = None
    progress: float | None = Field(default=None, ge=0.0, le=1.0)
    started_at: str | None = None
    updated_at: str | None = None
    completed_at: str | None = None

    def to_params(self) -> dict[str, JsonValue]:
        return self.model_dump(mode="json", exclude_unset=True)


class CreateTaskResponse(BaseModel):
    """Result of tasks.create."""

    model_config = ConfigDict(extra="allow")

    status: str
    root_task_id: str
    progress: float | None = None
    task_count: int


class DeleteTaskResponse(BaseModel):
    """Result of tasks.delete."""

    model_config = ConfigDict(extra="allow")

    success: bool
    task_id: str


class RunningTask(BaseModel):
    """Entry of tasks.running.list."""

    model_config = ConfigDict(extra="allow")

    id: str
    name: str
    status: str
    progress: float | None = None


class TaskStatusEntry(BaseModel):
    """Per-task outcome of tasks.cancel and tasks.running.status."""

    model_config = ConfigDict(extra="allow")

    task_id: str
    status: str
    message: str | None = None


class RunningTaskCount(BaseModel):
    """Result of tasks.running.count."""

    model_config = ConfigDict(extra="allow")

    count: int
    user_id: str | None = None


class SystemHealth(BaseModel):
    """Result of system.health."""

    model_config = ConfigDict(extra="allow")

    status: str
    version: str
    uptime: float


Task.model_rebuild()
TaskTree.model_rebuild()
