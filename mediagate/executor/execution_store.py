"""In-memory registry of workflow executions.

Handles:
- Execution record creation
- Status transitions and result writes (called by the engine)
- Status queries and listing (for client polling)
- Background task handles (one asyncio task per execution)

State lives for the lifetime of the process: nothing is persisted and
nothing is evicted. Reads return deep copies, so a polling client never
observes a record mid-update. Mutation is guarded by a lock, which keeps
the store safe when touched from worker threads as well as the event loop.
"""

import asyncio
import logging
import threading
from datetime import datetime, timezone
from typing import Optional, Union

from mediagate.errors import NotFoundError
from mediagate.generation.schemas import AudioResult, ImageResult, VideoResult
from mediagate.workflows.schemas import ExecutionStatus, WorkflowExecution

logger = logging.getLogger(__name__)


class ExecutionStore:
    """Process-wide map of execution id -> WorkflowExecution."""

    def __init__(self) -> None:
        self._executions: dict[str, WorkflowExecution] = {}
        self._tasks: dict[str, asyncio.Task] = {}
        self._lock = threading.Lock()

    def create(self, execution: WorkflowExecution) -> WorkflowExecution:
        """Register a new execution record."""
        with self._lock:
            self._executions[execution.id] = execution
            snapshot = execution.model_copy(deep=True)
        logger.info(f"Created execution {execution.id} for workflow {execution.config_id}")
        return snapshot

    def get(self, execution_id: str) -> Optional[WorkflowExecution]:
        """Get a snapshot of an execution, or None if unknown."""
        with self._lock:
            execution = self._executions.get(execution_id)
            return execution.model_copy(deep=True) if execution else None

    def list_all(self) -> list[WorkflowExecution]:
        """Snapshot of every execution, in insertion order."""
        with self._lock:
            return [e.model_copy(deep=True) for e in self._executions.values()]

    def count(self) -> int:
        with self._lock:
            return len(self._executions)

    def _require(self, execution_id: str) -> WorkflowExecution:
        execution = self._executions.get(execution_id)
        if execution is None:
            raise NotFoundError(f"Execution not found: {execution_id}")
        return execution

    # --- Engine-side mutation ---

    def mark_running(self, execution_id: str) -> None:
        with self._lock:
            execution = self._require(execution_id)
            if execution.status.is_terminal:
                return
            execution.status = ExecutionStatus.RUNNING
        logger.info(f"Execution {execution_id} status → running")

    def set_result(
        self,
        execution_id: str,
        key: str,
        result: Union[AudioResult, ImageResult, VideoResult],
    ) -> None:
        """Store a step result. Ignored once the execution is terminal."""
        with self._lock:
            execution = self._require(execution_id)
            if execution.status.is_terminal:
                logger.warning(
                    f"Dropping result {key!r} for execution {execution_id}: "
                    f"already {execution.status.value}"
                )
                return
            execution.results[key] = result

    def mark_completed(self, execution_id: str) -> None:
        with self._lock:
            execution = self._require(execution_id)
            if execution.status.is_terminal:
                return
            execution.status = ExecutionStatus.COMPLETED
            execution.end_time = datetime.now(timezone.utc)
        logger.info(f"Execution {execution_id} status → completed")

    def mark_failed(self, execution_id: str, error: str, error_code: Optional[str] = None) -> None:
        with self._lock:
            execution = self._require(execution_id)
            if execution.status.is_terminal:
                return
            execution.status = ExecutionStatus.FAILED
            execution.error = error
            execution.error_code = error_code
            execution.end_time = datetime.now(timezone.utc)
        logger.info(f"Execution {execution_id} status → failed (error: {error})")

    # --- Background tasks ---

    def attach_task(self, execution_id: str, task: asyncio.Task) -> None:
        with self._lock:
            self._tasks[execution_id] = task
        task.add_done_callback(lambda _: self._detach_task(execution_id))

    def _detach_task(self, execution_id: str) -> None:
        with self._lock:
            self._tasks.pop(execution_id, None)

    def get_task(self, execution_id: str) -> Optional[asyncio.Task]:
        with self._lock:
            return self._tasks.get(execution_id)

    def active_tasks(self) -> dict[str, asyncio.Task]:
        with self._lock:
            return dict(self._tasks)
