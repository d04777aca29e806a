"""Workflow execution engine: runs a definition's steps through the adapters.

The engine:

1. Validates the submitted definition (at least one step)
2. Registers a ``pending`` execution in the ExecutionStore
3. Spawns an asyncio task and returns the execution id immediately
4. Moves the execution to ``running`` when the task starts
5. Runs the steps sequentially (declaration order, ``dependsOn`` ordering
   check) or all at once (``parallel=True``)
6. Stores each step result under its ``outputKey`` (if any) and its id
7. Ends in ``completed``, or ``failed`` with the first error's message
   and code

The sequential dependency check tests execution order only: a step id is
recorded as executed as soon as its adapter call returns. A failed step
aborts the run before that point, so a dependency is never satisfied by a
failed step in practice.
"""

import asyncio
import logging
import time
import uuid
from typing import Mapping, Optional

from mediagate.errors import (
    DependencyError,
    ErrorCode,
    InvalidInputError,
    MediaGatewayError,
)
from mediagate.executor.execution_store import ExecutionStore
from mediagate.generation.base import GenerationAdapter
from mediagate.workflows.schemas import (
    StepKind,
    WorkflowDefinition,
    WorkflowExecution,
    WorkflowStep,
)

logger = logging.getLogger(__name__)

SHUTDOWN_ERROR = "Execution interrupted by shutdown"


def generate_execution_id() -> str:
    """Time-based id with a random suffix (unique with high probability)."""
    return f"exec_{int(time.time() * 1000)}_{uuid.uuid4().hex[:9]}"


class WorkflowEngine:
    """Orchestrates workflow executions over the generation adapters."""

    def __init__(
        self,
        store: ExecutionStore,
        adapters: Mapping[StepKind, GenerationAdapter],
    ):
        self.store = store
        self.adapters = dict(adapters)

    async def submit(self, definition: WorkflowDefinition) -> str:
        """Register an execution and start it in the background.

        Returns:
            The execution id, before any step has run

        Raises:
            InvalidInputError: If the workflow has no steps (no record is created)
        """
        if not definition.steps:
            raise InvalidInputError("Workflow must have at least one step")

        execution_id = generate_execution_id()
        self.store.create(WorkflowExecution(id=execution_id, config_id=definition.id))

        task = asyncio.create_task(
            self.run(execution_id, definition),
            name=f"workflow-{execution_id}",
        )
        self.store.attach_task(execution_id, task)

        logger.info(
            f"Started execution {execution_id} for workflow {definition.id} "
            f"({len(definition.steps)} steps, {'parallel' if definition.parallel else 'sequential'})"
        )
        return execution_id

    async def run(self, execution_id: str, definition: WorkflowDefinition) -> None:
        """Execute a registered workflow to a terminal state."""
        self.store.mark_running(execution_id)
        start = time.time()

        try:
            if definition.parallel:
                await self._run_parallel(execution_id, definition.steps)
            else:
                await self._run_sequential(execution_id, definition.steps)
        except asyncio.CancelledError:
            self.store.mark_failed(execution_id, SHUTDOWN_ERROR, ErrorCode.INTERNAL_ERROR.value)
            raise
        except MediaGatewayError as e:
            logger.error(f"Execution {execution_id} failed [{e.code.value}]: {e.message}")
            self.store.mark_failed(execution_id, e.message, e.code.value)
        except Exception as e:
            logger.exception(f"Execution {execution_id} failed with unexpected error")
            self.store.mark_failed(
                execution_id,
                str(e) or type(e).__name__,
                ErrorCode.INTERNAL_ERROR.value,
            )
        else:
            self.store.mark_completed(execution_id)
            logger.info(f"Execution {execution_id} completed in {time.time() - start:.1f}s")

    async def _run_sequential(self, execution_id: str, steps: list[WorkflowStep]) -> None:
        executed: set[str] = set()
        for step in steps:
            for dependency_id in step.depends_on or []:
                if dependency_id not in executed:
                    raise DependencyError(dependency_id, step.id)
            await self._run_step(execution_id, step)
            executed.add(step.id)

    async def _run_parallel(self, execution_id: str, steps: list[WorkflowStep]) -> None:
        tasks = [
            asyncio.create_task(self._run_step(execution_id, step), name=f"{execution_id}:{step.id}")
            for step in steps
        ]
        try:
            await asyncio.gather(*tasks)
        except BaseException:
            # First failure wins: stop the siblings so nothing writes after the run ends
            for task in tasks:
                if not task.done():
                    task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

    async def _run_step(self, execution_id: str, step: WorkflowStep):
        adapter = self.adapters.get(step.kind)
        if adapter is None:
            raise InvalidInputError(f"Unknown step type: {step.kind.value}")

        logger.info(f"[{execution_id}] Step {step.id} ({step.kind.value}) starting")
        start = time.time()
        result = await adapter.execute(step.config)

        if step.output_key:
            self.store.set_result(execution_id, step.output_key, result)
        self.store.set_result(execution_id, step.id, result)

        logger.info(
            f"[{execution_id}] Step {step.id} finished in {time.time() - start:.1f}s "
            f"→ {result.file_path}"
        )
        return result

    # --- Queries ---

    def get(self, execution_id: str) -> Optional[WorkflowExecution]:
        return self.store.get(execution_id)

    def list_all(self) -> list[WorkflowExecution]:
        return self.store.list_all()

    async def wait(self, execution_id: str) -> Optional[WorkflowExecution]:
        """Wait for an execution's background task, then return its record."""
        task = self.store.get_task(execution_id)
        if task is not None:
            await asyncio.wait({task})
        return self.store.get(execution_id)

    async def shutdown(self) -> None:
        """Cancel running executions (they end as ``failed``)."""
        tasks = self.store.active_tasks()
        if not tasks:
            return
        logger.info(f"Cancelling {len(tasks)} running execution(s)")
        for task in tasks.values():
            task.cancel()
        await asyncio.gather(*tasks.values(), return_exceptions=True)
        # A task cancelled before its first step never entered run()
        for execution_id in tasks:
            self.store.mark_failed(execution_id, SHUTDOWN_ERROR, ErrorCode.INTERNAL_ERROR.value)
