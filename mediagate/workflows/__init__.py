"""Workflow definitions and built-in templates."""

from mediagate.workflows.registry import TemplateRegistry, get_template_registry
from mediagate.workflows.schemas import (
    ExecutionStatus,
    StepKind,
    WorkflowDefinition,
    WorkflowExecution,
    WorkflowStep,
)

__all__ = [
    "ExecutionStatus",
    "StepKind",
    "TemplateRegistry",
    "WorkflowDefinition",
    "WorkflowExecution",
    "WorkflowStep",
    "get_template_registry",
]
