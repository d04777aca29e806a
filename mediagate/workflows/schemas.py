"""Workflow schemas: definitions, steps and execution records.

A workflow is an ordered list of generation steps. Each step names the
adapter kind (``tts``, ``image`` or ``video``) and carries that adapter's
request as its config. The whole workflow runs either sequentially (with
``dependsOn`` ordering checks) or fully in parallel.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional, Union

from pydantic import Field, model_validator

from mediagate.generation.schemas import (
    CamelModel,
    GenerationResult,
    ImagenRequest,
    TTSRequest,
    VeoRequest,
)


class StepKind(str, Enum):
    """Adapter kinds a workflow step can invoke."""

    TTS = "tts"
    IMAGE = "image"
    VIDEO = "video"


# Names used by earlier clients of the API
_KIND_SYNONYMS = {"imagen": "image", "veo": "video"}

_CONFIG_MODELS: dict[str, type[CamelModel]] = {
    StepKind.TTS.value: TTSRequest,
    StepKind.IMAGE.value: ImagenRequest,
    StepKind.VIDEO.value: VeoRequest,
}

StepConfig = Union[TTSRequest, ImagenRequest, VeoRequest]


class WorkflowStep(CamelModel):
    """A single generation step within a workflow."""

    id: str = Field(..., description="Step identifier, unique within the workflow")
    kind: StepKind = Field(..., alias="type", description="Adapter to invoke")
    config: StepConfig = Field(..., description="Adapter request, shaped by the step kind")
    depends_on: Optional[list[str]] = Field(
        default=None,
        description="Step ids that must have run before this one (sequential mode only)",
    )
    output_key: Optional[str] = Field(
        default=None,
        description="Extra key under which the step result is stored",
    )

    @model_validator(mode="before")
    @classmethod
    def _parse_config_for_kind(cls, data: Any) -> Any:
        """Validate ``config`` against the request model selected by the kind."""
        if not isinstance(data, dict):
            return data

        data = dict(data)
        kind_field = "type" if "type" in data else "kind"
        kind = data.get(kind_field)
        if isinstance(kind, str):
            kind = _KIND_SYNONYMS.get(kind.lower(), kind.lower())
            data[kind_field] = kind

        config_model = _CONFIG_MODELS.get(kind) if isinstance(kind, str) else None
        config = data.get("config")
        if config_model is not None and isinstance(config, dict):
            data["config"] = config_model.model_validate(config)
        return data


class WorkflowDefinition(CamelModel):
    """A submitted (or built-in) workflow."""

    id: str
    name: str
    description: Optional[str] = None
    steps: list[WorkflowStep] = Field(default_factory=list)
    parallel: bool = Field(
        default=False,
        description="Run all steps concurrently instead of in declaration order",
    )


class ExecutionStatus(str, Enum):
    """Execution lifecycle states."""

    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (ExecutionStatus.COMPLETED, ExecutionStatus.FAILED)


class WorkflowExecution(CamelModel):
    """One run of a workflow definition."""

    id: str
    config_id: str
    status: ExecutionStatus = ExecutionStatus.PENDING
    results: dict[str, GenerationResult] = Field(default_factory=dict)
    start_time: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    end_time: Optional[datetime] = None
    error: Optional[str] = None
    error_code: Optional[str] = None
