"""Workflow routes.

Endpoints:
    POST /api/ai/workflow                   Submit a workflow, returns an execution id
    GET  /api/ai/workflow/templates         Built-in example workflows
    GET  /api/ai/workflow                   List executions
    GET  /api/ai/workflow/{executionId}     Poll one execution
"""

import logging

from fastapi import APIRouter, Depends

from mediagate.api.deps import Services, get_services
from mediagate.errors import NotFoundError
from mediagate.workflows.schemas import WorkflowDefinition

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/workflow", tags=["workflow"])


@router.post("")
async def submit_workflow(definition: WorkflowDefinition, services: Services = Depends(get_services)):
    """Start executing a workflow.

    Registers the execution and runs it in the background. Poll
    GET /api/ai/workflow/{executionId} for status and results.
    """
    execution_id = await services.engine.submit(definition)
    return {
        "success": True,
        "data": {
            "executionId": execution_id,
            "message": "Workflow execution started",
        },
    }


@router.get("/templates")
async def list_templates(services: Services = Depends(get_services)):
    """Get the built-in example workflow definitions."""
    templates = services.templates.list_all()
    return {"success": True, "data": [t.to_json_dict() for t in templates]}


@router.get("")
async def list_executions(services: Services = Depends(get_services)):
    """List all executions, oldest first."""
    executions = services.engine.list_all()
    return {"success": True, "data": [e.to_json_dict() for e in executions]}


@router.get("/{execution_id}")
async def get_execution(execution_id: str, services: Services = Depends(get_services)):
    """Get an execution's status and results."""
    execution = services.engine.get(execution_id)
    if execution is None:
        raise NotFoundError("Execution not found")
    return {"success": True, "data": execution.to_json_dict()}
