"""Automation API: thin routes delegating to AutomationService.

Static paths (templates, stats, events, executions) are declared before
/{automation_id} so they are never captured by it.
"""

from typing import Annotated, Any
from uuid import UUID

from fastapi import APIRouter, Body, Depends, Query, Request, Response

from travel_crm.api.v1.dependencies import (
    get_automation_service,
    get_automation_service_for_write,
)
from travel_crm.application.services.automation_templates import (
    action_templates,
    trigger_templates,
)
from travel_crm.application.services.automation_validator import (
    validate_automation_definition,
)
from travel_crm.application.use_cases.automations import AutomationService
from travel_crm.core.limiter import limit_execute, limit_writes
from travel_crm.schemas.automation import (
    ActionTemplate,
    AutomationExecuteRequest,
    AutomationListQuery,
    AutomationListResponse,
    AutomationResponse,
    AutomationRunResponse,
    AutomationStatsResponse,
    ExecutionResponse,
    TriggerEventRequest,
    TriggerEventResponse,
    TriggerTemplate,
)

router = APIRouter()

ReadService = Annotated[AutomationService, Depends(get_automation_service)]
WriteService = Annotated[AutomationService, Depends(get_automation_service_for_write)]


@router.get("/trigger-templates", response_model=list[TriggerTemplate])
async def get_trigger_templates():
    """Catalog of triggers and the condition fields each one accepts."""
    return trigger_templates()


@router.get("/action-templates", response_model=list[ActionTemplate])
async def get_action_templates():
    """Catalog of actions and the parameter fields each one accepts."""
    return action_templates()


@router.get("/stats", response_model=AutomationStatsResponse)
async def get_automation_stats(service: ReadService):
    """Automation counts, 7-day execution volume, success rate, and recent activity."""
    return await service.get_stats()


@router.post("/events", response_model=TriggerEventResponse, status_code=202)
@limit_execute
async def receive_event(request: Request, body: TriggerEventRequest, service: WriteService):
    """Offer a business event to every active automation listening to its trigger type."""
    return await service.handle_event(
        body.trigger_type, body.data, idempotency_key=body.idempotency_key
    )


@router.get("/executions/{execution_id}", response_model=ExecutionResponse)
async def get_execution(execution_id: UUID, service: ReadService):
    """Get one execution with its per-action log."""
    return await service.get_execution(str(execution_id))


@router.post("/executions/{execution_id}/pause", response_model=ExecutionResponse)
@limit_writes
async def pause_execution(request: Request, execution_id: UUID, service: WriteService):
    """Stop a running execution from advancing to its next step."""
    return await service.pause_execution(str(execution_id))


@router.post("/executions/{execution_id}/resume", response_model=ExecutionResponse)
@limit_writes
async def resume_execution(request: Request, execution_id: UUID, service: WriteService):
    """Continue a paused execution.

    Its next step is due after its delay from now; a step waiting on a retry keeps its backoff.
    """
    return await service.resume_execution(str(execution_id))


@router.post("/executions/{execution_id}/cancel", response_model=ExecutionResponse)
@limit_writes
async def cancel_execution(request: Request, execution_id: UUID, service: WriteService):
    """Drop the queued steps of an execution and mark it failed."""
    return await service.cancel_execution(str(execution_id))


@router.get("", response_model=AutomationListResponse)
async def list_automations(
    query: Annotated[AutomationListQuery, Query()],
    service: ReadService,
):
    """List automations (newest first), filtered by isActive / triggerType, paginated."""
    return await service.list_automations(query)


@router.post("", response_model=AutomationResponse, status_code=201)
@limit_writes
async def create_automation(
    request: Request,
    body: Annotated[dict[str, Any], Body()],
    service: WriteService,
):
    """Create an automation. Invalid definitions are rejected with every failing field."""
    definition = validate_automation_definition(body)
    return await service.create(definition)


@router.get("/{automation_id}", response_model=AutomationResponse)
async def get_automation(automation_id: UUID, service: ReadService):
    """Get automation with ordered actions and its latest executions."""
    return await service.get(str(automation_id))


@router.put("/{automation_id}", response_model=AutomationResponse)
@limit_writes
async def update_automation(
    request: Request,
    automation_id: UUID,
    body: Annotated[dict[str, Any], Body()],
    service: WriteService,
):
    """Update an automation (partial). Supplied actions replace the whole list."""
    changes = validate_automation_definition(body, partial=True)
    return await service.update(str(automation_id), changes)


@router.delete("/{automation_id}", status_code=204)
@limit_writes
async def delete_automation(request: Request, automation_id: UUID, service: WriteService):
    """Delete an automation with its actions and executions."""
    await service.delete(str(automation_id))
    return Response(status_code=204)


@router.patch("/{automation_id}/toggle", response_model=AutomationResponse)
@limit_writes
async def toggle_automation(request: Request, automation_id: UUID, service: WriteService):
    """Switch an automation on or off."""
    return await service.toggle_active(str(automation_id))


@router.post("/{automation_id}/execute", response_model=AutomationRunResponse)
@limit_execute
async def execute_automation(
    request: Request,
    automation_id: UUID,
    body: AutomationExecuteRequest,
    service: WriteService,
):
    """Run an automation now with the given trigger data."""
    return await service.execute(str(automation_id), body)


@router.get("/{automation_id}/executions", response_model=list[ExecutionResponse])
async def list_automation_executions(
    automation_id: UUID,
    service: ReadService,
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200),
):
    """Execution history of an automation (most recent first)."""
    return await service.list_executions(str(automation_id), skip=skip, limit=limit)
