"""Automation use cases: definition CRUD, manual runs, event intake, stats."""

from __future__ import annotations

import time
from datetime import timedelta
from typing import TYPE_CHECKING, Any

from travel_crm.application.services.automation_validator import (
    normalize_definition,
    normalize_trigger_conditions,
    to_action_entities,
)
from travel_crm.application.services.trigger_matching import matches_trigger
from travel_crm.domain.entities import AutomationEntity
from travel_crm.domain.enums import ExecutionStatus, TriggerType
from travel_crm.domain.exceptions import (
    AutomationInactiveException,
    ResourceNotFoundException,
)
from travel_crm.schemas.automation import (
    AutomationCreateRequest,
    AutomationExecuteRequest,
    AutomationListQuery,
    AutomationListResponse,
    AutomationResponse,
    AutomationRunResponse,
    AutomationStatsResponse,
    AutomationUpdateRequest,
    ExecutionResponse,
    ExecutionSummary,
    RecentActivityItem,
    TriggerEventResponse,
)
from travel_crm.shared.telemetry.logging import get_logger
from travel_crm.shared.utils.datetime import utc_now
from travel_crm.shared.utils.generators import generate_uuid

if TYPE_CHECKING:
    from travel_crm.application.interfaces.repositories import (
        IAutomationRepository,
        IExecutionRepository,
    )
    from travel_crm.application.interfaces.services import IAutomationEngine

logger = get_logger(__name__)

LIST_EXECUTIONS_PER_AUTOMATION = 5
DETAIL_EXECUTIONS = 10
STATS_WINDOW = timedelta(days=7)
RECENT_ACTIVITY_LIMIT = 10


class AutomationService:
    """Manage automation definitions and run them.

    When strict_validation is on, create and update run every trigger
    condition and action parameter through its per-type schema and store the
    coerced values. Otherwise only the base definition shape is enforced.
    """

    def __init__(
        self,
        automation_repo: IAutomationRepository,
        execution_repo: IExecutionRepository,
        engine: IAutomationEngine,
        *,
        strict_validation: bool = True,
    ) -> None:
        self.automation_repo = automation_repo
        self.execution_repo = execution_repo
        self.engine = engine
        self.strict_validation = strict_validation

    async def _get_or_404(self, automation_id: str) -> AutomationEntity:
        automation = await self.automation_repo.get_by_id(automation_id)
        if not automation:
            raise ResourceNotFoundException("automation", automation_id)
        return automation

    async def create(self, request: AutomationCreateRequest) -> AutomationResponse:
        """Create an automation from an already shape-validated request.

        Raises:
            ValidationException: If strict validation is on and conditions or
                parameters violate their per-type schema.
        """
        if self.strict_validation:
            normalized = normalize_definition(
                request.trigger_type, request.trigger_conditions, request.actions
            )
            conditions, actions = normalized.trigger_conditions, normalized.actions
        else:
            conditions = dict(request.trigger_conditions)
            actions = to_action_entities(request.actions)
        for action in actions:
            action.id = generate_uuid()
        now = utc_now()
        automation = AutomationEntity(
            id=generate_uuid(),
            name=request.name,
            description=request.description,
            trigger_type=request.trigger_type,
            trigger_conditions=conditions,
            actions=actions,
            is_active=request.is_active,
            created_at=now,
            updated_at=now,
        )
        created = await self.automation_repo.create_automation(automation)
        logger.info(
            "Automation created: %s (%s, %d actions)",
            created.id,
            created.trigger_type.value,
            len(created.actions),
        )
        return AutomationResponse.from_entity(created)

    async def list_automations(self, query: AutomationListQuery) -> AutomationListResponse:
        """Return one page of automations, each with its latest executions."""
        items, total = await self.automation_repo.list_automations(
            is_active=query.is_active_flag,
            trigger_type=query.trigger_type,
            skip=query.offset,
            limit=query.page_size,
        )
        latest = await self.execution_repo.get_latest_for_automations(
            [a.id for a in items], LIST_EXECUTIONS_PER_AUTOMATION
        )
        return AutomationListResponse(
            items=[AutomationResponse.from_entity(a, latest.get(a.id, [])) for a in items],
            total=total,
            page=query.page,
            page_size=query.page_size,
        )

    async def get(self, automation_id: str) -> AutomationResponse:
        """Return automation with ordered actions and its latest executions.

        Raises:
            ResourceNotFoundException: If the automation does not exist.
        """
        automation = await self._get_or_404(automation_id)
        executions = await self.execution_repo.list_by_automation(
            automation_id, skip=0, limit=DETAIL_EXECUTIONS
        )
        return AutomationResponse.from_entity(automation, executions)

    async def update(
        self, automation_id: str, request: AutomationUpdateRequest
    ) -> AutomationResponse:
        """Apply a partial update. Supplied actions replace the whole list.

        Changing the trigger type without new conditions re-checks the stored
        conditions against the new type.

        Raises:
            ResourceNotFoundException: If the automation does not exist.
            ValidationException: If the resulting definition is invalid.
        """
        automation = await self._get_or_404(automation_id)
        fields = request.model_fields_set

        trigger_type = request.trigger_type or automation.trigger_type
        conditions: dict[str, Any] = (
            dict(request.trigger_conditions)
            if request.trigger_conditions is not None
            else automation.trigger_conditions
        )
        trigger_changed = request.trigger_type is not None or request.trigger_conditions is not None

        if request.actions is not None:
            if self.strict_validation:
                normalized = normalize_definition(trigger_type, conditions, request.actions)
                conditions, actions = normalized.trigger_conditions, normalized.actions
            else:
                actions = to_action_entities(request.actions)
            for action in actions:
                action.id = generate_uuid()
            automation.actions = actions
        elif trigger_changed and self.strict_validation:
            conditions = normalize_trigger_conditions(trigger_type, conditions)

        if request.name is not None:
            automation.name = request.name
        if "description" in fields:
            automation.description = request.description
        if request.is_active is not None:
            automation.is_active = request.is_active
        automation.trigger_type = trigger_type
        automation.trigger_conditions = conditions
        automation.updated_at = utc_now()

        updated = await self.automation_repo.update_automation(automation)
        logger.info("Automation updated: %s", automation_id)
        executions = await self.execution_repo.list_by_automation(
            automation_id, skip=0, limit=DETAIL_EXECUTIONS
        )
        return AutomationResponse.from_entity(updated, executions)

    async def delete(self, automation_id: str) -> None:
        """Delete automation together with its actions and executions.

        Raises:
            ResourceNotFoundException: If the automation does not exist.
        """
        deleted = await self.automation_repo.delete_automation(automation_id)
        if not deleted:
            raise ResourceNotFoundException("automation", automation_id)
        logger.info("Automation deleted: %s", automation_id)

    async def toggle_active(self, automation_id: str) -> AutomationResponse:
        """Flip isActive.

        Raises:
            ResourceNotFoundException: If the automation does not exist.
        """
        automation = await self._get_or_404(automation_id)
        updated = await self.automation_repo.set_active(automation_id, not automation.is_active)
        if not updated:
            raise ResourceNotFoundException("automation", automation_id)
        logger.info("Automation %s is_active=%s", automation_id, updated.is_active)
        return AutomationResponse.from_entity(updated)

    async def execute(
        self, automation_id: str, request: AutomationExecuteRequest
    ) -> AutomationRunResponse:
        """Run an automation manually with the given trigger data.

        Steps without a remaining delay run before this returns; delayed
        steps are queued for the worker and counted as pending.

        Raises:
            ResourceNotFoundException: If the automation does not exist.
            AutomationInactiveException: If the automation is switched off.
        """
        automation = await self._get_or_404(automation_id)
        if not automation.is_active:
            raise AutomationInactiveException(automation_id)
        started = time.perf_counter()
        execution = await self.engine.start_execution(
            automation, request.trigger_data, idempotency_key=request.idempotency_key
        )
        duration_ms = int((time.perf_counter() - started) * 1000)
        pending = sum(1 for s in execution.steps if not s.is_finished)
        logger.info(
            "Automation %s executed in %dms: execution=%s status=%s",
            automation_id,
            duration_ms,
            execution.id,
            execution.status.value,
        )
        return AutomationRunResponse(
            automation_id=automation_id,
            execution_id=execution.id,
            status=execution.status,
            success=execution.status != ExecutionStatus.FAILED,
            actions_executed=execution.actions_succeeded,
            actions_pending=pending,
            error=execution.error,
            duration_ms=duration_ms,
        )

    async def handle_event(
        self,
        trigger_type: TriggerType,
        event_data: dict[str, Any],
        idempotency_key: str | None = None,
    ) -> TriggerEventResponse:
        """Start an execution for every active automation whose conditions match the event."""
        candidates = await self.automation_repo.get_active_by_trigger(trigger_type)
        started = []
        for automation in candidates:
            if not automation.can_trigger_on(trigger_type):
                continue
            if not matches_trigger(trigger_type, automation.trigger_conditions, event_data):
                continue
            execution = await self.engine.start_execution(
                automation, event_data, idempotency_key=idempotency_key
            )
            started.append(execution)
        logger.info(
            "Event %s matched %d of %d active automations",
            trigger_type.value,
            len(started),
            len(candidates),
        )
        return TriggerEventResponse(
            trigger_type=trigger_type,
            matched=len(started),
            executions=[ExecutionSummary.from_entity(e) for e in started],
        )

    async def list_executions(
        self, automation_id: str, skip: int = 0, limit: int = 50
    ) -> list[ExecutionResponse]:
        """Return executions of an automation, most recent first.

        Raises:
            ResourceNotFoundException: If the automation does not exist.
        """
        await self._get_or_404(automation_id)
        executions = await self.execution_repo.list_by_automation(
            automation_id, skip=skip, limit=limit
        )
        return [ExecutionResponse.from_entity(e) for e in executions]

    async def get_execution(self, execution_id: str) -> ExecutionResponse:
        """Raises ResourceNotFoundException if the execution does not exist."""
        execution = await self.execution_repo.get_by_id(execution_id)
        if not execution:
            raise ResourceNotFoundException("execution", execution_id)
        return ExecutionResponse.from_entity(execution)

    async def pause_execution(self, execution_id: str) -> ExecutionResponse:
        return ExecutionResponse.from_entity(await self.engine.pause_execution(execution_id))

    async def resume_execution(self, execution_id: str) -> ExecutionResponse:
        return ExecutionResponse.from_entity(await self.engine.resume_execution(execution_id))

    async def cancel_execution(self, execution_id: str) -> ExecutionResponse:
        return ExecutionResponse.from_entity(await self.engine.cancel_execution(execution_id))

    async def get_stats(self) -> AutomationStatsResponse:
        """Counts, 7-day execution volume and success rate, and the latest activity.

        Success rate is the share of executions started in the last 7 days that
        completed, as a percentage rounded to one decimal (0.0 when there were none).
        """
        since = utc_now() - STATS_WINDOW
        total_automations = await self.automation_repo.count_automations()
        active_automations = await self.automation_repo.count_automations(is_active=True)
        total_executions = await self.execution_repo.count_executions()
        recent_executions = await self.execution_repo.count_executions(since=since)
        completed = await self.execution_repo.count_executions(
            since=since, status=ExecutionStatus.COMPLETED
        )
        success_rate = (
            round(completed / recent_executions * 100, 1) if recent_executions else 0.0
        )
        recent = await self.execution_repo.list_recent_with_names(
            since, limit=RECENT_ACTIVITY_LIMIT
        )
        return AutomationStatsResponse(
            total_automations=total_automations,
            active_automations=active_automations,
            total_executions=total_executions,
            recent_executions=recent_executions,
            success_rate=success_rate,
            recent_activity=[
                RecentActivityItem(
                    id=execution.id,
                    automation_name=name,
                    status=execution.status,
                    started_at=execution.started_at,
                    completed_at=execution.completed_at,
                    error=execution.error,
                )
                for execution, name in recent
            ],
        )
