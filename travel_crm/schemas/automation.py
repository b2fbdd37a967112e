"""Automation API schemas.

Wire format is camelCase (triggerType, delayMinutes, ...); attributes are
snake_case and may also be populated by name.
"""

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel
from pydantic_core import PydanticCustomError

from travel_crm.domain.entities import AutomationEntity, ExecutionEntity
from travel_crm.domain.enums import ActionType, ExecutionStatus, TriggerType

MAX_ACTIONS_PER_AUTOMATION = 10


class CamelModel(BaseModel):
    """Base for API models: camelCase aliases, population by field name allowed."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---- Requests ----


class AutomationActionInput(CamelModel):
    """Single action of an automation definition."""

    type: ActionType
    parameters: dict[str, Any]
    delay_minutes: int = Field(
        default=0, ge=0, strict=True, description="Minutes to wait after the previous step"
    )
    order: int = Field(..., ge=1, strict=True, description="Execution position (ascending)")


class AutomationCreateRequest(CamelModel):
    """Request body for creating an automation."""

    name: str = Field(..., min_length=1, max_length=255)
    description: str | None = Field(default=None, max_length=1000)
    trigger_type: TriggerType
    trigger_conditions: dict[str, Any]
    actions: list[AutomationActionInput] = Field(
        ..., min_length=1, max_length=MAX_ACTIONS_PER_AUTOMATION
    )
    is_active: bool = Field(default=True, strict=True)


class AutomationUpdateRequest(CamelModel):
    """Request body for updating an automation (partial).

    When actions is supplied it replaces the whole list and must still hold
    between 1 and 10 valid actions. Omitted fields stay unchanged; only
    description may be sent as null (to clear it).
    """

    name: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = Field(default=None, max_length=1000)
    trigger_type: TriggerType | None = None
    trigger_conditions: dict[str, Any] | None = None
    actions: list[AutomationActionInput] | None = Field(
        default=None, min_length=1, max_length=MAX_ACTIONS_PER_AUTOMATION
    )
    is_active: bool | None = Field(default=None, strict=True)

    @field_validator(
        "name", "trigger_type", "trigger_conditions", "actions", "is_active", mode="before"
    )
    @classmethod
    def reject_null(cls, value: Any) -> Any:
        if value is None:
            raise PydanticCustomError("null_not_allowed", "Field cannot be null")
        return value


class AutomationListQuery(CamelModel):
    """Filters and pagination for listing automations (query-string values)."""

    is_active: Literal["true", "false"] | None = None
    trigger_type: TriggerType | None = None
    page: int = Field(default=1, ge=1)
    page_size: int = Field(default=20, ge=1, le=100)

    @property
    def is_active_flag(self) -> bool | None:
        if self.is_active is None:
            return None
        return self.is_active == "true"

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size


class AutomationExecuteRequest(CamelModel):
    """Request body for running an automation manually."""

    trigger_data: dict[str, Any]
    idempotency_key: str | None = Field(default=None, min_length=1, max_length=255)


class TriggerEventRequest(CamelModel):
    """A business event offered to every active automation listening to its type."""

    trigger_type: TriggerType
    data: dict[str, Any]
    idempotency_key: str | None = Field(default=None, min_length=1, max_length=255)


# ---- Responses ----


class AutomationActionResponse(CamelModel):
    id: str | None
    type: ActionType
    parameters: dict[str, Any]
    delay_minutes: int
    order: int


class ExecutionSummary(CamelModel):
    id: str
    status: ExecutionStatus
    started_at: datetime | None
    completed_at: datetime | None
    error: str | None

    @classmethod
    def from_entity(cls, execution: ExecutionEntity) -> "ExecutionSummary":
        return cls(
            id=execution.id,
            status=execution.status,
            started_at=execution.started_at,
            completed_at=execution.completed_at,
            error=execution.error,
        )


class AutomationResponse(CamelModel):
    """Automation with its ordered actions and most recent executions."""

    id: str
    name: str
    description: str | None
    trigger_type: TriggerType
    trigger_conditions: dict[str, Any]
    actions: list[AutomationActionResponse]
    is_active: bool
    created_at: datetime | None
    updated_at: datetime | None
    executions: list[ExecutionSummary] = Field(default_factory=list)

    @classmethod
    def from_entity(
        cls,
        automation: AutomationEntity,
        executions: list[ExecutionEntity] | None = None,
    ) -> "AutomationResponse":
        return cls(
            id=automation.id,
            name=automation.name,
            description=automation.description,
            trigger_type=automation.trigger_type,
            trigger_conditions=automation.trigger_conditions,
            actions=[
                AutomationActionResponse(
                    id=a.id,
                    type=a.action_type,
                    parameters=a.parameters,
                    delay_minutes=a.delay_minutes,
                    order=a.order,
                )
                for a in automation.ordered_actions()
            ],
            is_active=automation.is_active,
            created_at=automation.created_at,
            updated_at=automation.updated_at,
            executions=[ExecutionSummary.from_entity(e) for e in executions or []],
        )


class AutomationListResponse(CamelModel):
    items: list[AutomationResponse]
    total: int
    page: int
    page_size: int


class ExecutionResponse(CamelModel):
    """Execution with its per-action log."""

    id: str
    automation_id: str
    status: ExecutionStatus
    triggered_by: dict[str, Any]
    started_at: datetime | None
    completed_at: datetime | None
    actions_executed: list[dict[str, Any]]
    error: str | None
    idempotency_key: str | None

    @classmethod
    def from_entity(cls, execution: ExecutionEntity) -> "ExecutionResponse":
        return cls(
            id=execution.id,
            automation_id=execution.automation_id,
            status=execution.status,
            triggered_by=execution.triggered_by,
            started_at=execution.started_at,
            completed_at=execution.completed_at,
            actions_executed=execution.actions_executed,
            error=execution.error,
            idempotency_key=execution.idempotency_key,
        )


class AutomationRunResponse(CamelModel):
    """Outcome of a manual run, as seen right after the inline steps finished."""

    automation_id: str
    execution_id: str
    status: ExecutionStatus
    success: bool
    actions_executed: int
    actions_pending: int
    error: str | None
    duration_ms: int


class TriggerEventResponse(CamelModel):
    trigger_type: TriggerType
    matched: int
    executions: list[ExecutionSummary]


class RecentActivityItem(CamelModel):
    id: str
    automation_name: str
    status: ExecutionStatus
    started_at: datetime | None
    completed_at: datetime | None
    error: str | None


class AutomationStatsResponse(CamelModel):
    total_automations: int
    active_automations: int
    total_executions: int
    recent_executions: int
    success_rate: float
    recent_activity: list[RecentActivityItem]


class TemplateField(CamelModel):
    """One field a UI builder should render for a trigger or action."""

    field: str
    label: str
    type: str
    options: list[str] | None = None
    required: bool = False
    default: Any = None


class TriggerTemplate(CamelModel):
    type: TriggerType
    name: str
    description: str
    icon: str
    conditions: list[TemplateField]


class ActionTemplate(CamelModel):
    type: ActionType
    name: str
    description: str
    icon: str
    parameters: list[TemplateField]
