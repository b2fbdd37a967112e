"""Trigger and action catalogs for automation builders.

Describes, per type, the fields a form should render. Option lists come
from the domain enums so the catalog cannot drift from what the validators
accept.
"""

from travel_crm.domain.enums import (
    ActionType,
    BudgetRange,
    ContactSource,
    ContactStatus,
    TaskPriority,
    TriggerType,
)
from travel_crm.schemas.automation import ActionTemplate, TemplateField, TriggerTemplate


def _contact_status_field(label: str = "Contact status", required: bool = False) -> TemplateField:
    return TemplateField(
        field="status",
        label=label,
        type="select",
        options=ContactStatus.values(),
        required=required,
    )


def trigger_templates() -> list[TriggerTemplate]:
    """Return the catalog of triggers with their condition fields."""
    return [
        TriggerTemplate(
            type=TriggerType.CONTACT_CREATED,
            name="Contact created",
            description="Runs when a new contact is created",
            icon="UserPlus",
            conditions=[
                _contact_status_field(),
                TemplateField(
                    field="source",
                    label="Contact source",
                    type="select",
                    options=ContactSource.values(),
                ),
                TemplateField(
                    field="budgetRange",
                    label="Budget range",
                    type="select",
                    options=BudgetRange.values(),
                ),
                TemplateField(field="tags", label="Required tags", type="array"),
            ],
        ),
        TriggerTemplate(
            type=TriggerType.TRIP_QUOTE_REQUESTED,
            name="Quote requested",
            description="Runs when a trip quote is requested",
            icon="FileText",
            conditions=[
                TemplateField(field="destination", label="Destination", type="text"),
                TemplateField(field="budgetMin", label="Minimum budget", type="number"),
                TemplateField(field="budgetMax", label="Maximum budget", type="number"),
            ],
        ),
        TriggerTemplate(
            type=TriggerType.NO_ACTIVITY_30_DAYS,
            name="No activity",
            description="Runs when a contact has had no activity for a number of days",
            icon="Clock",
            conditions=[
                TemplateField(
                    field="days",
                    label="Days without activity",
                    type="number",
                    required=True,
                    default=30,
                ),
                _contact_status_field(),
                TemplateField(field="excludeTags", label="Skip contacts tagged", type="array"),
            ],
        ),
        TriggerTemplate(
            type=TriggerType.PAYMENT_OVERDUE,
            name="Payment overdue",
            description="Runs when a payment is past its due date",
            icon="AlertTriangle",
            conditions=[
                TemplateField(
                    field="daysOverdue",
                    label="Days overdue",
                    type="number",
                    required=True,
                    default=1,
                ),
                TemplateField(field="minAmount", label="Minimum amount", type="number"),
                TemplateField(field="maxAmount", label="Maximum amount", type="number"),
            ],
        ),
        TriggerTemplate(
            type=TriggerType.TRIP_COMPLETED,
            name="Trip completed",
            description="Runs after a trip is completed",
            icon="CheckCircle",
            conditions=[
                TemplateField(field="destination", label="Destination", type="text"),
                TemplateField(field="minRating", label="Minimum rating", type="number"),
                TemplateField(
                    field="daysAfterReturn",
                    label="Days after return",
                    type="number",
                    default=1,
                ),
            ],
        ),
        TriggerTemplate(
            type=TriggerType.BIRTHDAY,
            name="Birthday",
            description="Runs on or before the contact's birthday",
            icon="Gift",
            conditions=[
                TemplateField(
                    field="daysBefore",
                    label="Days before birthday",
                    type="number",
                    default=0,
                ),
                _contact_status_field(),
                TemplateField(
                    field="includeInactive",
                    label="Include inactive contacts",
                    type="boolean",
                    default=False,
                ),
            ],
        ),
    ]


def action_templates() -> list[ActionTemplate]:
    """Return the catalog of actions with their parameter fields."""
    return [
        ActionTemplate(
            type=ActionType.SEND_EMAIL,
            name="Send email",
            description="Sends an email based on a template",
            icon="Mail",
            parameters=[
                TemplateField(field="templateId", label="Email template", type="select", required=True),
                TemplateField(field="variables", label="Custom variables", type="object"),
                TemplateField(field="to", label="Recipients", type="array"),
            ],
        ),
        ActionTemplate(
            type=ActionType.CREATE_TASK,
            name="Create task",
            description="Creates a task for an agent",
            icon="CheckSquare",
            parameters=[
                TemplateField(field="title", label="Task title", type="text", required=True),
                TemplateField(field="description", label="Description", type="textarea"),
                TemplateField(
                    field="priority",
                    label="Priority",
                    type="select",
                    options=TaskPriority.values(),
                    default=TaskPriority.MEDIUM.value,
                ),
                TemplateField(field="assignedToId", label="Assign to", type="select", required=True),
                TemplateField(field="dueDate", label="Due date", type="date"),
            ],
        ),
        ActionTemplate(
            type=ActionType.ADD_TAG,
            name="Add tag",
            description="Adds tags to the contact",
            icon="Tag",
            parameters=[
                TemplateField(field="tags", label="Tags", type="array", required=True),
            ],
        ),
        ActionTemplate(
            type=ActionType.UPDATE_STATUS,
            name="Change status",
            description="Changes the contact's status",
            icon="ArrowRight",
            parameters=[
                _contact_status_field(label="New status", required=True),
                TemplateField(field="reason", label="Reason", type="text"),
            ],
        ),
        ActionTemplate(
            type=ActionType.ASSIGN_AGENT,
            name="Assign agent",
            description="Assigns the contact to an agent",
            icon="UserCheck",
            parameters=[
                TemplateField(field="agentId", label="Agent", type="select", required=True),
            ],
        ),
        ActionTemplate(
            type=ActionType.SCHEDULE_CALL,
            name="Schedule call",
            description="Schedules a follow-up call",
            icon="Phone",
            parameters=[
                TemplateField(field="title", label="Call title", type="text", required=True),
                TemplateField(
                    field="scheduledDate",
                    label="Scheduled date",
                    type="datetime",
                    required=True,
                ),
                TemplateField(field="duration", label="Duration (minutes)", type="number", default=30),
                TemplateField(field="description", label="Notes", type="textarea"),
            ],
        ),
    ]
