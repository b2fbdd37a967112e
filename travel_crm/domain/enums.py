"""Domain enumerations for the travel CRM automation model.

Closed sets of values for triggers, actions, and the contact/task vocabulary
their conditions and parameters refer to. Wire values equal member names
(e.g. "CONTACT_CREATED"), except for execution lifecycle values which are
lowercase.
"""

from enum import Enum


class _ValuesMixin:
    """Mixin that adds a values() classmethod to str Enums."""

    @classmethod
    def values(cls) -> list[str]:
        """Return all valid values as strings."""
        return [member.value for member in cls]


class TriggerType(_ValuesMixin, str, Enum):
    """Business event types an automation can react to."""

    CONTACT_CREATED = "CONTACT_CREATED"
    TRIP_QUOTE_REQUESTED = "TRIP_QUOTE_REQUESTED"
    PAYMENT_OVERDUE = "PAYMENT_OVERDUE"
    TRIP_COMPLETED = "TRIP_COMPLETED"
    NO_ACTIVITY_30_DAYS = "NO_ACTIVITY_30_DAYS"
    SEASONAL_OPPORTUNITY = "SEASONAL_OPPORTUNITY"
    BIRTHDAY = "BIRTHDAY"
    CUSTOM = "CUSTOM"


class ActionType(_ValuesMixin, str, Enum):
    """Steps an automation can perform once triggered."""

    SEND_EMAIL = "SEND_EMAIL"
    CREATE_TASK = "CREATE_TASK"
    SCHEDULE_CALL = "SCHEDULE_CALL"
    ADD_TAG = "ADD_TAG"
    UPDATE_STATUS = "UPDATE_STATUS"
    GENERATE_QUOTE = "GENERATE_QUOTE"
    ASSIGN_AGENT = "ASSIGN_AGENT"
    SEND_WHATSAPP = "SEND_WHATSAPP"


class ContactStatus(_ValuesMixin, str, Enum):
    """Contact funnel stage."""

    INTERESADO = "INTERESADO"
    PASAJERO = "PASAJERO"
    CLIENTE = "CLIENTE"


class ContactSource(_ValuesMixin, str, Enum):
    """Where a contact came from."""

    WEBSITE = "WEBSITE"
    REFERRAL = "REFERRAL"
    SOCIAL_MEDIA = "SOCIAL_MEDIA"
    ADVERTISING = "ADVERTISING"
    DIRECT = "DIRECT"
    PARTNER = "PARTNER"
    OTHER = "OTHER"


class BudgetRange(_ValuesMixin, str, Enum):
    """Declared travel budget bracket of a contact."""

    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    LUXURY = "LUXURY"


class TaskPriority(_ValuesMixin, str, Enum):
    """Priority of a task created by an automation."""

    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    URGENT = "URGENT"


class ExecutionStatus(_ValuesMixin, str, Enum):
    """Automation execution lifecycle status."""

    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    PAUSED = "paused"

    @property
    def is_terminal(self) -> bool:
        """Completed and failed executions are never modified again."""
        return self in (ExecutionStatus.COMPLETED, ExecutionStatus.FAILED)


class StepStatus(_ValuesMixin, str, Enum):
    """Status of one queued action step inside an execution."""

    PENDING = "pending"
    RUNNING = "running"
    SUCCESS = "success"
    FAILED = "failed"
    CANCELLED = "cancelled"
