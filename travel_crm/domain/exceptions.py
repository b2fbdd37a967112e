"""Domain exceptions for the travel CRM automation service.

Defines domain-level exceptions that represent business rule violations.
These exceptions are independent of infrastructure concerns. Presentation
layer maps them to HTTP responses in exception handlers.
"""

from typing import Any, TypedDict


class FieldError(TypedDict):
    """One violated constraint: dotted field path and a human-readable reason."""

    field: str
    message: str


class CrmException(Exception):
    """Base exception for all travel CRM errors.

    All custom exceptions should inherit from this class to allow
    consistent error handling and logging. Presentation layer maps
    these to HTTP responses using message, error_code, and details.

    Attributes:
        message: Human-readable error description.
        error_code: Machine-readable error code.
        details: Additional error context (e.g. field errors, resource_id).
    """

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize the exception.

        Args:
            message: Human-readable error description.
            error_code: Optional machine-readable code; defaults to class name.
            details: Optional dict of extra context.
        """
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Serialize for an API error body."""
        return {
            "error": self.error_code,
            "message": self.message,
            "details": self.details,
        }


class ValidationException(CrmException):
    """Raised when one or more fields fail their declared constraint.

    Carries every violation, not only the first, as a list of
    {field, message} pairs under details["errors"].
    """

    def __init__(
        self,
        message: str,
        field: str | None = None,
        errors: list[FieldError] | None = None,
    ) -> None:
        """Initialize with message and either a single field or a list of errors.

        Args:
            message: Description of the validation failure.
            field: Optional field that failed (shorthand for a one-item errors list).
            errors: Optional list of field errors.
        """
        collected: list[FieldError] = list(errors or [])
        if field and not collected:
            collected.append({"field": field, "message": message})
        details: dict[str, Any] = {"errors": collected} if collected else {}
        super().__init__(message, "VALIDATION_ERROR", details)

    @property
    def errors(self) -> list[FieldError]:
        """Field errors carried by this exception (may be empty)."""
        return self.details.get("errors", [])


class UnknownActionTypeException(CrmException):
    """Raised when an action type is not one of the closed ActionType set."""

    def __init__(self, action_type: str) -> None:
        super().__init__(
            f"Unknown action type: {action_type}",
            "UNKNOWN_ACTION_TYPE",
            {"action_type": action_type},
        )


class ResourceNotFoundException(CrmException):
    """Raised when a requested resource is not found."""

    def __init__(self, resource_type: str, resource_id: str) -> None:
        """Initialize with resource type and id.

        Args:
            resource_type: Type of resource (e.g. 'automation', 'execution').
            resource_id: The ID that was not found.
        """
        super().__init__(
            f"{resource_type} not found: {resource_id}",
            "RESOURCE_NOT_FOUND",
            {"resource_type": resource_type, "resource_id": resource_id},
        )


class AutomationInactiveException(CrmException):
    """Raised when executing an automation that is switched off."""

    def __init__(self, automation_id: str) -> None:
        super().__init__(
            "Automation is not active",
            "AUTOMATION_INACTIVE",
            {"automation_id": automation_id},
        )


class ExecutionStateException(CrmException):
    """Raised when an execution cannot move to the requested state."""

    def __init__(self, execution_id: str, status: str, operation: str) -> None:
        """Initialize with the execution, its current status, and the rejected operation.

        Args:
            execution_id: Execution that was targeted.
            status: Its current status (e.g. 'completed').
            operation: Operation that was attempted (e.g. 'resume').
        """
        super().__init__(
            f"Cannot {operation} execution in status '{status}'",
            "INVALID_EXECUTION_STATE",
            {"execution_id": execution_id, "status": status, "operation": operation},
        )


class SqlNotConfiguredException(CrmException):
    """Raised when an operation requires the database but DATABASE_URL is not set."""

    def __init__(self) -> None:
        super().__init__(
            message="This operation requires a SQL database that is not configured.",
            error_code="SERVICE_UNAVAILABLE",
        )
