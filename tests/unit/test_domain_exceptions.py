"""Tests for domain exceptions (error_code, message, details)."""

from travel_crm.core.exception_handlers import status_for_error_code
from travel_crm.domain.exceptions import (
    AutomationInactiveException,
    CrmException,
    ExecutionStateException,
    ResourceNotFoundException,
    SqlNotConfiguredException,
    UnknownActionTypeException,
    ValidationException,
)


def test_crm_exception_default_error_code() -> None:
    """Base CrmException uses class name as error_code when not provided."""
    exc = CrmException("Something failed")
    assert exc.message == "Something failed"
    assert exc.error_code == "CrmException"
    assert exc.details == {}
    assert str(exc) == "Something failed"


def test_crm_exception_to_dict() -> None:
    exc = CrmException("Oops", error_code="CUSTOM", details={"key": "value"})
    assert exc.to_dict() == {"error": "CUSTOM", "message": "Oops", "details": {"key": "value"}}


def test_validation_exception_single_field() -> None:
    """field is shorthand for a one-item errors list."""
    exc = ValidationException("Contact ID required", field="triggerData.contactId")
    assert exc.error_code == "VALIDATION_ERROR"
    assert exc.errors == [{"field": "triggerData.contactId", "message": "Contact ID required"}]


def test_validation_exception_keeps_every_error() -> None:
    errors = [
        {"field": "name", "message": "Field required"},
        {"field": "actions", "message": "List should have at least 1 item"},
    ]
    exc = ValidationException("Invalid automation definition", errors=errors)
    assert exc.details == {"errors": errors}


def test_validation_exception_without_field() -> None:
    exc = ValidationException("Invalid")
    assert exc.details == {}
    assert exc.errors == []


def test_unknown_action_type_exception() -> None:
    exc = UnknownActionTypeException("FLY")
    assert exc.error_code == "UNKNOWN_ACTION_TYPE"
    assert "FLY" in exc.message


def test_resource_not_found_exception() -> None:
    exc = ResourceNotFoundException("automation", "a1")
    assert exc.error_code == "RESOURCE_NOT_FOUND"
    assert exc.message == "automation not found: a1"
    assert exc.details == {"resource_type": "automation", "resource_id": "a1"}


def test_execution_state_exception() -> None:
    exc = ExecutionStateException("e1", "completed", "resume")
    assert exc.error_code == "INVALID_EXECUTION_STATE"
    assert exc.message == "Cannot resume execution in status 'completed'"


def test_error_codes_map_to_http_status() -> None:
    assert status_for_error_code(ValidationException("x").error_code) == 400
    assert status_for_error_code(UnknownActionTypeException("x").error_code) == 400
    assert status_for_error_code(ResourceNotFoundException("a", "b").error_code) == 404
    assert status_for_error_code(AutomationInactiveException("a").error_code) == 409
    assert status_for_error_code(ExecutionStateException("e", "s", "o").error_code) == 409
    assert status_for_error_code(SqlNotConfiguredException().error_code) == 503
    assert status_for_error_code("SOMETHING_ELSE") == 400
