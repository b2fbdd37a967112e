"""Shared telemetry: logging setup, OpenTelemetry config, and tracing helpers."""

from travel_crm.shared.telemetry.logging import (
    RequestIdFilter,
    get_logger,
    request_id_var,
    setup_logging,
)
from travel_crm.shared.telemetry.telemetry import (
    TelemetryConfig,
    get_telemetry,
    set_telemetry,
)
from travel_crm.shared.telemetry.tracing import (
    add_span_attributes,
    add_span_event,
    set_span_error,
    traced,
)

__all__ = [
    "setup_logging",
    "get_logger",
    "RequestIdFilter",
    "request_id_var",
    "TelemetryConfig",
    "get_telemetry",
    "set_telemetry",
    "traced",
    "add_span_attributes",
    "add_span_event",
    "set_span_error",
]
