"""Health check API schemas."""

from typing import Literal

from pydantic import BaseModel, Field

DatabaseState = Literal["ok", "not_configured"]
WorkerState = Literal["running", "stopped", "disabled"]


class HealthResponse(BaseModel):
    """GET /health (liveness)."""

    status: str = "ok"
    version: str | None = None


class ReadinessResponse(BaseModel):
    """GET /health/ready when the service can take traffic."""

    status: str = "ok"
    database: DatabaseState = "not_configured"
    scheduler: WorkerState = Field(
        default="disabled", description="State of the delayed-step worker task"
    )


class ReadinessErrorResponse(BaseModel):
    """GET /health/ready when the configured database does not answer (503)."""

    status: str = "not_ready"
    message: str
