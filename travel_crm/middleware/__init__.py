"""ASGI middleware (raw ASGI callables)."""

from travel_crm.middleware.request_id import RequestIDMiddleware
from travel_crm.middleware.timeout import TimeoutMiddleware

__all__ = ["RequestIDMiddleware", "TimeoutMiddleware"]
