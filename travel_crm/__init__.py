"""Travel CRM automation service: rule model, validation, and execution engine."""

__version__ = "1.0.0"
