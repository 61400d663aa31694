"""Error kinds raised by the support core.

Only ValidationError and NotFoundError reach the calling shell. The other two are
absorbed inside the core: ExternalServiceError becomes a fallback escalation and
PersistenceError is logged while in-memory state stays authoritative.
"""


class SupportError(Exception):
    """Base class for support core errors."""


class ValidationError(SupportError):
    """Malformed or missing input, rejected before any state mutation."""


class NotFoundError(SupportError):
    def __init__(self, entity: str, entity_id: str):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} not found: {entity_id}")


class ExternalServiceError(SupportError):
    """Completion provider failure or timeout."""


class PersistenceError(SupportError):
    """Durable store write failure."""
