from dataclasses import dataclass
from typing import Generic, Optional, TypeVar

from ticket_ai.services.errors import NotFoundError

T = TypeVar("T")

NOT_FOUND = "not_found"


@dataclass
class Result(Generic[T]):
    """Outcome of an operation that fails without side effects instead of raising."""

    ok: bool
    value: Optional[T] = None
    error: Optional[str] = None
    error_code: Optional[str] = None
    entity: Optional[str] = None
    entity_id: Optional[str] = None

    @staticmethod
    def success(value: T) -> "Result[T]":
        return Result(ok=True, value=value)

    @staticmethod
    def not_found(entity: str, entity_id: str) -> "Result[T]":
        return Result(
            ok=False,
            error=f"{entity} not found: {entity_id}",
            error_code=NOT_FOUND,
            entity=entity,
            entity_id=entity_id,
        )

    def unwrap(self) -> T:
        """Return the value or raise NotFoundError for the missing entity."""
        if not self.ok:
            raise NotFoundError(self.entity, self.entity_id)
        return self.value
