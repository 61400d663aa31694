"""Durable store contract and its implementations.

Values are plain JSON. Each entity collection lives under one key and holds a
JSON list; typed decoding happens in load_collection, never in the store.
"""

from abc import ABC, abstractmethod
from copy import deepcopy
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, Optional, Type, TypeVar

from pydantic import BaseModel, TypeAdapter
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from ticket_ai.logging_config import get_logger
from ticket_ai.models import StoreEntry
from ticket_ai.services.errors import PersistenceError

logger = get_logger("store")

STORAGE_KEYS = {
    "sessions": "ticket-ai-chat-sessions",
    "tickets": "ticket-ai-tickets",
    "agents": "ticket-ai-agents",
}

M = TypeVar("M", bound=BaseModel)


class DurableStore(ABC):
    @abstractmethod
    def read(self, key: str) -> Optional[Any]:
        """Stored JSON value or None when the key is absent."""
        pass

    @abstractmethod
    def write(self, key: str, value: Any) -> None:
        """Store a JSON value. Raises PersistenceError on failure."""
        pass


class InMemoryStore(DurableStore):
    """Process-local store; values are deep-copied so callers cannot alias them."""

    def __init__(self, initial: Optional[Dict[str, Any]] = None):
        self._data: Dict[str, Any] = deepcopy(initial or {})

    def read(self, key: str) -> Optional[Any]:
        value = self._data.get(key)
        return deepcopy(value) if value is not None else None

    def write(self, key: str, value: Any) -> None:
        self._data[key] = deepcopy(value)


class SqlAlchemyStore(DurableStore):
    """Key/value rows in the store_entries table."""

    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    def read(self, key: str) -> Optional[Any]:
        db = self.session_factory()
        try:
            entry = db.query(StoreEntry).filter(StoreEntry.key == key).first()
            return entry.value if entry else None
        except SQLAlchemyError as e:
            logger.error(f"Store read failed for {key}: {e}")
            return None
        finally:
            db.close()

    def write(self, key: str, value: Any) -> None:
        db = self.session_factory()
        try:
            entry = db.query(StoreEntry).filter(StoreEntry.key == key).first()
            now = datetime.now(timezone.utc)
            if entry:
                entry.value = value
                entry.updated_at = now
            else:
                db.add(StoreEntry(key=key, value=value, updated_at=now))
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            raise PersistenceError(f"Store write failed for {key}: {e}") from e
        finally:
            db.close()


def load_collection(store: DurableStore, key: str, model: Type[M]) -> Dict[str, M]:
    """Read a collection and decode it by schema. Unreadable data falls back to empty."""
    raw = store.read(key)
    if raw is None:
        return {}

    try:
        items = TypeAdapter(list[model]).validate_python(raw)
    except PydanticValidationError as e:
        logger.error(
            f"Discarding malformed collection {key}",
            extra={"context": {"key": key, "errors": e.error_count()}},
        )
        return {}

    return {item.id: item for item in items}


def dump_collection(items: Iterable[BaseModel]) -> list:
    return [item.model_dump(mode="json") for item in items]


def write_through(store: DurableStore, key: str, items: Iterable[BaseModel]) -> bool:
    """Best-effort write: a failure is logged and never rolls back in-memory state."""
    try:
        store.write(key, dump_collection(items))
        return True
    except PersistenceError as e:
        logger.error(f"Write-through failed: {e}", extra={"context": {"key": key}})
        return False
