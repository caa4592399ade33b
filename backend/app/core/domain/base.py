"""Entity and aggregate base classes.

An ``Entity`` is identified by its UUID alone: two instances loaded from the
same row compare equal whatever their attribute values. An ``AggregateRoot``
additionally counts its changes in ``version``, starting at 1, so a store can
tell a stale copy from the current one.
"""

from abc import ABC
from datetime import UTC, datetime
from uuid import UUID, uuid4

from app.core.errors import ValidationError


class Entity(ABC):
    """Identity plus creation and modification timestamps."""

    def __init__(self, entity_id: UUID | None = None):
        self.id = uuid4() if entity_id is None else entity_id
        self.created_at = self.updated_at = datetime.now(UTC)
        self._validate_entity()

    def _validate_entity(self) -> None:
        """
        Check the freshly built state; subclasses extend this.

        Raises:
            ValidationError: If the state is invalid
        """
        if not isinstance(self.id, UUID):
            raise ValidationError(f"{type(self).__name__} id must be a UUID", field="id")

    def mark_modified(self) -> None:
        self.updated_at = datetime.now(UTC)

    def __eq__(self, other: object) -> bool:
        return type(other) is type(self) and other.id == self.id

    def __hash__(self) -> int:
        return hash((type(self).__name__, self.id))

    def __repr__(self) -> str:
        return f"{type(self).__name__}(id={self.id})"


class AggregateRoot(Entity):
    """Consistency boundary whose every change bumps ``version``."""

    def __init__(self, entity_id: UUID | None = None):
        self._version = 1
        super().__init__(entity_id)

    @property
    def version(self) -> int:
        return self._version

    def mark_modified(self) -> None:
        super().mark_modified()
        self._version += 1


__all__ = ["AggregateRoot", "Entity"]
