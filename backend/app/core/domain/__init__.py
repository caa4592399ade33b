"""Domain layer core classes."""

from app.core.domain.base import AggregateRoot, Entity

__all__ = ["AggregateRoot", "Entity"]
