"""
Principal Value Object

An individual identity that can be placed directly into a group.
"""

from dataclasses import dataclass, field
from uuid import UUID


@dataclass(frozen=True)
class Principal:
    """Identity of a principal plus the label used in notifications.

    Two principals are equal when their ids match; the label is display only.
    """

    id: UUID
    label: str | None = field(default=None, compare=False)

    def __post_init__(self):
        if not isinstance(self.id, UUID):
            raise ValueError("Principal id must be a UUID")

    def __str__(self) -> str:
        return self.label or str(self.id)
