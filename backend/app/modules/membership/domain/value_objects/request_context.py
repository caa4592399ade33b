"""
Request Context Value Object

Read-only description of a calling session, used where no unit of work is
involved (pure membership queries).
"""

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from .principal import Principal

if TYPE_CHECKING:
    from app.modules.membership.domain.aggregates.group import Group


@dataclass(frozen=True)
class RequestContext:
    current_principal: Principal | None = None
    ambient_groups: Sequence["Group"] = field(default_factory=tuple)
    identifiers: tuple[str, ...] = ()

    @classmethod
    def anonymous(cls, *ambient_groups: "Group") -> "RequestContext":
        return cls(current_principal=None, ambient_groups=tuple(ambient_groups))
