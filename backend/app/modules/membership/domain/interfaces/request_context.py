"""Request Context Interface

The calling session as seen by membership resolution: who is acting and
which contextual groups the session asserts for that principal.
"""

from collections.abc import Sequence
from typing import Protocol

from app.modules.membership.domain.aggregates.group import Group
from app.modules.membership.domain.value_objects.principal import Principal


class IRequestContext(Protocol):
    """Supplier of the acting principal and its ambient groups."""

    @property
    def current_principal(self) -> Principal | None:
        """Principal acting in this request, None when unauthenticated."""
        ...

    @property
    def ambient_groups(self) -> Sequence[Group]:
        """Groups asserted for the current principal by out-of-band signals."""
        ...

    @property
    def identifiers(self) -> tuple[str, ...]:
        """Strings describing the acting context, copied into notifications."""
        ...
