"""Membership value objects."""

from .closure import ClosureEntry, ClosureSnapshot
from .principal import Principal
from .request_context import RequestContext

__all__ = ["ClosureEntry", "ClosureSnapshot", "Principal", "RequestContext"]
