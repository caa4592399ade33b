"""Membership domain services."""

from .closure_builder import ClosureBuilder
from .closure_cache import ClosureCache
from .group_directory import GroupDirectory
from .group_mutator import GroupMutator
from .membership_resolver import MembershipResolver

__all__ = [
    "ClosureBuilder",
    "ClosureCache",
    "GroupDirectory",
    "GroupMutator",
    "MembershipResolver",
]
