"""Membership repositories."""

from .memory_group_graph_store import InMemoryGroupGraphStore
from .sql_group_graph_store import SQLGroupGraphStore

__all__ = ["InMemoryGroupGraphStore", "SQLGroupGraphStore"]
