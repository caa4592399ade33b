"""Membership domain interfaces."""

from .authorization_service import IAuthorizationService
from .group_graph_store import IGroupGraphStore
from .request_context import IRequestContext
from .unit_of_work import IMembershipUnitOfWork

__all__ = [
    "IAuthorizationService",
    "IGroupGraphStore",
    "IMembershipUnitOfWork",
    "IRequestContext",
]
