"""Membership Infrastructure Models

SQLModel definitions for the membership module.
"""

from .group_model import GroupClosureModel, GroupEdgeModel, GroupMemberModel, GroupModel

__all__ = [
    "GroupClosureModel",
    "GroupEdgeModel",
    "GroupMemberModel",
    "GroupModel",
]
