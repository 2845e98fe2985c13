"""Element groups with lossless group / ungroup round-trips."""

from modplan.grouping.manager import GroupIntegrityError, GroupManager, UngroupResult

__all__ = ["GroupIntegrityError", "GroupManager", "UngroupResult"]
