"""Attachment constraints — keep openings, balconies and pods on their module."""

from modplan.constraints.clash import FootprintClash, FootprintClashDetector
from modplan.constraints.solver import AttachmentConstraintSolver, CommitResult

__all__ = ["AttachmentConstraintSolver", "CommitResult", "FootprintClash", "FootprintClashDetector"]
