"""Editor API: explicit-state commands and the :class:`FloorPlanEditor` facade."""

from modplan.api.facade import FloorPlanEditor

__all__ = ["FloorPlanEditor"]
