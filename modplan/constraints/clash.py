"""FootprintClashDetector — plan-view overlap between element footprints.

Uses pure Python rectangle math on grid-space footprints; no shapely.
"""

from __future__ import annotations

import logging
from typing import Any

from modplan.geometry.transform import MmRect

logger = logging.getLogger(__name__)


class FootprintClash:
    """A single overlap between an element and a module footprint."""

    def __init__(
        self,
        element_id: str,
        module_id: str,
        overlap_area: int,
        message: str,
    ) -> None:
        self.element_id = element_id
        self.module_id = module_id
        self.overlap_area = overlap_area  # mm^2
        self.message = message

    def to_dict(self) -> dict[str, Any]:
        return {
            "element_id": self.element_id,
            "module_id": self.module_id,
            "overlap_area": self.overlap_area,
            "message": self.message,
        }


class FootprintClashDetector:
    """Detect plan-view overlaps between one footprint and a set of modules.

    Parameters
    ----------
    tolerance_mm:
        Overlaps no deeper than this on either axis are ignored.  The
        default of zero still lets footprints touch along an edge.
    """

    def __init__(self, tolerance_mm: int = 0) -> None:
        self.tolerance_mm = tolerance_mm

    def detect(
        self,
        element_id: str,
        footprint: MmRect,
        modules: list[tuple[str, MmRect]],
    ) -> list[FootprintClash]:
        """Return one FootprintClash per module whose footprint overlaps *footprint*."""
        clashes: list[FootprintClash] = []
        for module_id, module_rect in modules:
            area = self._overlap_area(footprint, module_rect)
            if area > 0:
                clashes.append(FootprintClash(
                    element_id=element_id,
                    module_id=module_id,
                    overlap_area=area,
                    message=f"Footprint of {element_id} overlaps module {module_id} ({area} mm^2)",
                ))
        return clashes

    def _overlap_area(self, a: MmRect, b: MmRect) -> int:
        """Overlap area, or 0 when either axis overlaps by no more than the tolerance."""
        overlap_x = min(a.right, b.right) - max(a.x, b.x)
        overlap_y = min(a.top, b.top) - max(a.y, b.y)
        if overlap_x <= self.tolerance_mm or overlap_y <= self.tolerance_mm:
            return 0
        return overlap_x * overlap_y
