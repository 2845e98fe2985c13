"""SnapEngine — grid and element snapping in canvas space.

All inputs and outputs are pixels.  The caller writes the corrected
geometry back to canonical millimetre storage through the coordinate
transform.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from modplan.config import SNAP_TOLERANCE_PX
from modplan.geometry.transform import PixelRect, round_half_up


@dataclass(frozen=True)
class SnapResult:
    """Outcome of one snapping pass."""

    rect: PixelRect
    snapped_x: bool = False
    snapped_y: bool = False
    guide_x: Optional[float] = None
    """Vertical guide line position (px) when X snapped to an element."""

    guide_y: Optional[float] = None
    """Horizontal guide line position (px) when Y snapped to an element."""


def snap_to_grid(value: float, grid_px: int) -> int:
    return round_half_up(round_half_up(value / grid_px) * grid_px)


def snap_axis(
    position: float,
    size: float,
    near_edges: list[float],
    far_edges: list[float],
    gap_px: int,
    tolerance: float = SNAP_TOLERANCE_PX,
) -> tuple[float, Optional[float]]:
    """Snap one axis against sibling edges.

    Candidates place this element either just past a sibling's far edge
    (``far + gap``) or just before its near edge (``near - gap - size``).
    Returns ``(position, guide)``; *guide* is the sibling edge used, or None
    when no candidate lies strictly within *tolerance*.
    """
    best: Optional[float] = None
    best_edge: Optional[float] = None
    best_dist = float("inf")

    for edge in far_edges:
        candidate = round_half_up(edge + gap_px)
        dist = abs(position - candidate)
        if dist < best_dist:
            best, best_edge, best_dist = candidate, edge, dist
    for edge in near_edges:
        candidate = round_half_up(edge - gap_px - size)
        dist = abs(position - candidate)
        if dist < best_dist:
            best, best_edge, best_dist = candidate, edge, dist

    if best is not None and best_dist < tolerance:
        return best, best_edge
    return position, None


class SnapEngine:
    """Compute snapped positions and sizes for a moving element.

    Parameters
    ----------
    snap_mode:
        ``off``, ``grid`` or ``element``.
    grid_size_mm, element_gap_mm:
        Grid spacing and the gap kept between snapped elements.
    scale_factor:
        Canvas pixels per millimetre.
    tolerance_px:
        Element-mode acceptance distance.
    """

    def __init__(
        self,
        snap_mode: str,
        grid_size_mm: int,
        element_gap_mm: int,
        scale_factor: float,
        tolerance_px: float = SNAP_TOLERANCE_PX,
    ) -> None:
        self.snap_mode = snap_mode
        self.grid_px = max(1, round_half_up(grid_size_mm * scale_factor))
        self.gap_px = round_half_up(element_gap_mm * scale_factor)
        self.tolerance_px = tolerance_px

    def snap_position(self, rect: PixelRect, siblings: list[PixelRect] | None = None) -> SnapResult:
        """Snap the top-left corner of *rect*; the size is left untouched."""
        if self.snap_mode == "grid":
            left = snap_to_grid(rect.left, self.grid_px)
            top = snap_to_grid(rect.top, self.grid_px)
            return SnapResult(
                rect=rect.moved(left, top),
                snapped_x=left != rect.left,
                snapped_y=top != rect.top,
            )

        if self.snap_mode == "element" and siblings:
            left, guide_x = snap_axis(
                rect.left,
                rect.width,
                near_edges=[s.left for s in siblings],
                far_edges=[s.right for s in siblings],
                gap_px=self.gap_px,
                tolerance=self.tolerance_px,
            )
            top, guide_y = snap_axis(
                rect.top,
                rect.height,
                near_edges=[s.top for s in siblings],
                far_edges=[s.bottom for s in siblings],
                gap_px=self.gap_px,
                tolerance=self.tolerance_px,
            )
            return SnapResult(
                rect=rect.moved(left, top),
                snapped_x=guide_x is not None,
                snapped_y=guide_y is not None,
                guide_x=guide_x,
                guide_y=guide_y,
            )

        return SnapResult(rect=rect)

    def snap_dimension(self, size: float) -> int:
        """Round *size* to a whole number of grid units, never below one."""
        return max(self.grid_px, snap_to_grid(size, self.grid_px))

    def snap_size(self, rect: PixelRect) -> PixelRect:
        """Snap width and height of *rect* when snapping is enabled."""
        if self.snap_mode == "off":
            return rect
        return PixelRect(
            rect.left,
            rect.top,
            self.snap_dimension(rect.width),
            self.snap_dimension(rect.height),
        )
