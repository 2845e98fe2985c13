"""Coordinate transforms between grid space and canvas space.

Grid space is the canonical system: millimetres, origin bottom-left, Y up.
Canvas space is what the rendering surface uses: pixels, origin top-left,
Y down.

Every conversion rounds to the nearest integer (half up) at each step, so a
value that has passed through one rounding step converts back to itself.
"""

from __future__ import annotations

import math
from dataclasses import dataclass


def round_half_up(value: float) -> int:
    """Round to the nearest integer, ties away from negative infinity.

    ``round()`` uses banker's rounding (``round(2.5) == 2``), which would make
    pixel positions depend on parity.
    """
    return int(math.floor(value + 0.5))


def mm_to_px(mm: float, scale_factor: float) -> int:
    """Convert millimetres to canvas pixels."""
    return round_half_up(mm * scale_factor)


def px_to_mm(px: float, scale_factor: float) -> int:
    """Convert canvas pixels to millimetres."""
    return round_half_up(px / scale_factor)


def grid_height_mm(grid_height_m: float) -> int:
    return round_half_up(grid_height_m * 1000)


def rect_bottom_to_top_mm(y_bottom_mm: float, height_mm: float, grid_height_m: float) -> int:
    """Bottom edge Y of a rectangle (bottom-left origin) -> top edge Y (top-left origin)."""
    return round_half_up(grid_height_mm(grid_height_m) - y_bottom_mm - height_mm)


def rect_top_to_bottom_mm(y_top_mm: float, height_mm: float, grid_height_m: float) -> int:
    """Top edge Y of a rectangle (top-left origin) -> bottom edge Y (bottom-left origin)."""
    return round_half_up(grid_height_mm(grid_height_m) - y_top_mm - height_mm)


def bottom_to_top_y(bottom_y: float, canvas_height: float) -> int:
    """Flip a single Y coordinate from bottom-left to top-left origin."""
    return round_half_up(canvas_height - bottom_y)


def top_to_bottom_y(top_y: float, canvas_height: float) -> int:
    """Flip a single Y coordinate from top-left to bottom-left origin."""
    return round_half_up(canvas_height - top_y)


@dataclass(frozen=True)
class PixelRect:
    """Axis-aligned rectangle in canvas space (origin top-left, Y down)."""

    left: float
    top: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.left + self.width

    @property
    def bottom(self) -> float:
        return self.top + self.height

    def moved(self, left: float | None = None, top: float | None = None) -> PixelRect:
        return PixelRect(
            self.left if left is None else left,
            self.top if top is None else top,
            self.width,
            self.height,
        )

    def rounded(self) -> PixelRect:
        return PixelRect(
            round_half_up(self.left),
            round_half_up(self.top),
            round_half_up(self.width),
            round_half_up(self.height),
        )


@dataclass(frozen=True)
class MmRect:
    """Axis-aligned rectangle in grid space (origin bottom-left, Y up)."""

    x: int
    y: int
    width: int
    height: int

    @property
    def right(self) -> int:
        return self.x + self.width

    @property
    def top(self) -> int:
        return self.y + self.height

    def overlaps(self, other: MmRect) -> bool:
        """True when the two rectangles share a positive area.

        Rectangles that only touch along an edge do not overlap.
        """
        overlap_x = min(self.right, other.right) - max(self.x, other.x)
        overlap_y = min(self.top, other.top) - max(self.y, other.y)
        return overlap_x > 0 and overlap_y > 0

    def union(self, other: MmRect) -> MmRect:
        x = min(self.x, other.x)
        y = min(self.y, other.y)
        return MmRect(x, y, max(self.right, other.right) - x, max(self.top, other.top) - y)

    def translated(self, dx: int, dy: int) -> MmRect:
        return MmRect(self.x + dx, self.y + dy, self.width, self.height)


def bounding_box(rects: list[MmRect]) -> MmRect | None:
    """Union of *rects*, or None for an empty list."""
    box: MmRect | None = None
    for rect in rects:
        box = rect if box is None else box.union(rect)
    return box


class CoordinateTransform:
    """Convert geometry between grid space (mm) and canvas space (px).

    Parameters
    ----------
    scale_factor:
        Canvas pixels per millimetre.  Must be positive.
    grid_width_m, grid_height_m:
        Extent of the drawing grid in metres.  The height anchors the
        Y flip between the two systems.
    """

    def __init__(
        self,
        scale_factor: float,
        grid_width_m: float,
        grid_height_m: float,
    ) -> None:
        if scale_factor <= 0:
            raise ValueError(f"scale_factor must be positive, got {scale_factor}")
        self.scale_factor = scale_factor
        self.grid_width_m = grid_width_m
        self.grid_height_m = grid_height_m

    def to_px(self, mm: float) -> int:
        return mm_to_px(mm, self.scale_factor)

    def to_mm(self, px: float) -> int:
        return px_to_mm(px, self.scale_factor)

    def rect_to_px(self, x_mm: float, y_mm: float, width_mm: float, height_mm: float) -> PixelRect:
        """Grid-space rectangle (bottom-left corner) -> canvas rectangle."""
        top_mm = rect_bottom_to_top_mm(y_mm, height_mm, self.grid_height_m)
        return PixelRect(
            left=self.to_px(x_mm),
            top=self.to_px(top_mm),
            width=self.to_px(width_mm),
            height=self.to_px(height_mm),
        )

    def mm_rect_to_px(self, rect: MmRect) -> PixelRect:
        return self.rect_to_px(rect.x, rect.y, rect.width, rect.height)

    def rect_from_px(self, rect: PixelRect) -> MmRect:
        """Canvas rectangle -> grid-space rectangle (bottom-left corner)."""
        width_mm = self.to_mm(rect.width)
        height_mm = self.to_mm(rect.height)
        top_mm = self.to_mm(rect.top)
        return MmRect(
            x=self.to_mm(rect.left),
            y=rect_top_to_bottom_mm(top_mm, height_mm, self.grid_height_m),
            width=width_mm,
            height=height_mm,
        )

    def constrain_to_grid(self, rect: MmRect) -> MmRect:
        """Clamp *rect* so it lies fully inside the drawing grid.

        Rectangles larger than the grid are pinned to the origin.
        """
        max_x = round_half_up(self.grid_width_m * 1000) - rect.width
        max_y = grid_height_mm(self.grid_height_m) - rect.height
        return MmRect(
            x=max(0, min(max_x, rect.x)),
            y=max(0, min(max_y, rect.y)),
            width=rect.width,
            height=rect.height,
        )
