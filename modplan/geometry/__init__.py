"""Coordinate transforms and snapping between grid space and canvas space."""

from modplan.geometry.snapping import SnapEngine, SnapResult
from modplan.geometry.transform import CoordinateTransform, MmRect, PixelRect, round_half_up

__all__ = ["CoordinateTransform", "MmRect", "PixelRect", "SnapEngine", "SnapResult", "round_half_up"]
