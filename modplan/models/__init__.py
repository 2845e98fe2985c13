"""Typed entities of the floor-plan document."""

from modplan.models.element import (
    Balcony,
    BathroomPod,
    Corridor,
    Element,
    ElementGroup,
    ElementKind,
    ElementRef,
    GroupElements,
    Module,
    Opening,
    OpeningType,
    WallSide,
)
from modplan.models.floor import AnyElement, Building, Floor, GridSettings

__all__ = [
    "AnyElement",
    "Balcony",
    "BathroomPod",
    "Building",
    "Corridor",
    "Element",
    "ElementGroup",
    "ElementKind",
    "ElementRef",
    "Floor",
    "GridSettings",
    "GroupElements",
    "Module",
    "Opening",
    "OpeningType",
    "WallSide",
]
