"""Floor and Building models — the explicit editor state.

A :class:`Building` is the single mutable document the editor works on.
Commands receive it (or one of its floors) explicitly instead of reaching
into ambient stores.
"""

from __future__ import annotations

from typing import Literal, Optional, Union

from pydantic import BaseModel, Field

from modplan import config as cfg
from modplan.models.element import (
    Balcony,
    BathroomPod,
    Corridor,
    ElementGroup,
    ElementKind,
    ElementRef,
    Module,
    Opening,
    new_id,
)

AnyElement = Union[Module, Opening, Balcony, BathroomPod, Corridor]

# Element kind -> Floor attribute holding that collection
_COLLECTIONS: dict[ElementKind, str] = {
    ElementKind.MODULE: "modules",
    ElementKind.OPENING: "openings",
    ElementKind.BALCONY: "balconies",
    ElementKind.BATHROOM_POD: "bathroom_pods",
    ElementKind.CORRIDOR: "corridors",
}


class GridSettings(BaseModel):
    """Per-floor drawing grid configuration."""

    grid_size_mm: int = Field(default=cfg.DEFAULT_GRID_SIZE_MM, gt=0)
    snap_mode: Literal["off", "grid", "element"] = cfg.DEFAULT_SNAP_MODE
    element_gap_mm: int = Field(default=cfg.DEFAULT_ELEMENT_GAP_MM, ge=0)
    grid_width_m: float = Field(default=cfg.DEFAULT_GRID_WIDTH_M, gt=0)
    grid_height_m: float = Field(default=cfg.DEFAULT_GRID_HEIGHT_M, gt=0)


class Floor(BaseModel):
    """One storey: its element collections, groups and grid settings."""

    id: str = Field(default_factory=new_id)
    name: str = cfg.DEFAULT_FLOOR_NAME
    height: int = Field(default=cfg.DEFAULT_FLOOR_HEIGHT_MM, gt=0)
    grid: GridSettings = Field(default_factory=GridSettings)

    modules: list[Module] = Field(default_factory=list)
    openings: list[Opening] = Field(default_factory=list)
    balconies: list[Balcony] = Field(default_factory=list)
    bathroom_pods: list[BathroomPod] = Field(default_factory=list)
    corridors: list[Corridor] = Field(default_factory=list)
    groups: list[ElementGroup] = Field(default_factory=list)

    def collection(self, kind: ElementKind | str) -> list:
        """Return the live list holding elements of *kind*."""
        return getattr(self, _COLLECTIONS[ElementKind(kind)])

    def find(self, ref: ElementRef) -> Optional[AnyElement]:
        for element in self.collection(ref.kind):
            if element.id == ref.id:
                return element
        return None

    def module(self, module_id: str) -> Optional[Module]:
        for module in self.modules:
            if module.id == module_id:
                return module
        return None

    def group(self, group_id: str) -> Optional[ElementGroup]:
        for group in self.groups:
            if group.id == group_id:
                return group
        return None

    def replace(self, element: AnyElement) -> None:
        """Swap the stored element that has the same id for *element*."""
        items = self.collection(element.kind)
        for index, existing in enumerate(items):
            if existing.id == element.id:
                items[index] = element
                return
        raise KeyError(f"{element.kind} not found: {element.id}")

    def children_of(self, module_id: str) -> list[AnyElement]:
        """Openings, balconies and bathroom pods owned by *module_id*."""
        children: list[AnyElement] = []
        children.extend(o for o in self.openings if o.module_id == module_id)
        children.extend(b for b in self.balconies if b.module_id == module_id)
        children.extend(p for p in self.bathroom_pods if p.module_id == module_id)
        return children

    def tagged_with(self, group_id: str) -> list[ElementRef]:
        """Refs of every element carrying ``group_id`` as its group tag."""
        refs: list[ElementRef] = []
        for kind in (ElementKind.MODULE, ElementKind.CORRIDOR, ElementKind.BALCONY, ElementKind.BATHROOM_POD):
            refs.extend(e.ref() for e in self.collection(kind) if e.group_id == group_id)
        return refs


class Building(BaseModel):
    """The editor document: an ordered stack of floors."""

    floors: list[Floor] = Field(default_factory=lambda: [Floor()])
    active_floor_id: Optional[str] = None

    def floor(self, floor_id: str) -> Optional[Floor]:
        for floor in self.floors:
            if floor.id == floor_id:
                return floor
        return None

    def active_floor(self) -> Floor:
        """Return the selected floor, falling back to the first one."""
        if self.active_floor_id:
            floor = self.floor(self.active_floor_id)
            if floor is not None:
                return floor
        return self.floors[0]

    def base_heights(self) -> dict[str, int]:
        """Cumulative height below each floor, keyed by floor id."""
        heights: dict[str, int] = {}
        cumulative = 0
        for floor in self.floors:
            heights[floor.id] = cumulative
            cumulative += floor.height
        return heights
