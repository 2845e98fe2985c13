"""Element models — the typed entities drawn on a floor.

Every element carries a ``kind`` literal, so the set of elements is a closed
tagged union (:data:`Element`).  All lengths are integer millimetres in grid
space (origin bottom-left, Y up).
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import Enum, IntEnum
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from modplan.geometry.transform import MmRect


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return uuid.uuid4().hex[:12]


class ElementKind(str, Enum):
    """Closed set of element variants."""

    MODULE = "module"
    OPENING = "opening"
    BALCONY = "balcony"
    BATHROOM_POD = "bathroom_pod"
    CORRIDOR = "corridor"


class WallSide(IntEnum):
    """Module wall enumeration, counter-clockwise in grid space."""

    BOTTOM = 1
    RIGHT = 2
    TOP = 3
    LEFT = 4

    @property
    def is_horizontal(self) -> bool:
        return self in (WallSide.BOTTOM, WallSide.TOP)


class OpeningType(str, Enum):
    DOOR = "door"
    WINDOW = "window"
    OPENING = "opening"


class ElementRef(BaseModel):
    """Hashable reference to an element on a floor."""

    model_config = ConfigDict(frozen=True)

    kind: ElementKind
    id: str


class Module(BaseModel):
    """A prefabricated room volume."""

    kind: Literal["module"] = "module"
    id: str = Field(default_factory=new_id)
    name: str = ""
    width: int = Field(gt=0)
    length: int = Field(gt=0)
    height: int = Field(gt=0)
    x0: int = 0
    y0: int = 0
    z_offset: int = 0
    rotation: int = 0
    """Degrees about the bottom-left corner: 0, 90, 180 or 270."""

    stacked_floors: int = Field(default=1, ge=1)
    is_grouped: bool = False
    group_id: Optional[str] = None

    @field_validator("rotation")
    @classmethod
    def _normalise_rotation(cls, value: int) -> int:
        if value % 90:
            raise ValueError(f"rotation must be a multiple of 90 degrees, got {value}")
        return value % 360

    def ref(self) -> ElementRef:
        return ElementRef(kind=self.kind, id=self.id)

    def footprint_size(self) -> tuple[int, int]:
        """(x extent, y extent) of the plan footprint after rotation."""
        if self.rotation in (90, 270):
            return self.length, self.width
        return self.width, self.length

    def footprint(self) -> MmRect:
        size_x, size_y = self.footprint_size()
        return MmRect(self.x0, self.y0, size_x, size_y)

    def wall_length(self, wall_side: WallSide | int) -> int:
        size_x, size_y = self.footprint_size()
        return size_x if WallSide(wall_side).is_horizontal else size_y


class Opening(BaseModel):
    """A door, window or plain opening in a module wall."""

    kind: Literal["opening"] = "opening"
    id: str = Field(default_factory=new_id)
    module_id: str
    wall_side: WallSide
    distance_along_wall: int = Field(default=0, ge=0)
    y_offset: int = Field(default=0, ge=0)
    """Sill height above the module floor."""

    width: int = Field(gt=0)
    height: int = Field(gt=0)
    type: OpeningType = OpeningType.WINDOW

    def ref(self) -> ElementRef:
        return ElementRef(kind=self.kind, id=self.id)


class Balcony(BaseModel):
    """A balcony protruding outward from one module wall."""

    kind: Literal["balcony"] = "balcony"
    id: str = Field(default_factory=new_id)
    module_id: str
    name: str = ""
    wall_side: WallSide
    width: int = Field(gt=0)
    """Extent along the wall."""

    length: int = Field(gt=0)
    """Protrusion away from the wall."""

    distance_along_wall: int = Field(default=0, ge=0)
    is_grouped: bool = False
    group_id: Optional[str] = None

    def ref(self) -> ElementRef:
        return ElementRef(kind=self.kind, id=self.id)


class BathroomPod(BaseModel):
    """A bathroom pod placed inside a module footprint."""

    kind: Literal["bathroom_pod"] = "bathroom_pod"
    id: str = Field(default_factory=new_id)
    module_id: str
    name: str = ""
    width: int = Field(gt=0)
    length: int = Field(gt=0)
    x_offset: int = Field(default=0, ge=0)
    y_offset: int = Field(default=0, ge=0)
    type: str = "F"
    is_grouped: bool = False
    group_id: Optional[str] = None

    def ref(self) -> ElementRef:
        return ElementRef(kind=self.kind, id=self.id)


class Corridor(BaseModel):
    """A rectangular corridor drawn between two corners."""

    kind: Literal["corridor"] = "corridor"
    id: str = Field(default_factory=new_id)
    name: str = ""
    x1: int
    y1: int
    x2: int
    y2: int
    floor: str = ""
    is_grouped: bool = False
    group_id: Optional[str] = None

    @model_validator(mode="after")
    def _normalise_corners(self) -> Corridor:
        if self.x1 > self.x2:
            self.x1, self.x2 = self.x2, self.x1
        if self.y1 > self.y2:
            self.y1, self.y2 = self.y2, self.y1
        return self

    @property
    def direction(self) -> str:
        return "horizontal" if (self.x2 - self.x1) > (self.y2 - self.y1) else "vertical"

    def ref(self) -> ElementRef:
        return ElementRef(kind=self.kind, id=self.id)

    def footprint(self) -> MmRect:
        return MmRect(self.x1, self.y1, self.x2 - self.x1, self.y2 - self.y1)


Element = Annotated[
    Union[Module, Opening, Balcony, BathroomPod, Corridor],
    Field(discriminator="kind"),
]


class GroupElements(BaseModel):
    """Member ids of a group, partitioned by kind."""

    modules: list[str] = Field(default_factory=list)
    corridors: list[str] = Field(default_factory=list)
    balconies: list[str] = Field(default_factory=list)
    bathroom_pods: list[str] = Field(default_factory=list)

    def ids_for(self, kind: ElementKind) -> list[str]:
        return {
            ElementKind.MODULE: self.modules,
            ElementKind.CORRIDOR: self.corridors,
            ElementKind.BALCONY: self.balconies,
            ElementKind.BATHROOM_POD: self.bathroom_pods,
        }.get(ElementKind(kind), [])

    def refs(self) -> list[ElementRef]:
        refs: list[ElementRef] = []
        for kind in (ElementKind.MODULE, ElementKind.CORRIDOR, ElementKind.BALCONY, ElementKind.BATHROOM_POD):
            refs.extend(ElementRef(kind=kind, id=element_id) for element_id in self.ids_for(kind))
        return refs

    def count(self) -> int:
        return len(self.modules) + len(self.corridors) + len(self.balconies) + len(self.bathroom_pods)


class ElementGroup(BaseModel):
    """A composite assembly of elements on one floor.

    The bounding box (``x, y, width, height``) is in grid-space mm.
    ``offsets`` holds, for every positioned member (modules and
    corridors), its anchor offset from the group origin.
    """

    id: str = Field(default_factory=new_id)
    name: str = ""
    elements: GroupElements = Field(default_factory=GroupElements)
    x: int = 0
    y: int = 0
    width: int = 0
    height: int = 0
    offsets: dict[str, tuple[int, int]] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=_utc_now)
