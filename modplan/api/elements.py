"""Element and floor commands.

Every command receives the floor (or building) it works on explicitly and
mutates it in place.  Attachments are clamped into their parent module on
creation and on every property edit.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from modplan import config as cfg
from modplan.constraints.solver import AttachmentConstraintSolver
from modplan.grouping.manager import GroupManager
from modplan.models.element import (
    Balcony,
    BathroomPod,
    Corridor,
    ElementKind,
    ElementRef,
    Module,
    Opening,
    WallSide,
    new_id,
)
from modplan.models.floor import AnyElement, Building, Floor

logger = logging.getLogger(__name__)

# Fields a property edit may not change
_PROTECTED_FIELDS = frozenset({"id", "kind", "module_id", "is_grouped", "group_id", "floor"})


def _next_name(items: list, prefix: str) -> str:
    taken = {item.name for item in items}
    number = len(items) + 1
    while f"{prefix}{number}" in taken:
        number += 1
    return f"{prefix}{number}"


# -- Create -------------------------------------------------------------------

def add_module(
    floor: Floor,
    width: int,
    length: int,
    height: int,
    *,
    x0: int = 0,
    y0: int = 0,
    z_offset: int = 0,
    rotation: int = 0,
    name: str | None = None,
) -> Module:
    """Create a module on *floor*."""
    module = Module(
        name=name or _next_name(floor.modules, "M"),
        width=width,
        length=length,
        height=height,
        x0=x0,
        y0=y0,
        z_offset=z_offset,
        rotation=rotation,
    )
    floor.modules.append(module)
    return module


def add_opening(
    floor: Floor,
    module_id: str,
    wall_side: WallSide | int,
    width: int,
    height: int,
    *,
    distance_along_wall: int = 0,
    y_offset: int = 0,
    type: str = "window",
    solver: AttachmentConstraintSolver | None = None,
) -> Optional[Opening]:
    """Create an opening on one wall of *module_id*.

    Returns None when the module does not exist.
    """
    module = floor.module(module_id)
    if module is None:
        logger.debug("Opening not added: module %s not found", module_id)
        return None
    solver = solver or AttachmentConstraintSolver()
    opening = solver.clamp_to_parent(Opening(
        module_id=module_id,
        wall_side=wall_side,
        width=width,
        height=height,
        distance_along_wall=distance_along_wall,
        y_offset=y_offset,
        type=type,
    ), module)
    floor.openings.append(opening)
    return opening


def add_balcony(
    floor: Floor,
    module_id: str,
    wall_side: WallSide | int,
    width: int,
    length: int,
    *,
    distance_along_wall: int = 0,
    name: str | None = None,
    solver: AttachmentConstraintSolver | None = None,
) -> Optional[Balcony]:
    """Create a balcony outside one wall of *module_id*.

    Returns None when the module does not exist or the balcony would
    overlap another module.
    """
    module = floor.module(module_id)
    if module is None:
        logger.debug("Balcony not added: module %s not found", module_id)
        return None
    solver = solver or AttachmentConstraintSolver()
    balcony = solver.clamp_to_parent(Balcony(
        module_id=module_id,
        name=name or _next_name(floor.balconies, "BC"),
        wall_side=wall_side,
        width=width,
        length=length,
        distance_along_wall=distance_along_wall,
    ), module)
    clashes = solver.balcony_clashes(balcony, module, floor)
    if clashes:
        logger.warning("Balcony not added on module %s: overlaps %s", module_id, clashes[0].module_id)
        return None
    floor.balconies.append(balcony)
    return balcony


def add_bathroom_pod(
    floor: Floor,
    module_id: str,
    width: int,
    length: int,
    *,
    x_offset: int = 0,
    y_offset: int = 0,
    name: str | None = None,
    type: str = "F",
    solver: AttachmentConstraintSolver | None = None,
) -> Optional[BathroomPod]:
    """Create a bathroom pod inside *module_id*, snapped to the pod grid."""
    module = floor.module(module_id)
    if module is None:
        logger.debug("Bathroom pod not added: module %s not found", module_id)
        return None
    solver = solver or AttachmentConstraintSolver()
    pod = solver.clamp_to_parent(BathroomPod(
        module_id=module_id,
        name=name or _next_name(floor.bathroom_pods, "BP"),
        width=width,
        length=length,
        x_offset=x_offset,
        y_offset=y_offset,
        type=type,
    ), module)
    floor.bathroom_pods.append(pod)
    return pod


def add_corridor(
    floor: Floor,
    x1: int,
    y1: int,
    x2: int,
    y2: int,
    *,
    name: str | None = None,
) -> Corridor:
    corridor = Corridor(
        name=name or _next_name(floor.corridors, "C"),
        x1=x1,
        y1=y1,
        x2=x2,
        y2=y2,
        floor=floor.id,
    )
    floor.corridors.append(corridor)
    return corridor


# -- Read / update / delete ---------------------------------------------------

def get_element(floor: Floor, ref: ElementRef) -> Optional[AnyElement]:
    return floor.find(ref)


def delete_element(
    floor: Floor,
    ref: ElementRef,
    groups: GroupManager | None = None,
) -> list[ElementRef]:
    """Delete an element; deleting a module also deletes its attachments.

    Deleted elements are detached from their groups first.  Returns the
    refs actually removed (empty if *ref* does not exist).
    """
    element = floor.find(ref)
    if element is None:
        logger.debug("Delete ignored: %s %s not found", ref.kind.value, ref.id)
        return []

    groups = groups or GroupManager()
    doomed = [element]
    if isinstance(element, Module):
        doomed = floor.children_of(element.id) + doomed

    for item in doomed:
        groups.remove_element(floor, item.ref())

    removed: list[ElementRef] = []
    for item in doomed:
        items = floor.collection(item.kind)
        items[:] = [e for e in items if e.id != item.id]
        removed.append(item.ref())

    logger.debug("Deleted %d elements", len(removed))
    return removed


def update_properties(
    floor: Floor,
    ref: ElementRef,
    changes: dict[str, Any],
    solver: AttachmentConstraintSolver | None = None,
    groups: GroupManager | None = None,
) -> Optional[AnyElement]:
    """Apply a property-panel edit to one element.

    The edited element is re-validated as a whole; an invalid value raises
    :class:`pydantic.ValidationError` and leaves the floor unchanged.
    Attachments are clamped into their parent, and when a module changes
    its attachments are re-clamped to the new dimensions.  Returns None,
    leaving the floor unchanged, when the edit would make a balcony overlap
    another module.
    """
    element = floor.find(ref)
    if element is None:
        logger.debug("Edit ignored: %s %s not found", ref.kind.value, ref.id)
        return None

    protected = _PROTECTED_FIELDS.intersection(changes)
    if protected:
        raise ValueError(f"Cannot edit fields: {', '.join(sorted(protected))}")

    solver = solver or AttachmentConstraintSolver()
    updated = type(element).model_validate({**element.model_dump(), **changes})

    followers: list[AnyElement] = []
    clashes = []
    if isinstance(updated, Module):
        followers = [solver.clamp_to_parent(child, updated) for child in floor.children_of(updated.id)]
        clashes = solver.module_clashes(updated, floor)
    elif not isinstance(updated, Corridor):
        parent = floor.module(updated.module_id)
        if parent is not None:
            updated = solver.clamp_to_parent(updated, parent)
            if isinstance(updated, Balcony):
                clashes = solver.balcony_clashes(updated, parent, floor)

    if clashes:
        logger.warning(
            "Edit of %s %s rejected: %s overlaps module %s",
            ref.kind.value, ref.id, clashes[0].element_id, clashes[0].module_id,
        )
        return None

    floor.replace(updated)
    for child in followers:
        floor.replace(child)

    group_id = getattr(updated, "group_id", None)
    if group_id:
        (groups or GroupManager()).refresh(floor, group_id)
    return updated


# -- Floors -------------------------------------------------------------------

def add_floor(
    building: Building,
    name: str | None = None,
    height: int = cfg.DEFAULT_FLOOR_HEIGHT_MM,
) -> Floor:
    """Append a floor above the current top floor, reusing its grid settings."""
    grid = building.floors[-1].grid.model_copy() if building.floors else None
    floor = Floor(name=name or f"Level {len(building.floors) + 1}", height=height)
    if grid is not None:
        floor.grid = grid
    building.floors.append(floor)
    logger.info("Added floor %s (%s)", floor.id, floor.name)
    return floor


def copy_floor(building: Building, floor_id: str, name: str | None = None) -> Optional[Floor]:
    """Append a deep copy of a floor with fresh ids throughout.

    Attachment parents, group member lists, group offsets and corridor
    floor ids all point at the copies.
    """
    source = building.floor(floor_id)
    if source is None:
        logger.debug("Copy ignored: floor %s not found", floor_id)
        return None

    clone = source.model_copy(deep=True)
    clone.id = new_id()
    clone.name = name or f"{source.name} copy"

    id_map: dict[str, str] = {}
    for kind in ElementKind:
        for element in clone.collection(kind):
            id_map[element.id] = new_id()
    group_map = {group.id: new_id() for group in clone.groups}

    for kind in ElementKind:
        items = clone.collection(kind)
        for index, element in enumerate(items):
            updates: dict[str, Any] = {"id": id_map[element.id]}
            if hasattr(element, "module_id"):
                updates["module_id"] = id_map.get(element.module_id, element.module_id)
            if getattr(element, "group_id", None):
                updates["group_id"] = group_map.get(element.group_id, element.group_id)
            if isinstance(element, Corridor):
                updates["floor"] = clone.id
            items[index] = element.model_copy(update=updates)

    for index, group in enumerate(clone.groups):
        elements = group.elements.model_copy(update={
            "modules": [id_map.get(i, i) for i in group.elements.modules],
            "corridors": [id_map.get(i, i) for i in group.elements.corridors],
            "balconies": [id_map.get(i, i) for i in group.elements.balconies],
            "bathroom_pods": [id_map.get(i, i) for i in group.elements.bathroom_pods],
        })
        clone.groups[index] = group.model_copy(update={
            "id": group_map[group.id],
            "elements": elements,
            "offsets": {id_map.get(k, k): v for k, v in group.offsets.items()},
        })

    building.floors.append(clone)
    logger.info("Copied floor %s to %s", floor_id, clone.id)
    return clone
