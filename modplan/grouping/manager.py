"""GroupManager — create, move, copy and dissolve element groups.

Membership lives purely in the data model: a ``group_id`` tag on every
member plus the id lists on the :class:`ElementGroup`.  Modules and
corridors are *positioned* members; the group records each one's offset
from the group origin so that dissolving a group restores absolute
positions exactly.  Balconies and bathroom pods are stored relative to
their parent module and follow it.

Every operation computes its full set of changes first and then applies
them in one pass.
"""

from __future__ import annotations

import logging
from typing import Optional

from pydantic import BaseModel, Field

from modplan.config import COPY_OFFSET_PX, GROUPABLE_KINDS
from modplan.constraints.clash import FootprintClash, FootprintClashDetector
from modplan.constraints.solver import attachment_footprint
from modplan.geometry.transform import CoordinateTransform, MmRect, PixelRect, bounding_box
from modplan.models.element import (
    Balcony,
    Corridor,
    ElementGroup,
    ElementKind,
    ElementRef,
    GroupElements,
    Module,
    new_id,
)
from modplan.models.floor import AnyElement, Floor

logger = logging.getLogger(__name__)

POSITIONED_KINDS = (ElementKind.MODULE, ElementKind.CORRIDOR)


class GroupIntegrityError(Exception):
    """A group record and its members' tags disagree."""


class UngroupResult(BaseModel):
    """Outcome of dissolving a group."""

    success: bool
    group_id: str = ""
    restored: list[ElementRef] = Field(default_factory=list)
    message: str = ""


def _placed(element: AnyElement, x: int, y: int) -> dict:
    """Field updates that put a positioned member's anchor at (x, y)."""
    if isinstance(element, Module):
        return {"x0": x, "y0": y}
    width = element.x2 - element.x1
    height = element.y2 - element.y1
    return {"x1": x, "y1": y, "x2": x + width, "y2": y + height}


def _anchor(element: AnyElement) -> tuple[int, int]:
    if isinstance(element, Module):
        return element.x0, element.y0
    return element.x1, element.y1


class GroupManager:
    """Apply group operations to a :class:`Floor`."""

    # -- Queries --------------------------------------------------------------

    def footprint(self, floor: Floor, element: AnyElement) -> Optional[MmRect]:
        """Grid-space footprint of a groupable element, or None if orphaned."""
        if isinstance(element, (Module, Corridor)):
            return element.footprint()
        parent = floor.module(element.module_id)
        if parent is None:
            return None
        return attachment_footprint(element, parent)

    def members(self, floor: Floor, group: ElementGroup) -> list[AnyElement]:
        return [e for e in (floor.find(ref) for ref in group.elements.refs()) if e is not None]

    def verify(self, floor: Floor, group: ElementGroup) -> None:
        """Raise :class:`GroupIntegrityError` if *group* is inconsistent."""
        listed = group.elements.refs()
        for ref in listed:
            element = floor.find(ref)
            if element is None:
                raise GroupIntegrityError(f"Group {group.id} lists missing {ref.kind.value} {ref.id}")
            if element.group_id != group.id:
                raise GroupIntegrityError(f"{ref.kind.value} {ref.id} is not tagged with group {group.id}")
            if ref.kind in POSITIONED_KINDS and ref.id not in group.offsets:
                raise GroupIntegrityError(f"Group {group.id} has no offset for {ref.id}")

        foreign = set(floor.tagged_with(group.id)) - set(listed)
        if foreign:
            ids = ", ".join(sorted(ref.id for ref in foreign))
            raise GroupIntegrityError(f"Elements tagged with group {group.id} but not listed: {ids}")

    # -- Create ---------------------------------------------------------------

    def create(
        self,
        floor: Floor,
        refs: list[ElementRef],
        name: str | None = None,
    ) -> Optional[ElementGroup]:
        """Group the selected elements.

        Refs that are not groupable, do not exist, or already belong to a
        group are ignored.  Returns None when fewer than two remain.
        """
        selected: list[AnyElement] = []
        seen: set[ElementRef] = set()
        for ref in refs:
            if ref in seen or ref.kind.value not in GROUPABLE_KINDS:
                continue
            seen.add(ref)
            element = floor.find(ref)
            if element is None or element.group_id:
                continue
            selected.append(element)

        if len(selected) < 2:
            logger.info("Not enough elements to group: need at least 2, got %d", len(selected))
            return None

        footprints = [f for f in (self.footprint(floor, e) for e in selected) if f is not None]
        box = bounding_box(footprints) or MmRect(0, 0, 0, 0)

        group = ElementGroup(
            name=name or f"Group {len(floor.groups) + 1}",
            x=box.x,
            y=box.y,
            width=box.width,
            height=box.height,
        )
        for element in selected:
            group.elements.ids_for(ElementKind(element.kind)).append(element.id)
            if ElementKind(element.kind) in POSITIONED_KINDS:
                x, y = _anchor(element)
                group.offsets[element.id] = (x - box.x, y - box.y)

        tagged = [e.model_copy(update={"is_grouped": True, "group_id": group.id}) for e in selected]

        for element in tagged:
            floor.replace(element)
        floor.groups.append(group)

        logger.info("Created group %s (%s) with %d elements", group.id, group.name, group.elements.count())
        return group

    # -- Ungroup --------------------------------------------------------------

    def ungroup(self, floor: Floor, group_id: str) -> UngroupResult:
        """Dissolve a group, restoring each member's absolute position."""
        group = floor.group(group_id)
        if group is None:
            logger.debug("Ungroup ignored: group %s not found", group_id)
            return UngroupResult(success=False, group_id=group_id, message=f"Group not found: {group_id}")

        try:
            self.verify(floor, group)
        except GroupIntegrityError as exc:
            logger.error("Cannot ungroup %s: %s", group_id, exc)
            return UngroupResult(success=False, group_id=group_id, message=str(exc))

        released: list[AnyElement] = []
        for element in self.members(floor, group):
            updates = {"is_grouped": False, "group_id": None}
            if ElementKind(element.kind) in POSITIONED_KINDS:
                dx, dy = group.offsets[element.id]
                updates.update(_placed(element, group.x + dx, group.y + dy))
            released.append(element.model_copy(update=updates))

        for element in released:
            floor.replace(element)
        floor.groups = [g for g in floor.groups if g.id != group_id]

        logger.info("Ungrouped %s: released %d elements", group_id, len(released))
        return UngroupResult(
            success=True,
            group_id=group_id,
            restored=[e.ref() for e in released],
        )

    # -- Move -----------------------------------------------------------------

    def move(
        self,
        floor: Floor,
        group_id: str,
        final_rect: PixelRect,
        transform: CoordinateTransform,
    ) -> Optional[ElementGroup]:
        """Commit a group drag from its final pixel bounding box."""
        group = floor.group(group_id)
        if group is None:
            logger.debug("Group move dropped: group %s not found", group_id)
            return None
        try:
            self.verify(floor, group)
        except GroupIntegrityError as exc:
            logger.error("Cannot move group %s: %s", group_id, exc)
            return None

        dropped_at = transform.rect_from_px(final_rect)
        origin = transform.constrain_to_grid(MmRect(dropped_at.x, dropped_at.y, group.width, group.height))

        placed = [
            e.model_copy(update=_placed(e, origin.x + group.offsets[e.id][0], origin.y + group.offsets[e.id][1]))
            for e in self.members(floor, group)
            if ElementKind(e.kind) in POSITIONED_KINDS
        ]
        moved = group.model_copy(update={"x": origin.x, "y": origin.y})

        for element in placed:
            floor.replace(element)
        self._store(floor, moved)

        logger.info("Moved group %s to (%d, %d)", group_id, origin.x, origin.y)
        return moved

    # -- Copy -----------------------------------------------------------------

    def copy(
        self,
        floor: Floor,
        group_id: str,
        transform: CoordinateTransform,
        offset_px: int = COPY_OFFSET_PX,
    ) -> Optional[ElementGroup]:
        """Duplicate a group, offset right and down on screen.

        Openings of copied modules are duplicated with them.  Grouped
        balconies and pods are copied onto the copy of their parent; those
        whose parent stays outside the group are left behind.  Returns None
        without changing the floor when a copied balcony would overlap a
        module outside the group, or a copied module an outside balcony.
        """
        group = floor.group(group_id)
        if group is None:
            logger.debug("Group copy dropped: group %s not found", group_id)
            return None
        try:
            self.verify(floor, group)
        except GroupIntegrityError as exc:
            logger.error("Cannot copy group %s: %s", group_id, exc)
            return None

        # Screen down is grid-space -y
        dx = transform.to_mm(offset_px)
        dy = -transform.to_mm(offset_px)
        new_group_id = new_id()
        tag = {"is_grouped": True, "group_id": new_group_id}

        id_map: dict[str, str] = {}
        copies: list[AnyElement] = []
        elements = GroupElements()
        offsets: dict[str, tuple[int, int]] = {}

        for kind in POSITIONED_KINDS:
            for element_id in group.elements.ids_for(kind):
                original = floor.find(ElementRef(kind=kind, id=element_id))
                x, y = _anchor(original)
                duplicate = original.model_copy(update={"id": new_id(), **tag, **_placed(original, x + dx, y + dy)})
                id_map[original.id] = duplicate.id
                offsets[duplicate.id] = group.offsets[original.id]
                elements.ids_for(kind).append(duplicate.id)
                copies.append(duplicate)

        for kind in (ElementKind.BALCONY, ElementKind.BATHROOM_POD):
            for element_id in group.elements.ids_for(kind):
                original = floor.find(ElementRef(kind=kind, id=element_id))
                if original.module_id not in id_map:
                    logger.debug("Not copying %s %s: parent module %s is outside the group",
                                 kind.value, original.id, original.module_id)
                    continue
                duplicate = original.model_copy(update={
                    "id": new_id(),
                    "module_id": id_map[original.module_id],
                    **tag,
                })
                elements.ids_for(kind).append(duplicate.id)
                copies.append(duplicate)

        for opening in floor.openings:
            if opening.module_id in id_map:
                copies.append(opening.model_copy(update={"id": new_id(), "module_id": id_map[opening.module_id]}))

        clashes = self._copy_clashes(floor, group, copies)
        if clashes:
            logger.warning("Cannot copy group %s: balcony %s would overlap module %s",
                           group_id, clashes[0].element_id, clashes[0].module_id)
            return None

        duplicate_group = ElementGroup(
            id=new_group_id,
            name=f"{group.name} copy",
            elements=elements,
            x=group.x + dx,
            y=group.y + dy,
            width=group.width,
            height=group.height,
            offsets=offsets,
        )

        for element in copies:
            floor.collection(element.kind).append(element)
        floor.groups.append(duplicate_group)
        # Skipped attachments shrink the box
        duplicate_group = self.refresh(floor, new_group_id)

        logger.info("Copied group %s to %s (%d elements)", group_id, new_group_id, elements.count())
        return duplicate_group

    # -- Membership maintenance -----------------------------------------------

    def refresh(self, floor: Floor, group_id: str) -> Optional[ElementGroup]:
        """Recompute the bounding box and offsets from current member positions."""
        group = floor.group(group_id)
        if group is None:
            return None
        members = self.members(floor, group)
        box = bounding_box([f for f in (self.footprint(floor, e) for e in members) if f is not None])
        if box is None:
            return group
        offsets = {}
        for element in members:
            if ElementKind(element.kind) in POSITIONED_KINDS:
                x, y = _anchor(element)
                offsets[element.id] = (x - box.x, y - box.y)
        refreshed = group.model_copy(update={
            "x": box.x,
            "y": box.y,
            "width": box.width,
            "height": box.height,
            "offsets": offsets,
        })
        self._store(floor, refreshed)
        return refreshed

    def remove_element(self, floor: Floor, ref: ElementRef) -> Optional[str]:
        """Detach one element from its group.

        The group is dissolved when fewer than two members remain.
        Returns the affected group id, or None if the element was not grouped.
        """
        group = next((g for g in floor.groups if ref.id in g.elements.ids_for(ref.kind)), None)
        if group is None:
            return None

        elements = group.elements.model_copy(deep=True)
        elements.ids_for(ref.kind).remove(ref.id)
        offsets = {k: v for k, v in group.offsets.items() if k != ref.id}
        remaining = group.model_copy(update={"elements": elements, "offsets": offsets})

        element = floor.find(ref)
        if element is not None:
            floor.replace(element.model_copy(update={"is_grouped": False, "group_id": None}))

        if elements.count() < 2:
            for member in self.members(floor, remaining):
                floor.replace(member.model_copy(update={"is_grouped": False, "group_id": None}))
            floor.groups = [g for g in floor.groups if g.id != group.id]
            logger.info("Dissolved group %s: fewer than 2 members left", group.id)
            return group.id

        self._store(floor, remaining)
        self.refresh(floor, group.id)
        return group.id

    def _copy_clashes(self, floor: Floor, group: ElementGroup, copies: list[AnyElement]) -> list[FootprintClash]:
        """Balcony overlaps between a pending copy and modules outside *group*."""
        copied_modules = {e.id: e for e in copies if isinstance(e, Module)}
        sources = set(group.elements.modules)
        foreign = [m for m in floor.modules if m.id not in sources]
        detector = FootprintClashDetector()

        clashes: list[FootprintClash] = []
        for element in copies:
            if isinstance(element, Balcony):
                footprint = attachment_footprint(element, copied_modules[element.module_id])
                clashes.extend(detector.detect(element.id, footprint, [(m.id, m.footprint()) for m in foreign]))
        targets = [(m.id, m.footprint()) for m in copied_modules.values()]
        for module in foreign:
            for balcony in floor.children_of(module.id):
                if isinstance(balcony, Balcony):
                    clashes.extend(detector.detect(balcony.id, attachment_footprint(balcony, module), targets))
        return clashes

    def _store(self, floor: Floor, group: ElementGroup) -> None:
        for index, existing in enumerate(floor.groups):
            if existing.id == group.id:
                floor.groups[index] = group
                return
        raise KeyError(f"group not found: {group.id}")
