"""AttachmentConstraintSolver — keeps module attachments valid.

Openings and balconies are pinned to one module wall and may only slide
along it.  Bathroom pods move freely inside the module footprint.

The solver has two entry points with different contracts:

* :meth:`AttachmentConstraintSolver.constrain_moving` runs on every
  intermediate drag frame.  It is pure and only corrects pixel geometry.
* :meth:`AttachmentConstraintSolver.commit` runs once, on the terminal
  "modified" event.  It derives the canonical millimetre fields from the
  final pixel geometry relative to the parent module and writes them to
  the floor.
"""

from __future__ import annotations

import logging
from typing import Any, Literal, Optional, Union

from pydantic import BaseModel, Field

from modplan.config import OPENING_DEPTH_MM, POD_GRID_MM
from modplan.constraints.clash import FootprintClashDetector
from modplan.geometry.transform import CoordinateTransform, MmRect, PixelRect, round_half_up
from modplan.models.element import Balcony, BathroomPod, Corridor, Module, Opening, WallSide
from modplan.models.floor import Floor

logger = logging.getLogger(__name__)

Attachment = Union[Opening, Balcony, BathroomPod]


class CommitResult(BaseModel):
    """Outcome of committing one element's final geometry."""

    status: Literal["committed", "rejected", "dropped"] = "committed"
    element_id: str = ""
    element: Optional[Union[Module, Opening, Balcony, BathroomPod, Corridor]] = None
    """The element as stored after the commit (unchanged when rejected)."""

    message: str = ""
    clashes: list[dict[str, Any]] = Field(default_factory=list)


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(value, high))


def fit_to_pod_grid(offset: int, size: int, extent: int, grid: int = POD_GRID_MM) -> tuple[int, int]:
    """Snap an (offset, size) pair to the pod grid inside ``[0, extent]``.

    The size is at least one grid unit; a module narrower than one grid
    unit gets a pod spanning its whole extent.
    """
    if extent < grid:
        return 0, extent
    max_size = (extent // grid) * grid
    size = min(max(grid, round_half_up(size / grid) * grid), max_size)
    max_offset = ((extent - size) // grid) * grid
    offset = min(max(0, round_half_up(offset / grid) * grid), max_offset)
    return offset, size


def attachment_footprint(child: Attachment, module: Module) -> MmRect:
    """Grid-space plan footprint of *child* attached to *module*."""
    frame = module.footprint()

    if isinstance(child, BathroomPod):
        return MmRect(frame.x + child.x_offset, frame.y + child.y_offset, child.width, child.length)

    wall = WallSide(child.wall_side)
    along = child.distance_along_wall

    if isinstance(child, Balcony):
        depth = child.length
        if wall == WallSide.BOTTOM:
            return MmRect(frame.x + along, frame.y - depth, child.width, depth)
        if wall == WallSide.TOP:
            return MmRect(frame.x + along, frame.top, child.width, depth)
        if wall == WallSide.RIGHT:
            return MmRect(frame.right, frame.y + along, depth, child.width)
        return MmRect(frame.x - depth, frame.y + along, depth, child.width)

    # Openings are drawn as a thin marker flush inside the wall line
    if wall.is_horizontal:
        depth = min(OPENING_DEPTH_MM, frame.height)
        y = frame.y if wall == WallSide.BOTTOM else frame.top - depth
        return MmRect(frame.x + along, y, child.width, depth)
    depth = min(OPENING_DEPTH_MM, frame.width)
    x = frame.right - depth if wall == WallSide.RIGHT else frame.x
    return MmRect(x, frame.y + along, depth, child.width)


def constrain(child: Attachment, parent: PixelRect, rect: PixelRect) -> PixelRect:
    """Correct *rect* (canvas px) so *child* stays valid against *parent*.

    Pure: only returns corrected pixel geometry.
    """
    if isinstance(child, BathroomPod):
        width = min(rect.width, parent.width)
        height = min(rect.height, parent.height)
        return PixelRect(
            _clamp(rect.left, parent.left, parent.right - width),
            _clamp(rect.top, parent.top, parent.bottom - height),
            width,
            height,
        )

    wall = WallSide(child.wall_side)
    outside = isinstance(child, Balcony)

    if wall.is_horizontal:
        width, height = min(rect.width, parent.width), rect.height
        left = _clamp(rect.left, parent.left, parent.right - width)
        # Canvas Y points down: the bottom wall is the parent's larger y edge
        if wall == WallSide.BOTTOM:
            top = parent.bottom if outside else parent.bottom - height
        else:
            top = parent.top - height if outside else parent.top
        return PixelRect(left, top, width, height)

    width, height = rect.width, min(rect.height, parent.height)
    top = _clamp(rect.top, parent.top, parent.bottom - height)
    if wall == WallSide.RIGHT:
        left = parent.right if outside else parent.right - width
    else:
        left = parent.left - width if outside else parent.left
    return PixelRect(left, top, width, height)


class AttachmentConstraintSolver:
    """Constrain and commit openings, balconies and bathroom pods.

    Parameters
    ----------
    clash_detector:
        Detector used to reject balconies overlapping a foreign module.
    """

    def __init__(self, clash_detector: FootprintClashDetector | None = None) -> None:
        self.clash_detector = clash_detector or FootprintClashDetector()

    # -- Geometry queries -----------------------------------------------------

    def parent_rect(self, module: Module, transform: CoordinateTransform) -> PixelRect:
        return transform.mm_rect_to_px(module.footprint())

    def pixel_rect(self, child: Attachment, module: Module, transform: CoordinateTransform) -> PixelRect:
        return transform.mm_rect_to_px(attachment_footprint(child, module))

    # -- Transient ------------------------------------------------------------

    def constrain_moving(
        self,
        child: Attachment,
        floor: Floor,
        rect: PixelRect,
        transform: CoordinateTransform,
    ) -> PixelRect:
        """Correct one intermediate drag frame.  Never touches *floor*."""
        module = floor.module(child.module_id)
        if module is None:
            return rect
        return constrain(child, self.parent_rect(module, transform), rect)

    # -- Canonical ------------------------------------------------------------

    def clamp_to_parent(self, child: Attachment, module: Module) -> Attachment:
        """Return a copy of *child* whose stored fields satisfy containment."""
        if isinstance(child, BathroomPod):
            size_x, size_y = module.footprint_size()
            x_offset, width = fit_to_pod_grid(child.x_offset, child.width, size_x)
            y_offset, length = fit_to_pod_grid(child.y_offset, child.length, size_y)
            return child.model_copy(update={
                "x_offset": x_offset,
                "y_offset": y_offset,
                "width": width,
                "length": length,
            })

        wall_length = module.wall_length(child.wall_side)
        width = int(_clamp(child.width, 1, wall_length))
        updates: dict[str, Any] = {
            "width": width,
            "distance_along_wall": int(_clamp(child.distance_along_wall, 0, wall_length - width)),
        }
        if isinstance(child, Opening):
            updates["y_offset"] = int(_clamp(child.y_offset, 0, max(0, module.height - child.height)))
        else:
            updates["length"] = max(1, child.length)
        return child.model_copy(update=updates)

    def balcony_clashes(self, balcony: Balcony, module: Module, floor: Floor) -> list[Any]:
        """Overlaps between *balcony* and every module other than its parent."""
        others = [(m.id, m.footprint()) for m in floor.modules if m.id != module.id]
        return self.clash_detector.detect(balcony.id, attachment_footprint(balcony, module), others)

    def module_clashes(self, module: Module, floor: Floor) -> list[Any]:
        """Balcony overlaps that placing *module* as given would cause.

        Checks the module's own balconies, re-clamped to it, against every
        other module, and every other module's balconies against it.
        """
        neighbours = {m.id: m for m in floor.modules if m.id != module.id}
        clashes = []
        for balcony in floor.balconies:
            if balcony.module_id == module.id:
                clashes.extend(self.balcony_clashes(self.clamp_to_parent(balcony, module), module, floor))
            elif balcony.module_id in neighbours:
                footprint = attachment_footprint(balcony, neighbours[balcony.module_id])
                clashes.extend(self.clash_detector.detect(balcony.id, footprint, [(module.id, module.footprint())]))
        return clashes

    def commit(
        self,
        child: Attachment,
        floor: Floor,
        final_rect: PixelRect,
        transform: CoordinateTransform,
    ) -> CommitResult:
        """Derive and store canonical fields from the final pixel geometry.

        The fields are always recomputed from *final_rect* relative to the
        parent's current pixel rectangle, never accumulated from the
        previously stored values.
        """
        module = floor.module(child.module_id)
        if module is None:
            logger.debug("Dropping commit for %s: parent module %s missing", child.id, child.module_id)
            return CommitResult(
                status="dropped",
                element_id=child.id,
                message=f"Parent module not found: {child.module_id}",
            )

        parent = self.parent_rect(module, transform)
        rect = constrain(child, parent, final_rect)
        to_mm = transform.to_mm

        if isinstance(child, BathroomPod):
            raw: dict[str, Any] = {
                "x_offset": to_mm(rect.left - parent.left),
                "y_offset": to_mm(parent.bottom - rect.bottom),
                "width": to_mm(rect.width),
                "length": to_mm(rect.height),
            }
        else:
            wall = WallSide(child.wall_side)
            if wall.is_horizontal:
                along, across = rect.width, rect.height
                distance = to_mm(rect.left - parent.left)
            else:
                along, across = rect.height, rect.width
                distance = to_mm(parent.bottom - rect.bottom)
            raw = {"distance_along_wall": distance, "width": to_mm(along)}
            if isinstance(child, Balcony):
                raw["length"] = to_mm(across)

        candidate = self.clamp_to_parent(child.model_copy(update=raw), module)

        if isinstance(candidate, Balcony):
            clashes = self.balcony_clashes(candidate, module, floor)
            if clashes:
                logger.warning(
                    "Rejected balcony %s: overlaps %s",
                    child.id, ", ".join(c.module_id for c in clashes),
                )
                return CommitResult(
                    status="rejected",
                    element_id=child.id,
                    element=child,
                    message="Balcony would overlap another module",
                    clashes=[c.to_dict() for c in clashes],
                )

        floor.replace(candidate)
        return CommitResult(status="committed", element_id=candidate.id, element=candidate)
