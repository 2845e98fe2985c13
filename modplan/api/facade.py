"""FloorPlanEditor — the single entry point for the rendering collaborator.

Usage::

    from modplan import FloorPlanEditor

    editor = FloorPlanEditor()
    module = editor.add_module(4000, 3000, 2800, x0=1000, y0=1000)
    rect = editor.pixel_rect(module.ref())
    editor.on_element_moving(module.ref(), rect.moved(left=rect.left + 37))
    editor.on_element_modified(module.ref(), rect.moved(left=rect.left + 40))
    group = editor.create_group([module.ref(), other.ref()])
    editor.build_schedule().to_markdown()

Intermediate ``on_element_moving`` / ``on_element_resizing`` callbacks are
pure: they return corrected pixel geometry and never write the document.
Canonical millimetre state is written once, by ``on_element_modified``.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Optional, Union

from modplan import config as cfg
from modplan.api import elements as elem_ops
from modplan.constraints.solver import AttachmentConstraintSolver, CommitResult
from modplan.geometry.snapping import SnapEngine, SnapResult
from modplan.geometry.transform import (
    CoordinateTransform,
    MmRect,
    PixelRect,
    grid_height_mm,
    round_half_up,
)
from modplan.grouping.manager import GroupManager, UngroupResult
from modplan.models.element import (
    Balcony,
    BathroomPod,
    Corridor,
    ElementGroup,
    ElementRef,
    Module,
    Opening,
    WallSide,
)
from modplan.models.floor import AnyElement, Building, Floor, GridSettings
from modplan.schedule.engine import ModuleSignatureEngine
from modplan.schedule.report import ScheduleReport
from modplan.settings import EditorSettings, SettingsManager

logger = logging.getLogger(__name__)

SELECTION_ACTIONS = ("group", "copy", "ungroup")


def _is_attachment(element: AnyElement) -> bool:
    return isinstance(element, (Opening, Balcony, BathroomPod))


class FloorPlanEditor:
    """Geometry core of the modular floor-plan editor.

    Parameters
    ----------
    settings:
        Editor configuration.  Defaults are used when *None*.
    building:
        Existing document to edit.  A new single-floor building whose grid
        follows *settings* is created when *None*.
    """

    def __init__(
        self,
        settings: EditorSettings | None = None,
        building: Building | None = None,
    ) -> None:
        self.settings = settings or EditorSettings()
        if building is None:
            building = Building(floors=[Floor(grid=self._grid_from_settings())])
        self.building = building

        self.solver = AttachmentConstraintSolver()
        self.groups = GroupManager()
        self.schedule_engine = ModuleSignatureEngine()

    @classmethod
    def from_config(cls, project_path: str | Path = ".", building: Building | None = None) -> FloorPlanEditor:
        """Create an editor from the layered configuration of *project_path*.

        Also applies the configured level to the ``modplan`` logger.
        """
        manager = SettingsManager()
        settings = manager.load_settings(project_path)
        manager.apply_log_level(settings)
        logger.info("Loaded editor settings from %s", project_path)
        return cls(settings, building)

    def _grid_from_settings(self) -> GridSettings:
        return GridSettings(
            grid_size_mm=self.settings.grid_size_mm,
            snap_mode=self.settings.snap_mode,
            element_gap_mm=self.settings.element_gap_mm,
            grid_width_m=self.settings.grid_width_m,
            grid_height_m=self.settings.grid_height_m,
        )

    # -- Context --------------------------------------------------------------

    @property
    def floor(self) -> Floor:
        """The active floor."""
        return self.building.active_floor()

    def transform(self, floor: Floor | None = None) -> CoordinateTransform:
        grid = (floor or self.floor).grid
        return CoordinateTransform(self.settings.scale_factor, grid.grid_width_m, grid.grid_height_m)

    def snap_engine(self, floor: Floor | None = None) -> SnapEngine:
        grid = (floor or self.floor).grid
        return SnapEngine(
            snap_mode=grid.snap_mode,
            grid_size_mm=grid.grid_size_mm,
            element_gap_mm=grid.element_gap_mm,
            scale_factor=self.settings.scale_factor,
        )

    # -- Geometry queries -----------------------------------------------------

    def pixel_rect(self, ref: ElementRef) -> Optional[PixelRect]:
        """Canonical geometry of *ref* in canvas pixels, or None if missing."""
        element = self.floor.find(ref)
        if element is None:
            return None
        transform = self.transform()
        if isinstance(element, (Module, Corridor)):
            return transform.mm_rect_to_px(element.footprint())
        parent = self.floor.module(element.module_id)
        if parent is None:
            return None
        return self.solver.pixel_rect(element, parent, transform)

    def group_pixel_rect(self, group_id: str) -> Optional[PixelRect]:
        group = self.floor.group(group_id)
        if group is None:
            return None
        return self.transform().rect_to_px(group.x, group.y, group.width, group.height)

    def sibling_rects(self, ref: ElementRef) -> list[PixelRect]:
        """Pixel rectangles of every other module on the active floor."""
        transform = self.transform()
        return [transform.mm_rect_to_px(m.footprint()) for m in self.floor.modules if m.id != ref.id]

    # -- Interaction events ---------------------------------------------------

    def snap(self, ref: ElementRef, rect: PixelRect, siblings: list[PixelRect] | None = None) -> SnapResult:
        """Snap an independent element's position, reporting guide lines."""
        if siblings is None:
            siblings = self.sibling_rects(ref)
        return self.snap_engine().snap_position(rect, siblings)

    def on_element_moving(
        self,
        ref: ElementRef,
        rect: PixelRect,
        siblings: list[PixelRect] | None = None,
    ) -> PixelRect:
        """Correct one intermediate drag frame."""
        element = self.floor.find(ref)
        if element is None:
            logger.debug("Moving event dropped: %s %s not found", ref.kind.value, ref.id)
            return rect
        if _is_attachment(element):
            return self.solver.constrain_moving(element, self.floor, rect, self.transform())
        return self.snap(ref, rect, siblings).rect

    def on_element_resizing(self, ref: ElementRef, rect: PixelRect) -> PixelRect:
        """Correct one intermediate resize frame."""
        element = self.floor.find(ref)
        if element is None:
            logger.debug("Resizing event dropped: %s %s not found", ref.kind.value, ref.id)
            return rect
        if _is_attachment(element):
            return self.solver.constrain_moving(element, self.floor, rect, self.transform())
        return self.snap_engine().snap_size(rect)

    def on_element_modified(self, ref: ElementRef, final_rect: PixelRect) -> CommitResult:
        """Commit the final geometry of a move or resize."""
        floor = self.floor
        element = floor.find(ref)
        if element is None:
            logger.debug("Modified event dropped: %s %s not found", ref.kind.value, ref.id)
            return CommitResult(status="dropped", element_id=ref.id, message=f"Element not found: {ref.id}")

        transform = self.transform(floor)
        if _is_attachment(element):
            result = self.solver.commit(element, floor, final_rect, transform)
        elif isinstance(element, Module):
            result = self._commit_module(element, floor, final_rect, transform)
        else:
            result = self._commit_corridor(element, floor, final_rect, transform)

        if result.status == "committed" and getattr(result.element, "group_id", None):
            self.groups.refresh(floor, result.element.group_id)
        return result

    def _commit_module(
        self,
        module: Module,
        floor: Floor,
        final_rect: PixelRect,
        transform: CoordinateTransform,
    ) -> CommitResult:
        drawn = self.solver.parent_rect(module, transform)
        moved_only = (
            round_half_up(final_rect.width) == drawn.width
            and round_half_up(final_rect.height) == drawn.height
        )

        if moved_only:
            # Stored sizes survive a drag even when they are not whole pixels
            size_x, size_y = module.footprint_size()
            dropped_at = MmRect(
                transform.to_mm(final_rect.left),
                grid_height_mm(transform.grid_height_m) - transform.to_mm(final_rect.bottom),
                size_x,
                size_y,
            )
        else:
            dropped_at = transform.rect_from_px(final_rect)
            size_x = max(cfg.MIN_MODULE_SIZE_MM, dropped_at.width)
            size_y = max(cfg.MIN_MODULE_SIZE_MM, dropped_at.height)
        placed = transform.constrain_to_grid(MmRect(dropped_at.x, dropped_at.y, size_x, size_y))

        # A quarter-turned module shows its length along x
        if module.rotation in (90, 270):
            width, length = size_y, size_x
        else:
            width, length = size_x, size_y

        updated = module.model_copy(update={"x0": placed.x, "y0": placed.y, "width": width, "length": length})

        clashes = self.solver.module_clashes(updated, floor)
        if clashes:
            logger.warning(
                "Rejected module %s: balcony %s would overlap module %s",
                module.id, clashes[0].element_id, clashes[0].module_id,
            )
            return CommitResult(
                status="rejected",
                element_id=module.id,
                element=module,
                message="A balcony would overlap another module",
                clashes=[c.to_dict() for c in clashes],
            )

        children = [self.solver.clamp_to_parent(child, updated) for child in floor.children_of(module.id)]

        floor.replace(updated)
        for child in children:
            floor.replace(child)
        return CommitResult(status="committed", element_id=updated.id, element=updated)

    def _commit_corridor(
        self,
        corridor: Corridor,
        floor: Floor,
        final_rect: PixelRect,
        transform: CoordinateTransform,
    ) -> CommitResult:
        placed = transform.constrain_to_grid(transform.rect_from_px(final_rect))
        updated = corridor.model_copy(update={
            "x1": placed.x,
            "y1": placed.y,
            "x2": placed.right,
            "y2": placed.top,
        })
        floor.replace(updated)
        return CommitResult(status="committed", element_id=updated.id, element=updated)

    def on_selection_frozen(self, refs: list[ElementRef], action: str) -> Any:
        """Apply a group action to a frozen multi-selection.

        ``group`` returns the new :class:`ElementGroup` (or None), ``copy``
        returns the list of copied groups and ``ungroup`` the list of
        :class:`UngroupResult`.
        """
        if action not in SELECTION_ACTIONS:
            raise ValueError(f"Unknown selection action {action!r}; expected one of {SELECTION_ACTIONS}")

        if action == "group":
            return self.create_group(refs)

        group_ids: list[str] = []
        for ref in refs:
            element = self.floor.find(ref)
            if element is not None and getattr(element, "group_id", None) and element.group_id not in group_ids:
                group_ids.append(element.group_id)
        if not group_ids:
            logger.debug("Selection %s ignored: no grouped elements selected", action)

        if action == "copy":
            copies = [self.copy_group(group_id) for group_id in group_ids]
            return [group for group in copies if group is not None]
        return [self.ungroup(group_id) for group_id in group_ids]

    # -- Groups ---------------------------------------------------------------

    def create_group(self, refs: list[ElementRef], name: str | None = None) -> Optional[ElementGroup]:
        return self.groups.create(self.floor, refs, name)

    def ungroup(self, group_id: str) -> UngroupResult:
        return self.groups.ungroup(self.floor, group_id)

    def copy_group(self, group_id: str) -> Optional[ElementGroup]:
        return self.groups.copy(self.floor, group_id, self.transform())

    def move_group(self, group_id: str, final_rect: PixelRect) -> Optional[ElementGroup]:
        return self.groups.move(self.floor, group_id, final_rect, self.transform())

    # -- Elements -------------------------------------------------------------

    def add_module(self, width: int, length: int, height: int, **kwargs: Any) -> Module:
        return elem_ops.add_module(self.floor, width, length, height, **kwargs)

    def add_opening(
        self,
        module_id: str,
        wall_side: Union[WallSide, int],
        width: int,
        height: int,
        **kwargs: Any,
    ) -> Optional[Opening]:
        return elem_ops.add_opening(self.floor, module_id, wall_side, width, height, solver=self.solver, **kwargs)

    def add_balcony(
        self,
        module_id: str,
        wall_side: Union[WallSide, int],
        width: int,
        length: int,
        **kwargs: Any,
    ) -> Optional[Balcony]:
        return elem_ops.add_balcony(self.floor, module_id, wall_side, width, length, solver=self.solver, **kwargs)

    def add_bathroom_pod(self, module_id: str, width: int, length: int, **kwargs: Any) -> Optional[BathroomPod]:
        return elem_ops.add_bathroom_pod(self.floor, module_id, width, length, solver=self.solver, **kwargs)

    def add_corridor(self, x1: int, y1: int, x2: int, y2: int, **kwargs: Any) -> Corridor:
        return elem_ops.add_corridor(self.floor, x1, y1, x2, y2, **kwargs)

    def get_element(self, ref: ElementRef) -> Optional[AnyElement]:
        return elem_ops.get_element(self.floor, ref)

    def delete_element(self, ref: ElementRef) -> list[ElementRef]:
        return elem_ops.delete_element(self.floor, ref, groups=self.groups)

    def update_properties(self, ref: ElementRef, changes: dict[str, Any]) -> Optional[AnyElement]:
        return elem_ops.update_properties(self.floor, ref, changes, solver=self.solver, groups=self.groups)

    # -- Floors ---------------------------------------------------------------

    def add_floor(self, name: str | None = None, height: int = cfg.DEFAULT_FLOOR_HEIGHT_MM) -> Floor:
        return elem_ops.add_floor(self.building, name, height)

    def copy_floor(self, floor_id: str | None = None, name: str | None = None) -> Optional[Floor]:
        return elem_ops.copy_floor(self.building, floor_id or self.floor.id, name)

    def select_floor(self, floor_id: str) -> bool:
        if self.building.floor(floor_id) is None:
            logger.debug("Floor %s not found; active floor unchanged", floor_id)
            return False
        self.building.active_floor_id = floor_id
        return True

    # -- Reporting ------------------------------------------------------------

    def build_schedule(self) -> ScheduleReport:
        return self.schedule_engine.build(self.building)

    def snapshot(self) -> dict[str, Any]:
        """Plain-data copy of the whole document."""
        return self.building.model_dump(mode="json")
