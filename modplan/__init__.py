"""modplan — geometry core of a modular building floor-plan editor."""

__version__ = "1.0.0"

from modplan.api.facade import FloorPlanEditor
from modplan.constraints.clash import FootprintClash, FootprintClashDetector
from modplan.constraints.solver import AttachmentConstraintSolver, CommitResult
from modplan.geometry.snapping import SnapEngine, SnapResult
from modplan.geometry.transform import CoordinateTransform, MmRect, PixelRect
from modplan.grouping.manager import GroupIntegrityError, GroupManager, UngroupResult
from modplan.models.element import (
    Balcony,
    BathroomPod,
    Corridor,
    ElementGroup,
    ElementKind,
    ElementRef,
    Module,
    Opening,
    WallSide,
)
from modplan.models.floor import Building, Floor, GridSettings
from modplan.schedule.engine import ModuleSignatureEngine
from modplan.schedule.report import CorridorRow, ScheduleReport, ScheduleRow
from modplan.settings import EditorSettings, SettingsManager

__all__ = [
    "__version__",
    # Facade
    "FloorPlanEditor",
    # Data model
    "Balcony",
    "BathroomPod",
    "Building",
    "Corridor",
    "ElementGroup",
    "ElementKind",
    "ElementRef",
    "Floor",
    "GridSettings",
    "Module",
    "Opening",
    "WallSide",
    # Geometry
    "CoordinateTransform",
    "MmRect",
    "PixelRect",
    "SnapEngine",
    "SnapResult",
    # Constraints
    "AttachmentConstraintSolver",
    "CommitResult",
    "FootprintClash",
    "FootprintClashDetector",
    # Grouping
    "GroupIntegrityError",
    "GroupManager",
    "UngroupResult",
    # Schedule
    "CorridorRow",
    "ModuleSignatureEngine",
    "ScheduleReport",
    "ScheduleRow",
    # Settings
    "EditorSettings",
    "SettingsManager",
]
