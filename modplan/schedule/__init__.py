"""Module schedule — signature deduplication, stacking and sequential naming."""

from modplan.schedule.engine import ModuleSignatureEngine
from modplan.schedule.report import CorridorRow, ScheduleReport, ScheduleRow
from modplan.schedule.signature import module_signature

__all__ = ["CorridorRow", "ModuleSignatureEngine", "ScheduleReport", "ScheduleRow", "module_signature"]
