"""ModuleSignatureEngine — deduplicate modules across floors into a schedule.

Modules with identical dimensions, rotation and attachments are the same
product no matter where they stand.  The engine groups them by signature,
detects how many floors each configuration is stacked over, and names the
result ``M1, M2, ...`` in a deterministic order.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from modplan.models.element import Balcony, BathroomPod, Module, Opening
from modplan.models.floor import Building, Floor
from modplan.schedule.report import CorridorRow, ScheduleReport, ScheduleRow
from modplan.schedule.signature import module_signature

logger = logging.getLogger(__name__)


@dataclass
class _Configuration:
    module: Module
    openings: list[Opening]
    balconies: list[Balcony]
    pods: list[BathroomPod]
    base_z: int
    floor_ids: list[str] = field(default_factory=list)


def _attachments(floor: Floor, module_id: str) -> tuple[list[Opening], list[Balcony], list[BathroomPod]]:
    openings = sorted(
        (o for o in floor.openings if o.module_id == module_id),
        key=lambda o: (int(o.wall_side), o.distance_along_wall),
    )
    balconies = sorted(
        (b for b in floor.balconies if b.module_id == module_id),
        key=lambda b: (int(b.wall_side), b.distance_along_wall),
    )
    pods = sorted(
        (p for p in floor.bathroom_pods if p.module_id == module_id),
        key=lambda p: (p.x_offset, p.y_offset),
    )
    return openings, balconies, pods


class ModuleSignatureEngine:
    """Build a :class:`ScheduleReport` from a building.  Read-only."""

    def configurations(self, building: Building) -> dict[str, _Configuration]:
        """Unique module configurations keyed by signature, in discovery order."""
        bases = building.base_heights()
        configs: dict[str, _Configuration] = {}

        for floor in building.floors:
            for module in floor.modules:
                openings, balconies, pods = _attachments(floor, module.id)
                signature = module_signature(module, openings, balconies, pods)
                z = bases[floor.id] + module.z_offset

                existing = configs.get(signature)
                if existing is None:
                    configs[signature] = _Configuration(module, openings, balconies, pods, z, [floor.id])
                    continue
                if floor.id not in existing.floor_ids:
                    existing.floor_ids.append(floor.id)
                if z < existing.base_z:
                    existing.module = module
                    existing.openings, existing.balconies, existing.pods = openings, balconies, pods
                    existing.base_z = z

        return configs

    def build(self, building: Building) -> ScheduleReport:
        configs = self.configurations(building)
        ordered = sorted(
            configs.items(),
            key=lambda item: (item[1].base_z, item[1].module.x0, item[1].module.y0),
        )

        rows: list[ScheduleRow] = []
        for index, (signature, config) in enumerate(ordered, start=1):
            rows.extend(self._module_rows(f"M{index}", signature, config))

        corridors = self._corridor_rows(building)
        logger.debug(
            "Schedule built: %d modules, %d unique, %d corridors",
            sum(len(f.modules) for f in building.floors), len(ordered), len(corridors),
        )
        return ScheduleReport(rows=rows, corridors=corridors, floor_count=len(building.floors))

    def _module_rows(self, name: str, signature: str, config: _Configuration) -> list[ScheduleRow]:
        module = config.module
        rows = [ScheduleRow(
            type="module",
            name=name,
            width=module.width,
            length=module.length,
            height=module.height,
            x0=module.x0,
            y0=module.y0,
            z_offset=config.base_z,
            rotation=module.rotation,
            stacked_floors=len(config.floor_ids),
            signature=signature,
        )]

        for opening in config.openings:
            rows.append(ScheduleRow(
                type="opening",
                identifier=str(int(opening.wall_side)),
                width=opening.width,
                length=opening.height,
                x0=opening.distance_along_wall,
                y0=opening.y_offset,
                wall_side=int(opening.wall_side),
            ))
        for number, balcony in enumerate(config.balconies, start=1):
            rows.append(ScheduleRow(
                type="balcony",
                identifier=f"BC{number}",
                width=balcony.width,
                length=balcony.length,
                x0=balcony.distance_along_wall,
                wall_side=int(balcony.wall_side),
            ))
        for number, pod in enumerate(config.pods, start=1):
            rows.append(ScheduleRow(
                type="bathroom_pod",
                identifier=f"BPF{number}",
                width=pod.width,
                length=pod.length,
                x0=pod.x_offset,
                y0=pod.y_offset,
            ))
        return rows

    def _corridor_rows(self, building: Building) -> list[CorridorRow]:
        rows: list[CorridorRow] = []
        for floor_number, floor in enumerate(building.floors, start=1):
            for corridor in floor.corridors:
                rows.append(CorridorRow(
                    name=f"C{len(rows) + 1}",
                    direction=corridor.direction.capitalize(),
                    floor=floor_number,
                    x1=corridor.x1,
                    y1=corridor.y1,
                    x2=corridor.x2,
                    y2=corridor.y2,
                ))
        return rows
