"""Schedule rows and the ScheduleReport with dict and Markdown output."""

from __future__ import annotations

from typing import Any, Literal, Optional

from pydantic import BaseModel


class ScheduleRow(BaseModel):
    """One line of the module schedule.

    Module rows carry ``name`` (``M1``...) and ``stacked_floors``.  Sub-rows
    for attachments carry an ``identifier`` instead: the wall side for
    openings, ``BC1``... for balconies and ``BPF1``... for bathroom pods.
    Attachment rows reuse ``x0``/``y0`` for their local placement.
    """

    type: Literal["module", "opening", "balcony", "bathroom_pod"]
    name: str = ""
    identifier: str = ""
    width: int = 0
    length: int = 0
    height: int = 0
    x0: int = 0
    y0: int = 0
    z_offset: int = 0
    rotation: int = 0
    stacked_floors: int = 0
    wall_side: Optional[int] = None
    signature: str = ""

    @property
    def label(self) -> str:
        return self.name or self.identifier


class CorridorRow(BaseModel):
    name: str
    direction: Literal["Horizontal", "Vertical"]
    floor: int
    x1: int
    y1: int
    x2: int
    y2: int


class ScheduleReport:
    """Module and corridor schedule for a whole building."""

    def __init__(
        self,
        rows: list[ScheduleRow] | None = None,
        corridors: list[CorridorRow] | None = None,
        floor_count: int = 0,
    ) -> None:
        self.rows = rows or []
        self.corridors = corridors or []
        self.floor_count = floor_count

    @property
    def module_rows(self) -> list[ScheduleRow]:
        return [r for r in self.rows if r.type == "module"]

    def row(self, name: str) -> Optional[ScheduleRow]:
        for r in self.module_rows:
            if r.name == name:
                return r
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "floor_count": self.floor_count,
            "module_count": len(self.module_rows),
            "rows": [r.model_dump(exclude={"signature"}) for r in self.rows],
            "corridors": [c.model_dump() for c in self.corridors],
        }

    def to_markdown(self) -> str:
        lines: list[str] = []

        lines.append("# Building Module Schedule")
        lines.append("")
        lines.append(f"**Floors:** {self.floor_count}")
        lines.append(f"**Unique modules:** {len(self.module_rows)}")
        lines.append("")

        lines.append("## Modules")
        lines.append("")
        if self.rows:
            lines.append("| Module | Width | Length | Height | X0 | Y0 | Z Offset | Rotation | Stacked |")
            lines.append("|--------|-------|--------|--------|----|----|----------|----------|---------|")
            for r in self.rows:
                if r.type == "module":
                    lines.append(
                        f"| **{r.name}** | {r.width} | {r.length} | {r.height} | {r.x0} | {r.y0} "
                        f"| {r.z_offset} | {r.rotation} | {r.stacked_floors} |"
                    )
                else:
                    lines.append(
                        f"| {r.identifier} | {r.width} | {r.length} | {r.height} | {r.x0} | {r.y0} "
                        f"| {r.z_offset} | {r.rotation} | |"
                    )
        else:
            lines.append("No modules found in any floor.")
        lines.append("")

        lines.append("## Corridors")
        lines.append("")
        if self.corridors:
            lines.append("| Corridor | Direction | Floor | X1 | Y1 | X2 | Y2 |")
            lines.append("|----------|-----------|-------|----|----|----|----|")
            for c in self.corridors:
                lines.append(f"| {c.name} | {c.direction} | {c.floor} | {c.x1} | {c.y1} | {c.x2} | {c.y2} |")
        else:
            lines.append("No corridors found in any floor.")
        lines.append("")

        return "\n".join(lines)
