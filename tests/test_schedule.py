"""Tests for module signatures and the building schedule."""

from __future__ import annotations

from modplan.models.element import Balcony, BathroomPod, Corridor, Module, Opening
from modplan.models.floor import Building, Floor
from modplan.schedule.engine import ModuleSignatureEngine
from modplan.schedule.signature import module_signature


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _module(**kw) -> Module:
    fields = {"width": 600, "length": 400, "height": 300}
    fields.update(kw)
    return Module(**fields)


def _floor_with(module: Module, *, height: int = 3000, openings=(), balconies=(), pods=()) -> Floor:
    return Floor(
        height=height,
        modules=[module],
        openings=list(openings),
        balconies=list(balconies),
        bathroom_pods=list(pods),
    )


# ---------------------------------------------------------------------------
# Signature
# ---------------------------------------------------------------------------

class TestSignature:

    def test_bare_module(self):
        assert module_signature(_module()) == "600_400_300_0|"

    def test_placement_is_excluded(self):
        a = _module(x0=0, y0=0, z_offset=0)
        b = _module(x0=5000, y0=7000, z_offset=1200)
        assert module_signature(a) == module_signature(b)

    def test_rotation_is_included(self):
        assert module_signature(_module()) != module_signature(_module(rotation=90))

    def test_sensitive_to_attachment_width(self):
        m = _module()
        narrow = Opening(module_id=m.id, wall_side=1, width=900, height=2100)
        wide = Opening(module_id=m.id, wall_side=1, width=1000, height=2100)
        assert module_signature(m, [narrow]) != module_signature(m, [wide])

    def test_tokens_sorted_and_joined(self):
        m = _module()
        opening = Opening(module_id=m.id, wall_side=2, width=900, height=2100, distance_along_wall=10, y_offset=5)
        balcony = Balcony(module_id=m.id, wall_side=3, width=500, length=1000, distance_along_wall=20)
        pod = BathroomPod(module_id=m.id, width=200, length=250, x_offset=50, y_offset=100)

        signature = module_signature(m, [opening], [balcony], [pod])

        assert signature == "600_400_300_0|b_3_500_1000_20|bp_200_250_50_100|o_2_900_2100_10_5"

    def test_attachment_order_does_not_matter(self):
        m = _module()
        a = Opening(module_id=m.id, wall_side=1, width=100, height=100)
        b = Opening(module_id=m.id, wall_side=3, width=100, height=100)
        assert module_signature(m, [a, b]) == module_signature(m, [b, a])


# ---------------------------------------------------------------------------
# Stacking and naming
# ---------------------------------------------------------------------------

class TestStacking:

    def test_identical_modules_on_three_floors(self):
        floors = []
        for _ in range(3):
            module = _module(x0=0, y0=0)
            opening = Opening(module_id=module.id, wall_side=1, width=900, height=200, distance_along_wall=0)
            floors.append(_floor_with(module, openings=[opening]))

        report = ModuleSignatureEngine().build(Building(floors=floors))

        assert len(report.module_rows) == 1
        row = report.module_rows[0]
        assert row.name == "M1"
        assert row.stacked_floors == 3
        assert row.z_offset == 0

    def test_representative_is_lowest(self):
        lower = _module(x0=3000)
        upper = _module(x0=0)
        building = Building(floors=[_floor_with(lower), _floor_with(upper)])

        row = ModuleSignatureEngine().build(building).module_rows[0]

        assert row.x0 == 3000
        assert row.stacked_floors == 2

    def test_z_offset_includes_module_offset(self):
        building = Building(floors=[_floor_with(_module(z_offset=250), height=3100)])
        assert ModuleSignatureEngine().build(building).module_rows[0].z_offset == 250

    def test_second_floor_base_height(self):
        building = Building(floors=[
            _floor_with(_module(width=700), height=3100),
            _floor_with(_module(width=800), height=3100),
        ])
        rows = ModuleSignatureEngine().build(building).module_rows
        assert [r.z_offset for r in rows] == [0, 3100]

    def test_stacked_counts_distinct_floors(self):
        floor = Floor(modules=[_module(x0=0), _module(x0=1000)])
        row = ModuleSignatureEngine().build(Building(floors=[floor])).module_rows[0]
        assert row.stacked_floors == 1

    def test_different_attachment_breaks_stack(self):
        a, b = _module(), _module()
        floors = [
            _floor_with(a, openings=[Opening(module_id=a.id, wall_side=1, width=900, height=200)]),
            _floor_with(b, openings=[Opening(module_id=b.id, wall_side=1, width=1000, height=200)]),
        ]
        assert len(ModuleSignatureEngine().build(Building(floors=floors)).module_rows) == 2


class TestNaming:

    def _building(self) -> Building:
        ground = Floor(height=3000, modules=[
            _module(width=1000, x0=5000),
            _module(width=1100, x0=0),
        ])
        first = Floor(height=3000, modules=[
            _module(width=1200, x0=2000),
            _module(width=1300, x0=1000),
        ])
        return Building(floors=[ground, first])

    def test_ordered_by_z_then_x(self):
        rows = ModuleSignatureEngine().build(self._building()).module_rows
        assert [(r.name, r.width) for r in rows] == [("M1", 1100), ("M2", 1000), ("M3", 1300), ("M4", 1200)]
        assert [r.z_offset for r in rows] == [0, 0, 3000, 3000]

    def test_naming_is_deterministic(self):
        building = self._building()
        engine = ModuleSignatureEngine()
        first = [(r.name, r.signature) for r in engine.build(building).module_rows]
        second = [(r.name, r.signature) for r in engine.build(building).module_rows]
        assert first == second

    def test_y_breaks_x_ties(self):
        floor = Floor(modules=[_module(width=700, y0=500), _module(width=800, y0=0)])
        rows = ModuleSignatureEngine().build(Building(floors=[floor])).module_rows
        assert [r.width for r in rows] == [800, 700]


# ---------------------------------------------------------------------------
# Sub-rows
# ---------------------------------------------------------------------------

class TestSubRows:

    def _building(self) -> Building:
        first = _module(width=4000, length=3000, height=2800)
        second = _module(width=5000, length=3000, height=2800, x0=8000)
        floor = Floor(
            modules=[first, second],
            openings=[
                Opening(module_id=first.id, wall_side=3, width=900, height=2100, distance_along_wall=100),
                Opening(module_id=first.id, wall_side=1, width=900, height=1200, distance_along_wall=500),
            ],
            balconies=[
                Balcony(module_id=first.id, wall_side=3, width=1000, length=1200, distance_along_wall=2000),
                Balcony(module_id=first.id, wall_side=1, width=1500, length=1200, distance_along_wall=0),
                Balcony(module_id=second.id, wall_side=1, width=1000, length=1000),
            ],
            bathroom_pods=[
                BathroomPod(module_id=first.id, width=1000, length=1000, x_offset=2000),
                BathroomPod(module_id=first.id, width=1200, length=1000, x_offset=0),
            ],
        )
        return Building(floors=[floor])

    def test_row_sequence(self):
        report = ModuleSignatureEngine().build(self._building())
        labels = [(r.type, r.label) for r in report.rows]
        assert labels == [
            ("module", "M1"),
            ("opening", "1"),
            ("opening", "3"),
            ("balcony", "BC1"),
            ("balcony", "BC2"),
            ("bathroom_pod", "BPF1"),
            ("bathroom_pod", "BPF2"),
            ("module", "M2"),
            ("balcony", "BC1"),
        ]

    def test_attachment_rows_carry_local_placement(self):
        rows = ModuleSignatureEngine().build(self._building()).rows
        opening = rows[1]
        assert (opening.width, opening.length, opening.x0, opening.wall_side) == (900, 1200, 500, 1)
        balcony = rows[3]
        assert (balcony.width, balcony.length, balcony.x0) == (1500, 1200, 0)
        pod = rows[5]
        assert (pod.width, pod.x0) == (1200, 0)


# ---------------------------------------------------------------------------
# Corridors and output
# ---------------------------------------------------------------------------

class TestCorridorsAndReport:

    def _building(self) -> Building:
        ground = Floor(corridors=[Corridor(x1=9000, y1=1000, x2=0, y2=0)])
        first = Floor(corridors=[Corridor(x1=0, y1=0, x2=1500, y2=8000)])
        return Building(floors=[ground, first])

    def test_corridor_rows(self):
        corridors = ModuleSignatureEngine().build(self._building()).corridors
        assert [(c.name, c.direction, c.floor) for c in corridors] == [
            ("C1", "Horizontal", 1),
            ("C2", "Vertical", 2),
        ]
        assert (corridors[0].x1, corridors[0].x2) == (0, 9000)

    def test_to_dict(self):
        building = self._building()
        building.floors[0].modules.append(_module())
        data = ModuleSignatureEngine().build(building).to_dict()
        assert data["floor_count"] == 2
        assert data["module_count"] == 1
        assert data["rows"][0]["name"] == "M1"
        assert "signature" not in data["rows"][0]
        assert len(data["corridors"]) == 2

    def test_to_markdown(self):
        building = self._building()
        building.floors[0].modules.append(_module())
        md = ModuleSignatureEngine().build(building).to_markdown()
        assert "# Building Module Schedule" in md
        assert "| **M1** | 600 | 400 | 300 |" in md
        assert "| C2 | Vertical | 2 |" in md

    def test_empty_building(self):
        report = ModuleSignatureEngine().build(Building())
        assert report.rows == []
        md = report.to_markdown()
        assert "No modules found" in md
        assert "No corridors found" in md

    def test_row_lookup(self):
        building = Building(floors=[Floor(modules=[_module()])])
        report = ModuleSignatureEngine().build(building)
        assert report.row("M1").width == 600
        assert report.row("M9") is None
