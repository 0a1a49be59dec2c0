from __future__ import annotations

import re

from extrusion_cutter.optimizer import CutRequest, PlanInputs, plan_cuts
from extrusion_cutter.pdf_export import export_plan_pdf
from extrusion_cutter.units import Unit


def _page_count(data: bytes) -> int:
    m = re.search(rb"/Count (\d+)", data)
    assert m is not None
    return int(m.group(1))


def test_single_page_plan(tmp_path):
    inputs = PlanInputs()
    path = tmp_path / "plan.pdf"

    export_plan_pdf(str(path), plan_cuts(inputs), inputs)

    data = path.read_bytes()
    assert data.startswith(b"%PDF")
    assert _page_count(data) == 1


def test_many_bars_flow_onto_more_pages(tmp_path):
    inputs = PlanInputs(
        stock_count=60,
        cuts=(CutRequest(length=450, quantity=150, label="rail"), CutRequest(length=35, quantity=40)),
    )
    path = tmp_path / "plan.pdf"

    export_plan_pdf(str(path), plan_cuts(inputs), inputs, title="Cut plan - rails")

    assert _page_count(path.read_bytes()) >= 2


def test_mixed_units_and_unplaceable_cut(tmp_path):
    inputs = PlanInputs(
        stock_count=3,
        stock_length=6,
        length_unit=Unit.FT,
        kerf_width=0.125,
        kerf_unit=Unit.IN,
        cuts=(CutRequest(length=7, quantity=1), CutRequest(length=0.5, quantity=30)),
    )
    path = tmp_path / "plan.pdf"

    export_plan_pdf(str(path), plan_cuts(inputs), inputs)

    assert path.read_bytes().startswith(b"%PDF")
