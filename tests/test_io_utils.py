from __future__ import annotations

import pandas as pd
import pytest

from extrusion_cutter.io_utils import export_plan_csv, load_cuts_table
from extrusion_cutter.optimizer import CutRequest, PlanInputs, plan_cuts
from extrusion_cutter.units import Unit


def test_load_cuts_csv_normalizes_columns_and_clamps(tmp_path):
    path = tmp_path / "cuts.csv"
    path.write_text(" Length ,QTY,Label\n1500,6,rail\n300,0,\n")

    assert load_cuts_table(str(path)) == [
        CutRequest(length=1500.0, quantity=6, label="rail"),
        CutRequest(length=300.0, quantity=1, label=""),
    ]


def test_load_cuts_accepts_quantity_alias_without_label(tmp_path):
    path = tmp_path / "cuts.csv"
    path.write_text("length,quantity\n250.5,2\n")

    assert load_cuts_table(str(path)) == [CutRequest(length=250.5, quantity=2)]


def test_load_cuts_xlsx(tmp_path):
    path = tmp_path / "cuts.xlsx"
    pd.DataFrame({"length": [800, 120.5], "qty": [2, 4], "label": ["post", None]}).to_excel(path, index=False)

    assert load_cuts_table(str(path)) == [
        CutRequest(length=800.0, quantity=2, label="post"),
        CutRequest(length=120.5, quantity=4, label=""),
    ]


def test_load_cuts_missing_columns(tmp_path):
    path = tmp_path / "cuts.csv"
    path.write_text("size,count\n100,1\n")

    with pytest.raises(ValueError, match="length, qty"):
        load_cuts_table(str(path))


def test_load_cuts_invalid_value(tmp_path):
    path = tmp_path / "cuts.csv"
    path.write_text("length,qty\nabc,1\n")

    with pytest.raises(ValueError, match="Invalid length"):
        load_cuts_table(str(path))


def test_load_cuts_unsupported_extension(tmp_path):
    path = tmp_path / "cuts.txt"
    path.write_text("length,qty\n100,1\n")

    with pytest.raises(ValueError, match="Unsupported file type"):
        load_cuts_table(str(path))


def test_export_plan_csv(tmp_path):
    inputs = PlanInputs()
    plans = plan_cuts(inputs)
    path = tmp_path / "plan.csv"

    export_plan_csv(str(path), plans, inputs)

    df = pd.read_csv(path, dtype=str)
    assert len(df) == 10
    assert list(df.columns) == ["bar_no", "stock_length_mm", "cuts_mm", "cut_count", "waste_mm"]
    assert df.loc[0, "cuts_mm"] == "1500"
    assert float(df.loc[0, "waste_mm"]) == pytest.approx(496.8)
    assert df.loc[9, "cut_count"] == "0"

    summary = pd.read_csv(str(path) + ".summary.csv", dtype=str).set_index("item")["value"]
    assert summary["total_cuts_made"] == "6"
    assert summary["bars_used"] == "6"
    assert summary["cuts_1500mm"] == "6 of 6"


def test_export_plan_csv_uses_display_unit_in_headers(tmp_path):
    inputs = PlanInputs(stock_count=2, stock_length=8, length_unit=Unit.FT, kerf_width=0.125, kerf_unit=Unit.IN,
                        cuts=(CutRequest(length=3, quantity=2),))
    path = tmp_path / "plan.csv"

    export_plan_csv(str(path), plan_cuts(inputs), inputs)

    df = pd.read_csv(path, dtype=str)
    assert "cuts_ft" in df.columns
    assert df.loc[0, "cuts_ft"] == "3; 3"


def test_export_plan_csv_keeps_metre_precision(tmp_path):
    inputs = PlanInputs(stock_count=1, stock_length=2.45, length_unit=Unit.M,
                        cuts=(CutRequest(length=1.25, quantity=1), CutRequest(length=1.15, quantity=1)))
    path = tmp_path / "plan.csv"

    export_plan_csv(str(path), plan_cuts(inputs), inputs)

    df = pd.read_csv(path, dtype=str)
    assert df.loc[0, "stock_length_m"] == "2.45"
    assert df.loc[0, "cuts_m"] == "1.25; 1.15"

    summary = pd.read_csv(str(path) + ".summary.csv", dtype=str).set_index("item")["value"]
    assert summary["cuts_1.25m"] == "1 of 1"
    assert summary["cuts_1.15m"] == "1 of 1"
    assert summary["total_cuts_made"] == "2"
