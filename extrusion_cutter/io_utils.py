from __future__ import annotations

import logging
from typing import List, Sequence

import pandas as pd

from .optimizer import (
    CutPlan,
    CutRequest,
    PlanInputs,
    clamp_length,
    clamp_quantity,
    kerf_in_length_unit,
    summarize_plans,
)
from .units import fmt_length

logger = logging.getLogger(__name__)


def _parse_float(value, field: str) -> float:
    """Parse a numeric length from CSV/XLSX, clamped to a positive value."""
    if pd.isna(value):
        return clamp_length(None)
    try:
        fv = float(str(value).strip())
    except ValueError as e:
        raise ValueError(f"Invalid {field} value: {value!r}") from e
    return clamp_length(fv)


def _parse_int(value, field: str) -> int:
    if pd.isna(value):
        return clamp_quantity(None)
    try:
        fv = float(str(value).strip())
    except ValueError as e:
        raise ValueError(f"Invalid {field} value: {value!r}") from e
    return clamp_quantity(fv)


def load_cuts_table(path: str) -> List[CutRequest]:
    df = _read_table(path)
    df = _normalize_columns(df)
    if "quantity" in df.columns and "qty" not in df.columns:
        df = df.rename(columns={"quantity": "qty"})
    if "length" not in df.columns or "qty" not in df.columns:
        raise ValueError("Cuts file must have columns: length, qty (optional: label)")
    if "label" not in df.columns:
        df["label"] = ""
    items: List[CutRequest] = []
    for _, row in df.iterrows():
        label = "" if pd.isna(row["label"]) else str(row["label"])
        items.append(
            CutRequest(length=_parse_float(row["length"], "length"), quantity=_parse_int(row["qty"], "qty"), label=label)
        )
    logger.info("Loaded %d cut rows from %s", len(items), path)
    return items


def export_plan_csv(path: str, plans: Sequence[CutPlan], inputs: PlanInputs) -> None:
    unit = inputs.length_unit.value

    rows = []
    for i, plan in enumerate(plans, start=1):
        rows.append(
            {
                "bar_no": i,
                f"stock_length_{unit}": fmt_length(inputs.stock_length),
                f"cuts_{unit}": "; ".join(fmt_length(c) for c in plan.cuts),
                "cut_count": len(plan.cuts),
                f"waste_{unit}": round(plan.waste, 3),
            }
        )
    pd.DataFrame(rows).to_csv(path, index=False)

    summary = summarize_plans(plans, inputs)
    totals = summary.as_dict()
    totals[f"kerf_{unit}"] = kerf_in_length_unit(inputs)
    summary_rows = [{"item": k, "value": v} for k, v in totals.items()]
    for t in summary.tallies:
        summary_rows.append({"item": f"cuts_{fmt_length(t.length)}{unit}", "value": f"{t.made} of {t.needed}"})
    pd.DataFrame(summary_rows).to_csv(path + ".summary.csv", index=False)
    logger.info("Exported %d bars to %s", len(plans), path)


def _read_table(path: str) -> pd.DataFrame:
    p = path.lower()
    if p.endswith(".csv"):
        return pd.read_csv(path)
    if p.endswith(".xlsx") or p.endswith(".xls"):
        return pd.read_excel(path)
    raise ValueError("Unsupported file type. Use .csv or .xlsx")


def _normalize_columns(df: pd.DataFrame) -> pd.DataFrame:
    df = df.copy()
    df.columns = [str(c).strip().lower() for c in df.columns]
    return df
