from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Sequence, Tuple

from .units import Unit, fmt_length, from_canonical, to_canonical

logger = logging.getLogger(__name__)

# Defaults of a fresh planning session (length values are in mm).
DEFAULT_STOCK_COUNT = 10
DEFAULT_STOCK_LENGTH = 2000.0
DEFAULT_KERF = 3.2
DEFAULT_CUT_LENGTH = 100.0
DEFAULT_CUTS = ((1500.0, 6),)


@dataclass(frozen=True)
class CutRequest:
    length: float
    quantity: int
    label: str = ""


@dataclass(frozen=True)
class StockSpecification:
    length: float
    max_bars: int


@dataclass(frozen=True)
class Kerf:
    width: float = 0.0


@dataclass
class CutPlan:
    """Cuts placed on one stock bar, in the order they are cut.

    Kerf is charged to every placed cut, including the last one on the bar,
    so ``waste`` is slightly conservative: a bar whose final piece runs to
    the very end still reports one kerf width as lost.
    """

    cuts: List[float] = field(default_factory=list)
    waste: float = 0.0


@dataclass(frozen=True)
class PlanInputs:
    """Snapshot of everything the user entered, in display units."""

    stock_count: int = DEFAULT_STOCK_COUNT
    stock_length: float = DEFAULT_STOCK_LENGTH
    length_unit: Unit = Unit.MM
    kerf_width: float = DEFAULT_KERF
    kerf_unit: Unit = Unit.MM
    cuts: Tuple[CutRequest, ...] = tuple(CutRequest(length=l, quantity=q) for l, q in DEFAULT_CUTS)


@dataclass(frozen=True)
class LengthTally:
    length: float
    made: int
    needed: int


@dataclass
class PlanSummary:
    tallies: List[LengthTally]
    total_made: int
    total_needed: int
    total_waste: float
    total_kerf_loss: float
    bars_used: int
    bar_count: int
    utilization_pct: float

    def as_dict(self) -> Dict[str, Any]:
        return {
            "bars_used": self.bars_used,
            "bar_count": self.bar_count,
            "total_cuts_made": self.total_made,
            "total_cuts_needed": self.total_needed,
            "total_waste": float(self.total_waste),
            "total_kerf_loss": float(self.total_kerf_loss),
            "utilization_pct": float(self.utilization_pct),
        }


@dataclass
class _WorkingCut:
    length: float
    effective: float
    quantity: int


def clamp_count(value: Any) -> int:
    """Coerce a bar count to an int >= 1 (blank or non-positive -> 1)."""
    try:
        iv = int(float(str(value).strip()))
    except (TypeError, ValueError, OverflowError):
        return 1
    return iv if iv >= 1 else 1


def clamp_quantity(value: Any) -> int:
    return clamp_count(value)


def clamp_length(value: Any) -> float:
    try:
        fv = float(str(value).strip())
    except (TypeError, ValueError, OverflowError):
        return 1.0
    if not math.isfinite(fv) or fv <= 0:
        return 1.0
    return fv


def clamp_kerf(value: Any) -> float:
    try:
        fv = float(str(value).strip())
    except (TypeError, ValueError, OverflowError):
        return 0.0
    if not math.isfinite(fv) or fv < 0:
        return 0.0
    return fv


def _check_preconditions(stock: StockSpecification, kerf: Kerf, requests: Sequence[CutRequest]) -> None:
    if stock.length <= 0:
        raise ValueError(f"stock length must be > 0, got {stock.length!r}")
    if stock.max_bars < 1:
        raise ValueError(f"max_bars must be >= 1, got {stock.max_bars!r}")
    if kerf.width < 0:
        raise ValueError(f"kerf width must be >= 0, got {kerf.width!r}")
    for i, r in enumerate(requests):
        if r.length <= 0:
            raise ValueError(f"cut #{i + 1}: length must be > 0, got {r.length!r}")
        if r.quantity < 0:
            raise ValueError(f"cut #{i + 1}: quantity must be >= 0, got {r.quantity!r}")


def compute_plan(stock: StockSpecification, kerf: Kerf, requests: Sequence[CutRequest]) -> List[CutPlan]:
    '''
    Greedy largest-piece-first fill, one bar at a time.

    - All lengths are in canonical units (mm).
    - Every placed cut consumes ``length + kerf.width`` of the bar.
    - The priority order is fixed once (descending effective length, ties
      in input order) and reused for every bar.
    - Always returns exactly ``stock.max_bars`` plans; demand that does not
      fit (too long, or not enough bars) is simply left unplaced.
    - No rounding: remaining length is reduced by repeated float
      subtraction, so a fit that is exact only in decimal arithmetic
      (3 x 333.4 on a 1000.2 bar) can miss its last piece.
    '''
    _check_preconditions(stock, kerf, requests)

    # sorted() is stable, so equal lengths keep their input order.
    working = sorted(
        (_WorkingCut(length=float(r.length), effective=float(r.length) + kerf.width, quantity=int(r.quantity)) for r in requests),
        key=lambda w: w.effective,
        reverse=True,
    )

    plans: List[CutPlan] = []
    while len(plans) < stock.max_bars and any(w.quantity > 0 for w in working):
        remaining = float(stock.length)
        cuts: List[float] = []
        for w in working:
            while w.quantity > 0 and remaining >= w.effective:
                cuts.append(w.length)
                remaining -= w.effective
                w.quantity -= 1
        plans.append(CutPlan(cuts=cuts, waste=remaining))

        if not cuts:
            # Nothing left fits on a fresh bar, so no later bar can take it either.
            logger.debug(
                "Bar %d: none of the %d outstanding cuts fit", len(plans), sum(w.quantity for w in working)
            )
            break

    used = len(plans)
    while len(plans) < stock.max_bars:
        plans.append(CutPlan(cuts=[], waste=float(stock.length)))

    logger.debug(
        "Planned %d of %d bars, %d cuts left unplaced",
        used,
        stock.max_bars,
        sum(w.quantity for w in working),
    )
    return plans


def plan_cuts(inputs: PlanInputs) -> List[CutPlan]:
    """Plan from display-unit inputs and return plans in ``inputs.length_unit``."""
    unit = inputs.length_unit
    stock = StockSpecification(length=to_canonical(inputs.stock_length, unit), max_bars=int(inputs.stock_count))
    kerf = Kerf(width=to_canonical(inputs.kerf_width, inputs.kerf_unit))
    requests = [
        CutRequest(length=to_canonical(c.length, unit), quantity=c.quantity, label=c.label) for c in inputs.cuts
    ]

    plans = compute_plan(stock, kerf, requests)
    return [
        CutPlan(cuts=[from_canonical(c, unit) for c in p.cuts], waste=from_canonical(p.waste, unit)) for p in plans
    ]


def find_oversized(inputs: PlanInputs) -> List[int]:
    """Indices of cut rows that are longer than the stock and can never be placed."""
    stock_mm = to_canonical(inputs.stock_length, inputs.length_unit)
    return [i for i, c in enumerate(inputs.cuts) if to_canonical(c.length, inputs.length_unit) > stock_mm]


def kerf_in_length_unit(inputs: PlanInputs) -> float:
    return from_canonical(to_canonical(inputs.kerf_width, inputs.kerf_unit), inputs.length_unit)


def summarize_plans(plans: Sequence[CutPlan], inputs: PlanInputs) -> PlanSummary:
    # Group requested quantities by distinct length, keeping first-seen order.
    needed: Dict[float, int] = {}
    for c in inputs.cuts:
        key = next((k for k in needed if math.isclose(k, c.length, rel_tol=1e-9)), float(c.length))
        needed[key] = needed.get(key, 0) + int(c.quantity)

    tallies: List[LengthTally] = []
    for length, qty in needed.items():
        made = sum(1 for p in plans for cut in p.cuts if math.isclose(cut, length, rel_tol=1e-9))
        tallies.append(LengthTally(length=length, made=made, needed=qty))

    kerf = kerf_in_length_unit(inputs)
    used = [p for p in plans if p.cuts]
    total_made = sum(len(p.cuts) for p in plans)
    used_stock = len(used) * float(inputs.stock_length)
    used_material = sum(sum(p.cuts) + kerf * len(p.cuts) for p in used)
    utilization = (used_material / used_stock * 100.0) if used_stock else 0.0

    return PlanSummary(
        tallies=tallies,
        total_made=total_made,
        total_needed=sum(int(c.quantity) for c in inputs.cuts),
        total_waste=sum(p.waste for p in plans),
        total_kerf_loss=kerf * total_made,
        bars_used=len(used),
        bar_count=len(plans),
        utilization_pct=utilization,
    )


def summary_lines(summary: PlanSummary, unit: Unit) -> List[str]:
    """Human readable summary, one statement per line."""
    u = unit.value
    lines = [f"{fmt_length(t.length)}{u} cuts: {t.made} of {t.needed} needed" for t in summary.tallies]
    lines.append(f"Total cuts: {summary.total_made} of {summary.total_needed} needed")
    lines.append(f"Total waste: {fmt_length(summary.total_waste)}{u}")
    lines.append(f"Kerf loss: {fmt_length(summary.total_kerf_loss)}{u}")
    lines.append(f"Extrusions: {summary.bars_used} of {summary.bar_count} used")
    return lines
