from __future__ import annotations

from enum import Enum
from typing import Dict


class Unit(str, Enum):
    MM = "mm"
    CM = "cm"
    M = "m"
    IN = "in"
    FT = "ft"
    YD = "yd"


# Everything is computed internally in millimetres.
CANONICAL_UNIT = Unit.MM

MM_PER_UNIT: Dict[Unit, float] = {
    Unit.MM: 1.0,
    Unit.CM: 10.0,
    Unit.M: 1000.0,
    Unit.IN: 25.4,
    Unit.FT: 304.8,
    Unit.YD: 914.4,
}


def parse_unit(text: str) -> Unit:
    """Look up a unit by its symbol ("mm", "In", " ft ").

    Raises ValueError for anything that is not a supported symbol.
    """
    return Unit(str(text).strip().lower())


def to_canonical(value: float, unit: Unit) -> float:
    return float(value) * MM_PER_UNIT[unit]


def from_canonical(value: float, unit: Unit) -> float:
    return float(value) / MM_PER_UNIT[unit]


def fmt_length(value: float, decimals: int = 3) -> str:
    # Display lengths without trailing zeros ("1500", "12.5").
    if abs(value - round(value)) < 1e-9:
        return str(int(round(value)))
    return f"{value:.{decimals}f}".rstrip("0").rstrip(".")
