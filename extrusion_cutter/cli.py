"""Headless command line for the cut calculator.

Prints one line per stock bar followed by the summary, and can write the same
CSV and PDF exports as the desktop app.
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import List, Optional, Sequence

from .io_utils import export_plan_csv, load_cuts_table
from .optimizer import (
    DEFAULT_CUTS,
    DEFAULT_KERF,
    DEFAULT_STOCK_COUNT,
    DEFAULT_STOCK_LENGTH,
    CutRequest,
    PlanInputs,
    clamp_count,
    clamp_kerf,
    clamp_length,
    clamp_quantity,
    find_oversized,
    plan_cuts,
    summarize_plans,
    summary_lines,
)
from .pdf_export import export_plan_pdf
from .units import fmt_length, parse_unit

logger = logging.getLogger(__name__)


def parse_cut(text: str) -> CutRequest:
    """Parse ``LENGTHxQTY`` (``1500x6``); a bare length means quantity 1."""
    length_s, sep, qty_s = text.lower().partition("x")
    try:
        length = float(length_s)
        qty = float(qty_s) if sep else 1.0
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid cut {text!r}, expected LENGTHxQTY") from None
    return CutRequest(length=clamp_length(length), quantity=clamp_quantity(qty))


def _unit_arg(text: str):
    try:
        return parse_unit(text)
    except ValueError:
        raise argparse.ArgumentTypeError(f"unknown unit {text!r}") from None


def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="extrusion-cutter-cli",
        description="Plan cuts of linear pieces from fixed-length extrusions.",
    )
    parser.add_argument("--stock-count", default=DEFAULT_STOCK_COUNT, help="Number of extrusions available.")
    parser.add_argument("--stock-length", default=DEFAULT_STOCK_LENGTH, help="Length of one extrusion.")
    parser.add_argument("--unit", type=_unit_arg, default="mm", help="Unit of stock and cut lengths.")
    parser.add_argument("--kerf", default=DEFAULT_KERF, help="Blade width consumed by each cut.")
    parser.add_argument("--kerf-unit", type=_unit_arg, default="mm", help="Unit of the blade width.")
    parser.add_argument(
        "--cut",
        dest="cuts",
        action="append",
        type=parse_cut,
        default=[],
        metavar="LENGTHxQTY",
        help="A cut to produce; may be repeated.",
    )
    parser.add_argument("--cuts-file", help="CSV/XLSX with columns length, qty (optional: label).")
    parser.add_argument("--csv", help="Write the plan to this CSV file.")
    parser.add_argument("--pdf", help="Write the plan to this PDF file.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging.")
    return parser


def build_inputs(args: argparse.Namespace) -> PlanInputs:
    cuts: List[CutRequest] = list(args.cuts)
    if args.cuts_file:
        cuts.extend(load_cuts_table(args.cuts_file))
    if not cuts:
        cuts = [CutRequest(length=l, quantity=q) for l, q in DEFAULT_CUTS]
    return PlanInputs(
        stock_count=clamp_count(args.stock_count),
        stock_length=clamp_length(args.stock_length),
        length_unit=args.unit,
        kerf_width=clamp_kerf(args.kerf),
        kerf_unit=args.kerf_unit,
        cuts=tuple(cuts),
    )


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = create_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        inputs = build_inputs(args)
        plans = plan_cuts(inputs)
    except (OSError, ValueError) as e:
        print(f"error: {e}", file=sys.stderr)
        return 2

    unit = inputs.length_unit.value
    for i in find_oversized(inputs):
        logger.warning("Cut %s%s exceeds extrusion length", fmt_length(inputs.cuts[i].length), unit)

    for i, plan in enumerate(plans, start=1):
        cuts = ", ".join(fmt_length(c) for c in plan.cuts) or "-"
        print(f"{i:>3}. [{cuts}] waste {fmt_length(plan.waste)}{unit}")
    print()
    for line in summary_lines(summarize_plans(plans, inputs), inputs.length_unit):
        print(f"-> {line}")

    try:
        if args.csv:
            export_plan_csv(args.csv, plans, inputs)
        if args.pdf:
            export_plan_pdf(args.pdf, plans, inputs)
    except (OSError, RuntimeError, ValueError) as e:
        print(f"error: {e}", file=sys.stderr)
        return 2
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
