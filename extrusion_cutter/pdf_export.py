from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Sequence

from .optimizer import CutPlan, PlanInputs, kerf_in_length_unit, summarize_plans, summary_lines
from .units import fmt_length


# Lazy imports so the app can run without reportlab until PDF export is used.
def _string_width(text: str, font_name: str, font_size: float) -> float:
    from reportlab.pdfbase.pdfmetrics import stringWidth
    return stringWidth(text, font_name, font_size)


@dataclass
class _PageLayout:
    page_w: float
    page_h: float
    margin: float
    header_area_h: float
    footer_area_h: float
    index_col_w: float
    bar_h: float
    bar_gap: float
    font_size: float
    line_h: float
    pad_x: float


def _truncate(text: str, font_name: str, font_size: float, max_w: float) -> str:
    """Truncate a string with ellipsis to fit within max_w points."""
    if not text:
        return ""
    if _string_width(text, font_name, font_size) <= max_w:
        return text
    ell = "..."
    if _string_width(ell, font_name, font_size) >= max_w:
        return ""
    # Binary search a cut length
    lo, hi = 0, len(text)
    while lo < hi:
        mid = (lo + hi) // 2
        cand = text[:mid] + ell
        if _string_width(cand, font_name, font_size) <= max_w:
            lo = mid + 1
        else:
            hi = mid
    return text[: max(0, lo - 1)] + ell


def export_plan_pdf(
    path: str,
    plans: Sequence[CutPlan],
    inputs: PlanInputs,
    *,
    title: str = "Cut plan",
) -> None:
    """Export the cut plan as a bar chart PDF.

    Layout:
      - One horizontal bar per stock bar, numbered from 1
      - Each cut is a segment proportional to its length; kerf is drawn as a
        thin dark gap after every cut
      - Remaining waste is a shaded segment at the end of the bar
      - Bars flow onto additional pages; the summary follows the last bar
    """

    try:
        from reportlab.lib import colors
        from reportlab.lib.pagesizes import A4, landscape
        from reportlab.pdfgen.canvas import Canvas
    except Exception as e:
        raise RuntimeError(
            "PDF export requires the 'reportlab' package. Install it with: pip install reportlab"
        ) from e

    c = Canvas(path, pagesize=landscape(A4))
    page_w, page_h = landscape(A4)

    font_size = 8.0
    layout = _PageLayout(
        page_w=page_w,
        page_h=page_h,
        margin=36.0,
        header_area_h=40.0,
        footer_area_h=18.0,
        index_col_w=28.0,
        bar_h=18.0,
        bar_gap=6.0,
        font_size=font_size,
        line_h=font_size + 4.0,
        pad_x=2.0,
    )

    unit = inputs.length_unit.value
    stock = float(inputs.stock_length)
    kerf = kerf_in_length_unit(inputs)
    summary = summarize_plans(plans, inputs)

    bar_w = layout.page_w - 2 * layout.margin - layout.index_col_w
    scale = bar_w / stock if stock > 0 else 0.0

    top_y = layout.page_h - layout.margin - layout.header_area_h
    bottom_y = layout.margin + layout.footer_area_h

    page_no = 1
    _draw_page_header(c, layout, title, inputs, page_no=page_no)
    y_cursor = top_y

    for i, plan in enumerate(plans, start=1):
        if y_cursor - layout.bar_h < bottom_y:
            c.showPage()
            page_no += 1
            _draw_page_header(c, layout, title, inputs, page_no=page_no)
            y_cursor = top_y

        _draw_bar(
            c,
            layout,
            colors,
            index=i,
            plan=plan,
            x0=layout.margin,
            y_top=y_cursor,
            scale=scale,
            kerf=kerf,
            unit=unit,
        )
        y_cursor -= layout.bar_h + layout.bar_gap

    lines = summary_lines(summary, inputs.length_unit)
    needed_h = (len(lines) + 1) * layout.line_h
    if y_cursor - needed_h < bottom_y:
        c.showPage()
        page_no += 1
        _draw_page_header(c, layout, title, inputs, page_no=page_no)
        y_cursor = top_y

    y_cursor -= layout.line_h
    c.setFont("Helvetica-Bold", 10)
    c.drawString(layout.margin, y_cursor, "Summary")
    c.setFont("Helvetica", 9)
    for line in lines:
        y_cursor -= layout.line_h
        c.drawString(layout.margin, y_cursor, line)

    c.showPage()
    c.save()


def _draw_page_header(c: Any, layout: _PageLayout, title: str, inputs: PlanInputs, *, page_no: int) -> None:
    x = layout.margin
    y = layout.page_h - layout.margin

    c.setFont("Helvetica-Bold", 14)
    c.drawString(x, y, title)

    c.setFont("Helvetica", 9)
    meta = (
        f"Stock: {inputs.stock_count} x {fmt_length(inputs.stock_length)} {inputs.length_unit.value}"
        f"   Kerf: {fmt_length(inputs.kerf_width)} {inputs.kerf_unit.value}"
        f"   Generated: {datetime.now().strftime('%Y-%m-%d %H:%M')}"
    )
    c.drawRightString(layout.page_w - layout.margin, y, meta)

    # Footer page number
    c.drawRightString(layout.page_w - layout.margin, layout.margin - 6, f"Page {page_no}")


def _draw_bar(
    c: Any,
    layout: _PageLayout,
    colors: Any,
    *,
    index: int,
    plan: CutPlan,
    x0: float,
    y_top: float,
    scale: float,
    kerf: float,
    unit: str,
) -> None:
    """Draw one stock bar: index, cut segments, kerf gaps and the waste tail."""

    font_name = "Helvetica"
    font_size = layout.font_size
    y0 = y_top - layout.bar_h
    text_y = y0 + (layout.bar_h - font_size) / 2 + 1

    c.setFont(font_name, font_size)
    c.setFillColor(colors.black)
    c.drawRightString(x0 + layout.index_col_w - 6, text_y, f"{index}.")

    x = x0 + layout.index_col_w
    c.setLineWidth(0.4)
    c.setStrokeColor(colors.black)
    for cut in plan.cuts:
        w = cut * scale
        c.setFillColor(colors.lightgrey)
        c.rect(x, y0, w, layout.bar_h, stroke=1, fill=1)
        label = _truncate(fmt_length(cut), font_name, font_size, w - 2 * layout.pad_x)
        if label:
            c.setFillColor(colors.black)
            c.drawCentredString(x + w / 2, text_y, label)
        x += w
        kw = kerf * scale
        if kw > 0:
            c.setFillColor(colors.black)
            c.rect(x, y0, kw, layout.bar_h, stroke=0, fill=1)
            x += kw

    waste_w = max(0.0, plan.waste * scale)
    if waste_w > 0:
        c.setFillColor(colors.whitesmoke)
        c.rect(x, y0, waste_w, layout.bar_h, stroke=1, fill=1)
        label = _truncate(f"{fmt_length(plan.waste)} {unit}", font_name, font_size, waste_w - 2 * layout.pad_x)
        if label:
            c.setFillColor(colors.grey)
            c.drawCentredString(x + waste_w / 2, text_y, label)
