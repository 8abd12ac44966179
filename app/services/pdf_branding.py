"""Letterhead and footer drawing for compost PDF reports."""
from dataclasses import dataclass
from typing import Optional

from reportlab.lib.colors import HexColor
from reportlab.lib.units import inch

BRAND_GREEN = "#4d7c0f"
BRAND_MUTED = "#6b7280"


@dataclass
class PDFBrandingContext:
    app_name: str = "Compost Assistant"
    tagline: Optional[str] = "Turn scraps into soil"


def draw_professional_letterhead(canvas, doc, branding: PDFBrandingContext, report_title: str, folio: str = "") -> None:
    """Brand name, report title and folio across the top margin."""
    width, height = doc.pagesize
    top = height - 0.5 * inch

    canvas.saveState()
    canvas.setFillColor(HexColor(BRAND_GREEN))
    canvas.setFont("Helvetica-Bold", 14)
    canvas.drawString(doc.leftMargin, top, branding.app_name)
    if branding.tagline:
        canvas.setFont("Helvetica", 8)
        canvas.setFillColor(HexColor(BRAND_MUTED))
        canvas.drawString(doc.leftMargin, top - 12, branding.tagline)

    canvas.setFillColor(HexColor(BRAND_GREEN))
    canvas.setFont("Helvetica-Bold", 10)
    canvas.drawRightString(width - doc.rightMargin, top, report_title)
    if folio:
        canvas.setFont("Helvetica", 8)
        canvas.drawRightString(width - doc.rightMargin, top - 12, folio)

    canvas.setStrokeColor(HexColor(BRAND_GREEN))
    canvas.setLineWidth(1.5)
    canvas.line(doc.leftMargin, top - 20, width - doc.rightMargin, top - 20)
    canvas.restoreState()


def draw_professional_footer(canvas, doc, branding: PDFBrandingContext) -> None:
    width, _ = doc.pagesize
    canvas.saveState()
    canvas.setFont("Helvetica", 7)
    canvas.setFillColor(HexColor(BRAND_MUTED))
    canvas.drawString(doc.leftMargin, 0.35 * inch, branding.app_name)
    canvas.drawRightString(width - doc.rightMargin, 0.35 * inch, f"Page {doc.page}")
    canvas.restoreState()
