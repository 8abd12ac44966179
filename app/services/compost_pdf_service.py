"""
Compost PDF Report Service.
Generates a one-pile PDF report: vitals, materials, balance advice, ETA
multipliers and open tasks.
"""
import io
from datetime import datetime
from typing import List

from reportlab.lib.pagesizes import letter
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.lib.units import inch
from reportlab.lib.colors import HexColor
from reportlab.platypus import SimpleDocTemplate, Paragraph, Spacer, Table, TableStyle
from reportlab.lib.enums import TA_CENTER
import logging

from app.services.balance_service import BalanceRecommendation
from app.services.harvest_eta_service import ETAResult, PileSnapshot
from app.services.pdf_branding import (
    PDFBrandingContext,
    draw_professional_letterhead,
    draw_professional_footer,
    BRAND_GREEN,
)
from app.services.task_service import CompostTask
from app.services.vitals_service import is_healthy_vitals, pile_status

logger = logging.getLogger(__name__)

COMPOST_COLOR = HexColor(BRAND_GREEN)
TEXT_COLOR = HexColor("#1f2937")
LIGHT_BG = HexColor("#ecfccb")
GRID_COLOR = HexColor("#d1d5db")


def _fmt_date(value) -> str:
    return value.strftime("%Y-%m-%d") if value else "-"


def _table_style(header: bool = True) -> TableStyle:
    commands = [
        ('TEXTCOLOR', (0, 0), (-1, -1), TEXT_COLOR),
        ('FONTSIZE', (0, 0), (-1, -1), 8),
        ('VALIGN', (0, 0), (-1, -1), 'MIDDLE'),
        ('GRID', (0, 0), (-1, -1), 0.5, GRID_COLOR),
        ('PADDING', (0, 0), (-1, -1), 4),
    ]
    if header:
        commands += [
            ('BACKGROUND', (0, 0), (-1, 0), COMPOST_COLOR),
            ('TEXTCOLOR', (0, 0), (-1, 0), HexColor("#ffffff")),
            ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
        ]
    else:
        commands += [
            ('BACKGROUND', (0, 0), (0, -1), LIGHT_BG),
            ('FONTNAME', (0, 0), (0, -1), 'Helvetica-Bold'),
        ]
    return TableStyle(commands)


def create_compost_pdf_report(
    pile: PileSnapshot,
    eta: ETAResult,
    balance: BalanceRecommendation,
    tasks: List[CompostTask],
    now: datetime,
) -> bytes:
    """
    Create a PDF report for a single pile.

    Args:
        pile: Pile snapshot
        eta: ETA result for the pile
        balance: Balance recommendation for the pile's totals
        tasks: Tasks derived for this pile
        now: Generation time

    Returns:
        PDF file as bytes
    """
    buffer = io.BytesIO()
    branding = PDFBrandingContext()

    def header_footer(canvas, doc):
        draw_professional_letterhead(
            canvas, doc, branding,
            report_title="PILE REPORT",
            folio=f"PILE-{pile.id:05d}",
        )
        draw_professional_footer(canvas, doc, branding)

    doc = SimpleDocTemplate(
        buffer,
        pagesize=letter,
        rightMargin=0.6*inch,
        leftMargin=0.6*inch,
        topMargin=1.1*inch,
        bottomMargin=0.6*inch
    )

    styles = getSampleStyleSheet()
    title_style = ParagraphStyle(
        'CompostTitle',
        parent=styles['Title'],
        fontSize=16,
        textColor=COMPOST_COLOR,
        spaceAfter=6,
        alignment=TA_CENTER
    )
    heading_style = ParagraphStyle(
        'CompostHeading',
        parent=styles['Heading2'],
        fontSize=11,
        textColor=COMPOST_COLOR,
        spaceBefore=8,
        spaceAfter=4
    )
    body_style = ParagraphStyle(
        'CompostBody',
        parent=styles['Normal'],
        fontSize=8,
        textColor=TEXT_COLOR,
        spaceAfter=3
    )

    status = pile_status(pile.is_harvested, is_healthy_vitals(pile.temperature, pile.moisture))

    story = []
    story.append(Paragraph(pile.name, title_style))
    story.append(Paragraph(f"Generated {now.strftime('%Y-%m-%d %H:%M')}", body_style))
    story.append(Spacer(1, 6))

    # Vitals
    story.append(Paragraph("Vitals", heading_style))
    vitals_data = [
        ["Created", _fmt_date(pile.created_at)],
        ["Temperature", f"{pile.temperature.value} (~{eta.temperature_c:.0f} °C)"],
        ["Moisture", f"{pile.moisture.value} (~{eta.moisture_pct:.0f} %)"],
        ["Last logged", _fmt_date(pile.last_logged)],
        ["Status", status.value.replace("_", " ")],
        ["Harvested", _fmt_date(pile.harvested_at)],
    ]
    vitals_table = Table(vitals_data, colWidths=[1.6*inch, 5.0*inch])
    vitals_table.setStyle(_table_style(header=False))
    story.append(vitals_table)

    # Materials
    story.append(Paragraph("Materials", heading_style))
    material_rows = [["Added", "Browns", "Greens", "Shredded"]]
    for m in pile.materials:
        material_rows.append([
            _fmt_date(m.created_at),
            str(m.brown_amount),
            str(m.green_amount),
            "Yes" if m.is_shredded else "No",
        ])
    material_rows.append(["Total", str(pile.total_brown), str(pile.total_green), ""])
    materials_table = Table(material_rows, colWidths=[1.9*inch, 1.5*inch, 1.5*inch, 1.7*inch])
    style = _table_style()
    style.add('FONTNAME', (0, -1), (-1, -1), 'Helvetica-Bold')
    materials_table.setStyle(style)
    story.append(materials_table)

    # Balance
    story.append(Paragraph("Brown:Green Balance", heading_style))
    story.append(Paragraph(f"<b>{balance.title}</b>: {balance.message}", body_style))
    if balance.needed_text:
        story.append(Paragraph(balance.needed_text, body_style))
    if balance.tip:
        story.append(Paragraph(f"<i>{balance.tip}</i>", body_style))

    # ETA
    story.append(Paragraph("Harvest Estimate", heading_style))
    eta_rows = [
        ["Factor", "Input", "Multiplier"],
        ["Temperature", f"{eta.temperature_c:.0f} °C", f"{eta.m_temperature:.3f}"],
        ["Moisture", f"{eta.moisture_pct:.0f} %", f"{eta.m_moisture:.3f}"],
        ["Brown:Green", f"{eta.brown_green_ratio:.2f}", f"{eta.m_brown_green:.3f}"],
        ["Shredded", "Yes" if pile.is_shredded_any else "No", f"{eta.f_shredded:.2f}"],
        ["Turning", f"{eta.turns_per_month:.2f} / month", f"{eta.m_turn:.3f}"],
    ]
    eta_table = Table(eta_rows, colWidths=[2.2*inch, 2.2*inch, 2.2*inch])
    eta_table.setStyle(_table_style())
    story.append(eta_table)
    story.append(Spacer(1, 4))
    story.append(Paragraph(
        f"Base {eta.base_days} days, effective <b>{eta.effective_days} days</b>; "
        f"estimated harvest on <b>{_fmt_date(eta.estimated_date)}</b>.",
        body_style
    ))

    # Tasks
    story.append(Paragraph("Open Tasks", heading_style))
    open_tasks = [t for t in tasks if not t.is_completed]
    if open_tasks:
        task_rows = [["Task", "Due", "Note"]]
        for task in open_tasks:
            task_rows.append([
                task.kind.value.replace("_", " ").title(),
                _fmt_date(task.due_date),
                Paragraph(task.note or "", body_style),
            ])
        task_table = Table(task_rows, colWidths=[1.6*inch, 1.2*inch, 3.8*inch])
        task_table.setStyle(_table_style())
        story.append(task_table)
    else:
        story.append(Paragraph("Nothing to do right now.", body_style))

    doc.build(story, onFirstPage=header_footer, onLaterPages=header_footer)
    pdf_bytes = buffer.getvalue()
    buffer.close()
    logger.info(f"Generated PDF report for pile {pile.id} ({len(pdf_bytes)} bytes)")
    return pdf_bytes
