"""
Compost Excel Export Service.
Generates an Excel workbook with insights, per-pile status and open tasks.
"""
from io import BytesIO
from datetime import datetime
from typing import Any, List, Optional

from openpyxl import Workbook
from openpyxl.styles import Font, Alignment, PatternFill, Border, Side
from openpyxl.utils import get_column_letter

from app.services.harvest_eta_service import ETAResult, PileSnapshot
from app.services.insight_service import CompostInsights
from app.services.task_service import CompostTask
from app.services.vitals_service import is_healthy_vitals, pile_status

COMPOST_GREEN = "4D7C0F"
COMPOST_DARK = "365314"
HEADER_BG = "ECFCCB"
DATE_FORMAT = "%Y-%m-%d"


class CompostExcelService:
    """Service for generating compost Excel reports."""

    def __init__(self):
        self.header_fill = PatternFill(start_color=COMPOST_DARK, end_color=COMPOST_DARK, fill_type="solid")
        self.header_font = Font(bold=True, color="FFFFFF", size=11)
        self.title_font = Font(bold=True, size=16, color=COMPOST_DARK)
        self.subtitle_font = Font(bold=True, size=12, color=COMPOST_GREEN)
        self.light_fill = PatternFill(start_color=HEADER_BG, end_color=HEADER_BG, fill_type="solid")
        self.border = Border(
            left=Side(style='thin'),
            right=Side(style='thin'),
            top=Side(style='thin'),
            bottom=Side(style='thin')
        )

    def _apply_header_style(self, ws, row_num: int, max_col: int):
        """Apply header styling to a row."""
        for col in range(1, max_col + 1):
            cell = ws.cell(row=row_num, column=col)
            cell.fill = self.header_fill
            cell.font = self.header_font
            cell.alignment = Alignment(horizontal='center', vertical='center', wrap_text=True)
            cell.border = self.border

    def _apply_border_to_range(self, ws, start_row: int, start_col: int, end_row: int, end_col: int):
        for row in range(start_row, end_row + 1):
            for col in range(start_col, end_col + 1):
                ws.cell(row=row, column=col).border = self.border

    def _auto_adjust_columns(self, ws):
        """Auto-adjust column widths."""
        for column in ws.columns:
            column_letter = get_column_letter(column[0].column)
            max_length = max((len(str(cell.value)) for cell in column if cell.value is not None), default=0)
            ws.column_dimensions[column_letter].width = min(max(max_length + 2, 12), 40)

    @staticmethod
    def _fmt_date(value: Optional[datetime]) -> str:
        return value.strftime(DATE_FORMAT) if value else "-"

    def generate_compost_excel(
        self,
        insights: CompostInsights,
        piles: List[PileSnapshot],
        etas: List[ETAResult],
        tasks: List[CompostTask],
        now: datetime,
    ) -> BytesIO:
        """
        Generate the compost workbook.

        Args:
            insights: Aggregate statistics
            piles: Pile snapshots, one row each
            etas: ETA results aligned with ``piles``
            tasks: Derived tasks
            now: Generation time

        Returns:
            BytesIO with Excel file content
        """
        wb = Workbook()
        if wb.active:
            wb.remove(wb.active)

        self._create_summary_sheet(wb, insights, now)
        self._create_piles_sheet(wb, piles, etas)
        self._create_tasks_sheet(wb, tasks, now)

        buffer = BytesIO()
        wb.save(buffer)
        buffer.seek(0)
        return buffer

    def _create_summary_sheet(self, wb, insights: CompostInsights, now: datetime) -> Any:
        ws = wb.create_sheet("Summary")
        row = 1

        ws.cell(row=row, column=1, value="COMPOST REPORT").font = self.title_font
        ws.merge_cells(f'A{row}:C{row}')
        row += 1
        ws.cell(row=row, column=1, value=f"Generated: {now.strftime('%Y-%m-%d %H:%M')}").font = Font(italic=True)
        row += 2

        ws.cell(row=row, column=1, value="STATISTICS").font = self.subtitle_font
        row += 1

        stats = [
            ("Total piles", insights.total_piles),
            ("Active piles", insights.active_piles),
            ("Harvested piles", insights.harvested_piles),
            ("Total turns", insights.total_turns),
            ("Browns added", insights.total_browns),
            ("Greens added", insights.total_greens),
            ("Materials added", insights.total_materials),
            ("Waste rescued", insights.waste_rescued_text),
            ("Average active age (days)", insights.average_active_age_days),
            ("Composting streak (days)", insights.composting_streak_days),
        ]
        start = row
        for label, value in stats:
            ws.cell(row=row, column=1, value=label).fill = self.light_fill
            ws.cell(row=row, column=1).font = Font(bold=True)
            ws.cell(row=row, column=2, value=value)
            row += 1
        self._apply_border_to_range(ws, start, 1, row - 1, 2)

        if insights.status_counts:
            row += 1
            ws.cell(row=row, column=1, value="STATUS").font = self.subtitle_font
            row += 1
            for status, count in sorted(insights.status_counts.items()):
                ws.cell(row=row, column=1, value=status.replace("_", " ").title())
                ws.cell(row=row, column=2, value=count)
                row += 1

        self._auto_adjust_columns(ws)
        return ws

    def _create_piles_sheet(self, wb, piles: List[PileSnapshot], etas: List[ETAResult]) -> Any:
        ws = wb.create_sheet("Piles")
        headers = [
            "Pile", "Created", "Temperature", "Moisture", "Browns", "Greens",
            "Brown:Green", "Turns", "ETA (days)", "Estimated harvest", "Status",
        ]
        for col, header in enumerate(headers, 1):
            ws.cell(row=1, column=col, value=header)
        self._apply_header_style(ws, 1, len(headers))

        row = 2
        for pile, eta in zip(piles, etas):
            status = pile_status(pile.is_harvested, is_healthy_vitals(pile.temperature, pile.moisture))
            values = [
                pile.name,
                self._fmt_date(pile.created_at),
                pile.temperature.value,
                pile.moisture.value,
                pile.total_brown,
                pile.total_green,
                round(eta.brown_green_ratio, 2),
                pile.turn_count,
                eta.effective_days,
                self._fmt_date(eta.estimated_date),
                status.value,
            ]
            for col, value in enumerate(values, 1):
                cell = ws.cell(row=row, column=col, value=value)
                cell.border = self.border
                if col > 4:
                    cell.alignment = Alignment(horizontal='center')
            row += 1

        ws.freeze_panes = "A2"
        self._auto_adjust_columns(ws)
        return ws

    def _create_tasks_sheet(self, wb, tasks: List[CompostTask], now: datetime) -> Any:
        ws = wb.create_sheet("Tasks")
        headers = ["Pile", "Task", "Due", "Overdue", "Note"]
        for col, header in enumerate(headers, 1):
            ws.cell(row=1, column=col, value=header)
        self._apply_header_style(ws, 1, len(headers))

        row = 2
        for task in tasks:
            values = [
                task.pile_name,
                task.kind.value.replace("_", " ").title(),
                self._fmt_date(task.due_date),
                "Yes" if task.is_overdue(now) else "No",
                task.note or "",
            ]
            for col, value in enumerate(values, 1):
                ws.cell(row=row, column=col, value=value).border = self.border
            row += 1

        if not tasks:
            ws.cell(row=2, column=1, value="No pending tasks").font = Font(italic=True)

        self._auto_adjust_columns(ws)
        return ws


compost_excel_service = CompostExcelService()
