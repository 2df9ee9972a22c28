"""
PDF Export for Rosters
======================
A4 landscape roster report, one section per date, matching the Excel
export's columns. Uses fpdf2.
"""
import io
from datetime import datetime
from itertools import groupby
from pathlib import Path
from typing import Dict, List, Optional, Union

from fpdf import FPDF

from rostering.models.shift import Shift
from rostering.models.status import ShiftStatus
from rostering.utils.logging_setup import get_logger

logger = get_logger("rostering.io.pdf_export")

# Colors (RGB)
COLORS = {
    "header_bg": (68, 114, 196),    # Blue for headers
    "header_text": (255, 255, 255), # White text
    ShiftStatus.ACTIVE: (221, 238, 255),
    ShiftStatus.COMPLETED: (212, 237, 218),
    ShiftStatus.CANCELLED: (255, 199, 206),
    ShiftStatus.NO_SHOW: (255, 228, 204),
    ShiftStatus.SWAPPED: (230, 204, 255),
    "unassigned": (255, 243, 205),
}

COLUMNS = ["Start", "End", "Department", "Role", "Employee", "Status", "Hours"]
WIDTHS = [18, 18, 50, 45, 60, 30, 20]


class RosterPDF(FPDF):
    """Custom PDF class with headers and footers."""

    def __init__(self, title: str = "Roster"):
        super().__init__(orientation="L", unit="mm", format="A4")
        self.title = title
        self.set_auto_page_break(auto=True, margin=15)

    def header(self):
        self.set_font("Helvetica", "B", 12)
        self.cell(0, 10, self.title, border=0, align="C")
        self.ln(5)
        self.set_font("Helvetica", "", 8)
        self.cell(0, 5, f"Generated {datetime.now().strftime('%Y-%m-%d %H:%M')}", border=0, align="C")
        self.ln(10)

    def footer(self):
        self.set_y(-15)
        self.set_font("Helvetica", "I", 8)
        self.cell(0, 10, f"Page {self.page_no()}/{{nb}}", align="C")


def _table_header(pdf: RosterPDF) -> None:
    pdf.set_font("Helvetica", "B", 8)
    pdf.set_fill_color(*COLORS["header_bg"])
    pdf.set_text_color(*COLORS["header_text"])
    for col, w in zip(COLUMNS, WIDTHS):
        pdf.cell(w, 6, col, border=1, align="C", fill=True)
    pdf.ln()
    pdf.set_text_color(0, 0, 0)


def export_roster_to_pdf(
    shifts: List[Shift],
    output: Union[str, Path, io.BytesIO],
    employee_names: Optional[Dict[str, str]] = None,
    department_names: Optional[Dict[str, str]] = None,
    role_names: Optional[Dict[str, str]] = None,
    title: str = "Roster",
) -> None:
    """
    Export shifts to PDF:
    - Page 1: summary (shift count per status, total net hours)
    - Following pages: one table per date
    """
    employee_names = employee_names or {}
    department_names = department_names or {}
    role_names = role_names or {}
    ordered = sorted(shifts, key=lambda s: (s.date, s.start_time, s.id))

    pdf = RosterPDF(title=title)
    pdf.alias_nb_pages()

    # ============================================================
    # PAGE 1: SUMMARY
    # ============================================================
    pdf.add_page()
    pdf.set_font("Helvetica", "B", 16)
    pdf.cell(0, 10, "Summary", new_x="LMARGIN", new_y="NEXT", align="L")
    pdf.ln(5)
    pdf.set_font("Helvetica", "", 10)
    rows = [("Shifts", str(len(ordered)))]
    rows += [(status.value, str(sum(1 for s in ordered if s.status == status))) for status in ShiftStatus]
    rows.append(("Unassigned", str(sum(1 for s in ordered if not s.is_assigned))))
    rows.append(("Net hours", f"{sum(s.net_hours for s in ordered):.2f}"))
    for label, value in rows:
        pdf.cell(60, 6, label, border=1)
        pdf.cell(40, 6, value, border=1, new_x="LMARGIN", new_y="NEXT")

    # ============================================================
    # PAGE 2+: ONE TABLE PER DATE
    # ============================================================
    for day, day_shifts in groupby(ordered, key=lambda s: s.date):
        pdf.add_page()
        pdf.set_font("Helvetica", "B", 14)
        pdf.cell(0, 8, day.strftime("%A %d %B %Y"), new_x="LMARGIN", new_y="NEXT")
        pdf.ln(3)
        _table_header(pdf)
        pdf.set_font("Helvetica", "", 8)
        for shift in day_shifts:
            employee = employee_names.get(shift.assigned_employee_id, shift.assigned_employee_id or "-")
            values = [
                shift.start_time.strftime("%H:%M"),
                shift.end_time.strftime("%H:%M"),
                department_names.get(shift.department_id, shift.department_id or "")[:30],
                role_names.get(shift.role_id, shift.role_id or "")[:26],
                employee[:34],
                shift.status.value,
                f"{shift.net_hours:.2f}",
            ]
            if shift.status == ShiftStatus.ACTIVE and not shift.is_assigned:
                fill = COLORS["unassigned"]
            else:
                fill = COLORS[shift.status]
            for i, (val, w) in enumerate(zip(values, WIDTHS)):
                if i == 5:
                    pdf.set_fill_color(*fill)
                    pdf.cell(w, 5, val, border=1, align="C", fill=True)
                else:
                    pdf.cell(w, 5, val, border=1, align="C" if w < 40 else "L")
            pdf.ln()

    if isinstance(output, (str, Path)):
        pdf.output(str(output))
    else:
        output.write(pdf.output())
        output.seek(0)

    logger.info(f"PDF export complete: {len(ordered)} shifts")
