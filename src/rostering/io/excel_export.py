"""Excel export for rosters."""
import io
from pathlib import Path
from typing import Dict, List, Optional, Union

from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter

from rostering.models.audit import AuditEvent
from rostering.models.shift import Shift
from rostering.models.status import ShiftStatus
from rostering.utils.logging_setup import get_logger

logger = get_logger("rostering.io.excel_export")

# Fill colour per shift status
STATUS_COLORS = {
    ShiftStatus.ACTIVE: "DDEEFF",
    ShiftStatus.COMPLETED: "D4EDDA",
    ShiftStatus.CANCELLED: "FFC7CE",
    ShiftStatus.NO_SHOW: "FFE4CC",
    ShiftStatus.SWAPPED: "E6CCFF",
}
UNASSIGNED_COLOR = "FFF3CD"

THIN = Side(border_style="thin", color="CCCCCC")
BORDER_THIN = Border(top=THIN, bottom=THIN, left=THIN, right=THIN)

ROSTER_HEADERS = [
    "Date", "Start", "End", "Department", "Role", "Employee",
    "Status", "Draft", "Net hours", "Shift id",
]


def _write_header(ws, headers: List[str]) -> None:
    for j, label in enumerate(headers, start=1):
        cell = ws.cell(row=1, column=j, value=label)
        cell.font = Font(bold=True)
        cell.alignment = Alignment(horizontal="center", vertical="center")
        cell.border = BORDER_THIN
    ws.freeze_panes = "A2"


def _fill(color: str) -> PatternFill:
    return PatternFill(start_color=color, end_color=color, fill_type="solid")


def export_roster_to_excel(
    shifts: List[Shift],
    output: Union[str, Path, io.BytesIO],
    employee_names: Optional[Dict[str, str]] = None,
    department_names: Optional[Dict[str, str]] = None,
    role_names: Optional[Dict[str, str]] = None,
    audit: Optional[List[AuditEvent]] = None,
) -> None:
    """
    Export shifts to an Excel workbook.

    Sheets:
        Roster: one row per shift, coloured by status (unassigned active
            shifts highlighted).
        Summary: shift count and net hours per status.
        Audit: the audit events, when given.
    """
    employee_names = employee_names or {}
    department_names = department_names or {}
    role_names = role_names or {}
    ordered = sorted(shifts, key=lambda s: (s.date, s.start_time, s.id))

    wb = Workbook()

    # ========== Roster Sheet ==========
    ws = wb.active
    ws.title = "Roster"
    _write_header(ws, ROSTER_HEADERS)
    for r, shift in enumerate(ordered, start=2):
        employee = employee_names.get(shift.assigned_employee_id, shift.assigned_employee_id or "")
        values = [
            shift.date.isoformat(),
            shift.start_time.strftime("%H:%M"),
            shift.end_time.strftime("%H:%M"),
            department_names.get(shift.department_id, shift.department_id or ""),
            role_names.get(shift.role_id, shift.role_id or ""),
            employee,
            shift.status.value,
            "yes" if shift.is_draft else "",
            shift.net_hours,
            shift.id,
        ]
        if shift.status == ShiftStatus.ACTIVE and not shift.is_assigned:
            color = UNASSIGNED_COLOR
        else:
            color = STATUS_COLORS.get(shift.status)
        for j, val in enumerate(values, start=1):
            cell = ws.cell(row=r, column=j, value=val)
            cell.border = BORDER_THIN
            if j == 7 and color:
                cell.fill = _fill(color)
    for j, width in enumerate([12, 8, 8, 20, 18, 22, 12, 8, 10, 14], start=1):
        ws.column_dimensions[get_column_letter(j)].width = width

    # ========== Summary Sheet ==========
    ws_sum = wb.create_sheet("Summary")
    _write_header(ws_sum, ["Status", "Shifts", "Net hours"])
    for r, status in enumerate(ShiftStatus, start=2):
        matching = [s for s in ordered if s.status == status]
        ws_sum.cell(row=r, column=1, value=status.value).fill = _fill(STATUS_COLORS[status])
        ws_sum.cell(row=r, column=2, value=len(matching))
        ws_sum.cell(row=r, column=3, value=round(sum(s.net_hours for s in matching), 2))
    total_row = len(ShiftStatus) + 2
    ws_sum.cell(row=total_row, column=1, value="Total").font = Font(bold=True)
    ws_sum.cell(row=total_row, column=2, value=len(ordered)).font = Font(bold=True)
    ws_sum.cell(row=total_row, column=3, value=round(sum(s.net_hours for s in ordered), 2)).font = Font(bold=True)
    ws_sum.cell(row=total_row + 1, column=1, value="Unassigned")
    ws_sum.cell(row=total_row + 1, column=2, value=sum(1 for s in ordered if not s.is_assigned))
    for j in range(1, 4):
        ws_sum.column_dimensions[get_column_letter(j)].width = 16

    # ========== Audit Sheet ==========
    if audit:
        ws_audit = wb.create_sheet("Audit")
        _write_header(ws_audit, ["When", "Shift id", "Event", "Actor", "Notes"])
        for r, event in enumerate(audit, start=2):
            ws_audit.cell(row=r, column=1, value=event.at.strftime("%Y-%m-%d %H:%M:%S"))
            ws_audit.cell(row=r, column=2, value=event.shift_id)
            ws_audit.cell(row=r, column=3, value=event.status.label)
            ws_audit.cell(row=r, column=4, value=event.actor_id or "")
            ws_audit.cell(row=r, column=5, value=event.notes or "")

    if isinstance(output, io.BytesIO):
        wb.save(output)
    else:
        wb.save(str(output))
    logger.info(f"Excel export complete: {len(ordered)} shifts")
