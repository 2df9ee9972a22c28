"""CSV loading and saving for employees and shifts."""
from pathlib import Path
from typing import List, Union

import pandas as pd

from rostering.engine.calendar import parse_date, parse_time
from rostering.models.employee import Employee
from rostering.models.shift import Shift

EMPLOYEE_COLUMNS = [
    "id", "name", "role_ids", "department_id", "sub_department_id",
    "skills", "status", "email",
]

SHIFT_COLUMNS = [
    "id", "date", "start_time", "end_time", "department_id", "sub_department_id",
    "role_id", "remuneration_level", "assigned_employee_id", "status", "is_draft",
    "paid_break_minutes", "unpaid_break_minutes", "notes",
]


def _safe_int(value, default: int = 0) -> int:
    """Safely convert value to int."""
    try:
        return int(float(value))
    except (ValueError, TypeError):
        return default


def _safe_bool(value, default: bool = False) -> bool:
    """Safely convert value to bool."""
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "y")
    return default


def _text(value) -> str:
    return str(value).strip() if value is not None else ""


def _read(source: Union[str, Path, pd.DataFrame]) -> pd.DataFrame:
    if isinstance(source, pd.DataFrame):
        df = source.copy()
    else:
        df = pd.read_csv(source, dtype=str)
    return df.fillna("")


def load_employees(source: Union[str, Path, pd.DataFrame]) -> List[Employee]:
    """
    Load employees from CSV file or DataFrame.

    Role ids and skills are ';'-separated. Rows without a name are skipped;
    a missing id defaults to ``emp-<row>``.
    """
    df = _read(source)
    if "name" not in df.columns:
        raise ValueError("CSV must have a 'name' column")

    employees = []
    for idx, row in df.iterrows():
        name = _text(row.get("name"))
        if not name:
            continue
        record = {col: row.get(col, "") for col in EMPLOYEE_COLUMNS}
        record["id"] = _text(row.get("id")) or f"emp-{idx + 1}"
        record["name"] = name
        employees.append(Employee.from_dict(record))
    return employees


def save_employees(employees: List[Employee], path: Union[str, Path]) -> None:
    """Save employees to CSV file."""
    if not employees:
        df = pd.DataFrame(columns=EMPLOYEE_COLUMNS)
    else:
        df = pd.DataFrame([e.to_dict() for e in employees], columns=EMPLOYEE_COLUMNS)
    df.to_csv(path, index=False)


def load_shifts(source: Union[str, Path, pd.DataFrame]) -> List[Shift]:
    """
    Load shift instances from CSV file or DataFrame.

    Required columns: ``date``, ``start_time``, ``end_time``.

    Raises:
        ValueError: missing columns, or a row with a malformed date/time
            (the message names the row).
    """
    df = _read(source)
    missing = [c for c in ("date", "start_time", "end_time") if c not in df.columns]
    if missing:
        raise ValueError(f"CSV is missing required columns: {', '.join(missing)}")

    shifts = []
    for idx, row in df.iterrows():
        try:
            shifts.append(Shift(
                id=_text(row.get("id")) or f"shift-{idx + 1}",
                date=parse_date(_text(row["date"])),
                start_time=parse_time(_text(row["start_time"])),
                end_time=parse_time(_text(row["end_time"])),
                department_id=_text(row.get("department_id")) or None,
                sub_department_id=_text(row.get("sub_department_id")) or None,
                role_id=_text(row.get("role_id")) or None,
                remuneration_level=_text(row.get("remuneration_level")) or "BRONZE",
                assigned_employee_id=_text(row.get("assigned_employee_id")) or None,
                status=_text(row.get("status")) or "Active",
                is_draft=_safe_bool(row.get("is_draft")),
                paid_break_minutes=_safe_int(row.get("paid_break_minutes")),
                unpaid_break_minutes=_safe_int(row.get("unpaid_break_minutes")),
                notes=_text(row.get("notes")),
            ))
        except ValueError as e:
            # Header is line 1
            raise ValueError(f"Row {idx + 2}: {e}") from e
    return shifts


def shifts_to_dataframe(shifts: List[Shift]) -> pd.DataFrame:
    """Convert shifts to a DataFrame (one row per shift, wire casing)."""
    if not shifts:
        return pd.DataFrame(columns=SHIFT_COLUMNS + ["net_hours"])
    rows = []
    for s in shifts:
        row = s.to_dict()
        row["net_hours"] = s.net_hours
        rows.append(row)
    return pd.DataFrame(rows, columns=SHIFT_COLUMNS + ["net_hours"])


def save_shifts(shifts: List[Shift], path: Union[str, Path]) -> None:
    """Save shifts to CSV file."""
    shifts_to_dataframe(shifts).drop(columns=["net_hours"]).to_csv(path, index=False)
