from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Dict, List, Optional

from rostering.engine.calendar import (
    INVALID_TIME,
    CalendarView,
    date_range_for,
    dates_in_range,
    navigate,
    parse_date,
    time_to_vertical_position,
)
from rostering.errors import ParseError
from rostering.io.csv_loader import load_employees, load_shifts
from rostering.io.excel_export import export_roster_to_excel
from rostering.io.pdf_export import export_roster_to_pdf
from rostering.utils.logging_setup import get_logger, setup_logging

logger = get_logger("rostering.cli")

VIEW_CHOICES = [v.value for v in CalendarView]


def _cmd_range(args: argparse.Namespace) -> int:
    start, end = date_range_for(args.view, parse_date(args.date), args.week_start)
    days = dates_in_range(start, end)
    if args.json_out:
        print(json.dumps({
            "view": args.view,
            "start": start.isoformat(),
            "end": end.isoformat(),
            "dates": [d.isoformat() for d in days],
        }, indent=2))
    else:
        print(f"{CalendarView.from_string(args.view).label}: {start.isoformat()} -> {end.isoformat()}")
        for d in days:
            print(f" - {d.isoformat()} ({d.strftime('%a')})")
    return 0


def _cmd_navigate(args: argparse.Namespace) -> int:
    print(navigate(args.view, parse_date(args.date), args.direction).isoformat())
    return 0


def _cmd_position(args: argparse.Namespace) -> int:
    try:
        pct = time_to_vertical_position(args.time, args.start_hour, args.end_hour)
    except ParseError as e:
        logger.warning(f"Unparseable time: {e}")
        print(INVALID_TIME)
        return 0
    print(f"{pct:.2f}")
    return 0


def _cmd_export(args: argparse.Namespace) -> int:
    shifts = load_shifts(args.shifts)
    names: Dict[str, str] = {}
    if args.employees:
        names = {e.id: e.name for e in load_employees(args.employees)}

    out = Path(args.out)
    suffix = out.suffix.lower()
    if suffix == ".xlsx":
        export_roster_to_excel(shifts, out, employee_names=names)
    elif suffix == ".pdf":
        export_roster_to_pdf(shifts, out, employee_names=names, title=args.title)
    else:
        print(f"Unsupported export format: {suffix or '(none)'} (use .xlsx or .pdf)", file=sys.stderr)
        return 2
    print(f"Exported {len(shifts)} shifts to {out}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="rostering", description="Rostering workflow CLI")
    p.add_argument("-v", "--verbose", action="count", default=0)
    sub = p.add_subparsers(dest="command", required=True)

    r = sub.add_parser("range", help="Inclusive date range covered by a calendar view")
    r.add_argument("--view", choices=VIEW_CHOICES, required=True)
    r.add_argument("--date", required=True, help="Anchor date (YYYY-MM-DD)")
    r.add_argument("--week-start", type=int, default=0, choices=range(7), help="0 = Monday (default)")
    r.add_argument("--json", dest="json_out", action="store_true", help="JSON output")
    r.set_defaults(func=_cmd_range)

    n = sub.add_parser("navigate", help="Move the anchor one view-length forward or back")
    n.add_argument("--view", choices=VIEW_CHOICES, required=True)
    n.add_argument("--date", required=True)
    n.add_argument("--direction", type=int, choices=[1, -1], required=True)
    n.set_defaults(func=_cmd_navigate)

    t = sub.add_parser("position", help="Vertical position (percent) of a time of day")
    t.add_argument("--time", required=True)
    t.add_argument("--start-hour", type=int, default=0)
    t.add_argument("--end-hour", type=int, default=24)
    t.set_defaults(func=_cmd_position)

    e = sub.add_parser("export", help="Export a shifts CSV to Excel or PDF")
    e.add_argument("--shifts", required=True, help="Shifts CSV")
    e.add_argument("--employees", help="Employees CSV (for names)")
    e.add_argument("--out", required=True, help="Output .xlsx or .pdf")
    e.add_argument("--title", default="Roster")
    e.set_defaults(func=_cmd_export)
    return p


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    level = {0: "WARNING", 1: "INFO"}.get(args.verbose, "DEBUG")
    setup_logging(level=level, log_file=None)
    try:
        return args.func(args)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
