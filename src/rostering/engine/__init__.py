# rostering/engine - Shift, bid and swap workflow engine
from .base import SYSTEM_USER, CurrentUser, PermissionChecker
from .batch import (
    BatchProcessor,
    BatchReport,
    BulkAction,
    ItemOutcome,
    SelectionSet,
    available_bulk_actions,
)
from .bids import BidWorkflow
from .calendar import (
    CalendarView,
    date_range_for,
    dates_in_range,
    format_time_safe,
    group_shifts_by_role,
    navigate,
    parse_time,
    time_to_vertical_position,
)
from .commands import Command, CommandState
from .eligibility import Eligibility, ReasonCode
from .roster import CalendarEntry, RosterAssignmentManager
from .swaps import SwapWorkflow
from .templates import TemplateLibrary

__all__ = [
    "CurrentUser",
    "PermissionChecker",
    "SYSTEM_USER",
    "CalendarView",
    "date_range_for",
    "dates_in_range",
    "navigate",
    "parse_time",
    "format_time_safe",
    "time_to_vertical_position",
    "group_shifts_by_role",
    "Eligibility",
    "ReasonCode",
    "Command",
    "CommandState",
    "BidWorkflow",
    "SwapWorkflow",
    "BulkAction",
    "BatchProcessor",
    "BatchReport",
    "ItemOutcome",
    "SelectionSet",
    "available_bulk_actions",
    "RosterAssignmentManager",
    "CalendarEntry",
    "TemplateLibrary",
]
