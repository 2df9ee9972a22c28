"""
Bid & Swap Filtering
====================
Read-only projections used by the management screens: bid rows joined with
their shift and employee, filter/sort helpers, and swap statistics. The ids
of the filtered rows are the "visible" set that bulk selection works on.
"""
from dataclasses import dataclass
from datetime import date
from typing import List, Optional

from rostering.models.bidding import EmployeeBid, OpenBid
from rostering.models.shift import Shift
from rostering.models.status import (
    BidStatus,
    RemunerationLevel,
    ShiftStatus,
    SwapPriority,
    SwapStatus,
)
from rostering.models.swap import SwapRequest
from rostering.store.domain import DomainStore

SORT_KEYS = ("date", "timestamp", "net_hours", "department", "employee")


@dataclass
class BidRow:
    """One bid joined with the shift it targets."""
    bid: EmployeeBid
    open_bid: OpenBid
    shift: Shift
    employee_name: str = ""
    department_name: str = ""
    sub_department_name: str = ""
    role_name: str = ""

    @property
    def id(self) -> str:
        return self.bid.id


def build_bid_rows(store: DomainStore, status: Optional[BidStatus] = None) -> List[BidRow]:
    """Join every bid (optionally of one status) with its shift and names."""
    rows = []
    for bid in store.bids.values():
        if status is not None and bid.status != status:
            continue
        open_bid = store.open_bids.get(bid.open_bid_id)
        shift = store.find_shift(open_bid.shift_id) if open_bid else None
        if open_bid is None or shift is None:
            continue
        employee = store.employees.get(bid.employee_id)
        sub = store.sub_departments.get(shift.sub_department_id) if shift.sub_department_id else None
        rows.append(BidRow(
            bid=bid,
            open_bid=open_bid,
            shift=shift,
            employee_name=employee.name if employee else bid.employee_id,
            department_name=store.department_name(shift.department_id),
            sub_department_name=sub.name if sub else (shift.sub_department_id or ""),
            role_name=store.role_name(shift.role_id),
        ))
    return rows


@dataclass
class BidFilter:
    """Criteria for the open-bids list; ``None`` means "any"."""
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    department_id: Optional[str] = None
    sub_department_id: Optional[str] = None
    role_id: Optional[str] = None
    shift_status: Optional[ShiftStatus] = None
    is_assigned: Optional[bool] = None
    is_draft: Optional[bool] = None
    min_hours: Optional[float] = None
    max_hours: Optional[float] = None
    remuneration_level: Optional[RemunerationLevel] = None
    search: str = ""

    @property
    def active_count(self) -> int:
        values = [v for k, v in vars(self).items() if k != "search"]
        return sum(1 for v in values if v is not None) + (1 if self.search.strip() else 0)

    def matches(self, row: BidRow) -> bool:
        shift = row.shift
        if self.search.strip():
            needle = self.search.strip().lower()
            haystack = (
                shift.id, row.department_name, row.sub_department_name,
                row.role_name, row.employee_name,
            )
            if not any(needle in (h or "").lower() for h in haystack):
                return False
        if self.start_date and shift.date < self.start_date:
            return False
        if self.end_date and shift.date > self.end_date:
            return False
        if self.department_id and shift.department_id != self.department_id:
            return False
        if self.sub_department_id and shift.sub_department_id != self.sub_department_id:
            return False
        if self.role_id and shift.role_id != self.role_id:
            return False
        if self.shift_status is not None and shift.status != self.shift_status:
            return False
        if self.is_assigned is not None and shift.is_assigned != self.is_assigned:
            return False
        if self.is_draft is not None and shift.is_draft != self.is_draft:
            return False
        if self.min_hours is not None and shift.net_hours < self.min_hours:
            return False
        if self.max_hours is not None and shift.net_hours > self.max_hours:
            return False
        if self.remuneration_level is not None and shift.remuneration_level != self.remuneration_level:
            return False
        return True


def filter_bid_rows(rows: List[BidRow], criteria: Optional[BidFilter] = None) -> List[BidRow]:
    if criteria is None:
        return list(rows)
    return [row for row in rows if criteria.matches(row)]


def visible_ids(rows: List[BidRow]) -> List[str]:
    return [row.id for row in rows]


def sort_bid_rows(rows: List[BidRow], key: str = "date", direction: str = "asc") -> List[BidRow]:
    """Stable sort by one of SORT_KEYS; ``direction`` is "asc" or "desc"."""
    if key not in SORT_KEYS:
        raise ValueError(f"Unknown sort key {key!r}; expected one of {SORT_KEYS}")
    if direction not in ("asc", "desc"):
        raise ValueError(f"Unknown sort direction {direction!r}")

    def sort_key(row: BidRow):
        if key == "date":
            return (row.shift.date, row.shift.start_time)
        if key == "timestamp":
            return row.bid.created_at.timestamp() if row.bid.created_at else 0.0
        if key == "net_hours":
            return row.shift.net_hours
        if key == "department":
            return row.department_name.lower()
        return row.employee_name.lower()

    return sorted(rows, key=sort_key, reverse=(direction == "desc"))


# ----------------------------------------------------------------------
# Swaps
# ----------------------------------------------------------------------

@dataclass
class SwapFilter:
    search: str = ""
    status: Optional[SwapStatus] = None  # None = all


def filter_swaps(
    store: DomainStore,
    requests: List[SwapRequest],
    criteria: Optional[SwapFilter] = None,
) -> List[SwapRequest]:
    """Search requester/target names and the original shift's department."""
    if criteria is None:
        return list(requests)
    needle = criteria.search.strip().lower()
    result = []
    for request in requests:
        if criteria.status is not None and request.status != criteria.status:
            continue
        if needle:
            requester = store.employees.get(request.requester_id)
            target = store.employees.get(request.target_employee_id)
            shift = store.find_shift(request.original_shift_id)
            haystack = (
                requester.name if requester else request.requester_id,
                target.name if target else request.target_employee_id,
                store.department_name(shift.department_id) if shift else "",
            )
            if not any(needle in h.lower() for h in haystack):
                continue
        result.append(request)
    return result


@dataclass
class SwapStats:
    total: int = 0
    pending: int = 0
    approved: int = 0
    rejected: int = 0
    high: int = 0
    medium: int = 0
    low: int = 0


def swap_stats(requests: List[SwapRequest]) -> SwapStats:
    def by_status(status):
        return sum(1 for r in requests if r.status == status)

    def by_priority(priority):
        return sum(1 for r in requests if r.priority == priority)

    return SwapStats(
        total=len(requests),
        pending=by_status(SwapStatus.PENDING),
        approved=by_status(SwapStatus.APPROVED),
        rejected=by_status(SwapStatus.REJECTED),
        high=by_priority(SwapPriority.HIGH),
        medium=by_priority(SwapPriority.MEDIUM),
        low=by_priority(SwapPriority.LOW),
    )
