"""
Domain Store
============
Single authoritative in-memory representation of the domain.

Read accessors look entities up by id, date range or department. Mutation
primitives are the only sanctioned way to change state: each returns a
``Change`` whose ``revert()`` undoes it exactly (including the audit event it
recorded), which is what optimistic commands roll back on persistence
failure.
"""
from collections import defaultdict
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from typing import Any, Callable, Dict, Iterable, List, Optional

from rostering.errors import NotFound
from rostering.models.audit import AuditEvent, AuditStatus
from rostering.models.bidding import EmployeeBid, OpenBid
from rostering.models.employee import Employee
from rostering.models.organization import Department, Organization, Role, SubDepartment
from rostering.models.roster import RosterTree
from rostering.models.shift import Shift, ShiftTemplate
from rostering.models.status import BidStatus, OpenBidStatus, ShiftStatus, SwapStatus
from rostering.models.swap import SwapApproval, SwapRequest
from rostering.utils.logging_setup import get_logger

logger = get_logger("rostering.store.domain")


@dataclass
class Change:
    """One applied mutation and how to undo it."""
    description: str
    undo: Callable[[], None]
    entity: Any = None

    def revert(self) -> None:
        self.undo()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class DomainStore:
    """In-memory owner of every entity the engine works on."""

    def __init__(self, clock: Optional[Callable[[], datetime]] = None):
        self.clock = clock or _utcnow
        self.organizations: Dict[str, Organization] = {}
        self.departments: Dict[str, Department] = {}
        self.sub_departments: Dict[str, SubDepartment] = {}
        self.roles: Dict[str, Role] = {}
        self.employees: Dict[str, Employee] = {}
        self.shifts: Dict[str, Shift] = {}
        self.open_bids: Dict[str, OpenBid] = {}
        self.bids: Dict[str, EmployeeBid] = {}
        self.swaps: Dict[str, SwapRequest] = {}
        self.approvals: Dict[str, SwapApproval] = {}
        self.templates: Dict[str, ShiftTemplate] = {}
        self.rosters: Dict[date, RosterTree] = {}
        self.audit: List[AuditEvent] = []
        self._counters: Dict[str, int] = defaultdict(int)

    # ------------------------------------------------------------------
    # Ids and time
    # ------------------------------------------------------------------

    def next_id(self, prefix: str) -> str:
        """Sequential id unique within this store (``shift-1``, ``bid-2`` ...)."""
        while True:
            self._counters[prefix] += 1
            candidate = f"{prefix}-{self._counters[prefix]}"
            if not self._id_taken(candidate):
                return candidate

    def _id_taken(self, candidate: str) -> bool:
        tables = (self.shifts, self.open_bids, self.bids, self.swaps, self.templates)
        return any(candidate in table for table in tables)

    def now(self) -> datetime:
        return self.clock()

    # ------------------------------------------------------------------
    # Registration (reference data, no undo needed)
    # ------------------------------------------------------------------

    def add_organization(self, org: Organization) -> Organization:
        self.organizations[org.id] = org
        return org

    def add_department(self, dept: Department) -> Department:
        self.departments[dept.id] = dept
        return dept

    def add_sub_department(self, sub: SubDepartment) -> SubDepartment:
        if sub.department_id not in self.departments:
            raise NotFound("Department", sub.department_id)
        self.sub_departments[sub.id] = sub
        return sub

    def add_role(self, role: Role) -> Role:
        self.roles[role.id] = role
        return role

    def add_employee(self, employee: Employee) -> Employee:
        self.employees[employee.id] = employee
        return employee

    def add_template(self, template: ShiftTemplate) -> ShiftTemplate:
        self.templates[template.id] = template
        return template

    # ------------------------------------------------------------------
    # Read accessors
    # ------------------------------------------------------------------

    def _get(self, table: Dict, entity: str, key: Any):
        try:
            return table[key]
        except KeyError:
            raise NotFound(entity, key) from None

    def get_shift(self, shift_id: str) -> Shift:
        return self._get(self.shifts, "Shift", shift_id)

    def find_shift(self, shift_id: Optional[str]) -> Optional[Shift]:
        return self.shifts.get(shift_id) if shift_id else None

    def get_employee(self, employee_id: str) -> Employee:
        return self._get(self.employees, "Employee", employee_id)

    def get_open_bid(self, open_bid_id: str) -> OpenBid:
        return self._get(self.open_bids, "OpenBid", open_bid_id)

    def get_bid(self, bid_id: str) -> EmployeeBid:
        return self._get(self.bids, "EmployeeBid", bid_id)

    def get_swap(self, swap_id: str) -> SwapRequest:
        return self._get(self.swaps, "SwapRequest", swap_id)

    def get_template(self, template_id: str) -> ShiftTemplate:
        return self._get(self.templates, "ShiftTemplate", template_id)

    def get_role(self, role_id: Optional[str]) -> Optional[Role]:
        return self.roles.get(role_id) if role_id else None

    def role_name(self, role_id: Optional[str]) -> str:
        role = self.get_role(role_id)
        if role:
            return role.name
        return role_id or "Unassigned role"

    def department_name(self, department_id: Optional[str]) -> str:
        dept = self.departments.get(department_id) if department_id else None
        return dept.name if dept else (department_id or "")

    def shifts_in_range(self, start: date, end: date) -> List[Shift]:
        """Shifts dated within [start, end], ordered by date then start time."""
        rows = [s for s in self.shifts.values() if start <= s.date <= end]
        return sorted(rows, key=lambda s: (s.date, s.start_time, s.id))

    def shifts_on(self, day: date) -> List[Shift]:
        return self.shifts_in_range(day, day)

    def shifts_by_department(self, department_id: str) -> List[Shift]:
        rows = [s for s in self.shifts.values() if s.department_id == department_id]
        return sorted(rows, key=lambda s: (s.date, s.start_time, s.id))

    def shifts_for_employee(self, employee_id: str) -> List[Shift]:
        rows = [s for s in self.shifts.values() if s.assigned_employee_id == employee_id]
        return sorted(rows, key=lambda s: (s.date, s.start_time, s.id))

    def open_bid_for_shift(self, shift_id: str) -> Optional[OpenBid]:
        """The shift's current bidding window: a live one if any, else the latest."""
        windows = [ob for ob in self.open_bids.values() if ob.shift_id == shift_id]
        if not windows:
            return None
        live = [ob for ob in windows if ob.status != OpenBidStatus.FILLED]
        return (live or windows)[-1]

    def bids_for_open_bid(self, open_bid_id: str) -> List[EmployeeBid]:
        return [b for b in self.bids.values() if b.open_bid_id == open_bid_id]

    def bids_for_employee(self, employee_id: str) -> List[EmployeeBid]:
        return [b for b in self.bids.values() if b.employee_id == employee_id]

    def approval_for(self, swap_id: str) -> Optional[SwapApproval]:
        return self.approvals.get(swap_id)

    def roster_for(self, day: date) -> Optional[RosterTree]:
        return self.rosters.get(day)

    def history(self, shift_id: str) -> List[AuditEvent]:
        """Audit events for a shift in the order they happened."""
        return [e for e in self.audit if e.shift_id == shift_id]

    # ------------------------------------------------------------------
    # Audit
    # ------------------------------------------------------------------

    def _audit(
        self,
        shift_id: str,
        status: AuditStatus,
        actor_id: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> Callable[[], None]:
        self._counters["audit"] += 1
        event = AuditEvent(
            id=f"audit-{self._counters['audit']}",
            shift_id=shift_id,
            status=status,
            at=self.now(),
            actor_id=actor_id,
            notes=notes,
        )
        self.audit.append(event)

        def _drop():
            if event in self.audit:
                self.audit.remove(event)
        return _drop

    @staticmethod
    def _chain(*undos: Callable[[], None]) -> Callable[[], None]:
        def _undo():
            for fn in reversed(undos):
                fn()
        return _undo

    # ------------------------------------------------------------------
    # Mutation primitives
    # ------------------------------------------------------------------

    def add_shift(self, shift: Shift, actor_id: Optional[str] = None) -> Change:
        self.shifts[shift.id] = shift
        status = AuditStatus.CREATED_DRAFT if shift.is_draft else AuditStatus.CREATED_FINAL
        drop = self._audit(shift.id, status, actor_id)
        return Change(
            f"create shift {shift.id}",
            self._chain(lambda: self.shifts.pop(shift.id, None), drop),
            shift,
        )

    def update_shift_status(
        self,
        shift_id: str,
        status: ShiftStatus,
        actor_id: Optional[str] = None,
        audit: Optional[AuditStatus] = None,
        notes: Optional[str] = None,
    ) -> Change:
        shift = self.get_shift(shift_id)
        previous = shift.status
        shift.status = status
        undos = [lambda: setattr(shift, "status", previous)]
        event = audit or {
            ShiftStatus.CANCELLED: AuditStatus.CANCELLED_BY_ADMIN,
            ShiftStatus.NO_SHOW: AuditStatus.NO_SHOW,
            ShiftStatus.COMPLETED: AuditStatus.COMPLETED,
        }.get(status)
        if event:
            undos.append(self._audit(shift_id, event, actor_id, notes))
        logger.debug(f"shift {shift_id}: {previous.value} -> {status.value}")
        return Change(f"shift {shift_id} status {status.value}", self._chain(*undos), shift)

    def assign_employee(
        self,
        shift_id: str,
        employee_id: Optional[str],
        actor_id: Optional[str] = None,
        audit: Optional[AuditStatus] = None,
        notes: Optional[str] = None,
    ) -> Change:
        """Set (or clear, with ``None``) the single assignee of a shift."""
        shift = self.get_shift(shift_id)
        if employee_id is not None:
            self.get_employee(employee_id)
        previous = shift.assigned_employee_id
        shift.assigned_employee_id = employee_id
        if audit is None:
            if employee_id is None:
                audit = AuditStatus.UNASSIGNED
            elif previous is None:
                audit = AuditStatus.ASSIGNED
            else:
                audit = AuditStatus.REASSIGNED
        drop = self._audit(shift_id, audit, actor_id, notes)
        logger.debug(f"shift {shift_id}: assignee {previous} -> {employee_id}")
        return Change(
            f"assign {employee_id} to {shift_id}",
            self._chain(lambda: setattr(shift, "assigned_employee_id", previous), drop),
            shift,
        )

    def update_shift_times(
        self,
        shift_id: str,
        start: time,
        end: time,
        actor_id: Optional[str] = None,
    ) -> Change:
        shift = self.get_shift(shift_id)
        before = (shift.start_time, shift.end_time)
        shift.start_time, shift.end_time = start, end
        drop = self._audit(
            shift_id, AuditStatus.EDITED_TIME, actor_id,
            f"{before[0]:%H:%M}-{before[1]:%H:%M} -> {start:%H:%M}-{end:%H:%M}",
        )

        def _restore():
            shift.start_time, shift.end_time = before
        return Change(f"retime {shift_id}", self._chain(_restore, drop), shift)

    def add_open_bid(self, open_bid: OpenBid, actor_id: Optional[str] = None) -> Change:
        self.get_shift(open_bid.shift_id)
        self.open_bids[open_bid.id] = open_bid
        drop = self._audit(open_bid.shift_id, AuditStatus.OFFERED_FOR_BIDDING, actor_id)
        return Change(
            f"open bidding {open_bid.id}",
            self._chain(lambda: self.open_bids.pop(open_bid.id, None), drop),
            open_bid,
        )

    def update_open_bid_status(self, open_bid_id: str, status: OpenBidStatus) -> Change:
        open_bid = self.get_open_bid(open_bid_id)
        previous = open_bid.status
        open_bid.status = status
        logger.debug(f"open bid {open_bid_id}: {previous.value} -> {status.value}")
        return Change(
            f"open bid {open_bid_id} {status.value}",
            lambda: setattr(open_bid, "status", previous),
            open_bid,
        )

    def add_bid(self, bid: EmployeeBid) -> Change:
        open_bid = self.get_open_bid(bid.open_bid_id)
        self.get_employee(bid.employee_id)
        self.bids[bid.id] = bid
        drop = self._audit(open_bid.shift_id, AuditStatus.BID_PENDING, bid.employee_id)
        return Change(
            f"add bid {bid.id}",
            self._chain(lambda: self.bids.pop(bid.id, None), drop),
            bid,
        )

    def remove_bid(self, bid_id: str, actor_id: Optional[str] = None) -> Change:
        bid = self.get_bid(bid_id)
        open_bid = self.get_open_bid(bid.open_bid_id)
        del self.bids[bid_id]
        drop = self._audit(open_bid.shift_id, AuditStatus.DECLINED, actor_id, f"bid {bid_id} withdrawn")

        def _restore():
            self.bids[bid_id] = bid
        return Change(f"remove bid {bid_id}", self._chain(_restore, drop), bid)

    def update_bid_status(
        self,
        bid_id: str,
        status: BidStatus,
        resolved_at: Optional[datetime] = None,
        comment: Optional[str] = None,
    ) -> Change:
        bid = self.get_bid(bid_id)
        before = (bid.status, bid.resolved_at, bid.comment)
        bid.status = status
        bid.resolved_at = resolved_at
        if comment is not None:
            bid.comment = comment

        def _restore():
            bid.status, bid.resolved_at, bid.comment = before
        return Change(f"bid {bid_id} {status.value}", _restore, bid)

    def add_swap(self, request: SwapRequest) -> Change:
        for sid in request.shift_ids:
            self.get_shift(sid)
        self.swaps[request.id] = request
        drops = [
            self._audit(sid, AuditStatus.SWAP_REQUESTED, request.requester_id, request.reason)
            for sid in request.shift_ids
        ]
        return Change(
            f"add swap {request.id}",
            self._chain(lambda: self.swaps.pop(request.id, None), *drops),
            request,
        )

    def update_swap_status(
        self, swap_id: str, status: SwapStatus, notes: Optional[str] = None
    ) -> Change:
        request = self.get_swap(swap_id)
        before = (request.status, request.notes)
        request.status = status
        if notes is not None:
            request.notes = notes

        def _restore():
            request.status, request.notes = before
        return Change(f"swap {swap_id} {status.value}", _restore, request)

    def record_swap_approval(self, approval: SwapApproval) -> Change:
        request = self.get_swap(approval.swap_id)
        previous = self.approvals.get(approval.swap_id)
        self.approvals[approval.swap_id] = approval
        if approval.decision == SwapStatus.REJECTED:
            drops = [
                self._audit(sid, AuditStatus.SWAP_REJECTED, approval.approver_id, approval.notes)
                for sid in request.shift_ids
            ]
        else:
            drops = []

        def _restore():
            if previous is None:
                self.approvals.pop(approval.swap_id, None)
            else:
                self.approvals[approval.swap_id] = previous
        return Change(f"decide swap {approval.swap_id}", self._chain(_restore, *drops), approval)

    def set_roster(self, day: date, tree: RosterTree) -> Change:
        previous = self.rosters.get(day)
        self.rosters[day] = tree

        def _restore():
            if previous is None:
                self.rosters.pop(day, None)
            else:
                self.rosters[day] = previous
        return Change(f"roster {day.isoformat()}", _restore, tree)

    # ------------------------------------------------------------------
    # Bulk loading
    # ------------------------------------------------------------------

    def load_shifts(self, shifts: Iterable[Shift]) -> int:
        count = 0
        for shift in shifts:
            self.add_shift(shift)
            count += 1
        return count

    def load_from(
        self,
        start: date,
        end: date,
        shift_store=None,
        bid_store=None,
        swap_store=None,
        roster_store=None,
    ) -> Dict[str, int]:
        """
        Hydrate the store with persisted state for the dates [start, end].

        Loaded records replace local entities with the same id and are not
        audited. Bids whose OpenBid is unknown here, and swap requests that
        reference a shift not held locally, are skipped with a warning.

        Returns:
            Number of entities loaded per kind.
        """
        if end < start:
            raise ValueError(f"Load range ends before it starts: {start} > {end}")
        counts = {"shifts": 0, "bids": 0, "swaps": 0, "rosters": 0}
        if shift_store is not None:
            for shift in shift_store.list_by_date_range(start, end):
                self.shifts[shift.id] = shift
                counts["shifts"] += 1
        if bid_store is not None:
            for bid in bid_store.list_all():
                if bid.open_bid_id not in self.open_bids:
                    logger.warning(f"Skipping bid {bid.id}: unknown open bid {bid.open_bid_id}")
                    continue
                self.bids[bid.id] = bid
                counts["bids"] += 1
        if swap_store is not None:
            for request in swap_store.list_all():
                missing = [sid for sid in request.shift_ids if sid not in self.shifts]
                if missing:
                    logger.warning(f"Skipping swap {request.id}: shifts not loaded {missing}")
                    continue
                self.swaps[request.id] = request
                counts["swaps"] += 1
        if roster_store is not None:
            day = start
            while day <= end:
                tree = roster_store.get_by_date(day)
                if tree is not None:
                    self.rosters[day] = tree
                    counts["rosters"] += 1
                day += timedelta(days=1)
        logger.info(
            f"Loaded {start.isoformat()} -> {end.isoformat()}: "
            + ", ".join(f"{n} {kind}" for kind, n in counts.items())
        )
        return counts
