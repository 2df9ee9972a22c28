"""
Eligibility & Validation
========================
Stateless predicates consulted before every mutating action.

Each predicate returns an ``Eligibility`` (truthy when allowed) carrying a
``ReasonCode`` and a human-readable message. Ordinary ineligibility never
raises; only a missing required reference does (``MissingReference``).
Authorization is not checked here: permission checks happen where actions
are exposed.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional

from rostering.errors import MissingReference, ValidationFailure
from rostering.models.bidding import EmployeeBid, OpenBid
from rostering.models.employee import Employee
from rostering.models.shift import Shift
from rostering.models.status import BidStatus, ShiftStatus, SwapStatus
from rostering.models.swap import SwapRequest
from rostering.utils.logging_setup import get_logger, log_check

logger = get_logger("rostering.engine.eligibility")


class ReasonCode(str, Enum):
    """Why an action was allowed or refused."""
    OK = "ok"
    ROLE_MISMATCH = "role_mismatch"
    DEPARTMENT_MISMATCH = "department_mismatch"
    DUPLICATE_BID = "duplicate_bid"
    BID_REJECTED = "bid_rejected"
    BID_NOT_PENDING = "bid_not_pending"
    OPEN_BID_CLOSED = "open_bid_closed"
    OPEN_BID_EXISTS = "open_bid_exists"
    SHIFT_CANCELLED = "shift_cancelled"
    SHIFT_NOT_ACTIVE = "shift_not_active"
    SHIFT_FINALIZED = "shift_finalized"
    SHIFT_MISSING = "shift_missing"
    SWAP_NOT_PENDING = "swap_not_pending"
    ASSIGNMENT_CHANGED = "assignment_changed"
    ROSTER_LOCKED = "roster_locked"
    EMPLOYEE_INACTIVE = "employee_inactive"
    EMPLOYEE_UNAVAILABLE = "employee_unavailable"
    ALREADY_ASSIGNED = "already_assigned"


@dataclass(frozen=True)
class Eligibility:
    """Outcome of a predicate: allowed flag, reason code, message."""
    allowed: bool
    reason: ReasonCode = ReasonCode.OK
    message: str = ""

    def __bool__(self) -> bool:
        return self.allowed

    def require(self) -> None:
        """Raise ValidationFailure if the action was refused."""
        if not self.allowed:
            raise ValidationFailure(self.reason, self.message)


ALLOWED = Eligibility(True)


def _refuse(reason: ReasonCode, message: str) -> Eligibility:
    return Eligibility(False, reason, message)


def _required(value, what: str):
    if value is None:
        raise MissingReference(f"{what} is required")
    return value


def _report(name: str, result: Eligibility, subject: str) -> Eligibility:
    details = subject if result.allowed else f"{subject}: {result.message}"
    log_check(logger, name, result.allowed, details)
    return result


def can_express_interest(
    employee: Employee,
    shift: Shift,
    open_bid: OpenBid,
    existing_bids: Iterable[EmployeeBid] = (),
) -> Eligibility:
    """
    May ``employee`` bid on the shift wrapped by ``open_bid``?

    Refused when the employee is inactive, the bidding window is closed, the
    shift is not active, the shift's department or role does not match the
    employee, or the employee already holds a non-rejected bid on it.
    """
    _required(employee, "employee")
    _required(shift, "shift")
    _required(open_bid, "open bid")
    if open_bid.shift_id != shift.id:
        raise MissingReference(f"open bid {open_bid.id} does not wrap shift {shift.id}")

    subject = f"{employee.id} -> {open_bid.id}"
    if not employee.is_active:
        result = _refuse(ReasonCode.EMPLOYEE_INACTIVE, f"{employee.name} is inactive")
    elif not open_bid.status.accepts_bids:
        result = _refuse(
            ReasonCode.OPEN_BID_CLOSED,
            f"Bidding is {open_bid.status.value}, not Open",
        )
    elif shift.status == ShiftStatus.CANCELLED:
        result = _refuse(ReasonCode.SHIFT_CANCELLED, "Shift is cancelled")
    elif shift.status != ShiftStatus.ACTIVE:
        result = _refuse(ReasonCode.SHIFT_NOT_ACTIVE, f"Shift is {shift.status.value}")
    elif shift.assigned_employee_id == employee.id:
        result = _refuse(ReasonCode.ALREADY_ASSIGNED, "Already assigned to this shift")
    elif shift.department_id is not None and employee.department_id != shift.department_id:
        result = _refuse(
            ReasonCode.DEPARTMENT_MISMATCH,
            f"Shift belongs to department {shift.department_id}",
        )
    elif not employee.holds_role(shift.role_id):
        result = _refuse(ReasonCode.ROLE_MISMATCH, f"Shift requires role {shift.role_id}")
    elif any(
        b.employee_id == employee.id
        and b.open_bid_id == open_bid.id
        and b.status != BidStatus.REJECTED
        for b in existing_bids
    ):
        result = _refuse(ReasonCode.DUPLICATE_BID, "Already bid on this shift")
    else:
        result = ALLOWED
    return _report("can_express_interest", result, subject)


def can_withdraw_bid(bid: EmployeeBid, shift: Optional[Shift] = None) -> Eligibility:
    """
    A bid can be withdrawn unless it was rejected.

    When ``shift`` is given, an approved bid is withdrawable only while the
    bidder still holds the shift and it is Active; otherwise the winning
    assignment has already moved on, for example through a swap.
    """
    _required(bid, "bid")
    if bid.status == BidStatus.REJECTED:
        result = _refuse(ReasonCode.BID_REJECTED, "Rejected bids cannot be withdrawn")
    elif bid.status == BidStatus.APPROVED and shift is not None and (
        shift.assigned_employee_id != bid.employee_id or shift.status != ShiftStatus.ACTIVE
    ):
        result = _refuse(
            ReasonCode.ASSIGNMENT_CHANGED,
            f"Shift {shift.id} is {shift.status.value} and held by {shift.assigned_employee_id or 'nobody'}",
        )
    else:
        result = ALLOWED
    return _report("can_withdraw_bid", result, bid.id)


def can_approve_bid(
    bid: EmployeeBid,
    open_bid: OpenBid,
    shift: Shift,
    employee: Optional[Employee] = None,
) -> Eligibility:
    """
    May ``bid`` be approved now?

    The bidding window is re-checked on every call: once a sibling bid has
    filled it, the remaining pending bids are refused here.
    """
    _required(bid, "bid")
    _required(open_bid, "open bid")
    _required(shift, "shift")

    if bid.status != BidStatus.PENDING:
        result = _refuse(ReasonCode.BID_NOT_PENDING, f"Bid is {bid.status.value}")
    elif not open_bid.status.accepts_bids:
        result = _refuse(
            ReasonCode.OPEN_BID_CLOSED,
            f"Open bid is {open_bid.status.value}, not Open",
        )
    elif shift.status == ShiftStatus.CANCELLED:
        result = _refuse(ReasonCode.SHIFT_CANCELLED, "Shift is cancelled")
    elif shift.status.is_finalized:
        result = _refuse(ReasonCode.SHIFT_FINALIZED, f"Shift is {shift.status.value}")
    elif shift.is_assigned and shift.assigned_employee_id != bid.employee_id:
        result = _refuse(ReasonCode.ALREADY_ASSIGNED, "Shift already has an assignee")
    elif employee is not None and not employee.is_active:
        result = _refuse(ReasonCode.EMPLOYEE_INACTIVE, f"{employee.name} is inactive")
    else:
        result = ALLOWED
    return _report("can_approve_bid", result, bid.id)


def can_reject_bid(bid: EmployeeBid) -> Eligibility:
    _required(bid, "bid")
    if bid.status != BidStatus.PENDING:
        result = _refuse(ReasonCode.BID_NOT_PENDING, f"Bid is {bid.status.value}")
    else:
        result = ALLOWED
    return _report("can_reject_bid", result, bid.id)


def can_approve_swap(
    request: SwapRequest,
    original: Optional[Shift],
    requested: Optional[Shift],
) -> Eligibility:
    """
    May the swap be approved?

    A shift that no longer exists is passed as ``None`` and refused with
    SHIFT_MISSING rather than raising. Both shifts must still be held by the
    employees named in the request.
    """
    _required(request, "swap request")
    if request.status != SwapStatus.PENDING:
        result = _refuse(ReasonCode.SWAP_NOT_PENDING, f"Request is {request.status.value}")
    elif original is None or requested is None:
        missing = request.original_shift_id if original is None else request.requested_shift_id
        result = _refuse(ReasonCode.SHIFT_MISSING, f"Shift {missing} no longer exists")
    elif ShiftStatus.CANCELLED in (original.status, requested.status):
        result = _refuse(ReasonCode.SHIFT_CANCELLED, "A referenced shift is cancelled")
    elif original.status.is_finalized or requested.status.is_finalized:
        result = _refuse(ReasonCode.SHIFT_FINALIZED, "A referenced shift is completed")
    elif (
        original.assigned_employee_id != request.requester_id
        or requested.assigned_employee_id != request.target_employee_id
    ):
        result = _refuse(
            ReasonCode.ASSIGNMENT_CHANGED,
            "Shift assignments changed since the request was made",
        )
    else:
        result = ALLOWED
    return _report("can_approve_swap", result, request.id)


def can_reject_swap(request: SwapRequest) -> Eligibility:
    _required(request, "swap request")
    if request.status != SwapStatus.PENDING:
        result = _refuse(ReasonCode.SWAP_NOT_PENDING, f"Request is {request.status.value}")
    else:
        result = ALLOWED
    return _report("can_reject_swap", result, request.id)


def can_edit_shift_times(shift: Shift, roster_locked: bool) -> Eligibility:
    """Refused on a locked roster or a completed/cancelled shift."""
    _required(shift, "shift")
    if roster_locked:
        result = _refuse(ReasonCode.ROSTER_LOCKED, "Roster is locked")
    elif shift.status.is_finalized:
        result = _refuse(ReasonCode.SHIFT_FINALIZED, f"Shift is {shift.status.value}")
    else:
        result = ALLOWED
    return _report("can_edit_shift_times", result, shift.id)


def can_assign_employee(
    employee: Employee,
    shift: Shift,
    roster_locked: bool = False,
    enforce_availability: bool = True,
) -> Eligibility:
    """Direct (manager) assignment of ``employee`` to ``shift``."""
    _required(employee, "employee")
    _required(shift, "shift")

    if roster_locked:
        result = _refuse(ReasonCode.ROSTER_LOCKED, "Roster is locked")
    elif shift.status.is_finalized:
        result = _refuse(ReasonCode.SHIFT_FINALIZED, f"Shift is {shift.status.value}")
    elif not employee.is_active:
        result = _refuse(ReasonCode.EMPLOYEE_INACTIVE, f"{employee.name} is inactive")
    elif shift.assigned_employee_id == employee.id:
        result = _refuse(ReasonCode.ALREADY_ASSIGNED, "Already assigned to this shift")
    elif shift.department_id is not None and employee.department_id != shift.department_id:
        result = _refuse(
            ReasonCode.DEPARTMENT_MISMATCH,
            f"Shift belongs to department {shift.department_id}",
        )
    elif not employee.holds_role(shift.role_id):
        result = _refuse(ReasonCode.ROLE_MISMATCH, f"Shift requires role {shift.role_id}")
    elif enforce_availability and not employee.is_available(
        shift.date, shift.start_time, shift.end_time
    ):
        result = _refuse(
            ReasonCode.EMPLOYEE_UNAVAILABLE,
            f"{employee.name} is not available on {shift.date.isoformat()}",
        )
    else:
        result = ALLOWED
    return _report("can_assign_employee", result, f"{employee.id} -> {shift.id}")


def can_request_swap(
    request: SwapRequest,
    original: Optional[Shift],
    requested: Optional[Shift],
) -> Eligibility:
    """A new swap must reference two distinct live shifts held by its two parties."""
    _required(request, "swap request")
    if original is None or requested is None:
        missing = request.original_shift_id if original is None else request.requested_shift_id
        result = _refuse(ReasonCode.SHIFT_MISSING, f"Shift {missing} does not exist")
    elif original.id == requested.id:
        result = _refuse(ReasonCode.ASSIGNMENT_CHANGED, "Cannot swap a shift with itself")
    elif ShiftStatus.CANCELLED in (original.status, requested.status):
        result = _refuse(ReasonCode.SHIFT_CANCELLED, "A referenced shift is cancelled")
    elif original.status.is_finalized or requested.status.is_finalized:
        result = _refuse(ReasonCode.SHIFT_FINALIZED, "A referenced shift is completed")
    elif original.assigned_employee_id != request.requester_id:
        result = _refuse(
            ReasonCode.ASSIGNMENT_CHANGED,
            f"Shift {original.id} is not assigned to {request.requester_id}",
        )
    elif requested.assigned_employee_id != request.target_employee_id:
        result = _refuse(
            ReasonCode.ASSIGNMENT_CHANGED,
            f"Shift {requested.id} is not assigned to {request.target_employee_id}",
        )
    else:
        result = ALLOWED
    return _report("can_request_swap", result, request.id)
