"""
Bid Workflow
============
Lifecycle of open bids and the employee bids placed on them.

    EmployeeBid:  pending -> approved | rejected   (both terminal)
    OpenBid:      Draft -> Open -> Offered -> Filled

Approving a bid is one command: the bid becomes approved, the employee is
assigned to the shift and the OpenBid becomes Filled. Sibling bids on the
same OpenBid stay pending but can no longer be approved, because approval
re-checks the OpenBid status every time. With
``EngineConfig.reject_siblings_on_fill`` they are rejected eagerly instead.
"""
from typing import List, Optional

from rostering.engine.base import SYSTEM_USER, BidStore, CurrentUser, ShiftStore
from rostering.engine.commands import Command, guard_transition
from rostering.engine.eligibility import (
    Eligibility,
    ReasonCode,
    can_approve_bid,
    can_express_interest,
    can_reject_bid,
    can_withdraw_bid,
)
from rostering.errors import InvalidTransition, NotFound, ValidationFailure
from rostering.models.audit import AuditStatus
from rostering.models.bidding import EmployeeBid, OpenBid
from rostering.models.config import EngineConfig
from rostering.models.status import BidStatus, OpenBidStatus, ShiftStatus
from rostering.store.domain import DomainStore
from rostering.utils.logging_setup import get_logger, log_function_call
from rostering.utils.structured_logging import get_structured_logger

logger = get_logger("rostering.engine.bids")
audit_log = get_structured_logger("rostering.audit")

SIBLING_FILLED_COMMENT = "Shift filled by another bid"


class BidWorkflow:
    """Commands and queries for bidding on open shifts."""

    def __init__(
        self,
        store: DomainStore,
        bid_store: Optional[BidStore] = None,
        shift_store: Optional[ShiftStore] = None,
        config: Optional[EngineConfig] = None,
        user: CurrentUser = SYSTEM_USER,
    ):
        self.store = store
        self.bid_store = bid_store
        self.shift_store = shift_store
        self.config = config or EngineConfig()
        self.user = user

    # ------------------------------------------------------------------
    # Open bids
    # ------------------------------------------------------------------

    @log_function_call
    def open_for_bidding(self, shift_id: str, draft: bool = False) -> OpenBid:
        """Wrap a shift in a new bidding window (``Draft`` or ``Open``)."""
        shift = self.store.get_shift(shift_id)
        current = self.store.open_bid_for_shift(shift_id)
        if current is not None and current.status != OpenBidStatus.FILLED:
            raise ValidationFailure(
                ReasonCode.OPEN_BID_EXISTS,
                f"Shift {shift_id} already has open bid {current.id} ({current.status.value})",
            )
        if shift.status != ShiftStatus.ACTIVE:
            raise ValidationFailure(
                ReasonCode.SHIFT_NOT_ACTIVE,
                f"Shift {shift_id} is {shift.status.value}",
            )

        open_bid = OpenBid(
            id=self.store.next_id("openbid"),
            shift_id=shift_id,
            status=OpenBidStatus.DRAFT if draft else OpenBidStatus.OPEN,
            created_at=self.store.now(),
        )
        Command(
            f"open bidding on {shift_id}",
            lambda changes: changes.append(self.store.add_open_bid(open_bid, self.user.id)),
        ).execute()
        logger.info(f"Shift {shift_id} open for bidding as {open_bid.id} ({open_bid.status.value})")
        return open_bid

    def _move_open_bid(self, open_bid_id: str, expected: OpenBidStatus, target: OpenBidStatus) -> OpenBid:
        open_bid = self.store.get_open_bid(open_bid_id)
        if open_bid.status != expected:
            error = InvalidTransition("OpenBid", open_bid_id, open_bid.status, target)
            logger.error(f"Caller error: {error}")
            raise error
        Command(
            f"open bid {open_bid_id} -> {target.value}",
            lambda changes: changes.append(self.store.update_open_bid_status(open_bid_id, target)),
        ).execute()
        logger.info(f"Open bid {open_bid_id}: {expected.value} -> {target.value}")
        return open_bid

    def publish_open_bid(self, open_bid_id: str) -> OpenBid:
        """Draft -> Open."""
        return self._move_open_bid(open_bid_id, OpenBidStatus.DRAFT, OpenBidStatus.OPEN)

    def mark_offered(self, open_bid_id: str) -> OpenBid:
        """Open -> Offered; the window keeps accepting bids."""
        return self._move_open_bid(open_bid_id, OpenBidStatus.OPEN, OpenBidStatus.OFFERED)

    # ------------------------------------------------------------------
    # Employee bids
    # ------------------------------------------------------------------

    @log_function_call
    def express_interest(
        self, employee_id: str, open_bid_id: str, comment: Optional[str] = None
    ) -> EmployeeBid:
        """Place a pending bid for ``employee_id`` on ``open_bid_id``."""
        employee = self.store.get_employee(employee_id)
        open_bid = self.store.get_open_bid(open_bid_id)
        shift = self.store.get_shift(open_bid.shift_id)
        can_express_interest(
            employee, shift, open_bid, self.store.bids_for_open_bid(open_bid_id)
        ).require()

        bid = EmployeeBid(
            id=self.store.next_id("bid"),
            employee_id=employee_id,
            open_bid_id=open_bid_id,
            created_at=self.store.now(),
            comment=comment,
        )

        def persist():
            if self.bid_store is not None:
                self.bid_store.create(bid)

        Command(
            f"bid {employee_id} on {open_bid_id}",
            lambda changes: changes.append(self.store.add_bid(bid)),
        ).execute(persist)
        logger.info(f"Bid {bid.id}: {employee_id} on {open_bid_id} (pending)")
        return bid

    def approval_eligibility(self, bid_id: str) -> Eligibility:
        """Evaluate approval without raising on ordinary ineligibility."""
        bid = self.store.get_bid(bid_id)
        open_bid = self.store.get_open_bid(bid.open_bid_id)
        shift = self.store.get_shift(open_bid.shift_id)
        return can_approve_bid(bid, open_bid, shift, self.store.employees.get(bid.employee_id))

    def rejection_eligibility(self, bid_id: str) -> Eligibility:
        return can_reject_bid(self.store.get_bid(bid_id))

    @log_function_call
    def approve(self, bid_id: str) -> EmployeeBid:
        """
        Approve a pending bid: assign the bidder and fill the OpenBid.

        Raises:
            NotFound: unknown bid, open bid or shift.
            InvalidTransition: the bid is already approved or rejected.
            ValidationFailure: the OpenBid is no longer accepting bids, the
                shift is cancelled or already staffed.
            PersistenceFailure: the external store refused; nothing changed.
        """
        bid = self.store.get_bid(bid_id)
        guard_transition("EmployeeBid", bid_id, bid.status, BidStatus.APPROVED)
        self.approval_eligibility(bid_id).require()

        open_bid = self.store.get_open_bid(bid.open_bid_id)
        shift_id = open_bid.shift_id
        now = self.store.now()
        siblings: List[EmployeeBid] = []
        if self.config.reject_siblings_on_fill:
            siblings = [
                b for b in self.store.bids_for_open_bid(open_bid.id)
                if b.id != bid_id and b.status == BidStatus.PENDING
            ]

        def mutate(changes):
            changes.append(self.store.update_bid_status(bid_id, BidStatus.APPROVED, resolved_at=now))
            changes.append(self.store.assign_employee(
                shift_id, bid.employee_id, self.user.id, audit=AuditStatus.BID_CONFIRMED,
            ))
            changes.append(self.store.update_open_bid_status(open_bid.id, OpenBidStatus.FILLED))
            for sibling in siblings:
                changes.append(self.store.update_bid_status(
                    sibling.id, BidStatus.REJECTED, resolved_at=now, comment=SIBLING_FILLED_COMMENT,
                ))

        def persist():
            if self.bid_store is not None:
                self.bid_store.update_status(bid_id, BidStatus.APPROVED)
                for sibling in siblings:
                    self.bid_store.update_status(sibling.id, BidStatus.REJECTED)
            if self.shift_store is not None:
                self.shift_store.update(shift_id, {"assigned_employee_id": bid.employee_id})

        Command(f"approve bid {bid_id}", mutate).execute(persist)
        logger.info(f"Bid {bid_id} approved: {bid.employee_id} assigned to {shift_id}, {open_bid.id} Filled")
        audit_log.info(
            "bid_approved", bid_id=bid_id, shift_id=shift_id,
            employee_id=bid.employee_id, open_bid_id=open_bid.id, actor_id=self.user.id,
        )
        return bid

    @log_function_call
    def reject(self, bid_id: str, comment: Optional[str] = None) -> EmployeeBid:
        """Reject a pending bid. Nothing else changes."""
        bid = self.store.get_bid(bid_id)
        guard_transition("EmployeeBid", bid_id, bid.status, BidStatus.REJECTED)
        self.rejection_eligibility(bid_id).require()
        now = self.store.now()

        def persist():
            if self.bid_store is not None:
                self.bid_store.update_status(bid_id, BidStatus.REJECTED)

        Command(
            f"reject bid {bid_id}",
            lambda changes: changes.append(
                self.store.update_bid_status(bid_id, BidStatus.REJECTED, resolved_at=now, comment=comment)
            ),
        ).execute(persist)
        logger.info(f"Bid {bid_id} rejected")
        audit_log.info("bid_rejected", bid_id=bid_id, actor_id=self.user.id)
        return bid

    @log_function_call
    def withdraw(self, bid_id: str) -> EmployeeBid:
        """
        Withdraw a bid.

        A pending bid is simply removed. Withdrawing an approved bid releases
        the shift again: the employee is unassigned and the OpenBid reopens.
        That is refused with ``ASSIGNMENT_CHANGED`` once the bidder no longer
        holds an Active shift.
        """
        bid = self.store.get_bid(bid_id)
        open_bid = self.store.get_open_bid(bid.open_bid_id)
        shift = self.store.get_shift(open_bid.shift_id)
        can_withdraw_bid(bid, shift).require()
        releases = bid.status == BidStatus.APPROVED

        def mutate(changes):
            if releases:
                changes.append(self.store.assign_employee(shift.id, None, self.user.id))
                changes.append(self.store.update_open_bid_status(open_bid.id, OpenBidStatus.OPEN))
            changes.append(self.store.remove_bid(bid_id, self.user.id))

        def persist():
            if releases and self.shift_store is not None:
                self.shift_store.update(open_bid.shift_id, {"assigned_employee_id": None})
            if self.bid_store is not None:
                self.bid_store.delete(bid_id)

        Command(f"withdraw bid {bid_id}", mutate).execute(persist)
        logger.info(f"Bid {bid_id} withdrawn{' (shift released)' if releases else ''}")
        return bid

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def bids_for(self, open_bid_id: str, status: Optional[BidStatus] = None) -> List[EmployeeBid]:
        self.store.get_open_bid(open_bid_id)
        rows = self.store.bids_for_open_bid(open_bid_id)
        if status is not None:
            rows = [b for b in rows if b.status == status]
        return rows

    def is_actionable(self, bid_id: str) -> bool:
        """True if the bid is pending and could still be approved."""
        try:
            return bool(self.approval_eligibility(bid_id))
        except NotFound:
            return False
