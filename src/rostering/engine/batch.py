"""
Bulk Selection & Batch Processing
=================================
A selection set scoped to the currently visible items, a pure planner that
predicts per-item outcomes, and a sequential processor that applies one
action to every selected item.

A batch is not atomic across items. Each item is re-validated and applied
on its own through the bid or swap workflow; a failure is recorded as that
item's outcome and the batch carries on. Items run strictly in order
because earlier approvals can close the OpenBid a later bid refers to.
"""
from collections import Counter, OrderedDict
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, Iterable, Iterator, List, Optional, Set

import pandas as pd

from rostering.engine.base import (
    FEATURE_APPROVE_BIDS,
    FEATURE_APPROVE_SWAPS,
    FEATURE_REJECT_BIDS,
    FEATURE_REJECT_SWAPS,
    PermissionChecker,
)
from rostering.engine.bids import BidWorkflow
from rostering.engine.eligibility import ReasonCode
from rostering.engine.swaps import SwapWorkflow
from rostering.errors import BatchInProgress, NotFound, RosteringError
from rostering.models.status import BidStatus, SwapStatus
from rostering.utils.logging_setup import WorkflowLogger, get_logger
from rostering.utils.structured_logging import bind_context, clear_context, get_structured_logger

logger = get_logger("rostering.engine.batch")
audit_log = get_structured_logger("rostering.audit")


class BulkAction(str, Enum):
    APPROVE_BIDS = "approve_bids"
    REJECT_BIDS = "reject_bids"
    APPROVE_SWAPS = "approve_swaps"
    REJECT_SWAPS = "reject_swaps"

    @property
    def feature_key(self) -> str:
        return {
            BulkAction.APPROVE_BIDS: FEATURE_APPROVE_BIDS,
            BulkAction.REJECT_BIDS: FEATURE_REJECT_BIDS,
            BulkAction.APPROVE_SWAPS: FEATURE_APPROVE_SWAPS,
            BulkAction.REJECT_SWAPS: FEATURE_REJECT_SWAPS,
        }[self]

    @property
    def verb(self) -> str:
        return "approved" if self in (BulkAction.APPROVE_BIDS, BulkAction.APPROVE_SWAPS) else "rejected"

    @property
    def targets_bids(self) -> bool:
        return self in (BulkAction.APPROVE_BIDS, BulkAction.REJECT_BIDS)


def available_bulk_actions(checker: PermissionChecker) -> List[BulkAction]:
    """Bulk actions the injected permission checker allows to be exposed."""
    return [action for action in BulkAction if checker.has_permission(action.feature_key)]


@dataclass
class ItemOutcome:
    """Result (or predicted result) for one selected item."""
    item_id: str
    succeeded: bool
    error_kind: Optional[str] = None
    message: str = ""

    @classmethod
    def success(cls, item_id: str) -> "ItemOutcome":
        return cls(item_id, True)

    @classmethod
    def failure(cls, item_id: str, error: RosteringError) -> "ItemOutcome":
        return cls(item_id, False, error.kind, str(error))


@dataclass
class BatchReport:
    """Per-item outcomes of one bulk action plus aggregate counts."""
    action: BulkAction
    outcomes: List[ItemOutcome] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.outcomes)

    @property
    def succeeded(self) -> int:
        return sum(1 for o in self.outcomes if o.succeeded)

    @property
    def failed(self) -> int:
        return self.total - self.succeeded

    @property
    def failures_by_kind(self) -> Dict[str, int]:
        return dict(Counter(o.error_kind for o in self.outcomes if not o.succeeded))

    @property
    def succeeded_ids(self) -> List[str]:
        return [o.item_id for o in self.outcomes if o.succeeded]

    @property
    def failed_ids(self) -> List[str]:
        return [o.item_id for o in self.outcomes if not o.succeeded]

    def brief(self) -> str:
        """e.g. "2 succeeded, 1 failed (InvalidTransition)"."""
        text = f"{self.succeeded} succeeded, {self.failed} failed"
        if self.failed:
            text += f" ({', '.join(sorted(self.failures_by_kind))})"
        return text

    def summary(self) -> str:
        """e.g. "7 of 9 approved, 2 failed: 2 InvalidTransition"."""
        text = f"{self.succeeded} of {self.total} {self.action.verb}"
        if self.failed:
            kinds = ", ".join(f"{n} {kind}" for kind, n in sorted(self.failures_by_kind.items()))
            text += f", {self.failed} failed: {kinds}"
        return text

    def to_dataframe(self) -> pd.DataFrame:
        return pd.DataFrame(
            [
                {
                    "item_id": o.item_id,
                    "action": self.action.value,
                    "result": "succeeded" if o.succeeded else "failed",
                    "error_kind": o.error_kind or "",
                    "message": o.message,
                }
                for o in self.outcomes
            ],
            columns=["item_id", "action", "result", "error_kind", "message"],
        )


class SelectionSet:
    """
    Ordered set of selected ids.

    Every add goes through an eligibility callable, so the set never holds
    an id the single-item validator would refuse at the time it was added.
    """

    def __init__(self):
        self._ids: "OrderedDict[str, None]" = OrderedDict()

    def __contains__(self, item_id: str) -> bool:
        return item_id in self._ids

    def __len__(self) -> int:
        return len(self._ids)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._ids))

    @property
    def ids(self) -> List[str]:
        return list(self._ids)

    def select(self, item_id: str, eligible: Callable[[str], bool]) -> bool:
        if item_id in self._ids:
            return True
        if not eligible(item_id):
            return False
        self._ids[item_id] = None
        return True

    def deselect(self, item_id: str) -> None:
        self._ids.pop(item_id, None)

    def toggle(self, item_id: str, eligible: Callable[[str], bool]) -> bool:
        """Flip membership; returns True if the id is selected afterwards."""
        if item_id in self._ids:
            self.deselect(item_id)
            return False
        return self.select(item_id, eligible)

    def select_all(self, visible_ids: Iterable[str], eligible: Callable[[str], bool]) -> int:
        """Add every visible id that passes ``eligible``; returns how many were added."""
        added = 0
        for item_id in visible_ids:
            if item_id not in self._ids and eligible(item_id):
                self._ids[item_id] = None
                added += 1
        return added

    def restrict_to(self, visible_ids: Iterable[str]) -> None:
        """Drop selected ids that are no longer visible (filters changed)."""
        visible = set(visible_ids)
        for item_id in list(self._ids):
            if item_id not in visible:
                del self._ids[item_id]

    def clear(self) -> None:
        self._ids.clear()


class BatchProcessor:
    """Applies one BulkAction across the selection."""

    def __init__(self, bids: BidWorkflow, swaps: SwapWorkflow, selection: Optional[SelectionSet] = None):
        self.bids = bids
        self.swaps = swaps
        self.selection = selection if selection is not None else SelectionSet()
        self._running = False
        self._batch_count = 0

    @property
    def running(self) -> bool:
        return self._running

    # ------------------------------------------------------------------
    # Eligibility and selection
    # ------------------------------------------------------------------

    def eligibility_for(self, action: BulkAction) -> Callable[[str], bool]:
        """Single-item predicate used to gate selection for ``action``."""
        check = {
            BulkAction.APPROVE_BIDS: self.bids.approval_eligibility,
            BulkAction.REJECT_BIDS: self.bids.rejection_eligibility,
            BulkAction.APPROVE_SWAPS: self.swaps.approval_eligibility,
            BulkAction.REJECT_SWAPS: self.swaps.rejection_eligibility,
        }[action]

        def eligible(item_id: str) -> bool:
            try:
                return bool(check(item_id))
            except NotFound:
                return False
        return eligible

    def select(self, action: BulkAction, item_id: str) -> bool:
        return self.selection.select(item_id, self.eligibility_for(action))

    def toggle(self, action: BulkAction, item_id: str) -> bool:
        return self.selection.toggle(item_id, self.eligibility_for(action))

    def select_all(self, action: BulkAction, visible_ids: Iterable[str]) -> int:
        return self.selection.select_all(visible_ids, self.eligibility_for(action))

    # ------------------------------------------------------------------
    # Planning
    # ------------------------------------------------------------------

    def plan_batch(self, action: BulkAction, item_ids: Optional[Iterable[str]] = None) -> List[ItemOutcome]:
        """
        Predict each item's outcome without mutating anything.

        Approvals are simulated in order: once a planned approval fills an
        OpenBid (or takes a shift into a swap), later items touching the same
        OpenBid (or shift) are predicted to fail.
        """
        ids = list(self.selection) if item_ids is None else list(item_ids)
        if action.targets_bids:
            return self._plan_bids(action, ids)
        return self._plan_swaps(action, ids)

    def _plan_bids(self, action: BulkAction, ids: List[str]) -> List[ItemOutcome]:
        store = self.bids.store
        filled: Set[str] = set()
        decided: Set[str] = set()
        plan = []
        for bid_id in ids:
            bid = store.bids.get(bid_id)
            if bid is None:
                plan.append(ItemOutcome.failure(bid_id, NotFound("EmployeeBid", bid_id)))
                continue
            target = BidStatus.APPROVED if action == BulkAction.APPROVE_BIDS else BidStatus.REJECTED
            if bid.status.is_terminal or bid_id in decided:
                plan.append(ItemOutcome(bid_id, False, "InvalidTransition",
                                        f"EmployeeBid {bid_id} cannot move to {target.value}"))
                continue
            if action == BulkAction.APPROVE_BIDS:
                if bid.open_bid_id in filled:
                    plan.append(ItemOutcome(bid_id, False, "ValidationFailure",
                                            ReasonCode.OPEN_BID_CLOSED.value))
                    continue
                try:
                    result = self.bids.approval_eligibility(bid_id)
                except NotFound as e:
                    plan.append(ItemOutcome.failure(bid_id, e))
                    continue
                if result:
                    filled.add(bid.open_bid_id)
            else:
                result = self.bids.rejection_eligibility(bid_id)
            if result:
                decided.add(bid_id)
                plan.append(ItemOutcome.success(bid_id))
            else:
                plan.append(ItemOutcome(bid_id, False, "ValidationFailure", result.message))
        return plan

    def _plan_swaps(self, action: BulkAction, ids: List[str]) -> List[ItemOutcome]:
        store = self.swaps.store
        taken: Set[str] = set()
        decided: Set[str] = set()
        plan = []
        for swap_id in ids:
            request = store.swaps.get(swap_id)
            if request is None:
                plan.append(ItemOutcome.failure(swap_id, NotFound("SwapRequest", swap_id)))
                continue
            target = SwapStatus.APPROVED if action == BulkAction.APPROVE_SWAPS else SwapStatus.REJECTED
            if request.status.is_terminal or swap_id in decided:
                plan.append(ItemOutcome(swap_id, False, "InvalidTransition",
                                        f"SwapRequest {swap_id} cannot move to {target.value}"))
                continue
            if action == BulkAction.APPROVE_SWAPS:
                if taken.intersection(request.shift_ids):
                    plan.append(ItemOutcome(swap_id, False, "ValidationFailure",
                                            ReasonCode.ASSIGNMENT_CHANGED.value))
                    continue
                result = self.swaps.approval_eligibility(swap_id)
                if result:
                    taken.update(request.shift_ids)
            else:
                result = self.swaps.rejection_eligibility(swap_id)
            if result:
                decided.add(swap_id)
                plan.append(ItemOutcome.success(swap_id))
            else:
                plan.append(ItemOutcome(swap_id, False, "ValidationFailure", result.message))
        return plan

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    def _apply_one(self, action: BulkAction, item_id: str, reason: Optional[str]) -> None:
        if action == BulkAction.APPROVE_BIDS:
            self.bids.approve(item_id)
        elif action == BulkAction.REJECT_BIDS:
            self.bids.reject(item_id, comment=reason)
        elif action == BulkAction.APPROVE_SWAPS:
            self.swaps.approve(item_id, notes=reason)
        else:
            self.swaps.reject(item_id, reason=reason)

    def apply_bulk_action(self, action: BulkAction, reason: Optional[str] = None) -> BatchReport:
        """
        Apply ``action`` to every selected id, in selection order.

        Each item is re-validated by its workflow; engine errors become failed
        outcomes and the batch continues. The selection is cleared afterwards.

        Raises:
            BatchInProgress: another batch on this processor has not finished.
        """
        if self._running:
            raise BatchInProgress("A batch is already running; wait for it to finish")
        self._running = True
        self._batch_count += 1
        batch_id = f"batch-{self._batch_count}"
        report = BatchReport(action)
        wf = WorkflowLogger("rostering.engine.batch")
        bind_context(batch_id=batch_id, action=action.value)
        try:
            wf.phase(f"{batch_id}: {action.value} x{len(self.selection)}")
            for item_id in self.selection:
                wf.enter(item_id)
                try:
                    self._apply_one(action, item_id, reason)
                except RosteringError as e:
                    report.outcomes.append(ItemOutcome.failure(item_id, e))
                    wf.check(item_id, False, f"{e.kind}: {e}")
                else:
                    report.outcomes.append(ItemOutcome.success(item_id))
                    wf.check(item_id, True, action.verb)
                wf.exit(item_id)
            wf.step(report.summary())
            audit_log.info(
                "batch_completed", succeeded=report.succeeded, failed=report.failed,
                failures=report.failures_by_kind,
            )
        finally:
            self.selection.clear()
            self._running = False
            clear_context()
        logger.info(f"{batch_id}: {report.summary()}")
        return report
