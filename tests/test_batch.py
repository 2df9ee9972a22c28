"""Tests for bulk selection and batch processing."""
from datetime import date

import pytest

from rostering.engine.base import CurrentUser
from rostering.engine.batch import (
    BatchProcessor,
    BatchReport,
    BulkAction,
    ItemOutcome,
    SelectionSet,
    available_bulk_actions,
)
from rostering.errors import BatchInProgress, InvalidTransition
from rostering.models.status import BidStatus, OpenBidStatus, ShiftStatus, SwapStatus


@pytest.fixture
def three_open_bids(bids, add_shift):
    """Three shifts, each with its own OpenBid and one pending bid by E."""
    placed = []
    for i, day in enumerate([date(2024, 1, 10), date(2024, 1, 11), date(2024, 1, 12)], start=1):
        shift_id = "shift-s" if i == 1 else f"shift-b{i}"
        if i > 1:
            add_shift(shift_id, day=day)
        ob = bids.open_for_bidding(shift_id)
        placed.append(bids.express_interest("emp-e", ob.id))
    return placed


class TestSelectionSet:
    def test_select_respects_eligibility(self):
        sel = SelectionSet()
        assert sel.select("a", lambda _: True)
        assert not sel.select("b", lambda _: False)
        assert sel.ids == ["a"]

    def test_toggle(self):
        sel = SelectionSet()
        assert sel.toggle("a", lambda _: True) is True
        assert sel.toggle("a", lambda _: True) is False
        assert len(sel) == 0

    def test_select_all_keeps_order_and_counts(self):
        sel = SelectionSet()
        added = sel.select_all(["c", "a", "b", "d"], lambda item: item != "b")
        assert added == 3
        assert list(sel) == ["c", "a", "d"]
        assert sel.select_all(["a", "e"], lambda _: True) == 1

    def test_restrict_to_visible(self):
        sel = SelectionSet()
        sel.select_all(["a", "b", "c"], lambda _: True)
        sel.restrict_to(["b"])
        assert sel.ids == ["b"]
        assert "a" not in sel

    def test_clear(self):
        sel = SelectionSet()
        sel.select("a", lambda _: True)
        sel.clear()
        assert sel.ids == []


class TestSelectionGating:
    def test_select_all_excludes_rejected_bids(self, bids, processor, three_open_bids):
        a, b, c = three_open_bids
        bids.reject(b.id)
        added = processor.select_all(BulkAction.APPROVE_BIDS, [a.id, b.id, c.id, "bid-404"])
        assert added == 2
        assert processor.selection.ids == [a.id, c.id]

    def test_toggle_refuses_ineligible(self, bids, processor, three_open_bids):
        a = three_open_bids[0]
        bids.approve(a.id)
        assert processor.toggle(BulkAction.REJECT_BIDS, a.id) is False


class TestApplyBulkAction:
    def test_batch_with_stale_rejected_bid(self, store, bids, processor, three_open_bids):
        """3 selected bids, 1 rejected after selection: 2 succeed, 1 fails with InvalidTransition."""
        a, b, c = three_open_bids
        assert processor.select_all(BulkAction.APPROVE_BIDS, [a.id, b.id, c.id]) == 3
        bids.reject(b.id)

        report = processor.apply_bulk_action(BulkAction.APPROVE_BIDS)

        assert report.brief() == "2 succeeded, 1 failed (InvalidTransition)"
        assert report.summary() == "2 of 3 approved, 1 failed: 1 InvalidTransition"
        assert report.succeeded_ids == [a.id, c.id]
        assert report.failed_ids == [b.id]
        assert a.status == BidStatus.APPROVED
        assert c.status == BidStatus.APPROVED
        assert b.status == BidStatus.REJECTED
        assert len(processor.selection) == 0

    def test_sequential_items_see_earlier_effects(self, bids, processor):
        ob = bids.open_for_bidding("shift-s")
        e_bid = bids.express_interest("emp-e", ob.id)
        f_bid = bids.express_interest("emp-f", ob.id)
        processor.select_all(BulkAction.APPROVE_BIDS, [e_bid.id, f_bid.id])

        report = processor.apply_bulk_action(BulkAction.APPROVE_BIDS)

        assert report.succeeded_ids == [e_bid.id]
        assert report.failures_by_kind == {"ValidationFailure": 1}
        assert ob.status == OpenBidStatus.FILLED
        assert f_bid.status == BidStatus.PENDING

    def test_reject_bids_with_reason(self, bids, processor, three_open_bids):
        processor.select_all(BulkAction.REJECT_BIDS, [b.id for b in three_open_bids])
        report = processor.apply_bulk_action(BulkAction.REJECT_BIDS, reason="overstaffed")
        assert report.summary() == "3 of 3 rejected"
        assert all(b.comment == "overstaffed" for b in three_open_bids)

    def test_persistence_failure_is_one_item(self, bid_store, processor, three_open_bids):
        processor.select_all(BulkAction.APPROVE_BIDS, [b.id for b in three_open_bids])
        bid_store.fail_next()
        report = processor.apply_bulk_action(BulkAction.APPROVE_BIDS)
        assert report.failures_by_kind == {"PersistenceFailure": 1}
        assert report.succeeded == 2
        assert three_open_bids[0].status == BidStatus.PENDING

    def test_missing_item_counts_as_failure(self, store, processor, three_open_bids):
        a = three_open_bids[0]
        processor.select(BulkAction.APPROVE_BIDS, a.id)
        del store.bids[a.id]
        report = processor.apply_bulk_action(BulkAction.APPROVE_BIDS)
        assert report.failures_by_kind == {"NotFound": 1}

    def test_no_overlapping_batches(self, processor, three_open_bids, monkeypatch):
        processor.select_all(BulkAction.APPROVE_BIDS, [b.id for b in three_open_bids])
        inner = []

        def reentrant(action, item_id, reason):
            with pytest.raises(BatchInProgress):
                processor.apply_bulk_action(action)
            inner.append(item_id)

        monkeypatch.setattr(processor, "_apply_one", reentrant)
        report = processor.apply_bulk_action(BulkAction.APPROVE_BIDS)
        assert report.succeeded == 3
        assert len(inner) == 3
        assert not processor.running

    def test_swap_batch(self, store, swaps, processor, add_shift):
        add_shift("shift-t", assigned_employee_id="emp-f")
        store.assign_employee("shift-s", "emp-e")
        request = swaps.request_swap("emp-e", "shift-s", "emp-f", "shift-t")
        processor.select(BulkAction.APPROVE_SWAPS, request.id)
        report = processor.apply_bulk_action(BulkAction.APPROVE_SWAPS, reason="ok")
        assert report.summary() == "1 of 1 approved"
        assert request.status == SwapStatus.APPROVED
        assert store.get_shift("shift-s").status == ShiftStatus.SWAPPED


class TestPlanBatch:
    def test_plan_does_not_mutate(self, store, bids, processor):
        ob = bids.open_for_bidding("shift-s")
        e_bid = bids.express_interest("emp-e", ob.id)
        f_bid = bids.express_interest("emp-f", ob.id)
        plan = processor.plan_batch(BulkAction.APPROVE_BIDS, [e_bid.id, f_bid.id, "bid-404"])

        assert [o.succeeded for o in plan] == [True, False, False]
        assert plan[1].error_kind == "ValidationFailure"
        assert plan[2].error_kind == "NotFound"
        assert e_bid.status == BidStatus.PENDING
        assert ob.status == OpenBidStatus.OPEN
        assert store.get_shift("shift-s").assigned_employee_id is None

    def test_plan_flags_terminal_items(self, bids, processor, three_open_bids):
        a = three_open_bids[0]
        bids.reject(a.id)
        plan = processor.plan_batch(BulkAction.REJECT_BIDS, [a.id])
        assert plan[0].error_kind == InvalidTransition.kind

    def test_plan_matches_execution(self, bids, processor, three_open_bids):
        a, b, c = three_open_bids
        processor.select_all(BulkAction.APPROVE_BIDS, [a.id, b.id, c.id])
        bids.reject(b.id)
        plan = processor.plan_batch(BulkAction.APPROVE_BIDS)
        report = processor.apply_bulk_action(BulkAction.APPROVE_BIDS)
        assert [o.succeeded for o in plan] == [o.succeeded for o in report.outcomes]

    def test_plan_swaps_sharing_a_shift(self, store, swaps, processor, add_shift):
        add_shift("shift-t", assigned_employee_id="emp-f")
        add_shift("shift-u", assigned_employee_id="emp-f")
        store.assign_employee("shift-s", "emp-e")
        first = swaps.request_swap("emp-e", "shift-s", "emp-f", "shift-t")
        second = swaps.request_swap("emp-e", "shift-s", "emp-f", "shift-u")
        plan = processor.plan_batch(BulkAction.APPROVE_SWAPS, [first.id, second.id])
        assert [o.succeeded for o in plan] == [True, False]


class TestReport:
    def test_to_dataframe(self):
        report = BatchReport(BulkAction.APPROVE_BIDS, [
            ItemOutcome.success("b1"),
            ItemOutcome("b2", False, "InvalidTransition", "terminal"),
        ])
        df = report.to_dataframe()
        assert list(df.columns) == ["item_id", "action", "result", "error_kind", "message"]
        assert df["result"].tolist() == ["succeeded", "failed"]
        assert df.loc[1, "error_kind"] == "InvalidTransition"

    def test_empty_report(self):
        report = BatchReport(BulkAction.REJECT_SWAPS)
        assert report.summary() == "0 of 0 rejected"
        assert report.brief() == "0 succeeded, 0 failed"
        assert report.to_dataframe().empty


class TestActionGating:
    def test_available_actions_follow_permissions(self):
        manager = CurrentUser(id="m1", permissions=frozenset({"bids.approve", "swaps.reject"}))
        assert available_bulk_actions(manager) == [BulkAction.APPROVE_BIDS, BulkAction.REJECT_SWAPS]

    def test_no_permissions(self):
        assert available_bulk_actions(CurrentUser(id="e1")) == []

    def test_processor_accepts_shared_selection(self, bids, swaps):
        shared = SelectionSet()
        assert BatchProcessor(bids, swaps, shared).selection is shared
