"""Tests for the domain store and the in-memory external stores."""
from datetime import date, time

import pytest

from rostering.errors import NotFound
from rostering.models.audit import AuditStatus
from rostering.models.bidding import EmployeeBid, OpenBid
from rostering.models.organization import SubDepartment
from rostering.models.roster import RosterTree
from rostering.models.shift import Shift
from rostering.models.status import BidStatus, OpenBidStatus, ShiftStatus, SwapStatus
from rostering.models.swap import SwapRequest
from rostering.store.domain import DomainStore
from rostering.store.memory import (
    InMemoryBidStore,
    InMemoryRosterStore,
    InMemoryShiftStore,
    InMemorySwapStore,
    StoreUnavailable,
)

DAY = date(2024, 1, 10)


class TestDomainStoreReads:
    def test_get_unknown_raises_not_found(self, store):
        with pytest.raises(NotFound) as exc:
            store.get_shift("nope")
        assert exc.value.entity == "Shift"
        assert "nope" in str(exc.value)

    def test_not_found_is_key_error(self, store):
        with pytest.raises(KeyError):
            store.get_bid("nope")

    def test_shifts_in_range_sorted(self, store, add_shift):
        add_shift("late", start=time(18), end=time(22))
        add_shift("early", start=time(6), end=time(10))
        add_shift("other-day", day=date(2024, 1, 12))
        ids = [s.id for s in store.shifts_in_range(DAY, DAY)]
        assert ids == ["early", "shift-s", "late"]
        assert len(store.shifts_in_range(DAY, date(2024, 1, 12))) == 4

    def test_shifts_by_department(self, store, add_shift):
        add_shift("icu-1", department_id="dept-icu")
        assert [s.id for s in store.shifts_by_department("dept-icu")] == ["icu-1"]

    def test_names(self, store):
        assert store.role_name("role-tm2") == "TM2"
        assert store.role_name(None) == "Unassigned role"
        assert store.department_name("dept-ed") == "Emergency"
        assert store.department_name("missing") == "missing"

    def test_sub_department_needs_department(self, store):
        with pytest.raises(NotFound):
            store.add_sub_department(SubDepartment(id="x", name="X", department_id="nope"))

    def test_next_id_skips_taken_ids(self, store, add_shift):
        add_shift("shift-1")
        assert store.next_id("shift") == "shift-2"
        assert store.next_id("bid") == "bid-1"

    def test_open_bid_for_shift_prefers_live_window(self, store):
        store.add_open_bid(OpenBid(id="ob-old", shift_id="shift-s", status=OpenBidStatus.FILLED))
        store.add_open_bid(OpenBid(id="ob-new", shift_id="shift-s"))
        assert store.open_bid_for_shift("shift-s").id == "ob-new"
        assert store.open_bid_for_shift("unknown") is None


class TestDomainStorePrimitives:
    def test_assign_records_audit(self, store):
        store.assign_employee("shift-s", "emp-e", actor_id="mgr")
        store.assign_employee("shift-s", "emp-f", actor_id="mgr")
        store.assign_employee("shift-s", None, actor_id="mgr")
        statuses = [e.status for e in store.history("shift-s")]
        assert statuses == [
            AuditStatus.CREATED_FINAL,
            AuditStatus.ASSIGNED,
            AuditStatus.REASSIGNED,
            AuditStatus.UNASSIGNED,
        ]

    def test_assign_unknown_employee(self, store):
        with pytest.raises(NotFound):
            store.assign_employee("shift-s", "ghost")
        assert store.get_shift("shift-s").assigned_employee_id is None

    def test_status_change_revert(self, store):
        change = store.update_shift_status("shift-s", ShiftStatus.CANCELLED, "mgr")
        assert store.history("shift-s")[-1].status == AuditStatus.CANCELLED_BY_ADMIN
        change.revert()
        assert store.get_shift("shift-s").status == ShiftStatus.ACTIVE
        assert store.history("shift-s")[-1].status == AuditStatus.CREATED_FINAL

    def test_update_shift_times(self, store):
        change = store.update_shift_times("shift-s", time(10), time(18))
        shift = store.get_shift("shift-s")
        assert (shift.start_time, shift.end_time) == (time(10), time(18))
        assert store.history("shift-s")[-1].notes == "09:00-17:00 -> 10:00-18:00"
        change.revert()
        assert shift.start_time == time(9)

    def test_bid_lifecycle_primitives(self, store):
        store.add_open_bid(OpenBid(id="ob-1", shift_id="shift-s"))
        add = store.add_bid(EmployeeBid(id="b-1", employee_id="emp-e", open_bid_id="ob-1"))
        assert store.bids_for_open_bid("ob-1")[0].id == "b-1"
        update = store.update_bid_status("b-1", BidStatus.APPROVED, comment="ok")
        assert store.get_bid("b-1").comment == "ok"
        update.revert()
        assert store.get_bid("b-1").status == BidStatus.PENDING
        add.revert()
        assert "b-1" not in store.bids

    def test_add_bid_requires_open_bid(self, store):
        with pytest.raises(NotFound):
            store.add_bid(EmployeeBid(id="b-1", employee_id="emp-e", open_bid_id="missing"))

    def test_remove_bid_revert(self, store):
        store.add_open_bid(OpenBid(id="ob-1", shift_id="shift-s"))
        store.add_bid(EmployeeBid(id="b-1", employee_id="emp-e", open_bid_id="ob-1"))
        change = store.remove_bid("b-1")
        assert "b-1" not in store.bids
        change.revert()
        assert "b-1" in store.bids

    def test_swap_primitives(self, store, add_shift):
        add_shift("shift-t")
        request = SwapRequest(
            id="sw-1", requester_id="emp-e", original_shift_id="shift-s",
            target_employee_id="emp-f", requested_shift_id="shift-t",
        )
        store.add_swap(request)
        assert store.history("shift-t")[-1].status == AuditStatus.SWAP_REQUESTED
        change = store.update_swap_status("sw-1", SwapStatus.REJECTED, "no cover")
        assert store.get_swap("sw-1").notes == "no cover"
        change.revert()
        assert store.get_swap("sw-1").status == SwapStatus.PENDING
        assert store.get_swap("sw-1").notes is None

    def test_set_roster_revert(self, store):
        tree = RosterTree(id="r", date=DAY)
        change = store.set_roster(DAY, tree)
        assert store.roster_for(DAY) is tree
        change.revert()
        assert store.roster_for(DAY) is None

    def test_load_shifts(self, store):
        count = store.load_shifts([
            Shift(id="a", date=DAY, start_time=time(1), end_time=time(2)),
            Shift(id="b", date=DAY, start_time=time(3), end_time=time(4), is_draft=True),
        ])
        assert count == 2
        assert store.history("b")[0].status == AuditStatus.CREATED_DRAFT


class TestDomainStoreLoading:
    def test_load_from_pulls_range_from_every_store(self):
        shift_store = InMemoryShiftStore([
            Shift(id="s1", date=DAY, start_time=time(9), end_time=time(17), assigned_employee_id="e1"),
            Shift(id="s2", date=DAY, start_time=time(13), end_time=time(21), assigned_employee_id="e2"),
            Shift(id="s3", date=date(2024, 2, 1), start_time=time(9), end_time=time(17)),
        ])
        bid_store = InMemoryBidStore([
            EmployeeBid(id="b1", employee_id="e3", open_bid_id="ob-1"),
            EmployeeBid(id="b2", employee_id="e3", open_bid_id="ob-elsewhere"),
        ])
        swap_store = InMemorySwapStore([
            SwapRequest(id="sw1", requester_id="e1", original_shift_id="s1",
                        target_employee_id="e2", requested_shift_id="s2"),
            SwapRequest(id="sw2", requester_id="e1", original_shift_id="s1",
                        target_employee_id="e9", requested_shift_id="s3"),
        ])
        roster_store = InMemoryRosterStore({DAY: RosterTree(id="r", date=DAY, locked=True)})

        fresh = DomainStore()
        fresh.load_from(DAY, DAY, shift_store=shift_store)
        fresh.add_open_bid(OpenBid(id="ob-1", shift_id="s1"))
        counts = fresh.load_from(
            DAY, date(2024, 1, 16),
            shift_store=shift_store,
            bid_store=bid_store,
            swap_store=swap_store,
            roster_store=roster_store,
        )

        assert counts == {"shifts": 2, "bids": 1, "swaps": 1, "rosters": 1}
        assert sorted(fresh.shifts) == ["s1", "s2"]
        assert list(fresh.bids) == ["b1"]
        assert list(fresh.swaps) == ["sw1"]
        assert fresh.roster_for(DAY).locked is True
        assert [e.status for e in fresh.audit] == [AuditStatus.OFFERED_FOR_BIDDING]
        assert shift_store.calls == [] and roster_store.calls == []

    def test_load_from_without_stores(self, store):
        counts = store.load_from(DAY, DAY)
        assert counts == {"shifts": 0, "bids": 0, "swaps": 0, "rosters": 0}
        assert "shift-s" in store.shifts

    def test_load_from_inverted_range(self, store):
        with pytest.raises(ValueError):
            store.load_from(DAY, date(2024, 1, 9))


class TestInMemoryStores:
    def test_shift_store_update(self):
        shift = Shift(id="s1", date=DAY, start_time=time(9), end_time=time(17))
        shifts = InMemoryShiftStore([shift])
        updated = shifts.update("s1", {"assigned_employee_id": "e1"})
        assert updated.assigned_employee_id == "e1"
        assert shift.assigned_employee_id is None
        assert shifts.calls == [("update", ("s1", {"assigned_employee_id": "e1"}))]

    def test_shift_store_unknown_id(self):
        with pytest.raises(NotFound):
            InMemoryShiftStore().update("nope", {})

    def test_shift_store_range(self):
        shifts = InMemoryShiftStore([
            Shift(id="s1", date=DAY, start_time=time(9), end_time=time(17)),
            Shift(id="s2", date=date(2024, 2, 1), start_time=time(9), end_time=time(17)),
        ])
        assert [s.id for s in shifts.list_by_date_range(DAY, date(2024, 1, 31))] == ["s1"]

    def test_fail_next(self):
        bids = InMemoryBidStore()
        bids.fail_next()
        with pytest.raises(StoreUnavailable):
            bids.create(EmployeeBid(id="b1", employee_id="e1", open_bid_id="o1"))
        bids.create(EmployeeBid(id="b1", employee_id="e1", open_bid_id="o1"))
        assert [b.id for b in bids.list_all()] == ["b1"]

    def test_fail_next_with_custom_error(self):
        swaps = InMemorySwapStore()
        swaps.fail_next(RuntimeError("boom"), times=2)
        for _ in range(2):
            with pytest.raises(RuntimeError):
                swaps.update_status("x", SwapStatus.APPROVED)

    def test_bid_store_delete(self):
        bids = InMemoryBidStore([EmployeeBid(id="b1", employee_id="e1", open_bid_id="o1")])
        bids.delete("b1")
        assert bids.list_all() == []

    def test_roster_store_seeded(self):
        rosters = InMemoryRosterStore({DAY: RosterTree(id="r", date=DAY, locked=True)})
        assert rosters.get_by_date(DAY).locked is True
        assert rosters.calls == []

    def test_roster_store_returns_copies(self):
        rosters = InMemoryRosterStore()
        tree = RosterTree(id="r", date=DAY)
        rosters.save(DAY, tree)
        tree.locked = True
        assert rosters.get_by_date(DAY).locked is False
        assert rosters.get_by_date(date(2024, 1, 11)) is None
