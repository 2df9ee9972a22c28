"""Tests for bid/swap filtering and sorting."""
from datetime import date, time

import pytest

from rostering.engine.filters import (
    BidFilter,
    SwapFilter,
    build_bid_rows,
    filter_bid_rows,
    filter_swaps,
    sort_bid_rows,
    swap_stats,
    visible_ids,
)
from rostering.models.status import BidStatus, SwapStatus


@pytest.fixture
def rows(store, bids, add_shift):
    add_shift("shift-icu", day=date(2024, 1, 12), start=time(20), end=time(23),
              department_id="dept-icu", role_id="role-rn")
    add_shift("shift-long", day=date(2024, 1, 11), start=time(7), end=time(19),
              sub_department_id="sub-triage")
    for shift_id, employee_id in (("shift-s", "emp-e"), ("shift-long", "emp-f"), ("shift-icu", "emp-g")):
        ob = bids.open_for_bidding(shift_id)
        bids.express_interest(employee_id, ob.id)
    return build_bid_rows(store)


class TestBuildRows:
    def test_joins_names(self, rows):
        by_shift = {r.shift.id: r for r in rows}
        assert by_shift["shift-s"].employee_name == "Erin"
        assert by_shift["shift-s"].department_name == "Emergency"
        assert by_shift["shift-s"].role_name == "TM2"
        assert by_shift["shift-long"].sub_department_name == "Triage"

    def test_status_filter(self, store, bids, rows):
        bids.reject(rows[0].id)
        assert len(build_bid_rows(store, BidStatus.PENDING)) == 2


class TestBidFilter:
    def test_no_criteria_returns_everything(self, rows):
        assert filter_bid_rows(rows) == rows
        assert BidFilter().active_count == 0

    def test_date_range_and_department(self, rows):
        criteria = BidFilter(start_date=date(2024, 1, 11), department_id="dept-ed")
        assert visible_ids(filter_bid_rows(rows, criteria)) == [r.id for r in rows if r.shift.id == "shift-long"]
        assert criteria.active_count == 2

    def test_hours_bounds(self, rows):
        kept = filter_bid_rows(rows, BidFilter(min_hours=8, max_hours=10))
        assert [r.shift.id for r in kept] == ["shift-s"]

    def test_search_is_case_insensitive(self, rows):
        kept = filter_bid_rows(rows, BidFilter(search="  intensive "))
        assert [r.shift.id for r in kept] == ["shift-icu"]

    def test_assigned_flag(self, bids, rows):
        bids.approve(rows[0].id)
        kept = filter_bid_rows(rows, BidFilter(is_assigned=False))
        assert rows[0] not in kept
        assert len(kept) == 2


class TestSort:
    def test_by_date(self, rows):
        assert [r.shift.id for r in sort_bid_rows(rows)] == ["shift-s", "shift-long", "shift-icu"]

    def test_by_net_hours_desc(self, rows):
        ordered = sort_bid_rows(rows, "net_hours", "desc")
        assert [r.shift.id for r in ordered] == ["shift-long", "shift-s", "shift-icu"]

    def test_by_employee(self, rows):
        assert [r.employee_name for r in sort_bid_rows(rows, "employee")] == ["Erin", "Farid", "Grace"]

    def test_unknown_key(self, rows):
        with pytest.raises(ValueError):
            sort_bid_rows(rows, "colour")
        with pytest.raises(ValueError):
            sort_bid_rows(rows, "date", "sideways")


class TestSwaps:
    @pytest.fixture
    def requests(self, store, swaps, add_shift):
        add_shift("shift-t", assigned_employee_id="emp-f")
        add_shift("shift-u", day=date(2024, 1, 11), assigned_employee_id="emp-e")
        add_shift("shift-v", day=date(2024, 1, 11), assigned_employee_id="emp-f")
        store.assign_employee("shift-s", "emp-e")
        first = swaps.request_swap("emp-e", "shift-s", "emp-f", "shift-t", priority="high")
        second = swaps.request_swap("emp-e", "shift-u", "emp-f", "shift-v", priority="low")
        swaps.reject(second.id, "no")
        return [first, second]

    def test_filter_by_status_and_search(self, store, requests):
        assert filter_swaps(store, requests, SwapFilter(status=SwapStatus.PENDING)) == [requests[0]]
        assert filter_swaps(store, requests, SwapFilter(search="farid")) == requests
        assert filter_swaps(store, requests, SwapFilter(search="icu")) == []
        assert filter_swaps(store, requests) == requests

    def test_stats(self, requests):
        stats = swap_stats(requests)
        assert (stats.total, stats.pending, stats.rejected) == (2, 1, 1)
        assert (stats.high, stats.medium, stats.low) == (1, 0, 1)
