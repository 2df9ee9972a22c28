"""
In-memory implementations of the external store contracts.

Used by the test-suite and embedding callers. Every mutating call is recorded
in ``calls``; ``fail_next()`` makes the next mutating call raise, which is
how rollback paths are exercised.
"""
import copy
from dataclasses import replace
from datetime import date
from typing import Any, Dict, List, Mapping, Optional, Tuple

from rostering.errors import NotFound
from rostering.models.bidding import EmployeeBid
from rostering.models.roster import RosterTree
from rostering.models.shift import Shift
from rostering.models.status import BidStatus, SwapStatus
from rostering.models.swap import SwapRequest


class StoreUnavailable(ConnectionError):
    """Simulated transport failure raised by ``fail_next``."""


class _FailureInjection:
    def __init__(self):
        self.calls: List[Tuple[str, Any]] = []
        self._failures: List[Exception] = []

    def fail_next(self, error: Optional[Exception] = None, times: int = 1) -> None:
        """Make the next ``times`` mutating calls raise ``error``."""
        for _ in range(times):
            self._failures.append(error or StoreUnavailable(f"{type(self).__name__} unavailable"))

    def _mutating(self, operation: str, payload: Any) -> None:
        if self._failures:
            raise self._failures.pop(0)
        self.calls.append((operation, payload))


class InMemoryShiftStore(_FailureInjection):
    def __init__(self, shifts=()):
        super().__init__()
        self._shifts: Dict[str, Shift] = {s.id: copy.copy(s) for s in shifts}

    def list_by_date_range(self, start: date, end: date) -> List[Shift]:
        rows = [s for s in self._shifts.values() if start <= s.date <= end]
        return [copy.copy(s) for s in sorted(rows, key=lambda s: (s.date, s.start_time, s.id))]

    def get(self, shift_id: str) -> Shift:
        try:
            return copy.copy(self._shifts[shift_id])
        except KeyError:
            raise NotFound("Shift", shift_id) from None

    def update(self, shift_id: str, patch: Dict[str, Any]) -> Shift:
        self._mutating("update", (shift_id, dict(patch)))
        if shift_id not in self._shifts:
            raise NotFound("Shift", shift_id)
        self._shifts[shift_id] = replace(self._shifts[shift_id], **patch)
        return copy.copy(self._shifts[shift_id])

    def create(self, shift: Shift) -> Shift:
        self._mutating("create", shift.id)
        self._shifts[shift.id] = copy.copy(shift)
        return copy.copy(shift)


class InMemoryBidStore(_FailureInjection):
    def __init__(self, bids=()):
        super().__init__()
        self._bids: Dict[str, EmployeeBid] = {b.id: copy.copy(b) for b in bids}

    def list_all(self) -> List[EmployeeBid]:
        return [copy.copy(b) for b in self._bids.values()]

    def update_status(self, bid_id: str, status: BidStatus) -> EmployeeBid:
        self._mutating("update_status", (bid_id, status))
        if bid_id not in self._bids:
            raise NotFound("EmployeeBid", bid_id)
        self._bids[bid_id].status = status
        return copy.copy(self._bids[bid_id])

    def create(self, bid: EmployeeBid) -> EmployeeBid:
        self._mutating("create", bid.id)
        self._bids[bid.id] = copy.copy(bid)
        return copy.copy(bid)

    def delete(self, bid_id: str) -> None:
        self._mutating("delete", bid_id)
        self._bids.pop(bid_id, None)


class InMemorySwapStore(_FailureInjection):
    def __init__(self, requests=()):
        super().__init__()
        self._requests: Dict[str, SwapRequest] = {r.id: copy.copy(r) for r in requests}

    def list_all(self) -> List[SwapRequest]:
        return [copy.copy(r) for r in self._requests.values()]

    def update_status(
        self, swap_id: str, status: SwapStatus, notes: Optional[str] = None
    ) -> SwapRequest:
        self._mutating("update_status", (swap_id, status, notes))
        if swap_id not in self._requests:
            raise NotFound("SwapRequest", swap_id)
        request = self._requests[swap_id]
        request.status = status
        if notes is not None:
            request.notes = notes
        return copy.copy(request)

    def create(self, request: SwapRequest) -> SwapRequest:
        self._mutating("create", request.id)
        self._requests[request.id] = copy.copy(request)
        return copy.copy(request)


class InMemoryRosterStore(_FailureInjection):
    """Roster trees by date."""

    def __init__(self, trees: Optional[Mapping[date, RosterTree]] = None):
        super().__init__()
        self._trees: Dict[date, RosterTree] = {
            day: copy.deepcopy(tree) for day, tree in (trees or {}).items()
        }

    def get_by_date(self, day: date) -> Optional[RosterTree]:
        tree = self._trees.get(day)
        return copy.deepcopy(tree) if tree else None

    def save(self, day: date, tree: RosterTree) -> None:
        self._mutating("save", day)
        self._trees[day] = copy.deepcopy(tree)
