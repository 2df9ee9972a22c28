"""
Boundary Contracts
==================
Interfaces the engine consumes from its host: persistence stores and the
permission check. Structural typing (``Protocol``) keeps the engine free of
any particular storage or auth library; ``rostering.store.memory`` ships
in-memory implementations.
"""
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, FrozenSet, List, Optional, Protocol

from rostering.models.bidding import EmployeeBid
from rostering.models.roster import RosterTree
from rostering.models.shift import Shift
from rostering.models.status import BidStatus, SwapStatus
from rostering.models.swap import SwapRequest

# Feature keys checked before mutating actions are exposed
FEATURE_APPROVE_BIDS = "bids.approve"
FEATURE_REJECT_BIDS = "bids.reject"
FEATURE_APPROVE_SWAPS = "swaps.approve"
FEATURE_REJECT_SWAPS = "swaps.reject"
FEATURE_EDIT_ROSTER = "roster.edit"
FEATURE_LOCK_ROSTER = "roster.lock"


class ShiftStore(Protocol):
    """External shift persistence."""

    def list_by_date_range(self, start: date, end: date) -> List[Shift]:
        ...

    def update(self, shift_id: str, patch: Dict[str, Any]) -> Shift:
        ...

    def create(self, shift: Shift) -> Shift:
        ...


class BidStore(Protocol):
    """External employee-bid persistence."""

    def list_all(self) -> List[EmployeeBid]:
        ...

    def update_status(self, bid_id: str, status: BidStatus) -> EmployeeBid:
        ...

    def create(self, bid: EmployeeBid) -> EmployeeBid:
        ...

    def delete(self, bid_id: str) -> None:
        ...


class SwapStore(Protocol):
    """External swap-request persistence."""

    def list_all(self) -> List[SwapRequest]:
        ...

    def update_status(
        self, swap_id: str, status: SwapStatus, notes: Optional[str] = None
    ) -> SwapRequest:
        ...

    def create(self, request: SwapRequest) -> SwapRequest:
        ...


class RosterStore(Protocol):
    """External roster persistence."""

    def get_by_date(self, day: date) -> Optional[RosterTree]:
        ...

    def save(self, day: date, tree: RosterTree) -> None:
        ...


class PermissionChecker(Protocol):
    """Authorization check; consulted before exposing actions, never inside predicates."""

    def has_permission(self, feature_key: str) -> bool:
        ...


@dataclass(frozen=True)
class CurrentUser:
    """Explicit acting user, passed to workflows instead of ambient session state."""
    id: str
    name: str = ""
    permissions: FrozenSet[str] = field(default_factory=frozenset)

    def has_permission(self, feature_key: str) -> bool:
        return feature_key in self.permissions


SYSTEM_USER = CurrentUser(id="system", name="System")
