# rostering/store - Domain store and in-memory external stores
from .domain import Change, DomainStore
from .memory import (
    InMemoryBidStore,
    InMemoryRosterStore,
    InMemoryShiftStore,
    InMemorySwapStore,
    StoreUnavailable,
)

__all__ = [
    "DomainStore",
    "Change",
    "InMemoryShiftStore",
    "InMemoryBidStore",
    "InMemorySwapStore",
    "InMemoryRosterStore",
    "StoreUnavailable",
]
