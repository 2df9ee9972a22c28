"""Status vocabularies for shifts, bids and swaps.

Wire values keep the casing of the persisted records: shift and open-bid
statuses are capitalised, bid and swap statuses are lower-case.
"""
from enum import Enum


class ShiftStatus(str, Enum):
    """Operational status of a shift instance."""
    ACTIVE = "Active"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"
    NO_SHOW = "No-Show"
    SWAPPED = "Swapped"

    @property
    def is_finalized(self) -> bool:
        """True once the shift can no longer be edited."""
        return self in (ShiftStatus.COMPLETED, ShiftStatus.CANCELLED)

    @classmethod
    def from_string(cls, s: str) -> "ShiftStatus":
        """Parse a shift status from any casing or legacy alias."""
        mapping = {
            "active": cls.ACTIVE, "scheduled": cls.ACTIVE, "assigned": cls.ACTIVE,
            "in-progress": cls.ACTIVE,
            "completed": cls.COMPLETED,
            "cancelled": cls.CANCELLED, "canceled": cls.CANCELLED,
            "no-show": cls.NO_SHOW, "no_show": cls.NO_SHOW, "noshow": cls.NO_SHOW,
            "swapped": cls.SWAPPED,
        }
        key = str(s).strip().lower()
        if key in mapping:
            return mapping[key]
        raise ValueError(f"Unknown shift status: {s!r}")


class OpenBidStatus(str, Enum):
    """Bidding-window status, independent of the shift's own status."""
    OPEN = "Open"
    OFFERED = "Offered"
    FILLED = "Filled"
    DRAFT = "Draft"

    @property
    def accepts_bids(self) -> bool:
        return self in (OpenBidStatus.OPEN, OpenBidStatus.OFFERED)

    @classmethod
    def from_string(cls, s: str) -> "OpenBidStatus":
        key = str(s).strip().lower()
        for member in cls:
            if member.value.lower() == key:
                return member
        raise ValueError(f"Unknown open bid status: {s!r}")


class _RequestStatus(str, Enum):
    """Shared behaviour of the pending/approved/rejected lifecycles."""

    @property
    def is_terminal(self) -> bool:
        return self.value != "pending"

    @classmethod
    def from_string(cls, s: str):
        key = str(s).strip().lower()
        if key == "confirmed":
            key = "approved"
        for member in cls:
            if member.value == key:
                return member
        raise ValueError(f"Unknown {cls.__name__}: {s!r}")


class BidStatus(_RequestStatus):
    """Lifecycle of one employee's bid."""
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class SwapStatus(_RequestStatus):
    """Lifecycle of a swap request."""
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class SwapPriority(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class EmployeeStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class RemunerationLevel(str, Enum):
    """Ordinal pay tier; compare with ``rank``."""
    BRONZE = "BRONZE"
    SILVER = "SILVER"
    GOLD = "GOLD"

    @property
    def rank(self) -> int:
        return {
            RemunerationLevel.BRONZE: 1,
            RemunerationLevel.SILVER: 2,
            RemunerationLevel.GOLD: 3,
        }[self]

    def outranks(self, other: "RemunerationLevel") -> bool:
        return self.rank > other.rank

    @classmethod
    def from_string(cls, s) -> "RemunerationLevel":
        """Parse a tier name or its numeric rank ("gold", "3")."""
        key = str(s).strip().upper()
        for member in cls:
            if member.value == key or str(member.rank) == key:
                return member
        raise ValueError(f"Unknown remuneration level: {s!r}")
