"""Open bids and the employee bids placed on them."""
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from .status import BidStatus, OpenBidStatus


@dataclass
class OpenBid:
    """Bidding window wrapped around a shift."""
    id: str
    shift_id: str
    status: OpenBidStatus = OpenBidStatus.OPEN
    created_at: Optional[datetime] = None

    def __post_init__(self):
        if not isinstance(self.status, OpenBidStatus):
            self.status = OpenBidStatus.from_string(self.status)


@dataclass
class EmployeeBid:
    """One employee's interest in an open bid."""
    id: str
    employee_id: str
    open_bid_id: str
    status: BidStatus = BidStatus.PENDING
    created_at: Optional[datetime] = None
    resolved_at: Optional[datetime] = None
    comment: Optional[str] = None

    def __post_init__(self):
        if not isinstance(self.status, BidStatus):
            self.status = BidStatus.from_string(self.status)

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal
