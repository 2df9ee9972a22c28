"""Shift swap requests and their approval records."""
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from .status import SwapPriority, SwapStatus


@dataclass
class SwapRequest:
    """Request to exchange two assigned shifts between two employees."""
    id: str
    requester_id: str
    original_shift_id: str
    target_employee_id: str
    requested_shift_id: str
    status: SwapStatus = SwapStatus.PENDING
    reason: Optional[str] = None
    notes: Optional[str] = None
    priority: Optional[SwapPriority] = None
    created_at: Optional[datetime] = None

    def __post_init__(self):
        if not isinstance(self.status, SwapStatus):
            self.status = SwapStatus.from_string(self.status)
        if self.priority is not None and not isinstance(self.priority, SwapPriority):
            self.priority = SwapPriority(str(self.priority).strip().lower())

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    @property
    def shift_ids(self):
        return (self.original_shift_id, self.requested_shift_id)


@dataclass
class SwapApproval:
    """Decision record, one per decided swap request."""
    swap_id: str
    approver_id: str
    decision: SwapStatus
    decided_at: datetime
    notes: Optional[str] = None
