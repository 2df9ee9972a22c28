"""Audit trail vocabulary for shift history."""
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional


class AuditStatus(str, Enum):
    """Events recorded against a shift (snake_case wire values)."""
    # Creation
    CREATED_DRAFT = "created_draft"
    CREATED_FINAL = "created_final"
    # Assignment & bidding
    UNASSIGNED = "unassigned"
    ASSIGNED = "assigned"
    OFFERED_FOR_BIDDING = "offered_for_bidding"
    BID_PENDING = "bid_pending"
    BID_CONFIRMED = "bid_confirmed"
    DECLINED = "declined"
    # Edits
    EDITED_TIME = "edited_time"
    EDITED_DETAILS = "edited_details"
    REASSIGNED = "reassigned"
    # Swaps
    SWAP_REQUESTED = "swap_requested"
    SWAP_APPROVED = "swap_approved"
    SWAP_REJECTED = "swap_rejected"
    # Cancellation and completion
    CANCELLED_BY_ADMIN = "cancelled_by_admin"
    NO_SHOW = "no_show"
    COMPLETED = "completed"

    @property
    def label(self) -> str:
        return self.value.replace("_", " ").capitalize()


@dataclass
class AuditEvent:
    id: str
    shift_id: str
    status: AuditStatus
    at: datetime
    actor_id: Optional[str] = None
    notes: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "shift_id": self.shift_id,
            "status": self.status.value,
            "at": self.at.isoformat(),
            "actor_id": self.actor_id,
            "notes": self.notes,
        }
