# rostering/models - Domain entities and status vocabularies
from .audit import AuditEvent, AuditStatus
from .bidding import EmployeeBid, OpenBid
from .config import EngineConfig
from .employee import Employee, TimeWindow
from .organization import Department, Organization, Role, SubDepartment
from .roster import RosterGroup, RosterSubgroup, RosterTree
from .shift import Shift, ShiftGroup, ShiftSubgroup, ShiftTemplate, TemplateShift
from .status import (
    BidStatus,
    EmployeeStatus,
    OpenBidStatus,
    RemunerationLevel,
    ShiftStatus,
    SwapPriority,
    SwapStatus,
)
from .swap import SwapApproval, SwapRequest

__all__ = [
    "Organization", "Department", "SubDepartment", "Role",
    "Employee", "TimeWindow",
    "Shift", "TemplateShift", "ShiftSubgroup", "ShiftGroup", "ShiftTemplate",
    "OpenBid", "EmployeeBid",
    "SwapRequest", "SwapApproval",
    "RosterTree", "RosterGroup", "RosterSubgroup",
    "AuditEvent", "AuditStatus",
    "ShiftStatus", "OpenBidStatus", "BidStatus", "SwapStatus",
    "SwapPriority", "EmployeeStatus", "RemunerationLevel",
    "EngineConfig",
]
