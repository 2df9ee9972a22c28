"""
Domain Package
==============
Re-exports business domain entities from the models package.

Example usage:
    from rostering.domain import Shift, OpenBid, EmployeeBid, SwapRequest

Note: All imports from rostering.models.* still work.
"""
from rostering.models.bidding import EmployeeBid, OpenBid
from rostering.models.config import EngineConfig
from rostering.models.employee import Employee, TimeWindow
from rostering.models.organization import Department, Organization, Role, SubDepartment
from rostering.models.roster import RosterGroup, RosterSubgroup, RosterTree
from rostering.models.shift import Shift, ShiftGroup, ShiftSubgroup, ShiftTemplate, TemplateShift
from rostering.models.status import (
    BidStatus,
    OpenBidStatus,
    RemunerationLevel,
    ShiftStatus,
    SwapStatus,
)
from rostering.models.swap import SwapApproval, SwapRequest

__all__ = [
    # Organization
    "Organization",
    "Department",
    "SubDepartment",
    "Role",
    "Employee",
    "TimeWindow",

    # Shifts and rosters
    "Shift",
    "TemplateShift",
    "ShiftSubgroup",
    "ShiftGroup",
    "ShiftTemplate",
    "RosterTree",
    "RosterGroup",
    "RosterSubgroup",

    # Requests
    "OpenBid",
    "EmployeeBid",
    "SwapRequest",
    "SwapApproval",

    # Vocabularies
    "ShiftStatus",
    "OpenBidStatus",
    "BidStatus",
    "SwapStatus",
    "RemunerationLevel",

    # Configuration
    "EngineConfig",
]
