"""
Pydantic Validated Models
=========================
Validation layer for the engine's boundaries: configuration coming from
users and status-bearing records crossing the persistence boundary.

Usage:
    from rostering.models.validated import ValidatedEngineConfig, BidRecord

    config = ValidatedEngineConfig(week_start=6).to_dataclass()
    record = BidRecord.model_validate({"id": "b1", ..., "status": "Pending"})
    record.model_dump(mode="json")["status"]   # -> "pending"

Status strings are accepted in any casing and always serialised with the
exact wire casing (``Active``, ``No-Show``, ``Open``, ``pending`` ...).
"""
from datetime import date, datetime, time
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .bidding import EmployeeBid, OpenBid
from .config import EngineConfig
from .shift import Shift
from .status import (
    BidStatus,
    OpenBidStatus,
    RemunerationLevel,
    ShiftStatus,
    SwapPriority,
    SwapStatus,
)
from .swap import SwapRequest


class ValidatedEngineConfig(BaseModel):
    """
    Pydantic-validated engine configuration.

    Use this for strict validation at the boundary, then convert to the
    dataclass ``EngineConfig`` the engine consumes.
    """
    week_start: int = Field(default=0, ge=0, le=6, description="0 = Monday")
    day_start_hour: int = Field(default=0, ge=0, le=23)
    day_end_hour: int = Field(default=24, ge=1, le=24)
    invalid_time_label: str = Field(default="Invalid time", min_length=1)

    require_swap_reject_reason: bool = False
    enforce_availability: bool = True
    reject_siblings_on_fill: bool = False

    log_level: str = Field(default="INFO")
    log_file: Optional[str] = None

    model_config = ConfigDict(validate_assignment=True)

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.strip().upper()
        if level not in ("TRACE", "DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"unknown log level: {v}")
        return level

    @model_validator(mode="after")
    def validate_hours(self):
        """Cross-field validation."""
        if self.day_end_hour <= self.day_start_hour:
            raise ValueError("day_end_hour must be after day_start_hour")
        return self

    def to_dataclass(self) -> EngineConfig:
        return EngineConfig(**self.model_dump())

    @classmethod
    def from_dataclass(cls, config: EngineConfig) -> "ValidatedEngineConfig":
        return cls(**config.to_dict())


class ShiftRecord(BaseModel):
    """Wire form of a shift."""
    id: str
    date: date
    start_time: time
    end_time: time
    department_id: Optional[str] = None
    sub_department_id: Optional[str] = None
    role_id: Optional[str] = None
    remuneration_level: RemunerationLevel = RemunerationLevel.BRONZE
    assigned_employee_id: Optional[str] = None
    status: ShiftStatus = ShiftStatus.ACTIVE
    is_draft: bool = False
    paid_break_minutes: int = Field(default=0, ge=0)
    unpaid_break_minutes: int = Field(default=0, ge=0)
    required_skills: List[str] = Field(default_factory=list)
    notes: str = ""

    @field_validator("status", mode="before")
    @classmethod
    def normalize_status(cls, v):
        return v if isinstance(v, ShiftStatus) else ShiftStatus.from_string(v)

    @field_validator("remuneration_level", mode="before")
    @classmethod
    def normalize_level(cls, v):
        return v if isinstance(v, RemunerationLevel) else RemunerationLevel.from_string(v)

    @classmethod
    def from_entity(cls, shift: Shift) -> "ShiftRecord":
        return cls(**{k: getattr(shift, k) for k in cls.model_fields})

    def to_entity(self) -> Shift:
        return Shift(**{k: getattr(self, k) for k in type(self).model_fields})


class OpenBidRecord(BaseModel):
    id: str
    shift_id: str
    status: OpenBidStatus = OpenBidStatus.OPEN
    created_at: Optional[datetime] = None

    @field_validator("status", mode="before")
    @classmethod
    def normalize_status(cls, v):
        return v if isinstance(v, OpenBidStatus) else OpenBidStatus.from_string(v)

    @classmethod
    def from_entity(cls, open_bid: OpenBid) -> "OpenBidRecord":
        return cls(**{k: getattr(open_bid, k) for k in cls.model_fields})

    def to_entity(self) -> OpenBid:
        return OpenBid(**{k: getattr(self, k) for k in type(self).model_fields})


class BidRecord(BaseModel):
    """Wire form of an employee bid (lower-case status)."""
    id: str
    employee_id: str
    open_bid_id: str
    status: BidStatus = BidStatus.PENDING
    created_at: Optional[datetime] = None
    resolved_at: Optional[datetime] = None
    comment: Optional[str] = None

    @field_validator("status", mode="before")
    @classmethod
    def normalize_status(cls, v):
        return v if isinstance(v, BidStatus) else BidStatus.from_string(v)

    @classmethod
    def from_entity(cls, bid: EmployeeBid) -> "BidRecord":
        return cls(**{k: getattr(bid, k) for k in cls.model_fields})

    def to_entity(self) -> EmployeeBid:
        return EmployeeBid(**{k: getattr(self, k) for k in type(self).model_fields})


class SwapRecord(BaseModel):
    """Wire form of a swap request (lower-case status)."""
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

    @field_validator("status", mode="before")
    @classmethod
    def normalize_status(cls, v):
        return v if isinstance(v, SwapStatus) else SwapStatus.from_string(v)

    @field_validator("priority", mode="before")
    @classmethod
    def normalize_priority(cls, v):
        if v is None or isinstance(v, SwapPriority):
            return v
        return SwapPriority(str(v).strip().lower())

    @model_validator(mode="after")
    def distinct_shifts(self):
        if self.original_shift_id == self.requested_shift_id:
            raise ValueError("a swap needs two different shifts")
        return self

    @classmethod
    def from_entity(cls, request: SwapRequest) -> "SwapRecord":
        return cls(**{k: getattr(request, k) for k in cls.model_fields})

    def to_entity(self) -> SwapRequest:
        return SwapRequest(**{k: getattr(self, k) for k in type(self).model_fields})
