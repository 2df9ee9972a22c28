"""Tests for the pydantic boundary models."""
from datetime import date, time

import pytest
from pydantic import ValidationError

from rostering.models.config import EngineConfig
from rostering.models.shift import Shift
from rostering.models.status import BidStatus, OpenBidStatus, ShiftStatus, SwapPriority
from rostering.models.validated import (
    BidRecord,
    OpenBidRecord,
    ShiftRecord,
    SwapRecord,
    ValidatedEngineConfig,
)


class TestValidatedEngineConfig:
    def test_defaults_convert_to_dataclass(self):
        config = ValidatedEngineConfig().to_dataclass()
        assert isinstance(config, EngineConfig)
        assert config.week_start == 0
        assert config.reject_siblings_on_fill is False

    def test_week_start_bounds(self):
        with pytest.raises(ValidationError):
            ValidatedEngineConfig(week_start=7)

    def test_hours_must_be_ordered(self):
        with pytest.raises(ValidationError):
            ValidatedEngineConfig(day_start_hour=18, day_end_hour=6)

    def test_log_level_normalised(self):
        assert ValidatedEngineConfig(log_level=" debug ").log_level == "DEBUG"
        with pytest.raises(ValidationError):
            ValidatedEngineConfig(log_level="chatty")

    def test_assignment_is_validated(self):
        config = ValidatedEngineConfig()
        with pytest.raises(ValidationError):
            config.week_start = -1

    def test_from_dataclass(self):
        validated = ValidatedEngineConfig.from_dataclass(EngineConfig(week_start=6))
        assert validated.week_start == 6


class TestRecords:
    def test_shift_status_any_casing(self):
        record = ShiftRecord.model_validate({
            "id": "s1", "date": "2024-01-10", "start_time": "09:00", "end_time": "17:00",
            "status": "no-show", "remuneration_level": "gold",
        })
        assert record.status == ShiftStatus.NO_SHOW
        dumped = record.model_dump(mode="json")
        assert dumped["status"] == "No-Show"
        assert dumped["remuneration_level"] == "GOLD"

    def test_shift_round_trip_through_entity(self):
        shift = Shift(id="s1", date=date(2024, 1, 10), start_time=time(9), end_time=time(17),
                      assigned_employee_id="emp-e")
        assert ShiftRecord.from_entity(shift).to_entity() == shift

    def test_negative_breaks_rejected(self):
        with pytest.raises(ValidationError):
            ShiftRecord(id="s1", date=date(2024, 1, 10), start_time=time(9), end_time=time(17),
                        unpaid_break_minutes=-5)

    def test_unknown_status_rejected(self):
        with pytest.raises(ValidationError):
            BidRecord(id="b1", employee_id="e1", open_bid_id="o1", status="maybe")

    def test_bid_status_lower_case_on_wire(self):
        record = BidRecord.model_validate({"id": "b1", "employee_id": "e1", "open_bid_id": "o1",
                                           "status": "Approved"})
        assert record.status == BidStatus.APPROVED
        assert record.model_dump(mode="json")["status"] == "approved"
        assert record.to_entity().status == BidStatus.APPROVED

    def test_open_bid_capitalised_on_wire(self):
        record = OpenBidRecord(id="o1", shift_id="s1", status="filled")
        assert record.status == OpenBidStatus.FILLED
        assert record.model_dump(mode="json")["status"] == "Filled"

    def test_swap_priority_and_distinct_shifts(self):
        record = SwapRecord(id="w1", requester_id="e1", original_shift_id="s1",
                            target_employee_id="e2", requested_shift_id="s2", priority="HIGH")
        assert record.priority == SwapPriority.HIGH
        with pytest.raises(ValidationError):
            SwapRecord(id="w2", requester_id="e1", original_shift_id="s1",
                       target_employee_id="e2", requested_shift_id="s1")
