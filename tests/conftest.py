"""Pytest configuration and fixtures."""
import logging
import sys
from datetime import date, datetime, time, timezone
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

import pytest

from rostering.engine.batch import BatchProcessor
from rostering.engine.bids import BidWorkflow
from rostering.engine.roster import RosterAssignmentManager
from rostering.engine.swaps import SwapWorkflow
from rostering.engine.templates import TemplateLibrary
from rostering.models.config import EngineConfig
from rostering.models.employee import Employee
from rostering.models.organization import Department, Organization, Role, SubDepartment
from rostering.models.shift import Shift
from rostering.store.domain import DomainStore
from rostering.store.memory import (
    InMemoryBidStore,
    InMemoryRosterStore,
    InMemoryShiftStore,
    InMemorySwapStore,
)

SCENARIO_DAY = date(2024, 1, 10)
FIXED_NOW = datetime(2024, 1, 1, 8, 0, tzinfo=timezone.utc)


@pytest.fixture
def store():
    """Domain store with one department, role TM2, employees E and F and shift S."""
    s = DomainStore(clock=lambda: FIXED_NOW)
    s.add_organization(Organization(id="org-1", name="General Hospital"))
    s.add_department(Department(id="dept-ed", name="Emergency", organization_id="org-1"))
    s.add_department(Department(id="dept-icu", name="Intensive Care", organization_id="org-1"))
    s.add_sub_department(SubDepartment(id="sub-triage", name="Triage", department_id="dept-ed"))
    s.add_role(Role(id="role-tm2", name="TM2", department_id="dept-ed", remuneration_level="SILVER"))
    s.add_role(Role(id="role-rn", name="RN", department_id="dept-ed"))
    s.add_employee(Employee(id="emp-e", name="Erin", role_ids={"role-tm2"}, department_id="dept-ed"))
    s.add_employee(Employee(id="emp-f", name="Farid", role_ids={"role-tm2"}, department_id="dept-ed"))
    s.add_employee(Employee(id="emp-g", name="Grace", role_ids={"role-rn"}, department_id="dept-icu"))
    s.add_shift(Shift(
        id="shift-s",
        date=SCENARIO_DAY,
        start_time=time(9, 0),
        end_time=time(17, 0),
        department_id="dept-ed",
        role_id="role-tm2",
    ))
    return s


@pytest.fixture
def config():
    return EngineConfig()


@pytest.fixture
def shift_store(store):
    return InMemoryShiftStore(store.shifts.values())


@pytest.fixture
def bid_store():
    return InMemoryBidStore()


@pytest.fixture
def swap_store():
    return InMemorySwapStore()


@pytest.fixture
def roster_store(store):
    return InMemoryRosterStore()


@pytest.fixture
def bids(store, bid_store, shift_store, config):
    return BidWorkflow(store, bid_store, shift_store, config)


@pytest.fixture
def swaps(store, swap_store, shift_store, config):
    return SwapWorkflow(store, swap_store, shift_store, config)


@pytest.fixture
def manager(store, bids, roster_store, shift_store, config):
    return RosterAssignmentManager(store, bids, roster_store, shift_store, config)


@pytest.fixture
def processor(bids, swaps):
    return BatchProcessor(bids, swaps)


@pytest.fixture
def library(store):
    return TemplateLibrary(store)


@pytest.fixture
def add_shift(store, shift_store):
    """Factory adding a shift to both the domain store and the shift store."""
    def _add(shift_id, day=SCENARIO_DAY, start=time(9, 0), end=time(17, 0), **kwargs):
        kwargs.setdefault("department_id", "dept-ed")
        kwargs.setdefault("role_id", "role-tm2")
        shift = Shift(id=shift_id, date=day, start_time=start, end_time=end, **kwargs)
        store.add_shift(shift)
        shift_store.create(shift)
        return shift
    return _add


@pytest.fixture(autouse=True)
def reset_rostering_handlers():
    """Detach handlers added by setup_logging (the CLI and logging tests call it)."""
    yield
    logger = logging.getLogger("rostering")
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)
