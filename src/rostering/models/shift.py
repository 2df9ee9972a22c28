"""Shift instances and the reusable ShiftTemplate tree."""
from dataclasses import dataclass, field
from datetime import date, datetime, time
from typing import Callable, List, Optional

from .roster import RosterGroup, RosterSubgroup, RosterTree
from .status import RemunerationLevel, ShiftStatus


def _minutes(t: time) -> int:
    return t.hour * 60 + t.minute


def span_minutes(start: time, end: time) -> int:
    """Length of [start, end]; an end at or before start crosses midnight."""
    length = _minutes(end) - _minutes(start)
    if length <= 0:
        length += 24 * 60
    return length


@dataclass
class Shift:
    """A concrete shift on a date, assigned to at most one employee."""

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
    paid_break_minutes: int = 0
    unpaid_break_minutes: int = 0
    required_skills: List[str] = field(default_factory=list)
    notes: str = ""

    def __post_init__(self):
        if not isinstance(self.status, ShiftStatus):
            self.status = ShiftStatus.from_string(self.status)
        if not isinstance(self.remuneration_level, RemunerationLevel):
            self.remuneration_level = RemunerationLevel.from_string(self.remuneration_level)
        if self.paid_break_minutes < 0:
            self.paid_break_minutes = 0
        if self.unpaid_break_minutes < 0:
            self.unpaid_break_minutes = 0

    @property
    def is_assigned(self) -> bool:
        return self.assigned_employee_id is not None

    @property
    def crosses_midnight(self) -> bool:
        return self.end_time <= self.start_time

    @property
    def net_minutes(self) -> int:
        """Worked minutes: span minus unpaid breaks, never negative."""
        return max(0, span_minutes(self.start_time, self.end_time) - self.unpaid_break_minutes)

    @property
    def net_hours(self) -> float:
        return round(self.net_minutes / 60, 2)

    @property
    def starts_at(self) -> datetime:
        return datetime.combine(self.date, self.start_time)

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "id": self.id,
            "date": self.date.isoformat(),
            "start_time": self.start_time.strftime("%H:%M"),
            "end_time": self.end_time.strftime("%H:%M"),
            "department_id": self.department_id,
            "sub_department_id": self.sub_department_id,
            "role_id": self.role_id,
            "remuneration_level": self.remuneration_level.value,
            "assigned_employee_id": self.assigned_employee_id,
            "status": self.status.value,
            "is_draft": self.is_draft,
            "paid_break_minutes": self.paid_break_minutes,
            "unpaid_break_minutes": self.unpaid_break_minutes,
            "notes": self.notes,
        }


@dataclass
class TemplateShift:
    """Shift blueprint inside a template subgroup; no date, no assignee."""
    start_time: time
    end_time: time
    role_id: Optional[str] = None
    remuneration_level: RemunerationLevel = RemunerationLevel.BRONZE
    paid_break_minutes: int = 0
    unpaid_break_minutes: int = 0
    is_draft: bool = False
    required_skills: List[str] = field(default_factory=list)
    notes: str = ""

    def instantiate(
        self,
        shift_id: str,
        day: date,
        department_id: Optional[str],
        sub_department_id: Optional[str],
    ) -> Shift:
        return Shift(
            id=shift_id,
            date=day,
            start_time=self.start_time,
            end_time=self.end_time,
            department_id=department_id,
            sub_department_id=sub_department_id,
            role_id=self.role_id,
            remuneration_level=self.remuneration_level,
            is_draft=self.is_draft,
            paid_break_minutes=self.paid_break_minutes,
            unpaid_break_minutes=self.unpaid_break_minutes,
            required_skills=list(self.required_skills),
            notes=self.notes,
        )


@dataclass
class ShiftSubgroup:
    id: str
    name: str
    shifts: List[TemplateShift] = field(default_factory=list)
    sub_department_id: Optional[str] = None


@dataclass
class ShiftGroup:
    id: str
    name: str
    color: str = "blue"
    subgroups: List[ShiftSubgroup] = field(default_factory=list)
    department_id: Optional[str] = None


@dataclass
class ShiftTemplate:
    """Reusable Group -> Subgroup -> Shift blueprint over a date range."""

    id: str
    name: str
    groups: List[ShiftGroup] = field(default_factory=list)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    department_id: Optional[str] = None
    sub_department_id: Optional[str] = None
    description: str = ""
    status: str = "draft"  # draft, published

    def covers(self, day: date) -> bool:
        """True if the template's own date range (when set) includes ``day``."""
        if self.start_date and day < self.start_date:
            return False
        if self.end_date and day > self.end_date:
            return False
        return True

    @property
    def shift_count(self) -> int:
        return sum(len(sg.shifts) for g in self.groups for sg in g.subgroups)

    def find_group(self, group_id: str) -> Optional[ShiftGroup]:
        for g in self.groups:
            if g.id == group_id:
                return g
        return None

    def instantiate(self, day: date, id_factory: Callable[[str], str]):
        """
        Build a fresh roster tree and its concrete shifts for ``day``.

        Group and subgroup ids are carried over; every shift gets a new id
        from ``id_factory("shift")``. Departments fall back from
        group/subgroup to the template's own.

        Returns:
            (RosterTree, list of Shift)
        """
        shifts: List[Shift] = []
        groups: List[RosterGroup] = []
        for group in self.groups:
            department_id = group.department_id or self.department_id
            subgroups = []
            for sub in group.subgroups:
                sub_department_id = sub.sub_department_id or self.sub_department_id
                ids = []
                for blueprint in sub.shifts:
                    shift = blueprint.instantiate(
                        id_factory("shift"), day, department_id, sub_department_id
                    )
                    shifts.append(shift)
                    ids.append(shift.id)
                subgroups.append(RosterSubgroup(
                    id=sub.id, name=sub.name, shift_ids=ids,
                    sub_department_id=sub_department_id,
                ))
            groups.append(RosterGroup(
                id=group.id, name=group.name, color=group.color,
                subgroups=subgroups, department_id=department_id,
            ))
        tree = RosterTree(
            id=f"roster-{day.isoformat()}",
            date=day,
            groups=groups,
            template_id=self.id,
        )
        return tree, shifts
