"""Employee model with roles, skills and availability."""
from dataclasses import dataclass, field
from datetime import date, time
from typing import Dict, List, Optional, Set

from .status import EmployeeStatus


@dataclass(frozen=True)
class TimeWindow:
    """A time-of-day window on a single date."""
    start: time
    end: time

    def covers(self, start: time, end: time) -> bool:
        """True if [start, end] fits inside the window.

        An overnight interval (end <= start) only fits a window that runs
        to the end of the day.
        """
        if end <= start:
            return self.start <= start and self.end >= time(23, 59)
        return self.start <= start and end <= self.end


@dataclass
class Employee:
    """A staff member who can bid on open shifts and request swaps."""

    id: str
    name: str
    role_ids: Set[str] = field(default_factory=set)
    department_id: Optional[str] = None
    sub_department_id: Optional[str] = None
    skills: Set[str] = field(default_factory=set)
    availability: Dict[date, List[TimeWindow]] = field(default_factory=dict)
    status: EmployeeStatus = EmployeeStatus.ACTIVE
    email: str = ""

    def __post_init__(self):
        self.name = str(self.name).strip()
        self.role_ids = set(self.role_ids)
        self.skills = set(self.skills)
        if not isinstance(self.status, EmployeeStatus):
            self.status = EmployeeStatus(str(self.status).strip().lower())

    @property
    def is_active(self) -> bool:
        return self.status == EmployeeStatus.ACTIVE

    def holds_role(self, role_id: Optional[str]) -> bool:
        """Shifts without a role are open to anyone."""
        return role_id is None or role_id in self.role_ids

    def is_available(self, day: date, start: time, end: time) -> bool:
        """Check declared availability for a date.

        A date with no declared windows counts as available.
        """
        windows = self.availability.get(day)
        if not windows:
            return True
        return any(w.covers(start, end) for w in windows)

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "id": self.id,
            "name": self.name,
            "role_ids": ";".join(sorted(self.role_ids)),
            "department_id": self.department_id or "",
            "sub_department_id": self.sub_department_id or "",
            "skills": ";".join(sorted(self.skills)),
            "status": self.status.value,
            "email": self.email,
        }

    @classmethod
    def from_dict(cls, d: dict) -> "Employee":
        """Create from dictionary (role ids and skills are ';'-separated)."""
        def _split(value) -> Set[str]:
            if isinstance(value, (set, list, tuple)):
                return {str(v).strip() for v in value if str(v).strip()}
            return {part.strip() for part in str(value or "").split(";") if part.strip()}

        return cls(
            id=str(d["id"]),
            name=d.get("name", ""),
            role_ids=_split(d.get("role_ids")),
            department_id=d.get("department_id") or None,
            sub_department_id=d.get("sub_department_id") or None,
            skills=_split(d.get("skills")),
            status=d.get("status") or EmployeeStatus.ACTIVE,
            email=str(d.get("email", "") or ""),
        )
