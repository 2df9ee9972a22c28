"""Organisation hierarchy and roles."""
from dataclasses import dataclass
from typing import Optional

from .status import RemunerationLevel


@dataclass
class Organization:
    id: str
    name: str


@dataclass
class Department:
    id: str
    name: str
    organization_id: str
    color: str = "blue"


@dataclass
class SubDepartment:
    """Belongs to exactly one department."""
    id: str
    name: str
    department_id: str


@dataclass
class Role:
    """Named position, optionally scoped to a department or sub-department."""
    id: str
    name: str
    department_id: Optional[str] = None
    sub_department_id: Optional[str] = None
    remuneration_level: RemunerationLevel = RemunerationLevel.BRONZE

    def __post_init__(self):
        self.name = str(self.name).strip()
        if not isinstance(self.remuneration_level, RemunerationLevel):
            self.remuneration_level = RemunerationLevel.from_string(self.remuneration_level)
