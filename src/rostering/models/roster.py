"""Published roster tree for one date.

The tree holds shift *ids*; the shifts themselves live in the domain store.
``collapsed`` is display state only.
"""
from dataclasses import dataclass, field
from datetime import date
from typing import Iterator, List, Optional, Union


@dataclass
class RosterSubgroup:
    id: str
    name: str
    shift_ids: List[str] = field(default_factory=list)
    sub_department_id: Optional[str] = None
    collapsed: bool = False


@dataclass
class RosterGroup:
    id: str
    name: str
    color: str = "blue"
    subgroups: List[RosterSubgroup] = field(default_factory=list)
    department_id: Optional[str] = None
    collapsed: bool = False


RosterNode = Union[RosterGroup, RosterSubgroup]


@dataclass
class RosterTree:
    """Group -> Subgroup -> Shift tree for a date."""

    id: str
    date: date
    groups: List[RosterGroup] = field(default_factory=list)
    template_id: Optional[str] = None
    locked: bool = False
    status: str = "draft"  # draft, published, approved

    @property
    def is_empty(self) -> bool:
        return not any(sg.shift_ids for g in self.groups for sg in g.subgroups)

    def shift_ids(self) -> List[str]:
        """All shift ids in tree order."""
        return [sid for g in self.groups for sg in g.subgroups for sid in sg.shift_ids]

    def nodes(self) -> Iterator[RosterNode]:
        """Every group and subgroup, depth first."""
        for g in self.groups:
            yield g
            for sg in g.subgroups:
                yield sg

    def find_node(self, node_id: str) -> Optional[RosterNode]:
        for node in self.nodes():
            if node.id == node_id:
                return node
        return None

    def locate(self, shift_id: str):
        """Return (group, subgroup) holding ``shift_id`` or (None, None)."""
        for g in self.groups:
            for sg in g.subgroups:
                if shift_id in sg.shift_ids:
                    return g, sg
        return None, None

    def collapse_state(self) -> dict:
        return {node.id: node.collapsed for node in self.nodes()}
