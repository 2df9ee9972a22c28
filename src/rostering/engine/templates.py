"""
Template Library
================
Authoring operations on ShiftTemplates: groups, subgroups, template shifts
and duplication. Instantiation into a roster lives on
``ShiftTemplate.instantiate``.
"""
import copy
from datetime import date
from typing import List, Optional

from rostering.errors import NotFound, TemplateNotFound, ValidationFailure
from rostering.models.shift import ShiftGroup, ShiftSubgroup, ShiftTemplate, TemplateShift
from rostering.store.domain import DomainStore
from rostering.utils.logging_setup import get_logger

logger = get_logger("rostering.engine.templates")


class TemplateLibrary:
    """Create and edit templates held by the domain store."""

    def __init__(self, store: DomainStore):
        self.store = store

    def get(self, template_id: str) -> ShiftTemplate:
        template = self.store.templates.get(template_id)
        if template is None:
            raise TemplateNotFound(template_id)
        return template

    def list_templates(self, status: Optional[str] = None) -> List[ShiftTemplate]:
        rows = list(self.store.templates.values())
        if status:
            rows = [t for t in rows if t.status == status]
        return rows

    def create_template(
        self,
        name: str,
        department_id: Optional[str] = None,
        sub_department_id: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        description: str = "",
    ) -> ShiftTemplate:
        _require_name(name, "Template")
        template = ShiftTemplate(
            id=self.store.next_id("template"),
            name=name.strip(),
            department_id=department_id,
            sub_department_id=sub_department_id,
            start_date=start_date,
            end_date=end_date,
            description=description,
        )
        self.store.add_template(template)
        logger.info(f"Created template {template.id} '{template.name}'")
        return template

    def delete_template(self, template_id: str) -> None:
        self.get(template_id)
        del self.store.templates[template_id]
        logger.info(f"Deleted template {template_id}")

    def duplicate_template(self, template_id: str) -> ShiftTemplate:
        """Deep copy as a new draft named "<name> (Copy)"."""
        source = self.get(template_id)
        clone = copy.deepcopy(source)
        clone.id = self.store.next_id("template")
        clone.name = f"{source.name} (Copy)"
        clone.status = "draft"
        self.store.add_template(clone)
        return clone

    # ------------------------------------------------------------------
    # Groups
    # ------------------------------------------------------------------

    def _group(self, template: ShiftTemplate, group_id: str) -> ShiftGroup:
        group = template.find_group(group_id)
        if group is None:
            raise NotFound("ShiftGroup", group_id)
        return group

    def add_group(self, template_id: str, name: str, color: str = "blue") -> ShiftGroup:
        _require_name(name, "Group")
        template = self.get(template_id)
        group = ShiftGroup(id=self.store.next_id("group"), name=name.strip(), color=color)
        template.groups.append(group)
        return group

    def update_group(
        self,
        template_id: str,
        group_id: str,
        name: Optional[str] = None,
        color: Optional[str] = None,
    ) -> ShiftGroup:
        group = self._group(self.get(template_id), group_id)
        if name is not None:
            _require_name(name, "Group")
            group.name = name.strip()
        if color is not None:
            group.color = color
        return group

    def delete_group(self, template_id: str, group_id: str) -> None:
        template = self.get(template_id)
        group = self._group(template, group_id)
        template.groups.remove(group)

    def clone_group(self, template_id: str, group_id: str) -> ShiftGroup:
        """Append a deep copy of a group with fresh group/subgroup ids."""
        template = self.get(template_id)
        clone = copy.deepcopy(self._group(template, group_id))
        clone.id = self.store.next_id("group")
        clone.name = f"{clone.name} (Copy)"
        for sub in clone.subgroups:
            sub.id = self.store.next_id("subgroup")
        template.groups.append(clone)
        return clone

    def reorder_groups(self, template_id: str, source_index: int, dest_index: int) -> List[ShiftGroup]:
        """Move the group at ``source_index`` to ``dest_index``."""
        groups = self.get(template_id).groups
        if not 0 <= source_index < len(groups):
            raise IndexError(f"No group at position {source_index}")
        moved = groups.pop(source_index)
        groups.insert(max(0, min(dest_index, len(groups))), moved)
        return groups

    # ------------------------------------------------------------------
    # Subgroups and shifts
    # ------------------------------------------------------------------

    def add_subgroup(
        self,
        template_id: str,
        group_id: str,
        name: str,
        sub_department_id: Optional[str] = None,
    ) -> ShiftSubgroup:
        _require_name(name, "Subgroup")
        group = self._group(self.get(template_id), group_id)
        sub = ShiftSubgroup(
            id=self.store.next_id("subgroup"),
            name=name.strip(),
            sub_department_id=sub_department_id,
        )
        group.subgroups.append(sub)
        return sub

    def add_shift(
        self,
        template_id: str,
        group_id: str,
        subgroup_id: str,
        blueprint: TemplateShift,
    ) -> TemplateShift:
        group = self._group(self.get(template_id), group_id)
        for sub in group.subgroups:
            if sub.id == subgroup_id:
                sub.shifts.append(blueprint)
                return blueprint
        raise NotFound("ShiftSubgroup", subgroup_id)


def _require_name(name: Optional[str], what: str) -> None:
    if not name or not name.strip():
        raise ValidationFailure("name_required", f"{what} name is required")
