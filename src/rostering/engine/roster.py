"""
Roster Assignment Manager
=========================
Owns the Group -> Subgroup -> Shift tree for each date: template
instantiation and publication, employee assignment, shift time edits, the
advisory roster lock, collapse/expand display state, and the calendar
projection consumed by the views.
"""
from collections import OrderedDict
from dataclasses import dataclass
from datetime import date, time
from typing import Dict, List, Optional, Union

from rostering.engine.base import (
    FEATURE_LOCK_ROSTER,
    SYSTEM_USER,
    CurrentUser,
    PermissionChecker,
    RosterStore,
    ShiftStore,
)
from rostering.engine.bids import BidWorkflow
from rostering.engine.calendar import (
    CalendarView,
    block_geometry,
    date_range_for,
    dates_in_range,
    parse_time,
)
from rostering.engine.commands import Command
from rostering.engine.eligibility import (
    ReasonCode,
    can_assign_employee,
    can_edit_shift_times,
)
from rostering.errors import NotFound, RosteringError, TemplateNotFound, ValidationFailure
from rostering.models.audit import AuditStatus
from rostering.models.config import EngineConfig
from rostering.models.roster import RosterTree
from rostering.models.shift import Shift
from rostering.models.status import BidStatus, ShiftStatus
from rostering.store.domain import Change, DomainStore
from rostering.utils.logging_setup import WorkflowLogger, get_logger, log_function_call
from rostering.utils.structured_logging import get_structured_logger

logger = get_logger("rostering.engine.roster")
audit_log = get_structured_logger("rostering.audit")


@dataclass
class CalendarEntry:
    """A shift placed on the vertical day axis (percentages)."""
    shift: Shift
    group_name: str
    group_color: str
    subgroup_name: str
    top: float
    height: float


class RosterAssignmentManager:
    """Single logical owner of roster trees."""

    def __init__(
        self,
        store: DomainStore,
        bids: Optional[BidWorkflow] = None,
        roster_store: Optional[RosterStore] = None,
        shift_store: Optional[ShiftStore] = None,
        config: Optional[EngineConfig] = None,
        user: CurrentUser = SYSTEM_USER,
    ):
        self.store = store
        self.config = config or EngineConfig()
        self.user = user
        self.roster_store = roster_store
        self.shift_store = shift_store
        self.bids = bids or BidWorkflow(store, shift_store=shift_store, config=self.config, user=user)

    # ------------------------------------------------------------------
    # Trees
    # ------------------------------------------------------------------

    def roster_for(self, day: date) -> RosterTree:
        """The live tree for ``day``, loaded from the roster store if needed."""
        tree = self.store.roster_for(day)
        if tree is None and self.roster_store is not None:
            tree = self.roster_store.get_by_date(day)
            if tree is not None:
                self.store.set_roster(day, tree)
        if tree is None:
            raise NotFound("Roster", day.isoformat())
        return tree

    def _existing_roster(self, day: date) -> Optional[RosterTree]:
        try:
            return self.roster_for(day)
        except NotFound:
            return None

    def has_roster(self, day: date) -> bool:
        return self._existing_roster(day) is not None

    def is_locked(self, day: date) -> bool:
        tree = self._existing_roster(day)
        return bool(tree and tree.locked)

    def can_user_lock(self, checker: PermissionChecker) -> bool:
        return checker.has_permission(FEATURE_LOCK_ROSTER)

    def toggle_lock(self, day: date) -> bool:
        """Flip the roster-wide advisory lock; returns the new state."""
        tree = self.roster_for(day)
        previous = tree.locked

        def mutate(changes):
            tree.locked = not previous
            changes.append(_attr_change(tree, "locked", previous))

        def persist():
            if self.roster_store is not None:
                self.roster_store.save(day, tree)

        Command(f"toggle lock {day.isoformat()}", mutate).execute(persist)
        logger.info(f"Roster {day.isoformat()} {'locked' if tree.locked else 'unlocked'} by {self.user.id}")
        return tree.locked

    # Display state only: never touches shifts, ignores the lock.

    def collapse_all(self, day: date) -> RosterTree:
        tree = self.roster_for(day)
        for node in tree.nodes():
            node.collapsed = True
        return tree

    def expand_all(self, day: date) -> RosterTree:
        tree = self.roster_for(day)
        for node in tree.nodes():
            node.collapsed = False
        return tree

    def toggle_collapsed(self, day: date, node_id: str) -> bool:
        node = self.roster_for(day).find_node(node_id)
        if node is None:
            raise NotFound("RosterNode", node_id)
        node.collapsed = not node.collapsed
        return node.collapsed

    # ------------------------------------------------------------------
    # Templates
    # ------------------------------------------------------------------

    @log_function_call
    def apply_template(self, template_id: str, day: date) -> RosterTree:
        """
        Instantiate a fresh tree for ``day`` from a template.

        Overwrites an existing roster: its shifts are cancelled (never
        deleted) and leave the tree. Callers must confirm before calling.

        Raises:
            TemplateNotFound: unknown template id.
            ValidationFailure: the day's roster is locked.
            PersistenceFailure: the external store refused; nothing changed.
        """
        template = self.store.templates.get(template_id)
        if template is None:
            raise TemplateNotFound(template_id)
        existing = self._existing_roster(day)
        if existing is not None and existing.locked:
            raise ValidationFailure(ReasonCode.ROSTER_LOCKED, f"Roster {day.isoformat()} is locked")

        replaced = []
        if existing is not None and not existing.is_empty:
            logger.warning(f"Overwriting non-empty roster {day.isoformat()} with template {template_id}")
            replaced = [
                sid for sid in existing.shift_ids()
                if sid in self.store.shifts and not self.store.shifts[sid].status.is_finalized
            ]
        tree, shifts = template.instantiate(day, self.store.next_id)

        def mutate(changes):
            for sid in replaced:
                changes.append(self.store.update_shift_status(
                    sid, ShiftStatus.CANCELLED, self.user.id,
                    audit=AuditStatus.CANCELLED_BY_ADMIN,
                    notes=f"Replaced by template {template_id}",
                ))
            for shift in shifts:
                changes.append(self.store.add_shift(shift, self.user.id))
            changes.append(self.store.set_roster(day, tree))

        def persist():
            if self.shift_store is not None:
                for sid in replaced:
                    self.shift_store.update(sid, {"status": ShiftStatus.CANCELLED})
                for shift in shifts:
                    self.shift_store.create(shift)
            if self.roster_store is not None:
                self.roster_store.save(day, tree)

        Command(f"apply template {template_id} on {day.isoformat()}", mutate).execute(persist)
        logger.info(f"Template {template_id} applied to {day.isoformat()}: {len(shifts)} shifts")
        audit_log.info(
            "roster_template_applied", template_id=template_id, date=day.isoformat(),
            shifts=len(shifts), replaced=len(replaced), actor_id=self.user.id,
        )
        return tree

    def publish_template(
        self,
        template_id: str,
        start: date,
        end: date,
        override: bool = False,
    ) -> List[date]:
        """
        Apply a template to every date in [start, end].

        Without ``override`` dates that already hold a non-empty roster are
        skipped; locked dates are always skipped. Returns the dates applied.
        """
        template = self.store.templates.get(template_id)
        if template is None:
            raise TemplateNotFound(template_id)
        if end < start:
            raise ValueError(f"Publication range ends before it starts: {start} > {end}")

        wf = WorkflowLogger("rostering.engine.roster")
        wf.phase(f"Publish {template.name} {start.isoformat()} -> {end.isoformat()}")
        applied = []
        for day in dates_in_range(start, end):
            existing = self._existing_roster(day)
            if existing is not None and existing.locked:
                wf.check(day.isoformat(), False, "roster locked, skipped")
                continue
            if existing is not None and not existing.is_empty and not override:
                wf.check(day.isoformat(), False, "roster exists, skipped")
                continue
            self.apply_template(template_id, day)
            wf.check(day.isoformat(), True, "applied")
            applied.append(day)
        if applied:
            self._mark_published(template, start, end)
        wf.step(f"{len(applied)} of {(end - start).days + 1} dates published")
        return applied

    def _mark_published(self, template, start: date, end: date) -> None:
        def mutate(changes):
            for attr, value in (("status", "published"), ("start_date", start), ("end_date", end)):
                changes.append(_attr_change(template, attr, getattr(template, attr)))
                setattr(template, attr, value)

        Command(f"publish template {template.id}", mutate).execute()

    # ------------------------------------------------------------------
    # Assignment
    # ------------------------------------------------------------------

    @log_function_call
    def assign_employee(self, shift_id: str, employee_id: str) -> Shift:
        """
        Assign an employee to a shift.

        When the shift is the target of an OpenBid that still accepts bids the
        assignment goes through the bid workflow (the employee's bid is
        approved, creating it if needed), so the OpenBid is filled in the same
        step. Otherwise the shift is assigned directly.
        """
        shift = self.store.get_shift(shift_id)
        employee = self.store.get_employee(employee_id)
        can_assign_employee(
            employee, shift, self.is_locked(shift.date), self.config.enforce_availability
        ).require()

        open_bid = self.store.open_bid_for_shift(shift_id)
        if open_bid is not None and open_bid.status.accepts_bids:
            self._assign_through_bid(open_bid.id, employee_id)
            return shift

        def persist():
            if self.shift_store is not None:
                self.shift_store.update(shift_id, {"assigned_employee_id": employee_id})

        Command(
            f"assign {employee_id} to {shift_id}",
            lambda changes: changes.append(self.store.assign_employee(shift_id, employee_id, self.user.id)),
        ).execute(persist)
        logger.info(f"Assigned {employee_id} to {shift_id}")
        return shift

    def _assign_through_bid(self, open_bid_id: str, employee_id: str) -> None:
        bid = next(
            (b for b in self.store.bids_for_open_bid(open_bid_id)
             if b.employee_id == employee_id and b.status == BidStatus.PENDING),
            None,
        )
        created = bid is None
        if created:
            bid = self.bids.express_interest(employee_id, open_bid_id, comment="Assigned by manager")
        try:
            self.bids.approve(bid.id)
        except RosteringError:
            if created:
                self.bids.withdraw(bid.id)
            raise

    @log_function_call
    def unassign_employee(self, shift_id: str) -> Shift:
        """Clear a shift's assignee; a bid-filled shift reopens for bidding."""
        shift = self.store.get_shift(shift_id)
        can_edit_shift_times(shift, self.is_locked(shift.date)).require()
        if not shift.is_assigned:
            return shift

        open_bid = self.store.open_bid_for_shift(shift_id)
        if open_bid is not None:
            approved = next(
                (b for b in self.store.bids_for_open_bid(open_bid.id)
                 if b.status == BidStatus.APPROVED and b.employee_id == shift.assigned_employee_id),
                None,
            )
            if approved is not None:
                self.bids.withdraw(approved.id)
                return shift

        def persist():
            if self.shift_store is not None:
                self.shift_store.update(shift_id, {"assigned_employee_id": None})

        Command(
            f"unassign {shift_id}",
            lambda changes: changes.append(self.store.assign_employee(shift_id, None, self.user.id)),
        ).execute(persist)
        logger.info(f"Unassigned {shift_id}")
        return shift

    @log_function_call
    def edit_shift_times(
        self,
        shift_id: str,
        start: Union[str, time],
        end: Union[str, time],
    ) -> Shift:
        """
        Change a shift's start/end time.

        Raises:
            ParseError: malformed time string.
            ValidationFailure: the roster is locked or the shift is completed
                or cancelled.
        """
        start_t, end_t = parse_time(start), parse_time(end)
        shift = self.store.get_shift(shift_id)
        can_edit_shift_times(shift, self.is_locked(shift.date)).require()

        def persist():
            if self.shift_store is not None:
                self.shift_store.update(shift_id, {"start_time": start_t, "end_time": end_t})

        Command(
            f"retime {shift_id}",
            lambda changes: changes.append(
                self.store.update_shift_times(shift_id, start_t, end_t, self.user.id)
            ),
        ).execute(persist)
        logger.info(f"Shift {shift_id} now {start_t:%H:%M}-{end_t:%H:%M}")
        return shift

    # ------------------------------------------------------------------
    # Projection
    # ------------------------------------------------------------------

    def load_range(self, view: Union[str, CalendarView], anchor: date) -> Dict[str, int]:
        """Pull the view's persisted shifts, bids and roster trees into the domain store."""
        start, end = date_range_for(view, anchor, self.config.week_start)
        return self.store.load_from(
            start,
            end,
            shift_store=self.shift_store,
            bid_store=self.bids.bid_store,
            roster_store=self.roster_store,
        )

    def calendar_projection(
        self,
        view: Union[str, CalendarView],
        anchor: date,
    ) -> "OrderedDict[date, List[CalendarEntry]]":
        """
        Date -> positioned entries for every date the view covers.

        Shifts in the day's roster tree come first, in tree order; shifts on
        that date outside any tree follow by start time (cancelled ones are
        left out).
        """
        start, end = date_range_for(view, anchor, self.config.week_start)
        projection: "OrderedDict[date, List[CalendarEntry]]" = OrderedDict()
        for day in dates_in_range(start, end):
            entries: List[CalendarEntry] = []
            seen = set()
            tree = self._existing_roster(day)
            if tree is not None:
                for group in tree.groups:
                    for sub in group.subgroups:
                        for sid in sub.shift_ids:
                            shift = self.store.find_shift(sid)
                            if shift is None:
                                continue
                            seen.add(sid)
                            entries.append(self._entry(shift, group.name, group.color, sub.name))
            for shift in self.store.shifts_on(day):
                if shift.id in seen or shift.status == ShiftStatus.CANCELLED:
                    continue
                entries.append(self._entry(shift, "", "", ""))
            projection[day] = entries
        return projection

    def _entry(self, shift: Shift, group_name: str, color: str, subgroup_name: str) -> CalendarEntry:
        top, height = block_geometry(
            shift.start_time, shift.end_time,
            self.config.day_start_hour, self.config.day_end_hour,
        )
        return CalendarEntry(shift, group_name, color, subgroup_name, top, height)

    def collapse_state(self, day: date) -> Dict[str, bool]:
        return self.roster_for(day).collapse_state()


def _attr_change(obj, attr: str, previous) -> Change:
    return Change(f"{attr} on {getattr(obj, 'id', obj)}", lambda: setattr(obj, attr, previous), obj)
