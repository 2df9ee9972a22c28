"""
Optimistic Commands
===================
Two-phase mutation: ``apply()`` runs the domain-store primitives and leaves
the command PENDING; the persistence outcome then drives ``confirm()`` or
``rollback()``. Rollback replays the recorded undos in reverse order, so the
store (audit trail included) ends exactly as it was before ``apply()``.

Usage:
    def mutate(changes):
        changes.append(store.update_bid_status(bid_id, BidStatus.APPROVED))
        changes.append(store.assign_employee(shift_id, employee_id))

    Command("approve bid", mutate).execute(persist=push_to_store)
"""
from enum import Enum
from typing import Callable, List, Optional

from rostering.errors import InvalidTransition, PersistenceFailure
from rostering.store.domain import Change
from rostering.utils.logging_setup import get_logger
from rostering.utils.structured_logging import get_structured_logger

logger = get_logger("rostering.engine.commands")
audit_log = get_structured_logger("rostering.audit")

Mutation = Callable[[List[Change]], None]


class CommandState(Enum):
    """Lifecycle of an optimistic command."""
    NEW = "new"
    PENDING = "pending"
    CONFIRMED = "confirmed"
    ROLLED_BACK = "rolled_back"


class Command:
    """
    A named group of domain-store mutations applied as one unit.

    ``mutate`` appends every ``Change`` it makes to the list it is handed.
    If it raises half-way, the changes already recorded are undone before
    the error propagates, so a command is never left partially applied.
    """

    def __init__(self, name: str, mutate: Mutation):
        self.name = name
        self._mutate = mutate
        self.changes: List[Change] = []
        self.state = CommandState.NEW

    @property
    def is_pending(self) -> bool:
        return self.state == CommandState.PENDING

    def apply(self) -> "Command":
        if self.state != CommandState.NEW:
            raise RuntimeError(f"Command '{self.name}' already applied ({self.state.value})")
        try:
            self._mutate(self.changes)
        except Exception:
            self._undo()
            raise
        self.state = CommandState.PENDING
        logger.debug(f"Applied '{self.name}' ({len(self.changes)} changes, pending)")
        return self

    def confirm(self) -> None:
        if self.state != CommandState.PENDING:
            raise RuntimeError(f"Cannot confirm '{self.name}' in state {self.state.value}")
        self.state = CommandState.CONFIRMED
        logger.debug(f"Confirmed '{self.name}'")

    def rollback(self) -> None:
        if self.state != CommandState.PENDING:
            raise RuntimeError(f"Cannot roll back '{self.name}' in state {self.state.value}")
        self._undo()
        self.state = CommandState.ROLLED_BACK
        logger.error(f"Rolled back '{self.name}'")

    def _undo(self) -> None:
        while self.changes:
            self.changes.pop().revert()

    def execute(self, persist: Optional[Callable[[], None]] = None) -> "Command":
        """
        Apply, persist, then confirm or roll back.

        Raises:
            PersistenceFailure: ``persist`` raised; local state was restored.
        """
        self.apply()
        if persist is not None:
            try:
                persist()
            except Exception as exc:
                self.rollback()
                audit_log.error("persistence_rollback", command=self.name, error=str(exc))
                raise PersistenceFailure(self.name, exc) from exc
        self.confirm()
        return self


def guard_transition(entity: str, entity_id: str, current, target) -> None:
    """
    Refuse any transition out of a terminal status.

    Raises:
        InvalidTransition: ``current`` is terminal. Nothing has been mutated.
    """
    if current.is_terminal:
        error = InvalidTransition(entity, entity_id, current, target)
        logger.error(f"Caller error: {error}")
        raise error
