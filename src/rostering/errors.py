"""
Engine Exceptions
=================
Every failure the workflow engine raises derives from ``RosteringError``.

Ordinary ineligibility is *not* an exception: predicates return an
``Eligibility`` value and workflows turn a refusal into ``ValidationFailure``
before touching any state.
"""
from typing import Any, Optional


class RosteringError(Exception):
    """Base class for engine errors."""

    #: Short name used in batch outcome summaries.
    kind = "Error"


class ValidationFailure(RosteringError):
    """An eligibility predicate refused the action."""
    kind = "ValidationFailure"

    def __init__(self, reason: Any, message: str = ""):
        self.reason = reason
        self.message = message or str(getattr(reason, "value", reason))
        super().__init__(self.message)


class InvalidTransition(RosteringError):
    """Attempted transition out of a terminal state."""
    kind = "InvalidTransition"

    def __init__(self, entity: str, entity_id: str, current: Any, target: Any):
        self.entity = entity
        self.entity_id = entity_id
        self.current = current
        self.target = target
        cur = getattr(current, "value", current)
        tgt = getattr(target, "value", target)
        super().__init__(f"{entity} {entity_id} cannot move from {cur} to {tgt}")


class NotFound(RosteringError, KeyError):
    """A referenced shift, bid, swap, template or roster does not exist."""
    kind = "NotFound"

    def __init__(self, entity: str, entity_id: Any):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} not found: {entity_id}")

    def __str__(self) -> str:
        return self.args[0]


class TemplateNotFound(NotFound):
    kind = "TemplateNotFound"

    def __init__(self, template_id: Any):
        super().__init__("ShiftTemplate", template_id)


class PersistenceFailure(RosteringError):
    """An external store rejected a mutation; local state was rolled back."""
    kind = "PersistenceFailure"

    def __init__(self, operation: str, cause: Optional[BaseException] = None):
        self.operation = operation
        self.cause = cause
        detail = f": {cause}" if cause else ""
        super().__init__(f"Persisting '{operation}' failed{detail}")


class ParseError(RosteringError, ValueError):
    """Malformed time or date string."""
    kind = "ParseError"

    def __init__(self, value: Any, expected: str = "time"):
        self.value = value
        super().__init__(f"Cannot parse {expected} from {value!r}")


class MissingReference(RosteringError, ValueError):
    """A predicate was handed ``None`` where an entity is required."""
    kind = "MissingReference"


class BatchInProgress(RosteringError):
    """A second batch was started before the first one resolved."""
    kind = "BatchInProgress"
