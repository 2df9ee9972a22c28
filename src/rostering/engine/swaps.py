"""
Swap Workflow
=============
Lifecycle of a shift-swap request: pending -> approved | rejected, both
terminal.

Approval exchanges the assignees of the two shifts, marks both shifts
Swapped and records a SwapApproval, all in one command. Rejection records
the decision with an optional (recommended) reason.
"""
from typing import List, Optional

from rostering.engine.base import SYSTEM_USER, CurrentUser, ShiftStore, SwapStore
from rostering.engine.commands import Command, guard_transition
from rostering.engine.eligibility import (
    Eligibility,
    can_approve_swap,
    can_reject_swap,
    can_request_swap,
)
from rostering.errors import ValidationFailure
from rostering.models.audit import AuditStatus
from rostering.models.config import EngineConfig
from rostering.models.status import ShiftStatus, SwapPriority, SwapStatus
from rostering.models.swap import SwapApproval, SwapRequest
from rostering.store.domain import DomainStore
from rostering.utils.logging_setup import get_logger, log_function_call
from rostering.utils.structured_logging import get_structured_logger

logger = get_logger("rostering.engine.swaps")
audit_log = get_structured_logger("rostering.audit")


class SwapWorkflow:
    """Commands and queries for shift swap requests."""

    def __init__(
        self,
        store: DomainStore,
        swap_store: Optional[SwapStore] = None,
        shift_store: Optional[ShiftStore] = None,
        config: Optional[EngineConfig] = None,
        user: CurrentUser = SYSTEM_USER,
    ):
        self.store = store
        self.swap_store = swap_store
        self.shift_store = shift_store
        self.config = config or EngineConfig()
        self.user = user

    @log_function_call
    def request_swap(
        self,
        requester_id: str,
        original_shift_id: str,
        target_employee_id: str,
        requested_shift_id: str,
        reason: Optional[str] = None,
        priority: Optional[SwapPriority] = None,
    ) -> SwapRequest:
        """File a pending request to trade ``original_shift_id`` for ``requested_shift_id``."""
        self.store.get_employee(requester_id)
        self.store.get_employee(target_employee_id)
        request = SwapRequest(
            id=self.store.next_id("swap"),
            requester_id=requester_id,
            original_shift_id=original_shift_id,
            target_employee_id=target_employee_id,
            requested_shift_id=requested_shift_id,
            reason=reason,
            priority=priority,
            created_at=self.store.now(),
        )
        can_request_swap(
            request,
            self.store.find_shift(original_shift_id),
            self.store.find_shift(requested_shift_id),
        ).require()

        def persist():
            if self.swap_store is not None:
                self.swap_store.create(request)

        Command(
            f"request swap {request.id}",
            lambda changes: changes.append(self.store.add_swap(request)),
        ).execute(persist)
        logger.info(
            f"Swap {request.id} requested: {requester_id}/{original_shift_id} "
            f"<-> {target_employee_id}/{requested_shift_id}"
        )
        return request

    def approval_eligibility(self, swap_id: str) -> Eligibility:
        request = self.store.get_swap(swap_id)
        return can_approve_swap(
            request,
            self.store.find_shift(request.original_shift_id),
            self.store.find_shift(request.requested_shift_id),
        )

    def rejection_eligibility(self, swap_id: str) -> Eligibility:
        return can_reject_swap(self.store.get_swap(swap_id))

    @log_function_call
    def approve(self, swap_id: str, notes: Optional[str] = None) -> SwapRequest:
        """
        Approve a pending swap.

        Raises:
            NotFound: unknown swap request.
            InvalidTransition: the request was already decided.
            ValidationFailure: a shift is missing or cancelled, or the
                assignments changed since the request was filed.
            PersistenceFailure: the external store refused; nothing changed.
        """
        request = self.store.get_swap(swap_id)
        guard_transition("SwapRequest", swap_id, request.status, SwapStatus.APPROVED)
        self.approval_eligibility(swap_id).require()

        approval = SwapApproval(
            swap_id=swap_id,
            approver_id=self.user.id,
            decision=SwapStatus.APPROVED,
            decided_at=self.store.now(),
            notes=notes,
        )
        original_id, requested_id = request.shift_ids

        def mutate(changes):
            changes.append(self.store.update_swap_status(swap_id, SwapStatus.APPROVED, notes))
            changes.append(self.store.assign_employee(
                original_id, request.target_employee_id, self.user.id,
                audit=AuditStatus.SWAP_APPROVED, notes=swap_id,
            ))
            changes.append(self.store.assign_employee(
                requested_id, request.requester_id, self.user.id,
                audit=AuditStatus.SWAP_APPROVED, notes=swap_id,
            ))
            changes.append(self.store.update_shift_status(original_id, ShiftStatus.SWAPPED, self.user.id))
            changes.append(self.store.update_shift_status(requested_id, ShiftStatus.SWAPPED, self.user.id))
            changes.append(self.store.record_swap_approval(approval))

        def persist():
            if self.swap_store is not None:
                self.swap_store.update_status(swap_id, SwapStatus.APPROVED, notes)
            if self.shift_store is not None:
                self.shift_store.update(original_id, {
                    "assigned_employee_id": request.target_employee_id,
                    "status": ShiftStatus.SWAPPED,
                })
                self.shift_store.update(requested_id, {
                    "assigned_employee_id": request.requester_id,
                    "status": ShiftStatus.SWAPPED,
                })

        Command(f"approve swap {swap_id}", mutate).execute(persist)
        logger.info(f"Swap {swap_id} approved by {self.user.id}")
        audit_log.info(
            "swap_approved", swap_id=swap_id, original_shift_id=original_id,
            requested_shift_id=requested_id, actor_id=self.user.id,
        )
        return request

    @log_function_call
    def reject(self, swap_id: str, reason: Optional[str] = None) -> SwapRequest:
        """
        Reject a pending swap.

        A reason is recommended for the audit trail; when
        ``EngineConfig.require_swap_reject_reason`` is set it is mandatory.
        """
        request = self.store.get_swap(swap_id)
        guard_transition("SwapRequest", swap_id, request.status, SwapStatus.REJECTED)
        self.rejection_eligibility(swap_id).require()
        reason = reason.strip() if reason else None
        if not reason:
            if self.config.require_swap_reject_reason:
                raise ValidationFailure("reason_required", "A rejection reason is required")
            logger.warning(f"Swap {swap_id} rejected without a reason")

        approval = SwapApproval(
            swap_id=swap_id,
            approver_id=self.user.id,
            decision=SwapStatus.REJECTED,
            decided_at=self.store.now(),
            notes=reason,
        )

        def mutate(changes):
            changes.append(self.store.update_swap_status(swap_id, SwapStatus.REJECTED, reason))
            changes.append(self.store.record_swap_approval(approval))

        def persist():
            if self.swap_store is not None:
                self.swap_store.update_status(swap_id, SwapStatus.REJECTED, reason)

        Command(f"reject swap {swap_id}", mutate).execute(persist)
        logger.info(f"Swap {swap_id} rejected by {self.user.id}")
        audit_log.info("swap_rejected", swap_id=swap_id, reason=reason, actor_id=self.user.id)
        return request

    def requests(self, status: Optional[SwapStatus] = None) -> List[SwapRequest]:
        rows = list(self.store.swaps.values())
        if status is not None:
            rows = [r for r in rows if r.status == status]
        return rows
