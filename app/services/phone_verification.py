from __future__ import annotations

import logging
import time
from datetime import timedelta
from typing import Optional

from app.core.enums import ComplaintStatus, PhoneVerificationStatus as PV
from app.core.errors import NotFound
from app.repositories.complaint_repository import ComplaintRepository
from app.services.effects import TransitionContext, run_effects
from app.services.points_service import PHONE_APPROVAL_REASON
from app.utils.dates import utcnow
from app.utils.phone import mask_phone

logger = logging.getLogger(__name__)

USER_REJECTION_REASON = "User rejected during phone verification"
UNREACHABLE_REASON = "Phone verification failed - user did not respond to calls"
MISSED_CALL_STATUSES = {"no-answer", "busy", "failed"}


class PhoneVerificationService:
    """
    Drives `phoneVerificationStatus` from DTMF and call-status events.

    A confirmed complaint is routed and, when a department is found,
    moved straight to in_progress.
    """

    def __init__(
        self,
        complaints: ComplaintRepository,
        lifecycle,
        call_gateway,
        scheduler,
        production: bool = False,
        retry_delay_seconds: int = 600,
    ):
        self.complaints = complaints
        self.lifecycle = lifecycle
        self.call_gateway = call_gateway
        self.scheduler = scheduler
        self.production = production
        self.retry_delay_seconds = retry_delay_seconds

    # -------------------------
    # Call placement
    # -------------------------
    async def start(self, complaint: dict) -> dict:
        complaint_id = str(complaint["_id"])
        try:
            call_sid = await self.call_gateway.call(complaint["phone"], complaint_id)
        except Exception as exc:
            if not self.production:
                # nothing is dialled; the complaint waits for manual review
                call_sid = f"MOCK_{int(time.time() * 1000)}"
                logger.warning("Call gateway failed (%s); mock verification for %s", exc, complaint_id)
                await self.complaints.update(complaint_id, {
                    "phoneVerificationCallSid": call_sid,
                    "phoneVerificationInitiatedAt": utcnow(),
                })
                return {"callInitiated": True, "callSid": call_sid, "isMock": True}

            logger.error("Verification call for %s failed: %s", complaint_id, exc)
            await self.complaints.update(complaint_id, {
                "phoneVerificationStatus": PV.verification_failed.value,
                "phoneVerificationError": str(exc),
            })
            return {"callInitiated": False, "error": "Phone verification service unavailable"}

        await self.complaints.update(complaint_id, {
            "phoneVerificationStatus": PV.pending_verification.value,
            "phoneVerificationCallSid": call_sid,
            "phoneVerificationInitiatedAt": utcnow(),
        })
        logger.info("Verification call %s placed for complaint %s (%s)",
                    call_sid, complaint_id, mask_phone(complaint.get("phone")))
        return {"callInitiated": True, "callSid": call_sid, "isMock": False}

    # -------------------------
    # DTMF
    # -------------------------
    async def handle_digit(self, complaint_id: str, digit: Optional[str], call_sid: Optional[str] = None) -> str:
        """Returns the outcome name: verified, rejected, invalid or processed."""
        complaint = await self.complaints.get(complaint_id)
        if not complaint:
            raise NotFound("Complaint not found")

        digit = (digit or "").strip()
        now = utcnow()
        if digit == "1":
            fields = {
                "status": ComplaintStatus.phone_verified.value,
                "phoneVerificationStatus": PV.phone_verified.value,
                "phoneVerifiedAt": now,
            }
        elif digit == "2":
            fields = {
                "status": ComplaintStatus.rejected.value,
                "phoneVerificationStatus": PV.rejected.value,
                "rejectionReason": USER_REJECTION_REASON,
                "rejectedAt": now,
            }
        else:
            fields = {
                "status": ComplaintStatus.verification_failed.value,
                "phoneVerificationStatus": PV.verification_failed.value,
                "phoneVerificationInput": digit,
            }
        fields["phoneVerificationAt"] = now
        if call_sid:
            fields["phoneVerificationCallSid"] = call_sid

        updated = await self.complaints.transition(complaint_id, [ComplaintStatus.pending], fields)
        if updated is None:
            logger.info("Digit %r for complaint %s ignored, already processed", digit, complaint_id)
            return "processed"

        if digit == "1":
            await self._after_confirmation(updated)
            return "verified"
        return "rejected" if digit == "2" else "invalid"

    async def _after_confirmation(self, complaint: dict) -> TransitionContext:
        ctx = TransitionContext(complaint=complaint, data={"points_reason": PHONE_APPROVAL_REASON})
        return await run_effects(ctx, [
            ("routing", self._route_and_start),
            ("notification", self._notify_if_started),
            ("points", self._award_if_started),
            ("chat", self._chat_if_started),
        ])

    async def _route_and_start(self, ctx: TransitionContext) -> None:
        await self.lifecycle.route_if_unassigned(ctx)
        if not ctx.complaint.get("assignedDepartment"):
            logger.info("Complaint %s verified; awaiting manual assignment", ctx.complaint_id)
            return
        started = await self.complaints.transition(
            ctx.complaint_id,
            [ComplaintStatus.phone_verified],
            {"status": ComplaintStatus.in_progress.value, "assignedAt": ctx.complaint.get("assignedAt") or utcnow()},
        )
        if started is not None:
            ctx.complaint = started
            ctx.data["started"] = True

    async def _notify_if_started(self, ctx: TransitionContext) -> None:
        if ctx.data.get("started"):
            await self.lifecycle.notify_status(ctx)

    async def _award_if_started(self, ctx: TransitionContext) -> None:
        if ctx.data.get("started"):
            await self.lifecycle.award_approval_points(ctx)

    async def _chat_if_started(self, ctx: TransitionContext) -> None:
        if ctx.data.get("started"):
            await self.lifecycle.ensure_chats(ctx)

    # -------------------------
    # Missed calls and retry
    # -------------------------
    async def handle_call_status(self, complaint_id: str, call_status: Optional[str]) -> str:
        call_status = (call_status or "").lower()
        await self.complaints.update(complaint_id, {"phoneVerificationCallStatus": call_status})
        if call_status in MISSED_CALL_STATUSES:
            return await self.handle_missed(complaint_id)
        return "recorded"

    async def handle_missed(self, complaint_id: str) -> str:
        """First miss schedules one retry; a miss after the retry rejects."""
        complaint = await self.complaints.get(complaint_id)
        if not complaint or complaint.get("status") != ComplaintStatus.pending.value:
            return "ignored"

        if complaint.get("phoneVerificationRetryExecuted"):
            await self._reject_unreachable(complaint_id)
            return "rejected"

        retry_at = utcnow() + timedelta(seconds=self.retry_delay_seconds)
        claimed = await self.complaints.transition(
            complaint_id,
            [ComplaintStatus.pending],
            {
                "phoneVerificationStatus": PV.no_answer.value,
                "phoneVerificationRetryScheduled": True,
                "phoneVerificationRetryAt": retry_at,
            },
            guard={"phoneVerificationRetryScheduled": {"$ne": True}},
        )
        if claimed is None:
            return "retry_pending"

        self.scheduler.schedule(
            self.retry_delay_seconds,
            lambda: self.execute_retry(complaint_id),
            name=f"verification-retry-{complaint_id}",
        )
        logger.info("Verification retry for complaint %s scheduled at %s", complaint_id, retry_at)
        return "retry_scheduled"

    async def execute_retry(self, complaint_id: str) -> None:
        complaint = await self.complaints.get(complaint_id)
        if not complaint:
            logger.info("Complaint %s gone before retry", complaint_id)
            return
        if complaint.get("status") != ComplaintStatus.pending.value or complaint.get(
            "phoneVerificationStatus"
        ) not in (PV.no_answer.value, PV.pending_verification.value):
            logger.info("Complaint %s already processed, skipping retry", complaint_id)
            return

        try:
            call_sid = await self.call_gateway.call(complaint["phone"], complaint_id)
        except Exception as exc:
            logger.warning("Retry call for complaint %s failed: %s", complaint_id, exc)
            await self._reject_unreachable(complaint_id)
            return

        await self.complaints.update(complaint_id, {
            "phoneVerificationStatus": PV.pending_verification.value,
            "phoneVerificationCallSid": call_sid,
            "phoneVerificationRetryExecuted": True,
            "phoneVerificationRetriedAt": utcnow(),
        })
        logger.info("Retry call %s placed for complaint %s", call_sid, complaint_id)

    async def _reject_unreachable(self, complaint_id: str) -> None:
        updated = await self.complaints.transition(
            complaint_id,
            [ComplaintStatus.pending],
            {
                "status": ComplaintStatus.rejected.value,
                "phoneVerificationStatus": PV.verification_failed.value,
                "rejectionReason": UNREACHABLE_REASON,
                "phoneVerificationAt": utcnow(),
            },
        )
        if updated is not None:
            logger.info("Complaint %s rejected, user unreachable", complaint_id)

    async def status(self, complaint_id: str) -> Optional[dict]:
        complaint = await self.complaints.get(complaint_id)
        if not complaint:
            return None
        return {
            "complaintId": complaint_id,
            "status": complaint.get("status"),
            "phoneVerificationStatus": complaint.get("phoneVerificationStatus"),
            "phoneVerificationAt": complaint.get("phoneVerificationAt"),
            "retryScheduled": bool(complaint.get("phoneVerificationRetryScheduled")),
            "retryAt": complaint.get("phoneVerificationRetryAt"),
            "assignedDepartment": complaint.get("assignedDepartment"),
        }
