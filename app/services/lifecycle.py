from __future__ import annotations

import logging
from typing import Optional

from app.core.enums import AccountStatus, ChatType, ComplaintStatus, NotificationType
from app.core.errors import AlreadyRejected, NotFound, NotFoundOrProcessed, PermissionDenied, ValidationFailed
from app.core.security import Principal
from app.models.accounts import WarningEntry
from app.models.complaint import ComplaintNote, DepartmentRejection
from app.repositories.complaint_repository import ComplaintRepository
from app.repositories.department_repository import DepartmentRepository
from app.repositories.user_repository import UserRepository
from app.services.chat_service import ChatService
from app.services.effects import TransitionContext, run_effects
from app.services.notification_service import NotificationService
from app.services.points_service import ADMIN_APPROVAL_REASON, APPROVAL_POINTS, PointsService
from app.services.routing import DepartmentRoutingEngine
from app.services.workflow import ADMIN_ACTIONABLE, DEPARTMENT_REJECTABLE, RESOLVABLE, sources_for
from app.utils.dates import utcnow
from app.utils.mongo import exact_ci, to_object_id

logger = logging.getLogger(__name__)

WARNING_REJECTION_REASON = "Warning Given"
WARNINGS_BEFORE_FLAG = 3


def _require_reason(reason: Optional[str], what: str = "Rejection reason") -> str:
    reason = (reason or "").strip()
    if not reason:
        raise ValidationFailed(f"{what} is required")
    return reason


def _require_id(complaint_id: str) -> str:
    if to_object_id(complaint_id) is None:
        raise ValidationFailed("Invalid complaint id")
    return complaint_id


class ComplaintLifecycle:
    """
    Admin and department transitions of a complaint.

    Each transition is a single conditional write on `status`; side effects
    run afterwards in a fixed order and never undo the transition.
    """

    def __init__(
        self,
        complaints: ComplaintRepository,
        users: UserRepository,
        departments: DepartmentRepository,
        routing: DepartmentRoutingEngine,
        notifications: NotificationService,
        points: PointsService,
        chats: ChatService,
    ):
        self.complaints = complaints
        self.users = users
        self.departments = departments
        self.routing = routing
        self.notifications = notifications
        self.points = points
        self.chats = chats

    # =========================
    # Shared effects
    # =========================
    async def route_if_unassigned(self, ctx: TransitionContext) -> None:
        complaint = ctx.complaint
        if complaint.get("assignedDepartment"):
            return
        location = {
            "city": complaint.get("assignedCity") or complaint.get("location", {}).get("city"),
            "state": complaint.get("assignedState") or complaint.get("location", {}).get("state"),
            "district": complaint.get("location", {}).get("district"),
        }
        result = await self.routing.route(
            complaint.get("description"),
            location=location,
            detection=complaint.get("detectedDepartmentInfo"),
        )
        ctx.data["routing"] = result
        fields = {"autoRoutingData": {**result, "routedAt": utcnow()}}
        assigned = result.get("assignedDepartment") if result.get("success") else None
        if assigned:
            fields.update({"assignedDepartment": assigned["id"], "assignedAt": utcnow()})
        updated = await self.complaints.update(ctx.complaint_id, fields)
        if updated:
            ctx.complaint = updated

    async def notify_status(self, ctx: TransitionContext) -> None:
        await self.notifications.notify_status(
            ctx.complaint, ctx.complaint["status"], reason=ctx.data.get("reason")
        )

    async def award_approval_points(self, ctx: TransitionContext) -> None:
        reason = ctx.data.get("points_reason", ADMIN_APPROVAL_REASON)
        await self.points.award(ctx.complaint["userId"], APPROVAL_POINTS, reason, ctx.complaint_id)

    async def ensure_chats(self, ctx: TransitionContext) -> None:
        for chat_type in (ChatType.user_department, ChatType.admin_department):
            await self.chats.ensure_chat(ctx.complaint, chat_type)

    # =========================
    # Admin
    # =========================
    @staticmethod
    def _admin_scope(admin: Principal) -> dict:
        if not admin.city or not admin.state:
            raise PermissionDenied("Admin has no assigned city")
        return {"assignedCity": exact_ci(admin.city), "assignedState": exact_ci(admin.state)}

    async def approve(self, complaint_id: str, admin: Principal, comment: Optional[str] = None) -> TransitionContext:
        _require_id(complaint_id)
        now = utcnow()
        fields = {
            "status": ComplaintStatus.in_progress.value,
            "assignedAdmin": admin.id,
            "approvedAt": now,
        }
        push = None
        if comment and comment.strip():
            fields["adminComment"] = comment.strip()
            push = {"messages": ComplaintNote(sender="admin", text=comment.strip()).to_document()}

        complaint = await self.complaints.transition(
            complaint_id, ADMIN_ACTIONABLE, fields, guard=self._admin_scope(admin), push=push
        )
        if complaint is None:
            raise NotFoundOrProcessed()
        logger.info("Complaint %s approved by admin %s", complaint_id, admin.id)

        ctx = TransitionContext(complaint=complaint, actor_id=admin.id)
        return await run_effects(ctx, [
            ("routing", self.route_if_unassigned),
            ("notification", self.notify_status),
            ("points", self.award_approval_points),
            ("chat", self.ensure_chats),
        ])

    async def reject(self, complaint_id: str, admin: Principal, reason: Optional[str]) -> TransitionContext:
        reason = _require_reason(reason)
        _require_id(complaint_id)
        fields = {
            "status": ComplaintStatus.rejected.value,
            "rejectionReason": reason,
            "assignedAdmin": admin.id,
            "rejectedAt": utcnow(),
        }
        note = ComplaintNote(sender="admin", text=f"Complaint rejected: {reason}").to_document()
        complaint = await self.complaints.transition(
            complaint_id, ADMIN_ACTIONABLE, fields, guard=self._admin_scope(admin), push={"messages": note}
        )
        if complaint is None:
            raise NotFoundOrProcessed()
        logger.info("Complaint %s rejected by admin %s", complaint_id, admin.id)

        ctx = TransitionContext(complaint=complaint, actor_id=admin.id, data={"reason": reason})
        return await run_effects(ctx, [("notification", self.notify_status)])

    # =========================
    # Department
    # =========================
    async def _department_may_act(self, complaint: dict, department: Principal) -> bool:
        if str(complaint.get("assignedDepartment") or "") == department.id:
            return True
        dept = await self.departments.get(department.id)
        if not dept:
            return False
        city, state = complaint.get("assignedCity") or "", complaint.get("assignedState") or ""
        return (
            city.lower() == (dept.get("assignedCity") or "").lower()
            and state.lower() == (dept.get("assignedState") or "").lower()
        )

    async def department_reject(
        self,
        complaint_id: str,
        department: Principal,
        reason: Optional[str],
        additional_notes: Optional[str] = None,
    ) -> TransitionContext:
        reason = _require_reason(reason)
        complaint = await self.complaints.get(_require_id(complaint_id))
        if not complaint:
            raise NotFound("Complaint not found")
        if complaint.get("status") == ComplaintStatus.rejected_by_department.value:
            raise AlreadyRejected()
        if not await self._department_may_act(complaint, department):
            raise PermissionDenied("Complaint is not assigned to your department")

        rejection = DepartmentRejection(
            rejected_by=department.id, reason=reason, additional_notes=additional_notes
        ).to_document()
        updated = await self.complaints.transition(
            complaint_id,
            DEPARTMENT_REJECTABLE,
            {"status": ComplaintStatus.rejected_by_department.value, "departmentRejection": rejection},
        )
        if updated is None:
            latest = await self.complaints.get(complaint_id)
            if latest and latest.get("status") == ComplaintStatus.rejected_by_department.value:
                raise AlreadyRejected()
            raise NotFoundOrProcessed()
        logger.info("Complaint %s rejected by department %s", complaint_id, department.id)

        ctx = TransitionContext(complaint=updated, actor_id=department.id, data={"reason": reason})
        return await run_effects(ctx, [("notification", self.notify_status)])

    async def resolve(self, complaint_id: str, department: Principal, notes: Optional[str] = None) -> TransitionContext:
        _require_id(complaint_id)
        fields = {"status": ComplaintStatus.resolved.value, "resolvedAt": utcnow()}
        if notes:
            fields["resolutionNotes"] = notes
        updated = await self.complaints.transition(
            complaint_id,
            RESOLVABLE,
            fields,
            guard={"assignedDepartment": department.id},
        )
        if updated is None:
            raise NotFoundOrProcessed()
        logger.info("Complaint %s resolved by department %s", complaint_id, department.id)

        ctx = TransitionContext(complaint=updated, actor_id=department.id)
        return await run_effects(ctx, [("notification", self.notify_status)])

    # =========================
    # Moderation
    # =========================
    async def give_warning(
        self,
        user_id: str,
        admin: Principal,
        reason: Optional[str],
        complaint_id: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> dict:
        reason = _require_reason(reason, "Warning reason")
        if complaint_id:
            _require_id(complaint_id)
        if not await self.users.get(user_id):
            raise NotFound("User not found")

        entry = WarningEntry(reason=reason, complaint_id=complaint_id, notes=notes, given_by=admin.id).to_document()
        user = await self.users.add_warning(user_id, entry)
        count = user.get("warnings", {}).get("count", 0)

        account_status = user.get("accountStatus", AccountStatus.active.value)
        if count >= WARNINGS_BEFORE_FLAG and account_status == AccountStatus.active.value:
            account_status = AccountStatus.warned.value
            await self.users.update(user_id, {"accountStatus": account_status})

        complaint_rejected = False
        if complaint_id:
            rejected = await self.complaints.transition(
                complaint_id,
                sources_for(ComplaintStatus.rejected),
                {
                    "status": ComplaintStatus.rejected.value,
                    "rejectionReason": WARNING_REJECTION_REASON,
                    "rejectedAt": utcnow(),
                },
                guard={"userId": user_id},
            )
            complaint_rejected = rejected is not None

        try:
            await self.notifications.create(
                user_id,
                NotificationType.admin_message,
                "Warning Issued",
                f"You have received a warning: {reason}",
                complaint_id=complaint_id,
            )
        except Exception:
            logger.exception("Warning notification failed for user %s", user_id)

        logger.info("Admin %s warned user %s (%d warnings)", admin.id, user_id, count)
        return {
            "userId": user_id,
            "warningCount": count,
            "accountStatus": account_status,
            "complaintRejected": complaint_rejected,
        }

    async def blacklist(self, user_id: str, admin: Principal, reason: Optional[str], notes: Optional[str] = None) -> dict:
        reason = _require_reason(reason, "Blacklist reason")
        user = await self.users.update(
            user_id,
            {
                "isBlacklisted": True,
                "accountStatus": AccountStatus.blacklisted.value,
                "blacklistReason": reason,
                "blacklistNotes": notes,
                "blacklistedBy": admin.id,
                "blacklistedAt": utcnow(),
            },
        )
        if user is None:
            raise NotFound("User not found")
        logger.info("Admin %s blacklisted user %s", admin.id, user_id)
        return {"userId": user_id, "isBlacklisted": True, "accountStatus": user["accountStatus"]}
