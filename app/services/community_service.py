from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from app.core.enums import OPEN_STATUSES, NotificationType, Role
from app.core.errors import NotFound, PermissionDenied, ValidationFailed
from app.core.security import Principal
from app.models.complaint import ComplaintComment
from app.repositories.complaint_repository import ComplaintRepository
from app.repositories.user_repository import UserRepository
from app.services.complaint_service import public_view
from app.services.notification_service import NotificationService
from app.utils.mongo import exact_ci, to_object_id

logger = logging.getLogger(__name__)

MAX_COMMENT_LENGTH = 500

SORTS = {"latest", "oldest", "most-upvoted", "most-downvoted", "most-discussed"}
VOTE_FILTERS = {"all", "upvoted-only", "downvoted-only", "no-votes"}


def vote_summary(complaint: dict, user_id: str) -> Dict[str, Any]:
    upvotes = complaint.get("upvotes") or []
    downvotes = complaint.get("downvotes") or []
    return {
        "upvoteCount": len(upvotes),
        "downvoteCount": len(downvotes),
        "hasUserUpvoted": user_id in upvotes,
        "hasUserDownvoted": user_id in downvotes,
    }


def _sort_key(sort_by: str):
    if sort_by == "oldest":
        return lambda c: c["createdAt"], False
    if sort_by == "most-upvoted":
        return lambda c: c["upvoteCount"], True
    if sort_by == "most-downvoted":
        return lambda c: c["downvoteCount"], True
    if sort_by == "most-discussed":
        return lambda c: len(c.get("comments") or []), True
    return lambda c: c["createdAt"], True


class CommunityService:
    """Neighbourhood feed, votes and comments on other people's complaints."""

    def __init__(
        self,
        complaints: ComplaintRepository,
        users: UserRepository,
        notifications: NotificationService,
    ):
        self.complaints = complaints
        self.users = users
        self.notifications = notifications

    async def _notify_owner(self, complaint: dict, actor_id: str, type: NotificationType, title: str, message: str) -> None:
        owner = complaint.get("userId")
        if not owner or owner == actor_id:
            return
        try:
            await self.notifications.create(owner, type, title, message, complaint_id=str(complaint["_id"]))
        except Exception:
            logger.exception("Community notification failed for complaint %s", complaint["_id"])

    # =========================
    # Feed
    # =========================
    async def _home(self, principal: Principal) -> tuple:
        if principal.role == Role.admin:
            return principal.city, None
        if principal.role != Role.user:
            raise PermissionDenied("Community complaints are for citizens and admins")
        user = await self.users.get(principal.id) or {}
        return user.get("city"), user.get("sublocality")

    async def feed(
        self,
        principal: Principal,
        sort_by: str = "latest",
        vote_filter: str = "all",
        location_filter: str = "all",
        min_upvotes: Optional[int] = None,
        min_downvotes: Optional[int] = None,
    ) -> dict:
        if sort_by not in SORTS:
            raise ValidationFailed(f"Unknown sort {sort_by}")
        if vote_filter not in VOTE_FILTERS:
            raise ValidationFailed(f"Unknown vote filter {vote_filter}")

        city, sublocality = await self._home(principal)
        if not city:
            raise ValidationFailed(
                "Please complete your profile with city information to view community complaints"
            )

        query: Dict[str, Any] = {
            "location.city": exact_ci(city),
            "status": {"$in": [s.value for s in OPEN_STATUSES]},
        }
        if location_filter == "same-area" and sublocality:
            query["location.sublocality"] = exact_ci(sublocality)

        found = await self.complaints.list(query)
        items: List[dict] = []
        for complaint in found:
            item = public_view(complaint)
            item.update(vote_summary(complaint, principal.id))
            item["isOwnComplaint"] = complaint.get("userId") == principal.id
            items.append(item)

        if vote_filter == "upvoted-only":
            items = [c for c in items if c["upvoteCount"] > 0]
        elif vote_filter == "downvoted-only":
            items = [c for c in items if c["downvoteCount"] > 0]
        elif vote_filter == "no-votes":
            items = [c for c in items if c["upvoteCount"] == 0 and c["downvoteCount"] == 0]
        if min_upvotes is not None:
            items = [c for c in items if c["upvoteCount"] >= min_upvotes]
        if min_downvotes is not None:
            items = [c for c in items if c["downvoteCount"] >= min_downvotes]

        key, reverse = _sort_key(sort_by)
        items.sort(key=key, reverse=reverse)

        return {
            "complaints": items,
            "userCity": city,
            "filters": {
                "sortBy": sort_by,
                "voteFilter": vote_filter,
                "locationFilter": location_filter,
                "applied": sort_by != "latest" or vote_filter != "all" or location_filter != "all",
            },
            "stats": {
                "total": len(found),
                "filtered": len(items),
                "upvoted": sum(1 for c in items if c["upvoteCount"] > 0),
                "downvoted": sum(1 for c in items if c["downvoteCount"] > 0),
                "noVotes": sum(1 for c in items if c["upvoteCount"] == 0 and c["downvoteCount"] == 0),
            },
        }

    # =========================
    # Votes
    # =========================
    async def _vote(self, complaint_id: str, user: Principal, field: str, opposite: str) -> tuple:
        complaint, added = await self.complaints.toggle_vote(complaint_id, user.id, field, opposite)
        if complaint is None:
            raise NotFound("Complaint not found")
        return complaint, added

    async def upvote(self, complaint_id: str, user: Principal) -> dict:
        complaint, added = await self._vote(complaint_id, user, "upvotes", "downvotes")
        if added:
            await self._notify_owner(
                complaint,
                user.id,
                NotificationType.upvote,
                "New Upvote",
                "Someone in your community upvoted your complaint.",
            )
        return vote_summary(complaint, user.id)

    async def downvote(self, complaint_id: str, user: Principal) -> dict:
        complaint, _ = await self._vote(complaint_id, user, "downvotes", "upvotes")
        return vote_summary(complaint, user.id)

    # =========================
    # Comments
    # =========================
    async def add_comment(self, complaint_id: str, user: Principal, text: Optional[str]) -> dict:
        text = (text or "").strip()
        if not text:
            raise ValidationFailed("Comment text is required")
        if len(text) > MAX_COMMENT_LENGTH:
            raise ValidationFailed(f"Comment must be less than {MAX_COMMENT_LENGTH} characters")

        author = await self.users.get(user.id) or {}
        comment = ComplaintComment(user_id=user.id, user_name=author.get("name"), text=text).to_document()
        complaint = await self.complaints.add_comment(complaint_id, comment)
        if complaint is None:
            raise NotFound("Complaint not found")

        await self._notify_owner(
            complaint,
            user.id,
            NotificationType.comment,
            "New Comment",
            f"{author.get('name') or 'Someone'} commented on your complaint: {text[:100]}",
        )
        return {"comment": comment, "commentCount": len(complaint.get("comments") or [])}

    async def delete_comment(self, complaint_id: str, comment_id: str, user: Principal) -> dict:
        complaint = await self.complaints.get(complaint_id)
        if not complaint:
            raise NotFound("Complaint not found")
        cid = to_object_id(comment_id)
        comment = next((c for c in complaint.get("comments") or [] if c.get("_id") == cid), None)
        if cid is None or comment is None:
            raise NotFound("Comment not found")
        if comment.get("userId") != user.id:
            raise PermissionDenied("You can only delete your own comments")

        updated = await self.complaints.remove_comment(complaint["_id"], cid, user.id)
        if updated is None:
            # removed by a concurrent request
            raise NotFound("Comment not found")
        return {"commentCount": len(updated.get("comments") or [])}
