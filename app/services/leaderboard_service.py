from __future__ import annotations

from typing import Any, Dict, List, Optional

from app.core.errors import NotFound, ValidationFailed
from app.repositories.complaint_repository import ComplaintRepository
from app.repositories.user_repository import UserRepository
from app.utils.mongo import exact_ci

DISTRICT_PAGE = 20
STATE_PAGE = 50
TOP_PERFORMERS = 3


def _entry(user: dict, rank: int, viewer_id: str) -> Dict[str, Any]:
    return {
        "rank": rank,
        "id": str(user["_id"]),
        "name": user.get("name"),
        "city": user.get("city"),
        "state": user.get("state"),
        "district": user.get("district"),
        "points": user.get("points", 0),
        "totalComplaints": len(user.get("pointsHistory") or []),
        "isCurrentUser": str(user["_id"]) == viewer_id,
    }


class LeaderboardService:
    """Janawaaz rankings of citizens by points, scoped to their city or state."""

    def __init__(self, users: UserRepository, complaints: ComplaintRepository):
        self.users = users
        self.complaints = complaints

    async def _viewer(self, user_id: str) -> dict:
        user = await self.users.get(user_id)
        if not user:
            raise NotFound("User not found")
        return user

    async def _rankings(self, viewer: dict, field: str, page: int, title: str) -> dict:
        scope = {field: exact_ci(viewer[field])}
        viewer_id = str(viewer["_id"])
        top = await self.users.top_by_points(scope, page)
        rankings = [_entry(u, i + 1, viewer_id) for i, u in enumerate(top)]

        current: Optional[dict] = None
        points = viewer.get("points", 0)
        if points > 0 and not any(r["isCurrentUser"] for r in rankings):
            # ties share the best rank
            rank = await self.users.count_ranked(scope, above=points) + 1
            current = _entry(viewer, rank, viewer_id)

        return {
            "title": title,
            "location": {
                "city": viewer.get("city"),
                "state": viewer.get("state"),
                "district": viewer.get("district"),
            },
            "rankings": rankings,
            "currentUserRank": current,
            "totalUsers": await self.users.count_ranked(scope),
        }

    async def district(self, user_id: str) -> dict:
        viewer = await self._viewer(user_id)
        if not viewer.get("city"):
            raise ValidationFailed("Please complete your profile with city information to view district rankings")
        return await self._rankings(viewer, "city", DISTRICT_PAGE, f"{viewer['city']} District Rankings")

    async def state(self, user_id: str) -> dict:
        viewer = await self._viewer(user_id)
        if not viewer.get("state"):
            raise ValidationFailed("Please complete your profile with state information to view state rankings")
        return await self._rankings(viewer, "state", STATE_PAGE, f"{viewer['state']} State Rankings")

    async def my_points(self, user_id: str) -> dict:
        viewer = await self._viewer(user_id)
        history = sorted(viewer.get("pointsHistory") or [], key=lambda e: e.get("awardedAt"), reverse=True)

        entries: List[dict] = []
        for e in history:
            complaint = None
            if e.get("complaintId"):
                found = await self.complaints.get(e["complaintId"])
                if found:
                    complaint = {
                        "id": str(found["_id"]),
                        "description": found.get("description", "")[:100] + "...",
                        "status": found.get("status"),
                        "createdAt": found.get("createdAt"),
                    }
            entries.append({
                "points": e.get("points"),
                "reason": e.get("reason"),
                "awardedAt": e.get("awardedAt"),
                "complaint": complaint,
            })

        total = viewer.get("points", 0)
        return {
            "user": {
                "name": viewer.get("name"),
                "city": viewer.get("city"),
                "state": viewer.get("state"),
                "district": viewer.get("district"),
                "totalPoints": total,
            },
            "pointsHistory": entries,
            "summary": {
                "totalEntries": len(entries),
                "totalPoints": total,
                "averagePointsPerComplaint": round(total / len(entries)) if entries else 0,
            },
        }

    async def _area(self, field: str, name: Optional[str]) -> dict:
        if not name:
            return {"name": None, "stats": {"totalUsers": 0, "totalPoints": 0, "averagePoints": 0}, "topPerformers": []}
        scope = {field: exact_ci(name)}
        top = await self.users.top_by_points(scope, TOP_PERFORMERS)
        return {
            "name": name,
            "stats": await self.users.points_stats(scope),
            "topPerformers": [
                {"id": str(u["_id"]), "name": u.get("name"), "city": u.get("city"), "points": u.get("points", 0)}
                for u in top
            ],
        }

    async def stats(self, user_id: str) -> dict:
        viewer = await self._viewer(user_id)
        return {
            "district": await self._area("city", viewer.get("city")),
            "state": await self._area("state", viewer.get("state")),
            "currentUser": {"name": viewer.get("name"), "points": viewer.get("points", 0)},
        }
