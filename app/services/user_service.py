from __future__ import annotations

from app.core.errors import NotFound
from app.mapper.accounts_mapper import to_user_out
from app.repositories.user_repository import UserRepository
from app.utils.dates import utcnow


class UserService:
    def __init__(self, users: UserRepository):
        self.users = users

    async def _get(self, user_id: str) -> dict:
        user = await self.users.get(user_id)
        if not user:
            raise NotFound("User not found")
        return user

    async def profile(self, user_id: str) -> dict:
        return to_user_out(await self._get(user_id))

    async def update_profile(self, user_id: str, fields: dict) -> dict:
        await self._get(user_id)
        # blank values leave the stored field alone
        changes = {k: v.strip() for k, v in fields.items() if isinstance(v, str) and v.strip()}
        if changes:
            await self.users.update(user_id, {**changes, "updatedAt": utcnow()})
        return await self.profile(user_id)

    async def warnings(self, user_id: str) -> dict:
        user = await self._get(user_id)
        warnings = user.get("warnings") or {}
        history = warnings.get("history", [])
        return {
            "count": warnings.get("count", 0),
            "unacknowledged": sum(1 for w in history if not w.get("acknowledged")),
            "history": history,
            "accountStatus": user.get("accountStatus", "active"),
        }

    async def acknowledge_warnings(self, user_id: str) -> dict:
        user = await self._get(user_id)
        history = (user.get("warnings") or {}).get("history", [])
        for w in history:
            w["acknowledged"] = True
        await self.users.update(user_id, {"warnings.history": history})
        return await self.warnings(user_id)

    async def moderation_view(self, user_id: str) -> dict:
        user = await self._get(user_id)
        out = to_user_out(user)
        out["warnings"] = user.get("warnings") or {"count": 0, "history": []}
        return out
