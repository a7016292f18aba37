from typing import Optional

from app.utils.mongo import exact_ci, to_object_id


class AdminRepository:
    def __init__(self, col):
        self.col = col

    async def get(self, admin_id) -> Optional[dict]:
        oid = to_object_id(admin_id)
        if oid is None:
            return None
        return await self.col.find_one({"_id": oid}, {"password": 0})

    async def find_by_login(self, admin_id: str) -> Optional[dict]:
        return await self.col.find_one({"adminId": admin_id})

    async def find_for_location(self, city: Optional[str], state: Optional[str]) -> Optional[dict]:
        if not city or not state:
            return None
        return await self.col.find_one(
            {
                "assignedCity": exact_ci(city),
                "assignedState": exact_ci(state),
                "isActive": True,
            },
            {"password": 0},
        )
