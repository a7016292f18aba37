from __future__ import annotations

from typing import List, Optional, Sequence

from app.utils.mongo import contains_ci, exact_ci, to_object_id

NO_PASSWORD = {"password": 0}


class DepartmentRepository:
    def __init__(self, col):
        self.col = col

    async def get(self, department_id) -> Optional[dict]:
        oid = to_object_id(department_id)
        if oid is None:
            return None
        return await self.col.find_one({"_id": oid}, NO_PASSWORD)

    async def find_by_login(self, department_id: str) -> Optional[dict]:
        return await self.col.find_one({"departmentId": department_id})

    async def _find(self, query: dict) -> List[dict]:
        return [d async for d in self.col.find(query, NO_PASSWORD)]

    async def find_by_types(
        self,
        types: Sequence[str],
        *,
        city: Optional[str] = None,
        city_partial: Optional[str] = None,
        district: Optional[str] = None,
        state: Optional[str] = None,
    ) -> List[dict]:
        query: dict = {"departmentType": {"$in": list(types)}, "isActive": True}
        if city:
            query["assignedCity"] = exact_ci(city)
        if city_partial:
            query["assignedCity"] = contains_ci(city_partial)
        if district:
            query["assignedDistrict"] = contains_ci(district)
        if state:
            query["assignedState"] = contains_ci(state)
        return await self._find(query)

    async def find_any_for_location(self, city: Optional[str], state: Optional[str]) -> Optional[dict]:
        if not city or not state:
            return None
        return await self.col.find_one(
            {
                "assignedCity": exact_ci(city),
                "assignedState": exact_ci(state),
                "isActive": True,
            },
            NO_PASSWORD,
        )
