from __future__ import annotations

from typing import Dict, Optional

from app.core.enums import ParticipantModel, Role

ROLE_TO_MODEL: Dict[Role, ParticipantModel] = {
    Role.user: ParticipantModel.user,
    Role.admin: ParticipantModel.admin,
    Role.department: ParticipantModel.department,
}


def participant_ref(participant_id: str, role: Role) -> dict:
    return {
        "participantId": str(participant_id),
        "participantModel": ROLE_TO_MODEL[role].value,
        "participantRole": role.value,
        "lastSeenAt": None,
    }


class ParticipantDirectory:
    """Resolves `{participantId, participantModel}` refs through one table."""

    def __init__(self, users, admins, departments):
        self._repos = {
            ParticipantModel.user: users,
            ParticipantModel.admin: admins,
            ParticipantModel.department: departments,
        }

    async def lookup(self, participant_id: str, model: str) -> Optional[dict]:
        repo = self._repos.get(ParticipantModel(model))
        if repo is None:
            return None
        doc = await repo.get(participant_id)
        if not doc:
            return None
        return {
            "id": str(doc["_id"]),
            "model": model,
            "name": doc.get("name"),
        }

    async def describe(self, participants) -> list:
        out = []
        for p in participants:
            info = await self.lookup(p["participantId"], p["participantModel"])
            out.append({**p, "name": info["name"] if info else None})
        return out
