from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from app.core.enums import CLOSED_STATUSES, OPEN_STATUSES, ComplaintStatus, Role
from app.core.errors import NotFound, PermissionDenied, ValidationFailed
from app.core.security import Principal
from app.integrations.geo_fallback import fallback_address
from app.models.complaint import Complaint, ComplaintLocation
from app.repositories.admin_repository import AdminRepository
from app.repositories.complaint_repository import ComplaintRepository
from app.repositories.user_repository import UserRepository
from app.services.phone_verification import PhoneVerificationService
from app.services.routing import DepartmentRoutingEngine
from app.utils.mongo import exact_ci
from app.utils.phone import mask_phone

logger = logging.getLogger(__name__)


def _values(statuses) -> List[str]:
    return [s.value for s in statuses]


PRIVATE_FIELDS = ("userId", "phoneVerificationCallSid", "upvotes", "downvotes")


def public_view(complaint: dict) -> dict:
    """Shape used by the public feeds: no owner or voter ids, masked phone."""
    out = {k: v for k, v in complaint.items() if k not in PRIVATE_FIELDS}
    out["phone"] = mask_phone(complaint.get("phone"))
    return out


class ComplaintService:
    def __init__(
        self,
        complaints: ComplaintRepository,
        users: UserRepository,
        admins: AdminRepository,
        routing: DepartmentRoutingEngine,
        phone: PhoneVerificationService,
        geocoder,
    ):
        self.complaints = complaints
        self.users = users
        self.admins = admins
        self.routing = routing
        self.phone = phone
        self.geocoder = geocoder

    # =========================
    # Intake
    # =========================
    async def _resolve_address(self, lat: float, lng: float) -> Dict[str, Any]:
        try:
            return await self.geocoder.resolve(lat, lng)
        except Exception as exc:
            logger.warning("Geocoder failed for %s,%s: %s", lat, lng, exc)
            return fallback_address(lat, lng)

    async def submit(
        self,
        user: Principal,
        description: Optional[str],
        lat: Optional[float],
        lon: Optional[float],
        phone: Optional[str],
        image_path: Optional[str],
        audio_path: Optional[str] = None,
    ) -> dict:
        description = (description or "").strip()
        phone = (phone or "").strip()
        if not description or lat is None or lon is None or not phone:
            raise ValidationFailed(
                "Missing required fields: description, location (lat, lon), and phone are required"
            )
        if not image_path:
            raise ValidationFailed("Image is required. Please upload a photo.")

        owner = await self.users.get(user.id)
        if owner and owner.get("isBlacklisted"):
            raise PermissionDenied("Your account has been blacklisted")

        address = await self._resolve_address(lat, lon)
        city, state = address.get("city"), address.get("state")

        admin = await self.admins.find_for_location(city, state)
        if admin:
            city, state = admin["assignedCity"], admin["assignedState"]

        detection = None
        try:
            detection = await self.routing.detect(description)
        except Exception:
            logger.exception("Department detection failed at intake")

        location = ComplaintLocation(
            lat=lat,
            lng=lon,
            address=address.get("formattedAddress"),
            detailed_address=address.get("detailedAddress"),
            street_address=address.get("streetAddress"),
            sublocality=address.get("sublocality"),
            sublocality1=address.get("sublocality1"),
            sublocality2=address.get("sublocality2"),
            sublocality3=address.get("sublocality3"),
            city=address.get("city"),
            state=address.get("state"),
            district=address.get("district"),
            postal_code=address.get("postalCode"),
            country=address.get("country"),
        )
        doc = Complaint(
            user_id=user.id,
            description=description,
            phone=phone,
            image=image_path,
            audio=audio_path,
            location=location,
            assigned_admin=str(admin["_id"]) if admin else None,
            assigned_city=city,
            assigned_state=state,
            detected_department_info=detection,
            reason="General complaint.",
        ).to_document()
        complaint = await self.complaints.create(doc)
        logger.info("Complaint %s created in %s, %s (%s)", complaint["_id"], city, state, mask_phone(phone))

        verification = await self.phone.start(complaint)
        return {"complaint": await self.complaints.get(complaint["_id"]), "verification": verification}

    # =========================
    # Queries
    # =========================
    async def list_own(self, user_id: str, statuses=None) -> List[dict]:
        query: Dict[str, Any] = {"userId": user_id}
        if statuses:
            query["status"] = {"$in": _values(statuses)}
        return await self.complaints.list(query)

    async def list_open(self, user_id: str) -> List[dict]:
        return await self.list_own(user_id, OPEN_STATUSES)

    async def list_closed(self, user_id: str) -> List[dict]:
        return await self.list_own(user_id, CLOSED_STATUSES)

    async def list_resolved(self, user_id: str) -> List[dict]:
        return await self.list_own(user_id, [ComplaintStatus.resolved])

    async def explore(self, limit: int = 50, skip: int = 0) -> List[dict]:
        items = await self.complaints.list({}, limit=limit, skip=skip)
        return [public_view(c) for c in items]

    async def get_for(self, complaint_id: str, principal: Principal) -> dict:
        complaint = await self.complaints.get(complaint_id)
        if not complaint:
            raise NotFound("Complaint not found")
        if principal.role == Role.user and complaint.get("userId") != principal.id:
            raise NotFound("Complaint not found")
        if principal.role == Role.admin:
            same_city = (complaint.get("assignedCity") or "").lower() == (principal.city or "").lower()
            if not same_city and complaint.get("assignedAdmin") != principal.id:
                raise NotFound("Complaint not found")
        if principal.role == Role.department and complaint.get("assignedDepartment") != principal.id:
            raise NotFound("Complaint not found")
        return complaint

    # =========================
    # Admin / department views
    # =========================
    async def list_for_admin(self, admin: Principal, status: Optional[str] = None) -> List[dict]:
        if not admin.city or not admin.state:
            raise PermissionDenied("Admin has no assigned city")
        query: Dict[str, Any] = {
            "assignedCity": exact_ci(admin.city),
            "assignedState": exact_ci(admin.state),
        }
        if status:
            try:
                query["status"] = ComplaintStatus(status).value
            except ValueError:
                raise ValidationFailed(f"Unknown status {status}")
        return await self.complaints.list(query)

    async def admin_stats(self, admin: Principal) -> dict:
        if not admin.city or not admin.state:
            raise PermissionDenied("Admin has no assigned city")
        scope = {"assignedCity": exact_ci(admin.city), "assignedState": exact_ci(admin.state)}
        counts = await self.complaints.status_counts(scope)
        by_status = {s.value: counts.get(s.value, 0) for s in ComplaintStatus}

        # best effort: not every path stamps assignedAt
        assigned = await self.complaints.list(
            {**scope, "assignedAt": {"$ne": None}}, projection={"createdAt": 1, "assignedAt": 1}
        )
        hours = [
            (c["assignedAt"] - c["createdAt"]).total_seconds() / 3600.0
            for c in assigned
            if c.get("assignedAt") and c.get("createdAt")
        ]
        return {
            "total": sum(by_status.values()),
            "byStatus": by_status,
            "avgResponseHours": round(sum(hours) / len(hours), 2) if hours else None,
            "sampledComplaints": len(hours),
        }

    async def list_for_department(self, department: Principal) -> dict:
        items = await self.complaints.list({"assignedDepartment": department.id})
        stats = {s.value: 0 for s in ComplaintStatus}
        for c in items:
            stats[c.get("status")] = stats.get(c.get("status"), 0) + 1
        return {"complaints": items, "stats": {"total": len(items), **stats}}
