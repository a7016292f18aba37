from typing import Optional

from fastapi import APIRouter, Depends

from app.api.deps import get_services, out
from app.core.security import Principal, require_department
from app.schemas.complaint import DepartmentRejectRequest, ResolveRequest
from app.schemas.user import DepartmentLoginRequest
from app.services.registry import Services

router = APIRouter(prefix="/department", tags=["Department"])


@router.post("/login")
async def department_login(body: DepartmentLoginRequest, services: Services = Depends(get_services)):
    return await services.auth.department_login(body.department_id, body.password)


@router.get("/my-complaints")
async def my_complaints(
    department: Principal = Depends(require_department),
    services: Services = Depends(get_services),
):
    return out(await services.complaints.list_for_department(department))


@router.post("/reject-complaint/{complaint_id}")
async def reject_complaint(
    complaint_id: str,
    body: DepartmentRejectRequest,
    department: Principal = Depends(require_department),
    services: Services = Depends(get_services),
):
    ctx = await services.lifecycle.department_reject(
        complaint_id, department, body.reason, additional_notes=body.additional_notes
    )
    return out({"message": "Complaint rejected by department", "complaint": ctx.complaint})


@router.put("/complaints/{complaint_id}/resolve")
async def resolve_complaint(
    complaint_id: str,
    body: Optional[ResolveRequest] = None,
    department: Principal = Depends(require_department),
    services: Services = Depends(get_services),
):
    ctx = await services.lifecycle.resolve(
        complaint_id, department, notes=body.resolution_notes if body else None
    )
    return out({"message": "Complaint resolved", "complaint": ctx.complaint})
