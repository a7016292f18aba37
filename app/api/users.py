from fastapi import APIRouter, Depends

from app.api.deps import get_services, out
from app.core.errors import NotFound
from app.core.security import Principal, require_user
from app.schemas.user import ProfileUpdate
from app.services.registry import Services

router = APIRouter(prefix="/users", tags=["Users"])


@router.get("/me")
async def me(user: Principal = Depends(require_user), services: Services = Depends(get_services)):
    return await services.users.profile(user.id)


@router.put("/me/profile")
async def update_profile(
    body: ProfileUpdate,
    user: Principal = Depends(require_user),
    services: Services = Depends(get_services),
):
    fields = body.model_dump(by_alias=True, exclude_none=True)
    return await services.users.update_profile(user.id, fields)


@router.get("/me/points")
async def my_points(user: Principal = Depends(require_user), services: Services = Depends(get_services)):
    summary = await services.points.summary(user.id)
    if summary is None:
        raise NotFound("User not found")
    return out(summary)


@router.get("/me/warnings")
async def my_warnings(user: Principal = Depends(require_user), services: Services = Depends(get_services)):
    return out(await services.users.warnings(user.id))


@router.post("/me/warnings/acknowledge")
async def acknowledge(user: Principal = Depends(require_user), services: Services = Depends(get_services)):
    return out(await services.users.acknowledge_warnings(user.id))
