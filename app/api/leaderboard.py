from fastapi import APIRouter, Depends

from app.api.deps import get_services, out
from app.core.security import Principal, require_user
from app.services.registry import Services

router = APIRouter(prefix="/janawaaz", tags=["Janawaaz"])


@router.get("/district")
async def district_rankings(user: Principal = Depends(require_user), services: Services = Depends(get_services)):
    return await services.leaderboard.district(user.id)


@router.get("/state")
async def state_rankings(user: Principal = Depends(require_user), services: Services = Depends(get_services)):
    return await services.leaderboard.state(user.id)


@router.get("/my-points")
async def my_points(user: Principal = Depends(require_user), services: Services = Depends(get_services)):
    return out(await services.leaderboard.my_points(user.id))


@router.get("/stats")
async def stats(user: Principal = Depends(require_user), services: Services = Depends(get_services)):
    return await services.leaderboard.stats(user.id)
