from typing import Optional

from fastapi import APIRouter, Depends

from app.api.deps import get_services, out
from app.core.security import Principal, require_user
from app.schemas.rewards import RedeemRequest
from app.services.registry import Services

router = APIRouter(prefix="/rewards", tags=["Rewards"])


@router.get("")
async def list_rewards(user: Principal = Depends(require_user), services: Services = Depends(get_services)):
    return out(await services.rewards.list_available(user.id))


@router.post("/redeem/{reward_id}")
async def redeem(
    reward_id: str,
    body: Optional[RedeemRequest] = None,
    user: Principal = Depends(require_user),
    services: Services = Depends(get_services),
):
    body = body or RedeemRequest()
    result = await services.rewards.redeem(
        user.id,
        reward_id,
        delivery_address=body.delivery_address,
        contact_phone=body.contact_phone,
        notes=body.notes,
        send_email=body.send_email,
    )
    return out({"message": "Reward redeemed successfully", **result})


@router.get("/my-redemptions")
async def my_redemptions(user: Principal = Depends(require_user), services: Services = Depends(get_services)):
    return out(await services.rewards.my_redemptions(user.id))


@router.get("/redemption/{code}")
async def redemption(code: str, user: Principal = Depends(require_user), services: Services = Depends(get_services)):
    return out(await services.rewards.get_redemption(user.id, code))
