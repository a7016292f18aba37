from fastapi import APIRouter, Depends, status

from app.api.deps import get_services
from app.schemas.user import LoginRequest, UserCreate
from app.services.registry import Services

router = APIRouter(prefix="/auth", tags=["Auth"])


# =========================
# 1) Register - citizens only
# =========================
@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(body: UserCreate, services: Services = Depends(get_services)):
    return await services.auth.register(
        body.name,
        body.password,
        email=body.email,
        phone=body.phone,
        city=body.city,
        state=body.state,
        district=body.district,
    )


# =========================
# 2) Login (email or phone)
# =========================
@router.post("/login")
async def login(body: LoginRequest, services: Services = Depends(get_services)):
    return await services.auth.login(body.password, email=body.email, phone=body.phone)
