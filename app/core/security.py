# app/core/security.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Dict, Optional

from fastapi import Depends, HTTPException, Request, status
from jose import JWTError, jwt
from passlib.context import CryptContext

from app.core.config import get_settings
from app.core.enums import Role
from app.utils.dates import utcnow

pwd = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
)


def hash_password(password: str) -> str:
    # bcrypt hard limit: 72 BYTES
    if isinstance(password, str):
        password = password.encode("utf-8")
    password = password[:72]
    return pwd.hash(password)


def verify_password(password: str, hashed: str) -> bool:
    if not hashed:
        return False
    if isinstance(password, str):
        password = password.encode("utf-8")
    password = password[:72]
    return pwd.verify(password, hashed)


# =========================
# Tokens
# =========================
def create_access_token(claims: Dict[str, Any], expires_hours: Optional[int] = None) -> str:
    settings = get_settings()
    payload = dict(claims)
    payload["exp"] = utcnow() + timedelta(hours=expires_hours or settings.jwt_expire_hours)
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> Dict[str, Any]:
    settings = get_settings()
    return jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])


@dataclass(frozen=True)
class Principal:
    id: str
    role: Role
    city: Optional[str] = None
    state: Optional[str] = None

    @classmethod
    def from_claims(cls, claims: Dict[str, Any]) -> "Principal":
        principal_id = claims.get("id") or claims.get("userId")
        # department tokens carry `type`, older user tokens carry neither
        raw_role = claims.get("role") or claims.get("type") or Role.user.value
        if not principal_id:
            raise ValueError("token has no subject id")
        return cls(
            id=str(principal_id),
            role=Role(raw_role),
            city=claims.get("city"),
            state=claims.get("state"),
        )


# =========================
# FastAPI dependencies
# =========================
def _bearer_token(request: Request) -> Optional[str]:
    header = request.headers.get("Authorization") or ""
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def get_principal(request: Request) -> Principal:
    token = _bearer_token(request)
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="No token, authorization denied",
        )
    try:
        return Principal.from_claims(decode_access_token(token))
    except (JWTError, ValueError):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token is not valid",
        )


def _require(role: Role):
    def dependency(principal: Principal = Depends(get_principal)) -> Principal:
        if principal.role != role:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"{role.value.capitalize()} access required",
            )
        return principal

    return dependency


require_user = _require(Role.user)
require_admin = _require(Role.admin)
require_department = _require(Role.department)
