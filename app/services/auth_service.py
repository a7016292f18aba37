from __future__ import annotations

import logging
from typing import Optional

from pydantic import ValidationError
from pymongo.errors import DuplicateKeyError

from app.core.errors import DomainError, NotAuthenticated, PermissionDenied, ValidationFailed
from app.core.security import create_access_token, hash_password, verify_password
from app.mapper.accounts_mapper import to_admin_out, to_department_out, to_user_out
from app.models.accounts import User
from app.repositories.admin_repository import AdminRepository
from app.repositories.department_repository import DepartmentRepository
from app.repositories.user_repository import UserRepository

logger = logging.getLogger(__name__)


class InvalidCredentials(NotAuthenticated):
    detail = "Invalid credentials"


def _email_norm(email: Optional[str]) -> Optional[str]:
    email = (email or "").lower().strip()
    return email or None


def _phone_norm(phone: Optional[str]) -> Optional[str]:
    phone = (phone or "").strip()
    return phone or None


class AuthService:
    def __init__(self, users: UserRepository, admins: AdminRepository, departments: DepartmentRepository):
        self.users = users
        self.admins = admins
        self.departments = departments

    # -------------------------
    # Citizens
    # -------------------------
    async def register(
        self,
        name: str,
        password: str,
        email: Optional[str] = None,
        phone: Optional[str] = None,
        **location: Optional[str],
    ) -> dict:
        email, phone = _email_norm(email), _phone_norm(phone)
        if not password or len(password) < 6:
            raise ValidationFailed("Password must be at least 6 characters")
        if await self.users.find_by_login(email, phone):
            raise DomainError("User already exists")
        try:
            doc = User(
                name=name,
                email=email,
                phone=phone,
                password=hash_password(password),
                **{k: v.strip() for k, v in location.items() if v and v.strip()},
            ).to_document()
        except ValidationError:
            raise ValidationFailed("Email or phone is required")
        try:
            user = await self.users.create(doc)
        except DuplicateKeyError:
            raise DomainError("User already exists")
        logger.info("User registered (%s)", email or phone)
        return {"token": self._user_token(user), "user": to_user_out(user)}

    async def login(self, password: str, email: Optional[str] = None, phone: Optional[str] = None) -> dict:
        user = await self.users.find_by_login(_email_norm(email), _phone_norm(phone))
        if not user or not verify_password(password, user.get("password", "")):
            raise InvalidCredentials()
        if user.get("isBlacklisted"):
            raise PermissionDenied("Your account has been blacklisted")
        return {"token": self._user_token(user), "user": to_user_out(user)}

    @staticmethod
    def _user_token(user: dict) -> str:
        return create_access_token({"id": str(user["_id"]), "role": "user"})

    # -------------------------
    # Admins
    # -------------------------
    async def admin_login(self, admin_id: str, password: str) -> dict:
        admin = await self.admins.find_by_login(admin_id)
        if not admin or not verify_password(password, admin.get("password", "")):
            raise InvalidCredentials()
        if not admin.get("isActive", True):
            raise PermissionDenied("Account disabled")
        token = create_access_token({
            "id": str(admin["_id"]),
            "role": "admin",
            "city": admin["assignedCity"],
            "state": admin["assignedState"],
            "adminId": admin["adminId"],
        })
        logger.info("Admin %s logged in", admin_id)
        return {"token": token, "admin": to_admin_out(admin)}

    # -------------------------
    # Departments
    # -------------------------
    async def department_login(self, department_id: str, password: str) -> dict:
        department = await self.departments.find_by_login(department_id)
        if not department or not verify_password(password, department.get("password", "")):
            raise InvalidCredentials()
        if not department.get("isActive", True):
            raise PermissionDenied("Account disabled")
        token = create_access_token({
            "id": str(department["_id"]),
            "type": "department",
            "role": "department",
        })
        logger.info("Department %s logged in", department_id)
        return {"token": token, "department": to_department_out(department)}
