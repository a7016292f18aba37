"""Admin and department transitions and their follow-up effects."""

import pytest

from app.core.enums import ComplaintStatus, Role
from app.core.errors import AlreadyRejected, NotFoundOrProcessed, PermissionDenied, ValidationFailed
from tests.conftest import principal_for, seed_complaint


@pytest.fixture
def admin_principal(admin):
    return principal_for(admin, Role.admin)


async def test_approve_routes_notifies_awards_and_opens_chats(services, db, admin_principal, departments, user):
    complaint = await seed_complaint(db, user)

    ctx = await services.lifecycle.approve(str(complaint["_id"]), admin_principal, comment="Looks valid")

    assert ctx.failed == []
    stored = await db["complaints"].find_one({"_id": complaint["_id"]})
    assert stored["status"] == ComplaintStatus.in_progress.value
    assert stored["assignedDepartment"] == str(departments["road"]["_id"])
    assert stored["adminComment"] == "Looks valid"
    assert stored["messages"][-1]["sender"] == "admin"

    owner = await db["users"].find_one({"_id": user["_id"]})
    assert owner["points"] == 5
    assert owner["pointsHistory"][0]["reason"] == "Complaint approved by admin"

    assert await db["notifications"].count_documents({"userId": str(user["_id"])}) == 1
    assert await db["chats"].count_documents({"complaintId": str(complaint["_id"])}) == 2


async def test_second_approve_is_rejected_without_side_effects(services, db, admin_principal, departments, user):
    complaint = await seed_complaint(db, user)
    await services.lifecycle.approve(str(complaint["_id"]), admin_principal)

    with pytest.raises(NotFoundOrProcessed):
        await services.lifecycle.approve(str(complaint["_id"]), admin_principal)

    owner = await db["users"].find_one({"_id": user["_id"]})
    assert owner["points"] == 5
    assert len(owner["pointsHistory"]) == 1
    assert await db["notifications"].count_documents({}) == 1


async def test_approve_keeps_existing_department(services, db, admin_principal, departments, user):
    municipal_id = str(departments["municipal"]["_id"])
    complaint = await seed_complaint(db, user, assignedDepartment=municipal_id)

    await services.lifecycle.approve(str(complaint["_id"]), admin_principal)

    stored = await db["complaints"].find_one({"_id": complaint["_id"]})
    assert stored["assignedDepartment"] == municipal_id


async def test_approve_outside_admin_city_fails(services, db, admin_principal, user):
    complaint = await seed_complaint(db, user, assignedCity="Pune", assignedState="Maharashtra")
    with pytest.raises(NotFoundOrProcessed):
        await services.lifecycle.approve(str(complaint["_id"]), admin_principal)


async def test_reject_requires_reason(services, db, admin_principal, user):
    complaint = await seed_complaint(db, user)
    with pytest.raises(ValidationFailed):
        await services.lifecycle.reject(str(complaint["_id"]), admin_principal, "  ")


async def test_reject_records_reason(services, db, admin_principal, user):
    complaint = await seed_complaint(db, user)
    await services.lifecycle.reject(str(complaint["_id"]), admin_principal, "Duplicate")

    stored = await db["complaints"].find_one({"_id": complaint["_id"]})
    assert stored["status"] == ComplaintStatus.rejected.value
    assert stored["rejectionReason"] == "Duplicate"
    notification = await db["notifications"].find_one({"userId": str(user["_id"])})
    assert "Duplicate" in notification["message"]


async def test_department_reject_twice(services, db, departments, user):
    department = principal_for(departments["road"], Role.department)
    complaint = await seed_complaint(
        db, user, status=ComplaintStatus.in_progress, assignedDepartment=department.id
    )

    await services.lifecycle.department_reject(str(complaint["_id"]), department, "Not our area")
    stored = await db["complaints"].find_one({"_id": complaint["_id"]})
    assert stored["status"] == ComplaintStatus.rejected_by_department.value
    assert stored["departmentRejection"]["reason"] == "Not our area"

    with pytest.raises(AlreadyRejected):
        await services.lifecycle.department_reject(str(complaint["_id"]), department, "Again")


async def test_department_from_other_city_cannot_reject(services, db, departments, user):
    department = principal_for(departments["road"], Role.department)
    complaint = await seed_complaint(db, user, assignedCity="Pune", assignedState="Maharashtra")
    with pytest.raises(PermissionDenied):
        await services.lifecycle.department_reject(str(complaint["_id"]), department, "No")


async def test_resolve_only_by_assigned_department(services, db, departments, user):
    road = principal_for(departments["road"], Role.department)
    municipal = principal_for(departments["municipal"], Role.department)
    complaint = await seed_complaint(db, user, status=ComplaintStatus.in_progress, assignedDepartment=road.id)

    with pytest.raises(NotFoundOrProcessed):
        await services.lifecycle.resolve(str(complaint["_id"]), municipal)

    await services.lifecycle.resolve(str(complaint["_id"]), road, notes="Filled")
    stored = await db["complaints"].find_one({"_id": complaint["_id"]})
    assert stored["status"] == ComplaintStatus.resolved.value
    assert stored["resolutionNotes"] == "Filled"


async def test_warnings_flag_account_and_reject_complaint(services, db, admin_principal, user):
    complaint = await seed_complaint(db, user)
    user_id = str(user["_id"])

    first = await services.lifecycle.give_warning(
        user_id, admin_principal, "Fake photo", complaint_id=str(complaint["_id"])
    )
    assert first["warningCount"] == 1
    assert first["complaintRejected"] is True
    stored = await db["complaints"].find_one({"_id": complaint["_id"]})
    assert stored["rejectionReason"] == "Warning Given"

    await services.lifecycle.give_warning(user_id, admin_principal, "Spam")
    third = await services.lifecycle.give_warning(user_id, admin_principal, "Spam again")
    assert third["warningCount"] == 3
    assert third["accountStatus"] == "warned"


async def test_blacklisted_user_cannot_submit(services, db, admin_principal, user):
    await services.lifecycle.blacklist(str(user["_id"]), admin_principal, "Abuse")
    with pytest.raises(PermissionDenied):
        await services.complaints.submit(
            principal_for(user, Role.user), "pothole", 26.9, 75.8, "9876543210", "/uploads/x.jpg"
        )


async def test_failed_notification_does_not_undo_approval(services, db, admin_principal, departments, user, monkeypatch):
    async def broken(*args, **kwargs):
        raise RuntimeError("notification store down")

    monkeypatch.setattr(services.notifications, "notify_status", broken)
    complaint = await seed_complaint(db, user)

    ctx = await services.lifecycle.approve(str(complaint["_id"]), admin_principal)

    assert ctx.failed == ["notification"]
    assert ctx.outcomes == {"routing": True, "notification": False, "points": True, "chat": True}
    stored = await db["complaints"].find_one({"_id": complaint["_id"]})
    assert stored["status"] == ComplaintStatus.in_progress.value
    assert (await db["users"].find_one({"_id": user["_id"]}))["points"] == 5
    assert await db["chats"].count_documents({"complaintId": str(complaint["_id"])}) == 2


async def test_warning_with_bad_complaint_id_stores_nothing(services, db, admin_principal, user):
    with pytest.raises(ValidationFailed):
        await services.lifecycle.give_warning(
            str(user["_id"]), admin_principal, "Spam", complaint_id="not-an-id"
        )

    stored = await db["users"].find_one({"_id": user["_id"]})
    assert stored["warnings"]["count"] == 0
    assert stored["warnings"]["history"] == []
    assert stored["accountStatus"] == "active"
