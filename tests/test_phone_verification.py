"""Keypad outcomes, missed calls and the single retry."""

from app.core.enums import ComplaintStatus, Role
from app.services.phone_verification import UNREACHABLE_REASON
from tests.conftest import principal_for, seed_complaint


async def test_submit_places_call(services, db, integrations, admin, user):
    result = await services.complaints.submit(
        principal_for(user, Role.user), "Big pothole on the road", 26.9, 75.8, "9876543210", "/uploads/x.jpg"
    )
    complaint = result["complaint"]
    assert result["verification"]["callInitiated"] is True
    assert integrations.call_gateway.calls == [("9876543210", str(complaint["_id"]))]
    assert complaint["assignedCity"] == "Jaipur"
    assert complaint["assignedAdmin"] == str(admin["_id"])
    assert complaint["detectedDepartmentInfo"]["department"] == "Road Department"
    assert complaint["status"] == ComplaintStatus.pending.value


async def test_gateway_failure_uses_mock_call_outside_production(services, integrations, user):
    integrations.call_gateway.fail = True
    result = await services.complaints.submit(
        principal_for(user, Role.user), "pothole", 26.9, 75.8, "9876543210", "/uploads/x.jpg"
    )
    assert result["verification"]["isMock"] is True
    assert result["verification"]["callSid"].startswith("MOCK_")
    assert result["complaint"]["status"] == ComplaintStatus.pending.value


async def test_pressing_one_verifies_and_routes(services, db, departments, user):
    complaint = await seed_complaint(db, user)
    complaint_id = str(complaint["_id"])

    assert await services.phone.handle_digit(complaint_id, "1", "CA1") == "verified"

    stored = await db["complaints"].find_one({"_id": complaint["_id"]})
    assert stored["status"] == ComplaintStatus.in_progress.value
    assert stored["phoneVerificationStatus"] == "phone_verified"
    assert stored["assignedDepartment"] == str(departments["road"]["_id"])
    owner = await db["users"].find_one({"_id": user["_id"]})
    assert owner["points"] == 5


async def test_pressing_one_without_department_stays_verified(services, db, user):
    complaint = await seed_complaint(db, user)
    await services.phone.handle_digit(str(complaint["_id"]), "1")

    stored = await db["complaints"].find_one({"_id": complaint["_id"]})
    assert stored["status"] == ComplaintStatus.phone_verified.value
    assert stored.get("assignedDepartment") is None
    owner = await db["users"].find_one({"_id": user["_id"]})
    assert owner["points"] == 0


async def test_pressing_two_rejects(services, db, user):
    complaint = await seed_complaint(db, user)
    assert await services.phone.handle_digit(str(complaint["_id"]), "2") == "rejected"
    stored = await db["complaints"].find_one({"_id": complaint["_id"]})
    assert stored["status"] == ComplaintStatus.rejected.value


async def test_other_digit_fails_verification(services, db, user):
    complaint = await seed_complaint(db, user)
    assert await services.phone.handle_digit(str(complaint["_id"]), "7") == "invalid"
    stored = await db["complaints"].find_one({"_id": complaint["_id"]})
    assert stored["status"] == ComplaintStatus.verification_failed.value
    assert stored["phoneVerificationInput"] == "7"


async def test_second_digit_is_ignored(services, db, departments, user):
    complaint = await seed_complaint(db, user)
    complaint_id = str(complaint["_id"])
    await services.phone.handle_digit(complaint_id, "1")
    assert await services.phone.handle_digit(complaint_id, "1") == "processed"
    owner = await db["users"].find_one({"_id": user["_id"]})
    assert owner["points"] == 5


async def test_missed_call_schedules_one_retry(services, db, integrations, user):
    complaint = await seed_complaint(db, user)
    complaint_id = str(complaint["_id"])

    assert await services.phone.handle_call_status(complaint_id, "no-answer") == "retry_scheduled"
    assert await services.phone.handle_missed(complaint_id) == "retry_pending"
    assert integrations.scheduler.pending == 1

    stored = await db["complaints"].find_one({"_id": complaint["_id"]})
    assert stored["phoneVerificationStatus"] == "no_answer"
    assert stored["status"] == ComplaintStatus.pending.value


async def test_miss_after_retry_rejects(services, db, integrations, user):
    complaint = await seed_complaint(db, user)
    complaint_id = str(complaint["_id"])

    await services.phone.handle_missed(complaint_id)
    await integrations.scheduler.run_all()
    assert integrations.call_gateway.calls == [("9876543210", complaint_id)]

    assert await services.phone.handle_call_status(complaint_id, "busy") == "rejected"
    stored = await db["complaints"].find_one({"_id": complaint["_id"]})
    assert stored["status"] == ComplaintStatus.rejected.value
    assert stored["rejectionReason"] == UNREACHABLE_REASON


async def test_retry_skipped_once_answered(services, db, integrations, user):
    complaint = await seed_complaint(db, user)
    complaint_id = str(complaint["_id"])

    await services.phone.handle_missed(complaint_id)
    await services.phone.handle_digit(complaint_id, "2")
    await integrations.scheduler.run_all()

    assert integrations.call_gateway.calls == []


async def test_completed_call_status_is_recorded(services, db, user):
    complaint = await seed_complaint(db, user)
    assert await services.phone.handle_call_status(str(complaint["_id"]), "completed") == "recorded"


async def test_geocoder_exception_falls_back_to_city_table(services, integrations, user):
    class BrokenGeocoder:
        async def resolve(self, lat, lng):
            raise RuntimeError("geocoder exploded")

    services.complaints.geocoder = BrokenGeocoder()
    result = await services.complaints.submit(
        principal_for(user, Role.user), "pothole", 26.9, 75.8, "9876543210", "/uploads/x.jpg"
    )
    assert result["complaint"]["status"] == ComplaintStatus.pending.value
    assert result["complaint"]["assignedCity"] == "Jaipur"
    assert result["complaint"]["location"]["city"] == "Jaipur"


async def test_pressing_two_skips_routing_and_points(services, db, departments, user):
    complaint = await seed_complaint(db, user)
    await services.phone.handle_digit(str(complaint["_id"]), "2")

    stored = await db["complaints"].find_one({"_id": complaint["_id"]})
    assert stored.get("assignedDepartment") is None
    assert stored.get("autoRoutingData") is None
    owner = await db["users"].find_one({"_id": user["_id"]})
    assert owner["points"] == 0
