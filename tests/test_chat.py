"""Chat gating, auto-provisioning and read receipts over HTTP."""

from app.core.enums import ComplaintStatus, Role
from tests.conftest import auth_headers, seed_complaint


async def test_chat_unavailable_until_in_progress(client, db, user, departments):
    complaint = await seed_complaint(db, user)
    r = await client.get(f"/chat/{complaint['_id']}", headers=auth_headers(user, Role.user))
    assert r.status_code == 403


async def test_other_users_cannot_open_chat(client, db, user, departments):
    complaint = await seed_complaint(
        db, user, status=ComplaintStatus.in_progress, assignedDepartment=str(departments["road"]["_id"])
    )
    stranger = {"_id": "64b000000000000000000001"}
    r = await client.get(f"/chat/{complaint['_id']}", headers=auth_headers(stranger, Role.user))
    assert r.status_code == 403


async def test_message_round_trip_and_unread_counts(client, db, user, departments):
    road = departments["road"]
    complaint = await seed_complaint(
        db, user, status=ComplaintStatus.in_progress, assignedDepartment=str(road["_id"])
    )
    user_headers = auth_headers(user, Role.user)
    dept_headers = auth_headers(road, Role.department)

    r = await client.post(f"/chat/init/{complaint['_id']}", headers=user_headers)
    assert r.status_code == 200
    chat = r.json()
    assert chat["chatType"] == "user-department"
    assert len(chat["participants"]) == 2

    r = await client.post(f"/chat/{complaint['_id']}/message", headers=user_headers, json={"content": "Any update?"})
    assert r.status_code == 200

    r = await client.get(f"/chat/{complaint['_id']}", headers=dept_headers)
    assert r.json()["unreadCount"] == 1

    r = await client.get("/chat/unread-counts", headers=dept_headers)
    assert r.json()["totalUnread"] == 1

    r = await client.post(f"/chat/{complaint['_id']}/read", headers=dept_headers)
    assert r.json()["marked"] == 1

    r = await client.get(f"/chat/{complaint['_id']}", headers=dept_headers)
    assert r.json()["unreadCount"] == 0


async def test_empty_message_rejected(client, db, user, departments):
    complaint = await seed_complaint(
        db, user, status=ComplaintStatus.in_progress, assignedDepartment=str(departments["road"]["_id"])
    )
    headers = auth_headers(user, Role.user)
    await client.post(f"/chat/init/{complaint['_id']}", headers=headers)
    r = await client.post(f"/chat/{complaint['_id']}/message", headers=headers, json={"content": "   "})
    assert r.status_code == 400


async def test_message_before_init_is_not_found(client, db, user, departments):
    complaint = await seed_complaint(
        db, user, status=ComplaintStatus.in_progress, assignedDepartment=str(departments["road"]["_id"])
    )
    r = await client.post(
        f"/chat/{complaint['_id']}/message", headers=auth_headers(user, Role.user), json={"content": "hi"}
    )
    assert r.status_code == 404


async def test_department_chats_with_admin(client, db, user, admin, departments):
    road = departments["road"]
    complaint = await seed_complaint(
        db, user, status=ComplaintStatus.in_progress, assignedDepartment=str(road["_id"])
    )
    r = await client.post(
        f"/chat/init/{complaint['_id']}", headers=auth_headers(road, Role.department), json={"chatWith": "admin"}
    )
    assert r.status_code == 200
    assert r.json()["chatType"] == "admin-department"

    r = await client.get(f"/chat/{complaint['_id']}", headers=auth_headers(admin, Role.admin))
    assert r.json()["chatType"] == "admin-department"


async def test_chat_is_rate_limited(client, db, user, departments):
    from app.api.deps import get_chat_rate_limiter
    from app.main import app
    from app.services.rate_limit import SlidingWindowRateLimiter

    limiter = SlidingWindowRateLimiter(window_seconds=10, max_requests=2)
    app.dependency_overrides[get_chat_rate_limiter] = lambda: limiter
    complaint = await seed_complaint(db, user)
    headers = auth_headers(user, Role.user)

    codes = [(await client.get(f"/chat/{complaint['_id']}", headers=headers)).status_code for _ in range(3)]
    assert codes == [403, 403, 429]


async def test_repeated_receipts_are_not_doubled(services, db):
    chat = await services.chat_repo.create(
        {
            "complaintId": "c1",
            "chatType": "user-department",
            "participants": [],
            "messages": [
                {"senderId": "u1", "content": "hello", "isRead": []},
                {"senderId": "u1", "content": "again", "isRead": []},
            ],
        }
    )

    # two readers computed the same pending indexes before either write landed
    first = await services.chat_repo.add_receipts(chat["_id"], [0, 1], "d1")
    second = await services.chat_repo.add_receipts(chat["_id"], [0, 1], "d1")

    assert (first, second) == (2, 0)
    stored = await db["chats"].find_one({"_id": chat["_id"]})
    assert [len(m["isRead"]) for m in stored["messages"]] == [1, 1]
