"""Janawaaz rankings over the points ledger."""

import pytest
import pytest_asyncio

from app.core.enums import Role
from app.core.errors import ValidationFailed
from app.models.accounts import PointsEntry, User
from app.services import leaderboard_service
from tests.conftest import auth_headers, seed_complaint


async def _citizen(db, name, points, city="Jaipur", state="Rajasthan"):
    history = [PointsEntry(points=5, reason="seed") for _ in range(points // 5)]
    doc = User(
        name=name,
        email=f"{name.lower()}@example.com",
        city=city,
        state=state,
        points=points,
        points_history=history,
    ).to_document()
    r = await db["users"].insert_one(doc)
    doc["_id"] = r.inserted_id
    return doc


@pytest_asyncio.fixture
async def town(db):
    return {
        "meera": await _citizen(db, "Meera", 30),
        "kabir": await _citizen(db, "Kabir", 20),
        "tara": await _citizen(db, "Tara", 10),
        "nil": await _citizen(db, "Nil", 0),
        "kota": await _citizen(db, "Arjun", 40, city="Kota"),
        "pune": await _citizen(db, "Sana", 50, city="Pune", state="Maharashtra"),
    }


async def test_district_rankings_are_city_scoped_and_ordered(services, town):
    board = await services.leaderboard.district(str(town["kabir"]["_id"]))

    assert board["title"] == "Jaipur District Rankings"
    assert [(r["rank"], r["name"], r["points"]) for r in board["rankings"]] == [
        (1, "Meera", 30),
        (2, "Kabir", 20),
        (3, "Tara", 10),
    ]
    assert [r["isCurrentUser"] for r in board["rankings"]] == [False, True, False]
    assert board["rankings"][0]["totalComplaints"] == 6
    assert board["currentUserRank"] is None
    assert board["totalUsers"] == 3


async def test_state_rankings_cross_cities(services, town):
    board = await services.leaderboard.state(str(town["tara"]["_id"]))
    assert [r["name"] for r in board["rankings"]] == ["Arjun", "Meera", "Kabir", "Tara"]
    assert board["totalUsers"] == 4


async def test_rank_shown_when_outside_the_page(services, town, monkeypatch):
    monkeypatch.setattr(leaderboard_service, "DISTRICT_PAGE", 1)
    board = await services.leaderboard.district(str(town["tara"]["_id"]))

    assert [r["name"] for r in board["rankings"]] == ["Meera"]
    assert board["currentUserRank"]["rank"] == 3
    assert board["currentUserRank"]["isCurrentUser"] is True


async def test_users_without_points_get_no_rank(services, town):
    board = await services.leaderboard.district(str(town["nil"]["_id"]))
    assert board["currentUserRank"] is None
    assert all(r["name"] != "Nil" for r in board["rankings"])


async def test_rankings_need_a_location(services, user):
    with pytest.raises(ValidationFailed):
        await services.leaderboard.district(str(user["_id"]))
    with pytest.raises(ValidationFailed):
        await services.leaderboard.state(str(user["_id"]))


async def test_my_points_links_complaints(services, db, user):
    complaint = await seed_complaint(db, user, description="A" * 150)
    user_id = str(user["_id"])
    await services.points.award(user_id, 5, "Complaint approved by admin", str(complaint["_id"]))
    await services.points.award(user_id, 5, "Bonus")

    result = await services.leaderboard.my_points(user_id)

    by_reason = {e["reason"]: e for e in result["pointsHistory"]}
    assert set(by_reason) == {"Bonus", "Complaint approved by admin"}
    linked = by_reason["Complaint approved by admin"]["complaint"]
    assert linked["id"] == str(complaint["_id"])
    assert linked["description"] == "A" * 100 + "..."
    assert by_reason["Bonus"]["complaint"] is None
    assert result["summary"] == {"totalEntries": 2, "totalPoints": 10, "averagePointsPerComplaint": 5}


async def test_stats_summarise_city_and_state(services, town):
    stats = await services.leaderboard.stats(str(town["meera"]["_id"]))

    assert stats["district"]["name"] == "Jaipur"
    assert stats["district"]["stats"]["totalUsers"] == 3
    assert stats["district"]["stats"]["totalPoints"] == 60
    assert stats["district"]["stats"]["averagePoints"] == pytest.approx(20)
    assert [p["name"] for p in stats["state"]["topPerformers"]] == ["Arjun", "Meera", "Kabir"]
    assert stats["currentUser"] == {"name": "Meera", "points": 30}


async def test_district_rankings_over_http(client, town):
    r = await client.get("/janawaaz/district", headers=auth_headers(town["meera"], Role.user))
    assert r.status_code == 200
    assert r.json()["rankings"][0]["isCurrentUser"] is True

    r = await client.get("/janawaaz/my-points", headers=auth_headers(town["meera"], Role.user))
    assert r.status_code == 200
    assert r.json()["user"]["totalPoints"] == 30
