"""Votes, comments and the city-scoped community feed."""

import asyncio

import pytest

from app.core.enums import ComplaintStatus, NotificationType, Role
from app.core.errors import NotFound, PermissionDenied, ValidationFailed
from app.models.accounts import User
from tests.conftest import auth_headers, principal_for, seed_complaint


async def _neighbour(db, name="Ravi", city="Jaipur", sublocality=None):
    doc = User(name=name, email=f"{name.lower()}@example.com", city=city, state="Rajasthan", sublocality=sublocality).to_document()
    r = await db["users"].insert_one(doc)
    doc["_id"] = r.inserted_id
    return doc


async def _notifications(db, user_doc, type):
    return await db["notifications"].count_documents({"userId": str(user_doc["_id"]), "type": type.value})


# ---------------------------------------------------------------------------
# Votes
# ---------------------------------------------------------------------------


async def test_votes_toggle_and_exclude_each_other(services, db, user):
    complaint = await seed_complaint(db, user)
    ravi = principal_for(await _neighbour(db), Role.user)
    cid = str(complaint["_id"])

    assert await services.community.upvote(cid, ravi) == {
        "upvoteCount": 1, "downvoteCount": 0, "hasUserUpvoted": True, "hasUserDownvoted": False,
    }
    assert await services.community.downvote(cid, ravi) == {
        "upvoteCount": 0, "downvoteCount": 1, "hasUserUpvoted": False, "hasUserDownvoted": True,
    }
    assert await services.community.downvote(cid, ravi) == {
        "upvoteCount": 0, "downvoteCount": 0, "hasUserUpvoted": False, "hasUserDownvoted": False,
    }

    stored = await db["complaints"].find_one({"_id": complaint["_id"]})
    assert stored["upvotes"] == [] and stored["downvotes"] == []


async def test_upvote_notifies_owner_once(services, db, user):
    complaint = await seed_complaint(db, user)
    ravi = principal_for(await _neighbour(db), Role.user)
    cid = str(complaint["_id"])

    await services.community.upvote(cid, ravi)
    await services.community.upvote(cid, ravi)  # withdrawn
    await services.community.upvote(cid, principal_for(user, Role.user))  # own complaint

    assert await _notifications(db, user, NotificationType.upvote) == 1


async def test_concurrent_upvotes_from_neighbours_all_count(services, db, user):
    complaint = await seed_complaint(db, user)
    voters = [principal_for(await _neighbour(db, name=f"N{i}"), Role.user) for i in range(3)]

    await asyncio.gather(*(services.community.upvote(str(complaint["_id"]), v) for v in voters))

    stored = await db["complaints"].find_one({"_id": complaint["_id"]})
    assert sorted(stored["upvotes"]) == sorted(v.id for v in voters)


async def test_vote_on_missing_complaint(services, user):
    with pytest.raises(NotFound):
        await services.community.upvote("64b000000000000000000001", principal_for(user, Role.user))


# ---------------------------------------------------------------------------
# Comments
# ---------------------------------------------------------------------------


@pytest.mark.parametrize("text", ["", "   ", "x" * 501])
async def test_comment_text_is_validated(services, db, user, text):
    complaint = await seed_complaint(db, user)
    with pytest.raises(ValidationFailed):
        await services.community.add_comment(str(complaint["_id"]), principal_for(user, Role.user), text)


async def test_comment_is_stored_and_owner_notified(services, db, user):
    complaint = await seed_complaint(db, user)
    ravi_doc = await _neighbour(db)

    result = await services.community.add_comment(
        str(complaint["_id"]), principal_for(ravi_doc, Role.user), "  Same problem on my street  "
    )

    assert result["commentCount"] == 1
    assert result["comment"]["text"] == "Same problem on my street"
    assert result["comment"]["userName"] == "Ravi"
    assert await _notifications(db, user, NotificationType.comment) == 1


async def test_only_author_deletes_comment(services, db, user):
    complaint = await seed_complaint(db, user)
    ravi = principal_for(await _neighbour(db), Role.user)
    owner = principal_for(user, Role.user)
    cid = str(complaint["_id"])
    added = await services.community.add_comment(cid, ravi, "Seen it too")
    comment_id = str(added["comment"]["_id"])

    with pytest.raises(PermissionDenied):
        await services.community.delete_comment(cid, comment_id, owner)
    with pytest.raises(NotFound):
        await services.community.delete_comment(cid, "not-an-id", ravi)

    assert await services.community.delete_comment(cid, comment_id, ravi) == {"commentCount": 0}
    with pytest.raises(NotFound):
        await services.community.delete_comment(cid, comment_id, ravi)


# ---------------------------------------------------------------------------
# Feed
# ---------------------------------------------------------------------------


async def test_feed_needs_a_home_city(services, user):
    with pytest.raises(ValidationFailed):
        await services.community.feed(principal_for(user, Role.user))


async def test_feed_shows_open_complaints_in_city(services, db, user):
    ravi_doc = await _neighbour(db)
    ravi = principal_for(ravi_doc, Role.user)
    quiet = await seed_complaint(db, user, description="Streetlight out")
    popular = await seed_complaint(db, user, description="Pothole", status=ComplaintStatus.in_progress)
    await seed_complaint(db, user, status=ComplaintStatus.resolved)
    await seed_complaint(db, user, location={"lat": 18.5, "lng": 73.8, "city": "Pune", "state": "Maharashtra"})
    await services.community.upvote(str(popular["_id"]), ravi)

    feed = await services.community.feed(ravi, sort_by="most-upvoted")

    ids = [c["_id"] for c in feed["complaints"]]
    assert ids == [popular["_id"], quiet["_id"]]
    top = feed["complaints"][0]
    assert top["upvoteCount"] == 1 and top["hasUserUpvoted"] is True
    assert top["isOwnComplaint"] is False
    assert "userId" not in top and "upvotes" not in top
    assert feed["stats"] == {"total": 2, "filtered": 2, "upvoted": 1, "downvoted": 0, "noVotes": 1}
    assert feed["filters"]["applied"] is True

    no_votes = await services.community.feed(ravi, vote_filter="no-votes")
    assert [c["_id"] for c in no_votes["complaints"]] == [quiet["_id"]]


async def test_feed_same_area_filter(services, db, user):
    ravi = principal_for(await _neighbour(db, sublocality="Malviya Nagar"), Role.user)
    here = await seed_complaint(
        db, user, location={"lat": 26.8, "lng": 75.8, "city": "Jaipur", "sublocality": "malviya nagar"}
    )
    await seed_complaint(db, user, location={"lat": 26.9, "lng": 75.7, "city": "Jaipur", "sublocality": "Vaishali"})

    feed = await services.community.feed(ravi, location_filter="same-area")
    assert [c["_id"] for c in feed["complaints"]] == [here["_id"]]


async def test_admin_feed_uses_assigned_city(services, db, admin, user):
    await seed_complaint(db, user)
    feed = await services.community.feed(principal_for(admin, Role.admin))
    assert feed["userCity"] == "Jaipur"
    assert feed["stats"]["total"] == 1


# ---------------------------------------------------------------------------
# HTTP
# ---------------------------------------------------------------------------


async def test_vote_and_comment_over_http(client, db, user):
    complaint = await seed_complaint(db, user)
    ravi = await _neighbour(db)
    headers = auth_headers(ravi, Role.user)

    r = await client.post(f"/complaints/{complaint['_id']}/upvote", headers=headers)
    assert r.status_code == 200
    assert r.json()["upvoteCount"] == 1

    r = await client.post(f"/complaints/{complaint['_id']}/comment", headers=headers, json={"text": "Agreed"})
    assert r.status_code == 200
    comment_id = r.json()["comment"]["_id"]

    r = await client.delete(f"/complaints/{complaint['_id']}/comment/{comment_id}", headers=headers)
    assert r.status_code == 200
    assert r.json()["commentCount"] == 0

    r = await client.get("/complaints/community", headers=headers, params={"sortBy": "most-discussed"})
    assert r.status_code == 200
    assert r.json()["complaints"][0]["upvoteCount"] == 1


async def test_departments_have_no_community_feed(client, departments):
    r = await client.get("/complaints/community", headers=auth_headers(departments["road"], Role.department))
    assert r.status_code == 403
