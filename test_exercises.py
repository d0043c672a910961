"""
Exercise registry: CRUD, type coercion, partial updates, ownership, cascade delete.
"""
import pytest

BENCH = {
    "name": "Bench Press",
    "exercise_type": "strength",
    "muscle_group": "Chest",
    "equipment": "Barbell",
}

RUN = {
    "name": "Morning Run",
    "exercise_type": "cardio",
    "description": "Easy pace around the park",
}


async def _create(ac, payload):
    r = await ac.post("/exercises", json=payload)
    assert r.status_code == 201, r.text
    return r.json()["exercise"]


# ─── Create ──────────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_create_exercise(client):
    r = await client.post("/exercises", json=BENCH)
    assert r.status_code == 201
    ex = r.json()["exercise"]
    assert ex["id"] >= 1
    assert ex["name"] == "Bench Press"
    assert ex["exercise_type"] == "strength"
    assert ex["muscle_group"] == "Chest"
    assert ex["equipment"] == "Barbell"
    assert ex["description"] is None
    assert ex["created_at"]


@pytest.mark.asyncio
async def test_create_cardio_exercise(client):
    ex = await _create(client, RUN)
    assert ex["exercise_type"] == "cardio"
    assert ex["description"] == "Easy pace around the park"


@pytest.mark.asyncio
async def test_type_defaults_to_strength(client):
    ex = await _create(client, {"name": "Squat"})
    assert ex["exercise_type"] == "strength"


@pytest.mark.asyncio
async def test_unknown_type_coerced_to_strength(client):
    ex = await _create(client, {"name": "Yoga", "exercise_type": "flexibility"})
    assert ex["exercise_type"] == "strength"


@pytest.mark.asyncio
async def test_empty_optional_fields_stored_as_null(client):
    ex = await _create(client, {"name": "Deadlift", "muscle_group": "", "video_link": ""})
    assert ex["muscle_group"] is None
    assert ex["video_link"] is None


@pytest.mark.asyncio
async def test_create_requires_name(client):
    for payload in ({}, {"name": ""}, {"name": "   "}, {"exercise_type": "cardio"}):
        r = await client.post("/exercises", json=payload)
        assert r.status_code == 400, payload
        assert r.json() == {"error": "Exercise name is required"}


# ─── Read ────────────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_list_newest_first(client):
    first = await _create(client, BENCH)
    second = await _create(client, RUN)
    r = await client.get("/exercises")
    assert r.status_code == 200
    ids = [e["id"] for e in r.json()["exercises"]]
    assert ids == [second["id"], first["id"]]


@pytest.mark.asyncio
async def test_list_empty(client):
    r = await client.get("/exercises")
    assert r.json() == {"exercises": []}


@pytest.mark.asyncio
async def test_get_exercise(client):
    ex = await _create(client, BENCH)
    r = await client.get(f"/exercises/{ex['id']}")
    assert r.status_code == 200
    assert r.json()["exercise"] == ex


@pytest.mark.asyncio
async def test_get_unknown_exercise(client):
    r = await client.get("/exercises/9999")
    assert r.status_code == 404
    assert r.json() == {"error": "Exercise not found"}


# ─── Update ──────────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_partial_update_keeps_unsent_fields(client):
    ex = await _create(client, BENCH)
    r = await client.put(f"/exercises/{ex['id']}", json={"name": "Incline Bench"})
    assert r.status_code == 200
    updated = r.json()["exercise"]
    assert updated["name"] == "Incline Bench"
    assert updated["exercise_type"] == "strength"
    assert updated["muscle_group"] == "Chest"
    assert updated["equipment"] == "Barbell"


@pytest.mark.asyncio
async def test_update_explicit_null_clears_field(client):
    ex = await _create(client, BENCH)
    r = await client.put(f"/exercises/{ex['id']}", json={"muscle_group": None})
    assert r.status_code == 200
    assert r.json()["exercise"]["muscle_group"] is None
    assert r.json()["exercise"]["equipment"] == "Barbell"


@pytest.mark.asyncio
async def test_update_type(client):
    ex = await _create(client, BENCH)
    r = await client.put(f"/exercises/{ex['id']}", json={"exercise_type": "cardio"})
    assert r.json()["exercise"]["exercise_type"] == "cardio"
    r2 = await client.put(f"/exercises/{ex['id']}", json={"exercise_type": "pilates"})
    assert r2.json()["exercise"]["exercise_type"] == "strength"


@pytest.mark.asyncio
async def test_update_rejects_empty_name(client):
    ex = await _create(client, BENCH)
    for payload in ({"name": ""}, {"name": None}):
        r = await client.put(f"/exercises/{ex['id']}", json=payload)
        assert r.status_code == 400
        assert r.json() == {"error": "Exercise name is required"}


@pytest.mark.asyncio
async def test_empty_update_is_a_noop(client):
    ex = await _create(client, BENCH)
    r = await client.put(f"/exercises/{ex['id']}", json={})
    assert r.status_code == 200
    assert r.json()["exercise"] == ex


@pytest.mark.asyncio
async def test_update_unknown_exercise(client):
    r = await client.put("/exercises/9999", json={"name": "Nope"})
    assert r.status_code == 404


# ─── Delete ──────────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_delete_exercise(client):
    ex = await _create(client, BENCH)
    r = await client.delete(f"/exercises/{ex['id']}")
    assert r.status_code == 200
    assert r.json() == {"message": "Exercise deleted successfully"}
    r2 = await client.get(f"/exercises/{ex['id']}")
    assert r2.status_code == 404


@pytest.mark.asyncio
async def test_delete_cascades_to_logs(client):
    ex = await _create(client, BENCH)
    keep = await _create(client, {"name": "Squat"})
    r = await client.post("/workout-logs", json={"exercise_id": ex["id"], "date": "2024-01-15", "sets": 3})
    log_id = r.json()["log"]["id"]
    r_keep = await client.post("/workout-logs", json={"exercise_id": keep["id"], "date": "2024-01-15"})
    keep_log_id = r_keep.json()["log"]["id"]

    await client.delete(f"/exercises/{ex['id']}")

    assert (await client.get(f"/workout-logs/{log_id}")).status_code == 404
    assert (await client.get(f"/workout-logs/{keep_log_id}")).status_code == 200
    logs = (await client.get("/workout-logs")).json()["logs"]
    assert [entry["id"] for entry in logs] == [keep_log_id]


@pytest.mark.asyncio
async def test_delete_unknown_exercise(client):
    r = await client.delete("/exercises/9999")
    assert r.status_code == 404


# ─── Ownership ───────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_other_users_exercise_is_invisible(client, other_client):
    ex = await _create(client, BENCH)

    assert (await other_client.get(f"/exercises/{ex['id']}")).status_code == 404
    assert (await other_client.put(f"/exercises/{ex['id']}", json={"name": "Mine"})).status_code == 404
    assert (await other_client.delete(f"/exercises/{ex['id']}")).status_code == 404
    assert (await other_client.get("/exercises")).json() == {"exercises": []}

    # untouched for the owner
    r = await client.get(f"/exercises/{ex['id']}")
    assert r.json()["exercise"]["name"] == "Bench Press"
