"""Donor Routes — registration, activation toggles and the live map feed.

Invariants:
    - POST /donors returns 201 with the masked home point only
    - Missing consent or bad coordinates → 400 VALIDATION_ERROR
    - Deactivated donors leave the live feed and the match search
"""

from uuid import uuid4

import pytest

DONOR = {
    "name": "Meera",
    "age": 29,
    "blood_group": "O+",
    "phone": "+91 98765 43210",
    "home_lat": 12.9716,
    "home_lng": 77.5946,
    "consent_timestamp": "2026-03-01T09:30:00Z",
}


async def _register(client, **overrides) -> dict:
    res = await client.post("/api/v1/donors", json={**DONOR, **overrides})
    assert res.status_code == 201, res.text
    return res.json()


async def test_register_returns_masked_point(client):
    body = await _register(client)

    assert body["blood_group"] == "O+"
    assert body["active"] is True
    assert (body["lat"], body["lng"]) != (DONOR["home_lat"], DONOR["home_lng"])
    assert abs(body["lat"] - DONOR["home_lat"]) <= 0.0025
    assert abs(body["lng"] - DONOR["home_lng"]) <= 0.0025


async def test_register_without_consent_rejected(client):
    payload = {k: v for k, v in DONOR.items() if k != "consent_timestamp"}
    res = await client.post("/api/v1/donors", json=payload)

    assert res.status_code == 400
    assert res.json()["error"]["code"] == "VALIDATION_ERROR"


@pytest.mark.parametrize("overrides", [
    {"home_lat": 91.0},
    {"home_lng": -181.0},
    {"blood_group": "C+"},
    {"age": 12},
    {"phone": "call me"},
    {"office_lat": 12.93},
])
async def test_register_invalid_input(client, overrides):
    res = await client.post("/api/v1/donors", json={**DONOR, **overrides})
    assert res.status_code == 400
    assert res.json()["error"]["details"]


async def test_live_feed_hides_identity(client):
    await _register(client)

    res = await client.get("/api/v1/donors/live")

    assert res.status_code == 200
    [entry] = res.json()
    assert set(entry) == {"id", "lat", "lng", "blood_group"}


async def test_deactivate_and_activate(client):
    donor = await _register(client)

    res = await client.post(f"/api/v1/donors/{donor['id']}/deactivate")
    assert res.status_code == 200
    assert res.json()["active"] is False
    assert res.json()["lat"] == donor["lat"]
    assert (await client.get("/api/v1/donors/live")).json() == []

    res = await client.post(f"/api/v1/donors/{donor['id']}/activate")
    assert res.json()["active"] is True
    assert len((await client.get("/api/v1/donors/live")).json()) == 1


async def test_deactivate_unknown_donor(client):
    res = await client.post(f"/api/v1/donors/{uuid4()}/deactivate")
    assert res.status_code == 404
    assert res.json()["error"]["code"] == "RESOURCE_NOT_FOUND"
