"""Matching Route — stand-alone radius + blood group search."""

from tests.services.test_donor_routes import DONOR, _register

HOSPITAL = {"lat": 12.9800, "lng": 77.6000}


async def test_search_finds_nearby_donor(client):
    await _register(client)

    res = await client.post("/api/v1/matches/search", json={**HOSPITAL, "blood_group": "O+"})

    assert res.status_code == 200
    [hit] = res.json()
    assert hit["donor_display_handle"] == DONOR["name"]
    assert hit["donor_contact_handle"] == DONOR["phone"]
    assert 0.5 < hit["distance_km"] < 1.7


async def test_search_exact_blood_group(client):
    await _register(client, blood_group="A-")

    res = await client.post("/api/v1/matches/search", json={**HOSPITAL, "blood_group": "O+"})

    assert res.json() == []


async def test_search_excludes_inactive(client):
    donor = await _register(client)
    await client.post(f"/api/v1/donors/{donor['id']}/deactivate")

    res = await client.post("/api/v1/matches/search", json={**HOSPITAL, "blood_group": "O+"})

    assert res.json() == []


async def test_search_radius_override(client):
    await _register(client, home_lat=13.2, home_lng=77.6)

    default = await client.post("/api/v1/matches/search", json={**HOSPITAL, "blood_group": "O+"})
    wide = await client.post(
        "/api/v1/matches/search", json={**HOSPITAL, "blood_group": "O+", "radius_km": 50},
    )

    assert default.json() == []
    assert len(wide.json()) == 1


async def test_search_rejects_bad_radius(client):
    res = await client.post(
        "/api/v1/matches/search", json={**HOSPITAL, "blood_group": "O+", "radius_km": 0},
    )
    assert res.status_code == 400
