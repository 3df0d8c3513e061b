import httpx
import pytest

from geotrust.schemas.location import IpLocation

SESSION = "session-abc"


def _fix(lat, lon, t_ms, accuracy=None):
    body = {"latitude": lat, "longitude": lon, "timestamp_ms": t_ms}
    if accuracy is not None:
        body["accuracy_meters"] = accuracy
    return body


async def _seed_walk(client, headers):
    for body in (_fix(19.2403, 73.1305, 0), _fix(19.2404, 73.1305, 10_000)):
        resp = await client.post(f"/v1/hunt/sessions/{SESSION}/fixes", json=body, headers=headers)
        assert resp.status_code == 200
        assert resp.json()["spoof_detected"] is False


async def test_requires_bearer_token(client):
    resp = await client.post(f"/v1/hunt/sessions/{SESSION}/fixes", json=_fix(0, 0, 0))
    assert resp.status_code == 401


async def test_rejects_other_sessions(client, auth_headers):
    resp = await client.get(f"/v1/hunt/sessions/{SESSION}/history", headers=auth_headers("someone-else"))
    assert resp.status_code == 403


async def test_rejects_out_of_range_coordinates(client, auth_headers):
    resp = await client.post(
        f"/v1/hunt/sessions/{SESSION}/fixes", json=_fix(91.0, 0, 0), headers=auth_headers(SESSION)
    )
    assert resp.status_code == 422


async def test_spoofed_fix_is_audited_and_not_recorded(client, auth_headers):
    headers = auth_headers(SESSION)
    await _seed_walk(client, headers)

    resp = await client.post(
        f"/v1/hunt/sessions/{SESSION}/fixes", json=_fix(19.0760, 72.8777, 12_000), headers=headers
    )
    body = resp.json()
    assert body["spoof_detected"] is True
    assert body["rule"] == "speed"
    assert body["reason"].startswith("Unrealistic movement detected:")

    history = (await client.get(f"/v1/hunt/sessions/{SESSION}/history", headers=headers)).json()
    assert [f["timestamp_ms"] for f in history["fixes"]] == [0, 10_000]

    audit = (await client.get(f"/v1/hunt/sessions/{SESSION}/audit", headers=headers)).json()
    assert len(audit) == 1
    assert audit[0]["rule"] == "speed"
    assert audit[0]["user_id"] == "player-1"


async def test_dry_run_does_not_commit(client, auth_headers):
    headers = auth_headers(SESSION)
    resp = await client.post(
        f"/v1/hunt/sessions/{SESSION}/fixes", params={"commit": "false"}, json=_fix(1.0, 1.0, 0), headers=headers
    )
    assert resp.status_code == 200
    history = (await client.get(f"/v1/hunt/sessions/{SESSION}/history", headers=headers)).json()
    assert history["fixes"] == []


async def test_reset_history(client, auth_headers):
    headers = auth_headers(SESSION)
    await _seed_walk(client, headers)
    resp = await client.delete(f"/v1/hunt/sessions/{SESSION}/history", headers=headers)
    assert resp.status_code == 204
    history = (await client.get(f"/v1/hunt/sessions/{SESSION}/history", headers=headers)).json()
    assert history["fixes"] == []


async def test_fix_rate_limit(client, auth_headers, settings):
    headers = auth_headers(SESSION)
    for i in range(settings.fix_rate_limit_max):
        resp = await client.post(
            f"/v1/hunt/sessions/{SESSION}/fixes", params={"commit": "false"}, json=_fix(1.0, 1.0, i), headers=headers
        )
        assert resp.status_code == 200
    resp = await client.post(
        f"/v1/hunt/sessions/{SESSION}/fixes", params={"commit": "false"}, json=_fix(1.0, 1.0, 0), headers=headers
    )
    assert resp.status_code == 429


async def test_consistency_reports_ip_and_timezone(client, auth_headers, ip_lookup):
    ip_lookup.result = IpLocation(latitude=28.6139, longitude=77.2090, timezone="Asia/Kolkata")
    resp = await client.post(
        f"/v1/hunt/sessions/{SESSION}/consistency",
        json={"latitude": 19.2403, "longitude": 73.1305, "browser_timezone": "Europe/Berlin"},
        headers=auth_headers(SESSION),
    )
    body = resp.json()
    assert body["ip"]["consistent"] is False
    assert "too far apart" in body["ip"]["reason"]
    assert body["timezone"]["detected"] is True
    assert body["ip_timezone"] == "Asia/Kolkata"
    assert ip_lookup.calls == 1


async def test_consistency_fails_open(client, auth_headers, ip_lookup):
    ip_lookup.error = httpx.ConnectTimeout("timed out")
    resp = await client.post(
        f"/v1/hunt/sessions/{SESSION}/consistency",
        json={"latitude": 19.2403, "longitude": 73.1305, "browser_timezone": "Asia/Kolkata"},
        headers=auth_headers(SESSION),
    )
    body = resp.json()
    assert body["ip"] == {"consistent": True, "distance_meters": None, "reason": None}
    assert body["timezone"]["detected"] is False


async def test_places_catalog_and_draw(client):
    for name, city in (("Fort", "Kalyan"), ("Lake", "kalyan"), ("Beach", "Mumbai")):
        resp = await client.post(
            "/v1/places",
            json={"name": name, "clue": f"Find the {name}", "latitude": 19.24, "longitude": 73.13, "city": city},
        )
        assert resp.status_code == 201
    assert [p["id"] for p in (await client.get("/v1/places")).json()] == [1, 2, 3]

    kalyan = (await client.get("/v1/places", params={"city": "KALYAN"})).json()
    assert {p["name"] for p in kalyan} == {"Fort", "Lake"}
    assert kalyan[0]["threshold_distance"] == 100.0

    drawn = (await client.get("/v1/places/draw", params={"city": "Kalyan"})).json()
    assert sorted(p["name"] for p in drawn) == ["Fort", "Lake"]

    resp = await client.get("/v1/places/draw", params={"city": "Mumbai"})
    assert resp.status_code == 404
    assert resp.json()["detail"] == "Not enough quests available in Mumbai"


async def test_verify_place(client, auth_headers):
    headers = auth_headers(SESSION)
    place = (
        await client.post(
            "/v1/places",
            json={
                "name": "Station",
                "clue": "Trains",
                "latitude": 19.2405,
                "longitude": 73.1305,
                "city": "Kalyan",
                "threshold_distance": 50,
            },
        )
    ).json()
    await _seed_walk(client, headers)

    resp = await client.post(
        f"/v1/hunt/sessions/{SESSION}/places/{place['id']}/verify",
        json=_fix(19.2405, 73.1305, 20_000, accuracy=5.0),
        headers=headers,
    )
    body = resp.json()
    assert body["success"] is True
    assert body["message"].startswith("Location verified!")
    assert body["band"] == "near"

    resp = await client.post(
        f"/v1/hunt/sessions/{SESSION}/places/{place['id']}/verify",
        json=_fix(19.2405, 73.1305, 21_000, accuracy=0.2),
        headers=headers,
    )
    body = resp.json()
    assert body["success"] is False
    assert body["spoof"]["reason"] == "Suspiciously high location accuracy"


async def test_verify_unknown_place(client, auth_headers):
    resp = await client.post(
        f"/v1/hunt/sessions/{SESSION}/places/999/verify", json=_fix(0, 0, 0), headers=auth_headers(SESSION)
    )
    assert resp.status_code == 404


async def test_session_lifecycle(client, redis):
    resp = await client.post("/v1/auth/session", json={"player_id": "p-42"})
    assert resp.status_code == 200
    token = resp.json()
    headers = {"Authorization": f"Bearer {token['access_token']}"}
    session_id = token["session_id"]

    resp = await client.post(f"/v1/hunt/sessions/{session_id}/fixes", json=_fix(1.0, 1.0, 0), headers=headers)
    assert resp.status_code == 200

    assert (await client.post("/v1/auth/logout", headers=headers)).status_code == 200
    assert await redis.llen(f"hunt:history:{session_id}") == 0
    resp = await client.get(f"/v1/hunt/sessions/{session_id}/history", headers=headers)
    assert resp.status_code == 403


async def test_security_headers(client):
    resp = await client.get("/v1/places")
    assert resp.headers["X-Content-Type-Options"] == "nosniff"
    assert resp.headers["Permissions-Policy"] == "geolocation=(self)"


async def test_geocode_without_key(client):
    resp = await client.get("/v1/geocode/city", params={"latitude": 19.24, "longitude": 73.13})
    assert resp.json()["city"] == "Unknown City"


@pytest.mark.parametrize("params", [{"latitude": 100, "longitude": 0}, {"latitude": 0}])
async def test_geocode_validates_query(client, params):
    resp = await client.get("/v1/geocode/city", params=params)
    assert resp.status_code == 422


async def test_verify_shares_the_fix_rate_limit(client, auth_headers, settings):
    headers = auth_headers(SESSION)
    place = (
        await client.post(
            "/v1/places",
            json={"name": "Fort", "clue": "Walls", "latitude": 1.0, "longitude": 1.0, "city": "Kalyan"},
        )
    ).json()
    verify_url = f"/v1/hunt/sessions/{SESSION}/places/{place['id']}/verify"

    for i in range(settings.fix_rate_limit_max - 1):
        resp = await client.post(
            f"/v1/hunt/sessions/{SESSION}/fixes", params={"commit": "false"}, json=_fix(1.0, 1.0, i), headers=headers
        )
        assert resp.status_code == 200
    resp = await client.post(verify_url, json=_fix(1.0, 1.0, 0), headers=headers)
    assert resp.status_code == 200
    assert resp.json()["success"] is True

    resp = await client.post(verify_url, json=_fix(1.0, 1.0, 5_000), headers=headers)
    assert resp.status_code == 429
    history = (await client.get(f"/v1/hunt/sessions/{SESSION}/history", headers=headers)).json()
    assert [f["timestamp_ms"] for f in history["fixes"]] == [0]
