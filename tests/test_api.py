"""
HTTP surface: status mapping, camelCase wire format and the
organization -> sensor walkthrough.
"""

from datetime import datetime

import pytest


def _ts(value):
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


async def _build_tree(client):
    org = (await client.post("/api/organizations", json={"name": "Acme"})).json()
    site = (await client.post(
        "/api/sites", json={"name": "Barcelona", "organizationId": org["id"], "location": "X"}
    )).json()
    mp = (await client.post(
        "/api/measuring-points",
        json={"name": "Pier", "siteId": site["id"], "latitude": 41.38, "longitude": 2.17},
    )).json()
    board = (await client.post(
        "/api/boards",
        json={
            "name": "Main",
            "measuringPointId": mp["id"],
            "serialNumber": "SN-001",
            "firmwareVersion": "1.0.0",
        },
    )).json()
    sensor = (await client.post(
        "/api/sensors",
        json={
            "name": "Water temp",
            "boardId": board["id"],
            "type": "TEMPERATURE",
            "unit": "°C",
            "minValue": -10,
            "maxValue": 50,
        },
    )).json()
    return org, site, mp, board, sensor


@pytest.mark.asyncio
async def test_acme_walkthrough(client):
    org, site, mp, board, sensor = await _build_tree(client)
    assert sensor["isActive"] is True

    ok = await client.put(f"/api/sensors/{sensor['id']}/reading", json={"currentValue": 24.5})
    assert ok.status_code == 200
    assert ok.json()["currentValue"] == 24.5

    bad = await client.put(f"/api/sensors/{sensor['id']}/reading", json={"currentValue": 999})
    assert bad.status_code == 400
    assert "above the maximum" in bad.json()["detail"]
    current = (await client.get(f"/api/sensors/{sensor['id']}")).json()
    assert current["currentValue"] == 24.5

    deleted = await client.delete(f"/api/organizations/{org['id']}")
    assert deleted.status_code == 200
    assert deleted.json()["removed"] == {
        "organizations": 1,
        "sites": 1,
        "measuringPoints": 1,
        "boards": 1,
        "sensors": 1,
    }
    for path, entity in [
        ("sites", site),
        ("measuring-points", mp),
        ("boards", board),
        ("sensors", sensor),
    ]:
        assert (await client.get(f"/api/{path}/{entity['id']}")).status_code == 404


@pytest.mark.asyncio
async def test_create_returns_201_and_round_trips(client):
    created = await client.post("/api/organizations", json={"name": "Acme", "description": "d"})

    assert created.status_code == 201
    body = created.json()
    assert set(body) == {"id", "name", "description", "createdAt", "updatedAt"}
    fetched = await client.get(f"/api/organizations/{body['id']}")
    assert fetched.json() == body


@pytest.mark.asyncio
async def test_create_with_missing_parent_is_400(client):
    resp = await client.post(
        "/api/sites", json={"name": "s", "organizationId": "ghost", "location": "X"}
    )
    assert resp.status_code == 400
    assert "ghost" in resp.json()["detail"]
    assert (await client.get("/api/sites")).json() == []


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "path, payload",
    [
        ("/api/organizations", {}),
        ("/api/organizations", {"name": ""}),
        ("/api/sites", {"name": "s", "organizationId": "o"}),
        ("/api/measuring-points", {"name": "m", "siteId": "s", "latitude": 91}),
        ("/api/measuring-points", {"name": "m", "siteId": "s", "longitude": -180.5}),
        ("/api/boards", {"name": "b", "measuringPointId": "m", "serialNumber": "1"}),
        ("/api/sensors", {"name": "t", "boardId": "b", "type": "PRESSURE", "unit": "Pa"}),
    ],
)
async def test_invalid_payloads_are_400(client, path, payload):
    resp = await client.post(path, json=payload)
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_list_by_parent_routes(client):
    org, site, mp, board, sensor = await _build_tree(client)

    assert [s["id"] for s in (await client.get(f"/api/sites/organization/{org['id']}")).json()] == [site["id"]]
    assert [m["id"] for m in (await client.get(f"/api/measuring-points/site/{site['id']}")).json()] == [mp["id"]]
    assert [b["id"] for b in (await client.get(f"/api/boards/measuring-point/{mp['id']}")).json()] == [board["id"]]
    assert [s["id"] for s in (await client.get(f"/api/sensors/board/{board['id']}")).json()] == [sensor["id"]]
    assert (await client.get("/api/sensors/board/unknown")).json() == []


@pytest.mark.asyncio
async def test_update_merges_and_ignores_immutable_fields(client):
    org, site, *_ = await _build_tree(client)

    resp = await client.put(
        f"/api/sites/{site['id']}",
        json={"location": "Y", "id": "hijack", "createdAt": "2000-01-01T00:00:00Z"},
    )

    assert resp.status_code == 200
    body = resp.json()
    assert body["id"] == site["id"]
    assert body["createdAt"] == site["createdAt"]
    assert body["location"] == "Y"
    assert body["name"] == "Barcelona"
    assert _ts(body["updatedAt"]) > _ts(site["updatedAt"])


@pytest.mark.asyncio
async def test_update_not_found_and_bad_parent(client):
    org, site, *_ = await _build_tree(client)

    missing = await client.put("/api/sites/nope", json={"name": "x"})
    bad_parent = await client.put(f"/api/sites/{site['id']}", json={"organizationId": "ghost"})

    assert missing.status_code == 404
    assert bad_parent.status_code == 400
    assert (await client.get(f"/api/sites/{site['id']}")).json() == site


@pytest.mark.asyncio
async def test_reading_requires_value_and_existing_sensor(client):
    *_, sensor = await _build_tree(client)

    assert (await client.put(f"/api/sensors/{sensor['id']}/reading", json={})).status_code == 400
    assert (await client.put("/api/sensors/nope/reading", json={"currentValue": 1})).status_code == 404


@pytest.mark.asyncio
async def test_delete_unknown_is_404(client):
    resp = await client.delete("/api/boards/nope")
    assert resp.status_code == 404
    assert resp.json()["detail"] == "Board with ID nope not found"


@pytest.mark.asyncio
async def test_tree_and_stats(client):
    org, site, mp, board, sensor = await _build_tree(client)

    tree = (await client.get(f"/api/organizations/{org['id']}/tree")).json()
    assert tree["sites"][0]["measuringPoints"][0]["boards"][0]["sensors"][0]["id"] == sensor["id"]
    assert (await client.get("/api/boards/nope/tree")).status_code == 404

    stats = (await client.get("/api/stats")).json()
    assert stats["counts"] == {
        "organizations": 1,
        "sites": 1,
        "measuringPoints": 1,
        "boards": 1,
        "sensors": 1,
    }


@pytest.mark.asyncio
async def test_persist_failure_is_500(client, repo):
    repo.fail_saves = True

    resp = await client.post("/api/organizations", json={"name": "Acme"})

    assert resp.status_code == 500
    assert (await client.get("/api/organizations")).json() == []


@pytest.mark.asyncio
async def test_index_lists_endpoints(client):
    body = (await client.get("/")).json()
    assert body["endpoints"]["measuringPoints"] == "/api/measuring-points"
