import pytest


def center_body(service_catalog, **overrides) -> dict:
    body = {
        "name": "Sharma Motors Pune",
        "typeId": service_catalog.center_type.id,
        "primaryContactName": "R. Sharma",
        "address1": "Plot 12, MIDC Bhosari",
        "city": "Pune",
        "state": "Maharashtra",
        "pincode": "411026",
        "primaryPhone": "+91 98220 00000",
        "brandIds": [service_catalog.brands[0].id, service_catalog.brands[1].id],
        "serviceTypeIds": [service_catalog.services[0].id],
    }
    body.update(overrides)
    return body


async def usage_counts(async_client, headers, path: str) -> dict:
    resp = await async_client.get(f"{path}?pageSize=100", headers=headers)
    return {entry["name"]: entry["usageCount"] for entry in resp.json()["data"]}


@pytest.mark.asyncio
async def test_create_service_center(async_client, owner_headers, service_catalog):
    resp = await async_client.post("/service-centers", json=center_body(service_catalog), headers=owner_headers)

    assert resp.status_code == 201
    body = resp.json()
    assert body["slug"] == "sharma-motors-pune"
    assert body["country"] == "India"
    assert body["status"] == "DRAFT"
    assert body["type"]["name"] == "Authorized Dealer"
    assert sorted(b["name"] for b in body["brands"]) == ["Eicher", "Tata"]

    assert (await usage_counts(async_client, owner_headers, "/vehicle-brands")) == {
        "Tata": 1, "Eicher": 1, "BharatBenz": 0,
    }
    assert (await usage_counts(async_client, owner_headers, "/service-center-types"))["Authorized Dealer"] == 1


@pytest.mark.asyncio
async def test_slug_made_unique(async_client, owner_headers, service_catalog):
    first = await async_client.post("/service-centers", json=center_body(service_catalog), headers=owner_headers)
    second = await async_client.post("/service-centers", json=center_body(service_catalog), headers=owner_headers)

    assert first.json()["slug"] == "sharma-motors-pune"
    assert second.json()["slug"] == "sharma-motors-pune-1"


@pytest.mark.asyncio
async def test_put_replaces_associations(async_client, owner_headers, service_catalog):
    created = (await async_client.post(
        "/service-centers", json=center_body(service_catalog), headers=owner_headers
    )).json()

    body = center_body(
        service_catalog,
        typeId=service_catalog.workshop.id,
        brandIds=[service_catalog.brands[2].id],
        serviceTypeIds=[service_catalog.services[1].id],
        status="PUBLISHED",
    )
    resp = await async_client.put(f"/service-centers/{created['id']}", json=body, headers=owner_headers)

    assert resp.status_code == 200
    updated = resp.json()
    assert [b["name"] for b in updated["brands"]] == ["BharatBenz"]
    assert [s["name"] for s in updated["serviceTypes"]] == ["Tyre Service"]
    assert updated["slug"] == created["slug"]
    assert updated["status"] == "PUBLISHED"

    assert (await usage_counts(async_client, owner_headers, "/vehicle-brands")) == {
        "Tata": 0, "Eicher": 0, "BharatBenz": 1,
    }
    assert (await usage_counts(async_client, owner_headers, "/service-center-types")) == {
        "Authorized Dealer": 0, "Multi-brand Workshop": 1,
    }


@pytest.mark.asyncio
async def test_delete_releases_usage(async_client, owner_headers, service_catalog):
    created = (await async_client.post(
        "/service-centers", json=center_body(service_catalog), headers=owner_headers
    )).json()

    resp = await async_client.delete(f"/service-centers/{created['id']}", headers=owner_headers)
    assert resp.json() == {"message": "Service center deleted successfully"}

    assert (await async_client.get(f"/service-centers/{created['id']}", headers=owner_headers)).status_code == 404
    assert set((await usage_counts(async_client, owner_headers, "/vehicle-brands")).values()) == {0}


@pytest.mark.asyncio
async def test_unknown_type_rejected(async_client, owner_headers, service_catalog):
    body = center_body(service_catalog, typeId="00000000-0000-0000-0000-000000000000")
    resp = await async_client.post("/service-centers", json=body, headers=owner_headers)

    assert resp.status_code == 400
    assert resp.json()["field"] == "typeId"


@pytest.mark.asyncio
async def test_list_and_search(async_client, owner_headers, service_catalog):
    await async_client.post("/service-centers", json=center_body(service_catalog), headers=owner_headers)
    await async_client.post(
        "/service-centers", json=center_body(service_catalog, name="Kaveri Diesels", city="Mysuru"), headers=owner_headers
    )

    resp = await async_client.get("/service-centers?search=mysuru", headers=owner_headers)
    body = resp.json()
    assert body["pagination"]["total"] == 1
    assert body["data"][0]["name"] == "Kaveri Diesels"


@pytest.mark.asyncio
async def test_options_lists_active_entries(async_client, owner_headers, service_catalog):
    await async_client.patch(
        f"/vehicle-brands/{service_catalog.brands[2].id}", json={"status": "INACTIVE"}, headers=owner_headers
    )

    resp = await async_client.get("/service-centers/options", headers=owner_headers)
    assert resp.status_code == 200
    body = resp.json()
    assert [b["name"] for b in body["brands"]] == ["Eicher", "Tata"]
    assert [t["name"] for t in body["types"]] == ["Authorized Dealer", "Multi-brand Workshop"]
    assert [s["name"] for s in body["serviceTypes"]] == ["General Service", "Tyre Service"]
