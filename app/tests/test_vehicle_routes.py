import pytest


@pytest.mark.asyncio
async def test_vehicle_routes_require_owner(async_client, user_headers, vehicle_payload):
    resp = await async_client.get("/vehicles")
    assert resp.status_code == 401

    resp = await async_client.post("/vehicles", json=vehicle_payload(), headers=user_headers)
    assert resp.status_code == 401

    resp = await async_client.get("/vehicles", headers={"Authorization": "Bearer not-a-token"})
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_create_returns_full_vehicle(async_client, owner_headers, vehicle_payload, catalog):
    body = vehicle_payload(featureTagIds=[catalog.tags[0].id], vendorPriceInr=2100000)
    resp = await async_client.post("/vehicles", json=body, headers=owner_headers)

    assert resp.status_code == 201
    data = resp.json()
    assert data["slug"] == "2022-tata-lpt-3118-6x2-truck"
    assert data["title"] == "2022 Tata LPT 3118 6x2 Truck"
    assert data["make"] == {"id": catalog.make.id, "name": "Tata"}
    assert data["features"][0]["featureTag"]["name"] == "ABS"
    assert data["vendorPriceInr"] == 2100000
    assert data["createdBy"] == "owner@example.com"


@pytest.mark.asyncio
async def test_invalid_input_shape(async_client, owner_headers, vehicle_payload):
    resp = await async_client.post(
        "/vehicles",
        json=vehicle_payload(modelYear=1800, condition="BROKEN"),
        headers=owner_headers,
    )

    assert resp.status_code == 400
    body = resp.json()
    assert body["error"] == "Invalid input"
    fields = {detail["field"] for detail in body["details"]}
    assert {"modelYear", "condition"} <= fields


@pytest.mark.asyncio
async def test_publish_gate_error_shape(async_client, owner_headers, vehicle_payload):
    resp = await async_client.post("/vehicles", json=vehicle_payload(status="PUBLISHED"), headers=owner_headers)

    assert resp.status_code == 400
    assert resp.json() == {
        "error": "Cannot publish vehicle. Missing required fields",
        "missingFields": ["city", "state", "pincode", "askingPriceInr", "coverUrl"],
    }


@pytest.mark.asyncio
async def test_duplicate_registration_is_conflict(async_client, owner_headers, publishable_payload):
    body = publishable_payload(condition="USED", status="PUBLISHED", regNo="KA01AB1234")
    first = await async_client.post("/vehicles", json=body, headers=owner_headers)
    assert first.status_code == 201

    second = await async_client.post("/vehicles", json=body, headers=owner_headers)
    assert second.status_code == 409
    payload = second.json()
    assert "registration number" in payload["error"]
    assert payload["conflict"]["id"] == first.json()["id"]


@pytest.mark.asyncio
async def test_unknown_reference_is_bad_request(async_client, owner_headers, vehicle_payload):
    resp = await async_client.post(
        "/vehicles",
        json=vehicle_payload(axleConfigId="00000000-0000-0000-0000-000000000000"),
        headers=owner_headers,
    )
    assert resp.status_code == 400
    assert resp.json()["field"] == "axleConfigId"


@pytest.mark.asyncio
async def test_patch_and_archive(async_client, owner_headers, vehicle_payload):
    created = (await async_client.post("/vehicles", json=vehicle_payload(), headers=owner_headers)).json()

    resp = await async_client.patch(
        f"/vehicles/{created['id']}", json={"city": "Indore", "negotiable": True}, headers=owner_headers
    )
    assert resp.status_code == 200
    assert resp.json()["city"] == "Indore"
    assert resp.json()["negotiable"] is True

    resp = await async_client.delete(f"/vehicles/{created['id']}", headers=owner_headers)
    assert resp.status_code == 200
    assert resp.json() == {"message": "Vehicle archived successfully"}

    resp = await async_client.get(f"/vehicles/{created['id']}", headers=owner_headers)
    assert resp.json()["status"] == "ARCHIVED"


@pytest.mark.asyncio
async def test_patch_rejects_null_for_required_field(async_client, owner_headers, vehicle_payload):
    created = (await async_client.post("/vehicles", json=vehicle_payload(), headers=owner_headers)).json()

    resp = await async_client.patch(f"/vehicles/{created['id']}", json={"makeId": None}, headers=owner_headers)
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_unknown_vehicle_is_404(async_client, owner_headers):
    resp = await async_client.get("/vehicles/does-not-exist", headers=owner_headers)
    assert resp.status_code == 404
    assert resp.json() == {"error": "Vehicle not found"}


@pytest.mark.asyncio
async def test_list_pagination_and_limit_normalisation(async_client, owner_headers, vehicle_payload):
    for year in (2019, 2020, 2021):
        await async_client.post("/vehicles", json=vehicle_payload(modelYear=year), headers=owner_headers)

    resp = await async_client.get("/vehicles?limit=7&sortBy=modelYear&sortOrder=asc", headers=owner_headers)
    assert resp.status_code == 200
    body = resp.json()
    assert body["pagination"] == {"total": 3, "page": 1, "limit": 10, "totalPages": 1}
    assert [v["modelYear"] for v in body["data"]] == [2019, 2020, 2021]

    resp = await async_client.get("/vehicles?yearMin=2020&makeId=" + body["data"][0]["makeId"], headers=owner_headers)
    assert resp.json()["pagination"]["total"] == 2


@pytest.mark.asyncio
async def test_public_listing_hides_drafts_and_internal_fields(async_client, owner_headers, publishable_payload):
    visible = publishable_payload(status="PUBLISHED", visibility=True, vendorPriceInr=1900000, targetMarginInr=50000)
    hidden = publishable_payload(status="PUBLISHED", visibility=False, modelYear=2021)
    draft = publishable_payload(visibility=True, modelYear=2020)
    for body in (visible, hidden, draft):
        assert (await async_client.post("/vehicles", json=body, headers=owner_headers)).status_code == 201

    resp = await async_client.get("/listings")
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert len(data) == 1
    assert "vendorPriceInr" not in data[0]
    assert "targetMarginInr" not in data[0]

    resp = await async_client.get(f"/listings/{data[0]['slug']}")
    assert resp.status_code == 200
    assert resp.json()["modelYear"] == 2022

    resp = await async_client.get("/listings/2021-tata-lpt-3118-6x2-truck")
    assert resp.status_code == 404
