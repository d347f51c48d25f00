"""
Facilities and units: owner scoping, denormalised unit counts, bulk import.
"""
from tests.helpers import ADDRESS, create_customer, create_facility, create_rental, create_unit


async def _total_units(client, headers, facility_id) -> int:
    resp = await client.get(f"/api/facilities/{facility_id}", headers=headers)
    return resp.json()["facility"]["total_units"]


class TestFacilities:
    async def test_create_and_get(self, client, headers, owner):
        facility = await create_facility(client, headers, amenities=[{"name": "Gate"}])
        assert facility["owner_id"] == str(owner.id)
        assert facility["total_units"] == 0
        assert facility["status"] == "active"

        resp = await client.get(f"/api/facilities/{facility['id']}", headers=headers)
        assert resp.json()["facility"]["amenities"] == [{"name": "Gate", "description": None}]

    async def test_requires_authentication(self, client):
        resp = await client.get("/api/facilities")
        assert resp.status_code == 401
        assert resp.json() == {"detail": "Not authenticated"}

    async def test_invalid_token_rejected(self, client):
        resp = await client.get("/api/facilities", headers={"Authorization": "Bearer nope"})
        assert resp.status_code == 401

    async def test_other_owner_gets_404(self, client, headers, other_headers):
        facility = await create_facility(client, headers)
        for method in ("get", "delete"):
            resp = await getattr(client, method)(f"/api/facilities/{facility['id']}", headers=other_headers)
            assert resp.status_code == 404
            assert resp.json() == {"detail": "Facility not found"}

        resp = await client.patch(
            f"/api/facilities/{facility['id']}", json={"name": "Hijacked"}, headers=other_headers
        )
        assert resp.status_code == 404
        assert (await client.get(f"/api/facilities/{facility['id']}", headers=headers)).json()["facility"]["name"] == "Harbor Storage"

    async def test_update_ignores_null_for_required(self, client, headers):
        facility = await create_facility(client, headers)
        resp = await client.patch(
            f"/api/facilities/{facility['id']}",
            json={"name": None, "notes": "Gate code 1234"},
            headers=headers,
        )
        assert resp.status_code == 200
        assert resp.json()["facility"]["name"] == "Harbor Storage"
        assert resp.json()["facility"]["notes"] == "Gate code 1234"

    async def test_list_filters(self, client, headers):
        await create_facility(client, headers, name="Austin North")
        await create_facility(
            client, headers, name="Dallas East", status="maintenance",
            address={**ADDRESS, "city": "Dallas"},
        )

        resp = await client.get("/api/facilities", params={"city": "Dallas"}, headers=headers)
        assert [f["name"] for f in resp.json()["facilities"]] == ["Dallas East"]

        resp = await client.get("/api/facilities", params={"status": "active,inactive"}, headers=headers)
        assert [f["name"] for f in resp.json()["facilities"]] == ["Austin North"]

        resp = await client.get("/api/facilities", params={"search": "north"}, headers=headers)
        assert [f["name"] for f in resp.json()["facilities"]] == ["Austin North"]

    async def test_bad_zip_is_400(self, client, headers):
        resp = await client.post(
            "/api/facilities",
            json={"name": "X", "address": {**ADDRESS, "zip": "ABCDE"}},
            headers=headers,
        )
        assert resp.status_code == 400
        assert resp.json() == {"detail": "Invalid input data"}

    async def test_delete_with_rentals_conflicts(self, client, headers):
        facility = await create_facility(client, headers)
        unit = await create_unit(client, headers, facility["id"])
        customer = await create_customer(client, headers)
        await create_rental(client, headers, customer["id"], unit["id"])

        resp = await client.delete(f"/api/facilities/{facility['id']}", headers=headers)
        assert resp.status_code == 409

    async def test_delete_removes_units(self, client, headers):
        facility = await create_facility(client, headers)
        unit = await create_unit(client, headers, facility["id"])

        resp = await client.delete(f"/api/facilities/{facility['id']}", headers=headers)
        assert resp.json() == {"success": True}
        assert (await client.get(f"/api/units/{unit['id']}", headers=headers)).status_code == 404


class TestUnitCounts:
    async def test_create_bulk_delete_keep_count(self, client, headers):
        facility = await create_facility(client, headers)
        first = await create_unit(client, headers, facility["id"])
        assert await _total_units(client, headers, facility["id"]) == 1

        resp = await client.post(
            "/api/units",
            json={
                "facility_id": facility["id"],
                "units": [
                    {"unit_number": "B-1", "size": {"width": 5, "length": 5, "square_feet": 25}, "monthly_rate": 45},
                    {"unit_number": "B-2", "size": {"width": 5, "length": 10, "square_feet": 50}, "monthly_rate": 65.5,
                     "type": "climate_controlled"},
                ],
            },
            headers=headers,
        )
        assert resp.status_code == 201, resp.text
        assert [u["unit_number"] for u in resp.json()["units"]] == ["B-1", "B-2"]
        assert await _total_units(client, headers, facility["id"]) == 3

        await client.delete(f"/api/units/{first['id']}", headers=headers)
        assert await _total_units(client, headers, facility["id"]) == 2

    async def test_move_unit_between_facilities(self, client, headers):
        a = await create_facility(client, headers, name="A")
        b = await create_facility(client, headers, name="B")
        unit = await create_unit(client, headers, a["id"])

        resp = await client.patch(f"/api/units/{unit['id']}", json={"facility_id": b["id"]}, headers=headers)
        assert resp.status_code == 200
        assert await _total_units(client, headers, a["id"]) == 0
        assert await _total_units(client, headers, b["id"]) == 1

    async def test_empty_bulk_import_rejected(self, client, headers):
        facility = await create_facility(client, headers)
        resp = await client.post("/api/units", json={"facility_id": facility["id"], "units": []}, headers=headers)
        assert resp.status_code == 400

    async def test_unit_in_foreign_facility_rejected(self, client, headers, other_headers):
        facility = await create_facility(client, other_headers)
        resp = await client.post(
            "/api/units",
            json={
                "facility_id": facility["id"],
                "unit_number": "X-1",
                "size": {"width": 10, "length": 10, "square_feet": 100},
                "monthly_rate": 100,
            },
            headers=headers,
        )
        assert resp.status_code == 404
        assert await _total_units(client, other_headers, facility["id"]) == 0

    async def test_delete_rented_unit_conflicts(self, client, headers):
        facility = await create_facility(client, headers)
        unit = await create_unit(client, headers, facility["id"])
        customer = await create_customer(client, headers)
        await create_rental(client, headers, customer["id"], unit["id"], status="active")

        resp = await client.delete(f"/api/units/{unit['id']}", headers=headers)
        assert resp.status_code == 409


class TestUnitList:
    async def test_ordered_by_number_and_filtered(self, client, headers):
        facility = await create_facility(client, headers)
        await create_unit(client, headers, facility["id"], unit_number="C-2", type="outdoor")
        await create_unit(client, headers, facility["id"], unit_number="C-1")

        resp = await client.get("/api/units", params={"facility_id": facility["id"]}, headers=headers)
        assert [u["unit_number"] for u in resp.json()["units"]] == ["C-1", "C-2"]

        resp = await client.get("/api/units", params={"type": "outdoor"}, headers=headers)
        assert [u["unit_number"] for u in resp.json()["units"]] == ["C-2"]

    async def test_other_owner_units_hidden(self, client, headers, other_headers):
        facility = await create_facility(client, headers)
        await create_unit(client, headers, facility["id"])
        assert (await client.get("/api/units", headers=other_headers)).json() == {"units": []}
