"""
Rental lifecycle against the unit it occupies, driven through the HTTP API.
"""
from tests.helpers import create_customer, create_facility, create_rental, create_unit


async def _unit_status(client, headers, unit_id) -> str:
    resp = await client.get(f"/api/units/{unit_id}", headers=headers)
    assert resp.status_code == 200
    return resp.json()["unit"]["status"]


class TestRentalUnitSync:
    async def test_active_then_terminated(self, client, headers):
        facility = await create_facility(client, headers)
        unit = await create_unit(client, headers, facility["id"], monthly_rate=100)
        customer = await create_customer(client, headers)

        rental = await create_rental(client, headers, customer["id"], unit["id"], status="active")
        assert rental["signed_at"] is not None
        assert await _unit_status(client, headers, unit["id"]) == "occupied"

        resp = await client.patch(
            f"/api/rentals/{rental['id']}", json={"status": "terminated"}, headers=headers
        )
        assert resp.status_code == 200
        assert resp.json()["rental"]["terminated_at"] is not None
        assert await _unit_status(client, headers, unit["id"]) == "available"

    async def test_draft_does_not_occupy_until_activated(self, client, headers):
        facility = await create_facility(client, headers)
        unit = await create_unit(client, headers, facility["id"])
        customer = await create_customer(client, headers)

        rental = await create_rental(client, headers, customer["id"], unit["id"])
        assert rental["status"] == "draft"
        assert await _unit_status(client, headers, unit["id"]) == "available"

        await client.patch(f"/api/rentals/{rental['id']}", json={"status": "active"}, headers=headers)
        assert await _unit_status(client, headers, unit["id"]) == "occupied"

    async def test_expired_releases_unit(self, client, headers):
        facility = await create_facility(client, headers)
        unit = await create_unit(client, headers, facility["id"])
        customer = await create_customer(client, headers)
        rental = await create_rental(client, headers, customer["id"], unit["id"], status="active")

        await client.patch(f"/api/rentals/{rental['id']}", json={"status": "expired"}, headers=headers)
        assert await _unit_status(client, headers, unit["id"]) == "available"

    async def test_moving_rental_frees_previous_unit(self, client, headers):
        facility = await create_facility(client, headers)
        first = await create_unit(client, headers, facility["id"], unit_number="A-1")
        second = await create_unit(client, headers, facility["id"], unit_number="A-2")
        customer = await create_customer(client, headers)
        rental = await create_rental(client, headers, customer["id"], first["id"], status="active")

        resp = await client.patch(
            f"/api/rentals/{rental['id']}", json={"unit_id": second["id"]}, headers=headers
        )
        assert resp.status_code == 200
        assert await _unit_status(client, headers, first["id"]) == "available"
        assert await _unit_status(client, headers, second["id"]) == "occupied"

    async def test_delete_releases_unit(self, client, headers):
        facility = await create_facility(client, headers)
        unit = await create_unit(client, headers, facility["id"])
        customer = await create_customer(client, headers)
        rental = await create_rental(client, headers, customer["id"], unit["id"], status="active")

        resp = await client.delete(f"/api/rentals/{rental['id']}", headers=headers)
        assert resp.status_code == 200
        assert resp.json() == {"success": True}
        assert await _unit_status(client, headers, unit["id"]) == "available"

    async def test_maintenance_unit_untouched_by_draft(self, client, headers):
        facility = await create_facility(client, headers)
        unit = await create_unit(client, headers, facility["id"], status="maintenance")
        customer = await create_customer(client, headers)

        await create_rental(client, headers, customer["id"], unit["id"], status="pending_signature")
        assert await _unit_status(client, headers, unit["id"]) == "maintenance"

    async def test_editing_ended_rental_keeps_reserved_unit(self, client, headers):
        facility = await create_facility(client, headers)
        unit = await create_unit(client, headers, facility["id"])
        customer = await create_customer(client, headers)
        rental = await create_rental(client, headers, customer["id"], unit["id"], status="terminated")

        await client.patch(f"/api/units/{unit['id']}", json={"status": "reserved"}, headers=headers)
        resp = await client.patch(
            f"/api/rentals/{rental['id']}", json={"late_fee_rate": 5}, headers=headers
        )
        assert resp.status_code == 200
        assert await _unit_status(client, headers, unit["id"]) == "reserved"

    async def test_editing_terminated_rental_keeps_maintenance_unit(self, client, headers):
        facility = await create_facility(client, headers)
        unit = await create_unit(client, headers, facility["id"])
        customer = await create_customer(client, headers)
        rental = await create_rental(client, headers, customer["id"], unit["id"], status="active")
        await client.patch(f"/api/rentals/{rental['id']}", json={"status": "terminated"}, headers=headers)

        await client.patch(f"/api/units/{unit['id']}", json={"status": "maintenance"}, headers=headers)
        await client.patch(
            f"/api/rentals/{rental['id']}",
            json={"special_terms": "Gate code changed", "status": "terminated"},
            headers=headers,
        )
        assert await _unit_status(client, headers, unit["id"]) == "maintenance"


class TestRentalValidation:
    async def test_foreign_unit_is_not_found(self, client, headers, other_headers):
        facility = await create_facility(client, other_headers)
        unit = await create_unit(client, other_headers, facility["id"])
        customer = await create_customer(client, headers)

        resp = await client.post(
            "/api/rentals",
            json={
                "customer_id": customer["id"],
                "unit_id": unit["id"],
                "start_date": "2026-01-01",
                "monthly_rate": 100,
                "status": "active",
            },
            headers=headers,
        )
        assert resp.status_code == 404
        assert resp.json() == {"detail": "Unit not found"}
        # the other owner's unit was not touched
        assert await _unit_status(client, other_headers, unit["id"]) == "available"

    async def test_end_before_start_on_update(self, client, headers):
        facility = await create_facility(client, headers)
        unit = await create_unit(client, headers, facility["id"])
        customer = await create_customer(client, headers)
        rental = await create_rental(client, headers, customer["id"], unit["id"])

        resp = await client.patch(
            f"/api/rentals/{rental['id']}", json={"end_date": "2025-12-01"}, headers=headers
        )
        assert resp.status_code == 400
        assert resp.json() == {"detail": "Invalid input data"}

    async def test_create_rejects_bad_body(self, client, headers):
        resp = await client.post("/api/rentals", json={"monthly_rate": -5}, headers=headers)
        assert resp.status_code == 400
        assert resp.json() == {"detail": "Invalid input data"}


class TestRentalList:
    async def test_status_filter_accepts_csv(self, client, headers):
        facility = await create_facility(client, headers)
        customer = await create_customer(client, headers)
        for number, status in (("B-1", "active"), ("B-2", "draft"), ("B-3", "terminated")):
            unit = await create_unit(client, headers, facility["id"], unit_number=number)
            await create_rental(client, headers, customer["id"], unit["id"], status=status)

        resp = await client.get("/api/rentals", params={"status": "active,draft"}, headers=headers)
        assert resp.status_code == 200
        assert sorted(r["status"] for r in resp.json()["rentals"]) == ["active", "draft"]

    async def test_search_by_unit_number(self, client, headers):
        facility = await create_facility(client, headers)
        customer = await create_customer(client, headers)
        unit = await create_unit(client, headers, facility["id"], unit_number="Z-99")
        await create_rental(client, headers, customer["id"], unit["id"])

        resp = await client.get("/api/rentals", params={"search": "z-9"}, headers=headers)
        assert len(resp.json()["rentals"]) == 1

    async def test_other_owner_sees_nothing(self, client, headers, other_headers):
        facility = await create_facility(client, headers)
        unit = await create_unit(client, headers, facility["id"])
        customer = await create_customer(client, headers)
        rental = await create_rental(client, headers, customer["id"], unit["id"])

        assert (await client.get("/api/rentals", headers=other_headers)).json() == {"rentals": []}
        resp = await client.get(f"/api/rentals/{rental['id']}", headers=other_headers)
        assert resp.status_code == 404
        assert resp.json() == {"detail": "Rental not found"}
