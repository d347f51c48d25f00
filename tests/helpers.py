"""Request builders shared by the router tests."""
import uuid

from stowpilot.core.security import create_access_token

PASSWORD = "Storage123"


def auth_headers(profile_id: uuid.UUID) -> dict:
    return {"Authorization": f"Bearer {create_access_token(profile_id)}"}


ADDRESS = {
    "street": "1 Harbor Way",
    "city": "Austin",
    "state": "TX",
    "zip": "78701",
    "country": "US",
}


async def create_facility(client, headers, **overrides) -> dict:
    body = {"name": "Harbor Storage", "address": ADDRESS, **overrides}
    resp = await client.post("/api/facilities", json=body, headers=headers)
    assert resp.status_code == 201, resp.text
    return resp.json()["facility"]


async def create_unit(client, headers, facility_id: str, **overrides) -> dict:
    body = {
        "facility_id": facility_id,
        "unit_number": "A-101",
        "size": {"width": 10, "length": 10, "square_feet": 100},
        "monthly_rate": 100,
        **overrides,
    }
    resp = await client.post("/api/units", json=body, headers=headers)
    assert resp.status_code == 201, resp.text
    return resp.json()["unit"]


async def create_customer(client, headers, **overrides) -> dict:
    body = {
        "first_name": "Carol",
        "last_name": "Nguyen",
        "email": "carol@example.com",
        "background_check_status": "approved",
        **overrides,
    }
    resp = await client.post("/api/customers", json=body, headers=headers)
    assert resp.status_code == 201, resp.text
    return resp.json()["customer"]


async def create_rental(client, headers, customer_id: str, unit_id: str, **overrides) -> dict:
    body = {
        "customer_id": customer_id,
        "unit_id": unit_id,
        "start_date": "2026-01-01",
        "monthly_rate": 100,
        **overrides,
    }
    resp = await client.post("/api/rentals", json=body, headers=headers)
    assert resp.status_code == 201, resp.text
    return resp.json()["rental"]


async def create_invoice(client, headers, customer_id: str, **overrides) -> dict:
    body = {
        "customer_id": customer_id,
        "invoice_number": "INV-0001",
        "period_start": "2026-01-01",
        "period_end": "2026-01-31",
        "amount_due": 300,
        "due_date": "2026-01-15",
        "status": "sent",
        **overrides,
    }
    resp = await client.post("/api/invoices", json=body, headers=headers)
    assert resp.status_code == 201, resp.text
    return resp.json()["invoice"]
