import pytest

from rentbill.config import config
from rentbill.database.transaction import TransactionManager
from rentbill.services import invoice_service

ADMIN = {"X-User-Id": "admin-1", "X-User-Role": "ADMIN"}
TENANT_1 = {"X-User-Id": "user-1"}
TENANT_2 = {"X-User-Id": "user-2", "X-User-Role": "USER"}


def _generate_body(seeded, **overrides):
    body = {
        "propertyId": seeded.property_id,
        "electricityBillId": seeded.bill_id,
        "month": 3,
        "year": 2025,
        "waterCost": 100
    }
    body.update(overrides)
    return body


@pytest.mark.asyncio
async def test_health(client):
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


@pytest.mark.asyncio
async def test_generate_invoices(client, march_property):
    response = await client.post("/invoices/generate", json=_generate_body(march_property), headers=ADMIN)

    assert response.status_code == 201
    invoices = response.json()["invoices"]
    assert len(invoices) == 2
    for inv in invoices:
        assert inv["energyCost"] == 150
        assert inv["waterCost"] == 50
        assert inv["totalCost"] == 200
        assert inv["status"] == "UNPAID"
        assert inv["month"] == 3 and inv["year"] == 2025
        assert inv["rentalId"] in march_property.rental_ids


@pytest.mark.asyncio
async def test_generate_twice_conflicts(client, march_property):
    first = await client.post("/invoices/generate", json=_generate_body(march_property), headers=ADMIN)
    assert first.status_code == 201

    second = await client.post("/invoices/generate", json=_generate_body(march_property), headers=ADMIN)
    assert second.status_code == 409
    assert second.json()["error"] == "INVOICE_ALREADY_EXISTS"
    assert "X-Error-ID" in second.headers


@pytest.mark.asyncio
async def test_generate_requires_identity_and_admin(client, march_property):
    response = await client.post("/invoices/generate", json=_generate_body(march_property))
    assert response.status_code == 401
    assert response.json()["error"] == "UNAUTHORIZED"

    response = await client.post("/invoices/generate", json=_generate_body(march_property), headers=TENANT_1)
    assert response.status_code == 403

    # ADMIN role, but not an administrator of this property
    stranger = {"X-User-Id": "admin-9", "X-User-Role": "ADMIN"}
    response = await client.post("/invoices/generate", json=_generate_body(march_property), headers=stranger)
    assert response.status_code == 403
    assert response.json()["error"] == "PROPERTY_ACCESS_DENIED"


@pytest.mark.asyncio
async def test_generate_not_found_and_validation(client, march_property):
    response = await client.post("/invoices/generate", json=_generate_body(march_property, propertyId=9999), headers=ADMIN)
    assert response.status_code == 404
    assert response.json()["error"] == "PROPERTY_NOT_FOUND"

    response = await client.post("/invoices/generate", json=_generate_body(march_property, electricityBillId=9999), headers=ADMIN)
    assert response.status_code == 404
    assert response.json()["error"] == "ELECTRICITY_BILL_NOT_FOUND"

    response = await client.post("/invoices/generate", json=_generate_body(march_property, month=13), headers=ADMIN)
    assert response.status_code == 400
    body = response.json()
    assert body["error"] == "VALIDATION_ERROR"
    assert body["message"] == "Invalid request data"

    response = await client.post("/invoices/generate", json=_generate_body(march_property, waterCost=-5), headers=ADMIN)
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_generate_runs_in_fresh_serializable_transaction(client, march_property, monkeypatch):
    calls = []

    class RecordingTransactionManager(TransactionManager):
        async def execute(self, callback, isolation_level=None, timeout=None):
            calls.append((self.session.in_transaction(), isolation_level))
            return await super().execute(callback, isolation_level=isolation_level, timeout=timeout)

    monkeypatch.setattr(invoice_service, "TransactionManager", RecordingTransactionManager)

    response = await client.post("/invoices/generate", json=_generate_body(march_property), headers=ADMIN)

    assert response.status_code == 201
    assert calls == [(False, "SERIALIZABLE")]


@pytest.mark.asyncio
async def test_tenant_invoices_and_detail(client, march_property):
    await client.post("/invoices/generate", json=_generate_body(march_property), headers=ADMIN)

    response = await client.get("/invoices", headers=TENANT_1)
    assert response.status_code == 200
    invoices = response.json()["invoices"]
    assert len(invoices) == 1
    assert set(invoices[0]) == {"id", "rentalId", "month", "year", "totalCost", "status"}
    invoice_id = invoices[0]["id"]

    response = await client.get("/invoices?status=PAID", headers=TENANT_1)
    assert response.json()["invoices"] == []

    response = await client.get("/invoices?status=PARTIAL", headers=TENANT_1)
    assert response.status_code == 400

    response = await client.get(f"/invoices/{invoice_id}", headers=TENANT_1)
    assert response.status_code == 200
    detail = response.json()
    assert detail["amountPaid"] == 0
    assert detail["remainingBalance"] == 200

    response = await client.get(f"/invoices/{invoice_id}", headers=TENANT_2)
    assert response.status_code == 403
    assert response.json()["error"] == "INVOICE_ACCESS_DENIED"

    response = await client.get("/invoices/9999", headers=TENANT_1)
    assert response.status_code == 404
    assert response.json()["error"] == "INVOICE_NOT_FOUND"


@pytest.mark.asyncio
async def test_pay_invoice_in_two_parts(client, march_property):
    generated = await client.post("/invoices/generate", json=_generate_body(march_property), headers=ADMIN)
    invoice_id = next(
        inv["id"] for inv in generated.json()["invoices"] if inv["rentalId"] == march_property.rental_ids[0]
    )

    first = await client.post("/payments", headers=TENANT_1, json={
        "type": "invoice",
        "invoiceId": invoice_id,
        "amount": 120,
        "paidAt": "2025-04-05T10:00:00",
        "paymentMethod": "YAPE",
        "reference": "YP-001"
    })
    assert first.status_code == 201
    assert first.json()["invoiceId"] == invoice_id
    assert first.json()["rentalId"] is None

    detail = (await client.get(f"/invoices/{invoice_id}", headers=TENANT_1)).json()
    assert detail["status"] == "UNPAID"
    assert detail["remainingBalance"] == 80

    second = await client.post("/payments", headers=TENANT_1, json={
        "type": "invoice",
        "invoiceId": invoice_id,
        "amount": 80,
        "paidAt": "2025-04-20T09:15:00",
        "paymentMethod": "CASH"
    })
    assert second.status_code == 201

    detail = (await client.get(f"/invoices/{invoice_id}", headers=TENANT_1)).json()
    assert detail["status"] == "PAID"
    assert detail["paidAt"].startswith("2025-04-20T09:15:00")
    assert detail["remainingBalance"] == 0

    payments = (await client.get(f"/payments/invoice/{invoice_id}", headers=TENANT_1)).json()
    assert [p["amount"] for p in payments] == [80, 120]


@pytest.mark.asyncio
async def test_payment_validation(client, march_property):
    rental_id = march_property.rental_ids[0]
    base = {"amount": 10, "paidAt": "2025-04-01T00:00:00", "paymentMethod": "CASH"}

    # rental type with an invoice id as well
    response = await client.post("/payments", headers=TENANT_1, json={
        **base, "type": "rental", "rentalId": rental_id, "invoiceId": 1
    })
    assert response.status_code == 400
    assert response.json()["error"] == "VALIDATION_ERROR"

    response = await client.post("/payments", headers=TENANT_1, json={
        **base, "type": "rental", "rentalId": rental_id, "amount": 0
    })
    assert response.status_code == 400

    response = await client.post("/payments", headers=TENANT_1, json={
        **base, "type": "rental", "rentalId": rental_id, "receiptUrl": "not a url"
    })
    assert response.status_code == 400

    response = await client.post("/payments", headers=TENANT_1, json={
        **base, "type": "rental", "rentalId": rental_id, "paymentMethod": "BITCOIN"
    })
    assert response.status_code == 400

    # Sub-cent amounts are rejected, not rounded
    response = await client.post("/payments", headers=TENANT_1, json={
        **base, "type": "rental", "rentalId": rental_id, "amount": "99.995"
    })
    assert response.status_code == 400
    assert response.json()["error"] == "VALIDATION_ERROR"


@pytest.mark.asyncio
async def test_rental_payments(client, march_property):
    rental_id = march_property.rental_ids[0]

    for paid_at in ("2025-03-01T08:00:00", "2025-05-01T08:00:00", "2025-04-01T08:00:00"):
        response = await client.post("/payments", headers=TENANT_1, json={
            "type": "rental",
            "rentalId": rental_id,
            "amount": "1500.00",
            "paidAt": paid_at,
            "paymentMethod": "BANK_TRANSFER",
            "receiptUrl": "https://files.example.com/receipts/1.pdf"
        })
        assert response.status_code == 201

    response = await client.get(f"/payments/rental/{rental_id}", headers=TENANT_1)
    assert response.status_code == 200
    assert [p["paidAt"][:10] for p in response.json()] == ["2025-05-01", "2025-04-01", "2025-03-01"]

    # Another tenant may neither pay into nor read this rental
    response = await client.post("/payments", headers=TENANT_2, json={
        "type": "rental", "rentalId": rental_id, "amount": 5,
        "paidAt": "2025-03-01T08:00:00", "paymentMethod": "CASH"
    })
    assert response.status_code == 403
    response = await client.get(f"/payments/rental/{rental_id}", headers=TENANT_2)
    assert response.status_code == 403
    assert response.json()["error"] == "RENTAL_ACCESS_DENIED"

    response = await client.get("/payments/rental/9999", headers=TENANT_1)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_bill_endpoints(client, march_property):
    body = {
        "propertyId": march_property.property_id,
        "periodStart": "2025-04-01",
        "periodEnd": "2025-04-30",
        "totalKwh": 400,
        "totalCost": 200
    }
    response = await client.post("/electricity-bills", json=body, headers=ADMIN)
    assert response.status_code == 201
    assert response.json()["costPerUnit"] == 0.5

    response = await client.post("/electricity-bills", json=body, headers=ADMIN)
    assert response.status_code == 409
    assert response.json()["error"] == "BILL_PERIOD_OVERLAP"

    response = await client.post("/electricity-bills", json=body, headers=TENANT_1)
    assert response.status_code == 403

    response = await client.get(f"/electricity-bills?propertyId={march_property.property_id}", headers=ADMIN)
    assert response.status_code == 200
    assert len(response.json()) == 2

    water = {
        "propertyId": march_property.property_id,
        "periodStart": "2025-04-01",
        "periodEnd": "2025-04-30",
        "totalConsumption": 20,
        "totalCost": 60
    }
    response = await client.post("/water-bills", json=water, headers=ADMIN)
    assert response.status_code == 201
    assert response.json()["costPerUnit"] == 3

    response = await client.get("/water-bills", headers=ADMIN)
    assert [b["totalConsumption"] for b in response.json()] == [20]

    response = await client.get("/water-bills", headers=TENANT_1)
    assert response.json() == []


@pytest.mark.asyncio
async def test_development_mode_attaches_details(client, march_property, monkeypatch):
    monkeypatch.setattr(config, "APP_ENV", "development")

    response = await client.get("/invoices/9999", headers=TENANT_1)
    body = response.json()
    assert response.status_code == 404
    assert body["errorId"] == response.headers["X-Error-ID"]
    assert body["details"]["name"] == "InvoiceNotFoundError"


@pytest.mark.asyncio
async def test_unexpected_error_is_generic_500(client, march_property, monkeypatch):
    async def boom(session, user_id, status=None):
        raise RuntimeError("connection reset by peer")

    monkeypatch.setattr(invoice_service, "get_user_invoices", boom)

    response = await client.get("/invoices", headers=TENANT_1)
    assert response.status_code == 500
    body = response.json()
    assert body == {
        "error": "INTERNAL_SERVER_ERROR",
        "message": "An unexpected error occurred. Please try again later."
    }
    assert "connection reset" not in response.text
