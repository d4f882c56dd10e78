"""Integration tests for the client portal and dashboard endpoints"""

import pytest
from decimal import Decimal
from httpx import AsyncClient

from config import ApplicationConfig

API = ApplicationConfig.API_PREFIX


async def create_invoice(client: AsyncClient, payload: dict) -> dict:
    response = await client.post(f"{API}/invoices", json=payload)
    assert response.status_code == 201, response.text
    return response.json()


class TestPortalAPI:

    @pytest.mark.asyncio
    async def test_first_view_marks_viewed(self, client: AsyncClient, invoice_payload):
        invoice = await create_invoice(client, invoice_payload)
        await client.post(f"{API}/invoices/{invoice['invoice_id']}/send")

        response = await client.get(
            f"{API}/portal/invoices/{invoice['access_token']}", headers={"X-User-Id": ""}
        )

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "viewed"
        assert data["viewed_at"] is not None
        assert len(data["items"]) == 1

    @pytest.mark.asyncio
    async def test_draft_is_hidden(self, client: AsyncClient, invoice_payload):
        invoice = await create_invoice(client, invoice_payload)

        response = await client.get(f"{API}/portal/invoices/{invoice['access_token']}")

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "INVOICE_NOT_FOUND"

    @pytest.mark.asyncio
    async def test_unknown_token(self, client: AsyncClient):
        response = await client.get(f"{API}/portal/invoices/does-not-exist")

        assert response.status_code == 404


class TestDashboardAPI:

    @pytest.mark.asyncio
    async def test_counts_and_revenue(self, client: AsyncClient, invoice_payload):
        """
        Given: One draft, one sent and one paid 58,000 invoice
        When: The dashboard is requested
        Then: Revenue counts only the paid invoice and outstanding only the sent one
        """
        await create_invoice(client, invoice_payload)
        sent = await create_invoice(client, invoice_payload)
        await client.post(f"{API}/invoices/{sent['invoice_id']}/send")
        paid = await create_invoice(client, invoice_payload)
        await client.post(f"{API}/invoices/{paid['invoice_id']}/send")
        await client.post(f"{API}/invoices/{paid['invoice_id']}/payments", json={"amount": "58000"})

        response = await client.get(f"{API}/dashboard", params={"period": "month"})

        assert response.status_code == 200
        data = response.json()
        assert Decimal(data["total_revenue"]) == Decimal("58000.00")
        assert Decimal(data["revenue_this_period"]) == Decimal("58000.00")
        assert Decimal(data["outstanding"]) == Decimal("58000.00")
        assert data["draft_count"] == 1
        assert data["sent_count"] == 1
        assert data["paid_count"] == 1
        assert data["total_invoices"] == 3
        assert data["total_clients"] == 1
        assert len(data["recent_invoices"]) == 3

    @pytest.mark.asyncio
    async def test_unknown_period_falls_back_to_month(self, client: AsyncClient, owner):
        response = await client.get(f"{API}/dashboard", params={"period": "decade"})

        assert response.status_code == 200
        assert response.json()["period"] == "month"
        assert Decimal(response.json()["outstanding"]) == Decimal("0")
