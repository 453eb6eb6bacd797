"""
API tests for stores, suppliers, purchases, receipts and the recalculation endpoints.
"""
from decimal import Decimal

import pytest


async def _setup(client):
    store = (await client.post("/api/stores", json={"name": "Downtown", "code": "DT"})).json()["data"]
    supplier = (await client.post("/api/suppliers", json={"name": "Golden Supplies", "code": "GS"})).json()["data"]
    for name, threshold, rate in [("Low", "0", "0"), ("Medium", "200", "0.08"), ("High", "500", "0.15")]:
        response = await client.post("/api/discount-tiers", json={
            "supplier_id": supplier["id"],
            "name": name,
            "threshold": threshold,
            "discount_percentage": rate,
        })
        assert response.status_code == 201
    # Tier creation queues work for the current month; clear it for the purchase tests
    await client.post("/api/recalculations/drain")
    return store, supplier


def _purchase_payload(store_id, supplier_id, day, receipts):
    return {
        "store_id": store_id,
        "date": day,
        "due_date": "2025-04-30",
        "suppliers": [{"supplier_id": supplier_id, "receipts": receipts}],
    }


class TestHealth:

    async def test_health_check(self, client):
        response = await client.get("/")
        assert response.status_code == 200
        assert response.json()["status"] == "ok"


class TestPurchases:

    async def test_create_purchase_with_receipts(self, client):
        store, supplier = await _setup(client)

        response = await client.post("/api/purchases", json=_purchase_payload(
            store["id"], supplier["id"], "2025-03-05",
            [{"grams_21k": "200"}, {"grams_18k": "70", "grams_21k": "40"}],
        ))

        assert response.status_code == 201
        body = response.json()
        assert body["message"] == "Purchase created successfully"
        purchase = body["data"]
        assert purchase["status"] == "Pending"
        assert [r["receipt_number"] for r in purchase["receipts"]] == [1, 2]
        assert Decimal(purchase["receipts"][1]["total_grams_21k"]) == Decimal("100")
        assert Decimal(purchase["total_grams_21k_equivalent"]) == Decimal("300")
        assert Decimal(purchase["total_base_fees"]) == Decimal("1500")
        assert purchase["suppliers"][0]["receipt_count"] == 2

    async def test_drain_applies_month_tier(self, client):
        store, supplier = await _setup(client)
        first = (await client.post("/api/purchases", json=_purchase_payload(
            store["id"], supplier["id"], "2025-03-05", [{"grams_21k": "300"}]
        ))).json()["data"]
        second = (await client.post("/api/purchases", json=_purchase_payload(
            store["id"], supplier["id"], "2025-03-10", [{"grams_21k": "250"}]
        ))).json()["data"]

        pending = (await client.get("/api/recalculations/pending")).json()
        assert pending["total"] == 2

        drained = (await client.post("/api/recalculations/drain")).json()["data"]
        assert drained == {"processed": 2, "failed": 0, "remaining": 0}

        first = (await client.get(f"/api/purchases/{first['id']}")).json()["data"]
        second = (await client.get(f"/api/purchases/{second['id']}")).json()["data"]
        assert Decimal(first["total_discount_amount"]) == Decimal("225")
        assert Decimal(second["total_discount_amount"]) == Decimal("187.50")
        assert Decimal(second["total_net_fees"]) == Decimal("1062.50")

    async def test_add_receipts_continues_numbering(self, client):
        store, supplier = await _setup(client)
        purchase = (await client.post("/api/purchases", json=_purchase_payload(
            store["id"], supplier["id"], "2025-03-05", [{"receipt_number": 4, "grams_21k": "10"}]
        ))).json()["data"]

        response = await client.post(
            f"/api/purchases/{purchase['id']}/suppliers/{supplier['id']}/receipts",
            json={"receipts": [{"grams_21k": "5"}, {"grams_21k": "5", "base_fees": "20"}]},
        )

        assert response.status_code == 201
        data = response.json()["data"]
        assert [r["receipt_number"] for r in data["receipts"]] == [4, 5, 6]
        assert Decimal(data["total_base_fees"]) == Decimal("95")

    async def test_duplicate_receipt_number_conflicts(self, client):
        store, supplier = await _setup(client)
        purchase = (await client.post("/api/purchases", json=_purchase_payload(
            store["id"], supplier["id"], "2025-03-05", [{"receipt_number": 1, "grams_21k": "10"}]
        ))).json()["data"]

        response = await client.post(
            f"/api/purchases/{purchase['id']}/suppliers/{supplier['id']}/receipts",
            json={"receipts": [{"receipt_number": 1, "grams_21k": "5"}]},
        )
        assert response.status_code == 409

    @pytest.mark.parametrize(
        "receipt",
        [
            {"grams_18k": "0", "grams_21k": "0"},
            {"grams_21k": "-5"},
            {"grams_21k": "abc"},
        ],
    )
    async def test_invalid_receipts_rejected(self, client, receipt):
        store, supplier = await _setup(client)
        response = await client.post("/api/purchases", json=_purchase_payload(
            store["id"], supplier["id"], "2025-03-05", [receipt]
        ))
        assert response.status_code == 422

    async def test_unknown_store_is_not_found(self, client):
        _, supplier = await _setup(client)
        response = await client.post("/api/purchases", json=_purchase_payload(
            999, supplier["id"], "2025-03-05", [{"grams_21k": "10"}]
        ))
        assert response.status_code == 404

    async def test_delete_purchase(self, client):
        store, supplier = await _setup(client)
        purchase = (await client.post("/api/purchases", json=_purchase_payload(
            store["id"], supplier["id"], "2025-03-05", [{"grams_21k": "10"}]
        ))).json()["data"]

        response = await client.delete(f"/api/purchases/{purchase['id']}")
        assert response.status_code == 200
        assert (await client.get(f"/api/purchases/{purchase['id']}")).status_code == 404

        pending = (await client.get("/api/recalculations/pending")).json()["data"]
        assert pending[-1]["month"] == "2025-03"
        assert pending[-1]["supplier_id"] is None

    async def test_list_filters_by_month(self, client):
        store, supplier = await _setup(client)
        for day in ("2025-03-05", "2025-04-02"):
            await client.post("/api/purchases", json=_purchase_payload(
                store["id"], supplier["id"], day, [{"grams_21k": "10"}]
            ))

        response = await client.get("/api/purchases", params={"month": "2025-04"})
        body = response.json()
        assert body["total"] == 1
        assert body["data"][0]["date"] == "2025-04-02"


class TestReceipts:

    async def test_edit_receipt_resums_purchase(self, client):
        store, supplier = await _setup(client)
        purchase = (await client.post("/api/purchases", json=_purchase_payload(
            store["id"], supplier["id"], "2025-03-05", [{"grams_21k": "10"}, {"grams_21k": "20"}]
        ))).json()["data"]
        receipt_id = purchase["receipts"][0]["id"]

        response = await client.put(
            f"/api/purchase-receipts/{receipt_id}", json={"grams_21k": "30", "base_fees": "150"}
        )

        assert response.status_code == 200
        assert Decimal(response.json()["data"]["base_fees"]) == Decimal("150")
        refreshed = (await client.get(f"/api/purchases/{purchase['id']}")).json()["data"]
        assert Decimal(refreshed["total_grams_21k_equivalent"]) == Decimal("50")
        assert Decimal(refreshed["total_base_fees"]) == Decimal("250")

    async def test_editing_weights_keeps_the_stored_fee(self, client):
        store, supplier = await _setup(client)
        purchase = (await client.post("/api/purchases", json=_purchase_payload(
            store["id"], supplier["id"], "2025-03-05", [{"grams_21k": "10", "base_fees": "80"}]
        ))).json()["data"]
        receipt_id = purchase["receipts"][0]["id"]

        response = await client.put(f"/api/purchase-receipts/{receipt_id}", json={"grams_18k": "7"})

        data = response.json()["data"]
        assert Decimal(data["total_grams_21k"]) == Decimal("16")
        assert Decimal(data["base_fees"]) == Decimal("80")
        assert Decimal(data["net_fees"]) == Decimal("80")

    async def test_create_single_receipt(self, client):
        store, supplier = await _setup(client)
        purchase = (await client.post("/api/purchases", json=_purchase_payload(
            store["id"], supplier["id"], "2025-03-05", [{"grams_21k": "10"}]
        ))).json()["data"]

        response = await client.post("/api/purchase-receipts", json={
            "purchase_id": purchase["id"], "supplier_id": supplier["id"], "grams_21k": "20",
        })

        assert response.status_code == 201
        receipt = response.json()["data"]
        assert receipt["receipt_number"] == 2
        assert Decimal(receipt["base_fees"]) == Decimal("100")
        refreshed = (await client.get(f"/api/purchases/{purchase['id']}")).json()["data"]
        assert Decimal(refreshed["total_grams_21k_equivalent"]) == Decimal("30")
        assert refreshed["suppliers"][0]["receipt_count"] == 2

    async def test_single_receipt_for_unknown_purchase(self, client):
        _, supplier = await _setup(client)
        response = await client.post("/api/purchase-receipts", json={
            "purchase_id": 999, "supplier_id": supplier["id"], "grams_21k": "20",
        })
        assert response.status_code == 404

    async def test_delete_receipt_resums_purchase(self, client):
        store, supplier = await _setup(client)
        purchase = (await client.post("/api/purchases", json=_purchase_payload(
            store["id"], supplier["id"], "2025-03-05", [{"grams_21k": "10"}, {"grams_21k": "20"}]
        ))).json()["data"]

        response = await client.delete(f"/api/purchase-receipts/{purchase['receipts'][0]['id']}")

        assert response.status_code == 200
        refreshed = (await client.get(f"/api/purchases/{purchase['id']}")).json()["data"]
        assert len(refreshed["receipts"]) == 1
        assert Decimal(refreshed["total_grams_21k_equivalent"]) == Decimal("20")
        assert refreshed["suppliers"][0]["receipt_count"] == 1

    async def test_delete_purchase_supplier_removes_its_receipts(self, client):
        store, supplier = await _setup(client)
        purchase = (await client.post("/api/purchases", json=_purchase_payload(
            store["id"], supplier["id"], "2025-03-05", [{"grams_21k": "10"}]
        ))).json()["data"]
        link_id = purchase["suppliers"][0]["id"]

        response = await client.delete(f"/api/purchase-suppliers/{link_id}")

        assert response.status_code == 200
        refreshed = (await client.get(f"/api/purchases/{purchase['id']}")).json()["data"]
        assert refreshed["receipts"] == []
        assert refreshed["suppliers"] == []
        assert Decimal(refreshed["total_net_fees"]) == Decimal("0")


class TestManualRecalculation:

    async def test_recalculate_month_endpoint(self, client):
        store, supplier = await _setup(client)
        await client.post("/api/purchases", json=_purchase_payload(
            store["id"], supplier["id"], "2025-03-05", [{"grams_21k": "600"}]
        ))

        response = await client.post("/api/recalculations/months/2025-03")

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["success"] is True
        assert data["total_updated"] == 1

    async def test_recalculate_supplier_defaults_to_current_month(self, client):
        _, supplier = await _setup(client)
        response = await client.post(f"/api/recalculations/suppliers/{supplier['id']}")
        data = response.json()["data"]
        assert data["month"] == "2025-03"
        assert data["updated"] == 0

    async def test_invalid_month_rejected(self, client):
        response = await client.post("/api/recalculations/months/2025-3")
        assert response.status_code == 422
