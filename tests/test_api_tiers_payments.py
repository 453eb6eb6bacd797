"""
API tests for discount tiers, payments and monthly totals.
"""
from datetime import date
from decimal import Decimal

import pytest

from receipt_tracker.models.purchase_models import PurchaseStatus
from receipt_tracker.services.payment_service import calculate_purchase_status


async def _supplier(client, name="Golden Supplies", code="GS"):
    return (await client.post("/api/suppliers", json={"name": name, "code": code})).json()["data"]


async def _tier(client, supplier_id, threshold, rate, **extra):
    payload = {"supplier_id": supplier_id, "name": f"From {threshold}", "threshold": threshold, "discount_percentage": rate}
    payload.update(extra)
    return await client.post("/api/discount-tiers", json=payload)


async def _purchase(client, supplier_id, grams="100", day="2025-03-05", due_date="2025-04-30"):
    store = (await client.post("/api/stores", json={"name": f"Store {day}", "code": f"S-{day}-{grams}"})).json()["data"]
    response = await client.post("/api/purchases", json={
        "store_id": store["id"],
        "date": day,
        "due_date": due_date,
        "suppliers": [{"supplier_id": supplier_id, "receipts": [{"grams_21k": grams}]}],
    })
    return response.json()["data"]


# =============================================================================
# Suppliers
# =============================================================================


class TestSuppliers:

    async def test_duplicate_code_conflicts(self, client):
        await _supplier(client)
        response = await client.post("/api/suppliers", json={"name": "Another", "code": "GS"})
        assert response.status_code == 409

    async def test_delete_deactivates(self, client):
        supplier = await _supplier(client)
        assert (await client.delete(f"/api/suppliers/{supplier['id']}")).status_code == 200

        assert (await client.get("/api/suppliers")).json()["total"] == 0
        listed = (await client.get("/api/suppliers", params={"include_inactive": True})).json()
        assert listed["data"][0]["is_active"] is False

    async def test_inactive_supplier_cannot_receive_receipts(self, client):
        supplier = await _supplier(client)
        await client.delete(f"/api/suppliers/{supplier['id']}")
        store = (await client.post("/api/stores", json={"name": "S", "code": "S1"})).json()["data"]

        response = await client.post("/api/purchases", json={
            "store_id": store["id"],
            "date": "2025-03-05",
            "suppliers": [{"supplier_id": supplier["id"], "receipts": [{"grams_21k": "1"}]}],
        })
        assert response.status_code == 400


# =============================================================================
# Discount tiers
# =============================================================================


class TestDiscountTiers:

    async def test_create_and_list_for_supplier(self, client):
        supplier = await _supplier(client)
        for threshold, rate in [("500", "0.15"), ("0", "0"), ("200", "0.08")]:
            assert (await _tier(client, supplier["id"], threshold, rate)).status_code == 201

        body = (await client.get(f"/api/discount-tiers/supplier/{supplier['id']}")).json()
        assert body["total"] == 3
        assert [Decimal(t["threshold"]) for t in body["data"]] == [Decimal("0"), Decimal("200"), Decimal("500")]

    @pytest.mark.parametrize("rate", ["1.5", "-0.1", "8"])
    async def test_rate_must_be_a_fraction(self, client, rate):
        supplier = await _supplier(client)
        response = await _tier(client, supplier["id"], "100", rate)
        assert response.status_code == 422

    async def test_duplicate_threshold_conflicts(self, client):
        supplier = await _supplier(client)
        await _tier(client, supplier["id"], "100", "0.05")
        response = await _tier(client, supplier["id"], "100", "0.06")
        assert response.status_code == 409

    async def test_same_threshold_allowed_for_other_karat(self, client):
        supplier = await _supplier(client)
        await _tier(client, supplier["id"], "100", "0.05")
        response = await _tier(client, supplier["id"], "100", "0.06", karat_type="18")
        assert response.status_code == 201

    async def test_protected_tier_cannot_be_deleted(self, client):
        supplier = await _supplier(client)
        tier = (await _tier(client, supplier["id"], "0", "0", is_protected=True)).json()["data"]

        response = await client.delete(f"/api/discount-tiers/{tier['id']}")

        assert response.status_code == 403
        assert (await client.get(f"/api/discount-tiers/{tier['id']}")).status_code == 200

    async def test_update_queues_current_month_for_supplier(self, client):
        supplier = await _supplier(client)
        tier = (await _tier(client, supplier["id"], "0", "0")).json()["data"]
        await client.post("/api/recalculations/drain")

        response = await client.put(f"/api/discount-tiers/{tier['id']}", json={"discount_percentage": "0.02"})

        assert response.status_code == 200
        assert Decimal(response.json()["data"]["discount_percentage"]) == Decimal("0.02")
        (marker,) = (await client.get("/api/recalculations/pending")).json()["data"]
        assert marker["month"] == "2025-03"
        assert marker["supplier_id"] == supplier["id"]

    async def test_tier_change_reprices_current_month(self, client):
        supplier = await _supplier(client)
        tier = (await _tier(client, supplier["id"], "0", "0")).json()["data"]
        purchase = await _purchase(client, supplier["id"], grams="100")

        await client.put(f"/api/discount-tiers/{tier['id']}", json={"discount_percentage": "0.10"})
        await client.post("/api/recalculations/drain")

        refreshed = (await client.get(f"/api/purchases/{purchase['id']}")).json()["data"]
        assert Decimal(refreshed["receipts"][0]["discount_rate"]) == Decimal("0.10")
        assert Decimal(refreshed["total_net_fees"]) == Decimal("450")


# =============================================================================
# Payments
# =============================================================================


class TestPurchaseStatus:

    @pytest.mark.parametrize(
        "net, paid, due, expected",
        [
            ("100", "100", None, PurchaseStatus.PAID),
            ("100", "120", date(2025, 1, 1), PurchaseStatus.PAID),
            ("100", "40", None, PurchaseStatus.PARTIAL),
            ("100", "0", None, PurchaseStatus.PENDING),
            ("100", "40", date(2025, 3, 19), PurchaseStatus.OVERDUE),
            ("100", "0", date(2025, 3, 19), PurchaseStatus.OVERDUE),
            ("100", "0", date(2025, 3, 20), PurchaseStatus.PENDING),
        ],
    )
    def test_status_rules(self, net, paid, due, expected):
        assert calculate_purchase_status(Decimal(net), Decimal(paid), due, date(2025, 3, 20)) == expected


class TestPayments:

    async def test_partial_then_full_payment(self, client):
        supplier = await _supplier(client)
        purchase = await _purchase(client, supplier["id"], grams="100")

        first = await client.post("/api/payments", json={"purchase_id": purchase["id"], "date": "2025-03-15", "fees_paid": "200"})
        assert first.status_code == 201
        assert (await client.get(f"/api/purchases/{purchase['id']}")).json()["data"]["status"] == "Partial"

        await client.post("/api/payments", json={"purchase_id": purchase["id"], "date": "2025-03-16", "fees_paid": "300"})
        balance = (await client.get(f"/api/payments/purchase/{purchase['id']}/balance")).json()["data"]
        assert balance["status"] == "Paid"
        assert Decimal(balance["balance_due"]) == Decimal("0")
        assert Decimal(balance["total_fees_paid"]) == Decimal("500")

    async def test_overpayment_rejected(self, client):
        supplier = await _supplier(client)
        purchase = await _purchase(client, supplier["id"], grams="100")

        response = await client.post("/api/payments", json={"purchase_id": purchase["id"], "date": "2025-03-15", "fees_paid": "500.01"})

        assert response.status_code == 400
        assert "exceeds balance" in response.json()["detail"]

    async def test_payment_needs_an_amount(self, client):
        supplier = await _supplier(client)
        purchase = await _purchase(client, supplier["id"])
        response = await client.post("/api/payments", json={"purchase_id": purchase["id"], "date": "2025-03-15"})
        assert response.status_code == 422

    async def test_gram_payments_count_in_21k(self, client):
        supplier = await _supplier(client)
        purchase = await _purchase(client, supplier["id"], grams="100")

        await client.post("/api/payments", json={
            "purchase_id": purchase["id"], "date": "2025-03-15", "grams_paid": "70", "karat_type": "18",
        })

        balance = (await client.get(f"/api/payments/purchase/{purchase['id']}/balance")).json()["data"]
        assert Decimal(balance["total_grams_paid_21k"]) == Decimal("60")
        assert Decimal(balance["grams_due"]) == Decimal("40")

    async def test_deleting_payment_restores_status(self, client):
        supplier = await _supplier(client)
        purchase = await _purchase(client, supplier["id"], grams="100")
        payment = (await client.post("/api/payments", json={
            "purchase_id": purchase["id"], "date": "2025-03-15", "fees_paid": "500",
        })).json()["data"]

        assert (await client.delete(f"/api/payments/{payment['id']}")).status_code == 200

        refreshed = (await client.get(f"/api/purchases/{purchase['id']}")).json()["data"]
        assert refreshed["status"] == "Pending"

    async def test_update_payment_refreshes_status(self, client):
        supplier = await _supplier(client)
        purchase = await _purchase(client, supplier["id"], grams="100")
        payment = (await client.post("/api/payments", json={
            "purchase_id": purchase["id"], "date": "2025-03-15", "fees_paid": "200",
        })).json()["data"]

        response = await client.put(f"/api/payments/{payment['id']}", json={"fees_paid": "500"})

        assert response.status_code == 200
        assert Decimal(response.json()["data"]["fees_paid"]) == Decimal("500")
        refreshed = (await client.get(f"/api/purchases/{purchase['id']}")).json()["data"]
        assert refreshed["status"] == "Paid"

    async def test_update_payment_rejects_overpayment(self, client):
        supplier = await _supplier(client)
        purchase = await _purchase(client, supplier["id"], grams="100")
        await client.post("/api/payments", json={"purchase_id": purchase["id"], "date": "2025-03-14", "fees_paid": "300"})
        payment = (await client.post("/api/payments", json={
            "purchase_id": purchase["id"], "date": "2025-03-15", "fees_paid": "100",
        })).json()["data"]

        # 300 is paid elsewhere, so at most 200 fits
        response = await client.put(f"/api/payments/{payment['id']}", json={"fees_paid": "200.01"})

        assert response.status_code == 400
        unchanged = (await client.get(f"/api/payments/{payment['id']}")).json()["data"]
        assert Decimal(unchanged["fees_paid"]) == Decimal("100")

    async def test_update_unknown_payment(self, client):
        response = await client.put("/api/payments/999", json={"note": "late"})
        assert response.status_code == 404

    async def test_payments_by_karat(self, client):
        supplier = await _supplier(client)
        purchase = await _purchase(client, supplier["id"], grams="100")
        await client.post("/api/payments", json={
            "purchase_id": purchase["id"], "date": "2025-03-15", "grams_paid": "7", "karat_type": "18",
        })
        await client.post("/api/payments", json={"purchase_id": purchase["id"], "date": "2025-03-16", "fees_paid": "10"})

        body = (await client.get("/api/payments/karat/18")).json()
        assert body["total"] == 1
        assert body["data"][0]["karat_type"] == "18"
        assert (await client.get("/api/payments", params={"karat_type": "21"})).json()["total"] == 1
        assert (await client.get("/api/payments/karat/22")).status_code == 422

    async def test_unknown_purchase(self, client):
        response = await client.post("/api/payments", json={"purchase_id": 404, "date": "2025-03-15", "fees_paid": "1"})
        assert response.status_code == 404


# =============================================================================
# Monthly totals
# =============================================================================


class TestMonthlyTotals:

    async def test_current_month_total(self, client):
        supplier = await _supplier(client)
        await _purchase(client, supplier["id"], grams="120", day="2025-03-02")
        await _purchase(client, supplier["id"], grams="80", day="2025-02-02")

        current = (await client.get("/api/monthly-totals/current", params={"supplier_id": supplier["id"]})).json()["data"]
        assert current["month"] == "2025-03"
        assert Decimal(current["total_grams_21k"]) == Decimal("120")

        february = (await client.get("/api/monthly-totals/2025-02")).json()["data"]
        assert Decimal(february["total_grams_21k"]) == Decimal("80")

    async def test_history_and_summary(self, client):
        supplier = await _supplier(client)
        await _purchase(client, supplier["id"], grams="120", day="2025-03-02")

        history = (await client.get("/api/monthly-totals/history", params={"count": 2})).json()
        assert [m["month"] for m in history["data"]] == ["2025-03", "2025-02"]

        summary = (await client.get("/api/monthly-totals/2025-03/summary")).json()["data"]
        assert summary["purchase_count"] == 1
        assert summary["receipt_count"] == 1

    async def test_calculate_discount(self, client):
        supplier = await _supplier(client)
        await _tier(client, supplier["id"], "0", "0")
        await _tier(client, supplier["id"], "100", "0.05")
        await _purchase(client, supplier["id"], grams="150")

        response = await client.post("/api/monthly-totals/calculate-discount", json={
            "supplier_id": supplier["id"], "grams": "20", "karat_type": "21",
        })

        data = response.json()["data"]
        assert data["rank"] == "medium"
        assert Decimal(data["rate"]) == Decimal("0.05")
        assert Decimal(data["base_fee"]) == Decimal("100")
        assert Decimal(data["amount"]) == Decimal("5")
        assert data["degraded"] is False
