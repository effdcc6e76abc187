"""
Integration tests: API routes over the SQL key/value backend.

conftest.py points DATABASE_URL at a temp SQLite file before the app is
imported, so the seeded catalog and customers start fresh for this module.
"""
import io
import json

import openpyxl
import pytest
from fastapi.testclient import TestClient

from pavilo.core.storage import INVOICES_KEY, get_storage
from pavilo.main import app

USER = {"X-User-Id": "user-42", "X-User-Email": "owner@shop.in"}


@pytest.fixture(scope="module")
def client():
    with TestClient(app, raise_server_exceptions=True) as c:
        yield c


def _create_invoice(client, quantity=2, customer_name="Asha"):
    """Draft → pick Basmati Rice → set quantity → finalize. Returns the invoice JSON."""
    draft = client.post("/api/drafts", json={"gstRate": 18}).json()
    line_id = draft["items"][0]["id"]
    client.put(f"/api/drafts/{draft['id']}/lines/{line_id}/product", json={"productId": "1"})
    client.patch(f"/api/drafts/{draft['id']}/lines/{line_id}", json={"quantity": quantity})
    client.patch(
        f"/api/drafts/{draft['id']}",
        json={"customer": {"name": customer_name, "phone": "9999900000"}},
    )
    r = client.post(f"/api/drafts/{draft['id']}/finalize")
    assert r.status_code == 201
    return r.json()


class TestHealth:
    def test_health(self, client):
        r = client.get("/api/health")
        assert r.status_code == 200
        data = r.json()
        assert data["status"] == "ok"
        assert data["storage"] == "ok"
        assert data["backend"] == "SqlStorage"

    def test_root(self, client):
        assert client.get("/").json()["docs"] == "/docs"


class TestCatalogEndpoints:
    def test_seeded_products(self, client):
        r = client.get("/api/products")
        assert r.status_code == 200
        names = [p["name"] for p in r.json()]
        assert names[:3] == ["Basmati Rice", "Wheat Flour", "Sugar"]

    def test_create_and_search_product(self, client):
        r = client.post("/api/products", json={"name": "Toor Dal", "rate": 120, "unit": "kg", "stock": 4, "minStock": 5})
        assert r.status_code == 201
        created = r.json()
        assert created["minStock"] == 5

        found = client.get("/api/products?q=toor").json()
        assert [p["id"] for p in found] == [created["id"]]
        low = client.get("/api/products/low-stock").json()
        assert created["id"] in [p["id"] for p in low]

    def test_create_product_without_name(self, client):
        r = client.post("/api/products", json={"name": "", "rate": 10})
        assert r.status_code == 422

    def test_product_not_found(self, client):
        assert client.get("/api/products/404404").status_code == 404

    def test_update_unknown_product_is_ignored(self, client):
        r = client.put("/api/products/404404", json={"rate": 1})
        assert r.status_code == 200
        assert r.json() is None

    def test_update_and_delete_product(self, client):
        created = client.post("/api/products", json={"name": "Jaggery", "rate": 60}).json()
        r = client.put(f"/api/products/{created['id']}", json={"rate": 65})
        assert r.json()["rate"] == 65
        assert client.delete(f"/api/products/{created['id']}").json()["status"] == "deleted"
        assert client.delete(f"/api/products/{created['id']}").json()["status"] == "ignored"

    def test_customers(self, client):
        r = client.get("/api/customers?q=priya")
        assert [c["name"] for c in r.json()] == ["Priya Sharma"]

        created = client.post("/api/customers", json={"name": "Meena", "phone": "+91 9000000000"})
        assert created.status_code == 201
        assert created.json()["totalOrders"] == 0

        missing_phone = client.post("/api/customers", json={"name": "No Phone", "phone": " "})
        assert missing_phone.status_code == 422


class TestDraftEndpoints:
    def test_draft_totals_preview(self, client):
        draft = client.post("/api/drafts", json={"gstRate": 18}).json()
        assert draft["committed"] is False
        line_id = draft["items"][0]["id"]

        r = client.patch(f"/api/drafts/{draft['id']}/lines/{line_id}", json={"quantity": 2, "rate": 50})
        data = r.json()
        assert data["items"][0]["amount"] == 100
        assert data["subtotal"] == 100
        assert data["gst"] == pytest.approx(18)
        assert data["total"] == pytest.approx(118)

    def test_last_line_survives_delete(self, client):
        draft = client.post("/api/drafts").json()
        line_id = draft["items"][0]["id"]
        r = client.delete(f"/api/drafts/{draft['id']}/lines/{line_id}")
        assert r.status_code == 200
        assert len(r.json()["items"]) == 1

    def test_add_and_remove_line(self, client):
        draft = client.post("/api/drafts").json()
        r = client.post(f"/api/drafts/{draft['id']}/lines")
        assert r.status_code == 201
        items = r.json()["items"]
        assert len(items) == 2
        r = client.delete(f"/api/drafts/{draft['id']}/lines/{items[1]['id']}")
        assert len(r.json()["items"]) == 1

    def test_paid_status_not_allowed_on_draft(self, client):
        draft = client.post("/api/drafts").json()
        r = client.patch(f"/api/drafts/{draft['id']}", json={"status": "Paid"})
        assert r.status_code == 422

    def test_negative_quantity_rejected(self, client):
        draft = client.post("/api/drafts").json()
        line_id = draft["items"][0]["id"]
        r = client.patch(f"/api/drafts/{draft['id']}/lines/{line_id}", json={"quantity": -1})
        assert r.status_code == 422

    def test_customer_patch_keeps_unsent_fields(self, client):
        draft = client.post("/api/drafts").json()
        client.patch(f"/api/drafts/{draft['id']}", json={"customer": {"name": "Asha", "phone": "999"}})
        r = client.patch(f"/api/drafts/{draft['id']}", json={"customer": {"address": "MG Road"}})
        assert r.json()["customer"] == {"name": "Asha", "phone": "999", "email": "", "address": "MG Road"}

    def test_unknown_draft(self, client):
        assert client.get("/api/drafts/nope").status_code == 404

    def test_finalize_closes_draft(self, client):
        draft = client.post("/api/drafts").json()
        assert client.post(f"/api/drafts/{draft['id']}/finalize").status_code == 201
        assert client.get(f"/api/drafts/{draft['id']}").status_code == 404


class TestInvoiceEndpoints:
    def test_finalized_invoice(self, client):
        invoice = _create_invoice(client)
        assert invoice["status"] == "Pending"
        assert invoice["items"][0]["name"] == "Basmati Rice"
        assert invoice["subtotal"] == 200
        assert invoice["total"] == pytest.approx(236)
        assert invoice["customer"]["name"] == "Asha"

        listed = client.get("/api/invoices").json()
        assert invoice["id"] in [i["id"] for i in listed]
        assert client.get(f"/api/invoices/{invoice['id']}").json()["gstRate"] == 18

    def test_unknown_invoice(self, client):
        assert client.get("/api/invoices/404404").status_code == 404
        assert client.post("/api/invoices/404404/pay").status_code == 404

    def test_pay_with_selected_method(self, client):
        invoice = _create_invoice(client)
        r = client.put(f"/api/invoices/{invoice['id']}/method", json={"method": "UPI"})
        assert r.json()["paymentMethod"] == "UPI"

        r = client.post(f"/api/invoices/{invoice['id']}/pay")
        assert r.status_code == 200
        payment = r.json()
        assert payment["method"] == "UPI"
        assert payment["amount"] == pytest.approx(236)

        assert client.get(f"/api/invoices/{invoice['id']}").json()["status"] == "Paid"
        payments = client.get(f"/api/payments?invoice_id={invoice['id']}").json()
        assert len(payments) == 1

    def test_pay_defaults_to_cash(self, client):
        invoice = _create_invoice(client, quantity=1)
        assert client.post(f"/api/invoices/{invoice['id']}/pay").json()["method"] == "Cash"

    def test_invalid_method(self, client):
        invoice = _create_invoice(client)
        r = client.put(f"/api/invoices/{invoice['id']}/method", json={"method": "Cheque"})
        assert r.status_code == 422

    def test_delete_requires_confirmation(self, client):
        invoice = _create_invoice(client)
        client.post(f"/api/invoices/{invoice['id']}/pay")

        assert client.delete(f"/api/invoices/{invoice['id']}").status_code == 400
        r = client.delete(f"/api/invoices/{invoice['id']}?confirm=true")
        assert r.json()["status"] == "deleted"
        assert client.get(f"/api/invoices/{invoice['id']}").status_code == 404
        # payment history is kept
        assert len(client.get(f"/api/payments?invoice_id={invoice['id']}").json()) == 1

    def test_preview_html(self, client):
        invoice = _create_invoice(client, customer_name="Preview Traders")
        r = client.get(f"/api/invoices/{invoice['id']}/preview")
        assert r.status_code == 200
        assert r.headers["content-type"].startswith("text/html")
        assert "Preview Traders" in r.text
        assert "<th>Product</th>" in r.text

    def test_pdf_download(self, client):
        invoice = _create_invoice(client)
        r = client.get(f"/api/invoices/{invoice['id']}/pdf")
        assert r.status_code == 200
        assert r.headers["content-type"] == "application/pdf"
        assert f"Invoice_{invoice['id']}.pdf" in r.headers["content-disposition"]
        assert r.content.startswith(b"%PDF")

    def test_xlsx_export(self, client):
        _create_invoice(client)
        r = client.get("/api/invoices/export/xlsx")
        assert r.status_code == 200
        wb = openpyxl.load_workbook(io.BytesIO(r.content))
        assert wb["Invoices"].max_row >= 2


class TestReportEndpoints:
    def test_dashboard(self, client):
        _create_invoice(client)
        data = client.get("/api/reports/dashboard").json()
        assert data["invoice_count"] >= 1
        assert data["total_sales"] > 0

    def test_monthly(self, client):
        rows = client.get("/api/reports/monthly?months=3").json()
        assert len(rows) == 3
        assert rows[-1]["orders"] >= 1

    def test_top_products_and_categories(self, client):
        _create_invoice(client)
        top = client.get("/api/reports/top-products?limit=1").json()
        assert top[0]["name"] == "Basmati Rice"
        categories = client.get("/api/reports/categories").json()
        assert "Grains" in [c["category"] for c in categories]


class TestSettingsEndpoints:
    def test_preferences(self, client):
        assert client.get("/api/settings/preferences").json() == {"language": "en", "darkMode": False}
        r = client.put("/api/settings/preferences", json={"language": "hi", "darkMode": True})
        assert r.json() == {"language": "hi", "darkMode": True}
        assert client.get("/api/settings/preferences").json()["language"] == "hi"

        assert client.put("/api/settings/preferences", json={"language": "fr"}).status_code == 422

    def test_business_profile(self, client):
        assert client.put("/api/settings/business", json={"phone": ""}).status_code == 422
        r = client.put("/api/settings/business", json={"businessName": "Asha Stores", "phone": "12345"})
        assert r.status_code == 200
        assert client.get("/api/settings/business").json()["businessName"] == "Asha Stores"

        invoice = _create_invoice(client)
        html = client.get(f"/api/invoices/{invoice['id']}/preview").text
        assert "Asha Stores" in html


class TestPlanEndpoints:
    def test_list_plans(self, client):
        plans = client.get("/api/plans").json()
        assert [p["key"] for p in plans] == ["basic", "pro", "advanced"]

    def test_subscribe_requires_login(self, client):
        assert client.post("/api/plans/pro/subscribe").status_code == 401

    def test_subscribe(self, client):
        r = client.post("/api/plans/pro/subscribe", headers=USER)
        assert r.status_code == 201
        data = r.json()
        assert data["planName"] == "pro"
        assert data["status"] == "pending"
        assert data["email"] == "owner@shop.in"

        mine = client.get("/api/plans/requests", headers=USER).json()
        assert [s["planName"] for s in mine] == ["pro"]

    def test_unknown_plan(self, client):
        assert client.post("/api/plans/gold/subscribe", headers=USER).status_code == 404


class TestUnreadableStoredData:
    def test_finalize_refused_over_invalid_history(self, client):
        storage = get_storage()
        original = client.get("/api/invoices").json()
        legacy = original + [{"id": "legacy", "items": [{"id": "x", "quantity": -1, "rate": 10, "amount": -10}]}]
        storage.save(INVOICES_KEY, json.dumps(legacy))
        try:
            draft = client.post("/api/drafts").json()
            r = client.post(f"/api/drafts/{draft['id']}/finalize")
            assert r.status_code == 409
            assert json.loads(storage.load(INVOICES_KEY)) == legacy
            # the draft stays open for a retry
            assert client.get(f"/api/drafts/{draft['id']}").json()["committed"] is False
        finally:
            storage.save(INVOICES_KEY, json.dumps(original))
        assert client.get("/api/invoices").json() == original
