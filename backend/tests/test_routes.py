"""
API route tests.

Verifies:
- Unauthenticated requests return 401
- The sales role is denied admin operations (403)
- Status codes and bodies for products, sales, reports, users and settings
"""

import io
import json
import pytest

from conftest import login


# =============================================================================
# UNAUTHENTICATED ACCESS (401)
# =============================================================================


class TestUnauthenticatedAccess:
    @pytest.mark.parametrize(
        "method,path",
        [
            ("GET", "/api/auth/me"),
            ("GET", "/api/users"),
            ("GET", "/api/products"),
            ("POST", "/api/products"),
            ("GET", "/api/sales"),
            ("POST", "/api/sales"),
            ("GET", "/api/reports/summary"),
            ("GET", "/api/settings"),
            ("GET", "/api/settings/export"),
            ("POST", "/api/settings/reset"),
        ],
    )
    def test_requires_auth(self, client, default_users, method, path):
        resp = getattr(client, method.lower())(path)
        assert resp.status_code == 401, f"{method} {path} returned {resp.status_code}"

    def test_health_is_open(self, client, db_session):
        resp = client.get("/api/health")
        assert resp.status_code == 200
        assert resp.json["status"] == "healthy"


# =============================================================================
# SALES ROLE DENIED ADMIN OPERATIONS (403)
# =============================================================================


class TestSalesRoleDenied:
    @pytest.mark.parametrize(
        "method,path",
        [
            ("GET", "/api/users"),
            ("POST", "/api/users"),
            ("POST", "/api/products"),
            ("PUT", "/api/products/1"),
            ("DELETE", "/api/products/1"),
            ("GET", "/api/settings"),
            ("PUT", "/api/settings"),
            ("POST", "/api/settings/import"),
            ("POST", "/api/settings/reset"),
        ],
    )
    def test_forbidden(self, sales_client, method, path):
        resp = getattr(sales_client, method.lower())(path, json={})
        assert resp.status_code == 403

    def test_can_sell(self, sales_client, product):
        resp = sales_client.post("/api/sales", json={"items": [{"productId": product.id, "quantity": 1}]})
        assert resp.status_code == 201


class TestAuthRoutes:
    def test_login_me_logout(self, client, default_users):
        resp = login(client, "admin", "admin123")
        assert resp.status_code == 200
        assert resp.json["user"] == {"id": 1, "username": "admin", "role": "admin"}

        assert client.get("/api/auth/me").json["user"]["username"] == "admin"

        client.post("/api/auth/logout")
        assert client.get("/api/auth/me").status_code == 401

    def test_bad_credentials(self, client, default_users):
        assert login(client, "admin", "wrong").status_code == 401
        assert client.post("/api/auth/login", json={}).status_code == 400

    @pytest.mark.parametrize("body", [
        {"username": "admin", "password": 12345},
        {"username": ["admin"], "password": "admin123"},
    ])
    def test_non_string_credentials(self, client, default_users, body):
        resp = client.post("/api/auth/login", json=body)
        assert resp.status_code == 400
        assert client.get("/api/auth/me").status_code == 401


class TestUserRoutes:
    def test_create_update_delete(self, admin_client):
        resp = admin_client.post("/api/users", json={"username": "clerk", "password": "pw"})
        assert resp.status_code == 201
        user = resp.json["user"]
        assert user["role"] == "sales" and "password" not in user

        resp = admin_client.put(f"/api/users/{user['id']}", json={"role": "admin"})
        assert resp.json["user"]["role"] == "admin"

        assert admin_client.delete(f"/api/users/{user['id']}").status_code == 200
        assert admin_client.delete(f"/api/users/{user['id']}").status_code == 404

    def test_duplicate_username(self, admin_client):
        resp = admin_client.post("/api/users", json={"username": "sales", "password": "x"})
        assert resp.status_code == 409

    def test_cannot_delete_self_or_last_admin(self, admin_client):
        assert admin_client.delete("/api/users/1").status_code == 400
        assert admin_client.put("/api/users/1", json={"role": "sales"}).status_code == 409


class TestProductRoutes:
    def test_crud(self, admin_client):
        resp = admin_client.post("/api/products", json={
            "name": "Lamp", "category": "Home", "price": 24.5, "stock": 3,
        })
        assert resp.status_code == 201
        product_id = resp.json["id"]
        assert resp.json["price"] == 24.5

        resp = admin_client.put(f"/api/products/{product_id}", json={
            "name": "Lamp XL", "category": "Home", "price": 30, "stock": 2,
        })
        assert resp.status_code == 200 and resp.json["name"] == "Lamp XL"

        assert admin_client.get(f"/api/products/{product_id}").json["stock"] == 2
        assert admin_client.delete(f"/api/products/{product_id}").status_code == 200
        assert admin_client.get(f"/api/products/{product_id}").status_code == 404

    def test_validation_and_missing(self, admin_client):
        resp = admin_client.post("/api/products", json={"name": "Lamp", "category": "Home", "price": -1, "stock": 3})
        assert resp.status_code == 400
        resp = admin_client.put("/api/products/999", json={"name": "X", "category": "Y", "price": 1, "stock": 1})
        assert resp.status_code == 404

    def test_filters(self, admin_client, catalog):
        catalog.add({"name": "Kettle", "category": "Kitchen", "price": 30, "stock": 2})
        catalog.add({"name": "Toaster", "category": "Kitchen", "price": 40, "stock": 0})
        catalog.add({"name": "Sofa", "category": "Furniture", "price": 400, "stock": 9})

        names = lambda resp: [p["name"] for p in resp.json["items"]]
        assert names(admin_client.get("/api/products?search=kit")) == ["Kettle", "Toaster"]
        assert names(admin_client.get("/api/products?stock=out")) == ["Toaster"]
        assert names(admin_client.get("/api/products/available")) == ["Kettle", "Sofa"]
        assert admin_client.get("/api/products/categories").json["items"] == ["Furniture", "Kitchen"]
        assert admin_client.get("/api/products?stock=plenty").status_code == 400


class TestSaleRoutes:
    def test_commit_and_fetch(self, sales_client, product):
        resp = sales_client.post("/api/sales", json={
            "customerName": "Ada",
            "items": [{"productId": product.id, "quantity": 3}],
        })
        assert resp.status_code == 201
        sale = resp.json["sale"]
        assert sale["totalPrice"] == 60
        assert sale["items"][0] == {
            "productId": product.id, "productName": "Widget", "quantity": 3, "price": 20, "total": 60,
        }
        assert sale["date"].endswith("Z")

        assert sales_client.get(f"/api/sales/{sale['id']}").json["sale"]["customerName"] == "Ada"
        assert [s["id"] for s in sales_client.get("/api/sales?search=ada").json["items"]] == [sale["id"]]
        assert sales_client.get("/api/sales/1").status_code == 404
        assert [s["id"] for s in sales_client.get("/api/sales/recent?n=5").json["items"]] == [sale["id"]]

    def test_rejected_sale(self, sales_client, product):
        resp = sales_client.post("/api/sales", json={"items": [{"productId": product.id, "quantity": 99}]})
        assert resp.status_code == 400
        assert resp.json["error"] == "Insufficient stock to commit sale"
        assert sales_client.post("/api/sales", json={}).status_code == 400


class TestReportRoutes:
    def test_reports(self, admin_client, product):
        admin_client.post("/api/sales", json={"items": [{"productId": product.id, "quantity": 8}]})

        summary = admin_client.get("/api/reports/summary").json
        assert summary["total_sales"] == 1
        assert summary["total_revenue"] == 160
        assert summary["low_stock_count"] == 1
        assert len(summary["recent_sales"]) == 1

        top = admin_client.get("/api/reports/top-products?n=3").json["items"]
        assert top == [{"productId": product.id, "name": "Widget", "quantity": 8, "revenue": 160}]

        revenue = admin_client.get("/api/reports/revenue-by-date?window=today").json["items"]
        assert [r["revenue"] for r in revenue] == [160]

        low = admin_client.get("/api/reports/low-stock?threshold=2").json
        assert low["threshold"] == 2 and low["items"] == []

        dist = admin_client.get("/api/reports/category-distribution").json["items"]
        assert dist == [{"category": "Tools", "count": 1}]

    def test_saved_threshold_is_used(self, admin_client, product):
        admin_client.put("/api/settings", json={"lowStockThreshold": 11})
        assert admin_client.get("/api/reports/low-stock").json["threshold"] == 11

    def test_bad_window(self, admin_client):
        assert admin_client.get("/api/reports/summary?window=decade").status_code == 400


class TestSettingsRoutes:
    def test_get_and_save(self, admin_client):
        assert admin_client.get("/api/settings").json["companyName"] == "Inventory System"
        resp = admin_client.put("/api/settings", json={"companyName": "Corner Shop"})
        assert resp.json["companyName"] == "Corner Shop"
        assert admin_client.put("/api/settings", json={"lowStockThreshold": "many"}).status_code == 400

    def test_export_csv(self, admin_client, product):
        resp = admin_client.get("/api/settings/export?kind=products&format=csv&price_format=fixed")
        assert resp.status_code == 200
        assert resp.mimetype == "text/csv"
        assert "attachment; filename=products.csv" in resp.headers["Content-Disposition"]
        assert resp.get_data(as_text=True).splitlines()[1].endswith('"Widget","Tools",20.00,10')

    def test_export_backup_then_import(self, admin_client, product):
        backup = admin_client.get("/api/settings/export").get_data(as_text=True)
        admin_client.delete(f"/api/products/{product.id}")

        resp = admin_client.post("/api/settings/import", json={"kind": "backup", "content": backup})
        assert resp.status_code == 200
        assert [p["id"] for p in admin_client.get("/api/products").json["items"]] == [product.id]

    def test_import_upload(self, admin_client):
        data = {
            "kind": "products",
            "file": (io.BytesIO(b"Name,Price,Stock\nLamp,5,5\n"), "products.csv"),
        }
        resp = admin_client.post("/api/settings/import", data=data, content_type="multipart/form-data")
        assert resp.status_code == 200
        assert resp.json == {"kind": "products", "mode": "append", "imported": 1}

    def test_import_errors(self, admin_client):
        resp = admin_client.post("/api/settings/import", json={
            "kind": "products", "content": json.dumps([{"name": "", "price": 1, "stock": 1}]),
        })
        assert resp.status_code == 400
        assert resp.json["errors"] == ["Row 1: name is required"]
        assert admin_client.post("/api/settings/import", json={"content": "[]"}).status_code == 400

    def test_reset_keeps_users(self, admin_client, product):
        assert admin_client.post("/api/settings/reset", json={}).status_code == 400
        assert admin_client.post("/api/settings/reset", json={"confirm": True}).status_code == 200

        assert admin_client.get("/api/products").json["items"] == []
        assert admin_client.get("/api/auth/me").status_code == 200
