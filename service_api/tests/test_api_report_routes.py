"""
Tests for report routes and service endpoints.
"""

import pytest
from fastapi.testclient import TestClient

from service_api.app.caching import RedisCacheStore
from service_api.app.domain.users import UserStore
from service_api.app.main import ApiService


PERIOD = "startDate=2024-01-01&endDate=2024-01-31"


class TestReports:

    def test_financial_report_pdf(self, client, register, product_payload):
        owner = register("owner")
        client.post("/api/products", headers=owner, json=product_payload)

        response = client.get(f"/api/reports/financial?{PERIOD}", headers=owner)

        assert response.status_code == 200
        assert response.headers["content-type"] == "application/pdf"
        assert response.content.startswith(b"%PDF")
        assert response.headers["content-disposition"] == (
            'attachment; filename="financial_report_2024-01-01_to_2024-01-31.pdf"'
        )
        assert "X-Cache" not in response.headers

    def test_inventory_report_json(self, client, register, product_payload):
        owner = register("owner")
        client.post("/api/products", headers=owner, json=dict(product_payload, stock=3))

        response = client.get(f"/api/reports/inventory?{PERIOD}&format=json", headers=owner)
        report = response.json()["data"]

        assert report["report"] == "inventory"
        assert report["period"] == {"startDate": "2024-01-01", "endDate": "2024-01-31"}
        assert report["summary"]["lowStockItems"] == 1
        assert report["rows"][0]["lowStock"] is True

    def test_product_performance_requires_product(self, client, register):
        response = client.get(
            f"/api/reports/product-performance?{PERIOD}&format=json",
            headers=register("owner"),
        )

        assert response.status_code == 400
        assert response.json()["errors"][0]["field"] == "productId"

    def test_product_performance_report(self, client, register, product_payload):
        owner = register("owner")
        product = client.post("/api/products", headers=owner, json=product_payload).json()["data"]

        response = client.get(
            f"/api/reports/product-performance?{PERIOD}&format=json&productId={product['_id']}",
            headers=owner,
        )

        summary = response.json()["data"]["summary"]
        assert summary["productId"] == product["_id"]
        assert summary["unitMargin"] == 70.0

    def test_invalid_period(self, client, register):
        response = client.get(
            "/api/reports/financial?startDate=2024-02-01&endDate=2024-01-01",
            headers=register("owner"),
        )

        assert response.status_code == 400
        assert response.json()["errors"][0]["field"] == "startDate"

    def test_unparseable_dates(self, client, register):
        response = client.get(
            "/api/reports/financial?startDate=yesterday&endDate=today",
            headers=register("owner"),
        )

        fields = [e["field"] for e in response.json()["errors"]]
        assert fields == ["startDate", "endDate"]

    @pytest.mark.parametrize("role,path,status", [
        ("warehouse_manager", "inventory", 200),
        ("warehouse_manager", "financial", 403),
        ("salesman", "inventory", 403),
        ("shop", "financial", 403),
    ])
    def test_report_roles(self, client, register, role, path, status):
        response = client.get(f"/api/reports/{path}?{PERIOD}&format=json", headers=register(role))
        assert response.status_code == status


class TestServiceEndpoints:

    def test_health_reports_redis(self, client):
        body = client.get("/health").json()

        assert body["service"] == "api"
        assert body["status"] == "ok"
        assert body["dependencies"] == {"redis": "ok"}

    def test_health_degrades_without_redis(self, api_config, failing_redis):
        service = ApiService(
            api_config,
            cache_store=RedisCacheStore("redis://fake:6379/0", client=failing_redis),
            user_store=UserStore(bcrypt_rounds=4),
        )
        with TestClient(service.app) as client:
            body = client.get("/health").json()

        assert body["status"] == "degraded"
        assert body["dependencies"] == {"redis": "error"}

    def test_metrics_exposes_cache_counters(self, client, register, product_payload):
        owner = register("owner")
        client.get("/api/products", headers=owner)
        client.get("/api/products", headers=owner)

        text = client.get("/metrics").text

        assert 'cache_hits_total{route="/api/products"} 1.0' in text
        assert 'cache_misses_total{route="/api/products"} 1.0' in text
        assert "http_requests_total" in text
