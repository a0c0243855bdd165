"""
Fixtures for API service tests.
"""

import pytest
from fastapi.testclient import TestClient

from shared.config import get_config
from service_api.app.caching import RedisCacheStore
from service_api.app.domain.users import UserStore
from service_api.app.main import ApiService


PASSWORD = "Sweet@2024"


@pytest.fixture
def api_config():
    return get_config("api", 5008, jwt_secret="test-secret-for-api-tests-0123456789", jwt_expires_seconds=3600)


@pytest.fixture
def api_service(api_config, fake_redis, clock):
    return ApiService(
        api_config,
        cache_store=RedisCacheStore("redis://fake:6379/0", client=fake_redis),
        user_store=UserStore(bcrypt_rounds=4),
        token_clock=clock,
    )


@pytest.fixture
def client(api_service):
    with TestClient(api_service.app) as test_client:
        yield test_client


@pytest.fixture
def register(client):
    """Register a user with ``role`` and return its bearer headers."""

    def _register(role: str = "owner", username: str = None):
        username = username or f"{role}_user"
        response = client.post("/api/auth/register", json={
            "username": username,
            "fullName": f"{role.title()} User",
            "email": f"{username}@sathira.lk",
            "password": PASSWORD,
            "contactNumber": "+94 71 234 5678",
            "role": role,
        })
        assert response.status_code == 201, response.text
        token = response.json()["data"]["token"]
        return {"Authorization": f"Bearer {token}"}

    return _register


@pytest.fixture
def product_payload():
    return {
        "name": "Milk Toffee",
        "productCode": "MT-001",
        "category": "sweets",
        "retailPrice": 250.0,
        "wholesalePrice": 180.0,
        "productType": "in-house",
        "minStockLevel": 10,
        "stock": 40,
    }
