"""
Tests for the notification socket registry and endpoint.
"""

import json
import time

import pytest
from unittest.mock import AsyncMock, MagicMock
from starlette.websockets import WebSocketDisconnect

from shared.errors import SathiraException
from shared.messages import DashboardUpdateMessage, InventoryAlertMessage
from shared.metrics import get_metrics_collector
from service_api.app.ws import NotificationConnectionManager


def fake_socket():
    websocket = MagicMock()
    websocket.send_text = AsyncMock()
    return websocket


def wait_for_connections(manager, count, timeout=2.0):
    deadline = time.monotonic() + timeout
    while len(manager.connections) < count:
        if time.monotonic() > deadline:
            raise AssertionError("notification socket was never registered")
        time.sleep(0.01)


class TestNotificationConnectionManager:

    @pytest.fixture
    def manager(self):
        return NotificationConnectionManager(max_connections=3, metrics=get_metrics_collector("api"))

    @pytest.mark.asyncio
    async def test_send_to_roles_targets_only_those_roles(self, manager):
        owner, keeper, salesman = fake_socket(), fake_socket(), fake_socket()
        manager.add_connection(owner, "u1", "owner")
        manager.add_connection(keeper, "u2", "warehouse_manager")
        manager.add_connection(salesman, "u3", "salesman")

        sent = await manager.send_to_roles(
            ["owner", "warehouse_manager"],
            DashboardUpdateMessage(dashboard="inventory", data={"lowStockItems": 2}),
        )

        assert sent == 2
        salesman.send_text.assert_not_called()
        frame = json.loads(owner.send_text.call_args.args[0])
        assert frame == {"type": "dashboard_update", "dashboard": "inventory", "data": {"lowStockItems": 2}}

    @pytest.mark.asyncio
    async def test_frames_use_wire_field_names(self, manager):
        socket = fake_socket()
        manager.add_connection(socket, "u1", "owner")

        await manager.send_to_user("u1", InventoryAlertMessage(
            product_id="p1", product_name="Kavum", current_stock=2, minimum_threshold=10,
        ))

        frame = json.loads(socket.send_text.call_args.args[0])
        assert frame["productId"] == "p1"
        assert frame["currentStock"] == 2

    @pytest.mark.asyncio
    async def test_dead_sockets_are_dropped(self, manager):
        dead = fake_socket()
        dead.send_text.side_effect = RuntimeError("socket closed")
        alive = fake_socket()
        manager.add_connection(dead, "u1", "owner")
        manager.add_connection(alive, "u2", "owner")

        sent = await manager.broadcast(DashboardUpdateMessage(dashboard="sales"))

        assert sent == 1
        assert len(manager.connections) == 1
        assert "u1" not in manager.user_connections

    def test_connection_limit(self, manager):
        for index in range(3):
            manager.add_connection(fake_socket(), f"u{index}", "shop")

        with pytest.raises(SathiraException) as exc_info:
            manager.add_connection(fake_socket(), "u4", "shop")

        assert exc_info.value.code == "CONNECTION_LIMIT_EXCEEDED"

    def test_remove_connection_updates_indexes(self, manager):
        connection_id = manager.add_connection(fake_socket(), "u1", "owner")
        manager.remove_connection(connection_id)
        manager.remove_connection(connection_id)

        assert manager.connections == {}
        assert manager.role_connections == {}
        assert manager.metrics.get_metric("active_connections")._value.get() == 0


class TestNotificationEndpoint:

    def test_invalid_token_closes_socket(self, client):
        with client.websocket_connect("/ws/notifications") as websocket:
            websocket.send_text(json.dumps({"type": "auth", "token": "bogus"}))
            with pytest.raises(WebSocketDisconnect) as exc_info:
                websocket.receive_text()

        assert exc_info.value.code == 4401

    def test_low_stock_write_pushes_alert_to_owner(self, client, register, api_service, product_payload):
        owner = register("owner")
        token = owner["Authorization"].split(" ", 1)[1]

        with client.websocket_connect("/ws/notifications") as websocket:
            websocket.send_text(json.dumps({"type": "auth", "token": token}))
            wait_for_connections(api_service.notifications, 1)

            client.post("/api/products", headers=owner, json=dict(product_payload, stock=2))

            alert = json.loads(websocket.receive_text())
            dashboard = json.loads(websocket.receive_text())

        assert alert["type"] == "inventory_alert"
        assert alert["productName"] == "Milk Toffee"
        assert alert["minimumThreshold"] == 10
        assert dashboard == {
            "type": "dashboard_update",
            "dashboard": "inventory",
            "data": {"totalProducts": 1, "totalStock": 2, "lowStockItems": 1},
        }
        wait_for_removal = time.monotonic() + 2.0
        while api_service.notifications.connections and time.monotonic() < wait_for_removal:
            time.sleep(0.01)
        assert api_service.notifications.connections == {}
