"""
Client composition root.
"""

from dataclasses import dataclass
from typing import Any, Callable, Optional

import httpx

from shared.config import BaseConfig
from shared.logging import configure_logging
from .auth import AuthManager
from .http_client import ApiClient
from .navigation import Navigator
from .notifications import NotificationCenter, NotificationChannel
from .services import ProductService, ReportService, SearchService, SupplierService
from .storage import ClientStorage, FileStorage


@dataclass
class ClientContext:
    """Everything one client session needs, built once."""

    config: BaseConfig
    storage: ClientStorage
    navigator: Navigator
    client: ApiClient
    auth: AuthManager
    products: ProductService
    suppliers: SupplierService
    search: SearchService
    reports: ReportService
    notifications: NotificationCenter
    channel: NotificationChannel

    async def aclose(self) -> None:
        await self.client.close()


def create_client_context(
    config: Optional[BaseConfig] = None,
    *,
    storage: Optional[ClientStorage] = None,
    navigator: Optional[Navigator] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    connect: Optional[Callable[..., Any]] = None,
) -> ClientContext:
    config = config or BaseConfig()
    configure_logging("client", config.log_level)
    storage = storage or FileStorage(config.client_storage_path)
    navigator = navigator or Navigator()
    client = ApiClient(
        config.api_base_url,
        storage,
        navigator,
        timeout=config.request_timeout,
        transport=transport,
    )
    center = NotificationCenter()
    return ClientContext(
        config=config,
        storage=storage,
        navigator=navigator,
        client=client,
        auth=AuthManager(client, storage),
        products=ProductService(client),
        suppliers=SupplierService(client),
        search=SearchService(client),
        reports=ReportService(client, config.download_dir),
        notifications=center,
        channel=NotificationChannel(config.ws_url, storage, center, connect=connect),
    )
