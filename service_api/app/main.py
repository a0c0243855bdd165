"""
Sathira Sweet API service.
"""

import asyncio
import json
from typing import Any, Callable, Dict, Optional

from fastapi import Depends, Query, Request, WebSocket, WebSocketDisconnect
from fastapi.responses import JSONResponse, Response
from pydantic import ValidationError as PydanticValidationError

from shared.base_service import BaseService
from shared.config import ServiceConfig, get_config
from shared.errors import SathiraException
from shared.messages import AuthFrame, DashboardUpdateMessage, InventoryAlertMessage
from .auth import AuthMiddleware, TokenService, bearer_token
from .caching import (
    CACHE_KEY_PREFIX,
    CacheAsideMiddleware,
    CacheRule,
    RedisCacheStore,
    ResponseCache,
)
from .domain.catalog import (
    Product,
    ProductCatalog,
    ProductIn,
    ProductQuery,
    SupplierDirectory,
    SupplierIn,
    dump,
)
from .domain.reporting import ReportGenerationService, parse_period
from .domain.search import SearchService
from .domain.users import (
    ForgotPasswordRequest,
    LoginRequest,
    RegisterRequest,
    UpdatePasswordRequest,
    UserRecord,
    UserStore,
)
from .ws import NotificationConnectionManager


SEARCH_CACHE_TTL = 300
WS_AUTH_TIMEOUT = 10.0
WS_POLICY_VIOLATION = 4401
STOCK_WATCHERS = ("owner", "warehouse_manager")


def api_response(data: Any = None, message: str = "Success", status_code: int = 200) -> JSONResponse:
    """Standard success envelope."""
    return JSONResponse(
        status_code=status_code,
        content={"success": True, "message": message, "data": data},
    )


class ApiService(BaseService):
    """REST + WebSocket API for the distribution management system."""

    def __init__(
        self,
        config: Optional[ServiceConfig] = None,
        *,
        cache_store: Optional[RedisCacheStore] = None,
        user_store: Optional[UserStore] = None,
        token_clock: Optional[Callable[[], float]] = None,
    ):
        self._injected_cache_store = cache_store
        self._injected_user_store = user_store
        self._token_clock = token_clock
        super().__init__("api", 5008, config or get_config("api", 5008))

        @self.app.on_event("shutdown")
        async def _shutdown():
            await self.cache_store.close()

        self._setup_auth_routes()
        self._setup_product_routes()
        self._setup_supplier_routes()
        self._setup_search_routes()
        self._setup_report_routes()
        self._setup_notification_routes()

    def _setup_components(self):
        config = self.config
        self.cache_store = self._injected_cache_store or RedisCacheStore(config.redis_url)
        self.response_cache = ResponseCache(
            self.cache_store,
            default_ttl=config.cache_default_ttl,
            metrics=self.metrics,
        )

        token_kwargs: Dict[str, Any] = {}
        if self._token_clock is not None:
            token_kwargs["clock"] = self._token_clock
        self.token_service = TokenService(
            config.jwt_secret,
            algorithm=config.jwt_algorithm,
            expires_in=config.jwt_expires_seconds,
            **token_kwargs
        )
        self.user_store = self._injected_user_store or UserStore()
        self.auth = AuthMiddleware(self.token_service, self.user_store)

        self.products = ProductCatalog()
        self.suppliers = SupplierDirectory()
        self.search_service = SearchService(self.products, self.suppliers)
        self.reporting_service = ReportGenerationService(self.products)
        self.notifications = NotificationConnectionManager(metrics=self.metrics)

    def _setup_service_middleware(self):
        ttl = self.config.cache_default_ttl
        self.app.add_middleware(
            CacheAsideMiddleware,
            cache=self.response_cache,
            rules=[
                CacheRule("/api/products", ttl),
                CacheRule("/api/suppliers", ttl),
                CacheRule("/api/search", min(ttl, SEARCH_CACHE_TTL)),
            ],
            gate=self.auth.has_valid_session,
        )

    async def _check_dependencies(self) -> Dict[str, str]:
        try:
            await self.cache_store.ping()
            redis_status = "ok"
        except Exception as exc:
            self.logger.warning("Redis health check failed", error=str(exc))
            redis_status = "error"
        return {"redis": redis_status}

    async def _invalidate_catalog(self, collection: str) -> None:
        """Drop cached reads affected by a catalog write."""
        await self.response_cache.invalidate(f"{CACHE_KEY_PREFIX}/api/{collection}*")
        await self.response_cache.invalidate(f"{CACHE_KEY_PREFIX}/api/search*")

    async def _announce_stock(self, product: Product) -> None:
        if product.below_minimum:
            await self.notifications.send_to_roles(
                STOCK_WATCHERS,
                InventoryAlertMessage(
                    product_id=product.id,
                    product_name=product.name,
                    current_stock=product.stock,
                    minimum_threshold=product.min_stock_level,
                ),
            )
        active = self.products.all_active()
        await self.notifications.send_to_roles(
            STOCK_WATCHERS,
            DashboardUpdateMessage(
                dashboard="inventory",
                data={
                    "totalProducts": len(active),
                    "totalStock": sum(p.stock for p in active),
                    "lowStockItems": sum(1 for p in active if p.below_minimum),
                },
            ),
        )

    def _setup_auth_routes(self):
        """Set up authentication routes."""
        current_user = self.auth.current_user

        @self.app.post("/api/auth/register")
        async def register(payload: RegisterRequest):
            user = self.user_store.create(payload)
            token = self.token_service.issue(user.id, user.role)
            return api_response(
                {"user": user.to_public(), "token": token},
                "User registered successfully",
                201,
            )

        @self.app.post("/api/auth/login")
        async def login(payload: LoginRequest):
            user = self.user_store.authenticate(payload.username, payload.password)
            token = self.token_service.issue(user.id, user.role)
            self.logger.info("User logged in", user_id=user.id, role=user.role)
            return api_response({"user": user.to_public(), "token": token}, "Login successful")

        @self.app.get("/api/auth/me")
        @self.app.get("/api/auth/current-user")
        async def me(user: UserRecord = Depends(current_user)):
            return api_response(user.to_public())

        @self.app.post("/api/auth/logout")
        async def logout(request: Request):
            token = bearer_token(request.headers.get("Authorization"))
            if token:
                self.token_service.revoke(token)
            return api_response(None, "Logged out successfully")

        @self.app.put("/api/auth/update-password")
        async def update_password(payload: UpdatePasswordRequest, user: UserRecord = Depends(current_user)):
            self.user_store.update_password(user, payload)
            return api_response(None, "Password updated successfully")

        @self.app.post("/api/auth/forgot-password")
        async def forgot_password(payload: ForgotPasswordRequest):
            self.user_store.request_password_reset(payload.email)
            return api_response(
                None,
                "If an account exists for this email, password reset instructions have been sent",
            )

    def _setup_product_routes(self):
        """Set up product routes."""
        current_user = self.auth.current_user
        owner_only = self.auth.require_roles("owner")

        @self.app.get("/api/products")
        async def list_products(
            user: UserRecord = Depends(current_user),
            category: Optional[str] = None,
            search: Optional[str] = None,
            min_price: Optional[float] = Query(None, alias="minPrice", ge=0),
            max_price: Optional[float] = Query(None, alias="maxPrice", ge=0),
            sort_by: str = Query("createdAt", alias="sortBy"),
            sort_order: str = Query("desc", alias="sortOrder", pattern="^(asc|desc)$"),
            limit: int = Query(10, ge=1, le=100),
            page: int = Query(1, ge=1),
        ):
            query = ProductQuery(
                category=category,
                search=search,
                min_price=min_price,
                max_price=max_price,
                sort_by=sort_by,
                sort_order=sort_order,
                limit=limit,
                page=page,
            )
            return api_response(self.products.list(query))

        @self.app.get("/api/products/{product_id}")
        async def get_product(product_id: str, user: UserRecord = Depends(current_user)):
            return api_response(dump(self.products.get(product_id)))

        @self.app.post("/api/products")
        async def create_product(payload: ProductIn, user: UserRecord = Depends(owner_only)):
            product = self.products.create(payload)
            await self._invalidate_catalog("products")
            await self._announce_stock(product)
            return api_response(dump(product), "Product created successfully", 201)

        @self.app.put("/api/products/{product_id}")
        async def update_product(product_id: str, payload: ProductIn, user: UserRecord = Depends(owner_only)):
            product = self.products.update(product_id, payload)
            await self._invalidate_catalog("products")
            await self._announce_stock(product)
            return api_response(dump(product), "Product updated successfully")

        @self.app.put("/api/products/{product_id}/deactivate")
        async def deactivate_product(product_id: str, user: UserRecord = Depends(owner_only)):
            product = self.products.deactivate(product_id)
            await self._invalidate_catalog("products")
            return api_response(dump(product), "Product deactivated successfully")

    def _setup_supplier_routes(self):
        """Set up supplier routes."""
        current_user = self.auth.current_user
        owner_only = self.auth.require_roles("owner")

        @self.app.get("/api/suppliers")
        async def list_suppliers(search: Optional[str] = None, user: UserRecord = Depends(current_user)):
            return api_response([dump(s) for s in self.suppliers.list(search)])

        @self.app.get("/api/suppliers/{supplier_id}")
        async def get_supplier(supplier_id: str, user: UserRecord = Depends(current_user)):
            return api_response(dump(self.suppliers.get(supplier_id)))

        @self.app.post("/api/suppliers")
        async def create_supplier(payload: SupplierIn, user: UserRecord = Depends(owner_only)):
            supplier = self.suppliers.create(payload)
            await self._invalidate_catalog("suppliers")
            return api_response(dump(supplier), "Supplier created successfully", 201)

        @self.app.put("/api/suppliers/{supplier_id}")
        async def update_supplier(supplier_id: str, payload: SupplierIn, user: UserRecord = Depends(owner_only)):
            supplier = self.suppliers.update(supplier_id, payload)
            await self._invalidate_catalog("suppliers")
            return api_response(dump(supplier), "Supplier updated successfully")

        @self.app.delete("/api/suppliers/{supplier_id}")
        async def delete_supplier(supplier_id: str, user: UserRecord = Depends(owner_only)):
            self.suppliers.delete(supplier_id)
            await self._invalidate_catalog("suppliers")
            return api_response(None, "Supplier deleted successfully")

    def _setup_search_routes(self):
        """Set up search routes."""
        current_user = self.auth.current_user

        @self.app.get("/api/search/products")
        async def search_products(q: str = Query("", max_length=100), user: UserRecord = Depends(current_user)):
            return api_response(self.search_service.search_products(q))

        @self.app.get("/api/search/suppliers")
        async def search_suppliers(q: str = Query("", max_length=100), user: UserRecord = Depends(current_user)):
            return api_response(self.search_service.search_suppliers(q))

        @self.app.get("/api/search/global")
        async def global_search(q: str = Query("", max_length=100), user: UserRecord = Depends(current_user)):
            return api_response(self.search_service.global_search(q))

    def _report_response(self, report: Dict[str, Any], fmt: str) -> Response:
        if fmt == "json":
            return api_response(report)
        pdf = self.reporting_service.render_pdf(report)
        period = report["period"]
        filename = f"{report['report']}_report_{period['startDate']}_to_{period['endDate']}.pdf"
        return Response(
            content=pdf,
            media_type="application/pdf",
            headers={"Content-Disposition": f'attachment; filename="{filename}"'},
        )

    def _setup_report_routes(self):
        """Set up report routes."""
        owner_only = self.auth.require_roles("owner")
        stock_readers = self.auth.require_roles(*STOCK_WATCHERS)

        @self.app.get("/api/reports/financial")
        async def financial_report(
            start_date: str = Query(..., alias="startDate"),
            end_date: str = Query(..., alias="endDate"),
            fmt: str = Query("pdf", alias="format", pattern="^(pdf|json)$"),
            user: UserRecord = Depends(owner_only),
        ):
            start, end = parse_period(start_date, end_date)
            return self._report_response(self.reporting_service.financial(start, end), fmt)

        @self.app.get("/api/reports/inventory")
        async def inventory_report(
            start_date: str = Query(..., alias="startDate"),
            end_date: str = Query(..., alias="endDate"),
            fmt: str = Query("pdf", alias="format", pattern="^(pdf|json)$"),
            user: UserRecord = Depends(stock_readers),
        ):
            start, end = parse_period(start_date, end_date)
            return self._report_response(self.reporting_service.inventory(start, end), fmt)

        @self.app.get("/api/reports/product-performance")
        async def product_report(
            start_date: str = Query(..., alias="startDate"),
            end_date: str = Query(..., alias="endDate"),
            product_id: Optional[str] = Query(None, alias="productId"),
            fmt: str = Query("pdf", alias="format", pattern="^(pdf|json)$"),
            user: UserRecord = Depends(owner_only),
        ):
            start, end = parse_period(start_date, end_date)
            report = self.reporting_service.product_performance(product_id, start, end)
            return self._report_response(report, fmt)

    def _setup_notification_routes(self):
        """Set up the notification WebSocket."""

        @self.app.websocket("/ws/notifications")
        async def notifications_endpoint(websocket: WebSocket):
            await websocket.accept()
            try:
                raw = await asyncio.wait_for(websocket.receive_text(), timeout=WS_AUTH_TIMEOUT)
                frame = AuthFrame.model_validate(json.loads(raw))
                claims = self.token_service.decode(frame.token)
                user = self.user_store.get(claims["sub"])
            except (asyncio.TimeoutError, ValueError, PydanticValidationError, SathiraException) as exc:
                self.logger.warning("Notification socket rejected", error=str(exc))
                await websocket.close(code=WS_POLICY_VIOLATION)
                return
            except WebSocketDisconnect:
                return

            try:
                connection_id = self.notifications.add_connection(websocket, user.id, user.role)
            except SathiraException as exc:
                self.logger.warning("Notification socket refused", error=exc.message)
                await websocket.close(code=1013)
                return

            try:
                while True:
                    # Client frames carry nothing but keepalives
                    await websocket.receive_text()
            except WebSocketDisconnect:
                pass
            finally:
                self.notifications.remove_connection(connection_id)


def create_app(config: Optional[ServiceConfig] = None, **kwargs):
    """Create the FastAPI application."""
    service = ApiService(config, **kwargs)
    return service.app


if __name__ == "__main__":
    ApiService().run()
