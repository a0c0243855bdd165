"""
API service package for Sathira Sweet.

The API server fronts the distribution management data, enforcing:
- Authentication: bearer session tokens checked on every request
- Authorization: role checks on writes and reports
- Caching: cache-aside Redis layer for idempotent catalog reads
- Notifications: a WebSocket channel pushing stock and dashboard updates

Structure:
- app.main: FastAPI app, routes, and middleware wiring.
- app.auth: Token service and request authentication dependencies.
- app.caching: Cache store, response cache and its middleware.
- app.domain: Users, catalog, search and report generation.
- app.ws: Notification socket registry.
"""
