"""
Client SDK for the Sathira Sweet API.

Structure:
- app.http_client: ApiClient, bearer token injection and error classification.
- app.auth: Auth state manager, response normalization, landing pages.
- app.services: Products, suppliers, search and report downloads.
- app.notifications: Notification channel and message dispatch.
- app.storage / app.navigation: Persistent client state and current route.
- app.context: Builds one ClientContext wiring all of the above.
"""
