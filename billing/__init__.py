"""
Billing dashboard package.

Provides:
- Configuration & endpoints for the account (payments) and order services
- Core domain enums & models
- Services for accounts, orders and settlement polling
- Application-level ReconciliationController and the FastAPI dashboard surface
"""
