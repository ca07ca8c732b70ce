"""
SaleHunter Test Suite

Tests are organized into:
- unit/: Pure components (security, geo, pricing, integrations, envelope)
- integration/: Services against an in-memory database, and the HTTP API
"""
