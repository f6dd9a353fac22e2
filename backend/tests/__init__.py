"""
Pytest suite for the storefront back-office.

Test categories:
- Unit tests: pure rules, schemas and settings
- Integration tests: services and the order status engine against in-memory SQLite
"""
