"""
GigConnect backend test suite.

Markers:
- unit: services and helpers called directly against the SQLite session
- api: HTTP endpoints through the ASGI app with dependencies overridden
- integration: schema-level checks
"""
