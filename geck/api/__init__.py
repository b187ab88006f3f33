"""API Layer — FastAPI adapter, health routes and error handlers.

Invariants:
    - Routes registered explicitly in main.py (no auto-discovery)
    - All endpoints return structured JSON responses

Design Decisions:
    - Thin adapter: the route table's handlers hold all behaviour
"""
