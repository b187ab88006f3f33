"""Services Layer — Store facade, route handlers, resource synthesis and the builder.

Invariants:
    - Handlers split by relation kind (one handle_*.py per route set)
    - Route sets come from explicit lists in resource.py (no auto-discovery)

Design Decisions:
    - One handler file per relation kind for locality (ADR: no god objects)
"""
