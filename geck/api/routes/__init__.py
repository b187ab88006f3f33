"""Route Modules — fixed operational routes (health) outside the derived table.

Invariants:
    - Each module defines its own APIRouter with prefix and tags

Design Decisions:
    - Explicit registration in main.py over auto-discovery
"""
