"""Core Layer — domain types, errors, definitions, routing types and contracts.

Invariants:
    - No module in core/ imports from services/, api/, drivers/, infrastructure/, or db/
    - No IO: core holds types, pure functions and the Completion channel

Design Decisions:
    - Functional core separated from imperative shell
"""
