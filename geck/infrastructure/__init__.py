"""Infrastructure Layer — database sessions, snapshot files and logging setup.

Invariants:
    - Backend failures are wrapped into StorageFailureError at this boundary

Design Decisions:
    - Thin wrappers over SQLAlchemy and the filesystem (ADR: single responsibility)
"""
