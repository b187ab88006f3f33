"""Storage Drivers — backend implementations of the Driver protocol.

Invariants:
    - Every driver satisfies core/driver_protocol.Driver identically
    - Drivers are reached through DriverRegistry, never imported by route code

Design Decisions:
    - memory: reference driver with optional JSON snapshot
    - sql: SQLAlchemy async (SQLite via aiosqlite, PostgreSQL via asyncpg)
"""
