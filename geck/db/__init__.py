"""Database Layout — table definitions used by the SQL storage driver.

Invariants:
    - Only the SQL driver imports from this package

Design Decisions:
    - No migrations: tables are created on connect with checkfirst
"""
