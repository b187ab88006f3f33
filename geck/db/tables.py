"""Collection Tables — SQLAlchemy Core table layout for one document collection.

Invariants:
    - pk is the native identity (autoincrement integer), never exposed to callers
    - record_id holds the public _id and is unique per collection
    - document holds every other field as JSON

Design Decisions:
    - Core Table over declarative models: collections are named at runtime by
      resource definitions, not known at import time
    - One MetaData per database URL (DriverContext), so each table is defined once
"""

from sqlalchemy import JSON, Column, Integer, MetaData, String, Table


def collection_table(metadata: MetaData, collection: str) -> Table:
    """Return (defining on first use) the table backing `collection`."""
    if collection in metadata.tables:
        return metadata.tables[collection]
    return Table(
        collection,
        metadata,
        Column("pk", Integer, primary_key=True, autoincrement=True),
        Column("record_id", String(255), nullable=False, unique=True, index=True),
        Column("document", JSON, nullable=False, default=dict),
    )
