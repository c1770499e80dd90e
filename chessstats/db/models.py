"""
SQLAlchemy ORM Models – document table.

Every collection (accounts, usuaris, games, topPlayersDaily, web_activity,
accounts/{uid}/following, credentials) lives in one table keyed by
(collection, key) with a JSON body.
"""

from sqlalchemy import JSON, Column, DateTime, Index, Integer, String, UniqueConstraint, func
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    pass


class Document(Base):
    """A single JSON document inside a named collection."""

    __tablename__ = "documents"

    id = Column(Integer, primary_key=True, autoincrement=True)
    collection = Column(String, nullable=False)  # e.g. 'games' or 'accounts/<uid>/following'
    key = Column(String, nullable=False)
    data = Column(JSON().with_variant(JSONB, "postgresql"), nullable=False, default=dict)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        UniqueConstraint("collection", "key", name="uq_document_key"),
        Index("ix_documents_collection", "collection"),
    )
