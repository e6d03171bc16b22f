from sqlalchemy import JSON, Column, DateTime, String
from sqlalchemy.sql import func

from inventory_tracker.database import Base


class DocumentRecord(Base):
    """
    A single document of a named collection.

    Attributes:
        collection: Name of the collection the document belongs to
        key: Document key, unique within its collection
        fields: The document's field set, stored as JSON
        created_at: Timestamp when the document was first written
        updated_at: Timestamp of the last write
    """
    __tablename__ = "documents"

    collection = Column(String(255), primary_key=True)
    key = Column(String(1024), primary_key=True)
    fields = Column(JSON, nullable=False, default=dict)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    def __repr__(self):
        return f"<DocumentRecord(collection='{self.collection}', key='{self.key}')>"
