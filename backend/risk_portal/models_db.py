from sqlalchemy import Column, String, JSON, DateTime
from sqlalchemy.sql import func
from .database import Base

class CollectionRecord(Base):
    __tablename__ = "collections"
    key = Column(String, primary_key=True)   # users | academic_data | predictions | notifications | feedback | audit_logs
    payload = Column(JSON, nullable=False, default=list)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
