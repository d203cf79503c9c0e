# app/models/endpoint.py
from sqlalchemy import Column, Integer, String, Boolean, Text, DateTime, JSON, func
from app.db.database import Base

class ProtectedEndpoint(Base):
    __tablename__ = "protected_endpoints"

    id = Column(String(36), primary_key=True, index=True)
    owner_id = Column(String, nullable=False, index=True)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=False, default="")
    auth_type = Column(String, nullable=False)  # password, basic, apikey, oauth
    auth_config = Column(JSON, nullable=False, default=dict)
    is_active = Column(Boolean, nullable=False, default=True)
    access_count = Column(Integer, nullable=False, default=0)
    last_accessed_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
