# app/models/access_log.py
from sqlalchemy import Column, Integer, String, Boolean, DateTime, func
from app.db.database import Base

class AccessLog(Base):
    __tablename__ = "access_logs"

    id = Column(Integer, primary_key=True, index=True)
    # not a foreign key: not_found attempts reference ids that were never issued
    endpoint_id = Column(String(36), nullable=False, index=True)
    timestamp = Column(DateTime(timezone=True), server_default=func.now(), index=True)
    success = Column(Boolean, nullable=False)
    auth_method = Column(String, nullable=False)  # scheme name, or not_found / inactive / error
    ip_address = Column(String, nullable=False, default="unknown")
    user_agent = Column(String, nullable=False, default="unknown")
