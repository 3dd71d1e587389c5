from sqlalchemy import Column, String, DateTime, JSON
import uuid
from datetime import datetime
from app.database import Base


class AdminActivityLog(Base):
    __tablename__ = "admin_activity_log"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    admin_id = Column(String(36), nullable=True, index=True)
    action = Column(String(100), nullable=False, index=True)
    entity_type = Column(String(50), nullable=True, index=True)
    entity_id = Column(String(36), nullable=True)
    details = Column(JSON, nullable=True)  # {"old_values": {...}, "new_values": {...}}
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)
