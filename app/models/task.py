"""Task model"""

from sqlalchemy import Column, Integer, String, Date, DateTime, Boolean, ForeignKey
from sqlalchemy.orm import relationship
from datetime import datetime
from app.core.database import Base

TASK_PRIORITIES = ("low", "medium", "high")
TASK_STATUSES = ("pending", "in_progress", "completed", "cancelled")
# statuts exclus du contexte envoyé à l'agent
TERMINAL_STATUSES = ("completed", "cancelled")


class Task(Base):
    __tablename__ = "tasks"
    
    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    
    title = Column(String(255), nullable=False)
    description = Column(String(1000), nullable=True)
    scheduled_date = Column(Date, nullable=True, index=True)
    scheduled_time = Column(String(5), nullable=True)  # HH:MM, sans fuseau
    priority = Column(String, nullable=False, default="medium")
    status = Column(String, nullable=False, default="pending")
    created_by_agent = Column(Boolean, nullable=False, default=False)
    
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    owner = relationship("User", back_populates="tasks")
