"""
Participant model
"""

from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey
from sqlalchemy.orm import relationship

from app.core.db import Base

class Participant(Base):
    __tablename__ = "participants"

    id = Column(String(64), primary_key=True)
    event_id = Column(String(64), ForeignKey("events.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    surname = Column(String(255), nullable=False)
    gender = Column(String(20))
    age = Column(Integer, nullable=False)
    email = Column(String(255))
    phone = Column(String(50))
    race_role = Column(String(100))
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    event = relationship("Event", back_populates="participants")

    @property
    def event_key(self) -> str:
        return self.event.folder if self.event else None
