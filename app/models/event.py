"""
Event model
"""

from datetime import datetime
from sqlalchemy import Column, Integer, String, Boolean, Date, DateTime, Text
from sqlalchemy.orm import relationship

from app.core.db import Base

class Event(Base):
    __tablename__ = "events"

    id = Column(String(64), primary_key=True)
    # derived key, doubles as the legacy folder name and the logo directory
    folder = Column(String(255), unique=True, nullable=False, index=True)
    name = Column(String(255), nullable=False)
    date = Column(Date, nullable=False, index=True)
    time = Column(String(20))
    place = Column(String(255))
    is_race = Column(Boolean, nullable=False, default=False)
    age_limit = Column(String(20))
    max_child_age = Column(Integer)
    medical_required = Column(Boolean, default=False)
    team_event = Column(Boolean, default=False)
    gender_restriction = Column(String(50))
    description = Column(Text)
    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    participants = relationship("Participant", back_populates="event", cascade="all, delete-orphan")
    results = relationship("Result", back_populates="event", cascade="all, delete-orphan")

    @property
    def key(self) -> str:
        return self.folder
