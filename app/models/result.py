"""
Race result model
"""

from sqlalchemy import Column, Integer, String, ForeignKey, Index
from sqlalchemy.orm import relationship

from app.core.db import Base

class Result(Base):
    __tablename__ = "results"

    id = Column(Integer, primary_key=True, autoincrement=True)
    event_id = Column(String(64), ForeignKey("events.id", ondelete="CASCADE"), nullable=False)
    date = Column(String(8), nullable=False)  # DDMMYYYY
    race_id = Column(Integer, nullable=False)  # heat number within the day
    # copied participant id, not a foreign key
    participant_id = Column(String(64), nullable=False)
    time = Column(String(50), nullable=False)

    # Relationships
    event = relationship("Event", back_populates="results")

    __table_args__ = (
        Index("idx_results_event_date", "event_id", "date"),
    )
