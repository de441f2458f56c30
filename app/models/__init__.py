"""
Database models package
"""

from .event import Event
from .participant import Participant
from .result import Result

__all__ = ["Event", "Participant", "Result"]
