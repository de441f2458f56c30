"""
Pydantic schemas package
"""

from .common import *
from .event import *
from .participant import *
from .result import *

__all__ = [
    "StandardResponse",
    "ErrorResponse",
    "EventCreate",
    "EventUpdate",
    "EventSummary",
    "EventDetail",
    "ParticipantCreate",
    "ParticipantUpdate",
    "ParticipantResponse",
    "ResultItem",
    "ResultBatch",
    "ResultResponse",
]
