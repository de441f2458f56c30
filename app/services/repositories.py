"""
Repository layer over the SQLite store.

Repositories only read and stage rows; committing and error translation are
the façade's job (see registration_service).
"""

from __future__ import annotations

from typing import Iterable, List, Optional

from sqlalchemy import delete, func
from sqlalchemy.orm import Session

from app.models import Event, Participant, Result


# -------- Event repository --------

class EventRepo:
    @staticmethod
    def list_all(db: Session) -> List[Event]:
        return db.query(Event).order_by(Event.date, Event.name).all()

    @staticmethod
    def get_by_key(db: Session, key: str) -> Optional[Event]:
        return db.query(Event).filter(Event.folder == key).first()

    @staticmethod
    def get_by_id(db: Session, event_id: str) -> Optional[Event]:
        return db.query(Event).filter(Event.id == event_id).first()

    @staticmethod
    def resolve(db: Session, identifier: str) -> Optional[Event]:
        """Look an event up by its key first, then by its opaque id"""
        return EventRepo.get_by_key(db, identifier) or EventRepo.get_by_id(db, identifier)

    @staticmethod
    def add(db: Session, event: Event) -> Event:
        db.add(event)
        db.flush()
        return event

    @staticmethod
    def remove(db: Session, event: Event) -> None:
        db.delete(event)
        db.flush()


# -------- Participant repository --------

class ParticipantRepo:
    @staticmethod
    def list_for_event(db: Session, event_id: str) -> List[Participant]:
        return db.query(Participant).filter(Participant.event_id == event_id).order_by(Participant.id).all()

    @staticmethod
    def get(db: Session, event_id: str, participant_id: str) -> Optional[Participant]:
        return db.query(Participant).filter(
            Participant.event_id == event_id,
            Participant.id == participant_id
        ).first()

    @staticmethod
    def exists(db: Session, participant_id: str) -> bool:
        return db.query(Participant.id).filter(Participant.id == participant_id).first() is not None

    @staticmethod
    def add(db: Session, participant: Participant) -> Participant:
        db.add(participant)
        db.flush()
        return participant

    @staticmethod
    def remove(db: Session, participant: Participant) -> None:
        db.delete(participant)
        db.flush()


# -------- Result repository --------

class ResultRepo:
    @staticmethod
    def max_heat(db: Session, event_id: str, occurrence_date: str) -> int:
        current = db.query(func.max(Result.race_id)).filter(
            Result.event_id == event_id,
            Result.date == occurrence_date
        ).scalar()
        return current or 0

    @staticmethod
    def add_batch(
        db: Session,
        event_id: str,
        occurrence_date: str,
        heat_id: int,
        items: Iterable,
    ) -> List[Result]:
        rows = [
            Result(
                event_id=event_id,
                date=occurrence_date,
                race_id=heat_id,
                participant_id=item.participant_ref,
                time=item.time,
            )
            for item in items
        ]
        db.add_all(rows)
        db.flush()
        return rows

    @staticmethod
    def list_for_event(db: Session, event_id: str) -> List[Result]:
        # DDMMYYYY is not sortable as text; order by its YYYYMMDD rearrangement
        return db.query(Result).filter(Result.event_id == event_id).order_by(
            func.substr(Result.date, 5, 4),
            func.substr(Result.date, 3, 2),
            func.substr(Result.date, 1, 2),
            Result.race_id,
            Result.participant_id,
        ).all()

    @staticmethod
    def delete_group(db: Session, event_id: str, occurrence_date: str) -> int:
        outcome = db.execute(
            delete(Result).where(
                Result.event_id == event_id,
                Result.date == occurrence_date
            )
        )
        return outcome.rowcount
