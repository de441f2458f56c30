"""
Registration service: the single entry point route handlers use.

Resolves the external event identifier (derived key or opaque id), enforces
cross-entity rules, and turns SQLAlchemy failures into domain errors.
"""

import logging
import re
from contextlib import contextmanager
from typing import Dict, List, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.errors import Conflict, InvalidInput, NotFound, RegistrationError, StorageFailure
from app.models import Event, Participant
from app.schemas.event import EventCreate, EventDetail, EventSummary, EventUpdate
from app.schemas.participant import ParticipantCreate, ParticipantResponse
from app.schemas.result import ResultBatch, ResultResponse
from app.services.identifiers import (
    derive_event_key,
    new_event_id,
    new_participant_id,
    normalize_occurrence_date,
    today_occurrence_date,
)
from app.services.logo_service import LogoService
from app.services.repositories import EventRepo, ParticipantRepo, ResultRepo

logger = logging.getLogger(__name__)

_MIN_AGE = re.compile(r"^\s*(\d+)\s*\+\s*$")
_AGE_RANGE = re.compile(r"^\s*(\d+)\s*-\s*(\d+)\s*$")

_UNRESTRICTED = {"", "none", "any", "all", "mixed"}
_GENDER_ALIASES = {
    "m": "male", "male": "male", "man": "male", "men": "male",
    "ч": "male", "чоловік": "male", "чоловіки": "male", "чоловіча": "male",
    "f": "female", "female": "female", "woman": "female", "women": "female",
    "ж": "female", "жінка": "female", "жінки": "female", "жіноча": "female",
}


def _normalize_gender(value: Optional[str]) -> str:
    text = (value or "").strip().lower()
    return _GENDER_ALIASES.get(text, text)


@contextmanager
def _storage(db: Session, action: str, commit: bool = True, conflict_message: Optional[str] = None):
    """Run a unit of work, committing on success and rolling back on any failure"""
    try:
        yield
        if commit:
            db.commit()
    except RegistrationError:
        db.rollback()
        raise
    except IntegrityError as e:
        db.rollback()
        if conflict_message:
            raise Conflict(conflict_message) from e
        logger.exception(f"Integrity error while {action}")
        raise StorageFailure(f"Storage failure while {action}") from e
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception(f"Storage failure while {action}")
        raise StorageFailure(f"Storage failure while {action}") from e


class RegistrationService:
    """Storage façade over events, participants and results"""

    # -------- payload helpers --------

    @staticmethod
    def event_summary(event: Event) -> Dict:
        summary = EventSummary.model_validate(event)
        summary.logo_url = LogoService.get_logo_url(event.folder)
        return summary.model_dump(by_alias=True, mode="json")

    @staticmethod
    def event_detail(event: Event) -> Dict:
        detail = EventDetail.model_validate(event)
        detail.logo_url = LogoService.get_logo_url(event.folder)
        detail.logo_present = detail.logo_url is not None
        return detail.model_dump(by_alias=True, mode="json")

    @staticmethod
    def participant_payload(participant: Participant) -> Dict:
        return ParticipantResponse.model_validate(participant).model_dump(by_alias=True)

    @staticmethod
    def result_payload(event: Event, result) -> Dict:
        return ResultResponse(
            id=result.id,
            event_key=event.folder,
            occurrence_date=result.date,
            heat_id=result.race_id,
            participant_ref=result.participant_id,
            time=result.time,
        ).model_dump(by_alias=True)

    # -------- events --------

    @staticmethod
    def resolve_event(db: Session, identifier: str) -> Event:
        with _storage(db, "looking up event", commit=False):
            event = EventRepo.resolve(db, identifier)
        if not event:
            raise NotFound("Event")
        return event

    @staticmethod
    def list_events(db: Session) -> List[Dict]:
        with _storage(db, "listing events", commit=False):
            events = EventRepo.list_all(db)
        return [RegistrationService.event_summary(event) for event in events]

    @staticmethod
    def get_event(db: Session, identifier: str) -> Dict:
        event = RegistrationService.resolve_event(db, identifier)
        return RegistrationService.event_detail(event)

    @staticmethod
    def _store_logo(event_key: str, img) -> None:
        try:
            LogoService.store_logo(event_key, img)
        except OSError as e:
            logger.exception(f"Could not write logo for event {event_key}")
            raise StorageFailure("Storage failure while writing logo") from e

    @staticmethod
    def create_event(db: Session, data: EventCreate, logo_content: Optional[bytes] = None) -> Dict:
        """Create an event; the key is derived once here and never again"""
        key = derive_event_key(data.date, data.name)
        event_id = data.id or new_event_id()
        conflict = f"Event '{key}' already exists"
        img = LogoService.prepare_logo(logo_content) if logo_content else None

        with _storage(db, "creating event", conflict_message=conflict):
            # keys and ids share one lookup namespace
            if EventRepo.get_by_key(db, key) or EventRepo.get_by_id(db, key):
                raise Conflict(conflict)
            if EventRepo.get_by_id(db, event_id) or EventRepo.get_by_key(db, event_id):
                raise Conflict(f"Event id '{event_id}' already exists")

            event = Event(id=event_id, folder=key, **data.model_dump(exclude={"id"}))
            EventRepo.add(db, event)

        if img is not None:
            try:
                RegistrationService._store_logo(key, img)
            except StorageFailure:
                with _storage(db, "removing event without logo"):
                    EventRepo.remove(db, event)
                raise

        db.refresh(event)
        logger.info(f"Created event {key} ({event.id})")
        return RegistrationService.event_detail(event)

    @staticmethod
    def update_event(db: Session, identifier: str, data: EventUpdate, logo_content: Optional[bytes] = None) -> Dict:
        """Overwrite every mutable field; id and key stay as they are"""
        event = RegistrationService.resolve_event(db, identifier)
        img = LogoService.prepare_logo(logo_content) if logo_content else None

        with _storage(db, "updating event"):
            for field, value in data.model_dump().items():
                setattr(event, field, value)
        if img is not None:
            RegistrationService._store_logo(event.folder, img)

        db.refresh(event)
        logger.info(f"Updated event {event.folder}")
        return RegistrationService.event_detail(event)

    @staticmethod
    def delete_event(db: Session, identifier: str) -> Dict:
        event = RegistrationService.resolve_event(db, identifier)
        key, event_id = event.folder, event.id
        with _storage(db, "deleting event"):
            EventRepo.remove(db, event)
        LogoService.remove_logo(key)
        logger.info(f"Deleted event {key} with its participants and results")
        return {"id": event_id, "key": key}

    @staticmethod
    def upload_logo(db: Session, identifier: str, file_content: bytes) -> Dict:
        event = RegistrationService.resolve_event(db, identifier)
        LogoService.save_logo(event.folder, file_content)
        return {"key": event.folder, "logoUrl": LogoService.get_logo_url(event.folder)}

    # -------- participants --------

    @staticmethod
    def check_restrictions(event: Event, data: ParticipantCreate) -> None:
        """Reject participants the event's age or gender restriction excludes"""
        errors = []

        limit = (event.age_limit or "").strip()
        minimum = _MIN_AGE.match(limit)
        age_range = _AGE_RANGE.match(limit)
        if minimum and data.age < int(minimum.group(1)):
            errors.append(f"Event is limited to ages {limit}")
        elif age_range and not int(age_range.group(1)) <= data.age <= int(age_range.group(2)):
            errors.append(f"Event is limited to ages {limit}")

        restriction = _normalize_gender(event.gender_restriction)
        if restriction not in _UNRESTRICTED and _normalize_gender(data.gender) != restriction:
            errors.append(f"Event is restricted to gender '{event.gender_restriction}'")

        if errors:
            raise InvalidInput("Participant does not meet event restrictions", details=errors)

    @staticmethod
    def _participant_fields(event: Event, data: ParticipantCreate) -> Dict:
        fields = data.model_dump()
        if fields["email"] is not None:
            fields["email"] = str(fields["email"])
        if not event.is_race:
            fields["race_role"] = None
        return fields

    @staticmethod
    def register_participant(db: Session, identifier: str, data: ParticipantCreate) -> Dict:
        event = RegistrationService.resolve_event(db, identifier)
        RegistrationService.check_restrictions(event, data)

        with _storage(db, "registering participant"):
            participant_id = new_participant_id()
            while ParticipantRepo.exists(db, participant_id):
                participant_id = new_participant_id()
            participant = Participant(
                id=participant_id,
                event_id=event.id,
                **RegistrationService._participant_fields(event, data)
            )
            ParticipantRepo.add(db, participant)

        db.refresh(participant)
        logger.info(f"Registered participant {participant.id} for event {event.folder}")
        return RegistrationService.participant_payload(participant)

    @staticmethod
    def list_participants(db: Session, identifier: str) -> List[Dict]:
        """Participants ordered by id; an unknown event has none"""
        with _storage(db, "listing participants", commit=False):
            event = EventRepo.resolve(db, identifier)
            participants = ParticipantRepo.list_for_event(db, event.id) if event else []
        return [RegistrationService.participant_payload(p) for p in participants]

    @staticmethod
    def update_participant(db: Session, identifier: str, participant_id: str, data: ParticipantCreate) -> Dict:
        event = RegistrationService.resolve_event(db, identifier)
        participant = ParticipantRepo.get(db, event.id, participant_id)
        if not participant:
            raise NotFound("Participant")
        RegistrationService.check_restrictions(event, data)

        with _storage(db, "updating participant"):
            for field, value in RegistrationService._participant_fields(event, data).items():
                setattr(participant, field, value)

        db.refresh(participant)
        return RegistrationService.participant_payload(participant)

    @staticmethod
    def delete_participant(db: Session, identifier: str, participant_id: str) -> None:
        event = RegistrationService.resolve_event(db, identifier)
        participant = ParticipantRepo.get(db, event.id, participant_id)
        if not participant:
            raise NotFound("Participant")
        # results keep their copied participant id
        with _storage(db, "deleting participant"):
            ParticipantRepo.remove(db, participant)
        logger.info(f"Deleted participant {participant_id} from event {event.folder}")

    # -------- results --------

    @staticmethod
    def record_results(db: Session, identifier: str, batch: ResultBatch) -> Dict:
        """Record one heat; the whole batch is written in a single transaction"""
        event = RegistrationService.resolve_event(db, identifier)
        if not event.is_race:
            raise InvalidInput(f"Event '{event.folder}' is not a race")

        items = batch.items
        if not isinstance(items, (list, tuple)) or not items:
            raise InvalidInput("Results must be a non-empty list")

        if batch.occurrence_date:
            occurrence_date = normalize_occurrence_date(batch.occurrence_date)
        else:
            occurrence_date = today_occurrence_date()

        with _storage(db, "recording results"):
            heat_id = batch.heat_id or ResultRepo.max_heat(db, event.id, occurrence_date) + 1
            rows = ResultRepo.add_batch(db, event.id, occurrence_date, heat_id, items)

        logger.info(f"Recorded {len(rows)} results for {event.folder} on {occurrence_date}, heat {heat_id}")
        return {
            "eventKey": event.folder,
            "occurrenceDate": occurrence_date,
            "heatId": heat_id,
            "count": len(rows),
        }

    @staticmethod
    def list_results(db: Session, identifier: str) -> List[Dict]:
        with _storage(db, "listing results", commit=False):
            event = EventRepo.resolve(db, identifier)
            results = ResultRepo.list_for_event(db, event.id) if event else []
        return [RegistrationService.result_payload(event, r) for r in results]

    @staticmethod
    def delete_result_group(db: Session, identifier: str, occurrence_date: str) -> Dict:
        """Remove every heat recorded for the event on one date"""
        event = RegistrationService.resolve_event(db, identifier)
        occurrence_date = normalize_occurrence_date(occurrence_date)

        with _storage(db, "deleting results"):
            deleted = ResultRepo.delete_group(db, event.id, occurrence_date)
            if deleted == 0:
                raise NotFound("Results group")

        logger.info(f"Deleted {deleted} results for {event.folder} on {occurrence_date}")
        return {"eventKey": event.folder, "occurrenceDate": occurrence_date, "deleted": deleted}
