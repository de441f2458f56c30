"""
Import of the file-backed layout into the database.

Each sub-folder of the events directory holds one event:

    events/<folder>/<anything>.csv   first row describes the event
    events/<folder>/participants.csv optional
    events/<folder>/results.csv      optional

All files are `;`-delimited with a header row. The folder name becomes the
event key. Rows that already exist are skipped, so the import can be re-run.

Run from the project root:
    python -m app.services.legacy_import [events_dir]
"""

import logging
import os
from datetime import date, datetime
from typing import Dict, List, Optional

import pandas as pd
from sqlalchemy.orm import Session

from app.core.errors import InvalidInput
from app.models import Event, Participant, Result
from app.services.identifiers import new_event_id, new_participant_id, normalize_occurrence_date
from app.services.repositories import EventRepo, ParticipantRepo

logger = logging.getLogger(__name__)

PARTICIPANTS_FILE = "participants.csv"
RESULTS_FILE = "results.csv"
TRUE_VALUES = {"true", "yes", "1", "так"}


def read_legacy_csv(file_path: str) -> List[Dict[str, str]]:
    """Read a `;` CSV into a list of dicts; missing or empty files give []"""
    if not os.path.isfile(file_path) or os.path.getsize(file_path) == 0:
        return []
    df = pd.read_csv(file_path, sep=";", dtype=str, keep_default_na=False, skipinitialspace=True)
    df.columns = [str(col).strip() for col in df.columns]
    return [{k: (v or "").strip() for k, v in row.items()} for row in df.to_dict(orient="records")]


def parse_flag(value: Optional[str]) -> bool:
    return (value or "").strip().lower() in TRUE_VALUES


def parse_int(value: Optional[str]) -> Optional[int]:
    text = (value or "").strip()
    if not text:
        return None
    try:
        return int(float(text))
    except ValueError:
        return None


def parse_event_date(value: str) -> date:
    text = (value or "").strip()
    for fmt in ("%Y-%m-%d", "%d.%m.%Y", "%Y%m%d", "%d%m%Y"):
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    raise ValueError(f"Unrecognised event date '{value}'")


def legacy_occurrence_date(value: str) -> str:
    """Results dates were written either as DDMMYYYY or as ISO dates"""
    try:
        return normalize_occurrence_date(value)
    except InvalidInput:
        return parse_event_date(value).strftime("%d%m%Y")


def find_event_file(folder_path: str) -> Optional[str]:
    for filename in sorted(os.listdir(folder_path)):
        if filename.endswith(".csv") and filename not in (PARTICIPANTS_FILE, RESULTS_FILE):
            return os.path.join(folder_path, filename)
    return None


def import_event_folder(db: Session, folder_path: str) -> Dict[str, int]:
    """Import one event folder; returns counts of rows added"""
    counts = {"events": 0, "participants": 0, "results": 0}
    folder = os.path.basename(os.path.normpath(folder_path))

    event_file = find_event_file(folder_path)
    if not event_file:
        logger.warning(f"No event CSV in {folder_path}, skipped")
        return counts
    rows = read_legacy_csv(event_file)
    if not rows:
        logger.warning(f"Event CSV {event_file} is empty, skipped")
        return counts
    e = rows[0]

    event = EventRepo.get_by_key(db, folder) or (e.get("id") and EventRepo.get_by_id(db, e["id"]))
    if not event:
        event = Event(
            id=e.get("id") or new_event_id(),
            folder=folder,
            name=e.get("name") or folder,
            date=parse_event_date(e.get("date", "")),
            time=e.get("time") or None,
            place=e.get("place") or None,
            is_race=parse_flag(e.get("isRace")),
            age_limit=e.get("ageLimit") or None,
            max_child_age=parse_int(e.get("maxChildAge")),
            medical_required=parse_flag(e.get("medicalRequired")),
            team_event=parse_flag(e.get("teamEvent")),
            gender_restriction=e.get("genderRestriction") or None,
            description=e.get("description") or None,
        )
        EventRepo.add(db, event)
        counts["events"] += 1
        logger.info(f"Imported event {folder}: {event.name}")

    for p in read_legacy_csv(os.path.join(folder_path, PARTICIPANTS_FILE)):
        participant_id = p.get("id") or new_participant_id()
        if ParticipantRepo.exists(db, participant_id):
            continue
        ParticipantRepo.add(db, Participant(
            id=participant_id,
            event_id=event.id,
            name=p.get("name", ""),
            surname=p.get("surname", ""),
            gender=p.get("gender") or None,
            age=parse_int(p.get("age")) or 0,
            email=p.get("email") or None,
            phone=p.get("phone") or None,
            race_role=p.get("raceRole") or None,
        ))
        counts["participants"] += 1

    results = read_legacy_csv(os.path.join(folder_path, RESULTS_FILE))
    if results and not event.results:
        db.add_all([
            Result(
                event_id=event.id,
                date=legacy_occurrence_date(r.get("date", "")),
                race_id=parse_int(r.get("raceId")) or 1,
                participant_id=r.get("id", ""),
                time=r.get("time", ""),
            )
            for r in results
        ])
        db.flush()
        counts["results"] += len(results)

    logger.info(
        f"Folder {folder}: {counts['participants']} participants, {counts['results']} results imported"
    )
    return counts


def import_events_dir(db: Session, events_dir: str) -> Dict[str, int]:
    """Import every event folder, committing once per folder"""
    if not os.path.isdir(events_dir):
        raise FileNotFoundError(f"Events directory not found: {events_dir}")

    totals = {"events": 0, "participants": 0, "results": 0, "failed": 0}
    for folder in sorted(os.listdir(events_dir)):
        folder_path = os.path.join(events_dir, folder)
        if not os.path.isdir(folder_path):
            continue
        try:
            counts = import_event_folder(db, folder_path)
            db.commit()
        except Exception as e:
            db.rollback()
            logger.error(f"Failed to import {folder}: {e}")
            totals["failed"] += 1
            continue
        for name, value in counts.items():
            totals[name] += value

    logger.info(f"Import finished: {totals}")
    return totals


if __name__ == "__main__":
    import argparse

    from app.core.config import settings
    from app.core.db import SessionLocal, init_db

    logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s")

    parser = argparse.ArgumentParser(
        description="Import legacy CSV event folders into the database"
    )
    parser.add_argument(
        "events_dir",
        nargs="?",
        default=settings.LEGACY_EVENTS_DIR,
        help="Directory holding one sub-folder per event"
    )
    args = parser.parse_args()

    init_db()
    with SessionLocal() as session:
        import_events_dir(session, args.events_dir)
