"""
Tests for the registration service (events, participants, results)
"""

import pytest
from datetime import date
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from app.core.config import settings
from app.core.db import Base
from app.core.errors import Conflict, InvalidInput, NotFound, StorageFailure
from app.models import Event, Participant, Result
from app.schemas.event import EventCreate, EventUpdate
from app.schemas.participant import ParticipantCreate
from app.schemas.result import ResultBatch, ResultItem
from app.services.registration_service import RegistrationService

# Test database setup
SQLALCHEMY_DATABASE_URL = "sqlite:///./test_registration.db"
engine = create_engine(SQLALCHEMY_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

@pytest.fixture(autouse=True)
def static_dir(tmp_path, monkeypatch):
    """Keep logo folders out of the working tree"""
    monkeypatch.setattr(settings, "STATIC_DIR", str(tmp_path))
    return tmp_path

@pytest.fixture
def db_session():
    """Create test database session"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)

@pytest.fixture
def race_event(db_session):
    """A race event ready for registrations and results"""
    return RegistrationService.create_event(db_session, EventCreate(
        name="Spring Run",
        date=date(2025, 5, 1),
        time="09:00",
        place="City Park",
        is_race=True,
        age_limit="18+",
        medical_required=True,
    ))

@pytest.fixture
def open_event(db_session):
    """A non-race event without restrictions"""
    return RegistrationService.create_event(db_session, EventCreate(
        name="Family Picnic",
        date=date(2025, 6, 1),
        is_race=False,
    ))

def make_participant(**overrides):
    fields = {"name": "Olena", "surname": "Koval", "gender": "female", "age": 30, "email": "olena@example.com"}
    fields.update(overrides)
    return ParticipantCreate(**fields)

def make_batch(refs, occurrence_date="01012025", heat_id=None):
    return ResultBatch(
        occurrence_date=occurrence_date,
        heat_id=heat_id,
        items=[ResultItem(participant_ref=ref, time=f"00:2{i}:00") for i, ref in enumerate(refs)],
    )

# -------- events --------

def test_create_then_get_round_trip(db_session, race_event):
    """Fetching by key returns the values given at creation"""
    event = RegistrationService.get_event(db_session, "20250501_spring_run")

    assert event["key"] == "20250501_spring_run"
    assert event["name"] == "Spring Run"
    assert event["date"] == "2025-05-01"
    assert event["time"] == "09:00"
    assert event["place"] == "City Park"
    assert event["isRace"] is True
    assert event["ageLimit"] == "18+"
    assert event["medicalRequired"] is True
    assert event["teamEvent"] is False
    assert event["logoPresent"] is False
    assert event["logoUrl"] is None

def test_get_event_by_opaque_id(db_session, race_event):
    """The opaque id resolves to the same event as the key"""
    event = RegistrationService.get_event(db_session, race_event["id"])
    assert event["key"] == race_event["key"]

def test_get_unknown_event(db_session):
    """Unknown identifiers are not found"""
    with pytest.raises(NotFound):
        RegistrationService.get_event(db_session, "20990101_nothing")

def test_duplicate_key_conflicts(db_session, race_event):
    """A second event with the same date and name is rejected"""
    with pytest.raises(Conflict):
        RegistrationService.create_event(db_session, EventCreate(
            name="spring   RUN", date=date(2025, 5, 1), is_race=False
        ))
    assert db_session.query(Event).count() == 1

def test_duplicate_supplied_id_conflicts(db_session):
    """Externally supplied ids must be unique too"""
    RegistrationService.create_event(db_session, EventCreate(
        id="abc", name="One", date=date(2025, 1, 1), is_race=False
    ))
    with pytest.raises(Conflict):
        RegistrationService.create_event(db_session, EventCreate(
            id="abc", name="Two", date=date(2025, 1, 1), is_race=False
        ))

def test_supplied_id_cannot_shadow_existing_key(db_session):
    """An id equal to another event's key would make that key ambiguous"""
    RegistrationService.create_event(db_session, EventCreate(name="A", date=date(2025, 1, 1), is_race=False))

    with pytest.raises(Conflict):
        RegistrationService.create_event(db_session, EventCreate(
            id="20250101_a", name="B", date=date(2025, 1, 1), is_race=False
        ))
    assert db_session.query(Event).count() == 1
    assert RegistrationService.get_event(db_session, "20250101_a")["name"] == "A"

def test_derived_key_cannot_shadow_existing_id(db_session):
    """A derived key equal to another event's id is rejected as well"""
    first = RegistrationService.create_event(db_session, EventCreate(
        id="20250202_b", name="First", date=date(2025, 3, 3), is_race=False
    ))

    with pytest.raises(Conflict):
        RegistrationService.create_event(db_session, EventCreate(name="B", date=date(2025, 2, 2), is_race=False))
    assert db_session.query(Event).count() == 1
    assert RegistrationService.get_event(db_session, first["id"])["name"] == "First"

def test_list_events_ordered_by_date(db_session):
    """Summaries come back in date order regardless of creation order"""
    for name, day in [("Late", date(2025, 9, 1)), ("Early", date(2025, 2, 1)), ("Middle", date(2025, 5, 1))]:
        RegistrationService.create_event(db_session, EventCreate(name=name, date=day, is_race=False))

    events = RegistrationService.list_events(db_session)
    assert [e["name"] for e in events] == ["Early", "Middle", "Late"]

def test_update_event_keeps_key(db_session, race_event):
    """Full overwrite replaces fields but never the derived key"""
    updated = RegistrationService.update_event(db_session, race_event["key"], EventUpdate(
        name="Spring Run Renamed",
        date=date(2025, 5, 2),
        is_race=True,
    ))

    assert updated["key"] == "20250501_spring_run"
    assert updated["id"] == race_event["id"]
    assert updated["name"] == "Spring Run Renamed"
    assert updated["date"] == "2025-05-02"
    assert updated["place"] is None
    assert updated["ageLimit"] is None

def test_delete_event_cascades(db_session, race_event):
    """Deleting an event removes its participants and results"""
    participant = RegistrationService.register_participant(db_session, race_event["key"], make_participant())
    RegistrationService.record_results(db_session, race_event["key"], make_batch([participant["id"]]))

    deleted = RegistrationService.delete_event(db_session, race_event["key"])

    assert deleted["key"] == race_event["key"]
    assert db_session.query(Participant).count() == 0
    assert db_session.query(Result).count() == 0
    assert RegistrationService.list_participants(db_session, race_event["key"]) == []
    assert RegistrationService.list_results(db_session, race_event["key"]) == []
    with pytest.raises(NotFound):
        RegistrationService.get_event(db_session, race_event["key"])

def test_delete_unknown_event(db_session):
    """Deleting twice reports not found the second time"""
    with pytest.raises(NotFound):
        RegistrationService.delete_event(db_session, "missing")

# -------- participants --------

def test_register_and_list_participants(db_session, race_event):
    """Registered participants are listed in id order"""
    first = RegistrationService.register_participant(db_session, race_event["key"], make_participant(raceRole="runner"))
    second = RegistrationService.register_participant(db_session, race_event["key"], make_participant(name="Taras", gender="male"))

    participants = RegistrationService.list_participants(db_session, race_event["key"])
    ids = [p["id"] for p in participants]

    assert set(ids) == {first["id"], second["id"]}
    assert ids == sorted(ids)
    assert first["eventKey"] == race_event["key"]
    assert first["raceRole"] == "runner"

def test_register_against_missing_event(db_session):
    """No event, no participant row"""
    with pytest.raises(NotFound):
        RegistrationService.register_participant(db_session, "20990101_nothing", make_participant())
    assert db_session.query(Participant).count() == 0

def test_race_role_dropped_for_non_race(db_session, open_event):
    """Race roles only make sense for races"""
    participant = RegistrationService.register_participant(db_session, open_event["key"], make_participant(raceRole="runner"))
    assert participant["raceRole"] is None

def test_age_limit_enforced(db_session, race_event):
    """An 18+ event rejects younger participants"""
    with pytest.raises(InvalidInput) as exc_info:
        RegistrationService.register_participant(db_session, race_event["key"], make_participant(age=17))
    assert "18+" in exc_info.value.details[0]

    accepted = RegistrationService.register_participant(db_session, race_event["key"], make_participant(age=18))
    assert accepted["age"] == 18

def test_age_range_enforced(db_session):
    """A range limit rejects ages on either side"""
    event = RegistrationService.create_event(db_session, EventCreate(
        name="Kids Dash", date=date(2025, 6, 1), is_race=True, age_limit="6-12"
    ))
    for age in (5, 13):
        with pytest.raises(InvalidInput):
            RegistrationService.register_participant(db_session, event["key"], make_participant(age=age))
    RegistrationService.register_participant(db_session, event["key"], make_participant(age=12))

def test_gender_restriction_enforced(db_session):
    """Gender restrictions accept common spellings and reject the rest"""
    event = RegistrationService.create_event(db_session, EventCreate(
        name="Women's 10K", date=date(2025, 3, 8), is_race=True, gender_restriction="Female"
    ))
    RegistrationService.register_participant(db_session, event["key"], make_participant(gender="f"))
    with pytest.raises(InvalidInput):
        RegistrationService.register_participant(db_session, event["key"], make_participant(gender="male"))
    with pytest.raises(InvalidInput):
        RegistrationService.register_participant(db_session, event["key"], make_participant(gender=None))

def test_update_participant_replaces_fields(db_session, race_event):
    """Update is a full replace of participant fields"""
    participant = RegistrationService.register_participant(db_session, race_event["key"], make_participant(phone="+380501234567"))

    updated = RegistrationService.update_participant(
        db_session, race_event["key"], participant["id"],
        make_participant(name="Olha", age=31, email=None)
    )

    assert updated["id"] == participant["id"]
    assert updated["name"] == "Olha"
    assert updated["age"] == 31
    assert updated["email"] is None
    assert updated["phone"] is None

def test_update_unknown_participant(db_session, race_event):
    """Unknown participant ids are not found"""
    with pytest.raises(NotFound):
        RegistrationService.update_participant(db_session, race_event["key"], "nope", make_participant())

def test_delete_participant_keeps_results(db_session, race_event):
    """Results hold a copied id and survive participant deletion"""
    participant = RegistrationService.register_participant(db_session, race_event["key"], make_participant())
    RegistrationService.record_results(db_session, race_event["key"], make_batch([participant["id"]]))

    RegistrationService.delete_participant(db_session, race_event["key"], participant["id"])

    assert RegistrationService.list_participants(db_session, race_event["key"]) == []
    results = RegistrationService.list_results(db_session, race_event["key"])
    assert [r["participantRef"] for r in results] == [participant["id"]]

    with pytest.raises(NotFound):
        RegistrationService.delete_participant(db_session, race_event["key"], participant["id"])

# -------- results --------

def test_heat_auto_increments_per_date(db_session, race_event):
    """Without a heat id the next heat is max(existing) + 1 for that date"""
    key = race_event["key"]
    assert RegistrationService.record_results(db_session, key, make_batch(["a"]))["heatId"] == 1
    assert RegistrationService.record_results(db_session, key, make_batch(["b"]))["heatId"] == 2
    assert RegistrationService.record_results(db_session, key, make_batch(["c"]))["heatId"] == 3

    other_day = RegistrationService.record_results(db_session, key, make_batch(["d"], occurrence_date="02012025"))
    assert other_day["heatId"] == 1

def test_explicit_heat_is_kept(db_session, race_event):
    """A supplied heat id is stored as given"""
    recorded = RegistrationService.record_results(db_session, race_event["key"], make_batch(["a", "b"], heat_id=7))
    assert recorded["heatId"] == 7
    assert recorded["count"] == 2

def test_occurrence_date_defaults_to_today(db_session, race_event):
    """An omitted date groups the heat under today"""
    recorded = RegistrationService.record_results(db_session, race_event["key"], make_batch(["a"], occurrence_date=None))
    assert recorded["occurrenceDate"] == date.today().strftime("%d%m%Y")

def test_batch_is_all_or_nothing(db_session, race_event):
    """A failing row aborts the whole batch"""
    batch = ResultBatch(
        occurrence_date="01012025",
        items=[
            ResultItem(participant_ref="a", time="00:20:00"),
            ResultItem.model_construct(participant_ref="b", time=None),
        ],
    )
    with pytest.raises(StorageFailure):
        RegistrationService.record_results(db_session, race_event["key"], batch)

    assert RegistrationService.list_results(db_session, race_event["key"]) == []

def test_empty_batch_rejected(db_session, race_event):
    """At least one result is required"""
    with pytest.raises(InvalidInput):
        RegistrationService.record_results(db_session, race_event["key"], ResultBatch(items=[]))

def test_results_require_race(db_session, open_event):
    """Non-race events do not take results"""
    with pytest.raises(InvalidInput):
        RegistrationService.record_results(db_session, open_event["key"], make_batch(["a"]))

def test_results_for_missing_event(db_session):
    """Unknown events are not found"""
    with pytest.raises(NotFound):
        RegistrationService.record_results(db_session, "missing", make_batch(["a"]))

def test_list_results_ordering(db_session, race_event):
    """Results are ordered by date (chronologically), heat, then participant"""
    key = race_event["key"]
    RegistrationService.record_results(db_session, key, make_batch(["z", "a"], occurrence_date="02012025"))
    RegistrationService.record_results(db_session, key, make_batch(["m"], occurrence_date="31122024"))
    RegistrationService.record_results(db_session, key, make_batch(["b"], occurrence_date="02012025"))

    results = RegistrationService.list_results(db_session, key)
    ordered = [(r["occurrenceDate"], r["heatId"], r["participantRef"]) for r in results]
    assert ordered == [
        ("31122024", 1, "m"),
        ("02012025", 1, "a"),
        ("02012025", 1, "z"),
        ("02012025", 2, "b"),
    ]

def test_delete_group_only_touches_that_date(db_session, race_event):
    """Deleting a date removes all its heats and nothing else"""
    key = race_event["key"]
    RegistrationService.record_results(db_session, key, make_batch(["a", "b"]))
    RegistrationService.record_results(db_session, key, make_batch(["c"]))
    RegistrationService.record_results(db_session, key, make_batch(["d"], occurrence_date="02012025"))

    deleted = RegistrationService.delete_result_group(db_session, key, "01012025")

    assert deleted["deleted"] == 3
    remaining = RegistrationService.list_results(db_session, key)
    assert [r["occurrenceDate"] for r in remaining] == ["02012025"]

    with pytest.raises(NotFound):
        RegistrationService.delete_result_group(db_session, key, "01012025")

def test_delete_group_rejects_bad_date(db_session, race_event):
    """The date must be a real DDMMYYYY date"""
    with pytest.raises(InvalidInput):
        RegistrationService.delete_result_group(db_session, race_event["key"], "not-a-date")
