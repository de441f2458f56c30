"""
Event API routes: events, participants, results and logos
"""

from typing import Any, Type, TypeVar

from fastapi import APIRouter, Depends, File, Request, UploadFile
from fastapi.responses import Response
from pydantic import BaseModel, ValidationError
from sqlalchemy.orm import Session

from app.core.db import get_db
from app.core.errors import InvalidInput
from app.schemas.event import EventCreate, EventUpdate
from app.schemas.participant import ParticipantCreate, ParticipantUpdate
from app.schemas.result import ResultBatch
from app.services.export_service import ExportService
from app.services.registration_service import RegistrationService
from app.utils.responses import success_response

router = APIRouter()

ModelT = TypeVar("ModelT", bound=BaseModel)


def parse_payload(model: Type[ModelT], payload: Any) -> ModelT:
    """Validate a raw payload, reporting schema errors as invalid input"""
    if not isinstance(payload, dict):
        raise InvalidInput("Request body must be an object")
    try:
        return model.model_validate(payload)
    except ValidationError as e:
        raise InvalidInput(
            "Validation failed",
            details=e.errors(include_url=False, include_context=False, include_input=False)
        ) from e


async def read_event_form(request: Request):
    """Event fields from a JSON body or a multipart form with an optional `logo` file"""
    content_type = request.headers.get("content-type", "")
    logo_content = None

    if content_type.startswith("multipart/form-data"):
        form = await request.form()
        payload = {key: value for key, value in form.items() if isinstance(value, str)}
        logo = form.get("logo")
        if logo is not None and not isinstance(logo, str):
            logo_content = await logo.read()
    else:
        try:
            payload = await request.json()
        except ValueError:
            raise InvalidInput("Request body must be valid JSON")

    return payload, logo_content

@router.get("")
async def list_events(db: Session = Depends(get_db)):
    """List event summaries ordered by date"""
    events = RegistrationService.list_events(db)
    return success_response(
        message="Events retrieved successfully",
        data=events
    )

@router.post("")
async def create_event(request: Request, db: Session = Depends(get_db)):
    """Create an event from JSON or a multipart form with a logo"""
    payload, logo_content = await read_event_form(request)
    event_data = parse_payload(EventCreate, payload)

    event = RegistrationService.create_event(db, event_data, logo_content=logo_content)
    return success_response(
        message="Event created successfully",
        data=event,
        status_code=201
    )

@router.get("/{event_id}")
async def get_event(event_id: str, db: Session = Depends(get_db)):
    """Get one event, including its logo URL"""
    event = RegistrationService.get_event(db, event_id)
    return success_response(
        message="Event retrieved",
        data=event
    )

@router.put("/{event_id}")
async def update_event(event_id: str, request: Request, db: Session = Depends(get_db)):
    """Replace every field of an event except its id and key; a multipart `logo` replaces the logo"""
    payload, logo_content = await read_event_form(request)
    event_data = parse_payload(EventUpdate, payload)

    event = RegistrationService.update_event(db, event_id, event_data, logo_content=logo_content)
    return success_response(
        message="Event updated successfully",
        data=event
    )

@router.delete("/{event_id}")
async def delete_event(event_id: str, db: Session = Depends(get_db)):
    """Delete an event with its participants, results and logo"""
    deleted = RegistrationService.delete_event(db, event_id)
    return success_response(
        message="Event deleted successfully",
        data=deleted
    )

@router.post("/{event_id}/logo")
async def upload_logo(
    event_id: str,
    file: UploadFile = File(...),
    db: Session = Depends(get_db)
):
    """Upload or replace the event logo"""
    file_content = await file.read()
    logo = RegistrationService.upload_logo(db, event_id, file_content)
    return success_response(
        message="Logo uploaded successfully",
        data=logo
    )

# -------- participants --------

@router.post("/{event_id}/register")
async def register_participant(event_id: str, request: Request, db: Session = Depends(get_db)):
    """Register a participant for an event"""
    try:
        payload = await request.json()
    except ValueError:
        raise InvalidInput("Request body must be valid JSON")
    participant_data = parse_payload(ParticipantCreate, payload)

    participant = RegistrationService.register_participant(db, event_id, participant_data)
    return success_response(
        message="Participant registered successfully",
        data=participant,
        status_code=201
    )

@router.get("/{event_id}/participants")
async def list_participants(event_id: str, db: Session = Depends(get_db)):
    """List an event's participants ordered by id"""
    participants = RegistrationService.list_participants(db, event_id)
    return success_response(
        message="Participants retrieved successfully",
        data=participants
    )

@router.get("/{event_id}/participants/export.csv")
async def export_participants_csv(event_id: str, db: Session = Depends(get_db)):
    """Download participants in the `;` CSV layout"""
    event = RegistrationService.get_event(db, event_id)
    participants = RegistrationService.list_participants(db, event_id)

    return Response(
        content=ExportService.participants_csv(participants),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f"attachment; filename=participants_{event['key']}.csv"}
    )

@router.get("/{event_id}/participants/export.xlsx")
async def export_participants_excel(event_id: str, db: Session = Depends(get_db)):
    """Download participants as an Excel sheet"""
    event = RegistrationService.get_event(db, event_id)
    participants = RegistrationService.list_participants(db, event_id)

    return Response(
        content=ExportService.participants_excel(participants),
        media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        headers={"Content-Disposition": f"attachment; filename=participants_{event['key']}.xlsx"}
    )

@router.put("/{event_id}/participants/{participant_id}")
async def update_participant(
    event_id: str,
    participant_id: str,
    request: Request,
    db: Session = Depends(get_db)
):
    """Replace all fields of a participant"""
    try:
        payload = await request.json()
    except ValueError:
        raise InvalidInput("Request body must be valid JSON")
    participant_data = parse_payload(ParticipantUpdate, payload)

    participant = RegistrationService.update_participant(db, event_id, participant_id, participant_data)
    return success_response(
        message="Participant updated successfully",
        data=participant
    )

@router.delete("/{event_id}/participants/{participant_id}")
async def delete_participant(event_id: str, participant_id: str, db: Session = Depends(get_db)):
    """Delete one participant; their recorded results stay"""
    RegistrationService.delete_participant(db, event_id, participant_id)
    return success_response(message="Participant deleted successfully")

# -------- results --------

@router.post("/{event_id}/results")
async def record_results(event_id: str, request: Request, db: Session = Depends(get_db)):
    """Record a batch of results as one heat"""
    try:
        payload = await request.json()
    except ValueError:
        raise InvalidInput("Request body must be valid JSON")
    batch = parse_payload(ResultBatch, payload)

    recorded = RegistrationService.record_results(db, event_id, batch)
    return success_response(
        message=f"{recorded['count']} results recorded",
        data=recorded,
        status_code=201
    )

@router.get("/{event_id}/results")
async def list_results(event_id: str, db: Session = Depends(get_db)):
    """List results ordered by date, heat and participant"""
    results = RegistrationService.list_results(db, event_id)
    return success_response(
        message="Results retrieved successfully",
        data=results
    )

@router.get("/{event_id}/results/export.csv")
async def export_results_csv(event_id: str, db: Session = Depends(get_db)):
    """Download results in the `;` CSV layout"""
    event = RegistrationService.get_event(db, event_id)
    results = RegistrationService.list_results(db, event_id)

    return Response(
        content=ExportService.results_csv(results),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f"attachment; filename=results_{event['key']}.csv"}
    )

@router.delete("/{event_id}/results/{occurrence_date}")
async def delete_results_group(event_id: str, occurrence_date: str, db: Session = Depends(get_db)):
    """Delete every heat recorded for the event on one date"""
    deleted = RegistrationService.delete_result_group(db, event_id, occurrence_date)
    return success_response(
        message=f"{deleted['deleted']} results deleted",
        data=deleted
    )
