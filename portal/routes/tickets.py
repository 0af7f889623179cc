from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from sqlalchemy.orm import Session

from ..auth.security import get_current_user
from ..config import settings
from ..db import get_db
from ..schemas.tickets import TicketCreate, TicketResponse, TicketStats, TicketUpdate
from ..services.export import XLSX_MEDIA_TYPE, ExportError, export_filename, export_records
from ..services.store import TicketStore


router = APIRouter(prefix="/api/tickets", tags=["tickets"], dependencies=[Depends(get_current_user)])


def get_ticket_store(db: Session = Depends(get_db)) -> TicketStore:
    return TicketStore(db)


@router.get("", response_model=List[TicketResponse])
def list_tickets(
    search: Optional[str] = None,
    status: Optional[str] = None,
    project_type: Optional[str] = Query(default=None, alias="projectType"),
    store: TicketStore = Depends(get_ticket_store),
):
    return store.list(search=search, status=status, project_type=project_type)


@router.get("/export")
@router.get("/export/excel")
def export_tickets(
    search: Optional[str] = None,
    status: Optional[str] = None,
    project_type: Optional[str] = Query(default=None, alias="projectType"),
    store: TicketStore = Depends(get_ticket_store),
):
    rows = store.list(search=search, status=status, project_type=project_type)
    try:
        content = export_records(rows, "tickets")
    except ExportError as e:
        raise HTTPException(status_code=400, detail=str(e))
    filename = export_filename(settings.ticket_export_basename)
    return Response(
        content=content,
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/stats", response_model=TicketStats)
def ticket_stats(store: TicketStore = Depends(get_ticket_store)):
    return store.stats()


@router.get("/{ticket_id}", response_model=TicketResponse)
def get_ticket(ticket_id: int, store: TicketStore = Depends(get_ticket_store)):
    ticket = store.get(ticket_id)
    if not ticket:
        raise HTTPException(status_code=404, detail="Ticket not found")
    return ticket


@router.post("", response_model=TicketResponse, status_code=201)
def create_ticket(payload: TicketCreate, store: TicketStore = Depends(get_ticket_store)):
    return store.create(payload.model_dump(exclude_unset=True))


@router.put("/{ticket_id}", response_model=TicketResponse)
def update_ticket(ticket_id: int, payload: TicketUpdate, store: TicketStore = Depends(get_ticket_store)):
    ticket = store.update(ticket_id, payload.model_dump(exclude_unset=True))
    if not ticket:
        raise HTTPException(status_code=404, detail="Ticket not found")
    return ticket


@router.delete("/{ticket_id}")
def delete_ticket(ticket_id: int, store: TicketStore = Depends(get_ticket_store)):
    if not store.delete(ticket_id):
        raise HTTPException(status_code=404, detail="Ticket not found")
    return {"success": True}
