from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from sqlalchemy.orm import Session

from ..auth.security import get_current_user
from ..config import settings
from ..db import get_db
from ..schemas.reports import ReportCreate, ReportResponse, ReportStats, ReportUpdate
from ..services.export import XLSX_MEDIA_TYPE, ExportError, export_filename, export_records
from ..services.store import ReportStore


router = APIRouter(prefix="/api/reports", tags=["reports"], dependencies=[Depends(get_current_user)])


def get_report_store(db: Session = Depends(get_db)) -> ReportStore:
    return ReportStore(db)


@router.get("", response_model=List[ReportResponse])
def list_reports(
    search: Optional[str] = None,
    from_date: Optional[str] = Query(default=None, alias="fromDate"),
    to_date: Optional[str] = Query(default=None, alias="toDate"),
    store: ReportStore = Depends(get_report_store),
):
    # Malformed dates raise FilterError, mapped to 400 in main
    return store.list(search=search, from_date=from_date, to_date=to_date)


@router.get("/export")
@router.get("/export/excel")
def export_reports(
    search: Optional[str] = None,
    from_date: Optional[str] = Query(default=None, alias="fromDate"),
    to_date: Optional[str] = Query(default=None, alias="toDate"),
    store: ReportStore = Depends(get_report_store),
):
    rows = store.list(search=search, from_date=from_date, to_date=to_date)
    try:
        content = export_records(rows, "reports")
    except ExportError as e:
        raise HTTPException(status_code=400, detail=str(e))
    filename = export_filename(settings.report_export_basename)
    return Response(
        content=content,
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/stats", response_model=ReportStats)
def report_stats(store: ReportStore = Depends(get_report_store)):
    return store.stats()


@router.get("/{report_id}", response_model=ReportResponse)
def get_report(report_id: int, store: ReportStore = Depends(get_report_store)):
    report = store.get(report_id)
    if not report:
        raise HTTPException(status_code=404, detail="Report not found")
    return report


@router.post("", response_model=ReportResponse, status_code=201)
def create_report(payload: ReportCreate, store: ReportStore = Depends(get_report_store)):
    return store.create(payload.model_dump(exclude_unset=True))


@router.put("/{report_id}", response_model=ReportResponse)
def update_report(report_id: int, payload: ReportUpdate, store: ReportStore = Depends(get_report_store)):
    report = store.update(report_id, payload.model_dump(exclude_unset=True))
    if not report:
        raise HTTPException(status_code=404, detail="Report not found")
    return report


@router.delete("/{report_id}")
def delete_report(report_id: int, store: ReportStore = Depends(get_report_store)):
    if not store.delete(report_id):
        raise HTTPException(status_code=404, detail="Report not found")
    return {"success": True}
