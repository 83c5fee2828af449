from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from sqlalchemy.orm import Session

from backend.app.api.deps import get_db
from backend.services import reports

router = APIRouter(prefix="/reports")


@router.get("/inventory")
def inventory_report(db: Session = Depends(get_db)):
    return reports.inventory_report(db)


@router.get("/purchases")
def purchases_report(db: Session = Depends(get_db)):
    return reports.purchases_report(db)


@router.get("/movements")
def movements_report(days: int = Query(default=30, ge=1, le=366), db: Session = Depends(get_db)):
    return reports.movements_report(db, days=days)


@router.get("/accounting")
def accounting_report(db: Session = Depends(get_db)):
    return reports.accounting_report(db)


@router.get("/export/{report}")
def export_report(
    report: str,
    fmt: str = Query(default="csv", alias="format"),
    date_from: date | None = None,
    date_to: date | None = None,
    db: Session = Depends(get_db),
):
    if report not in reports.EXPORTABLE_REPORTS:
        raise HTTPException(status_code=404, detail="Report not found")
    if fmt not in reports.EXPORT_FORMATS:
        raise HTTPException(status_code=400, detail=f"Unsupported format: {fmt}")

    try:
        content, media_type, filename = reports.export_report(
            db, report, fmt, date_from=date_from, date_to=date_to
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return Response(
        content=content,
        media_type=media_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
