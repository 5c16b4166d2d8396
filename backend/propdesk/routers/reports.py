# backend/propdesk/routers/reports.py
from __future__ import annotations

from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response
from sqlalchemy.orm import Session

from ..auth import Principal, get_principal
from ..db import get_db
from ..schemas import DateWindowQuery, ExportReportIn
from ..services import reports

router = APIRouter(prefix="/reports", tags=["reports"])

Window = Annotated[DateWindowQuery, Query()]


@router.get("/entities/{entity_id}/profit-loss", response_model=dict)
def profit_loss(
    entity_id: int,
    q: Window,
    db: Session = Depends(get_db),
    p: Principal = Depends(get_principal),
):
    w = q.window()
    return reports.profit_loss(db, p, entity_id=entity_id, start_date=w.start, end_date=w.end)


@router.get("/entities/{entity_id}/cash-flow", response_model=dict)
def cash_flow(
    entity_id: int,
    q: Window,
    group_by: str = Query(default="month", description="month|quarter|year"),
    db: Session = Depends(get_db),
    p: Principal = Depends(get_principal),
):
    w = q.window()
    return reports.cash_flow(db, p, entity_id=entity_id, start_date=w.start, end_date=w.end, group_by=group_by)


@router.get("/entities/{entity_id}/occupancy", response_model=dict)
def occupancy(
    entity_id: int,
    property_id: Optional[int] = Query(default=None),
    db: Session = Depends(get_db),
    p: Principal = Depends(get_principal),
):
    return reports.occupancy(db, p, entity_id=entity_id, property_id=property_id)


@router.get("/entities/{entity_id}/rent-roll", response_model=dict)
def rent_roll(
    entity_id: int,
    property_id: Optional[int] = Query(default=None),
    include_vacant: bool = Query(default=False),
    db: Session = Depends(get_db),
    p: Principal = Depends(get_principal),
):
    return reports.rent_roll(db, p, entity_id=entity_id, property_id=property_id, include_vacant=include_vacant)


@router.get("/entities/{entity_id}/lease-expirations", response_model=dict)
def lease_expirations(
    entity_id: int,
    months: int = Query(default=3, ge=1, le=36),
    db: Session = Depends(get_db),
    p: Principal = Depends(get_principal),
):
    return reports.lease_expirations(db, p, entity_id=entity_id, months=months)


@router.get("/entities/{entity_id}/maintenance", response_model=dict)
def maintenance(
    entity_id: int,
    q: Window,
    property_id: Optional[int] = Query(default=None),
    db: Session = Depends(get_db),
    p: Principal = Depends(get_principal),
):
    w = q.window()
    return reports.maintenance(db, p, entity_id=entity_id, start_date=w.start, end_date=w.end, property_id=property_id)


@router.get("/entities/{entity_id}/tenants", response_model=dict)
def tenants(
    entity_id: int,
    include_payment_history: bool = Query(default=False),
    db: Session = Depends(get_db),
    p: Principal = Depends(get_principal),
):
    return reports.tenant_analytics(db, p, entity_id=entity_id, include_payment_history=include_payment_history)


@router.get("/entities/{entity_id}/portfolio", response_model=dict)
def portfolio(
    entity_id: int,
    include_projections: bool = Query(default=False),
    db: Session = Depends(get_db),
    p: Principal = Depends(get_principal),
):
    return reports.portfolio_overview(db, p, entity_id=entity_id, include_projections=include_projections)


@router.get("/entities/{entity_id}/aging", response_model=dict)
def aging(
    entity_id: int,
    as_of: Optional[str] = Query(default=None),
    db: Session = Depends(get_db),
    p: Principal = Depends(get_principal),
):
    return reports.aging(db, p, entity_id=entity_id, as_of=as_of)


@router.get("/entities/{entity_id}/dashboard", response_model=dict)
def entity_dashboard(
    entity_id: int,
    db: Session = Depends(get_db),
    p: Principal = Depends(get_principal),
):
    return reports.entity_dashboard(db, p, entity_id=entity_id)


@router.get("/entities/{entity_id}/comparative", response_model=dict)
def comparative(
    entity_id: int,
    q: Window,
    compare_type: str = Query(default="properties", description="properties|periods"),
    property_ids: Optional[list[int]] = Query(default=None),
    db: Session = Depends(get_db),
    p: Principal = Depends(get_principal),
):
    w = q.window()
    return reports.comparative(
        db,
        p,
        entity_id=entity_id,
        compare_type=compare_type,
        start_date=w.start,
        end_date=w.end,
        property_ids=property_ids,
    )


@router.post("/export")
def export(payload: ExportReportIn, db: Session = Depends(get_db), p: Principal = Depends(get_principal)):
    out = reports.export_report(
        db,
        p,
        report_type=payload.report_type,
        entity_id=payload.entity_id,
        format=payload.format,
        start_date=payload.start_date,
        end_date=payload.end_date,
    )
    if out["format"] == "csv":
        return Response(
            content=out["content"],
            media_type="text/csv",
            headers={"Content-Disposition": f'attachment; filename="{out["filename"]}"'},
        )
    return out
