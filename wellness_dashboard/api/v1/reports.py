"""Wellness dashboard report routes."""

from datetime import date

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from wellness_dashboard.db.base import get_db
from wellness_dashboard.db.schemas import (
    ClosingReport,
    DailySalesOut,
    LatestDateOut,
    OccupancyReport,
    RegistrationReport,
    SalesTrendPoint,
)
from wellness_dashboard.services.reports import ReportService

router = APIRouter()

# Handlers are plain functions: FastAPI runs them in its threadpool, so the
# blocking session never stalls the event loop.

START_DATE = Query(None, alias="startDate", description="Start date (YYYY-MM-DD)")
END_DATE = Query(None, alias="endDate", description="End date (YYYY-MM-DD)")


def get_report_service(db: Session = Depends(get_db)) -> ReportService:
    return ReportService(db)


@router.get(
    "/latest-date",
    response_model=LatestDateOut,
    summary="Latest available date",
    description="Latest calendar date with invoices, consultations or prescriptions; null when empty."
)
def get_latest_date(service: ReportService = Depends(get_report_service)) -> LatestDateOut:
    return service.latest_date()


@router.get(
    "/daily-sales",
    response_model=DailySalesOut,
    summary="Daily sales snapshot",
    description="Visits, sales and average transaction for the latest invoiced day, with day-over-day trend."
)
def get_daily_sales(service: ReportService = Depends(get_report_service)) -> DailySalesOut:
    return service.daily_sales_snapshot()


@router.get(
    "/sales-trend",
    response_model=list[SalesTrendPoint],
    summary="Sales trend",
    description="Daily sales totals and visit counts. Defaults to the 30 days ending at the latest invoice."
)
def get_sales_trend(
    start_date: date | None = START_DATE,
    end_date: date | None = END_DATE,
    service: ReportService = Depends(get_report_service),
) -> list[SalesTrendPoint]:
    return service.sales_trend(start_date, end_date)


@router.get(
    "/daily-registration",
    response_model=RegistrationReport,
    summary="Daily registrations",
    description="Registration-fee invoices per day, split into new and existing patients."
)
def get_daily_registrations(
    start_date: date | None = START_DATE,
    end_date: date | None = END_DATE,
    service: ReportService = Depends(get_report_service),
) -> RegistrationReport:
    return service.daily_registrations(start_date, end_date)


@router.get(
    "/daily-closing",
    response_model=ClosingReport,
    summary="Daily closings",
    description="First paid invoice per patient and procedure, grouped by closing date."
)
def get_daily_closings(
    start_date: date | None = START_DATE,
    end_date: date | None = END_DATE,
    service: ReportService = Depends(get_report_service),
) -> ClosingReport:
    return service.daily_closings(start_date, end_date)


@router.get(
    "/occupancy-rate",
    response_model=OccupancyReport,
    summary="Occupancy rate",
    description="Consultation and treatment slot utilization per day. Defaults to the last 14 days with data."
)
def get_occupancy_rate(
    start_date: date | None = START_DATE,
    end_date: date | None = END_DATE,
    service: ReportService = Depends(get_report_service),
) -> OccupancyReport:
    return service.occupancy(start_date, end_date)
