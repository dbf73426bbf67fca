"""Pydantic v2 response schemas for the reporting API.

Fields are snake_case in Python and camelCase on the wire. Dates are plain
calendar dates and serialize as ``YYYY-MM-DD``.
"""

from datetime import date

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class BaseSchema(BaseModel):
    """Base schema with common configuration."""
    model_config = ConfigDict(
        from_attributes=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )


class DateRangeOut(BaseSchema):
    start: date
    end: date


class LatestDateOut(BaseSchema):
    """Latest date with any transactional data, or null for an empty store."""
    latest_date: date | None = None


# Sales
class DailySalesOut(BaseSchema):
    """Sales snapshot for the latest day with invoices."""
    latest_date: date
    total_visits: int = 0
    total_sales: float = 0.0
    avg_transaction: float = 0.0
    pending_count: int = 0
    pending_total: float = 0.0
    trend: float = Field(0.0, description="Day-over-day sales change, percent")


class SalesTrendPoint(BaseSchema):
    date: date
    total_sales: float
    visit_count: int


# Registrations
class RegistrationOut(BaseSchema):
    invoice_id: str
    patient_id: str | None = None
    patient_name: str | None = None
    phone_no: str | None = None
    mrn_no: str | None = None
    registration_date: date
    invoice_code: str | None = None
    receipt_code: str | None = None
    doctor_name: str = "N/A"
    is_new_patient: bool


class DailyRegistrationsOut(BaseSchema):
    date: date
    total: int
    new_patients: int
    existing_patients: int
    registrations: list[RegistrationOut]


class RegistrationChartPoint(BaseSchema):
    date: date
    new_patients: int
    existing_patients: int
    total: int


class RegistrationReport(BaseSchema):
    date_range: DateRangeOut
    total_registrations: int
    total_new_patients: int
    total_existing_patients: int
    daily_registrations: list[DailyRegistrationsOut]
    chart_data: list[RegistrationChartPoint]


# Closings
class ClosingOut(BaseSchema):
    invoice_id: str
    patient_id: str | None = None
    patient_name: str | None = None
    phone_no: str | None = None
    closing_date: date
    invoice_code: str | None = None
    receipt_code: str | None = None
    procedure_name: str = "Unknown Procedure"
    procedure_code: str = "N/A"
    doctor_name: str = "N/A"
    is_new_patient: bool


class DailyClosingsOut(BaseSchema):
    date: date
    count: int
    closings: list[ClosingOut]


class ProcedureCount(BaseSchema):
    procedure_name: str
    procedure_code: str
    count: int


class CategoryChartPoint(BaseSchema):
    """One day of a chart whose series are keyed by category.

    The key set of ``values`` is open: it is whatever categories the report
    observed, and is identical for every day of one response.
    """
    date: date
    values: dict[str, float]


class ClosingReport(BaseSchema):
    date_range: DateRangeOut
    total_closings: int
    daily_closings: list[DailyClosingsOut]
    procedure_breakdown: list[ProcedureCount]
    chart_data: list[CategoryChartPoint]


# Occupancy
class DailyOccupancyOut(BaseSchema):
    date: date
    consultation_count: int
    procedure_count: int
    consultation_occupancy_rate: float
    treatment_occupancy_rate: float


class OccupancyChartPoint(BaseSchema):
    date: date
    occupancy: float
    count: int


class ProcedureCodeName(BaseSchema):
    code: str
    name: str


class OccupancySummary(BaseSchema):
    avg_consultation_occupancy: float
    avg_treatment_occupancy: float


class OccupancyReport(BaseSchema):
    date_range: DateRangeOut
    daily_occupancy: list[DailyOccupancyOut]
    consultation_chart_data: list[OccupancyChartPoint]
    treatment_chart_data: list[OccupancyChartPoint]
    procedure_chart_data: list[CategoryChartPoint]
    procedure_code_names: list[ProcedureCodeName]
    summary: OccupancySummary


# Health
class DatabaseHealthOut(BaseSchema):
    status: str
    backend: str
    invoice_count: int
    latest_invoice_date: date | None = None
