"""Parameterized reads against the clinic reporting store.

Every row leaves this module as a ``TransactionRecord`` whose calendar date
has been normalized once, here. Date filters are padded by a day on each
side so rows near midnight are not lost to the store/report timezone offset;
the core drops anything outside the exact range after normalization.
"""

from datetime import date, datetime, time, timedelta
from enum import Enum
from typing import Any

from sqlalchemy import Select, func, select, text
from sqlalchemy.orm import Session

from wellness_dashboard.core.config import Settings, settings as default_settings
from wellness_dashboard.core.exceptions import translate_store_errors
from wellness_dashboard.core.logging import get_logger
from wellness_dashboard.db.models import (
    Consultation,
    Doctor,
    Invoice,
    ItemizedSale,
    Patient,
    ProcedurePrescription,
)
from wellness_dashboard.services.date_range import DateRange, to_calendar_date
from wellness_dashboard.services.occupancy import CONSULTATION
from wellness_dashboard.services.records import TransactionRecord, make_record

logger = get_logger(__name__)


class DateSource(str, Enum):
    """Tables (or filtered subsets) that can anchor a default date window."""
    INVOICES = "invoices"
    PAID_INVOICES = "paid_invoices"
    REGISTRATION_INVOICES = "registration_invoices"
    CONSULTATIONS = "consultations"
    PRESCRIPTIONS = "prescriptions"


def _lower_bound(day: date) -> datetime:
    return datetime.combine(day - timedelta(days=1), time.min)


def _upper_bound(day: date) -> datetime:
    # exclusive
    return datetime.combine(day + timedelta(days=2), time.min)


class RecordSource:
    """Read-only query capability over the reporting schema."""

    def __init__(self, db: Session, settings: Settings = default_settings):
        self.db = db
        self.settings = settings
        self.store_tz = settings.store_tz
        self.report_tz = settings.report_tz

    def _rows(self, stmt: Select, operation: str) -> list[Any]:
        with translate_store_errors(operation):
            return list(self.db.execute(stmt).all())

    def _to_date(self, value: Any) -> date | None:
        return to_calendar_date(value, self.store_tz, self.report_tz)

    # -- date anchors ---------------------------------------------------

    def _max_date_stmt(self, source: DateSource) -> Select:
        fee = self.settings.registration_fee
        if source == DateSource.INVOICES:
            return select(func.max(Invoice.invoice_date))
        if source == DateSource.PAID_INVOICES:
            return select(func.max(Invoice.invoice_date)).where(Invoice.invoice_total > 0)
        if source == DateSource.REGISTRATION_INVOICES:
            return select(func.max(Invoice.invoice_date)).where(Invoice.invoice_total == fee)
        if source == DateSource.CONSULTATIONS:
            return select(func.max(Consultation.visit_date))
        if source == DateSource.PRESCRIPTIONS:
            return select(func.max(ProcedurePrescription.prescription_date))
        raise ValueError(f"Unknown date source: {source}")

    def latest_date(self, *sources: DateSource) -> date | None:
        """Latest calendar date with data across ``sources``; None if all empty."""
        latest: date | None = None
        for source in sources:
            with translate_store_errors(f"read latest date from {source.value}"):
                raw = self.db.execute(self._max_date_stmt(source)).scalar()
            day = self._to_date(raw)
            if day is not None and (latest is None or day > latest):
                latest = day
        return latest

    # -- invoices -------------------------------------------------------

    def sales_invoices(self, date_range: DateRange) -> list[TransactionRecord]:
        """All invoices around ``date_range`` with their totals."""
        stmt = (
            select(
                Invoice.invoice_id,
                Invoice.patient_id,
                Invoice.invoice_date,
                Invoice.invoice_total,
            )
            .where(
                Invoice.invoice_date >= _lower_bound(date_range.start),
                Invoice.invoice_date < _upper_bound(date_range.end),
            )
        )
        rows = self._rows(stmt, "read sales invoices")
        return [
            make_record(
                row.invoice_id,
                row.patient_id,
                row.invoice_date,
                self.store_tz,
                self.report_tz,
                amount=row.invoice_total,
            )
            for row in rows
        ]

    def _invoice_detail_stmt(self) -> Select:
        return (
            select(
                Invoice.invoice_id,
                Invoice.patient_id,
                Invoice.invoice_date,
                Invoice.invoice_total,
                Invoice.invoice_code,
                Invoice.receipt_code,
                Patient.name.label("patient_name"),
                Patient.phone_no,
                Patient.mrn_no,
                Patient.first_visit_date,
                Doctor.doctor_name,
            )
            .join(Patient, Invoice.patient_id == Patient.patient_id)
            .outerjoin(Doctor, Invoice.doctor_id == Doctor.doctor_id)
        )

    def _invoice_record(self, row: Any, category: str | None = None) -> TransactionRecord:
        return make_record(
            row.invoice_id,
            row.patient_id,
            row.invoice_date,
            self.store_tz,
            self.report_tz,
            amount=row.invoice_total,
            category=category,
            cross_reference_key=row.mrn_no,
            patient_name=row.patient_name,
            phone_no=row.phone_no,
            mrn_no=row.mrn_no,
            invoice_code=row.invoice_code,
            receipt_code=row.receipt_code,
            doctor_name=row.doctor_name,
            first_visit_on=self._to_date(row.first_visit_date),
        )

    def registration_invoices(self, until: date) -> list[TransactionRecord]:
        """Registration-fee invoices from the start of history up to ``until``.

        Fee-sized invoices that are really consultation payments (a same-day
        consultation for the patient paid the same amount) are left out.
        """
        fee = self.settings.registration_fee
        stmt = self._invoice_detail_stmt().where(
            Invoice.invoice_total == fee,
            Invoice.invoice_date < _upper_bound(until),
        )
        rows = self._rows(stmt, "read registration invoices")

        consult_stmt = select(Consultation.patient_id, Consultation.visit_date).where(
            Consultation.total_payment == fee,
            Consultation.visit_date <= until + timedelta(days=1),
        )
        paid_consultations = {
            (str(row.patient_id), self._to_date(row.visit_date))
            for row in self._rows(consult_stmt, "read fee-paid consultations")
        }

        records = []
        for row in rows:
            record = self._invoice_record(row)
            if (record.entity_id, record.occurred_on) in paid_consultations:
                continue
            records.append(record)

        logger.debug(
            "Loaded registration invoices",
            fetched=len(rows),
            kept=len(records),
            until=until.isoformat(),
        )
        return records

    def paid_invoices(self, until: date) -> list[TransactionRecord]:
        """Invoices with a positive total from the start of history up to ``until``."""
        stmt = self._invoice_detail_stmt().where(
            Invoice.invoice_total > 0,
            Invoice.invoice_date < _upper_bound(until),
        )
        return [self._invoice_record(row) for row in self._rows(stmt, "read paid invoices")]

    # -- clinical events ------------------------------------------------

    def prescriptions(
        self,
        date_range: DateRange | None = None,
        until: date | None = None,
    ) -> list[TransactionRecord]:
        """Procedure prescriptions keyed by procedure code.

        Pass ``date_range`` for a window or ``until`` for full history.
        """
        stmt = (
            select(
                ProcedurePrescription.prescription_id,
                ProcedurePrescription.patient_id,
                ProcedurePrescription.prescription_date,
                ProcedurePrescription.procedure_code,
                ProcedurePrescription.procedure_name,
                Patient.mrn_no,
            )
            .outerjoin(Patient, ProcedurePrescription.patient_id == Patient.patient_id)
        )
        if date_range is not None:
            stmt = stmt.where(
                ProcedurePrescription.prescription_date >= _lower_bound(date_range.start),
                ProcedurePrescription.prescription_date < _upper_bound(date_range.end),
            )
        if until is not None:
            stmt = stmt.where(ProcedurePrescription.prescription_date < _upper_bound(until))

        return [
            make_record(
                row.prescription_id,
                row.patient_id,
                row.prescription_date,
                self.store_tz,
                self.report_tz,
                category=row.procedure_code,
                cross_reference_key=row.mrn_no,
                procedure_name=row.procedure_name,
            )
            for row in self._rows(stmt, "read procedure prescriptions")
        ]

    def consultations(self, date_range: DateRange) -> list[TransactionRecord]:
        """Consultations in ``date_range``; ``visit_date`` is already a calendar date."""
        stmt = select(
            Consultation.consultation_id,
            Consultation.patient_id,
            Consultation.visit_date,
            Consultation.total_payment,
        ).where(
            Consultation.visit_date >= date_range.start,
            Consultation.visit_date <= date_range.end,
        )
        return [
            make_record(
                row.consultation_id,
                row.patient_id,
                row.visit_date,
                self.store_tz,
                self.report_tz,
                amount=row.total_payment,
                category=CONSULTATION,
            )
            for row in self._rows(stmt, "read consultations")
        ]

    # -- auxiliary ------------------------------------------------------

    def pending_payments(self) -> tuple[int, float]:
        """Count and total of pending itemized sales on the latest visit date."""
        latest_visit = select(func.max(ItemizedSale.visit_date)).scalar_subquery()
        stmt = select(
            func.count(ItemizedSale.item_id),
            func.coalesce(func.sum(ItemizedSale.total_amount), 0),
        ).where(
            ItemizedSale.visit_date == latest_visit,
            ItemizedSale.payment_status == "pending",
        )
        with translate_store_errors("read pending payments"):
            count, total = self.db.execute(stmt).one()
        return int(count or 0), round(float(total or 0), 2)

    def connection_status(self) -> dict[str, Any]:
        """Connectivity probe: round trip, invoice count and latest invoice date."""
        with translate_store_errors("check database connectivity"):
            self.db.execute(text("SELECT 1")).scalar()
            count, latest = self.db.execute(
                select(func.count(Invoice.invoice_id), func.max(Invoice.invoice_date))
            ).one()
        return {
            "backend": self.db.get_bind().dialect.name,
            "invoice_count": int(count or 0),
            "latest_invoice_date": self._to_date(latest),
        }
