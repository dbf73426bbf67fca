"""Test data factories for the clinic reporting store and in-memory records."""

import itertools
from datetime import date, datetime, time
from typing import Any
from zoneinfo import ZoneInfo

from sqlalchemy.orm import Session

from wellness_dashboard.db.models import (
    Consultation,
    Doctor,
    Invoice,
    ItemizedSale,
    Patient,
    ProcedurePrescription,
)
from wellness_dashboard.services.records import TransactionRecord, make_record

KL = ZoneInfo("Asia/Kuala_Lumpur")
_ids = itertools.count(1)


def at(day: str, hour: int = 10, minute: int = 0) -> datetime:
    """Naive store timestamp on an ISO day."""
    return datetime.combine(date.fromisoformat(day), time(hour, minute))


def make_test_record(
    day: str | None,
    entity_id: str | None = "P1",
    category: str | None = None,
    amount: float = 0.0,
    hour: int = 10,
    record_id: str | None = None,
    cross_reference_key: str | None = None,
    **details: Any,
) -> TransactionRecord:
    """TransactionRecord normalized under Kuala Lumpur time on both sides."""
    raw = at(day, hour) if day else None
    return make_record(
        record_id or f"R{next(_ids):05d}",
        entity_id,
        raw,
        KL,
        KL,
        amount=amount,
        category=category,
        cross_reference_key=cross_reference_key,
        **details,
    )


class StoreDataFactory:
    """Writes clinic rows into a test database session."""

    def __init__(self, db: Session):
        self.db = db
        self._counter = itertools.count(1)

    def _id(self, prefix: str) -> str:
        return f"{prefix}{next(self._counter):05d}"

    def _save(self, obj):
        self.db.add(obj)
        self.db.commit()
        return obj

    def doctor(self, doctor_id: str = "D1", name: str = "Dr. Test") -> Doctor:
        return self._save(Doctor(doctor_id=doctor_id, doctor_name=name))

    def patient(
        self,
        patient_id: str,
        mrn_no: str | None = None,
        name: str | None = None,
        first_visit: datetime | None = None,
    ) -> Patient:
        return self._save(Patient(
            patient_id=patient_id,
            name=name or f"Patient {patient_id}",
            phone_no="+60-12-0000000",
            mrn_no=mrn_no,
            first_visit_date=first_visit,
        ))

    def invoice(
        self,
        patient_id: str | None,
        when: datetime,
        total: float,
        doctor_id: str | None = None,
        invoice_id: str | None = None,
    ) -> Invoice:
        invoice_id = invoice_id or self._id("I")
        return self._save(Invoice(
            invoice_id=invoice_id,
            patient_id=patient_id,
            doctor_id=doctor_id,
            invoice_date=when,
            invoice_total=total,
            invoice_code=f"INV-{invoice_id}",
            receipt_code=f"RCP-{invoice_id}",
        ))

    def consultation(self, patient_id: str, visit_date: date, total_payment: float = 0) -> Consultation:
        return self._save(Consultation(
            consultation_id=self._id("C"),
            patient_id=patient_id,
            visit_date=visit_date,
            total_payment=total_payment,
        ))

    def prescription(
        self,
        patient_id: str,
        when: datetime,
        code: str | None,
        name: str | None = None,
    ) -> ProcedurePrescription:
        return self._save(ProcedurePrescription(
            prescription_id=self._id("R"),
            patient_id=patient_id,
            prescription_date=when,
            procedure_code=code,
            procedure_name=name,
        ))

    def itemized_sale(self, visit_date: date, amount: float, status: str = "paid") -> ItemizedSale:
        return self._save(ItemizedSale(
            item_id=self._id("S"),
            visit_date=visit_date,
            total_amount=amount,
            payment_status=status,
        ))
