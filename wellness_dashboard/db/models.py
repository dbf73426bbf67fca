"""SQLAlchemy 2.x mappings of the clinic reporting schema.

The service only reads these tables. Timestamps are stored without a time
zone, in the store's local civil time (see ``STORE_TIMEZONE``).
"""

from datetime import date, datetime
from typing import Optional

from sqlalchemy import Date, DateTime, ForeignKey, Numeric, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all database models."""
    pass


class Doctor(Base):
    """Practitioner attached to invoices."""

    __tablename__ = "doctors"

    doctor_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    doctor_name: Mapped[Optional[str]] = mapped_column(String(255))


class Patient(Base):
    """Registered patient; ``mrn_no`` is the medical record number."""

    __tablename__ = "patients"

    patient_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[Optional[str]] = mapped_column(String(255))
    phone_no: Mapped[Optional[str]] = mapped_column(String(50))
    mrn_no: Mapped[Optional[str]] = mapped_column(String(64), index=True)
    first_visit_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=False))


class Invoice(Base):
    """Billed transaction."""

    __tablename__ = "invoices"

    invoice_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    patient_id: Mapped[Optional[str]] = mapped_column(
        String(64), ForeignKey("patients.patient_id"), index=True
    )
    doctor_id: Mapped[Optional[str]] = mapped_column(String(64), ForeignKey("doctors.doctor_id"))
    invoice_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=False), index=True)
    invoice_total: Mapped[Optional[float]] = mapped_column(Numeric(12, 2, asdecimal=False))
    invoice_code: Mapped[Optional[str]] = mapped_column(String(64))
    receipt_code: Mapped[Optional[str]] = mapped_column(String(64))


class Consultation(Base):
    """Consultation visit; ``visit_date`` is already a calendar date."""

    __tablename__ = "consultations"

    consultation_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    patient_id: Mapped[Optional[str]] = mapped_column(
        String(64), ForeignKey("patients.patient_id"), index=True
    )
    visit_date: Mapped[Optional[date]] = mapped_column(Date, index=True)
    total_payment: Mapped[Optional[float]] = mapped_column(Numeric(12, 2, asdecimal=False))


class ProcedurePrescription(Base):
    """Procedure prescribed to a patient."""

    __tablename__ = "procedure_prescriptions"

    prescription_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    patient_id: Mapped[Optional[str]] = mapped_column(
        String(64), ForeignKey("patients.patient_id"), index=True
    )
    prescription_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=False), index=True)
    procedure_code: Mapped[Optional[str]] = mapped_column(String(64))
    procedure_name: Mapped[Optional[str]] = mapped_column(String(255))


class ItemizedSale(Base):
    """Line-level sale with a payment status."""

    __tablename__ = "itemized_sales"

    item_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    visit_date: Mapped[Optional[date]] = mapped_column(Date, index=True)
    total_amount: Mapped[Optional[float]] = mapped_column(Numeric(12, 2, asdecimal=False))
    payment_status: Mapped[Optional[str]] = mapped_column(String(32))
