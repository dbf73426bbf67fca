"""Demo dataset seeding for local development.

Creates the reporting tables in the database named by ``DATABASE_URL`` and
fills them with a few weeks of synthetic clinic activity. The reporting
service itself never writes; this script is the only writer.

    python -m wellness_dashboard.scripts.seed --days 30
"""

import argparse
import random
from datetime import date, datetime, time, timedelta

from sqlalchemy.orm import Session

from wellness_dashboard.db.base import build_engine
from wellness_dashboard.db.models import (
    Base,
    Consultation,
    Doctor,
    Invoice,
    ItemizedSale,
    Patient,
    ProcedurePrescription,
)

PROCEDURES = [
    ("IVD", "IV Drip Therapy"),
    ("HBO", "Hyperbaric Oxygen"),
    ("PRP", "Platelet Rich Plasma"),
    ("TRIAL-HBO", "Hyperbaric Oxygen Trial"),
]
DOCTORS = [("D1", "Dr. Aminah Yusof"), ("D2", "Dr. Lim Wei Jie")]


def create_tables(session: Session) -> None:
    """Create all reporting tables if they don't exist."""
    Base.metadata.create_all(bind=session.get_bind())


def seed_reference_data(session: Session, patients: int) -> list[Patient]:
    if session.query(Doctor).first():
        print("✓ Reference data already exists")
        return session.query(Patient).all()

    for doctor_id, name in DOCTORS:
        session.add(Doctor(doctor_id=doctor_id, doctor_name=name))

    created = []
    for index in range(1, patients + 1):
        patient = Patient(
            patient_id=f"P{index:04d}",
            name=f"Patient {index}",
            phone_no=f"+60-12-{index:07d}",
            # Roughly one in five patients has no MRN yet
            mrn_no=None if index % 5 == 0 else f"MRN{index:05d}",
        )
        session.add(patient)
        created.append(patient)

    session.commit()
    print(f"✓ Created {len(DOCTORS)} doctors and {len(created)} patients")
    return created


def seed_activity(session: Session, patients: list[Patient], start: date, days: int, rng: random.Random) -> None:
    counter = 0

    def next_id(prefix: str) -> str:
        nonlocal counter
        counter += 1
        return f"{prefix}{counter:06d}"

    for offset in range(days):
        day = start + timedelta(days=offset)
        for _ in range(rng.randint(6, 18)):
            patient = rng.choice(patients)
            at = datetime.combine(day, time(rng.randint(9, 19), rng.randint(0, 59)))
            if patient.first_visit_date is None:
                patient.first_visit_date = at

            session.add(Consultation(
                consultation_id=next_id("C"),
                patient_id=patient.patient_id,
                visit_date=day,
                total_payment=rng.choice([0, 50, 120]),
            ))
            if rng.random() < 0.4:
                code, name = rng.choice(PROCEDURES)
                session.add(ProcedurePrescription(
                    prescription_id=next_id("R"),
                    patient_id=patient.patient_id,
                    prescription_date=at,
                    procedure_code=code,
                    procedure_name=name,
                ))
            session.add(Invoice(
                invoice_id=next_id("I"),
                patient_id=patient.patient_id,
                doctor_id=rng.choice(DOCTORS)[0],
                invoice_date=at + timedelta(minutes=30),
                invoice_total=rng.choice([50, 50, 180, 350, 900]),
                invoice_code=next_id("INV"),
                receipt_code=next_id("RCP"),
            ))
            session.add(ItemizedSale(
                item_id=next_id("S"),
                visit_date=day,
                total_amount=rng.choice([30, 80, 150]),
                payment_status=rng.choice(["paid", "paid", "pending"]),
            ))
        session.commit()
        print(f"✓ Seeded activity for {day.isoformat()}")


def main() -> None:
    parser = argparse.ArgumentParser(description="Seed the reporting store with demo data")
    parser.add_argument("--days", type=int, default=30)
    parser.add_argument("--patients", type=int, default=60)
    parser.add_argument("--seed", type=int, default=42)
    args = parser.parse_args()

    print("🌱 Starting database seeding...")
    engine = build_engine()
    rng = random.Random(args.seed)
    with Session(engine) as session:
        create_tables(session)
        patients = seed_reference_data(session, args.patients)
        start = date.today() - timedelta(days=args.days - 1)
        seed_activity(session, patients, start, args.days, rng)
    print("🎉 Database seeding completed successfully!")


if __name__ == "__main__":
    main()
