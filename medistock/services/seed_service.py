# medistock/services/seed_service.py
"""
Demo catalog: 5 medicines, 3 dispensers in the Bucaramanga area, stock,
and two patients (one with prescriptions). Idempotent.
"""

from __future__ import annotations

import logging
from datetime import date

from sqlalchemy.orm import Session

from medistock.core.security import get_password_hash
from medistock.models import Dispenser, InventoryItem, Medicine, Patient, Prescription

logger = logging.getLogger(__name__)

DEMO_MEDICINES = [
    # code, atc, name, form, strength
    ("ACET500TAB", "N02BE01", "Acetaminofén", "Tableta", "500 mg"),
    ("METF850TAB", "A10BA02", "Metformina", "Tableta", "850 mg"),
    ("ENAL10TAB", "C09AA05", "Enalapril", "Tableta", "10 mg"),
    ("AMOX500CAP", "J01CA04", "Amoxicilina", "Cápsula", "500 mg"),
    ("DEXT15SIR", "R05DA04", "Dextrometorfano", "Jarabe", "15 mg/5 ml"),
]

DEMO_DISPENSERS = [
    # code, name, city, location, lat, lng, open_days, open_hour, close_hour
    ("BGA-001", "Disp. Av. 27", "Bucaramanga", "Av. 27 #15-45", 7.118, -73.122, "mon-sat", "08:00", "19:00"),
    ("BGA-002", "Disp. Cañaveral", "Floridablanca", "C.C. Cañaveral", 7.062, -73.086, "daily", "10:00", "21:00"),
    ("BGA-003", "Disp. UIS", "Bucaramanga", "UIS Entrada Principal", 7.139, -73.121, "mon-fri", "07:00", "18:00"),
]

DEMO_INVENTORY = [
    # dispenser code, medicine code, units
    ("BGA-001", "ACET500TAB", 10),
    ("BGA-001", "METF850TAB", 5),
    ("BGA-001", "ENAL10TAB", 10),
    ("BGA-002", "ACET500TAB", 20),
    ("BGA-002", "AMOX500CAP", 35),
    ("BGA-003", "METF850TAB", 25),
    ("BGA-003", "ENAL10TAB", 8),
    ("BGA-003", "DEXT15SIR", 25),
]

DEMO_PATIENTS = [
    # cc, name, email, password, phone, address, city
    ("100000001", "Ana Paciente", "ana@medistock.co", "ana12345", "3001112233", "Cra 10 # 20-30", "Bucaramanga"),
    ("100000002", "Carlos Paciente", "carlos@medistock.co", "carlos123", "3005556677", "Av 27 # 15-45", "Bucaramanga"),
]

DEMO_PRESCRIPTIONS = [
    # patient email, rx number, medicine code, max units, dosage, frequency
    ("ana@medistock.co", "RX-A001", "ACET500TAB", 30, "500 mg", "every 8 hours for 5 days"),
    ("ana@medistock.co", "RX-A002", "METF850TAB", 30, "850 mg", "twice a day"),
]


def seed_demo_data(db: Session) -> dict[str, int]:
    """
    Insert whatever part of the demo catalog is missing. Returns counts of
    rows created per table.
    """
    created = {"medicines": 0, "dispensers": 0, "inventory": 0, "patients": 0, "prescriptions": 0}

    medicines: dict[str, Medicine] = {m.code: m for m in db.query(Medicine).all()}
    for code, atc, name, form, strength in DEMO_MEDICINES:
        if code not in medicines:
            medicines[code] = Medicine(code=code, atc=atc, name=name, form=form, strength=strength)
            db.add(medicines[code])
            created["medicines"] += 1

    dispensers: dict[str, Dispenser] = {d.code: d for d in db.query(Dispenser).all()}
    for code, name, city, location, lat, lng, open_days, open_hour, close_hour in DEMO_DISPENSERS:
        if code not in dispensers:
            dispensers[code] = Dispenser(
                code=code,
                name=name,
                city=city,
                location=location,
                lat=lat,
                lng=lng,
                open_days=open_days,
                open_hour=open_hour,
                close_hour=close_hour,
            )
            db.add(dispensers[code])
            created["dispensers"] += 1
    db.flush()

    for dispenser_code, medicine_code, units in DEMO_INVENTORY:
        dispenser_id = dispensers[dispenser_code].id
        medicine_id = medicines[medicine_code].id
        if db.get(InventoryItem, (dispenser_id, medicine_id)) is None:
            db.add(InventoryItem(dispenser_id=dispenser_id, medicine_id=medicine_id, units=units))
            created["inventory"] += 1

    patients: dict[str, Patient] = {p.email: p for p in db.query(Patient).all()}
    for cc, name, email, password, phone, address, city in DEMO_PATIENTS:
        if email not in patients:
            patients[email] = Patient(
                cc=cc,
                name=name,
                email=email,
                password_hash=get_password_hash(password),
                phone=phone,
                address=address,
                city=city,
            )
            db.add(patients[email])
            created["patients"] += 1
    db.flush()

    for email, rx_number, medicine_code, max_units, dosage, frequency in DEMO_PRESCRIPTIONS:
        patient_id = patients[email].id
        medicine_id = medicines[medicine_code].id
        exists = (
            db.query(Prescription.id)
            .filter(Prescription.patient_id == patient_id, Prescription.medicine_id == medicine_id)
            .first()
        )
        if not exists:
            db.add(
                Prescription(
                    patient_id=patient_id,
                    medicine_id=medicine_id,
                    rx_number=rx_number,
                    max_units=max_units,
                    used_units=0,
                    valid_until=date(2099, 12, 31),
                    dosage=dosage,
                    frequency=frequency,
                )
            )
            created["prescriptions"] += 1

    db.flush()
    logger.info("Demo data seeded: %s", created)
    return created
