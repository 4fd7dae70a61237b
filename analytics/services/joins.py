"""
Cross-entity joins feeding the rating and prescription reports.

Each hop takes an optional reference and either degrades or drops the
record when it cannot be resolved:

==============================  =============================================
hop                             unresolved reference
==============================  =============================================
consultation -> doctor          consultation dropped (no grouping key)
doctor -> department            doctor rows: label ``"Unknown"``;
                                department rows: doctor excluded
bill item -> prescription       item dropped
==============================  =============================================

Hospital records routinely point at soft-deleted staff, so none of
these cases is an error.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Mapping, Optional, Sequence

from analytics.models import BillItem
from analytics.services.aggregation import distinct_average
from analytics.services.store import BillRecord, DepartmentRef, DoctorRef, EntryRef

UNKNOWN_DEPARTMENT = 'Unknown'


@dataclass(frozen=True)
class DoctorRow:
    doctor_id: int
    name: str
    department_id: Optional[int]
    department: str
    rating: float
    consultations: int


@dataclass
class DepartmentRow:
    department_id: int
    name: str
    consultations: int = 0
    doctor_ids: set[int] = field(default_factory=set)
    # unrated doctors (num_ratings == 0) are left out of the average
    doctor_ratings: dict[int, float] = field(default_factory=dict)

    @property
    def doctor_count(self) -> int:
        return len(self.doctor_ids)

    @property
    def avg_rating(self) -> float:
        return distinct_average(self.doctor_ratings.items()) or 0.0


@dataclass(frozen=True)
class DispensedLine:
    bill_id: int
    instant: object
    prescription_id: int
    dispensed: int


def resolve_doctor(doctor_id: Optional[int], doctors: Mapping[int, DoctorRef]) -> Optional[DoctorRef]:
    if doctor_id is None:
        return None
    return doctors.get(doctor_id)


def resolve_department(
    doctor: DoctorRef, departments: Mapping[int, DepartmentRef]
) -> Optional[DepartmentRef]:
    if doctor.department_id is None:
        return None
    return departments.get(doctor.department_id)


def doctor_rows(
    consultation_counts: Mapping[Optional[int], int],
    doctors: Mapping[int, DoctorRef],
    departments: Mapping[int, DepartmentRef],
) -> list[DoctorRow]:
    rows = []
    for doctor_id, consultations in consultation_counts.items():
        doctor = resolve_doctor(doctor_id, doctors)
        if doctor is None:
            continue
        department = resolve_department(doctor, departments)
        rows.append(DoctorRow(
            doctor_id=doctor.id,
            name=doctor.name,
            department_id=department.id if department else None,
            department=department.name if department else UNKNOWN_DEPARTMENT,
            rating=doctor.rating,
            consultations=consultations,
        ))
    rows.sort(key=lambda r: r.doctor_id)
    return rows


def department_rows(
    consultation_counts: Mapping[Optional[int], int],
    doctors: Mapping[int, DoctorRef],
    departments: Mapping[int, DepartmentRef],
) -> list[DepartmentRow]:
    grouped: dict[int, DepartmentRow] = {}
    for doctor_id, consultations in consultation_counts.items():
        doctor = resolve_doctor(doctor_id, doctors)
        if doctor is None:
            continue
        department = resolve_department(doctor, departments)
        if department is None:
            continue
        row = grouped.setdefault(department.id, DepartmentRow(department.id, department.name))
        row.consultations += consultations
        row.doctor_ids.add(doctor.id)
        if doctor.num_ratings > 0:
            row.doctor_ratings[doctor.id] = doctor.rating
    return [grouped[k] for k in sorted(grouped)]


def medication_prescription_ids(bills: Iterable[BillRecord]) -> set[int]:
    return {
        line.prescription_id
        for bill in bills
        for line in bill.items
        if line.item_type == BillItem.TYPE_MEDICATION and line.prescription_id is not None
    }


def dispensed_lines(
    bills: Iterable[BillRecord],
    entries_by_prescription: Mapping[int, Sequence[EntryRef]],
    medicine_id: int,
) -> list[DispensedLine]:
    """One line per medication bill item whose prescription lists ``medicine_id``.

    Lines with nothing dispensed are kept (quantity 0) so they still
    count as prescriptions of the medicine.
    """
    lines = []
    for bill in bills:
        for item in bill.items:
            if item.item_type != BillItem.TYPE_MEDICATION or item.prescription_id is None:
                continue
            entries = entries_by_prescription.get(item.prescription_id)
            if entries is None:
                continue
            matching = [e for e in entries if e.medicine_id == medicine_id]
            if not matching:
                continue
            lines.append(DispensedLine(
                bill_id=bill.id,
                instant=bill.generation_date,
                prescription_id=item.prescription_id,
                dispensed=sum(e.dispensed_qty for e in matching),
            ))
    return lines
