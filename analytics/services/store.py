"""
Read accessors over the hospital record collections.

Every function returns fully materialised data so that a database error
surfaces here, where it is converted to :class:`DependencyFailure`,
rather than later while a report is being assembled.  No business
rules live in this module beyond the filters each accessor is named
after.
"""
from __future__ import annotations

import functools
from dataclasses import dataclass
from datetime import date, datetime
from typing import Iterable, Optional

from django.db import DatabaseError
from django.db.models import Count, Prefetch, Q

from analytics.exceptions import DependencyFailure
from analytics.models import (
    Bed,
    Bill,
    BillItem,
    Consultation,
    Department,
    Doctor,
    Feedback,
    InventoryMovement,
    Medicine,
    OccupancySnapshot,
    Prescription,
    PrescriptionEntry,
    Room,
)


@dataclass(frozen=True)
class DoctorRef:
    id: int
    name: str
    rating: float
    num_ratings: int
    department_id: Optional[int]


@dataclass(frozen=True)
class DepartmentRef:
    id: int
    name: str


@dataclass(frozen=True)
class BillLine:
    item_type: str
    prescription_id: Optional[int]


@dataclass(frozen=True)
class BillRecord:
    id: int
    generation_date: datetime
    items: tuple[BillLine, ...]


@dataclass(frozen=True)
class EntryRef:
    medicine_id: int
    dispensed_qty: int


def store_access(fn):
    """Convert database errors raised by ``fn`` into ``DependencyFailure``."""
    @functools.wraps(fn)
    def wrapper(*args, **kwargs):
        try:
            return fn(*args, **kwargs)
        except DatabaseError as exc:
            raise DependencyFailure(f'Record store unavailable ({fn.__name__}).') from exc
    return wrapper


# ---------------------------------------------------------------------------
# Occupancy
# ---------------------------------------------------------------------------

@store_access
def occupancy_snapshots(start: date, end: date) -> list[OccupancySnapshot]:
    return list(OccupancySnapshot.objects.filter(date__gte=start, date__lte=end).order_by('date'))


@store_access
def occupied_bed_ids(as_of: datetime) -> list[int]:
    """Beds marked occupied whose occupancy began no later than ``as_of``."""
    qs = Bed.objects.filter(status=Bed.STATUS_OCCUPIED).filter(
        Q(occupied_since__isnull=True) | Q(occupied_since__lte=as_of)
    )
    return sorted(qs.values_list('id', flat=True))


@store_access
def facility_counts() -> tuple[int, int, int]:
    return (
        Room.objects.count(),
        Bed.objects.count(),
        Bed.objects.filter(status=Bed.STATUS_OCCUPIED).count(),
    )


# ---------------------------------------------------------------------------
# Pharmacy & billing
# ---------------------------------------------------------------------------

@store_access
def get_medicine(medicine_id: int) -> Optional[Medicine]:
    return Medicine.objects.filter(id=medicine_id).first()


@store_access
def received_movements(medicine_id: int, lower: datetime, upper: datetime) -> list[InventoryMovement]:
    qs = InventoryMovement.objects.filter(
        medicine_id=medicine_id,
        status=InventoryMovement.STATUS_RECEIVED,
        order_date__gte=lower,
        order_date__lte=upper,
    ).order_by('order_date', 'id')
    return list(qs)


@store_access
def bills_in_range(lower: datetime, upper: datetime) -> list[BillRecord]:
    items = BillItem.objects.order_by('position', 'id').only('bill_id', 'item_type', 'prescription_id')
    qs = (
        Bill.objects.filter(generation_date__gte=lower, generation_date__lte=upper)
        .prefetch_related(Prefetch('items', queryset=items))
        .order_by('generation_date', 'id')
    )
    return [
        BillRecord(
            id=b.id,
            generation_date=b.generation_date,
            items=tuple(BillLine(i.item_type, i.prescription_id) for i in b.items.all()),
        )
        for b in qs
    ]


@store_access
def prescription_entries(prescription_ids: Iterable[int]) -> dict[int, list[EntryRef]]:
    """Entries keyed by prescription; prescriptions that no longer exist are absent."""
    found = {pid: [] for pid in Prescription.objects.filter(id__in=list(prescription_ids)).values_list('id', flat=True)}
    rows = PrescriptionEntry.objects.filter(prescription_id__in=list(found)).values_list(
        'prescription_id', 'medicine_id', 'dispensed_qty'
    )
    for pid, medicine_id, dispensed in rows:
        found[pid].append(EntryRef(medicine_id, dispensed))
    return found


# ---------------------------------------------------------------------------
# Staff directory & consultations
# ---------------------------------------------------------------------------

@store_access
def consultation_counts() -> dict[Optional[int], int]:
    """Number of consultations per doctor id (``None`` for orphaned rows)."""
    rows = Consultation.objects.values('doctor_id').annotate(n=Count('id')).order_by()
    return {r['doctor_id']: r['n'] for r in rows}


@store_access
def doctors_by_id(doctor_ids: Iterable[int]) -> dict[int, DoctorRef]:
    qs = Doctor.objects.filter(id__in=list(doctor_ids)).select_related('employee')
    return {
        d.id: DoctorRef(d.id, d.employee.name, d.rating, d.num_ratings, d.department_id)
        for d in qs
    }


@store_access
def departments_by_id(department_ids: Iterable[int]) -> dict[int, DepartmentRef]:
    qs = Department.objects.filter(id__in=list(department_ids)).only('id', 'name')
    return {d.id: DepartmentRef(d.id, d.name) for d in qs}


@store_access
def get_department(department_id: int) -> Optional[DepartmentRef]:
    d = Department.objects.filter(id=department_id).only('id', 'name').first()
    return DepartmentRef(d.id, d.name) if d else None


@store_access
def department_doctor_ratings(department_id: int) -> dict[int, float]:
    """Ratings of the department's doctors that have received at least one rating."""
    qs = Doctor.objects.filter(department_id=department_id, num_ratings__gt=0)
    return dict(qs.values_list('id', 'rating'))


@store_access
def department_doctor_count(department_id: int) -> int:
    return Doctor.objects.filter(department_id=department_id).count()


@store_access
def doctor_ratings() -> list[float]:
    return list(Doctor.objects.values_list('rating', flat=True))


# ---------------------------------------------------------------------------
# Feedback
# ---------------------------------------------------------------------------

@store_access
def feedback_ratings() -> list[int]:
    return list(Feedback.objects.values_list('rating', flat=True))


@store_access
def feedback_comments(rating: int) -> list[str]:
    return list(Feedback.objects.filter(rating=rating).order_by('created_at', 'id').values_list('comments', flat=True))


@store_access
def department_feedback_count(department_id: int) -> int:
    return Feedback.objects.filter(consultation__doctor__department_id=department_id).count()
