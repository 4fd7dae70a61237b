"""
Report assembly: fetch, join, bucket, reduce and shape the JSON payloads
returned by the analytics endpoints.
"""
from __future__ import annotations

from datetime import date
from operator import attrgetter

from analytics.exceptions import NotFoundError, ValidationError
from analytics.models import Medicine
from analytics.services import store
from analytics.services.aggregation import average, distinct_average, monthly_weekly_series, occupancy_trend
from analytics.services.bucketing import day_bounds
from analytics.services.joins import (
    DepartmentRow,
    DoctorRow,
    department_rows,
    dispensed_lines,
    doctor_rows,
    medication_prescription_ids,
)
from analytics.services.quadrants import QUADRANT_KEYS, classify
from analytics.services.ratings import rating_histogram


def format_medicine(medicine: Medicine) -> dict:
    return {'id': str(medicine.id), 'name': medicine.med_name}


def _require_medicine(medicine_id: int) -> Medicine:
    medicine = store.get_medicine(medicine_id)
    if medicine is None:
        raise NotFoundError('Medicine not found')
    return medicine


# ---------------------------------------------------------------------------
# Occupancy
# ---------------------------------------------------------------------------

def bed_occupancy_report(period: str, start: date, end: date) -> dict:
    if start > end:
        raise ValidationError('startDate cannot be later than endDate.')
    snapshots = store.occupancy_snapshots(start, end)
    return {
        'period': period,
        'startDate': start.isoformat(),
        'endDate': end.isoformat(),
        'occupancyEntries': [
            {
                'date': s.date.isoformat(),
                'occupiedBedCount': s.occupied_bed_count,
                'occupiedBeds': list(s.occupied_beds or []),
            }
            for s in snapshots
        ],
        'trends': occupancy_trend(snapshots, period),
    }


def facility_statistics_report() -> dict:
    rooms, beds, occupied = store.facility_counts()
    return {'totalRooms': rooms, 'totalBeds': beds, 'occupiedBeds': occupied}


# ---------------------------------------------------------------------------
# Medicines
# ---------------------------------------------------------------------------

def medicine_inventory_report(medicine_id: int, start: date, end: date) -> dict:
    medicine = _require_medicine(medicine_id)
    lower, upper = day_bounds(start, end)
    movements = store.received_movements(medicine_id, lower, upper)
    series = monthly_weekly_series(movements, instant=attrgetter('order_date'), quantity=attrgetter('quantity'))
    return {
        'medicine': format_medicine(medicine),
        'monthlyData': series.monthly_data(),
        'weeklyDataByMonth': series.weekly,
        'totalOrders': series.total,
    }


def medicine_prescription_report(medicine_id: int, start: date, end: date) -> dict:
    medicine = _require_medicine(medicine_id)
    lower, upper = day_bounds(start, end)
    bills = store.bills_in_range(lower, upper)
    entries = store.prescription_entries(medication_prescription_ids(bills))
    lines = dispensed_lines(bills, entries, medicine_id)
    series = monthly_weekly_series(lines, instant=attrgetter('instant'), quantity=attrgetter('dispensed'))
    return {
        'medicine': format_medicine(medicine),
        'monthlyData': series.monthly_data(),
        'weeklyDataByMonth': series.weekly,
        'totalPrescriptionsQuantity': series.total,
        'totalPrescriptions': series.record_count,
    }


# ---------------------------------------------------------------------------
# Ratings
# ---------------------------------------------------------------------------

def rating_distribution_report() -> dict[str, int]:
    return rating_histogram(store.doctor_ratings())


def _staff_graph():
    counts = store.consultation_counts()
    doctors = store.doctors_by_id(k for k in counts if k is not None)
    departments = store.departments_by_id(
        {d.department_id for d in doctors.values() if d.department_id is not None}
    )
    return counts, doctors, departments


def _doctor_item(row: DoctorRow) -> dict:
    return {
        'DOCTOR': row.name,
        'DEPARTMENT': row.department,
        'RATING': f'{row.rating:.2f}',
        'CONSULTATIONS': row.consultations,
    }


def _department_item(row: DepartmentRow) -> dict:
    return {
        'DEPARTMENT': row.name,
        'AVG_RATING': f'{row.avg_rating:.2f}',
        'CONSULTATIONS': row.consultations,
        'DOCTOR_COUNT': row.doctor_count,
    }


def doctor_quadrant_report(rating_threshold: float, consultation_threshold: int) -> dict:
    rows = doctor_rows(*_staff_graph())
    quadrants = classify(
        rows, rating_threshold, consultation_threshold,
        rating=attrgetter('rating'), volume=attrgetter('consultations'),
    )
    payload: dict = {key: [_doctor_item(r) for r in quadrants.items[key]] for key in QUADRANT_KEYS}
    payload['counts'] = quadrants.counts()
    payload['graphData'] = [
        {
            'doctorId': r.doctor_id,
            'doctorName': r.name,
            'department': r.department,
            'rating': r.rating,
            'consultations': r.consultations,
        }
        for r in rows
    ]
    return payload


def department_quadrant_report(rating_threshold: float, consultation_threshold: int) -> dict:
    rows = department_rows(*_staff_graph())
    quadrants = classify(
        rows, rating_threshold, consultation_threshold,
        rating=attrgetter('avg_rating'), volume=attrgetter('consultations'),
    )
    payload: dict = {key: [_department_item(r) for r in quadrants.items[key]] for key in QUADRANT_KEYS}
    payload['counts'] = quadrants.counts()
    payload['graphData'] = [
        {
            'departmentId': r.department_id,
            'departmentName': r.name,
            'avgRating': r.avg_rating,
            'consultations': r.consultations,
            'doctorCount': r.doctor_count,
        }
        for r in rows
    ]
    return payload


def department_rating_report(department_id: int) -> dict:
    department = store.get_department(department_id)
    if department is None:
        raise NotFoundError('Department not found')
    ratings = store.department_doctor_ratings(department_id)
    return {
        'departmentId': department.id,
        'departmentName': department.name,
        'departmentRating': distinct_average(ratings.items()) or 0,
        'doctorCount': store.department_doctor_count(department_id),
        'feedbackCount': store.department_feedback_count(department_id),
    }


def overall_rating_report() -> dict:
    ratings = store.feedback_ratings()
    return {'overallRating': average(ratings) or 0, 'totalFeedbacks': len(ratings)}


def feedback_comments_report(rating: int) -> dict:
    comments = store.feedback_comments(rating)
    return {'rating': rating, 'totalComments': len(comments), 'comments': comments}
