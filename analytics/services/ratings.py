"""
Doctor rating maintenance and the rating histogram.

``Doctor.rating`` is a running mean weighted by ``Doctor.num_ratings``.
New feedback folds into it with a single ``UPDATE`` whose arithmetic
runs in the database, so concurrent submissions for the same doctor
cannot overwrite one another.
"""
from __future__ import annotations

import logging
from typing import Iterable, Optional

import bleach
from django.db import transaction
from django.db.models import ExpressionWrapper, F, FloatField
from rest_framework.exceptions import PermissionDenied

from analytics.exceptions import NotFoundError, ValidationError
from analytics.models import Consultation, Doctor, Feedback

logger = logging.getLogger(__name__)

# (low, high, label); every bin is [low, high) except the top one, which also holds 5.0
RATING_BINS = (
    (1.5, 2.2, '1.5-2.2'),
    (2.2, 2.9, '2.2-2.9'),
    (2.9, 3.6, '2.9-3.6'),
    (3.6, 4.3, '3.6-4.3'),
    (4.3, 5.0, '4.3-5.0'),
)


def running_mean(mean: float, weight: int, rating: float) -> tuple[float, int]:
    return (mean * weight + rating) / (weight + 1), weight + 1


def rating_bin(rating: float) -> Optional[str]:
    for low, high, label in RATING_BINS:
        if low <= rating < high:
            return label
    _, top, top_label = RATING_BINS[-1]
    if rating == top:
        return top_label
    return None


def rating_histogram(ratings: Iterable[float]) -> dict[str, int]:
    """Count ratings per bin.  Ratings outside every bin (below 1.5) are not counted."""
    distribution = {label: 0 for _, _, label in RATING_BINS}
    for rating in ratings:
        label = rating_bin(rating)
        if label is not None:
            distribution[label] += 1
    return distribution


def apply_rating(doctor_id: int, rating: int) -> bool:
    """Fold ``rating`` into the doctor's running mean.  Returns False if the doctor is gone."""
    weighted = ExpressionWrapper(F('rating') * F('num_ratings') + float(rating), output_field=FloatField())
    # rating is assigned before num_ratings: MySQL evaluates SET clauses left to right
    updated = Doctor.objects.filter(id=doctor_id).update(
        rating=ExpressionWrapper(weighted / (F('num_ratings') + 1), output_field=FloatField()),
        num_ratings=F('num_ratings') + 1,
    )
    return updated == 1


@transaction.atomic
def record_feedback(*, patient_id: int, consultation_id: int, rating: int, comments: str = '') -> tuple[Feedback, Optional[Doctor]]:
    try:
        consultation = Consultation.objects.select_for_update().get(id=consultation_id)
    except Consultation.DoesNotExist:
        raise NotFoundError('Consultation not found')
    if consultation.patient_id != patient_id:
        raise PermissionDenied('Feedback can only be submitted by the patient who had the consultation')
    if Feedback.objects.filter(consultation_id=consultation.id).exists():
        raise ValidationError('Feedback has already been submitted for this consultation')

    feedback = Feedback.objects.create(
        consultation=consultation,
        rating=rating,
        comments=bleach.clean((comments or '').strip(), strip=True),
    )

    doctor = None
    if consultation.doctor_id is not None and apply_rating(consultation.doctor_id, rating):
        doctor = Doctor.objects.select_related('employee').get(id=consultation.doctor_id)
        logger.info(
            'doctor %s rating now %.3f over %d ratings', doctor.id, doctor.rating, doctor.num_ratings
        )
    return feedback, doctor
