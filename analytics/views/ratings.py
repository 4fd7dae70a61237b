"""
Doctor and department rating analytics.
"""
from __future__ import annotations

from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response

from analytics.permissions import IsAnalyticsViewer
from analytics.serializers.analytics import QuadrantThresholdSerializer, RatingFilterSerializer
from analytics.services.reports import (
    department_quadrant_report,
    department_rating_report,
    doctor_quadrant_report,
    feedback_comments_report,
    overall_rating_report,
    rating_distribution_report,
)


def _thresholds(request) -> tuple[float, int]:
    payload = request.data if request.method == 'POST' else request.query_params
    s = QuadrantThresholdSerializer(data=payload)
    s.is_valid(raise_exception=True)
    return s.validated_data['ratingThreshold'], s.validated_data['consultationThreshold']


@api_view(['GET'])
@permission_classes([IsAnalyticsViewer])
def doctor_rating_distribution(request):
    """Number of doctors per rating band (1.5-2.2 ... 4.3-5.0)."""
    return Response(rating_distribution_report())


@api_view(['GET', 'POST'])
@permission_classes([IsAnalyticsViewer])
def doctor_quadrants(request):
    """Doctors split by ``ratingThreshold`` x ``consultationThreshold``."""
    rating_threshold, consultation_threshold = _thresholds(request)
    return Response(doctor_quadrant_report(rating_threshold, consultation_threshold))


@api_view(['GET', 'POST'])
@permission_classes([IsAnalyticsViewer])
def department_quadrants(request):
    """Departments split by average doctor rating x total consultations."""
    rating_threshold, consultation_threshold = _thresholds(request)
    return Response(department_quadrant_report(rating_threshold, consultation_threshold))


@api_view(['GET'])
@permission_classes([IsAnalyticsViewer])
def department_rating(request, department_id: int):
    return Response(department_rating_report(department_id))


@api_view(['GET'])
@permission_classes([IsAnalyticsViewer])
def overall_rating(request):
    return Response(overall_rating_report())


@api_view(['GET'])
@permission_classes([IsAnalyticsViewer])
def feedback_comments(request, rating: str):
    """Comments of every feedback that gave exactly ``rating`` stars."""
    s = RatingFilterSerializer(data={'rating': rating})
    s.is_valid(raise_exception=True)
    return Response(feedback_comments_report(s.validated_data['rating']))
