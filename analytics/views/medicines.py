"""
Medicine stock-in and consumption trends.

Both endpoints accept ``medicineId``, ``startDate`` and ``endDate``
either as a JSON body (POST) or as query parameters (GET) and answer
with a monthly series, a week-of-month series for every month and a
grand total.
"""
from __future__ import annotations

from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response

from analytics.permissions import IsAnalyticsViewer
from analytics.serializers.analytics import MedicineTrendSerializer
from analytics.services.reports import medicine_inventory_report, medicine_prescription_report


def _trend_params(request) -> dict:
    payload = request.data if request.method == 'POST' else request.query_params
    s = MedicineTrendSerializer(data=payload)
    s.is_valid(raise_exception=True)
    return s.validated_data


@api_view(['GET', 'POST'])
@permission_classes([IsAnalyticsViewer])
def medicine_inventory_trends(request):
    """Received quantities of a medicine; ordered and cancelled orders are ignored."""
    p = _trend_params(request)
    return Response(medicine_inventory_report(p['medicineId'], p['startDate'], p['endDate']))


@api_view(['GET', 'POST'])
@permission_classes([IsAnalyticsViewer])
def medicine_prescription_trends(request):
    """Dispensed quantities of a medicine, dated by the bill that charged them."""
    p = _trend_params(request)
    return Response(medicine_prescription_report(p['medicineId'], p['startDate'], p['endDate']))
