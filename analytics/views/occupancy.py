"""
Bed occupancy analytics.

Trends are derived from the daily occupancy snapshots; the facility
endpoint reports the current room and bed totals.
"""
from __future__ import annotations

from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response

from analytics.permissions import IsAnalyticsViewer
from analytics.serializers.analytics import OccupancyTrendQuerySerializer
from analytics.services.reports import bed_occupancy_report, facility_statistics_report


@api_view(['GET'])
@permission_classes([IsAnalyticsViewer])
def bed_occupancy_trends(request, period: str):
    """Occupied-bed counts between ``startDate`` and ``endDate`` per period.

    ``period`` is one of daily, weekly, monthly or yearly.  Both dates
    are inclusive calendar days.
    """
    s = OccupancyTrendQuerySerializer(data={**request.query_params.dict(), 'period': period})
    s.is_valid(raise_exception=True)
    data = s.validated_data
    return Response(bed_occupancy_report(data['period'], data['startDate'], data['endDate']))


@api_view(['GET'])
@permission_classes([IsAnalyticsViewer])
def facility_statistics(request):
    return Response(facility_statistics_report())
