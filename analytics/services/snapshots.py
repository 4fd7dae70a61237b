import logging
from datetime import date
from typing import Optional

from django.utils import timezone

from analytics.models import OccupancySnapshot
from analytics.services import store
from analytics.services.bucketing import day_bounds

logger = logging.getLogger(__name__)


def take_occupancy_snapshot(day: Optional[date] = None) -> tuple[OccupancySnapshot, bool]:
    """Record the beds occupied on ``day`` (today by default).

    Bed state is read as it is now; ``day`` only bounds ``occupied_since``.
    Re-running for the same day replaces that day's bed list.
    """
    day = day or timezone.localdate()
    _, end_of_day = day_bounds(day, day)
    bed_ids = store.occupied_bed_ids(end_of_day)
    snapshot, created = OccupancySnapshot.objects.update_or_create(
        date=day, defaults={'occupied_beds': bed_ids}
    )
    logger.info('occupancy snapshot %s for %s: %d beds', 'created' if created else 'updated', day, len(bed_ids))
    return snapshot, created
