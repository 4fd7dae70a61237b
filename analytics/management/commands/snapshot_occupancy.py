from datetime import date

from django.core.management.base import BaseCommand, CommandError
from django.utils import timezone

from analytics.services.snapshots import take_occupancy_snapshot


class Command(BaseCommand):
    help = (
        "Record the beds occupied today as today's occupancy snapshot. "
        "Bed state is read as it is now, so past days cannot be backfilled."
    )

    def add_arguments(self, parser):
        parser.add_argument('--date', dest='day', help='Day to snapshot, YYYY-MM-DD; today or later')

    def handle(self, *args, **options):
        today = timezone.localdate()
        day = today
        if options.get('day'):
            try:
                day = date.fromisoformat(options['day'])
            except ValueError:
                raise CommandError(f"Invalid --date {options['day']!r}, expected YYYY-MM-DD")
            if day < today:
                raise CommandError(
                    f"Cannot snapshot {day}: only the current bed state is known, use today ({today}) or later"
                )

        snapshot, created = take_occupancy_snapshot(day)
        verb = 'Created' if created else 'Updated'
        self.stdout.write(self.style.SUCCESS(
            f"{verb} snapshot for {snapshot.date}: {snapshot.occupied_bed_count} occupied beds"
        ))
