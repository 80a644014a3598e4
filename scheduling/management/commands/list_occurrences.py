"""
Management command to print a studio's schedule for a date window.

Occurrences are derived at read time, so this shows exactly what the booking
pages show: retimed and cancelled dates applied, live booking counts attached.
"""

import uuid
from datetime import datetime, time, timedelta

from django.conf import settings
from django.core.management.base import BaseCommand, CommandError
from django.utils import timezone

from scheduling.catalog import SessionCatalog


class Command(BaseCommand):
    help = 'List the class occurrences of a studio for the next days'

    def add_arguments(self, parser):
        parser.add_argument('studio_id', help='Studio UUID')
        parser.add_argument(
            '--days',
            type=int,
            default=settings.SCHEDULING_DEFAULT_DAYS_AHEAD,
            help=f'Number of days to list (default: {settings.SCHEDULING_DEFAULT_DAYS_AHEAD})'
        )
        parser.add_argument(
            '--start',
            help='First day to list, YYYY-MM-DD (default: today)'
        )
        parser.add_argument('--class-id', dest='class_id', help='Only list one class')

    def handle(self, *args, **options):
        try:
            studio_id = uuid.UUID(options['studio_id'])
        except ValueError:
            raise CommandError('studio_id must be a UUID')

        days = options['days']
        if days < 1:
            raise CommandError('--days must be at least 1')

        if options['start']:
            try:
                first_day = datetime.strptime(options['start'], '%Y-%m-%d').date()
            except ValueError:
                raise CommandError('--start must be formatted YYYY-MM-DD')
        else:
            first_day = timezone.localdate()

        window_start = timezone.make_aware(datetime.combine(first_day, time.min))
        window_end = timezone.make_aware(
            datetime.combine(first_day + timedelta(days=days - 1), time.max)
        )

        occurrences = SessionCatalog().list_occurrences(
            studio_id,
            window_start,
            window_end,
            class_id=options['class_id']
        )

        for occurrence in occurrences:
            flags = []
            if occurrence.is_exception:
                flags.append(f'moved from {occurrence.original_date}')
            if occurrence.is_full:
                flags.append('full')

            start = timezone.localtime(occurrence.start_time).strftime('%a %Y-%m-%d %H:%M')
            line = (
                f'{start}  {occurrence.class_name}  '
                f'{occurrence.bookings_count}/{occurrence.capacity}'
            )
            if flags:
                line += f"  ({', '.join(flags)})"
            self.stdout.write(line)

        self.stdout.write(
            self.style.SUCCESS(f'{len(occurrences)} occurrence(s) listed')
        )
