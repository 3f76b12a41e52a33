"""
Management command to mark matches as live once they kick off.

Status only moves forward: upcoming matches whose kick-off has passed become
live. Completing a match is done by entering its result.
"""

from __future__ import annotations

import logging

from django.core.management.base import BaseCommand
from django.utils import timezone

from goaltipp.tournaments.models import Match

logger = logging.getLogger(__name__)


class Command(BaseCommand):
    help = 'Mark upcoming matches as live once their kick-off time has passed'

    def add_arguments(self, parser):
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Show which matches would be updated without making changes',
        )

    def handle(self, *args, **options):
        now = timezone.now()
        started = Match.objects.filter(
            status=Match.Status.UPCOMING,
            match_date__lte=now,
        ).select_related('team1', 'team2')

        if not started.exists():
            self.stdout.write('No matches have kicked off since the last run')
            return

        if options['dry_run']:
            self.stdout.write(self.style.WARNING('DRY RUN MODE - No changes will be made'))
            for match in started:
                self.stdout.write(f'  - {match} (kick-off {match.match_date:%Y-%m-%d %H:%M})')
            return

        updated = started.update(status=Match.Status.LIVE, updated_at=now)
        logger.info('Marked %d matches as live', updated)
        self.stdout.write(self.style.SUCCESS(f'✓ Marked {updated} matches as live'))
