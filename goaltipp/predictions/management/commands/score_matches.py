"""
Management command to score predictions for completed matches.

Picks up every completed match whose predictions have not been scored yet,
which makes it the retry path after an interrupted result entry. Safe to run
on a schedule: a match is only ever scored once unless --force is given.
"""

from __future__ import annotations

import logging

from django.conf import settings
from django.core.management.base import BaseCommand, CommandError

from goaltipp.predictions.scoring_service import (
    ProcessPendingResult,
    pending_matches,
    process_pending_matches,
)

logger = logging.getLogger(__name__)


class Command(BaseCommand):
    help = 'Score predictions for completed matches that have not been scored yet'

    def add_arguments(self, parser):
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Show what would be scored without making changes',
        )
        parser.add_argument(
            '--force',
            action='store_true',
            help='Recompute points for every completed match, including already scored ones',
        )
        parser.add_argument(
            '--force-automation',
            action='store_true',
            help='Score matches even if automation is disabled via AUTO_SCORE_MATCHES',
        )

    def handle(self, *args, **options):
        dry_run = options['dry_run']
        force = options['force']
        force_automation = options['force_automation']

        if not force_automation and not settings.AUTO_SCORE_MATCHES:
            self.stdout.write(
                self.style.WARNING('Match scoring is disabled via AUTO_SCORE_MATCHES environment variable')
            )
            return

        matches = self._get_matches_to_score(force)
        if not matches.exists():
            self.stdout.write('No matches found that need scoring')
            return

        self.stdout.write(f'Found {matches.count()} completed matches to score')

        if dry_run:
            self._show_dry_run_summary(matches)
            return

        try:
            result = process_pending_matches(force=force, matches=matches)
        except Exception as e:
            logger.exception('Error scoring matches: %s', e)
            self.stdout.write(self.style.ERROR(f'✗ Error scoring matches: {e}'))
            raise CommandError(f'Match scoring failed: {e}')

        self._show_results(result)

    def _get_matches_to_score(self, force: bool):
        return pending_matches(force=force).select_related('team1', 'team2').order_by('match_date', 'pk')

    def _show_dry_run_summary(self, matches):
        self.stdout.write('')
        self.stdout.write(self.style.WARNING('DRY RUN - No changes will be made'))
        self.stdout.write('')

        total_predictions = 0
        for match in matches:
            count = match.predictions.count()
            total_predictions += count
            self.stdout.write(
                f'  {match} ({match.team1_score}-{match.team2_score}) - {count} predictions'
            )

        self.stdout.write('')
        self.stdout.write(
            f'Would score {matches.count()} matches with {total_predictions} total predictions'
        )

    def _show_results(self, result: ProcessPendingResult):
        self.stdout.write('')

        if result.matches_with_errors:
            self.stdout.write(self.style.WARNING('Matches with errors:'))
            for error in result.matches_with_errors:
                self.stdout.write(f'  ⚠ {error}')
            self.stdout.write('')

        if result.matches_processed:
            self.stdout.write(
                self.style.SUCCESS(
                    f'✓ Successfully scored {result.matches_processed} matches. '
                    f'Scored {result.predictions_scored} predictions, '
                    f'{result.predictions_failed} failed.'
                )
            )
        else:
            self.stdout.write(self.style.WARNING('No matches were scored.'))
