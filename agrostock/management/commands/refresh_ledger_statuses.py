"""
Management command to refresh time-dependent lot statuses.

Usage:
    python manage.py refresh_ledger_statuses
    python manage.py refresh_ledger_statuses --dry-run
"""

from django.core.management.base import BaseCommand
from django.utils import timezone

from agrostock.services.maintenance import refresh_statuses


class Command(BaseCommand):
    """Refresh stale ledger statuses command."""

    help = 'Re-derives and stores statuses of lots that expired or are about to'

    def add_arguments(self, parser):
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Show how many ledgers would change without writing',
        )

    def handle(self, *args, **options):
        count = refresh_statuses(now=timezone.now(), dry_run=options['dry_run'])

        if options['dry_run']:
            self.stdout.write(f'{count} ledger(s) would be refreshed')
        else:
            self.stdout.write(
                self.style.SUCCESS(f'{count} ledger(s) refreshed')
            )
