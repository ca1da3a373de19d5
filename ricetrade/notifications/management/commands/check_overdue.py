"""
Django management command to report overdue bills and purchases.

Usage:
    python manage.py check_overdue
    python manage.py check_overdue --date 2024-06-30
"""
from datetime import datetime
from django.core.management.base import BaseCommand, CommandError
from django.utils import timezone

from ricetrade.core.calculations import format_currency
from ricetrade.notifications.overdue import check_overdue


class Command(BaseCommand):
    help = 'List overdue receivables and payables and raise alerts for new ones'

    def add_arguments(self, parser):
        parser.add_argument(
            '--date',
            help='Treat this ISO date as today (default: current date)',
        )

    def handle(self, *args, **options):
        today = timezone.localdate()
        if options.get('date'):
            try:
                today = datetime.strptime(options['date'], '%Y-%m-%d').date()
            except ValueError:
                raise CommandError(f"Invalid date: {options['date']}")

        result = check_overdue(today)

        self.stdout.write("=" * 60)
        self.stdout.write(self.style.SUCCESS(f"OVERDUE PAYMENTS as of {today.isoformat()}"))
        self.stdout.write("=" * 60)

        if not result['items']:
            self.stdout.write(self.style.SUCCESS("Nothing overdue"))
            return

        for item in result['items']:
            label = 'Receivable' if item['type'] == 'sale' else 'Payable'
            self.stdout.write(
                f"  {label:<10} {item['title'] or '-':<10} {item['party'] or '-':<25} "
                f"{format_currency(item['amount']):>15}  due {item['date']}"
            )

        self.stdout.write("")
        for alert in result['alerts']:
            self.stdout.write(self.style.WARNING(f"{alert['title']}: {alert['description']}"))
        self.stdout.write(f"Total overdue: {result['count']}")
