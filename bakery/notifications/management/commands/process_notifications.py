from django.core.management.base import BaseCommand

from bakery.notifications.services import process_pending_notifications


class Command(BaseCommand):
    help = 'Send PENDING notifications through the configured NOTIFICATION_SENDER backend'

    def add_arguments(self, parser):
        parser.add_argument('--limit', type=int, default=None, help='Maximum number of notifications to process')

    def handle(self, *args, **options):
        sent, failed = process_pending_notifications(limit=options['limit'])
        self.stdout.write(self.style.SUCCESS(f'Sent {sent} notification(s)'))
        if failed:
            self.stdout.write(self.style.WARNING(f'{failed} notification(s) failed'))
