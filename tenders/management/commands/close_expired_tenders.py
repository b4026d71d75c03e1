# tenders/management/commands/close_expired_tenders.py

from django.core.management.base import BaseCommand
from tenders.services import close_expired_tenders


class Command(BaseCommand):
    help = 'Close published tenders whose bidding deadline and award window have passed'

    def handle(self, *args, **kwargs):
        closed = close_expired_tenders()
        if closed:
            self.stdout.write(self.style.SUCCESS(f'Closed {closed} expired tender(s).'))
        else:
            self.stdout.write(self.style.WARNING('No tenders to close.'))
