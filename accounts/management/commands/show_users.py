# accounts/management/commands/show_users.py

from django.core.management.base import BaseCommand
from django.db.models import Count, Q
from accounts.models import User
from tenders.models import Bid


class Command(BaseCommand):
    help = 'Display all users with their tendering activity'

    def add_arguments(self, parser):
        parser.add_argument('--role', choices=User.Role.values, help='Only show users with this role')

    def handle(self, *args, **options):
        self.stdout.write(self.style.SUCCESS('\n=== REGISTERED USERS ===\n'))

        users = User.objects.all().order_by('-date_joined')
        if options.get('role'):
            users = users.filter(role=options['role'])

        if not users:
            self.stdout.write(self.style.WARNING('No users found in database.'))
            return

        for user in users:
            self.stdout.write(f"\n{self.style.HTTP_INFO('━' * 60)}")
            self.stdout.write(f"ID: {user.id}")
            self.stdout.write(f"Username: {self.style.SUCCESS(user.username)}")
            self.stdout.write(f"Email: {user.email}")
            self.stdout.write(f"Name: {user.display_name}")
            self.stdout.write(f"Role: {self.style.WARNING(user.get_role_display().upper())}")
            self.stdout.write(f"Active: {'Yes' if user.is_active else 'No'}")
            self.stdout.write(f"Joined: {user.date_joined.strftime('%Y-%m-%d %H:%M')}")

            if user.is_vendor:
                bids = Bid.objects.filter(vendor=user)
                self.stdout.write(
                    f"Bids: {bids.count()} "
                    f"(won {bids.filter(status=Bid.Status.ACCEPTED).count()})"
                )
            else:
                tenders = user.tenders.all()
                self.stdout.write(f"Tenders Created: {tenders.count()}")
                for tender in tenders[:3]:
                    self.stdout.write(f"  • {tender.tender_number}: {tender.title} ({tender.status})")

        self.stdout.write(f"\n{self.style.HTTP_INFO('━' * 60)}")
        self.stdout.write(self.style.SUCCESS(f'\nTotal Users: {users.count()}'))
        per_role = users.aggregate(**{
            f"{role.value}_count": Count('id', filter=Q(role=role)) for role in User.Role
        })
        for role in User.Role:
            self.stdout.write(f"{role.label}s: {per_role[role.value + '_count']}")
