# Create Admin Management Command
import os

from django.core.management.base import BaseCommand, CommandError

from core.services.accounts import ensure_admin

DEFAULT_ADMIN_EMAIL = 'admin@petmarket.test'


class Command(BaseCommand):
    help = 'Creates an admin account, or promotes an existing account to admin.'

    def add_arguments(self, parser):
        parser.add_argument(
            '--email',
            default=os.environ.get('ADMIN_EMAIL', DEFAULT_ADMIN_EMAIL),
            help='Admin email address (defaults to $ADMIN_EMAIL).',
        )
        parser.add_argument(
            '--password',
            default=os.environ.get('ADMIN_PASSWORD'),
            help='Admin password (defaults to $ADMIN_PASSWORD).',
        )
        parser.add_argument(
            '--display-name',
            default='Administrator',
            help='Display name used when a new account is created.',
        )

    def handle(self, *args, **options):
        email = (options['email'] or '').strip()
        password = options['password']

        if not email:
            raise CommandError('An email address is required.')

        user, created = ensure_admin(email, password=password, display_name=options['display_name'])

        if created and not password:
            self.stdout.write(self.style.WARNING(
                f'Created {user.email} without a usable password. '
                'Set ADMIN_PASSWORD or pass --password to enable login.'
            ))
        elif created:
            self.stdout.write(self.style.SUCCESS(f'Admin account {user.email} created.'))
        else:
            self.stdout.write(self.style.SUCCESS(f'{user.email} now has the admin role.'))
