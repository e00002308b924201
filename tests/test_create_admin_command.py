"""
Tests for the create_admin management command.
"""

from io import StringIO

from django.contrib.auth import get_user_model
from django.core.management import call_command
from django.core.management.base import CommandError
from django.test import TestCase

User = get_user_model()


class CreateAdminCommandTests(TestCase):

    def run_command(self, *args):
        out = StringIO()
        call_command('create_admin', *args, stdout=out)
        return out.getvalue()

    def test_creates_new_admin(self):
        output = self.run_command('--email', 'Boss@Example.com', '--password', 'Admin-Pass-99')

        user = User.objects.get(email='boss@example.com')
        self.assertEqual(user.role, User.ROLE_ADMIN)
        self.assertTrue(user.is_staff)
        self.assertTrue(user.check_password('Admin-Pass-99'))
        self.assertEqual(user.display_name, 'Administrator')
        self.assertIn('Admin account boss@example.com created.', output)

    def test_promotes_existing_user(self):
        User.objects.create_user(
            username='member@example.com',
            email='member@example.com',
            password='Member-Pass-1',
            display_name='Member',
        )

        output = self.run_command('--email', 'member@example.com')

        user = User.objects.get(email='member@example.com')
        self.assertEqual(user.role, User.ROLE_ADMIN)
        self.assertEqual(user.display_name, 'Member')
        self.assertTrue(user.check_password('Member-Pass-1'))
        self.assertIn('member@example.com now has the admin role.', output)
        self.assertEqual(User.objects.count(), 1)

    def test_without_password_warns(self):
        output = self.run_command('--email', 'nopass@example.com', '--display-name', 'Ops')

        user = User.objects.get(email='nopass@example.com')
        self.assertFalse(user.has_usable_password())
        self.assertEqual(user.display_name, 'Ops')
        self.assertIn('Created nopass@example.com without a usable password.', output)

    def test_running_twice_is_idempotent(self):
        self.run_command('--email', 'boss@example.com', '--password', 'Admin-Pass-99')
        self.run_command('--email', 'boss@example.com')

        self.assertEqual(User.objects.filter(email='boss@example.com').count(), 1)

    def test_blank_email_is_an_error(self):
        with self.assertRaises(CommandError):
            self.run_command('--email', '   ')
