"""
Tests for the post_save / post_delete receivers in core.signals.

Message and announcement receivers are best-effort: a failing notification
must be logged and must never undo the save that triggered it.
"""

import os
from decimal import Decimal
from io import BytesIO
from unittest import mock

from django.contrib.auth import get_user_model
from django.core.files.uploadedfile import SimpleUploadedFile
from django.db import DatabaseError, transaction
from django.test import TestCase
from PIL import Image

from core.models import Announcement, Listing, ListingImage, Message, Notification
from core.services.listings import generate_unique_slug
from core.services.messaging import send_message, start_or_get_conversation

User = get_user_model()


class MessageSignalTests(TestCase):

    def setUp(self):
        self.sender = User.objects.create_user(
            username='sender@test.com',
            email='sender@test.com',
            password='TestPass123!',
            display_name='Sally Sender',
        )
        self.recipient = User.objects.create_user(
            username='recipient@test.com',
            email='recipient@test.com',
            password='TestPass123!',
            display_name='Rex Recipient',
        )
        self.conversation, _ = start_or_get_conversation(self.sender, self.recipient.id)

    def test_new_message_notifies_recipient_only(self):
        send_message(self.conversation.id, self.sender, 'Is the puppy still available?')

        notification = Notification.objects.get()
        self.assertEqual(notification.user, self.recipient)
        self.assertEqual(notification.notification_type, Notification.TYPE_MESSAGE)
        self.assertEqual(notification.message, 'You have a new message from Sally Sender')
        self.assertEqual(notification.link, f'/dashboard/messages/{self.conversation.id}')

    def test_updating_a_message_does_not_notify_again(self):
        message = send_message(self.conversation.id, self.sender, 'Hello')
        message.is_read = True
        message.save()

        self.assertEqual(Notification.objects.count(), 1)

    def test_notification_failure_keeps_the_message(self):
        with mock.patch(
            'core.services.notifications.notify_new_message',
            side_effect=RuntimeError('notification store down'),
        ):
            with self.assertLogs('core.utils', level='ERROR') as logs:
                send_message(self.conversation.id, self.sender, 'Still delivered')

        self.assertEqual(Message.objects.filter(content='Still delivered').count(), 1)
        self.assertFalse(Notification.objects.exists())
        self.assertIn('notify recipient of message', logs.output[0])


class AnnouncementSignalTests(TestCase):

    def setUp(self):
        self.member = User.objects.create_user(
            username='member@test.com',
            email='member@test.com',
            password='TestPass123!',
            display_name='Member',
        )

    def test_fan_out_failure_keeps_the_announcement(self):
        with mock.patch(
            'core.services.notifications.notify_announcement',
            side_effect=RuntimeError('boom'),
        ):
            with self.assertLogs('core.utils', level='ERROR'):
                Announcement.objects.create(title='Maintenance', content='Back soon')

        self.assertTrue(Announcement.objects.filter(title='Maintenance').exists())
        self.assertFalse(Notification.objects.exists())


class ListingImageSignalTests(TestCase):

    def setUp(self):
        seller = User.objects.create_user(
            username='seller@test.com',
            email='seller@test.com',
            password='TestPass123!',
            display_name='Seller',
        )
        self.listing = Listing.objects.create(
            seller=seller,
            title='Photogenic Parrot',
            slug=generate_unique_slug('Photogenic Parrot'),
            species='birds',
            breed='African Grey',
            age=24,
            gender='female',
            price=Decimal('900.00'),
            currency='EUR',
            country='Spain',
            city='Madrid',
        )

    def make_upload(self):
        buffer = BytesIO()
        Image.new('RGB', (40, 40), color='blue').save(buffer, 'PNG')
        return SimpleUploadedFile('parrot.png', buffer.getvalue(), content_type='image/png')

    def test_deleting_image_removes_file(self):
        image = ListingImage.objects.create(listing=self.listing, image=self.make_upload())
        path = image.image.path
        self.assertTrue(os.path.exists(path))

        with self.captureOnCommitCallbacks(execute=True):
            image.delete()

        self.assertFalse(os.path.exists(path))

    def test_file_is_kept_until_commit(self):
        image = ListingImage.objects.create(listing=self.listing, image=self.make_upload())
        path = image.image.path

        with self.captureOnCommitCallbacks(execute=False) as callbacks:
            image.delete()
            self.assertTrue(os.path.exists(path))

        self.assertEqual(len(callbacks), 1)
        self.assertTrue(os.path.exists(path))

    def test_rolled_back_delete_keeps_row_and_file(self):
        image = ListingImage.objects.create(listing=self.listing, image=self.make_upload())
        path = image.image.path

        with self.captureOnCommitCallbacks(execute=True) as callbacks:
            try:
                with transaction.atomic():
                    image.delete()
                    raise DatabaseError('request failed after delete')
            except DatabaseError:
                pass

        self.assertEqual(callbacks, [])
        self.assertTrue(ListingImage.objects.filter(listing=self.listing).exists())
        self.assertTrue(os.path.exists(path))

    def test_deleting_listing_removes_its_files(self):
        image = ListingImage.objects.create(listing=self.listing, image=self.make_upload())
        path = image.image.path

        with self.captureOnCommitCallbacks(execute=True):
            self.listing.delete()

        self.assertFalse(os.path.exists(path))
