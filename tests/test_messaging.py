"""
Test suite for conversations and messages.

Test Coverage:
- Starting conversations (self-messaging, duplicates, argument order)
- Concurrent starts falling back to the existing row
- Sending messages (empty content, non-participants)
- Inbox ordering, last message and unread counts
- Marking read and opening a conversation
- Message paging with ``before``
- Recipient notifications
"""

from unittest import mock

from django.contrib.auth import get_user_model
from django.db import transaction
from django.db.models.query import QuerySet
from django.test import TestCase, TransactionTestCase
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APIClient

from core.models import Conversation, Listing, Message, Notification
from core.services.messaging import send_message, start_or_get_conversation

User = get_user_model()


def create_test_user(email, **kwargs):
    return User.objects.create_user(
        username=email,
        email=email,
        password='TestPass123!',
        display_name=kwargs.pop('display_name', email.split('@')[0].title()),
        **kwargs
    )


class StartConversationTests(TestCase):

    def setUp(self):
        self.client = APIClient()
        self.alice = create_test_user('alice@test.com', display_name='Alice')
        self.bob = create_test_user('bob@test.com', display_name='Bob')
        self.listing = Listing.objects.create(
            seller=self.bob, title='Tiny Tortoise', slug='tiny-tortoise', species='reptiles',
            status=Listing.STATUS_APPROVED,
        )
        self.url = reverse('conversation_list')

    def test_start_conversation(self):
        self.client.force_authenticate(user=self.alice)
        response = self.client.post(
            self.url, {'otherUserId': self.bob.id, 'animalId': self.listing.id}, format='json'
        )

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['data']['otherUser']['name'], 'Bob')
        self.assertEqual(response.data['data']['animal']['slug'], 'tiny-tortoise')
        self.assertIsNone(response.data['data']['lastMessage'])

    def test_cannot_message_yourself(self):
        self.client.force_authenticate(user=self.alice)
        response = self.client.post(self.url, {'otherUserId': self.alice.id}, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['message'], 'Cannot start conversation with yourself')
        self.assertFalse(Conversation.objects.exists())

    def test_starting_twice_returns_existing_conversation(self):
        self.client.force_authenticate(user=self.alice)
        first = self.client.post(self.url, {'otherUserId': self.bob.id}, format='json')
        second = self.client.post(self.url, {'otherUserId': self.bob.id}, format='json')

        self.assertEqual(second.status_code, status.HTTP_200_OK)
        self.assertEqual(first.data['data']['id'], second.data['data']['id'])
        self.assertEqual(Conversation.objects.count(), 1)

    def test_either_participant_order_yields_same_row(self):
        first, created_first = start_or_get_conversation(self.alice, self.bob.id)
        second, created_second = start_or_get_conversation(self.bob, self.alice.id)

        self.assertTrue(created_first)
        self.assertFalse(created_second)
        self.assertEqual(first.pk, second.pk)
        self.assertLess(first.user1_id, first.user2_id)

    def test_listing_makes_a_separate_conversation(self):
        plain, _ = start_or_get_conversation(self.alice, self.bob.id)
        about_listing, created = start_or_get_conversation(self.alice, self.bob.id, listing_id=self.listing.id)

        self.assertTrue(created)
        self.assertNotEqual(plain.pk, about_listing.pk)

    def test_unknown_user_is_404(self):
        self.client.force_authenticate(user=self.alice)
        response = self.client.post(self.url, {'otherUserId': 9999}, format='json')

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data['message'], 'User not found')

    def test_missing_other_user_is_400(self):
        self.client.force_authenticate(user=self.alice)
        response = self.client.post(self.url, {}, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['message'], 'otherUserId is required')


class MessageExchangeTests(TestCase):

    def setUp(self):
        self.client = APIClient()
        self.alice = create_test_user('alice@test.com', display_name='Alice')
        self.bob = create_test_user('bob@test.com', display_name='Bob')
        self.eve = create_test_user('eve@test.com', display_name='Eve')
        self.conversation, _ = start_or_get_conversation(self.alice, self.bob.id)
        self.messages_url = reverse('conversation_messages', args=[self.conversation.id])

    def test_send_message_trims_and_notifies_recipient(self):
        self.client.force_authenticate(user=self.alice)
        response = self.client.post(self.messages_url, {'content': '  Hello Bob!  '}, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['data']['content'], 'Hello Bob!')
        self.assertFalse(response.data['data']['isRead'])

        notification = Notification.objects.get(user=self.bob)
        self.assertEqual(notification.notification_type, Notification.TYPE_MESSAGE)
        self.assertEqual(notification.title, 'New Message')
        self.assertIn('Alice', notification.message)
        self.assertEqual(notification.link, f'/dashboard/messages/{self.conversation.id}')
        self.assertFalse(Notification.objects.filter(user=self.alice).exists())

    def test_empty_message_rejected(self):
        self.client.force_authenticate(user=self.alice)
        for content in ('', '   '):
            response = self.client.post(self.messages_url, {'content': content}, format='json')
            self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
            self.assertEqual(response.data['message'], 'Message content is required')

        self.assertFalse(Message.objects.exists())

    def test_non_participant_cannot_read_or_write(self):
        self.client.force_authenticate(user=self.eve)

        response = self.client.post(self.messages_url, {'content': 'Hi'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

        response = self.client.get(self.messages_url)
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

        response = self.client.get(reverse('conversation_detail', args=[self.conversation.id]))
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_unknown_conversation_is_404(self):
        self.client.force_authenticate(user=self.alice)
        response = self.client.get(reverse('conversation_messages', args=[777]))

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_inbox_shows_last_message_and_unread_count(self):
        send_message(self.conversation.id, self.alice, 'First')
        send_message(self.conversation.id, self.alice, 'Second')

        self.client.force_authenticate(user=self.bob)
        response = self.client.get(reverse('conversation_list'))

        entry = response.data['data'][0]
        self.assertEqual(entry['otherUser']['id'], self.alice.id)
        self.assertEqual(entry['lastMessage']['content'], 'Second')
        self.assertEqual(entry['unreadCount'], 2)

        self.client.force_authenticate(user=self.alice)
        response = self.client.get(reverse('conversation_list'))
        self.assertEqual(response.data['data'][0]['unreadCount'], 0)

    def test_inbox_most_recently_active_first(self):
        other, _ = start_or_get_conversation(self.alice, self.eve.id)
        send_message(other.id, self.eve, 'Older')
        send_message(self.conversation.id, self.bob, 'Newer')

        self.client.force_authenticate(user=self.alice)
        response = self.client.get(reverse('conversation_list'))

        self.assertEqual(
            [entry['id'] for entry in response.data['data']],
            [self.conversation.id, other.id],
        )

    def test_unread_count_and_mark_read(self):
        send_message(self.conversation.id, self.alice, 'One')
        send_message(self.conversation.id, self.alice, 'Two')
        send_message(self.conversation.id, self.bob, 'Reply')

        self.client.force_authenticate(user=self.bob)
        self.assertEqual(self.client.get(reverse('message_unread')).data['data']['count'], 2)

        response = self.client.post(reverse('conversation_read', args=[self.conversation.id]))
        self.assertEqual(response.data['data']['count'], 2)
        self.assertEqual(self.client.get(reverse('message_unread')).data['data']['count'], 0)

        # Bob's own reply stays unread for Alice
        self.client.force_authenticate(user=self.alice)
        self.assertEqual(self.client.get(reverse('message_unread')).data['data']['count'], 1)

    def test_opening_conversation_marks_read(self):
        send_message(self.conversation.id, self.alice, 'Ping')

        self.client.force_authenticate(user=self.bob)
        response = self.client.get(reverse('conversation_detail', args=[self.conversation.id]))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([m['content'] for m in response.data['data']['messages']], ['Ping'])
        self.assertEqual(response.data['data']['unreadCount'], 0)
        self.assertTrue(Message.objects.get(content='Ping').is_read)

    def test_messages_are_chronological_and_pageable(self):
        sent = [send_message(self.conversation.id, self.alice, f'Message {index}') for index in range(5)]

        self.client.force_authenticate(user=self.bob)
        response = self.client.get(self.messages_url, {'limit': 2})
        self.assertEqual([m['content'] for m in response.data['data']], ['Message 3', 'Message 4'])

        response = self.client.get(self.messages_url, {'limit': 2, 'before': sent[3].id})
        self.assertEqual([m['content'] for m in response.data['data']], ['Message 1', 'Message 2'])


class ConversationRaceTests(TransactionTestCase):
    """
    Two users starting the same conversation at once.

    The losing insert hits the unique participants_key and must fall back
    to the row the other request created.
    """

    def setUp(self):
        self.alice = create_test_user('alice@test.com', display_name='Alice')
        self.bob = create_test_user('bob@test.com', display_name='Bob')

    def test_lost_insert_returns_existing_conversation(self):
        existing, created = start_or_get_conversation(self.bob, self.alice.id)
        self.assertTrue(created)

        real_get = QuerySet.get
        missed = []

        def first_lookup_misses(queryset, *args, **kwargs):
            # Simulate the other request committing between our lookup and insert
            if queryset.model is Conversation and not missed:
                missed.append(kwargs)
                raise Conversation.DoesNotExist
            return real_get(queryset, *args, **kwargs)

        with mock.patch.object(QuerySet, 'get', autospec=True, side_effect=first_lookup_misses):
            conversation, created = start_or_get_conversation(self.alice, self.bob.id)

        self.assertEqual(len(missed), 1)
        self.assertFalse(created)
        self.assertEqual(conversation.id, existing.id)
        self.assertEqual(Conversation.objects.count(), 1)

    def test_lost_insert_leaves_connection_usable(self):
        start_or_get_conversation(self.alice, self.bob.id)
        real_get = QuerySet.get
        missed = []

        def first_lookup_misses(queryset, *args, **kwargs):
            if queryset.model is Conversation and not missed:
                missed.append(kwargs)
                raise Conversation.DoesNotExist
            return real_get(queryset, *args, **kwargs)

        with transaction.atomic():
            with mock.patch.object(QuerySet, 'get', autospec=True, side_effect=first_lookup_misses):
                conversation, _ = start_or_get_conversation(self.bob, self.alice.id)
            message = send_message(conversation.id, self.bob, 'Still here?')

        self.assertEqual(Message.objects.get().id, message.id)
        self.assertEqual(Conversation.objects.count(), 1)

    def test_both_sides_starting_share_one_row(self):
        results = [
            start_or_get_conversation(self.alice, self.bob.id)[0].id,
            start_or_get_conversation(self.bob, self.alice.id)[0].id,
            start_or_get_conversation(self.alice, self.bob.id)[0].id,
        ]

        self.assertEqual(len(set(results)), 1)
        self.assertEqual(Conversation.objects.count(), 1)
        conversation = Conversation.objects.get()
        self.assertEqual(
            (conversation.user1_id, conversation.user2_id),
            (min(self.alice.id, self.bob.id), max(self.alice.id, self.bob.id)),
        )
