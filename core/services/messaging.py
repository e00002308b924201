"""
Conversations and messages between users.

A conversation is identified by the unordered pair of participants plus an
optional listing. The pair is stored smaller id first and the database's
unique index on the derived key is the only guard against two requests
creating the same conversation at once; the loser of that race re-reads
the winner's row.
"""

import logging

from django.contrib.auth import get_user_model
from django.db.models import Count, Max, Q
from django.utils import timezone
from rest_framework.exceptions import NotFound, PermissionDenied, ValidationError

from core.exceptions import BusinessRuleError
from core.models import Conversation, Listing, Message

User = get_user_model()
logger = logging.getLogger(__name__)

DEFAULT_MESSAGE_LIMIT = 50
MAX_MESSAGE_LIMIT = 100


def start_or_get_conversation(user, other_user_id, listing_id=None):
    """
    Return the conversation between two users, creating it if needed.

    Calling this with the participants in either order, or concurrently
    from both sides, yields the same row.

    Args:
        user: User starting the conversation
        other_user_id: Primary key of the other participant
        listing_id: Optional listing the conversation is about

    Returns:
        tuple: (Conversation, created)

    Raises:
        BusinessRuleError: If a user tries to message themselves
        NotFound: If the other user or the listing does not exist
    """
    if user.pk == other_user_id:
        raise BusinessRuleError('Cannot start conversation with yourself')

    if not User.objects.filter(pk=other_user_id).exists():
        raise NotFound('User not found')

    if listing_id is not None and not Listing.objects.filter(pk=listing_id).exists():
        raise NotFound('Listing not found')

    user1_id, user2_id = Conversation.canonical_pair(user.pk, other_user_id)
    key = Conversation.build_participants_key(user1_id, user2_id, listing_id)

    # get_or_create retries the lookup when the insert loses a race
    conversation, created = Conversation.objects.get_or_create(
        participants_key=key,
        defaults={
            'user1_id': user1_id,
            'user2_id': user2_id,
            'listing_id': listing_id,
        },
    )

    if created:
        logger.info(
            f"Conversation {conversation.id} created between users {user1_id} and {user2_id}"
            f" (listing {listing_id})"
        )
    return conversation, created


def get_conversation_for_participant(conversation_id, user):
    """
    Load a conversation and check the user takes part in it.

    Raises:
        NotFound: If the conversation does not exist
        PermissionDenied: If the user is not a participant
    """
    try:
        conversation = (
            Conversation.objects
            .select_related('user1', 'user2', 'listing')
            .get(pk=conversation_id)
        )
    except Conversation.DoesNotExist:
        raise NotFound('Conversation not found')

    if not conversation.has_participant(user.pk):
        logger.warning(f"User {user.pk} denied access to conversation {conversation_id}")
        raise PermissionDenied('You are not a participant in this conversation')

    return conversation


def list_conversations(user):
    """
    The user's conversations, most recently active first.

    Each conversation is annotated with ``unread_count`` for this user and
    carries ``last_message`` (or None).
    """
    conversations = list(
        Conversation.objects
        .filter(Q(user1=user) | Q(user2=user))
        .select_related('user1', 'user2', 'listing')
        .annotate(unread_count=Count(
            'messages',
            filter=Q(messages__is_read=False) & ~Q(messages__sender=user),
        ))
        .order_by('-updated_at', '-id')
    )

    last_messages = {}
    if conversations:
        latest_ids = (
            Message.objects
            .filter(conversation__in=conversations)
            .order_by()
            .values('conversation_id')
            .annotate(latest_id=Max('id'))
            .values_list('latest_id', flat=True)
        )
        for message in Message.objects.filter(pk__in=list(latest_ids)):
            last_messages[message.conversation_id] = message

    for conversation in conversations:
        conversation.last_message = last_messages.get(conversation.id)
    return conversations


def send_message(conversation_id, sender, content):
    """
    Append a message to a conversation.

    The conversation's updated_at is bumped so it rises to the top of both
    inboxes. The recipient is notified by a post_save receiver.

    Raises:
        ValidationError: If content is empty after trimming
        NotFound / PermissionDenied: See get_conversation_for_participant
    """
    content = (content or '').strip()
    if not content:
        raise ValidationError('Message content is required')

    conversation = get_conversation_for_participant(conversation_id, sender)

    message = Message.objects.create(
        conversation=conversation,
        sender=sender,
        content=content,
    )
    Conversation.objects.filter(pk=conversation.pk).update(updated_at=timezone.now())

    logger.info(f"Message {message.id} sent in conversation {conversation.id} by user {sender.pk}")
    return message


def get_messages(conversation_id, requester, limit=DEFAULT_MESSAGE_LIMIT, before_id=None):
    """
    A page of messages in chronological order.

    Args:
        conversation_id: Conversation primary key
        requester: Must be a participant
        limit: Maximum number of messages (capped at MAX_MESSAGE_LIMIT)
        before_id: Only messages with a smaller id are returned

    Returns:
        list[Message]: Oldest first
    """
    conversation = get_conversation_for_participant(conversation_id, requester)
    limit = min(max(int(limit), 1), MAX_MESSAGE_LIMIT)

    queryset = conversation.messages.all()
    if before_id is not None:
        queryset = queryset.filter(id__lt=before_id)

    newest_first = list(queryset.order_by('-id')[:limit])
    newest_first.reverse()
    return newest_first


def mark_read(conversation_id, reader):
    """
    Mark the other participant's messages as read.

    Returns:
        int: Number of messages that changed state
    """
    conversation = get_conversation_for_participant(conversation_id, reader)
    return (
        conversation.messages
        .filter(is_read=False)
        .exclude(sender=reader)
        .update(is_read=True)
    )


def get_unread_count(user):
    """Unread messages from others across all of the user's conversations."""
    return (
        Message.objects
        .filter(Q(conversation__user1=user) | Q(conversation__user2=user), is_read=False)
        .exclude(sender=user)
        .count()
    )
