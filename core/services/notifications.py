"""
Notification service.

Notifications are only ever created here, as a side effect of other
actions. Callers wrap the ``notify_*`` helpers in ``best_effort`` so a
failed notification never fails the action that triggered it.
"""

import logging

from rest_framework.exceptions import NotFound

from core.models import Notification, User

logger = logging.getLogger(__name__)

DEFAULT_INBOX_LIMIT = 20
MAX_INBOX_LIMIT = 100


def notify(*, user, kind, title, message, link=''):
    """
    Create one notification.

    Args:
        user: Recipient
        kind: One of Notification.TYPE_*
        title: Short title
        message: Body text
        link: Optional client-side deep link

    Returns:
        Notification: The created notification
    """
    notification = Notification.objects.create(
        user=user,
        notification_type=kind,
        title=title,
        message=message,
        link=link or '',
    )
    logger.info(f"Notification {notification.id} ({kind}) created for user {user.pk}")
    return notification


def notify_many(*, users, kind, title, message, link=''):
    """Create the same notification for many users in one query."""
    notifications = [
        Notification(
            user=user,
            notification_type=kind,
            title=title,
            message=message,
            link=link or '',
        )
        for user in users
    ]
    created = Notification.objects.bulk_create(notifications)
    logger.info(f"Fanned out {len(created)} '{kind}' notifications")
    return len(created)


def notify_new_message(message):
    """Tell the other participant that a message arrived."""
    conversation = message.conversation
    recipient = conversation.other_participant(message.sender_id)
    return notify(
        user=recipient,
        kind=Notification.TYPE_MESSAGE,
        title='New Message',
        message=f'You have a new message from {message.sender.display_name}',
        link=f'/dashboard/messages/{conversation.id}',
    )


def notify_listing_moderated(listing):
    """Tell a listing's owner about the outcome of moderation."""
    if listing.status == listing.STATUS_APPROVED:
        return notify(
            user=listing.seller,
            kind=Notification.TYPE_LISTING_APPROVED,
            title='Listing Approved! 🎉',
            message=f'Your listing "{listing.title}" has been approved and is now visible to everyone.',
            link=f'/listings/{listing.id}',
        )

    if listing.status == listing.STATUS_REJECTED:
        return notify(
            user=listing.seller,
            kind=Notification.TYPE_LISTING_REJECTED,
            title='Listing Rejected',
            message=f'Your listing "{listing.title}" was rejected. Reason: {listing.rejection_reason}',
            link='/dashboard/listings',
        )

    return None


def notify_announcement(announcement):
    """Fan an announcement out to every user who is not banned."""
    recipients = User.objects.filter(is_banned=False, is_active=True).only('id')
    content = announcement.content or ''
    preview = content[:100] + ('...' if len(content) > 100 else '')
    return notify_many(
        users=recipients,
        kind=Notification.TYPE_ANNOUNCEMENT,
        title=announcement.title,
        message=preview,
        link='/announcements',
    )


# ============================================================================
# Inbox
# ============================================================================

def list_notifications(user, limit=DEFAULT_INBOX_LIMIT, include_read=False):
    """Newest notifications for a user; unread only unless include_read."""
    limit = min(max(int(limit), 1), MAX_INBOX_LIMIT)
    queryset = Notification.objects.filter(user=user)
    if not include_read:
        queryset = queryset.filter(is_read=False)
    return list(queryset.order_by('-created_at', '-id')[:limit])


def unread_count(user):
    return Notification.objects.filter(user=user, is_read=False).count()


def get_notification_for_user(user, notification_id):
    """
    Fetch a notification owned by the user.

    Raises:
        NotFound: If it does not exist or belongs to someone else
    """
    try:
        return Notification.objects.get(pk=notification_id, user=user)
    except Notification.DoesNotExist:
        raise NotFound('Notification not found')


def mark_read(user, notification_id):
    notification = get_notification_for_user(user, notification_id)
    if not notification.is_read:
        notification.is_read = True
        notification.save(update_fields=['is_read'])
    return notification


def mark_all_read(user):
    """Mark every unread notification read; returns how many changed."""
    count = Notification.objects.filter(user=user, is_read=False).update(is_read=True)
    logger.info(f"Marked {count} notifications read for user {user.pk}")
    return count


def delete_notification(user, notification_id):
    notification = get_notification_for_user(user, notification_id)
    notification.delete()
