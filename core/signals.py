"""
Django signals for notification fan-out and upload cleanup.

Notification receivers run as best-effort side effects: each one runs in
its own savepoint and a failure is logged instead of failing the save that
triggered it.
"""

import logging

from django.db import transaction
from django.db.models.signals import post_delete, post_save
from django.dispatch import receiver

from .models import Announcement, ListingImage, Message
from .services import notifications
from .utils import best_effort

logger = logging.getLogger(__name__)


@receiver(post_save, sender=Message)
def notify_recipient_on_new_message(sender, instance, created, **kwargs):
    """
    Notify the other participant when a message is sent.

    Args:
        sender: The Message model class
        instance: The Message instance that was saved
        created: True only for new messages
        **kwargs: Additional keyword arguments
    """
    if not created:
        return

    with best_effort(f'notify recipient of message {instance.pk}'):
        notifications.notify_new_message(instance)


@receiver(post_save, sender=Announcement)
def notify_users_on_announcement(sender, instance, created, **kwargs):
    """
    Fan a new visible announcement out to every user who is not banned.

    Hidden announcements, and later edits, notify nobody.
    """
    if not created or not instance.is_visible:
        return

    with best_effort(f'fan out announcement {instance.pk}'):
        notifications.notify_announcement(instance)


@receiver(post_delete, sender=ListingImage)
def delete_image_file(sender, instance, **kwargs):
    """
    Remove the stored file once the deletion of its ListingImage row commits.

    A rolled-back delete keeps both the row and the file.
    """
    if not instance.image:
        return

    image = instance.image
    image_id = instance.pk

    def remove_file():
        try:
            image.delete(save=False)
        except OSError as exc:
            logger.warning(f"Could not delete file for listing image {image_id}: {exc}")

    transaction.on_commit(remove_file)
