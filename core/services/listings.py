"""
Listing lifecycle: creation, owner edits, images, views and moderation.
"""

import logging
import re

from django.db import IntegrityError, transaction
from django.db.models import F, Max
from django.utils.text import slugify
from rest_framework.exceptions import NotFound

from core.exceptions import BusinessRuleError
from core.models import Listing, ListingImage
from core.permissions import assert_owner_or_role
from core.services import notifications
from core.utils import best_effort

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = (
    'title', 'slug', 'description', 'species', 'breed', 'age', 'gender',
    'price', 'currency', 'country', 'city', 'availability',
)


def get_listing_or_404(listing_id):
    try:
        return Listing.objects.select_related('seller').get(pk=listing_id)
    except Listing.DoesNotExist:
        raise NotFound('Listing not found')


def get_owned_listing(listing_id, caller, allowed_roles=(), action='modify'):
    """
    Load a listing and check the caller may act on it.

    Args:
        listing_id: Listing primary key
        caller: Authenticated user
        allowed_roles: Roles allowed to act on listings they do not own
        action: Verb used in the 403 message

    Returns:
        Listing: The listing

    Raises:
        NotFound: If the listing does not exist
        PermissionDenied: If the caller is not the owner or an allowed role
    """
    listing = get_listing_or_404(listing_id)
    assert_owner_or_role(
        listing.seller_id,
        caller,
        allowed_roles=allowed_roles,
        message=f'Not allowed to {action} this listing',
    )
    return listing


def generate_unique_slug(title):
    """Slugify a title and append a counter until it is unused."""
    base = re.sub(r'[-_]+', '-', slugify(title))[:200].strip('-') or 'listing'
    candidate = base
    counter = 2
    while Listing.objects.filter(slug=candidate).exists():
        candidate = f'{base}-{counter}'
        counter += 1
    return candidate


def create_listing(seller, data):
    """
    Create a listing owned by ``seller``.

    Status is always forced to pending regardless of input. A slug is
    generated from the title when none is supplied.

    Args:
        seller: Owning user
        data: Validated listing fields (snake_case)

    Returns:
        Listing: The new listing

    Raises:
        BusinessRuleError: If the slug is taken by a concurrent request
    """
    fields = {key: value for key, value in data.items() if key in EDITABLE_FIELDS}
    if not fields.get('slug'):
        fields['slug'] = generate_unique_slug(fields.get('title', ''))

    listing = Listing(seller=seller, status=Listing.STATUS_PENDING, **fields)
    try:
        with transaction.atomic():
            listing.save()
    except IntegrityError:
        logger.warning(f"Slug collision while creating listing '{fields['slug']}' for user {seller.pk}")
        raise BusinessRuleError('Slug is already in use')

    logger.info(f"Listing {listing.id} created by user {seller.pk} (pending review)")
    return listing


def update_listing(listing, data):
    """
    Apply owner edits to content fields. Status is never changed here.
    """
    for key, value in data.items():
        if key in EDITABLE_FIELDS:
            setattr(listing, key, value)

    try:
        with transaction.atomic():
            listing.save()
    except IntegrityError:
        raise BusinessRuleError('Slug is already in use')

    logger.info(f"Listing {listing.id} updated")
    return listing


def delete_listing(listing_id, caller):
    """Delete a listing; owners may delete their own, admins any."""
    listing = get_owned_listing(listing_id, caller, allowed_roles=('admin',), action='delete')
    listing.delete()
    logger.info(f"Listing {listing_id} deleted by user {caller.pk}")


def add_images(listing, files):
    """
    Attach uploaded images to a listing after any existing ones.

    Args:
        listing: Listing the caller owns
        files: Validated UploadedFile objects

    Returns:
        list[ListingImage]: Created images in display order
    """
    next_order = (listing.images.aggregate(max_order=Max('order'))['max_order'])
    next_order = 0 if next_order is None else next_order + 1

    created = []
    for offset, upload in enumerate(files):
        created.append(ListingImage.objects.create(
            listing=listing,
            image=upload,
            order=next_order + offset,
        ))

    logger.info(f"Added {len(created)} images to listing {listing.id}")
    return created


def remove_image(listing, image_id):
    try:
        image = listing.images.get(pk=image_id)
    except ListingImage.DoesNotExist:
        raise NotFound('Image not found')
    image.delete()


def record_view(listing_id, viewer=None):
    """
    Increment a listing's view counter unless the viewer owns it.

    The increment is best-effort: a failure is logged and reported as not
    counted rather than raised.

    Returns:
        bool: True if the view was counted
    """
    listing = get_listing_or_404(listing_id)

    if viewer is not None and viewer.is_authenticated and viewer.pk == listing.seller_id:
        return False

    counted = False
    with best_effort(f'increment views for listing {listing_id}'):
        Listing.objects.filter(pk=listing_id).update(views=F('views') + 1)
        counted = True
    return counted


def moderate_listing(listing_id, new_status, moderator, reason=None):
    """
    Move a listing to a new moderation status and notify its owner.

    Args:
        listing_id: Listing primary key
        new_status: pending, approved or rejected
        moderator: Admin or moderator performing the action
        reason: Rejection reason (placeholder used when omitted)

    Returns:
        Listing: The updated listing
    """
    listing = get_listing_or_404(listing_id)
    previous_status = listing.status
    listing.moderate(new_status, reason=reason)

    logger.info(
        f"Listing {listing.id} moved from {previous_status} to {listing.status} "
        f"by user {moderator.pk}"
    )

    with best_effort(f'notify owner of listing {listing.id}'):
        notifications.notify_listing_moderated(listing)

    return listing
