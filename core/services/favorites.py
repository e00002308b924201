"""
Favorites: a user's bookmarked listings.
"""

import logging

from core.models import Favorite, Listing
from core.services.discovery import listing_queryset
from core.services.listings import get_listing_or_404

logger = logging.getLogger(__name__)


def add_favorite(user, listing_id):
    """
    Favorite a listing.

    Returns:
        bool: True if a new favorite was created, False if it already existed
    """
    listing = get_listing_or_404(listing_id)
    _, created = Favorite.objects.get_or_create(user=user, listing=listing)
    if created:
        logger.info(f"User {user.pk} favorited listing {listing.id}")
    return created


def remove_favorite(user, listing_id):
    """
    Remove a favorite.

    Returns:
        bool: True if a favorite was removed
    """
    deleted, _ = Favorite.objects.filter(user=user, listing_id=listing_id).delete()
    return deleted > 0


def toggle_favorite(user, listing_id):
    """
    Flip favorite state.

    Returns:
        bool: The new state (True means favorited)
    """
    listing = get_listing_or_404(listing_id)
    deleted, _ = Favorite.objects.filter(user=user, listing=listing).delete()
    if deleted:
        return False
    Favorite.objects.get_or_create(user=user, listing=listing)
    return True


def is_favorited(user, listing_id):
    return Favorite.objects.filter(user=user, listing_id=listing_id).exists()


def favorite_listing_ids(user):
    return list(
        Favorite.objects.filter(user=user)
        .order_by('-created_at')
        .values_list('listing_id', flat=True)
    )


def favorite_listings(user):
    """Approved listings the user has favorited, most recently favorited first."""
    ids = favorite_listing_ids(user)
    listings = {
        listing.id: listing
        for listing in listing_queryset().filter(pk__in=ids, status=Listing.STATUS_APPROVED)
    }
    return [listings[listing_id] for listing_id in ids if listing_id in listings]


def favorites_received(seller):
    """Total favorites across all listings owned by ``seller``."""
    return Favorite.objects.filter(listing__seller=seller).count()
