"""
Listing discovery: filter, sort and paginate listings.

One function, ``discover_listings``, serves the public catalogue, the
moderation queue, the "latest" strip and single-listing lookups. It never
raises past its own boundary: a database failure comes back as an empty,
unsuccessful ``DiscoveryResult`` which callers must check.
"""

import logging
import math
from dataclasses import dataclass, field
from decimal import Decimal
from typing import List, Optional

from django.conf import settings
from django.db import transaction
from django.db.models import Count, Q

from core.models import Listing

logger = logging.getLogger(__name__)

SORT_NEWEST = 'newest'
SORT_OLDEST = 'oldest'
SORT_PRICE_LOW = 'price-low'
SORT_PRICE_HIGH = 'price-high'

# Primary key in the same direction keeps pages disjoint when values tie
SORT_ORDERINGS = {
    SORT_NEWEST: ('-created_at', '-id'),
    SORT_OLDEST: ('created_at', 'id'),
    SORT_PRICE_LOW: ('price', 'id'),
    SORT_PRICE_HIGH: ('-price', '-id'),
}

SORT_CHOICES = list(SORT_ORDERINGS)

LOAD_FAILED_MESSAGE = 'Failed to load listings'


@dataclass
class ListingFilters:
    """Optional, ANDed filter set for listing discovery."""

    keyword: str = ''
    species: List[str] = field(default_factory=list)
    breed: str = ''
    country: str = ''
    city: str = ''
    min_price: Optional[Decimal] = None
    max_price: Optional[Decimal] = None
    min_age: Optional[int] = None
    max_age: Optional[int] = None
    gender: str = ''
    availability: str = ''
    status: str = ''
    seller_id: Optional[int] = None
    listing_id: Optional[int] = None
    slug: str = ''


@dataclass
class DiscoveryResult:
    success: bool
    items: list
    pagination: dict
    message: str = ''


def build_pagination(page, page_size, total_items):
    """
    Build pagination metadata.

    Args:
        page: 1-indexed page number that was requested
        page_size: Items per page
        total_items: Number of items matching the filters

    Returns:
        dict: currentPage, totalPages, totalItems, itemsPerPage
    """
    total_pages = math.ceil(total_items / page_size) if page_size else 0
    return {
        'currentPage': page,
        'totalPages': total_pages,
        'totalItems': total_items,
        'itemsPerPage': page_size,
    }


def listing_queryset():
    """Listings with seller, images and favorite counts loaded up front."""
    return (
        Listing.objects
        .select_related('seller')
        .prefetch_related('images')
        .annotate(favorites_count=Count('favorited_by', distinct=True))
    )


def apply_filters(queryset, filters):
    """
    Narrow a listing queryset by every filter that is set.

    Args:
        queryset: Listing queryset
        filters: ListingFilters instance

    Returns:
        QuerySet: Filtered queryset
    """
    if filters.keyword:
        keyword = filters.keyword.strip()
        queryset = queryset.filter(
            Q(title__icontains=keyword)
            | Q(description__icontains=keyword)
            | Q(breed__icontains=keyword)
        )

    if filters.species:
        queryset = queryset.filter(species__in=[s.strip().lower() for s in filters.species])

    if filters.breed:
        queryset = queryset.filter(breed__icontains=filters.breed.strip())

    if filters.country:
        queryset = queryset.filter(country=filters.country)

    if filters.city:
        queryset = queryset.filter(city=filters.city)

    if filters.min_price is not None:
        queryset = queryset.filter(price__gte=filters.min_price)

    if filters.max_price is not None:
        queryset = queryset.filter(price__lte=filters.max_price)

    if filters.min_age is not None:
        queryset = queryset.filter(age__gte=filters.min_age)

    if filters.max_age is not None:
        queryset = queryset.filter(age__lte=filters.max_age)

    if filters.gender:
        queryset = queryset.filter(gender=filters.gender)

    if filters.availability:
        queryset = queryset.filter(availability=filters.availability)

    if filters.status:
        queryset = queryset.filter(status=filters.status)

    if filters.seller_id is not None:
        queryset = queryset.filter(seller_id=filters.seller_id)

    if filters.listing_id is not None:
        queryset = queryset.filter(pk=filters.listing_id)

    if filters.slug:
        queryset = queryset.filter(slug=filters.slug)

    return queryset


def discover_listings(filters=None, sort=SORT_NEWEST, page=1, page_size=None, include_unapproved=False):
    """
    Run the discovery pipeline: fetch, filter, sort, paginate.

    Args:
        filters: ListingFilters (None means no filtering)
        sort: One of SORT_CHOICES; unknown values fall back to newest
        page: 1-indexed page number; values below 1 are treated as 1
        page_size: Items per page (defaults to LISTINGS_DEFAULT_PAGE_SIZE)
        include_unapproved: Admin mode; skip the approved-only restriction

    Returns:
        DiscoveryResult: Page of listings and pagination metadata. A page
        past the end yields an empty list, not an error.
    """
    filters = filters or ListingFilters()
    page = max(int(page or 1), 1)
    page_size = int(page_size or settings.LISTINGS_DEFAULT_PAGE_SIZE)
    page_size = min(max(page_size, 1), settings.LISTINGS_MAX_PAGE_SIZE)
    ordering = SORT_ORDERINGS.get(sort, SORT_ORDERINGS[SORT_NEWEST])

    try:
        with transaction.atomic():
            queryset = listing_queryset()
            if not include_unapproved:
                queryset = queryset.filter(status=Listing.STATUS_APPROVED)
            queryset = apply_filters(queryset, filters).order_by(*ordering)

            total_items = queryset.count()
            start = (page - 1) * page_size
            items = list(queryset[start:start + page_size]) if start < total_items else []
    except Exception as exc:
        logger.error(f"Listing discovery failed: {exc}", exc_info=True)
        return DiscoveryResult(
            success=False,
            items=[],
            pagination=build_pagination(page, page_size, 0),
            message=LOAD_FAILED_MESSAGE,
        )

    return DiscoveryResult(
        success=True,
        items=items,
        pagination=build_pagination(page, page_size, total_items),
    )


def latest_listings(limit=8):
    """Newest approved listings, as one page of size ``limit``."""
    return discover_listings(sort=SORT_NEWEST, page=1, page_size=limit)


def find_listing(listing_id=None, slug='', include_unapproved=False):
    """
    Look up one listing through the discovery pipeline.

    Returns:
        Listing or None: None when not found or when the lookup failed
    """
    result = discover_listings(
        filters=ListingFilters(listing_id=listing_id, slug=slug),
        page=1,
        page_size=1,
        include_unapproved=include_unapproved,
    )
    return result.items[0] if result.items else None
