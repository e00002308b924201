"""
Aggregate counters for the home page, dashboards and site traffic.
"""

import logging
from datetime import timedelta

from django.conf import settings
from django.contrib.auth import get_user_model
from django.db.models import Count, Sum
from django.utils import timezone

from core.models import Favorite, Listing, Visit
from core.utils import best_effort

User = get_user_model()
logger = logging.getLogger(__name__)


def record_visit(user=None, ip_address=None, user_agent=''):
    """
    Store a visit or presence heartbeat.

    Best-effort: a failure is logged and reported as not tracked.

    Returns:
        bool: True if the visit was stored
    """
    tracked = False
    with best_effort('record visit'):
        Visit.objects.create(
            user=user if user is not None and user.is_authenticated else None,
            ip_address=ip_address,
            user_agent=(user_agent or '')[:500],
        )
        tracked = True
    return tracked


def _distinct_visitors(queryset):
    """Distinct signed-in users plus distinct guest IP addresses."""
    users = (
        queryset.filter(user__isnull=False)
        .order_by()
        .values('user_id')
        .distinct()
        .count()
    )
    guests = (
        queryset.filter(user__isnull=True, ip_address__isnull=False)
        .order_by()
        .values('ip_address')
        .distinct()
        .count()
    )
    return users + guests


def site_traffic(now=None):
    """
    Total and currently online visitor counts.

    A visitor is online if seen within ONLINE_USER_TIMEOUT_MINUTES.
    """
    now = now or timezone.now()
    cutoff = now - timedelta(minutes=settings.ONLINE_USER_TIMEOUT_MINUTES)
    return {
        'totalVisitors': _distinct_visitors(Visit.objects.all()),
        'onlineUsers': _distinct_visitors(Visit.objects.filter(visited_at__gte=cutoff)),
    }


def home_stats():
    approved = Listing.objects.filter(status=Listing.STATUS_APPROVED)
    category_counts = {
        row['species']: row['total']
        for row in approved.order_by().values('species').annotate(total=Count('id'))
    }
    return {
        'totalListings': approved.count(),
        'totalUsers': User.objects.count(),
        'categoryCounts': category_counts,
    }


def dashboard_stats(user):
    """Counters for the signed-in user's own listings."""
    own = Listing.objects.filter(seller=user)
    return {
        'totalListings': own.count(),
        'activeListings': own.filter(
            status=Listing.STATUS_APPROVED,
            availability='available',
        ).count(),
        'totalViews': own.aggregate(total=Sum('views'))['total'] or 0,
        'totalFavorites': Favorite.objects.filter(listing__seller=user).count(),
    }


def admin_stats(now=None):
    now = now or timezone.now()
    month_start = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    listings = Listing.objects.all()
    return {
        'totalUsers': User.objects.count(),
        'totalListings': listings.count(),
        'pendingListings': listings.filter(status=Listing.STATUS_PENDING).count(),
        'totalCountries': listings.exclude(country='').order_by().values('country').distinct().count(),
        'totalCities': listings.exclude(city='').order_by().values('city').distinct().count(),
        'newUsersThisMonth': User.objects.filter(created_at__gte=month_start).count(),
        'newListingsThisMonth': listings.filter(created_at__gte=month_start).count(),
    }
