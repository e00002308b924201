"""
User-to-user ratings.

A user's rating is never stored on the user row; it is aggregated from
Rating rows whenever it is needed.
"""

import logging

from django.contrib.auth import get_user_model
from django.db.models import Avg, Count
from rest_framework.exceptions import NotFound

from core.exceptions import BusinessRuleError
from core.models import Rating

User = get_user_model()
logger = logging.getLogger(__name__)


def get_user_or_404(user_id):
    try:
        return User.objects.get(pk=user_id)
    except User.DoesNotExist:
        raise NotFound('User not found')


def rate_user(rater, rated_id, rating, review=''):
    """
    Create or overwrite the rater's rating of another user.

    Args:
        rater: User giving the rating
        rated_id: Primary key of the user being rated
        rating: Integer from 1 to 5
        review: Optional free text

    Returns:
        tuple: (Rating, created)

    Raises:
        BusinessRuleError: On self-rating, whatever the value
        NotFound: If the rated user does not exist
    """
    if rater.pk == rated_id:
        raise BusinessRuleError('You cannot rate yourself')

    rated = get_user_or_404(rated_id)

    obj, created = Rating.objects.update_or_create(
        rater=rater,
        rated=rated,
        defaults={'rating': rating, 'review': (review or '').strip()},
    )

    action = 'created' if created else 'updated'
    logger.info(f"Rating {obj.id} {action}: user {rater.pk} rated user {rated.pk} {rating}/5")
    return obj, created


def get_my_rating(rater, rated_id):
    return Rating.objects.filter(rater=rater, rated_id=rated_id).first()


def delete_rating(rater, rated_id):
    """
    Remove the rater's rating of a user.

    Raises:
        NotFound: If the rater has not rated that user
    """
    deleted, _ = Rating.objects.filter(rater=rater, rated_id=rated_id).delete()
    if not deleted:
        raise NotFound('Rating not found')
    logger.info(f"User {rater.pk} removed their rating of user {rated_id}")


def rating_summary(user_id):
    """
    Average and count of ratings received by a user.

    Returns:
        dict: {'average': float rounded to one decimal (0 when unrated), 'count': int}
    """
    stats = Rating.objects.filter(rated_id=user_id).aggregate(
        average=Avg('rating'),
        count=Count('id'),
    )
    average = stats['average']
    return {
        'average': round(float(average), 1) if average is not None else 0,
        'count': stats['count'] or 0,
    }


def ratings_received(user_id):
    return list(
        Rating.objects
        .filter(rated_id=user_id)
        .select_related('rater')
        .order_by('-updated_at', '-id')
    )
