"""
Abuse reports against listings.
"""

import logging

from rest_framework.exceptions import NotFound, ValidationError

from core.models import Listing, Report

logger = logging.getLogger(__name__)


def create_report(listing_id, reason, reporter=None):
    """
    File a report. Guests may report; ``reporter`` is then None.

    Raises:
        ValidationError: If the reason is blank
        NotFound: If the listing does not exist
    """
    reason = (reason or '').strip()
    if not reason:
        raise ValidationError('animalId and reason are required')

    try:
        listing = Listing.objects.get(pk=listing_id)
    except Listing.DoesNotExist:
        raise NotFound('Listing not found')

    report = Report.objects.create(listing=listing, reporter=reporter, reason=reason)
    reporter_label = reporter.pk if reporter is not None else 'anonymous'
    logger.info(f"Report {report.id} filed on listing {listing.id} by {reporter_label}")
    return report


def list_reports(status=None):
    queryset = Report.objects.select_related('listing', 'reporter')
    if status:
        queryset = queryset.filter(status=status)
    return list(queryset.order_by('-created_at', '-id'))


def get_report_or_404(report_id):
    try:
        return Report.objects.select_related('listing', 'reporter').get(pk=report_id)
    except Report.DoesNotExist:
        raise NotFound('Report not found')


def set_report_status(report_id, status, moderator):
    """
    Change a report's status.

    Raises:
        ValidationError: If the status is not open, reviewing or closed
    """
    if status not in dict(Report.STATUS_CHOICES):
        raise ValidationError('Invalid status')

    report = get_report_or_404(report_id)
    previous = report.status
    report.status = status
    report.save(update_fields=['status', 'updated_at'])

    logger.info(f"Report {report.id} moved from {previous} to {status} by user {moderator.pk}")
    return report


def reject_report(report_id, moderator):
    """Reject a report. Closes it, exactly like dismiss_report."""
    return set_report_status(report_id, Report.STATUS_CLOSED, moderator)


def dismiss_report(report_id, moderator):
    """Dismiss a report. Closes it, exactly like reject_report."""
    return set_report_status(report_id, Report.STATUS_CLOSED, moderator)
