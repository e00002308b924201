"""
Tests for abuse reports: filing (guests included) and moderator handling.
"""

import pytest
from django.urls import reverse
from rest_framework import status

from core.models import Report


@pytest.fixture
def listing(seller, make_listing):
    return make_listing(seller, 'Suspicious Sphynx', species='cats')


@pytest.fixture
def report(listing, buyer):
    return Report.objects.create(listing=listing, reporter=buyer, reason='Looks like a scam')


@pytest.mark.django_db
class TestFilingReports:

    def test_guest_can_report(self, api_client, listing):
        response = api_client.post(
            reverse('report_list'),
            {'animalId': listing.id, 'reason': 'Stolen photos'},
            format='json',
        )

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data['data']['reporterId'] is None
        assert response.data['data']['reporterName'] == 'Anonymous'
        assert response.data['data']['status'] == 'open'

    def test_signed_in_reporter_is_recorded(self, api_client, buyer, listing):
        api_client.force_authenticate(user=buyer)
        response = api_client.post(
            reverse('report_list'),
            {'animalId': listing.id, 'reason': 'Wrong species'},
            format='json',
        )

        assert response.status_code == status.HTTP_201_CREATED
        assert response.data['data']['reporterId'] == buyer.id

    def test_invalid_token_does_not_block_guest_report(self, api_client, listing):
        api_client.credentials(HTTP_AUTHORIZATION='Bearer not-a-real-token')
        response = api_client.post(
            reverse('report_list'),
            {'animalId': listing.id, 'reason': 'Spam'},
            format='json',
        )

        assert response.status_code == status.HTTP_201_CREATED

    @pytest.mark.parametrize('payload', [
        {'reason': 'No listing given'},
        {'animalId': 1},
        {'animalId': 1, 'reason': '   '},
    ])
    def test_missing_fields_rejected(self, api_client, listing, payload):
        response = api_client.post(reverse('report_list'), payload, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['message'] == 'animalId and reason are required'

    def test_unknown_listing_is_404(self, api_client, db):
        response = api_client.post(reverse('report_list'), {'animalId': 999, 'reason': 'Spam'}, format='json')
        assert response.status_code == status.HTTP_404_NOT_FOUND


@pytest.mark.django_db
class TestHandlingReports:

    def test_regular_user_cannot_list_reports(self, api_client, buyer, report):
        api_client.force_authenticate(user=buyer)
        response = api_client.get(reverse('report_list'))

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_guest_cannot_list_reports(self, api_client, report):
        response = api_client.get(reverse('report_list'))
        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_moderator_lists_and_filters(self, api_client, moderator, listing, report):
        Report.objects.create(listing=listing, reason='Duplicate', status=Report.STATUS_CLOSED)
        api_client.force_authenticate(user=moderator)

        response = api_client.get(reverse('report_list'))
        assert len(response.data['data']) == 2

        response = api_client.get(reverse('report_list'), {'status': 'open'})
        assert [item['reason'] for item in response.data['data']] == ['Looks like a scam']
        assert response.data['data'][0]['listingTitle'] == 'Suspicious Sphynx'

    def test_detail(self, api_client, moderator, report):
        api_client.force_authenticate(user=moderator)
        response = api_client.get(reverse('report_detail', args=[report.id]))

        assert response.status_code == status.HTTP_200_OK
        assert response.data['data']['reporterName'] == 'Bea Buyer'

    def test_set_status(self, api_client, moderator, report):
        api_client.force_authenticate(user=moderator)
        response = api_client.patch(
            reverse('report_status', args=[report.id]),
            {'status': 'reviewing'},
            format='json',
        )

        assert response.status_code == status.HTTP_200_OK
        report.refresh_from_db()
        assert report.status == Report.STATUS_REVIEWING

    def test_invalid_status_rejected(self, api_client, moderator, report):
        api_client.force_authenticate(user=moderator)
        response = api_client.patch(
            reverse('report_status', args=[report.id]),
            {'status': 'escalated'},
            format='json',
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['message'] == 'Invalid status'

    @pytest.mark.parametrize('route', ['report_reject', 'report_dismiss'])
    def test_reject_and_dismiss_both_close(self, api_client, admin_user, report, route):
        api_client.force_authenticate(user=admin_user)
        response = api_client.patch(reverse(route, args=[report.id]))

        assert response.status_code == status.HTTP_200_OK
        report.refresh_from_db()
        assert report.status == Report.STATUS_CLOSED

    def test_unknown_report_is_404(self, api_client, moderator):
        api_client.force_authenticate(user=moderator)
        response = api_client.patch(reverse('report_dismiss', args=[5150]))

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.data['message'] == 'Report not found'
