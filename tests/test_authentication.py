"""
Comprehensive Authentication Tests

Covers registration, login, logout with token blacklisting, token refresh
with rotation, the current-user endpoint, password changes and how banned
accounts are treated at login and on authenticated requests.
"""

import logging
import time

import jwt
import pytest
from django.conf import settings
from django.contrib.auth import get_user_model
from django.urls import reverse
from rest_framework import status
from rest_framework_simplejwt.token_blacklist.models import BlacklistedToken
from rest_framework_simplejwt.tokens import AccessToken

from core.services.accounts import issue_tokens

User = get_user_model()

VALID_REGISTRATION = {
    'email': 'NewUser@Example.com',
    'password': 'Sturdy-Pass-42',
    'displayName': 'New User',
    'country': 'Italy',
    'city': 'Rome',
}


# ============================================================================
# 1. REGISTRATION
# ============================================================================

@pytest.mark.django_db
class TestRegistration:

    def test_register_returns_user_and_tokens(self, api_client):
        response = api_client.post(reverse('auth_register'), VALID_REGISTRATION, format='json')

        assert response.status_code == status.HTTP_201_CREATED
        data = response.data['data']
        assert data['user']['email'] == 'newuser@example.com'
        assert data['user']['displayName'] == 'New User'
        assert data['user']['role'] == 'user'
        assert data['user']['rating'] == 0
        assert data['token'] and data['refresh']

    def test_access_token_carries_role_claim(self, api_client):
        response = api_client.post(reverse('auth_register'), VALID_REGISTRATION, format='json')
        token = AccessToken(response.data['data']['token'])

        assert token['role'] == 'user'
        assert token['is_banned'] is False

    def test_password_is_hashed(self, api_client):
        api_client.post(reverse('auth_register'), VALID_REGISTRATION, format='json')
        user = User.objects.get(email='newuser@example.com')

        assert user.password != VALID_REGISTRATION['password']
        assert user.check_password(VALID_REGISTRATION['password'])

    def test_duplicate_email_rejected_case_insensitively(self, api_client, make_user):
        make_user('newuser@example.com')
        response = api_client.post(reverse('auth_register'), VALID_REGISTRATION, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['message'] == 'Email is already registered'

    @pytest.mark.parametrize('missing', ['email', 'password', 'displayName'])
    def test_required_fields(self, api_client, missing):
        payload = {key: value for key, value in VALID_REGISTRATION.items() if key != missing}
        response = api_client.post(reverse('auth_register'), payload, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['message'] == 'Email, password and displayName are required'

    def test_weak_password_rejected(self, api_client):
        payload = {**VALID_REGISTRATION, 'password': '12345'}
        response = api_client.post(reverse('auth_register'), payload, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert 'password' in response.data['errors']
        assert not User.objects.filter(email='newuser@example.com').exists()


# ============================================================================
# 2. LOGIN
# ============================================================================

@pytest.mark.django_db
class TestLogin:

    def test_login_with_valid_credentials(self, api_client, buyer):
        response = api_client.post(
            reverse('auth_login'),
            {'email': 'BUYER@test.com', 'password': 'TestPass123!'},
            format='json',
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.data['data']['user']['id'] == buyer.id
        assert response.data['data']['token']

    def test_wrong_password_and_unknown_email_share_message(self, api_client, buyer):
        wrong_password = api_client.post(
            reverse('auth_login'), {'email': 'buyer@test.com', 'password': 'nope'}, format='json'
        )
        unknown_email = api_client.post(
            reverse('auth_login'), {'email': 'ghost@test.com', 'password': 'nope'}, format='json'
        )

        assert wrong_password.status_code == status.HTTP_401_UNAUTHORIZED
        assert unknown_email.status_code == status.HTTP_401_UNAUTHORIZED
        assert wrong_password.data['message'] == unknown_email.data['message'] == 'Invalid email or password'

    def test_failed_login_is_logged(self, api_client, buyer, caplog):
        logger = logging.getLogger('core.services.accounts')
        logger.addHandler(caplog.handler)
        try:
            api_client.post(reverse('auth_login'), {'email': 'buyer@test.com', 'password': 'x'}, format='json')
        finally:
            logger.removeHandler(caplog.handler)

        assert any('Failed login attempt' in record.getMessage() for record in caplog.records)

    def test_missing_credentials(self, api_client, db):
        response = api_client.post(reverse('auth_login'), {'email': 'buyer@test.com'}, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['message'] == 'Email and password are required'

    def test_banned_user_cannot_log_in(self, api_client, make_user):
        make_user('banned@test.com', is_banned=True)
        response = api_client.post(
            reverse('auth_login'),
            {'email': 'banned@test.com', 'password': 'TestPass123!'},
            format='json',
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.data['message'] == 'Your account has been banned'


# ============================================================================
# 3. TOKEN VALIDATION
# ============================================================================

def forge_access_token(user, key, expires_in=300):
    now = int(time.time())
    payload = {
        'token_type': 'access',
        'jti': f'forged-{user.id}-{now}',
        'user_id': str(user.id),
        'role': user.role,
        'is_banned': False,
        'iat': now,
        'exp': now + expires_in,
    }
    return jwt.encode(payload, key, algorithm='HS256')


@pytest.mark.django_db
class TestTokenValidation:

    def test_expired_token_rejected(self, api_client, buyer):
        token = forge_access_token(buyer, settings.SIMPLE_JWT['SIGNING_KEY'], expires_in=-60)
        api_client.credentials(HTTP_AUTHORIZATION=f'Bearer {token}')

        response = api_client.get(reverse('auth_me'))
        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_token_signed_with_other_key_rejected(self, api_client, buyer):
        token = forge_access_token(buyer, 'not-the-real-signing-key')
        api_client.credentials(HTTP_AUTHORIZATION=f'Bearer {token}')

        response = api_client.get(reverse('auth_me'))
        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_token_with_real_key_accepted(self, api_client, buyer):
        token = forge_access_token(buyer, settings.SIMPLE_JWT['SIGNING_KEY'])
        api_client.credentials(HTTP_AUTHORIZATION=f'Bearer {token}')

        response = api_client.get(reverse('auth_me'))
        assert response.status_code == status.HTTP_200_OK

    def test_issued_token_has_expiry(self, buyer):
        token = issue_tokens(buyer)['token']
        decoded = jwt.decode(token, settings.SIMPLE_JWT['SIGNING_KEY'], algorithms=['HS256'])

        assert decoded['user_id'] in (buyer.id, str(buyer.id))
        assert decoded['exp'] > time.time()


# ============================================================================
# 4. BANNED ACCOUNTS ON AUTHENTICATED REQUESTS
# ============================================================================

@pytest.mark.django_db
class TestBannedToken:

    def test_token_stops_working_once_banned(self, buyer, auth_client):
        client = auth_client(buyer)
        assert client.get(reverse('auth_me')).status_code == status.HTTP_200_OK

        User.objects.filter(pk=buyer.pk).update(is_banned=True)
        response = client.get(reverse('auth_me'))

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.data['message'] == 'Your account has been banned'

    def test_banned_user_cannot_create_listing(self, make_user, auth_client):
        banned = make_user('banned@test.com', is_banned=True)
        response = auth_client(banned).post(
            reverse('animal_list'),
            {'title': 'Sneaky Snake', 'species': 'reptiles'},
            format='json',
        )

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_banned_user_can_still_browse_as_guest(self, make_user, auth_client):
        banned = make_user('banned@test.com', is_banned=True)
        response = auth_client(banned).get(reverse('animal_list'))

        assert response.status_code == status.HTTP_200_OK


# ============================================================================
# 5. LOGOUT AND REFRESH
# ============================================================================

@pytest.mark.django_db
class TestLogoutAndRefresh:

    def test_logout_blacklists_refresh_token(self, buyer, auth_client):
        tokens = issue_tokens(buyer)
        client = auth_client(buyer)

        response = client.post(reverse('auth_logout'), {'refresh': tokens['refresh']}, format='json')

        assert response.status_code == status.HTTP_200_OK
        jti = jwt.decode(tokens['refresh'], settings.SIMPLE_JWT['SIGNING_KEY'], algorithms=['HS256'])['jti']
        assert BlacklistedToken.objects.filter(token__jti=jti).exists()

    def test_blacklisted_refresh_token_cannot_be_used(self, api_client, buyer, auth_client):
        tokens = issue_tokens(buyer)
        auth_client(buyer).post(reverse('auth_logout'), {'refresh': tokens['refresh']}, format='json')

        response = api_client.post(reverse('token_refresh'), {'refresh': tokens['refresh']}, format='json')
        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.data['success'] is False

    def test_logout_without_token_is_400(self, buyer, auth_client):
        response = auth_client(buyer).post(reverse('auth_logout'), {}, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['message'] == 'Refresh token is required'

    def test_logout_with_garbage_token_is_400(self, buyer, auth_client):
        response = auth_client(buyer).post(reverse('auth_logout'), {'refresh': 'garbage'}, format='json')
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_refresh_rotates_tokens(self, api_client, buyer):
        tokens = issue_tokens(buyer)
        response = api_client.post(reverse('token_refresh'), {'refresh': tokens['refresh']}, format='json')

        assert response.status_code == status.HTTP_200_OK
        assert response.data['data']['token']
        assert response.data['data']['refresh'] != tokens['refresh']

        # The rotated-out token is blacklisted
        again = api_client.post(reverse('token_refresh'), {'refresh': tokens['refresh']}, format='json')
        assert again.status_code == status.HTTP_401_UNAUTHORIZED

    def test_refresh_with_invalid_token(self, api_client, db):
        response = api_client.post(reverse('token_refresh'), {'refresh': 'invalid'}, format='json')
        assert response.status_code == status.HTTP_401_UNAUTHORIZED


# ============================================================================
# 6. CURRENT USER AND PASSWORD
# ============================================================================

@pytest.mark.django_db
class TestCurrentUserAndPassword:

    def test_me_requires_authentication(self, api_client, db):
        response = api_client.get(reverse('auth_me'))

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.data['success'] is False

    def test_me_and_users_me_match(self, buyer, auth_client):
        client = auth_client(buyer)

        first = client.get(reverse('auth_me')).data['data']
        second = client.get(reverse('user_me')).data['data']

        assert first == second
        assert first['email'] == 'buyer@test.com'

    def test_change_password(self, api_client, buyer):
        api_client.force_authenticate(user=buyer)
        response = api_client.patch(
            reverse('auth_change_password'),
            {'currentPassword': 'TestPass123!', 'newPassword': 'Another-Pass-77'},
            format='json',
        )

        assert response.status_code == status.HTTP_200_OK
        buyer.refresh_from_db()
        assert buyer.check_password('Another-Pass-77')

    def test_change_password_wrong_current(self, api_client, buyer):
        api_client.force_authenticate(user=buyer)
        response = api_client.patch(
            reverse('auth_change_password'),
            {'currentPassword': 'wrong', 'newPassword': 'Another-Pass-77'},
            format='json',
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data['message'] == 'Current password is incorrect'

    def test_change_password_weak_new(self, api_client, buyer):
        api_client.force_authenticate(user=buyer)
        response = api_client.patch(
            reverse('auth_change_password'),
            {'currentPassword': 'TestPass123!', 'newPassword': 'abc'},
            format='json',
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert 'newPassword' in response.data['errors']
