"""
Shared fixtures for the API test suite.
"""

from decimal import Decimal
from io import BytesIO

import pytest
from django.contrib.auth import get_user_model
from django.core.files.uploadedfile import SimpleUploadedFile
from PIL import Image
from rest_framework.test import APIClient

from core.models import Listing
from core.services.accounts import issue_tokens
from core.services.listings import generate_unique_slug

User = get_user_model()


@pytest.fixture(autouse=True)
def clear_cache(db):
    """Clear Django cache before each test to reset throttle limits."""
    from django.core.cache import cache
    cache.clear()


@pytest.fixture
def api_client():
    """Provide API client for testing."""
    return APIClient()


@pytest.fixture
def make_user(db):
    """Factory creating users with a known password."""
    def _make_user(email, role='user', display_name=None, **kwargs):
        return User.objects.create_user(
            username=email,
            email=email,
            password='TestPass123!',
            display_name=display_name or email.split('@')[0].title(),
            role=role,
            **kwargs
        )
    return _make_user


@pytest.fixture
def seller(make_user):
    return make_user('seller@test.com', display_name='Sam Seller', country='Germany', city='Berlin')


@pytest.fixture
def buyer(make_user):
    return make_user('buyer@test.com', display_name='Bea Buyer')


@pytest.fixture
def moderator(make_user):
    return make_user('moderator@test.com', role='moderator')


@pytest.fixture
def admin_user(make_user):
    return make_user('admin@test.com', role='admin', is_staff=True)


@pytest.fixture
def make_listing(db):
    """Factory creating listings; approved unless told otherwise."""
    def _make_listing(seller, title='Friendly Labrador', status=Listing.STATUS_APPROVED, **kwargs):
        fields = {
            'species': 'dogs',
            'breed': 'Labrador Retriever',
            'age': 6,
            'gender': 'male',
            'price': Decimal('250.00'),
            'currency': 'USD',
            'country': 'Germany',
            'city': 'Berlin',
        }
        fields.update(kwargs)
        return Listing.objects.create(
            seller=seller,
            title=title,
            slug=fields.pop('slug', None) or generate_unique_slug(title),
            status=status,
            **fields
        )
    return _make_listing


@pytest.fixture
def auth_client():
    """Build an APIClient that sends a real bearer token for ``user``."""
    def _auth_client(user):
        client = APIClient()
        client.credentials(HTTP_AUTHORIZATION=f"Bearer {issue_tokens(user)['token']}")
        return client
    return _auth_client


def create_test_image(filename='test.jpg', size=(100, 100), format='JPEG'):
    """Create an in-memory image upload."""
    file = BytesIO()
    image = Image.new('RGB', size, color='red')
    image.save(file, format)
    file.seek(0)
    return SimpleUploadedFile(
        filename,
        file.read(),
        content_type=f'image/{format.lower()}'
    )


@pytest.fixture
def image_file():
    return create_test_image
