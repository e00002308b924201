"""
Test suite for listing creation, editing, deletion, images and view counting.

Test Coverage:
- Creation always lands in pending, regardless of the submitted status
- Slug generation and uniqueness
- Ownership checks on edit, delete and image management
- Visibility of unapproved listings by id and by slug
- Image upload limits and file types
- View counting skips the owner
"""

from decimal import Decimal
from io import BytesIO

from django.contrib.auth import get_user_model
from django.core.files.uploadedfile import SimpleUploadedFile
from django.test import TestCase
from django.urls import reverse
from PIL import Image
from rest_framework import status
from rest_framework.test import APIClient

from core.models import Listing, ListingImage

User = get_user_model()


# ============================================================================
# Helper Functions
# ============================================================================

def create_test_user(email, role='user', **kwargs):
    return User.objects.create_user(
        username=email,
        email=email,
        password='TestPass123!',
        display_name=email.split('@')[0].title(),
        role=role,
        **kwargs
    )


def create_test_image(filename='test.jpg', size=(100, 100), format='JPEG'):
    file = BytesIO()
    image = Image.new('RGB', size, color='blue')
    image.save(file, format)
    file.seek(0)
    return SimpleUploadedFile(filename, file.read(), content_type=f'image/{format.lower()}')


def create_listing(seller, title, slug, status=Listing.STATUS_APPROVED, **kwargs):
    return Listing.objects.create(
        seller=seller,
        title=title,
        slug=slug,
        species=kwargs.pop('species', 'dogs'),
        price=kwargs.pop('price', Decimal('100.00')),
        status=status,
        **kwargs
    )


VALID_PAYLOAD = {
    'title': 'Playful Beagle',
    'description': 'Eight week old beagle puppy.',
    'species': 'Dogs',
    'breed': 'Beagle',
    'age': 2,
    'gender': 'female',
    'price': '350.00',
    'currency': 'eur',
    'country': 'Spain',
    'city': 'Madrid',
}


# ============================================================================
# Creation
# ============================================================================

class ListingCreationTests(TestCase):

    def setUp(self):
        self.client = APIClient()
        self.seller = create_test_user('seller@test.com')
        self.url = reverse('animal_list')

    def test_guest_cannot_create_listing(self):
        response = self.client.post(self.url, VALID_PAYLOAD, format='json')

        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertFalse(response.data['success'])

    def test_new_listing_is_pending_and_normalized(self):
        self.client.force_authenticate(user=self.seller)
        response = self.client.post(self.url, VALID_PAYLOAD, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        data = response.data['data']
        self.assertEqual(data['status'], 'pending')
        self.assertEqual(data['species'], 'dogs')
        self.assertEqual(data['currency'], 'EUR')
        self.assertEqual(data['slug'], 'playful-beagle')
        self.assertEqual(data['sellerId'], self.seller.id)

    def test_submitted_status_is_ignored(self):
        self.client.force_authenticate(user=self.seller)
        payload = {**VALID_PAYLOAD, 'status': 'approved', 'views': 999}
        response = self.client.post(self.url, payload, format='json')

        listing = Listing.objects.get(pk=response.data['data']['id'])
        self.assertEqual(listing.status, Listing.STATUS_PENDING)
        self.assertEqual(listing.views, 0)

    def test_generated_slugs_do_not_collide(self):
        self.client.force_authenticate(user=self.seller)
        first = self.client.post(self.url, VALID_PAYLOAD, format='json')
        second = self.client.post(self.url, VALID_PAYLOAD, format='json')

        self.assertEqual(first.data['data']['slug'], 'playful-beagle')
        self.assertEqual(second.data['data']['slug'], 'playful-beagle-2')

    def test_underscores_in_title_become_hyphens(self):
        self.client.force_authenticate(user=self.seller)
        payload = {'title': 'Rex_the__dog', 'species': 'dogs', 'price': '100'}
        response = self.client.post(self.url, payload, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['data']['slug'], 'rex-the-dog')
        self.assertEqual(response.data['data']['status'], 'pending')

    def test_duplicate_explicit_slug_is_rejected(self):
        create_listing(self.seller, 'Existing', 'rex')
        self.client.force_authenticate(user=self.seller)
        response = self.client.post(self.url, {**VALID_PAYLOAD, 'slug': 'rex'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['message'], 'Slug is already in use')

    def test_negative_price_is_rejected(self):
        self.client.force_authenticate(user=self.seller)
        response = self.client.post(self.url, {**VALID_PAYLOAD, 'price': '-1'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('price', response.data['errors'])

    def test_missing_title_is_rejected(self):
        self.client.force_authenticate(user=self.seller)
        payload = {key: value for key, value in VALID_PAYLOAD.items() if key != 'title'}
        response = self.client.post(self.url, payload, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('title', response.data['errors'])


# ============================================================================
# Reading, editing and deleting
# ============================================================================

class ListingDetailTests(TestCase):

    def setUp(self):
        self.client = APIClient()
        self.owner = create_test_user('owner@test.com')
        self.stranger = create_test_user('stranger@test.com')
        self.moderator = create_test_user('mod@test.com', role='moderator')
        self.admin = create_test_user('admin@test.com', role='admin')
        self.approved = create_listing(self.owner, 'Happy Husky', 'happy-husky')
        self.pending = create_listing(self.owner, 'Shy Kitten', 'shy-kitten', status=Listing.STATUS_PENDING)

    def test_anyone_can_read_approved_listing(self):
        response = self.client.get(reverse('animal_detail', args=[self.approved.id]))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['data']['title'], 'Happy Husky')

    def test_pending_listing_hidden_from_guests_and_strangers(self):
        url = reverse('animal_detail', args=[self.pending.id])
        self.assertEqual(self.client.get(url).status_code, status.HTTP_404_NOT_FOUND)

        self.client.force_authenticate(user=self.stranger)
        self.assertEqual(self.client.get(url).status_code, status.HTTP_404_NOT_FOUND)

    def test_pending_listing_visible_to_owner_and_moderator(self):
        url = reverse('animal_detail', args=[self.pending.id])

        self.client.force_authenticate(user=self.owner)
        self.assertEqual(self.client.get(url).status_code, status.HTTP_200_OK)

        self.client.force_authenticate(user=self.moderator)
        self.assertEqual(self.client.get(url).status_code, status.HTTP_200_OK)

    def test_lookup_by_slug(self):
        response = self.client.get(reverse('animal_by_slug', args=['happy-husky']))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['data']['id'], self.approved.id)

        response = self.client.get(reverse('animal_by_slug', args=['shy-kitten']))
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data['message'], 'Listing not found')

    def test_unknown_listing_is_404(self):
        response = self.client.get(reverse('animal_detail', args=[99999]))
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_owner_can_edit_content_but_not_status(self):
        self.client.force_authenticate(user=self.owner)
        response = self.client.patch(
            reverse('animal_detail', args=[self.pending.id]),
            {'title': 'Brave Kitten', 'price': '80.00', 'status': 'approved'},
            format='json',
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.pending.refresh_from_db()
        self.assertEqual(self.pending.title, 'Brave Kitten')
        self.assertEqual(self.pending.price, Decimal('80.00'))
        self.assertEqual(self.pending.status, Listing.STATUS_PENDING)

    def test_empty_slug_on_edit_keeps_current_slug(self):
        self.client.force_authenticate(user=self.owner)
        self.client.patch(reverse('animal_detail', args=[self.approved.id]), {'slug': ''}, format='json')

        self.approved.refresh_from_db()
        self.assertEqual(self.approved.slug, 'happy-husky')

    def test_non_owner_cannot_edit(self):
        for user in (self.stranger, self.admin):
            self.client.force_authenticate(user=user)
            response = self.client.patch(
                reverse('animal_detail', args=[self.approved.id]),
                {'title': 'Hijacked'},
                format='json',
            )
            self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

        self.approved.refresh_from_db()
        self.assertEqual(self.approved.title, 'Happy Husky')

    def test_stranger_cannot_delete(self):
        self.client.force_authenticate(user=self.stranger)
        response = self.client.delete(reverse('animal_detail', args=[self.approved.id]))

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertTrue(Listing.objects.filter(pk=self.approved.id).exists())

    def test_owner_and_admin_can_delete(self):
        self.client.force_authenticate(user=self.owner)
        response = self.client.delete(reverse('animal_detail', args=[self.approved.id]))
        self.assertEqual(response.status_code, status.HTTP_200_OK)

        self.client.force_authenticate(user=self.admin)
        response = self.client.delete(reverse('animal_detail', args=[self.pending.id]))
        self.assertEqual(response.status_code, status.HTTP_200_OK)

        self.assertFalse(Listing.objects.exists())

    def test_my_listings_includes_every_status(self):
        create_listing(self.stranger, 'Not Mine', 'not-mine')
        self.client.force_authenticate(user=self.owner)
        response = self.client.get(reverse('animal_mine'))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual({item['title'] for item in response.data['data']}, {'Happy Husky', 'Shy Kitten'})

        response = self.client.get(reverse('animal_mine'), {'status': 'pending'})
        self.assertEqual([item['title'] for item in response.data['data']], ['Shy Kitten'])


# ============================================================================
# Images
# ============================================================================

class ListingImageTests(TestCase):

    def setUp(self):
        self.client = APIClient()
        self.owner = create_test_user('owner@test.com')
        self.stranger = create_test_user('stranger@test.com')
        self.listing = create_listing(self.owner, 'Photo Parrot', 'photo-parrot', species='birds')
        self.url = reverse('animal_images', args=[self.listing.id])

    def test_owner_uploads_images_in_order(self):
        self.client.force_authenticate(user=self.owner)
        response = self.client.post(
            self.url,
            {'images': [create_test_image('a.jpg'), create_test_image('b.png', format='PNG')]},
            format='multipart',
        )

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual([item['order'] for item in response.data['data']], [0, 1])

        detail = self.client.get(reverse('animal_detail', args=[self.listing.id]))
        self.assertEqual(len(detail.data['data']['images']), 2)
        self.assertEqual(detail.data['data']['coverImage'], detail.data['data']['images'][0])

    def test_later_uploads_append_after_existing(self):
        self.client.force_authenticate(user=self.owner)
        self.client.post(self.url, {'images': [create_test_image()]}, format='multipart')
        response = self.client.post(self.url, {'images': [create_test_image()]}, format='multipart')

        self.assertEqual(response.data['data'][0]['order'], 1)

    def test_upload_requires_at_least_one_image(self):
        self.client.force_authenticate(user=self.owner)
        response = self.client.post(self.url, {}, format='multipart')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['message'], 'At least one image is required')

    def test_more_than_six_images_rejected(self):
        self.client.force_authenticate(user=self.owner)
        images = [create_test_image(f'{index}.jpg') for index in range(7)]
        response = self.client.post(self.url, {'images': images}, format='multipart')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(ListingImage.objects.exists())

    def test_non_image_file_rejected(self):
        self.client.force_authenticate(user=self.owner)
        bogus = SimpleUploadedFile('notes.txt', b'not an image', content_type='text/plain')
        response = self.client.post(self.url, {'images': [bogus]}, format='multipart')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_stranger_cannot_upload(self):
        self.client.force_authenticate(user=self.stranger)
        response = self.client.post(self.url, {'images': [create_test_image()]}, format='multipart')

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_owner_deletes_image(self):
        image = ListingImage.objects.create(listing=self.listing, image=create_test_image(), order=0)
        self.client.force_authenticate(user=self.owner)
        response = self.client.delete(reverse('animal_image_detail', args=[self.listing.id, image.id]))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(ListingImage.objects.filter(pk=image.id).exists())

    def test_deleting_unknown_image_is_404(self):
        self.client.force_authenticate(user=self.owner)
        response = self.client.delete(reverse('animal_image_detail', args=[self.listing.id, 4242]))

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data['message'], 'Image not found')


# ============================================================================
# View counting
# ============================================================================

class ListingViewCountTests(TestCase):

    def setUp(self):
        self.client = APIClient()
        self.owner = create_test_user('owner@test.com')
        self.visitor = create_test_user('visitor@test.com')
        self.listing = create_listing(self.owner, 'Counted Corgi', 'counted-corgi')
        self.url = reverse('animal_view', args=[self.listing.id])

    def test_guest_view_is_counted(self):
        response = self.client.post(self.url)

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['data']['counted'])
        self.listing.refresh_from_db()
        self.assertEqual(self.listing.views, 1)

    def test_owner_view_is_not_counted(self):
        self.client.force_authenticate(user=self.owner)
        response = self.client.post(self.url)

        self.assertFalse(response.data['data']['counted'])
        self.listing.refresh_from_db()
        self.assertEqual(self.listing.views, 0)

    def test_repeat_views_accumulate(self):
        self.client.force_authenticate(user=self.visitor)
        for _ in range(3):
            self.client.post(self.url)

        self.listing.refresh_from_db()
        self.assertEqual(self.listing.views, 3)

    def test_view_of_unknown_listing_is_404(self):
        response = self.client.post(reverse('animal_view', args=[12345]))
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
