"""
Serializers for the Pet Marketplace API.

Output serializers shape model instances into the camelCase DTOs the web
client consumes. Input serializers validate request bodies and query
strings; their ``validated_data`` is keyed by model field names so it can
be handed straight to the service layer.
"""

from django.conf import settings
from django.contrib.auth import get_user_model
from rest_framework import serializers

from core.models import (
    Announcement,
    Conversation,
    FAQItem,
    Listing,
    ListingImage,
    Message,
    Notification,
    Rating,
    Report,
)
from core.services.discovery import SORT_CHOICES, SORT_NEWEST, ListingFilters
from core.services.ratings import rating_summary
from core.validators import validate_listing_image

User = get_user_model()


def absolute_media_url(serializer, file_field):
    """Full URL for a stored file, or its relative URL outside a request."""
    if not file_field:
        return None
    request = serializer.context.get('request')
    if request is not None:
        return request.build_absolute_uri(file_field.url)
    return file_field.url


# ============================================================================
# Users
# ============================================================================

class UserBriefSerializer(serializers.ModelSerializer):
    """Minimal user reference: {id, name, avatar}."""

    name = serializers.CharField(source='display_name', read_only=True)
    avatar = serializers.CharField(read_only=True)

    class Meta:
        model = User
        fields = ['id', 'name', 'avatar']
        read_only_fields = fields


class UserSerializer(serializers.ModelSerializer):
    """
    Full user DTO returned to the user themselves and to admins.

    Fields:
    - id, email, displayName, role, country, city, avatar, isBanned, createdAt
    - rating / ratingCount: Aggregated from ratings received
    - totalListings: Listings owned (uses the ``total_listings`` annotation
      when present)
    """

    displayName = serializers.CharField(source='display_name', read_only=True)
    avatar = serializers.CharField(read_only=True)
    isBanned = serializers.BooleanField(source='is_banned', read_only=True)
    createdAt = serializers.DateTimeField(source='created_at', read_only=True)
    rating = serializers.SerializerMethodField()
    ratingCount = serializers.SerializerMethodField()
    totalListings = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = [
            'id', 'email', 'displayName', 'role', 'country', 'city', 'avatar',
            'isBanned', 'createdAt', 'rating', 'ratingCount', 'totalListings',
        ]
        read_only_fields = fields

    def _summary(self, obj):
        cache = self.context.setdefault('_rating_summaries', {})
        if obj.pk not in cache:
            cache[obj.pk] = rating_summary(obj.pk)
        return cache[obj.pk]

    def get_rating(self, obj):
        return self._summary(obj)['average']

    def get_ratingCount(self, obj):
        return self._summary(obj)['count']

    def get_totalListings(self, obj):
        total = getattr(obj, 'total_listings', None)
        if total is None:
            total = obj.listings.count()
        return total


class RatingSerializer(serializers.ModelSerializer):
    rater = UserBriefSerializer(read_only=True)
    ratedId = serializers.IntegerField(source='rated_id', read_only=True)
    createdAt = serializers.DateTimeField(source='created_at', read_only=True)
    updatedAt = serializers.DateTimeField(source='updated_at', read_only=True)

    class Meta:
        model = Rating
        fields = ['id', 'rater', 'ratedId', 'rating', 'review', 'createdAt', 'updatedAt']
        read_only_fields = fields


class PublicProfileSerializer(UserSerializer):
    """
    Profile visible to anyone. Omits email and lists ratings received.

    Expects ``ratings`` in the serializer context.
    """

    ratings = serializers.SerializerMethodField()

    class Meta(UserSerializer.Meta):
        fields = [
            'id', 'displayName', 'role', 'country', 'city', 'avatar',
            'createdAt', 'rating', 'ratingCount', 'totalListings', 'ratings',
        ]
        read_only_fields = fields

    def get_ratings(self, obj):
        ratings = self.context.get('ratings', [])
        return RatingSerializer(ratings, many=True, context=self.context).data


# ============================================================================
# Authentication input
# ============================================================================

REGISTER_REQUIRED_MESSAGE = 'Email, password and displayName are required'
LOGIN_REQUIRED_MESSAGE = 'Email and password are required'


class RegisterSerializer(serializers.Serializer):
    """
    Registration payload.

    Fields:
    - email: Required, valid email
    - password: Required; strength is checked by the account service
    - displayName: Required
    - country / city: Optional
    """

    _required = {'required': REGISTER_REQUIRED_MESSAGE, 'blank': REGISTER_REQUIRED_MESSAGE}

    email = serializers.EmailField(error_messages=_required)
    password = serializers.CharField(
        write_only=True,
        trim_whitespace=False,
        style={'input_type': 'password'},
        error_messages=_required,
    )
    displayName = serializers.CharField(source='display_name', max_length=100, error_messages=_required)
    country = serializers.CharField(max_length=100, required=False, allow_blank=True, default='')
    city = serializers.CharField(max_length=100, required=False, allow_blank=True, default='')


class LoginSerializer(serializers.Serializer):
    """
    Login payload. Only presence is checked here; credentials are verified
    by the account service so failures carry one generic message.
    """

    _required = {'required': LOGIN_REQUIRED_MESSAGE, 'blank': LOGIN_REQUIRED_MESSAGE}

    email = serializers.CharField(error_messages=_required)
    password = serializers.CharField(
        write_only=True,
        trim_whitespace=False,
        style={'input_type': 'password'},
        error_messages=_required,
    )


class RefreshTokenSerializer(serializers.Serializer):
    refresh = serializers.CharField(error_messages={
        'required': 'Refresh token is required',
        'blank': 'Refresh token is required',
    })


class ChangePasswordSerializer(serializers.Serializer):
    _required = {
        'required': 'currentPassword and newPassword are required',
        'blank': 'currentPassword and newPassword are required',
    }

    currentPassword = serializers.CharField(
        source='current_password', trim_whitespace=False, error_messages=_required
    )
    newPassword = serializers.CharField(
        source='new_password', trim_whitespace=False, error_messages=_required
    )


class ProfileUpdateSerializer(serializers.Serializer):
    """Editable profile fields; all optional."""

    displayName = serializers.CharField(source='display_name', max_length=100, required=False)
    country = serializers.CharField(max_length=100, required=False, allow_blank=True)
    city = serializers.CharField(max_length=100, required=False, allow_blank=True)
    avatar = serializers.CharField(source='avatar_url', max_length=500, required=False, allow_blank=True)


class RoleUpdateSerializer(serializers.Serializer):
    role = serializers.CharField(error_messages={
        'required': 'Invalid role',
        'blank': 'Invalid role',
    })


# ============================================================================
# Listings
# ============================================================================

class ListingImageSerializer(serializers.ModelSerializer):
    """
    Listing image reference.

    Fields:
    - id: Image ID
    - url: Full URL to the image file
    - order: Display order (lowest is the cover)
    """

    url = serializers.SerializerMethodField()

    class Meta:
        model = ListingImage
        fields = ['id', 'url', 'order']
        read_only_fields = fields

    def get_url(self, obj):
        return absolute_media_url(self, obj.image)


class ListingSerializer(serializers.ModelSerializer):
    """
    Listing DTO ("animal") for public and owner views.

    Optimized for querysets built with select_related('seller'),
    prefetch_related('images') and a ``favorites_count`` annotation.

    Fields:
    - Descriptive fields, price (number), currency, location
    - status / rejectionReason (null unless rejected)
    - images: Image URLs in display order
    - imageItems: {id, url, order} for owners managing images
    - coverImage: First image URL or null
    - sellerId / sellerName / sellerAvatar
    - favorites: Number of users who favorited the listing
    """

    price = serializers.DecimalField(max_digits=10, decimal_places=2, coerce_to_string=False, read_only=True)
    rejectionReason = serializers.SerializerMethodField()
    images = serializers.SerializerMethodField()
    imageItems = serializers.SerializerMethodField()
    coverImage = serializers.SerializerMethodField()
    sellerId = serializers.IntegerField(source='seller_id', read_only=True)
    sellerName = serializers.CharField(source='seller.display_name', read_only=True)
    sellerAvatar = serializers.CharField(source='seller.avatar', read_only=True)
    favorites = serializers.SerializerMethodField()
    createdAt = serializers.DateTimeField(source='created_at', read_only=True)
    updatedAt = serializers.DateTimeField(source='updated_at', read_only=True)

    class Meta:
        model = Listing
        fields = [
            'id', 'title', 'slug', 'description', 'species', 'breed', 'age',
            'gender', 'price', 'currency', 'country', 'city', 'status',
            'rejectionReason', 'availability', 'views', 'images', 'imageItems',
            'coverImage', 'sellerId', 'sellerName', 'sellerAvatar', 'favorites',
            'createdAt', 'updatedAt',
        ]
        read_only_fields = fields

    def _images(self, obj):
        # Uses prefetched images when available
        return list(obj.images.all())

    def get_rejectionReason(self, obj):
        return obj.rejection_reason or None

    def get_images(self, obj):
        return [absolute_media_url(self, image.image) for image in self._images(obj)]

    def get_imageItems(self, obj):
        return ListingImageSerializer(self._images(obj), many=True, context=self.context).data

    def get_coverImage(self, obj):
        images = self._images(obj)
        return absolute_media_url(self, images[0].image) if images else None

    def get_favorites(self, obj):
        count = getattr(obj, 'favorites_count', None)
        if count is None:
            count = obj.favorited_by.count()
        return count


class ListingWriteSerializer(serializers.ModelSerializer):
    """
    Validate listing create and edit payloads.

    Status, views and ownership are never writable here. The slug is
    optional on create; one is generated from the title when omitted.
    """

    slug = serializers.SlugField(max_length=220, required=False, allow_blank=True)
    price = serializers.DecimalField(
        max_digits=10,
        decimal_places=2,
        min_value=0,
        required=False,
        coerce_to_string=False,
        error_messages={'min_value': 'Price cannot be negative.'},
    )
    age = serializers.IntegerField(min_value=0, required=False, allow_null=True)

    class Meta:
        model = Listing
        fields = [
            'title', 'slug', 'description', 'species', 'breed', 'age', 'gender',
            'price', 'currency', 'country', 'city', 'availability',
        ]

    def validate_slug(self, value):
        """Lowercase the slug and check it is not taken by another listing."""
        value = (value or '').strip().lower()
        if not value:
            return value

        queryset = Listing.objects.filter(slug=value)
        if self.instance is not None:
            queryset = queryset.exclude(pk=self.instance.pk)
        if queryset.exists():
            raise serializers.ValidationError('Slug is already in use')
        return value

    def validate_species(self, value):
        return value.strip().lower()

    def validate(self, attrs):
        # An empty slug means "keep the current one" on edit, "generate" on create
        if 'slug' in attrs and not attrs['slug']:
            attrs.pop('slug')
        return attrs

    def validate_currency(self, value):
        value = value.strip().upper()
        if len(value) != 3:
            raise serializers.ValidationError('Currency must be a three letter code.')
        return value


class ListingQuerySerializer(serializers.Serializer):
    """
    Query-string parameters for listing discovery.

    Malformed values (non-numeric prices, unknown sort keys, inverted
    ranges) are rejected with 400 before discovery runs. ``species`` may be
    repeated or comma-separated.
    """

    keyword = serializers.CharField(required=False, allow_blank=True, max_length=200)
    species = serializers.ListField(child=serializers.CharField(allow_blank=True), required=False)
    breed = serializers.CharField(required=False, allow_blank=True, max_length=100)
    country = serializers.CharField(required=False, allow_blank=True, max_length=100)
    city = serializers.CharField(required=False, allow_blank=True, max_length=100)
    minPrice = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0, required=False)
    maxPrice = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0, required=False)
    minAge = serializers.IntegerField(min_value=0, required=False)
    maxAge = serializers.IntegerField(min_value=0, required=False)
    gender = serializers.CharField(required=False, allow_blank=True, max_length=10)
    availability = serializers.CharField(required=False, allow_blank=True, max_length=10)
    sort = serializers.ChoiceField(choices=SORT_CHOICES, required=False, default=SORT_NEWEST)
    page = serializers.IntegerField(min_value=1, required=False, default=1)
    limit = serializers.IntegerField(min_value=1, required=False)
    status = serializers.ChoiceField(choices=Listing.STATUS_CHOICES, required=False, allow_blank=True)

    def validate_species(self, value):
        species = []
        for item in value:
            species.extend(part.strip().lower() for part in item.split(',') if part.strip())
        return species

    def validate(self, attrs):
        min_price, max_price = attrs.get('minPrice'), attrs.get('maxPrice')
        if min_price is not None and max_price is not None and min_price > max_price:
            raise serializers.ValidationError({'minPrice': 'minPrice cannot exceed maxPrice'})

        min_age, max_age = attrs.get('minAge'), attrs.get('maxAge')
        if min_age is not None and max_age is not None and min_age > max_age:
            raise serializers.ValidationError({'minAge': 'minAge cannot exceed maxAge'})

        return attrs

    def to_filters(self, allow_status=False):
        """
        Build a ListingFilters from validated data.

        Args:
            allow_status: Keep the status filter (moderation queue only)
        """
        data = self.validated_data
        return ListingFilters(
            keyword=data.get('keyword', ''),
            species=data.get('species', []),
            breed=data.get('breed', ''),
            country=data.get('country', ''),
            city=data.get('city', ''),
            min_price=data.get('minPrice'),
            max_price=data.get('maxPrice'),
            min_age=data.get('minAge'),
            max_age=data.get('maxAge'),
            gender=data.get('gender', ''),
            availability=data.get('availability', ''),
            status=data.get('status', '') if allow_status else '',
        )


class ImageUploadSerializer(serializers.Serializer):
    """Multipart upload of listing images under the ``images`` field."""

    images = serializers.ListField(
        child=serializers.ImageField(validators=[validate_listing_image]),
        min_length=1,
        max_length=settings.MAX_IMAGES_PER_UPLOAD,
        error_messages={
            'required': 'At least one image is required',
            'empty': 'At least one image is required',
            'min_length': 'At least one image is required',
            'max_length': f'You can upload up to {settings.MAX_IMAGES_PER_UPLOAD} images at a time',
        },
    )


class ModerationSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, default='')


class ListingStatusSerializer(serializers.Serializer):
    status = serializers.CharField(error_messages={
        'required': 'Invalid status',
        'blank': 'Invalid status',
    })
    reason = serializers.CharField(required=False, allow_blank=True, default='')


# ============================================================================
# Messaging
# ============================================================================

class MessageSerializer(serializers.ModelSerializer):
    conversationId = serializers.IntegerField(source='conversation_id', read_only=True)
    senderId = serializers.IntegerField(source='sender_id', read_only=True)
    isRead = serializers.BooleanField(source='is_read', read_only=True)
    createdAt = serializers.DateTimeField(source='created_at', read_only=True)

    class Meta:
        model = Message
        fields = ['id', 'conversationId', 'senderId', 'content', 'isRead', 'createdAt']
        read_only_fields = fields


class ConversationSerializer(serializers.ModelSerializer):
    """
    Conversation as seen by one participant.

    The viewing user is taken from ``context['request'].user``. Entries built
    by ``list_conversations`` carry ``unread_count`` and ``last_message``.
    """

    otherUser = serializers.SerializerMethodField()
    animal = serializers.SerializerMethodField()
    lastMessage = serializers.SerializerMethodField()
    unreadCount = serializers.SerializerMethodField()
    createdAt = serializers.DateTimeField(source='created_at', read_only=True)
    updatedAt = serializers.DateTimeField(source='updated_at', read_only=True)

    class Meta:
        model = Conversation
        fields = ['id', 'otherUser', 'animal', 'lastMessage', 'unreadCount', 'createdAt', 'updatedAt']
        read_only_fields = fields

    def _viewer_id(self):
        request = self.context.get('request')
        return request.user.pk if request is not None else None

    def get_otherUser(self, obj):
        other = obj.other_participant(self._viewer_id())
        return UserBriefSerializer(other).data if other is not None else None

    def get_animal(self, obj):
        if obj.listing is None:
            return None
        return {'id': obj.listing.id, 'title': obj.listing.title, 'slug': obj.listing.slug}

    def get_lastMessage(self, obj):
        last = getattr(obj, 'last_message', None)
        return MessageSerializer(last).data if last is not None else None

    def get_unreadCount(self, obj):
        return getattr(obj, 'unread_count', 0)


class StartConversationSerializer(serializers.Serializer):
    otherUserId = serializers.IntegerField(source='other_user_id', error_messages={
        'required': 'otherUserId is required',
        'null': 'otherUserId is required',
    })
    animalId = serializers.IntegerField(source='listing_id', required=False, allow_null=True, default=None)


class SendMessageSerializer(serializers.Serializer):
    content = serializers.CharField(required=False, allow_blank=True, default='')


class MessagePageSerializer(serializers.Serializer):
    limit = serializers.IntegerField(min_value=1, required=False, default=50)
    before = serializers.IntegerField(min_value=1, required=False)


# ============================================================================
# Ratings, reports, notifications
# ============================================================================

class RatingInputSerializer(serializers.Serializer):
    _range = 'Rating must be between 1 and 5'

    rating = serializers.IntegerField(min_value=1, max_value=5, error_messages={
        'required': _range,
        'invalid': _range,
        'min_value': _range,
        'max_value': _range,
    })
    review = serializers.CharField(required=False, allow_blank=True, default='')


class ReportSerializer(serializers.ModelSerializer):
    """
    Report with the details moderators need.

    Fields:
    - animalId / listingTitle: Reported listing
    - reporterId / reporterName: "Anonymous" for guest reports
    - reason, status, createdAt, updatedAt
    """

    animalId = serializers.IntegerField(source='listing_id', read_only=True)
    listingTitle = serializers.CharField(source='listing.title', read_only=True)
    reporterId = serializers.IntegerField(source='reporter_id', read_only=True)
    reporterName = serializers.SerializerMethodField()
    createdAt = serializers.DateTimeField(source='created_at', read_only=True)
    updatedAt = serializers.DateTimeField(source='updated_at', read_only=True)

    class Meta:
        model = Report
        fields = [
            'id', 'animalId', 'listingTitle', 'reporterId', 'reporterName',
            'reason', 'status', 'createdAt', 'updatedAt',
        ]
        read_only_fields = fields

    def get_reporterName(self, obj):
        return obj.reporter.display_name if obj.reporter is not None else 'Anonymous'


class ReportCreateSerializer(serializers.Serializer):
    _required = {
        'required': 'animalId and reason are required',
        'blank': 'animalId and reason are required',
        'null': 'animalId and reason are required',
    }

    animalId = serializers.IntegerField(source='listing_id', error_messages=_required)
    reason = serializers.CharField(error_messages=_required)


class ReportStatusSerializer(serializers.Serializer):
    status = serializers.CharField(error_messages={
        'required': 'Invalid status',
        'blank': 'Invalid status',
    })


class NotificationSerializer(serializers.ModelSerializer):
    type = serializers.CharField(source='notification_type', read_only=True)
    isRead = serializers.BooleanField(source='is_read', read_only=True)
    createdAt = serializers.DateTimeField(source='created_at', read_only=True)

    class Meta:
        model = Notification
        fields = ['id', 'type', 'title', 'message', 'link', 'isRead', 'createdAt']
        read_only_fields = fields


class NotificationQuerySerializer(serializers.Serializer):
    limit = serializers.IntegerField(min_value=1, required=False, default=20)
    includeRead = serializers.BooleanField(required=False, default=False)


# ============================================================================
# Announcements and FAQ
# ============================================================================

class AnnouncementSerializer(serializers.ModelSerializer):
    """Announcement DTO, also used to validate admin create and update."""

    imageUrl = serializers.CharField(source='image_url', max_length=500, required=False, allow_blank=True)
    publishDate = serializers.DateTimeField(source='publish_date', required=False)
    isVisible = serializers.BooleanField(source='is_visible', required=False)
    createdBy = serializers.IntegerField(source='created_by_id', read_only=True)
    createdAt = serializers.DateTimeField(source='created_at', read_only=True)
    updatedAt = serializers.DateTimeField(source='updated_at', read_only=True)

    class Meta:
        model = Announcement
        fields = [
            'id', 'title', 'content', 'imageUrl', 'publishDate', 'isVisible',
            'createdBy', 'createdAt', 'updatedAt',
        ]
        read_only_fields = ['id', 'createdBy', 'createdAt', 'updatedAt']


class FAQItemSerializer(serializers.ModelSerializer):
    isVisible = serializers.BooleanField(source='is_visible', required=False)
    createdAt = serializers.DateTimeField(source='created_at', read_only=True)
    updatedAt = serializers.DateTimeField(source='updated_at', read_only=True)

    class Meta:
        model = FAQItem
        fields = ['id', 'question', 'answer', 'category', 'order', 'isVisible', 'createdAt', 'updatedAt']
        read_only_fields = ['id', 'createdAt', 'updatedAt']
