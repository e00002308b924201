"""
Data model for the Pet Marketplace.

Listings are created by users and moderated by staff; buyers favorite them,
message sellers, rate each other and report abuse. Notifications, announcements,
FAQ entries and visit records support the surrounding site.
"""

import os
import secrets
import time
from decimal import Decimal
from urllib.parse import quote

from django.contrib.auth.models import AbstractUser
from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator, MaxValueValidator
from django.db import models
from django.db.models import F, Q
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from .validators import validate_listing_image, validate_listing_slug


DICEBEAR_AVATAR_URL = 'https://api.dicebear.com/7.x/avataaars/svg?seed={seed}'


def default_avatar_url(seed):
    """
    Build the generated avatar URL used when a user has not set one.

    Args:
        seed: Text the avatar is derived from (usually the display name)

    Returns:
        str: DiceBear avatar URL
    """
    return DICEBEAR_AVATAR_URL.format(seed=quote(seed or 'user'))


# ============================================================================
# Users
# ============================================================================

class User(AbstractUser):
    """
    Marketplace user extending Django's AbstractUser.

    Additional fields:
    - email: Required, unique email address (used to log in)
    - display_name: Public name shown on listings and messages
    - country / city: Optional location
    - avatar_url: Profile picture URL, generated when not provided
    - role: 'user', 'moderator' or 'admin'
    - is_banned: Banned users cannot log in
    - created_at / updated_at: Timestamps

    The user's rating is not stored here; it is aggregated from Rating rows.
    """

    ROLE_USER = 'user'
    ROLE_MODERATOR = 'moderator'
    ROLE_ADMIN = 'admin'

    ROLE_CHOICES = [
        (ROLE_USER, 'User'),
        (ROLE_MODERATOR, 'Moderator'),
        (ROLE_ADMIN, 'Admin'),
    ]

    STAFF_ROLES = (ROLE_MODERATOR, ROLE_ADMIN)

    email = models.EmailField(
        _('email address'),
        unique=True,
        blank=False,
        null=False,
        error_messages={
            'unique': _('Email is already registered'),
        },
        help_text=_('Required. Enter a valid email address.')
    )

    display_name = models.CharField(
        _('display name'),
        max_length=100,
        blank=False,
        help_text=_('Public name shown to other users.')
    )

    country = models.CharField(
        _('country'),
        max_length=100,
        blank=True,
        default='',
    )

    city = models.CharField(
        _('city'),
        max_length=100,
        blank=True,
        default='',
    )

    avatar_url = models.CharField(
        _('avatar URL'),
        max_length=500,
        blank=True,
        default='',
        help_text=_('Profile picture URL. A generated avatar is used when empty.')
    )

    role = models.CharField(
        _('role'),
        max_length=20,
        choices=ROLE_CHOICES,
        default=ROLE_USER,
        help_text=_('Moderators review listings and reports; admins also manage users.')
    )

    is_banned = models.BooleanField(
        _('banned'),
        default=False,
        help_text=_('Banned users cannot log in or use authenticated endpoints.')
    )

    created_at = models.DateTimeField(
        _('created at'),
        auto_now_add=True,
    )

    updated_at = models.DateTimeField(
        _('updated at'),
        auto_now=True,
    )

    class Meta:
        verbose_name = _('user')
        verbose_name_plural = _('users')
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['email'], name='user_email_idx'),
            models.Index(fields=['role'], name='user_role_idx'),
            models.Index(fields=['is_banned'], name='user_is_banned_idx'),
        ]

    def __str__(self):
        """Return email as string representation."""
        return self.email or self.username

    @property
    def avatar(self):
        """Avatar URL, falling back to a generated one."""
        return self.avatar_url or default_avatar_url(self.display_name or self.email)

    def is_admin(self):
        return self.role == self.ROLE_ADMIN

    def is_moderator_or_admin(self):
        return self.role in self.STAFF_ROLES

    def clean(self):
        """
        Validate model fields.

        Ensures:
        - Email is provided and stored lowercase
        - Display name is not blank
        - Role is a known role

        Raises:
            ValidationError: If validation fails
        """
        super().clean()

        if self.email:
            self.email = self.email.lower()

        if not self.email:
            raise ValidationError({
                'email': _('Email address is required.')
            })

        if not self.display_name or not self.display_name.strip():
            raise ValidationError({
                'display_name': _('Display name is required.')
            })

        if self.role not in dict(self.ROLE_CHOICES):
            raise ValidationError({
                'role': _('Invalid role')
            })

    def save(self, *args, **kwargs):
        """
        Normalize email and display name, then save.

        New rows skip full_clean so concurrent duplicate registrations
        surface as IntegrityError from the unique index.
        """
        if self.email:
            self.email = self.email.lower()

        if not self.username and self.email:
            self.username = self.email

        if not self.display_name:
            self.display_name = (self.email or '').split('@')[0]

        if self.pk is not None:
            self.full_clean(exclude=['password'])

        super().save(*args, **kwargs)


# ============================================================================
# Listings
# ============================================================================

def listing_image_upload_path(instance, filename):
    """
    Generate upload path for listing images.

    Path format: animals/{timestamp_ms}-{random}{ext}

    The original file name is discarded so uploads never collide and never
    leak client-side names.

    Args:
        instance: ListingImage model instance
        filename: Original filename

    Returns:
        str: Upload path
    """
    ext = os.path.splitext(filename)[1].lower()
    return f'animals/{int(time.time() * 1000)}-{secrets.randbelow(10 ** 9)}{ext}'


class Listing(models.Model):
    """
    An animal listed for sale or adoption.

    Fields:
    - seller: Owning user
    - title / slug / description: Descriptive fields, slug is unique
    - species / breed: Taxonomy
    - age: Age in months
    - gender, price, currency, country, city
    - status: Moderation state (pending, approved, rejected)
    - rejection_reason: Set when rejected, cleared when approved
    - availability: available, reserved, sold or adopted
    - views: View counter
    - created_at / updated_at: Timestamps

    Only approved listings are publicly visible. New listings always start
    as pending; moderators may move a listing between any two states.
    """

    STATUS_PENDING = 'pending'
    STATUS_APPROVED = 'approved'
    STATUS_REJECTED = 'rejected'

    STATUS_CHOICES = [
        (STATUS_PENDING, 'Pending'),
        (STATUS_APPROVED, 'Approved'),
        (STATUS_REJECTED, 'Rejected'),
    ]

    AVAILABILITY_CHOICES = [
        ('available', 'Available'),
        ('reserved', 'Reserved'),
        ('sold', 'Sold'),
        ('adopted', 'Adopted'),
    ]

    GENDER_CHOICES = [
        ('male', 'Male'),
        ('female', 'Female'),
        ('unknown', 'Unknown'),
    ]

    DEFAULT_REJECTION_REASON = 'No reason provided'

    seller = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='listings',
        help_text=_('User who created this listing')
    )

    title = models.CharField(
        _('title'),
        max_length=200,
        blank=False,
        null=False,
    )

    slug = models.SlugField(
        _('slug'),
        max_length=220,
        unique=True,
        validators=[validate_listing_slug],
        error_messages={
            'unique': _('Slug is already in use'),
        },
        help_text=_('Unique, URL-safe identifier')
    )

    description = models.TextField(
        _('description'),
        blank=True,
        default='',
    )

    species = models.CharField(
        _('species'),
        max_length=50,
        blank=False,
        help_text=_('Species category, e.g. dogs, cats, birds')
    )

    breed = models.CharField(
        _('breed'),
        max_length=100,
        blank=True,
        default='',
    )

    age = models.PositiveIntegerField(
        _('age in months'),
        null=True,
        blank=True,
    )

    gender = models.CharField(
        _('gender'),
        max_length=10,
        choices=GENDER_CHOICES,
        default='unknown',
    )

    price = models.DecimalField(
        _('price'),
        max_digits=10,
        decimal_places=2,
        default=Decimal('0.00'),
        validators=[MinValueValidator(Decimal('0.00'), message=_('Price cannot be negative.'))],
    )

    currency = models.CharField(
        _('currency'),
        max_length=3,
        default='USD',
    )

    country = models.CharField(
        _('country'),
        max_length=100,
        blank=True,
        default='',
    )

    city = models.CharField(
        _('city'),
        max_length=100,
        blank=True,
        default='',
    )

    status = models.CharField(
        _('status'),
        max_length=10,
        choices=STATUS_CHOICES,
        default=STATUS_PENDING,
    )

    rejection_reason = models.TextField(
        _('rejection reason'),
        blank=True,
        default='',
    )

    availability = models.CharField(
        _('availability'),
        max_length=10,
        choices=AVAILABILITY_CHOICES,
        default='available',
    )

    views = models.PositiveIntegerField(
        _('views'),
        default=0,
    )

    created_at = models.DateTimeField(
        _('created at'),
        auto_now_add=True,
    )

    updated_at = models.DateTimeField(
        _('updated at'),
        auto_now=True,
    )

    class Meta:
        verbose_name = _('listing')
        verbose_name_plural = _('listings')
        ordering = ['-created_at', '-id']
        indexes = [
            models.Index(fields=['seller'], name='listing_seller_idx'),
            models.Index(fields=['status'], name='listing_status_idx'),
            models.Index(fields=['species'], name='listing_species_idx'),
            models.Index(fields=['country', 'city'], name='listing_location_idx'),
            models.Index(fields=['price'], name='listing_price_idx'),
            models.Index(fields=['created_at'], name='listing_created_idx'),
        ]

    def __str__(self):
        return self.title

    def clean(self):
        """
        Validate model fields.

        Ensures:
        - Title, slug and species are not blank
        - Species is stored lowercase
        - Currency is an upper-case three letter code

        Raises:
            ValidationError: If validation fails
        """
        super().clean()

        if not self.title or not self.title.strip():
            raise ValidationError({
                'title': _('Title cannot be empty.')
            })

        if not self.species or not self.species.strip():
            raise ValidationError({
                'species': _('Species cannot be empty.')
            })
        self.species = self.species.strip().lower()

        if self.currency:
            self.currency = self.currency.strip().upper()
            if len(self.currency) != 3:
                raise ValidationError({
                    'currency': _('Currency must be a three letter code.')
                })

    def save(self, *args, **kwargs):
        """Run full validation before saving."""
        self.full_clean()
        super().save(*args, **kwargs)

    @property
    def cover_image(self):
        """First image by display order, or None."""
        images = list(self.images.all())
        return images[0] if images else None

    def is_publicly_visible(self):
        return self.status == self.STATUS_APPROVED

    def can_transition_to(self, new_status):
        """
        Check whether a moderation transition is allowed.

        Any state may move to any other known state (re-review and appeal
        are both permitted), so only the target value is checked.

        Returns:
            bool: True if new_status is a known status
        """
        return new_status in dict(self.STATUS_CHOICES)

    def moderate(self, new_status, reason=None):
        """
        Apply a moderation decision.

        Rejection stores the reason (or a placeholder); approval clears any
        earlier rejection reason.

        Args:
            new_status: Target status
            reason: Optional rejection reason

        Raises:
            ValidationError: If the status is unknown
        """
        if not self.can_transition_to(new_status):
            raise ValidationError({
                'status': _('Invalid status')
            })

        self.status = new_status
        if new_status == self.STATUS_REJECTED:
            self.rejection_reason = (reason or '').strip() or self.DEFAULT_REJECTION_REASON
        else:
            self.rejection_reason = ''

        self.save(update_fields=['status', 'rejection_reason', 'updated_at'])


class ListingImage(models.Model):
    """
    Image attached to a listing. The image with the lowest order is the cover.
    """

    listing = models.ForeignKey(
        Listing,
        on_delete=models.CASCADE,
        related_name='images',
    )

    image = models.ImageField(
        _('image'),
        upload_to=listing_image_upload_path,
        validators=[validate_listing_image],
        help_text=_('Image file (jpg, png, webp or gif)')
    )

    order = models.PositiveIntegerField(
        _('order'),
        default=0,
    )

    uploaded_at = models.DateTimeField(
        _('uploaded at'),
        auto_now_add=True,
    )

    class Meta:
        verbose_name = _('listing image')
        verbose_name_plural = _('listing images')
        ordering = ['order', 'uploaded_at', 'id']
        indexes = [
            models.Index(fields=['listing', 'order'], name='listing_image_order_idx'),
        ]

    def __str__(self):
        return f"Image for {self.listing.title}"

    def save(self, *args, **kwargs):
        self.full_clean()
        super().save(*args, **kwargs)


class Favorite(models.Model):
    """A user's bookmark of a listing. At most one per (user, listing)."""

    user = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='favorites',
    )

    listing = models.ForeignKey(
        Listing,
        on_delete=models.CASCADE,
        related_name='favorited_by',
    )

    created_at = models.DateTimeField(
        _('created at'),
        auto_now_add=True,
    )

    class Meta:
        verbose_name = _('favorite')
        verbose_name_plural = _('favorites')
        ordering = ['-created_at']
        constraints = [
            models.UniqueConstraint(
                fields=['user', 'listing'],
                name='unique_favorite_per_user_listing'
            ),
        ]

    def __str__(self):
        return f"{self.user} -> {self.listing}"


# ============================================================================
# Messaging
# ============================================================================

class Conversation(models.Model):
    """
    A private thread between two users, optionally about one listing.

    Participants are stored as an ordered pair (user1 has the smaller id),
    so the same conversation is found whoever starts it. participants_key
    encodes (user1, user2, listing) in a non-null column; its unique index
    is what keeps concurrent starts from creating duplicate rows. The key is
    fixed at creation and is not rewritten if the listing is later deleted.
    """

    user1 = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='conversations_as_user1',
    )

    user2 = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='conversations_as_user2',
    )

    listing = models.ForeignKey(
        Listing,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='conversations',
    )

    participants_key = models.CharField(
        _('participants key'),
        max_length=64,
        unique=True,
        editable=False,
    )

    created_at = models.DateTimeField(
        _('created at'),
        auto_now_add=True,
    )

    updated_at = models.DateTimeField(
        _('updated at'),
        auto_now=True,
        help_text=_('Bumped on every new message; drives inbox ordering')
    )

    class Meta:
        verbose_name = _('conversation')
        verbose_name_plural = _('conversations')
        ordering = ['-updated_at', '-id']
        constraints = [
            models.CheckConstraint(
                condition=Q(user1__lt=F('user2')),
                name='conversation_participants_ordered'
            ),
        ]
        indexes = [
            models.Index(fields=['user1', 'user2'], name='conversation_pair_idx'),
        ]

    def __str__(self):
        return f"Conversation {self.pk} ({self.user1_id}, {self.user2_id})"

    @staticmethod
    def canonical_pair(user_a_id, user_b_id):
        """Return the two ids ordered smaller first."""
        return (user_a_id, user_b_id) if user_a_id < user_b_id else (user_b_id, user_a_id)

    @classmethod
    def build_participants_key(cls, user_a_id, user_b_id, listing_id=None):
        low, high = cls.canonical_pair(user_a_id, user_b_id)
        return f'{low}:{high}:{listing_id or 0}'

    def has_participant(self, user_id):
        return user_id in (self.user1_id, self.user2_id)

    def other_participant_id(self, user_id):
        return self.user2_id if user_id == self.user1_id else self.user1_id

    def other_participant(self, user_id):
        return self.user2 if user_id == self.user1_id else self.user1

    def clean(self):
        super().clean()

        if self.user1_id == self.user2_id:
            raise ValidationError(_('Cannot start conversation with yourself'))

    def save(self, *args, **kwargs):
        """
        Canonicalize the pair and derive the key before saving.

        Uniqueness is left to the database so a concurrent duplicate
        surfaces as IntegrityError.
        """
        if self.user1_id and self.user2_id and self.user1_id > self.user2_id:
            self.user1_id, self.user2_id = self.user2_id, self.user1_id

        if not self.participants_key:
            self.participants_key = self.build_participants_key(
                self.user1_id, self.user2_id, self.listing_id
            )

        self.full_clean(validate_unique=False, validate_constraints=False)
        super().save(*args, **kwargs)


class Message(models.Model):
    """A message inside a conversation, sent by one of its participants."""

    conversation = models.ForeignKey(
        Conversation,
        on_delete=models.CASCADE,
        related_name='messages',
    )

    sender = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='sent_messages',
    )

    content = models.TextField(
        _('content'),
    )

    is_read = models.BooleanField(
        _('read'),
        default=False,
    )

    created_at = models.DateTimeField(
        _('created at'),
        auto_now_add=True,
    )

    class Meta:
        verbose_name = _('message')
        verbose_name_plural = _('messages')
        ordering = ['created_at', 'id']
        indexes = [
            models.Index(fields=['conversation', 'is_read'], name='message_conv_read_idx'),
            models.Index(fields=['sender'], name='message_sender_idx'),
        ]

    def __str__(self):
        return f"Message {self.pk} in conversation {self.conversation_id}"

    def clean(self):
        """
        Validate model fields.

        Ensures:
        - Content is not blank after trimming
        - Sender is one of the conversation's participants

        Raises:
            ValidationError: If validation fails
        """
        super().clean()

        if not self.content or not self.content.strip():
            raise ValidationError({
                'content': _('Message content is required')
            })

        if self.conversation_id and not self.conversation.has_participant(self.sender_id):
            raise ValidationError({
                'sender': _('Sender is not a participant in this conversation.')
            })

    def save(self, *args, **kwargs):
        if self.content:
            self.content = self.content.strip()
        self.full_clean()
        super().save(*args, **kwargs)


# ============================================================================
# Ratings
# ============================================================================

class Rating(models.Model):
    """
    One user's rating of another. Re-rating overwrites the earlier value.
    """

    rater = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='ratings_given',
    )

    rated = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='ratings_received',
    )

    rating = models.PositiveSmallIntegerField(
        _('rating'),
        validators=[
            MinValueValidator(1, message=_('Rating must be between 1 and 5')),
            MaxValueValidator(5, message=_('Rating must be between 1 and 5')),
        ],
    )

    review = models.TextField(
        _('review'),
        blank=True,
        default='',
    )

    created_at = models.DateTimeField(
        _('created at'),
        auto_now_add=True,
    )

    updated_at = models.DateTimeField(
        _('updated at'),
        auto_now=True,
    )

    class Meta:
        verbose_name = _('rating')
        verbose_name_plural = _('ratings')
        ordering = ['-created_at']
        constraints = [
            models.UniqueConstraint(
                fields=['rater', 'rated'],
                name='unique_rating_per_rater_rated'
            ),
            models.CheckConstraint(
                condition=~Q(rater=F('rated')),
                name='rating_not_self',
                violation_error_message=_('You cannot rate yourself'),
            ),
        ]
        indexes = [
            models.Index(fields=['rated'], name='rating_rated_idx'),
        ]

    def __str__(self):
        return f"{self.rater_id} rated {self.rated_id}: {self.rating}"

    def clean(self):
        super().clean()

        if self.rater_id and self.rater_id == self.rated_id:
            raise ValidationError(_('You cannot rate yourself'))

    def save(self, *args, **kwargs):
        self.full_clean(validate_constraints=False)
        super().save(*args, **kwargs)


# ============================================================================
# Reports
# ============================================================================

class Report(models.Model):
    """An abuse report against a listing. Guests may report anonymously."""

    STATUS_OPEN = 'open'
    STATUS_REVIEWING = 'reviewing'
    STATUS_CLOSED = 'closed'

    STATUS_CHOICES = [
        (STATUS_OPEN, 'Open'),
        (STATUS_REVIEWING, 'Reviewing'),
        (STATUS_CLOSED, 'Closed'),
    ]

    listing = models.ForeignKey(
        Listing,
        on_delete=models.CASCADE,
        related_name='reports',
    )

    reporter = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='reports_filed',
    )

    reason = models.TextField(
        _('reason'),
    )

    status = models.CharField(
        _('status'),
        max_length=10,
        choices=STATUS_CHOICES,
        default=STATUS_OPEN,
    )

    created_at = models.DateTimeField(
        _('created at'),
        auto_now_add=True,
    )

    updated_at = models.DateTimeField(
        _('updated at'),
        auto_now=True,
    )

    class Meta:
        verbose_name = _('report')
        verbose_name_plural = _('reports')
        ordering = ['-created_at', '-id']
        indexes = [
            models.Index(fields=['status'], name='report_status_idx'),
        ]

    def __str__(self):
        return f"Report {self.pk} on {self.listing_id} ({self.status})"

    def clean(self):
        super().clean()

        if not self.reason or not self.reason.strip():
            raise ValidationError({
                'reason': _('Reason is required.')
            })

    def save(self, *args, **kwargs):
        self.full_clean()
        super().save(*args, **kwargs)


# ============================================================================
# Notifications and site content
# ============================================================================

class Notification(models.Model):
    """
    In-app notification for one user.

    Created only as a side effect of other actions (new message, listing
    moderation, announcements).
    """

    TYPE_MESSAGE = 'message'
    TYPE_LISTING_APPROVED = 'listing_approved'
    TYPE_LISTING_REJECTED = 'listing_rejected'
    TYPE_ANNOUNCEMENT = 'announcement'

    TYPE_CHOICES = [
        (TYPE_MESSAGE, 'Message'),
        (TYPE_LISTING_APPROVED, 'Listing approved'),
        (TYPE_LISTING_REJECTED, 'Listing rejected'),
        (TYPE_ANNOUNCEMENT, 'Announcement'),
    ]

    user = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='notifications',
    )

    notification_type = models.CharField(
        _('type'),
        max_length=20,
        choices=TYPE_CHOICES,
    )

    title = models.CharField(
        _('title'),
        max_length=200,
    )

    message = models.TextField(
        _('message'),
    )

    link = models.CharField(
        _('link'),
        max_length=500,
        blank=True,
        default='',
    )

    is_read = models.BooleanField(
        _('read'),
        default=False,
    )

    created_at = models.DateTimeField(
        _('created at'),
        auto_now_add=True,
    )

    class Meta:
        verbose_name = _('notification')
        verbose_name_plural = _('notifications')
        ordering = ['-created_at', '-id']
        indexes = [
            models.Index(fields=['user', 'is_read'], name='notification_user_read_idx'),
        ]

    def __str__(self):
        return f"{self.notification_type} for {self.user_id}: {self.title}"


class Announcement(models.Model):
    """Site-wide announcement authored by an admin."""

    title = models.CharField(
        _('title'),
        max_length=200,
    )

    content = models.TextField(
        _('content'),
    )

    image_url = models.CharField(
        _('image URL'),
        max_length=500,
        blank=True,
        default='',
    )

    publish_date = models.DateTimeField(
        _('publish date'),
        default=timezone.now,
    )

    is_visible = models.BooleanField(
        _('visible'),
        default=True,
    )

    created_by = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='announcements',
    )

    created_at = models.DateTimeField(
        _('created at'),
        auto_now_add=True,
    )

    updated_at = models.DateTimeField(
        _('updated at'),
        auto_now=True,
    )

    class Meta:
        verbose_name = _('announcement')
        verbose_name_plural = _('announcements')
        ordering = ['-publish_date', '-id']

    def __str__(self):
        return self.title


class FAQItem(models.Model):
    """A question and answer shown on the help page, ordered manually."""

    question = models.CharField(
        _('question'),
        max_length=300,
    )

    answer = models.TextField(
        _('answer'),
    )

    category = models.CharField(
        _('category'),
        max_length=100,
        default='General',
    )

    order = models.IntegerField(
        _('order'),
        default=0,
    )

    is_visible = models.BooleanField(
        _('visible'),
        default=True,
    )

    created_at = models.DateTimeField(
        _('created at'),
        auto_now_add=True,
    )

    updated_at = models.DateTimeField(
        _('updated at'),
        auto_now=True,
    )

    class Meta:
        verbose_name = _('FAQ item')
        verbose_name_plural = _('FAQ items')
        ordering = ['order', 'id']

    def __str__(self):
        return self.question


class Visit(models.Model):
    """
    One page visit or presence heartbeat.

    Guests are identified by IP address; signed-in visitors by user.
    """

    user = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='visits',
    )

    ip_address = models.GenericIPAddressField(
        _('IP address'),
        null=True,
        blank=True,
    )

    user_agent = models.CharField(
        _('user agent'),
        max_length=500,
        blank=True,
        default='',
    )

    visited_at = models.DateTimeField(
        _('visited at'),
        default=timezone.now,
        db_index=True,
    )

    class Meta:
        verbose_name = _('visit')
        verbose_name_plural = _('visits')
        ordering = ['-visited_at']

    def __str__(self):
        return f"Visit by {self.user_id or self.ip_address} at {self.visited_at}"
