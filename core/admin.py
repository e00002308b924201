"""
Django admin configuration for the Pet Marketplace models.
"""

from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from django.utils.translation import gettext_lazy as _

from .models import (
    Announcement,
    Conversation,
    FAQItem,
    Favorite,
    Listing,
    ListingImage,
    Message,
    Notification,
    Rating,
    Report,
    User,
    Visit,
)


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    """
    Custom admin interface for User model.

    Adds marketplace profile, role and ban fields to Django's UserAdmin.
    """

    list_display = [
        'email',
        'display_name',
        'role',
        'is_banned',
        'country',
        'city',
        'is_staff',
        'created_at',
    ]

    list_filter = [
        'role',
        'is_banned',
        'is_staff',
        'is_active',
        'created_at',
    ]

    search_fields = [
        'email',
        'display_name',
        'country',
        'city',
    ]

    ordering = ['-created_at']

    fieldsets = (
        (None, {
            'fields': ('email', 'password')
        }),
        (_('Profile'), {
            'fields': ('display_name', 'country', 'city', 'avatar_url')
        }),
        (_('Role & Moderation'), {
            'fields': ('role', 'is_banned')
        }),
        (_('Permissions'), {
            'fields': (
                'is_active',
                'is_staff',
                'is_superuser',
                'groups',
                'user_permissions',
            ),
            'classes': ('collapse',),
        }),
        (_('Important Dates'), {
            'fields': ('last_login', 'date_joined', 'created_at', 'updated_at'),
            'classes': ('collapse',),
        }),
    )

    add_fieldsets = (
        (None, {
            'classes': ('wide',),
            'fields': (
                'email',
                'display_name',
                'password1',
                'password2',
                'role',
            ),
        }),
    )

    readonly_fields = ['created_at', 'updated_at', 'last_login', 'date_joined']

    date_hierarchy = 'created_at'

    list_per_page = 25

    def get_readonly_fields(self, request, obj=None):
        """Timestamps are read-only when editing; nothing is when adding."""
        if obj:
            return self.readonly_fields
        return []


# ============================================================================
# Listings
# ============================================================================

class ListingImageInline(admin.TabularInline):
    """Inline admin for listing images."""
    model = ListingImage
    extra = 1
    fields = ['image', 'order', 'uploaded_at']
    readonly_fields = ['uploaded_at']
    ordering = ['order']


@admin.register(Listing)
class ListingAdmin(admin.ModelAdmin):
    """Admin interface for listings, including moderation status."""

    list_display = [
        'title',
        'seller',
        'species',
        'price',
        'currency',
        'status',
        'availability',
        'views',
        'created_at',
    ]

    list_filter = [
        'status',
        'availability',
        'species',
        'gender',
        'created_at',
    ]

    search_fields = [
        'title',
        'slug',
        'description',
        'breed',
        'seller__email',
        'seller__display_name',
    ]

    prepopulated_fields = {'slug': ('title',)}

    readonly_fields = ['views', 'created_at', 'updated_at']

    ordering = ['-created_at']

    date_hierarchy = 'created_at'

    list_per_page = 25

    inlines = [ListingImageInline]

    fieldsets = (
        (None, {
            'fields': ('seller', 'title', 'slug', 'description')
        }),
        (_('Animal'), {
            'fields': ('species', 'breed', 'age', 'gender')
        }),
        (_('Pricing & Location'), {
            'fields': ('price', 'currency', 'country', 'city', 'availability')
        }),
        (_('Moderation'), {
            'fields': ('status', 'rejection_reason', 'views')
        }),
        (_('Timestamps'), {
            'fields': ('created_at', 'updated_at'),
            'classes': ('collapse',),
        }),
    )


@admin.register(Favorite)
class FavoriteAdmin(admin.ModelAdmin):
    list_display = ['user', 'listing', 'created_at']
    search_fields = ['user__email', 'listing__title']
    raw_id_fields = ['user', 'listing']


# ============================================================================
# Messaging
# ============================================================================

class MessageInline(admin.TabularInline):
    model = Message
    extra = 0
    fields = ['sender', 'content', 'is_read', 'created_at']
    readonly_fields = ['created_at']


@admin.register(Conversation)
class ConversationAdmin(admin.ModelAdmin):
    list_display = ['id', 'user1', 'user2', 'listing', 'updated_at']
    search_fields = ['user1__email', 'user2__email', 'listing__title']
    readonly_fields = ['participants_key', 'created_at', 'updated_at']
    raw_id_fields = ['user1', 'user2', 'listing']
    inlines = [MessageInline]


@admin.register(Message)
class MessageAdmin(admin.ModelAdmin):
    list_display = ['id', 'conversation', 'sender', 'is_read', 'created_at']
    list_filter = ['is_read', 'created_at']
    search_fields = ['content', 'sender__email']
    raw_id_fields = ['conversation', 'sender']


# ============================================================================
# Ratings, reports and notifications
# ============================================================================

@admin.register(Rating)
class RatingAdmin(admin.ModelAdmin):
    """Admin interface for user ratings."""

    list_display = ['rater', 'rated', 'rating', 'created_at', 'updated_at']
    list_filter = ['rating', 'created_at']
    search_fields = ['rater__email', 'rated__email', 'review']
    readonly_fields = ['created_at', 'updated_at']
    raw_id_fields = ['rater', 'rated']


@admin.register(Report)
class ReportAdmin(admin.ModelAdmin):
    list_display = ['id', 'listing', 'reporter', 'status', 'created_at']
    list_filter = ['status', 'created_at']
    search_fields = ['reason', 'listing__title', 'reporter__email']
    readonly_fields = ['created_at', 'updated_at']
    raw_id_fields = ['listing', 'reporter']


@admin.register(Notification)
class NotificationAdmin(admin.ModelAdmin):
    list_display = ['user', 'notification_type', 'title', 'is_read', 'created_at']
    list_filter = ['notification_type', 'is_read']
    search_fields = ['title', 'message', 'user__email']
    raw_id_fields = ['user']


# ============================================================================
# Site content and traffic
# ============================================================================

@admin.register(Announcement)
class AnnouncementAdmin(admin.ModelAdmin):
    list_display = ['title', 'publish_date', 'is_visible', 'created_by']
    list_filter = ['is_visible', 'publish_date']
    search_fields = ['title', 'content']


@admin.register(FAQItem)
class FAQItemAdmin(admin.ModelAdmin):
    list_display = ['question', 'category', 'order', 'is_visible']
    list_editable = ['order', 'is_visible']
    list_filter = ['category', 'is_visible']
    search_fields = ['question', 'answer']


@admin.register(Visit)
class VisitAdmin(admin.ModelAdmin):
    list_display = ['visited_at', 'user', 'ip_address']
    list_filter = ['visited_at']
    search_fields = ['ip_address', 'user__email']
    raw_id_fields = ['user']
