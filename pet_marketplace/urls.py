"""
URL configuration for the pet_marketplace project.

All API routes live under /api/ with trailing slashes. Uploaded images are
served from MEDIA_URL (/uploads/) when DEBUG is on.
"""
from django.conf import settings
from django.conf.urls.static import static
from django.contrib import admin
from django.urls import path

from core.views import (
    AdminListingDeleteView,
    AdminListingModerationView,
    AdminListingQueueView,
    AdminListingStatusView,
    AdminStatsView,
    AnnouncementDetailView,
    AnnouncementListCreateView,
    ChangePasswordView,
    ConversationDetailView,
    ConversationListView,
    ConversationMessagesView,
    ConversationReadView,
    CsrfTokenView,
    CurrentUserView,
    DashboardStatsView,
    FAQDetailView,
    FAQListCreateView,
    FavoriteCheckView,
    FavoriteDetailView,
    FavoriteIdsView,
    FavoriteListView,
    FavoriteToggleView,
    HomeStatsView,
    LatestListingsView,
    ListingBySlugView,
    ListingDetailView,
    ListingImageDetailView,
    ListingImagesView,
    ListingListCreateView,
    ListingViewCountView,
    LoginView,
    LogoutView,
    MyListingsView,
    MyRatingView,
    NotificationDetailView,
    NotificationListView,
    NotificationMarkAllReadView,
    NotificationReadView,
    NotificationUnreadCountView,
    PublicAnnouncementListView,
    PublicFAQListView,
    PublicProfileView,
    RateUserView,
    RatingDeleteView,
    RegisterView,
    ReportCloseView,
    ReportDetailView,
    ReportListCreateView,
    ReportStatusView,
    SiteTrafficView,
    TokenRefreshView,
    UnreadMessagesView,
    UserBanView,
    UserDetailView,
    UserListView,
    UserRoleView,
    VisitView,
)


urlpatterns = [
    path('admin/', admin.site.urls),

    # Authentication endpoints
    path('api/auth/csrf/', CsrfTokenView.as_view(), name='auth_csrf'),
    path('api/auth/register/', RegisterView.as_view(), name='auth_register'),
    path('api/auth/login/', LoginView.as_view(), name='auth_login'),
    path('api/auth/logout/', LogoutView.as_view(), name='auth_logout'),
    path('api/auth/token/refresh/', TokenRefreshView.as_view(), name='token_refresh'),
    path('api/auth/me/', CurrentUserView.as_view(), name='auth_me'),
    path('api/auth/change-password/', ChangePasswordView.as_view(), name='auth_change_password'),

    # Listing endpoints
    path('api/animals/', ListingListCreateView.as_view(), name='animal_list'),
    path('api/animals/latest/', LatestListingsView.as_view(), name='animal_latest'),
    path('api/animals/mine/', MyListingsView.as_view(), name='animal_mine'),
    path('api/animals/slug/<slug:slug>/', ListingBySlugView.as_view(), name='animal_by_slug'),
    path('api/animals/<int:listing_id>/', ListingDetailView.as_view(), name='animal_detail'),
    path('api/animals/<int:listing_id>/images/', ListingImagesView.as_view(), name='animal_images'),
    path(
        'api/animals/<int:listing_id>/images/<int:image_id>/',
        ListingImageDetailView.as_view(),
        name='animal_image_detail'
    ),
    path('api/animals/<int:listing_id>/view/', ListingViewCountView.as_view(), name='animal_view'),

    # Moderation endpoints
    path('api/admin/animals/', AdminListingQueueView.as_view(), name='admin_animal_list'),
    path('api/admin/animals/<int:listing_id>/', AdminListingDeleteView.as_view(), name='admin_animal_delete'),
    path(
        'api/admin/animals/<int:listing_id>/approve/',
        AdminListingModerationView.as_view(),
        {'target_status': 'approved'},
        name='admin_animal_approve'
    ),
    path(
        'api/admin/animals/<int:listing_id>/reject/',
        AdminListingModerationView.as_view(),
        {'target_status': 'rejected'},
        name='admin_animal_reject'
    ),
    path('api/admin/animals/<int:listing_id>/status/', AdminListingStatusView.as_view(), name='admin_animal_status'),
    path('api/admin/users/', UserListView.as_view(), name='admin_user_list'),

    # Favorite endpoints
    path('api/favorites/', FavoriteListView.as_view(), name='favorite_list'),
    path('api/favorites/ids/', FavoriteIdsView.as_view(), name='favorite_ids'),
    path('api/favorites/check/<int:listing_id>/', FavoriteCheckView.as_view(), name='favorite_check'),
    path('api/favorites/<int:listing_id>/', FavoriteDetailView.as_view(), name='favorite_detail'),
    path('api/favorites/<int:listing_id>/toggle/', FavoriteToggleView.as_view(), name='favorite_toggle'),

    # Messaging endpoints
    path('api/messages/unread/', UnreadMessagesView.as_view(), name='message_unread'),
    path('api/messages/conversations/', ConversationListView.as_view(), name='conversation_list'),
    path(
        'api/messages/conversations/<int:conversation_id>/',
        ConversationDetailView.as_view(),
        name='conversation_detail'
    ),
    path(
        'api/messages/conversations/<int:conversation_id>/messages/',
        ConversationMessagesView.as_view(),
        name='conversation_messages'
    ),
    path(
        'api/messages/conversations/<int:conversation_id>/read/',
        ConversationReadView.as_view(),
        name='conversation_read'
    ),

    # Notification endpoints
    path('api/notifications/', NotificationListView.as_view(), name='notification_list'),
    path('api/notifications/unread-count/', NotificationUnreadCountView.as_view(), name='notification_unread_count'),
    path('api/notifications/mark-all-read/', NotificationMarkAllReadView.as_view(), name='notification_mark_all_read'),
    path('api/notifications/<int:notification_id>/', NotificationDetailView.as_view(), name='notification_detail'),
    path('api/notifications/<int:notification_id>/read/', NotificationReadView.as_view(), name='notification_read'),

    # Report endpoints
    path('api/reports/', ReportListCreateView.as_view(), name='report_list'),
    path('api/reports/<int:report_id>/', ReportDetailView.as_view(), name='report_detail'),
    path('api/reports/<int:report_id>/status/', ReportStatusView.as_view(), name='report_status'),
    path(
        'api/reports/<int:report_id>/reject/',
        ReportCloseView.as_view(),
        {'action': 'reject'},
        name='report_reject'
    ),
    path(
        'api/reports/<int:report_id>/dismiss/',
        ReportCloseView.as_view(),
        {'action': 'dismiss'},
        name='report_dismiss'
    ),

    # User endpoints
    path('api/users/', UserListView.as_view(), name='user_list'),
    path('api/users/me/', CurrentUserView.as_view(), name='user_me'),
    path('api/users/<int:user_id>/', UserDetailView.as_view(), name='user_detail'),
    path('api/users/<int:user_id>/profile/', PublicProfileView.as_view(), name='user_profile'),
    path('api/users/<int:user_id>/rating/mine/', MyRatingView.as_view(), name='user_rating_mine'),
    path('api/users/<int:user_id>/rating/', RatingDeleteView.as_view(), name='user_rating_delete'),
    path('api/users/<int:user_id>/rate/', RateUserView.as_view(), name='user_rate'),
    path('api/users/<int:user_id>/role/', UserRoleView.as_view(), name='user_role'),
    path('api/users/<int:user_id>/ban/', UserBanView.as_view(), {'banned': True}, name='user_ban'),
    path('api/users/<int:user_id>/unban/', UserBanView.as_view(), {'banned': False}, name='user_unban'),

    # Announcement and FAQ endpoints
    path('api/announcements/public/', PublicAnnouncementListView.as_view(), name='announcement_public'),
    path('api/announcements/', AnnouncementListCreateView.as_view(), name='announcement_list'),
    path(
        'api/announcements/<int:announcement_id>/',
        AnnouncementDetailView.as_view(),
        name='announcement_detail'
    ),
    path('api/faq/public/', PublicFAQListView.as_view(), name='faq_public'),
    path('api/faq/', FAQListCreateView.as_view(), name='faq_list'),
    path('api/faq/<int:item_id>/', FAQDetailView.as_view(), name='faq_detail'),

    # Stats endpoints
    path('api/stats/visit/', VisitView.as_view(), name='stats_visit'),
    path('api/stats/site-traffic/', SiteTrafficView.as_view(), name='stats_site_traffic'),
    path('api/stats/home/', HomeStatsView.as_view(), name='stats_home'),
    path('api/stats/dashboard/', DashboardStatsView.as_view(), name='stats_dashboard'),
    path('api/stats/admin/', AdminStatsView.as_view(), name='stats_admin'),
]

if settings.DEBUG:
    urlpatterns += static(settings.MEDIA_URL, document_root=settings.MEDIA_ROOT)
