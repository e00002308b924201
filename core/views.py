"""
API views for the Pet Marketplace.

Views are thin: they validate input with a serializer, call the service
layer and wrap the result with ``api_response``. Errors raised by services
are turned into the error envelope by ``envelope_exception_handler``.
"""

import logging

from django.conf import settings
from django.contrib.auth import get_user_model
from rest_framework import status
from rest_framework.exceptions import NotFound
from rest_framework.parsers import FormParser, MultiPartParser
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.throttling import ScopedRateThrottle
from rest_framework.views import APIView
from rest_framework_simplejwt.exceptions import InvalidToken, TokenError
from rest_framework_simplejwt.serializers import TokenRefreshSerializer

from core.authentication import OptionalJWTAuthentication, ReadOptionalJWTAuthentication
from core.csrf import issue_csrf_token
from core.models import Announcement, FAQItem
from core.permissions import IsAdminOrModerator, IsAdminRole, has_role
from core.responses import api_response
from core.serializers import (
    AnnouncementSerializer,
    ChangePasswordSerializer,
    ConversationSerializer,
    FAQItemSerializer,
    ImageUploadSerializer,
    ListingImageSerializer,
    ListingQuerySerializer,
    ListingSerializer,
    ListingStatusSerializer,
    ListingWriteSerializer,
    LoginSerializer,
    MessagePageSerializer,
    MessageSerializer,
    ModerationSerializer,
    NotificationQuerySerializer,
    NotificationSerializer,
    ProfileUpdateSerializer,
    PublicProfileSerializer,
    RatingInputSerializer,
    RatingSerializer,
    RefreshTokenSerializer,
    RegisterSerializer,
    ReportCreateSerializer,
    ReportSerializer,
    ReportStatusSerializer,
    RoleUpdateSerializer,
    SendMessageSerializer,
    StartConversationSerializer,
    UserSerializer,
)
from core.services import (
    accounts,
    discovery,
    favorites,
    listings,
    messaging,
    notifications,
    ratings,
    reports,
    stats,
)
from core.utils import get_client_ip

User = get_user_model()
logger = logging.getLogger(__name__)


def discovery_response(result, context):
    """
    Envelope a DiscoveryResult.

    A failed pipeline is answered with 500 and an empty list so the client
    can tell "nothing matched" from "could not load".
    """
    if not result.success:
        return api_response(
            data=[],
            message=result.message,
            pagination=result.pagination,
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            success=False,
        )
    return api_response(
        data=ListingSerializer(result.items, many=True, context=context).data,
        pagination=result.pagination,
    )


def can_see_listing(listing, user):
    """Approved listings are public; others only to their owner and staff."""
    if listing.is_publicly_visible():
        return True
    if user is None or not user.is_authenticated:
        return False
    return listing.seller_id == user.pk or has_role(user, User.STAFF_ROLES)


def listing_payload(listing, request):
    """Re-read a listing with images and favorite counts for output."""
    fresh = discovery.listing_queryset().get(pk=listing.pk)
    return ListingSerializer(fresh, context={'request': request}).data


# ============================================================================
# Authentication
# ============================================================================

class CsrfTokenView(APIView):
    """
    Issue a double-submit CSRF token.

    GET /api/auth/csrf/

    The token is returned in the body and set as the ``XSRF-TOKEN`` cookie.
    The client echoes it in an ``X-CSRF-Token`` header on unsafe requests.
    """
    permission_classes = [AllowAny]
    authentication_classes = []

    def get(self, request):
        token = issue_csrf_token()
        response = api_response(data={'csrfToken': token})
        response.set_cookie(
            settings.CSRF_TOKEN_COOKIE_NAME,
            token,
            max_age=settings.CSRF_TOKEN_TTL,
            httponly=False,
            samesite='Lax',
            secure=not settings.DEBUG,
        )
        return response


class RegisterView(APIView):
    """
    Create an account and sign it in.

    POST /api/auth/register/
    Request body: {"email", "password", "displayName", "country"?, "city"?}

    Success response (201): {"user": {...}, "token": "...", "refresh": "..."}
    """
    permission_classes = [AllowAny]
    authentication_classes = []
    throttle_classes = [ScopedRateThrottle]
    throttle_scope = 'register'

    def post(self, request):
        serializer = RegisterSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        user = accounts.register_user(
            email=data['email'],
            password=data['password'],
            display_name=data['display_name'],
            country=data.get('country', ''),
            city=data.get('city', ''),
        )

        return api_response(
            data={'user': UserSerializer(user).data, **accounts.issue_tokens(user)},
            message='Registration successful',
            status_code=status.HTTP_201_CREATED,
        )


class LoginView(APIView):
    """
    Sign in with email and password.

    Security features:
    - Rate limiting (throttle scope 'login')
    - One message for unknown email and wrong password
    - Failed attempts logged with the client IP
    - Banned accounts refused with 403

    POST /api/auth/login/
    Request body: {"email": "user@example.com", "password": "..."}
    """
    permission_classes = [AllowAny]
    authentication_classes = []
    throttle_classes = [ScopedRateThrottle]
    throttle_scope = 'login'

    def post(self, request):
        serializer = LoginSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        user = accounts.authenticate_user(
            request,
            serializer.validated_data['email'],
            serializer.validated_data['password'],
        )

        return api_response(
            data={'user': UserSerializer(user).data, **accounts.issue_tokens(user)},
            message='Login successful',
        )


class LogoutView(APIView):
    """Blacklist the caller's refresh token. POST /api/auth/logout/"""
    permission_classes = [IsAuthenticated]

    def post(self, request):
        serializer = RefreshTokenSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        accounts.logout_user(request.user, serializer.validated_data['refresh'])
        return api_response(message='Logged out')


class TokenRefreshView(APIView):
    """
    Exchange a refresh token for a new access token.

    With rotation enabled the old refresh token is blacklisted and a new
    one is returned.

    POST /api/auth/token/refresh/
    Request body: {"refresh": "<jwt_refresh_token>"}
    Success response (200): {"token": "...", "refresh": "..."}
    """
    permission_classes = [AllowAny]
    authentication_classes = []
    throttle_classes = [ScopedRateThrottle]
    throttle_scope = 'token_refresh'

    def post(self, request):
        payload = RefreshTokenSerializer(data=request.data)
        payload.is_valid(raise_exception=True)

        serializer = TokenRefreshSerializer(data={'refresh': payload.validated_data['refresh']})
        try:
            serializer.is_valid(raise_exception=True)
        except TokenError as exc:
            logger.warning(f"Failed token refresh. Error: {exc}, IP: {get_client_ip(request)}")
            raise InvalidToken(exc.args[0])

        data = serializer.validated_data
        return api_response(data={
            'token': data['access'],
            'refresh': data.get('refresh', payload.validated_data['refresh']),
        })


class CurrentUserView(APIView):
    """The signed-in user. GET /api/auth/me/ and GET /api/users/me/"""
    permission_classes = [IsAuthenticated]

    def get(self, request):
        return api_response(data=UserSerializer(request.user).data)


class ChangePasswordView(APIView):
    """
    Change the caller's password.

    PATCH /api/auth/change-password/
    Request body: {"currentPassword": "...", "newPassword": "..."}
    """
    permission_classes = [IsAuthenticated]

    def patch(self, request):
        serializer = ChangePasswordSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        accounts.change_password(
            request.user,
            serializer.validated_data['current_password'],
            serializer.validated_data['new_password'],
        )
        return api_response(message='Password updated successfully')


# ============================================================================
# Listings ("animals")
# ============================================================================

class ListingListCreateView(APIView):
    """
    Public catalogue and listing creation.

    GET /api/animals/
    Query parameters:
    - keyword, species (repeatable or comma-separated), breed, country, city
    - minPrice, maxPrice, minAge, maxAge, gender, availability
    - sort: newest | oldest | price-low | price-high
    - page (1-indexed), limit (default 12, max 100)

    Only approved listings are returned.

    POST /api/animals/
    Creates a listing owned by the caller. Status is always pending.
    """
    authentication_classes = [ReadOptionalJWTAuthentication]

    def get_permissions(self):
        if self.request.method == 'GET':
            return [AllowAny()]
        return [IsAuthenticated()]

    def get(self, request):
        query = ListingQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)

        result = discovery.discover_listings(
            filters=query.to_filters(),
            sort=query.validated_data['sort'],
            page=query.validated_data['page'],
            page_size=query.validated_data.get('limit'),
        )
        return discovery_response(result, {'request': request})

    def post(self, request):
        serializer = ListingWriteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        listing = listings.create_listing(request.user, serializer.validated_data)
        return api_response(
            data=listing_payload(listing, request),
            message='Listing submitted for review',
            status_code=status.HTTP_201_CREATED,
        )


class LatestListingsView(APIView):
    """Newest approved listings. GET /api/animals/latest/?limit=8"""
    permission_classes = [AllowAny]
    authentication_classes = [OptionalJWTAuthentication]

    def get(self, request):
        try:
            limit = int(request.query_params.get('limit', 8))
        except (TypeError, ValueError):
            limit = 8
        result = discovery.latest_listings(limit=max(limit, 1))
        if not result.success:
            return discovery_response(result, {'request': request})
        return api_response(data=ListingSerializer(result.items, many=True, context={'request': request}).data)


class MyListingsView(APIView):
    """
    The caller's own listings in every status.

    GET /api/animals/mine/ (same query parameters as the public catalogue)
    """
    permission_classes = [IsAuthenticated]

    def get(self, request):
        query = ListingQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)

        filters = query.to_filters(allow_status=True)
        filters.seller_id = request.user.pk
        result = discovery.discover_listings(
            filters=filters,
            sort=query.validated_data['sort'],
            page=query.validated_data['page'],
            page_size=query.validated_data.get('limit'),
            include_unapproved=True,
        )
        return discovery_response(result, {'request': request})


class ListingBySlugView(APIView):
    """One listing by slug. GET /api/animals/slug/<slug>/"""
    permission_classes = [AllowAny]
    authentication_classes = [OptionalJWTAuthentication]

    def get(self, request, slug):
        listing = discovery.find_listing(slug=slug, include_unapproved=True)
        if listing is None or not can_see_listing(listing, request.user):
            raise NotFound('Listing not found')
        return api_response(data=ListingSerializer(listing, context={'request': request}).data)


class ListingDetailView(APIView):
    """
    Read, edit or delete one listing.

    GET    /api/animals/<id>/  Approved listings for anyone; others for the
                               owner and staff only (404 otherwise)
    PATCH  /api/animals/<id>/  Owner only; content fields
    DELETE /api/animals/<id>/  Owner or admin
    """
    authentication_classes = [ReadOptionalJWTAuthentication]

    def get_permissions(self):
        if self.request.method == 'GET':
            return [AllowAny()]
        return [IsAuthenticated()]

    def get(self, request, listing_id):
        listing = discovery.find_listing(listing_id=listing_id, include_unapproved=True)
        if listing is None or not can_see_listing(listing, request.user):
            raise NotFound('Listing not found')
        return api_response(data=ListingSerializer(listing, context={'request': request}).data)

    def patch(self, request, listing_id):
        listing = listings.get_owned_listing(listing_id, request.user, action='edit')

        serializer = ListingWriteSerializer(listing, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)

        listings.update_listing(listing, serializer.validated_data)
        return api_response(data=listing_payload(listing, request), message='Listing updated')

    def delete(self, request, listing_id):
        listings.delete_listing(listing_id, request.user)
        return api_response(message='Listing deleted')


class ListingImagesView(APIView):
    """
    Upload images to a listing the caller owns.

    POST /api/animals/<id>/images/ (multipart, field ``images``, up to six files)
    """
    permission_classes = [IsAuthenticated]
    parser_classes = [MultiPartParser, FormParser]

    def post(self, request, listing_id):
        listing = listings.get_owned_listing(listing_id, request.user, action='modify')

        serializer = ImageUploadSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        created = listings.add_images(listing, serializer.validated_data['images'])
        return api_response(
            data=ListingImageSerializer(created, many=True, context={'request': request}).data,
            message=f'{len(created)} image(s) uploaded',
            status_code=status.HTTP_201_CREATED,
        )


class ListingImageDetailView(APIView):
    """Remove one image. DELETE /api/animals/<id>/images/<image_id>/"""
    permission_classes = [IsAuthenticated]

    def delete(self, request, listing_id, image_id):
        listing = listings.get_owned_listing(listing_id, request.user, action='modify')
        listings.remove_image(listing, image_id)
        return api_response(message='Image deleted')


class ListingViewCountView(APIView):
    """
    Count a view of a listing. Views by the owner are not counted.

    POST /api/animals/<id>/view/
    """
    permission_classes = [AllowAny]
    authentication_classes = [OptionalJWTAuthentication]

    def post(self, request, listing_id):
        counted = listings.record_view(listing_id, viewer=request.user)
        return api_response(data={'counted': counted})


# ============================================================================
# Moderation
# ============================================================================

class AdminListingQueueView(APIView):
    """
    Listings in any status for moderators.

    GET /api/admin/animals/?status=pending (plus the public filters)
    """
    permission_classes = [IsAuthenticated, IsAdminOrModerator]

    def get(self, request):
        query = ListingQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)

        result = discovery.discover_listings(
            filters=query.to_filters(allow_status=True),
            sort=query.validated_data['sort'],
            page=query.validated_data['page'],
            page_size=query.validated_data.get('limit'),
            include_unapproved=True,
        )
        return discovery_response(result, {'request': request})


class AdminListingModerationView(APIView):
    """
    Approve or reject a listing.

    PATCH /api/admin/animals/<id>/approve/
    PATCH /api/admin/animals/<id>/reject/  body: {"reason": "..."}

    The target status comes from the URL configuration.
    """
    permission_classes = [IsAuthenticated, IsAdminOrModerator]

    def patch(self, request, listing_id, target_status):
        serializer = ModerationSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        listing = listings.moderate_listing(
            listing_id,
            target_status,
            request.user,
            reason=serializer.validated_data['reason'],
        )
        return api_response(
            data=listing_payload(listing, request),
            message=f'Listing {listing.status}',
        )


class AdminListingStatusView(APIView):
    """
    Set a listing's status explicitly.

    PATCH /api/admin/animals/<id>/status/  body: {"status": "...", "reason"?: "..."}
    """
    permission_classes = [IsAuthenticated, IsAdminOrModerator]

    def patch(self, request, listing_id):
        serializer = ListingStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        listing = listings.moderate_listing(
            listing_id,
            serializer.validated_data['status'],
            request.user,
            reason=serializer.validated_data['reason'],
        )
        return api_response(data=listing_payload(listing, request), message='Status updated')


class AdminListingDeleteView(APIView):
    """Delete any listing. DELETE /api/admin/animals/<id>/"""
    permission_classes = [IsAuthenticated, IsAdminRole]

    def delete(self, request, listing_id):
        listings.delete_listing(listing_id, request.user)
        return api_response(message='Listing deleted')


# ============================================================================
# Favorites
# ============================================================================

class FavoriteListView(APIView):
    """Approved listings the caller has favorited. GET /api/favorites/"""
    permission_classes = [IsAuthenticated]

    def get(self, request):
        items = favorites.favorite_listings(request.user)
        return api_response(data=ListingSerializer(items, many=True, context={'request': request}).data)


class FavoriteIdsView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        return api_response(data=favorites.favorite_listing_ids(request.user))


class FavoriteCheckView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request, listing_id):
        return api_response(data={'favorited': favorites.is_favorited(request.user, listing_id)})


class FavoriteDetailView(APIView):
    """
    Add or remove a favorite.

    POST   /api/favorites/<id>/  -> {"alreadyFavorited": bool}
    DELETE /api/favorites/<id>/  -> {"removed": bool}
    """
    permission_classes = [IsAuthenticated]

    def post(self, request, listing_id):
        created = favorites.add_favorite(request.user, listing_id)
        return api_response(
            data={'alreadyFavorited': not created},
            message='Added to favorites' if created else 'Already in favorites',
            status_code=status.HTTP_201_CREATED if created else status.HTTP_200_OK,
        )

    def delete(self, request, listing_id):
        removed = favorites.remove_favorite(request.user, listing_id)
        return api_response(data={'removed': removed})


class FavoriteToggleView(APIView):
    permission_classes = [IsAuthenticated]

    def post(self, request, listing_id):
        return api_response(data={'favorited': favorites.toggle_favorite(request.user, listing_id)})


# ============================================================================
# Messaging
# ============================================================================

class UnreadMessagesView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        return api_response(data={'count': messaging.get_unread_count(request.user)})


class ConversationListView(APIView):
    """
    List the caller's conversations or start one.

    GET  /api/messages/conversations/
    POST /api/messages/conversations/  body: {"otherUserId": 5, "animalId"?: 12}

    Starting a conversation that already exists returns it with 200.
    """
    permission_classes = [IsAuthenticated]

    def get(self, request):
        conversations = messaging.list_conversations(request.user)
        return api_response(
            data=ConversationSerializer(conversations, many=True, context={'request': request}).data
        )

    def post(self, request):
        serializer = StartConversationSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        conversation, created = messaging.start_or_get_conversation(
            request.user,
            serializer.validated_data['other_user_id'],
            listing_id=serializer.validated_data['listing_id'],
        )
        return api_response(
            data=ConversationSerializer(conversation, context={'request': request}).data,
            status_code=status.HTTP_201_CREATED if created else status.HTTP_200_OK,
        )


class ConversationDetailView(APIView):
    """
    One conversation with its latest messages. Opening it marks the other
    participant's messages read.

    GET /api/messages/conversations/<id>/
    """
    permission_classes = [IsAuthenticated]

    def get(self, request, conversation_id):
        conversation = messaging.get_conversation_for_participant(conversation_id, request.user)
        messaging.mark_read(conversation_id, request.user)
        messages = messaging.get_messages(conversation_id, request.user)

        conversation.unread_count = 0
        conversation.last_message = messages[-1] if messages else None

        data = ConversationSerializer(conversation, context={'request': request}).data
        data['messages'] = MessageSerializer(messages, many=True).data
        return api_response(data=data)


class ConversationMessagesView(APIView):
    """
    Page through or append to a conversation.

    GET  /api/messages/conversations/<id>/messages/?limit=50&before=<message_id>
    POST /api/messages/conversations/<id>/messages/  body: {"content": "..."}
    """
    permission_classes = [IsAuthenticated]

    def get(self, request, conversation_id):
        query = MessagePageSerializer(data=request.query_params)
        query.is_valid(raise_exception=True)

        messages = messaging.get_messages(
            conversation_id,
            request.user,
            limit=query.validated_data['limit'],
            before_id=query.validated_data.get('before'),
        )
        return api_response(data=MessageSerializer(messages, many=True).data)

    def post(self, request, conversation_id):
        serializer = SendMessageSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        message = messaging.send_message(
            conversation_id,
            request.user,
            serializer.validated_data['content'],
        )
        return api_response(
            data=MessageSerializer(message).data,
            status_code=status.HTTP_201_CREATED,
        )


class ConversationReadView(APIView):
    permission_classes = [IsAuthenticated]

    def post(self, request, conversation_id):
        count = messaging.mark_read(conversation_id, request.user)
        return api_response(data={'count': count})


# ============================================================================
# Notifications
# ============================================================================

class NotificationListView(APIView):
    """Inbox. GET /api/notifications/?limit=20&includeRead=false"""
    permission_classes = [IsAuthenticated]

    def get(self, request):
        query = NotificationQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)

        items = notifications.list_notifications(
            request.user,
            limit=query.validated_data['limit'],
            include_read=query.validated_data['includeRead'],
        )
        return api_response(data=NotificationSerializer(items, many=True).data)


class NotificationUnreadCountView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        return api_response(data={'count': notifications.unread_count(request.user)})


class NotificationMarkAllReadView(APIView):
    permission_classes = [IsAuthenticated]

    def post(self, request):
        return api_response(data={'count': notifications.mark_all_read(request.user)})


class NotificationReadView(APIView):
    permission_classes = [IsAuthenticated]

    def post(self, request, notification_id):
        notification = notifications.mark_read(request.user, notification_id)
        return api_response(data=NotificationSerializer(notification).data)


class NotificationDetailView(APIView):
    permission_classes = [IsAuthenticated]

    def delete(self, request, notification_id):
        notifications.delete_notification(request.user, notification_id)
        return api_response(message='Notification deleted')


# ============================================================================
# Reports
# ============================================================================

class ReportListCreateView(APIView):
    """
    POST /api/reports/  Anyone, signed in or not: {"animalId": 3, "reason": "..."}
    GET  /api/reports/?status=open  Moderators and admins
    """
    authentication_classes = [OptionalJWTAuthentication]

    def get_permissions(self):
        if self.request.method == 'POST':
            return [AllowAny()]
        return [IsAuthenticated(), IsAdminOrModerator()]

    def get(self, request):
        items = reports.list_reports(status=request.query_params.get('status'))
        return api_response(data=ReportSerializer(items, many=True).data)

    def post(self, request):
        serializer = ReportCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        reporter = request.user if request.user.is_authenticated else None
        report = reports.create_report(
            serializer.validated_data['listing_id'],
            serializer.validated_data['reason'],
            reporter=reporter,
        )
        return api_response(
            data=ReportSerializer(report).data,
            message='Report submitted',
            status_code=status.HTTP_201_CREATED,
        )


class ReportDetailView(APIView):
    permission_classes = [IsAuthenticated, IsAdminOrModerator]

    def get(self, request, report_id):
        return api_response(data=ReportSerializer(reports.get_report_or_404(report_id)).data)


class ReportStatusView(APIView):
    """PATCH /api/reports/<id>/status/  body: {"status": "open|reviewing|closed"}"""
    permission_classes = [IsAuthenticated, IsAdminOrModerator]

    def patch(self, request, report_id):
        serializer = ReportStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        report = reports.set_report_status(report_id, serializer.validated_data['status'], request.user)
        return api_response(data=ReportSerializer(report).data)


class ReportCloseView(APIView):
    """
    Reject or dismiss a report. Both close it.

    PATCH /api/reports/<id>/reject/
    PATCH /api/reports/<id>/dismiss/
    """
    permission_classes = [IsAuthenticated, IsAdminOrModerator]

    def patch(self, request, report_id, action):
        if action == 'reject':
            report = reports.reject_report(report_id, request.user)
        else:
            report = reports.dismiss_report(report_id, request.user)
        return api_response(data=ReportSerializer(report).data, message=f'Report {action}ed')


# ============================================================================
# Users and ratings
# ============================================================================

class UserListView(APIView):
    """All users, newest first. GET /api/users/ and GET /api/admin/users/"""
    permission_classes = [IsAuthenticated, IsAdminRole]

    def get(self, request):
        return api_response(data=UserSerializer(accounts.list_users(), many=True).data)


class UserDetailView(APIView):
    """
    Update the caller's own profile.

    PATCH /api/users/<id>/  body: any of displayName, country, city, avatar
    """
    permission_classes = [IsAuthenticated]

    def patch(self, request, user_id):
        serializer = ProfileUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        user = accounts.update_profile(user_id, request.user, serializer.validated_data)
        return api_response(data=UserSerializer(user).data, message='Profile updated')


class PublicProfileView(APIView):
    """Public profile with rating aggregate and reviews. GET /api/users/<id>/profile/"""
    permission_classes = [AllowAny]
    authentication_classes = [OptionalJWTAuthentication]

    def get(self, request, user_id):
        user = accounts.public_profile(user_id)
        context = {'request': request, 'ratings': ratings.ratings_received(user.pk)}
        return api_response(data=PublicProfileSerializer(user, context=context).data)


class MyRatingView(APIView):
    """The caller's rating of a user, or null. GET /api/users/<id>/rating/mine/"""
    permission_classes = [IsAuthenticated]

    def get(self, request, user_id):
        rating = ratings.get_my_rating(request.user, user_id)
        return api_response(data=RatingSerializer(rating).data if rating is not None else None)


class RateUserView(APIView):
    """
    Rate a user from 1 to 5, replacing any earlier rating by the caller.

    POST /api/users/<id>/rate/  body: {"rating": 4, "review"?: "..."}
    """
    permission_classes = [IsAuthenticated]

    def post(self, request, user_id):
        serializer = RatingInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        rating, created = ratings.rate_user(
            request.user,
            user_id,
            serializer.validated_data['rating'],
            serializer.validated_data['review'],
        )
        data = RatingSerializer(rating).data
        data['summary'] = ratings.rating_summary(user_id)
        return api_response(
            data=data,
            message='Rating submitted' if created else 'Rating updated',
            status_code=status.HTTP_201_CREATED if created else status.HTTP_200_OK,
        )


class RatingDeleteView(APIView):
    permission_classes = [IsAuthenticated]

    def delete(self, request, user_id):
        ratings.delete_rating(request.user, user_id)
        return api_response(message='Rating deleted')


class UserRoleView(APIView):
    """PATCH /api/users/<id>/role/  body: {"role": "user|moderator|admin"}"""
    permission_classes = [IsAuthenticated, IsAdminRole]

    def patch(self, request, user_id):
        serializer = RoleUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        user = accounts.set_role(user_id, serializer.validated_data['role'], request.user)
        return api_response(data=UserSerializer(user).data, message='Role updated')


class UserBanView(APIView):
    """
    PATCH /api/users/<id>/ban/
    PATCH /api/users/<id>/unban/

    Whether to ban comes from the URL configuration.
    """
    permission_classes = [IsAuthenticated, IsAdminRole]

    def patch(self, request, user_id, banned):
        user = accounts.set_ban(user_id, banned, request.user)
        return api_response(
            data=UserSerializer(user).data,
            message='User banned' if banned else 'User unbanned',
        )


# ============================================================================
# Announcements and FAQ
# ============================================================================

class PublicAnnouncementListView(APIView):
    permission_classes = [AllowAny]
    authentication_classes = []

    def get(self, request):
        items = Announcement.objects.filter(is_visible=True).order_by('-publish_date', '-id')
        return api_response(data=AnnouncementSerializer(items, many=True).data)


class AnnouncementListCreateView(APIView):
    """
    Admin management of announcements.

    GET  /api/announcements/  All announcements, hidden ones included
    POST /api/announcements/  Creating a visible announcement notifies all
                              users who are not banned
    """
    permission_classes = [IsAuthenticated, IsAdminRole]

    def get(self, request):
        items = Announcement.objects.all().order_by('-publish_date', '-id')
        return api_response(data=AnnouncementSerializer(items, many=True).data)

    def post(self, request):
        serializer = AnnouncementSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        announcement = serializer.save(created_by=request.user)
        logger.info(f"Announcement {announcement.id} created by admin {request.user.pk}")
        return api_response(
            data=AnnouncementSerializer(announcement).data,
            status_code=status.HTTP_201_CREATED,
        )


class AnnouncementDetailView(APIView):
    permission_classes = [IsAuthenticated, IsAdminRole]

    def _get(self, announcement_id):
        try:
            return Announcement.objects.get(pk=announcement_id)
        except Announcement.DoesNotExist:
            raise NotFound('Announcement not found')

    def put(self, request, announcement_id):
        announcement = self._get(announcement_id)
        serializer = AnnouncementSerializer(announcement, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        serializer.save()
        return api_response(data=serializer.data, message='Announcement updated')

    def delete(self, request, announcement_id):
        self._get(announcement_id).delete()
        return api_response(message='Announcement deleted')


class PublicFAQListView(APIView):
    permission_classes = [AllowAny]
    authentication_classes = []

    def get(self, request):
        items = FAQItem.objects.filter(is_visible=True).order_by('order', 'id')
        return api_response(data=FAQItemSerializer(items, many=True).data)


class FAQListCreateView(APIView):
    permission_classes = [IsAuthenticated, IsAdminRole]

    def get(self, request):
        items = FAQItem.objects.all().order_by('order', 'id')
        return api_response(data=FAQItemSerializer(items, many=True).data)

    def post(self, request):
        serializer = FAQItemSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        item = serializer.save()
        return api_response(data=FAQItemSerializer(item).data, status_code=status.HTTP_201_CREATED)


class FAQDetailView(APIView):
    permission_classes = [IsAuthenticated, IsAdminRole]

    def _get(self, item_id):
        try:
            return FAQItem.objects.get(pk=item_id)
        except FAQItem.DoesNotExist:
            raise NotFound('FAQ item not found')

    def put(self, request, item_id):
        item = self._get(item_id)
        serializer = FAQItemSerializer(item, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        serializer.save()
        return api_response(data=serializer.data, message='FAQ item updated')

    def delete(self, request, item_id):
        self._get(item_id).delete()
        return api_response(message='FAQ item deleted')


# ============================================================================
# Stats and presence
# ============================================================================

class VisitView(APIView):
    """
    Record a visit or presence heartbeat. Never fails the client.

    POST /api/stats/visit/  -> {"tracked": bool}
    """
    permission_classes = [AllowAny]
    authentication_classes = [OptionalJWTAuthentication]

    def post(self, request):
        tracked = stats.record_visit(
            user=request.user,
            ip_address=get_client_ip(request),
            user_agent=request.META.get('HTTP_USER_AGENT', ''),
        )
        return api_response(data={'tracked': tracked})


class SiteTrafficView(APIView):
    permission_classes = [AllowAny]
    authentication_classes = []

    def get(self, request):
        return api_response(data=stats.site_traffic())


class HomeStatsView(APIView):
    permission_classes = [AllowAny]
    authentication_classes = []

    def get(self, request):
        return api_response(data=stats.home_stats())


class DashboardStatsView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        return api_response(data=stats.dashboard_stats(request.user))


class AdminStatsView(APIView):
    permission_classes = [IsAuthenticated, IsAdminOrModerator]

    def get(self, request):
        return api_response(data=stats.admin_stats())
