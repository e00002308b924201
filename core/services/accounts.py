"""
Account operations: registration, login, tokens, profiles, roles and bans.
"""

import logging

from django.contrib.auth import authenticate, get_user_model
from django.contrib.auth.password_validation import validate_password
from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import IntegrityError, transaction
from django.db.models import Count
from rest_framework.exceptions import AuthenticationFailed, NotFound, PermissionDenied, ValidationError
from rest_framework_simplejwt.exceptions import TokenError
from rest_framework_simplejwt.tokens import RefreshToken

from core.exceptions import BusinessRuleError
from core.permissions import assert_owner_or_role
from core.utils import get_client_ip

User = get_user_model()
logger = logging.getLogger(__name__)

PROFILE_FIELDS = ('display_name', 'country', 'city', 'avatar_url')


def issue_tokens(user):
    """
    Create a refresh/access token pair carrying the user's role and ban flag.

    Returns:
        dict: {'token': access token, 'refresh': refresh token}
    """
    refresh = RefreshToken.for_user(user)
    refresh['role'] = user.role
    refresh['is_banned'] = user.is_banned
    return {
        'token': str(refresh.access_token),
        'refresh': str(refresh),
    }


def register_user(email, password, display_name, country='', city=''):
    """
    Create a new user account.

    Args:
        email: Login email (stored lowercase)
        password: Raw password, checked against AUTH_PASSWORD_VALIDATORS
        display_name: Public name
        country: Optional country
        city: Optional city

    Returns:
        User: The created user

    Raises:
        ValidationError: If the password is too weak
        BusinessRuleError: If the email is already registered
    """
    email = email.strip().lower()

    if User.objects.filter(email__iexact=email).exists():
        raise BusinessRuleError('Email is already registered')

    user = User(
        email=email,
        username=email,
        display_name=display_name.strip(),
        country=(country or '').strip(),
        city=(city or '').strip(),
    )

    try:
        validate_password(password, user=user)
    except DjangoValidationError as exc:
        raise ValidationError({'password': list(exc.messages)})

    user.set_password(password)

    try:
        with transaction.atomic():
            user.save()
    except IntegrityError:
        # Concurrent registration with the same email
        logger.warning(f"Duplicate registration race for {email}")
        raise BusinessRuleError('Email is already registered')

    logger.info(f"User {user.pk} registered with email {email}")
    return user


def authenticate_user(request, email, password):
    """
    Verify credentials for login.

    Failed attempts are logged with the client IP. Unknown email and wrong
    password share one message so accounts cannot be enumerated.

    Raises:
        AuthenticationFailed: If the credentials are wrong
        PermissionDenied: If the account is banned
    """
    email = (email or '').strip().lower()
    client_ip = get_client_ip(request)

    user = authenticate(request, email=email, password=password)
    if user is None:
        logger.warning(f"Failed login attempt. Email: {email}, IP: {client_ip}")
        raise AuthenticationFailed('Invalid email or password')

    if user.is_banned:
        logger.warning(f"Login attempt by banned user {user.pk}. IP: {client_ip}")
        raise PermissionDenied('Your account has been banned')

    logger.info(f"Successful login. Email: {email}, IP: {client_ip}")
    return user


def logout_user(user, refresh_token):
    """
    Blacklist a refresh token so it can no longer be used.

    Raises:
        ValidationError: If the token is malformed, expired or already revoked
    """
    try:
        token = RefreshToken(refresh_token)
        token.blacklist()
    except TokenError as exc:
        logger.warning(f"Logout with unusable refresh token by user {user.pk}: {exc}")
        raise ValidationError({'refresh': [str(exc)]})

    logger.info(f"User {user.pk} logged out")


def change_password(user, current_password, new_password):
    """
    Replace the user's password after checking the current one.

    Raises:
        BusinessRuleError: If the current password is wrong
        ValidationError: If the new password is too weak
    """
    if not user.check_password(current_password):
        logger.warning(f"User {user.pk} supplied a wrong current password")
        raise BusinessRuleError('Current password is incorrect')

    try:
        validate_password(new_password, user=user)
    except DjangoValidationError as exc:
        raise ValidationError({'newPassword': list(exc.messages)})

    user.set_password(new_password)
    user.save(update_fields=['password', 'updated_at'])
    logger.info(f"User {user.pk} changed their password")


def get_user_or_404(user_id):
    try:
        return User.objects.get(pk=user_id)
    except User.DoesNotExist:
        raise NotFound('User not found')


def update_profile(user_id, caller, data):
    """
    Update a user's public profile. Users may only edit themselves.

    Args:
        user_id: Target user primary key
        caller: Authenticated user
        data: Validated fields among PROFILE_FIELDS

    Raises:
        PermissionDenied: If caller is not the target user
    """
    assert_owner_or_role(user_id, caller, message='You can only update your own profile')
    user = get_user_or_404(user_id)

    changed = []
    for field in PROFILE_FIELDS:
        if field in data:
            setattr(user, field, data[field])
            changed.append(field)

    if changed:
        user.save()
        logger.info(f"User {user.pk} updated profile fields: {', '.join(changed)}")
    return user


def set_role(user_id, role, admin):
    """
    Change a user's role.

    Raises:
        ValidationError: If the role is not user, moderator or admin
    """
    if role not in dict(User.ROLE_CHOICES):
        raise ValidationError('Invalid role')

    user = get_user_or_404(user_id)
    previous = user.role
    user.role = role
    user.is_staff = role == User.ROLE_ADMIN or user.is_superuser
    user.save()

    logger.info(f"User {user.pk} role changed from {previous} to {role} by admin {admin.pk}")
    return user


def set_ban(user_id, banned, admin):
    """
    Ban or unban a user.

    Raises:
        BusinessRuleError: If an admin tries to ban themselves
    """
    if banned and admin.pk == user_id:
        raise BusinessRuleError('You cannot ban yourself')

    user = get_user_or_404(user_id)
    user.is_banned = banned
    user.save(update_fields=['is_banned', 'updated_at'])

    action = 'banned' if banned else 'unbanned'
    logger.info(f"User {user.pk} {action} by admin {admin.pk}")
    return user


def with_listing_counts(queryset):
    return queryset.annotate(total_listings=Count('listings', distinct=True))


def list_users():
    return list(with_listing_counts(User.objects.all()).order_by('-created_at', '-id'))


def public_profile(user_id):
    try:
        return with_listing_counts(User.objects.all()).get(pk=user_id)
    except User.DoesNotExist:
        raise NotFound('User not found')


def ensure_admin(email, password=None, display_name='Administrator'):
    """
    Promote an existing account to admin or create a new admin account.

    Returns:
        tuple: (User, created)
    """
    email = email.strip().lower()
    user = User.objects.filter(email__iexact=email).first()
    created = user is None

    if created:
        user = User(email=email, username=email, display_name=display_name)

    user.role = User.ROLE_ADMIN
    user.is_staff = True
    if password:
        user.set_password(password)
    elif created:
        user.set_unusable_password()
    user.save()

    logger.info(f"Admin account {'created' if created else 'promoted'}: {email}")
    return user, created
