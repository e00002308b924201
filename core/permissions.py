"""
Permission classes and ownership checks for the Pet Marketplace.
"""

from rest_framework import permissions
from rest_framework.exceptions import NotAuthenticated, PermissionDenied


def has_role(user, roles):
    """
    Check whether an authenticated user holds one of the given roles.

    Args:
        user: request.user (may be AnonymousUser)
        roles: Iterable of role names

    Returns:
        bool: True if the user is authenticated and has one of the roles
    """
    if not user or not user.is_authenticated:
        return False
    return getattr(user, 'role', None) in tuple(roles)


def assert_owner_or_role(resource_owner_id, caller, allowed_roles=(), message=None):
    """
    Allow a mutation only for the resource owner or a privileged role.

    Every write to a listing, its images or a favorite goes through this
    check with the owner id freshly read from the database.

    Args:
        resource_owner_id: Primary key of the user who owns the resource
        caller: Authenticated user attempting the action
        allowed_roles: Roles that may act on resources they do not own
        message: Optional error message for the 403 response

    Raises:
        NotAuthenticated: If the caller is not signed in
        PermissionDenied: If the caller is neither owner nor in allowed_roles
    """
    if not caller or not caller.is_authenticated:
        raise NotAuthenticated()

    if resource_owner_id == caller.pk:
        return

    if allowed_roles and has_role(caller, allowed_roles):
        return

    raise PermissionDenied(message or 'Not allowed to modify this resource')


class IsAdminRole(permissions.BasePermission):
    """
    Allows access only to users whose role is 'admin'.

    Usage:
        class MyView(APIView):
            permission_classes = [IsAuthenticated, IsAdminRole]
    """

    message = 'Admin access required'

    def has_permission(self, request, view):
        return has_role(request.user, ('admin',))


class IsAdminOrModerator(permissions.BasePermission):
    """
    Allows access to moderators and admins.

    Used for the moderation queue, report handling and admin statistics.
    """

    message = 'Moderator or admin access required'

    def has_permission(self, request, view):
        return has_role(request.user, ('moderator', 'admin'))
