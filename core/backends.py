"""
Email-based authentication backend.

Users sign in with their email address; the username column mirrors the
email and is never shown to them.
"""

from django.contrib.auth import get_user_model
from django.contrib.auth.backends import ModelBackend

User = get_user_model()


class EmailBackend(ModelBackend):
    """
    Authenticate with email and password, case-insensitively.

    Used by the login service through ``django.contrib.auth.authenticate``
    and by the Django admin login form.
    """

    def authenticate(self, request, username=None, password=None, **kwargs):
        """
        Authenticate a user by email.

        Args:
            request: HTTP request object
            username: Email address (the admin form sends it as username)
            password: User password
            **kwargs: May carry ``email``

        Returns:
            User object if authentication successful, None otherwise
        """
        email = kwargs.get('email', username)

        if email is None or password is None:
            return None

        try:
            user = User.objects.get(email__iexact=email.strip())
        except User.DoesNotExist:
            # Run the default password hasher once to reduce the timing
            # difference between an existing and a nonexistent user
            User().set_password(password)
            return None

        if user.check_password(password) and self.user_can_authenticate(user):
            return user

        return None

    def get_user(self, user_id):
        try:
            user = User.objects.get(pk=user_id)
        except User.DoesNotExist:
            return None
        return user if self.user_can_authenticate(user) else None
