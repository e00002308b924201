"""
Settings used by the test suite.

Runs against in-memory SQLite with a throwaway media directory so the suite
needs no database server and leaves no files behind.
"""

import tempfile

from .settings import *  # noqa: F401,F403
from .settings import REST_FRAMEWORK

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': ':memory:',
        'ATOMIC_REQUESTS': True,
    }
}

PASSWORD_HASHERS = [
    'django.contrib.auth.hashers.MD5PasswordHasher',
]

MEDIA_ROOT = tempfile.mkdtemp(prefix='pet_marketplace_media_')

# Individual tests switch this on with override_settings
CSRF_DOUBLE_SUBMIT_ENABLED = False

REST_FRAMEWORK = {
    **REST_FRAMEWORK,
    'DEFAULT_THROTTLE_RATES': {
        'login': '1000/minute',
        'register': '1000/minute',
        'token_refresh': '1000/minute',
    },
}

CACHES = {
    'default': {
        'BACKEND': 'django.core.cache.backends.locmem.LocMemCache',
    }
}
