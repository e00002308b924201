"""
Custom validators for marketplace models and uploads.
"""

import re

from django.conf import settings
from django.core.exceptions import ValidationError


ALLOWED_IMAGE_EXTENSIONS = ['jpg', 'jpeg', 'png', 'webp', 'gif']

ALLOWED_IMAGE_CONTENT_TYPES = [
    'image/jpeg',
    'image/png',
    'image/webp',
    'image/gif',
]

SLUG_PATTERN = re.compile(r'^[a-z0-9]+(?:-[a-z0-9]+)*$')


def max_upload_size_bytes():
    """Return the configured per-file upload limit in bytes."""
    return getattr(settings, 'MAX_UPLOAD_SIZE_MB', 6) * 1024 * 1024


def validate_listing_image(image):
    """
    Validate a listing image file.

    Checks:
    - File size (MAX_UPLOAD_SIZE_MB, default 6MB)
    - File extension (jpg, jpeg, png, webp, gif)
    - MIME type, when the upload carries one

    Args:
        image: UploadedFile or FieldFile object

    Raises:
        ValidationError: If image is invalid
    """
    if not image:
        return

    max_size = max_upload_size_bytes()
    if image.size > max_size:
        raise ValidationError(
            f'Image file size cannot exceed {settings.MAX_UPLOAD_SIZE_MB}MB. '
            f'Current size: {image.size / (1024 * 1024):.2f}MB',
            code='image_too_large'
        )

    file_name = image.name.lower()
    if not any(file_name.endswith(f'.{ext}') for ext in ALLOWED_IMAGE_EXTENSIONS):
        raise ValidationError(
            f'Invalid image format. Allowed formats: {", ".join(ALLOWED_IMAGE_EXTENSIONS)}',
            code='invalid_image_format'
        )

    content_type = getattr(image, 'content_type', None)
    if content_type and content_type not in ALLOWED_IMAGE_CONTENT_TYPES:
        raise ValidationError(
            f'Only image uploads are allowed. Received: {content_type}',
            code='invalid_content_type'
        )


def validate_listing_slug(value):
    """
    Validate that a slug is lowercase and URL-safe.

    Accepts letters, digits and single hyphens between words, e.g. "rex-1".
    """
    if not value:
        return

    if not SLUG_PATTERN.match(value):
        raise ValidationError(
            'Slug may only contain lowercase letters, digits and single hyphens.',
            code='invalid_slug'
        )
