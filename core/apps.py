from django.apps import AppConfig


class CoreConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'core'
    verbose_name = 'Pet Marketplace'

    def ready(self):
        # Register signal receivers
        from . import signals  # noqa: F401
