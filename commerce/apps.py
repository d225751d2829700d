from django.apps import AppConfig


class CommerceConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "commerce"

    def ready(self):
        # Cache invalidation for tax and shipping configuration
        from commerce import signals  # noqa: F401
