from django.apps import AppConfig


class ClaimsConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'claims'
    verbose_name = 'Zone claims'

    def ready(self):
        from .store import ClaimStore
        # Shared by every request handler; opened lazily on first use (see views.get_store)
        self.store = ClaimStore()
