import time

from django.apps import AppConfig
from django.conf import settings


class ContentConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'content'

    def ready(self):
        """Build the process-wide content services once the settings are loaded."""
        from .persistent import PersistentDataManager
        from .services import DataService
        from .storage import FileStore

        store = FileStore(settings.CONTENT_DATA_DIR)
        self.data_service = DataService(store, ttl=settings.CONTENT_CACHE_TTL)
        self.persistent_data_manager = PersistentDataManager(store)
        self.started_at = time.monotonic()
