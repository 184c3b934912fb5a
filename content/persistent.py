import logging

logger = logging.getLogger(__name__)


class PersistentDataManager:
    """
    Cache-less access to the file store for the admin endpoints.

    Shares the ``FileStore`` (and its write errors) with ``DataService``; it
    does not touch the read cache, so callers evict the document themselves
    after a successful save.
    """

    def __init__(self, store):
        self.store = store

    def load_data(self, name, default=None):
        try:
            data = self.store.read(name)
        except Exception as e:
            logger.info(f"Failed to load {name}, using default: {e}")
            return default
        logger.info(f"{name} loaded from local file: {self.store.path_for(name)}")
        return data

    def save_data(self, name, data):
        """Replace the whole document. Raises ``DocumentWriteError`` on failure."""
        try:
            self.store.write(name, data)
        except Exception as e:
            logger.error(f"Failed to save {name}: {e}")
            raise
        logger.info(f"{name} saved to local file: {self.store.path_for(name)}")

    def is_production_mode(self):
        return False  # Always the local file system

    def get_storage_info(self):
        return {
            'mode': 'Local File System',
            'configured': True,
            'dataDir': str(self.store.data_dir),
        }
