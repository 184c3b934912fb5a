import json
import shutil
import tempfile
from pathlib import Path

from django.apps import apps

from .persistent import PersistentDataManager
from .services import DataService
from .storage import FileStore


class TemporaryContentMixin:
    """
    Points the process-wide content services at a throwaway data directory.

    Use in a TestCase: documents written with ``write_document`` are what the
    views and template tags see for the duration of one test.
    """

    def setUp(self):
        super().setUp()
        self.data_dir = Path(tempfile.mkdtemp(prefix='content-test-'))
        self.addCleanup(shutil.rmtree, self.data_dir, ignore_errors=True)

        self.store = FileStore(self.data_dir)
        self.data_service = DataService(self.store)

        config = apps.get_app_config('content')
        original = (config.data_service, config.persistent_data_manager)
        config.data_service = self.data_service
        config.persistent_data_manager = PersistentDataManager(self.store)
        self.addCleanup(self._restore_services, config, original)

    @staticmethod
    def _restore_services(config, original):
        config.data_service, config.persistent_data_manager = original

    def write_document(self, name, data):
        (self.data_dir / name).write_text(json.dumps(data), encoding='utf-8')

    def read_document(self, name):
        return json.loads((self.data_dir / name).read_text(encoding='utf-8'))
