import json
import logging
import os
import tempfile
from pathlib import Path

from .exceptions import DocumentNameError, DocumentReadError, DocumentWriteError

logger = logging.getLogger(__name__)


class FileStore:
    """
    The system of record: one JSON document per file under ``data_dir``.

    Documents are always read and written whole. A write goes to a temporary
    file next to the target and is swapped in with ``os.replace`` so readers
    never see a partially written document.
    """

    def __init__(self, data_dir):
        self.data_dir = Path(data_dir)

    def path_for(self, name):
        if not name or os.sep in name or '/' in name or name in ('.', '..'):
            raise DocumentNameError(f"Invalid document name: {name!r}")
        return self.data_dir / name

    def exists(self, name):
        return self.path_for(name).is_file()

    def read(self, name):
        path = self.path_for(name)
        try:
            with open(path, 'r', encoding='utf-8') as f:
                return json.load(f)
        except OSError as e:
            raise DocumentReadError(f"Could not read {name}: {e}") from e
        except ValueError as e:
            # json.JSONDecodeError and UnicodeDecodeError are both ValueErrors
            raise DocumentReadError(f"Malformed JSON in {name}: {e}") from e

    def write(self, name, data):
        path = self.path_for(name)
        try:
            payload = json.dumps(data, indent=2, ensure_ascii=False)
        except (TypeError, ValueError) as e:
            raise DocumentWriteError(f"{name} is not JSON serializable: {e}") from e

        tmp_path = None
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=path.parent, prefix=f".{name}.", suffix='.tmp')
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                f.write(payload)
            os.replace(tmp_path, path)
        except OSError as e:
            if tmp_path and os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise DocumentWriteError(f"Could not write {name}: {e}") from e

        logger.debug(f"Wrote {name} ({len(payload)} bytes) to {path}")
