"""Local-disk implementation of UploadStorage.

Files land in UPLOADS_DIR under a generated name:
    <epoch millis>-<12 hex chars><original extension>
and are referenced publicly as /uploads/<name>.
"""

import os
import secrets
import time
from logging import getLogger
from pathlib import Path

from domain.model.errors import StoreError
from domain.model.record import Upload

logger = getLogger(__name__)

PUBLIC_PREFIX = '/uploads/'

# src/adapter/filesystem/upload_storage.py -> project root is 3 levels above src/
_project_root = Path(__file__).resolve().parent.parent.parent.parent
UPLOADS_DIR = Path(os.getenv('UPLOADS_DIR') or _project_root / 'uploads')


def generate_filename(original_name: str) -> str:
    """Timestamp + random suffix + the original extension (lowercased)."""
    ext = Path(original_name or '').suffix.lower()
    return f"{int(time.time() * 1000)}-{secrets.token_hex(6)}{ext}"


class LocalUploadStorage:
    def __init__(self, root: Path | str = UPLOADS_DIR):
        self.root = Path(root).resolve()

    def resolve(self, reference: str) -> Path | None:
        """Map a public reference to a path inside root, or None if it escapes root."""
        if not reference:
            return None
        name = reference[len(PUBLIC_PREFIX):] if reference.startswith(PUBLIC_PREFIX) else reference.lstrip('/')
        target = (self.root / name).resolve()
        if target == self.root or self.root not in target.parents:
            logger.warning("Upload reference outside uploads root", extra={"reference": reference})
            return None
        return target

    def save(self, upload: Upload) -> str:
        name = generate_filename(upload.filename)
        try:
            self.root.mkdir(parents=True, exist_ok=True)
            (self.root / name).write_bytes(upload.content)
        except OSError as e:
            logger.error("Failed to write upload", extra={"file": name, "error": str(e)})
            raise StoreError("Failed to store uploaded file") from e

        logger.info("Upload stored", extra={"file": name, "size": upload.size, "contentType": upload.content_type})
        return f"{PUBLIC_PREFIX}{name}"

    def delete(self, reference: str) -> None:
        target = self.resolve(reference)
        if target is None:
            return
        try:
            target.unlink()
            logger.info("Upload deleted", extra={"reference": reference})
        except FileNotFoundError:
            return
        except OSError as e:
            logger.warning("Failed to delete upload", extra={"reference": reference, "error": str(e)})

    def exists(self, reference: str) -> bool:
        target = self.resolve(reference)
        return target is not None and target.is_file()

    def ping(self) -> bool:
        try:
            self.root.mkdir(parents=True, exist_ok=True)
        except OSError:
            return False
        return os.access(self.root, os.W_OK)
