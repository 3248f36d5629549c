from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import BinaryIO

from jobtracker.config import Settings, get_settings
from jobtracker.errors import ValidationFailed

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024


def dotnet_ticks() -> int:
    # 100ns intervals, matches the historical filename scheme
    return time.time_ns() // 100


class CvStorage:
    def __init__(self, settings: Settings | None = None):
        self.settings = settings or get_settings()
        self.root = Path(self.settings.upload_dir)

    def validate(self, filename: str | None, size: int | None = None) -> str:
        if not filename:
            raise ValidationFailed("No file was uploaded")
        extension = Path(filename).suffix.lower()
        allowed = self.settings.cv_extension_set
        if extension not in allowed:
            raise ValidationFailed(
                f"File type {extension or '(none)'} is not allowed. Allowed types: {', '.join(sorted(allowed))}"
            )
        if size is not None:
            if size == 0:
                raise ValidationFailed("No file was uploaded")
            self._check_size(size)
        return extension

    def _check_size(self, size: int) -> None:
        if size > self.settings.cv_max_bytes:
            limit_mb = self.settings.cv_max_bytes // (1024 * 1024)
            raise ValidationFailed(f"File size exceeds the limit of {limit_mb}MB")

    def save(self, stream: BinaryIO, filename: str, user_id: str, size: int | None = None) -> str:
        extension = self.validate(filename, size)
        self.root.mkdir(parents=True, exist_ok=True)
        stored_name = f"{user_id}_{dotnet_ticks()}{extension}"
        target = self.root / stored_name

        written = 0
        try:
            with target.open("wb") as handle:
                while chunk := stream.read(CHUNK_SIZE):
                    written += len(chunk)
                    self._check_size(written)
                    handle.write(chunk)
        except Exception:
            target.unlink(missing_ok=True)
            raise
        if written == 0:
            target.unlink(missing_ok=True)
            raise ValidationFailed("No file was uploaded")

        logger.info("CV file saved for user %s: %s", user_id, stored_name)
        return f"{self.settings.uploads_url_prefix.rstrip('/')}/{stored_name}"

    def resolve(self, public_path: str) -> Path | None:
        prefix = self.settings.uploads_url_prefix.rstrip("/") + "/"
        if not public_path.startswith(prefix):
            return None
        name = Path(public_path[len(prefix):]).name
        if not name:
            return None
        return self.root / name

    def delete(self, public_path: str | None) -> bool:
        if not public_path:
            return False
        path = self.resolve(public_path)
        if path is None or not path.is_file():
            logger.warning("File not found for deletion: %s", public_path)
            return False
        try:
            path.unlink()
        except OSError as exc:
            logger.error("Error deleting file %s: %s", public_path, exc)
            return False
        logger.info("File deleted: %s", public_path)
        return True

    def delete_many(self, public_paths: list[str]) -> int:
        return sum(1 for path in public_paths if self.delete(path))
