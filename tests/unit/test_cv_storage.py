import io
import re
from pathlib import Path

import pytest

from jobtracker.config import Settings
from jobtracker.core.files import CvStorage
from jobtracker.errors import ValidationFailed


def _storage(tmp_path: Path) -> CvStorage:
    return CvStorage(Settings(upload_dir=tmp_path / "uploads"))


def test_rejects_disallowed_extension(tmp_path: Path) -> None:
    storage = _storage(tmp_path)
    with pytest.raises(ValidationFailed, match="not allowed"):
        storage.validate("malware.exe", 100)
    with pytest.raises(ValidationFailed):
        storage.validate("noextension", 100)


def test_rejects_oversized_and_empty_files(tmp_path: Path) -> None:
    storage = _storage(tmp_path)
    with pytest.raises(ValidationFailed, match="10MB"):
        storage.validate("cv.pdf", 11 * 1024 * 1024)
    with pytest.raises(ValidationFailed):
        storage.validate("cv.pdf", 0)
    assert storage.validate("CV.DOCX", 1024) == ".docx"


def test_save_names_file_after_user_and_ticks(tmp_path: Path) -> None:
    storage = _storage(tmp_path)
    public_path = storage.save(io.BytesIO(b"%PDF-1.4 resume"), "resume.pdf", "user-1")

    assert re.fullmatch(r"/uploads/user-1_\d+\.pdf", public_path)
    stored = storage.resolve(public_path)
    assert stored is not None and stored.read_bytes() == b"%PDF-1.4 resume"


def test_streamed_upload_over_limit_leaves_nothing_behind(tmp_path: Path) -> None:
    storage = CvStorage(Settings(upload_dir=tmp_path / "uploads", cv_max_bytes=1024))
    with pytest.raises(ValidationFailed):
        storage.save(io.BytesIO(b"x" * 4096), "resume.pdf", "user-1")
    assert list((tmp_path / "uploads").iterdir()) == []


def test_delete_is_best_effort(tmp_path: Path) -> None:
    storage = _storage(tmp_path)
    public_path = storage.save(io.BytesIO(b"doc"), "resume.doc", "user-2")

    assert storage.delete(public_path)
    assert not storage.delete(public_path)
    assert not storage.delete(None)
    assert storage.resolve("/elsewhere/file.pdf") is None
    assert storage.resolve("/uploads/../../etc/passwd") == tmp_path / "uploads" / "passwd"
