import errno
import os

import pytest

from src.imgdrop.core import storage
from src.imgdrop.core.errors import ErrorKind, UploadError
from src.imgdrop.core.storage import ensure_storage_root, write_artifact
from tests.images import stored_files


def test_ensure_storage_root_creates_directory(tmp_path):
    target = tmp_path / "a" / "b"
    resolved = ensure_storage_root(target)
    assert target.is_dir()
    assert resolved == target.resolve()
    assert ensure_storage_root(target) == resolved


def test_write_artifact_writes_bytes(tmp_path):
    path = tmp_path / "1-0123456789abcdef.webp"
    write_artifact(path, b"RIFF....WEBP")
    assert path.read_bytes() == b"RIFF....WEBP"
    assert stored_files(tmp_path) == [path]


def _fail_fsync(code):
    def _fsync(fd):
        raise OSError(code, os.strerror(code))

    return _fsync


@pytest.mark.parametrize(
    ("code", "kind"),
    [
        (errno.ENOSPC, ErrorKind.STORAGE_EXHAUSTED),
        (errno.EDQUOT, ErrorKind.STORAGE_EXHAUSTED),
        (errno.EIO, ErrorKind.INTERNAL_PROCESSING_ERROR),
    ],
)
def test_failed_write_leaves_nothing_behind(monkeypatch, tmp_path, code, kind):
    monkeypatch.setattr(storage.os, "fsync", _fail_fsync(code))
    path = tmp_path / "1-0123456789abcdef.webp"
    with pytest.raises(UploadError) as excinfo:
        write_artifact(path, b"data")
    assert excinfo.value.kind is kind
    assert stored_files(tmp_path) == []


def test_missing_directory_is_internal_error(tmp_path):
    path = tmp_path / "missing" / "1-0123456789abcdef.webp"
    with pytest.raises(UploadError) as excinfo:
        write_artifact(path, b"data")
    assert excinfo.value.status_code == 500
