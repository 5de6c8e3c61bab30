"""Tests for the local handle values."""

import pytest

from image_alchemy.collaborators import LocalHandle, RequestContext, TemporaryFileHandle


class TestLocalHandles:
    def test_plain_handle_keeps_file(self, tmp_path):
        path = tmp_path / "kept.bin"
        path.write_bytes(b"x")
        with LocalHandle(path) as handle:
            assert handle.path == str(path)
        assert path.exists()

    def test_temporary_file_removed(self, tmp_path):
        path = tmp_path / "download.tmp"
        path.write_bytes(b"x")
        with TemporaryFileHandle(str(path)):
            pass
        assert not path.exists()

    def test_temporary_file_removed_on_error(self, tmp_path):
        path = tmp_path / "download.tmp"
        path.write_bytes(b"x")
        with pytest.raises(RuntimeError):
            with TemporaryFileHandle(str(path)):
                raise RuntimeError("decode failed")
        assert not path.exists()

    def test_already_gone(self, tmp_path):
        TemporaryFileHandle(str(tmp_path / "never-written")).release()


def test_request_context_default():
    assert RequestContext().client_ip is None
