"""
Tests for upload validation and staging
"""
import pytest

from core.errors import InternalError, UnsupportedFileType, ValidationError
from services.uploads import stage_upload, validate_file_type


class TestFileTypeValidation:

    @pytest.mark.parametrize("filename,mime_type", [
        ("photo.jpg", "image/jpeg"),
        ("PHOTO.JPEG", "image/jpeg"),
        ("photo.jpg", "image/jpg"),
        ("photo.jpeg", "image/pjpeg"),
        ("IMG_0001.JPG", "IMAGE/JPG"),
        ("scan.png", "image/x-png"),
        ("scan.png", "image/png"),
        ("clip.mov", "video/quicktime"),
        ("clip.webm", "video/webm"),
    ])
    def test_allowed(self, filename, mime_type):
        validate_file_type(filename, mime_type)

    @pytest.mark.parametrize("filename,mime_type", [
        ("notes.txt", "text/plain"),
        ("photo.jpg", "application/octet-stream"),
        ("script.exe", "image/jpeg"),
        ("noextension", "image/jpeg"),
        ("photo.png", "image/jpeg"),
        ("photo.png", "image/jpg"),
    ])
    def test_rejected(self, filename, mime_type):
        with pytest.raises(UnsupportedFileType):
            validate_file_type(filename, mime_type)


class TestStageUpload:

    async def test_stages_file(self, make_upload, staging_dir, test_image):
        staged = await stage_upload(make_upload(test_image), staging_dir=staging_dir)

        assert staged.path.parent == staging_dir
        assert staged.path.read_bytes() == test_image
        assert staged.size == len(test_image)
        assert staged.original_name == "photo.jpg"
        assert staged.mime_type == "image/jpeg"

        await staged.cleanup()
        assert not staged.path.exists()
        await staged.cleanup()
        print("✓ Upload staged and cleaned up")

    async def test_missing_file(self, staging_dir):
        with pytest.raises(ValidationError, match="Please upload a file"):
            await stage_upload(None, staging_dir=staging_dir)

    async def test_empty_file(self, make_upload, staging_dir):
        with pytest.raises(ValidationError, match="empty"):
            await stage_upload(make_upload(b""), staging_dir=staging_dir)
        assert list(staging_dir.iterdir()) == []

    async def test_declared_size_over_limit(self, make_upload, staging_dir):
        upload = make_upload(b"x", size=60 * 1024 * 1024)
        with pytest.raises(ValidationError, match="File too large"):
            await stage_upload(upload, staging_dir=staging_dir)
        assert not staging_dir.exists() or list(staging_dir.iterdir()) == []

    async def test_streamed_size_over_limit_removes_partial_file(self, make_upload, staging_dir):
        upload = make_upload(b"x" * 4096)
        with pytest.raises(ValidationError, match="File too large"):
            await stage_upload(upload, max_size=1024, staging_dir=staging_dir, chunk_size=512)
        assert list(staging_dir.iterdir()) == []
        print("✓ Oversized stream rejected without leaving a partial file")

    async def test_wrong_type_rejected_before_reading(self, make_upload, staging_dir):
        upload = make_upload(b"hello", filename="notes.txt", content_type="text/plain")
        with pytest.raises(UnsupportedFileType):
            await stage_upload(upload, staging_dir=staging_dir)
        assert not staging_dir.exists()

    async def test_read_error_removes_partial_file(self, make_upload, staging_dir, monkeypatch):
        """An I/O error mid-stream surfaces as a gallery error, not a raw OSError"""
        upload = make_upload(b"x" * 2048)
        original_read = upload.read
        calls = []

        async def flaky_read(size=-1):
            calls.append(size)
            if len(calls) > 1:
                raise OSError("client disconnected")
            return await original_read(size)

        monkeypatch.setattr(upload, "read", flaky_read)

        with pytest.raises(InternalError, match="Failed to read uploaded file"):
            await stage_upload(upload, staging_dir=staging_dir, chunk_size=512)
        assert list(staging_dir.iterdir()) == []
        print("✓ Read failure cleaned up the partial staged file")
