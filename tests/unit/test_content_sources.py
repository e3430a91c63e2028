"""Tests for content hashing, dimension probing, file sources and the upload descriptor."""

from pathlib import Path

from imgbed.application.dtos.upload import UploadResult
from imgbed.application.services.file_source import BytesFileSource, LocalFileSource
from imgbed.application.services.hash_service import (
    ContentHashService,
    MD5Algorithm,
    SHA256Algorithm,
)
from imgbed.application.services.image_probe import probe_dimensions
from imgbed.shared.utils.generators import generate_unique_name


class TestContentHashService:
    """MD5 by default; streaming and in-memory digests agree."""

    def test_md5_known_digest(self) -> None:
        svc = ContentHashService()
        assert svc.hash_bytes(b"hello") == "5d41402abc4b2a76b9719d911017c592"

    def test_sha256_algorithm(self) -> None:
        svc = ContentHashService(SHA256Algorithm())
        assert svc.hash_bytes(b"hello") == (
            "2cf24dba5fb0a30e26e83b2ac5b9e29e1b161e5c1fa7425e73043362938b9824"
        )

    async def test_compute_streams_in_chunks(self) -> None:
        svc = ContentHashService(MD5Algorithm())
        data = b"a" * (ContentHashService.CHUNK_SIZE * 3 + 17)
        assert await svc.compute(BytesFileSource(data, "x.bin")) == svc.hash_bytes(data)

    async def test_compute_local_file(self, tmp_path: Path) -> None:
        path = tmp_path / "hello.txt"
        path.write_bytes(b"hello")
        digest = await ContentHashService().compute(LocalFileSource(path))
        assert digest == "5d41402abc4b2a76b9719d911017c592"


class TestFileSources:
    def test_bytes_source_reopens_independently(self) -> None:
        source = BytesFileSource(b"abcdef", "cat.png")
        with source.open() as first, source.open() as second:
            assert first.read(3) == b"abc"
            assert second.read() == b"abcdef"
        assert source.size == 6
        assert source.content_type == "image/png"

    def test_local_source_metadata(self, tmp_path: Path) -> None:
        path = tmp_path / "photo.jpg"
        path.write_bytes(b"12345")
        source = LocalFileSource(path, filename="original.jpeg")
        assert source.size == 5
        assert source.filename == "original.jpeg"
        assert source.content_type == "image/jpeg"
        with source.open() as f:
            assert f.read() == b"12345"

    def test_unknown_extension_falls_back_to_octet_stream(self) -> None:
        assert BytesFileSource(b"", "blob.zzz-unknown").content_type == "application/octet-stream"


async def test_probe_dimensions_reads_png(png_bytes: bytes) -> None:
    assert await probe_dimensions(BytesFileSource(png_bytes, "a.png")) == (3, 2)


async def test_probe_dimensions_of_garbage_is_zero() -> None:
    assert await probe_dimensions(BytesFileSource(b"not an image", "a.png")) == (0, 0)


class TestUploadDescriptor:
    """url@@@token encoding used by earlier releases."""

    def test_encode_with_token(self) -> None:
        assert UploadResult("https://x/a.png", "tok").descriptor == "https://x/a.png@@@tok"

    def test_encode_without_token(self) -> None:
        assert UploadResult("https://x/a.png").descriptor == "https://x/a.png"

    def test_decode_bare_url(self) -> None:
        assert UploadResult.from_descriptor("a.png") == UploadResult("a.png", None)

    def test_decode_splits_on_first_separator_only(self) -> None:
        result = UploadResult.from_descriptor("https://x/a.png@@@tok@@@more")
        assert result.url == "https://x/a.png"
        assert result.delete_identifier == "tok@@@more"

    def test_decode_empty_token(self) -> None:
        assert UploadResult.from_descriptor("u@@@").delete_identifier is None


class TestGenerateUniqueName:
    def test_keeps_lowercased_extension(self) -> None:
        assert generate_unique_name("abc", "Cat.PNG") == "abc.png"

    def test_no_extension(self) -> None:
        assert generate_unique_name("abc", "README") == "abc"

    def test_path_components_ignored(self) -> None:
        assert generate_unique_name("abc", "../../dir.d/evil.gif") == "abc.gif"
