"""Tests for upload acceptance and classification policy."""

import pytest

from app.models.upload import IncomingFile, ResourceCategory
from app.services.policy import (
    FILE_TOO_LARGE,
    FILE_TYPE_NOT_ALLOWED,
    GENERIC_MIME_TYPE,
    AcceptancePolicy,
    declared_mime_type,
)

MIB = 1024 * 1024


def make_file(name: str, mime: str, size: int = 2048) -> IncomingFile:
    return IncomingFile(original_name=name, declared_mime_type=mime, size_bytes=size)


@pytest.fixture
def policy() -> AcceptancePolicy:
    return AcceptancePolicy(max_bytes=100 * MIB)


# -----------------------------------------------------------------------------
# accept Tests
# -----------------------------------------------------------------------------


class TestAccept:
    """Tests for AcceptancePolicy.accept."""

    @pytest.mark.parametrize(
        ("name", "mime"),
        [
            ("photo.jpg", "image/jpeg"),
            ("icon.png", "image/png"),
            ("anim.gif", "image/gif"),
            ("pic.webp", "image/webp"),
            ("report.pdf", "application/pdf"),
            ("letter.docx", "application/vnd.openxmlformats-officedocument.wordprocessingml.document"),
            ("notes.txt", "text/plain"),
            ("table.csv", "text/csv"),
            ("clip.mp4", "video/mp4"),
            ("clip.mov", "video/quicktime"),
            ("song.mp3", "audio/mpeg"),
        ],
    )
    def test_allowed_types(self, policy: AcceptancePolicy, name: str, mime: str) -> None:
        """Verify allow-listed MIME types are accepted."""
        assert policy.accept(make_file(name, mime))

    @pytest.mark.parametrize(
        ("name", "mime"),
        [
            ("malware.exe", "application/x-msdownload"),
            ("script.sh", "application/x-sh"),
            ("page.html", "text/html"),
            ("archive.zip", "application/zip"),
            ("photo.jpg", "application/x-msdownload"),
        ],
    )
    def test_disallowed_types(self, policy: AcceptancePolicy, name: str, mime: str) -> None:
        """Verify MIME types outside the allow-list are rejected whatever the extension."""
        assert not policy.accept(make_file(name, mime))

    def test_mime_type_parameters_ignored(self, policy: AcceptancePolicy) -> None:
        """Verify charset parameters and casing do not affect acceptance."""
        assert policy.accept(make_file("notes.txt", "Text/Plain; charset=utf-8"))

    def test_generic_mime_falls_back_to_extension(self, policy: AcceptancePolicy) -> None:
        """Verify a generic MIME type defers to the extension allow-list."""
        assert policy.accept(make_file("photo.JPG", GENERIC_MIME_TYPE))
        assert policy.accept(make_file("report.pdf", ""))
        assert not policy.accept(make_file("malware.exe", GENERIC_MIME_TYPE))
        assert not policy.accept(make_file("README", GENERIC_MIME_TYPE))

    def test_size_at_ceiling_accepted(self, policy: AcceptancePolicy) -> None:
        """Verify the ceiling itself is inclusive."""
        assert policy.accept(make_file("clip.mp4", "video/mp4", size=100 * MIB))

    @pytest.mark.parametrize("mime", ["image/jpeg", "application/pdf", "video/mp4"])
    def test_oversize_rejected_for_any_type(self, policy: AcceptancePolicy, mime: str) -> None:
        """Verify files over the ceiling are rejected regardless of MIME type."""
        assert not policy.accept(make_file("big.bin", mime, size=150 * MIB))
        assert not policy.accept(make_file("big.bin", mime, size=100 * MIB + 1))


class TestExplainRejection:
    """Tests for AcceptancePolicy.explain_rejection."""

    def test_accepted_file_has_no_reason(self, policy: AcceptancePolicy) -> None:
        assert policy.explain_rejection(make_file("photo.jpg", "image/jpeg")) is None

    def test_type_reason(self, policy: AcceptancePolicy) -> None:
        assert policy.explain_rejection(make_file("malware.exe", "application/x-msdownload")) == FILE_TYPE_NOT_ALLOWED

    def test_size_reason(self, policy: AcceptancePolicy) -> None:
        assert policy.explain_rejection(make_file("clip.mp4", "video/mp4", size=150 * MIB)) == FILE_TOO_LARGE


# -----------------------------------------------------------------------------
# classify Tests
# -----------------------------------------------------------------------------


class TestClassify:
    """Tests for AcceptancePolicy.classify."""

    def test_pdf_is_raw_on_every_call(self, policy: AcceptancePolicy) -> None:
        """Verify classification is deterministic and independent of prior calls."""
        pdf = make_file("report.pdf", "application/pdf")
        results = {policy.classify(pdf)}
        policy.classify(make_file("photo.jpg", "image/jpeg"))
        results.add(AcceptancePolicy(max_bytes=1).classify(pdf))
        results.add(policy.classify(pdf))
        assert results == {ResourceCategory.RAW}

    @pytest.mark.parametrize("name", ["a.pdf", "a.doc", "a.docx", "a.txt", "a.csv", "A.PDF"])
    def test_document_extension_overrides_mime(self, policy: AcceptancePolicy, name: str) -> None:
        """Verify a document-like extension wins over a media MIME type."""
        assert policy.classify(make_file(name, "image/jpeg")) is ResourceCategory.RAW

    def test_document_mime_without_extension(self, policy: AcceptancePolicy) -> None:
        """Verify document MIME types classify as raw when the extension says nothing."""
        assert policy.classify(make_file("upload", "application/pdf")) is ResourceCategory.RAW

    @pytest.mark.parametrize(
        ("name", "mime"),
        [("photo.jpg", "image/jpeg"), ("clip.mp4", "video/mp4"), ("song.mp3", "audio/mpeg")],
    )
    def test_media_is_auto(self, policy: AcceptancePolicy, name: str, mime: str) -> None:
        assert policy.classify(make_file(name, mime)) is ResourceCategory.AUTO


class TestDeclaredMimeType:
    """Tests for declared_mime_type."""

    def test_known_extensions(self) -> None:
        assert declared_mime_type("photo.jpg") == "image/jpeg"
        assert declared_mime_type("report.pdf") == "application/pdf"

    def test_unknown_extension_is_generic(self) -> None:
        assert declared_mime_type("blob.unknownext") == GENERIC_MIME_TYPE
        assert declared_mime_type("noext") == GENERIC_MIME_TYPE
