"""Acceptance and classification policy for incoming uploads.

Both checks are pure functions of the file's declared MIME type, its
extension and its size: no I/O, no state carried between calls.
"""

import mimetypes

from app.models.upload import IncomingFile, ResourceCategory

GENERIC_MIME_TYPE = "application/octet-stream"

DOCUMENT_MIME_TYPES = frozenset(
    {
        "application/pdf",
        "application/msword",
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
        "text/plain",
        "text/csv",
    }
)

MEDIA_MIME_TYPES = frozenset(
    {
        "image/jpeg",
        "image/png",
        "image/gif",
        "image/webp",
        "video/mp4",
        "video/webm",
        "video/quicktime",
        "audio/mpeg",
        "audio/webm",
    }
)

ALLOWED_MIME_TYPES = DOCUMENT_MIME_TYPES | MEDIA_MIME_TYPES

DOCUMENT_EXTENSIONS = frozenset({".pdf", ".doc", ".docx", ".txt", ".csv"})

# Only consulted when the declared MIME type says nothing useful.
ALLOWED_EXTENSIONS = DOCUMENT_EXTENSIONS | frozenset(
    {".jpg", ".jpeg", ".png", ".gif", ".webp", ".mp4", ".webm", ".mov", ".mp3"}
)

FILE_TYPE_NOT_ALLOWED = "File type not allowed"
FILE_TOO_LARGE = "File too large"


def declared_mime_type(filename: str) -> str:
    """MIME type registered for ``filename``, or the generic binary type."""
    mime_type, _ = mimetypes.guess_type(filename, strict=False)
    return mime_type or GENERIC_MIME_TYPE


def _normalize(mime_type: str) -> str:
    return mime_type.split(";", 1)[0].strip().lower()


class AcceptancePolicy:
    """Decides whether a file may be relayed and how the provider should store it."""

    def __init__(self, max_bytes: int) -> None:
        self.max_bytes = max_bytes

    def is_allowed_type(self, file: IncomingFile) -> bool:
        mime_type = _normalize(file.declared_mime_type)
        if mime_type in ALLOWED_MIME_TYPES:
            return True
        if mime_type in ("", GENERIC_MIME_TYPE):
            return file.extension in ALLOWED_EXTENSIONS
        return False

    def is_within_limit(self, file: IncomingFile) -> bool:
        return 0 <= file.size_bytes <= self.max_bytes

    def accept(self, file: IncomingFile) -> bool:
        """True iff the type is allowed and the size is within the ceiling."""
        return self.is_allowed_type(file) and self.is_within_limit(file)

    def explain_rejection(self, file: IncomingFile) -> str | None:
        """Terse reason for rejecting ``file``, or None when it is acceptable."""
        if not self.is_allowed_type(file):
            return FILE_TYPE_NOT_ALLOWED
        if not self.is_within_limit(file):
            return FILE_TOO_LARGE
        return None

    @staticmethod
    def classify(file: IncomingFile) -> ResourceCategory:
        """Documents go up as raw assets, everything else is auto-detected.

        A document-like extension wins over whatever MIME type the client
        declared.
        """
        if file.extension in DOCUMENT_EXTENSIONS:
            return ResourceCategory.RAW
        if _normalize(file.declared_mime_type) in DOCUMENT_MIME_TYPES:
            return ResourceCategory.RAW
        return ResourceCategory.AUTO
