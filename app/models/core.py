"""Core models for request/response handling."""


class UploadFile:
    """Container for uploaded files from multipart/form-data requests.

    Robyn's multipart parser exposes files keyed by their original filename.
    """

    __slots__ = ("files",)

    def __init__(self, files: dict[str, bytes] | None = None) -> None:
        self.files = files or {}

    def __bool__(self) -> bool:
        return bool(self.files)

    def __len__(self) -> int:
        return len(self.files)

    def __iter__(self):
        return iter(self.files.items())

    def get(self, name: str) -> bytes | None:
        """Get file bytes by filename."""
        return self.files.get(name)

    def keys(self) -> list[str]:
        """Get all filenames."""
        return list(self.files.keys())

    def first(self) -> tuple[str, bytes]:
        """Return the first ``(filename, payload)`` pair."""
        return next(iter(self.files.items()))
