"""Scratch directory staging with guaranteed cleanup."""

import asyncio
import re
import time
from collections.abc import AsyncIterator
from concurrent.futures import Executor
from contextlib import asynccontextmanager
from pathlib import Path, PurePath

from app.core.exceptions import StagingError
from app.core.logger import LogIcon, logger

ANONYMOUS_UPLOADER = "anon"

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9_-]")
_STAGED_NAME = re.compile(r"\d+-[A-Za-z0-9_-]+(\.[A-Za-z0-9_-]+)?")
_MAX_NAME_ATTEMPTS = 16


def _safe_uploader(uploader_id: str | None) -> str:
    cleaned = _UNSAFE_CHARS.sub("", uploader_id or "")[:64]
    return cleaned or ANONYMOUS_UPLOADER


def _safe_extension(suggested_name: str) -> str:
    suffix = PurePath(suggested_name).suffix.lower()
    cleaned = _UNSAFE_CHARS.sub("", suffix[1:])[:16]
    return f".{cleaned}" if cleaned else ""


class ScratchDirectory:
    """Per-process scratch space holding payloads between receipt and upload.

    File names are ``<monotonic ns>-<uploader><ext>`` and are created
    exclusively, so concurrent requests never share a path.
    """

    def __init__(self, root: Path) -> None:
        self.root = Path(root)

    def ensure(self) -> Path:
        try:
            self.root.mkdir(parents=True, exist_ok=True)
        except OSError as ex:
            raise StagingError(f"Cannot create scratch directory {self.root}: {ex}") from ex
        return self.root

    def stage(self, payload: bytes, suggested_name: str, uploader_id: str | None = None) -> Path:
        """Write ``payload`` to a fresh file and return its path."""
        root = self.ensure()
        stem = _safe_uploader(uploader_id)
        extension = _safe_extension(suggested_name)

        for _ in range(_MAX_NAME_ATTEMPTS):
            path = root / f"{time.monotonic_ns()}-{stem}{extension}"
            try:
                handle = path.open("xb")
            except FileExistsError:
                continue
            except OSError as ex:
                raise StagingError(f"Cannot create {path.name}: {ex}") from ex

            try:
                with handle:
                    handle.write(payload)
            except OSError as ex:
                self.cleanup(path)
                raise StagingError(f"Cannot write {path.name}: {ex}") from ex

            logger.info("Staged upload", icon=LogIcon.FILE, path=path.name, size=len(payload))
            return path

        raise StagingError(f"No free scratch name for {suggested_name!r}")

    def cleanup(self, path: Path | None) -> None:
        """Remove a staged file. Never raises; a missing file is fine."""
        if path is None:
            return
        try:
            path.unlink(missing_ok=True)
        except OSError as ex:
            logger.warning("Scratch cleanup failed", icon=LogIcon.WARNING, path=str(path), error=str(ex))

    def sweep(self) -> int:
        """Remove leftover staged files. Names this directory never issued are kept."""
        if not self.root.is_dir():
            return 0
        removed = 0
        for path in self.root.iterdir():
            if path.is_file() and _STAGED_NAME.fullmatch(path.name):
                self.cleanup(path)
                removed += 1
        return removed

    @asynccontextmanager
    async def staged(
        self,
        payload: bytes,
        suggested_name: str,
        uploader_id: str | None = None,
        executor: Executor | None = None,
    ) -> AsyncIterator[Path]:
        """Stage on entry, remove on every exit path."""
        loop = asyncio.get_running_loop()
        path = await loop.run_in_executor(executor, self.stage, payload, suggested_name, uploader_id)
        try:
            yield path
        finally:
            self.cleanup(path)
            logger.info("Scratch file released", icon=LogIcon.CLEANUP, path=path.name)
