"""Upload relay: accept, classify, stage, forward, clean up."""

import asyncio
from concurrent.futures import Executor
from dataclasses import dataclass
from functools import partial
from pathlib import Path

from robyn import status_codes

from app.core.exceptions import RemoteUploadError, StorageProviderError, ValidationError
from app.core.logger import LogIcon, logger
from app.models.upload import IncomingFile, ResourceCategory, UploadResult
from app.services.policy import FILE_TOO_LARGE, AcceptancePolicy
from app.services.staging import ScratchDirectory
from app.services.storage import StorageProvider


@dataclass(frozen=True)
class RelayConfig:
    """Everything the relay needs to know, passed in at construction."""

    scratch_dir: Path
    max_upload_bytes: int = 100 * 1024 * 1024
    folder: str = "yourapp_uploads"
    timeout_seconds: float = 60.0
    retries: int = 2
    retry_backoff_seconds: float = 0.5

    @classmethod
    def from_settings(cls, st) -> "RelayConfig":
        return cls(
            scratch_dir=st.SCRATCH_PATH,
            max_upload_bytes=st.MAX_UPLOAD_BYTES,
            folder=st.UPLOAD_FOLDER,
            timeout_seconds=st.UPLOAD_TIMEOUT_SECONDS,
            retries=st.UPLOAD_RETRIES,
            retry_backoff_seconds=st.UPLOAD_RETRY_BACKOFF_SECONDS,
        )


class UploadRelay:
    """Relays one incoming file per call to the storage provider.

    Every staged file is removed before ``relay`` returns or raises.
    """

    def __init__(
        self,
        config: RelayConfig,
        provider: StorageProvider,
        executor: Executor | None = None,
    ) -> None:
        self.config = config
        self.provider = provider
        self.policy = AcceptancePolicy(config.max_upload_bytes)
        self.scratch = ScratchDirectory(config.scratch_dir)
        self._executor = executor

    def validate(self, file: IncomingFile) -> None:
        """Raise ValidationError unless the policy accepts ``file``."""
        if self.policy.accept(file):
            return
        reason = self.policy.explain_rejection(file)
        logger.info(
            "Upload rejected",
            icon=LogIcon.FORBIDDEN,
            name=file.original_name,
            mime=file.declared_mime_type,
            size=file.size_bytes,
            reason=reason,
        )
        status = (
            status_codes.HTTP_413_REQUEST_ENTITY_TOO_LARGE
            if reason == FILE_TOO_LARGE
            else status_codes.HTTP_400_BAD_REQUEST
        )
        raise ValidationError(reason or "File rejected", status_code=status)

    async def relay(self, file: IncomingFile, payload: bytes, uploader_id: str | None = None) -> UploadResult:
        """Validate, stage and upload ``payload``; the scratch copy never outlives the call."""
        self.validate(file)
        category = self.policy.classify(file)

        async with self.scratch.staged(payload, file.original_name, uploader_id, executor=self._executor) as path:
            file.temp_storage_path = path
            try:
                return await self.upload(path, category, file.original_name)
            finally:
                file.temp_storage_path = None

    async def upload(self, path: Path, category: ResourceCategory, original_name: str) -> UploadResult:
        """Forward a staged file, retrying only transient provider failures."""
        # Raw assets keep their extension in the public_id; other types get it from the format.
        # Same public_id on every attempt: a retry overwrites, never duplicates.
        public_id = path.name if category is ResourceCategory.RAW else path.stem
        attempts = max(self.config.retries, 0) + 1

        for attempt in range(1, attempts + 1):
            try:
                asset = await self._call_provider(path, category, public_id)
            except TimeoutError as ex:
                logger.error("Upload timed out", icon=LogIcon.TIMEOUT, path=path.name, attempt=attempt)
                raise RemoteUploadError(f"Provider timed out after {self.config.timeout_seconds}s") from ex
            except StorageProviderError as ex:
                if ex.transient and attempt < attempts:
                    delay = self.config.retry_backoff_seconds * 2 ** (attempt - 1)
                    logger.warning(
                        "Transient provider error, retrying",
                        icon=LogIcon.RETRY,
                        attempt=attempt,
                        delay=delay,
                        error=str(ex),
                    )
                    await asyncio.sleep(delay)
                    continue
                logger.error("Upload failed", icon=LogIcon.EXHAUSTION, attempt=attempt, error=str(ex))
                raise RemoteUploadError(str(ex)) from ex
            except Exception as ex:
                logger.error("Unexpected provider failure", icon=LogIcon.ERROR, error=repr(ex))
                raise RemoteUploadError(repr(ex)) from ex

            logger.info("Upload complete", icon=LogIcon.UPLOAD, asset=asset.asset_id, attempt=attempt)
            return UploadResult(
                public_url=asset.public_url,
                provider_asset_id=asset.asset_id,
                resource_category=category,
                original_name=original_name,
            )

        raise RemoteUploadError("Upload attempts exhausted")

    async def _call_provider(self, path: Path, category: ResourceCategory, public_id: str):
        loop = asyncio.get_running_loop()
        call = partial(
            self.provider.upload,
            path,
            category=category,
            folder=self.config.folder,
            public_id=public_id,
            timeout=self.config.timeout_seconds,
        )
        logger.info("Uploading to provider", icon=LogIcon.NETWORK, path=path.name, category=category.value)
        return await asyncio.wait_for(loop.run_in_executor(self._executor, call), self.config.timeout_seconds)
