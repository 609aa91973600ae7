"""Upload domain models."""

from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path, PurePath

from pydantic import BaseModel, ConfigDict


class ResourceCategory(StrEnum):
    """Storage provider resource type requested for an upload."""

    AUTO = "auto"
    RAW = "raw"


@dataclass
class IncomingFile:
    """A parsed multipart file, owned by a single request."""

    original_name: str
    declared_mime_type: str
    size_bytes: int
    temp_storage_path: Path | None = None

    @property
    def extension(self) -> str:
        return PurePath(self.original_name).suffix.lower()

    @property
    def is_staged(self) -> bool:
        return self.temp_storage_path is not None


class UploadResult(BaseModel):
    """Outcome of a successful remote upload."""

    model_config = ConfigDict(frozen=True)

    public_url: str
    provider_asset_id: str
    resource_category: ResourceCategory
    original_name: str


class UploadResponse(BaseModel):
    """JSON body returned by ``POST /upload``."""

    url: str
    name: str
    public_id: str
    resource_type: ResourceCategory

    @classmethod
    def from_result(cls, result: UploadResult) -> "UploadResponse":
        return cls(
            url=result.public_url,
            name=result.original_name,
            public_id=result.provider_asset_id,
            resource_type=result.resource_category,
        )
