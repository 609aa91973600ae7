"""Storage provider adapters."""

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

import cloudinary.exceptions
import cloudinary.uploader
import urllib3.exceptions
from pydantic import SecretStr

from app.core.exceptions import StorageProviderError
from app.models.upload import ResourceCategory

PUBLIC_DELIVERY_TYPE = "upload"
PUBLIC_ACCESS_MODE = "public"

_TRANSIENT_STATUS_CODES = frozenset({420, 429, 500, 502, 503, 504})
_UNEXPECTED_STATUS = re.compile(r"unexpected status code - (\d{3})")


@dataclass(frozen=True)
class ProviderAsset:
    """What the provider reports back for a stored asset."""

    public_url: str
    asset_id: str
    resource_type: str


class StorageProvider(Protocol):
    """Blocking upload call of a hosted media API."""

    def upload(
        self,
        path: Path,
        *,
        category: ResourceCategory,
        folder: str,
        public_id: str,
        timeout: float | None = None,
    ) -> ProviderAsset: ...


@dataclass(frozen=True)
class CloudinaryCredentials:
    cloud_name: str
    api_key: SecretStr
    api_secret: SecretStr


class CloudinaryProvider:
    """Cloudinary ``uploader.upload`` with credentials passed per call."""

    def __init__(self, credentials: CloudinaryCredentials) -> None:
        self._credentials = credentials

    def upload(
        self,
        path: Path,
        *,
        category: ResourceCategory,
        folder: str,
        public_id: str,
        timeout: float | None = None,
    ) -> ProviderAsset:
        options = {
            "resource_type": category.value,
            "folder": folder,
            "public_id": public_id,
            "overwrite": True,
            "type": PUBLIC_DELIVERY_TYPE,
            "access_mode": PUBLIC_ACCESS_MODE,
            "cloud_name": self._credentials.cloud_name,
            "api_key": self._credentials.api_key.get_secret_value(),
            "api_secret": self._credentials.api_secret.get_secret_value(),
        }
        if timeout is not None:
            options["timeout"] = timeout

        try:
            result = cloudinary.uploader.upload(str(path), **options)
        except cloudinary.exceptions.Error as ex:
            status = _status_of(ex)
            raise StorageProviderError(str(ex), status_code=status, transient=_is_transient(ex, status)) from ex

        return _asset_from_result(result)


def _status_of(ex: cloudinary.exceptions.Error) -> int | None:
    match ex:
        case cloudinary.exceptions.BadRequest():
            return 400
        case cloudinary.exceptions.AuthorizationRequired():
            return 401
        case cloudinary.exceptions.NotAllowed():
            return 403
        case cloudinary.exceptions.NotFound():
            return 404
        case cloudinary.exceptions.AlreadyExists():
            return 409
        case cloudinary.exceptions.RateLimited():
            return 420
        case cloudinary.exceptions.GeneralError():
            return 500
    # Statuses the SDK has no class for come back as a bare Error.
    if match := _UNEXPECTED_STATUS.search(str(ex)):
        return int(match.group(1))
    return None


def _network_cause(ex: BaseException) -> BaseException | None:
    cause = ex.__cause__ or ex.__context__
    if isinstance(cause, urllib3.exceptions.MaxRetryError) and cause.reason is not None:
        return cause.reason
    return cause


def _is_transient(ex: cloudinary.exceptions.Error, status: int | None) -> bool:
    if status in _TRANSIENT_STATUS_CODES:
        return True
    cause = _network_cause(ex)
    # A read timeout may have reached the provider: never resubmit it.
    if isinstance(cause, urllib3.exceptions.ReadTimeoutError):
        return False
    return isinstance(cause, (urllib3.exceptions.HTTPError, OSError))


def _asset_from_result(result: dict) -> ProviderAsset:
    if error := result.get("error"):
        message = error.get("message", "provider error") if isinstance(error, dict) else str(error)
        status = result.get("http_code")
        raise StorageProviderError(message, status_code=status, transient=status in _TRANSIENT_STATUS_CODES)

    url = result.get("secure_url") or result.get("url")
    if not url:
        raise StorageProviderError("Provider response carries no URL")

    return ProviderAsset(
        public_url=url,
        asset_id=result.get("public_id", ""),
        resource_type=result.get("resource_type", ""),
    )
