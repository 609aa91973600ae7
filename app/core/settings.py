"""Unified settings for robyn-upload-relay."""

import tomllib
from pathlib import Path
from typing import ClassVar, Literal

from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


def read_pyproject(pyproject_path: Path) -> dict:
    """Read pyproject.toml into a dict."""
    with pyproject_path.open("rb") as file_handle:
        return tomllib.load(file_handle)


def get_version(base_dir: Path) -> str:
    """Get version from git tags or fallback to package metadata."""
    try:
        import git

        repo = git.Repo(base_dir, search_parent_directories=True)
        latest_tag = max(repo.tags, key=lambda t: t.commit.committed_datetime, default=None)
        return str(latest_tag) if latest_tag else "0.0.0"
    except Exception:
        try:
            import importlib.metadata

            return importlib.metadata.version("robyn-upload-relay")
        except Exception:
            return "0.0.0"


class Settings(BaseSettings):
    """Unified settings for robyn-upload-relay service."""

    DEBUG: bool = True
    ENVIRONMENT: Literal["DEV", "PROD"] = "DEV"

    # ClassVar to prevent Pydantic from trying to load from env
    BASE_DIR: ClassVar[Path] = Path(__file__).parent.parent.parent
    PROJECT: ClassVar[dict] = read_pyproject(BASE_DIR / "pyproject.toml")
    API_NAME: ClassVar[str] = PROJECT.get("project", {}).get("name", "robyn-upload-relay")
    API_DESCRIPTION: ClassVar[str] = PROJECT.get("project", {}).get("description", "Upload relay")
    API_VERSION: ClassVar[str] = get_version(BASE_DIR)

    # Server
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 4000
    ALLOWED_ORIGINS: list[str] = ["*"]

    # Cloudinary
    CLOUDINARY_CLOUD_NAME: str = "your_cloud_name"
    CLOUDINARY_API_KEY: SecretStr = SecretStr("your_api_key")
    CLOUDINARY_API_SECRET: SecretStr = SecretStr("your_api_secret")

    # Uploads
    SCRATCH_PATH: Path = BASE_DIR / "temp_uploads"
    MAX_UPLOAD_BYTES: int = 100 * 1024 * 1024
    UPLOAD_FOLDER: str = "yourapp_uploads"
    UPLOAD_TIMEOUT_SECONDS: float = 60.0
    UPLOAD_RETRIES: int = 2
    UPLOAD_RETRY_BACKOFF_SECONDS: float = 0.5

    # Workers
    MAX_WORKERS: int = 4

    @property
    def api_url(self) -> str:
        return f"http://{self.API_HOST}:{self.API_PORT}"

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")


settings = Settings()  # type: ignore
