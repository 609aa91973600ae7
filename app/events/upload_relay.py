"""Upload relay lifespan event."""

from app.core.lifespan import BaseEvent
from app.core.logger import LogIcon, logger
from app.core.settings import settings as st
from app.services.relay import RelayConfig, UploadRelay
from app.services.storage import CloudinaryCredentials, CloudinaryProvider


def build_relay(settings=None, executor=None) -> UploadRelay:
    """Wire a Cloudinary-backed relay from settings."""
    settings = settings or st
    credentials = CloudinaryCredentials(
        cloud_name=settings.CLOUDINARY_CLOUD_NAME,
        api_key=settings.CLOUDINARY_API_KEY,
        api_secret=settings.CLOUDINARY_API_SECRET,
    )
    return UploadRelay(RelayConfig.from_settings(settings), CloudinaryProvider(credentials), executor=executor)


class UploadRelayEvent(BaseEvent[UploadRelay]):
    """Builds the relay and owns the scratch directory."""

    name = "upload_relay"

    async def startup(self) -> UploadRelay:
        relay = build_relay(executor=self.state.get("thread_pool"))
        root = relay.scratch.ensure()
        logger.info("Scratch directory ready", icon=LogIcon.FILE, path=str(root), folder=relay.config.folder)
        return relay

    async def shutdown(self, instance: UploadRelay) -> None:
        if removed := instance.scratch.sweep():
            logger.warning("Removed leftover scratch files", icon=LogIcon.CLEANUP, count=removed)
