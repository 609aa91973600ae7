"""Health check endpoint."""

from app.core.logger import LogIcon, logger
from app.core.router import Router

router = Router(__file__)

HEALTHY = "OK"


async def health_check() -> str:
    logger.debug("Health check requested", icon=LogIcon.HEALTHCHECK)
    return HEALTHY


router.get("/health")(health_check)
