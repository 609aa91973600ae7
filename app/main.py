"""robyn-upload-relay - stage multipart uploads and forward them to Cloudinary."""

from robyn import ALLOW_CORS, Robyn

from app.api.health import router as health_router
from app.api.home import router as home_router
from app.api.upload import router as upload_router
from app.core.lifespan import create_lifespan
from app.core.logger import LogIcon, logger
from app.core.settings import settings as st
from app.events.thread_pool import ThreadPoolEvent
from app.events.upload_relay import UploadRelayEvent
from app.middlewares.base import MiddlewareHandler
from app.middlewares.files import FileUploadOpenAPIMiddleware

app = Robyn(__file__)

ALLOW_CORS(app, origins=st.ALLOWED_ORIGINS)

# Lifespan events, started in order
lifespan = create_lifespan(app)
lifespan.register(ThreadPoolEvent).register(UploadRelayEvent)

app.startup_handler(lifespan.startup)
app.shutdown_handler(lifespan.shutdown)

# Routers
app.include_router(home_router)
app.include_router(health_router)
app.include_router(upload_router)

# Middlewares
middlewares = MiddlewareHandler(app)
middlewares.register(FileUploadOpenAPIMiddleware())


def main() -> None:
    logger.info(f"Starting {st.API_NAME}", icon=LogIcon.START, host=st.API_HOST, port=st.API_PORT)
    app.start(host=st.API_HOST, port=st.API_PORT)


if __name__ == "__main__":
    main()
