"""Thread pool lifespan event for blocking staging and provider calls."""

from collections.abc import Generator
from concurrent.futures import ThreadPoolExecutor
from contextlib import contextmanager

from app.core.lifespan import BaseEvent
from app.core.settings import settings as st


def create_thread_pool(max_workers: int | None = None) -> ThreadPoolExecutor:
    """Create the executor that runs blocking upload I/O off the event loop."""
    return ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="upload-io")


@contextmanager
def thread_pool_context(max_workers: int | None = None) -> Generator[ThreadPoolExecutor, None, None]:
    """Context manager for temporary thread pool usage."""
    pool = create_thread_pool(max_workers)
    try:
        yield pool
    finally:
        pool.shutdown(wait=True)


class ThreadPoolEvent(BaseEvent[ThreadPoolExecutor]):
    """Manages ThreadPoolExecutor lifecycle."""

    name = "thread_pool"

    async def startup(self) -> ThreadPoolExecutor:
        return create_thread_pool(max_workers=st.MAX_WORKERS or None)

    async def shutdown(self, instance: ThreadPoolExecutor) -> None:
        instance.shutdown(wait=True)
