"""Startup and shutdown of the relay's shared resources (thread pool, scratch directory)."""

from abc import ABC, abstractmethod
from collections.abc import Callable, Coroutine
from typing import Any, Generic, TypeVar

from robyn import Robyn

from app.core.logger import LogIcon, logger
from app.core.settings import settings as st

AsyncHandler = Callable[[], Coroutine[Any, Any, None]]


class State:
    """Application state shared with handlers through ``global_dependencies``."""

    __slots__ = ("_data",)

    def __init__(self) -> None:
        object.__setattr__(self, "_data", {})

    def __getattr__(self, name: str) -> Any:
        try:
            return self._data[name]
        except KeyError:
            raise AttributeError(f"State has no attribute '{name}'") from None

    def __setattr__(self, name: str, value: Any) -> None:
        self._data[name] = value

    def __contains__(self, name: str) -> bool:
        return name in self._data

    def __repr__(self) -> str:
        return f"State({sorted(self._data)})"

    def get(self, name: str, default: Any = None) -> Any:
        return self._data.get(name, default)

    def clear(self) -> None:
        self._data.clear()


T = TypeVar("T")


class BaseEvent(ABC, Generic[T]):
    """A resource created at startup and released at shutdown.

    Events start in registration order, so a later event can read what an
    earlier one put on ``state``.
    """

    name: str
    state: State

    @abstractmethod
    async def startup(self) -> T:
        """Initialize and return the event instance."""
        ...

    async def shutdown(self, instance: T) -> None:  # noqa: B027
        """Optional cleanup. Override if cleanup is needed."""

    @classmethod
    def has_shutdown(cls) -> bool:
        """Check if shutdown was overridden."""
        return cls.shutdown is not BaseEvent.shutdown


class Lifespan:
    """Runs registered events on startup and tears them down in reverse."""

    def __init__(self, app: Robyn) -> None:
        self._app = app
        self._event_classes: list[type[BaseEvent[Any]]] = []
        self._events: list[BaseEvent[Any]] = []
        self._state: State | None = None

    def register(self, event_cls: type[BaseEvent[Any]]) -> "Lifespan":
        """Register an event class. Returns self for chaining."""
        self._event_classes.append(event_cls)
        return self

    @property
    def state(self) -> State | None:
        return self._state

    @property
    def startup(self) -> AsyncHandler:
        """Return async startup handler function."""

        async def _startup() -> None:
            logger.info("Starting application lifespan", icon=LogIcon.START, version=st.API_VERSION)
            self._state = State()
            self._events = []

            for event_cls in self._event_classes:
                event = event_cls()
                event.state = self._state

                logger.info(f"Starting event: {event.name}", icon=LogIcon.PROCESSING)
                try:
                    setattr(self._state, event.name, await event.startup())
                except Exception:
                    logger.error(f"Event failed: {event.name}", icon=LogIcon.ERROR)
                    # Release what already started, e.g. the pool when the scratch dir is unusable.
                    await self._teardown()
                    raise
                self._events.append(event)
                logger.info(f"Event ready: {event.name}", icon=LogIcon.SUCCESS)

            self._app.inject_global(state=self._state)
            logger.info("App state ready", icon=LogIcon.COMPLETE)

        return _startup

    @property
    def shutdown(self) -> AsyncHandler:
        """Return async shutdown handler function."""

        async def _shutdown() -> None:
            if not self._state:
                logger.info("No state to cleanup", icon=LogIcon.WARNING)
                return

            logger.info("Cleaning up app state", icon=LogIcon.TOOL)
            await self._teardown()
            logger.info("Cleanup complete", icon=LogIcon.COMPLETE)

        return _shutdown

    async def _teardown(self) -> None:
        """Shut events down in reverse; one failure does not skip the rest."""
        for event in reversed(self._events):
            if event.has_shutdown() and event.name in self._state:
                logger.info(f"Shutting down: {event.name}", icon=LogIcon.PROCESSING)
                try:
                    await event.shutdown(getattr(self._state, event.name))
                except Exception as ex:
                    logger.error(f"Shutdown failed: {event.name}", icon=LogIcon.ERROR, error=repr(ex))
                    continue
                logger.info(f"Shutdown complete: {event.name}", icon=LogIcon.SUCCESS)
        self._events = []
        self._state.clear()


def create_lifespan(app: Robyn) -> Lifespan:
    """Create lifespan manager for event registration."""
    return Lifespan(app)
