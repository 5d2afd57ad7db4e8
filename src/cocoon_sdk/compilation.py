"""Compilation status of a project and polling until it is complete."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass
from types import MappingProxyType

from .config import ACCESS_TOKEN_PARAMETER, DEFAULT_MAX_WAIT_TIME, DEFAULT_POLL_INTERVAL
from .exceptions import CompilationTimeoutError
from .models import Platform, ProjectData, Status, platform_name

logger = logging.getLogger(__name__)

PollCallback = Callable[..., None]
SnapshotFetcher = Callable[[], Awaitable[ProjectData]]

_IN_PROGRESS = (Status.WAITING, Status.COMPILING)


class _CallbackError(Exception):
    """Carries an exception raised by a caller's polling callback."""

    def __init__(self, error: Exception) -> None:
        super().__init__(error)
        self.error = error


@dataclass(frozen=True)
class Compilation:
    """Compilation of one platform, taken from a project snapshot."""

    platform: str
    status: Status
    error: str = ""
    download_link: str | None = None
    devapp: bool = False

    @classmethod
    def from_project_data(cls, data: ProjectData, platform: str) -> Compilation:
        """Build the compilation of ``platform`` from ``data``.

        A platform without an explicit status is ``DISABLED`` once the project
        has compiled at least once, and ``CREATED`` otherwise.
        """
        status = data.status.get(platform)
        if status is None:
            status = Status.DISABLED if data.date_compiled else Status.CREATED

        return cls(
            platform=platform,
            status=status,
            error=data.error.get(platform) or "",
            download_link=data.download.get(platform) or None,
            devapp=platform in data.devapp,
        )

    def is_devapp(self) -> bool:
        return self.devapp

    def is_erred(self) -> bool:
        return bool(self.error)

    def is_ready(self) -> bool:
        """True if the compilation finished without an error."""
        return self.status is Status.COMPLETED and not self.is_erred()

    def download_url(self, access_token: str) -> str | None:
        """Download link authorized with ``access_token``, if there is a build."""
        if not self.download_link:
            return None
        separator = "&" if "?" in self.download_link else "?"
        return f"{self.download_link}{separator}{ACCESS_TOKEN_PARAMETER}={access_token}"


class PollHandle:
    """Handle on a polling loop started by :meth:`CompilationTracker.refresh_until_completed`."""

    def __init__(self, task: asyncio.Task[bool], deadline: float) -> None:
        self._task = task
        self._deadline = deadline

    @property
    def deadline(self) -> float:
        """Clock value after which the loop gives up."""
        return self._deadline

    def cancel(self) -> bool:
        """Stop polling. The callback is not invoked again."""
        return self._task.cancel()

    def cancelled(self) -> bool:
        return self._task.cancelled()

    def done(self) -> bool:
        return self._task.done()

    async def wait(self) -> bool | None:
        """Wait for the loop to end.

        Returns:
            True if every platform finished, False on error or timeout, None
            if the loop was cancelled.
        """
        try:
            return await self._task
        except asyncio.CancelledError:
            if self._task.cancelled():
                return None
            raise


class CompilationTracker:
    """Tracks the compilations of a project across refreshes.

    State is rebuilt wholesale from each snapshot; nothing is carried over
    between refreshes.

    Args:
        fetch_snapshot: Coroutine function returning the latest project data.
        data: Initial snapshot.
        project_id: Project being tracked, used in errors and logs.
        clock: Monotonic clock in seconds.
        sleep: Coroutine function used to wait between polls.
    """

    def __init__(
        self,
        fetch_snapshot: SnapshotFetcher,
        data: ProjectData | None = None,
        *,
        project_id: str | None = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[object]] = asyncio.sleep,
    ) -> None:
        self._fetch_snapshot = fetch_snapshot
        self._project_id = project_id or (data.id if data else None)
        self._clock = clock
        self._sleep = sleep
        self._compilations: dict[str, Compilation] = {}
        if data is not None:
            self.update(data)

    @property
    def compilations(self) -> Mapping[str, Compilation]:
        """Read-only ``platform -> Compilation`` mapping."""
        return MappingProxyType(self._compilations)

    def update(self, data: ProjectData) -> None:
        """Replace every compilation from a new snapshot."""
        self._compilations = {
            platform: Compilation.from_project_data(data, platform) for platform in data.platforms
        }

    def get(self, platform: Platform | str) -> Compilation | None:
        return self._compilations.get(platform_name(platform))

    def is_compiling(self) -> bool:
        """True if at least one platform is waiting or compiling."""
        return any(c.status in _IN_PROGRESS for c in self._compilations.values())

    def is_ready(self, platform: Platform | str) -> bool:
        compilation = self.get(platform)
        return compilation is not None and compilation.is_ready()

    async def refresh(self) -> ProjectData:
        """Fetch a new snapshot and rebuild the compilations from it."""
        data = await self._fetch_snapshot()
        self.update(data)
        return data

    async def _poll_until(
        self,
        deadline: float,
        interval: float,
        max_wait_time: float,
        on_pending: Callable[[], None] | None = None,
    ) -> bool:
        attempt = 0
        while True:
            attempt += 1
            await self.refresh()
            if not self.is_compiling():
                logger.info(
                    f"Project {self._project_id}: compilations finished after {attempt} polls"
                )
                return True

            if self._clock() >= deadline:
                logger.warning(
                    f"Project {self._project_id}: still compiling after {max_wait_time}s, giving up"
                )
                raise CompilationTimeoutError(
                    project_id=self._project_id, max_wait_time=max_wait_time
                )

            logger.debug(f"Project {self._project_id}: still compiling, next poll in {interval}s")
            if on_pending is not None:
                on_pending()
            await self._sleep(interval)

    async def wait_until_completed(
        self,
        interval: float = DEFAULT_POLL_INTERVAL,
        max_wait_time: float = DEFAULT_MAX_WAIT_TIME,
        callback: PollCallback | None = None,
    ) -> bool:
        """Poll until no platform is compiling.

        ``callback(False)``, when given, is invoked after every poll that finds
        a platform still compiling.

        Returns:
            True once every platform reached a terminal status.

        Raises:
            CompilationTimeoutError: If still compiling after ``max_wait_time``.
            CocoonError: If a refresh fails. Refreshes are not retried.
        """
        deadline = self._clock() + max_wait_time
        on_pending = (lambda: callback(False)) if callback is not None else None
        return await self._poll_until(deadline, interval, max_wait_time, on_pending)

    def refresh_until_completed(
        self,
        callback: PollCallback,
        interval: float = DEFAULT_POLL_INTERVAL,
        max_wait_time: float = DEFAULT_MAX_WAIT_TIME,
    ) -> PollHandle:
        """Schedule polling on the running event loop.

        ``callback(False)`` is invoked after every poll that finds a platform
        still compiling and ``callback(True)`` once all are done. A refresh
        error or an expired deadline ends the loop with
        ``callback(False, error)``.
        Exceptions raised by ``callback`` itself end the loop and propagate
        from :meth:`PollHandle.wait`.

        Must be called from a coroutine or callback of a running loop.
        """
        deadline = self._clock() + max_wait_time

        def on_pending() -> None:
            try:
                callback(False)
            except Exception as e:
                raise _CallbackError(e) from e

        async def run() -> bool:
            try:
                await self._poll_until(deadline, interval, max_wait_time, on_pending)
            except _CallbackError as e:
                raise e.error from None
            except Exception as e:
                callback(False, e)
                return False
            callback(True)
            return True

        task = asyncio.get_running_loop().create_task(run())
        return PollHandle(task, deadline)
