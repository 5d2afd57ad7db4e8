"""Project facade tying the REST client, config.xml and compilations together."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from datetime import datetime
from typing import TYPE_CHECKING

from .compilation import Compilation, CompilationTracker, PollCallback, PollHandle
from .config import DEFAULT_MAX_WAIT_TIME, DEFAULT_POLL_INTERVAL
from .config_document import ConfigDocument
from .models import Platform, ProjectData, SigningKeyData, from_timestamp, platform_name

if TYPE_CHECKING:
    from .client import Cocoon

logger = logging.getLogger(__name__)


class Project:
    """A Cocoon project as last fetched from the API."""

    def __init__(self, data: ProjectData, client: Cocoon) -> None:
        self._client = client
        self._config: ConfigDocument | None = None
        self._data = data
        self._keys: dict[str, SigningKeyData] = {}
        self._tracker = CompilationTracker(self._fetch_snapshot, project_id=data.id)
        self._init(data)

    def _apply(self, data: ProjectData) -> None:
        self._data = data
        self._keys = dict(data.keys)
        self._config = None

    def _init(self, data: ProjectData) -> None:
        self._apply(data)
        self._tracker.update(data)

    async def _fetch_snapshot(self) -> ProjectData:
        data = await self._client.get_project_data(self.id)
        self._apply(data)
        return data

    # ==================== SNAPSHOT FIELDS ====================

    @property
    def data(self) -> ProjectData:
        return self._data

    @property
    def id(self) -> str:
        return self._data.id

    @property
    def name(self) -> str:
        return self._data.title

    @property
    def bundle_id(self) -> str:
        return self._data.package

    @property
    def version(self) -> str:
        return self._data.version

    @property
    def source_url(self) -> str | None:
        return self._data.source

    @property
    def origin(self) -> dict[str, str]:
        return self._data.origin

    @property
    def errors(self) -> dict[str, str]:
        return self._data.error

    @property
    def keys(self) -> Mapping[str, SigningKeyData]:
        """Signing keys assigned to the project, by platform."""
        return self._keys

    @property
    def date_created(self) -> datetime | None:
        return from_timestamp(self._data.date_created)

    @property
    def date_updated(self) -> datetime | None:
        return from_timestamp(self._data.date_updated)

    @property
    def date_compiled(self) -> datetime | None:
        return from_timestamp(self._data.date_compiled)

    def get_last_use(self) -> datetime | None:
        """Most recent of the creation, update and compilation dates."""
        dates = [d for d in (self.date_created, self.date_compiled, self.date_updated) if d]
        return max(dates) if dates else None

    # ==================== COMPILATIONS ====================

    @property
    def compilations(self) -> Mapping[str, Compilation]:
        return self._tracker.compilations

    @property
    def tracker(self) -> CompilationTracker:
        return self._tracker

    def is_compiling(self) -> bool:
        return self._tracker.is_compiling()

    async def refresh(self) -> None:
        """Fetch the project again. The cached config.xml is dropped."""
        await self._tracker.refresh()

    def refresh_until_completed(
        self,
        callback: PollCallback,
        interval: float = DEFAULT_POLL_INTERVAL,
        max_wait_time: float = DEFAULT_MAX_WAIT_TIME,
    ) -> PollHandle:
        """Refresh periodically until every compilation finished.

        See :meth:`CompilationTracker.refresh_until_completed`.
        """
        return self._tracker.refresh_until_completed(callback, interval, max_wait_time)

    async def wait_until_completed(
        self,
        interval: float = DEFAULT_POLL_INTERVAL,
        max_wait_time: float = DEFAULT_MAX_WAIT_TIME,
        callback: PollCallback | None = None,
    ) -> bool:
        return await self._tracker.wait_until_completed(interval, max_wait_time, callback)

    async def compile(self) -> None:
        await self._client.compile(self.id)

    async def compile_devapp(self) -> None:
        await self._client.compile_devapp(self.id)

    # ==================== CONFIG.XML ====================

    async def get_config_xml(self) -> ConfigDocument:
        """The project's config.xml, fetched once and cached until the next refresh."""
        if self._config is None:
            self._config = ConfigDocument(await self._client.get_config_xml(self.id))
        return self._config

    async def update_config_xml(self, xml: str) -> None:
        """Upload ``xml`` as the new config.xml of the project."""
        data = await self._client.update_config_xml(self.id, xml)
        self._init(data)
        self._config = ConfigDocument(xml)

    async def refresh_cocoon(self) -> None:
        """Upload the current state of the cached config.xml."""
        document = await self.get_config_xml()
        await self.update_config_xml(document.xml())

    async def set_name(self, value: str) -> None:
        (await self.get_config_xml()).set_name(value)
        self._data = self._data.model_copy(update={"title": value})

    async def set_bundle_id(self, value: str) -> None:
        (await self.get_config_xml()).set_bundle_id(value)
        self._data = self._data.model_copy(update={"package": value})

    async def set_version(self, value: str) -> None:
        (await self.get_config_xml()).set_version(value)
        self._data = self._data.model_copy(update={"version": value})

    # ==================== SOURCES ====================

    async def update_zip(self, file: bytes) -> None:
        self._init(await self._client.update_project_zip(self.id, file))

    async def update_url(self, url: str) -> None:
        self._init(await self._client.update_project_url(self.id, url))

    async def update_repository(self, url: str, branch: str = "master") -> None:
        self._init(await self._client.update_project_repository(self.id, url, branch))

    async def get_icon(self, platform: Platform | str = Platform.IMPLICIT_DEFAULT) -> bytes:
        return await self._client.get_icon(self.id, platform)

    async def set_icon(self, icon: bytes, platform: Platform | str | None = None) -> None:
        await self._client.set_icon(self.id, icon, platform)

    async def get_splash(self, platform: Platform | str = Platform.EXPLICIT_DEFAULT) -> bytes:
        return await self._client.get_splash(self.id, platform)

    async def set_splash(self, splash: bytes, platform: Platform | str | None = None) -> None:
        await self._client.set_splash(self.id, splash, platform)

    # ==================== SIGNING KEYS ====================

    async def assign_signing_key(self, signing_key: SigningKeyData) -> None:
        """Assign a key to its platform; it replaces any key already assigned there."""
        await self._client.assign_signing_key(self.id, signing_key.id)
        if signing_key.platform:
            self._keys[signing_key.platform] = signing_key

    async def remove_signing_key(self, platform: Platform | str) -> None:
        name = platform_name(platform)
        key = self._keys.get(name)
        if key is None:
            logger.warning(f"There is no signing key for the {name} platform in project {self.id}")
            return
        await self._client.remove_signing_key(self.id, key.id)
        del self._keys[name]

    async def delete(self) -> None:
        await self._client.delete_project(self.id)
