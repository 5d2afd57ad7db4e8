"""Shared fixtures and configuration for tests."""

from __future__ import annotations

import asyncio
from typing import Any

import pytest
import respx

from cocoon_sdk.models import ProjectData

# ==================== MOCK DATA ====================

CONFIG_XML = """<?xml version="1.0" encoding="UTF-8"?>
<widget xmlns="http://www.w3.org/ns/widgets" xmlns:cdv="http://cordova.apache.org/ns/1.0" \
id="com.example.game" version="1.0.0" android-versionCode="7">
    <name>Space Game</name>
    <description>A sample game</description>
    <content src="index.html"/>
    <preference name="Orientation" value="portrait"/>
    <preference name="cocoon-version" value="latest"/>
    <plugin name="cordova-plugin-facebook" spec="~1.0.0">
        <variable name="APP_ID" value="1234"/>
    </plugin>
    <engine name="ios" spec="4.1.0"/>
    <platform name="ios">
        <preference name="Orientation" value="landscape"/>
    </platform>
    <platform name="android">
        <preference name="enabled" value="false"/>
    </platform>
</widget>
"""

MINIMAL_XML = """<widget xmlns="http://www.w3.org/ns/widgets" id="com.example.min" version="0.1.0">
    <name>Minimal</name>
</widget>
"""

LEGACY_XML = """<?xml version="1.0" encoding="UTF-8"?>
<widget xmlns="http://www.w3.org/ns/widgets" xmlns:cocoon="http://cocoon.io/ns/1.0" \
id="com.example.legacy" version="2.0.0">
    <name>Legacy</name>
    <cocoon:platform name="ios" version="3.9.0" enabled="true">
        <preference name="Orientation" value="portrait"/>
    </cocoon:platform>
    <cocoon:platform name="android" enabled="false"/>
    <cocoon:plugin name="com.example.ads" version="1.0.0">
        <param name="API_KEY" value="xyz"/>
        <param name="API_SECRET" value="abc"/>
    </cocoon:plugin>
    <cocoon:plugin name="https://github.com/example/plugin.git" version="2.0.0"/>
</widget>
"""

GIT_PLUGIN_URL = "https://github.com/example/plugin.git"


def make_project_dict(
    project_id: str = "prj_test123",
    title: str = "Space Game",
    package: str = "com.example.game",
    version: str = "1.0.0",
    platforms: list[str] | None = None,
    status: dict[str, str] | None = None,
    error: dict[str, str] | None = None,
    download: dict[str, str] | None = None,
    devapp: list[str] | None = None,
    keys: dict[str, Any] | None = None,
    date_created: int | None = 1500000000000,
    date_updated: int | None = 1500000600000,
    date_compiled: int | None = None,
) -> dict[str, Any]:
    """Create a mock project dictionary."""
    return {
        "id": project_id,
        "title": title,
        "package": package,
        "version": version,
        "build_count": 0,
        "origin": {"type": "zip"},
        "config": f"https://storage.cocoon.io/{project_id}/config.xml",
        "source": f"https://storage.cocoon.io/{project_id}/source.zip",
        "icon": None,
        "date_created": date_created,
        "date_updated": date_updated,
        "date_compiled": date_compiled,
        "status": status or {},
        "download": download or {},
        "devapp": devapp,
        "keys": keys or {},
        "error": error or {},
        "icons": {},
        "splashes": {},
        "platforms": platforms if platforms is not None else ["ios", "android"],
    }


def make_project_data(**kwargs: Any) -> ProjectData:
    """Create a mock ProjectData object."""
    return ProjectData.model_validate(make_project_dict(**kwargs))


class FakeClock:
    """Manual clock whose ``sleep`` advances time instead of waiting."""

    def __init__(self, now: float = 0.0) -> None:
        self.now = now
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds
        await asyncio.sleep(0)


class SnapshotSequence:
    """Snapshot fetcher returning queued snapshots, repeating the last one."""

    def __init__(self, *snapshots: ProjectData | Exception) -> None:
        self._snapshots = list(snapshots)
        self.calls = 0

    async def __call__(self) -> ProjectData:
        index = min(self.calls, len(self._snapshots) - 1)
        self.calls += 1
        snapshot = self._snapshots[index]
        if isinstance(snapshot, Exception):
            raise snapshot
        return snapshot


# ==================== FIXTURES ====================


@pytest.fixture
def mock_project_data() -> dict[str, Any]:
    """Fixture for a mock project dictionary."""
    return make_project_dict()


@pytest.fixture
def api_base_url() -> str:
    """Base URL for API mocks."""
    return "https://api.cocoon.io/v1"


@pytest.fixture
def respx_mock():
    """Fixture for respx mocking."""
    with respx.mock(assert_all_called=False) as mock:
        yield mock


@pytest.fixture
def mock_access_token() -> str:
    """Mock access token for testing."""
    return "tok_test_12345678901234567890"
