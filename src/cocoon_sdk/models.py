"""Pydantic models and enums for the Cocoon SDK."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator


class Platform(str, Enum):
    """Target platforms of a Cocoon project."""

    ANDROID = "android"
    IOS = "ios"
    MACOS = "osx"
    UBUNTU = "ubuntu"
    WINDOWS = "windows"
    EXPLICIT_DEFAULT = "default"
    IMPLICIT_DEFAULT = ""


class Status(str, Enum):
    """Compilation status of a single platform."""

    CREATED = "created"
    WAITING = "waiting"
    COMPILING = "compiling"
    COMPLETED = "completed"
    DISABLED = "disabled"


def platform_name(platform: Platform | str | None) -> str | None:
    """Return the wire name of a platform given as enum or plain string."""
    if isinstance(platform, Platform):
        return platform.value
    return platform


def from_timestamp(value: int | None) -> datetime | None:
    """Convert an epoch-milliseconds timestamp into an aware datetime."""
    if value is None:
        return None
    return datetime.fromtimestamp(value / 1000, tz=timezone.utc)


class SigningKeyData(BaseModel):
    """Signing key resource returned from the API."""

    id: str = Field(..., description="Signing key ID")
    title: str = Field(default="", description="Human-readable key name")
    platform: str | None = Field(None, description="Platform the key signs for")


class CocoonTemplate(BaseModel):
    """Starter template a project can be created from."""

    model_config = ConfigDict(extra="allow")

    name: str = Field(..., description="Template name")
    description: str = Field(default="", description="Template description")
    url: str | None = Field(None, description="URL of the template sources")


class UserData(BaseModel):
    """Profile of the authenticated user."""

    id: str = Field(..., description="User ID")
    username: str = Field(default="", description="Login name")
    email: str = Field(default="", description="Email address")
    name: str = Field(default="", description="First name")
    lastname: str = Field(default="", description="Last name")
    eula: bool = Field(default=False, description="Whether the EULA was accepted")
    plan: dict[str, Any] = Field(default_factory=dict, description="Payment plan")
    connections: list[str] = Field(default_factory=list, description="Linked accounts")
    keys: dict[str, list[SigningKeyData]] = Field(
        default_factory=dict, description="Signing keys by platform"
    )
    platforms: list[str] = Field(default_factory=list, description="Platforms the plan allows")

    @field_validator("plan", "connections", "keys", "platforms", mode="before")
    @classmethod
    def _null_as_empty(cls, value: Any, info: ValidationInfo) -> Any:
        if value is None:
            return [] if info.field_name in ("connections", "platforms") else {}
        return value


class RepositoryData(BaseModel):
    """Git repository used as a project source."""

    url: str = Field(..., min_length=1, description="Git repository URL")
    branch: str = Field(default="master", description="Branch to check out")


class CocoonVersionPlatform(BaseModel):
    """Engine version bundled with a Cocoon release for one platform."""

    name: str
    version: str


class CocoonVersion(BaseModel):
    """Cocoon release available for compilation."""

    name: str = Field(..., description="Release name")
    default: bool = Field(default=False, description="Whether it is the default release")
    platforms: list[CocoonVersionPlatform] = Field(default_factory=list)


class ProjectData(BaseModel):
    """Project snapshot returned from the API.

    Per-platform maps (``status``, ``download``, ``error``, ``icons``,
    ``splashes``, ``keys``) are keyed by platform wire name.
    """

    id: str = Field(..., description="Project ID")
    title: str = Field(default="", description="Project name")
    package: str = Field(default="", description="Bundle ID")
    version: str = Field(default="", description="Application version")
    build_count: int = Field(default=0, description="Number of compilations")
    origin: dict[str, str] = Field(default_factory=dict, description="Source origin")
    config: str | None = Field(None, description="URL of the config.xml")
    source: str | None = Field(None, description="URL of the source code")
    icon: str | None = Field(None, description="URL of the default icon")
    date_created: int | None = Field(None, description="Creation time (epoch ms)")
    date_updated: int | None = Field(None, description="Last update time (epoch ms)")
    date_compiled: int | None = Field(None, description="Last compilation time (epoch ms)")
    status: dict[str, Status] = Field(default_factory=dict, description="Status per platform")
    download: dict[str, str | None] = Field(
        default_factory=dict, description="Download link per platform"
    )
    devapp: list[str] = Field(default_factory=list, description="Platforms built as DevApp")
    keys: dict[str, SigningKeyData] = Field(default_factory=dict, description="Signing keys")
    error: dict[str, str | None] = Field(default_factory=dict, description="Error per platform")
    icons: dict[str, str] = Field(default_factory=dict, description="Icon URL per platform")
    splashes: dict[str, str] = Field(default_factory=dict, description="Splash URL per platform")
    platforms: list[str] = Field(default_factory=list, description="Platforms to build")

    @field_validator(
        "origin", "status", "download", "devapp", "keys", "error", "icons", "splashes", "platforms",
        mode="before",
    )
    @classmethod
    def _null_as_empty(cls, value: Any, info: ValidationInfo) -> Any:
        if value is None:
            return [] if info.field_name in ("devapp", "platforms") else {}
        return value
