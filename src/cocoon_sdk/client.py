"""Async HTTP client for the Cocoon API."""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any, Literal

import httpx

if TYPE_CHECKING:
    from .project import Project

from .auth import AuthProvider
from .config import API_URL, DEFAULT_TIMEOUT, USER_AGENT
from .exceptions import ConnectionError, NotFoundError, TimeoutError, raise_for_status
from .models import (
    CocoonTemplate,
    CocoonVersion,
    Platform,
    ProjectData,
    RepositoryData,
    SigningKeyData,
    UserData,
    platform_name,
)

logger = logging.getLogger(__name__)

ResponseKind = Literal["json", "text", "bytes"]

FileContent = bytes | str


class Cocoon:
    """Async client for the Cocoon build service.

    Example:
        ```python
        import asyncio
        from cocoon_sdk import Cocoon

        async def main():
            async with Cocoon(access_token="...") as client:
                project = await client.get_project("abc123")
                doc = await project.get_config_xml()
                doc.set_version("1.2.0")
                await project.refresh_cocoon()
                await project.compile()
                await project.wait_until_completed()

        asyncio.run(main())
        ```
    """

    def __init__(
        self,
        access_token: str | None = None,
        base_url: str = API_URL,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        """Initialize the Cocoon client.

        Args:
            access_token: OAuth access token. If not provided, will be read
                from the COCOON_ACCESS_TOKEN env var.
            base_url: Base URL of the Cocoon API.
            timeout: Default request timeout in seconds.
        """
        self._base_url = base_url.rstrip("/") + "/"
        self._timeout = timeout
        self._auth = AuthProvider(access_token=access_token)
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> Cocoon:
        await self._ensure_client()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    @property
    def auth(self) -> AuthProvider:
        return self._auth

    async def _ensure_client(self) -> httpx.AsyncClient:
        """Ensure the HTTP client is initialized."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self._base_url,
                timeout=httpx.Timeout(self._timeout),
                headers={"User-Agent": USER_AGENT},
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _request(
        self,
        method: str,
        endpoint: str,
        json_data: Any = None,
        form: dict[str, str] | None = None,
        files: dict[str, tuple[str, FileContent]] | None = None,
        expect: ResponseKind = "json",
    ) -> Any:
        """Make a request to the API.

        Args:
            method: HTTP method.
            endpoint: Endpoint relative to the base URL.
            json_data: JSON body data.
            form: Multipart form fields sent along with ``files``.
            files: Multipart files as ``field -> (filename, content)``.
            expect: How to decode a successful response body.

        Returns:
            Parsed JSON, text or raw bytes depending on ``expect``.

        Raises:
            APIError: On API errors.
            ConnectionError: On connection errors.
            TimeoutError: On timeout.
        """
        client = await self._ensure_client()
        logger.debug(f"{method} {endpoint}")

        try:
            response = await client.request(
                method,
                endpoint,
                headers=self._auth.get_headers(),
                json=json_data,
                data=form,
                files=files,
            )
        except httpx.ConnectError as e:
            raise ConnectionError(f"Cannot connect to Cocoon API: {e}", e) from e
        except httpx.TimeoutException as e:
            raise TimeoutError(f"Request timed out after {self._timeout}s", self._timeout) from e

        if response.status_code >= 400:
            try:
                data = response.json()
            except ValueError:
                data = {"message": response.text}
            raise_for_status(response.status_code, data if isinstance(data, dict) else None)

        if expect == "bytes":
            return response.content
        if expect == "text":
            return response.text
        if response.status_code == 204 or not response.content:
            return {}
        return response.json()

    def _project(self, data: Any) -> Project:
        from .project import Project

        return Project(ProjectData.model_validate(data), self)

    # ==================== PROJECTS ====================

    async def get_project_data(self, project_id: str) -> ProjectData:
        """Fetch the snapshot of a project.

        Raises:
            NotFoundError: If the project does not exist.
        """
        data = await self._request("GET", f"project/{project_id}")
        return ProjectData.model_validate(data)

    async def get_project(self, project_id: str) -> Project:
        return self._project(await self._request("GET", f"project/{project_id}"))

    async def list_projects_data(self) -> list[ProjectData]:
        data = await self._request("GET", "project/")
        return [ProjectData.model_validate(p) for p in data or []]

    async def list_projects(self) -> list[Project]:
        from .project import Project

        return [Project(data, self) for data in await self.list_projects_data()]

    async def create_project_from_zip(self, file: bytes) -> Project:
        """Create a project from a zip of its source code (may include a config.xml)."""
        data = await self._request("POST", "project/", files={"file": ("sourceURL.zip", file)})
        return self._project(data)

    async def create_project_from_url(self, url: str) -> Project:
        data = await self._request("POST", "project/url/", json_data={"url": url})
        return self._project(data)

    async def create_project_from_repository(self, url: str, branch: str = "master") -> Project:
        repo = RepositoryData(url=url, branch=branch)
        data = await self._request("POST", "project/github/", json_data=repo.model_dump())
        return self._project(data)

    async def update_project_zip(self, project_id: str, file: bytes) -> ProjectData:
        data = await self._request(
            "PUT", f"project/{project_id}", files={"file": ("sourceURL.zip", file)}
        )
        return ProjectData.model_validate(data)

    async def update_project_url(self, project_id: str, url: str) -> ProjectData:
        data = await self._request("PUT", f"project/{project_id}/url/", json_data={"url": url})
        return ProjectData.model_validate(data)

    async def update_project_repository(
        self, project_id: str, url: str, branch: str = "master"
    ) -> ProjectData:
        repo = RepositoryData(url=url, branch=branch)
        await self._request("PUT", f"project/{project_id}/github/", json_data=repo.model_dump())
        return await self.get_project_data(project_id)

    async def delete_project(self, project_id: str) -> None:
        await self._request("DELETE", f"project/{project_id}")

    # ==================== CONFIG.XML ====================

    async def get_config_xml(self, project_id: str) -> str:
        """Fetch the raw config.xml text of a project."""
        return await self._request("GET", f"project/{project_id}/config", expect="text")

    async def update_config_xml(self, project_id: str, xml: str) -> ProjectData:
        """Upload a new config.xml and return the refreshed project snapshot."""
        await self._request(
            "PUT", f"project/{project_id}/config", files={"file": ("config.xml", xml)}
        )
        return await self.get_project_data(project_id)

    # ==================== COMPILATION ====================

    async def compile(self, project_id: str) -> None:
        """Place a project in the compilation queue."""
        await self._request("POST", f"project/{project_id}/compile/")

    async def compile_devapp(self, project_id: str) -> None:
        """Place a DevApp build of a project in the compilation queue."""
        await self._request("POST", f"project/{project_id}/devapp/")

    async def list_cocoon_versions(self) -> list[CocoonVersion]:
        data = await self._request("GET", "cocoon/versions/")
        return [CocoonVersion.model_validate(v) for v in data or []]

    async def list_cocoon_templates(self) -> list[CocoonTemplate]:
        data = await self._request("GET", "cocoon/templates/")
        return [CocoonTemplate.model_validate(t) for t in data or []]

    # ==================== USER ====================

    async def get_user(self) -> UserData:
        """Fetch the profile of the user owning the access token."""
        return UserData.model_validate(await self._request("GET", "me/"))

    # ==================== ICONS & SPLASHES ====================

    async def get_icon(
        self, project_id: str, platform: Platform | str = Platform.IMPLICIT_DEFAULT
    ) -> bytes:
        return await self._request(
            "GET", f"project/{project_id}/icon/{platform_name(platform)}", expect="bytes"
        )

    async def set_icon(
        self, project_id: str, icon: bytes, platform: Platform | str | None = None
    ) -> None:
        """Upload an icon (2048x2048 PNG recommended) for a platform or the default."""
        name = platform_name(platform) or Platform.EXPLICIT_DEFAULT.value
        await self._request(
            "POST", f"project/{project_id}/icon/{name}", files={"file": ("icon.png", icon)}
        )

    async def get_splash(
        self, project_id: str, platform: Platform | str = Platform.EXPLICIT_DEFAULT
    ) -> bytes:
        return await self._request(
            "GET", f"project/{project_id}/splash/{platform_name(platform)}", expect="bytes"
        )

    async def set_splash(
        self, project_id: str, splash: bytes, platform: Platform | str | None = None
    ) -> None:
        name = platform_name(platform) or Platform.EXPLICIT_DEFAULT.value
        await self._request(
            "POST", f"project/{project_id}/splash/{name}", files={"file": ("splash.png", splash)}
        )

    # ==================== SIGNING KEYS ====================

    async def assign_signing_key(self, project_id: str, signing_key_id: str) -> None:
        """Assign a signing key to the matching platform of a project."""
        await self._request("POST", f"project/{project_id}/signkey/{signing_key_id}")

    async def remove_signing_key(self, project_id: str, signing_key_id: str) -> None:
        await self._request("DELETE", f"project/{project_id}/signkey/{signing_key_id}")

    async def list_signing_keys(self) -> dict[str, list[SigningKeyData]]:
        """Fetch every signing key of the user, grouped by platform."""
        data = await self._request("GET", "signkey/")
        return {
            platform: [SigningKeyData.model_validate({**key, "platform": platform}) for key in keys]
            for platform, keys in ((data or {}).get("keys") or {}).items()
        }

    async def get_signing_key(self, signing_key_id: str) -> SigningKeyData:
        """Find a signing key by ID.

        Raises:
            NotFoundError: If the user has no key with that ID.
        """
        for keys in (await self.list_signing_keys()).values():
            for key in keys:
                if key.id == signing_key_id:
                    return key
        raise NotFoundError(f"There is no signing key with the ID: {signing_key_id}")

    async def delete_signing_key(self, signing_key_id: str) -> None:
        await self._request("DELETE", f"signkey/{signing_key_id}")

    async def _create_signing_key(
        self,
        platform: Platform,
        fields: dict[str, str],
        files: dict[str, tuple[str, FileContent]],
    ) -> SigningKeyData:
        data = await self._request(
            "POST", f"signkey/{platform.value}", form={"data": json.dumps(fields)}, files=files
        )
        logger.info(f"Created {platform.value} signing key {fields['title']!r}")
        return SigningKeyData.model_validate({**data, "platform": platform.value})

    async def create_android_signing_key(
        self,
        name: str,
        alias: str,
        keystore: bytes,
        keystore_password: str,
        certificate_password: str,
    ) -> SigningKeyData:
        """Upload an Android keystore.

        Args:
            name: Name for the signing key.
            alias: Alias of the key inside the keystore.
            keystore: Contents of the keystore file.
            keystore_password: Password of the keystore.
            certificate_password: Password of the aliased key.
        """
        fields = {
            "alias": alias,
            "passAlias": certificate_password,
            "passKeystore": keystore_password,
            "title": name,
        }
        return await self._create_signing_key(
            Platform.ANDROID, fields, {"keystore": ("release.keystore", keystore)}
        )

    async def _create_apple_signing_key(
        self,
        platform: Platform,
        name: str,
        password: str,
        provisioning_profile: bytes,
        certificate: bytes,
    ) -> SigningKeyData:
        files = {
            "p12": ("certificate.p12", certificate),
            "provisioning": ("profile.mobileprovision", provisioning_profile),
        }
        return await self._create_signing_key(
            platform, {"pass": password, "title": name}, files
        )

    async def create_ios_signing_key(
        self, name: str, password: str, provisioning_profile: bytes, certificate: bytes
    ) -> SigningKeyData:
        """Upload a distribution p12 certificate and its provisioning profile."""
        return await self._create_apple_signing_key(
            Platform.IOS, name, password, provisioning_profile, certificate
        )

    async def create_macos_signing_key(
        self, name: str, password: str, provisioning_profile: bytes, certificate: bytes
    ) -> SigningKeyData:
        return await self._create_apple_signing_key(
            Platform.MACOS, name, password, provisioning_profile, certificate
        )

    async def create_windows_signing_key(
        self,
        name: str,
        password: str,
        package_thumbprint: str,
        publisher_id: str,
        certificate: bytes,
    ) -> SigningKeyData:
        fields = {
            "packageThumbprint": package_thumbprint,
            "password": password,
            "publisherId": publisher_id,
            "title": name,
        }
        return await self._create_signing_key(
            Platform.WINDOWS,
            fields,
            {"packageCertificateKeyFile": ("certificate.pfx", certificate)},
        )
