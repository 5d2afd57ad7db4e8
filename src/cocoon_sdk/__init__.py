"""Cocoon Python SDK for cloud-built HTML5 applications.

This SDK provides a client for the Cocoon build service, structured editing
of a project's config.xml, and tracking of per-platform compilations.

Basic Usage:
    ```python
    from cocoon_sdk import Cocoon, Platform

    async with Cocoon() as client:
        project = await client.get_project("abc123")
        doc = await project.get_config_xml()
        doc.set_bundle_id("com.example.game")
        await project.refresh_cocoon()
        await project.compile()
        await project.wait_until_completed()
        print(project.compilations[Platform.ANDROID.value].download_link)
    ```

Offline config.xml editing:
    ```python
    from cocoon_sdk import ConfigDocument, Environment

    doc = ConfigDocument(open("config.xml").read())
    doc.set_environment(Environment.WEBVIEW_PLUS)
    print(doc.xml())
    ```
"""

from .auth import AuthProvider, get_access_token
from .client import Cocoon
from .compilation import Compilation, CompilationTracker, PollHandle
from .config_document import (
    ConfigDocument,
    Environment,
    Orientation,
    decode_value,
    encode_value,
)
from .exceptions import (
    APIError,
    AuthenticationError,
    CocoonError,
    CompilationTimeoutError,
    ConflictError,
    ConnectionError,
    NotFoundError,
    RateLimitError,
    TimeoutError,
    ValidationError,
)
from .models import (
    CocoonTemplate,
    CocoonVersion,
    CocoonVersionPlatform,
    Platform,
    ProjectData,
    RepositoryData,
    SigningKeyData,
    Status,
    UserData,
)
from .project import Project
from .xml_format import format_xml
from .xml_nodes import NodeFilter

__version__ = "0.1.0"

__all__ = [
    # Version
    "__version__",
    # Main client
    "Cocoon",
    "Project",
    # Config document
    "ConfigDocument",
    "NodeFilter",
    "Orientation",
    "Environment",
    "encode_value",
    "decode_value",
    "format_xml",
    # Compilations
    "Compilation",
    "CompilationTracker",
    "PollHandle",
    # Models
    "Platform",
    "Status",
    "ProjectData",
    "RepositoryData",
    "SigningKeyData",
    "CocoonVersion",
    "CocoonVersionPlatform",
    "CocoonTemplate",
    "UserData",
    # Auth
    "AuthProvider",
    "get_access_token",
    # Exceptions
    "CocoonError",
    "APIError",
    "AuthenticationError",
    "NotFoundError",
    "ValidationError",
    "ConflictError",
    "RateLimitError",
    "ConnectionError",
    "TimeoutError",
    "CompilationTimeoutError",
]
