"""Structured editing of a Cocoon project's config.xml.

Example:
    ```python
    from cocoon_sdk import ConfigDocument, Orientation

    doc = ConfigDocument(text)
    if not doc.is_errored():
        doc.set_bundle_id("com.example.game.ios", "ios")
        doc.set_orientation(Orientation.LANDSCAPE, "ios")
        doc.add_plugin_variable("cordova-plugin-facebook", "APP_ID", "1234")
        text = doc.xml()
    ```
"""

from __future__ import annotations

import copy
import functools
import logging
import re
from collections.abc import Callable
from enum import Enum
from types import MappingProxyType
from typing import Any, TypeVar

from lxml import etree

from .models import Platform, platform_name
from .xml_format import format_xml
from .xml_migration import is_git_url, replace_old_syntax
from .xml_nodes import (
    NodeFilter,
    add_node_indented,
    detach,
    find_node,
    find_nodes,
    iter_elements,
    remove_node,
    tag_name,
    update_or_add_node,
)

logger = logging.getLogger(__name__)

CORDOVA_NS = "http://cordova.apache.org/ns/1.0"

F = TypeVar("F", bound=Callable[..., Any])
PlatformArg = Platform | str | None


class Orientation(str, Enum):
    """Screen orientation of the application."""

    PORTRAIT = "portrait"
    LANDSCAPE = "landscape"
    BOTH = "both"
    SYSTEM_DEFAULT = "system_default"


class Environment(str, Enum):
    """Runtime the application is executed in."""

    WEBVIEW = "webview"
    WEBVIEW_PLUS = "webview_plus"
    CANVAS_PLUS = "canvas_plus"


BUNDLE_ID_ALIASES = MappingProxyType(
    {
        "android": "android-packageName",
        "ios": "ios-CFBundleIdentifier",
        "osx": "osx-tmpPlaceholder",
        "ubuntu": "ubuntu-tmpPlaceholder",
        "windows": "windows-tmpPlaceholder",
    }
)

VERSION_CODE_ALIASES = MappingProxyType(
    {
        "android": "android-versionCode",
        "ios": "ios-CFBundleVersion",
        "osx": "osx-CFBundleVersion",
        "ubuntu": "ubuntu-tmpVersionPlaceholder",
        "windows": "windows-packageVersion",
    }
)

# Later entries win when a platform carries both plugins.
ENVIRONMENT_PLUGINS = MappingProxyType(
    {
        Environment.CANVAS_PLUS: MappingProxyType(
            {"ios": "com.ludei.canvasplus.ios", "android": "com.ludei.canvasplus.android"}
        ),
        Environment.WEBVIEW_PLUS: MappingProxyType(
            {"ios": "com.ludei.webviewplus.ios", "android": "com.ludei.webviewplus.android"}
        ),
    }
)

_ORIENTATION_VALUES = MappingProxyType(
    {
        Orientation.PORTRAIT: "portrait",
        Orientation.LANDSCAPE: "landscape",
        Orientation.BOTH: "default",
    }
)
_ORIENTATION_BY_VALUE = MappingProxyType({v: k for k, v in _ORIENTATION_VALUES.items()})

_ENVIRONMENT_PLATFORMS = ("ios", "android")

_ENTITIES = (("&", "&amp;"), ("<", "&lt;"), (">", "&gt;"), ('"', "&quot;"), ("'", "&apos;"))
_EMPTY_XMLNS = re.compile(r' xmlns=""')


def encode_value(value: str | None) -> str | None:
    """Entity-encode ``&``, ``<``, ``>``, ``"`` and ``'``."""
    if not value:
        return value
    for char, entity in _ENTITIES:
        value = value.replace(char, entity)
    return value


def decode_value(value: str | None) -> str | None:
    """Reverse :func:`encode_value`."""
    if not value:
        return value
    for char, entity in reversed(_ENTITIES):
        value = value.replace(entity, char)
    return value


def _named(tag: str, name: PlatformArg) -> NodeFilter:
    return NodeFilter(tag, attributes=(("name", platform_name(name)),))


def _document_required(default: Any = None) -> Callable[[F], F]:
    """Return ``default`` instead of calling the method on an errored document."""

    def decorator(method: F) -> F:
        @functools.wraps(method)
        def wrapper(self: ConfigDocument, *args: Any, **kwargs: Any) -> Any:
            if self._root is None:
                logger.warning(f"{method.__name__}() called on an errored config.xml document")
                return copy.copy(default)
            return method(self, *args, **kwargs)

        return wrapper  # type: ignore[return-value]

    return decorator


class ConfigDocument:
    """In-memory config.xml of a Cocoon project.

    The text is parsed once; legacy ``cocoon:`` syntax is migrated on load.
    Setters mutate the tree in place and :meth:`xml` serializes it again.
    Instances are not safe for concurrent use.
    """

    def __init__(self, text: str) -> None:
        """Parse ``text``.

        A malformed document, or one without a ``widget`` element, leaves the
        instance errored (see :meth:`is_errored`) instead of raising.
        """
        self._doc: etree._ElementTree | None = None
        self._root: etree._Element | None = None
        text = (text or "").strip()
        self._declaration = text.startswith("<?xml")

        # The text is already decoded, so its declared encoding no longer applies
        parser = etree.XMLParser(encoding="utf-8", resolve_entities=False, no_network=True)
        try:
            document = etree.fromstring(text.encode("utf-8"), parser)
        except (etree.XMLSyntaxError, ValueError) as e:
            logger.warning(f"Could not parse config.xml: {e}")
            return

        replace_old_syntax(document)
        self._doc = document.getroottree()

        root = next(iter_elements(document, "widget"), None)
        if root is None:
            logger.warning("config.xml has no <widget> element")
            return

        if "cdv" not in root.nsmap:
            prefixes = {p for node in self._doc.iter(etree.Element) for p in node.nsmap if p}
            etree.cleanup_namespaces(
                root,
                top_nsmap={"cdv": CORDOVA_NS},
                keep_ns_prefixes=sorted(prefixes | {"cdv"}),
            )
        self._root = root

    @property
    def root(self) -> etree._Element | None:
        """The ``widget`` element, or None when errored."""
        return self._root

    def is_errored(self) -> bool:
        """True if the text could not be parsed or has no ``widget`` element."""
        return self._root is None

    @_document_required("")
    def xml(self) -> str:
        """Serialize the current tree as pretty-printed text."""
        text = etree.tostring(self._doc, encoding="unicode")
        if self._declaration:
            info = self._doc.docinfo
            text = f'<?xml version="{info.xml_version}" encoding="{info.encoding}"?>\n{text}'
        text = _EMPTY_XMLNS.sub("", text)
        return format_xml(text)

    # ==================== FILTER ENGINE ====================

    @_document_required()
    def find_node(self, node_filter: NodeFilter) -> etree._Element | None:
        return find_node(self._root, node_filter)

    @_document_required([])
    def find_nodes(self, node_filter: NodeFilter) -> list[etree._Element]:
        return find_nodes(self._root, node_filter)

    @_document_required()
    def update_or_add_node(
        self,
        node_filter: NodeFilter,
        attributes: tuple[tuple[str, str | None], ...] = (),
        text: str | None = None,
    ) -> etree._Element:
        return update_or_add_node(self._root, node_filter, attributes, text)

    @_document_required()
    def remove_node(self, node_filter: NodeFilter) -> etree._Element | None:
        return remove_node(self._root, node_filter)

    # ==================== ROOT ATTRIBUTES ====================

    def _set_root_attribute(self, name: str, value: str | None) -> None:
        if value:
            self._root.set(name, value)
        else:
            self._root.attrib.pop(name, None)

    @_document_required("")
    def get_bundle_id(self, platform: PlatformArg = None, fallback: bool = False) -> str:
        """Get the bundle id, optionally the override of one platform.

        Args:
            platform: Platform whose override is read.
            fallback: Return the root ``id`` when the platform has no override.
        """
        platform = platform_name(platform)
        if platform:
            alias = BUNDLE_ID_ALIASES.get(platform)
            value = self._root.get(alias) if alias else None
            if value:
                return value
            if not fallback:
                return ""
        return self._root.get("id", "")

    @_document_required()
    def set_bundle_id(self, value: str | None, platform: PlatformArg = None) -> None:
        platform = platform_name(platform)
        alias = BUNDLE_ID_ALIASES.get(platform) if platform else None
        self._set_root_attribute(alias or "id", value)

    @_document_required("")
    def get_version(self, platform: PlatformArg = None, fallback: bool = False) -> str:
        platform = platform_name(platform)
        if platform:
            value = self._root.get(f"{platform}-version")
            if value:
                return value
            if not fallback:
                return ""
        return self._root.get("version", "")

    @_document_required()
    def set_version(self, value: str | None, platform: PlatformArg = None) -> None:
        platform = platform_name(platform)
        self._set_root_attribute(f"{platform}-version" if platform else "version", value)

    @_document_required("")
    def get_version_code(self, platform: PlatformArg = None, fallback: bool = False) -> str:
        """Get the version code of a platform.

        Android never falls back: its version code is an integer while the
        root ``version`` is a semantic version string.
        """
        platform = platform_name(platform)
        if platform:
            alias = VERSION_CODE_ALIASES.get(platform)
            if alias:
                value = self._root.get(alias)
                if value:
                    return value
                if not fallback or platform == Platform.ANDROID.value:
                    return ""
        return self._root.get("version", "")

    @_document_required()
    def set_version_code(self, value: str | None, platform: PlatformArg = None) -> None:
        platform = platform_name(platform)
        alias = VERSION_CODE_ALIASES.get(platform) if platform else None
        self._set_root_attribute(alias or "version", value)

    # ==================== GENERIC NODES ====================

    @_document_required()
    def get_node(
        self, tag: str, platform: PlatformArg = None, fallback: bool = False
    ) -> etree._Element | None:
        return find_node(self._root, NodeFilter(tag, platform_name(platform), fallback=fallback))

    @_document_required()
    def get_value(
        self, tag: str, platform: PlatformArg = None, fallback: bool = False
    ) -> str | None:
        """Text content of ``tag``, or None if the node does not exist."""
        node = self.get_node(tag, platform, fallback)
        return node.text or "" if node is not None else None

    @_document_required()
    def set_value(self, tag: str, value: str | None, platform: PlatformArg = None) -> None:
        update_or_add_node(self._root, NodeFilter(tag, platform_name(platform)), text=value or "")

    @_document_required()
    def remove_value(self, tag: str, platform: PlatformArg = None) -> None:
        remove_node(self._root, NodeFilter(tag, platform_name(platform)))

    def get_name(self) -> str | None:
        return self.get_value("name")

    def set_name(self, value: str) -> None:
        self.set_value("name", value)

    def get_description(self) -> str | None:
        return self.get_value("description")

    def set_description(self, value: str) -> None:
        self.set_value("description", value)

    # ==================== PREFERENCES ====================

    @_document_required()
    def get_preference(
        self, name: str, platform: PlatformArg = None, fallback: bool = False
    ) -> str | None:
        node_filter = NodeFilter(
            "preference", platform_name(platform), (("name", name),), fallback
        )
        node = find_node(self._root, node_filter)
        return node.get("value") if node is not None else None

    @_document_required()
    def set_preference(self, name: str, value: str | None, platform: PlatformArg = None) -> None:
        """Store a preference. An empty value removes the preference node."""
        node_filter = NodeFilter("preference", platform_name(platform), (("name", name),))
        if value:
            update_or_add_node(self._root, node_filter, (("name", name), ("value", value)))
        else:
            remove_node(self._root, node_filter)

    def get_cocoon_version(self) -> str | None:
        return self.get_preference("cocoon-version")

    def set_cocoon_version(self, version: str | None) -> None:
        self.set_preference("cocoon-version", version)

    @_document_required(Orientation.SYSTEM_DEFAULT)
    def get_orientation(self, platform: PlatformArg = None, fallback: bool = False) -> Orientation:
        value = self.get_preference("Orientation", platform, fallback)
        return _ORIENTATION_BY_VALUE.get(value, Orientation.SYSTEM_DEFAULT)

    def set_orientation(self, value: Orientation, platform: PlatformArg = None) -> None:
        stored = _ORIENTATION_VALUES.get(Orientation(value)) if value else None
        self.set_preference("Orientation", stored, platform)

    @_document_required(False)
    def is_fullscreen(self, platform: PlatformArg = None, fallback: bool = False) -> bool:
        value = self.get_preference("Fullscreen", platform, fallback)
        return bool(value) and value != "false"

    def set_fullscreen(self, value: bool | None, platform: PlatformArg = None) -> None:
        """Store the fullscreen flag. ``None`` removes the preference."""
        flag = None if value is None else str(bool(value)).lower()
        self.set_preference("Fullscreen", flag, platform)

    # ==================== PLATFORMS & ENGINES ====================

    @_document_required()
    def get_platform_node(self, platform: PlatformArg) -> etree._Element | None:
        """The ``<platform name=...>`` wrapper of a platform, if present."""
        return find_node(self._root, _named("platform", platform))

    @_document_required()
    def get_engine(self, platform: PlatformArg) -> etree._Element | None:
        return find_node(self._root, _named("engine", platform))

    @_document_required()
    def get_engine_spec(self, platform: PlatformArg) -> str | None:
        """Version requirement of the platform build tools, or None if unset."""
        node = self.get_engine(platform)
        return node.get("spec") if node is not None else None

    @_document_required()
    def set_engine_spec(self, platform: PlatformArg, spec: str = "*") -> None:
        name = platform_name(platform)
        update_or_add_node(
            self._root,
            _named("engine", name),
            (("name", name), ("spec", spec or "*")),
        )

    @_document_required()
    def remove_engine(self, platform: PlatformArg) -> None:
        remove_node(self._root, _named("engine", platform))

    @_document_required(False)
    def is_platform_enabled(self, platform: PlatformArg) -> bool:
        """A platform is enabled unless it carries ``enabled="false"``."""
        return self.get_preference("enabled", platform) != "false"

    def set_platform_enabled(self, platform: PlatformArg, enabled: bool) -> None:
        self.set_preference("enabled", None if enabled else "false", platform)

    # ==================== CONTENT ====================

    @_document_required("")
    def get_content_url(self, platform: PlatformArg = None, fallback: bool = False) -> str:
        node_filter = NodeFilter("content", platform_name(platform), fallback=fallback)
        node = find_node(self._root, node_filter)
        return node.get("src", "") if node is not None else ""

    @_document_required()
    def set_content_url(self, value: str | None, platform: PlatformArg = None) -> None:
        node_filter = NodeFilter("content", platform_name(platform))
        if value:
            update_or_add_node(self._root, node_filter, (("src", value),))
        else:
            remove_node(self._root, node_filter)

    # ==================== PLUGINS ====================

    @staticmethod
    def _plugin_filter(name: str) -> NodeFilter:
        return NodeFilter("plugin", attributes=(("name", name),))

    @_document_required()
    def add_plugin(self, name: str, spec: str = "*") -> etree._Element:
        """Add or update a plugin.

        A plugin named by a git URL is always pinned to that URL.
        """
        if is_git_url(name):
            spec = name
        return update_or_add_node(
            self._root, self._plugin_filter(name), (("name", name), ("spec", spec))
        )

    @_document_required()
    def remove_plugin(self, name: str) -> None:
        remove_node(self._root, self._plugin_filter(name))

    @_document_required()
    def find_plugin(self, name: str) -> etree._Element | None:
        return find_node(self._root, self._plugin_filter(name))

    @_document_required([])
    def find_all_plugins(self) -> list[etree._Element]:
        return find_nodes(self._root, NodeFilter("plugin"))

    @staticmethod
    def _variable_node(plugin: etree._Element, name: str) -> etree._Element | None:
        for child in plugin.iterchildren(etree.Element):
            if tag_name(child) == "variable" and child.get("name") == name:
                return child
        return None

    @_document_required()
    def find_plugin_variable(self, plugin_name: str, var_name: str) -> str | None:
        """Decoded value of a plugin variable.

        Returns:
            The value, ``""`` if the plugin has no such variable, or None if
            the plugin itself is absent.
        """
        plugin = self.find_plugin(plugin_name)
        if plugin is None:
            return None
        node = self._variable_node(plugin, var_name)
        if node is None:
            return ""
        return decode_value(node.get("value")) or ""

    @_document_required({})
    def get_plugin_variables(self, plugin_name: str) -> dict[str, str]:
        """All variables of a plugin as a ``name -> decoded value`` mapping."""
        plugin = self.find_plugin(plugin_name)
        if plugin is None:
            return {}
        return {
            child.get("name", ""): decode_value(child.get("value")) or ""
            for child in plugin.iterchildren(etree.Element)
            if tag_name(child) == "variable"
        }

    @_document_required()
    def add_plugin_variable(self, plugin_name: str, var_name: str, var_value: str | None) -> None:
        """Set a plugin variable, adding the plugin first if needed."""
        plugin = self.find_plugin(plugin_name)
        if plugin is None:
            plugin = self.add_plugin(plugin_name)

        node = self._variable_node(plugin, var_name)
        if node is None:
            node = add_node_indented(plugin, "variable", [("name", var_name or "")])
        node.set("value", encode_value(var_value) or "")

    @_document_required(False)
    def remove_plugin_variable(self, plugin_name: str, var_name: str) -> bool:
        plugin = self.find_plugin(plugin_name)
        node = self._variable_node(plugin, var_name) if plugin is not None else None
        if node is None:
            return False
        detach(node)
        return True

    # ==================== ENVIRONMENT ====================

    @_document_required(Environment.WEBVIEW)
    def get_environment(self, platform: PlatformArg = None) -> Environment:
        """Runtime environment of a platform.

        Without a platform, iOS and Android are compared and ``WEBVIEW`` is
        returned when they disagree.
        """
        platform = platform_name(platform)
        if not platform:
            environments = {self.get_environment(name) for name in _ENVIRONMENT_PLATFORMS}
            return environments.pop() if len(environments) == 1 else Environment.WEBVIEW

        environment = Environment.WEBVIEW
        for value, plugins in ENVIRONMENT_PLUGINS.items():
            plugin = plugins.get(platform)
            if plugin and self.find_plugin(plugin) is not None:
                environment = value
        return environment

    @_document_required()
    def set_environment(self, value: Environment, platform: PlatformArg = None) -> None:
        value = Environment(value)
        platform = platform_name(platform)
        names = [platform] if platform else list(_ENVIRONMENT_PLATFORMS)

        for name in names:
            for other, plugins in ENVIRONMENT_PLUGINS.items():
                if other is not value and name in plugins:
                    self.remove_plugin(plugins[name])

            plugin = ENVIRONMENT_PLUGINS.get(value, {}).get(name)
            if plugin and self.find_plugin(plugin) is None:
                self.add_plugin(plugin)
