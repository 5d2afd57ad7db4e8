"""Migration of the legacy ``cocoon:`` config.xml dialect.

Older projects describe platforms and plugins with namespaced tags::

    <cocoon:platform name="ios" version="3.9.0" enabled="true">...</cocoon:platform>
    <cocoon:plugin name="com.example.ads" version="1.0.0">
        <param name="API_KEY" value="xyz"/>
    </cocoon:plugin>

They are rewritten in place, once, into the plain Cordova dialect::

    <engine name="ios" spec="3.9.0"/>
    <platform name="ios"><preference name="enabled" value="true"/></platform>
    <plugin name="com.example.ads" spec="1.0.0"><variable name="API_KEY" value="xyz"/></plugin>
"""

from __future__ import annotations

import logging
import re

from lxml import etree

from .xml_nodes import add_node_indented, detach, insert_before, tag_name

logger = logging.getLogger(__name__)

COCOON_NS = "http://cocoon.io/ns/1.0"

_GIT_URL = re.compile(
    r"^(?:"
    r"(?:git\+)?(?:https?|ssh|git)://"
    r"(?:[^@/\s]+@)?"
    r"[A-Za-z0-9](?:[A-Za-z0-9-]*[A-Za-z0-9])?(?:\.[A-Za-z0-9](?:[A-Za-z0-9-]*[A-Za-z0-9])?)*"
    r"(?::\d+)?"
    r"(?:/\S*)?"
    r")$"
)


def is_git_url(value: str | None) -> bool:
    """True if ``value`` is a URL with a host pointing at a ``.git`` repository."""
    return bool(value) and ".git" in value and _GIT_URL.match(value) is not None


def _legacy_nodes(document: etree._Element, local: str) -> list[etree._Element]:
    return [
        node
        for node in document.iter(etree.QName(COCOON_NS, local).text)
        if node.getparent() is not None
    ]


def migrate_platforms(document: etree._Element) -> int:
    """Rewrite ``<cocoon:platform>`` nodes. Returns the number migrated."""
    legacy = _legacy_nodes(document, "platform")
    for old in reversed(legacy):
        name = old.get("name") or ""
        version = old.get("version")
        if version:
            insert_before(old, "engine").attrib.update({"name": name, "spec": version})

        platform = insert_before(old, "platform")
        platform.set("name", name)
        platform.text = old.text
        for child in list(old.iterchildren(etree.Element)):
            platform.append(child)

        enabled = old.get("enabled")
        if enabled:
            add_node_indented(platform, "preference", [("name", "enabled"), ("value", enabled)])

        detach(old)
    return len(legacy)


def migrate_plugins(document: etree._Element) -> int:
    """Rewrite ``<cocoon:plugin>`` nodes. Returns the number migrated."""
    legacy = _legacy_nodes(document, "plugin")
    for old in reversed(legacy):
        name = old.get("name") or ""
        version = old.get("version")

        plugin = insert_before(old, "plugin")
        plugin.set("name", name)
        if is_git_url(name):
            plugin.set("spec", name)
        elif version:
            plugin.set("spec", version)

        plugin.text = old.text
        for child in list(old.iterchildren(etree.Element)):
            if etree.QName(child).localname.lower() == "param":
                add_node_indented(
                    plugin,
                    "variable",
                    [("name", child.get("name") or ""), ("value", child.get("value") or "")],
                )
            else:
                plugin.append(child)

        detach(old)
    return len(legacy)


def fix_git_plugin_specs(document: etree._Element) -> int:
    """Pin plugins installed from a git URL to that same URL.

    Returns:
        Number of plugins whose ``spec`` was rewritten.
    """
    fixed = 0
    for node in document.iter(etree.Element):
        if tag_name(node) != "plugin":
            continue
        name = node.get("name")
        if is_git_url(name) and node.get("spec") != name:
            node.set("spec", name)
            fixed += 1
    return fixed


def replace_old_syntax(document: etree._Element) -> None:
    """Normalize a parsed document to the plain dialect, in place."""
    platforms = migrate_platforms(document)
    plugins = migrate_plugins(document)
    fixed = fix_git_plugin_specs(document)
    if platforms or plugins or fixed:
        logger.info(
            f"Migrated legacy config.xml syntax: {platforms} platforms, "
            f"{plugins} plugins, {fixed} git plugin specs"
        )
