"""Node filter and matching engine for config.xml trees.

Every lookup works on qualified tag names as they are written in the
document (``plugin``, ``cocoon:plugin``), so a default namespace on the
``widget`` root does not hide plain tags while prefixed legacy tags stay
distinct. Lookups never raise: a miss is ``None`` or an empty list.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, replace

from lxml import etree

logger = logging.getLogger(__name__)

ANY_TAG = "*"
INDENT = "    "
PLATFORM_TAG = "platform"


@dataclass(frozen=True)
class NodeFilter:
    """Selects one logical node of a config document.

    Attributes:
        tag: Qualified tag name, or ``*`` for any tag.
        platform: Name of the ``<platform>`` wrapper the node lives in. When
            unset the node must be a direct child of the root.
        attributes: ``(name, value)`` pairs that must all match exactly.
        fallback: For single-node lookups, retry without ``platform`` when
            the scoped lookup finds nothing.
    """

    tag: str = ANY_TAG
    platform: str | None = None
    attributes: tuple[tuple[str, str | None], ...] = ()
    fallback: bool = False


def tag_name(node: etree._Element) -> str:
    """Return the qualified name of an element (``prefix:local`` or ``local``)."""
    local = etree.QName(node).localname
    return f"{node.prefix}:{local}" if node.prefix else local


def iter_elements(root: etree._Element, tag: str = ANY_TAG) -> Iterator[etree._Element]:
    """Yield every element of the document owning ``root`` in document order."""
    document = root.getroottree().getroot()
    for node in document.iter(etree.Element):
        if ANY_TAG in tag or tag_name(node) == tag:
            yield node


def matches_filter(root: etree._Element, node: etree._Element, node_filter: NodeFilter) -> bool:
    parent = node.getparent()
    if node_filter.platform:
        if (
            parent is None
            or tag_name(parent) != PLATFORM_TAG
            or parent.get("name") != node_filter.platform
        ):
            return False
    elif parent is not root:
        return False

    if node_filter.tag and ANY_TAG not in node_filter.tag and node_filter.tag != tag_name(node):
        return False

    return all(node.get(name) == value for name, value in node_filter.attributes)


def _first_match(root: etree._Element, node_filter: NodeFilter) -> etree._Element | None:
    for node in iter_elements(root, node_filter.tag):
        if matches_filter(root, node, node_filter):
            return node
    return None


def find_node(root: etree._Element, node_filter: NodeFilter) -> etree._Element | None:
    """Return the first node matching ``node_filter`` in document order.

    With ``fallback`` set, a scoped lookup that finds nothing is retried once
    against the root-level equivalent.
    """
    node = _first_match(root, node_filter)
    if node is None and node_filter.platform and node_filter.fallback:
        node = _first_match(root, replace(node_filter, platform=None))
    return node


def find_nodes(root: etree._Element, node_filter: NodeFilter) -> list[etree._Element]:
    """Return all nodes matching ``node_filter``. Fallback is not applied."""
    return [
        node
        for node in iter_elements(root, node_filter.tag)
        if matches_filter(root, node, node_filter)
    ]


def qualified_tag(parent: etree._Element, tag: str) -> str:
    """Build the lxml tag for a new child of ``parent`` written as ``tag``.

    Plain tags land in the default namespace in scope, so they serialize
    without a prefix or an empty ``xmlns``.
    """
    if ":" in tag:
        prefix, local = tag.split(":", 1)
        uri = parent.nsmap.get(prefix)
        return etree.QName(uri, local).text if uri else local

    uri = parent.nsmap.get(None)
    return etree.QName(uri, tag).text if uri else tag


def add_node_indented(
    parent: etree._Element,
    tag: str,
    attributes: Iterable[tuple[str, str]] = (),
) -> etree._Element:
    """Append a new ``tag`` element to ``parent`` on its own indented line."""
    depth = sum(1 for _ in parent.iterancestors()) + 1
    indent = "\n" + INDENT * depth
    if len(parent):
        last = parent[-1]
        last.tail = (last.tail or "") + indent
    else:
        parent.text = (parent.text or "") + indent

    node = etree.SubElement(parent, qualified_tag(parent, tag))
    node.tail = "\n"
    for name, value in attributes:
        node.set(name, value)
    return node


def insert_before(reference: etree._Element, tag: str) -> etree._Element:
    """Create a ``tag`` element as the previous sibling of ``reference``."""
    parent = reference.getparent()
    node = etree.SubElement(parent, qualified_tag(parent, tag))
    parent.insert(parent.index(reference), node)
    node.tail = reference.tail
    return node


def detach(node: etree._Element) -> None:
    """Remove ``node`` from its parent, keeping the text that follows it."""
    parent = node.getparent()
    if parent is None:
        return

    tail = node.tail
    previous = node.getprevious()
    parent.remove(node)
    if tail and tail.strip():
        if previous is not None:
            previous.tail = (previous.tail or "") + tail
        else:
            parent.text = (parent.text or "") + tail


def parent_node_for_platform(root: etree._Element, platform: str | None = None) -> etree._Element:
    """Return the container for ``platform`` nodes, creating the wrapper if needed."""
    if not platform:
        return root

    wrapper = find_node(root, NodeFilter(PLATFORM_TAG, attributes=(("name", platform),)))
    if wrapper is None:
        wrapper = add_node_indented(root, PLATFORM_TAG, [("name", platform)])
        logger.debug(f"Created <platform name={platform!r}> wrapper")
    return wrapper


def update_or_add_node(
    root: etree._Element,
    node_filter: NodeFilter,
    attributes: Iterable[tuple[str, str | None]] = (),
    text: str | None = None,
) -> etree._Element:
    """Find the node selected by ``node_filter`` or create it, then update it.

    Args:
        root: The ``widget`` root of the document.
        node_filter: Selects the node. A new node is created with
            ``node_filter.tag`` under the matching platform scope.
        attributes: ``(name, value)`` pairs to set; a ``None`` value removes
            the attribute.
        text: Replacement text content. ``None`` leaves the content untouched.

    Returns:
        The updated node.
    """
    node = find_node(root, node_filter)
    if node is None:
        parent = parent_node_for_platform(root, node_filter.platform)
        node = add_node_indented(parent, node_filter.tag)
        logger.debug(f"Added <{node_filter.tag}> (platform={node_filter.platform!r})")

    if text is not None:
        for child in list(node):
            node.remove(child)
        node.text = text or ""

    for name, value in attributes:
        if value is None:
            node.attrib.pop(name, None)
        else:
            node.set(name, value)
    return node


def remove_node(root: etree._Element, node_filter: NodeFilter) -> etree._Element | None:
    """Detach the node selected by ``node_filter``.

    A ``<platform>`` wrapper left without child nodes is removed as well.

    Returns:
        The removed node, or None if nothing matched.
    """
    node = find_node(root, node_filter)
    if node is None or node.getparent() is None:
        return None

    parent = node.getparent()
    detach(node)
    logger.debug(f"Removed <{tag_name(node)}> (platform={node_filter.platform!r})")

    if tag_name(parent) == PLATFORM_TAG and parent.getparent() is not None and len(parent) == 0:
        detach(parent)
        logger.debug(f"Removed empty <platform name={parent.get('name')!r}> wrapper")
    return node
