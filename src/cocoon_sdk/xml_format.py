"""Line-based pretty printer for serialized config.xml text."""

from __future__ import annotations

import re

_TAG_BOUNDARY = re.compile(r"(>)\s*(<)(/*)")
_TRAILING_SPACE = re.compile(r" *(.*) +\n")
_INLINE_CONTENT = re.compile(r"(<.+>)(.+\n)")

_SINGLE = re.compile(r"<.+/>")
_CLOSING = re.compile(r"</.+>")
_OPENING = re.compile(r"<[^!?].*>")

# Indentation change keyed on (previous line type, current line type).
_TRANSITIONS = {
    ("single", "single"): 0,
    ("single", "closing"): -1,
    ("single", "opening"): 0,
    ("single", "other"): 0,
    ("closing", "single"): 0,
    ("closing", "closing"): -1,
    ("closing", "opening"): 0,
    ("closing", "other"): 0,
    ("opening", "single"): 1,
    ("opening", "closing"): 0,
    ("opening", "opening"): 1,
    ("opening", "other"): 1,
    ("other", "single"): 0,
    ("other", "closing"): -1,
    ("other", "opening"): 0,
    ("other", "other"): 0,
}


def line_type(line: str) -> str:
    """Classify a line as ``single``, ``closing``, ``opening`` or ``other``."""
    if _SINGLE.search(line):
        return "single"
    if _CLOSING.search(line):
        return "closing"
    if _OPENING.search(line):
        return "opening"
    return "other"


def format_xml(xml: str) -> str:
    """Re-indent serialized XML with one tab per nesting level.

    Every tag goes on its own line and inline text is split from its opening
    tag. An opening tag immediately followed by its closing tag is joined
    back onto one line.
    """
    xml = _TAG_BOUNDARY.sub(r"\1\n\2\3", xml)
    xml = _TRAILING_SPACE.sub(r"\1\n", xml)
    xml = _INLINE_CONTENT.sub(r"\1\n\2", xml)

    formatted = ""
    indent = 0
    last_type = "other"
    for line in xml.split("\n"):
        current = line_type(line)
        transition = (last_type, current)
        last_type = current
        indent += _TRANSITIONS[transition]

        if transition == ("opening", "closing"):
            formatted = formatted[:-1] + line + "\n"
        else:
            formatted += "\t" * indent + line + "\n"
    return formatted
