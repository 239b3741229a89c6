"""
Machine-owned sections inside human-edited text.

A section is the text between a start marker and an end marker, e.g.::

    Bring rain gear.

    [ART_AUTO_BLOCKERS]
    Art blockers (2)
    - [CRITICAL] Scene 12: Red umbrella x1 is To Source.
    [/ART_AUTO_BLOCKERS]

``merge_auto_section`` replaces the section (or appends it) and
``strip_auto_section`` removes it. Text outside the markers keeps its order.
A section on its own lines leaves one paragraph break behind; a section
inside a line is cut out and the line closes up around it. Trailing
whitespace is always removed.

A start marker only opens a section when an end marker follows it with no
other start marker in between. Unbalanced markers are left as ordinary text.
"""

import re

# Blank lines directly after a removed section
_LEADING_BLANK_LINES = re.compile(r"\A(?:[ \t]*\r?\n)+")

_patterns = {}


def _section_pattern(start_marker: str, end_marker: str):
    key = (start_marker, end_marker)
    pattern = _patterns.get(key)
    if pattern is None:
        start = re.escape(start_marker)
        end = re.escape(end_marker)
        pattern = re.compile(start + r"(?:(?!" + start + r").)*?" + end, re.DOTALL)
        _patterns[key] = pattern
    return pattern


def strip_auto_section(original: str | None, start_marker: str, end_marker: str) -> str | None:
    """
    Remove every delimited section plus the blank lines padding it.

    Returns None for None, otherwise the remaining text with trailing
    whitespace removed (possibly an empty string).
    """
    if original is None:
        return None

    pattern = _section_pattern(start_marker, end_marker)
    text = original
    match = pattern.search(text)
    while match:
        head, tail = text[: match.start()], text[match.end():]
        left, right = head.rstrip(" \t"), tail.lstrip(" \t")
        if (not left or left.endswith("\n")) and (not right or right.startswith(("\n", "\r"))):
            # Section on its own lines: drop its padding, keep one paragraph break
            before = head.rstrip()
            after = _LEADING_BLANK_LINES.sub("", tail)
            text = "\n\n".join(part for part in (before, after) if part.strip())
        else:
            # Inline section: close the gap with the whitespace that was there
            gap = ""
            if left and right and not left.endswith("\n") and not right.startswith(("\n", "\r")):
                gap = head[len(left):] or tail[: len(tail) - len(right)]
            text = left + gap + right
        match = pattern.search(text)
    return text.rstrip()


def merge_auto_section(
    original: str | None,
    body: str | None,
    start_marker: str,
    end_marker: str,
) -> str | None:
    """
    Replace the delimited section in ``original`` with ``body``.

    An empty body removes the section. Returns None instead of an empty
    string when nothing is left to show.

    >>> merge_auto_section("Notes", "- a", "[S]", "[/S]")
    'Notes\\n\\n[S]\\n- a\\n[/S]'
    """
    remaining = strip_auto_section(original, start_marker, end_marker) or ""

    if body is not None:
        while start_marker in body or end_marker in body:
            body = body.replace(end_marker, "").replace(start_marker, "")
        body = body.strip()
    if not body:
        return remaining or None

    section = f"{start_marker}\n{body}\n{end_marker}"
    if not remaining:
        return section
    return f"{remaining}\n\n{section}"
