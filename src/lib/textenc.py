"""
Plain text encoding of inline ZJSON

Used wherever rich-text metadata must become an attribute value or a
<title>: slide titles, image titles, table-of-contents entries.
"""

from typing import Any, List

from . import zjson


def inline_encode(inline: Any) -> str:
    """
    Encode an inline array as plain text.

    Text and tag nodes contribute their string, spaces and line breaks
    become a single blank; every other node only contributes its children.

    Example:
        >>> inline_encode([{"": "Text", "s": "Hello"}, {"": "Space"}, {"": "Text", "s": "World"}])
        'Hello World'
    """
    parts: List[str] = []
    for obj in zjson.nodes_iterate(inline):
        kind = zjson.type_get(obj)
        if kind in (zjson.TYPE_TEXT, zjson.TYPE_TAG):
            parts.append(zjson.string_get(obj, zjson.NAME_STRING))
        elif kind in (zjson.TYPE_SPACE, zjson.TYPE_BREAK_SOFT, zjson.TYPE_BREAK_HARD):
            parts.append(" ")
    return "".join(parts)
