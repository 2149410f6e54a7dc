"""
ZJSON content tree helpers

The Zettelstore delivers parsed zettel as ZJSON: nested JSON arrays of block
and inline objects, where each object carries its type under the empty key.
This module names those fields and types, classifies the handful of node
shapes the presenter cares about, and walks a tree without recursion.

Example:
    >>> node_classify({"": "Heading", "n": 1, "i": [{"": "Text", "s": "Intro"}]})
    HeadingNode(level=1, inline=[{'': 'Text', 's': 'Intro'}])
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Union

# Field names of a ZJSON object
NAME_TYPE = ""
NAME_ATTRIBUTE = "a"
NAME_BLOCK = "b"
NAME_LIST = "c"
NAME_DESCR_LIST = "d"
NAME_DESCRIPTION = "e"
NAME_INLINE = "i"
NAME_BINARY = "j"
NAME_NUMBER = "n"
NAME_TABLE = "p"
NAME_STRING2 = "q"
NAME_STRING = "s"
NAME_STRING3 = "v"

# Block types
TYPE_PARAGRAPH = "Para"
TYPE_HEADING = "Heading"
TYPE_BREAK_THEMATIC = "Thematic"
TYPE_LIST_BULLET = "Bullet"
TYPE_LIST_ORDERED = "Ordered"
TYPE_LIST_QUOTATION = "Quotation"
TYPE_DESCR_LIST = "Description"
TYPE_TABLE = "Table"
TYPE_BLOCK = "Block"
TYPE_POEM = "Poem"
TYPE_EXCERPT = "Excerpt"
TYPE_VERBATIM_CODE = "CodeBlock"
TYPE_VERBATIM_EVAL = "EvalBlock"
TYPE_VERBATIM_COMMENT = "CommentBlock"
TYPE_VERBATIM_HTML = "HTMLBlock"
TYPE_BLOB = "BLOB"

# Inline types
TYPE_TEXT = "Text"
TYPE_SPACE = "Space"
TYPE_BREAK_SOFT = "Soft"
TYPE_BREAK_HARD = "Hard"
TYPE_TAG = "Tag"
TYPE_LINK = "Link"
TYPE_EMBED = "Embed"
TYPE_EMBED_BLOB = "EmbedBLOB"
TYPE_CITATION = "Cite"
TYPE_MARK = "Mark"
TYPE_FOOTNOTE = "Footnote"
TYPE_FORMAT_DELETE = "Delete"
TYPE_FORMAT_EMPH = "Emph"
TYPE_FORMAT_INSERT = "Insert"
TYPE_FORMAT_QUOTE = "Quote"
TYPE_FORMAT_SPAN = "Span"
TYPE_FORMAT_STRONG = "Strong"
TYPE_FORMAT_SUB = "Sub"
TYPE_FORMAT_SUPER = "Super"
TYPE_LITERAL_CODE = "Code"
TYPE_LITERAL_COMMENT = "Comment"
TYPE_LITERAL_INPUT = "Input"
TYPE_LITERAL_OUTPUT = "Output"
TYPE_LITERAL_HTML = "HTML"

# Reference states of a link
REF_STATE_ZETTEL = "zettel"
REF_STATE_SELF = "self"
REF_STATE_FOUND = "found"
REF_STATE_BROKEN = "broken"
REF_STATE_HOSTED = "local"
REF_STATE_BASED = "based"
REF_STATE_EXTERNAL = "external"

# Table cell alignment
ALIGN_LEFT = "<"
ALIGN_CENTER = ":"
ALIGN_RIGHT = ">"

Object = Dict[str, Any]
Array = List[Any]


class ZettelID(str):
    """
    Opaque zettel identifier

    A zettel identifier is a string of 14 digits. The all-zero identifier is
    reserved as the invalid one. The presenter never looks inside beyond
    that check.
    """

    INVALID: "ZettelID"

    def is_valid(self) -> bool:
        """Check for 14 ASCII digits, not all zero"""
        return len(self) == 14 and self.isascii() and self.isdigit() and self != "00000000000000"


ZettelID.INVALID = ZettelID("00000000000000")


def zid_fromRef(ref: str) -> ZettelID:
    """
    Extract the zettel identifier from a link reference.

    Fragments and queries ("20230101120000#intro") are cut off.
    """
    for sep in ("#", "?"):
        ref = ref.split(sep, 1)[0]
    return ZettelID(ref)


# Accessors


def object_make(value: Any) -> Optional[Object]:
    return value if isinstance(value, dict) else None


def array_make(value: Any) -> Optional[Array]:
    return value if isinstance(value, list) else None


def type_get(obj: Object) -> str:
    value = obj.get(NAME_TYPE)
    return value if isinstance(value, str) else ""


def string_get(obj: Object, name: str) -> str:
    value = obj.get(name)
    return value if isinstance(value, str) else ""


def array_get(obj: Object, name: str) -> Array:
    value = obj.get(name)
    return value if isinstance(value, list) else []


def number_get(obj: Object) -> Optional[int]:
    """Heading levels arrive as string or number, depending on the encoder"""
    value = obj.get(NAME_NUMBER)
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            return None
    return None


def attributes_get(obj: Object) -> Dict[str, str]:
    value = obj.get(NAME_ATTRIBUTE)
    if not isinstance(value, dict):
        return {}
    return {str(k): str(v) for k, v in value.items()}


def text_make(s: str) -> Array:
    """Build an inline array holding a single text node"""
    return [{NAME_TYPE: TYPE_TEXT, NAME_STRING: s}]


# Closed classification of the node shapes the presenter inspects


@dataclass
class HeadingNode:
    level: int
    inline: Array


@dataclass
class LinkNode:
    ref: str
    state: str
    inline: Array


@dataclass
class EmbedNode:
    src: str
    syntax: str
    inline: Array


@dataclass
class DiagramNode:
    syntax: str
    text: str


@dataclass
class BlockNode:
    kind: str
    obj: Object = field(repr=False, default_factory=dict)


ContentNode = Union[HeadingNode, LinkNode, EmbedNode, DiagramNode, BlockNode]


def node_classify(value: Any) -> Optional[ContentNode]:
    """
    Map a ZJSON object to one of the node variants.

    Args:
        value: Any ZJSON value

    Returns:
        HeadingNode, LinkNode, EmbedNode, DiagramNode, or BlockNode for any
        other object; None if value is not an object at all.
    """
    obj = object_make(value)
    if obj is None:
        return None
    kind = type_get(obj)
    if kind == TYPE_HEADING:
        level = number_get(obj)
        if level is not None:
            return HeadingNode(level=level, inline=array_get(obj, NAME_INLINE))
    elif kind == TYPE_LINK:
        return LinkNode(
            ref=string_get(obj, NAME_STRING),
            state=string_get(obj, NAME_STRING2),
            inline=array_get(obj, NAME_INLINE),
        )
    elif kind == TYPE_EMBED:
        return EmbedNode(
            src=string_get(obj, NAME_STRING),
            syntax=string_get(obj, NAME_STRING2),
            inline=array_get(obj, NAME_INLINE),
        )
    elif kind == TYPE_VERBATIM_EVAL:
        return DiagramNode(
            syntax=attributes_get(obj).get("", ""),
            text=string_get(obj, NAME_STRING),
        )
    return BlockNode(kind=kind, obj=obj)


def nodes_iterate(value: Any) -> Iterator[Object]:
    """
    Yield every object of a ZJSON tree in document order.

    Uses an explicit stack, so deeply nested content cannot exhaust the
    interpreter's recursion limit. Nested values of any field (blocks,
    inlines, list items, table cells, footnotes) are visited.

    Args:
        value: Root of the tree, usually a block array

    Yields:
        ZJSON objects, parents before their children
    """
    stack: List[Any] = [value]
    while stack:
        current = stack.pop()
        if isinstance(current, dict):
            yield current
            children = [v for k, v in current.items() if k != NAME_TYPE and isinstance(v, (list, dict))]
            stack.extend(reversed(children))
        elif isinstance(current, list):
            stack.extend(reversed(current))
