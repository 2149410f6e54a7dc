"""
Metadata fallback chains

Small helpers shared by slides, slide sets, and renderers. The order of
each fallback chain matters: renderers depend on it.
"""

from typing import Any, List, Optional

from . import zjson
from .textenc import inline_encode
from ..models.presenter import KEY_SLIDE_TITLE, KEY_TITLE
from ..models.zettel import Meta


def string_get(meta: Meta, key: str) -> str:
    """
    Get a metadata value as plain string.

    Inline arrays are encoded as text; missing keys yield "".
    """
    value = meta.get(key)
    if isinstance(value, str):
        return value
    if isinstance(value, list):
        return inline_encode(value)
    return ""


def array_get(meta: Meta, key: str) -> List[Any]:
    """
    Get a metadata value as inline array.

    Plain strings become a one-element text array; empty strings and
    missing keys yield [].
    """
    value = meta.get(key)
    if isinstance(value, list):
        return value
    if isinstance(value, str) and value:
        return zjson.text_make(value)
    return []


def slideTitle_get(meta: Meta) -> List[Any]:
    """Title of a slide: slide-title if set, else title"""
    title = array_get(meta, KEY_SLIDE_TITLE)
    if title:
        return title
    return array_get(meta, KEY_TITLE)


def slideTitle_getZid(meta: Meta, zid: str) -> List[Any]:
    """Title of a slide, falling back to the zettel identifier as text"""
    title = slideTitle_get(meta)
    if title:
        return title
    return zjson.text_make(str(zid))


def zettelTitle_getZid(meta: Meta, zid: str) -> List[Any]:
    """Title of a zettel as such (slide-title ignored), else its identifier"""
    title = array_get(meta, KEY_TITLE)
    if title:
        return title
    return zjson.text_make(str(zid))


def string_getDefault(meta: Meta, key: str, default: Optional[str]) -> str:
    """Metadata string if non-empty, else the configured default"""
    value = string_get(meta, key)
    if value:
        return value
    return default or ""
