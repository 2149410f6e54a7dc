"""
Zettel data models

Plain records for what the Zettelstore returns: metadata, parsed content,
slide-set order lists, and cached image data.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

from ..lib.zjson import ZettelID

# Metadata values are plain strings or inline arrays (rich text)
MetaValue = Union[str, List[Any]]
Meta = Dict[str, MetaValue]


@dataclass
class Zettel:
    """
    A fully retrieved zettel

    Attributes:
        zid: Zettel identifier
        meta: Metadata map
        content: ZJSON block array, None if the zettel has no parsable content
    """
    zid: ZettelID
    meta: Meta
    content: Optional[List[Any]]


@dataclass
class OrderEntry:
    """One entry of a zettel list, with shallow metadata"""
    zid: ZettelID
    meta: Meta = field(default_factory=dict)


@dataclass
class ZettelOrder:
    """
    A slide set as listed by the Zettelstore

    Attributes:
        zid: Identifier of the slide-set zettel
        meta: Metadata of the slide-set zettel
        entries: Referenced zettel in table-of-contents order
    """
    zid: ZettelID
    meta: Meta
    entries: List[OrderEntry] = field(default_factory=list)


@dataclass
class Image:
    """Raw image content, tagged with its syntax (png, svg, ...)"""
    syntax: str
    data: bytes
