"""
Slide sets

A SlideSet is the ordered collection of slides of one presentation. It is
built per request: constructed from the slide-set zettel's metadata, filled
with slide_add() in table-of-contents order, finalized once by completion(),
and then handed to a renderer which asks for a numbered traversal with
slides(role, offset).
"""

from typing import Any, Dict, List, Optional, Protocol

from . import zjson
from .client import ZettelstoreError
from .completion import (
    CancelToken,
    Collector,
    CompletionCancelled,
    SlideSetError,
    SlideSetInvariantError,
)
from .log import LOG
from .meta import array_get, slideTitle_get, string_get, string_getDefault
from .slide import Slide, SlideArena, SlideInfo
from ..models.presenter import (
    KEY_AUTHOR,
    KEY_COPYRIGHT,
    KEY_LANG,
    KEY_LICENSE,
    KEY_SUBTITLE,
    SLIDE_ROLE_HANDOUT,
    SLIDE_ROLE_SHOW,
    PresenterConfig,
)
from ..models.zettel import Image, Meta, Zettel


__all__ = [
    "SlideSet",
    "ContentSource",
    "SlideSetError",
    "SlideSetInvariantError",
    "CompletionCancelled",
]


class ContentSource(Protocol):
    """
    What the slide set needs from a Zettelstore

    All methods raise ZettelstoreError (see lib.client) on failure.
    """

    def meta_fetch(self, zid: zjson.ZettelID) -> Meta: ...

    def zettel_fetch(self, zid: zjson.ZettelID) -> Zettel: ...

    def raw_fetch(self, zid: zjson.ZettelID) -> bytes: ...


class SlideSet:
    """
    The sequence of slides of one presentation

    Attributes:
        zid: Identifier of the slide-set zettel
        meta: Metadata of the slide-set zettel
        seq_slide: Slides in document order; a slide may occur more than once
        set_slide: Slides by identifier, each stored once (first fetch wins)
        set_image: Images collected by completion()
        is_completed: completion() has run to its end
        has_mermaid: Some slide contains a mermaid diagram
    """

    def __init__(self, zid: zjson.ZettelID, meta: Meta) -> None:
        self.zid = zid
        self.meta = meta
        self.seq_slide: List[Slide] = []
        self.set_slide: Dict[str, Slide] = {}
        self.set_image: Dict[str, Image] = {}
        self.is_completed = False
        self.has_mermaid = False

    def slide_get(self, zid: str) -> Optional[Slide]:
        return self.set_slide.get(zid)

    def slideZids_get(self) -> List[zjson.ZettelID]:
        return [sl.zid for sl in self.seq_slide]

    def slide_add(self, zid: zjson.ZettelID, source: ContentSource) -> Slide:
        """
        Append a slide for zid, fetching it if it is not known yet.

        A zettel that is already part of the set is appended again without
        another fetch. If the zettel cannot be retrieved, an error placeholder
        takes its place so the presentation still renders.

        Args:
            zid: Zettel identifier from the table of contents
            source: Where to fetch the zettel from

        Returns:
            The slide appended
        """
        sl = self.set_slide.get(zid)
        if sl is not None:
            self.seq_slide.append(sl)
            return sl

        try:
            zettel = source.zettel_fetch(zid)
        except ZettelstoreError as e:
            LOG(f"Unable to retrieve slide {zid}: {e}", level=1)
            sl = Slide.error_create(zid, f"Unable to retrieve zettel {zid}: {e}")
        else:
            if not zettel.meta or zettel.content is None:
                LOG(f"Slide {zid} lacks metadata or content", level=1)
                sl = Slide.error_create(zid, f"Zettel {zid} has no metadata or content")
            else:
                sl = Slide.meta_create(zid, zettel.meta, zettel.content)
        self.seq_slide.append(sl)
        self.set_slide[zid] = sl
        return sl

    def slide_addAdditional(self, zid: zjson.ZettelID, meta: Meta, content: List[Any]) -> Slide:
        """
        Append a slide found by completion().

        Such slides are reference material: without an explicit slide-role
        they only take part in the handout.
        """
        sl = Slide.meta_create(zid, meta, content, role=SLIDE_ROLE_HANDOUT)
        self.seq_slide.append(sl)
        self.set_slide[zid] = sl
        return sl

    def slides(self, role: str, offset: int) -> Optional[SlideInfo]:
        """
        Number the slides for one rendering.

        Args:
            role: "show" or "handout"
            offset: First number to hand out

        Returns:
            Head of the document sequence, or None if no slide qualifies

        Raises:
            ValueError: For any other role
        """
        if role == SLIDE_ROLE_SHOW:
            return self.slides_forShow(offset)
        if role == SLIDE_ROLE_HANDOUT:
            return self.slides_forHandout(offset)
        raise ValueError(f"Unknown slide role: {role!r}")

    def slides_forShow(self, offset: int) -> Optional[SlideInfo]:
        arena = SlideArena()
        first: Optional[SlideInfo] = None
        prev: Optional[SlideInfo] = None
        slide_no = offset
        for sl in self.seq_slide:
            if not sl.role_has(SLIDE_ROLE_SHOW):
                continue
            si = arena.info_add(sl, prev)
            if first is None:
                first = si
            si.slide_no = slide_no
            si.number = slide_no
            prev = si

            si.children_split()
            main = si.child()
            main.slide_no = slide_no
            main.number = slide_no
            sub = main.next()
            while sub is not None:
                slide_no += 1
                sub.slide_no = slide_no
                sub.number = slide_no
                sub = sub.next()
            slide_no += 1
        return first

    def slides_forHandout(self, offset: int) -> Optional[SlideInfo]:
        arena = SlideArena()
        first: Optional[SlideInfo] = None
        prev: Optional[SlideInfo] = None
        number = offset
        slide_no = offset
        for sl in self.seq_slide:
            if not sl.role_has(SLIDE_ROLE_HANDOUT):
                if sl.role_has(SLIDE_ROLE_SHOW):
                    # Keep show numbers in step for cross references
                    detached = arena.info_add(sl)
                    slide_no = self.children_numberForHandout(detached, slide_no)
                continue
            si = arena.info_add(sl, prev)
            if sl.role_has(SLIDE_ROLE_SHOW):
                si.slide_no = slide_no
                slide_no = self.children_numberForHandout(si, slide_no)
            if first is None:
                first = si
            si.number = number
            prev = si
            number += 1
        return first

    @staticmethod
    def children_numberForHandout(si: SlideInfo, slide_no: int) -> int:
        """Split si, number its children from slide_no, return the next free number"""
        si.children_split()
        main = si.child()
        main.slide_no = slide_no
        sub = main.next()
        while sub is not None:
            slide_no += 1
            sub.slide_no = slide_no
            sub = sub.next()
        return slide_no + 1

    # Images

    def image_has(self, zid: str) -> bool:
        return zid in self.set_image

    def image_add(self, zid: str, syntax: str, data: bytes) -> None:
        self.set_image[zid] = Image(syntax=syntax, data=data)

    def image_get(self, zid: str) -> Optional[Image]:
        return self.set_image.get(zid)

    def images_list(self) -> List[str]:
        return list(self.set_image)

    def mermaid_has(self) -> bool:
        return self.has_mermaid

    def completion(self, source: ContentSource, cancel: Optional[CancelToken] = None) -> None:
        """
        Add everything reachable from the slides: linked public zettel,
        embedded images, and the mermaid flag. Runs once; later calls do
        nothing.

        Args:
            source: Where to fetch zettel and images from
            cancel: Optional token; when set, completion stops

        Raises:
            CompletionCancelled: cancel was set before the closure finished
            SlideSetInvariantError: internal bookkeeping is broken
        """
        if self.is_completed:
            return
        collector = Collector(self, source, cancel)
        collector.run()
        self.has_mermaid = self.has_mermaid or collector.has_mermaid
        self.is_completed = True
        LOG(
            f"Slide set {self.zid}: {len(self.seq_slide)} slides, {len(self.set_image)} images",
            level=2,
        )

    # Metadata of the slide set

    def title(self) -> List[Any]:
        return slideTitle_get(self.meta)

    def subtitle(self) -> Optional[List[Any]]:
        subtitle = array_get(self.meta, KEY_SUBTITLE)
        return subtitle or None

    def lang(self) -> str:
        return string_get(self.meta, KEY_LANG)

    def author(self, config: PresenterConfig) -> str:
        return string_getDefault(self.meta, KEY_AUTHOR, config.author)

    def copyright(self, config: PresenterConfig) -> str:
        return string_getDefault(self.meta, KEY_COPYRIGHT, config.copyright)

    def license(self, config: PresenterConfig) -> str:
        return string_getDefault(self.meta, KEY_LICENSE, config.license)
