"""
Slides and their traversal records

A Slide wraps one retrieved zettel. A SlideInfo places a slide within one
rendering of a slide set: it belongs to two independent chains at once,

    - the document sequence (previous()/next()), one record per slide
      occurrence, carrying number (table-of-contents position) and
      slide_no (position in the show), and
    - the split-children chain (child()/child_last(), then next()), built by
      children_split() when a slide's content has level-1 headings.

All records of one rendering live in a SlideArena; links are list indices,
so there are no reference cycles between records.

Example:
    >>> arena = SlideArena()
    >>> si = arena.info_add(slide)
    >>> si.children_split()
    >>> [child.slide.title for child in si.child().chain_iterate()]
"""

from dataclasses import dataclass, field
from typing import Any, Iterator, List, Optional, Tuple

from . import zjson
from .meta import slideTitle_getZid, string_get
from ..models.presenter import KEY_LANG, KEY_SLIDE_ROLE
from ..models.zettel import Meta


@dataclass(frozen=True)
class Slide:
    """
    One zettel, prepared to be shown

    Attributes:
        zid: Zettel identifier
        title: Inline array; never empty for slides built from metadata
        lang: Language tag, "" means inherit from the document
        role: "", "show", or "handout"; "" matches every role
        content: ZJSON block array
        is_error: Placeholder for a zettel that could not be retrieved
    """
    zid: zjson.ZettelID
    title: List[Any]
    lang: str = ""
    role: str = ""
    content: List[Any] = field(default_factory=list)
    is_error: bool = False

    @classmethod
    def meta_create(
        cls, zid: zjson.ZettelID, meta: Meta, content: List[Any], role: Optional[str] = None
    ) -> "Slide":
        """
        Build a slide from zettel metadata and content.

        Args:
            zid: Zettel identifier
            meta: Zettel metadata
            content: ZJSON block array, stored unchanged
            role: Role to use when the metadata names none

        Returns:
            New Slide
        """
        slide_role = string_get(meta, KEY_SLIDE_ROLE)
        if not slide_role and role:
            slide_role = role
        return cls(
            zid=zid,
            title=slideTitle_getZid(meta, zid),
            lang=string_get(meta, KEY_LANG),
            role=slide_role,
            content=content,
        )

    @classmethod
    def error_create(cls, zid: zjson.ZettelID, message: str) -> "Slide":
        """Build a placeholder slide that reports why a zettel is missing"""
        paragraph = {
            zjson.NAME_TYPE: zjson.TYPE_PARAGRAPH,
            zjson.NAME_INLINE: zjson.text_make(message),
        }
        return cls(
            zid=zid,
            title=zjson.text_make(f"Error: zettel {zid}"),
            content=[paragraph],
            is_error=True,
        )

    def child_make(self, title: List[Any], content: List[Any]) -> "Slide":
        """Create a split child: same zid/lang/role, own title and content"""
        return Slide(
            zid=self.zid,
            title=title,
            lang=self.lang,
            role=self.role,
            content=content,
            is_error=self.is_error,
        )

    def role_has(self, role: str) -> bool:
        """
        Check whether the slide takes part in a role.

        An empty requested role, or a slide without role, matches everything.
        """
        if not role or not self.role:
            return True
        return self.role == role


class SlideArena:
    """Owner of all SlideInfo records produced by one rendering"""

    def __init__(self) -> None:
        self.infos: List["SlideInfo"] = []

    def info_add(self, slide: Slide, prev: Optional["SlideInfo"] = None) -> "SlideInfo":
        """
        Append a record, linking it after prev in prev's chain.

        Args:
            slide: Slide to wrap
            prev: Record to link before the new one, if any

        Returns:
            The new SlideInfo
        """
        si = SlideInfo(arena=self, index=len(self.infos), slide=slide)
        self.infos.append(si)
        if prev is not None:
            si.prev_index = prev.index
            prev.next_index = si.index
        return si

    def info_get(self, index: Optional[int]) -> Optional["SlideInfo"]:
        if index is None:
            return None
        return self.infos[index]

    def __len__(self) -> int:
        return len(self.infos)


@dataclass(eq=False)
class SlideInfo:
    """
    Position of a slide within one rendering

    Attributes:
        arena: Arena owning this record
        index: Position within the arena
        slide: The wrapped slide
        number: Position in the document (table of contents)
        slide_no: Position in the show, 0 if not shown
        prev_index, next_index: Neighbours in this record's chain
        oldest_index, youngest_index: First and last split child
    """
    arena: SlideArena = field(repr=False)
    index: int
    slide: Slide
    number: int = 0
    slide_no: int = 0
    prev_index: Optional[int] = None
    next_index: Optional[int] = None
    oldest_index: Optional[int] = None
    youngest_index: Optional[int] = None

    def next(self) -> Optional["SlideInfo"]:
        return self.arena.info_get(self.next_index)

    def previous(self) -> Optional["SlideInfo"]:
        return self.arena.info_get(self.prev_index)

    def child(self) -> Optional["SlideInfo"]:
        return self.arena.info_get(self.oldest_index)

    def child_last(self) -> Optional["SlideInfo"]:
        return self.arena.info_get(self.youngest_index)

    def chain_iterate(self) -> Iterator["SlideInfo"]:
        """Yield this record and all records following it via next()"""
        si: Optional[SlideInfo] = self
        while si is not None:
            yield si
            si = si.next()

    def children_count(self) -> int:
        child = self.child()
        return sum(1 for _ in child.chain_iterate()) if child else 0

    def slideNo_range(self) -> Tuple[int, int]:
        """
        First and last show number covered by this slide.

        Returns:
            (first, last); equal when the slide was not split, (0, 0) when
            the slide is not part of the show
        """
        last = self.child_last()
        if self.slide_no == 0 or last is None:
            return (self.slide_no, self.slide_no)
        return (self.slide_no, max(self.slide_no, last.slide_no))

    def children_split(self) -> None:
        """
        Split the slide's content at level-1 headings into child records.

        Each level-1 heading with a non-empty title closes the blocks seen so
        far as one child, titled with the preceding heading (the slide's own
        title for the first one), and opens the next child. Everything else,
        including headings of other levels, stays in the current child. At
        least one child is always produced.
        """
        oldest: Optional[SlideInfo] = None
        youngest: Optional[SlideInfo] = None
        title = self.slide.title
        content: List[Any] = []

        for block in self.slide.content:
            node = zjson.node_classify(block)
            if not isinstance(node, zjson.HeadingNode) or node.level != 1 or not node.inline:
                content.append(block)
                continue
            youngest = self.arena.info_add(self.slide.child_make(title, content), youngest)
            if oldest is None:
                oldest = youngest
            content = []
            title = node.inline

        youngest = self.arena.info_add(self.slide.child_make(title, content), youngest)
        if oldest is None:
            oldest = youngest
        self.oldest_index = oldest.index
        self.youngest_index = youngest.index

    def slide_find(self, zid: str) -> Optional["SlideInfo"]:
        """
        Find the record of a zettel in this record's chain.

        Searches backward first (starting with this record), then forward,
        so a repeated zettel resolves to its nearest prior occurrence.

        Args:
            zid: Zettel identifier to look for

        Returns:
            Matching SlideInfo or None
        """
        si: Optional[SlideInfo] = self
        while si is not None:
            if si.slide.zid == zid:
                return si
            si = si.previous()

        si = self.next()
        while si is not None:
            if si.slide.zid == zid:
                return si
            si = si.next()
        return None
