"""
Closure of a slide set over links and embeds

The slides named in a slide set may link to further zettel and embed
images. Before rendering, the Collector walks the content of every slide,
depth first, and

    - appends linked zettel that are public, so the handout can offer them
      as further reading,
    - caches embedded images, so renderers can inline them,
    - notes whether any slide needs client-side mermaid rendering.

The walk uses an explicit stack and a visited set instead of recursion:
link graphs may contain cycles, and a zettel may be reached many times.

Example:
    >>> collector = Collector(slideset, client, cancel=threading.Event())
    >>> collector.run()
    >>> collector.has_mermaid
    False
"""

from typing import TYPE_CHECKING, Any, List, Optional, Protocol, Set

from . import zjson
from .client import ZettelstoreError
from .log import LOG
from .meta import string_get
from ..models.presenter import KEY_VISIBILITY, SYNTAX_MERMAID, VISIBILITY_PUBLIC
from ..models.zettel import Zettel

if TYPE_CHECKING:
    from .slideset import ContentSource, SlideSet


class SlideSetError(Exception):
    """Base class of slide-set failures that end a request"""
    pass


class SlideSetInvariantError(SlideSetError):
    """Raised when the closure meets an identifier it never registered"""
    pass


class CompletionCancelled(SlideSetError):
    """Raised when completion is cancelled before it finished"""
    pass


class CancelToken(Protocol):
    """Anything with is_set(), e.g. threading.Event"""

    def is_set(self) -> bool: ...


class Collector:
    """
    Worklist-driven closure over one slide set

    Attributes:
        slideset: Slide set to complete; slides and images are added to it
        source: Content source used for every fetch
        cancel: Optional cancellation token
        stack: Identifiers still to visit
        visited: Identifiers already visited
        has_mermaid: A visited slide contains a mermaid diagram
    """

    def __init__(
        self, slideset: "SlideSet", source: "ContentSource", cancel: Optional[CancelToken] = None
    ) -> None:
        self.slideset = slideset
        self.source = source
        self.cancel = cancel
        self.stack: List[zjson.ZettelID] = []
        self.visited: Set[str] = set()
        self.has_mermaid = False

    def run(self) -> None:
        """
        Visit all slides and everything reachable from them.

        Raises:
            CompletionCancelled: The cancel token was set
            SlideSetInvariantError: A popped identifier has no slide
        """
        self.collection_init()
        while True:
            self.cancel_check()
            zid = self.pop()
            if zid is None:
                break
            if zid in self.visited:
                continue
            sl = self.slideset.slide_get(zid)
            if sl is None:
                raise SlideSetInvariantError(f"Slide {zid} scheduled but never registered")
            self.mark(zid)
            self.content_visit(sl.content)

    def collection_init(self) -> None:
        """Push all slide identifiers so that popping follows document order"""
        for zid in reversed(self.slideset.slideZids_get()):
            self.push(zid)

    def push(self, zid: zjson.ZettelID) -> None:
        self.stack.append(zid)

    def pop(self) -> Optional[zjson.ZettelID]:
        if not self.stack:
            return None
        return self.stack.pop()

    def mark(self, zid: str) -> None:
        self.visited.add(zid)

    def isMarked(self, zid: str) -> bool:
        return zid in self.visited

    def cancel_check(self) -> None:
        if self.cancel is not None and self.cancel.is_set():
            raise CompletionCancelled(f"Completion of slide set {self.slideset.zid} cancelled")

    def content_visit(self, content: Any) -> None:
        """Dispatch on the node kinds that matter for the closure"""
        for obj in zjson.nodes_iterate(content):
            node = zjson.node_classify(obj)
            if isinstance(node, zjson.LinkNode):
                if node.state == zjson.REF_STATE_ZETTEL:
                    zid = zjson.zid_fromRef(node.ref)
                    if zid.is_valid():
                        self.zettel_visit(zid)
            elif isinstance(node, zjson.EmbedNode):
                zid = zjson.ZettelID(node.src)
                if zid.is_valid():
                    self.image_visit(zid, node.syntax)
            elif isinstance(node, zjson.DiagramNode):
                if node.syntax == SYNTAX_MERMAID:
                    self.has_mermaid = True

    def zettel_visit(self, zid: zjson.ZettelID) -> None:
        """
        Add a linked zettel to the slide set, if it is public.

        Fetch failures and non-public zettel are dropped.
        """
        if self.isMarked(zid) or self.slideset.slide_get(zid) is not None:
            return
        self.cancel_check()
        try:
            zettel: Zettel = self.source.zettel_fetch(zid)
        except ZettelstoreError as e:
            LOG(f"Unable to retrieve linked zettel {zid}: {e}", level=1)
            return
        if not zettel.meta or zettel.content is None:
            LOG(f"Linked zettel {zid} lacks metadata or content", level=1)
            return

        visibility = string_get(zettel.meta, KEY_VISIBILITY)
        if visibility != VISIBILITY_PUBLIC:
            LOG(f"Linked zettel {zid} is not public ({visibility}), skipped", level=3)
            return
        self.slideset.slide_addAdditional(zid, zettel.meta, zettel.content)
        self.push(zid)

    def image_visit(self, zid: zjson.ZettelID, syntax: str) -> None:
        """Cache an embedded image; repeated embeds are fetched once"""
        if self.slideset.image_has(zid):
            LOG(f"Image {zid} already cached", level=3)
            return
        self.cancel_check()
        try:
            data = self.source.raw_fetch(zid)
        except ZettelstoreError as e:
            LOG(f"Unable to retrieve image {zid}: {e}", level=1)
            return
        self.slideset.image_add(zid, syntax, data)
