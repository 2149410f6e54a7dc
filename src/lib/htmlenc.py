"""
HTML encoding of ZJSON content

Walks a ZJSON block or inline array and produces HTML. The encoder is
slide aware: links to zettel that are part of the current rendering become
in-page links, embedded images come from the slide set's image cache, and
blocks marked for a role are written as asides only for that role.

Encoder flags per rendering (embed_image, ext_zettel_links, write_comment):
    show:    False, True,  True
    handout: True,  False, False
"""

import base64
import html
import re
from typing import Any, Callable, Dict, List, Optional, Protocol, Tuple

from pygments import highlight
from pygments.formatters import HtmlFormatter
from pygments.lexer import Lexer
from pygments.lexers import TextLexer, get_lexer_by_name
from pygments.util import ClassNotFound

from . import zjson
from .log import LOG
from .slide import SlideInfo
from .textenc import inline_encode
from ..models.presenter import SLIDE_ROLE_HANDOUT, SLIDE_ROLE_SHOW, SYNTAX_MERMAID, SYNTAX_SVG

# Raw HTML is passed through only if it contains none of these
_UNSAFE_HTML = re.compile(r"<\s*(script|iframe|object|embed|style)\b|javascript:|\son\w+\s*=", re.IGNORECASE)


def html_isSafe(s: str) -> bool:
    """Check raw HTML for active content"""
    return _UNSAFE_HTML.search(s) is None


class SlideLinker(Protocol):
    """The part of a renderer the encoder needs"""

    role: str

    def slideLink_make(self, si: SlideInfo) -> str: ...


class HTMLEncoder:
    """
    ZJSON to HTML encoder

    Attributes:
        slideset: Slide set providing cached images (optional)
        renderer: Rendering in progress, for role and in-page links (optional)
        heading_offset: Added to every heading level
        embed_image: Inline cached images as data URIs
        ext_zettel_links: Link zettel outside the rendering to the presenter
        write_comment: Emit comments as HTML comments
        pygments_style: Style for highlighted code blocks
        cur_slide: Slide being encoded, for in-page link resolution
        unique: Prefix making footnote and mark ids unique per slide
        footnotes: Footnotes collected since the last endnotes_encode()
    """

    def __init__(
        self,
        slideset: Any = None,
        renderer: Optional[SlideLinker] = None,
        heading_offset: int = 0,
        embed_image: bool = False,
        ext_zettel_links: bool = False,
        write_comment: bool = False,
        pygments_style: str = "default",
    ) -> None:
        self.slideset = slideset
        self.renderer = renderer
        self.heading_offset = heading_offset
        self.embed_image = embed_image
        self.ext_zettel_links = ext_zettel_links
        self.write_comment = write_comment
        self.pygments_style = pygments_style
        self.cur_slide: Optional[SlideInfo] = None
        self.unique = ""
        self.footnotes: List[Tuple[List[Any], Dict[str, str]]] = []
        self.write_footnote = True
        self.visible_space = False
        self.parts: List[str] = []
        self.handlers: Dict[str, Callable[[zjson.Object], None]] = {}
        self.handlers_register()

    def handlers_register(self) -> None:
        """Map ZJSON types to their visit methods"""
        formats = {
            zjson.TYPE_FORMAT_DELETE: "del",
            zjson.TYPE_FORMAT_EMPH: "em",
            zjson.TYPE_FORMAT_INSERT: "ins",
            zjson.TYPE_FORMAT_QUOTE: "q",
            zjson.TYPE_FORMAT_SPAN: "span",
            zjson.TYPE_FORMAT_STRONG: "strong",
            zjson.TYPE_FORMAT_SUB: "sub",
            zjson.TYPE_FORMAT_SUPER: "sup",
        }
        self.handlers = {
            # Block
            zjson.TYPE_PARAGRAPH: self.paragraph_visit,
            zjson.TYPE_HEADING: self.heading_visit,
            zjson.TYPE_BREAK_THEMATIC: lambda obj: self.write("<hr>"),
            zjson.TYPE_LIST_BULLET: lambda obj: self.list_visit(obj, "ul"),
            zjson.TYPE_LIST_ORDERED: lambda obj: self.list_visit(obj, "ol"),
            zjson.TYPE_DESCR_LIST: self.description_visit,
            zjson.TYPE_LIST_QUOTATION: self.quotation_visit,
            zjson.TYPE_TABLE: self.table_visit,
            zjson.TYPE_BLOCK: self.block_visit,
            zjson.TYPE_POEM: lambda obj: self.region_visit(obj, "div"),
            zjson.TYPE_EXCERPT: lambda obj: self.region_visit(obj, "blockquote"),
            zjson.TYPE_VERBATIM_CODE: self.verbatimCode_visit,
            zjson.TYPE_VERBATIM_EVAL: self.verbatimEval_visit,
            zjson.TYPE_VERBATIM_COMMENT: self.verbatimComment_visit,
            zjson.TYPE_VERBATIM_HTML: self.html_visit,
            zjson.TYPE_BLOB: self.blob_visit,
            # Inline
            zjson.TYPE_TEXT: lambda obj: self.write_escaped(zjson.string_get(obj, zjson.NAME_STRING)),
            zjson.TYPE_SPACE: self.space_visit,
            zjson.TYPE_BREAK_SOFT: lambda obj: self.write("\n"),
            zjson.TYPE_BREAK_HARD: lambda obj: self.write("<br>"),
            zjson.TYPE_TAG: self.tag_visit,
            zjson.TYPE_LINK: self.link_visit,
            zjson.TYPE_EMBED: self.embed_visit,
            zjson.TYPE_EMBED_BLOB: self.embedBlob_visit,
            zjson.TYPE_CITATION: self.cite_visit,
            zjson.TYPE_MARK: self.mark_visit,
            zjson.TYPE_FOOTNOTE: self.footnote_visit,
            zjson.TYPE_LITERAL_CODE: lambda obj: self.literal_visit(obj, "code", prog_lang=True),
            zjson.TYPE_LITERAL_COMMENT: self.literalComment_visit,
            zjson.TYPE_LITERAL_INPUT: lambda obj: self.literal_visit(obj, "kbd"),
            zjson.TYPE_LITERAL_OUTPUT: lambda obj: self.literal_visit(obj, "samp"),
            zjson.TYPE_LITERAL_HTML: self.html_visit,
        }
        for kind, tag in formats.items():
            self.handlers[kind] = lambda obj, tag=tag: self.format_visit(obj, tag)

    # Public entry points

    def unique_set(self, unique: str) -> None:
        self.unique = unique

    def currentSlide_set(self, si: Optional[SlideInfo]) -> None:
        self.cur_slide = si

    def blocks_encode(self, blocks: Any) -> str:
        """Encode a block array and return the HTML"""
        self.blocks_write(blocks)
        return self.buffer_take()

    def inline_encode(self, inline: Any) -> str:
        """Encode an inline array and return the HTML"""
        self.inlines_write(inline)
        return self.buffer_take()

    def endnotes_encode(self) -> str:
        """
        Encode the footnotes collected so far as an ordered list.

        Returns:
            HTML, or "" when there were no footnotes
        """
        if not self.footnotes:
            return ""
        notes, self.footnotes = self.footnotes, []
        self.write('<ol class="endnotes">\n')
        for n, (note, _attrs) in enumerate(notes, start=1):
            self.write(f'<li value="{n}" id="fn:{self.unique}{n}" class="footnote">')
            self.inlines_write(note)
            self.write(f' <a href="#fnref:{self.unique}{n}">&#x21a9;&#xfe0e;</a></li>\n')
        self.write("</ol>\n")
        return self.buffer_take()

    # Output

    def write(self, s: str) -> None:
        self.parts.append(s)

    def write_escaped(self, s: str) -> None:
        self.parts.append(html.escape(s, quote=False))

    def write_escapedLiteral(self, s: str) -> None:
        escaped = html.escape(s, quote=False)
        if self.visible_space:
            escaped = escaped.replace(" ", "␣")
        self.parts.append(escaped)

    def buffer_take(self) -> str:
        result = "".join(self.parts)
        self.parts = []
        return result

    def attributes_write(self, attrs: Dict[str, str]) -> None:
        for key in sorted(attrs):
            if key in ("", "-"):
                continue
            self.write(f' {key}="{html.escape(attrs[key], quote=True)}"')

    # Traversal

    def blocks_write(self, blocks: Any) -> None:
        for pos, block in enumerate(zjson.array_make(blocks) or []):
            if pos > 0:
                self.write("\n")
            self.object_write(block, "block")

    def inlines_write(self, inline: Any) -> None:
        for elem in zjson.array_make(inline) or []:
            self.object_write(elem, "inline")

    def object_write(self, value: Any, where: str) -> None:
        obj = zjson.object_make(value)
        if obj is None:
            LOG(f"Unexpected {where} value {value!r}", level=3)
            return
        kind = zjson.type_get(obj)
        handler = self.handlers.get(kind)
        if handler is not None:
            handler(obj)
            return
        LOG(f"Unknown {where} type {kind!r}", level=3)
        self.blocks_write(zjson.array_get(obj, zjson.NAME_BLOCK))
        self.inlines_write(zjson.array_get(obj, zjson.NAME_INLINE))

    # Blocks

    def paragraph_visit(self, obj: zjson.Object) -> None:
        self.write("<p>")
        self.inlines_write(zjson.array_get(obj, zjson.NAME_INLINE))
        self.write("</p>")

    def heading_visit(self, obj: zjson.Object) -> None:
        level = zjson.number_get(obj)
        if level is None:
            self.inlines_write(zjson.array_get(obj, zjson.NAME_INLINE))
            return
        level = min(level + self.heading_offset, 6)
        self.write(f"<h{level}>")
        self.inlines_write(zjson.array_get(obj, zjson.NAME_INLINE))
        self.write(f"</h{level}>")

    def item_write(self, item: Any) -> None:
        """A list item; a lone paragraph is written without <p>"""
        paragraph = paragraph_get(item)
        if paragraph is not None:
            self.inlines_write(paragraph)
        else:
            self.blocks_write(item)

    def list_visit(self, obj: zjson.Object, tag: str) -> None:
        self.write(f"<{tag}>\n")
        for item in zjson.array_get(obj, zjson.NAME_LIST):
            self.write("<li>")
            self.item_write(item)
            self.write("</li>\n")
        self.write(f"</{tag}>")

    def description_visit(self, obj: zjson.Object) -> None:
        self.write("<dl>\n")
        for elem in zjson.array_get(obj, zjson.NAME_DESCR_LIST):
            entry = zjson.object_make(elem)
            if entry is None:
                continue
            self.write("<dt>")
            self.inlines_write(zjson.array_get(entry, zjson.NAME_INLINE))
            self.write("</dt>\n")
            for description in zjson.array_get(entry, zjson.NAME_DESCRIPTION):
                if not zjson.array_make(description):
                    continue
                self.write("<dd>")
                self.item_write(description)
                self.write("</dd>\n")
        self.write("</dl>")

    def quotation_visit(self, obj: zjson.Object) -> None:
        self.write("<blockquote>")
        in_para = False
        for item in zjson.array_get(obj, zjson.NAME_LIST):
            paragraph = paragraph_get(item)
            if paragraph is not None:
                if in_para:
                    self.write("\n")
                else:
                    self.write("<p>")
                    in_para = True
                self.inlines_write(paragraph)
            else:
                if in_para:
                    self.write("</p>")
                    in_para = False
                self.blocks_write(item)
        if in_para:
            self.write("</p>")
        self.write("</blockquote>")

    def table_visit(self, obj: zjson.Object) -> None:
        data = zjson.array_get(obj, zjson.NAME_TABLE)
        if len(data) != 2:
            return
        header = zjson.array_make(data[0]) or []
        rows = zjson.array_make(data[1]) or []
        self.write("<table>\n")
        if header:
            self.write("<thead>\n")
            self.row_write(header, "th")
            self.write("</thead>\n")
        if rows:
            self.write("<tbody>\n")
            for row in rows:
                cells = zjson.array_make(row)
                if cells is not None:
                    self.row_write(cells, "td")
            self.write("</tbody>\n")
        self.write("</table>")

    def row_write(self, row: List[Any], tag: str) -> None:
        aligns = {zjson.ALIGN_LEFT: "left", zjson.ALIGN_CENTER: "center", zjson.ALIGN_RIGHT: "right"}
        self.write("<tr>")
        for value in row:
            cell = zjson.object_make(value)
            if cell is None:
                continue
            align = aligns.get(zjson.string_get(cell, zjson.NAME_STRING))
            self.write(f'<{tag} class="{align}">' if align else f"<{tag}>")
            self.inlines_write(zjson.array_get(cell, zjson.NAME_INLINE))
            self.write(f"</{tag}>")
        self.write("</tr>\n")

    def block_visit(self, obj: zjson.Object) -> None:
        """
        Generic region. The default attribute selects special treatment:
        "show", "handout", and "both" are speaker notes or handout-only text,
        written as asides for the matching renderer only; "cols" and "col"
        become CSS classes.
        """
        attrs = zjson.attributes_get(obj)
        value = attrs.get("", "")
        role = self.renderer.role if self.renderer is not None else ""
        aside = ""
        if value == "show" and role == SLIDE_ROLE_SHOW:
            aside = "notes"
        elif value == "handout" and role == SLIDE_ROLE_HANDOUT:
            aside = "handout"
        elif value == "both" and role in (SLIDE_ROLE_SHOW, SLIDE_ROLE_HANDOUT):
            aside = "notes" if role == SLIDE_ROLE_SHOW else "handout"
        elif value in ("show", "handout", "both"):
            return
        if aside:
            self.write(f'<aside class="{aside}">\n')
            self.blocks_write(zjson.array_get(obj, zjson.NAME_BLOCK))
            self.write("\n</aside>")
            return
        if value in ("cols", "col"):
            attrs.pop("")
            attrs = class_add(attrs, value)
        self.region_visit(obj, "div", attrs)

    def region_visit(self, obj: zjson.Object, tag: str, attrs: Optional[Dict[str, str]] = None) -> None:
        if attrs is None:
            attrs = zjson.attributes_get(obj)
        self.write(f"<{tag}")
        self.attributes_write(attrs)
        self.write(">\n")
        self.blocks_write(zjson.array_get(obj, zjson.NAME_BLOCK))
        cite = zjson.array_get(obj, zjson.NAME_INLINE)
        if cite:
            self.write("\n<cite>")
            self.inlines_write(cite)
            self.write("</cite>")
        self.write(f"\n</{tag}>")

    def verbatimCode_visit(self, obj: zjson.Object) -> None:
        """Code block; highlighted with pygments when a language is given"""
        text = zjson.string_get(obj, zjson.NAME_STRING)
        attrs = zjson.attributes_get(obj)
        language = attrs.pop("", "")
        if language:
            lexer: Lexer
            try:
                lexer = get_lexer_by_name(language)
            except ClassNotFound:
                lexer = TextLexer()
            formatter = HtmlFormatter(style=self.pygments_style, noclasses=True)
            self.write(highlight(text, lexer, formatter))
            return
        saved = self.visible_space
        if "-" in attrs:
            self.visible_space = True
        self.write("<pre><code")
        self.attributes_write(attrs)
        self.write(">")
        self.write_escapedLiteral(text)
        self.write("</code></pre>")
        self.visible_space = saved

    def verbatimEval_visit(self, obj: zjson.Object) -> None:
        node = zjson.node_classify(obj)
        if isinstance(node, zjson.DiagramNode) and node.syntax == SYNTAX_MERMAID:
            self.write('<div class="mermaid">\n')
            self.write(node.text)
            self.write("</div>")
            return
        self.verbatimCode_visit(obj)

    def verbatimComment_visit(self, obj: zjson.Object) -> None:
        text = zjson.string_get(obj, zjson.NAME_STRING)
        if self.write_comment and text:
            self.write("<!--\n")
            self.write(text.replace("-->", "--&gt;"))
            self.write("\n-->")

    def html_visit(self, obj: zjson.Object) -> None:
        text = zjson.string_get(obj, zjson.NAME_STRING)
        if text and html_isSafe(text):
            self.write(text)

    def blob_visit(self, obj: zjson.Object) -> None:
        syntax = zjson.string_get(obj, zjson.NAME_STRING)
        if syntax == SYNTAX_SVG:
            self.svg_write(obj)
        elif syntax:
            self.dataImage_write(obj, syntax, zjson.string_get(obj, zjson.NAME_STRING2))

    def svg_write(self, obj: zjson.Object) -> None:
        svg = zjson.string_get(obj, zjson.NAME_STRING3)
        if svg:
            self.write(f"<p>{svg}</p>")

    def dataImage_write(self, obj: zjson.Object, syntax: str, title: str) -> None:
        data = zjson.string_get(obj, zjson.NAME_BINARY)
        if not data:
            return
        self.write(f'<p><img src="data:image/{syntax};base64,{data}"')
        if title:
            self.write(f' title="{html.escape(title, quote=True)}"')
        self.write("></p>")

    # Inlines

    def space_visit(self, obj: zjson.Object) -> None:
        self.write(zjson.string_get(obj, zjson.NAME_STRING) or " ")

    def tag_visit(self, obj: zjson.Object) -> None:
        text = zjson.string_get(obj, zjson.NAME_STRING)
        if text:
            self.write_escaped("#" + text)

    def link_visit(self, obj: zjson.Object) -> None:
        """
        Links to zettel of the current rendering become in-page links;
        other zettel links point to the presenter if ext_zettel_links is set,
        and are written as plain text otherwise.
        """
        node = zjson.node_classify(obj)
        assert isinstance(node, zjson.LinkNode)
        if not node.ref:
            self.inlines_write(node.inline)
            return
        attrs = zjson.attributes_get(obj)
        attrs.pop("", None)
        suffix = ""
        if node.state == zjson.REF_STATE_EXTERNAL:
            attrs["href"] = node.ref
            attrs = class_add(attrs, "external")
            attrs["target"] = "_blank"
            attrs["rel"] = "noopener noreferrer"
            suffix = "&#10138;"
        elif node.state == zjson.REF_STATE_ZETTEL:
            zid = zjson.zid_fromRef(node.ref)
            si = self.cur_slide.slide_find(zid) if self.cur_slide is not None else None
            if si is not None and self.renderer is not None:
                attrs["href"] = self.renderer.slideLink_make(si)
            elif self.ext_zettel_links:
                attrs["href"] = "/" + node.ref
                suffix = "&#10547;"
        elif node.state in (zjson.REF_STATE_BASED, zjson.REF_STATE_HOSTED, zjson.REF_STATE_SELF, zjson.REF_STATE_FOUND):
            attrs["href"] = node.ref
        elif node.state == zjson.REF_STATE_BROKEN:
            attrs = class_add(attrs, "broken")
        else:
            LOG(f"Link with unknown state {node.state!r} to {node.ref}", level=2)

        if attrs:
            self.write("<a")
            self.attributes_write(attrs)
            self.write(">")
        if node.inline:
            self.inlines_write(node.inline)
        else:
            self.write_escaped(node.ref)
        if attrs:
            self.write("</a>")
        self.write(suffix)

    def embed_visit(self, obj: zjson.Object) -> None:
        """
        Embedded image. Cached images are inlined (SVG always, others if
        embed_image is set); everything else is fetched through the
        presenter's content route.
        """
        node = zjson.node_classify(obj)
        assert isinstance(node, zjson.EmbedNode)
        zid = zjson.ZettelID(node.src)
        image = None
        if self.slideset is not None and zid.is_valid():
            image = self.slideset.image_get(zid)
        if node.syntax == SYNTAX_SVG:
            if image is not None and image.syntax == SYNTAX_SVG:
                self.write(image.data.decode("utf-8", errors="replace"))
            else:
                self.write(f'<figure><embed type="image/svg+xml" src="/c/{html.escape(node.src)}" /></figure>\n')
            return
        if image is not None and self.embed_image:
            encoded = base64.b64encode(image.data).decode("ascii")
            self.write(f'<img src="data:image/{image.syntax};base64,{encoded}"')
        else:
            src = f"/c/{node.src}" if zid.is_valid() else node.src
            self.write(f'<img src="{html.escape(src, quote=True)}"')
        self.imageTitle_write(obj, node.inline)

    def imageTitle_write(self, obj: zjson.Object, title: List[Any]) -> None:
        if title:
            self.write(f' title="{html.escape(inline_encode(title), quote=True)}"')
        attrs = zjson.attributes_get(obj)
        attrs.pop("", None)
        self.attributes_write(attrs)
        self.write(">")

    def embedBlob_visit(self, obj: zjson.Object) -> None:
        syntax = zjson.string_get(obj, zjson.NAME_STRING)
        if syntax == SYNTAX_SVG:
            self.svg_write(obj)
        elif syntax:
            self.dataImage_write(obj, syntax, inline_encode(zjson.array_get(obj, zjson.NAME_INLINE)))

    def cite_visit(self, obj: zjson.Object) -> None:
        key = zjson.string_get(obj, zjson.NAME_STRING)
        inline = zjson.array_get(obj, zjson.NAME_INLINE)
        if key:
            self.write_escaped(key)
            if inline:
                self.write(", ")
        self.inlines_write(inline)

    def mark_visit(self, obj: zjson.Object) -> None:
        mark = zjson.string_get(obj, zjson.NAME_STRING2)
        inline = zjson.array_get(obj, zjson.NAME_INLINE)
        if not mark:
            self.inlines_write(inline)
            return
        prefix = f"{self.unique}:" if self.unique else ""
        self.write(f'<a id="{html.escape(prefix + mark, quote=True)}">')
        self.inlines_write(inline)
        self.write("</a>")

    def footnote_visit(self, obj: zjson.Object) -> None:
        if not self.write_footnote:
            return
        note = zjson.array_get(obj, zjson.NAME_INLINE)
        if not note:
            return
        self.footnotes.append((note, zjson.attributes_get(obj)))
        n = len(self.footnotes)
        self.write(f'<sup id="fnref:{self.unique}{n}"><a href="#fn:{self.unique}{n}">{n}</a></sup>')

    def format_visit(self, obj: zjson.Object, tag: str) -> None:
        attrs = zjson.attributes_get(obj)
        value = attrs.pop("", "")
        if value:
            attrs = class_add(attrs, value)
        self.write(f"<{tag}")
        self.attributes_write(attrs)
        self.write(">")
        self.inlines_write(zjson.array_get(obj, zjson.NAME_INLINE))
        self.write(f"</{tag}>")

    def literal_visit(self, obj: zjson.Object, tag: str, prog_lang: bool = False) -> None:
        text = zjson.string_get(obj, zjson.NAME_STRING)
        if not text:
            return
        attrs = zjson.attributes_get(obj)
        language = attrs.pop("", "")
        if prog_lang and language:
            attrs = class_add(attrs, "language-" + language)
        saved = self.visible_space
        if attrs.pop("-", None) is not None:
            self.visible_space = True
        self.write(f"<{tag}")
        self.attributes_write(attrs)
        self.write(">")
        self.write_escapedLiteral(text)
        self.write(f"</{tag}>")
        self.visible_space = saved

    def literalComment_visit(self, obj: zjson.Object) -> None:
        text = zjson.string_get(obj, zjson.NAME_STRING)
        if self.write_comment and text:
            self.write(f"<!-- {text.replace('-->', '--&gt;')} -->")


def paragraph_get(blocks: Any) -> Optional[List[Any]]:
    """Inline content of a block array that is a single paragraph, else None"""
    array = zjson.array_make(blocks)
    if array is None or len(array) != 1:
        return None
    obj = zjson.object_make(array[0])
    if obj is not None and zjson.type_get(obj) == zjson.TYPE_PARAGRAPH:
        return zjson.array_get(obj, zjson.NAME_INLINE)
    return None


def class_add(attrs: Dict[str, str], cls: str) -> Dict[str, str]:
    """Return attrs with cls appended to the class attribute"""
    result = dict(attrs)
    existing = result.get("class", "")
    result["class"] = f"{existing} {cls}" if existing else cls
    return result
