"""
Renderers for slide sets and plain zettel pages

Three renderings of a completed SlideSet:

    SlidyRenderer    role "show",    Slidy2 document, links "#(n)"
    RevealRenderer   role "show",    reveal.js document, links "#/n"
    HandoutRenderer  role "handout", linear printable document

plus the simple pages of the presenter: the table of contents of a slide
set, a single zettel, and a zettel list.

Each renderer asks the slide set for its numbered traversal with
slides(role, offset) and encodes slide content through an HTMLEncoder that
calls back into slideLink_make() for in-page links.
"""

import html
from typing import Any, Dict, List, Optional

from .htmlenc import HTMLEncoder
from .log import LOG
from .meta import slideTitle_get, slideTitle_getZid, string_get, array_get, zettelTitle_getZid
from .slide import SlideInfo
from .slideset import SlideSet
from .textenc import inline_encode
from ..config.settings import AppSettings, appsettings
from ..models.presenter import (
    KEY_LANG,
    KEY_SLIDE_ROLE,
    KEY_SUBTITLE,
    SLIDE_ROLE_HANDOUT,
    SLIDE_ROLE_SHOW,
    PresenterConfig,
)
from ..models.zettel import OrderEntry, Zettel, ZettelOrder


def text_escape(inline: List[Any]) -> str:
    """Inline array as escaped plain text, for <title> and attributes"""
    return html.escape(inline_encode(inline), quote=True)


def htmlHeader_build(lang: str, title: str, head: str = "") -> str:
    lang_attr = f' lang="{html.escape(lang, quote=True)}"' if lang else ""
    return (
        f"<!DOCTYPE html>\n<html{lang_attr}>\n<head>\n"
        f'<meta charset="utf-8">\n'
        f"<title>{title}</title>\n"
        f"{head}"
        f"</head>\n"
    )


def htmlPage_build(lang: str, title: str, body: str, head: str = "", body_attrs: str = "") -> str:
    """Assemble a complete HTML document"""
    return f"{htmlHeader_build(lang, title, head)}<body{body_attrs}>\n{body}</body>\n</html>\n"


def metaTag_make(name: str, content: str) -> str:
    if not content:
        return ""
    return f'<meta name="{name}" content="{html.escape(content, quote=True)}">\n'


def slideLang_attr(si: SlideInfo, lang: str) -> str:
    """lang attribute for a slide whose language differs from the document"""
    slide_lang = si.slide.lang
    if slide_lang and slide_lang != lang:
        return f' lang="{html.escape(slide_lang, quote=True)}"'
    return ""


class Renderer:
    """
    Base of all slide-set renderings

    Attributes:
        role: Slide role this rendering selects ("show" or "handout")
        heading_offset: Added to content heading levels
        embed_image, ext_zettel_links, write_comment: HTMLEncoder flags
        settings: Application settings (script and style URLs)
    """

    role = ""
    heading_offset = 1
    embed_image = False
    ext_zettel_links = False
    write_comment = False

    def __init__(self, settings: Optional[AppSettings] = None) -> None:
        self.settings = settings or appsettings

    def encoder_make(self, slideset: SlideSet) -> HTMLEncoder:
        return HTMLEncoder(
            slideset=slideset,
            renderer=self,
            heading_offset=self.heading_offset,
            embed_image=self.embed_image,
            ext_zettel_links=self.ext_zettel_links,
            write_comment=self.write_comment,
            pygments_style=self.settings.pygments_style,
        )

    def render(self, slideset: SlideSet, config: PresenterConfig) -> str:
        raise NotImplementedError

    def slideLink_make(self, si: SlideInfo) -> str:
        raise NotImplementedError

    def mermaidScript_make(self, slideset: SlideSet) -> str:
        if not slideset.mermaid_has():
            return ""
        return (
            f'<script src="{html.escape(self.settings.mermaid_url, quote=True)}"></script>\n'
            "<script>mermaid.initialize({startOnLoad:true});</script>\n"
        )

    def titleParts_build(self, slideset: SlideSet, config: PresenterConfig, enc: HTMLEncoder) -> Dict[str, str]:
        """HTML fragments of the slide set's title block, "" where missing"""
        title = slideset.title()
        subtitle = slideset.subtitle()
        return {
            "title": enc.inline_encode(title) if title else "",
            "subtitle": enc.inline_encode(subtitle) if subtitle else "",
            "author": html.escape(slideset.author(config)),
            "copyright": html.escape(slideset.copyright(config)),
            "license": html.escape(slideset.license(config)),
        }

    def documentHead_build(self, slideset: SlideSet, config: PresenterConfig) -> str:
        return (
            metaTag_make("author", slideset.author(config))
            + metaTag_make("copyright", slideset.copyright(config))
            + metaTag_make("license", slideset.license(config))
        )


class SlidyRenderer(Renderer):
    """
    Slidy2 show

    A title page is written if the slide set has a title; it takes slide
    number 1, so content slides start at 2. Every split child becomes one
    div.slide.
    """

    role = SLIDE_ROLE_SHOW
    embed_image = False
    ext_zettel_links = True
    write_comment = True

    def slideLink_make(self, si: SlideInfo) -> str:
        return f"#({si.slide_no})"

    def render(self, slideset: SlideSet, config: PresenterConfig) -> str:
        enc = self.encoder_make(slideset)
        lang = slideset.lang()
        parts = self.titleParts_build(slideset, config, enc)
        offset = 2 if parts["title"] else 1
        first = slideset.slides(self.role, offset)

        body: List[str] = []
        if parts["title"]:
            body.append('<div class="slide titlepage">\n')
            body.append(f'<h1 class="title">{parts["title"]}</h1>\n')
            if parts["subtitle"]:
                body.append(f'<p class="subtitle">{parts["subtitle"]}</p>\n')
            if parts["author"]:
                body.append(f'<p class="author">{parts["author"]}</p>\n')
            if parts["copyright"]:
                body.append(f'<p class="copyright">{parts["copyright"]}</p>\n')
            if parts["license"]:
                body.append(f'<p class="license">{parts["license"]}</p>\n')
            body.append("</div>\n")

        count = 0
        if first is not None:
            for si in first.chain_iterate():
                enc.currentSlide_set(si)
                lang_attr = slideLang_attr(si, lang)
                for child in si.child().chain_iterate():
                    enc.unique_set(f"{child.slide_no}:")
                    body.append(f'<div class="slide"{lang_attr}>\n')
                    body.append(f"<h1>{enc.inline_encode(child.slide.title)}</h1>\n")
                    body.append(enc.blocks_encode(child.slide.content))
                    body.append("\n")
                    body.append(enc.endnotes_encode())
                    body.append("</div>\n")
                    count += 1
        LOG(f"Slidy show {slideset.zid}: {count} slides", level=2)

        slidy = html.escape(self.settings.slidy_url.rstrip("/"), quote=True)
        head = (
            self.documentHead_build(slideset, config)
            + f'<link rel="stylesheet" type="text/css" media="screen, projection, print" href="{slidy}/styles/slidy.css">\n'
            + f'<script src="{slidy}/scripts/slidy.js" charset="utf-8"></script>\n'
        )
        return htmlPage_build(
            lang,
            text_escape(slideset.title()) or slideset.zid,
            "".join(body) + self.mermaidScript_make(slideset),
            head=head,
        )


class RevealRenderer(Renderer):
    """
    reveal.js show

    Every slide is one horizontal section; a slide split at level-1
    headings becomes a vertical stack of sections. Links address the
    horizontal position, which is 0-based and includes the title section.
    """

    role = SLIDE_ROLE_SHOW
    embed_image = False
    ext_zettel_links = True
    write_comment = True

    def __init__(self, settings: Optional[AppSettings] = None) -> None:
        super().__init__(settings)
        self.positions: Dict[int, int] = {}

    def slideLink_make(self, si: SlideInfo) -> str:
        position = self.positions.get(si.index)
        if position is None:
            return f"#/{si.slide_no}"
        return f"#/{position}"

    def render(self, slideset: SlideSet, config: PresenterConfig) -> str:
        enc = self.encoder_make(slideset)
        lang = slideset.lang()
        parts = self.titleParts_build(slideset, config, enc)
        offset = 2 if parts["title"] else 1
        first = slideset.slides(self.role, offset)

        # Positions first, so forward links resolve too
        self.positions = {}
        position = 1 if parts["title"] else 0
        if first is not None:
            for si in first.chain_iterate():
                self.positions[si.index] = position
                position += 1

        body: List[str] = ['<div class="reveal">\n<div class="slides">\n']
        if parts["title"]:
            body.append('<section class="titlepage">\n')
            body.append(f'<h1 class="title">{parts["title"]}</h1>\n')
            if parts["subtitle"]:
                body.append(f'<p class="subtitle">{parts["subtitle"]}</p>\n')
            if parts["author"]:
                body.append(f'<p class="author">{parts["author"]}</p>\n')
            body.append("</section>\n")

        if first is not None:
            for si in first.chain_iterate():
                enc.currentSlide_set(si)
                lang_attr = slideLang_attr(si, lang)
                stacked = si.children_count() > 1
                if stacked:
                    body.append("<section>\n")
                for child in si.child().chain_iterate():
                    enc.unique_set(f"{child.slide_no}:")
                    body.append(f"<section{lang_attr}>\n")
                    body.append(f"<h1>{enc.inline_encode(child.slide.title)}</h1>\n")
                    body.append(enc.blocks_encode(child.slide.content))
                    body.append("\n")
                    body.append(enc.endnotes_encode())
                    body.append("</section>\n")
                if stacked:
                    body.append("</section>\n")
        body.append("</div>\n</div>\n")
        LOG(f"Reveal show {slideset.zid}: {len(self.positions)} sections", level=2)

        reveal = html.escape(self.settings.revealjs_url.rstrip("/"), quote=True)
        head = (
            self.documentHead_build(slideset, config)
            + f'<link rel="stylesheet" href="{reveal}/dist/reveal.css">\n'
            + f'<link rel="stylesheet" href="{reveal}/dist/theme/white.css">\n'
            + f'<link rel="stylesheet" href="{reveal}/plugin/highlight/zenburn.css">\n'
        )
        scripts = (
            f'<script src="{reveal}/dist/reveal.js"></script>\n'
            f'<script src="{reveal}/plugin/notes/notes.js"></script>\n'
            "<script>Reveal.initialize({hash: true, slideNumber: true, plugins: [RevealNotes]});</script>\n"
        )
        return htmlPage_build(
            lang,
            text_escape(slideset.title()) or slideset.zid,
            "".join(body) + scripts + self.mermaidScript_make(slideset),
            head=head,
        )


HANDOUT_STYLE = """<style>
body { max-width: 50em; margin: 2em auto; font-family: sans-serif; line-height: 1.4 }
section.slide { page-break-inside: avoid; border-top: 1px solid #ccc; padding-top: 1em }
p.caption { color: #666; font-size: small; margin: 0 }
aside.handout { border-left: 3px solid #ccc; padding-left: 1em }
div.cols { display: flex; gap: 1em }
div.col { flex: 1 }
img { max-width: 100% }
</style>
"""


class HandoutRenderer(Renderer):
    """
    Printable handout

    All slides of role handout in document order, content unsplit, with
    images embedded from the slide set's cache. Slides that are also part of
    the show are captioned with their show number(s).
    """

    role = SLIDE_ROLE_HANDOUT
    embed_image = True
    ext_zettel_links = False
    write_comment = False

    def slideLink_make(self, si: SlideInfo) -> str:
        return f"#({si.number})"

    @staticmethod
    def caption_make(si: SlideInfo) -> str:
        """Show-number caption: "Slide n" or "Slides n–m", "" if not shown"""
        first, last = si.slideNo_range()
        if first <= 0:
            return ""
        if first == last:
            return f"Slide {first}"
        return f"Slides {first}–{last}"

    def render(self, slideset: SlideSet, config: PresenterConfig) -> str:
        enc = self.encoder_make(slideset)
        lang = slideset.lang()
        parts = self.titleParts_build(slideset, config, enc)
        # Same offset as the shows, so captions name their slide numbers
        first = slideset.slides(self.role, 2 if parts["title"] else 1)

        body: List[str] = []
        if parts["title"]:
            body.append(f'<h1 class="title">{parts["title"]}</h1>\n')
        if parts["subtitle"]:
            body.append(f'<p class="subtitle">{parts["subtitle"]}</p>\n')
        if parts["author"]:
            body.append(f'<p class="author">{parts["author"]}</p>\n')

        count = 0
        if first is not None:
            for si in first.chain_iterate():
                enc.currentSlide_set(si)
                enc.unique_set(f"{si.number}:")
                body.append(f'<section class="slide" id="({si.number})"{slideLang_attr(si, lang)}>\n')
                caption = self.caption_make(si)
                if caption:
                    body.append(f'<p class="caption">{caption}</p>\n')
                body.append(f"<h1>{enc.inline_encode(si.slide.title)}</h1>\n")
                body.append(enc.blocks_encode(si.slide.content))
                body.append("\n")
                body.append(enc.endnotes_encode())
                body.append("</section>\n")
                count += 1
        LOG(f"Handout {slideset.zid}: {count} slides", level=2)

        if parts["copyright"] or parts["license"]:
            body.append("<footer>\n")
            if parts["copyright"]:
                body.append(f'<p class="copyright">{parts["copyright"]}</p>\n')
            if parts["license"]:
                body.append(f'<p class="license">{parts["license"]}</p>\n')
            body.append("</footer>\n")

        return htmlPage_build(
            lang,
            text_escape(slideset.title()) or slideset.zid,
            "".join(body) + self.mermaidScript_make(slideset),
            head=self.documentHead_build(slideset, config) + HANDOUT_STYLE,
        )


RENDERERS = {
    "sl": SlidyRenderer,
    "rv": RevealRenderer,
    "ho": HandoutRenderer,
}


# Plain pages


def slideTOC_render(order: ZettelOrder) -> str:
    """
    Table of contents of a slide set, with links to start each rendering.

    Entries are numbered from their shallow metadata only, so a slide
    split at headings makes later show links point a little early.
    """
    zid = order.zid
    title = slideTitle_get(order.meta)
    subtitle = array_get(order.meta, KEY_SUBTITLE)
    enc = HTMLEncoder()
    body: List[str] = []
    if title:
        body.append(f"<h1>{enc.inline_encode(title)}</h1>\n")
        if subtitle:
            body.append(f"<h2>{enc.inline_encode(subtitle)}</h2>\n")
    body.append(
        f'<p><a href="/sl/{zid}">Slidy</a> · <a href="/rv/{zid}">Reveal</a> · <a href="/ho/{zid}">Handout</a></p>\n'
    )
    body.append("<ol>\n")
    slide_no = 2 if title else 1
    for entry in order.entries:
        label = text_escape(slideTitle_getZid(entry.meta, entry.zid))
        role = string_get(entry.meta, KEY_SLIDE_ROLE)
        if role in ("", SLIDE_ROLE_SHOW):
            body.append(f'<li><a href="/sl/{zid}#({slide_no})">{label}</a></li>\n')
            slide_no += 1
        else:
            body.append(f'<li><a href="/{entry.zid}">{label}</a></li>\n')
    body.append("</ol>\n")
    return htmlPage_build(
        string_get(order.meta, KEY_LANG),
        text_escape(title) or zid,
        "".join(body),
    )


def zettelPage_render(zettel: Zettel, settings: Optional[AppSettings] = None) -> str:
    """A single zettel as HTML page; zettel links point to the presenter"""
    settings = settings or appsettings
    enc = HTMLEncoder(ext_zettel_links=True, heading_offset=1, pygments_style=settings.pygments_style)
    title = zettelTitle_getZid(zettel.meta, zettel.zid)
    body = f"<h1>{enc.inline_encode(title)}</h1>\n"
    if zettel.content:
        body += enc.blocks_encode(zettel.content) + "\n" + enc.endnotes_encode()
    return htmlPage_build(
        string_get(zettel.meta, KEY_LANG),
        text_escape(title),
        body,
    )


def zettelList_render(entries: List[OrderEntry], heading: str = "Zettel") -> str:
    body = [f"<h1>{html.escape(heading)}</h1>\n", "<ul>\n"]
    for entry in entries:
        label = text_escape(zettelTitle_getZid(entry.meta, entry.zid))
        body.append(f'<li><a href="/{entry.zid}">{label}</a></li>\n')
    body.append("</ul>\n")
    return htmlPage_build("", html.escape(heading), "".join(body))


def errorPage_render(title: str, message: str) -> str:
    body = f"<h1>{html.escape(title)}</h1>\n<p>{html.escape(message)}</p>\n"
    return htmlPage_build("", html.escape(title), body)
