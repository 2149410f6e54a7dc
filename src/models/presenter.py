"""
Presenter-wide constants and configuration model
"""

from dataclasses import dataclass

from ..lib.zjson import ZettelID

# Metadata keys
KEY_AUTHOR = "author"
KEY_COPYRIGHT = "copyright"
KEY_LANG = "lang"
KEY_LICENSE = "license"
KEY_ROLE = "role"
KEY_SLIDESET_ROLE = "slideset-role"  # Only in the configuration zettel
KEY_SLIDE_ROLE = "slide-role"
KEY_SLIDE_TITLE = "slide-title"
KEY_SUBTITLE = "sub-title"
KEY_SYNTAX = "syntax"
KEY_TITLE = "title"
KEY_VISIBILITY = "visibility"

# Values
DEFAULT_SLIDESET_ROLE = "slideset"
SLIDE_ROLE_HANDOUT = "handout"
SLIDE_ROLE_SHOW = "show"
SYNTAX_MERMAID = "mermaid"
SYNTAX_SVG = "svg"
VISIBILITY_PUBLIC = "public"

# Well-known zettel
ZID_CONFIG = ZettelID("00009000001000")
ZID_DEFAULT_HOME = ZettelID("00010000000000")


@dataclass
class PresenterConfig:
    """
    Defaults applied when a slide set does not name them itself

    Built from AppSettings and overridden by the configuration zettel
    of the Zettelstore, if there is one.

    Attributes:
        slideset_role: Zettel role that marks a slide set
        author: Fallback author
        copyright: Fallback copyright
        license: Fallback license
    """
    slideset_role: str = DEFAULT_SLIDESET_ROLE
    author: str = ""
    copyright: str = ""
    license: str = ""
