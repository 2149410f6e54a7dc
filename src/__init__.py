"""
zettelpresenter - Slide shows and handouts from a Zettelstore

Reads zettel through the Zettelstore client API, assembles them into slide
sets, and serves them as Slidy or reveal.js shows and as printable handouts.
"""

__version__ = "1.0.0"

from .lib import SlideSet, ZettelstoreClient, app_create, LOG, state_connectToLogger

__all__ = ["SlideSet", "ZettelstoreClient", "app_create", "LOG", "state_connectToLogger", "__version__"]
