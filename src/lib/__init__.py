"""
zettelpresenter library modules

Import order matters: log and zjson have no package-internal dependencies
and must be loaded before the modules built on them.
"""

from .log import LOG, state_connectToLogger
from .zjson import ZettelID
from .client import ZettelstoreClient, ZettelstoreError, ZettelNotFound
from .slideset import SlideSet
from .render import SlidyRenderer, RevealRenderer, HandoutRenderer
from .server import app_create

__all__ = [
    "LOG",
    "state_connectToLogger",
    "ZettelID",
    "ZettelstoreClient",
    "ZettelstoreError",
    "ZettelNotFound",
    "SlideSet",
    "SlidyRenderer",
    "RevealRenderer",
    "HandoutRenderer",
    "app_create",
]
