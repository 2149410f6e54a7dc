"""
Models package for zettelpresenter

Contains data structures and type definitions shared by the slide engine,
the Zettelstore client, and the start-up pipeline.
"""

from .state import ProgramState, pipeline
from .zettel import Meta, MetaValue, Zettel, OrderEntry, ZettelOrder, Image
from .presenter import PresenterConfig

__all__ = [
    "ProgramState",
    "pipeline",
    "Meta",
    "MetaValue",
    "Zettel",
    "OrderEntry",
    "ZettelOrder",
    "Image",
    "PresenterConfig",
]
