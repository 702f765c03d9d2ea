"""
Renderers module for quilldoc.

Turns the validated content tree and extracted module documentation into a
static HTML site using Jinja2 templates.
"""

from quilldoc.renderers.base import BaseRenderer, build_timestamp
from quilldoc.renderers.html import HtmlRenderer
from quilldoc.renderers.inventory import Inventory, InventoryEntry
from quilldoc.renderers.markup import Highlighter, MarkupRenderer, relative_uri

__all__ = [
    "BaseRenderer",
    "build_timestamp",
    "HtmlRenderer",
    "Inventory",
    "InventoryEntry",
    "Highlighter",
    "MarkupRenderer",
    "relative_uri",
]
