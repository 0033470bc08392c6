"""DOM providers.

- SnapshotDOM: static HTML (or a captured page) parsed with lxml
- PlaywrightDOM: a live page driven by Playwright
"""

from .playwright import PlaywrightDOM, capture_snapshot
from .provider import DOMProvider, ElementStyle, is_visible
from .snapshot import SnapshotDOM

__all__ = [
    "DOMProvider",
    "ElementStyle",
    "is_visible",
    "SnapshotDOM",
    "PlaywrightDOM",
    "capture_snapshot",
]
