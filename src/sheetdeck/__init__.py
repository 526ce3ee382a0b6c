"""Slide deck generator driven by Config and Slides worksheets."""

__version__ = "1.2.0"
__release_date__ = "2025-10-01"

from .models import (
    DeckConfig,
    DeckResult,
    Diagnostic,
    LayoutKind,
    SlideRecord,
    SlideResult,
    SyncEndpoint,
)
from .sheet_parser import (
    load_config,
    load_slides,
    read_config,
    read_slides,
    format_bullets,
)
from .slide_builders import (
    build_slide,
    get_theme_for_section,
)
from .media import (
    compute_media_box,
    place_media,
)
from .generator import (
    DeckGenerator,
    generate_deck,
)
from .updater import (
    Synchronizer,
    compare_versions,
    fetch_with_retry,
)

__all__ = [
    "__version__",
    # Data model
    "DeckConfig",
    "DeckResult",
    "Diagnostic",
    "LayoutKind",
    "SlideRecord",
    "SlideResult",
    "SyncEndpoint",
    # Table parsing
    "load_config",
    "load_slides",
    "read_config",
    "read_slides",
    "format_bullets",
    # Slide building
    "build_slide",
    "get_theme_for_section",
    # Media placement
    "compute_media_box",
    "place_media",
    # Deck assembly
    "DeckGenerator",
    "generate_deck",
    # Updates
    "Synchronizer",
    "compare_versions",
    "fetch_with_retry",
]
