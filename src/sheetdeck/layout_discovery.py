"""Layout discovery and registry for PowerPoint templates.

This module discovers slide layouts from a presentation and maps each
``LayoutKind`` to a concrete layout by name. Section and content slides both
use the title-and-body layout; section slides are distinguished by styling.
"""

import logging
from typing import TYPE_CHECKING

from .models import LayoutKind

if TYPE_CHECKING:
    from pptx.presentation import Presentation
    from pptx.slide import SlideLayout

logger = logging.getLogger(__name__)

# Type alias: maps layout name to its index in prs.slide_layouts
LayoutRegistry = dict[str, int]

# Candidate template layout names per kind, tried in order
LAYOUT_CANDIDATES: dict[LayoutKind, tuple[str, ...]] = {
    LayoutKind.TITLE: ('Title Slide', 'title-slide', 'Title', 'title'),
    LayoutKind.SECTION: ('Title and Content', 'content', 'Content', 'Body'),
    LayoutKind.CONTENT: ('Title and Content', 'content', 'Content', 'Body'),
}


def _has_placeholders(layout) -> bool:
    """Check if a slide layout has any placeholders."""
    try:
        return len(layout.placeholders) > 0
    except (AttributeError, TypeError):
        return False


def build_layout_registry(prs: "Presentation") -> LayoutRegistry:
    """Build a layout registry from a loaded presentation.

    Only layouts with placeholders are registered. If duplicate layout
    names are found (which can happen with multiple slide masters), the
    first one is kept and a warning is logged.

    Args:
        prs: python-pptx Presentation.

    Returns:
        Dictionary mapping layout name to layout index.

    Example:
        >>> registry = build_layout_registry(Presentation())
        >>> registry['Title Slide']
        0
    """
    registry: LayoutRegistry = {}

    for idx, layout in enumerate(prs.slide_layouts):
        layout_name = layout.name

        if not _has_placeholders(layout):
            logger.debug(f"Skipping layout '{layout_name}' (index {idx}): no placeholders")
            continue

        if layout_name in registry:
            logger.warning(
                f"Duplicate layout name '{layout_name}' found at index {idx}; "
                f"keeping first occurrence at index {registry[layout_name]}"
            )
            continue

        registry[layout_name] = idx

    logger.debug(f"Layout registry built: {len(registry)} layouts discovered")
    return registry


def get_available_layout_names(registry: LayoutRegistry) -> list[str]:
    """Get a sorted list of available layout names from a registry."""
    return sorted(registry.keys())


def resolve_layout(prs: "Presentation", registry: LayoutRegistry,
                   kind: LayoutKind) -> "SlideLayout":
    """Pick the template layout used for a layout kind.

    Args:
        prs: python-pptx Presentation.
        registry: Registry from ``build_layout_registry``.
        kind: Requested layout kind.

    Returns:
        The matching SlideLayout.

    Raises:
        ValueError: If no candidate layout exists in the template.
    """
    for candidate in LAYOUT_CANDIDATES[kind]:
        if candidate in registry:
            return prs.slide_layouts[registry[candidate]]

    available = get_available_layout_names(registry)
    raise ValueError(
        f"No layout for '{kind.value}' slides (tried: "
        f"{', '.join(LAYOUT_CANDIDATES[kind])}). "
        f"Available layouts: {', '.join(available)}"
    )
