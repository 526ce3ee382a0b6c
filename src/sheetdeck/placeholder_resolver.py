"""Region discovery for PowerPoint slides.

Each placeholder on a slide is exposed as a ``Region`` tagged with the role
it plays (title, centered title, subtitle, body). The role comes from the
placeholder type assigned by the template layout, so builders never depend
on shape indices.

Typical usage:
    >>> regions = get_regions(slide)
    >>> title = find_region(regions, "title")
    >>> title.shape.text_frame.text = "My Title"
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Iterable

from pptx.enum.shapes import PP_PLACEHOLDER_TYPE as PH_TYPE

from .models import Region

if TYPE_CHECKING:
    from pptx.shapes.base import BaseShape
    from pptx.slide import Slide

logger = logging.getLogger(__name__)

# Placeholder type -> region role. Some templates use OBJECT instead of BODY
# for the content area of "Title and Content".
_ROLE_BY_PH_TYPE: dict[PH_TYPE, str] = {
    PH_TYPE.TITLE: "title",
    PH_TYPE.CENTER_TITLE: "centered_title",
    PH_TYPE.SUBTITLE: "subtitle",
    PH_TYPE.BODY: "body",
    PH_TYPE.OBJECT: "body",
}

KNOWN_ROLES = frozenset(_ROLE_BY_PH_TYPE.values())


def _is_placeholder(shape: "BaseShape") -> bool:
    """Check if a shape is a placeholder."""
    try:
        return shape.is_placeholder
    except AttributeError:
        return False


def role_for_shape(shape: "BaseShape") -> str | None:
    """Return the role tag of a shape, or None if it has no recognised role.

    Args:
        shape: A shape from a slide.

    Returns:
        Role string, or None for non-placeholders and unmapped types.
    """
    if not _is_placeholder(shape):
        return None
    try:
        ph_type = shape.placeholder_format.type
    except (AttributeError, ValueError):
        return None
    return _ROLE_BY_PH_TYPE.get(ph_type)


def get_regions(slide: "Slide") -> list[Region]:
    """List every shape on a slide as a Region with its role tag.

    Shapes without a text frame are left out; shapes without a recognised
    role are included with ``role=None`` so callers can skip them.
    """
    regions = []
    for shape in slide.shapes:
        if not getattr(shape, "has_text_frame", False):
            continue
        role = role_for_shape(shape)
        regions.append(Region(role=role, name=shape.name, shape=shape))
        logger.debug(f"  Region '{shape.name}' role={role}")
    return regions


def find_region(regions: Iterable[Region], *roles: str) -> Region | None:
    """Return the first region whose role is one of ``roles``.

    Regions are tested in order; those with no role tag are skipped. If a
    slide has several regions with a matching role, the first wins and a
    warning is logged.

    Args:
        regions: Regions of one slide.
        *roles: Accepted role tags, e.g. ``"title", "centered_title"``.

    Returns:
        Matching region or None.
    """
    matches = [r for r in regions if r.role is not None and r.role in roles]
    if not matches:
        return None
    if len(matches) > 1:
        logger.warning(
            f"Multiple regions match roles {roles}: "
            f"{[m.name for m in matches]}. Using first: '{matches[0].name}'"
        )
    return matches[0]
