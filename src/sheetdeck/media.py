"""Chart and image placement.

A media reference is resolved by name through the asset store, inserted as
a picture scaled to fit a box of 70% page width by 50% page height (aspect
ratio preserved), centered horizontally with its top at 30% of the page
height. Any failure along the way draws a labeled placeholder instead, so
nothing raised here ever escapes ``place_media``.
"""

from __future__ import annotations

import io
import logging
from dataclasses import dataclass, field
from typing import Any

from PIL import Image

from .exceptions import AssetNotFound, MediaResolutionError
from .interfaces import AssetStore, DocumentSink
from .models import Box, Diagnostic, MediaKind, PlaceholderStyle

logger = logging.getLogger(__name__)

# Media cap box and vertical pin, as fractions of the page
MAX_WIDTH_RATIO = 0.7
MAX_HEIGHT_RATIO = 0.5
TOP_RATIO = 0.3

# Placeholder band: 10%-90% of width, 40%-80% of height
PLACEHOLDER_LEFT_RATIO = 0.1
PLACEHOLDER_TOP_RATIO = 0.4
PLACEHOLDER_WIDTH_RATIO = 0.8
PLACEHOLDER_HEIGHT_RATIO = 0.4

PLACEHOLDER_LABELS = {
    MediaKind.CHART: 'CHART NOT FOUND',
    MediaKind.IMAGE: 'IMAGE NOT FOUND',
}

PLACEHOLDER_STYLES = {
    MediaKind.CHART: PlaceholderStyle(fill_color='#F0F0F0'),
    MediaKind.IMAGE: PlaceholderStyle(fill_color='#E8E8E8'),
}


@dataclass
class MediaOutcome:
    """What happened to one chart or image reference."""
    kind: MediaKind
    ref: str
    placed: bool
    box: Box | None = None
    diagnostics: list[Diagnostic] = field(default_factory=list)


def read_image_size(data: bytes) -> tuple[int, int]:
    """Read the natural pixel size of an encoded image.

    Raises:
        MediaResolutionError: If the data is not a readable image.
    """
    try:
        with Image.open(io.BytesIO(data)) as img:
            return img.size
    except Exception as e:
        raise MediaResolutionError(f"Unreadable image data: {e}") from e


def compute_media_box(page_width: float, page_height: float,
                      natural_width: float, natural_height: float) -> Box:
    """Fit media into the cap box while preserving its aspect ratio.

    If the cap box is relatively wider than the media, height is the binding
    constraint; otherwise width binds. The result is centered horizontally
    and pinned at 30% of the page height.

    Args:
        page_width: Page width in points.
        page_height: Page height in points.
        natural_width: Media width (any unit).
        natural_height: Media height (same unit as width).

    Returns:
        Box in points.

    Raises:
        MediaResolutionError: If either natural dimension is not positive.

    Example:
        >>> box = compute_media_box(960, 540, 1600, 900)
        >>> round(box.width, 2), round(box.height, 2)
        (480.0, 270.0)
    """
    if natural_width <= 0 or natural_height <= 0:
        raise MediaResolutionError(
            f"Invalid media size {natural_width}x{natural_height}"
        )

    aspect_ratio = natural_width / natural_height
    max_width = page_width * MAX_WIDTH_RATIO
    max_height = page_height * MAX_HEIGHT_RATIO

    if max_width / max_height > aspect_ratio:
        new_height = max_height
        new_width = new_height * aspect_ratio
    else:
        new_width = max_width
        new_height = new_width / aspect_ratio

    left = (page_width - new_width) / 2
    top = page_height * TOP_RATIO
    return Box(left=left, top=top, width=new_width, height=new_height)


def placeholder_box(page_width: float, page_height: float) -> Box:
    """Fixed box used for the missing-media placeholder."""
    return Box(
        left=page_width * PLACEHOLDER_LEFT_RATIO,
        top=page_height * PLACEHOLDER_TOP_RATIO,
        width=page_width * PLACEHOLDER_WIDTH_RATIO,
        height=page_height * PLACEHOLDER_HEIGHT_RATIO,
    )


def placeholder_label(kind: MediaKind, ref: str) -> str:
    return f"{PLACEHOLDER_LABELS[kind]}: {ref}"


def _insert_asset(sink: DocumentSink, slide: Any, name: str,
                  assets: AssetStore | None) -> Box:
    """Look up, read and insert an asset; raise on any failure."""
    if assets is None:
        raise AssetNotFound(name)
    ref = assets.find(name)
    if ref is None:
        raise AssetNotFound(name)

    data = assets.read_bytes(ref)
    width, height = read_image_size(data)
    box = compute_media_box(sink.page_width, sink.page_height, width, height)
    sink.add_image(slide, data, box)
    return box


def place_media(sink: DocumentSink, slide: Any, ref: str, kind: MediaKind,
                assets: AssetStore | None) -> MediaOutcome:
    """Insert a chart or image, falling back to a labeled placeholder.

    Args:
        sink: Document being built.
        slide: Slide to place the media on.
        ref: Asset name as written in the slide table.
        kind: Chart or image.
        assets: Asset store to resolve ``ref`` against.

    Returns:
        MediaOutcome; ``placed`` is False when the placeholder was used.
    """
    outcome = MediaOutcome(kind=kind, ref=ref, placed=False)
    name = str(ref).strip()

    if name:
        try:
            outcome.box = _insert_asset(sink, slide, name, assets)
            outcome.placed = True
            logger.info(f"  Successfully inserted {kind.value}: {name}")
            return outcome
        except AssetNotFound as e:
            message = f"{kind.value.capitalize()} file not found: {name}"
            logger.warning(f"  {message}")
            outcome.diagnostics.append(Diagnostic(stage=kind.value, message=str(e)))
        except Exception as e:
            message = f"Error loading {kind.value} '{name}': {e}"
            logger.warning(f"  {message}")
            outcome.diagnostics.append(Diagnostic(stage=kind.value, message=message))

    box = placeholder_box(sink.page_width, sink.page_height)
    try:
        sink.add_placeholder(slide, box, placeholder_label(kind, ref), PLACEHOLDER_STYLES[kind])
        outcome.box = box
    except Exception as e:
        message = f"Could not add {kind.value} placeholder: {e}"
        logger.error(f"  {message}")
        outcome.diagnostics.append(Diagnostic(stage=kind.value, message=message))
    return outcome


def add_chart(sink: DocumentSink, slide: Any, chart_ref: str,
              assets: AssetStore | None) -> MediaOutcome:
    return place_media(sink, slide, chart_ref, MediaKind.CHART, assets)


def add_image(sink: DocumentSink, slide: Any, media_ref: str,
              assets: AssetStore | None) -> MediaOutcome:
    return place_media(sink, slide, media_ref, MediaKind.IMAGE, assets)
