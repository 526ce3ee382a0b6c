"""Picture and shape helpers for PowerPoint slides.

Positions arrive in points; python-pptx lengths are EMU, so every value is
converted with ``Pt`` at this boundary.
"""

import io
import logging
from typing import TYPE_CHECKING

from pptx.enum.shapes import MSO_SHAPE
from pptx.enum.text import PP_ALIGN, MSO_ANCHOR
from pptx.util import Pt

from .models import Box, PlaceholderStyle
from .rich_text import parse_color

if TYPE_CHECKING:
    from pptx.shapes.autoshape import Shape
    from pptx.shapes.picture import Picture
    from pptx.slide import Slide

logger = logging.getLogger(__name__)


def add_picture_bytes(slide: 'Slide', data: bytes, box: Box) -> 'Picture':
    """Add an image from raw bytes, sized and positioned to ``box``.

    Args:
        slide: PowerPoint slide object
        data: Encoded image (PNG, JPEG, GIF, ...)
        box: Target position and size in points

    Returns:
        The Picture shape.
    """
    picture = slide.shapes.add_picture(
        io.BytesIO(data),
        Pt(box.left),
        Pt(box.top),
        width=Pt(box.width),
        height=Pt(box.height),
    )
    logger.debug(
        f"Added picture at ({box.left:.1f}, {box.top:.1f}) "
        f"size {box.width:.1f} x {box.height:.1f} pt"
    )
    return picture


def add_labeled_rectangle(slide: 'Slide', box: Box, label: str,
                          style: PlaceholderStyle) -> 'Shape':
    """Add a filled, bordered rectangle with centered label text.

    Args:
        slide: PowerPoint slide object
        box: Position and size in points
        label: Text shown in the middle of the rectangle
        style: Fill, border and text appearance

    Returns:
        The rectangle shape.
    """
    shape = slide.shapes.add_shape(
        MSO_SHAPE.RECTANGLE,
        Pt(box.left),
        Pt(box.top),
        Pt(box.width),
        Pt(box.height),
    )

    fill = shape.fill
    fill.solid()
    fill.fore_color.rgb = parse_color(style.fill_color)

    line = shape.line
    line.width = Pt(style.border_width)
    line.color.rgb = parse_color(style.border_color)

    text_frame = shape.text_frame
    text_frame.word_wrap = True
    text_frame.vertical_anchor = MSO_ANCHOR.MIDDLE
    text_frame.text = label
    for paragraph in text_frame.paragraphs:
        paragraph.alignment = PP_ALIGN.CENTER
        for run in paragraph.runs:
            run.font.size = Pt(style.font_size)
            run.font.color.rgb = parse_color(style.text_color)

    logger.debug(f"Added labeled rectangle '{label}'")
    return shape
