"""python-pptx implementation of the document sink.

Wraps a ``Presentation`` and exposes the small set of authoring operations
the slide builders, media engine and deck assembler need.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Optional

from pptx import Presentation
from pptx.util import Emu, Pt

from .images import add_labeled_rectangle, add_picture_bytes
from .layout_discovery import LayoutRegistry, build_layout_registry, resolve_layout
from .models import Box, LayoutKind, PlaceholderStyle, Region, TextStyle
from .placeholder_resolver import get_regions
from .rich_text import apply_text_style, parse_color, remove_bullet, style_text_range

if TYPE_CHECKING:
    from pptx.slide import Slide

logger = logging.getLogger(__name__)

# Widescreen 16:9 page (13.333" x 7.5") used when no template is given
DEFAULT_PAGE_WIDTH_PT = 960
DEFAULT_PAGE_HEIGHT_PT = 540


def _scale_shapes(shapes, x_ratio: float, y_ratio: float) -> None:
    for shape in shapes:
        left, top, width, height = shape.left, shape.top, shape.width, shape.height
        if None in (left, top, width, height):
            continue
        shape.left = Emu(round(left * x_ratio))
        shape.top = Emu(round(top * y_ratio))
        shape.width = Emu(round(width * x_ratio))
        shape.height = Emu(round(height * y_ratio))


def _resize_page(prs, width: Emu, height: Emu) -> None:
    """Change the slide size and rescale master and layout shapes to match."""
    x_ratio = width / prs.slide_width
    y_ratio = height / prs.slide_height
    # Layouts before the master: inherited positions are read from the master
    for layout in prs.slide_layouts:
        _scale_shapes(layout.shapes, x_ratio, y_ratio)
    _scale_shapes(prs.slide_master.shapes, x_ratio, y_ratio)
    prs.slide_width = width
    prs.slide_height = height
    logger.debug(f"Resized page to {Emu(width).pt:.0f}x{Emu(height).pt:.0f}pt")


class PptxDocument:
    """A deck being built with python-pptx.

    Args:
        template_path: Optional .pptx template. Its slide size and layouts are
            used; any slides it contains are removed by ``new_document``.
    """

    def __init__(self, template_path: Optional[Path] = None):
        self.template_path = Path(template_path) if template_path else None
        self.prs = None
        self._registry: LayoutRegistry = {}
        self.title = ""

    def _require_prs(self):
        if self.prs is None:
            raise RuntimeError("new_document() must be called first")
        return self.prs

    @property
    def page_width(self) -> float:
        return Emu(self._require_prs().slide_width).pt

    @property
    def page_height(self) -> float:
        return Emu(self._require_prs().slide_height).pt

    def new_document(self, title: str) -> None:
        """Create an empty presentation titled ``title``."""
        if self.template_path:
            if not self.template_path.exists():
                raise FileNotFoundError(f"Template file not found: {self.template_path}")
            logger.info(f"Loading presentation template: {self.template_path}")
            prs = Presentation(str(self.template_path))
        else:
            prs = Presentation()
            _resize_page(prs, Pt(DEFAULT_PAGE_WIDTH_PT), Pt(DEFAULT_PAGE_HEIGHT_PT))

        # Remove any slides the template ships with
        while len(prs.slides) > 0:
            rId = prs.slides._sldIdLst[0].rId
            prs.part.drop_rel(rId)
            del prs.slides._sldIdLst[0]

        prs.core_properties.title = title
        self.prs = prs
        self.title = title
        self._registry = build_layout_registry(prs)
        logger.debug(f"Template has {len(prs.slide_layouts)} total layouts")

    def add_slide(self, kind: LayoutKind) -> "Slide":
        prs = self._require_prs()
        layout = resolve_layout(prs, self._registry, kind)
        slide = prs.slides.add_slide(layout)
        logger.debug(f"Built slide using layout '{layout.name}' for {kind.value}")
        return slide

    def regions(self, slide: "Slide") -> list[Region]:
        return get_regions(slide)

    def set_text(self, region: Region, text: str) -> None:
        text_frame = region.shape.text_frame
        text_frame.text = text
        if region.role == "body":
            for paragraph in text_frame.paragraphs:
                remove_bullet(paragraph)

    def apply_style(self, region: Region, style: TextStyle) -> None:
        apply_text_style(region.shape.text_frame, style)

    def style_text_range(self, region: Region, start: int, end: int,
                         style: TextStyle) -> None:
        style_text_range(region.shape.text_frame, start, end, style)

    def add_text_box(self, slide: "Slide", text: str, box: Box, style: TextStyle):
        textbox = slide.shapes.add_textbox(
            Pt(box.left), Pt(box.top), Pt(box.width), Pt(box.height)
        )
        text_frame = textbox.text_frame
        text_frame.word_wrap = True
        text_frame.text = text
        apply_text_style(text_frame, style)
        return textbox

    def add_image(self, slide: "Slide", data: bytes, box: Box):
        return add_picture_bytes(slide, data, box)

    def add_placeholder(self, slide: "Slide", box: Box, label: str,
                        style: PlaceholderStyle):
        return add_labeled_rectangle(slide, box, label, style)

    def set_speaker_notes(self, slide: "Slide", text: str,
                          style: TextStyle | None = None) -> None:
        text_frame = slide.notes_slide.notes_text_frame
        text_frame.text = text
        if style is not None:
            apply_text_style(text_frame, style)

    def set_background(self, slide: "Slide", color: str) -> None:
        fill = slide.background.fill
        fill.solid()
        fill.fore_color.rgb = parse_color(color)

    def slides(self) -> list:
        return list(self._require_prs().slides)

    def save(self, path: Path) -> Path:
        prs = self._require_prs()
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        logger.info(f"Saving presentation to {path}...")
        prs.save(str(path))
        logger.info("✓ Presentation saved successfully!")
        logger.info(f"  Total slides created: {len(prs.slides)}")
        return path

