"""Deck assembly.

Pipeline flow:
    1. Load the Config and Slides tables (fatal on any load error)
    2. Create an empty document titled from ``deck_title``
    3. For each slide: build layout -> chart -> image -> speaker notes
    4. Add footers to every slide but the first
    5. Save the presentation alongside the source tables

A failing slide is logged and tallied; the run always goes on to the next
slide and ``generate_deck`` returns a result once loading has succeeded.
"""

from __future__ import annotations

import logging
import re
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Optional, Sequence

from .exceptions import NoSlidesFound, SlideCreationError
from .interfaces import AssetStore, DocumentSink, TableStore
from .media import add_chart, add_image
from .models import Box, DeckConfig, DeckResult, Diagnostic, SlideRecord, SlideResult, TextStyle
from .sheet_parser import read_config, read_slides
from .slide_builders import build_slide, resolve_layout_kind, setting, try_cosmetic

logger = logging.getLogger(__name__)

# Footer band as fractions of the page
FOOTER_LEFT_RATIO = 0.05
FOOTER_TOP_RATIO = 0.93
FOOTER_WIDTH_RATIO = 0.9
FOOTER_HEIGHT_RATIO = 0.04
FOOTER_FONT_SIZE = 10
FOOTER_COLOR = '#666666'

TEST_DECK_PREFIX = 'TEST_SingleSlide_'
TIMESTAMP_FORMAT = '%Y-%m-%dT%H-%M-%S'


def default_deck_title(today: Optional[datetime] = None) -> str:
    """Date-stamped title used when the Config table has no ``deck_title``."""
    today = today or datetime.now()
    return f"Presentation - {today.strftime('%Y-%m-%d')}"


def output_filename(title: str) -> str:
    """Turn a deck title into a safe ``.pptx`` file name.

    Example:
        >>> output_filename("Q3 Review: Sales/Ops")
        'Q3 Review_ Sales_Ops.pptx'
    """
    name = re.sub(r'[\\/:*?"<>|]+', '_', title).strip().strip('.')
    return f"{name or 'presentation'}.pptx"


def footer_box(sink: DocumentSink) -> Box:
    return Box(
        left=sink.page_width * FOOTER_LEFT_RATIO,
        top=sink.page_height * FOOTER_TOP_RATIO,
        width=sink.page_width * FOOTER_WIDTH_RATIO,
        height=sink.page_height * FOOTER_HEIGHT_RATIO,
    )


def add_speaker_notes(sink: DocumentSink, slide: Any, notes: str,
                      config: DeckConfig) -> Diagnostic | None:
    """Attach speaker notes; a failure is returned, not raised.

    Notes are styled only when ``speaker_notes_font_size`` is configured.
    """
    style = None
    if config.get('speaker_notes_font_size'):
        style = TextStyle(
            font_size=config['speaker_notes_font_size'],
            font_family=setting(config, 'body_font'),
        )
    return try_cosmetic("speaker notes", lambda: sink.set_speaker_notes(slide, notes, style))


def create_slide(sink: DocumentSink, data: SlideRecord, config: DeckConfig,
                 assets: AssetStore | None) -> list[Diagnostic]:
    """Build one slide with its media and notes.

    Returns:
        Non-fatal diagnostics collected while building the slide.

    Raises:
        Exception: Whatever the layout builder raised; the caller decides
            whether that fails the slide.
    """
    built = build_slide(sink, data, config)
    diagnostics = list(built.diagnostics)

    if data.chart_ref.strip():
        diagnostics.extend(add_chart(sink, built.slide, data.chart_ref, assets).diagnostics)

    if data.media_ref.strip():
        diagnostics.extend(add_image(sink, built.slide, data.media_ref, assets).diagnostics)

    if data.speaker_notes:
        result = add_speaker_notes(sink, built.slide, data.speaker_notes, config)
        if result is not None:
            diagnostics.append(result)

    return diagnostics


def add_footers(sink: DocumentSink, footer_text: str,
                config: DeckConfig) -> list[Diagnostic]:
    """Add the footer text box to every slide except the first."""
    diagnostics = []
    style = TextStyle(
        font_size=FOOTER_FONT_SIZE,
        font_family=setting(config, 'body_font'),
        color=FOOTER_COLOR,
        alignment='center',
    )
    for index, slide in enumerate(sink.slides()):
        if index == 0:
            continue
        result = try_cosmetic(
            f"footer (slide {index + 1})",
            lambda: sink.add_text_box(slide, footer_text, footer_box(sink), style),
        )
        if result is not None:
            diagnostics.append(result)
    return diagnostics


def generate_deck(slides: Sequence[SlideRecord], config: DeckConfig,
                  sink: DocumentSink, assets: AssetStore | None = None,
                  title: Optional[str] = None) -> DeckResult:
    """Create a deck from already-loaded slide records.

    Args:
        slides: Slide records, already sorted by order.
        config: Deck settings from the Config table.
        sink: Document to author into.
        assets: Store used to resolve chart and image references.
        title: Document title; defaults to ``deck_title`` or a dated title.

    Returns:
        DeckResult with success/total counts and all diagnostics.
    """
    title = title or config.deck_title or default_deck_title()
    logger.info(f"Creating presentation: {title}")
    sink.new_document(title)

    result = DeckResult(document=sink, title=title, success_count=0,
                        total_count=len(slides))

    for idx, data in enumerate(slides):
        logger.info(f"=== Slide {idx + 1}/{len(slides)}: {data.title} "
                    f"({resolve_layout_kind(data.layout).value}) ===")
        try:
            diagnostics = create_slide(sink, data, config, assets)
        except Exception as e:
            error = SlideCreationError(idx, data.title, e)
            logger.error(f"  {error}")
            result.slide_results.append(
                SlideResult(index=idx, title=data.title, success=False, error=error,
                            slide=data)
            )
            continue

        result.success_count += 1
        result.slide_results.append(
            SlideResult(index=idx, title=data.title, success=True,
                        diagnostics=diagnostics, slide=data)
        )

    if config.footer_text:
        result.diagnostics.extend(add_footers(sink, config.footer_text, config))

    logger.info(f"Created {result.success_count} of {result.total_count} slides")
    return result


class DeckGenerator:
    """Runs the whole pipeline from table store to saved .pptx file.

    Args:
        config: Application configuration (paths, template, assets).
        tables: Table store; defaults to the configured workbook.
        sink_factory: Callable returning a fresh DocumentSink; defaults to a
            python-pptx document using the configured template.
        assets: Asset store; defaults to the configured assets directory.
    """

    def __init__(self, config, tables: Optional[TableStore] = None,
                 sink_factory: Optional[Callable[[], DocumentSink]] = None,
                 assets: Optional[AssetStore] = None):
        self.config = config
        self._tables = tables
        self._sink_factory = sink_factory
        self._assets = assets

    @property
    def tables(self) -> TableStore:
        """Lazy-load the workbook table store."""
        if self._tables is None:
            from .tables import WorkbookTableStore
            self.config.validate_paths()
            self._tables = WorkbookTableStore(self.config.workbook_path)
        return self._tables

    @property
    def assets(self) -> Optional[AssetStore]:
        if self._assets is None and self.config.assets_dir is not None:
            from .assets import DirectoryAssetStore
            self._assets = DirectoryAssetStore(self.config.assets_dir,
                                               self.config.asset_subfolder)
        return self._assets

    def _new_sink(self) -> DocumentSink:
        if self._sink_factory is not None:
            return self._sink_factory()
        from .document import PptxDocument
        return PptxDocument(self.config.template_path)

    def load(self) -> tuple[DeckConfig, list[SlideRecord]]:
        """Load Config and Slides; any failure here aborts the run.

        Raises:
            LoadError: If a table is missing or malformed, or no slides exist.
        """
        deck_config = read_config(self.tables)
        logger.info(f"Loaded {len(deck_config)} configuration settings")
        slides = read_slides(self.tables)
        if not slides:
            raise NoSlidesFound()
        return deck_config, slides

    def _save(self, result: DeckResult, filename: str) -> DeckResult:
        output_path = Path(self.config.output_dir) / filename
        result.output_path = result.document.save(output_path)
        return result

    def generate(self) -> DeckResult:
        """Generate the full deck and save it to the output directory."""
        deck_config, slides = self.load()
        result = generate_deck(slides, deck_config, self._new_sink(), self.assets)
        return self._save(result, output_filename(result.title))

    def generate_test_slide(self, now: Optional[datetime] = None) -> DeckResult:
        """Generate a deck containing only the first slide."""
        deck_config, slides = self.load()
        now = now or datetime.now()
        title = f"{TEST_DECK_PREFIX}{now.strftime(TIMESTAMP_FORMAT)}"
        result = generate_deck(slides[:1], deck_config, self._new_sink(),
                               self.assets, title=title)
        return self._save(result, output_filename(title))
