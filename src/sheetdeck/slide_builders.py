"""Layout-specific slide construction.

Three layouts are supported, selected by the slide's ``layout`` field:

    Title    - title + subtitle on the template's title layout
    Section  - centered title, centered body (subtitle + bullets)
    anything else - title + left-aligned body (subtitle + bullets)

Text placement failures propagate and fail the slide. Styling failures are
cosmetic: they are logged, recorded as diagnostics, and the text stays in
place unstyled.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable

from .exceptions import StyleApplicationError
from .interfaces import DocumentSink
from .models import (
    DEFAULT_CONFIG,
    DeckConfig,
    Diagnostic,
    LayoutKind,
    Region,
    SlideRecord,
    TextStyle,
    Theme,
)
from .placeholder_resolver import find_region
from .sheet_parser import format_bullets

logger = logging.getLogger(__name__)

TITLE_ROLES = ("title", "centered_title")
TITLE_SLIDE_ROLES = ("centered_title", "title")
SUBTITLE_ROLES = ("subtitle",)
BODY_ROLES = ("body",)

_DEFAULT_THEME = Theme(background_color='#FFFFFF', text_color='#000000')


@dataclass
class BuiltSlide:
    """A slide created by one of the layout builders."""
    slide: Any
    kind: LayoutKind
    diagnostics: list[Diagnostic] = field(default_factory=list)


def resolve_layout_kind(layout: str) -> LayoutKind:
    """Map a slide's layout name to a LayoutKind.

    Only the exact names "Title" and "Section" are special; everything else
    (including "Content", "Chart", "Image" or an empty string) is a basic
    content slide.
    """
    if layout == LayoutKind.TITLE.value:
        return LayoutKind.TITLE
    if layout == LayoutKind.SECTION.value:
        return LayoutKind.SECTION
    return LayoutKind.CONTENT


def get_theme_for_section(section_id: str, config: DeckConfig) -> Theme:
    """Resolve the colors used for a slide in the given section.

    Every section currently gets white background / black text.
    """
    return _DEFAULT_THEME


def setting(config: DeckConfig, key: str) -> Any:
    """Read a style setting, falling back to the built-in default."""
    value = config.get(key)
    if value is None or value == '':
        return DEFAULT_CONFIG.get(key)
    return value


def compose_body(subtitle: str, bullets: str) -> str:
    """Build body text: subtitle and a blank line, then formatted bullets."""
    body = ''
    if subtitle:
        body = subtitle + '\n\n'
    if bullets:
        body += format_bullets(bullets)
    return body


def try_cosmetic(stage: str, action: Callable[[], Any]) -> Diagnostic | None:
    """Run a styling action, converting any failure into a Diagnostic.

    Args:
        stage: Short label for where the failure happened.
        action: Zero-argument callable performing the styling.

    Returns:
        None on success, otherwise a Diagnostic describing the failure.
    """
    try:
        action()
    except Exception as e:
        error = StyleApplicationError(f"Could not apply {stage}: {e}")
        logger.warning(f"  {error}")
        return Diagnostic(stage=stage, message=str(error))
    return None


def _collect(diagnostics: list[Diagnostic], result: Diagnostic | None) -> None:
    if result is not None:
        diagnostics.append(result)


def _missing_region(diagnostics: list[Diagnostic], kind: LayoutKind, role: str) -> None:
    message = f"No {role} region found on {kind.value} slide"
    logger.warning(f"  {message}")
    diagnostics.append(Diagnostic(stage="layout", message=message))


def _fill_body(sink: DocumentSink, region: Region, data: SlideRecord,
               config: DeckConfig, body_style: TextStyle,
               diagnostics: list[Diagnostic]) -> None:
    """Write subtitle + bullets into a body region and style it.

    The subtitle is the first ``len(subtitle)`` characters of the body text;
    that range is re-styled italic at the subtitle font size.
    """
    body_text = compose_body(data.subtitle, data.bullets)
    if body_text.strip() == '':
        return

    sink.set_text(region, body_text)
    _collect(diagnostics, try_cosmetic(
        "body style", lambda: sink.apply_style(region, body_style)
    ))

    if data.subtitle:
        subtitle_style = TextStyle(
            font_size=setting(config, 'subtitle_font_size'),
            italic=True,
        )
        _collect(diagnostics, try_cosmetic(
            "subtitle style",
            lambda: sink.style_text_range(region, 0, len(data.subtitle), subtitle_style),
        ))


def build_title_slide(sink: DocumentSink, data: SlideRecord,
                      config: DeckConfig) -> BuiltSlide:
    """Create a title slide: bold title and a subtitle.

    Each region is populated only when the matching field is non-empty.
    """
    slide = sink.add_slide(LayoutKind.TITLE)
    built = BuiltSlide(slide=slide, kind=LayoutKind.TITLE)
    regions = sink.regions(slide)

    title_region = find_region(regions, *TITLE_SLIDE_ROLES)
    if data.title:
        if title_region is None:
            _missing_region(built.diagnostics, built.kind, "title")
        else:
            sink.set_text(title_region, data.title)
            style = TextStyle(
                font_size=setting(config, 'title_slide_font_size'),
                font_family=setting(config, 'header_font'),
                color=setting(config, 'text_color'),
                bold=True,
            )
            _collect(built.diagnostics, try_cosmetic(
                "title style", lambda: sink.apply_style(title_region, style)
            ))

    subtitle_region = find_region(regions, *SUBTITLE_ROLES)
    if data.subtitle:
        if subtitle_region is None:
            _missing_region(built.diagnostics, built.kind, "subtitle")
        else:
            sink.set_text(subtitle_region, data.subtitle)
            style = TextStyle(
                font_size=setting(config, 'subtitle_font_size'),
                font_family=setting(config, 'body_font'),
                color=setting(config, 'text_color'),
            )
            _collect(built.diagnostics, try_cosmetic(
                "subtitle style", lambda: sink.apply_style(subtitle_region, style)
            ))

    logger.debug(f"  Title slide created: {data.title}")
    return built


def build_section_slide(sink: DocumentSink, data: SlideRecord,
                        config: DeckConfig) -> BuiltSlide:
    """Create a section slide with centered title and centered body."""
    slide = sink.add_slide(LayoutKind.SECTION)
    built = BuiltSlide(slide=slide, kind=LayoutKind.SECTION)
    theme = get_theme_for_section(data.section_id, config)
    regions = sink.regions(slide)

    title_region = find_region(regions, *TITLE_ROLES)
    if title_region is None:
        _missing_region(built.diagnostics, built.kind, "title")
    elif data.title:
        sink.set_text(title_region, data.title)
        style = TextStyle(
            font_size=setting(config, 'section_slide_font_size'),
            font_family=setting(config, 'header_font'),
            color=theme.text_color,
            bold=True,
            alignment='center',
        )
        _collect(built.diagnostics, try_cosmetic(
            "title style", lambda: sink.apply_style(title_region, style)
        ))

    body_region = find_region(regions, *BODY_ROLES)
    if body_region is None:
        if compose_body(data.subtitle, data.bullets).strip():
            _missing_region(built.diagnostics, built.kind, "body")
    else:
        body_style = TextStyle(
            font_size=setting(config, 'subtitle_font_size'),
            font_family=setting(config, 'body_font'),
            color=theme.text_color,
            alignment='center',
        )
        _fill_body(sink, body_region, data, config, body_style, built.diagnostics)

    logger.debug(f"  Section slide created: {data.title}")
    return built


def build_content_slide(sink: DocumentSink, data: SlideRecord,
                        config: DeckConfig) -> BuiltSlide:
    """Create a basic content slide: bold title and left-aligned body."""
    slide = sink.add_slide(LayoutKind.CONTENT)
    built = BuiltSlide(slide=slide, kind=LayoutKind.CONTENT)
    theme = get_theme_for_section(data.section_id, config)

    if theme.background_color and theme.background_color.upper() != '#FFFFFF':
        _collect(built.diagnostics, try_cosmetic(
            "background", lambda: sink.set_background(slide, theme.background_color)
        ))

    regions = sink.regions(slide)

    title_region = find_region(regions, *TITLE_ROLES)
    if title_region is None:
        _missing_region(built.diagnostics, built.kind, "title")
    elif data.title:
        sink.set_text(title_region, data.title)
        style = TextStyle(
            font_size=setting(config, 'content_title_font_size'),
            font_family=setting(config, 'header_font'),
            color=theme.text_color,
            bold=True,
        )
        _collect(built.diagnostics, try_cosmetic(
            "title style", lambda: sink.apply_style(title_region, style)
        ))

    body_region = find_region(regions, *BODY_ROLES)
    if body_region is None:
        if compose_body(data.subtitle, data.bullets).strip():
            _missing_region(built.diagnostics, built.kind, "body")
    else:
        body_style = TextStyle(
            font_size=setting(config, 'bullet_font_size'),
            font_family=setting(config, 'body_font'),
            color=theme.text_color,
            alignment='left',
        )
        _fill_body(sink, body_region, data, config, body_style, built.diagnostics)

    logger.debug(f"  Content slide created: {data.title}")
    return built


_BUILDERS = {
    LayoutKind.TITLE: build_title_slide,
    LayoutKind.SECTION: build_section_slide,
    LayoutKind.CONTENT: build_content_slide,
}


def build_slide(sink: DocumentSink, data: SlideRecord, config: DeckConfig) -> BuiltSlide:
    """Create a slide using the builder for its layout kind."""
    kind = resolve_layout_kind(data.layout)
    return _BUILDERS[kind](sink, data, config)
