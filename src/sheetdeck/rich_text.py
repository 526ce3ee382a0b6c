"""Run and paragraph formatting for PowerPoint text frames."""

import copy
from typing import TYPE_CHECKING

from pptx.dml.color import RGBColor
from pptx.enum.text import PP_ALIGN
from pptx.oxml.ns import qn
from pptx.oxml.xmlchemy import OxmlElement
from pptx.text.text import _Run
from pptx.util import Pt

from .models import TextStyle

if TYPE_CHECKING:
    from pptx.text.text import Font, TextFrame, _Paragraph

_ALIGNMENTS = {
    'left': PP_ALIGN.LEFT,
    'center': PP_ALIGN.CENTER,
    'right': PP_ALIGN.RIGHT,
}


def parse_color(value: str) -> RGBColor:
    """Convert a ``#RRGGBB`` (or ``RRGGBB``) string to an RGBColor.

    Raises:
        ValueError: If the string is not a 6-digit hex color.
    """
    hex_value = str(value).strip().lstrip('#')
    if len(hex_value) != 6:
        raise ValueError(f"Invalid color '{value}': expected #RRGGBB")
    return RGBColor.from_string(hex_value.upper())


def _set_paragraph_margins(pPr, marL: int, indent: int) -> None:
    """Set paragraph margins via XML attributes.

    Args:
        pPr: Paragraph properties element
        marL: Left margin in EMU
        indent: First line indent in EMU (negative for hanging)
    """
    pPr.set('marL', str(marL))
    pPr.set('indent', str(indent))


def remove_bullet(paragraph: '_Paragraph') -> None:
    """Remove template bullet formatting from a paragraph.

    Bullet text is written with a literal "• " prefix, so the placeholder's
    own bullet character and hanging indent would double it up.
    """
    pPr = paragraph._element.get_or_add_pPr()
    _set_paragraph_margins(pPr, 0, 0)
    for existing in pPr.findall(qn('a:buNone')):
        pPr.remove(existing)
    pPr.insert(0, OxmlElement('a:buNone'))


def apply_font(font: 'Font', style: TextStyle) -> None:
    """Apply the character fields of a TextStyle to a font."""
    if style.font_size is not None:
        font.size = Pt(style.font_size)
    if style.font_family:
        font.name = style.font_family
    if style.color:
        font.color.rgb = parse_color(style.color)
    if style.bold is not None:
        font.bold = style.bold
    if style.italic is not None:
        font.italic = style.italic


def apply_text_style(text_frame: 'TextFrame', style: TextStyle) -> None:
    """Apply a TextStyle to every paragraph and run of a text frame.

    The paragraph default run properties are styled too, so empty
    paragraphs (blank lines) keep the same line height.
    """
    alignment = None
    if style.alignment:
        alignment = _ALIGNMENTS.get(style.alignment.lower())
        if alignment is None:
            raise ValueError(f"Unknown alignment '{style.alignment}'")

    for paragraph in text_frame.paragraphs:
        if alignment is not None:
            paragraph.alignment = alignment
        apply_font(paragraph.font, style)
        for run in paragraph.runs:
            apply_font(run.font, style)


def _text_segments(text_frame: 'TextFrame') -> list[tuple[int, _Run]]:
    """List (start offset, run) pairs in text-frame character coordinates.

    Offsets match ``text_frame.text``: paragraphs are joined by one newline
    and a line break counts as one character.
    """
    segments = []
    offset = 0
    for p_idx, paragraph in enumerate(text_frame.paragraphs):
        if p_idx:
            offset += 1
        for child in list(paragraph._p.iterchildren()):
            if child.tag == qn('a:r'):
                run = _Run(child, paragraph)
                segments.append((offset, run))
                offset += len(run.text)
            elif child.tag == qn('a:br'):
                offset += 1
            elif child.tag == qn('a:fld'):
                offset += len(''.join(child.itertext()))
    return segments


def split_run(run: _Run, at: int) -> _Run:
    """Split a run in two at a character offset.

    The original run keeps the text before ``at``; a copy with the same
    properties is inserted right after it holding the rest.

    Returns:
        The new (right-hand) run.
    """
    text = run.text
    new_r = copy.deepcopy(run._r)
    run._r.addnext(new_r)
    new_run = _Run(new_r, run._parent)
    run.text = text[:at]
    new_run.text = text[at:]
    return new_run


def style_text_range(text_frame: 'TextFrame', start: int, end: int,
                     style: TextStyle) -> int:
    """Apply character styling to ``text_frame.text[start:end]``.

    Runs straddling the range boundaries are split so only the covered
    characters change.

    Args:
        text_frame: Text frame whose text is already set.
        start: First character offset (inclusive).
        end: Last character offset (exclusive).
        style: Character style to apply; alignment is ignored.

    Returns:
        Number of runs styled.

    Raises:
        IndexError: If the range is empty or falls outside the text.
    """
    total = len(text_frame.text)
    if start < 0 or end <= start or end > total:
        raise IndexError(
            f"Text range [{start}, {end}) is out of bounds for {total} characters"
        )

    styled = 0
    for run_start, run in _text_segments(text_frame):
        run_end = run_start + len(run.text)
        lo = max(start, run_start)
        hi = min(end, run_end)
        if lo >= hi:
            continue
        target = run
        if lo > run_start:
            target = split_run(target, lo - run_start)
        if hi < run_end:
            split_run(target, hi - lo)
        apply_font(target.font, style)
        styled += 1
    return styled
