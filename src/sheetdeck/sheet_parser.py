"""Parsing of the Config and Slides tables.

This module turns loosely-structured rows (as read from a worksheet or a
remote CSV feed) into a ``DeckConfig`` and a sorted list of ``SlideRecord``.

Expected tables:
    Config:  | Setting | Value |
    Slides:  | Order | Section ID | Layout | Title | Subtitle | Bullets |
             | Speaker Notes | Media Ref | Chart Ref |

Header text is matched case-insensitively with whitespace folded to
underscores; column order is irrelevant.
"""

import re
import logging
from typing import Any, Sequence

from .exceptions import (
    ConfigSheetMissing,
    EmptySlideTable,
    InvalidSlideOrder,
    MissingRequiredColumn,
    SlideSheetMissing,
)
from .interfaces import TableStore
from .models import ConfigValue, DeckConfig, SlideRecord

logger = logging.getLogger(__name__)

CONFIG_TABLE = 'Config'
SLIDES_TABLE = 'Slides'

REQUIRED_SLIDE_COLUMNS = ('order', 'title')
SLIDE_COLUMNS = (
    'order', 'section_id', 'layout', 'title', 'subtitle', 'bullets',
    'speaker_notes', 'media_ref', 'chart_ref',
)

# Bullet delimiters, in priority order
BULLET_DELIMITERS = (' • ', '|')
BULLET_PREFIX = '• '

_NUMBER_RE = re.compile(r'^[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?$')


def normalize_key(raw: Any) -> str:
    """Normalize a setting name or column header.

    Lowercases the text and replaces each run of whitespace with a single
    underscore, e.g. ``"Deck Title"`` -> ``"deck_title"``.
    """
    return re.sub(r'\s+', '_', str(raw).lower())


def _is_empty(value: Any) -> bool:
    return value is None or (isinstance(value, str) and value == '')


def _parse_number(text: str) -> int | float | None:
    """Parse a numeric-looking string, or return None."""
    stripped = text.strip()
    if not _NUMBER_RE.match(stripped):
        return None
    number = float(stripped)
    if number.is_integer() and not any(c in stripped for c in '.eE'):
        return int(stripped)
    return number


def coerce_value(value: Any) -> ConfigValue:
    """Coerce a raw config cell to a number, boolean or string.

    - numbers (and numeric-looking strings) become ``int``/``float``
    - the literal strings ``"true"``/``"false"`` become booleans
    - anything else is kept as a string, unmodified

    Args:
        value: Raw cell value from the table.

    Returns:
        The coerced value.
    """
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value
    text = str(value)
    number = _parse_number(text)
    if number is not None:
        return number
    if text == 'true':
        return True
    if text == 'false':
        return False
    return text


def load_config(rows: Sequence[Sequence[Any]] | None) -> DeckConfig:
    """Build a DeckConfig from Config table rows.

    The first row is a header and is skipped. A row contributes a setting
    only when both its key cell and its value cell are non-empty.
    Defaults are applied for every key the table does not set.

    Args:
        rows: Table rows including the header row, or None when the table
            does not exist.

    Returns:
        Immutable DeckConfig.

    Raises:
        ConfigSheetMissing: If ``rows`` is None.
    """
    if rows is None:
        raise ConfigSheetMissing(CONFIG_TABLE)

    values: dict[str, ConfigValue] = {}
    for row in list(rows)[1:]:
        if len(row) < 2:
            continue
        key_cell, value_cell = row[0], row[1]
        if _is_empty(key_cell) or _is_empty(value_cell):
            continue
        key = normalize_key(key_cell)
        values[key] = coerce_value(value_cell)
        logger.debug(f"  Config {key} = {values[key]!r}")

    config = DeckConfig(values)
    logger.info(f"Loaded {len(values)} config settings ({len(config)} with defaults)")
    return config


def build_column_map(header: Sequence[Any]) -> dict[str, int]:
    """Map normalized header names to their column index.

    If two headers normalize to the same name, the last one wins.
    """
    columns: dict[str, int] = {}
    for index, cell in enumerate(header):
        if _is_empty(cell):
            continue
        columns[normalize_key(cell)] = index
    return columns


def _cell(row: Sequence[Any], columns: dict[str, int], name: str) -> Any:
    index = columns.get(name)
    if index is None or index >= len(row):
        return None
    return row[index]


def _cell_text(row: Sequence[Any], columns: dict[str, int], name: str,
               default: str = '') -> str:
    value = _cell(row, columns, name)
    if _is_empty(value):
        return default
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _has_content(value: Any) -> bool:
    return not _is_empty(value) and str(value).strip() != ''


def _order_value(value: Any, row_number: int) -> int | float:
    if isinstance(value, bool):
        raise InvalidSlideOrder(row_number, value)
    if isinstance(value, (int, float)):
        return value
    number = _parse_number(str(value))
    if number is None:
        raise InvalidSlideOrder(row_number, value)
    return number


def load_slides(rows: Sequence[Sequence[Any]] | None) -> list[SlideRecord]:
    """Build the sorted slide list from Slides table rows.

    A data row becomes a slide when both its ``order`` and ``title`` cells
    are non-empty. Optional fields are coerced to strings (absent -> "");
    an empty layout means "Content". The result is sorted by ``order``
    with a stable sort, so rows sharing an order keep their table order.
    A row whose order is not numeric is skipped with a warning.

    Args:
        rows: Table rows including the header row, or None when the table
            does not exist.

    Returns:
        Slides sorted ascending by order (may be empty).

    Raises:
        SlideSheetMissing: If ``rows`` is None.
        EmptySlideTable: If there is no data row below the header.
        MissingRequiredColumn: If ``order`` or ``title`` is not in the header.
    """
    if rows is None:
        raise SlideSheetMissing(SLIDES_TABLE)

    rows = list(rows)
    if len(rows) < 2:
        raise EmptySlideTable(SLIDES_TABLE)

    columns = build_column_map(rows[0])
    for required in REQUIRED_SLIDE_COLUMNS:
        if required not in columns:
            raise MissingRequiredColumn(required, list(columns.keys()))

    unknown = [name for name in columns if name not in SLIDE_COLUMNS]
    if unknown:
        logger.debug(f"Ignoring unknown Slides columns: {', '.join(unknown)}")

    slides: list[SlideRecord] = []
    for row_idx, row in enumerate(rows[1:], start=2):
        order_cell = _cell(row, columns, 'order')
        title_cell = _cell(row, columns, 'title')
        if not (_has_content(order_cell) and _has_content(title_cell)):
            continue

        try:
            order = _order_value(order_cell, row_idx)
        except InvalidSlideOrder as e:
            logger.warning(f"Skipping slide: {e}")
            continue

        slides.append(SlideRecord(
            order=order,
            title=_cell_text(row, columns, 'title'),
            section_id=_cell_text(row, columns, 'section_id'),
            layout=_cell_text(row, columns, 'layout', default='Content'),
            subtitle=_cell_text(row, columns, 'subtitle'),
            bullets=_cell_text(row, columns, 'bullets'),
            speaker_notes=_cell_text(row, columns, 'speaker_notes'),
            media_ref=_cell_text(row, columns, 'media_ref'),
            chart_ref=_cell_text(row, columns, 'chart_ref'),
        ))

    slides.sort(key=lambda s: s.order)
    logger.info(f"Loaded {len(slides)} slides from {len(rows) - 1} rows")
    return slides


def read_config(store: TableStore, table_name: str = CONFIG_TABLE) -> DeckConfig:
    """Load the Config table from a table store."""
    if not store.has_table(table_name):
        raise ConfigSheetMissing(table_name)
    return load_config(store.read_table(table_name))


def read_slides(store: TableStore, table_name: str = SLIDES_TABLE) -> list[SlideRecord]:
    """Load the Slides table from a table store."""
    if not store.has_table(table_name):
        raise SlideSheetMissing(table_name)
    return load_slides(store.read_table(table_name))


def format_bullets(raw: str | None) -> str:
    """Turn a delimited bullet string into newline-separated bullet lines.

    The string is split on ``" • "`` if present, otherwise on ``"|"``,
    otherwise kept whole. Blank entries are dropped; each remaining entry
    is trimmed and prefixed with ``"• "``.

    Example:
        >>> format_bullets("A • B|C")
        '• A\\n• B|C'
        >>> format_bullets("a|b")
        '• a\\n• b'
    """
    if not raw:
        return ''

    parts = [raw]
    for delimiter in BULLET_DELIMITERS:
        if delimiter in raw:
            parts = raw.split(delimiter)
            break

    return '\n'.join(
        BULLET_PREFIX + part.strip() for part in parts if part.strip()
    )
