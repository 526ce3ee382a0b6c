"""Capability interfaces the generation and update pipelines depend on.

The core modules only talk to these protocols. Concrete implementations:

    TableStore     -> tables.WorkbookTableStore, tables.InMemoryTableStore
    DocumentSink   -> document.PptxDocument
    AssetStore     -> assets.DirectoryAssetStore
    HttpFetcher    -> fetcher.RequestsFetcher
    KeyValueStore  -> state.JsonStateStore, state.InMemoryStateStore
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Protocol, Sequence

from .models import Box, LayoutKind, PlaceholderStyle, Region, TextStyle

# A table is a header row followed by data rows
Rows = list[list[Any]]


class TableStore(Protocol):
    """Named tabular data (worksheets)."""

    def table_names(self) -> list[str]: ...

    def has_table(self, name: str) -> bool: ...

    def read_table(self, name: str) -> Rows: ...

    def write_table(self, name: str, rows: Sequence[Sequence[Any]]) -> None: ...

    def copy_table(self, source: str, dest: str) -> None: ...


class DocumentSink(Protocol):
    """A slide document being authored.

    Positions and sizes are expressed in points.
    """

    page_width: float
    page_height: float

    def new_document(self, title: str) -> None: ...

    def add_slide(self, kind: LayoutKind) -> Any: ...

    def regions(self, slide: Any) -> list[Region]: ...

    def set_text(self, region: Region, text: str) -> None: ...

    def apply_style(self, region: Region, style: TextStyle) -> None: ...

    def style_text_range(self, region: Region, start: int, end: int,
                         style: TextStyle) -> None: ...

    def add_text_box(self, slide: Any, text: str, box: Box, style: TextStyle) -> Any: ...

    def add_image(self, slide: Any, data: bytes, box: Box) -> Any: ...

    def add_placeholder(self, slide: Any, box: Box, label: str,
                        style: PlaceholderStyle) -> Any: ...

    def set_speaker_notes(self, slide: Any, text: str,
                          style: TextStyle | None = None) -> None: ...

    def set_background(self, slide: Any, color: str) -> None: ...

    def slides(self) -> list[Any]: ...

    def save(self, path: Path) -> Path: ...


@dataclass(frozen=True)
class AssetRef:
    """A located asset: its name and where it was found."""
    name: str
    location: Any


class AssetStore(Protocol):
    """Named binary assets (chart and image files)."""

    def find(self, name: str) -> AssetRef | None: ...

    def read_bytes(self, ref: AssetRef) -> bytes: ...


@dataclass(frozen=True)
class HttpResponse:
    """Status code and decoded body of a fetch."""
    status: int
    text: str

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300


class HttpFetcher(Protocol):
    """Single-attempt network fetch."""

    def fetch(self, url: str, timeout: float = 30) -> HttpResponse: ...


class KeyValueStore(Protocol):
    """Durable string storage."""

    def get(self, key: str, default: str | None = None) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...
