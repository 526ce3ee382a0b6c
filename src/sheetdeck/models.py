"""Data structures shared by the parser, builders, assembler and updater."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Iterator, Union

# Config values are coerced to one of these types
ConfigValue = Union[int, float, bool, str]

# Applied for any key absent from the Config table
DEFAULT_CONFIG: dict[str, ConfigValue] = {
    'title_slide_font_size': 44,
    'section_slide_font_size': 40,
    'content_title_font_size': 36,
    'subtitle_font_size': 24,
    'bullet_font_size': 20,
    'header_font': 'Arial',
    'body_font': 'Arial',
    'text_color': '#000000',
}


class DeckConfig(Mapping):
    """Read-only mapping of normalized setting keys to coerced values.

    Built once per generation run by ``load_config`` and discarded after.
    Missing defaults are filled in at construction time.
    """

    def __init__(self, values: Mapping[str, ConfigValue] | None = None,
                 apply_defaults: bool = True):
        data = dict(values or {})
        if apply_defaults:
            for key, default in DEFAULT_CONFIG.items():
                data.setdefault(key, default)
        self._values = data

    def __getitem__(self, key: str) -> ConfigValue:
        return self._values[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"DeckConfig({self._values!r})"

    def text(self, key: str, default: str = "") -> str:
        """Get a value as a string, treating absent or empty as the default."""
        value = self._values.get(key)
        if value is None or value == "":
            return default
        return str(value)

    @property
    def deck_title(self) -> str:
        return self.text('deck_title')

    @property
    def footer_text(self) -> str:
        return self.text('footer_text')


class LayoutKind(Enum):
    """Structural template applied to a slide."""
    TITLE = "Title"
    SECTION = "Section"
    CONTENT = "Content"


class MediaKind(Enum):
    """Kind of media reference carried by a slide."""
    CHART = "chart"
    IMAGE = "image"


@dataclass(frozen=True)
class SlideRecord:
    """One normalized row of the Slides table.

    Attributes:
        order: Numeric sort key.
        title: Slide title (never empty).
        section_id: Grouping / theme hint.
        layout: Layout name as written in the table ("Title", "Section", ...).
        subtitle: Optional subtitle text.
        bullets: Raw delimited bullet string (see ``format_bullets``).
        speaker_notes: Optional speaker notes.
        media_ref: Optional image asset name.
        chart_ref: Optional chart asset name.
    """
    order: Union[int, float]
    title: str
    section_id: str = ""
    layout: str = "Content"
    subtitle: str = ""
    bullets: str = ""
    speaker_notes: str = ""
    media_ref: str = ""
    chart_ref: str = ""


@dataclass(frozen=True)
class Theme:
    """Background and text colors for a slide."""
    background_color: str = '#FFFFFF'
    text_color: str = '#000000'


@dataclass(frozen=True)
class Box:
    """A rectangle on the page, in points."""
    left: float
    top: float
    width: float
    height: float


@dataclass(frozen=True)
class TextStyle:
    """Character and paragraph styling; ``None`` fields are left untouched."""
    font_size: float | None = None
    font_family: str | None = None
    color: str | None = None
    bold: bool | None = None
    italic: bool | None = None
    alignment: str | None = None  # "left" or "center"


@dataclass(frozen=True)
class PlaceholderStyle:
    """Appearance of the fallback shape drawn for missing media."""
    fill_color: str = '#F0F0F0'
    border_color: str = '#CCCCCC'
    border_width: float = 2
    font_size: float = 24
    text_color: str = '#666666'


@dataclass
class Region:
    """A text area on a slide, tagged with the role it plays.

    ``role`` is one of ``title``, ``centered_title``, ``subtitle``, ``body``,
    or ``None`` for areas without a recognised role.
    """
    role: str | None
    name: str
    shape: Any = None


@dataclass(frozen=True)
class Diagnostic:
    """A non-fatal problem recorded while building a slide."""
    stage: str
    message: str

    def __str__(self) -> str:
        return f"[{self.stage}] {self.message}"


@dataclass
class SlideResult:
    """Outcome of building one slide."""
    index: int
    title: str
    success: bool
    error: Exception | None = None
    diagnostics: list[Diagnostic] = field(default_factory=list)
    slide: SlideRecord | None = None


@dataclass
class DeckResult:
    """Outcome of a whole generation run."""
    document: Any
    title: str
    success_count: int
    total_count: int
    slide_results: list[SlideResult] = field(default_factory=list)
    diagnostics: list[Diagnostic] = field(default_factory=list)
    output_path: Path | None = None

    @property
    def failed_count(self) -> int:
        return self.total_count - self.success_count

    def all_diagnostics(self) -> list[Diagnostic]:
        """Deck-level diagnostics followed by every slide's diagnostics."""
        collected = list(self.diagnostics)
        for result in self.slide_results:
            collected.extend(result.diagnostics)
        return collected


@dataclass(frozen=True)
class RemoteVersion:
    """Contents of the remote ``version.json`` descriptor."""
    version: str
    release_date: str = ""
    changes: tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RemoteVersion":
        if not isinstance(data, dict) or not data.get('version'):
            raise ValueError("version descriptor has no 'version' field")
        changes = data.get('changes') or []
        if isinstance(changes, str):
            changes = [changes]
        elif not isinstance(changes, (list, tuple)):
            raise ValueError("'changes' must be a list of strings")
        return cls(
            version=str(data['version']),
            release_date=str(data.get('releaseDate', '') or ''),
            changes=tuple(str(c) for c in changes),
        )


@dataclass(frozen=True)
class SyncEndpoint:
    """Where the remote data feeds live.

    ``current_version`` is the version assumed when nothing has been
    persisted locally yet.
    """
    owner: str
    repo: str
    branch: str = "main"
    current_version: str = "0.0.0"
    base_url_template: str = "https://raw.githubusercontent.com/{owner}/{repo}/{branch}"

    @property
    def base_url(self) -> str:
        return self.base_url_template.format(
            owner=self.owner, repo=self.repo, branch=self.branch
        ).rstrip('/')

    @property
    def version_url(self) -> str:
        return f"{self.base_url}/version.json"

    @property
    def config_url(self) -> str:
        return f"{self.base_url}/config.csv"

    @property
    def slides_url(self) -> str:
        return f"{self.base_url}/slides.csv"
