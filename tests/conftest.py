"""Shared fixtures: a recording document sink, stores and a scripted fetcher."""

import io
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import pytest
from PIL import Image

from sheetdeck.interfaces import AssetRef, HttpResponse
from sheetdeck.models import LayoutKind, Region
from sheetdeck.state import InMemoryStateStore
from sheetdeck.tables import InMemoryTableStore

SLIDES_HEADER = [
    'Order', 'Section ID', 'Layout', 'Title', 'Subtitle', 'Bullets',
    'Speaker Notes', 'Media Ref', 'Chart Ref',
]


def make_png(width: int = 160, height: int = 90, color: str = 'red') -> bytes:
    buffer = io.BytesIO()
    Image.new('RGB', (width, height), color).save(buffer, format='PNG')
    return buffer.getvalue()


def slide_row(order, title, layout='Content', subtitle='', bullets='',
              notes='', media_ref='', chart_ref='', section_id='') -> list:
    return [order, section_id, layout, title, subtitle, bullets, notes, media_ref, chart_ref]


@dataclass
class FakeSlide:
    kind: LayoutKind
    regions: list = field(default_factory=list)
    text_boxes: list = field(default_factory=list)
    images: list = field(default_factory=list)
    placeholders: list = field(default_factory=list)
    notes: str | None = None
    notes_style: Any = None
    background: str | None = None

    def region(self, role):
        return next(r for r in self.regions if r.role == role)


class FakeDocument:
    """DocumentSink that records every call instead of rendering."""

    page_width = 960.0
    page_height = 540.0

    def __init__(self, roles_by_kind=None, fail_title=None, fail_styles=False,
                 fail_notes=False, fail_text_boxes=False):
        self.roles_by_kind = roles_by_kind or {
            LayoutKind.TITLE: ['centered_title', 'subtitle'],
            LayoutKind.SECTION: ['title', 'body'],
            LayoutKind.CONTENT: ['title', None, 'body'],
        }
        self.fail_title = fail_title
        self.fail_styles = fail_styles
        self.fail_notes = fail_notes
        self.fail_text_boxes = fail_text_boxes
        self.title = None
        self._slides = []
        self.saved_to = None

    def new_document(self, title):
        self.title = title
        self._slides = []

    def add_slide(self, kind):
        slide = FakeSlide(kind=kind)
        for index, role in enumerate(self.roles_by_kind[kind]):
            slide.regions.append(Region(
                role=role, name=f"{role or 'shape'} {index}",
                shape={'text': '', 'styles': [], 'ranges': []},
            ))
        self._slides.append(slide)
        return slide

    def regions(self, slide):
        return list(slide.regions)

    def set_text(self, region, text):
        if self.fail_title is not None and text == self.fail_title:
            raise RuntimeError(f"cannot write {text}")
        region.shape['text'] = text

    def apply_style(self, region, style):
        if self.fail_styles:
            raise RuntimeError("styling unavailable")
        region.shape['styles'].append(style)

    def style_text_range(self, region, start, end, style):
        length = len(region.shape['text'])
        if start < 0 or end <= start or end > length:
            raise IndexError(f"[{start}, {end}) outside {length} characters")
        region.shape['ranges'].append((start, end, style))

    def add_text_box(self, slide, text, box, style):
        if self.fail_text_boxes:
            raise RuntimeError("no text boxes")
        slide.text_boxes.append((text, box, style))

    def add_image(self, slide, data, box):
        slide.images.append((data, box))

    def add_placeholder(self, slide, box, label, style):
        slide.placeholders.append((box, label, style))

    def set_speaker_notes(self, slide, text, style=None):
        if self.fail_notes:
            raise RuntimeError("notes unavailable")
        slide.notes = text
        slide.notes_style = style

    def set_background(self, slide, color):
        slide.background = color

    def slides(self):
        return list(self._slides)

    def save(self, path):
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(b'fake')
        self.saved_to = path
        return path


class DictAssetStore:
    """AssetStore over a name -> bytes dict."""

    def __init__(self, assets=None):
        self.assets = dict(assets or {})
        self.reads = []

    def find(self, name):
        if name in self.assets:
            return AssetRef(name=name, location=name)
        return None

    def read_bytes(self, ref):
        self.reads.append(ref.name)
        return self.assets[ref.location]


class ScriptedFetcher:
    """HttpFetcher returning queued responses (or raising queued errors) per URL."""

    def __init__(self, script=None):
        self.script = {url: list(items) for url, items in (script or {}).items()}
        self.calls = []

    def fetch(self, url, timeout=30):
        self.calls.append(url)
        queue = self.script.get(url)
        if not queue:
            raise ConnectionError(f"no route to {url}")
        item = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(item, Exception):
            raise item
        if isinstance(item, HttpResponse):
            return item
        return HttpResponse(status=200, text=item)


@pytest.fixture
def fake_doc():
    return FakeDocument()


@pytest.fixture
def png_bytes():
    return make_png(1600, 900)


@pytest.fixture
def table_store():
    return InMemoryTableStore({
        'Config': [
            ['Setting', 'Value'],
            ['Deck Title', 'Quarterly Review'],
            ['Footer Text', 'Company Confidential'],
        ],
        'Slides': [
            SLIDES_HEADER,
            slide_row(2, 'Agenda', bullets='One|Two'),
            slide_row(1, 'Welcome', layout='Title', subtitle='Kickoff'),
            slide_row(3, 'Part One', layout='Section', subtitle='Intro'),
        ],
    })


@pytest.fixture
def state_store():
    return InMemoryStateStore()
