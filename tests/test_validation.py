"""Tests for slide validation and config summaries."""

from sheetdeck.models import DeckConfig, SlideRecord
from sheetdeck.validation import describe_config, validate_slide_data


def test_clean_slides_pass():
    report = validate_slide_data([
        SlideRecord(order=1, title="A", layout="Chart", chart_ref="c.png"),
        SlideRecord(order=2, title="B", layout="Image", media_ref="i.png"),
    ])
    assert report.passed
    assert "all 2 slides" in report.render()


def test_missing_media_references_flagged():
    report = validate_slide_data([
        SlideRecord(order=1, title="A", layout="Chart"),
        SlideRecord(order=2, title="B", layout="Image", chart_ref="c.png"),
    ])
    assert report.issues == [
        "Slide 1: Chart slide missing chart reference",
        "Slide 2: Image slide missing media reference",
    ]


def test_missing_title_flagged():
    report = validate_slide_data([SlideRecord(order=1, title="")])
    assert report.issues == ["Slide 1: Missing title"]


def test_render_caps_listed_issues():
    slides = [SlideRecord(order=i, title="", layout="Chart") for i in range(6)]
    text = validate_slide_data(slides).render()
    assert text.startswith("Found 12 issues:")
    assert text.count("Slide ") == 8
    assert text.endswith("...and 4 more")


def test_describe_config():
    text = describe_config(DeckConfig({'deck_title': 'Review'}))
    assert "Title: Review" in text
    assert "Presenter: Not set" in text
    assert "Title font size: 44" in text
    assert "Total settings: 9" in text
