"""Pre-flight checks on the workbook tables."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Sequence

from .models import DeckConfig, SlideRecord

MAX_REPORTED_ISSUES = 8


@dataclass
class ValidationReport:
    slide_count: int
    issues: list[str] = field(default_factory=list)

    @property
    def passed(self) -> bool:
        return not self.issues

    def render(self, limit: int = MAX_REPORTED_ISSUES) -> str:
        if self.passed:
            return f"Validation Passed: all {self.slide_count} slides have required data!"
        text = f"Found {len(self.issues)} issues:\n\n" + "\n".join(self.issues[:limit])
        if len(self.issues) > limit:
            text += f"\n\n...and {len(self.issues) - limit} more"
        return text


def validate_slide_data(slides: Sequence[SlideRecord]) -> ValidationReport:
    """Check each slide for data its layout needs.

    Flags missing titles, ``Chart`` slides without a chart reference and
    ``Image`` slides without a media reference.
    """
    report = ValidationReport(slide_count=len(slides))
    for index, slide in enumerate(slides):
        number = index + 1
        if not slide.title:
            report.issues.append(f"Slide {number}: Missing title")
        if slide.layout == 'Chart' and not slide.chart_ref:
            report.issues.append(f"Slide {number}: Chart slide missing chart reference")
        if slide.layout == 'Image' and not slide.media_ref:
            report.issues.append(f"Slide {number}: Image slide missing media reference")
    return report


def describe_config(config: DeckConfig) -> str:
    """Summarize the deck settings for the check-config command."""
    return "\n".join([
        "Config loaded successfully!",
        "",
        f"Title: {config.text('deck_title', 'Not set')}",
        f"Presenter: {config.text('presenter_name', 'Not set')}",
        f"Title font size: {config.get('title_slide_font_size')}",
        f"Section font size: {config.get('section_slide_font_size')}",
        f"Content font size: {config.get('content_title_font_size')}",
        "",
        f"Total settings: {len(config)}",
    ])
