"""Google Slides API client for stored gdcli accounts.

Usage:
    from gdcli.slides import SlidesClient

    client = SlidesClient(storage)

    # Create a presentation and add a slide
    pres = client.create_presentation("me@example.com", "Deck")
    client.add_slide("me@example.com", pres.id, layout="TITLE")
"""

from __future__ import annotations

from gdcli.slides.client import (
    SLIDE_LAYOUTS,
    PageElement,
    Presentation,
    Slide,
    SlidesClient,
    Thumbnail,
)

__all__ = [
    "SlidesClient",
    "Presentation",
    "Slide",
    "PageElement",
    "Thumbnail",
    "SLIDE_LAYOUTS",
]
