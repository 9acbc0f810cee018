"""Google Slides API client implementation."""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import httpx

from gdcli.google import GoogleService

logger = logging.getLogger(__name__)

# Predefined layouts accepted by createSlide
SLIDE_LAYOUTS = (
    "BLANK",
    "CAPTION_ONLY",
    "TITLE",
    "TITLE_AND_BODY",
    "TITLE_AND_TWO_COLUMNS",
    "TITLE_ONLY",
    "SECTION_HEADER",
    "SECTION_TITLE_AND_DESCRIPTION",
    "ONE_COLUMN_TEXT",
    "MAIN_POINT",
    "BIG_NUMBER",
)


@dataclass
class Dimension:
    magnitude: float | None = None
    unit: str | None = None


@dataclass
class AffineTransform:
    scale_x: float | None = None
    scale_y: float | None = None
    translate_x: float | None = None
    translate_y: float | None = None
    unit: str | None = None


@dataclass
class PageElement:
    """A shape, image, or table on a slide."""

    object_id: str | None = None
    width: Dimension | None = None
    height: Dimension | None = None
    transform: AffineTransform | None = None
    shape_type: str | None = None
    text_runs: list[str] = field(default_factory=list)
    image_url: str | None = None
    table_rows: int | None = None
    table_columns: int | None = None


@dataclass
class Slide:
    """A single slide (page) of a presentation."""

    object_id: str
    page_elements: list[PageElement] = field(default_factory=list)


@dataclass
class Presentation:
    """Represents a Google Slides presentation."""

    id: str
    title: str | None = None
    slides: list[Slide] = field(default_factory=list)
    width: Dimension | None = None
    height: Dimension | None = None


@dataclass
class Thumbnail:
    """A rendered slide image hosted by Google."""

    content_url: str
    width: int | None = None
    height: int | None = None


class SlidesClient(GoogleService):
    """Google Slides API client for stored accounts.

    Usage:
        client = SlidesClient(storage)

        # Create a presentation and add a slide
        pres = client.create_presentation("me@example.com", "Quarterly Review")
        slide_id = client.add_slide("me@example.com", pres.id, layout="TITLE_AND_BODY")

        # Replace placeholders everywhere
        client.replace_all_text("me@example.com", pres.id, "{{name}}", "Alice")
    """

    api_name = "slides"
    api_version = "v1"

    # =========================================================================
    # Presentations
    # =========================================================================

    def create_presentation(self, email: str, title: str) -> Presentation:
        service = self._get_service(email)
        result = service.presentations().create(body={"title": title}).execute()
        return self._parse_presentation(result)

    def get_presentation(self, email: str, presentation_id: str) -> Presentation:
        service = self._get_service(email)
        result = service.presentations().get(presentationId=presentation_id).execute()
        return self._parse_presentation(result)

    def get_page(self, email: str, presentation_id: str, page_object_id: str) -> Slide:
        """Get a single slide."""
        service = self._get_service(email)
        result = (
            service.presentations()
            .pages()
            .get(presentationId=presentation_id, pageObjectId=page_object_id)
            .execute()
        )
        return self._parse_slide(result)

    # =========================================================================
    # Thumbnails
    # =========================================================================

    def get_thumbnail(
        self,
        email: str,
        presentation_id: str,
        page_object_id: str,
        mime_type: str = "PNG",
    ) -> Thumbnail:
        """Render a slide thumbnail.

        Args:
            email: Account to act as.
            presentation_id: Presentation ID.
            page_object_id: Slide object ID.
            mime_type: "PNG" or "JPEG".

        Returns:
            Thumbnail with a short-lived content URL.
        """
        service = self._get_service(email)
        result = (
            service.presentations()
            .pages()
            .getThumbnail(
                presentationId=presentation_id,
                pageObjectId=page_object_id,
                thumbnailProperties_mimeType=mime_type.upper(),
            )
            .execute()
        )
        return Thumbnail(
            content_url=result.get("contentUrl", ""),
            width=result.get("width"),
            height=result.get("height"),
        )

    def download_thumbnail(self, thumbnail: Thumbnail, output_path: str | Path) -> Path:
        """Fetch a thumbnail image and write it to disk.

        Raises:
            httpx.HTTPError: The image could not be fetched.
        """
        output_path = Path(output_path)
        with httpx.Client(timeout=30.0, follow_redirects=True) as client:
            response = client.get(thumbnail.content_url)
            response.raise_for_status()

        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_bytes(response.content)
        logger.info(f"Saved thumbnail to {output_path}")
        return output_path

    # =========================================================================
    # Editing
    # =========================================================================

    def add_slide(
        self,
        email: str,
        presentation_id: str,
        layout: str | None = None,
        insertion_index: int | None = None,
        object_id: str | None = None,
    ) -> str:
        """Add a slide.

        Args:
            email: Account to act as.
            presentation_id: Presentation ID.
            layout: One of :data:`SLIDE_LAYOUTS`. Omit for the default layout.
            insertion_index: Position; appended at the end when omitted.
            object_id: Object ID for the new slide. Generated when omitted.

        Returns:
            The new slide's object ID.
        """
        object_id = object_id or _new_object_id("slide")

        create_slide: dict[str, Any] = {"objectId": object_id}
        if insertion_index is not None:
            create_slide["insertionIndex"] = insertion_index
        if layout:
            create_slide["slideLayoutReference"] = {"predefinedLayout": layout}

        self.batch_update(email, presentation_id, [{"createSlide": create_slide}])
        return object_id

    def delete_slide(self, email: str, presentation_id: str, page_object_id: str) -> None:
        self.batch_update(email, presentation_id, [{"deleteObject": {"objectId": page_object_id}}])

    def replace_all_text(
        self,
        email: str,
        presentation_id: str,
        find: str,
        replace: str,
        match_case: bool = True,
    ) -> int:
        """Replace text on every slide.

        Returns:
            Number of occurrences changed.
        """
        replies = self.batch_update(
            email,
            presentation_id,
            [
                {
                    "replaceAllText": {
                        "containsText": {"text": find, "matchCase": match_case},
                        "replaceText": replace,
                    }
                }
            ],
        ).get("replies", [])

        if not replies:
            return 0
        return replies[0].get("replaceAllText", {}).get("occurrencesChanged", 0)

    def add_text_box(
        self,
        email: str,
        presentation_id: str,
        page_object_id: str,
        text: str,
        x: float = 100,
        y: float = 100,
        width: float = 300,
        height: float = 50,
    ) -> str:
        """Add a text box to a slide. Position and size are in points.

        Returns:
            The text box object ID.
        """
        text_box_id = _new_object_id("textbox")
        requests = [
            {
                "createShape": {
                    "objectId": text_box_id,
                    "shapeType": "TEXT_BOX",
                    "elementProperties": {
                        "pageObjectId": page_object_id,
                        "size": {
                            "width": {"magnitude": width, "unit": "PT"},
                            "height": {"magnitude": height, "unit": "PT"},
                        },
                        "transform": {
                            "scaleX": 1,
                            "scaleY": 1,
                            "translateX": x,
                            "translateY": y,
                            "unit": "PT",
                        },
                    },
                }
            },
            {"insertText": {"objectId": text_box_id, "text": text, "insertionIndex": 0}},
        ]
        self.batch_update(email, presentation_id, requests)
        return text_box_id

    def duplicate_slide(self, email: str, presentation_id: str, page_object_id: str) -> str:
        """Duplicate a slide.

        Returns:
            The copy's object ID.
        """
        new_object_id = _new_object_id("slide_copy")
        self.batch_update(
            email,
            presentation_id,
            [
                {
                    "duplicateObject": {
                        "objectId": page_object_id,
                        "objectIds": {page_object_id: new_object_id},
                    }
                }
            ],
        )
        return new_object_id

    def batch_update(
        self, email: str, presentation_id: str, requests: list[dict[str, Any]]
    ) -> dict[str, Any]:
        """Send raw Slides API requests."""
        service = self._get_service(email)
        return (
            service.presentations()
            .batchUpdate(presentationId=presentation_id, body={"requests": requests})
            .execute()
        )

    # =========================================================================
    # Rendering
    # =========================================================================

    @staticmethod
    def extract_text(presentation: Presentation) -> str:
        """Concatenate the text of every shape on every slide."""
        return "".join(
            run
            for slide in presentation.slides
            for element in slide.page_elements
            for run in element.text_runs
        )

    @staticmethod
    def get_slide_ids(presentation: Presentation) -> list[str]:
        return [slide.object_id for slide in presentation.slides]

    # =========================================================================
    # URLs
    # =========================================================================

    @staticmethod
    def generate_web_url(presentation_id: str, slide_index: int | None = None) -> str:
        url = f"https://docs.google.com/presentation/d/{presentation_id}/edit"
        if slide_index is not None:
            url += f"#slide=id.p{slide_index + 1}"
        return url

    # =========================================================================
    # Parsing
    # =========================================================================

    def _parse_presentation(self, data: dict) -> Presentation:
        """Parse presentation from API response."""
        page_size = data.get("pageSize", {})
        return Presentation(
            id=data.get("presentationId", ""),
            title=data.get("title"),
            slides=[self._parse_slide(page) for page in data.get("slides", [])],
            width=_parse_dimension(page_size.get("width")),
            height=_parse_dimension(page_size.get("height")),
        )

    def _parse_slide(self, data: dict) -> Slide:
        return Slide(
            object_id=data.get("objectId", ""),
            page_elements=[_parse_page_element(pe) for pe in data.get("pageElements", [])],
        )


def _new_object_id(prefix: str) -> str:
    return f"{prefix}_{uuid.uuid4().hex[:16]}"


def _parse_dimension(data: dict | None) -> Dimension | None:
    if not data:
        return None
    return Dimension(magnitude=data.get("magnitude"), unit=data.get("unit"))


def _parse_page_element(data: dict) -> PageElement:
    size = data.get("size", {})
    transform = data.get("transform")
    shape = data.get("shape", {})
    image = data.get("image", {})
    table = data.get("table", {})

    text_runs = [
        te["textRun"]["content"]
        for te in shape.get("text", {}).get("textElements", [])
        if te.get("textRun", {}).get("content")
    ]

    return PageElement(
        object_id=data.get("objectId"),
        width=_parse_dimension(size.get("width")),
        height=_parse_dimension(size.get("height")),
        transform=(
            AffineTransform(
                scale_x=transform.get("scaleX"),
                scale_y=transform.get("scaleY"),
                translate_x=transform.get("translateX"),
                translate_y=transform.get("translateY"),
                unit=transform.get("unit"),
            )
            if transform
            else None
        ),
        shape_type=shape.get("shapeType"),
        text_runs=text_runs,
        image_url=image.get("contentUrl") or image.get("sourceUrl"),
        table_rows=table.get("rows"),
        table_columns=table.get("columns"),
    )
