"""Google Docs API client implementation."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from gdcli.google import GoogleService


@dataclass
class Document:
    """Represents a Google Doc.

    ``body`` is the raw Docs API body (``{"content": [...]}``); use
    :meth:`DocsClient.extract_text` or :meth:`DocsClient.extract_markdown`
    to render it.
    """

    id: str
    title: str
    body: dict[str, Any] = field(default_factory=dict)
    revision_id: str | None = None


class DocsClient(GoogleService):
    """Google Docs API client for stored accounts.

    Usage:
        client = DocsClient(storage)

        # Create a document
        doc = client.create_document("me@example.com", "My Document")

        # Get document content
        doc = client.get_document("me@example.com", doc.id)
        print(client.extract_markdown(doc))

        # Append text
        client.append_text("me@example.com", doc.id, "Hello, World!")
    """

    api_name = "docs"
    api_version = "v1"

    # =========================================================================
    # Documents
    # =========================================================================

    def create_document(self, email: str, title: str) -> Document:
        """Create a blank document."""
        service = self._get_service(email)
        result = service.documents().create(body={"title": title}).execute()
        return self._parse_document(result)

    def get_document(self, email: str, document_id: str) -> Document:
        service = self._get_service(email)
        result = service.documents().get(documentId=document_id).execute()
        return self._parse_document(result)

    def get_content(self, email: str, document_id: str) -> str:
        """Get the plain text of a document."""
        return self.extract_text(self.get_document(email, document_id))

    # =========================================================================
    # Editing
    # =========================================================================

    def insert_text(self, email: str, document_id: str, index: int, text: str) -> Document:
        """Insert text at a body index.

        Returns:
            The updated document.
        """
        self.batch_update(
            email,
            document_id,
            [{"insertText": {"location": {"index": index}, "text": text}}],
        )
        return self.get_document(email, document_id)

    def append_text(self, email: str, document_id: str, text: str) -> Document:
        """Append text at the end of the document body.

        Returns:
            The updated document.
        """
        document = self.get_document(email, document_id)
        end_index = self._get_end_index(document)
        return self.insert_text(email, document_id, end_index, text)

    def replace_text(
        self,
        email: str,
        document_id: str,
        find: str,
        replace: str,
        match_case: bool = True,
    ) -> Document:
        """Replace every occurrence of ``find`` with ``replace``.

        Returns:
            The updated document.
        """
        self.batch_update(
            email,
            document_id,
            [
                {
                    "replaceAllText": {
                        "containsText": {"text": find, "matchCase": match_case},
                        "replaceText": replace,
                    }
                }
            ],
        )
        return self.get_document(email, document_id)

    def delete_range(
        self, email: str, document_id: str, start_index: int, end_index: int
    ) -> Document:
        """Delete the content between two body indexes.

        Returns:
            The updated document.
        """
        self.batch_update(
            email,
            document_id,
            [
                {
                    "deleteContentRange": {
                        "range": {"startIndex": start_index, "endIndex": end_index}
                    }
                }
            ],
        )
        return self.get_document(email, document_id)

    def batch_update(
        self, email: str, document_id: str, requests: list[dict[str, Any]]
    ) -> dict[str, Any]:
        """Send raw Docs API requests."""
        service = self._get_service(email)
        return (
            service.documents()
            .batchUpdate(documentId=document_id, body={"requests": requests})
            .execute()
        )

    # =========================================================================
    # Rendering
    # =========================================================================

    def extract_text(self, document: Document) -> str:
        """Concatenate every text run in paragraphs and table cells."""
        parts: list[str] = []
        for element in document.body.get("content", []):
            if "paragraph" in element:
                parts.extend(_paragraph_runs(element["paragraph"]))
            if "table" in element:
                for row in element["table"].get("tableRows", []):
                    for cell in row.get("tableCells", []):
                        for cell_element in cell.get("content", []):
                            if "paragraph" in cell_element:
                                parts.extend(_paragraph_runs(cell_element["paragraph"]))
        return "".join(parts)

    def extract_markdown(self, document: Document) -> str:
        """Render the document body as Markdown.

        Handles headings, bold, italic, strikethrough, links, nested bullets
        and tables (first row becomes the header).
        """
        lines: list[str] = []
        for element in document.body.get("content", []):
            if "paragraph" in element:
                lines.append(self._paragraph_to_markdown(element["paragraph"]))
            if "table" in element:
                lines.append(self._table_to_markdown(element["table"]))
        return "".join(lines)

    def _paragraph_to_markdown(self, paragraph: dict[str, Any]) -> str:
        text = ""
        for elem in paragraph.get("elements", []):
            run = elem.get("textRun")
            if run is None:
                continue
            content = run.get("content", "")
            style = run.get("textStyle", {})

            url = style.get("link", {}).get("url")
            if url:
                content = f"[{content.strip()}]({url})"
            if style.get("bold"):
                content = f"**{content.strip()}**"
            if style.get("italic"):
                content = f"*{content.strip()}*"
            if style.get("strikethrough"):
                content = f"~~{content.strip()}~~"

            text += content

        named_style = paragraph.get("paragraphStyle", {}).get("namedStyleType", "")
        if named_style.startswith("HEADING_"):
            level = named_style.removeprefix("HEADING_")
            if level.isdigit() and 1 <= int(level) <= 6:
                text = "#" * int(level) + " " + text.strip() + "\n"

        bullet = paragraph.get("bullet")
        if bullet is not None:
            indent = "  " * bullet.get("nestingLevel", 0)
            text = f"{indent}- {text.strip()}\n"

        return text

    def _table_to_markdown(self, table: dict[str, Any]) -> str:
        rows: list[list[str]] = []
        for row in table.get("tableRows", []):
            cells = []
            for cell in row.get("tableCells", []):
                cell_text = ""
                for element in cell.get("content", []):
                    for run in _paragraph_runs(element.get("paragraph", {})):
                        cell_text += run.replace("\n", " ").strip()
                cells.append(cell_text)
            rows.append(cells)

        if not rows:
            return ""

        header, *body = rows
        lines = [
            "| " + " | ".join(header) + " |",
            "| " + " | ".join("---" for _ in header) + " |",
        ]
        lines.extend("| " + " | ".join(row) + " |" for row in body)
        return "\n".join(lines) + "\n\n"

    # =========================================================================
    # URLs
    # =========================================================================

    @staticmethod
    def generate_web_url(document_id: str) -> str:
        return f"https://docs.google.com/document/d/{document_id}/edit"

    # =========================================================================
    # Parsing
    # =========================================================================

    @staticmethod
    def _get_end_index(document: Document) -> int:
        """Index just before the body's final newline; 1 for an empty body."""
        max_index = 1
        for element in document.body.get("content", []):
            end_index = element.get("endIndex")
            if end_index and end_index > max_index:
                max_index = end_index
        return max(max_index - 1, 1)

    def _parse_document(self, data: dict) -> Document:
        """Parse document from API response."""
        return Document(
            id=data.get("documentId", ""),
            title=data.get("title", ""),
            body=data.get("body") or {},
            revision_id=data.get("revisionId"),
        )


def _paragraph_runs(paragraph: dict[str, Any]) -> list[str]:
    """Text run contents of a paragraph."""
    return [
        elem["textRun"]["content"]
        for elem in paragraph.get("elements", [])
        if elem.get("textRun", {}).get("content")
    ]
