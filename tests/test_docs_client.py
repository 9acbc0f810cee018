"""Tests for the Google Docs client."""

from unittest.mock import MagicMock, patch

import pytest

from gdcli.docs import DocsClient, Document

EMAIL = "alice@example.com"


def _run(text, **style):
    return {"textRun": {"content": text, "textStyle": style}}


def _paragraph(*runs, style="NORMAL_TEXT", bullet=None, end_index=None):
    element = {"paragraph": {"elements": list(runs), "paragraphStyle": {"namedStyleType": style}}}
    if bullet is not None:
        element["paragraph"]["bullet"] = bullet
    if end_index is not None:
        element["endIndex"] = end_index
    return element


def _cell(text):
    return {"content": [_paragraph(_run(text + "\n"))]}


def _document(*content):
    return Document(id="doc-1", title="Doc", body={"content": list(content)})


@pytest.fixture
def service():
    return MagicMock()


@pytest.fixture
def docs(account_storage, service):
    client = DocsClient(account_storage)
    with patch.object(client, "_get_service", return_value=service):
        yield client


class TestDocuments:
    """Test document retrieval and editing requests."""

    def test_create(self, docs, service):
        """Should create a document with the given title."""
        service.documents().create().execute.return_value = {
            "documentId": "doc-9",
            "title": "Plan",
            "revisionId": "rev-1",
        }
        document = docs.create_document(EMAIL, "Plan")

        service.documents().create.assert_called_with(body={"title": "Plan"})
        assert document.id == "doc-9"
        assert document.body == {}

    def test_append_inserts_before_final_newline(self, docs, service):
        """Should insert at the last endIndex minus one."""
        service.documents().get().execute.return_value = {
            "documentId": "doc-1",
            "title": "Doc",
            "body": {"content": [{"endIndex": 1}, {"endIndex": 12}, {"endIndex": 30}]},
        }

        docs.append_text(EMAIL, "doc-1", "more")

        body = service.documents().batchUpdate.call_args.kwargs["body"]
        assert body == {"requests": [{"insertText": {"location": {"index": 29}, "text": "more"}}]}

    def test_append_to_empty_document(self, docs, service):
        """Should insert at index 1 when the body is empty."""
        service.documents().get().execute.return_value = {"documentId": "doc-1", "body": {}}
        docs.append_text(EMAIL, "doc-1", "first")

        body = service.documents().batchUpdate.call_args.kwargs["body"]
        assert body["requests"][0]["insertText"]["location"] == {"index": 1}

    def test_replace_text(self, docs, service):
        """Should send a replaceAllText request."""
        service.documents().get().execute.return_value = {"documentId": "doc-1"}
        docs.replace_text(EMAIL, "doc-1", "{{name}}", "Alice", match_case=False)

        request = service.documents().batchUpdate.call_args.kwargs["body"]["requests"][0]
        assert request == {
            "replaceAllText": {
                "containsText": {"text": "{{name}}", "matchCase": False},
                "replaceText": "Alice",
            }
        }

    def test_delete_range(self, docs, service):
        service.documents().get().execute.return_value = {"documentId": "doc-1"}
        docs.delete_range(EMAIL, "doc-1", 5, 10)

        request = service.documents().batchUpdate.call_args.kwargs["body"]["requests"][0]
        assert request["deleteContentRange"]["range"] == {"startIndex": 5, "endIndex": 10}

    def test_get_content(self, docs, service):
        """Should return the plain text of the fetched document."""
        service.documents().get().execute.return_value = {
            "documentId": "doc-1",
            "body": {"content": [_paragraph(_run("Hello\n"))]},
        }
        assert docs.get_content(EMAIL, "doc-1") == "Hello\n"


class TestExtractText:
    """Test plain-text rendering."""

    def test_paragraphs_and_tables(self, docs):
        """Should include paragraph and table cell text in order."""
        document = _document(
            _paragraph(_run("Intro "), _run("text\n")),
            {"table": {"tableRows": [{"tableCells": [_cell("A"), _cell("B")]}]}},
        )
        assert docs.extract_text(document) == "Intro text\nA\nB\n"

    def test_empty_document(self, docs):
        assert docs.extract_text(_document()) == ""


class TestExtractMarkdown:
    """Test Markdown rendering."""

    def test_headings(self, docs):
        """Should render HEADING_n as n hashes."""
        document = _document(
            _paragraph(_run("Title\n"), style="HEADING_1"),
            _paragraph(_run("Section\n"), style="HEADING_3"),
            _paragraph(_run("Body\n")),
        )
        assert docs.extract_markdown(document) == "# Title\n### Section\nBody\n"

    def test_inline_styles(self, docs):
        """Should render bold, italic, strikethrough and links."""
        document = _document(
            _paragraph(
                _run("bold", bold=True),
                _run(" "),
                _run("it", italic=True),
                _run(" "),
                _run("gone", strikethrough=True),
                _run(" "),
                _run("site", link={"url": "https://example.com"}),
                _run("\n"),
            )
        )
        assert docs.extract_markdown(document) == (
            "**bold** *it* ~~gone~~ [site](https://example.com)\n"
        )

    def test_nested_bullets(self, docs):
        """Should indent bullets by nesting level."""
        document = _document(
            _paragraph(_run("one\n"), bullet={"listId": "l"}),
            _paragraph(_run("two\n"), bullet={"listId": "l", "nestingLevel": 1}),
        )
        assert docs.extract_markdown(document) == "- one\n  - two\n"

    def test_table(self, docs):
        """Should render the first row as the header."""
        document = _document(
            {
                "table": {
                    "tableRows": [
                        {"tableCells": [_cell("Name"), _cell("Age")]},
                        {"tableCells": [_cell("Alice"), _cell("30")]},
                    ]
                }
            }
        )
        assert docs.extract_markdown(document) == (
            "| Name | Age |\n| --- | --- |\n| Alice | 30 |\n\n"
        )


class TestUrls:
    def test_web_url(self):
        assert DocsClient.generate_web_url("doc-1") == "https://docs.google.com/document/d/doc-1/edit"
