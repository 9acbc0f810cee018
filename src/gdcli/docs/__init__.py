"""Google Docs API client for stored gdcli accounts.

Usage:
    from gdcli.docs import DocsClient

    client = DocsClient(storage)

    # Create a document
    doc = client.create_document("me@example.com", "My Document")

    # Read it back as Markdown
    print(client.extract_markdown(client.get_document("me@example.com", doc.id)))
"""

from __future__ import annotations

from gdcli.docs.client import DocsClient, Document

__all__ = ["DocsClient", "Document"]
