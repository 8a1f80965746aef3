"""Unit tests for content-source URL classification."""

import pytest

from knowledge_assistant.core.domain import SourceKind, classify_source

pytestmark = pytest.mark.unit


@pytest.mark.parametrize(
    "url,kind",
    [
        ("https://docs.google.com/presentation/d/abc123/edit", SourceKind.SLIDES),
        ("https://docs.google.com/document/d/abc123/edit", SourceKind.DOCS),
        ("https://www.notion.so/school/Guide-123", SourceKind.NOTION),
        ("https://school.notion.site/Guide-123", SourceKind.NOTION),
        ("https://example.com/banner.png", SourceKind.IMAGE),
        ("https://cdn.discordapp.com/attachments/1/2/banner", SourceKind.IMAGE),
        ("https://drive.google.com/file/d/abc/view", SourceKind.IMAGE),
        ("https://example.com/notes.txt", SourceKind.TEXT_FILE),
        ("https://example.com/README.md", SourceKind.TEXT_FILE),
        ("https://example.com/guide", SourceKind.WEBSITE),
        ("not a url", SourceKind.UNKNOWN),
        ("", SourceKind.UNKNOWN),
    ],
)
def test_classify_source(url, kind):
    assert classify_source(url) == kind
