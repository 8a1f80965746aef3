"""Classification of content-source URLs."""

import re
from enum import Enum

IMAGE_EXTENSION_PATTERN = re.compile(r"\.(jpg|jpeg|png|gif|webp|bmp|svg)(\?.*)?$", re.IGNORECASE)
TEXT_FILE_PATTERN = re.compile(r"\.(txt|md|csv)(\?.*)?$", re.IGNORECASE)


class SourceKind(Enum):
    """Kind of content behind a source URL.

    Each kind has exactly one loader.
    """

    SLIDES = "slides"
    DOCS = "docs"
    NOTION = "notion"
    IMAGE = "image"
    TEXT_FILE = "text_file"
    WEBSITE = "website"
    UNKNOWN = "unknown"


def classify_source(url: str) -> SourceKind:
    """Decide which loader handles a URL.

    Args:
        url: Source URL from the content-source list.

    Returns:
        The matching SourceKind. Checks run from most to least specific.
    """
    url = (url or "").strip()
    if "docs.google.com/presentation" in url:
        return SourceKind.SLIDES
    if "docs.google.com/document" in url:
        return SourceKind.DOCS
    if "notion.so" in url or "notion.site" in url:
        return SourceKind.NOTION
    if (
        IMAGE_EXTENSION_PATTERN.search(url)
        or "cdn.discordapp.com" in url
        or "drive.google.com/file" in url
    ):
        return SourceKind.IMAGE
    if not url.startswith(("http://", "https://")):
        return SourceKind.UNKNOWN
    if TEXT_FILE_PATTERN.search(url):
        return SourceKind.TEXT_FILE
    return SourceKind.WEBSITE
