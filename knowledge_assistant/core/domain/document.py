"""Document, image and search result models for the knowledge base."""

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class ImageDescriptor:
    """An image referenced by a document or attached by the user.

    Attributes:
        source: Origin kind (notion, website, direct_url, slides, docs, user).
        file_name: Name of the document the image belongs to.
        description: Alt text, caption or a short human description.
        kind: ``embedded_image`` for images inside a page, ``direct_image``
            for sources that are images themselves.
        position: 1-based position inside the document, if known.
        url: Location of the image. Only images with a URL can be sent to
            the vision model.
    """

    source: str
    file_name: str
    description: str = ""
    kind: str = "embedded_image"
    position: int | None = None
    url: str | None = None


@dataclass(frozen=True)
class SourceDescriptor:
    """One row of the content-source list.

    Empty strings and ``None`` both mean "no value" for the optional fields.
    """

    url: str
    file_name: str
    classification: str | None = None
    type: str | None = None
    category: str | None = None
    good_bad_example: str | None = None
    remarks: str | None = None


@dataclass(frozen=True)
class Document:
    """A loaded knowledge source.

    Documents are created during a full rebuild pass and replaced wholesale
    by the next one. They are never mutated in between.

    Attributes:
        source: Display name of the source (the file name from the list).
        url: Where the content was loaded from.
        content: Extracted text.
        images: Images found in the content, in extraction order.
        type: Source type from the list, or ``error`` for failed loads.
        classification: Free-text classification (e.g. ミッション).
        category: Free-text category.
        good_bad_example: Good/bad example marker.
        remarks: Curator keywords, comma separated.
    """

    source: str
    url: str
    content: str
    images: tuple[ImageDescriptor, ...] = ()
    type: str = "unknown"
    classification: str | None = None
    category: str | None = None
    good_bad_example: str | None = None
    remarks: str | None = None

    @property
    def is_error(self) -> bool:
        return self.type == "error"


@dataclass(frozen=True)
class MatchDetail:
    """One scoring signal that contributed to a result."""

    signal: str
    value: float
    note: str

    def render(self) -> str:
        """Human-readable line for logs and API output."""
        return f"{self.note} (+{self.value:.2f})"


@dataclass
class SearchResult:
    """A scored document returned by a knowledge search.

    Attributes:
        document: The matched Document.
        score: Additive relevance score. Non-negative and unbounded.
        match_details: Signals that contributed to the score.
        excerpt: Window of the content around the first token match.
        metadata: Document fields flattened for callers.
    """

    document: Document
    score: float
    match_details: list[MatchDetail] = field(default_factory=list)
    excerpt: str = ""
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def source(self) -> str:
        return self.document.source
