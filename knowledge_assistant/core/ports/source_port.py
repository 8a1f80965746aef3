"""Content Source Port Interfaces."""

from abc import ABC, abstractmethod

from ..domain import LoadedContent, SourceDescriptor


class ContentSourceListerPort(ABC):
    """Abstract interface for the content-source list (a spreadsheet index)."""

    @abstractmethod
    def list_sources(self) -> list[SourceDescriptor]:
        """Return every source the knowledge base should load.

        Raises:
            SourceListingError: If the list cannot be read.
        """
        ...


class ContentLoaderPort(ABC):
    """Abstract interface for fetching the text of one source."""

    @abstractmethod
    def load(self, descriptor: SourceDescriptor) -> LoadedContent:
        """Load text and images for a single source.

        Raises:
            ContentLoadError: If the source cannot be fetched or parsed.
        """
        ...
