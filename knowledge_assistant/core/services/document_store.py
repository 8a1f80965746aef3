"""In-memory document store with atomic full rebuilds."""

import logging
import threading
import time
from collections import Counter
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime

from ..domain import (
    BuildResult,
    BuildStatus,
    Document,
    ImageDescriptor,
    SourceDescriptor,
    StoreStatus,
)
from ..domain.exceptions import (
    ContentLoadError,
    RebuildInProgressError,
    SourceListingError,
)
from ..ports import ContentLoaderPort, ContentSourceListerPort

logger = logging.getLogger(__name__)

ERROR_DOCUMENT_TYPE = "error"


@dataclass(frozen=True)
class _CorpusSnapshot:
    documents: tuple[Document, ...] = ()
    images: tuple[ImageDescriptor, ...] = ()


class DocumentStore:
    """Holds the loaded knowledge corpus.

    The documents and their flattened images live in one immutable snapshot.
    A rebuild loads every source into a new snapshot and publishes it with a
    single reference assignment, so readers always see either the complete
    old corpus or the complete new one.
    """

    def __init__(
        self,
        loader: ContentLoaderPort,
        lister: ContentSourceListerPort | None = None,
        fetch_delay_seconds: float = 0.2,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        """Initialize an empty store.

        Args:
            loader: Fetches the content of one source.
            lister: Provides the source list when rebuild() gets none.
            fetch_delay_seconds: Pause between consecutive fetches.
            sleep: Sleep function, replaceable in tests.
        """
        self.loader = loader
        self.lister = lister
        self.fetch_delay_seconds = fetch_delay_seconds
        self._sleep = sleep
        self._snapshot = _CorpusSnapshot()
        self._rebuild_lock = threading.Lock()
        self._initialized = False
        self._last_build_time: datetime | None = None

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    @property
    def is_rebuilding(self) -> bool:
        return self._rebuild_lock.locked()

    @property
    def last_build_time(self) -> datetime | None:
        return self._last_build_time

    def rebuild(self, sources: list[SourceDescriptor] | None = None) -> BuildResult:
        """Load every source and replace the corpus in one step.

        Args:
            sources: Explicit source list. When None the lister is asked.

        Returns:
            BuildResult describing the pass.

        Raises:
            RebuildInProgressError: If another rebuild is running.
            SourceListingError: If the source list cannot be read. The
                previous corpus stays in place.
        """
        if not self._rebuild_lock.acquire(blocking=False):
            raise RebuildInProgressError("A knowledge base rebuild is already running")

        try:
            return self._rebuild(sources)
        finally:
            self._rebuild_lock.release()

    def _rebuild(self, sources: list[SourceDescriptor] | None) -> BuildResult:
        started = time.monotonic()

        if sources is None:
            sources = self._list_sources()

        if not sources:
            logger.warning("Content-source list is empty; keeping current documents")
            self._last_build_time = datetime.now(UTC)
            self._initialized = True
            return BuildResult(
                status=BuildStatus.NO_SOURCES,
                documents=self._snapshot.documents,
                image_count=len(self._snapshot.images),
                duration_seconds=time.monotonic() - started,
            )

        logger.info(f"Rebuilding knowledge base from {len(sources)} sources...")
        documents: list[Document] = []
        images: list[ImageDescriptor] = []
        failed = 0

        for index, descriptor in enumerate(sources):
            if index > 0 and self.fetch_delay_seconds > 0:
                self._sleep(self.fetch_delay_seconds)

            logger.debug(f"Loading {descriptor.file_name} ({descriptor.url})")
            try:
                document = self._load_document(descriptor)
            except Exception as e:
                # One broken source never fails the whole pass
                failed += 1
                logger.error(
                    f"Failed to load {descriptor.file_name}: {e}",
                    extra={"event": "load_failed", "source": descriptor.file_name, "url": descriptor.url},
                )
                document = self._error_document(descriptor, e)

            documents.append(document)
            images.extend(document.images)

        snapshot = _CorpusSnapshot(documents=tuple(documents), images=tuple(images))
        self._snapshot = snapshot
        self._last_build_time = datetime.now(UTC)
        self._initialized = True

        duration = time.monotonic() - started
        total_chars = sum(len(doc.content) for doc in documents)
        logger.info(
            f"Knowledge base built: {len(documents)} documents, {len(images)} images, "
            f"{total_chars} characters, {failed} failed ({duration:.1f}s)",
            extra={
                "event": "rebuild",
                "documents": len(documents),
                "images": len(images),
                "characters": total_chars,
                "failed": failed,
                "duration_seconds": round(duration, 3),
            },
        )
        return BuildResult(
            status=BuildStatus.BUILT,
            documents=snapshot.documents,
            failed_count=failed,
            image_count=len(images),
            duration_seconds=duration,
        )

    def _list_sources(self) -> list[SourceDescriptor]:
        if self.lister is None:
            raise SourceListingError("No content-source lister configured")
        try:
            return self.lister.list_sources()
        except SourceListingError:
            raise
        except Exception as e:
            raise SourceListingError("Failed to read the content-source list", cause=e) from e

    def _load_document(self, descriptor: SourceDescriptor) -> Document:
        loaded = self.loader.load(descriptor)
        return Document(
            source=descriptor.file_name,
            url=descriptor.url,
            content=loaded.content,
            images=tuple(loaded.images),
            type=descriptor.type or "unknown",
            classification=descriptor.classification,
            category=descriptor.category,
            good_bad_example=descriptor.good_bad_example,
            remarks=descriptor.remarks,
        )

    @staticmethod
    def _error_document(descriptor: SourceDescriptor, error: Exception) -> Document:
        message = error.message if isinstance(error, ContentLoadError) else str(error)
        return Document(
            source=descriptor.file_name,
            url=descriptor.url,
            content=f"{descriptor.file_name}: 読み込みエラー - {message}",
            type=ERROR_DOCUMENT_TYPE,
            classification=descriptor.classification,
            category=descriptor.category,
            good_bad_example=descriptor.good_bad_example,
            remarks=descriptor.remarks,
        )

    def query(self) -> tuple[Document, ...]:
        """Return the documents of the current snapshot."""
        return self._snapshot.documents

    def query_images(self) -> tuple[ImageDescriptor, ...]:
        """Return all document images of the current snapshot."""
        return self._snapshot.images

    def status(self) -> StoreStatus:
        snapshot = self._snapshot
        return StoreStatus(
            initialized=self._initialized,
            document_count=len(snapshot.documents),
            image_count=len(snapshot.images),
            last_build_time=self._last_build_time,
            rebuilding=self.is_rebuilding,
            images_by_source=dict(Counter(image.source for image in snapshot.images)),
            total_characters=sum(len(doc.content) for doc in snapshot.documents),
        )

    def reset(self) -> None:
        """Drop the corpus and return to the uninitialized state."""
        self._snapshot = _CorpusSnapshot()
        self._last_build_time = None
        self._initialized = False
        logger.info("Document store reset")
