"""Content-source list read from a CSV file or a published spreadsheet."""

import csv
import io
import logging
from pathlib import Path

import requests

from ....common.utils import clean_text
from ....core.domain import SourceDescriptor
from ....core.domain.exceptions import SourceListingError
from ....core.ports import ContentSourceListerPort

logger = logging.getLogger(__name__)

DEFAULT_CATEGORY = "その他"
DEFAULT_TYPE = "unknown"

HEADER_ALIASES: dict[str, tuple[str, ...]] = {
    "file_name": ("file_name", "filename", "file name", "name", "ファイル名", "資料名"),
    "url": ("url", "link", "リンク"),
    "category": ("category", "カテゴリ", "カテゴリー"),
    "type": ("type", "種類", "タイプ"),
    "classification": ("classification", "分類"),
    "good_bad_example": ("good_bad_example", "example", "良い例/悪い例", "良い例・悪い例", "例"),
    "remarks": ("remarks", "keywords", "備考", "キーワード"),
}

# Column order of sheets without a header row
POSITIONAL_FIELDS = ("file_name", "url", "category", "type")


def _normalize_header(value: str) -> str:
    return clean_text(value).strip().lower()


def _resolve_header(row: list[str]) -> dict[str, int] | None:
    """Map field names to column indexes, or None if the row is not a header."""
    lookup = {alias.lower(): field for field, aliases in HEADER_ALIASES.items() for alias in aliases}
    columns: dict[str, int] = {}
    for index, cell in enumerate(row):
        field = lookup.get(_normalize_header(cell))
        if field and field not in columns:
            columns[field] = index
    if "url" in columns and "file_name" in columns:
        return columns
    return None


class CsvSourceLister(ContentSourceListerPort):
    """Reads SourceDescriptors from CSV.

    The location can be a local path or an HTTP(S) URL such as a Google
    Sheets CSV export. Rows without a file name or URL are skipped.
    """

    def __init__(self, location: str, timeout: float = 15.0, session: requests.Session | None = None) -> None:
        self.location = location
        self.timeout = timeout
        self.session = session or requests.Session()

    def list_sources(self) -> list[SourceDescriptor]:
        if not self.location:
            raise SourceListingError("No content-source list location configured")

        text = self._read()
        rows = [row for row in csv.reader(io.StringIO(text)) if any(cell.strip() for cell in row)]
        if not rows:
            logger.warning(f"Content-source list at {self.location} is empty")
            return []

        columns = _resolve_header(rows[0])
        if columns is None:
            columns = {field: index for index, field in enumerate(POSITIONAL_FIELDS)}
        else:
            rows = rows[1:]

        sources = [source for row in rows if (source := self._to_descriptor(row, columns))]
        logger.info(f"Read {len(sources)} content sources from {self.location}")
        return sources

    def _read(self) -> str:
        if self.location.startswith(("http://", "https://")):
            try:
                response = self.session.get(self.location, timeout=self.timeout)
                response.raise_for_status()
            except requests.RequestException as e:
                raise SourceListingError(
                    "Failed to download the content-source list",
                    cause=e,
                    context={"location": self.location},
                ) from e
            return response.content.decode("utf-8-sig", errors="replace")

        try:
            return Path(self.location).read_text(encoding="utf-8-sig")
        except OSError as e:
            raise SourceListingError(
                "Failed to read the content-source list",
                cause=e,
                context={"location": self.location},
            ) from e

    @staticmethod
    def _to_descriptor(row: list[str], columns: dict[str, int]) -> SourceDescriptor | None:
        def cell(field: str) -> str | None:
            index = columns.get(field)
            if index is None or index >= len(row):
                return None
            value = clean_text(row[index], normalize=False).strip()
            return value or None

        file_name = cell("file_name")
        url = cell("url")
        if not file_name or not url:
            return None

        return SourceDescriptor(
            url=url,
            file_name=file_name,
            classification=cell("classification"),
            type=cell("type") or DEFAULT_TYPE,
            category=cell("category") or DEFAULT_CATEGORY,
            good_bad_example=cell("good_bad_example"),
            remarks=cell("remarks"),
        )
