"""HTTP content loader for knowledge sources.

One handler per SourceKind. Google Slides and Docs are read through their
public text export, and their HTML rendering supplies the embedded images.
Notion pages and websites go through BeautifulSoup, images through a HEAD
request for metadata, and plain text files are kept as-is.
"""

import logging
import re
from collections.abc import Callable
from typing import Any
from urllib.parse import urljoin

import requests
from bs4 import BeautifulSoup

from ....common.utils import clean_text, collapse_whitespace, truncate
from ....core.domain import ImageDescriptor, LoadedContent, SourceDescriptor, SourceKind, classify_source
from ....core.domain.exceptions import ContentLoadError
from ....core.domain.source_kind import IMAGE_EXTENSION_PATTERN
from ....core.ports import ContentLoaderPort

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT = 15
NOTION_MAX_CHARS = 8000
WEBSITE_MAX_CHARS = 5000
TRUNCATION_MARKER = "\n\n... (長いコンテンツのため一部省略)"
HEADER_RULE = "=" * 50

SLIDES_ID_PATTERN = re.compile(r"/presentation/d/([a-zA-Z0-9_-]+)")
DOCS_ID_PATTERN = re.compile(r"/document/d/([a-zA-Z0-9_-]+)")
SLIDES_EXPORT_URL = "https://docs.google.com/presentation/d/{doc_id}/export/txt"
DOCS_EXPORT_URL = "https://docs.google.com/document/d/{doc_id}/export?format=txt"
SLIDES_HTML_URL = "https://docs.google.com/presentation/d/{doc_id}/htmlpresent"
DOCS_HTML_URL = "https://docs.google.com/document/d/{doc_id}/export?format=html"

BROWSER_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0 Safari/537.36"
    ),
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "ja,en-US;q=0.7,en;q=0.3",
}


def image_placeholder(description: str) -> str:
    """Marker left in the text where an image was."""
    return f"[画像: {description}]"


class HttpContentLoader(ContentLoaderPort):
    """Loads one knowledge source over HTTP."""

    def __init__(
        self,
        session: requests.Session | None = None,
        timeout: float = REQUEST_TIMEOUT,
    ) -> None:
        """Initialize the loader.

        Args:
            session: HTTP session to use. A new one is created when omitted.
            timeout: Per-request timeout in seconds.
        """
        self.session = session or requests.Session()
        self.session.headers.update(BROWSER_HEADERS)
        self.timeout = timeout
        self._handlers: dict[SourceKind, Callable[[SourceDescriptor], LoadedContent]] = {
            SourceKind.SLIDES: self._load_slides,
            SourceKind.DOCS: self._load_docs,
            SourceKind.NOTION: self._load_notion,
            SourceKind.IMAGE: self._load_image,
            SourceKind.TEXT_FILE: self._load_text_file,
            SourceKind.WEBSITE: self._load_website,
            SourceKind.UNKNOWN: self._load_unknown,
        }

    def __enter__(self) -> "HttpContentLoader":
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    def close(self) -> None:
        """Close the HTTP session."""
        self.session.close()

    def load(self, descriptor: SourceDescriptor) -> LoadedContent:
        kind = classify_source(descriptor.url)
        logger.debug(f"Loading {descriptor.file_name} as {kind.value}")
        try:
            return self._handlers[kind](descriptor)
        except requests.RequestException as e:
            raise ContentLoadError(
                f"{kind.value} request failed: {e}",
                cause=e,
                context={"url": descriptor.url, "kind": kind.value},
            ) from e

    def _get(self, url: str) -> requests.Response:
        response = self.session.get(url, timeout=self.timeout)
        response.raise_for_status()
        return response

    @staticmethod
    def _decode(response: requests.Response) -> str:
        # Export endpoints often omit the charset; the content is UTF-8
        return clean_text(response.content.decode("utf-8", errors="replace"))

    def _load_export(
        self,
        descriptor: SourceDescriptor,
        pattern: re.Pattern[str],
        export_url: str,
        html_url: str,
        kind_label: str,
        read_images: Callable[[BeautifulSoup, SourceDescriptor], list[ImageDescriptor]],
    ) -> LoadedContent:
        match = pattern.search(descriptor.url)
        if not match:
            raise ContentLoadError(
                f"Invalid {kind_label} URL format", context={"url": descriptor.url}
            )
        doc_id = match.group(1)
        text = collapse_whitespace(self._decode(self._get(export_url.format(doc_id=doc_id))))
        images = self._export_images(descriptor, html_url.format(doc_id=doc_id), read_images)

        content = (
            f"{descriptor.file_name}\n{HEADER_RULE}\n"
            f"種類: {kind_label}\nURL: {descriptor.url}\n\n{text}"
        )
        if images:
            listing = "\n".join(
                f"{index}. {image_placeholder(image.description)}\n   URL: {image.url}"
                for index, image in enumerate(images, start=1)
            )
            content += f"\n\n--- 含まれる画像一覧 ({len(images)}枚) ---\n{listing}"

        logger.info(
            f"Loaded {kind_label} {descriptor.file_name} ({len(content)} chars, {len(images)} images)"
        )
        return LoadedContent(content=content, images=images)

    def _export_images(
        self,
        descriptor: SourceDescriptor,
        url: str,
        read_images: Callable[[BeautifulSoup, SourceDescriptor], list[ImageDescriptor]],
    ) -> list[ImageDescriptor]:
        """Read embedded images from the HTML rendering. The text is kept when this fails."""
        try:
            response = self._get(url)
        except requests.RequestException as e:
            logger.warning(f"No images for {descriptor.file_name}: HTML export failed ({e})")
            return []
        return read_images(BeautifulSoup(response.text, "lxml"), descriptor)

    @staticmethod
    def _slide_images(soup: BeautifulSoup, descriptor: SourceDescriptor) -> list[ImageDescriptor]:
        # Each slide is rendered as one top-level <svg>
        slides = [svg for svg in soup.find_all("svg") if svg.find_parent("svg") is None]
        images: list[ImageDescriptor] = []
        for number, slide in enumerate(slides, start=1):
            for node in slide.find_all(["image", "img"]):
                href = str(node.get("xlink:href") or node.get("href") or node.get("src") or "")
                if not href.startswith(("http://", "https://")):
                    continue
                images.append(
                    ImageDescriptor(
                        source="slides",
                        file_name=descriptor.file_name,
                        description=f"{descriptor.file_name} - スライド{number}の画像",
                        kind="embedded_image",
                        position=number,
                        url=href,
                    )
                )
        return images

    @staticmethod
    def _document_images(soup: BeautifulSoup, descriptor: SourceDescriptor) -> list[ImageDescriptor]:
        images: list[ImageDescriptor] = []
        for img in soup.find_all("img"):
            src = urljoin(descriptor.url, str(img.get("src") or ""))
            if not src.startswith(("http://", "https://")) or src == descriptor.url:
                continue
            position = len(images) + 1
            images.append(
                ImageDescriptor(
                    source="docs",
                    file_name=descriptor.file_name,
                    description=f"{descriptor.file_name} - ドキュメント内画像{position}",
                    kind="embedded_image",
                    position=position,
                    url=src,
                )
            )
        return images

    def _load_slides(self, descriptor: SourceDescriptor) -> LoadedContent:
        return self._load_export(
            descriptor,
            SLIDES_ID_PATTERN,
            SLIDES_EXPORT_URL,
            SLIDES_HTML_URL,
            "Googleスライド",
            self._slide_images,
        )

    def _load_docs(self, descriptor: SourceDescriptor) -> LoadedContent:
        return self._load_export(
            descriptor,
            DOCS_ID_PATTERN,
            DOCS_EXPORT_URL,
            DOCS_HTML_URL,
            "Googleドキュメント",
            self._document_images,
        )

    def _load_notion(self, descriptor: SourceDescriptor) -> LoadedContent:
        try:
            response = self._get(descriptor.url)
        except requests.RequestException as e:
            logger.warning(f"Notion load failed for {descriptor.file_name}, falling back to website: {e}")
            return self._load_website(descriptor)

        soup = BeautifulSoup(response.text, "lxml")
        for tag in soup(["script", "style", "noscript"]):
            tag.decompose()

        images = self._replace_images(
            soup,
            descriptor,
            source="notion",
            label="Notion画像",
            accept=lambda src: "notion" in src or "amazonaws.com" in src,
        )
        title = self._title(soup, descriptor.file_name).replace(" | Notion", "").strip()
        text = truncate(self._text(soup), NOTION_MAX_CHARS, TRUNCATION_MARKER)

        content = (
            f"{descriptor.file_name}\n{HEADER_RULE}\n"
            f"タイトル: {title}\nNotion URL: {descriptor.url}\n種類: Notionページ\n\n{text}"
        )
        logger.info(f"Loaded Notion page {descriptor.file_name} ({len(content)} chars, {len(images)} images)")
        return LoadedContent(content=content, images=images)

    def _load_website(self, descriptor: SourceDescriptor) -> LoadedContent:
        response = self._get(descriptor.url)
        soup = BeautifulSoup(response.text, "lxml")

        description = ""
        meta = soup.find("meta", attrs={"name": "description"})
        if meta and meta.get("content"):
            description = clean_text(str(meta["content"])).strip()

        for tag in soup(["script", "style", "noscript", "nav", "header", "footer"]):
            tag.decompose()

        images = self._replace_images(
            soup,
            descriptor,
            source="website",
            label="WEB画像",
            accept=lambda src: src.startswith("http") and bool(IMAGE_EXTENSION_PATTERN.search(src)),
        )
        title = self._title(soup, descriptor.file_name)
        text = truncate(self._text(soup), WEBSITE_MAX_CHARS, TRUNCATION_MARKER)

        content = f"{descriptor.file_name}\n{HEADER_RULE}\nタイトル: {title}\n"
        if description:
            content += f"概要: {description}\n"
        content += f"URL: {descriptor.url}\n種類: WEBサイト\n\n{text}"
        logger.info(f"Loaded website {descriptor.file_name} ({len(content)} chars, {len(images)} images)")
        return LoadedContent(content=content, images=images)

    def _load_image(self, descriptor: SourceDescriptor) -> LoadedContent:
        response = self.session.head(descriptor.url, timeout=self.timeout, allow_redirects=True)
        response.raise_for_status()
        content_type = response.headers.get("Content-Type", "unknown")
        content_length = response.headers.get("Content-Length", "unknown")
        description = f"{descriptor.file_name} - 直接画像URL"

        content = (
            f"{descriptor.file_name}\n{HEADER_RULE}\n"
            f"種類: 画像ファイル\nURL: {descriptor.url}\n"
            f"ファイル形式: {content_type}\nファイルサイズ: {content_length} bytes\n\n"
            "この画像は、質問時に画像として添付された場合、AIが詳細に分析して回答します。\n\n"
            f"{image_placeholder(description)}\n"
        )
        image = ImageDescriptor(
            source="direct_url",
            file_name=descriptor.file_name,
            description=description,
            kind="direct_image",
            url=descriptor.url,
        )
        return LoadedContent(content=content, images=[image])

    def _load_text_file(self, descriptor: SourceDescriptor) -> LoadedContent:
        text = self._decode(self._get(descriptor.url))
        content = f"{descriptor.file_name}\n{HEADER_RULE}\n種類: テキストファイル\nURL: {descriptor.url}\n\n{text}"
        return LoadedContent(content=content, images=[])

    def _load_unknown(self, descriptor: SourceDescriptor) -> LoadedContent:
        logger.warning(f"Unsupported URL format for {descriptor.file_name}: {descriptor.url}")
        return LoadedContent(content=f"{descriptor.file_name}: 未対応のURL形式 - {descriptor.url}")

    @staticmethod
    def _replace_images(
        soup: BeautifulSoup,
        descriptor: SourceDescriptor,
        source: str,
        label: str,
        accept: Callable[[str], bool],
    ) -> list[ImageDescriptor]:
        """Swap accepted <img> tags for text placeholders and collect their descriptors."""
        images: list[ImageDescriptor] = []
        for img in soup.find_all("img"):
            src = str(img.get("src") or "")
            if not src:
                continue
            absolute = urljoin(descriptor.url, src)
            if not accept(absolute):
                continue
            position = len(images) + 1
            description = f"{descriptor.file_name} - {label}{position}"
            alt = str(img.get("alt") or "").strip()
            images.append(
                ImageDescriptor(
                    source=source,
                    file_name=descriptor.file_name,
                    description=f"{description} ({alt})" if alt else description,
                    kind="embedded_image",
                    position=position,
                    url=absolute,
                )
            )
            img.replace_with(f"\n{image_placeholder(description)}\n")
        return images

    @staticmethod
    def _title(soup: BeautifulSoup, default: str) -> str:
        if soup.title and soup.title.string:
            return clean_text(soup.title.string).strip()
        return default

    @staticmethod
    def _text(soup: BeautifulSoup) -> str:
        """Extract text with headings and list items marked and block breaks kept."""
        for br in soup.find_all("br"):
            br.replace_with("\n")
        for heading in soup.find_all(["h1", "h2", "h3", "h4", "h5", "h6"]):
            heading.insert(0, "\n## ")
            heading.append("\n")
        for item in soup.find_all("li"):
            item.insert(0, "\n• ")
            item.append("\n")
        for block in soup.find_all(["p", "div", "section", "article", "tr"]):
            block.append("\n")
        body = soup.body or soup
        return collapse_whitespace(clean_text(body.get_text()))
