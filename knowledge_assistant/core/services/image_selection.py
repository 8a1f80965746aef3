"""Image URL validation and selection for vision requests."""

import logging
from dataclasses import dataclass, field
from urllib.parse import urlparse

from ..domain import ImageDescriptor
from ..domain.source_kind import IMAGE_EXTENSION_PATTERN

logger = logging.getLogger(__name__)

KNOWN_IMAGE_HOSTS = (
    "cdn.discordapp.com",
    "media.discordapp.net",
    "drive.google.com",
    "imgur.com",
    "i.imgur.com",
)

USER_IMAGE_SOURCE = "user"


@dataclass
class ImageSelection:
    """Images chosen for one completion call, user images first."""

    images: list[ImageDescriptor] = field(default_factory=list)
    user_count: int = 0
    document_count: int = 0


def is_valid_image_url(url: str | None) -> bool:
    """Check that a URL is HTTP(S) and looks like an image.

    A URL qualifies when it ends in an image extension or points at a
    known image host.
    """
    if not url or not isinstance(url, str):
        return False
    if not url.startswith(("http://", "https://")):
        return False
    if IMAGE_EXTENSION_PATTERN.search(url):
        return True
    return any(host in url for host in KNOWN_IMAGE_HOSTS)


def filename_from_url(url: str) -> str:
    try:
        name = urlparse(url).path.rsplit("/", 1)[-1]
    except ValueError:
        return "image"
    return name or "image"


def normalize_image(image: str | ImageDescriptor) -> ImageDescriptor:
    """Turn a user attachment (URL string or descriptor) into an ImageDescriptor."""
    if isinstance(image, ImageDescriptor):
        if image.file_name:
            return image
        return ImageDescriptor(
            source=image.source,
            file_name=filename_from_url(image.url or ""),
            description=image.description,
            kind=image.kind,
            position=image.position,
            url=image.url,
        )
    return ImageDescriptor(
        source=USER_IMAGE_SOURCE,
        file_name=filename_from_url(image),
        description="ユーザー添付画像",
        kind="direct_image",
        url=image,
    )


def select_images(
    user_images: list[str | ImageDescriptor] | None,
    document_images: list[ImageDescriptor] | None,
    max_images: int = 5,
) -> ImageSelection:
    """Pick up to ``max_images`` images.

    Valid user attachments come first. Document images that carry a URL
    fill the remaining slots. Duplicate URLs are dropped.

    Args:
        user_images: Attachments sent with the question.
        document_images: Images from the documents used as context.
        max_images: Overall cap.

    Returns:
        ImageSelection with the chosen images and per-origin counts.
    """
    selection = ImageSelection()
    seen: set[str] = set()

    for raw in user_images or []:
        if len(selection.images) >= max_images:
            break
        image = normalize_image(raw)
        if not is_valid_image_url(image.url) or image.url in seen:
            logger.debug(f"Skipping user image {image.url!r}")
            continue
        seen.add(image.url)
        selection.images.append(image)
        selection.user_count += 1

    for image in document_images or []:
        if len(selection.images) >= max_images:
            break
        if not image.url or image.url in seen:
            continue
        seen.add(image.url)
        selection.images.append(image)
        selection.document_count += 1

    return selection
