from __future__ import annotations

import io
import logging
import uuid
from dataclasses import dataclass
from pathlib import Path

from PIL import Image, ImageOps, UnidentifiedImageError

from app.config import settings
from app.services.storage import MediaStorage, StorageError

LOGGER = logging.getLogger(__name__)

MB = 1024 * 1024

ALLOWED_MIME_TYPES = {
    "image": ("image/jpeg", "image/png", "image/webp"),
    "audio": ("audio/mpeg", "audio/wav"),
    "video": ("video/mp4", "video/webm"),
}

MEDIA_FIELDS = {"image": "images", "audio": "audios", "video": "videos"}

EXTENSIONS = {
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "image/webp": ".webp",
    "audio/mpeg": ".mp3",
    "audio/wav": ".wav",
    "video/mp4": ".mp4",
    "video/webm": ".webm",
}


class MediaValidationError(ValueError):
    pass


@dataclass(frozen=True)
class MediaFile:
    filename: str
    content_type: str
    data: bytes

    @property
    def category(self) -> str:
        return self.content_type.lower().split("/", 1)[0]

    @property
    def field(self) -> str:
        return MEDIA_FIELDS[self.category]

    @property
    def extension(self) -> str:
        suffix = Path(self.filename).suffix.lower()
        return EXTENSIONS.get(self.content_type.lower()) or suffix


@dataclass(frozen=True)
class StoredMedia:
    field: str
    url: str


def _size_limits() -> dict[str, int]:
    return {
        "image": settings.image_max_size_mb,
        "audio": settings.audio_max_size_mb,
        "video": settings.video_max_size_mb,
    }


def validate_media(files: list[MediaFile]) -> None:
    """Reject uploads outside the MIME allow-list or over their size ceiling.

    The MIME check runs first, so an unsupported type fails whatever its size.
    """
    if len(files) > settings.max_media_files:
        raise MediaValidationError(
            f"Too many media files (max {settings.max_media_files})"
        )
    limits = _size_limits()
    for media in files:
        content_type = (media.content_type or "").lower()
        category = content_type.split("/", 1)[0]
        if category not in ALLOWED_MIME_TYPES:
            raise MediaValidationError("Unsupported file type")
        if content_type not in ALLOWED_MIME_TYPES[category]:
            raise MediaValidationError(f"Invalid {category} type")
        if len(media.data) > limits[category] * MB:
            raise MediaValidationError(
                f"{category.capitalize()} exceeds {limits[category]}MB"
            )


def optimize_image(data: bytes) -> bytes:
    """Resize to the configured max width (never enlarging) and re-encode as JPEG."""
    max_width = settings.image_max_width
    try:
        with Image.open(io.BytesIO(data)) as source:
            image = ImageOps.exif_transpose(source)
            if image.width > max_width:
                height = max(1, round(image.height * max_width / image.width))
                image = image.resize((max_width, height), Image.Resampling.LANCZOS)
            if image.mode != "RGB":
                image = image.convert("RGB")
            buffer = io.BytesIO()
            image.save(
                buffer,
                format="JPEG",
                quality=settings.image_quality,
                optimize=True,
                progressive=True,
            )
    except (UnidentifiedImageError, OSError) as exc:
        raise MediaValidationError("Invalid image file") from exc
    return buffer.getvalue()


def prepare_media(media: MediaFile) -> MediaFile:
    if media.category != "image":
        return media
    optimized = optimize_image(media.data)
    LOGGER.debug(
        "Optimized image %s from %s to %s bytes",
        media.filename,
        len(media.data),
        len(optimized),
    )
    return MediaFile(filename=media.filename, content_type="image/jpeg", data=optimized)


def storage_key(media: MediaFile) -> str:
    return f"{media.field}/{uuid.uuid4().hex}{media.extension}"


def store_media(files: list[MediaFile], storage: MediaStorage) -> list[StoredMedia]:
    """Validate, optimize and upload ``files``, preserving their order.

    Every file is prepared before the first upload. If an upload fails, the
    objects already stored for this batch are removed before re-raising.
    """
    validate_media(files)
    prepared = [prepare_media(media) for media in files]
    stored: list[StoredMedia] = []
    uploaded_paths: list[str] = []
    try:
        for media in prepared:
            path = storage_key(media)
            url = storage.upload(path, media.data, media.content_type)
            uploaded_paths.append(path)
            stored.append(StoredMedia(field=media.field, url=url))
    except StorageError:
        if uploaded_paths:
            LOGGER.warning("Rolling back %s uploaded media objects", len(uploaded_paths))
            storage.remove(uploaded_paths)
        raise
    return stored


def storage_paths(urls: list[str], storage: MediaStorage) -> list[str]:
    paths = []
    for url in urls:
        path = storage.path_from_url(url)
        if path:
            paths.append(path)
    return paths
