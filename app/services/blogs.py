from datetime import datetime, timezone
import logging
import re
import unicodedata
from typing import Optional

from sqlalchemy import select

from app.database import as_utc, session_scope
from app.models.blog import BlogEntry
from app.models.profile import ProfileEntry
from app.schemas.blogs import BlogAuthor, BlogCreate, BlogResponse, BlogUpdate, MediaBlock
from app.services.media import MEDIA_FIELDS, StoredMedia
from app.services.pagination import fetch_page

LOGGER = logging.getLogger(__name__)

FIELD_KINDS = {field: kind for kind, field in MEDIA_FIELDS.items()}


class BlogError(ValueError):
    pass


class BlogNotFoundError(BlogError):
    pass


class BlogContentError(BlogError):
    pass


def slugify(title: str) -> str:
    normalized = unicodedata.normalize("NFKD", title or "")
    ascii_title = normalized.encode("ascii", "ignore").decode("ascii")
    slug = re.sub(r"[^a-z0-9]+", "-", ascii_title.lower())
    slug = re.sub(r"-+", "-", slug).strip("-")
    return slug[:300] or "blog"


def resolve_content_blocks(blocks, stored: list[StoredMedia]) -> Optional[list[dict]]:
    """Serialize content blocks, pointing ``file_index`` media blocks at uploaded URLs."""
    if blocks is None:
        return None
    resolved = []
    for block in blocks:
        if isinstance(block, MediaBlock) and block.file_index is not None:
            if block.file_index >= len(stored):
                raise BlogContentError(
                    f"Media block references missing file {block.file_index}"
                )
            upload = stored[block.file_index]
            block = block.model_copy(
                update={
                    "url": upload.url,
                    "file_index": None,
                    "media_type": block.media_type or FIELD_KINDS[upload.field],
                }
            )
        resolved.append(block.model_dump(exclude_none=True))
    return resolved


def _group_uploads(stored: list[StoredMedia]) -> dict[str, list[str]]:
    grouped: dict[str, list[str]] = {"images": [], "videos": [], "audios": []}
    for upload in stored:
        grouped[upload.field].append(upload.url)
    return grouped


def _with_author():
    return select(BlogEntry, ProfileEntry).outerjoin(
        ProfileEntry, BlogEntry.author_id == ProfileEntry.id
    )


class BlogStore:
    def create_blog(
        self, author_id: str, payload: BlogCreate, stored: list[StoredMedia]
    ) -> BlogResponse:
        now = datetime.now(timezone.utc)
        uploads = _group_uploads(stored)
        content_blocks = resolve_content_blocks(payload.content_blocks, stored)
        with session_scope() as session:
            entry = BlogEntry(
                title=payload.title,
                slug=slugify(payload.title),
                status=payload.status,
                description=payload.description,
                content_blocks=content_blocks,
                images=payload.images + uploads["images"],
                videos=payload.videos + uploads["videos"],
                audios=payload.audios + uploads["audios"],
                author_id=author_id,
                created_at=now,
                updated_at=now,
            )
            session.add(entry)
            session.flush()
            author = session.get(ProfileEntry, author_id)
            LOGGER.info("Created blog id=%s slug=%s", entry.id, entry.slug)
            return self._to_response(entry, author)

    def update_blog(
        self, blog_id: str, payload: BlogUpdate, stored: list[StoredMedia]
    ) -> tuple[BlogResponse, list[str]]:
        """Apply a partial update; returns the blog and the media URLs it no longer holds."""
        uploads = _group_uploads(stored)
        content_blocks = resolve_content_blocks(payload.content_blocks, stored)
        dropped: list[str] = []
        with session_scope() as session:
            entry = session.get(BlogEntry, blog_id)
            if entry is None:
                raise BlogNotFoundError("Blog not found")
            if payload.title:
                entry.title = payload.title
                entry.slug = slugify(payload.title)
            if payload.description:
                entry.description = payload.description
            if payload.status:
                entry.status = payload.status
            if content_blocks is not None:
                entry.content_blocks = content_blocks

            for field in ("images", "videos", "audios"):
                current = list(getattr(entry, field) or [])
                incoming = getattr(payload, field) + uploads[field]
                if payload.replace_media:
                    dropped.extend(url for url in current if url not in incoming)
                    setattr(entry, field, incoming)
                else:
                    setattr(entry, field, current + incoming)

            entry.updated_at = datetime.now(timezone.utc)
            session.flush()
            author = session.get(ProfileEntry, entry.author_id) if entry.author_id else None
            return self._to_response(entry, author), dropped

    def remove_media(
        self, blog_id: str, field: str, urls: list[str]
    ) -> tuple[BlogResponse, list[str]]:
        with session_scope() as session:
            entry = session.get(BlogEntry, blog_id)
            if entry is None:
                raise BlogNotFoundError("Blog not found")
            current = list(getattr(entry, field) or [])
            removed = [url for url in current if url in urls]
            setattr(entry, field, [url for url in current if url not in urls])
            entry.updated_at = datetime.now(timezone.utc)
            session.flush()
            author = session.get(ProfileEntry, entry.author_id) if entry.author_id else None
            return self._to_response(entry, author), removed

    def delete_blog(self, blog_id: str) -> list[str]:
        """Delete the blog row and return every media URL it referenced."""
        with session_scope() as session:
            entry = session.get(BlogEntry, blog_id)
            if entry is None:
                raise BlogNotFoundError("Blog not found")
            media_urls = [
                *(entry.images or []),
                *(entry.videos or []),
                *(entry.audios or []),
            ]
            for block in entry.content_blocks or []:
                url = block.get("url") if block.get("type") == "media" else None
                if url and url not in media_urls:
                    media_urls.append(url)
            session.delete(entry)
        LOGGER.info("Deleted blog id=%s media=%s", blog_id, len(media_urls))
        return media_urls

    def get_blog(self, blog_id: str) -> BlogResponse | None:
        with session_scope() as session:
            row = session.execute(
                _with_author().where(BlogEntry.id == blog_id)
            ).first()
            if row is None:
                return None
            return self._to_response(row[0], row[1])

    def get_published_by_slug(self, slug: str) -> BlogResponse | None:
        with session_scope() as session:
            row = session.execute(
                _with_author()
                .where(BlogEntry.slug == slug, BlogEntry.status == "published")
                .order_by(BlogEntry.created_at.desc())
                .limit(1)
            ).first()
            if row is None:
                return None
            return self._to_response(row[0], row[1])

    def list_blogs(
        self,
        limit: int,
        cursor: Optional[datetime] = None,
        status: Optional[str] = None,
    ) -> tuple[list[BlogResponse], Optional[str]]:
        stmt = _with_author()
        if status:
            stmt = stmt.where(BlogEntry.status == status)
        with session_scope() as session:
            rows, next_cursor = fetch_page(
                session,
                stmt,
                BlogEntry.created_at,
                limit,
                cursor,
                created_at_of=lambda row: row[0].created_at,
            )
            return [self._to_response(row[0], row[1]) for row in rows], next_cursor

    def _to_response(
        self, entry: BlogEntry, author: ProfileEntry | None
    ) -> BlogResponse:
        return BlogResponse(
            id=entry.id,
            title=entry.title,
            slug=entry.slug,
            status=entry.status,
            description=entry.description,
            content_blocks=entry.content_blocks,
            images=list(entry.images or []),
            videos=list(entry.videos or []),
            audios=list(entry.audios or []),
            author_id=entry.author_id,
            author=(
                BlogAuthor(
                    id=author.id, name=author.name, email=author.email, role=author.role
                )
                if author is not None
                else None
            ),
            created_at=as_utc(entry.created_at),
            updated_at=as_utc(entry.updated_at),
        )


blog_store = BlogStore()
