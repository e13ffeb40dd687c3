import json
import logging
from typing import Any, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile, status
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError

from app.dependencies import CurrentUser, require_admin
from app.schemas.blogs import (
    BlogCreate,
    BlogEnvelope,
    BlogListEnvelope,
    BlogStatus,
    BlogUpdate,
    RemoveMediaRequest,
)
from app.schemas.common import MessageResponse
from app.services.blogs import BlogContentError, BlogNotFoundError, blog_store
from app.services.media import (
    MediaFile,
    MediaValidationError,
    StoredMedia,
    storage_paths,
    store_media,
)
from app.services.pagination import CursorError, parse_cursor, parse_limit
from app.services.storage import StorageError, media_storage

LOGGER = logging.getLogger(__name__)

router = APIRouter(
    prefix="/blogs", tags=["blogs"], dependencies=[Depends(require_admin)]
)


def _parse_content_blocks(raw: Optional[str]) -> Any:
    if raw is None or not raw.strip():
        return None
    try:
        return json.loads(raw)
    except json.JSONDecodeError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="content_blocks must be valid JSON",
        ) from exc


def _build_payload(model, **fields):
    values = {key: value for key, value in fields.items() if value is not None}
    try:
        return model(**values)
    except ValidationError as exc:
        raise RequestValidationError(exc.errors(include_url=False)) from exc


def _read_uploads(uploads: list[UploadFile]) -> list[MediaFile]:
    files = []
    for upload in uploads:
        if not upload.filename:
            continue
        content_type = upload.content_type or "application/octet-stream"
        files.append(
            MediaFile(
                filename=upload.filename,
                content_type=content_type.lower(),
                data=upload.file.read(),
            )
        )
    return files


def _upload_media(uploads: list[UploadFile]) -> list[StoredMedia]:
    try:
        return store_media(_read_uploads(uploads), media_storage)
    except MediaValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except StorageError as exc:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc)) from exc


def _discard_media(urls: list[str]) -> None:
    """Best-effort removal of storage objects no longer referenced by any row."""
    paths = storage_paths(urls, media_storage)
    if not paths:
        return
    try:
        media_storage.remove(paths)
    except StorageError:
        LOGGER.exception("Failed to remove %s media objects from storage", len(paths))


@router.post("", response_model=BlogEnvelope, status_code=status.HTTP_201_CREATED)
def create_blog(
    title: Optional[str] = Form(default=None),
    description: Optional[str] = Form(default=None),
    blog_status: Optional[BlogStatus] = Form(default=None, alias="status"),
    content_blocks: Optional[str] = Form(default=None),
    images: list[str] = Form(default=[]),
    videos: list[str] = Form(default=[]),
    audios: list[str] = Form(default=[]),
    media: list[UploadFile] = File(default=[]),
    current: CurrentUser = Depends(require_admin),
) -> BlogEnvelope:
    payload = _build_payload(
        BlogCreate,
        title=title,
        description=description,
        status=blog_status,
        content_blocks=_parse_content_blocks(content_blocks),
        images=images,
        videos=videos,
        audios=audios,
    )
    stored = _upload_media(media)
    try:
        blog = blog_store.create_blog(current.id, payload, stored)
    except BlogContentError as exc:
        _discard_media([item.url for item in stored])
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return BlogEnvelope(message="Blog created", blog=blog)


@router.get("", response_model=BlogListEnvelope)
def list_blogs(
    limit: Optional[str] = None,
    cursor: Optional[str] = None,
    blog_status: Optional[BlogStatus] = Query(default=None, alias="status"),
) -> BlogListEnvelope:
    try:
        parsed_cursor = parse_cursor(cursor)
    except CursorError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    blogs, next_cursor = blog_store.list_blogs(
        parse_limit(limit), parsed_cursor, blog_status
    )
    return BlogListEnvelope(blogs=blogs, next_cursor=next_cursor)


@router.put("/{blog_id}", response_model=BlogEnvelope)
def update_blog(
    blog_id: str,
    title: Optional[str] = Form(default=None),
    description: Optional[str] = Form(default=None),
    blog_status: Optional[BlogStatus] = Form(default=None, alias="status"),
    content_blocks: Optional[str] = Form(default=None),
    images: list[str] = Form(default=[]),
    videos: list[str] = Form(default=[]),
    audios: list[str] = Form(default=[]),
    replace_media: bool = Form(default=False),
    media: list[UploadFile] = File(default=[]),
) -> BlogEnvelope:
    payload = _build_payload(
        BlogUpdate,
        title=title,
        description=description,
        status=blog_status,
        content_blocks=_parse_content_blocks(content_blocks),
        images=images,
        videos=videos,
        audios=audios,
        replace_media=replace_media,
    )
    if blog_store.get_blog(blog_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Blog not found")

    stored = _upload_media(media)
    try:
        blog, dropped = blog_store.update_blog(blog_id, payload, stored)
    except BlogNotFoundError as exc:
        _discard_media([item.url for item in stored])
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except BlogContentError as exc:
        _discard_media([item.url for item in stored])
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    _discard_media(dropped)
    return BlogEnvelope(message="Blog updated", blog=blog)


@router.patch("/{blog_id}/media", response_model=BlogEnvelope)
def remove_blog_media(blog_id: str, payload: RemoveMediaRequest) -> BlogEnvelope:
    try:
        blog, removed = blog_store.remove_media(blog_id, payload.type, payload.urls)
    except BlogNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    _discard_media(removed)
    return BlogEnvelope(message="Media removed", blog=blog)


@router.delete("/{blog_id}", response_model=MessageResponse)
def delete_blog(blog_id: str) -> MessageResponse:
    try:
        media_urls = blog_store.delete_blog(blog_id)
    except BlogNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    _discard_media(media_urls)
    return MessageResponse(message="Blog deleted")
