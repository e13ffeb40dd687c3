from typing import Optional

from fastapi import APIRouter, HTTPException, status

from app.schemas.blogs import (
    BlogResponse,
    PublicBlogEnvelope,
    PublicBlogListEnvelope,
    PublicBlogResponse,
)
from app.services.blogs import blog_store
from app.services.pagination import CursorError, parse_cursor, parse_limit

router = APIRouter(prefix="/public-blogs", tags=["public-blogs"])


def _to_public(blog: BlogResponse) -> PublicBlogResponse:
    return PublicBlogResponse.model_validate(blog.model_dump())


@router.get("", response_model=PublicBlogListEnvelope)
def list_published_blogs(
    limit: Optional[str] = None, cursor: Optional[str] = None
) -> PublicBlogListEnvelope:
    try:
        parsed_cursor = parse_cursor(cursor)
    except CursorError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    blogs, next_cursor = blog_store.list_blogs(
        parse_limit(limit), parsed_cursor, status="published"
    )
    return PublicBlogListEnvelope(
        blogs=[_to_public(blog) for blog in blogs], next_cursor=next_cursor
    )


@router.get("/{slug}", response_model=PublicBlogEnvelope)
def get_published_blog(slug: str) -> PublicBlogEnvelope:
    blog = blog_store.get_published_by_slug(slug)
    if blog is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Blog not found")
    return PublicBlogEnvelope(blog=_to_public(blog))
