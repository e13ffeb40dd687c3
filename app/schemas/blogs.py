from datetime import datetime
from typing import Annotated, Literal, Optional, Union
from urllib.parse import urlparse

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

BlogStatus = Literal["draft", "published"]
MediaField = Literal["images", "videos", "audios"]
MediaKind = Literal["image", "audio", "video"]


def _validate_urls(values: list[str]) -> list[str]:
    cleaned = []
    for value in values:
        url = value.strip()
        if not url:
            continue
        parsed = urlparse(url)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValueError(f"Invalid media URL: {url}")
        cleaned.append(url)
    return cleaned


class HeadingBlock(BaseModel):
    type: Literal["heading"]
    text: str = Field(min_length=1, max_length=500)
    level: int = Field(default=2, ge=1, le=6)


class ParagraphBlock(BaseModel):
    type: Literal["paragraph"]
    text: str = Field(min_length=1)


class MediaBlock(BaseModel):
    type: Literal["media"]
    url: Optional[str] = None
    file_index: Optional[int] = Field(default=None, ge=0)
    media_type: Optional[MediaKind] = None
    caption: Optional[str] = Field(default=None, max_length=500)

    @model_validator(mode="after")
    def require_source(self) -> "MediaBlock":
        if self.url is None and self.file_index is None:
            raise ValueError("Media block needs a url or a file_index")
        if self.url is not None:
            _validate_urls([self.url])
        return self


ContentBlock = Annotated[
    Union[HeadingBlock, ParagraphBlock, MediaBlock], Field(discriminator="type")
]


class BlogCreate(BaseModel):
    title: str = Field(min_length=3, max_length=255)
    description: Optional[str] = None
    status: BlogStatus = "published"
    content_blocks: Optional[list[ContentBlock]] = None
    images: list[str] = Field(default_factory=list)
    videos: list[str] = Field(default_factory=list)
    audios: list[str] = Field(default_factory=list)

    @field_validator("title")
    @classmethod
    def normalize_title(cls, value: str) -> str:
        cleaned = value.strip()
        if len(cleaned) < 3:
            raise ValueError("Title is required")
        return cleaned

    @field_validator("description")
    @classmethod
    def normalize_description(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        return value.strip() or None

    @field_validator("images", "videos", "audios")
    @classmethod
    def validate_media_urls(cls, value: list[str]) -> list[str]:
        return _validate_urls(value)

    @model_validator(mode="after")
    def require_content(self) -> "BlogCreate":
        if not self.description and not self.content_blocks:
            raise ValueError("Description or content blocks are required")
        return self


class BlogUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=3, max_length=255)
    description: Optional[str] = None
    status: Optional[BlogStatus] = None
    content_blocks: Optional[list[ContentBlock]] = None
    images: list[str] = Field(default_factory=list)
    videos: list[str] = Field(default_factory=list)
    audios: list[str] = Field(default_factory=list)
    replace_media: bool = False

    @field_validator("title", "description")
    @classmethod
    def normalize_text(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        return value.strip() or None

    @field_validator("images", "videos", "audios")
    @classmethod
    def validate_media_urls(cls, value: list[str]) -> list[str]:
        return _validate_urls(value)


class RemoveMediaRequest(BaseModel):
    type: MediaField
    urls: list[str] = Field(min_length=1)


class BlogAuthor(BaseModel):
    id: str
    name: str
    email: str
    role: str


class PublicAuthor(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str


class BlogResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    title: str
    slug: str
    status: BlogStatus
    description: Optional[str] = None
    content_blocks: Optional[list[ContentBlock]] = None
    images: list[str] = Field(default_factory=list)
    videos: list[str] = Field(default_factory=list)
    audios: list[str] = Field(default_factory=list)
    author_id: Optional[str] = None
    author: Optional[BlogAuthor] = None
    created_at: datetime
    updated_at: datetime


class PublicBlogResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    title: str
    slug: str
    status: BlogStatus
    description: Optional[str] = None
    content_blocks: Optional[list[ContentBlock]] = None
    images: list[str] = Field(default_factory=list)
    videos: list[str] = Field(default_factory=list)
    audios: list[str] = Field(default_factory=list)
    author: Optional[PublicAuthor] = None
    created_at: datetime
    updated_at: datetime


class BlogEnvelope(BaseModel):
    success: bool = True
    message: Optional[str] = None
    blog: BlogResponse


class BlogListEnvelope(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    next_cursor: Optional[str] = Field(default=None, alias="nextCursor")
    blogs: list[BlogResponse]


class PublicBlogEnvelope(BaseModel):
    success: bool = True
    blog: PublicBlogResponse


class PublicBlogListEnvelope(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    next_cursor: Optional[str] = Field(default=None, alias="nextCursor")
    blogs: list[PublicBlogResponse]
