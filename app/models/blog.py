import uuid

from sqlalchemy import JSON, Column, DateTime, ForeignKey, Index, String, Text

from app.database import Base


class BlogEntry(Base):
    __tablename__ = "blogs"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    title = Column(String(255), nullable=False)
    slug = Column(String(300), nullable=False, index=True)
    status = Column(String(20), nullable=False, default="published")
    description = Column(Text, nullable=True)
    content_blocks = Column(JSON, nullable=True)
    images = Column(JSON, nullable=True)
    videos = Column(JSON, nullable=True)
    audios = Column(JSON, nullable=True)
    author_id = Column(
        String(36), ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True
    )
    created_at = Column(DateTime(timezone=True), nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        Index("ix_blogs_status_created_at", "status", "created_at"),
        Index("ix_blogs_created_at", "created_at"),
    )
