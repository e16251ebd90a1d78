"""
Content Engine - Content Models
===============================
Ideas, articles and their immutable version snapshots.
Idea:    pending → approved → completed   (or rejected)
Article: draft → in_review → ... → approved → published
"""

import enum
from datetime import datetime, timezone

from sqlalchemy import (
    JSON, Boolean, Column, DateTime, Enum, Float, ForeignKey, Index, Integer,
    String, Text, UniqueConstraint,
)
from sqlalchemy.orm import relationship

from content_engine.core.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ── Enums ──

class IdeaStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    COMPLETED = "completed"


class ArticleStatus(str, enum.Enum):
    DRAFT = "draft"
    IN_REVIEW = "in_review"
    REFINEMENT = "refinement"
    QA_REVIEW = "qa_review"
    APPROVED = "approved"
    PUBLISHED = "published"
    NEEDS_REVISION = "needs_revision"


class RiskLevel(str, enum.Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


class PublishStatus(str, enum.Enum):
    PENDING = "pending"
    PUBLISHING = "publishing"
    PUBLISHED = "published"
    FAILED = "failed"


class VersionOrigin(str, enum.Enum):
    ORIGINAL = "original"
    AI_REVISION = "ai_revision"
    MANUAL_EDIT = "manual_edit"


# ── Models ──

class Idea(Base):
    """Candidate topic awaiting (or having undergone) generation."""
    __tablename__ = "ideas"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(500), nullable=False)
    description = Column(Text, nullable=True)
    keywords = Column(JSON, default=list)
    content_type = Column(String(50), default="guide")
    priority = Column(Integer, default=5)
    status = Column(Enum(IdeaStatus, name="idea_status"), default=IdeaStatus.PENDING, nullable=False)
    source_tag = Column(String(50), default="manual")  # manual | ai_generated | import
    notes = Column(Text, nullable=True)
    article_id = Column(Integer, ForeignKey("articles.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    __table_args__ = (
        Index("ix_ideas_status_priority", "status", "priority"),
    )


class Contributor(Base):
    """Author persona whose expertise and style steer humanization."""
    __tablename__ = "contributors"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    expertise_areas = Column(JSON, default=list)
    content_type_preferences = Column(JSON, default=list)
    style_profile = Column(Text, nullable=True)
    active = Column(Boolean, default=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow)


class Article(Base):
    __tablename__ = "articles"

    id = Column(Integer, primary_key=True, autoincrement=True)
    idea_id = Column(Integer, nullable=True, index=True)
    title = Column(String(500), nullable=False)
    slug = Column(String(120), nullable=True)
    content = Column(Text, nullable=False, default="")
    excerpt = Column(Text, nullable=True)
    meta_title = Column(String(255), nullable=True)
    meta_description = Column(Text, nullable=True)
    focus_keyword = Column(String(255), nullable=True)
    target_keywords = Column(JSON, default=list)
    faqs = Column(JSON, default=list)
    word_count = Column(Integer, default=0)
    internal_links_count = Column(Integer, default=0)
    external_citations_count = Column(Integer, default=0)

    status = Column(Enum(ArticleStatus, name="article_status"), default=ArticleStatus.DRAFT, nullable=False)
    quality_score = Column(Float, default=0.0)
    quality_issues = Column(JSON, default=list)
    can_publish = Column(Boolean, default=False)
    risk_level = Column(Enum(RiskLevel, name="risk_level"), default=RiskLevel.LOW, nullable=False)
    risk_flags = Column(JSON, default=list)
    auto_publish_deadline = Column(DateTime(timezone=True), nullable=True)

    contributor_id = Column(Integer, ForeignKey("contributors.id", ondelete="SET NULL"), nullable=True)
    current_version_id = Column(Integer, nullable=True)

    publish_status = Column(Enum(PublishStatus, name="publish_status"), nullable=True)
    published_url = Column(String(1024), nullable=True)
    published_post_id = Column(String(64), nullable=True)
    published_at = Column(DateTime(timezone=True), nullable=True)
    publish_error = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), default=_utcnow)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    contributor = relationship("Contributor", lazy="selectin")
    versions = relationship(
        "ArticleVersion",
        back_populates="article",
        order_by="ArticleVersion.version_number",
        lazy="noload",
    )

    __table_args__ = (
        Index("ix_articles_status", "status"),
    )


class ArticleVersion(Base):
    """Immutable snapshot of article content. Never updated after insert."""
    __tablename__ = "article_versions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    article_id = Column(Integer, ForeignKey("articles.id", ondelete="CASCADE"), nullable=False)
    version_number = Column(Integer, nullable=False)
    title = Column(String(500), nullable=False)
    content = Column(Text, nullable=False)
    content_hash = Column(String(64), nullable=False)
    change_origin = Column(Enum(VersionOrigin, name="version_origin"), nullable=False)
    note = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow)

    article = relationship("Article", back_populates="versions")

    __table_args__ = (
        UniqueConstraint("article_id", "version_number", name="uq_article_versions_number"),
    )


class FeedbackItem(Base):
    """Reviewer comment attached to a span of an article."""
    __tablename__ = "feedback_items"

    id = Column(Integer, primary_key=True, autoincrement=True)
    article_id = Column(Integer, ForeignKey("articles.id", ondelete="CASCADE"), nullable=False, index=True)
    category = Column(String(50), nullable=True)
    severity = Column(String(20), nullable=True)
    selected_text = Column(Text, nullable=True)
    comment = Column(Text, nullable=False, default="")
    validation_status = Column(String(20), nullable=True)  # advisory only
    created_at = Column(DateTime(timezone=True), default=_utcnow)


class CatalogArticle(Base):
    """Existing site page available as an internal-link target."""
    __tablename__ = "catalog_articles"

    id = Column(Integer, primary_key=True, autoincrement=True)
    url = Column(String(1024), nullable=False, unique=True)
    title = Column(String(500), nullable=False)
    excerpt = Column(Text, nullable=True)
    topics = Column(JSON, default=list)
    times_linked_to = Column(Integer, default=0)
