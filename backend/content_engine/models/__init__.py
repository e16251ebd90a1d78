"""Models package."""
from content_engine.models.content import (
    Idea, Article, ArticleVersion, Contributor, FeedbackItem, CatalogArticle,
    IdeaStatus, ArticleStatus, RiskLevel, PublishStatus, VersionOrigin,
)
from content_engine.models.settings import SystemSetting, PublishConnection

__all__ = [
    "Idea",
    "Article",
    "ArticleVersion",
    "Contributor",
    "FeedbackItem",
    "CatalogArticle",
    "SystemSetting",
    "PublishConnection",
    "IdeaStatus",
    "ArticleStatus",
    "RiskLevel",
    "PublishStatus",
    "VersionOrigin",
]
