"""
Content Engine - Settings & Connection Models
=============================================
Flat key/value automation and quality settings, plus CMS connections.
"""

from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, Integer, String, Text

from content_engine.core.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SystemSetting(Base):
    """Key-value settings editable by admins (values are strings)."""
    __tablename__ = "system_settings"

    id = Column(Integer, primary_key=True, autoincrement=True)
    key = Column(String(100), unique=True, nullable=False, index=True)
    value = Column(Text, nullable=True)
    description = Column(Text, nullable=True)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)


class PublishConnection(Base):
    """WordPress site credentials (application password)."""
    __tablename__ = "publish_connections"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    site_url = Column(String(1024), nullable=False)
    username = Column(String(255), nullable=True)
    application_password = Column(Text, nullable=True)
    default_status = Column(String(20), default="draft")  # draft | publish
    default_category_id = Column(Integer, nullable=True)
    is_default = Column(Boolean, default=False)
    is_connected = Column(Boolean, default=False)
    last_error = Column(Text, nullable=True)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)
