"""
Content Engine - Hashing Utilities
==================================
Content fingerprints for version snapshots and trace ids for pipeline runs.
"""

import hashlib
import uuid


def generate_content_hash(content: str) -> str:
    """SHA-256 of content, used to detect no-op version snapshots."""
    return hashlib.sha256((content or "").encode("utf-8")).hexdigest()


def generate_trace_id() -> str:
    """Generate a unique trace ID for observability."""
    return uuid.uuid4().hex[:16]
