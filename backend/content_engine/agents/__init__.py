"""Agents package: generation pipeline and automation loop."""
from content_engine.agents.generation_orchestrator import generation_orchestrator
from content_engine.agents.publish_scheduler import publish_scheduler

__all__ = [
    "generation_orchestrator",
    "publish_scheduler",
]
