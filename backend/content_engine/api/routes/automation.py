"""
Content Engine - Automation Routes
==================================
Manual trigger for one scheduler tick and explicit settings reload.
"""

from fastapi import APIRouter

from content_engine.agents.publish_scheduler import publish_scheduler
from content_engine.api.envelope import success_envelope
from content_engine.core.logging import get_logger
from content_engine.services.settings_service import settings_service

logger = get_logger("api.automation")
router = APIRouter(tags=["Automation"])


@router.post("/automation/tick")
async def run_automation_tick():
    report = await publish_scheduler.run_tick()
    return success_envelope(report.as_dict())


@router.post("/settings/reload")
async def reload_settings():
    settings_service.reload()
    logger.info("settings_reload_requested")
    return success_envelope({"reloaded": True})
