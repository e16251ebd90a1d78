"""Lazy service exports so importing the package does not open HTTP/DB clients."""

__all__ = [
    "ai_service",
    "contributor_matcher",
    "idea_service",
    "link_catalog_service",
    "publish_service",
    "quality_score_service",
    "revision_service",
    "revision_validator",
    "risk_assessment_service",
    "settings_service",
    "shortcode_service",
]

_MODULES = {
    "ai_service": "ai_service",
    "contributor_matcher": "contributor_service",
    "idea_service": "idea_service",
    "link_catalog_service": "link_catalog_service",
    "publish_service": "publish_service",
    "quality_score_service": "quality_score_service",
    "revision_service": "revision_service",
    "revision_validator": "revision_validation_service",
    "risk_assessment_service": "risk_assessment_service",
    "settings_service": "settings_service",
    "shortcode_service": "shortcode_service",
}


def __getattr__(name: str):
    module_name = _MODULES.get(name)
    if module_name is None:
        raise AttributeError(name)
    from importlib import import_module

    return getattr(import_module(f"content_engine.services.{module_name}"), name)
