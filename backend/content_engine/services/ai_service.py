"""
Content Engine - AI Service
===========================
HTTP clients for the external LLM stages.

  draft        Grok (OpenAI-compatible chat completions), structured JSON
  humanize     StealthGPT or Claude, rewritten HTML
  links        Claude, HTML with contextual internal links
  ideas        Claude, structured JSON idea list

Pipeline stages make exactly one call and never retry; a failed or
malformed response raises ExternalServiceError. Idea generation is not a
pipeline stage and retries with backoff.
"""

from __future__ import annotations

import json
import re
import time
from typing import Any

import httpx
from pydantic import ValidationError
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from content_engine.core.config import Settings, get_settings
from content_engine.core.errors import ConfigurationError, ExternalServiceError
from content_engine.core.logging import get_logger
from content_engine.schemas.generation import (
    CatalogLink,
    DraftRequest,
    DraftResult,
    IdeaSuggestion,
    IdeaSuggestionBatch,
)

logger = get_logger("ai_service")

DRAFT_SYSTEM_PROMPT = """You are a senior higher-education content writer.
Write a complete, accurate, well-structured article in clean HTML
(<h2>/<h3> headings, <p> paragraphs, <ul>/<ol> lists). No markdown.

Output strictly one JSON object (no prose, no code fences):
{
  "title": "SEO title, max 70 chars",
  "excerpt": "1-2 sentence summary",
  "content": "<h2>...</h2><p>...</p> full article HTML",
  "meta_title": "max 60 chars",
  "meta_description": "max 155 chars",
  "focus_keyword": "primary keyword",
  "faqs": [{"question": "...", "answer": "..."}]
}"""

HUMANIZE_SYSTEM_PROMPT = """Rewrite the article so it reads as written by an experienced human author.
Rules:
- Keep every fact, number, link and the full heading structure.
- Vary sentence length and rhythm; avoid stock AI phrasing.
- Return only the rewritten HTML."""

LINKS_SYSTEM_PROMPT = """Add 3-5 contextual internal links to the article.
Rules:
- Only use URLs from the provided catalog.
- Wrap existing phrases in <a href="..."> tags; do not add new sentences.
- Do not link inside headings, and never link the same URL twice.
- Return only the full updated HTML."""

IDEAS_SYSTEM_PROMPT = """You plan content for a higher-education guidance site.
Propose new article ideas that do not overlap the existing titles.
Output strictly one JSON object:
{"ideas": [{"title": "...", "description": "...", "keywords": ["..."],
            "content_type": "guide|ranking|listicle|career|faq", "priority": 1-10}]}"""


def _parse_json_response(raw_text: str) -> dict:
    text = (raw_text or "").strip()
    if text.startswith("```"):
        text = text.split("\n", 1)[1] if "\n" in text else ""
        text = text.rsplit("```", 1)[0]
    # Some models prepend prose before JSON; keep the first JSON object.
    match = re.search(r"\{[\s\S]*\}", text)
    if match:
        text = match.group(0)
    return json.loads(text)


def _strip_fences(text: str) -> str:
    text = (text or "").strip()
    if text.startswith("```"):
        text = text.split("\n", 1)[1] if "\n" in text else ""
        text = text.rsplit("```", 1)[0]
    return text.strip()


class AIService:
    """External LLM calls with schema validation at the boundary."""

    def __init__(self, config: Settings | None = None, transport: httpx.AsyncBaseTransport | None = None):
        self.config = config or get_settings()
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.config.llm_timeout_seconds, transport=self._transport)

    @staticmethod
    def _require(value: str, key: str) -> str:
        if not value:
            raise ConfigurationError(key, f"{key} is not configured")
        return value

    async def _post_json(self, service: str, url: str, *, headers: dict, payload: dict) -> dict[str, Any]:
        started = time.time()
        try:
            async with self._client() as client:
                resp = await client.post(url, headers=headers, json=payload)
        except httpx.HTTPError as exc:
            logger.error("llm_transport_error", service=service, error=str(exc))
            raise ExternalServiceError(service, f"request failed: {exc}") from exc

        elapsed_ms = int((time.time() - started) * 1000)
        if resp.status_code >= 400:
            logger.error("llm_http_error", service=service, status=resp.status_code, body=resp.text[:300])
            raise ExternalServiceError(service, f"HTTP {resp.status_code}", status_code=resp.status_code)
        try:
            data = resp.json()
        except ValueError as exc:
            raise ExternalServiceError(service, "response body is not JSON") from exc
        logger.info("llm_call_done", service=service, elapsed_ms=elapsed_ms)
        return data

    # ── Provider primitives ──

    async def _grok_chat(self, system: str, prompt: str, *, temperature: float = 0.7) -> str:
        cfg = self.config
        api_key = self._require(cfg.grok_api_key, "grok_api_key")
        data = await self._post_json(
            "grok",
            f"{cfg.grok_base_url.rstrip('/')}/chat/completions",
            headers={"Authorization": f"Bearer {api_key}"},
            payload={
                "model": cfg.grok_model,
                "temperature": temperature,
                "messages": [
                    {"role": "system", "content": system},
                    {"role": "user", "content": prompt},
                ],
            },
        )
        try:
            return data["choices"][0]["message"]["content"] or ""
        except (KeyError, IndexError, TypeError) as exc:
            raise ExternalServiceError("grok", "unexpected completion shape") from exc

    async def _claude(self, system: str, prompt: str, *, max_tokens: int = 8000) -> str:
        cfg = self.config
        api_key = self._require(cfg.claude_api_key, "claude_api_key")
        data = await self._post_json(
            "claude",
            f"{cfg.claude_base_url.rstrip('/')}/messages",
            headers={"x-api-key": api_key, "anthropic-version": cfg.claude_api_version},
            payload={
                "model": cfg.claude_model,
                "max_tokens": max_tokens,
                "system": system,
                "messages": [{"role": "user", "content": prompt}],
            },
        )
        blocks = data.get("content") if isinstance(data, dict) else None
        if not isinstance(blocks, list):
            raise ExternalServiceError("claude", "unexpected message shape")
        return "".join(b.get("text", "") for b in blocks if isinstance(b, dict) and b.get("type") == "text")

    async def _stealthgpt(self, content: str) -> str:
        cfg = self.config
        api_key = self._require(cfg.stealthgpt_api_key, "stealthgpt_api_key")
        data = await self._post_json(
            "stealthgpt",
            cfg.stealthgpt_url,
            headers={"api-token": api_key},
            payload={
                "prompt": content,
                "rephrase": True,
                "tone": cfg.stealthgpt_tone,
                "mode": cfg.stealthgpt_mode,
                "business": False,
            },
        )
        result = data.get("result") if isinstance(data, dict) else None
        if not isinstance(result, str):
            raise ExternalServiceError("stealthgpt", "missing result field")
        return result

    # ── Pipeline stages ──

    async def generate_draft(self, request: DraftRequest) -> DraftResult:
        prompt = (
            f"Title idea: {request.idea_title}\n"
            f"Description: {request.description or 'n/a'}\n"
            f"Keywords: {', '.join(request.keywords) or 'n/a'}\n"
            f"Content type: {request.content_type}\n"
            f"Target length: about {request.target_word_count} words\n"
            "Include 3-5 FAQs."
        )
        raw = await self._grok_chat(DRAFT_SYSTEM_PROMPT, prompt)
        try:
            return DraftResult.model_validate(_parse_json_response(raw))
        except json.JSONDecodeError as exc:
            raise ExternalServiceError("grok", "draft is not valid JSON") from exc
        except ValidationError as exc:
            raise ExternalServiceError("grok", f"draft schema mismatch: {exc.error_count()} error(s)") from exc

    async def humanize(self, content: str, style_profile: str | None = None) -> str:
        provider = self.config.humanization_provider
        if provider == "stealthgpt":
            rewritten = await self._stealthgpt(content)
        else:
            style = f"\nWrite in this author's voice:\n{style_profile}\n" if style_profile else ""
            rewritten = await self._claude(HUMANIZE_SYSTEM_PROMPT + style, content)
        rewritten = _strip_fences(rewritten)
        if not rewritten:
            raise ExternalServiceError(provider, "empty humanized content")
        return rewritten

    async def insert_links(self, content: str, catalog: list[CatalogLink]) -> str:
        listing = "\n".join(f"- {entry.title}: {entry.url}" for entry in catalog)
        prompt = f"CATALOG:\n{listing}\n\nARTICLE HTML:\n{content}"
        linked = _strip_fences(await self._claude(LINKS_SYSTEM_PROMPT, prompt))
        if "<a " not in linked:
            raise ExternalServiceError("claude", "link insertion returned no anchors")
        return linked

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(min=2, max=30),
        retry=retry_if_exception_type(ExternalServiceError),
        reraise=True,
    )
    async def generate_ideas(self, count: int, existing_titles: list[str], focus: str | None = None) -> list[IdeaSuggestion]:
        recent = "\n".join(f"- {t}" for t in existing_titles[:50]) or "- (none)"
        prompt = f"Propose {count} ideas.\nFocus: {focus or 'any relevant degree or career topic'}\nExisting titles:\n{recent}"
        raw = await self._claude(IDEAS_SYSTEM_PROMPT, prompt, max_tokens=4000)
        try:
            batch = IdeaSuggestionBatch.model_validate(_parse_json_response(raw))
        except (json.JSONDecodeError, ValidationError) as exc:
            raise ExternalServiceError("claude", "idea batch schema mismatch") from exc
        return batch.ideas[:count]


ai_service = AIService()
