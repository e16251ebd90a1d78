import json

import httpx
import pytest
from tenacity import wait_none

from content_engine.core.config import Settings
from content_engine.core.errors import ConfigurationError, ExternalServiceError
from content_engine.schemas.generation import CatalogLink, DraftRequest
from content_engine.services.ai_service import AIService, _parse_json_response

DRAFT = {
    "title": "Online Nursing Degrees",
    "excerpt": "A short guide.",
    "content": "<h2>Why nursing</h2><p>" + "Nursing is a growing field. " * 5 + "</p>",
    "metaTitle": "Online Nursing Degrees",
    "focusKeyword": "online nursing degrees",
    "faqs": [{"question": "Is it online?", "answer": "Yes."}],
}


def _config(**overrides) -> Settings:
    values = {
        "grok_api_key": "grok-key",
        "claude_api_key": "claude-key",
        "stealthgpt_api_key": "stealth-key",
        "humanization_provider": "stealthgpt",
    }
    values.update(overrides)
    return Settings(**values)


def _grok_reply(content: str) -> dict:
    return {"choices": [{"message": {"role": "assistant", "content": content}}]}


def _claude_reply(text: str) -> dict:
    return {"content": [{"type": "text", "text": text}]}


def _service(handler, **overrides) -> AIService:
    return AIService(config=_config(**overrides), transport=httpx.MockTransport(handler))


class TestParseJson:
    def test_strips_code_fences_and_prose(self):
        assert _parse_json_response('```json\n{"a": 1}\n```') == {"a": 1}
        assert _parse_json_response('Here you go: {"a": {"b": 2}} thanks') == {"a": {"b": 2}}

    def test_invalid_json_raises(self):
        with pytest.raises(json.JSONDecodeError):
            _parse_json_response("no json here")


class TestDraft:
    @pytest.mark.asyncio
    async def test_draft_parses_structured_reply(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["auth"] = request.headers["authorization"]
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json=_grok_reply("```json\n" + json.dumps(DRAFT) + "\n```"))

        draft = await _service(handler).generate_draft(
            DraftRequest(idea_title="Nursing degrees", keywords=["nursing"])
        )

        assert seen["url"] == "https://api.x.ai/v1/chat/completions"
        assert seen["auth"] == "Bearer grok-key"
        assert seen["body"]["model"] == "grok-3"
        assert draft.title == "Online Nursing Degrees"
        assert draft.meta_title == "Online Nursing Degrees"
        assert draft.focus_keyword == "online nursing degrees"
        assert draft.faqs[0].answer == "Yes."

    @pytest.mark.asyncio
    async def test_schema_mismatch_is_external_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json=_grok_reply(json.dumps({"title": "Only a title"})))

        with pytest.raises(ExternalServiceError) as exc_info:
            await _service(handler).generate_draft(DraftRequest(idea_title="x"))
        assert exc_info.value.service == "grok"

    @pytest.mark.asyncio
    async def test_plain_text_content_is_rejected(self):
        bad = dict(DRAFT, content="plain text " * 10)

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json=_grok_reply(json.dumps(bad)))

        with pytest.raises(ExternalServiceError):
            await _service(handler).generate_draft(DraftRequest(idea_title="x"))

    @pytest.mark.asyncio
    async def test_http_error_carries_status(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(503, text="overloaded")

        with pytest.raises(ExternalServiceError) as exc_info:
            await _service(handler).generate_draft(DraftRequest(idea_title="x"))
        assert exc_info.value.status_code == 503

    @pytest.mark.asyncio
    async def test_transport_error_is_wrapped(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(ExternalServiceError):
            await _service(handler).generate_draft(DraftRequest(idea_title="x"))

    @pytest.mark.asyncio
    async def test_missing_key_is_configuration_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise AssertionError("no request expected")

        with pytest.raises(ConfigurationError) as exc_info:
            await _service(handler, grok_api_key="").generate_draft(DraftRequest(idea_title="x"))
        assert exc_info.value.key == "grok_api_key"


class TestHumanizeAndLinks:
    @pytest.mark.asyncio
    async def test_stealthgpt_result_field(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.headers["api-token"] == "stealth-key"
            body = json.loads(request.content)
            assert body["tone"] == "College"
            return httpx.Response(200, json={"result": "<p>Rewritten.</p>"})

        assert await _service(handler).humanize("<p>Original.</p>") == "<p>Rewritten.</p>"

    @pytest.mark.asyncio
    async def test_stealthgpt_missing_result(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"error": "quota"})

        with pytest.raises(ExternalServiceError):
            await _service(handler).humanize("<p>Original.</p>")

    @pytest.mark.asyncio
    async def test_claude_humanizer_includes_style(self):
        def handler(request: httpx.Request) -> httpx.Response:
            body = json.loads(request.content)
            assert request.headers["x-api-key"] == "claude-key"
            assert "Warm and direct" in body["system"]
            return httpx.Response(200, json=_claude_reply("```html\n<p>Human.</p>\n```"))

        service = _service(handler, humanization_provider="claude")
        assert await service.humanize("<p>Draft.</p>", style_profile="Warm and direct") == "<p>Human.</p>"

    @pytest.mark.asyncio
    async def test_empty_humanized_output_fails(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"result": "   "})

        with pytest.raises(ExternalServiceError):
            await _service(handler).humanize("<p>Draft.</p>")

    @pytest.mark.asyncio
    async def test_insert_links_requires_anchors(self):
        replies = iter([
            _claude_reply('<p>See <a href="/rankings">rankings</a>.</p>'),
            _claude_reply("<p>No links.</p>"),
        ])

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json=next(replies))

        service = _service(handler)
        catalog = [CatalogLink(title="Rankings", url="/rankings")]
        assert "<a " in await service.insert_links("<p>See rankings.</p>", catalog)
        with pytest.raises(ExternalServiceError):
            await service.insert_links("<p>See rankings.</p>", catalog)


class TestIdeas:
    @pytest.mark.asyncio
    async def test_retries_then_returns_capped_batch(self):
        calls = {"n": 0}
        ideas = {"ideas": [
            {"title": "Online MBA Costs", "priority": 7},
            {"title": "Nursing Career Paths"},
            {"title": "Teaching License Guide"},
        ]}

        def handler(request: httpx.Request) -> httpx.Response:
            calls["n"] += 1
            if calls["n"] == 1:
                return httpx.Response(200, json=_claude_reply("not json at all"))
            return httpx.Response(200, json=_claude_reply(json.dumps(ideas)))

        service = _service(handler)
        generate = AIService.generate_ideas.retry_with(wait=wait_none())
        result = await generate(service, 2, ["Existing title"])

        assert calls["n"] == 2
        assert [idea.title for idea in result] == ["Online MBA Costs", "Nursing Career Paths"]
        assert result[0].priority == 7
