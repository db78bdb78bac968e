"""Tests for prompt building and Claude response handling."""

import asyncio
import json
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
from anthropic import APIStatusError

from app.errors import GenerationError
from app.services.claude_service import (
    ArticleRequest,
    ClaudeService,
    build_article_request,
    parse_article_response,
)

PAYLOAD = {
    "title": "Choosing a velvet sofa",
    "content": "<h1>Choosing a velvet sofa</h1><p>Body</p>",
    "meta_description": "How to pick a velvet sofa.",
    "focus_keyword": "velvet sofa",
    "keywords": "velvet sofa, living room",
    "category": "Guides",
}


def campaign(**overrides):
    fields = dict(
        id="c1",
        name="Living room guides",
        topic_niche="velvet living room furniture",
        target_audience=None,
        keywords=["sofa", "velvet"],
        writing_style=None,
        tone="warm",
        content_structure=None,
        language="fr",
        word_count_min=800,
        word_count_max=1200,
        seo_optimization_enabled=True,
        product_links_enabled=True,
        internal_linking_enabled=True,
        max_internal_links=3,
        image_integration_enabled=False,
    )
    fields.update(overrides)
    return SimpleNamespace(**fields)


PRODUCTS = [SimpleNamespace(title="Velvet sofa", category="Sofas")]


def client_returning(text):
    client = MagicMock()
    client.messages.create = AsyncMock(
        return_value=SimpleNamespace(content=[SimpleNamespace(type="text", text=text)])
    )
    return client


REQUEST = ArticleRequest(system="rules", prompt="write", campaign_id="c1")


# ── Prompt ────────────────────────────────────────────────────────────────


def test_request_lists_product_tokens():
    request = build_article_request(campaign(), PRODUCTS, "https://maison-velours.com")
    assert "Write in French" in request.system
    assert "Between 800 and 1200 words" in request.system
    assert "Product 1: Velvet sofa" in request.prompt
    assert "{{PRODUCT_URL_1}}" in request.prompt
    assert 'data-product-id="{{PRODUCT_ID_n}}"' in request.prompt
    assert "IMAGE_SEARCH" not in request.prompt
    assert request.product_count == 1


def test_request_without_product_links():
    request = build_article_request(
        campaign(product_links_enabled=False, image_integration_enabled=True), PRODUCTS, "https://x.com"
    )
    assert "PRODUCT_URL" not in request.prompt
    assert "{{IMAGE_SEARCH:short description}}" in request.prompt


# ── Response parsing ──────────────────────────────────────────────────────


def test_parse_fenced_json():
    article = parse_article_response("Here you go:\n```json\n" + json.dumps(PAYLOAD) + "\n```")
    assert article.title == "Choosing a velvet sofa"
    assert article.keywords == ["velvet sofa", "living room"]
    assert article.subcategory is None


def test_parse_bare_json():
    assert parse_article_response(json.dumps(PAYLOAD)).category == "Guides"


@pytest.mark.parametrize("text", [
    "not json at all",
    json.dumps({"title": "No body"}),
    json.dumps({"title": "  ", "content": "<p>x</p>"}),
    json.dumps(["a", "list"]),
])
def test_parse_rejects_unusable_responses(text):
    with pytest.raises(GenerationError):
        parse_article_response(text)


# ── API call ──────────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_generate_article():
    client = client_returning(json.dumps(PAYLOAD))
    article = await ClaudeService(client=client).generate_article(REQUEST)

    assert article.focus_keyword == "velvet sofa"
    kwargs = client.messages.create.await_args.kwargs
    assert kwargs["system"] == "rules"
    assert kwargs["messages"] == [{"role": "user", "content": "write"}]


@pytest.mark.asyncio
async def test_empty_response_is_an_error():
    with pytest.raises(GenerationError, match="Empty"):
        await ClaudeService(client=client_returning("   ")).generate_article(REQUEST)


@pytest.mark.asyncio
async def test_timeout_is_an_error():
    async def slow(**kwargs):
        await asyncio.sleep(1)

    client = MagicMock()
    client.messages.create = slow
    with pytest.raises(GenerationError, match="timed out"):
        await ClaudeService(client=client, timeout=0.01).generate_article(REQUEST)


@pytest.mark.asyncio
async def test_api_status_error_is_wrapped():
    response = httpx.Response(529, request=httpx.Request("POST", "https://api.anthropic.com/v1/messages"))
    client = MagicMock()
    client.messages.create = AsyncMock(side_effect=APIStatusError("overloaded", response=response, body=None))

    with pytest.raises(GenerationError) as exc_info:
        await ClaudeService(client=client).generate_article(REQUEST)
    assert exc_info.value.response == {"status_code": 529}
