"""
Claude AI service for campaign article generation.
"""
import asyncio
import json
import logging
from dataclasses import dataclass, field
from typing import Dict, Any, List, Optional, Sequence

from anthropic import AsyncAnthropic, APIConnectionError, APIStatusError, APITimeoutError

from ..config import get_settings
from ..errors import GenerationError

logger = logging.getLogger(__name__)
settings = get_settings()

REQUIRED_FIELDS = ("title", "content")


@dataclass
class ArticleRequest:
    """Everything the model needs to write one campaign article."""
    system: str
    prompt: str
    campaign_id: Optional[str] = None
    product_count: int = 0


@dataclass
class GeneratedArticle:
    title: str
    content: str
    meta_description: Optional[str] = None
    focus_keyword: Optional[str] = None
    keywords: List[str] = field(default_factory=list)
    category: Optional[str] = None
    subcategory: Optional[str] = None


def _language_name(code: Optional[str]) -> str:
    return {"fr": "French", "en": "English", "es": "Spanish", "de": "German"}.get(
        (code or "en")[:2].lower(), code or "English"
    )


def build_article_request(campaign, products: Sequence[Any], base_url: str) -> ArticleRequest:
    """
    Build the system instructions and prompt for a campaign cycle.

    Products are referenced by 1-based tokens ({{PRODUCT_URL_1}} ...) that are
    resolved after generation, so the model never invents URLs.
    """
    language = _language_name(campaign.language)
    keywords = ", ".join(campaign.keywords or [])

    system_prompt = f"""You are an expert e-commerce content writer producing SEO blog articles for an online store.

RULES:
- Write in {language}
- Output a single HTML fragment in "content" (no <html>, <head> or <body>)
- Start "content" with exactly ONE <h1> holding the article title
- Use <h2> for each main section and <h3> for sub-sections; never skip a level
- Give every <h2> an id attribute (kebab-case)
- Between {campaign.word_count_min} and {campaign.word_count_max} words
- NEVER leave placeholders such as [INSERT ...], "to complete", lorem ipsum or TBD
- Only use the product tokens listed below for product URLs, titles and ids

Output JSON:
{{
  "title": "Article title",
  "content": "<h1>...</h1>...",
  "meta_description": "150-160 characters",
  "focus_keyword": "main keyword",
  "keywords": ["keyword", "..."],
  "category": "Blog category",
  "subcategory": "Blog subcategory"
}}"""

    product_lines = []
    for index, product in enumerate(products, start=1):
        product_lines.append(
            f"- Product {index}: {product.title}"
            f" (category: {product.category or 'n/a'})"
            f" url={{{{PRODUCT_URL_{index}}}}} title={{{{PRODUCT_TITLE_{index}}}}}"
            f" id={{{{PRODUCT_ID_{index}}}}}"
        )

    sections = [
        f"Write a blog article for the store at {base_url}.",
        "",
        "Campaign:",
        f"- Topic / niche: {campaign.topic_niche or campaign.name}",
        f"- Target audience: {campaign.target_audience or 'General shoppers'}",
        f"- Keywords: {keywords}",
        f"- Writing style: {campaign.writing_style or 'informative'}",
        f"- Tone: {campaign.tone or 'friendly'}",
    ]
    if campaign.content_structure:
        sections.append(f"- Structure: {campaign.content_structure}")
    if campaign.seo_optimization_enabled:
        sections.append("- Optimize headings and meta description for the focus keyword")

    if products and campaign.product_links_enabled:
        sections += [
            "",
            "Products to feature (link each one at least once):",
            *product_lines,
            "",
            "Present each featured product in its own card:",
            '<div class="product-card" data-product-id="{{PRODUCT_ID_n}}">'
            '<h3><a href="{{PRODUCT_URL_n}}">{{PRODUCT_TITLE_n}}</a></h3><p>Why it fits</p></div>',
        ]
    if campaign.internal_linking_enabled:
        sections.append(f"- Use at most {campaign.max_internal_links} internal links")
    if campaign.image_integration_enabled:
        sections.append(
            "- Where an illustration helps, insert {{IMAGE_SEARCH:short description}} on its own line"
        )

    return ArticleRequest(
        system=system_prompt,
        prompt="\n".join(sections),
        campaign_id=campaign.id,
        product_count=len(products),
    )


def parse_article_response(response_text: str) -> GeneratedArticle:
    """
    Parse the model's JSON answer.

    Raises:
        GenerationError: If the answer is not JSON or lacks title/content
    """
    try:
        if "```json" in response_text:
            json_str = response_text.split("```json")[1].split("```")[0]
        elif "```" in response_text:
            json_str = response_text.split("```")[1].split("```")[0]
        else:
            json_str = response_text

        data = json.loads(json_str.strip())
    except (json.JSONDecodeError, IndexError) as e:
        logger.error(f"Failed to parse Claude response as JSON: {e}")
        raise GenerationError(
            "Malformed generation response", {"raw": response_text[:200]}
        ) from e

    if not isinstance(data, dict):
        raise GenerationError("Generation response is not an object", {"raw": response_text[:200]})

    missing = [key for key in REQUIRED_FIELDS if not str(data.get(key) or "").strip()]
    if missing:
        raise GenerationError(f"Generation response missing {', '.join(missing)}", {"missing": missing})

    keywords = data.get("keywords") or []
    if isinstance(keywords, str):
        keywords = [k.strip() for k in keywords.split(",") if k.strip()]

    return GeneratedArticle(
        title=data["title"].strip(),
        content=data["content"],
        meta_description=data.get("meta_description"),
        focus_keyword=data.get("focus_keyword"),
        keywords=list(keywords),
        category=data.get("category"),
        subcategory=data.get("subcategory"),
    )


class ClaudeService:
    """Service for Claude AI interactions."""

    def __init__(self, client: Optional[AsyncAnthropic] = None, timeout: Optional[float] = None):
        self.timeout = timeout or settings.generation_timeout_seconds
        self.client = client or AsyncAnthropic(
            api_key=settings.anthropic_api_key,
            timeout=self.timeout,
            max_retries=0,
        )
        self.model = settings.claude_model

    async def generate_article(self, request: ArticleRequest) -> GeneratedArticle:
        """
        Generate one article.

        Args:
            request: System instructions and prompt built for the campaign

        Returns:
            GeneratedArticle with non-empty title and content

        Raises:
            GenerationError: On timeout, API error, malformed or empty response
        """
        try:
            message = await asyncio.wait_for(
                self.client.messages.create(
                    model=self.model,
                    max_tokens=settings.claude_max_tokens,
                    temperature=settings.claude_temperature,
                    system=request.system,
                    messages=[{"role": "user", "content": request.prompt}],
                ),
                timeout=self.timeout,
            )
        except (asyncio.TimeoutError, APITimeoutError) as e:
            logger.error(f"Article generation timed out for campaign {request.campaign_id}")
            raise GenerationError(f"Generation timed out after {self.timeout}s") from e
        except APIStatusError as e:
            logger.error(f"Claude API error {e.status_code} for campaign {request.campaign_id}")
            raise GenerationError(
                f"Generation failed with status {e.status_code}", {"status_code": e.status_code}
            ) from e
        except APIConnectionError as e:
            logger.error(f"Claude connection error for campaign {request.campaign_id}: {e}")
            raise GenerationError("Could not reach the generation service") from e

        text_blocks = [
            block.text for block in (message.content or []) if getattr(block, "type", "text") == "text"
        ]
        response_text = "".join(text_blocks).strip()
        if not response_text:
            raise GenerationError("Empty generation response")

        article = parse_article_response(response_text)
        logger.info(
            f"Generated article '{article.title}' for campaign {request.campaign_id}: "
            f"{len(article.content)} chars"
        )
        return article
