"""
Ranks a store catalog against a campaign's keywords and niche to pick the
products an article should link to.
"""
import logging
from dataclasses import dataclass, field
from typing import Any, List, Sequence

logger = logging.getLogger(__name__)

KEYWORD_WEIGHT = 3
TOPIC_WORD_WEIGHT = 1
MIN_TOPIC_WORD_LENGTH = 4  # words longer than 3 characters


@dataclass
class ProductSelection:
    products: List[Any] = field(default_factory=list)
    scores: List[int] = field(default_factory=list)
    fallback: bool = False  # True when nothing matched and catalog order was used


def _unique_lower(values) -> List[str]:
    seen = []
    for value in values or []:
        value = (value or "").strip().lower()
        if value and value not in seen:
            seen.append(value)
    return seen


def _searchable_text(product) -> str:
    parts = [
        getattr(product, "title", None),
        getattr(product, "category", None),
        getattr(product, "sub_category", None),
        getattr(product, "seo_title", None),
    ]
    return " ".join(p for p in parts if p).lower()


def score_product(product, keywords: Sequence[str], topic_words: Sequence[str]) -> int:
    """Relevance of a single product; keywords and topic words must be lower-case."""
    text = _searchable_text(product)
    score = sum(KEYWORD_WEIGHT for kw in keywords if kw in text)
    score += sum(TOPIC_WORD_WEIGHT for word in topic_words if word in text)
    return score


def topic_words(topic: str) -> List[str]:
    return _unique_lower(w for w in (topic or "").split() if len(w) >= MIN_TOPIC_WORD_LENGTH)


def select_products(campaign, catalog: Sequence[Any], limit: int) -> ProductSelection:
    """
    Select the `limit` most relevant products for a campaign.

    Deterministic for a fixed catalog: ties keep catalog order. When no
    product scores above zero, the first `limit` catalog entries are returned
    with `fallback=True` so the pipeline never stalls on keyword matching.
    """
    if limit <= 0 or not catalog:
        return ProductSelection()

    keywords = _unique_lower(getattr(campaign, "keywords", None))
    words = topic_words(getattr(campaign, "topic_niche", None))

    scored = [(score_product(p, keywords, words), p) for p in catalog]

    if not any(score > 0 for score, _ in scored):
        logger.info(
            f"No product matched keywords {keywords} for campaign "
            f"{getattr(campaign, 'id', None)}, falling back to catalog order"
        )
        return ProductSelection(
            products=list(catalog[:limit]),
            scores=[0] * min(limit, len(catalog)),
            fallback=True,
        )

    # sorted() is stable, so equal scores keep catalog order
    ranked = sorted(scored, key=lambda item: item[0], reverse=True)[:limit]
    return ProductSelection(
        products=[p for _, p in ranked],
        scores=[score for score, _ in ranked],
    )
