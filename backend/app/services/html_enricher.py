"""
Merges structured product attributes into the product cards of generated HTML.

Cards are elements with the `product-card` class. At generation time each card
is tagged with a `data-product-id`; the merger targets cards by that id and
only falls back to matching the exact product title in the card text for
cards that were never tagged. Cards that already carry an enrichment block are
left alone, so merging twice does not duplicate content.
"""
import logging
from dataclasses import dataclass, field
from typing import Any, List, Optional, Sequence

from bs4 import BeautifulSoup, NavigableString, Tag

logger = logging.getLogger(__name__)

CARD_CLASS = "product-card"
CARD_ID_ATTR = "data-product-id"
ENRICHMENT_CLASS = "product-enrichment"

# Wrappers that may receive the enrichment block when a card ends with one
CONTAINER_TAGS = {"div", "section", "article", "aside", "footer"}

LABELS = {
    "en": {
        "physical": "Dimensions & materials",
        "visual": "Look",
        "functional": "Features",
        "meta": "About the product",
        "length": "Length",
        "width": "Width",
        "height": "Height",
        "weight": "Weight",
        "material": "Material",
        "color": "Color",
        "vision": "Description",
        "functionality": "Functionality",
        "characteristics": "Characteristics",
        "brand": "Brand",
        "taxonomy": "Category",
    },
    "fr": {
        "physical": "Dimensions et matériaux",
        "visual": "Aspect",
        "functional": "Fonctionnalités",
        "meta": "À propos du produit",
        "length": "Longueur",
        "width": "Largeur",
        "height": "Hauteur",
        "weight": "Poids",
        "material": "Matière",
        "color": "Couleur",
        "vision": "Description",
        "functionality": "Fonctionnalité",
        "characteristics": "Caractéristiques",
        "brand": "Marque",
        "taxonomy": "Catégorie",
    },
}

DEFAULT_UNITS = {"length": "cm", "width": "cm", "height": "cm", "weight": "kg"}


@dataclass
class EnrichmentResult:
    html: str
    enriched: List[str] = field(default_factory=list)       # product ids enriched
    not_enriched: List[str] = field(default_factory=list)   # product ids whose card was not found
    skipped: List[str] = field(default_factory=list)        # no attributes or already enriched

    @property
    def enriched_count(self) -> int:
        return len(self.enriched)

    @property
    def not_enriched_count(self) -> int:
        return len(self.not_enriched)


def _labels(language: Optional[str]) -> dict:
    return LABELS.get((language or "en")[:2].lower(), LABELS["en"])


def _format_number(value: Any) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _present(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    return True


def _product_id(product) -> str:
    return str(getattr(product, "id", "") or "")


def _find_cards(soup: BeautifulSoup) -> List[Tag]:
    return soup.find_all(class_=CARD_CLASS)


def _find_card(soup: BeautifulSoup, product) -> Optional[Tag]:
    product_id = _product_id(product)
    if product_id:
        card = soup.find(attrs={CARD_ID_ATTR: product_id})
        if card is not None:
            return card

    title = (getattr(product, "title", None) or "").strip()
    if not title:
        return None
    for card in _find_cards(soup):
        if card.has_attr(CARD_ID_ATTR):
            continue
        if title in card.get_text(" ", strip=True):
            return card
    return None


def tag_product_cards(html: str, products: Sequence[Any]) -> str:
    """
    Give every untagged product card a stable `data-product-id`.

    Cards are matched to products by exact title, in product order; each card
    is tagged at most once. Returns the input unchanged when nothing was tagged.
    """
    soup = BeautifulSoup(html or "", "html.parser")
    tagged = 0
    for product in products:
        product_id = _product_id(product)
        if not product_id or soup.find(attrs={CARD_ID_ATTR: product_id}) is not None:
            continue
        card = _find_card(soup, product)
        if card is None:
            continue
        card[CARD_ID_ATTR] = product_id
        tagged += 1
    return str(soup) if tagged else html


def build_fragments(product, language: str = "en") -> List[tuple]:
    """
    Group the product's present attributes into (group, [(label, value)]) fragments.

    Groups without any present attribute are omitted.
    """
    labels = _labels(language)
    groups = []

    physical = []
    for dim in ("length", "width", "height", "weight"):
        value = getattr(product, f"smart_{dim}", None)
        if _present(value):
            unit = getattr(product, f"smart_{dim}_unit", None) or DEFAULT_UNITS[dim]
            physical.append((labels[dim], f"{_format_number(value)} {unit}"))
    if _present(getattr(product, "ai_material", None)):
        physical.append((labels["material"], product.ai_material.strip()))
    if physical:
        groups.append(("physical", physical))

    visual = []
    if _present(getattr(product, "ai_color", None)):
        visual.append((labels["color"], product.ai_color.strip()))
    if _present(getattr(product, "ai_vision_analysis", None)):
        visual.append((labels["vision"], product.ai_vision_analysis.strip()))
    if visual:
        groups.append(("visual", visual))

    functional = []
    if _present(getattr(product, "functionality", None)):
        functional.append((labels["functionality"], product.functionality.strip()))
    if _present(getattr(product, "characteristics", None)):
        functional.append((labels["characteristics"], product.characteristics.strip()))
    if functional:
        groups.append(("functional", functional))

    meta = []
    if _present(getattr(product, "google_brand", None)):
        meta.append((labels["brand"], product.google_brand.strip()))
    if _present(getattr(product, "google_product_category", None)):
        meta.append((labels["taxonomy"], product.google_product_category.strip()))
    if meta:
        groups.append(("meta", meta))

    return groups


def _render_block(soup: BeautifulSoup, product, fragments: List[tuple], language: str) -> Tag:
    labels = _labels(language)
    block = soup.new_tag("div", attrs={"class": ENRICHMENT_CLASS, "data-enrichment-for": _product_id(product)})
    for group, entries in fragments:
        section = soup.new_tag("div", attrs={"class": f"product-{group}"})
        heading = soup.new_tag("p", attrs={"class": "product-enrichment-title"})
        heading.string = labels[group]
        section.append(heading)
        items = soup.new_tag("ul")
        for label, value in entries:
            item = soup.new_tag("li")
            strong = soup.new_tag("strong")
            strong.string = f"{label}:"
            item.append(strong)
            item.append(NavigableString(f" {value}"))
            items.append(item)
        section.append(items)
        block.append(section)
    return block


def _insertion_point(card: Tag) -> Tag:
    """The card's closing container: its last child when that is a block wrapper, else the card."""
    for child in reversed(card.contents):
        if isinstance(child, Tag):
            return child if child.name in CONTAINER_TAGS else card
        if isinstance(child, NavigableString) and child.strip():
            return card
    return card


def merge(html: str, products: Sequence[Any], language: str = "en") -> EnrichmentResult:
    """
    Inject each product's attributes into its product card.

    Never raises on missing attributes. Products whose card cannot be found
    are reported in `not_enriched`; products with nothing to render, or whose
    card is already enriched, are reported in `skipped`.
    """
    soup = BeautifulSoup(html or "", "html.parser")
    result = EnrichmentResult(html=html)

    for product in products:
        product_id = _product_id(product)
        card = _find_card(soup, product)
        if card is None:
            result.not_enriched.append(product_id)
            continue

        if card.find(class_=ENRICHMENT_CLASS) is not None:
            result.skipped.append(product_id)
            continue

        fragments = build_fragments(product, language)
        if not fragments:
            result.skipped.append(product_id)
            continue

        _insertion_point(card).append(_render_block(soup, product, fragments, language))
        if not card.has_attr(CARD_ID_ATTR) and product_id:
            card[CARD_ID_ATTR] = product_id
        result.enriched.append(product_id)

    if result.enriched:
        result.html = str(soup)

    if result.not_enriched:
        logger.info(f"Product cards not found for {len(result.not_enriched)} product(s)")

    return result
