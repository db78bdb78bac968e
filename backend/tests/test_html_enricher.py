"""Tests for merging product attributes into product cards."""

from types import SimpleNamespace

from bs4 import BeautifulSoup

from app.services.html_enricher import (
    ENRICHMENT_CLASS,
    build_fragments,
    merge,
    tag_product_cards,
)

ATTRIBUTES = (
    "smart_length", "smart_length_unit", "smart_width", "smart_width_unit",
    "smart_height", "smart_height_unit", "smart_weight", "smart_weight_unit",
    "ai_material", "ai_color", "ai_vision_analysis", "functionality",
    "characteristics", "google_brand", "google_product_category",
)


def product(pid="p1", title="Velvet sofa", **attrs):
    fields = {name: None for name in ATTRIBUTES}
    fields.update(attrs)
    return SimpleNamespace(id=pid, title=title, **fields)


CARD_HTML = (
    "<h1>Guide</h1>"
    '<div class="product-card" data-product-id="p1"><h3>Velvet sofa</h3><p>Soft.</p></div>'
)


def test_product_without_attributes_leaves_html_unchanged():
    result = merge(CARD_HTML, [product()])
    assert result.html == CARD_HTML
    assert result.enriched == []
    assert result.skipped == ["p1"]


def test_single_length_renders_one_physical_block():
    result = merge(CARD_HTML, [product(smart_length=120.0, smart_length_unit="cm")])
    soup = BeautifulSoup(result.html, "html.parser")

    blocks = soup.find_all(class_=ENRICHMENT_CLASS)
    assert len(blocks) == 1
    groups = blocks[0].find_all("div", recursive=False)
    assert [g["class"] for g in groups] == [["product-physical"]]
    items = groups[0].find_all("li")
    assert [li.get_text(" ", strip=True) for li in items] == ["Length: 120 cm"]
    assert result.enriched_count == 1


def test_default_units_and_groups():
    p = product(smart_weight=12.5, ai_color="Emerald", functionality="Convertible", google_brand="Maison")
    groups = dict(build_fragments(p))
    assert groups["physical"] == [("Weight", "12.5 kg")]
    assert groups["visual"] == [("Color", "Emerald")]
    assert groups["functional"] == [("Functionality", "Convertible")]
    assert groups["meta"] == [("Brand", "Maison")]


def test_french_labels():
    groups = dict(build_fragments(product(ai_material="Velours"), language="fr"))
    assert groups["physical"] == [("Matière", "Velours")]


def test_blank_strings_are_absent():
    assert build_fragments(product(ai_color="   ", characteristics="")) == []


def test_merge_is_idempotent():
    p = product(ai_color="Emerald")
    once = merge(CARD_HTML, [p])
    twice = merge(once.html, [p])
    assert twice.html == once.html
    assert twice.skipped == ["p1"]


def test_card_not_found_is_reported():
    result = merge("<h1>Guide</h1><p>No cards here.</p>", [product(ai_color="Red")])
    assert result.not_enriched == ["p1"]
    assert result.not_enriched_count == 1


def test_targets_card_by_id_not_by_title_text():
    html = (
        '<div class="product-card" data-product-id="p2"><h3>Velvet sofa bed</h3></div>'
        '<div class="product-card" data-product-id="p1"><h3>Velvet sofa</h3></div>'
    )
    result = merge(html, [product(pid="p1", ai_color="Emerald")])
    soup = BeautifulSoup(result.html, "html.parser")
    assert soup.find(attrs={"data-product-id": "p2"}).find(class_=ENRICHMENT_CLASS) is None
    assert soup.find(attrs={"data-product-id": "p1"}).find(class_=ENRICHMENT_CLASS) is not None


def test_untagged_card_matched_by_exact_title():
    html = '<div class="product-card"><h3>Velvet sofa</h3></div>'
    result = merge(html, [product(ai_color="Emerald")])
    card = BeautifulSoup(result.html, "html.parser").find(class_="product-card")
    assert card["data-product-id"] == "p1"
    assert card.find(class_=ENRICHMENT_CLASS)["data-enrichment-for"] == "p1"


def test_block_goes_into_trailing_wrapper():
    html = (
        '<article class="product-card" data-product-id="p1">'
        "<h3>Velvet sofa</h3><div class=\"card-body\"><p>Soft.</p></div></article>"
    )
    result = merge(html, [product(ai_color="Emerald")])
    body = BeautifulSoup(result.html, "html.parser").find(class_="card-body")
    assert body.find(class_=ENRICHMENT_CLASS) is not None


def test_tag_product_cards():
    html = '<div class="product-card"><h3>Linen sofa</h3></div><div class="product-card"><h3>Velvet sofa</h3></div>'
    tagged = tag_product_cards(html, [product(pid="p1"), product(pid="p2", title="Linen sofa")])
    soup = BeautifulSoup(tagged, "html.parser")
    cards = soup.find_all(class_="product-card")
    assert [c["data-product-id"] for c in cards] == ["p2", "p1"]


def test_tag_product_cards_without_match_returns_input():
    html = "<p>nothing</p>"
    assert tag_product_cards(html, [product()]) is html
