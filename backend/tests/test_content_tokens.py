"""Tests for resolving generation tokens."""

from types import SimpleNamespace

from app.services.content_tokens import (
    extract_product_links,
    product_url,
    resolve_image_tokens,
    resolve_product_tokens,
)

BASE_URL = "https://maison-velours.com/"


def product(pid, title, handle, image_url=None, category=None, price=None):
    return SimpleNamespace(
        id=pid, title=title, handle=handle, image_url=image_url, category=category, price=price
    )


PRODUCTS = [
    product("p1", "Velvet sofa", "velvet-sofa", "https://cdn.example.com/sofa.jpg", "Sofas", 899.0),
    product("p2", "Oak & walnut table", "oak-table", None, "Tables", 450.0),
]


def test_product_url_strips_trailing_slash():
    assert product_url(BASE_URL, PRODUCTS[0]) == "https://maison-velours.com/products/velvet-sofa"


def test_resolve_product_tokens():
    content = '<a href="{{PRODUCT_URL_1}}">{{PRODUCT_TITLE_2}}</a> {{ PRODUCT_ID_1 }} {{PRODUCT_HANDLE_2}}'
    resolved = resolve_product_tokens(content, PRODUCTS, BASE_URL)
    assert resolved == (
        '<a href="https://maison-velours.com/products/velvet-sofa">Oak &amp; walnut table</a> p1 oak-table'
    )


def test_unknown_index_is_left_in_place():
    content = "{{PRODUCT_URL_3}} {{PRODUCT_TITLE_0}}"
    assert resolve_product_tokens(content, PRODUCTS, BASE_URL) == content


def test_image_token_uses_best_matching_product_image():
    resolved = resolve_image_tokens("{{IMAGE_SEARCH:green velvet sofa}}", PRODUCTS)
    assert resolved == (
        '<img src="https://cdn.example.com/sofa.jpg" alt="green velvet sofa" loading="lazy">'
    )


def test_image_tokens_dropped_when_disabled_or_no_image():
    assert resolve_image_tokens("a {{IMAGE_SEARCH:sofa}} b", PRODUCTS, enabled=False) == "a  b"
    assert resolve_image_tokens("{{IMAGE_SEARCH:table}}", PRODUCTS[1:]) == ""


def test_extract_product_links_only_for_linked_products():
    content = (
        '<p><a href="https://maison-velours.com/products/velvet-sofa?variant=1">sofa</a></p>'
        '<p>The oak table is not linked.</p>'
    )
    links = extract_product_links(content, PRODUCTS)
    assert links == [{
        "product_id": "p1",
        "title": "Velvet sofa",
        "handle": "velvet-sofa",
        "image_url": "https://cdn.example.com/sofa.jpg",
        "price": 899.0,
        "category": "Sofas",
    }]


def test_extract_product_links_none():
    assert extract_product_links("<p>no links</p>", PRODUCTS) == []
