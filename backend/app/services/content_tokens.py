"""
Resolves the literal tokens the model leaves in generated HTML.

Product tokens are 1-based indexes into the selected products:
{{PRODUCT_URL_1}}, {{PRODUCT_TITLE_1}}, {{PRODUCT_HANDLE_1}}, {{PRODUCT_ID_1}},
{{PRODUCT_IMAGE_1}}. Image placeholders look like {{IMAGE_SEARCH:blue velvet sofa}}.
Tokens with an unknown index are left in place so validation flags them.
"""
import html as html_lib
import re
from typing import Any, Dict, List, Optional, Sequence

from bs4 import BeautifulSoup

PRODUCT_TOKEN_PATTERN = re.compile(r"\{\{\s*PRODUCT_(URL|TITLE|HANDLE|ID|IMAGE)_(\d+)\s*\}\}")
IMAGE_SEARCH_PATTERN = re.compile(r"\{\{\s*IMAGE_SEARCH\s*:\s*([^{}]*?)\s*\}\}")


def product_url(base_url: str, product) -> str:
    return f"{base_url.rstrip('/')}/products/{product.handle}"


def resolve_product_tokens(content: str, products: Sequence[Any], base_url: str) -> str:
    """Replace product tokens with values from the selected products."""

    def replace(match: re.Match) -> str:
        field_name, index = match.group(1), int(match.group(2))
        if index < 1 or index > len(products):
            return match.group(0)
        product = products[index - 1]
        if field_name == "URL":
            return html_lib.escape(product_url(base_url, product), quote=True)
        if field_name == "TITLE":
            return html_lib.escape(product.title or "", quote=True)
        if field_name == "HANDLE":
            return html_lib.escape(product.handle or "", quote=True)
        if field_name == "ID":
            return str(product.id)
        return html_lib.escape(getattr(product, "image_url", None) or "", quote=True)

    return PRODUCT_TOKEN_PATTERN.sub(replace, content or "")


def _best_image_product(query: str, products: Sequence[Any]) -> Optional[Any]:
    """Product with an image whose title/category shares the most words with the query."""
    words = {w for w in query.lower().split() if len(w) > 2}
    best, best_overlap = None, -1
    for product in products:
        if not getattr(product, "image_url", None):
            continue
        text = " ".join(filter(None, [product.title, getattr(product, "category", None)])).lower()
        overlap = sum(1 for w in words if w in text)
        if overlap > best_overlap:
            best, best_overlap = product, overlap
    return best


def resolve_image_tokens(content: str, products: Sequence[Any], enabled: bool = True) -> str:
    """Replace image-search placeholders with a product image, or drop them."""

    def replace(match: re.Match) -> str:
        if not enabled:
            return ""
        query = match.group(1)
        product = _best_image_product(query, products)
        if product is None:
            return ""
        src = html_lib.escape(product.image_url, quote=True)
        alt = html_lib.escape(query or product.title or "", quote=True)
        return f'<img src="{src}" alt="{alt}" loading="lazy">'

    return IMAGE_SEARCH_PATTERN.sub(replace, content or "")


def extract_product_links(content: str, products: Sequence[Any]) -> List[Dict[str, Any]]:
    """
    Build the article's product_links from product URLs present in the body.

    Only products actually linked from the HTML are returned, in selection order.
    """
    soup = BeautifulSoup(content or "", "html.parser")
    hrefs = [a.get("href", "") for a in soup.find_all("a", href=True)]

    links = []
    for product in products:
        if not product.handle:
            continue
        needle = f"/products/{product.handle}"
        if any(href.split("?")[0].split("#")[0].rstrip("/").endswith(needle) for href in hrefs):
            links.append({
                "product_id": product.id,
                "title": product.title,
                "handle": product.handle,
                "image_url": getattr(product, "image_url", None),
                "price": getattr(product, "price", None),
                "category": getattr(product, "category", None),
            })
    return links
