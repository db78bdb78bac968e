"""
Shopify Admin API service for publishing generated articles to a store blog.
"""
import logging
from typing import Dict, Any, Optional

import httpx
from cryptography.fernet import InvalidToken

from ..config import get_settings
from .encryption_service import get_token_cipher

logger = logging.getLogger(__name__)
settings = get_settings()


class ShopifyService:
    """Service for the Shopify Admin REST API of one store."""

    def __init__(self, store, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.store = store
        self.base_url = f"https://{store.shop_domain}/admin/api/{settings.shopify_api_version}"
        self.timeout = settings.shopify_timeout_seconds
        self.transport = transport

    def _headers(self) -> Dict[str, str]:
        token = get_token_cipher().decrypt(self.store.access_token_encrypted or "")
        return {
            "Content-Type": "application/json",
            "X-Shopify-Access-Token": token,
        }

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout, transport=self.transport)

    async def get_blog_id(self, client: httpx.AsyncClient, headers: Dict[str, str]) -> Optional[str]:
        """Configured blog of the store, else the first blog in the shop."""
        if self.store.blog_id:
            return str(self.store.blog_id)

        response = await client.get(f"{self.base_url}/blogs.json", headers=headers)
        if response.status_code != 200:
            logger.error(f"Shopify blogs fetch failed: {response.status_code} - {response.text}")
            return None
        blogs = response.json().get("blogs") or []
        return str(blogs[0]["id"]) if blogs else None

    async def publish_article(self, article) -> Dict[str, Any]:
        """
        Create the article on the store blog.

        Args:
            article: Persisted Article with title, content and keywords

        Returns:
            {"success": True, "article_id": ...} or {"success": False, "error": ...}
        """
        if not self.store.access_token_encrypted:
            return {"success": False, "error": "Store has no Admin API token"}

        try:
            headers = self._headers()
        except InvalidToken:
            return {"success": False, "error": "Store token could not be decrypted"}
        except ValueError as e:
            logger.error(f"Token cipher unavailable for {self.store.shop_domain}: {e}")
            return {"success": False, "error": "Store token cipher is misconfigured"}

        payload = {
            "article": {
                "title": article.title,
                "body_html": article.content,
                "summary_html": article.meta_description or "",
                "tags": ", ".join(article.keywords or []),
                "published": True,
            }
        }

        try:
            async with self._client() as client:
                blog_id = await self.get_blog_id(client, headers)
                if not blog_id:
                    return {"success": False, "error": "No blog found in Shopify store"}

                response = await client.post(
                    f"{self.base_url}/blogs/{blog_id}/articles.json",
                    json=payload,
                    headers=headers,
                )

                if response.status_code in (200, 201):
                    shopify_article = response.json().get("article") or {}
                    logger.info(f"Published article {article.id} to {self.store.shop_domain} blog {blog_id}")
                    return {
                        "success": True,
                        "status_code": response.status_code,
                        "article_id": str(shopify_article.get("id", "")),
                        "blog_id": blog_id,
                    }

                logger.error(f"Shopify publish failed: {response.status_code} - {response.text}")
                return {
                    "success": False,
                    "status_code": response.status_code,
                    "error": response.text,
                }

        except httpx.TimeoutException:
            logger.error(f"Shopify publish timeout for {self.store.shop_domain}")
            return {
                "success": False,
                "error": "Shopify timeout"
            }
        except httpx.HTTPError as e:
            logger.error(f"Shopify publish error: {e}")
            return {
                "success": False,
                "error": str(e)
            }
        except (ValueError, KeyError, TypeError) as e:
            logger.error(f"Unexpected Shopify response for {self.store.shop_domain}: {e}")
            return {
                "success": False,
                "error": f"Unexpected Shopify response: {e}"
            }
