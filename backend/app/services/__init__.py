"""
Business logic services.
"""
from .claude_service import ClaudeService
from .shopify_service import ShopifyService
from .generation_orchestrator import GenerationOrchestrator

__all__ = ["ClaudeService", "ShopifyService", "GenerationOrchestrator"]
