"""
SQLAlchemy models for the campaign content engine.
"""
from .user import User
from .store import Store
from .product import Product
from .campaign import Campaign, CampaignStatus, Frequency
from .article import Article, ArticleStatus
from .execution_log import CampaignExecutionLog, ExecutionStatus, ExecutionTrigger

__all__ = [
    "User",
    "Store",
    "Product",
    "Campaign",
    "CampaignStatus",
    "Frequency",
    "Article",
    "ArticleStatus",
    "CampaignExecutionLog",
    "ExecutionStatus",
    "ExecutionTrigger",
]
