"""
Exception hierarchy for the campaign content pipeline.
"""
from typing import Dict, Any, Optional


class CampaignError(Exception):
    """Base class for campaign-related errors."""
    pass


class CampaignConfigError(CampaignError):
    """Raised when a campaign configuration is invalid (rejected at create/update time)."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        """Initialize configuration error.

        Args:
            message: Error message describing the invalid configuration
            details: Optional dictionary with the offending fields
        """
        super().__init__(message)
        self.details = details or {}


class InvalidTransitionError(CampaignError):
    """Raised when a status event is not allowed from the campaign's current status."""

    def __init__(self, event: str, status: str) -> None:
        super().__init__(f"Cannot apply '{event}' to a campaign in status '{status}'")
        self.event = event
        self.status = status


class CampaignBusyError(CampaignError):
    """Raised when a generation is already in flight for the campaign."""
    pass


class CampaignNotActiveError(CampaignError):
    """Raised when a run is requested for a campaign that is not active."""
    pass


class SelectionError(CampaignError):
    """Raised when no products are available while product linking is enabled."""
    pass


class GenerationError(CampaignError):
    """Raised when the text-generation call fails, times out or returns unusable content."""

    def __init__(self, message: str, response: Optional[Dict[str, Any]] = None) -> None:
        """Initialize generation error.

        Args:
            message: Error message describing the failure
            response: Optional dictionary with the raw response details
        """
        super().__init__(message)
        self.response = response or {}
