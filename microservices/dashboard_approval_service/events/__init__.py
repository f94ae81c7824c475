"""
Dashboard Approval Service Events

Event models and publisher for dashboard approval service.
"""

from .models import (
    DashboardApprovalEventType,
    DraftCreatedEventData,
    DraftSubmittedEventData,
    DraftReviewedEventData,
    ItemsSubmittedEventData,
    PublicationFailedEventData,
)
from .publishers import DashboardApprovalEventPublisher

__all__ = [
    # Event Types
    "DashboardApprovalEventType",
    # Event Data Models
    "DraftCreatedEventData",
    "DraftSubmittedEventData",
    "DraftReviewedEventData",
    "ItemsSubmittedEventData",
    "PublicationFailedEventData",
    # Publisher
    "DashboardApprovalEventPublisher",
]
