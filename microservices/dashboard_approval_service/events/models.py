"""
Dashboard Approval Event Data Models

Event type definitions and data structures for dashboard approval events.
"""

from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field


# =============================================================================
# Event Type Definitions
# =============================================================================


class DashboardApprovalEventType(str, Enum):
    """
    Events published by dashboard_approval_service.

    These are the authoritative event types for this service.
    Other services should reference these when subscribing.
    """
    # Draft lifecycle events
    DRAFT_CREATED = "dashboard.draft.created"
    DRAFT_SUBMITTED = "dashboard.draft.submitted"
    DRAFT_APPROVED = "dashboard.draft.approved"
    DRAFT_REJECTED = "dashboard.draft.rejected"

    # Batch submission events
    ITEMS_SUBMITTED = "dashboard.submission.submitted"

    # Publication events
    PUBLICATION_FAILED = "dashboard.publication.failed"


# =============================================================================
# Event Data Models
# =============================================================================


class DraftCreatedEventData(BaseModel):
    """Data for dashboard.draft.created event"""
    draft_id: str
    campaign_id: str
    entity_type: str
    created_by: str
    timestamp: datetime


class DraftSubmittedEventData(BaseModel):
    """Data for dashboard.draft.submitted event"""
    draft_id: str
    campaign_id: str
    entity_type: str
    submitted_by: str
    resubmission: bool = False
    timestamp: datetime


class DraftReviewedEventData(BaseModel):
    """Data for dashboard.draft.approved and dashboard.draft.rejected events"""
    draft_id: str
    campaign_id: str
    entity_type: str
    status: str
    reviewed_by: str
    comment: Optional[str] = None
    published: bool = False
    timestamp: datetime


class ItemsSubmittedEventData(BaseModel):
    """Data for dashboard.submission.submitted event"""
    submission_id: str
    campaign_id: str
    submitted_by: str
    entity_types: List[str] = Field(default_factory=list)
    skipped: Dict[str, str] = Field(default_factory=dict)
    note: Optional[str] = None
    timestamp: datetime


class PublicationFailedEventData(BaseModel):
    """Data for dashboard.publication.failed event"""
    draft_id: str
    campaign_id: str
    entity_type: str
    error: str
    timestamp: datetime
