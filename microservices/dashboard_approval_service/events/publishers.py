"""
Dashboard Approval Event Publishers

Publishes events to NATS JetStream.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from core.nats_client import Event

from .models import (
    DashboardApprovalEventType,
    DraftCreatedEventData,
    DraftReviewedEventData,
    DraftSubmittedEventData,
    ItemsSubmittedEventData,
    PublicationFailedEventData,
)

logger = logging.getLogger(__name__)


class DashboardApprovalEventPublisher:
    """Publisher for dashboard approval events"""

    def __init__(self, event_bus=None):
        self.event_bus = event_bus
        self.source = "dashboard_approval_service"

    async def publish(
        self,
        event_type: DashboardApprovalEventType,
        data: Dict[str, Any],
    ) -> bool:
        """
        Publish an event to NATS.

        Args:
            event_type: The event type enum
            data: Event data payload

        Returns:
            True if published successfully, False otherwise
        """
        if not self.event_bus:
            logger.debug(f"Event bus not configured, skipping publish: {event_type.value}")
            return False

        try:
            event = Event(event_type=event_type, source=self.source, data=data)
            published = await self.event_bus.publish_event(event)
            if published:
                logger.debug(f"Published event: {event_type.value}")
            return bool(published)

        except Exception as e:
            logger.error(f"Failed to publish event {event_type.value}: {e}")
            return False

    # ====================
    # Draft Lifecycle Events
    # ====================

    async def publish_draft_created(
        self,
        draft_id: str,
        campaign_id: str,
        entity_type: str,
        created_by: str,
    ) -> bool:
        """Publish dashboard.draft.created event"""
        data = DraftCreatedEventData(
            draft_id=draft_id,
            campaign_id=campaign_id,
            entity_type=entity_type,
            created_by=created_by,
            timestamp=datetime.now(timezone.utc),
        )
        return await self.publish(DashboardApprovalEventType.DRAFT_CREATED, data.model_dump(mode="json"))

    async def publish_draft_submitted(
        self,
        draft_id: str,
        campaign_id: str,
        entity_type: str,
        submitted_by: str,
        resubmission: bool = False,
    ) -> bool:
        """Publish dashboard.draft.submitted event"""
        data = DraftSubmittedEventData(
            draft_id=draft_id,
            campaign_id=campaign_id,
            entity_type=entity_type,
            submitted_by=submitted_by,
            resubmission=resubmission,
            timestamp=datetime.now(timezone.utc),
        )
        return await self.publish(DashboardApprovalEventType.DRAFT_SUBMITTED, data.model_dump(mode="json"))

    async def publish_draft_approved(
        self,
        draft_id: str,
        campaign_id: str,
        entity_type: str,
        reviewed_by: str,
        comment: Optional[str] = None,
        published: bool = True,
    ) -> bool:
        """Publish dashboard.draft.approved event"""
        data = DraftReviewedEventData(
            draft_id=draft_id,
            campaign_id=campaign_id,
            entity_type=entity_type,
            status="approved",
            reviewed_by=reviewed_by,
            comment=comment,
            published=published,
            timestamp=datetime.now(timezone.utc),
        )
        return await self.publish(DashboardApprovalEventType.DRAFT_APPROVED, data.model_dump(mode="json"))

    async def publish_draft_rejected(
        self,
        draft_id: str,
        campaign_id: str,
        entity_type: str,
        reviewed_by: str,
        comment: str,
    ) -> bool:
        """Publish dashboard.draft.rejected event"""
        data = DraftReviewedEventData(
            draft_id=draft_id,
            campaign_id=campaign_id,
            entity_type=entity_type,
            status="rejected",
            reviewed_by=reviewed_by,
            comment=comment,
            timestamp=datetime.now(timezone.utc),
        )
        return await self.publish(DashboardApprovalEventType.DRAFT_REJECTED, data.model_dump(mode="json"))

    # ====================
    # Submission Events
    # ====================

    async def publish_items_submitted(
        self,
        submission_id: str,
        campaign_id: str,
        submitted_by: str,
        entity_types: List[str],
        skipped: Optional[Dict[str, str]] = None,
        note: Optional[str] = None,
    ) -> bool:
        """Publish dashboard.submission.submitted event"""
        data = ItemsSubmittedEventData(
            submission_id=submission_id,
            campaign_id=campaign_id,
            submitted_by=submitted_by,
            entity_types=entity_types,
            skipped=skipped or {},
            note=note,
            timestamp=datetime.now(timezone.utc),
        )
        return await self.publish(DashboardApprovalEventType.ITEMS_SUBMITTED, data.model_dump(mode="json"))

    async def publish_publication_failed(
        self,
        draft_id: str,
        campaign_id: str,
        entity_type: str,
        error: str,
    ) -> bool:
        """Publish dashboard.publication.failed event"""
        data = PublicationFailedEventData(
            draft_id=draft_id,
            campaign_id=campaign_id,
            entity_type=entity_type,
            error=error,
            timestamp=datetime.now(timezone.utc),
        )
        return await self.publish(DashboardApprovalEventType.PUBLICATION_FAILED, data.model_dump(mode="json"))
