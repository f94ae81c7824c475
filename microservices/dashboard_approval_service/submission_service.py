"""
Dashboard Submission Service

Campaign-level operations spanning every dashboard entity kind: batch
submit and review, approval overview, statistics and save-changes.
All per-kind work is delegated to the kind's DashboardWorkflowService.
"""

import asyncio
import logging
import uuid
from typing import Any, Dict, Iterable, List, Optional, Union

from .entity_kinds import EntityKindDescriptor, resolve_entity_kinds
from .events.publishers import DashboardApprovalEventPublisher
from .models import (
    ApprovalStatus,
    CampaignApprovalStatus,
    DraftEntity,
    EntityApprovalStatus,
    EntityType,
    ErrorKind,
    OverallStatistics,
    ReviewAction,
    SubmissionResult,
    SubmissionReviewResult,
    WorkflowResult,
    get_status_label,
)
from .protocols import ApprovalValidationError
from .workflow_service import DashboardWorkflowService

logger = logging.getLogger(__name__)

EntityTypeLike = Union[EntityType, str]


class DashboardSubmissionService:
    """Per-campaign coordination across the dashboard entity kinds"""

    def __init__(
        self,
        workflows: Dict[EntityType, DashboardWorkflowService],
        event_publisher: Optional[DashboardApprovalEventPublisher] = None,
    ):
        self.workflows = workflows
        self.event_publisher = event_publisher

    def _resolve(self, entity_types: Optional[Iterable[EntityTypeLike]]) -> List[EntityKindDescriptor]:
        kinds = resolve_entity_kinds(entity_types)
        return [kind for kind in kinds if kind.entity_type in self.workflows]

    async def _current_draft(
        self, workflow: DashboardWorkflowService, campaign_id: str
    ) -> WorkflowResult[Optional[DraftEntity]]:
        result = await workflow.get_by_campaign_id(campaign_id)
        if result.success and result.data is not None and result.data.is_fallback:
            # Published-only content has no draft to act on
            return WorkflowResult.ok(None)
        return result

    # ====================
    # Batch submit / review
    # ====================

    async def submit_for_review(
        self,
        campaign_id: str,
        user_id: str,
        entity_types: Iterable[EntityTypeLike],
        note: Optional[str] = None,
    ) -> WorkflowResult[SubmissionResult]:
        """
        Submit the drafts of several kinds of a campaign.

        Draft and rejected drafts are submitted; missing, pending and approved
        ones are skipped with a reason. Fails when nothing was submitted.
        """
        try:
            kinds = self._resolve(entity_types)
        except ApprovalValidationError as e:
            return WorkflowResult.failure(e.kind, str(e))

        logger.info(
            f"Submitting dashboard items for review: campaign={campaign_id} "
            f"user={user_id} types={[k.entity_type.value for k in kinds]}"
        )

        result = SubmissionResult(
            submission_id=f"sub_{uuid.uuid4().hex[:16]}",
            campaign_id=campaign_id,
            note=note,
        )

        for kind in kinds:
            workflow = self.workflows[kind.entity_type]
            tag = kind.entity_type.value

            current = await self._current_draft(workflow, campaign_id)
            if not current.success:
                return WorkflowResult.failure(current.error_kind, current.message)

            draft = current.data
            if draft is None:
                result.skipped[tag] = f"No {kind.label.lower()} to submit"
                continue
            if draft.status == ApprovalStatus.PENDING:
                result.skipped[tag] = "Already pending review"
                continue
            if draft.status == ApprovalStatus.APPROVED:
                result.skipped[tag] = "Already approved"
                continue

            submitted = await workflow.submit(draft.id, user_id)
            if not submitted.success:
                if submitted.error_kind == ErrorKind.INTERNAL:
                    return WorkflowResult.failure(submitted.error_kind, submitted.message)
                result.skipped[tag] = submitted.message
                continue

            result.submitted.append(kind.entity_type)
            result.items.append(submitted.data)

        if not result.submitted:
            reasons = "; ".join(f"{tag}: {reason}" for tag, reason in result.skipped.items())
            return WorkflowResult.failure(
                ErrorKind.VALIDATION, f"No dashboard items were submitted ({reasons})"
            )

        if self.event_publisher:
            await self.event_publisher.publish_items_submitted(
                submission_id=result.submission_id,
                campaign_id=campaign_id,
                submitted_by=user_id,
                entity_types=[t.value for t in result.submitted],
                skipped=result.skipped,
                note=note,
            )

        logger.info(
            f"Submission {result.submission_id}: submitted={len(result.submitted)} "
            f"skipped={len(result.skipped)}"
        )
        return WorkflowResult.ok(result)

    async def review_submission(
        self,
        campaign_id: str,
        reviewer_id: str,
        action: Union[ReviewAction, str],
        comment: Optional[str] = None,
        entity_types: Optional[Iterable[EntityTypeLike]] = None,
    ) -> WorkflowResult[SubmissionReviewResult]:
        """Review every pending draft of the requested kinds (default: all kinds)"""
        try:
            action = ReviewAction(action)
        except ValueError:
            return WorkflowResult.failure(ErrorKind.VALIDATION, f"Invalid review action: {action}")

        if action == ReviewAction.REJECT and not (comment and comment.strip()):
            return WorkflowResult.failure(ErrorKind.VALIDATION, "Comment is required when rejecting")

        try:
            kinds = self._resolve(entity_types)
        except ApprovalValidationError as e:
            return WorkflowResult.failure(e.kind, str(e))

        result = SubmissionReviewResult(campaign_id=campaign_id, action=action)

        for kind in kinds:
            workflow = self.workflows[kind.entity_type]
            tag = kind.entity_type.value

            current = await self._current_draft(workflow, campaign_id)
            if not current.success:
                return WorkflowResult.failure(current.error_kind, current.message)

            draft = current.data
            if draft is None or draft.status != ApprovalStatus.PENDING:
                result.skipped[tag] = "Not pending review"
                continue

            reviewed = await workflow.review(draft.id, action, reviewer_id, comment)
            if not reviewed.success:
                if reviewed.error_kind == ErrorKind.INTERNAL:
                    return WorkflowResult.failure(reviewed.error_kind, reviewed.message)
                result.skipped[tag] = reviewed.message
                continue

            result.reviewed.append(kind.entity_type)
            result.items.append(reviewed.data)

        logger.info(
            f"Reviewed campaign {campaign_id} ({action.value}) by {reviewer_id}: "
            f"reviewed={len(result.reviewed)} skipped={len(result.skipped)}"
        )
        return WorkflowResult.ok(result)

    # ====================
    # Overview
    # ====================

    async def get_approval_status(self, campaign_id: str) -> WorkflowResult[CampaignApprovalStatus]:
        """Status of every kind for a campaign; kinds never created report draft"""
        overview = CampaignApprovalStatus(campaign_id=campaign_id)

        for kind in self._resolve(None):
            current = await self.workflows[kind.entity_type].get_by_campaign_id(campaign_id)
            if not current.success:
                return WorkflowResult.failure(current.error_kind, current.message)

            draft = current.data
            if draft is None:
                status = ApprovalStatus.DRAFT
                overview.items.append(
                    EntityApprovalStatus(
                        entity_type=kind.entity_type,
                        status=status,
                        status_label=get_status_label(status),
                        available_actions=["edit"],
                    )
                )
                continue

            overview.items.append(
                EntityApprovalStatus(
                    entity_type=kind.entity_type,
                    draft_id=None if draft.is_fallback else draft.id,
                    status=draft.status,
                    status_label=draft.status_label,
                    available_actions=draft.available_actions,
                    submitted_at=draft.submitted_at,
                    reviewed_at=draft.reviewed_at,
                    comment=draft.comment,
                )
            )

        return WorkflowResult.ok(overview)

    async def get_statistics(self) -> WorkflowResult[OverallStatistics]:
        stats = OverallStatistics()
        for entity_type, workflow in self.workflows.items():
            result = await workflow.get_statistics()
            if not result.success:
                return WorkflowResult.failure(result.error_kind, result.message)
            stats.by_entity_type[entity_type.value] = result.data
            stats.totals = stats.totals + result.data
        return WorkflowResult.ok(stats)

    # ====================
    # Save changes
    # ====================

    async def save_dashboard_changes(
        self,
        campaign_id: str,
        user_id: str,
        changes: Dict[EntityTypeLike, Dict[str, Any]],
    ) -> WorkflowResult[List[DraftEntity]]:
        """Upsert several kinds concurrently; the first failure is returned"""
        if not changes:
            return WorkflowResult.failure(ErrorKind.VALIDATION, "No dashboard changes provided")

        try:
            kinds = self._resolve(list(changes))
        except ApprovalValidationError as e:
            return WorkflowResult.failure(e.kind, str(e))

        contents = {}
        for key, content in changes.items():
            contents[resolve_entity_kinds([key])[0].entity_type] = content

        results = await asyncio.gather(
            *[
                self.workflows[kind.entity_type].create_or_update(
                    campaign_id, contents[kind.entity_type], user_id
                )
                for kind in kinds
            ]
        )

        for result in results:
            if not result.success:
                return WorkflowResult.failure(result.error_kind, result.message)

        logger.info(f"Saved dashboard changes for campaign {campaign_id}: {len(results)} item(s)")
        return WorkflowResult.ok([result.data for result in results])


__all__ = ["DashboardSubmissionService"]
