"""
Dashboard Workflow Service Business Logic

Generic draft -> pending -> approved/rejected state machine for one
dashboard entity kind. One instance is created per kind; the kind
descriptor supplies content fields, readiness and canonical mapping.

Every public operation returns a WorkflowResult. Business rules raise
DashboardApprovalError subclasses internally; they are converted to
failures (with their ErrorKind) at the public boundary.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Awaitable, Dict, List, Optional, TypeVar

from .entity_kinds import EntityKindDescriptor
from .events.publishers import DashboardApprovalEventPublisher
from .models import (
    ApprovalHistoryEntry,
    ApprovalRecord,
    ApprovalStatistics,
    ApprovalStatus,
    DraftEntity,
    DraftListResult,
    ErrorKind,
    ReviewAction,
    WorkflowResult,
    get_available_actions,
    get_status_label,
)
from .protocols import (
    ApprovalHistoryRepositoryProtocol,
    ApprovalRepositoryProtocol,
    ApprovalValidationError,
    CanonicalRepositoryProtocol,
    DashboardApprovalError,
    DraftAlreadyExistsError,
    DraftNotFoundError,
    DraftRepositoryProtocol,
    InvalidApprovalStateError,
    UnauthorizedEditorError,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

REVIEW_FIELDS = ("submitted_by", "submitted_at", "reviewed_by", "reviewed_at", "comment")


class DashboardWorkflowService:
    """
    Approval workflow coordinator for one dashboard entity kind.

    Draft rows carry the workflow fields denormalized; the approval record is
    the review audit counterpart and is created lazily on first submission.
    """

    def __init__(
        self,
        kind: EntityKindDescriptor,
        draft_repository: DraftRepositoryProtocol,
        approval_repository: ApprovalRepositoryProtocol,
        canonical_repository: CanonicalRepositoryProtocol,
        history_repository: Optional[ApprovalHistoryRepositoryProtocol] = None,
        event_publisher: Optional[DashboardApprovalEventPublisher] = None,
    ):
        self.kind = kind
        self.drafts = draft_repository
        self.approvals = approval_repository
        self.canonical = canonical_repository
        self.history = history_repository
        self.event_publisher = event_publisher

    @property
    def entity_type(self):
        return self.kind.entity_type

    @property
    def label(self) -> str:
        return self.kind.label

    # ====================
    # Public operations
    # ====================

    async def create(
        self, campaign_id: str, content: Optional[Dict[str, Any]], owner_id: str
    ) -> WorkflowResult[DraftEntity]:
        """Create the draft of a campaign; at most one per campaign and kind"""
        return await self._run("create", self._create(campaign_id, content, owner_id))

    async def update(
        self, draft_id: str, content: Optional[Dict[str, Any]], requesting_user_id: str
    ) -> WorkflowResult[DraftEntity]:
        """Partially update content; status is unchanged"""
        return await self._run("update", self._update(draft_id, content, requesting_user_id))

    async def create_or_update(
        self, campaign_id: str, content: Optional[Dict[str, Any]], user_id: str
    ) -> WorkflowResult[DraftEntity]:
        """
        Upsert the draft of a campaign.

        Editing a rejected draft resubmits it: the draft goes back to pending
        and the approval record is re-opened.
        """
        return await self._run(
            "save", self._create_or_update(campaign_id, content, user_id)
        )

    async def submit(self, draft_id: str, requesting_user_id: str) -> WorkflowResult[DraftEntity]:
        return await self._run("submit", self._submit(draft_id, requesting_user_id))

    async def review(
        self,
        draft_id: str,
        action: ReviewAction,
        reviewer_id: str,
        comment: Optional[str] = None,
    ) -> WorkflowResult[DraftEntity]:
        """Approve or reject a pending draft"""
        return await self._run("review", self._review(draft_id, action, reviewer_id, comment))

    async def get_by_id(self, draft_id: str) -> WorkflowResult[DraftEntity]:
        return await self._run("get", self._get_by_id(draft_id))

    async def get_by_campaign_id(self, campaign_id: str) -> WorkflowResult[Optional[DraftEntity]]:
        """Draft of a campaign, else a view synthesized from published data, else None"""
        return await self._run("get", self._get_by_campaign_id(campaign_id))

    async def get_by_campaign_slug(self, slug: str) -> WorkflowResult[Optional[DraftEntity]]:
        return await self._run("get", self._get_by_campaign_slug(slug))

    async def get_by_submitted_by(self, user_id: str) -> WorkflowResult[DraftListResult]:
        return await self._run("list", self._get_by_submitted_by(user_id))

    async def get_pending_for_review(
        self, limit: int = 100, offset: int = 0
    ) -> WorkflowResult[DraftListResult]:
        """Pending drafts, oldest submission first"""
        return await self._run(
            "list", self._list_by_status(ApprovalStatus.PENDING, limit, offset)
        )

    async def get_approved(self, limit: int = 100, offset: int = 0) -> WorkflowResult[DraftListResult]:
        return await self._run(
            "list", self._list_by_status(ApprovalStatus.APPROVED, limit, offset)
        )

    async def get_statistics(self) -> WorkflowResult[ApprovalStatistics]:
        return await self._run("count", self.approvals.get_statistics(self.entity_type))

    async def get_history(self, draft_id: str) -> WorkflowResult[List[ApprovalHistoryEntry]]:
        """Approval history of a draft, newest first"""
        return await self._run("get history of", self._get_history(draft_id))

    async def delete(self, draft_id: str, requesting_user_id: str) -> WorkflowResult[bool]:
        return await self._run("delete", self._delete(draft_id, requesting_user_id))

    @staticmethod
    def get_available_actions(status: ApprovalStatus) -> List[str]:
        return get_available_actions(status)

    @staticmethod
    def get_status_label(status: ApprovalStatus) -> str:
        return get_status_label(status)

    # ====================
    # Operation bodies
    # ====================

    async def _create(
        self, campaign_id: str, content: Optional[Dict[str, Any]], owner_id: str
    ) -> DraftEntity:
        values = self.kind.validate_content(content)

        if await self.drafts.get_draft_by_campaign(self.kind, campaign_id):
            raise DraftAlreadyExistsError(f"{self.label} already exists for this campaign")

        now = datetime.now(timezone.utc)
        draft = DraftEntity(
            id=str(uuid.uuid4()),
            campaign_id=campaign_id,
            entity_type=self.entity_type,
            content={**self.kind.empty_content(), **values},
            status=ApprovalStatus.DRAFT,
            submitted_by=owner_id,
            created_at=now,
            updated_at=now,
        )
        created = await self.drafts.create_draft(self.kind, draft)

        if self.event_publisher:
            await self.event_publisher.publish_draft_created(
                draft_id=created.id,
                campaign_id=campaign_id,
                entity_type=self.entity_type.value,
                created_by=owner_id,
            )

        logger.info(f"{self.label} created: {created.id} (campaign {campaign_id})")
        return created

    async def _update(
        self, draft_id: str, content: Optional[Dict[str, Any]], user_id: str
    ) -> DraftEntity:
        draft = await self._load(draft_id)
        self._check_editable(draft, user_id, "update")
        values = self.kind.validate_content(content)

        updated = await self._save(draft.id, values)
        logger.info(f"{self.label} updated: {draft_id}")
        return await self._with_approval(updated)

    async def _create_or_update(
        self, campaign_id: str, content: Optional[Dict[str, Any]], user_id: str
    ) -> DraftEntity:
        existing = await self.drafts.get_draft_by_campaign(self.kind, campaign_id)
        if existing is None:
            return await self._create(campaign_id, content, user_id)

        self._check_editable(existing, user_id, "update")
        values = self.kind.validate_content(content)

        resubmit = existing.status == ApprovalStatus.REJECTED
        if resubmit:
            self._check_ready({**existing.content, **values})

        updated = await self._save(existing.id, values)
        if resubmit:
            return await self._open_for_review(updated, user_id, resubmission=True)

        logger.info(f"{self.label} saved: {existing.id} (campaign {campaign_id})")
        return await self._with_approval(updated)

    async def _submit(self, draft_id: str, user_id: str) -> DraftEntity:
        draft = await self._load(draft_id)
        if draft.status == ApprovalStatus.APPROVED:
            raise InvalidApprovalStateError(f"{self.label} is already approved", draft.status)
        if draft.submitted_by != user_id:
            raise UnauthorizedEditorError(
                f"Only the original submitter can submit this {self.label.lower()}"
            )

        self._check_ready(draft.content)
        return await self._open_for_review(
            draft, user_id, resubmission=draft.status == ApprovalStatus.REJECTED
        )

    async def _review(
        self,
        draft_id: str,
        action: ReviewAction,
        reviewer_id: str,
        comment: Optional[str],
    ) -> DraftEntity:
        draft = await self._load(draft_id)

        try:
            action = ReviewAction(action)
        except ValueError:
            raise ApprovalValidationError(f"Invalid review action: {action}", "action")

        if action == ReviewAction.REJECT and not (comment and comment.strip()):
            raise ApprovalValidationError("Comment is required when rejecting", "comment")
        if draft.status == ApprovalStatus.APPROVED:
            raise InvalidApprovalStateError(f"{self.label} is already approved", draft.status)
        if draft.status != ApprovalStatus.PENDING:
            raise InvalidApprovalStateError(
                f"Can only review pending {self.label.lower()}", draft.status
            )

        target = ApprovalStatus.APPROVED if action == ReviewAction.APPROVE else ApprovalStatus.REJECTED
        record = await self.approvals.review_approval(
            self.entity_type, draft.id, target, reviewer_id, comment
        )
        if record is None:
            raise InvalidApprovalStateError(
                f"No pending approval found for this {self.label.lower()}", draft.status
            )

        await self.drafts.update_draft(
            self.kind,
            draft.id,
            {
                "status": target,
                "reviewed_by": reviewer_id,
                "reviewed_at": record.reviewed_at,
                "comment": comment,
            },
        )
        await self._record_history(draft, target, reviewer_id, comment)

        if target == ApprovalStatus.APPROVED:
            published = await self._publish_canonical(draft)
            if self.event_publisher:
                await self.event_publisher.publish_draft_approved(
                    draft_id=draft.id,
                    campaign_id=draft.campaign_id,
                    entity_type=self.entity_type.value,
                    reviewed_by=reviewer_id,
                    comment=comment,
                    published=published,
                )
        elif self.event_publisher:
            await self.event_publisher.publish_draft_rejected(
                draft_id=draft.id,
                campaign_id=draft.campaign_id,
                entity_type=self.entity_type.value,
                reviewed_by=reviewer_id,
                comment=comment,
            )

        logger.info(f"{self.label} {draft.id} {target.value} by {reviewer_id}")
        refreshed = await self._load(draft.id)
        return self._merge(refreshed, record)

    async def _get_by_id(self, draft_id: str) -> DraftEntity:
        return await self._with_approval(await self._load(draft_id))

    async def _get_by_campaign_id(self, campaign_id: str) -> Optional[DraftEntity]:
        draft = await self.drafts.get_draft_by_campaign(self.kind, campaign_id)
        if draft:
            return await self._with_approval(draft)

        canonical = await self.canonical.get_canonical(self.kind, campaign_id)
        if canonical is None:
            return None

        # Published-only content is by definition approved
        return DraftEntity(
            id=campaign_id,
            campaign_id=campaign_id,
            entity_type=self.entity_type,
            content={**self.kind.empty_content(), **canonical.content},
            status=ApprovalStatus.APPROVED,
            updated_at=canonical.updated_at,
            is_fallback=True,
        )

    async def _get_by_campaign_slug(self, slug: str) -> Optional[DraftEntity]:
        campaign_id = await self.canonical.get_campaign_id_by_slug(slug)
        if not campaign_id:
            raise DraftNotFoundError(f"Campaign not found: {slug}")
        return await self._get_by_campaign_id(campaign_id)

    async def _get_by_submitted_by(self, user_id: str) -> DraftListResult:
        records = await self.approvals.find_by_submitted_by(user_id, self.entity_type)
        return await self._join(records)

    async def _list_by_status(self, status: ApprovalStatus, limit: int, offset: int) -> DraftListResult:
        records = await self.approvals.find_by_status(status, self.entity_type, limit, offset)
        return await self._join(records)

    async def _get_history(self, draft_id: str) -> List[ApprovalHistoryEntry]:
        draft = await self._load(draft_id)
        if not self.history:
            return []
        return await self.history.list_for_entity(self.entity_type, draft.id)

    async def _delete(self, draft_id: str, user_id: str) -> bool:
        draft = await self._load(draft_id)
        self._check_editable(draft, user_id, "delete")

        await self.drafts.delete_draft(self.kind, draft.id)
        await self.approvals.delete_by_entity(self.entity_type, draft.id)
        logger.info(f"{self.label} deleted: {draft_id}")
        return True

    # ====================
    # Helpers
    # ====================

    async def _run(self, operation: str, call: Awaitable[T]) -> WorkflowResult[T]:
        try:
            return WorkflowResult.ok(await call)
        except DashboardApprovalError as e:
            logger.warning(f"{self.label} {operation} rejected: {e}")
            return WorkflowResult.failure(e.kind, str(e))
        except Exception as e:
            logger.error(f"Failed to {operation} {self.label.lower()}: {e}", exc_info=True)
            return WorkflowResult.failure(
                ErrorKind.INTERNAL, f"Failed to {operation} {self.label.lower()}: {e}"
            )

    async def _load(self, draft_id: str) -> DraftEntity:
        draft = await self.drafts.get_draft(self.kind, draft_id)
        if not draft:
            raise DraftNotFoundError(f"{self.label} not found: {draft_id}")
        return draft

    async def _save(self, draft_id: str, updates: Dict[str, Any]) -> DraftEntity:
        updated = await self.drafts.update_draft(self.kind, draft_id, updates)
        if not updated:
            raise DraftNotFoundError(f"{self.label} not found: {draft_id}")
        return updated

    def _check_editable(self, draft: DraftEntity, user_id: str, verb: str) -> None:
        if draft.status == ApprovalStatus.APPROVED:
            raise InvalidApprovalStateError(
                f"Cannot {verb} approved {self.label.lower()}", draft.status
            )
        if not draft.is_editable_by(user_id):
            raise UnauthorizedEditorError(
                f"Only the original submitter can {verb} this {self.label.lower()}"
            )

    def _check_ready(self, content: Dict[str, Any]) -> None:
        if not self.kind.is_ready(content):
            raise ApprovalValidationError(f"{self.label} needs content before submission", "content")

    async def _open_for_review(self, draft: DraftEntity, user_id: str, resubmission: bool) -> DraftEntity:
        """Move a draft to pending and open (or re-open) its approval record"""
        record = await self.approvals.upsert_pending(
            self.entity_type, draft.id, draft.campaign_id, user_id
        )
        updated = await self.drafts.update_draft(
            self.kind,
            draft.id,
            {
                "status": ApprovalStatus.PENDING,
                "submitted_by": user_id,
                "submitted_at": record.submitted_at,
                "reviewed_by": None,
                "reviewed_at": None,
                "comment": None,
            },
        )
        if not updated:
            raise DraftNotFoundError(f"{self.label} not found: {draft.id}")

        await self._record_history(updated, ApprovalStatus.PENDING, user_id, None)

        if self.event_publisher:
            await self.event_publisher.publish_draft_submitted(
                draft_id=updated.id,
                campaign_id=updated.campaign_id,
                entity_type=self.entity_type.value,
                submitted_by=user_id,
                resubmission=resubmission,
            )

        logger.info(
            f"{self.label} {'resubmitted' if resubmission else 'submitted'} for review: {updated.id}"
        )
        return self._merge(updated, record)

    async def _publish_canonical(self, draft: DraftEntity) -> bool:
        """Copy approved content to the public tables; failures do not undo the approval"""
        try:
            await self.canonical.publish(self.kind, draft.campaign_id, draft.content)
            return True
        except Exception as e:
            logger.error(
                f"Failed to publish approved {self.entity_type.value} {draft.id} "
                f"for campaign {draft.campaign_id}: {e}"
            )
            if self.event_publisher:
                await self.event_publisher.publish_publication_failed(
                    draft_id=draft.id,
                    campaign_id=draft.campaign_id,
                    entity_type=self.entity_type.value,
                    error=str(e),
                )
            return False

    async def _record_history(
        self,
        draft: DraftEntity,
        status: ApprovalStatus,
        user_id: str,
        comment: Optional[str],
    ) -> None:
        if not self.history:
            return
        try:
            await self.history.record_entry(
                ApprovalHistoryEntry(
                    history_id=f"hist_{uuid.uuid4().hex[:16]}",
                    entity_type=self.entity_type,
                    entity_id=draft.id,
                    campaign_id=draft.campaign_id,
                    status=status,
                    user_id=user_id,
                    comment=comment,
                )
            )
        except Exception as e:
            logger.error(f"Failed to record history for {self.entity_type.value} {draft.id}: {e}")

    async def _with_approval(self, draft: DraftEntity) -> DraftEntity:
        record = await self.approvals.find_by_entity(self.entity_type, draft.id)
        return self._merge(draft, record)

    @staticmethod
    def _merge(draft: DraftEntity, record: Optional[ApprovalRecord]) -> DraftEntity:
        """Overlay approval record metadata; the draft status stays authoritative"""
        if record is None:
            return draft
        updates = {
            field: getattr(record, field)
            for field in REVIEW_FIELDS
            if getattr(record, field) is not None
        }
        return draft.model_copy(update=updates)

    async def _join(self, records: List[ApprovalRecord]) -> DraftListResult:
        result = DraftListResult()
        for record in records:
            draft = await self.drafts.get_draft(self.kind, record.entity_id)
            if draft is None:
                logger.warning(
                    f"Approval {record.approval_id} points at missing {self.entity_type.value} "
                    f"{record.entity_id}; skipped"
                )
                result.skipped_entity_ids.append(record.entity_id)
                continue
            result.items.append(self._merge(draft, record))
        return result


__all__ = ["DashboardWorkflowService"]
