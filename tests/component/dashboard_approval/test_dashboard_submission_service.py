"""
Component Tests for DashboardSubmissionService

Campaign-level batch submit, batch review, approval overview, statistics
and save-changes across all dashboard entity kinds.
"""

import pytest
from unittest.mock import AsyncMock

import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "../../.."))

from tests.contracts.dashboard_approval.data_contract import (
    ALL_ENTITY_TYPES,
    ApprovalStatus,
    EntityType,
    ErrorKind,
    ReviewAction,
    CAMPAIGN_SUMMARY,
    DashboardApprovalTestDataFactory,
)


async def seed_all_kinds(workflows, campaign_id, owner_id):
    """Create a ready draft of every kind for a campaign"""
    drafts = {}
    for entity_type, workflow in workflows.items():
        result = await workflow.create(
            campaign_id, DashboardApprovalTestDataFactory.make_content(workflow.kind), owner_id
        )
        assert result.success, result.message
        drafts[entity_type] = result.data
    return drafts


class TestSubmitForReview:
    """Batch submission of several kinds of one campaign"""

    @pytest.mark.asyncio
    async def test_submits_every_ready_kind(
        self, submission_service, workflows, mock_event_bus, campaign_id, owner_id
    ):
        # Given: Ready drafts of all kinds
        await seed_all_kinds(workflows, campaign_id, owner_id)

        # When: Submitting all kinds
        result = await submission_service.submit_for_review(
            campaign_id, owner_id, [t.value for t in ALL_ENTITY_TYPES], note="First pass"
        )

        # Then: Every kind is pending
        assert result.success is True
        assert set(result.data.submitted) == set(ALL_ENTITY_TYPES)
        assert result.data.skipped == {}
        assert result.data.submission_id.startswith("sub_")
        assert all(d.status == ApprovalStatus.PENDING for d in result.data.items)

        # And: One batch event plus one per draft
        batch = mock_event_bus.get_events_by_type("dashboard.submission.submitted")
        assert len(batch) == 1
        assert batch[0].data["note"] == "First pass"
        assert sorted(batch[0].data["entity_types"]) == sorted(t.value for t in ALL_ENTITY_TYPES)
        assert len(mock_event_bus.get_events_by_type("dashboard.draft.submitted")) == 3

    @pytest.mark.asyncio
    async def test_skips_missing_pending_and_approved_kinds(
        self, submission_service, workflows, campaign_id, owner_id, reviewer_id
    ):
        # Given: Summary approved, socials pending, info never created
        summary = workflows[EntityType.CAMPAIGN_SUMMARY]
        socials = workflows[EntityType.SOCIALS]
        approved = await summary.create(campaign_id, DashboardApprovalTestDataFactory.make_summary_content(), owner_id)
        await summary.submit(approved.data.id, owner_id)
        await summary.review(approved.data.id, ReviewAction.APPROVE, reviewer_id)
        pending = await socials.create(campaign_id, DashboardApprovalTestDataFactory.make_socials_content(), owner_id)
        await socials.submit(pending.data.id, owner_id)

        # When: Submitting all kinds
        result = await submission_service.submit_for_review(campaign_id, owner_id, ALL_ENTITY_TYPES)

        # Then: Nothing was submittable
        assert result.success is False
        assert result.error_kind == ErrorKind.VALIDATION
        assert result.message.startswith("No dashboard items were submitted")
        assert "Already approved" in result.message
        assert "Already pending review" in result.message
        assert "No dashboard campaign info to submit" in result.message

    @pytest.mark.asyncio
    async def test_partial_submission_reports_skips(
        self, submission_service, workflows, campaign_id, owner_id
    ):
        # Given: A ready summary and a blank socials draft
        await workflows[EntityType.CAMPAIGN_SUMMARY].create(
            campaign_id, DashboardApprovalTestDataFactory.make_summary_content(), owner_id
        )
        await workflows[EntityType.SOCIALS].create(campaign_id, {}, owner_id)

        # When: Submitting both
        result = await submission_service.submit_for_review(
            campaign_id, owner_id, ["dashboard-campaign-summary", "dashboard-socials"]
        )

        # Then: Summary submitted, socials skipped with its validation reason
        assert result.success is True
        assert result.data.submitted == [EntityType.CAMPAIGN_SUMMARY]
        assert result.data.skipped == {
            "dashboard-socials": "Dashboard socials needs content before submission"
        }

    @pytest.mark.asyncio
    async def test_published_only_content_is_not_submittable(
        self, submission_service, mock_canonical_repository, campaign_id, owner_id
    ):
        mock_canonical_repository.seed(CAMPAIGN_SUMMARY, campaign_id, {"summary": "Live"})

        result = await submission_service.submit_for_review(
            campaign_id, owner_id, ["dashboard-campaign-summary"]
        )

        assert result.success is False
        assert "No dashboard campaign summary to submit" in result.message

    @pytest.mark.asyncio
    async def test_other_user_cannot_submit_campaign(
        self, submission_service, workflows, campaign_id, owner_id
    ):
        # Given: A summary draft owned by one user
        summary = workflows[EntityType.CAMPAIGN_SUMMARY]
        created = await summary.create(campaign_id, DashboardApprovalTestDataFactory.make_summary_content(), owner_id)

        # When: Another user submits the campaign
        result = await submission_service.submit_for_review(
            campaign_id, "usr_stranger", ["dashboard-campaign-summary"]
        )

        # Then: Nothing submitted and the draft keeps its owner
        assert result.success is False
        assert result.error_kind == ErrorKind.VALIDATION
        assert "Only the original submitter can submit" in result.message

        current = await summary.get_by_id(created.data.id)
        assert current.data.status == ApprovalStatus.DRAFT
        assert current.data.submitted_by == owner_id

    @pytest.mark.asyncio
    async def test_invalid_entity_type_is_validation_error(self, submission_service, campaign_id, owner_id):
        result = await submission_service.submit_for_review(campaign_id, owner_id, ["dashboard-banner"])

        assert result.error_kind == ErrorKind.VALIDATION
        assert result.message == "Invalid entity type: dashboard-banner"

    @pytest.mark.asyncio
    async def test_accepts_path_segments_and_drops_duplicates(
        self, submission_service, workflows, campaign_id, owner_id
    ):
        await seed_all_kinds(workflows, campaign_id, owner_id)

        result = await submission_service.submit_for_review(
            campaign_id, owner_id, ["socials", "dashboard-socials"]
        )

        assert result.data.submitted == [EntityType.SOCIALS]

    @pytest.mark.asyncio
    async def test_internal_failure_aborts_batch(
        self, submission_service, workflows, mock_approval_repository, campaign_id, owner_id
    ):
        await seed_all_kinds(workflows, campaign_id, owner_id)
        mock_approval_repository.upsert_pending = AsyncMock(side_effect=RuntimeError("db gone"))

        result = await submission_service.submit_for_review(campaign_id, owner_id, ALL_ENTITY_TYPES)

        assert result.success is False
        assert result.error_kind == ErrorKind.INTERNAL


class TestReviewSubmission:
    """Batch review of every pending kind of one campaign"""

    @pytest.mark.asyncio
    async def test_approves_all_pending_kinds(
        self,
        submission_service,
        workflows,
        mock_canonical_repository,
        campaign_id,
        owner_id,
        reviewer_id,
    ):
        # Given: All kinds pending
        await seed_all_kinds(workflows, campaign_id, owner_id)
        await submission_service.submit_for_review(campaign_id, owner_id, ALL_ENTITY_TYPES)

        # When: Approving the campaign
        result = await submission_service.review_submission(campaign_id, reviewer_id, "approve")

        # Then: Every kind is approved and published
        assert result.success is True
        assert set(result.data.reviewed) == set(ALL_ENTITY_TYPES)
        assert all(d.status == ApprovalStatus.APPROVED for d in result.data.items)
        assert len(mock_canonical_repository.publish_calls) == 3

    @pytest.mark.asyncio
    async def test_reject_without_comment_is_refused_up_front(
        self, submission_service, workflows, campaign_id, owner_id, reviewer_id
    ):
        await seed_all_kinds(workflows, campaign_id, owner_id)
        await submission_service.submit_for_review(campaign_id, owner_id, ALL_ENTITY_TYPES)

        result = await submission_service.review_submission(campaign_id, reviewer_id, ReviewAction.REJECT)

        assert result.error_kind == ErrorKind.VALIDATION
        assert result.message == "Comment is required when rejecting"
        status = await submission_service.get_approval_status(campaign_id)
        assert all(item.status == ApprovalStatus.PENDING for item in status.data.items)

    @pytest.mark.asyncio
    async def test_invalid_action(self, submission_service, campaign_id, reviewer_id):
        result = await submission_service.review_submission(campaign_id, reviewer_id, "defer")

        assert result.error_kind == ErrorKind.VALIDATION
        assert result.message == "Invalid review action: defer"

    @pytest.mark.asyncio
    async def test_non_pending_kinds_are_skipped(
        self, submission_service, workflows, campaign_id, owner_id, reviewer_id
    ):
        # Given: Only the summary is pending
        summary = workflows[EntityType.CAMPAIGN_SUMMARY]
        created = await summary.create(campaign_id, DashboardApprovalTestDataFactory.make_summary_content(), owner_id)
        await summary.submit(created.data.id, owner_id)

        # When: Rejecting the campaign
        result = await submission_service.review_submission(
            campaign_id, reviewer_id, "reject", comment="Tone it down"
        )

        # Then: Summary rejected, others skipped
        assert result.success is True
        assert result.data.reviewed == [EntityType.CAMPAIGN_SUMMARY]
        assert result.data.items[0].comment == "Tone it down"
        assert result.data.skipped == {
            "dashboard-campaign-info": "Not pending review",
            "dashboard-socials": "Not pending review",
        }

    @pytest.mark.asyncio
    async def test_restricted_to_requested_kinds(
        self, submission_service, workflows, campaign_id, owner_id, reviewer_id
    ):
        await seed_all_kinds(workflows, campaign_id, owner_id)
        await submission_service.submit_for_review(campaign_id, owner_id, ALL_ENTITY_TYPES)

        result = await submission_service.review_submission(
            campaign_id, reviewer_id, "approve", entity_types=["campaign-info"]
        )

        assert result.data.reviewed == [EntityType.CAMPAIGN_INFO]
        socials = await workflows[EntityType.SOCIALS].get_by_campaign_id(campaign_id)
        assert socials.data.status == ApprovalStatus.PENDING


class TestApprovalStatusAndStatistics:

    @pytest.mark.asyncio
    async def test_status_reports_every_kind(
        self, submission_service, workflows, mock_canonical_repository, campaign_id, owner_id
    ):
        # Given: A pending summary, published-only socials and no info
        summary = workflows[EntityType.CAMPAIGN_SUMMARY]
        created = await summary.create(campaign_id, DashboardApprovalTestDataFactory.make_summary_content(), owner_id)
        await summary.submit(created.data.id, owner_id)
        mock_canonical_repository.seed(
            workflows[EntityType.SOCIALS].kind, campaign_id, {"twitter": "https://twitter.com/live"}
        )

        # When: Fetching the overview
        result = await submission_service.get_approval_status(campaign_id)

        # Then: One entry per kind
        items = {item.entity_type: item for item in result.data.items}
        assert set(items) == set(ALL_ENTITY_TYPES)

        assert items[EntityType.CAMPAIGN_SUMMARY].status == ApprovalStatus.PENDING
        assert items[EntityType.CAMPAIGN_SUMMARY].draft_id == created.data.id
        assert items[EntityType.CAMPAIGN_SUMMARY].status_label == "Pending Review"

        assert items[EntityType.SOCIALS].status == ApprovalStatus.APPROVED
        assert items[EntityType.SOCIALS].draft_id is None

        assert items[EntityType.CAMPAIGN_INFO].status == ApprovalStatus.DRAFT
        assert items[EntityType.CAMPAIGN_INFO].available_actions == ["edit"]
        assert items[EntityType.CAMPAIGN_INFO].draft_id is None

    @pytest.mark.asyncio
    async def test_statistics_sum_across_kinds(
        self, submission_service, workflows, owner_id, reviewer_id
    ):
        for _ in range(2):
            campaign = DashboardApprovalTestDataFactory.make_campaign_id()
            await seed_all_kinds(workflows, campaign, owner_id)
            await submission_service.submit_for_review(campaign, owner_id, ALL_ENTITY_TYPES)
        pending = await workflows[EntityType.SOCIALS].get_pending_for_review(limit=1)
        await workflows[EntityType.SOCIALS].review(pending.data.items[0].id, "approve", reviewer_id)

        result = await submission_service.get_statistics()

        assert result.data.totals.pending == 5
        assert result.data.totals.approved == 1
        assert result.data.by_entity_type["dashboard-socials"].approved == 1
        assert result.data.by_entity_type["dashboard-campaign-info"].pending == 2


class TestSaveDashboardChanges:

    @pytest.mark.asyncio
    async def test_saves_several_kinds(self, submission_service, campaign_id, owner_id):
        result = await submission_service.save_dashboard_changes(
            campaign_id,
            owner_id,
            {
                EntityType.CAMPAIGN_SUMMARY: {"summary": "New summary"},
                "dashboard-socials": {"instagram": "https://instagram.com/sun"},
            },
        )

        assert result.success is True
        assert {d.entity_type for d in result.data} == {EntityType.CAMPAIGN_SUMMARY, EntityType.SOCIALS}
        assert all(d.status == ApprovalStatus.DRAFT for d in result.data)

    @pytest.mark.asyncio
    async def test_empty_changes_are_rejected(self, submission_service, campaign_id, owner_id):
        result = await submission_service.save_dashboard_changes(campaign_id, owner_id, {})

        assert result.error_kind == ErrorKind.VALIDATION
        assert result.message == "No dashboard changes provided"

    @pytest.mark.asyncio
    async def test_first_failure_is_returned(
        self, submission_service, workflows, campaign_id, owner_id
    ):
        # Given: Socials owned by someone else
        await workflows[EntityType.SOCIALS].create(
            campaign_id, DashboardApprovalTestDataFactory.make_socials_content(), "usr_other_owner"
        )

        # When: Saving summary and socials
        result = await submission_service.save_dashboard_changes(
            campaign_id,
            owner_id,
            {
                EntityType.CAMPAIGN_SUMMARY: {"summary": "Fine"},
                EntityType.SOCIALS: {"twitter": "https://twitter.com/mine"},
            },
        )

        # Then: The unauthorized socials save fails the call
        assert result.success is False
        assert result.error_kind == ErrorKind.UNAUTHORIZED

    @pytest.mark.asyncio
    async def test_saving_rejected_kind_resubmits_it(
        self, submission_service, workflows, campaign_id, owner_id, reviewer_id
    ):
        summary = workflows[EntityType.CAMPAIGN_SUMMARY]
        created = await summary.create(campaign_id, DashboardApprovalTestDataFactory.make_summary_content(), owner_id)
        await summary.submit(created.data.id, owner_id)
        await summary.review(created.data.id, "reject", reviewer_id, "Shorter please")

        result = await submission_service.save_dashboard_changes(
            campaign_id, owner_id, {EntityType.CAMPAIGN_SUMMARY: {"summary": "Short"}}
        )

        assert result.success is True
        assert result.data[0].status == ApprovalStatus.PENDING
