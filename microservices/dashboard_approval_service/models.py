"""
Dashboard Approval Service Data Models

Domain models, enums and request/response structures for the dashboard
content approval workflow.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Generic, List, Optional, TypeVar

from pydantic import BaseModel, Field, field_validator


# =============================================================================
# ENUMS
# =============================================================================

class ApprovalStatus(str, Enum):
    """Workflow status shared by draft entities and approval records.

    DRAFT only ever appears on draft entities: it means the entity has never
    been submitted and no approval record exists for it.
    """
    DRAFT = "draft"
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class EntityType(str, Enum):
    """Draftable dashboard content kinds"""
    CAMPAIGN_INFO = "dashboard-campaign-info"
    CAMPAIGN_SUMMARY = "dashboard-campaign-summary"
    SOCIALS = "dashboard-socials"


class ReviewAction(str, Enum):
    """Reviewer decision"""
    APPROVE = "approve"
    REJECT = "reject"


class ErrorKind(str, Enum):
    """Failure category carried by every unsuccessful workflow result"""
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    VALIDATION = "validation"
    UNAUTHORIZED = "unauthorized"
    INTERNAL = "internal"


# =============================================================================
# STATUS RULES
# =============================================================================

VALID_STATUS_TRANSITIONS: Dict[ApprovalStatus, List[ApprovalStatus]] = {
    ApprovalStatus.DRAFT: [ApprovalStatus.PENDING],
    ApprovalStatus.PENDING: [ApprovalStatus.APPROVED, ApprovalStatus.REJECTED],
    ApprovalStatus.REJECTED: [ApprovalStatus.PENDING],
    ApprovalStatus.APPROVED: [],  # Terminal state
}

STATUS_LABELS: Dict[ApprovalStatus, str] = {
    ApprovalStatus.DRAFT: "Draft",
    ApprovalStatus.PENDING: "Pending Review",
    ApprovalStatus.APPROVED: "Approved",
    ApprovalStatus.REJECTED: "Rejected",
}

AVAILABLE_ACTIONS: Dict[ApprovalStatus, List[str]] = {
    ApprovalStatus.DRAFT: ["submit", "edit", "delete"],
    ApprovalStatus.PENDING: ["approve", "reject", "edit"],
    ApprovalStatus.REJECTED: ["resubmit", "edit", "delete"],
    ApprovalStatus.APPROVED: [],
}

EDITABLE_STATUSES = (ApprovalStatus.DRAFT, ApprovalStatus.PENDING, ApprovalStatus.REJECTED)


def can_transition(current: ApprovalStatus, target: ApprovalStatus) -> bool:
    """Check if a status transition is allowed"""
    return target in VALID_STATUS_TRANSITIONS.get(current, [])


def get_status_label(status: ApprovalStatus) -> str:
    """Human readable label for a status"""
    return STATUS_LABELS.get(status, status.value)


def get_available_actions(status: ApprovalStatus) -> List[str]:
    """Actions a client may offer for an entity in the given status"""
    return list(AVAILABLE_ACTIONS.get(status, []))


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# =============================================================================
# CONTENT MODELS (one per entity kind)
# =============================================================================

class CampaignInfoContent(BaseModel):
    """Extended campaign info editable from the dashboard"""
    model_config = {"extra": "forbid"}

    milestones: Optional[str] = Field(None, description="Serialized milestone list")
    investor_pitch: Optional[str] = None
    is_show_pitch: Optional[bool] = None
    investor_pitch_title: Optional[str] = Field(None, max_length=255)


class CampaignSummaryContent(BaseModel):
    """Campaign summary editable from the dashboard"""
    model_config = {"extra": "forbid"}

    summary: Optional[str] = None
    tag_line: Optional[str] = Field(None, max_length=255)


class SocialsContent(BaseModel):
    """Issuer social links editable from the dashboard"""
    model_config = {"extra": "forbid"}

    linked_in: Optional[str] = Field(None, max_length=500)
    twitter: Optional[str] = Field(None, max_length=500)
    instagram: Optional[str] = Field(None, max_length=500)
    facebook: Optional[str] = Field(None, max_length=500)
    tiktok: Optional[str] = Field(None, max_length=500)
    yelp: Optional[str] = Field(None, max_length=500)


# =============================================================================
# CORE MODELS
# =============================================================================

class DraftEntity(BaseModel):
    """Campaign-scoped dashboard content awaiting or past review"""
    model_config = {"from_attributes": True}

    id: str
    campaign_id: str
    entity_type: EntityType
    content: Dict[str, Any] = Field(default_factory=dict)
    status: ApprovalStatus = ApprovalStatus.DRAFT

    # Workflow fields
    submitted_by: Optional[str] = None
    submitted_at: Optional[datetime] = None
    reviewed_by: Optional[str] = None
    reviewed_at: Optional[datetime] = None
    comment: Optional[str] = None

    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    # True when synthesized from published data because no draft exists
    is_fallback: bool = False

    @property
    def status_label(self) -> str:
        return get_status_label(self.status)

    @property
    def available_actions(self) -> List[str]:
        return get_available_actions(self.status)

    def is_editable_by(self, user_id: str) -> bool:
        return self.status in EDITABLE_STATUSES and self.submitted_by == user_id


class ApprovalRecord(BaseModel):
    """Review tracking row for one (entity_type, entity_id) pair"""
    model_config = {"from_attributes": True}

    approval_id: str
    entity_type: EntityType
    entity_id: str
    campaign_id: str
    status: ApprovalStatus = ApprovalStatus.PENDING

    submitted_by: Optional[str] = None
    submitted_at: Optional[datetime] = None
    reviewed_by: Optional[str] = None
    reviewed_at: Optional[datetime] = None
    comment: Optional[str] = None

    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("status")
    @classmethod
    def validate_status(cls, v):
        if v == ApprovalStatus.DRAFT:
            raise ValueError("Approval records cannot be in draft status")
        return v


class ApprovalHistoryEntry(BaseModel):
    """Append-only audit row written on every submit and review"""
    model_config = {"from_attributes": True}

    history_id: str
    entity_type: EntityType
    entity_id: str
    campaign_id: str
    status: ApprovalStatus
    user_id: str
    comment: Optional[str] = None
    created_at: datetime = Field(default_factory=_utcnow)


class CanonicalRecord(BaseModel):
    """Published copy of approved dashboard content"""
    model_config = {"from_attributes": True}

    campaign_id: str
    entity_type: EntityType
    content: Dict[str, Any] = Field(default_factory=dict)
    updated_at: Optional[datetime] = None


class ApprovalStatistics(BaseModel):
    """Approval record counts by status"""
    pending: int = 0
    approved: int = 0
    rejected: int = 0

    @property
    def total(self) -> int:
        return self.pending + self.approved + self.rejected

    def __add__(self, other: "ApprovalStatistics") -> "ApprovalStatistics":
        return ApprovalStatistics(
            pending=self.pending + other.pending,
            approved=self.approved + other.approved,
            rejected=self.rejected + other.rejected,
        )


# =============================================================================
# WORKFLOW RESULTS
# =============================================================================

T = TypeVar("T")


class WorkflowError(BaseModel):
    """Failure detail of a workflow operation"""
    kind: ErrorKind
    message: str


class WorkflowResult(BaseModel, Generic[T]):
    """Tagged success/failure value returned by every workflow operation"""
    success: bool
    data: Optional[T] = None
    error: Optional[WorkflowError] = None

    @classmethod
    def ok(cls, data: Optional[T] = None) -> "WorkflowResult[T]":
        return cls(success=True, data=data)

    @classmethod
    def failure(cls, kind: ErrorKind, message: str) -> "WorkflowResult[T]":
        return cls(success=False, error=WorkflowError(kind=kind, message=message))

    @property
    def error_kind(self) -> Optional[ErrorKind]:
        return self.error.kind if self.error else None

    @property
    def message(self) -> Optional[str]:
        return self.error.message if self.error else None


class DraftListResult(BaseModel):
    """Drafts joined from approval records.

    skipped_entity_ids lists approval records whose draft could not be
    loaded; the listing still succeeds.
    """
    items: List[DraftEntity] = Field(default_factory=list)
    skipped_entity_ids: List[str] = Field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.items)


class SubmissionResult(BaseModel):
    """Outcome of a per-campaign batch submission"""
    submission_id: str
    campaign_id: str
    submitted: List[EntityType] = Field(default_factory=list)
    skipped: Dict[str, str] = Field(default_factory=dict)
    items: List[DraftEntity] = Field(default_factory=list)
    note: Optional[str] = None


class SubmissionReviewResult(BaseModel):
    """Outcome of a per-campaign batch review"""
    campaign_id: str
    action: ReviewAction
    reviewed: List[EntityType] = Field(default_factory=list)
    skipped: Dict[str, str] = Field(default_factory=dict)
    items: List[DraftEntity] = Field(default_factory=list)


class EntityApprovalStatus(BaseModel):
    """Status of one entity kind for a campaign"""
    entity_type: EntityType
    draft_id: Optional[str] = None
    status: ApprovalStatus = ApprovalStatus.DRAFT
    status_label: str = STATUS_LABELS[ApprovalStatus.DRAFT]
    available_actions: List[str] = Field(default_factory=list)
    submitted_at: Optional[datetime] = None
    reviewed_at: Optional[datetime] = None
    comment: Optional[str] = None


class CampaignApprovalStatus(BaseModel):
    """Per-kind approval overview of a campaign"""
    campaign_id: str
    items: List[EntityApprovalStatus] = Field(default_factory=list)


class OverallStatistics(BaseModel):
    """Approval counts across all entity kinds"""
    totals: ApprovalStatistics = Field(default_factory=ApprovalStatistics)
    by_entity_type: Dict[str, ApprovalStatistics] = Field(default_factory=dict)


# =============================================================================
# REQUEST MODELS
# =============================================================================

class DraftCreateRequest(BaseModel):
    """Create (or upsert) a draft for a campaign"""
    campaign_id: str = Field(..., min_length=1, max_length=100)
    content: Dict[str, Any] = Field(default_factory=dict)


class DraftUpdateRequest(BaseModel):
    """Partial content update; omitted fields keep their value"""
    content: Dict[str, Any] = Field(default_factory=dict)


class ReviewRequest(BaseModel):
    """Reviewer decision on a pending draft"""
    action: ReviewAction
    comment: Optional[str] = Field(None, max_length=2000)


class SubmissionRequest(BaseModel):
    """Submit several entity kinds of one campaign for review"""
    campaign_id: str = Field(..., min_length=1, max_length=100)
    entity_types: List[str] = Field(..., min_length=1)
    note: Optional[str] = Field(None, max_length=2000)


class SubmissionReviewRequest(BaseModel):
    """Review every pending entity kind of a campaign at once"""
    action: ReviewAction
    comment: Optional[str] = Field(None, max_length=2000)
    entity_types: Optional[List[str]] = Field(None, description="Defaults to all kinds")


class SaveChangesRequest(BaseModel):
    """Save dashboard edits across kinds in one call"""
    campaign_id: str = Field(..., min_length=1, max_length=100)
    campaign_info: Optional[Dict[str, Any]] = None
    campaign_summary: Optional[Dict[str, Any]] = None
    socials: Optional[Dict[str, Any]] = None

    def changes(self) -> Dict[EntityType, Dict[str, Any]]:
        mapping = {
            EntityType.CAMPAIGN_INFO: self.campaign_info,
            EntityType.CAMPAIGN_SUMMARY: self.campaign_summary,
            EntityType.SOCIALS: self.socials,
        }
        return {k: v for k, v in mapping.items() if v is not None}


# =============================================================================
# RESPONSE MODELS
# =============================================================================

class DraftResponse(BaseModel):
    """Single draft response"""
    draft: Optional[DraftEntity] = None
    status_label: Optional[str] = None
    available_actions: List[str] = Field(default_factory=list)
    message: Optional[str] = None

    @classmethod
    def from_draft(cls, draft: Optional[DraftEntity], message: Optional[str] = None) -> "DraftResponse":
        if draft is None:
            return cls(message=message or "No content for this campaign")
        return cls(
            draft=draft,
            status_label=draft.status_label,
            available_actions=draft.available_actions,
            message=message,
        )


class DraftListResponse(BaseModel):
    """List of drafts"""
    items: List[DraftEntity] = Field(default_factory=list)
    total: int = 0
    skipped_entity_ids: List[str] = Field(default_factory=list)


class HistoryResponse(BaseModel):
    """Approval history of a draft"""
    entries: List[ApprovalHistoryEntry] = Field(default_factory=list)
    total: int = 0


class HealthResponse(BaseModel):
    """Health check response"""
    status: str
    service: str
    port: int
    version: str
    dependencies: Dict[str, str] = Field(default_factory=dict)


class ReadinessResponse(BaseModel):
    """Readiness check response"""
    ready: bool
    checks: Dict[str, bool] = Field(default_factory=dict)
    details: Dict[str, str] = Field(default_factory=dict)


class LivenessResponse(BaseModel):
    """Liveness check response"""
    alive: bool
    uptime_seconds: float


__all__ = [
    # Enums
    "ApprovalStatus",
    "EntityType",
    "ReviewAction",
    "ErrorKind",
    # Status rules
    "VALID_STATUS_TRANSITIONS",
    "STATUS_LABELS",
    "AVAILABLE_ACTIONS",
    "EDITABLE_STATUSES",
    "can_transition",
    "get_status_label",
    "get_available_actions",
    # Content
    "CampaignInfoContent",
    "CampaignSummaryContent",
    "SocialsContent",
    # Core
    "DraftEntity",
    "ApprovalRecord",
    "ApprovalHistoryEntry",
    "CanonicalRecord",
    "ApprovalStatistics",
    # Results
    "WorkflowError",
    "WorkflowResult",
    "DraftListResult",
    "SubmissionResult",
    "SubmissionReviewResult",
    "EntityApprovalStatus",
    "CampaignApprovalStatus",
    "OverallStatistics",
    # Requests
    "DraftCreateRequest",
    "DraftUpdateRequest",
    "ReviewRequest",
    "SubmissionRequest",
    "SubmissionReviewRequest",
    "SaveChangesRequest",
    # Responses
    "DraftResponse",
    "DraftListResponse",
    "HistoryResponse",
    "HealthResponse",
    "ReadinessResponse",
    "LivenessResponse",
]
