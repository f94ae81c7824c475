"""
Dashboard Approval Service Protocols

Defines interfaces for dependency injection and testing.
Following the protocol-based architecture pattern.
"""

from typing import TYPE_CHECKING, Any, Dict, List, Optional, Protocol

from .models import (
    ApprovalHistoryEntry,
    ApprovalRecord,
    ApprovalStatistics,
    ApprovalStatus,
    CanonicalRecord,
    DraftEntity,
    EntityType,
    ErrorKind,
)

if TYPE_CHECKING:
    from .entity_kinds import EntityKindDescriptor


# ====================
# Repository Protocols
# ====================


class DraftRepositoryProtocol(Protocol):
    """Protocol for the draft entity store (one table per entity kind)"""

    async def initialize(self) -> None:
        ...

    async def close(self) -> None:
        ...

    async def health_check(self) -> bool:
        ...

    async def create_draft(self, kind: "EntityKindDescriptor", draft: DraftEntity) -> DraftEntity:
        """Insert a draft; raises DraftAlreadyExistsError on a duplicate campaign"""
        ...

    async def get_draft(self, kind: "EntityKindDescriptor", draft_id: str) -> Optional[DraftEntity]:
        ...

    async def get_draft_by_campaign(
        self, kind: "EntityKindDescriptor", campaign_id: str
    ) -> Optional[DraftEntity]:
        ...

    async def update_draft(
        self, kind: "EntityKindDescriptor", draft_id: str, updates: Dict[str, Any]
    ) -> Optional[DraftEntity]:
        """Apply content and workflow column updates; refreshes updated_at"""
        ...

    async def delete_draft(self, kind: "EntityKindDescriptor", draft_id: str) -> bool:
        ...


class ApprovalRepositoryProtocol(Protocol):
    """Protocol for the approval record store"""

    async def initialize(self) -> None:
        ...

    async def close(self) -> None:
        ...

    async def find_by_entity(
        self, entity_type: EntityType, entity_id: str
    ) -> Optional[ApprovalRecord]:
        ...

    async def upsert_pending(
        self,
        entity_type: EntityType,
        entity_id: str,
        campaign_id: str,
        submitted_by: str,
    ) -> ApprovalRecord:
        """Open (or re-open) the approval record as pending, clearing review fields"""
        ...

    async def review_approval(
        self,
        entity_type: EntityType,
        entity_id: str,
        status: ApprovalStatus,
        reviewed_by: str,
        comment: Optional[str] = None,
    ) -> Optional[ApprovalRecord]:
        """Record a decision; returns None unless the record was pending"""
        ...

    async def find_by_status(
        self,
        status: ApprovalStatus,
        entity_type: Optional[EntityType] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> List[ApprovalRecord]:
        """Records in a status, oldest submission first"""
        ...

    async def find_by_submitted_by(
        self, user_id: str, entity_type: Optional[EntityType] = None
    ) -> List[ApprovalRecord]:
        ...

    async def has_pending_approval(self, entity_type: EntityType, entity_id: str) -> bool:
        ...

    async def get_statistics(self, entity_type: Optional[EntityType] = None) -> ApprovalStatistics:
        ...

    async def delete_by_entity(self, entity_type: EntityType, entity_id: str) -> bool:
        ...


class ApprovalHistoryRepositoryProtocol(Protocol):
    """Protocol for the append-only approval history"""

    async def initialize(self) -> None:
        ...

    async def record_entry(self, entry: ApprovalHistoryEntry) -> ApprovalHistoryEntry:
        ...

    async def list_for_entity(
        self, entity_type: EntityType, entity_id: str, limit: int = 50
    ) -> List[ApprovalHistoryEntry]:
        """Newest first"""
        ...

    async def list_for_campaign(self, campaign_id: str, limit: int = 100) -> List[ApprovalHistoryEntry]:
        ...


class CanonicalRepositoryProtocol(Protocol):
    """Protocol for the public (canonical) campaign tables"""

    async def publish(
        self, kind: "EntityKindDescriptor", campaign_id: str, content: Dict[str, Any]
    ) -> CanonicalRecord:
        """Copy approved content into the canonical tables in one transaction"""
        ...

    async def get_canonical(
        self, kind: "EntityKindDescriptor", campaign_id: str
    ) -> Optional[CanonicalRecord]:
        ...

    async def get_campaign_id_by_slug(self, slug: str) -> Optional[str]:
        ...


# ====================
# Custom Exceptions
# ====================


class DashboardApprovalError(Exception):
    """Base exception for dashboard approval errors"""
    kind: ErrorKind = ErrorKind.INTERNAL


class DraftNotFoundError(DashboardApprovalError):
    """Raised when a draft (or its campaign) is not found"""
    kind = ErrorKind.NOT_FOUND


class DraftAlreadyExistsError(DashboardApprovalError):
    """Raised when a campaign already has a draft of this kind"""
    kind = ErrorKind.CONFLICT


class DuplicateApprovalError(DashboardApprovalError):
    """Raised when a concurrent submission won the approval record insert"""
    kind = ErrorKind.CONFLICT


class InvalidApprovalStateError(DashboardApprovalError):
    """Raised when a draft is in an invalid status for the operation"""
    kind = ErrorKind.CONFLICT

    def __init__(self, message: str, current_status: Optional[ApprovalStatus] = None):
        super().__init__(message)
        self.current_status = current_status


class ApprovalValidationError(DashboardApprovalError):
    """Raised when input fails a business validation rule"""
    kind = ErrorKind.VALIDATION

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class UnauthorizedEditorError(DashboardApprovalError):
    """Raised when the caller is not the draft's original submitter"""
    kind = ErrorKind.UNAUTHORIZED


class CanonicalPublicationError(DashboardApprovalError):
    """Raised when approved content cannot be copied to the canonical tables"""
    kind = ErrorKind.INTERNAL


__all__ = [
    "DraftRepositoryProtocol",
    "ApprovalRepositoryProtocol",
    "ApprovalHistoryRepositoryProtocol",
    "CanonicalRepositoryProtocol",
    "DashboardApprovalError",
    "DraftNotFoundError",
    "DraftAlreadyExistsError",
    "DuplicateApprovalError",
    "InvalidApprovalStateError",
    "ApprovalValidationError",
    "UnauthorizedEditorError",
    "CanonicalPublicationError",
]
