"""
Component Test Fixtures for Dashboard Approval Service

Provides in-memory repositories, a recording event bus and fully wired
workflow services for component testing. Uses FastAPI TestClient with
dependency overrides for API testing.
"""

import pytest
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple
import sys
import os

# Add project root to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "../../.."))

from microservices.dashboard_approval_service.draft_repository import WORKFLOW_COLUMNS
from microservices.dashboard_approval_service.events.publishers import DashboardApprovalEventPublisher
from microservices.dashboard_approval_service.factory import create_dashboard_services
from microservices.dashboard_approval_service.protocols import (
    CanonicalPublicationError,
    DraftAlreadyExistsError,
    DuplicateApprovalError,
)
from tests.contracts.dashboard_approval.data_contract import (
    ApprovalHistoryEntry,
    ApprovalRecord,
    ApprovalStatistics,
    ApprovalStatus,
    CanonicalRecord,
    DraftEntity,
    EntityKindDescriptor,
    EntityType,
    CAMPAIGN_INFO,
    CAMPAIGN_SUMMARY,
    SOCIALS,
    DashboardApprovalTestDataFactory,
)


# ====================
# Mock Repositories
# ====================


class MockDraftRepository:
    """In-memory draft store keyed by (entity_type, draft_id)"""

    def __init__(self):
        self.drafts: Dict[Tuple[EntityType, str], DraftEntity] = {}

    async def initialize(self):
        pass

    async def close(self):
        pass

    async def health_check(self) -> bool:
        return True

    def seed(self, draft: DraftEntity) -> DraftEntity:
        self.drafts[(draft.entity_type, draft.id)] = draft.model_copy(deep=True)
        return draft

    async def create_draft(self, kind: EntityKindDescriptor, draft: DraftEntity) -> DraftEntity:
        for (entity_type, _), existing in self.drafts.items():
            if entity_type == kind.entity_type and existing.campaign_id == draft.campaign_id:
                raise DraftAlreadyExistsError(f"{kind.label} already exists for this campaign")
        self.drafts[(kind.entity_type, draft.id)] = draft.model_copy(deep=True)
        return draft.model_copy(deep=True)

    async def get_draft(self, kind: EntityKindDescriptor, draft_id: str) -> Optional[DraftEntity]:
        draft = self.drafts.get((kind.entity_type, draft_id))
        return draft.model_copy(deep=True) if draft else None

    async def get_draft_by_campaign(
        self, kind: EntityKindDescriptor, campaign_id: str
    ) -> Optional[DraftEntity]:
        for (entity_type, _), draft in self.drafts.items():
            if entity_type == kind.entity_type and draft.campaign_id == campaign_id:
                return draft.model_copy(deep=True)
        return None

    async def update_draft(
        self, kind: EntityKindDescriptor, draft_id: str, updates: Dict[str, Any]
    ) -> Optional[DraftEntity]:
        draft = self.drafts.get((kind.entity_type, draft_id))
        if not draft:
            return None

        unknown = set(updates) - set(kind.content_fields) - set(WORKFLOW_COLUMNS)
        if unknown:
            raise ValueError(f"Unknown columns: {sorted(unknown)}")

        content = dict(draft.content)
        workflow = {}
        for key, value in updates.items():
            if key in kind.content_fields:
                content[key] = value
            else:
                workflow[key] = value

        updated = draft.model_copy(
            update={**workflow, "content": content, "updated_at": datetime.now(timezone.utc)}
        )
        self.drafts[(kind.entity_type, draft_id)] = updated
        return updated.model_copy(deep=True)

    async def delete_draft(self, kind: EntityKindDescriptor, draft_id: str) -> bool:
        return self.drafts.pop((kind.entity_type, draft_id), None) is not None


class MockApprovalRepository:
    """In-memory approval store keyed by (entity_type, entity_id)"""

    def __init__(self):
        self.records: Dict[Tuple[EntityType, str], ApprovalRecord] = {}
        self.raise_duplicate_on_insert = False
        self._counter = 0

    async def initialize(self):
        pass

    async def close(self):
        pass

    def seed(self, record: ApprovalRecord) -> ApprovalRecord:
        self.records[(record.entity_type, record.entity_id)] = record
        return record

    async def find_by_entity(self, entity_type: EntityType, entity_id: str) -> Optional[ApprovalRecord]:
        return self.records.get((entity_type, entity_id))

    async def upsert_pending(
        self, entity_type: EntityType, entity_id: str, campaign_id: str, submitted_by: str
    ) -> ApprovalRecord:
        now = datetime.now(timezone.utc)
        existing = self.records.get((entity_type, entity_id))
        if existing:
            record = existing.model_copy(
                update={
                    "status": ApprovalStatus.PENDING,
                    "submitted_by": submitted_by,
                    "submitted_at": now,
                    "reviewed_by": None,
                    "reviewed_at": None,
                    "comment": None,
                    "updated_at": now,
                }
            )
        else:
            if self.raise_duplicate_on_insert:
                raise DuplicateApprovalError(
                    f"A submission for {entity_type.value} {entity_id} is already in progress"
                )
            self._counter += 1
            record = ApprovalRecord(
                approval_id=f"apr_{self._counter:08d}",
                entity_type=entity_type,
                entity_id=entity_id,
                campaign_id=campaign_id,
                status=ApprovalStatus.PENDING,
                submitted_by=submitted_by,
                submitted_at=now,
                created_at=now,
                updated_at=now,
            )
        self.records[(entity_type, entity_id)] = record
        return record

    async def review_approval(
        self,
        entity_type: EntityType,
        entity_id: str,
        status: ApprovalStatus,
        reviewed_by: str,
        comment: Optional[str] = None,
    ) -> Optional[ApprovalRecord]:
        existing = self.records.get((entity_type, entity_id))
        if not existing or existing.status != ApprovalStatus.PENDING:
            return None
        now = datetime.now(timezone.utc)
        record = existing.model_copy(
            update={
                "status": status,
                "reviewed_by": reviewed_by,
                "reviewed_at": now,
                "comment": comment,
                "updated_at": now,
            }
        )
        self.records[(entity_type, entity_id)] = record
        return record

    async def find_by_status(
        self,
        status: ApprovalStatus,
        entity_type: Optional[EntityType] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> List[ApprovalRecord]:
        results = [
            r for r in self.records.values()
            if r.status == status and (entity_type is None or r.entity_type == entity_type)
        ]
        results.sort(key=lambda r: r.submitted_at or datetime.min.replace(tzinfo=timezone.utc))
        return results[offset:offset + limit]

    async def find_by_submitted_by(
        self, user_id: str, entity_type: Optional[EntityType] = None
    ) -> List[ApprovalRecord]:
        return [
            r for r in self.records.values()
            if r.submitted_by == user_id and (entity_type is None or r.entity_type == entity_type)
        ]

    async def has_pending_approval(self, entity_type: EntityType, entity_id: str) -> bool:
        record = self.records.get((entity_type, entity_id))
        return record is not None and record.status == ApprovalStatus.PENDING

    async def get_statistics(self, entity_type: Optional[EntityType] = None) -> ApprovalStatistics:
        records = [
            r for r in self.records.values()
            if entity_type is None or r.entity_type == entity_type
        ]
        return ApprovalStatistics(
            pending=sum(1 for r in records if r.status == ApprovalStatus.PENDING),
            approved=sum(1 for r in records if r.status == ApprovalStatus.APPROVED),
            rejected=sum(1 for r in records if r.status == ApprovalStatus.REJECTED),
        )

    async def delete_by_entity(self, entity_type: EntityType, entity_id: str) -> bool:
        return self.records.pop((entity_type, entity_id), None) is not None


class MockHistoryRepository:
    """In-memory append-only history"""

    def __init__(self):
        self.entries: List[ApprovalHistoryEntry] = []

    async def initialize(self):
        pass

    async def record_entry(self, entry: ApprovalHistoryEntry) -> ApprovalHistoryEntry:
        self.entries.append(entry)
        return entry

    async def list_for_entity(
        self, entity_type: EntityType, entity_id: str, limit: int = 50
    ) -> List[ApprovalHistoryEntry]:
        matching = [
            e for e in self.entries
            if e.entity_type == entity_type and e.entity_id == entity_id
        ]
        return list(reversed(matching))[:limit]

    async def list_for_campaign(self, campaign_id: str, limit: int = 100) -> List[ApprovalHistoryEntry]:
        return list(reversed([e for e in self.entries if e.campaign_id == campaign_id]))[:limit]


class MockCanonicalRepository:
    """In-memory canonical rows keyed by (entity_type, campaign_id)"""

    def __init__(self):
        self.rows: Dict[Tuple[EntityType, str], Dict[str, Any]] = {}
        self.slugs: Dict[str, str] = {}
        self.fail_publish = False
        self.publish_calls: List[Tuple[EntityType, str, Dict[str, Any]]] = []

    def seed(self, kind: EntityKindDescriptor, campaign_id: str, row: Dict[str, Any]) -> None:
        self.rows[(kind.entity_type, campaign_id)] = dict(row)

    async def publish(
        self, kind: EntityKindDescriptor, campaign_id: str, content: Dict[str, Any]
    ) -> CanonicalRecord:
        self.publish_calls.append((kind.entity_type, campaign_id, dict(content)))
        if self.fail_publish:
            raise CanonicalPublicationError(f"Campaign {campaign_id} not found")
        row = kind.to_canonical(content)
        self.rows[(kind.entity_type, campaign_id)] = row
        return CanonicalRecord(
            campaign_id=campaign_id,
            entity_type=kind.entity_type,
            content=kind.from_canonical(row),
            updated_at=datetime.now(timezone.utc),
        )

    async def get_canonical(
        self, kind: EntityKindDescriptor, campaign_id: str
    ) -> Optional[CanonicalRecord]:
        row = self.rows.get((kind.entity_type, campaign_id))
        if not row:
            return None
        return CanonicalRecord(
            campaign_id=campaign_id,
            entity_type=kind.entity_type,
            content=kind.from_canonical(row),
        )

    async def get_campaign_id_by_slug(self, slug: str) -> Optional[str]:
        return self.slugs.get(slug)


# ====================
# Mock Event Bus
# ====================


class MockEventBus:
    """Mock NATS event bus recording published events"""

    def __init__(self):
        self.published_events: List[Any] = []
        self.fail_publish = False
        self._connected = True

    async def publish_event(self, event) -> bool:
        if self.fail_publish:
            raise ConnectionError("NATS unavailable")
        self.published_events.append(event)
        return True

    async def close(self):
        self._connected = False

    @property
    def is_connected(self) -> bool:
        return self._connected

    def get_events_by_type(self, event_type: str) -> List[Any]:
        return [e for e in self.published_events if e.type == event_type]

    def clear_events(self):
        self.published_events.clear()


# ====================
# Fixtures
# ====================


@pytest.fixture
def mock_draft_repository():
    return MockDraftRepository()


@pytest.fixture
def mock_approval_repository():
    return MockApprovalRepository()


@pytest.fixture
def mock_history_repository():
    return MockHistoryRepository()


@pytest.fixture
def mock_canonical_repository():
    return MockCanonicalRepository()


@pytest.fixture
def mock_event_bus():
    return MockEventBus()


@pytest.fixture
def event_publisher(mock_event_bus):
    return DashboardApprovalEventPublisher(mock_event_bus)


@pytest.fixture
def services(
    mock_draft_repository,
    mock_approval_repository,
    mock_canonical_repository,
    mock_history_repository,
    event_publisher,
):
    """Workflow coordinators keyed by entity type plus the submission service"""
    return create_dashboard_services(
        draft_repository=mock_draft_repository,
        approval_repository=mock_approval_repository,
        canonical_repository=mock_canonical_repository,
        history_repository=mock_history_repository,
        event_publisher=event_publisher,
    )


@pytest.fixture
def workflows(services):
    return services[0]


@pytest.fixture
def submission_service(services):
    return services[1]


@pytest.fixture
def summary_workflow(workflows):
    return workflows[EntityType.CAMPAIGN_SUMMARY]


@pytest.fixture
def info_workflow(workflows):
    return workflows[EntityType.CAMPAIGN_INFO]


@pytest.fixture
def socials_workflow(workflows):
    return workflows[EntityType.SOCIALS]


@pytest.fixture
def factory():
    return DashboardApprovalTestDataFactory


@pytest.fixture
def owner_id():
    return DashboardApprovalTestDataFactory.make_user_id()


@pytest.fixture
def reviewer_id():
    return "usr_reviewer_admin"


@pytest.fixture
def campaign_id():
    return DashboardApprovalTestDataFactory.make_campaign_id()


@pytest.fixture
def client(workflows, submission_service):
    """FastAPI test client with workflow dependencies overridden"""
    from fastapi.testclient import TestClient
    from microservices.dashboard_approval_service import main

    main.app.dependency_overrides[main.get_workflows] = lambda: workflows
    main.app.dependency_overrides[main.get_submission_service] = lambda: submission_service

    # No context manager: the lifespan (database connection) is not started
    test_client = TestClient(main.app, raise_server_exceptions=False)
    yield test_client

    main.app.dependency_overrides = {}


@pytest.fixture
def admin_headers(reviewer_id):
    return {"X-User-ID": reviewer_id, "X-User-Role": "admin"}


@pytest.fixture
def owner_headers(owner_id):
    return {"X-User-ID": owner_id, "X-User-Role": "user"}
