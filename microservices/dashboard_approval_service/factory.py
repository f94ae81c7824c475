"""
Dashboard Approval Service Factory

Factory for creating dashboard approval service instances with proper
dependency injection.
"""

import logging
from typing import Dict, Optional, Tuple

from core.config import AppConfig, get_settings
from core.nats_client import NATSEventBus
from core.postgres_client import AsyncPostgresClient

from .approval_repository import ApprovalRepository
from .canonical_repository import CanonicalRepository
from .draft_repository import DraftRepository
from .entity_kinds import ENTITY_KINDS
from .events.publishers import DashboardApprovalEventPublisher
from .history_repository import ApprovalHistoryRepository
from .models import EntityType
from .protocols import (
    ApprovalHistoryRepositoryProtocol,
    ApprovalRepositoryProtocol,
    CanonicalRepositoryProtocol,
    DraftRepositoryProtocol,
)
from .submission_service import DashboardSubmissionService
from .workflow_service import DashboardWorkflowService

logger = logging.getLogger(__name__)


def create_dashboard_services(
    draft_repository: DraftRepositoryProtocol,
    approval_repository: ApprovalRepositoryProtocol,
    canonical_repository: CanonicalRepositoryProtocol,
    history_repository: Optional[ApprovalHistoryRepositoryProtocol] = None,
    event_publisher: Optional[DashboardApprovalEventPublisher] = None,
) -> Tuple[Dict[EntityType, DashboardWorkflowService], DashboardSubmissionService]:
    """Build one workflow coordinator per entity kind plus the submission service"""
    workflows = {
        entity_type: DashboardWorkflowService(
            kind=kind,
            draft_repository=draft_repository,
            approval_repository=approval_repository,
            canonical_repository=canonical_repository,
            history_repository=history_repository,
            event_publisher=event_publisher,
        )
        for entity_type, kind in ENTITY_KINDS.items()
    }
    submission_service = DashboardSubmissionService(
        workflows=workflows,
        event_publisher=event_publisher,
    )
    return workflows, submission_service


class DashboardApprovalServiceFactory:
    """Factory for creating dashboard approval service components"""

    def __init__(self, config: Optional[AppConfig] = None):
        self.config = config or get_settings()
        self._db: Optional[AsyncPostgresClient] = None
        self._draft_repository: Optional[DraftRepository] = None
        self._approval_repository: Optional[ApprovalRepository] = None
        self._history_repository: Optional[ApprovalHistoryRepository] = None
        self._canonical_repository: Optional[CanonicalRepository] = None
        self._nats_client: Optional[NATSEventBus] = None
        self._event_publisher: Optional[DashboardApprovalEventPublisher] = None
        self._workflows: Optional[Dict[EntityType, DashboardWorkflowService]] = None
        self._submission_service: Optional[DashboardSubmissionService] = None

    async def initialize(self) -> None:
        """Initialize all components"""
        logger.info("Initializing Dashboard Approval Service components...")
        service = self.config.service

        # Initialize database and repositories
        self._db = AsyncPostgresClient(
            service_name=service.service_name,
            config=self.config.infrastructure,
        )
        await self._db.initialize()

        self._draft_repository = DraftRepository(self._db, schema=service.db_schema)
        self._approval_repository = ApprovalRepository(self._db, schema=service.db_schema)
        self._history_repository = ApprovalHistoryRepository(self._db, schema=service.db_schema)
        self._canonical_repository = CanonicalRepository(self._db, schema=service.canonical_schema)

        await self._draft_repository.initialize()
        await self._approval_repository.initialize()
        await self._history_repository.initialize()

        # Initialize NATS client
        if self.config.infrastructure.nats_enabled:
            try:
                self._nats_client = NATSEventBus(
                    service_name=service.service_name,
                    config=self.config.infrastructure,
                )
                await self._nats_client.connect()
                logger.info("NATS client connected")
            except Exception as e:
                logger.warning(f"NATS client initialization failed: {e}")
                self._nats_client = None
        else:
            logger.info("NATS disabled, events will not be published")

        self._event_publisher = DashboardApprovalEventPublisher(self._nats_client)

        # Initialize services
        self._workflows, self._submission_service = create_dashboard_services(
            draft_repository=self._draft_repository,
            approval_repository=self._approval_repository,
            canonical_repository=self._canonical_repository,
            history_repository=self._history_repository,
            event_publisher=self._event_publisher,
        )

        logger.info("Dashboard Approval Service components initialized")

    async def close(self) -> None:
        """Close all components"""
        logger.info("Closing Dashboard Approval Service components...")

        if self._nats_client:
            await self._nats_client.close()

        if self._draft_repository:
            await self._draft_repository.close()

        if self._approval_repository:
            await self._approval_repository.close()

        if self._db:
            await self._db.close()

        logger.info("Dashboard Approval Service components closed")

    async def health_check(self) -> bool:
        """Check database health"""
        if not self._db:
            return False
        return await self._db.health_check()

    @property
    def workflows(self) -> Dict[EntityType, DashboardWorkflowService]:
        """Get workflow coordinators keyed by entity type"""
        if not self._workflows:
            raise RuntimeError("Factory not initialized. Call initialize() first.")
        return self._workflows

    @property
    def submission_service(self) -> DashboardSubmissionService:
        """Get submission service"""
        if not self._submission_service:
            raise RuntimeError("Factory not initialized. Call initialize() first.")
        return self._submission_service

    @property
    def nats_client(self) -> Optional[NATSEventBus]:
        """Get NATS client"""
        return self._nats_client

    @property
    def event_publisher(self) -> Optional[DashboardApprovalEventPublisher]:
        """Get event publisher"""
        return self._event_publisher


__all__ = [
    "DashboardApprovalServiceFactory",
    "create_dashboard_services",
]
