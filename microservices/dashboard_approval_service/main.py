"""
Dashboard Approval Service Main Application

FastAPI application for the dashboard content approval workflow.
Port: 8260
"""

import logging
import time
from contextlib import asynccontextmanager
from typing import Dict, Optional

from fastapi import Depends, FastAPI, HTTPException, Query, Request, status
from fastapi.responses import JSONResponse

from core.config import get_settings, setup_logging

from .entity_kinds import KINDS_BY_PATH
from .factory import DashboardApprovalServiceFactory
from .models import (
    ApprovalStatistics,
    CampaignApprovalStatus,
    DraftCreateRequest,
    DraftListResponse,
    DraftResponse,
    DraftUpdateRequest,
    EntityType,
    ErrorKind,
    HealthResponse,
    HistoryResponse,
    LivenessResponse,
    OverallStatistics,
    ReadinessResponse,
    ReviewRequest,
    SaveChangesRequest,
    SubmissionRequest,
    SubmissionResult,
    SubmissionReviewRequest,
    SubmissionReviewResult,
    WorkflowResult,
)
from .protocols import DashboardApprovalError
from .routes_registry import SERVICE_METADATA, get_routes_metadata
from .submission_service import DashboardSubmissionService
from .workflow_service import DashboardWorkflowService

settings = get_settings()
setup_logging(settings.logging)
logger = logging.getLogger(__name__)

# Service configuration
SERVICE_NAME = settings.service.service_name
SERVICE_PORT = settings.service.service_port
SERVICE_VERSION = settings.service.service_version
ADMIN_ROLE = settings.service.admin_role

ERROR_STATUS_CODES: Dict[ErrorKind, int] = {
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.CONFLICT: status.HTTP_409_CONFLICT,
    ErrorKind.VALIDATION: status.HTTP_400_BAD_REQUEST,
    ErrorKind.UNAUTHORIZED: status.HTTP_403_FORBIDDEN,
    ErrorKind.INTERNAL: status.HTTP_500_INTERNAL_SERVER_ERROR,
}

# Track startup time for uptime calculation
startup_time = time.time()

# Global factory instance
factory: Optional[DashboardApprovalServiceFactory] = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager"""
    global factory

    logger.info(f"Starting {SERVICE_NAME} on port {SERVICE_PORT}")

    factory = DashboardApprovalServiceFactory(settings)
    await factory.initialize()

    yield

    logger.info(f"Shutting down {SERVICE_NAME}")
    await factory.close()
    factory = None


app = FastAPI(
    title="Dashboard Approval Service",
    description="Draft, submission and review workflow for dashboard-editable campaign content",
    version=SERVICE_VERSION,
    lifespan=lifespan,
)


# ====================
# Exception Handlers
# ====================


@app.exception_handler(DashboardApprovalError)
async def dashboard_error_handler(request: Request, exc: DashboardApprovalError):
    return JSONResponse(
        status_code=ERROR_STATUS_CODES[exc.kind],
        content={"detail": str(exc), "error_code": exc.kind.value},
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled exception on {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": str(exc), "error_code": ErrorKind.INTERNAL.value},
    )


def unwrap(result: WorkflowResult):
    """Return the result data or raise the HTTP error matching its ErrorKind"""
    if result.success:
        return result.data
    raise HTTPException(
        status_code=ERROR_STATUS_CODES[result.error_kind],
        detail=result.message,
    )


# ====================
# Dependencies
# ====================


def get_service_factory() -> DashboardApprovalServiceFactory:
    """Get the initialized factory"""
    if not factory:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Service not initialized",
        )
    return factory


def get_workflows(
    service_factory: DashboardApprovalServiceFactory = Depends(get_service_factory),
) -> Dict[EntityType, DashboardWorkflowService]:
    return service_factory.workflows


def get_submission_service(
    service_factory: DashboardApprovalServiceFactory = Depends(get_service_factory),
) -> DashboardSubmissionService:
    return service_factory.submission_service


def get_workflow(
    kind: str,
    workflows: Dict[EntityType, DashboardWorkflowService] = Depends(get_workflows),
) -> DashboardWorkflowService:
    """Resolve the {kind} path segment to its workflow coordinator"""
    descriptor = KINDS_BY_PATH.get(kind)
    if descriptor is None or descriptor.entity_type not in workflows:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Unknown dashboard content kind: {kind}",
        )
    return workflows[descriptor.entity_type]


def get_auth_context(request: Request) -> dict:
    """Extract auth context from request headers"""
    return {
        "user_id": request.headers.get("X-User-ID", "system"),
        "role": request.headers.get("X-User-Role", "user"),
    }


def require_admin(auth: dict = Depends(get_auth_context)) -> dict:
    if auth["role"] != ADMIN_ROLE:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required",
        )
    return auth


# ====================
# Health Endpoints
# ====================


@app.get("/api/v1/dashboard/health")
@app.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check():
    """Health check endpoint"""
    dependencies = {}

    if factory:
        try:
            db_healthy = await factory.health_check()
            dependencies["postgres"] = "healthy" if db_healthy else "unhealthy"
        except Exception:
            dependencies["postgres"] = "unhealthy"

        if factory.nats_client:
            dependencies["nats"] = "healthy" if factory.nats_client.is_connected else "unhealthy"
        else:
            dependencies["nats"] = "not_configured"

    return HealthResponse(
        status="healthy",
        service=SERVICE_NAME,
        port=SERVICE_PORT,
        version=SERVICE_VERSION,
        dependencies=dependencies,
    )


@app.get("/health/ready", response_model=ReadinessResponse, tags=["Health"])
async def readiness_check():
    """Readiness check endpoint"""
    checks = {}
    details = {}

    if factory:
        try:
            db_healthy = await factory.health_check()
            checks["database"] = db_healthy
            details["database"] = "Connected" if db_healthy else "Connection failed"
        except Exception as e:
            checks["database"] = False
            details["database"] = str(e)

        if factory.nats_client:
            checks["nats"] = factory.nats_client.is_connected
            details["nats"] = "Connected" if factory.nats_client.is_connected else "Disconnected"
        else:
            checks["nats"] = True  # Optional
            details["nats"] = "Not configured (optional)"
    else:
        checks["factory"] = False
        details["factory"] = "Factory not initialized"

    ready = all(checks.get(k, False) for k in ["database"])

    return ReadinessResponse(ready=ready, checks=checks, details=details)


@app.get("/health/live", response_model=LivenessResponse, tags=["Health"])
async def liveness_check():
    """Liveness check endpoint"""
    return LivenessResponse(alive=True, uptime_seconds=time.time() - startup_time)


@app.get("/api/v1/dashboard/info", tags=["Health"])
async def service_info():
    """Service metadata and route summary"""
    return {
        "service": SERVICE_METADATA["service_name"],
        "version": SERVICE_METADATA["version"],
        "capabilities": SERVICE_METADATA["capabilities"],
        "entity_types": [kind.entity_type.value for kind in KINDS_BY_PATH.values()],
        **get_routes_metadata(),
    }


# ====================
# Campaign-level Endpoints
# ====================


@app.post("/api/v1/dashboard/submit", response_model=SubmissionResult, tags=["Submission"])
async def submit_dashboard_items(
    request: SubmissionRequest,
    service: DashboardSubmissionService = Depends(get_submission_service),
    auth: dict = Depends(get_auth_context),
):
    """Submit several content kinds of a campaign for review"""
    return unwrap(
        await service.submit_for_review(
            campaign_id=request.campaign_id,
            user_id=auth["user_id"],
            entity_types=request.entity_types,
            note=request.note,
        )
    )


@app.post("/api/v1/dashboard/save-changes", response_model=DraftListResponse, tags=["Submission"])
async def save_dashboard_changes(
    request: SaveChangesRequest,
    service: DashboardSubmissionService = Depends(get_submission_service),
    auth: dict = Depends(get_auth_context),
):
    """Save edits of several content kinds at once"""
    drafts = unwrap(
        await service.save_dashboard_changes(
            campaign_id=request.campaign_id,
            user_id=auth["user_id"],
            changes=request.changes(),
        )
    )
    return DraftListResponse(items=drafts, total=len(drafts))


@app.get(
    "/api/v1/dashboard/status/{campaign_id}",
    response_model=CampaignApprovalStatus,
    tags=["Submission"],
)
async def get_approval_status(
    campaign_id: str,
    service: DashboardSubmissionService = Depends(get_submission_service),
):
    return unwrap(await service.get_approval_status(campaign_id))


@app.post(
    "/api/v1/dashboard/admin/{campaign_id}/review",
    response_model=SubmissionReviewResult,
    tags=["Admin"],
)
async def review_dashboard_items(
    campaign_id: str,
    request: SubmissionReviewRequest,
    service: DashboardSubmissionService = Depends(get_submission_service),
    auth: dict = Depends(require_admin),
):
    """Approve or reject every pending content kind of a campaign"""
    return unwrap(
        await service.review_submission(
            campaign_id=campaign_id,
            reviewer_id=auth["user_id"],
            action=request.action,
            comment=request.comment,
            entity_types=request.entity_types,
        )
    )


@app.get("/api/v1/dashboard/admin/statistics", response_model=OverallStatistics, tags=["Admin"])
async def get_overall_statistics(
    service: DashboardSubmissionService = Depends(get_submission_service),
    auth: dict = Depends(require_admin),
):
    return unwrap(await service.get_statistics())


# ====================
# Per-kind Endpoints
# ====================


@app.post(
    "/api/v1/dashboard/{kind}",
    response_model=DraftResponse,
    status_code=status.HTTP_201_CREATED,
    tags=["Drafts"],
)
async def create_draft(
    request: DraftCreateRequest,
    workflow: DashboardWorkflowService = Depends(get_workflow),
    auth: dict = Depends(get_auth_context),
):
    """Create the draft of a campaign; a campaign holds at most one per kind"""
    draft = unwrap(await workflow.create(request.campaign_id, request.content, auth["user_id"]))
    return DraftResponse.from_draft(draft, f"{workflow.label} created")


@app.put("/api/v1/dashboard/{kind}", response_model=DraftResponse, tags=["Drafts"])
async def save_draft(
    request: DraftCreateRequest,
    workflow: DashboardWorkflowService = Depends(get_workflow),
    auth: dict = Depends(get_auth_context),
):
    """
    Create or update the draft of a campaign.

    Saving a rejected draft resubmits it for review.
    """
    draft = unwrap(
        await workflow.create_or_update(request.campaign_id, request.content, auth["user_id"])
    )
    return DraftResponse.from_draft(draft, f"{workflow.label} saved")


@app.get(
    "/api/v1/dashboard/{kind}/campaign/{campaign_id}",
    response_model=DraftResponse,
    tags=["Drafts"],
)
async def get_draft_by_campaign(
    campaign_id: str,
    workflow: DashboardWorkflowService = Depends(get_workflow),
):
    return DraftResponse.from_draft(unwrap(await workflow.get_by_campaign_id(campaign_id)))


@app.get("/api/v1/dashboard/{kind}/slug/{slug}", response_model=DraftResponse, tags=["Drafts"])
async def get_draft_by_slug(
    slug: str,
    workflow: DashboardWorkflowService = Depends(get_workflow),
):
    return DraftResponse.from_draft(unwrap(await workflow.get_by_campaign_slug(slug)))


@app.get("/api/v1/dashboard/{kind}/mine", response_model=DraftListResponse, tags=["Drafts"])
async def list_my_submissions(
    workflow: DashboardWorkflowService = Depends(get_workflow),
    auth: dict = Depends(get_auth_context),
):
    listing = unwrap(await workflow.get_by_submitted_by(auth["user_id"]))
    return DraftListResponse(
        items=listing.items,
        total=listing.total,
        skipped_entity_ids=listing.skipped_entity_ids,
    )


@app.get("/api/v1/dashboard/{kind}/admin/pending", response_model=DraftListResponse, tags=["Admin"])
async def list_pending(
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    workflow: DashboardWorkflowService = Depends(get_workflow),
    auth: dict = Depends(require_admin),
):
    """Review queue, oldest submission first"""
    listing = unwrap(await workflow.get_pending_for_review(limit=limit, offset=offset))
    return DraftListResponse(
        items=listing.items,
        total=listing.total,
        skipped_entity_ids=listing.skipped_entity_ids,
    )


@app.get("/api/v1/dashboard/{kind}/admin/approved", response_model=DraftListResponse, tags=["Admin"])
async def list_approved(
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    workflow: DashboardWorkflowService = Depends(get_workflow),
    auth: dict = Depends(require_admin),
):
    listing = unwrap(await workflow.get_approved(limit=limit, offset=offset))
    return DraftListResponse(
        items=listing.items,
        total=listing.total,
        skipped_entity_ids=listing.skipped_entity_ids,
    )


@app.get(
    "/api/v1/dashboard/{kind}/admin/statistics",
    response_model=ApprovalStatistics,
    tags=["Admin"],
)
async def get_kind_statistics(
    workflow: DashboardWorkflowService = Depends(get_workflow),
    auth: dict = Depends(require_admin),
):
    return unwrap(await workflow.get_statistics())


@app.get("/api/v1/dashboard/{kind}/{draft_id}", response_model=DraftResponse, tags=["Drafts"])
async def get_draft(
    draft_id: str,
    workflow: DashboardWorkflowService = Depends(get_workflow),
):
    return DraftResponse.from_draft(unwrap(await workflow.get_by_id(draft_id)))


@app.patch("/api/v1/dashboard/{kind}/{draft_id}", response_model=DraftResponse, tags=["Drafts"])
async def update_draft(
    draft_id: str,
    request: DraftUpdateRequest,
    workflow: DashboardWorkflowService = Depends(get_workflow),
    auth: dict = Depends(get_auth_context),
):
    """Partially update draft content; the status is unchanged"""
    draft = unwrap(await workflow.update(draft_id, request.content, auth["user_id"]))
    return DraftResponse.from_draft(draft, f"{workflow.label} updated")


@app.delete("/api/v1/dashboard/{kind}/{draft_id}", tags=["Drafts"])
async def delete_draft(
    draft_id: str,
    workflow: DashboardWorkflowService = Depends(get_workflow),
    auth: dict = Depends(get_auth_context),
):
    unwrap(await workflow.delete(draft_id, auth["user_id"]))
    return {"success": True, "message": f"{workflow.label} deleted"}


@app.post("/api/v1/dashboard/{kind}/{draft_id}/submit", response_model=DraftResponse, tags=["Drafts"])
async def submit_draft(
    draft_id: str,
    workflow: DashboardWorkflowService = Depends(get_workflow),
    auth: dict = Depends(get_auth_context),
):
    draft = unwrap(await workflow.submit(draft_id, auth["user_id"]))
    return DraftResponse.from_draft(draft, f"{workflow.label} submitted for review")


@app.post("/api/v1/dashboard/{kind}/{draft_id}/review", response_model=DraftResponse, tags=["Admin"])
async def review_draft(
    draft_id: str,
    request: ReviewRequest,
    workflow: DashboardWorkflowService = Depends(get_workflow),
    auth: dict = Depends(require_admin),
):
    draft = unwrap(
        await workflow.review(draft_id, request.action, auth["user_id"], request.comment)
    )
    return DraftResponse.from_draft(draft, f"{workflow.label} {draft.status.value}")


@app.get("/api/v1/dashboard/{kind}/{draft_id}/history", response_model=HistoryResponse, tags=["Drafts"])
async def get_draft_history(
    draft_id: str,
    workflow: DashboardWorkflowService = Depends(get_workflow),
):
    entries = unwrap(await workflow.get_history(draft_id))
    return HistoryResponse(entries=entries, total=len(entries))


# ====================
# Main Entry Point
# ====================


def main():
    """Run the service"""
    import uvicorn

    uvicorn.run(
        "microservices.dashboard_approval_service.main:app",
        host=settings.service.service_host,
        port=SERVICE_PORT,
        reload=settings.service.reload,
        log_level=settings.logging.log_level.lower(),
    )


if __name__ == "__main__":
    main()
