"""
Dashboard Approval Service Routes Registry

Defines service metadata and routes for service discovery.
"""

SERVICE_METADATA = {
    "service_name": "dashboard_approval_service",
    "version": "1.0.0",
    "tags": ["dashboard", "approval", "campaign", "v1"],
    "capabilities": [
        "draft_management",
        "approval_workflow",
        "batch_submission",
        "canonical_publication",
    ],
}

KIND_BASE = "/api/v1/dashboard/{kind}"

ROUTES = [
    {"path": "/health", "methods": ["GET"], "description": "Health check"},
    {"path": "/health/ready", "methods": ["GET"], "description": "Readiness check"},
    {"path": "/health/live", "methods": ["GET"], "description": "Liveness check"},
    {"path": "/api/v1/dashboard/health", "methods": ["GET"], "description": "Service health check (API v1)"},
    {"path": "/api/v1/dashboard/info", "methods": ["GET"], "description": "Service metadata"},
    # Campaign-level
    {"path": "/api/v1/dashboard/submit", "methods": ["POST"], "description": "Submit content kinds for review"},
    {"path": "/api/v1/dashboard/save-changes", "methods": ["POST"], "description": "Save several content kinds"},
    {"path": "/api/v1/dashboard/status/{campaign_id}", "methods": ["GET"], "description": "Approval status per kind"},
    {"path": "/api/v1/dashboard/admin/{campaign_id}/review", "methods": ["POST"], "description": "Review a campaign submission"},
    {"path": "/api/v1/dashboard/admin/statistics", "methods": ["GET"], "description": "Approval statistics"},
    # Per kind
    {"path": KIND_BASE, "methods": ["POST", "PUT"], "description": "Create or save a draft"},
    {"path": f"{KIND_BASE}/campaign/{{campaign_id}}", "methods": ["GET"], "description": "Draft by campaign"},
    {"path": f"{KIND_BASE}/slug/{{slug}}", "methods": ["GET"], "description": "Draft by campaign slug"},
    {"path": f"{KIND_BASE}/mine", "methods": ["GET"], "description": "Caller's submissions"},
    {"path": f"{KIND_BASE}/admin/pending", "methods": ["GET"], "description": "Review queue"},
    {"path": f"{KIND_BASE}/admin/approved", "methods": ["GET"], "description": "Approved drafts"},
    {"path": f"{KIND_BASE}/admin/statistics", "methods": ["GET"], "description": "Statistics of one kind"},
    {"path": f"{KIND_BASE}/{{draft_id}}", "methods": ["GET", "PATCH", "DELETE"], "description": "Draft CRUD"},
    {"path": f"{KIND_BASE}/{{draft_id}}/submit", "methods": ["POST"], "description": "Submit a draft"},
    {"path": f"{KIND_BASE}/{{draft_id}}/review", "methods": ["POST"], "description": "Approve or reject a draft"},
    {"path": f"{KIND_BASE}/{{draft_id}}/history", "methods": ["GET"], "description": "Approval history"},
]


def get_routes_metadata():
    """Get route metadata for service registration"""
    return {
        "route_count": str(len(ROUTES)),
        "routes": ",".join([r["path"] for r in ROUTES]),
        "api_version": "v1",
        "base_path": "/api/v1/dashboard",
    }


__all__ = ["SERVICE_METADATA", "ROUTES", "get_routes_metadata"]
