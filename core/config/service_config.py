#!/usr/bin/env python3
"""Dashboard approval service settings

Service identity, HTTP binding and database schema for the dashboard
approval workflow service.
"""
import os
from dataclasses import dataclass

def _bool(val: str) -> bool:
    return val.lower() == "true"

def _int(val: str, default: int) -> int:
    try:
        return int(val) if val else default
    except ValueError:
        return default


@dataclass
class ServiceConfig:
    """Dashboard approval service settings"""

    service_name: str = "dashboard_approval_service"
    service_host: str = "0.0.0.0"
    service_port: int = 8260
    service_version: str = "1.0.0"

    # Postgres schema holding draft, approval and history tables
    db_schema: str = "dashboard"

    # Schema of the public campaign tables approved content is copied into
    canonical_schema: str = "public"

    # Role header value that grants reviewer access
    admin_role: str = "admin"

    reload: bool = False

    @classmethod
    def from_env(cls) -> 'ServiceConfig':
        """Load service configuration from environment variables"""
        env = os.getenv("ENV") or os.getenv("ENVIRONMENT", "development")
        return cls(
            service_name=os.getenv("SERVICE_NAME", "dashboard_approval_service"),
            service_host=os.getenv("SERVICE_HOST", "0.0.0.0"),
            service_port=_int(os.getenv("SERVICE_PORT", "8260"), 8260),
            service_version=os.getenv("SERVICE_VERSION", "1.0.0"),
            db_schema=os.getenv("DASHBOARD_DB_SCHEMA", "dashboard"),
            canonical_schema=os.getenv("DASHBOARD_CANONICAL_SCHEMA", "public"),
            admin_role=os.getenv("DASHBOARD_ADMIN_ROLE", "admin"),
            reload=_bool(os.getenv("SERVICE_RELOAD", "true" if env == "development" else "false")),
        )
