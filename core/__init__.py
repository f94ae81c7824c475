#!/usr/bin/env python3
"""
Core Module for Microservices Architecture

Shared infrastructure used by the services in this repository.

COMPONENTS:
    - config/: dotenv-backed dataclass settings and logging setup
    - postgres_client.py: asyncpg pool wrapper with transactions
    - nats_client.py: NATS JetStream event bus

USAGE:
    from core.config import get_settings
    from core.postgres_client import AsyncPostgresClient
    from core.nats_client import NATSEventBus, Event
"""

__version__ = "2.0.0"
