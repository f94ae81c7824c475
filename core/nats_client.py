"""
NATS Event Bus

JetStream publisher built on nats-py. Services publish Event envelopes;
the subject is the event type (e.g. "dashboard.draft.approved") and the
stream is derived from the subject prefix.
"""

import json
import logging
import uuid
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Optional, Set, Union

import nats
from nats.aio.client import Client as NATS
from nats.js import JetStreamContext

from core.config import InfraConfig

logger = logging.getLogger(__name__)


class DecimalEncoder(json.JSONEncoder):
    """JSON encoder that handles Decimal and datetime types"""
    def default(self, obj):
        if isinstance(obj, Decimal):
            return float(obj)
        if isinstance(obj, datetime):
            return obj.isoformat()
        if isinstance(obj, Enum):
            return obj.value
        return super().default(obj)


class Event:
    """Event model"""

    def __init__(
        self,
        event_type: Union[str, Enum],
        source: str,
        data: Dict[str, Any],
        subject: Optional[str] = None,
        metadata: Optional[Dict[str, str]] = None,
    ):
        self.id = str(uuid.uuid4())
        self.type = event_type.value if isinstance(event_type, Enum) else event_type
        self.source = source
        self.data = data
        self.subject = subject
        self.timestamp = datetime.now(timezone.utc).isoformat()
        self.metadata = metadata or {}
        self.version = "1.0.0"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type,
            "source": self.source,
            "subject": self.subject,
            "timestamp": self.timestamp,
            "data": self.data,
            "metadata": self.metadata,
            "version": self.version,
        }


class NATSEventBus:
    """NATS JetStream event bus"""

    MAX_STREAM_MESSAGES = 100000

    def __init__(
        self,
        service_name: str,
        config: Optional[InfraConfig] = None,
    ):
        self.service_name = service_name
        self.config = config or InfraConfig.from_env()
        self.url = self.config.nats_server_url

        self._nc: Optional[NATS] = None
        self._js: Optional[JetStreamContext] = None
        self._known_streams: Set[str] = set()

        logger.info(f"NATS EventBus initialized: {self.url}")

    async def connect(self) -> None:
        """Connect to NATS and open a JetStream context"""
        try:
            self._nc = await nats.connect(self.url, name=self.service_name)
            self._js = self._nc.jetstream()
            logger.info(f"Connected to NATS as {self.service_name}")
        except Exception as e:
            logger.error(f"Failed to connect to NATS at {self.url}: {e}")
            raise

    async def publish_event(self, event: Event) -> bool:
        """
        Publish an event to NATS JetStream.

        The stream for the event ("<prefix>-stream" covering "<prefix>.>")
        is created on first use.
        """
        if not self.is_connected or not self._js:
            logger.error("Not connected to NATS")
            return False

        try:
            subject = event.type
            payload = json.dumps(event.to_dict(), cls=DecimalEncoder).encode()

            stream_name = await self._ensure_stream(subject)
            ack = await self._js.publish(subject, payload, stream=stream_name)
            logger.info(f"Published event {event.type} [{event.id}] to stream {stream_name}, seq={ack.seq}")
            return True

        except Exception as e:
            logger.error(f"Error publishing event {event.id}: {e}")
            return False

    async def _ensure_stream(self, subject: str) -> str:
        prefix = subject.split(".")[0]
        stream_name = f"{prefix}-stream"
        if stream_name in self._known_streams:
            return stream_name

        try:
            await self._js.add_stream(
                name=stream_name,
                subjects=[f"{prefix}.>"],
                max_msgs=self.MAX_STREAM_MESSAGES,
            )
        except Exception as e:
            # Stream already exists with a compatible config
            logger.debug(f"Stream creation note: {e}")

        self._known_streams.add(stream_name)
        return stream_name

    async def close(self) -> None:
        """Drain and close the NATS connection"""
        if self._nc:
            try:
                await self._nc.drain()
            except Exception as e:
                logger.warning(f"Error draining NATS connection: {e}")
            self._nc = None
            self._js = None

        logger.info("Disconnected from NATS")

    @property
    def is_connected(self) -> bool:
        """Check if connected to NATS"""
        return self._nc is not None and self._nc.is_connected


__all__ = ["Event", "NATSEventBus", "DecimalEncoder"]
